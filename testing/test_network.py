import numpy as np
import pytest

from probnet import (Variable, TablePotential, PotentialRole, Finding, EvidenceCase, ProbNet,
    NetworkType, NodeType, VariableType, NodeNotFound, WrongCriterion, ZERO_PROBABILITY)
from probnet.lib import smoking_net, wildcatter_net

CPT = PotentialRole.CONDITIONAL_PROBABILITY


def test_add_potential_links_parents():
    A, B, C = Variable.binary("A"), Variable.binary("B"), Variable.binary("C")
    net = ProbNet()
    head = net.add_potential(TablePotential([C, A, B], CPT))
    assert head is net.get_node(C)
    assert set(head.parents) == {net.get_node(A), net.get_node(B)}
    assert net.get_node(A).is_child(head) and head.is_parent(net.get_node(A))
    assert len(net.links()) == 2

    # a second potential over the same family adds no link
    net.add_potential(TablePotential([C, A], CPT))
    assert len(net.links()) == 2 and len(head.potentials) == 2


def test_markov_network_links_siblings():
    A, B, C = Variable.binary("A"), Variable.binary("B"), Variable.binary("C")
    net = ProbNet(NetworkType.MARKOV_NETWORK)
    net.add_potential(TablePotential([A, B, C]))
    a = net.get_node(A)
    assert set(a.siblings) == {net.get_node(B), net.get_node(C)}
    assert a.parents == [] and a.children == []
    assert len(net.links()) == 3
    assert net.get_link(B, A, directed=False) is net.get_link(A, B, directed=False)


def test_constant_potentials():
    net = ProbNet()
    k = TablePotential([], values=[2.])
    assert net.add_potential(k) is None
    assert net.constant_potentials == [k]
    assert net.get_potentials() == [k] and net.num_potentials == 1
    net.remove_potential(k)
    assert net.num_potentials == 0


def test_remove_potential_by_identity():
    A = Variable.binary("A")
    net = ProbNet()
    p = TablePotential([A], CPT, values=[.3, .7])
    twin = p.copy()
    net.add_potential(p)
    net.add_potential(twin)
    assert p == twin

    net.remove_potential(twin)
    (left,) = net.get_node(A).potentials
    assert left is p


def test_get_node():
    A = Variable.binary("A")
    net = ProbNet(name="tiny")
    node = net.add_node(A)
    assert net.add_node(A) is node
    assert net.get_node("A") is node and net.get_node(A) is node
    assert net.get_node(Variable.binary("A")) is None
    with pytest.raises(NodeNotFound):
        net.get_node("B")
    with pytest.raises(KeyError):
        net.get_variable("B")


def test_node_type_change_moves_the_node():
    A = Variable.binary("A")
    net = ProbNet(NetworkType.INFLUENCE_DIAGRAM)
    node = net.add_node(A)
    node.node_type = NodeType.DECISION
    assert net.nodes(NodeType.DECISION) == [node]
    assert net.nodes(NodeType.CHANCE) == []
    assert net.get_node(A) is node


def test_utility_nodes_are_numeric():
    U = Variable("U", ["a", "b"])
    net = ProbNet(NetworkType.INFLUENCE_DIAGRAM)
    net.add_node(U, NodeType.UTILITY)
    assert U.variable_type == VariableType.NUMERIC and U.num_states == 1


def test_remove_node():
    net = smoking_net()
    S = net.get_variable("S")
    net.remove_node(S)
    assert net.num_nodes == 3 and not net.contains_variable(S)
    assert net.get_node("C").parents == [net.get_node("SH")]
    with pytest.raises(NodeNotFound):
        net.remove_node(S)


def test_links():
    net = smoking_net()
    PS, C = net.get_node("PS"), net.get_node("C")
    link = net.get_link(PS, net.get_node("S"))
    assert repr(link) == "PS --> S"
    assert net.add_link(PS, net.get_node("S")) is link
    with pytest.raises(ValueError):
        net.add_link(PS, net.get_node("S"), directed=False)

    assert net.exists_path(PS, C) and not net.exists_path(C, PS)
    assert net.exists_path(C, PS, directed=False)
    assert net.exists_path(C, C)

    net.remove_link(PS, net.get_node("S"))
    assert net.get_link(PS, net.get_node("S")) is None
    assert not net.exists_path(PS, net.get_node("S"))
    assert net.exists_path(PS, net.get_node("S"), directed=False)


def test_get_potentials_of():
    net = smoking_net()
    S = net.get_variable("S")
    found = net.get_potentials_of(S)
    assert sorted(str(p).split(" =")[0] for p in found) == ["P(C | S, SH)", "P(S | PS)"]
    assert net.get_potentials_of(Variable.binary("S")) == []


def test_sorted_potentials():
    net = smoking_net()
    heads = [p.variables[0].name for p in net.get_sorted_potentials()]
    assert heads[0] == "PS" and heads[-1] == "C"
    assert len(net.get_potentials_by_role(CPT)) == 4


def test_potentials_by_type():
    net = wildcatter_net()
    assert len(net.get_potentials_by_type(NodeType.UTILITY)) == 2
    assert len(net.get_potentials_by_type(NodeType.CHANCE)) == 2
    assert net.get_potentials_by_type(NodeType.DECISION) == []


def test_wrong_criterion():
    net = wildcatter_net()
    T = net.get_variable("T")
    with pytest.raises(WrongCriterion):
        net.add_potential(TablePotential([Variable.numeric("U_other"), T], criterion="money"))
    net.add_potential(TablePotential([Variable.numeric("U_other"), T], criterion="cost"))


def test_table_project_potentials_gives_zero_probability():
    X = Variable.binary("X")
    net = ProbNet()
    net.add_potential(TablePotential([X], CPT, values=[1., 0.]))
    (zero,) = net.table_project_potentials(EvidenceCase([Finding(X, 1)]))
    assert zero is ZERO_PROBABILITY

    (kept,) = net.table_project_potentials(EvidenceCase([Finding(X, 0)]))
    assert kept is not ZERO_PROBABILITY and kept.first_value == 1.


def test_zero_projection_of_unspecified_role_stays_its_own():
    X = Variable.binary("X")
    net = ProbNet()
    net.add_potential(TablePotential([X], PotentialRole.UNSPECIFIED, values=[1., 0.]))
    (zero,) = net.table_project_potentials(EvidenceCase([Finding(X, 1)]))
    assert zero is not ZERO_PROBABILITY
    assert zero.role == PotentialRole.UNSPECIFIED
    assert zero.num_variables == 0 and zero.first_value == 0


def test_table_project_potentials_on_smoking():
    net = smoking_net()
    S = net.get_variable("S")
    tables = net.table_project_potentials(EvidenceCase([Finding(S, 1)]))
    assert len(tables) == 4
    over_ps = sorted(t.values.tolist() for t in tables if [v.name for v in t.variables] == ["PS"])
    assert np.allclose(over_ps, [[.2, .4], [.7, .3]])
    (cancer,) = [t for t in tables if t.variables[0].name == "C"]
    assert [v.name for v in cancer.variables] == ["C", "SH"]
    assert np.allclose(cancer.values, [.6, .4, .4, .6])


################ copies ################
def test_copy_shares_potentials_not_structure():
    net = smoking_net()
    c = net.copy()
    assert c.num_nodes == net.num_nodes and len(c.links()) == len(net.links())
    assert c.get_node("S") is not net.get_node("S")
    assert c.get_variable("S") is net.get_variable("S")
    assert c.get_node("S").potentials[0] is net.get_node("S").potentials[0]

    c.remove_node(c.get_node("C"))
    assert net.num_nodes == 4


def test_copy_property_maps():
    net = smoking_net()
    net.additional_properties["author"] = "someone"
    net.get_node("S").additional_properties["color"] = "red"

    cloned = net.copy()
    cloned.get_node("S").additional_properties["color"] = "blue"
    assert net.get_node("S").additional_properties["color"] == "red"
    assert cloned.get_node("PS").additional_properties == {}

    shared = net.copy(share_properties=True)
    maps = [n.additional_properties for n in shared.nodes()]
    assert all(m is maps[0] for m in maps)
    assert maps[0]["author"] == "someone"


def test_deep_copy_is_independent():
    net = smoking_net()
    link = net.get_link(net.get_node("PS"), net.get_node("S"))
    link.set_compatibility_value("~ps", "s", 0)

    d = net.deep_copy()
    S = d.get_variable("S")
    assert S is not net.get_variable("S") and S.state_names == ["~s", "s"]
    (p,) = d.get_node("S").potentials
    assert p.variables[0] is S and p.variables[1] is d.get_variable("PS")
    assert np.allclose(p.values, net.get_node("S").potentials[0].values)

    p.values[0] = 0.
    assert net.get_node("S").potentials[0].values[0] == .8

    copied_link = d.get_link(d.get_node("PS"), d.get_node("S"))
    assert copied_link.restrictions_potential is not link.restrictions_potential
    assert copied_link.are_compatible("~ps", "s") == 0


def test_deep_copy_refuses_foreign_variables():
    A, foreign = Variable.binary("A"), Variable.binary("F")
    net = ProbNet()
    node = net.add_node(A)
    node.add_potential(TablePotential([A, foreign], CPT))
    with pytest.raises(NodeNotFound):
        net.deep_copy()


################ links ################
def test_link_restrictions():
    net = wildcatter_net()
    link = net.get_link(net.get_node("T"), net.get_node("D"))
    assert not link.has_restrictions and link.are_compatible("no", "yes") == 1

    link.set_compatibility_value("no", "yes", 0)
    assert link.has_restrictions and not link.has_total_restriction()
    assert link.are_compatible("no", "yes") == 0 and link.are_compatible("yes", "yes") == 1

    link.set_compatibility_value("no", "no", 0)
    assert link.has_total_restriction()
    assert {s.name for s in link.states_restricting_totally()} == {"no"}

    link.set_compatibility_value("no", "no", 1)
    link.set_compatibility_value("no", "yes", 1)
    link.reset_restrictions_potential()
    assert not link.has_restrictions


def test_revealing_conditions():
    net = wildcatter_net()
    link = net.get_link(net.get_node("Oil"), net.get_node("Seismic"))
    assert not link.has_revealing_conditions()
    link.add_revealing_state("dry")
    assert link.has_revealing_conditions()
    link.remove_revealing_state("dry")
    assert not link.has_revealing_conditions()


################ pgmpy ################
def test_to_pgmpy():
    bn = smoking_net().to_pgmpy()
    assert bn.check_model()
    assert set(bn.edges()) == {("PS", "S"), ("PS", "SH"), ("S", "C"), ("SH", "C")}
    cpd = bn.get_cpds("C")
    assert cpd.variables == ["C", "S", "SH"]
    # columns: (S, SH) = (~s,~sh), (~s,sh), (s,~sh), (s,sh)
    assert np.allclose(cpd.get_values()[1], [.01, .1, .4, .6])


def test_to_pgmpy_drops_non_chance_nodes():
    with pytest.warns(UserWarning):
        bn = wildcatter_net().to_pgmpy()
    assert set(bn.nodes()) == {"Oil", "Seismic"}
    assert [cpd.variable for cpd in bn.get_cpds()] == ["Oil"]


def test_from_pgmpy_round_trip():
    net = smoking_net()
    back = ProbNet.from_pgmpy(net.to_pgmpy())
    assert back.num_nodes == 4 and len(back.links()) == 4
    for node in net.nodes():
        (p,) = node.potentials
        (q,) = back.get_node(node.name).potentials
        assert [v.name for v in q.variables] == [v.name for v in p.variables]
        assert q.variables[0].state_names == p.variables[0].state_names
        assert np.allclose(q.values, p.values)
