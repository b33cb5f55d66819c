import math

import pytest

from probnet import (Variable, PartitionedInterval, State, Finding, EvidenceCase,
    TablePotential, PotentialRole, ProbNet, NetworkType, IncompatibleEvidence, InvalidState,
    NoFinding, NodeNotFound, MalformedConfiguration)

CPT = PotentialRole.CONDITIONAL_PROBABILITY


################ variables ################
def test_state_lookup():
    X = Variable("X", ["low", "mid", "high"])
    assert X.state_index("mid") == 1
    assert X.state_index(State("high")) == 2
    with pytest.raises(InvalidState):
        X.state_index("huge")
    with pytest.raises(MalformedConfiguration):
        Variable("Y", ["a", "a"])


def test_temporal_names():
    X = Variable("X [3]", ["a", "b"])
    assert X.is_temporal and X.base_name == "X" and X.time_slice == 3
    assert X.shifted_name(-1) == "X [2]"
    later = X.shift(2)
    assert later.name == "X [5]" and later is not X and X.time_slice == 3
    assert Variable("Y", ["a"]).time_slice is None


def test_state_index_of_value():
    X = Variable("X", ["0", "0.5", "1"], precision=0.5)
    assert X.state_index_of_value(0.6) == 1
    D = Variable.discretized("D", ["low", "high"], PartitionedInterval([0, 10, 20], [False, False, True]))
    assert D.state_index_of_value(10) == 1
    assert D.state_index_of_value(20) == 1
    with pytest.raises(InvalidState):
        D.state_index_of_value(25)


def test_partitioned_interval():
    iv = PartitionedInterval([0, 1, 5], [False, False, True])
    assert iv.num_subintervals == 2
    assert iv.is_left_closed and iv.is_right_closed
    assert 0 in iv and 5 in iv and 6 not in iv
    assert iv.index_of_subinterval(1) == 1 and iv.index_of_subinterval(0.5) == 0
    assert str(iv) == "[0, 1) [1, 5]"
    assert iv.copy() == iv

    iv.remove_subinterval(0)
    assert iv.limits == [0, 5]
    with pytest.raises(MalformedConfiguration):
        PartitionedInterval([0, 1], [True])
    with pytest.raises(MalformedConfiguration):
        PartitionedInterval([1, 0], [True, True])

    open_iv = PartitionedInterval.from_bounds(False, 0, 1, False)
    assert 0 not in open_iv and 1 not in open_iv and 0.5 in open_iv


def test_delta_potential():
    X = Variable("X", ["a", "b", "c"])
    p = X.delta_potential("b")
    assert p.role == CPT and p.values.tolist() == [0., 1., 0.]


################ findings ################
def test_finding_kinds():
    X = Variable("X", ["a", "b"])
    f = Finding(X, "b")
    assert f.state_index == 1 and f.state == "b" and f.numerical_value == 1
    assert str(f) == "X:b(1)"

    D = Variable.discretized("D", ["low", "high"], PartitionedInterval([0, 10, 20], [False, False, True]))
    assert Finding(D, 1).numerical_value == 15
    assert Finding(D, numerical_value=3.).state_index == 0

    N = Variable.numeric("N")
    g = Finding(N, numerical_value=2.5)
    assert g.numerical_value == 2.5 and str(g) == "N:(2.5)"

    with pytest.raises(InvalidState):
        Finding(X, 2)


def test_evidence_compatibility():
    X, Y = Variable.binary("X"), Variable.binary("Y")
    e = EvidenceCase()
    e.add_finding(Finding(X, 1))
    assert len(e) == 1

    e.add_finding(Finding(X, 1))
    assert len(e) == 1

    with pytest.raises(IncompatibleEvidence):
        e.add_finding(Finding(X, 0))

    e.add_finding(Finding(Y, 0))
    assert e.variables == [X, Y] and e.get_state(Y) == 0
    assert e.exists_evidence([Y]) and not EvidenceCase().exists_evidence([Y])


def test_discretized_compatibility_by_index_or_value():
    D = Variable.discretized("D", ["low", "high"], PartitionedInterval([0, 10, 20], [False, False, True]))
    e = EvidenceCase([Finding(D, numerical_value=3.)])
    e.add_finding(Finding(D, 0))
    with pytest.raises(IncompatibleEvidence):
        e.add_finding(Finding(D, 1))


def test_numeric_finding_by_index_can_be_added_again():
    N = Variable.numeric("N")
    e = EvidenceCase([Finding(N, 0)])
    e.add_finding(Finding(N, 0))
    assert len(e) == 1
    assert e == EvidenceCase([Finding(N, 0)])
    assert Finding(N, 0) == Finding(N, numerical_value=0.)
    with pytest.raises(IncompatibleEvidence):
        e.add_finding(Finding(N, numerical_value=1.5))


def test_change_and_remove_finding():
    X = Variable.binary("X")
    e = EvidenceCase([Finding(X, 0)])
    e.change_finding(Finding(X, 1))
    assert e.get_state(X) == 1

    removed = e.remove_finding(X)
    assert removed.state_index == 1 and e.is_empty()
    with pytest.raises(NoFinding):
        e.remove_finding(X)
    with pytest.raises(KeyError):
        e.get_finding(X)


def test_fuse():
    X, Y, Z = Variable.binary("X"), Variable.binary("Y"), Variable("Z", ["a", "b", "c"])
    mine = EvidenceCase([Finding(X, 0)])
    theirs = EvidenceCase([Finding(X, 1), Finding(Y, 1)])

    kept = mine.copy()
    kept.fuse(theirs)
    assert kept.get_state(X) == 0 and kept.get_state(Y) == 1

    overwritten = mine.copy()
    overwritten.fuse(theirs, overwrite=True)
    assert overwritten.get_state(X) == 1

    # a finding whose state no longer exists is skipped, not raised
    stale = Finding(Z, 2)
    Z.states = Z.states[:2]
    mine.fuse(EvidenceCase([stale]))
    assert Z not in mine


def test_add_finding_by_name():
    net = ProbNet()
    X, N = Variable("X", ["a", "b"]), Variable.numeric("N")
    net.add_node(X)
    net.add_node(N)
    e = EvidenceCase()
    e.add_finding_by_name(net, "X", "b")
    e.add_finding_by_name(net, "N", 4.2)
    assert e.get_state(X) == 1 and e.get_numerical_value(N) == 4.2
    assert e.remaining_nodes(net) == []
    with pytest.raises(NodeNotFound):
        e.add_finding_by_name(net, "Q", "a")


def _chain(network_type):
    X, Y, Z = Variable.binary("X"), Variable.binary("Y"), Variable.binary("Z")
    net = ProbNet(network_type)
    net.add_potential(TablePotential([X], CPT, values=[.5, .5]))
    net.add_potential(TablePotential([Y, X], CPT, values=[0., 1., 1., 0.]))
    net.add_potential(TablePotential([Z, Y], CPT, values=[1., 0., 0., 1.]))
    return net, X, Y, Z


def test_extend_evidence_in_mid():
    net, X, Y, Z = _chain(NetworkType.MID)
    e = EvidenceCase([Finding(X, 1)])
    e.extend_evidence(net)
    assert e.get_state(Y) == 0 and e.get_state(Z) == 0


def test_extend_evidence_only_where_induction_applies():
    net, X, Y, Z = _chain(NetworkType.BAYESIAN_NETWORK)
    e = EvidenceCase([Finding(X, 1)])
    e.extend_evidence(net)
    assert e.variables == [X]


def test_shift_evidence_backwards():
    X2, X1 = Variable("X [2]", ["a", "b"]), Variable("X [1]", ["a", "b"])
    S = Variable("S", ["a", "b"])
    net = ProbNet()
    for v in (X1, X2, S):
        net.add_node(v)
    e = EvidenceCase([Finding(X2, 1), Finding(S, 0)])
    shifted = e.shift_evidence_backwards(1, net)
    assert shifted.get_state(X1) == 1 and shifted.get_state(S) == 0
    assert X2 not in shifted


def test_evidence_equality_and_str():
    X = Variable("X", ["a", "b"])
    assert EvidenceCase([Finding(X, 1)]) == EvidenceCase([Finding(X, 1)])
    assert EvidenceCase([Finding(X, 1)]) != EvidenceCase([Finding(X, 0)])
    assert str(EvidenceCase([Finding(X, 1)])) == "[X:b(1)]"
    assert math.isnan(Finding(X, 1)._numerical_value)


def test_variable_editing():
    X = Variable("X [0]", ["a", "b"])
    X.set_time_slice(4)
    assert X.name == "X [4]" and X.time_slice == 4

    X.rename_state("b", "c")
    assert X.state_names == ["a", "c"]
    with pytest.raises(InvalidState):
        X.rename_state("a", "c")
    assert Finding.from_state(X, "c").state_index == 1

    iv = PartitionedInterval([0, 1, 2], [False, False, True])
    iv.change_limit(1, 1.5, True)
    assert iv.index_of_subinterval(1.5) == 0 and str(iv) == "[0, 1.5] (1.5, 2]"
