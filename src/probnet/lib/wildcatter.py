r"""
The oil wildcatter influence diagram: decide whether to run a seismic test,
then, having seen its result, whether to drill.

    T (test) ---> Seismic <--- Oil
     \               |          |
      \              v          v
       `--------->  D (drill) -> U_drill
    T -> U_test
"""
from ..rv import Variable
from ..potential import TablePotential, PotentialRole
from ..network import ProbNet, NetworkType, NodeType

COST = "cost"


def wildcatter_net():
    T = Variable("T", ["no", "yes"])
    D = Variable("D", ["no", "yes"])
    oil = Variable("Oil", ["dry", "wet", "soaking"])
    seismic = Variable("Seismic", ["no_result", "closed", "open", "diffuse"])
    u_test = Variable.numeric("U_test")
    u_drill = Variable.numeric("U_drill")

    net = ProbNet(NetworkType.INFLUENCE_DIAGRAM, name="wildcatter")
    net.decision_criteria = [COST]
    net.add_node(T, NodeType.DECISION)
    net.add_node(D, NodeType.DECISION)
    net.add_node(u_test, NodeType.UTILITY)
    net.add_node(u_drill, NodeType.UTILITY)

    net.add_potential(TablePotential([oil], PotentialRole.CONDITIONAL_PROBABILITY,
        values=[0.5, 0.3, 0.2]))

    # rows: Oil; columns: closed, open, diffuse
    results = [[0.1, 0.3, 0.6], [0.3, 0.4, 0.3], [0.5, 0.4, 0.1]]
    def p_seismic(s, o, t):
        if t == 0:
            return 1. if s == 0 else 0.
        return 0. if s == 0 else results[o][s - 1]
    net.add_potential(TablePotential.from_function([seismic, oil, T], p_seismic,
        PotentialRole.CONDITIONAL_PROBABILITY))

    net.add_link(T, D)
    net.add_link(seismic, D)

    net.add_potential(TablePotential([u_test, T], values=[0., -10.], criterion=COST))
    payoff = {(1, 0): -70., (1, 1): 50., (1, 2): 200.}
    net.add_potential(TablePotential.from_function([u_drill, D, oil],
        lambda u, d, o: payoff.get((d, o), 0.), criterion=COST))
    return net
