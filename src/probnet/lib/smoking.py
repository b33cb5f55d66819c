from ..rv import Variable
from ..potential import TablePotential, PotentialRole
from ..network import ProbNet, NetworkType

CPT = PotentialRole.CONDITIONAL_PROBABILITY

############""" Example network """##############
#   PS: parental smoking, S: smoking, SH: second-hand smoke, C: cancer
#
#        PS
#       /  \
#      S    SH
#       \  /
#        C

def binvar(name):
    return Variable.binary(name, ("~" + name.lower(), name.lower()))

def _bern(p, x):
    return p if x == 1 else 1 - p

def smoking_net():
    PS, S, SH, C = binvar('PS'), binvar('S'), binvar('SH'), binvar('C')
    p_cancer = {(1, 1): 0.6, (1, 0): 0.4, (0, 1): 0.1, (0, 0): 0.01}

    net = ProbNet(NetworkType.BAYESIAN_NETWORK, name="smoking")
    net.add_potential(TablePotential([PS], CPT, values=[0.7, 0.3]))
    net.add_potential(TablePotential.from_function([S, PS],
        lambda s, ps: _bern([0.2, 0.4][ps], s), CPT))
    net.add_potential(TablePotential.from_function([SH, PS],
        lambda sh, ps: _bern([0.3, 0.8][ps], sh), CPT))
    net.add_potential(TablePotential.from_function([C, S, SH],
        lambda c, s, sh: _bern(p_cancer[s, sh], c), CPT))
    return net
