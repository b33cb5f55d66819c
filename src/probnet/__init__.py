"""
probnet: probabilistic graphical networks (Bayesian networks, Markov networks,
influence diagrams) built on dense potential tables, with the structural
operations inference needs: evidence handling, topological order, and
relevance pruning.
"""

from .errors import (ProbNetError, IncompatibleEvidence, InvalidState, NodeNotFound,
    NoFinding, NonProjectable, WrongCriterion, MalformedConfiguration)
from .rv import VariableType, State, PartitionedInterval, Variable
from .evidence import Finding, EvidenceCase
from .potential import (PotentialRole, Combinator, Potential, TablePotential,
    OpaquePotential, ZERO_PROBABILITY)
from .network import NodeType, NetworkType, Node, Link, ProbNet
from .logging_config import configure_logging
