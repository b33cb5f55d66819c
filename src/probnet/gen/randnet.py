import random
import itertools as itt

import numpy as np
import networkx as nx

from ..rv import Variable
from ..potential import TablePotential, PotentialRole
from ..network import ProbNet, NetworkType


def var_names():
    return itt.chain(
        (chr(i + ord('A')) for i in range(26)),
        ("X%d_" % v for v in itt.count()))

def random_dag(n, edge_prob=0.3, max_parents=None, rng=random):
    """ a DAG on 0..n-1 whose edges all go from lower to higher numbers """
    G = nx.DiGraph()
    G.add_nodes_from(range(n))
    for j in range(n):
        candidates = [i for i in range(j) if rng.random() < edge_prob]
        if max_parents is not None and len(candidates) > max_parents:
            candidates = rng.sample(candidates, max_parents)
        G.add_edges_from((i, j) for i in candidates)
    return G

def random_cpt(variables, np_rng, concentration=1.0):
    """ a CPT for variables[0] given the others, every column drawn from a Dirichlet """
    p = TablePotential(variables, PotentialRole.CONDITIONAL_PROBABILITY)
    cols = np_rng.dirichlet([concentration] * p.dimensions[0],
        size=p.table_size // p.dimensions[0])
    p.values[:] = cols.reshape(-1)
    return p

def rand_net(n_vars_range=(4, 10), n_val_range=(2, 3), edge_prob=0.3, max_parents=3,
        seed=None, network_type=NetworkType.BAYESIAN_NETWORK):
    """
    A random network with a CPT on every node.

    Parameters
    ----
    > n_vars_range, n_val_range: inclusive ranges for the number of variables,
        and for the number of states of each.
    > seed: seeds both the structure (`random.Random`) and the tables
        (`np.random.default_rng`).
    """
    rng = random.Random(seed)
    np_rng = np.random.default_rng(seed)

    n = rng.randint(*n_vars_range)
    G = random_dag(n, edge_prob, max_parents, rng)

    varis = [Variable.with_num_states(name, rng.randint(*n_val_range))
        for _, name in zip(range(n), var_names())]

    net = ProbNet(network_type)
    for i in nx.topological_sort(G):
        parents = sorted(G.predecessors(i))
        net.add_potential(random_cpt([varis[i]] + [varis[j] for j in parents], np_rng))
    return net
