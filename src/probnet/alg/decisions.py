"""
Helpers for influence diagrams and decision analysis networks: the order of
decisions, informational predecessors, and asymmetry checks.
"""
from collections import deque

from ..network import NodeType
from ..evidence import EvidenceCase, Finding
from .structure import sort_variables_topologically


def _has_decision_ancestor(node, remaining=None):
    """ whether a decision is reachable upwards from `node`. With `remaining`,
    only decisions in it count, and the others block the walk. """
    stack = [node]
    seen = {node}
    while stack:
        for parent in stack.pop().parents:
            is_decision = parent.node_type == NodeType.DECISION
            if is_decision:
                if remaining is None or parent in remaining:
                    return True
                continue
            if parent not in seen:
                seen.add(parent)
                stack.append(parent)
    return False

def get_parentless_decisions(net):
    """ decisions with no other decision among their ancestors """
    return [d for d in net.nodes(NodeType.DECISION) if not _has_decision_ancestor(d)]

def get_decision_sequence(net):
    """
    The decisions in their unique order, peeled off one at a time while exactly
    one decision has no decision ancestor. Stops early (giving a prefix) when
    the order is not total.
    """
    work = net.copy()
    sequence = []
    parentless = get_parentless_decisions(work)
    while len(parentless) == 1:
        decision = parentless[0]
        sequence.append(net.get_node(decision.variable))
        work.remove_node(decision)
        parentless = get_parentless_decisions(work)
    return sequence

def has_predecessor_decision(node) -> bool:
    return _has_decision_ancestor(node)

def get_predecessor_decisions(node):
    """ the nearest decisions above `node`: walking up stops at each decision found """
    found = []
    stack = list(node.parents)
    seen = set(stack)
    while stack:
        predecessor = stack.pop()
        if predecessor.node_type == NodeType.DECISION:
            found.append(predecessor)
            continue
        for parent in predecessor.parents:
            if parent not in seen:
                seen.add(parent)
                stack.append(parent)
    return found

def add_no_forgetting_arcs(net):
    """ In place: every decision gets, as parents, the earlier decisions and
    everything they observed. """
    decisions = net.variables(NodeType.DECISION)
    if len(decisions) < 2:
        return
    ordered = sort_variables_topologically(net, decisions)
    for i, upper_variable in enumerate(ordered[:-1]):
        upper = net.get_node(upper_variable)
        upper_parents = upper.parents
        for lower_variable in ordered[i+1:]:
            lower = net.get_node(lower_variable)
            for parent in upper_parents:
                if parent is not lower and not lower.is_parent(parent):
                    net.add_link(parent, lower, directed=True)
            if not lower.is_parent(upper):
                net.add_link(upper, lower, directed=True)

def get_informational_predecessors(net, variable):
    """
    Variables known when deciding `variable`: the decisions with a directed
    path to it, and the chance variables that are parents of it or of any of
    those decisions.
    """
    decision = net.get_node(variable)
    earlier = [d for d in net.nodes(NodeType.DECISION)
        if d is not decision and net.exists_path(d, decision, directed=True)]
    predecessors = [d.variable for d in earlier]
    for candidate in net.nodes(NodeType.CHANCE):
        if decision.is_parent(candidate) or any(d.is_parent(candidate) for d in earlier):
            predecessors.append(candidate.variable)
    return predecessors

def get_always_observed_variables(net):
    return [n for n in net.nodes() if n.always_observed]

def get_observable_variables(net):
    """
    Nodes that can be observed at some point: the always-observed ones, and
    every child reached through a link with revealing conditions from one of
    them or from a decision, taking the decisions in their order.
    """
    observable = set(get_always_observed_variables(net))
    pending = deque(observable)
    pending.extend(get_parentless_decisions(net))
    visited_decisions = set()
    while pending:
        node = pending.popleft()
        for child in node.children:
            if child not in observable \
                    and net.get_link(node, child).has_revealing_conditions():
                observable.add(child)
                pending.append(child)
        if node.node_type == NodeType.DECISION and node not in visited_decisions:
            visited_decisions.add(node)
            pending.extend(d for d in net.nodes(NodeType.DECISION)
                if d not in visited_decisions and node in get_predecessor_decisions(d))
    return observable

def get_never_observed_variables(net):
    observable = get_observable_variables(net)
    return [n for n in net.nodes(NodeType.CHANCE) if n not in observable]


################ asymmetry ################
def has_structural_asymmetry(net) -> bool:
    """
    True when some link has a total restriction, restricts a decision, or
    reveals its child only for some of the parent's states.
    """
    for link in net.links():
        if link.has_total_restriction():
            return True
        if link.has_restrictions and link.node2.node_type == NodeType.DECISION:
            return True
        if link.has_revealing_conditions() \
                and len(link.revealing_states) < link.node1.variable.num_states:
            return True
    return False

def has_order_asymmetry(net, evidential_variables=None) -> bool:
    """ True when the decisions are not totally ordered: at some point more
    than one remaining decision has no remaining decision above it """
    parentless = get_parentless_decisions(net)
    if len(parentless) == 1:
        remaining = net.nodes(NodeType.DECISION)
        while len(parentless) == 1:
            remaining.remove(parentless[0])
            pending = set(remaining)
            parentless = [d for d in remaining if not _has_decision_ancestor(d, pending)]

    if evidential_variables is not None:
        observed = [net.get_node(v) for v in evidential_variables]
        parentless = [d for d in parentless if d not in observed]
    return len(parentless) > 1

def get_unrestricted_states(link, states, state):
    """ those of `states` (of link.node2's variable) compatible with `state` of node1 """
    restrictions = link.restrictions_potential
    source, target = restrictions.variables
    configuration = EvidenceCase([Finding(source, source.state_index(state))])
    compatible = []
    for s in states:
        configuration.change_finding(Finding(target, target.state_index(s)))
        if restrictions.get_probability(configuration) > 0:
            compatible.append(s)
    return compatible
