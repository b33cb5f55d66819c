"""
Structural operations on networks: topological order, ancestors, evidence
projection, and relevance pruning (barren and unreachable nodes).

The pruning functions work in place on the network they are given;
`get_pruned` copies first and leaves its argument alone.
"""

import logging

from ..utils import UniqueStack

logger = logging.getLogger(__name__)


############### ORDERS AND ANCESTORS ############
def sort_topologically(net):
	"""
	Kahn's algorithm, on a copy whose links are consumed as we go. The
	returned nodes are those of `net`. Raises ValueError on a directed cycle.
	"""
	graph = net.copy()
	stack = [n for n in graph.nodes() if not n.parents]
	ordered = []
	while stack:
		node = stack.pop()
		ordered.append(node)
		for child in node.children:
			graph.remove_link(node, child, directed=True)
			if not child.parents:
				stack.append(child)

	if len(ordered) < graph.num_nodes:
		raise ValueError("cannot sort a network with a directed cycle")
	return [net.get_node(n.variable) for n in ordered]

def sort_variables_topologically(net, variables):
	""" `variables` (which need not all be in `net`) in topological order """
	wanted = set(variables)
	return [n.variable for n in sort_topologically(net) if n.variable in wanted]

def get_node_ancestors(node):
	""" proper ancestors of `node` """
	ancestors = set()
	stack = [node]
	while stack:
		for parent in stack.pop().parents:
			if parent not in ancestors:
				ancestors.add(parent)
				stack.append(parent)
	return ancestors

def get_nodes_and_ancestors(nodes):
	ancestors = set(nodes)
	stack = list(nodes)
	while stack:
		for parent in stack.pop().parents:
			if parent not in ancestors:
				ancestors.add(parent)
				stack.append(parent)
	return ancestors

def get_evidence_nodes(net, evidence_variables):
	""" nodes of the observed variables that are still in `net` """
	nodes = (net.get_node(v) for v in evidence_variables)
	return {n for n in nodes if n is not None}


############### EVIDENCE ############
def project_evidence(net, evidence):
	"""
	In place: every potential touching an observed variable is replaced by its
	projection on `evidence`, then the observed nodes are deleted. Projections
	left without variables, or mentioning variables no longer in the network,
	are dropped.
	"""
	for variable in evidence.variables:
		node = net.get_node(variable)
		if node is None:
			continue
		for potential in net.get_potentials_of(variable):
			net.remove_potential(potential)
			for projected in potential.project(evidence):
				if projected.num_variables > 0 \
						and all(net.contains_variable(v) for v in projected.variables):
					net.add_potential(projected)
		net.remove_node(node)


############### PRUNING ############
def remove_barren_nodes(net, interest, evidence_variables):
	"""
	Deletes barren nodes: childless nodes outside `interest` and the evidence,
	and, repeatedly, parents all of whose children are barren.
	"""
	interest, evidence_variables = set(interest), set(evidence_variables)

	def eligible(node):
		return node.variable not in interest and node.variable not in evidence_variables

	barren = {n for n in net.nodes() if n.num_children == 0 and eligible(n)}
	pending = set(barren)
	while pending:
		found = set()
		for node in pending:
			for parent in node.parents:
				if parent in barren or parent in found or not eligible(parent):
					continue
				if all(child in barren for child in parent.children):
					found.add(parent)
		barren |= found
		pending = found

	logger.debug("barren nodes: %s", sorted(n.name for n in barren))
	for node in barren:
		net.remove_node(node)
	return net

def _keep(node, explore, keep):
	explore.push(node)
	keep.add(node)

def remove_unreachable_nodes(net, interest, evidence_variables):
	"""
	Deletes the nodes that no active path connects to `interest`.

	Starting from the interest nodes (kept, with their neighbours kept and
	explored), each explored node Y propagates:
	  - head to head, X -> Y <- Z with Y observed or an ancestor of an observed
		node: if one of X, Z is kept, so is the other;
	  - any child of Y that is observed or an ancestor of an observed node;
	  - when Y is not observed, X -> Y -> Z and X <- Y <- Z (a kept parent keeps
		the child and vice versa) and X <- Y -> Z (a kept child keeps its
		siblings).
	"""
	explore = UniqueStack()
	keep = set(get_evidence_nodes(net, interest))

	for node in list(keep):
		for neighbor in node.neighbors:
			if neighbor not in keep:
				keep.add(neighbor)
				explore.push(neighbor)

	evidence_nodes = get_evidence_nodes(net, evidence_variables)
	evidence_and_ancestors = get_nodes_and_ancestors(evidence_nodes)

	while not explore.empty():
		node = explore.pop()

		# X -> Y <- Z
		if node in evidence_and_ancestors:
			parents = node.parents
			for i, parent_i in enumerate(parents[:-1]):
				keep_i = parent_i in keep
				for parent_j in parents[i+1:]:
					keep_j = parent_j in keep
					if keep_i and not keep_j:
						_keep(parent_j, explore, keep)
					elif keep_j and not keep_i:
						_keep(parent_i, explore, keep)
						keep_i = True

		for child in node.children:
			if child in evidence_and_ancestors:
				_keep(child, explore, keep)

		if node in evidence_nodes:
			continue

		children, parents = node.children, node.parents
		for i, child in enumerate(children):
			child_kept = child in keep
			# X -> Y -> Z  and  X <- Y <- Z
			for parent in parents:
				if child_kept and parent not in keep:
					_keep(parent, explore, keep)
				elif parent in keep and not child_kept:
					_keep(child, explore, keep)
					child_kept = True
			# X <- Y -> Z
			for child2 in children[i+1:]:
				child2_kept = child2 in keep
				if child2_kept and not child_kept:
					_keep(child, explore, keep)
					child_kept = True
				elif child_kept and not child2_kept:
					_keep(child2, explore, keep)

	unreachable = [n for n in net.nodes() if n not in keep]
	logger.debug("unreachable nodes: %s", sorted(n.name for n in unreachable))
	for node in unreachable:
		net.remove_node(node)
	return net

def get_pruned(net, interest, evidence):
	"""
	A pruned copy of `net` for computing the posterior of `interest` given
	`evidence` (an EvidenceCase): barren nodes, then unreachable nodes, removed.
	"""
	pruned = net.copy()
	evidence_variables = set(evidence.variables)
	remove_barren_nodes(pruned, interest, evidence_variables)
	remove_unreachable_nodes(pruned, interest, evidence_variables)
	return pruned
