"""
The network container: a graph of `Node`s, one per variable, joined by
directed (parent -> child) or undirected (sibling) `Link`s. Potentials live on
the node of their first variable; potentials without variables are kept as
network-level constants.
"""

import logging
import warnings
from enum import Enum

import networkx as nx

from .rv import Variable, VariableType, State
from .potential import PotentialRole, Combinator, TablePotential, ZERO_PROBABILITY
from .errors import NodeNotFound, WrongCriterion

logger = logging.getLogger(__name__)

DEFAULT_RELEVANCE = 5.0
DEFAULT_STATES = ("absent", "present")


class NodeType(Enum):
	CHANCE = "chance"
	DECISION = "decision"
	UTILITY = "utility"
	SV_SUM = "sv_sum"
	SV_PRODUCT = "sv_product"

	@property
	def combinator(self):
		if self is NodeType.SV_SUM:
			return Combinator.SUM
		if self is NodeType.SV_PRODUCT:
			return Combinator.PRODUCT
		return Combinator.NONE

	@property
	def is_utility(self):
		return self in (NodeType.UTILITY, NodeType.SV_SUM, NodeType.SV_PRODUCT)


class NetworkType(Enum):
	# (label, directed, deterministic_induction)
	BAYESIAN_NETWORK = ("bayesianNetwork", True, False)
	MARKOV_NETWORK = ("markovNetwork", False, False)
	INFLUENCE_DIAGRAM = ("influenceDiagram", True, False)
	MID = ("MID", True, True)
	DECISION_ANALYSIS_NETWORK = ("decisionAnalysisNetwork", True, False)

	def __init__(self, label, directed, deterministic_induction):
		self.label = label
		self.directed = directed
		self.deterministic_induction = deterministic_induction

	def __str__(self):
		return self.label


class Node:
	def __init__(self, net, variable, node_type=NodeType.CHANCE):
		self.net = net
		self._variable = variable
		self._node_type = node_type
		if node_type.is_utility and variable.variable_type != VariableType.NUMERIC:
			variable.variable_type = VariableType.NUMERIC

		self.potentials = []
		self.additional_properties = {}
		self.always_observed = False
		self.purpose = ""
		self.relevance = DEFAULT_RELEVANCE
		self.comment = ""

	@property
	def name(self):
		return self._variable.name

	@property
	def variable(self):
		return self._variable

	@variable.setter
	def variable(self, variable):
		depot = self.net._depot[self._node_type]
		depot.pop(self._variable, None)
		self._variable = variable
		depot[variable] = self

	@property
	def node_type(self):
		return self._node_type

	@node_type.setter
	def node_type(self, node_type):
		""" moves the node to another partition of the type index """
		self.net._depot[self._node_type].pop(self._variable, None)
		self._node_type = node_type
		self.net._depot[node_type][self._variable] = self
		if node_type.is_utility and self._variable.variable_type != VariableType.NUMERIC:
			self._variable.variable_type = VariableType.NUMERIC

	##################### neighbourhood #####################
	@property
	def parents(self):
		g = self.net.graph
		return [n for n in g.predecessors(self) if g.edges[n, self]['link'].directed]

	@property
	def children(self):
		g = self.net.graph
		return [n for n in g.successors(self) if g.edges[self, n]['link'].directed]

	@property
	def siblings(self):
		g = self.net.graph
		return [n for n in g.successors(self) if not g.edges[self, n]['link'].directed]

	@property
	def neighbors(self):
		return list(dict.fromkeys(self.parents + self.children + self.siblings))

	@property
	def num_children(self):
		return len(self.children)

	def is_parent(self, node) -> bool:
		""" whether `node` is a parent of this one """
		return node in self.parents

	def is_child(self, node) -> bool:
		return node in self.children

	def is_sibling(self, node) -> bool:
		return node in self.siblings

	###################### potentials ######################
	def set_potential(self, potential):
		self.potentials = [potential]

	def add_potential(self, potential):
		self.potentials.append(potential)

	def remove_potential(self, potential) -> bool:
		for i, p in enumerate(self.potentials):
			if p is potential:
				del self.potentials[i]
				return True
		return False

	####################### utility #######################
	@property
	def utility_parents(self):
		return [p for p in self.parents if p.node_type.is_utility]

	@property
	def is_super_value_node(self):
		if self._node_type in (NodeType.SV_SUM, NodeType.SV_PRODUCT):
			return True
		parents = self.parents
		return self._node_type == NodeType.UTILITY and len(parents) > 0 \
			and len(self.utility_parents) == len(parents)

	@property
	def combinator(self):
		if self._node_type.combinator is not Combinator.NONE:
			return self._node_type.combinator
		if self.potentials:
			return self.potentials[0].combinator
		return Combinator.NONE

	def only_numerical_parents(self) -> bool:
		types = [p.variable.variable_type for p in self.parents]
		return VariableType.NUMERIC in types \
			and all(t == VariableType.NUMERIC for t in types)

	def __repr__(self):
		return "Node %s <%s>" % (self.name, self._node_type.value)


class Link:
	"""
	An edge between two nodes. Directed links may carry a restriction table
	(which state pairs are compatible) and revealing conditions (the states,
	or intervals for numeric variables, of node1 that reveal node2).
	"""
	def __init__(self, node1, node2, directed=True):
		self.node1 = node1
		self.node2 = node2
		self.directed = directed
		self.restrictions_potential = None
		self.revealing_states = []
		self.revealing_intervals = []

	def contains(self, node) -> bool:
		return node is self.node1 or node is self.node2

	###################### restrictions ######################
	@property
	def has_restrictions(self):
		return self.restrictions_potential is not None

	def _restricted_states(self):
		""" indices of node1's states that are compatible with no state of node2 """
		values = self.restrictions_potential.values
		n = self.restrictions_potential.dimensions[0]
		return [i for i in range(n) if not any(values[i::n] == 1)]

	def has_total_restriction(self) -> bool:
		return self.has_restrictions and len(self._restricted_states()) > 0

	def states_restricting_totally(self):
		if not self.has_restrictions:
			return set()
		states = self.restrictions_potential.variables[0].states
		return {states[i] for i in self._restricted_states()}

	def initialize_restrictions_potential(self):
		self.restrictions_potential = TablePotential(
			[self.node1.variable, self.node2.variable], PotentialRole.LINK_RESTRICTION)
		self.restrictions_potential.values[:] = 1

	def reset_restrictions_potential(self):
		""" drops the restriction table when it no longer forbids anything """
		if self.has_restrictions and not (self.restrictions_potential.values == 0).any():
			self.restrictions_potential = None

	def set_compatibility_value(self, state1, state2, compatibility):
		if self.restrictions_potential is None:
			self.initialize_restrictions_potential()
		p = self.restrictions_potential
		indices = [p.variables[0].state_index(state1), p.variables[1].state_index(state2)]
		p.set_value(p.variables, indices, compatibility)

	def are_compatible(self, state1, state2) -> int:
		p = self.restrictions_potential
		if p is None:
			return 1
		indices = [p.variables[0].state_index(state1), p.variables[1].state_index(state2)]
		return int(p.get_value(p.variables, indices))

	################### revealing conditions ###################
	def has_revealing_conditions(self) -> bool:
		if self.node1.variable.variable_type == VariableType.NUMERIC:
			return len(self.revealing_intervals) > 0
		return len(self.revealing_states) > 0

	def add_revealing_state(self, state):
		self.revealing_states.append(state if isinstance(state, State) else State(state))

	def remove_revealing_state(self, state):
		self.revealing_states.remove(state if isinstance(state, State) else State(state))

	def add_revealing_interval(self, interval):
		self.revealing_intervals.append(interval)

	def remove_revealing_interval(self, interval):
		self.revealing_intervals.remove(interval)

	def __repr__(self):
		return "%s %s %s" % (self.node1.name, "-->" if self.directed else "---", self.node2.name)


####################################################
# The network
####################################################
class ProbNet:
	"""
	Probabilistic graphical model: Bayesian networks, Markov networks,
	influence diagrams, ...

	The graph is a `networkx.DiGraph` over `Node` objects, with the `Link` in
	the edge attribute 'link'. An undirected link is stored as two opposite
	edges sharing one `Link`.
	"""
	def __init__(self, network_type=NetworkType.BAYESIAN_NETWORK, name=None):
		self.network_type = network_type
		self.name = name
		self.graph = nx.DiGraph()
		self._depot = {t: {} for t in NodeType}  # NodeType => { Variable => Node }
		self.constant_potentials = []
		self.additional_properties = {}
		self.decision_criteria = []
		self.default_states = list(DEFAULT_STATES)

	######################### nodes #########################
	def add_node(self, variable, node_type=NodeType.CHANCE) -> Node:
		""" the node of `variable`; created with `node_type` if absent """
		node = self.get_node(variable)
		if node is None:
			node = Node(self, variable, node_type)
			self.graph.add_node(node)
			self._depot[node_type][variable] = node
		return node

	def remove_node(self, node):
		if isinstance(node, Variable):
			node = self._require(node)
		self.graph.remove_node(node)
		self._depot[node.node_type].pop(node.variable, None)

	def get_node(self, key):
		"""
		Looks up a node by its variable or by its variable's name.
		A missing name raises `NodeNotFound`; a missing variable gives None.
		"""
		if isinstance(key, str):
			for node in self.graph.nodes:
				if node.name == key:
					return node
			raise NodeNotFound("No node named \"%s\" in %s" % (key, self.name or "the network"))

		for depot in self._depot.values():
			node = depot.get(key, None)
			if node is not None:
				return node
		return None

	def _require(self, key) -> Node:
		if isinstance(key, Node):
			return key
		node = self.get_node(key)
		if node is None:
			raise NodeNotFound("%s is not a variable of %s" % (key.name, self.name or "the network"))
		return node

	def get_variable(self, name) -> Variable:
		return self.get_node(name).variable

	def contains_variable(self, variable) -> bool:
		return self.get_node(variable) is not None

	def contains_variable_named(self, name) -> bool:
		return any(node.name == name for node in self.graph.nodes)

	def nodes(self, node_type=None):
		if node_type is None:
			return list(self.graph.nodes)
		return list(self._depot[node_type].values())

	def variables(self, node_type=None):
		return [n.variable for n in self.nodes(node_type)]

	@property
	def num_nodes(self):
		return self.graph.number_of_nodes()

	######################### links #########################
	def add_link(self, a, b, directed=True) -> Link:
		""" `a` and `b` are nodes or variables; returns the (possibly existing) link """
		n1, n2 = self._require(a), self._require(b)
		existing = self.get_link(n1, n2, directed)
		if existing is not None:
			return existing
		if self.graph.has_edge(n1, n2):
			raise ValueError("%s and %s are already joined by another kind of link" % (n1.name, n2.name))

		link = Link(n1, n2, directed)
		self.graph.add_edge(n1, n2, link=link)
		if not directed:
			self.graph.add_edge(n2, n1, link=link)
		return link

	def get_link(self, a, b, directed=True):
		n1, n2 = self._require(a), self._require(b)
		data = self.graph.get_edge_data(n1, n2)
		if data is None or data['link'].directed != directed:
			return None
		return data['link']

	def remove_link(self, a, b, directed=True):
		n1, n2 = self._require(a), self._require(b)
		if self.get_link(n1, n2, directed) is None:
			return
		self.graph.remove_edge(n1, n2)
		if not directed:
			self.graph.remove_edge(n2, n1)

	def links(self):
		seen = {}
		for _, _, link in self.graph.edges(data='link'):
			seen.setdefault(id(link), link)
		return list(seen.values())

	def directed_graph(self):
		""" view of the graph restricted to directed links """
		g = self.graph
		return nx.subgraph_view(g, filter_edge=lambda u, v: g.edges[u, v]['link'].directed)

	def exists_path(self, a, b, directed=True) -> bool:
		n1, n2 = self._require(a), self._require(b)
		if n1 is n2:
			return True
		if directed:
			return nx.has_path(self.directed_graph(), n1, n2)
		return nx.has_path(self.graph.to_undirected(as_view=True), n1, n2)

	####################### potentials #######################
	def add_potential(self, potential, source_net=None):
		"""
		Attaches `potential` to the node of its first variable, creating nodes
		for variables not yet in the network (chance nodes, or the type the
		variable has in `source_net`), and links the variables: parent links
		into the first one in directed networks, sibling links between every
		pair in undirected ones. Returns that node, or None for a constant.
		"""
		if potential.criterion is not None and self.decision_criteria \
				and potential.criterion not in self.decision_criteria:
			raise WrongCriterion("%s is not a decision criterion of %s"
				% (potential.criterion, self.name or "the network"))

		for v in potential.variables:
			if self.get_node(v) is None:
				node_type = NodeType.CHANCE
				if source_net is not None:
					source_node = source_net.get_node(v)
					if source_node is not None:
						node_type = source_node.node_type
				self.add_node(v, node_type)

		if not potential.variables:
			self.constant_potentials.append(potential)
			return None

		nodes = [self.get_node(v) for v in potential.variables]
		head = nodes[0]
		head.add_potential(potential)

		if self.network_type.directed:
			for parent in nodes[1:]:
				if not head.is_parent(parent):
					self.add_link(parent, head, directed=True)
		else:
			for i, ni in enumerate(nodes):
				for nj in nodes[i+1:]:
					if not ni.is_sibling(nj):
						self.add_link(ni, nj, directed=False)
		return head

	def remove_potential(self, potential):
		""" removes the first reference to `potential` (by identity) """
		candidates = [self.get_node(v) for v in potential.variables] if potential.variables \
			else self.nodes()
		for node in candidates:
			if node is not None and node.remove_potential(potential):
				return
		for i, p in enumerate(self.constant_potentials):
			if p is potential:
				del self.constant_potentials[i]
				return

	def get_potentials(self):
		potentials = [p for node in self.graph.nodes for p in node.potentials]
		return potentials + list(self.constant_potentials)

	def get_potentials_of(self, variable):
		""" potentials containing `variable`, found on its node, its neighbours
		and the other parents of its children """
		node = self.get_node(variable)
		if node is None:
			return []
		near = dict.fromkeys(node.neighbors)
		near[node] = None
		for child in node.children:
			near.update(dict.fromkeys(child.parents))
		return [p for n in near for p in n.potentials if p.contains(variable)]

	def get_potentials_by_role(self, role):
		return [p for p in self.get_potentials() if p.role == role]

	def get_potentials_by_type(self, node_type):
		return [p for n in self.nodes(node_type) for p in n.potentials]

	def get_sorted_potentials(self):
		""" node potentials in topological order of their nodes, then the constants """
		from .alg.structure import sort_topologically
		order = sort_topologically(self) if self.network_type.directed else self.nodes()
		return [p for n in order for p in n.potentials] + list(self.constant_potentials)

	@property
	def num_potentials(self):
		return sum(len(n.potentials) for n in self.graph.nodes) + len(self.constant_potentials)

	def table_project_potentials(self, evidence):
		"""
		Projects every potential, in topological order, on `evidence`. A
		probability (conditional, joint or policy) projection with no variables
		left and value 0 is returned as the shared `ZERO_PROBABILITY` table.
		Other roles keep their own zero table.
		"""
		projected = []
		for potential in self.get_sorted_potentials():
			for table in potential.project(evidence, None, projected):
				is_probability = table.role.is_conditional \
					or table.role == PotentialRole.JOINT_PROBABILITY
				if table is not ZERO_PROBABILITY and is_probability and table.num_variables == 0 \
						and table.criterion is None and table.first_value == 0:
					logger.debug("%s has zero probability under %s", potential, evidence)
					table = ZERO_PROBABILITY
				projected.append(table)
		return projected

	######################### copies #########################
	def copy(self, share_properties=False) -> 'ProbNet':
		"""
		A new network over the same variables and potentials, with new nodes
		and links.

		Parameters
		----
		> share_properties: if True, every copied node gets this network's own
			`additional_properties` dict (one map, aliased by all of them);
			by default each node's map is cloned.
		"""
		net = ProbNet(self.network_type, self.name)
		net.additional_properties = dict(self.additional_properties)
		net.decision_criteria = list(self.decision_criteria)
		net.default_states = list(self.default_states)

		for node in self.graph.nodes:
			new = net.add_node(node.variable, node.node_type)
			new.potentials = list(node.potentials)
			new.purpose = node.purpose
			new.relevance = node.relevance
			new.comment = node.comment
			new.always_observed = node.always_observed
			new.additional_properties = self.additional_properties if share_properties \
				else dict(node.additional_properties)

		for link in self.links():
			new_link = net.add_link(link.node1.variable, link.node2.variable, link.directed)
			new_link.restrictions_potential = link.restrictions_potential
			new_link.revealing_states = list(link.revealing_states)
			new_link.revealing_intervals = list(link.revealing_intervals)

		net.constant_potentials = list(self.constant_potentials)
		return net

	def deep_copy(self) -> 'ProbNet':
		""" a fully independent network: variables cloned, potentials deep-copied onto them """
		net = ProbNet(self.network_type, self.name)
		net.additional_properties = dict(self.additional_properties)
		net.decision_criteria = list(self.decision_criteria)
		net.default_states = list(self.default_states)

		for node in self.graph.nodes:
			new = net.add_node(node.variable.copy(), node.node_type)
			new.purpose = node.purpose
			new.relevance = node.relevance
			new.comment = node.comment
			new.always_observed = node.always_observed
			new.additional_properties = dict(node.additional_properties)

		for node in self.graph.nodes:
			net.get_node(node.name).potentials = [p.deep_copy(net) for p in node.potentials]

		for link in self.links():
			new_link = net.add_link(net.get_node(link.node1.name), net.get_node(link.node2.name),
				link.directed)
			if link.restrictions_potential is not None:
				new_link.restrictions_potential = link.restrictions_potential.deep_copy(net)
			new_link.revealing_states = list(link.revealing_states)
			new_link.revealing_intervals = [i.copy() for i in link.revealing_intervals]

		net.constant_potentials = [p.deep_copy(net) for p in self.constant_potentials]
		return net

	####################### conversions #######################
	def to_pgmpy(self):
		"""
		A pgmpy `DiscreteBayesianNetwork` (directed networks) or `MarkovNetwork`
		(undirected ones). Only chance nodes and their tables are carried over.
		"""
		from pgmpy.models import DiscreteBayesianNetwork, MarkovNetwork

		chance = self.nodes(NodeType.CHANCE)
		if len(chance) < self.num_nodes:
			warnings.warn("only chance nodes are converted; %d others dropped" % (self.num_nodes - len(chance)))

		if not self.network_type.directed:
			mn = MarkovNetwork()
			mn.add_nodes_from([n.name for n in chance])
			mn.add_edges_from([(l.node1.name, l.node2.name) for l in self.links()
				if l.node1 in chance and l.node2 in chance])
			for n in chance:
				for p in n.potentials:
					for table in p.project():
						mn.add_factors(table.to_pgmpy())
			return mn

		names = {n.name for n in chance}
		bn = DiscreteBayesianNetwork()
		bn.add_nodes_from([n.name for n in chance])
		bn.add_edges_from([(p.name, n.name) for n in chance for p in n.parents if p in chance])
		for n in chance:
			for p in n.potentials:
				if p.role != PotentialRole.CONDITIONAL_PROBABILITY:
					continue
				if any(v.name not in names for v in p.variables):
					warnings.warn("%s is conditioned on non-chance variables; left out" % p._head())
					continue
				bn.add_cpds(p.project()[0].to_pgmpy())
		return bn

	@staticmethod
	def from_pgmpy(bn) -> 'ProbNet':
		""" a Bayesian network built from a pgmpy model's TabularCPDs """
		net = ProbNet(NetworkType.BAYESIAN_NETWORK)
		varis = {}
		for cpd in bn.get_cpds():
			for vname in cpd.variables:
				if vname not in varis:
					varis[vname] = Variable(vname, [str(s) for s in cpd.state_names[vname]])

		for cpd in bn.get_cpds():
			vs = [varis[n] for n in cpd.variables]
			dims = [v.num_states for v in vs]
			net.add_potential(TablePotential(vs, PotentialRole.CONDITIONAL_PROBABILITY,
				values=cpd.get_values().reshape(dims)))
		return net

	def __repr__(self):
		return "<ProbNet %s%s: %d nodes, %d links, %d potentials>" % (
			self.network_type, " " + self.name if self.name else "",
			self.num_nodes, len(self.links()), self.num_potentials)
