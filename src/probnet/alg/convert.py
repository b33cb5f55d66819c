"""
Turning numeric chance variables into finite-states ones, so that a network
whose numeric nodes are deterministic functions of their (finite) parents can
be handled with tables only.
"""

import logging

from ..rv import Variable, VariableType
from ..evidence import EvidenceCase, Finding
from ..potential import TablePotential
from ..network import NodeType
from ..errors import NonProjectable
from ..utils import format_number, odometer
from .structure import sort_topologically

logger = logging.getLogger(__name__)


def _parent_finding(parent_variable, state_index, originals):
	""" the finding that puts `parent_variable` in `state_index`; a converted
	parent is observed through its original numeric variable """
	if parent_variable in originals:
		value = float(parent_variable.state_name(state_index))
		return Finding(originals[parent_variable], numerical_value=value)
	return Finding(parent_variable, state_index)

def convert_numerical_variables_to_finite_states(net, evidence=None):
	"""
	Returns a copy of `net` in which every numeric chance node is replaced by a
	finite-states one, in topological order:

	  - an observed numeric node becomes a one-state variable (the observed
		value) with a delta table;
	  - otherwise its potential is projected on every configuration of its
		parents; the distinct (rounded) results become the states, sorted,
		and the new table is the deterministic CPT selecting the right one.

	Potentials of other nodes mentioning a converted variable are copied onto
	the new variable. `evidence` is rewritten in place to refer to the new
	variables.

	Parameters
	----
	> net: the network; it is not modified.
	> evidence: an EvidenceCase, or None.
	"""
	evidence = evidence if evidence is not None else EvidenceCase()
	converted_net = net.copy()
	originals = {}  # new variable => numeric variable
	converted = {}  # numeric variable => new variable

	for node in sort_topologically(converted_net):
		old = node.variable
		if old.variable_type == VariableType.NUMERIC and node.node_type == NodeType.CHANCE:
			if not node.potentials:
				raise NonProjectable("numeric node %s has no potential to convert" % old.name)
			old_potential = node.potentials[0]

			if old in evidence:
				value = old.round(evidence.get_numerical_value(old))
				new = Variable(old.name, [format_number(value)], precision=old.precision)
				node.variable = new
				node.set_potential(TablePotential([new], old_potential.role, values=[1.]))
			else:
				parents = node.parents
				parent_vars = [p.variable for p in parents]
				configuration = evidence.copy()

				projected_values = []
				for coords in odometer([v.num_states for v in parent_vars]):
					for v, s in zip(parent_vars, coords):
						configuration.change_finding(_parent_finding(v, s, originals))
					scalar = old_potential.project(configuration)[0].first_value
					projected_values.append(old.round(scalar))

				new_states = sorted(set(projected_values))
				state_indices = {x: i for i, x in enumerate(new_states)}
				new = Variable(old.name, [format_number(x) for x in new_states], precision=old.precision)
				node.variable = new

				n = new.num_states
				table = TablePotential([new] + [p.variable for p in parents], old_potential.role)
				table.values[:] = 0
				for i, x in enumerate(projected_values):
					table.values[i * n + state_indices[x]] = 1
				node.set_potential(table)

			originals[new] = old
			converted[old] = new
			logger.debug("converted %s to states %s", old.name, new.state_names)

		elif any(p.contains(v) for p in node.potentials for v in converted):
			# the node keeps its type but must refer to the new variables
			replaced = []
			for potential in node.potentials:
				if any(potential.contains(v) for v in converted):
					potential = potential.copy()
					for v in list(potential.variables):
						if v in converted:
							potential.replace_variable(v, converted[v])
				replaced.append(potential)
			node.potentials = replaced

	for finding in evidence.findings:
		old = finding.variable
		if old in converted:
			evidence.remove_finding(old)
			new = converted[old]
			value = new.round(finding.numerical_value)
			evidence.add_finding(Finding(new, new.state_index(format_number(value))))

	return converted_net
