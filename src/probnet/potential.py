"""
Factors ("potentials") over network variables.

Only two kinds exist: `TablePotential`, a dense table laid out in mixed radix
(the first variable varies fastest), and `OpaquePotential`, a stand-in for
any other family, which can take part in the graph but only yields a table
through an explicitly supplied projector.
"""

import copy
import logging
import warnings
from abc import ABC, abstractmethod
from enum import Enum
from typing import List

import numpy as np
import pandas as pd

from .rv import VariableType
from .errors import NonProjectable, MalformedConfiguration
from .evidence import Finding, EvidenceCase
from .utils import strides, table_size, format_number

logger = logging.getLogger(__name__)

# largest number of float64 cells numpy can address
MAX_TABLE_SIZE = np.iinfo(np.intp).max // np.dtype(np.float64).itemsize


class PotentialRole(Enum):
	CONDITIONAL_PROBABILITY = "conditionalProbability"
	JOINT_PROBABILITY = "joinProbability"
	POLICY = "policy"
	LINK_RESTRICTION = "linkRestriction"
	UNSPECIFIED = "unspecified"

	@property
	def is_conditional(self):
		return self in (PotentialRole.CONDITIONAL_PROBABILITY, PotentialRole.POLICY)


class Combinator(Enum):
	""" how a super-value node merges the values of its utility parents """
	SUM = "sum"
	PRODUCT = "product"
	NONE = "none"


class Potential(ABC):
	def __init__(self, variables, role=PotentialRole.UNSPECIFIED, criterion=None,
			combinator=Combinator.NONE, comment=""):
		self.variables = list(variables)
		self.role = role
		self.criterion = criterion
		self.combinator = combinator
		self.comment = comment
		self.properties = {}

	@property
	def conditioned_variable(self):
		""" variables[0] for conditional probabilities and policies, else None """
		if self.role.is_conditional and self.variables:
			return self.variables[0]
		return None

	@property
	def num_variables(self):
		return len(self.variables)

	@property
	def is_additive(self):
		""" utility potentials (those attached to a decision criterion) are summed, not multiplied """
		return self.criterion is not None

	@property
	def time_slice(self):
		slices = [v.time_slice for v in self.variables if v.is_temporal]
		return max(slices) if slices else None

	def contains(self, variable) -> bool:
		return any(v is variable for v in self.variables)

	def index_of(self, variable) -> int:
		for i, v in enumerate(self.variables):
			if v is variable:
				return i
		return -1

	def replace_variable(self, old, new):
		i = self.index_of(old)
		if i == -1:
			raise ValueError("%s is not a variable of %s" % (old.name, self))
		self.variables[i] = new

	def _resolve_variables(self, target_net):
		# NodeNotFound propagates: a deep copy never substitutes a missing variable
		return [target_net.get_variable(v.name) for v in self.variables]

	def _copy_attributes_to(self, other):
		other.criterion = self.criterion
		other.combinator = self.combinator
		other.comment = self.comment
		other.properties = dict(self.properties)
		return other

	def shifted_variables(self, net, time_difference):
		return [net.get_variable(v.shifted_name(time_difference)) if v.is_temporal else v
			for v in self.variables]

	def shift(self, net, time_difference) -> 'Potential':
		""" a copy over the variables of `net` that are `time_difference` slices later """
		shifted = self.copy()
		shifted.variables = self.shifted_variables(net, time_difference)
		return shifted

	@abstractmethod
	def project(self, evidence=None, options=None, already_projected=None) -> List['TablePotential']:
		""" Reduce to table(s) under `evidence`; raises NonProjectable when the
		potential family cannot do that. """

	def induced_findings(self, evidence) -> List[Finding]:
		return []

	@abstractmethod
	def copy(self) -> 'Potential':
		pass

	@abstractmethod
	def deep_copy(self, target_net) -> 'Potential':
		""" a copy whose variables are those of `target_net` with the same names """

	def create_directed_links(self, net):
		""" parent links from every other variable's node to the conditioned one """
		child = self.conditioned_variable
		if child is None:
			return
		for v in self.variables[1:]:
			net.add_link(v, child, directed=True)

	def __eq__(self, other):
		return type(self) is type(other) and self.role == other.role \
			and len(self.variables) == len(other.variables) \
			and all(a is b for a, b in zip(self.variables, other.variables))

	__hash__ = None

	def _head(self):
		names = [v.name for v in self.variables]
		letter = "U" if self.is_additive else "P" if self.role != PotentialRole.UNSPECIFIED else "f"
		if self.role.is_conditional and names:
			return "%s(%s%s)" % (letter, names[0], (" | " + ", ".join(names[1:])) if len(names) > 1 else "")
		return "%s(%s)" % (letter, ", ".join(names))

	def __str__(self):
		return self._head()


####################################################
# Dense tables
####################################################
class TablePotential(Potential):
	"""
	A dense table over finite-states / discretized variables.

	values[position] with position = sum_i offsets[i] * coords[i], where
	offsets[0] = 1 and offsets[i] = offsets[i-1] * dimensions[i-1].

	Parameters
	----
	> values: flat array in the layout above (a multi-dimensional array is
		read with table[i0, i1, ...] indexing). Default: `set_uniform()`.
	> uncertain_values: optional per-cell objects that shadow `values` and
		follow it through every projection.
	"""
	def __init__(self, variables, role=PotentialRole.UNSPECIFIED, values=None,
			criterion=None, combinator=Combinator.NONE, comment="", uncertain_values=None):
		super().__init__(variables, role, criterion, combinator, comment)

		# a utility table may be headed by its (numeric, one-state) utility variable
		numeric = [v.name for i, v in enumerate(self.variables)
			if v.variable_type == VariableType.NUMERIC and not (i == 0 and criterion is not None)]
		if numeric:
			raise NonProjectable("numeric variables cannot index a table: " + ", ".join(numeric))

		self.dimensions = [v.num_states for v in self.variables]
		self.offsets = strides(self.dimensions)
		self.table_size = table_size(self.dimensions)
		if self.table_size > MAX_TABLE_SIZE:
			raise MemoryError("a table over %s would need %d cells"
				% (", ".join(v.name for v in self.variables), self.table_size))

		if values is None:
			self.values = np.zeros(self.table_size)
			self.set_uniform()
		else:
			arr = np.asarray(values, dtype=float)
			if arr.ndim > 1:
				arr = arr.reshape(-1, order='F')
			if arr.size != self.table_size:
				raise MalformedConfiguration("%d values given for a table of size %d"
					% (arr.size, self.table_size))
			self.values = arr.copy()

		self.uncertain_values = uncertain_values
		if uncertain_values is not None and len(uncertain_values) != self.table_size:
			raise MalformedConfiguration("uncertain values must shadow the table one to one")

	@classmethod
	def from_function(cls, variables, fn, role=PotentialRole.UNSPECIFIED, **kwargs):
		""" builds the table by calling `fn(*state_indices)` on every cell """
		p = cls(variables, role, **kwargs)
		for pos in range(p.table_size):
			p.values[pos] = fn(*p.configuration(pos))
		return p

	def set_uniform(self):
		if not self.variables:
			self.values[:] = 1. if self.role == PotentialRole.JOINT_PROBABILITY else 0.
		elif self.role.is_conditional:
			self.values[:] = 1. / self.dimensions[0]
		elif self.role == PotentialRole.JOINT_PROBABILITY:
			self.values[:] = 1. / self.table_size
		elif self.role == PotentialRole.LINK_RESTRICTION:
			self.values[:] = 1.
		else:
			self.values[:] = 0.

	@property
	def is_uncertain(self):
		return self.uncertain_values is not None

	@property
	def first_value(self):
		return self.values[0]

	###################### indexing ######################
	def position(self, coords) -> int:
		assert len(coords) == len(self.offsets), "need one coordinate per variable"
		return sum(o * c for o, c in zip(self.offsets, coords))

	def configuration(self, position) -> List[int]:
		""" inverse of `position` """
		coords = [0] * len(self.offsets)
		for i in reversed(range(len(self.offsets))):
			coords[i] = position // self.offsets[i]
			position -= coords[i] * self.offsets[i]
		return coords

	def position_for(self, evidence) -> int:
		""" position of the cell selected by `evidence`; variables without a
		finding (typically the conditioned one) take state 0 """
		return sum(o * evidence.get_state(v) for o, v in zip(self.offsets, self.variables)
			if v in evidence)

	def get_value_for(self, evidence):
		return self.values[self.position_for(evidence)]

	def has_uncertainty(self, coords) -> bool:
		return self.uncertain_values is not None \
			and self.uncertain_values[self.position(coords)] is not None

	def get_value(self, variables, indices):
		""" value at the cell where variables[k] takes state indices[k];
		variables not in this table are ignored, missing ones take state 0 """
		pos = 0
		for v, s in zip(variables, indices):
			i = self.index_of(v)
			if i != -1:
				pos += self.offsets[i] * s
		return self.values[pos]

	def set_value(self, variables, indices, value):
		pos = 0
		for v, s in zip(variables, indices):
			i = self.index_of(v)
			if i != -1:
				pos += self.offsets[i] * s
		self.values[pos] = value

	def get_probability(self, assignment):
		""" `assignment` is an EvidenceCase or a dict variable -> state index """
		if isinstance(assignment, dict):
			return self.values[sum(o * assignment[v] for o, v in zip(self.offsets, self.variables))]
		return self.values[sum(o * assignment.get_state(v) for o, v in zip(self.offsets, self.variables))]

	def accumulated_offsets(self, other_variables) -> List[int]:
		"""
		For co-iterating this table (in odometer order) together with a position
		in a table over `other_variables`: when digit j of this table is the
		lowest one to move (all lower digits wrapping to 0), the other position
		changes by acc[j].
		"""
		acc = [0] * len(self.variables)
		if not other_variables or not self.variables:
			return acc

		other_offsets = strides([v.num_states for v in other_variables])

		def other_offset(v):
			for k, w in enumerate(other_variables):
				if w is v:
					return other_offsets[k]
			return 0

		offset_xy = [other_offset(v) for v in self.variables]
		acc[0] = offset_xy[0]
		for j in range(1, len(self.variables)):
			acc[j] = acc[j-1] + offset_xy[j] - self.dimensions[j-1] * offset_xy[j-1]
		return acc

	def projected_accumulated_offsets(self, other_variables, original_variables):
		""" accumulated offsets against `original_variables`, restricted to the
		positions of `other_variables` """
		if other_variables is original_variables:
			return self.accumulated_offsets(other_variables)
		original = self.accumulated_offsets(original_variables)
		return [original[i] for i, v in enumerate(original_variables)
			if any(v is w for w in other_variables)]

	@staticmethod
	def next_position(position, coords, dimensions, acc_offsets):
		""" advances the odometer `coords` in place and returns the moved position,
		or -1 once every configuration has been visited """
		for j in range(len(coords)):
			coords[j] += 1
			if coords[j] < dimensions[j]:
				return position + acc_offsets[j]
			coords[j] = 0
		return -1

	###################### projection ######################
	def project(self, evidence=None, options=None, already_projected=None) -> List['TablePotential']:
		return [self.table_project(evidence)]

	def table_project(self, evidence) -> 'TablePotential':
		"""
		Fixes the evidence variables and drops them. The remaining variables keep
		their relative order. Without any evidence variable, returns `self`.
		"""
		if evidence is None:
			return self
		unobserved = [v for v in self.variables if v not in evidence]
		if len(unobserved) == len(self.variables):
			return self

		projected = TablePotential(unobserved, self.role, criterion=self.criterion,
			combinator=self.combinator)
		uncertain = [None] * projected.table_size if self.is_uncertain else None

		base = 0
		for o, v in zip(self.offsets, self.variables):
			if v in evidence:
				base += evidence.get_state(v) * o

		# walk the projected table in order, moving `src` through this one
		acc = projected.accumulated_offsets(self.variables)
		coords = [0] * len(unobserved)
		src = base
		for pos in range(projected.table_size):
			projected.values[pos] = self.values[src]
			if uncertain is not None:
				uncertain[pos] = self.uncertain_values[src]
			src = TablePotential.next_position(src, coords, projected.dimensions, acc)

		if uncertain is not None and any(u is not None for u in uncertain):
			projected.uncertain_values = uncertain
		return projected

	def induced_findings(self, evidence) -> List[Finding]:
		"""
		A CPT (or policy) whose parents are all observed, and whose remaining
		column has a single non-zero cell, implies the state of its child.
		"""
		if not self.role.is_conditional or not self.variables:
			return []
		if any(v not in evidence for v in self.variables[1:]):
			return []
		if self.variables[0] in evidence:
			return []

		column = self.table_project(evidence)
		nonzero = np.flatnonzero(column.values)
		if column.num_variables == 1 and len(nonzero) == 1:
			return [Finding(column.variables[0], int(nonzero[0]))]
		return []

	###################### reshaping ######################
	def remove_variable(self, variable) -> 'TablePotential':
		""" the slice where `variable` takes its first state """
		if not self.contains(variable):
			return self
		return self.table_project(EvidenceCase([Finding(variable, 0)]))

	def add_variable(self, variable) -> 'TablePotential':
		""" a new table with `variable` appended last; the values repeat for each of its states """
		return TablePotential(self.variables + [variable], self.role,
			values=np.tile(self.values, variable.num_states),
			criterion=self.criterion, combinator=self.combinator)

	def replace_variable(self, old, new):
		if old.num_states != new.num_states:
			raise MalformedConfiguration("cannot replace %s (%d states) by %s (%d states)"
				% (old.name, old.num_states, new.name, new.num_states))
		super().replace_variable(old, new)

	def scale(self, factor):
		self.values *= factor

	def sample_conditioned_variable(self, rng, sampled_parents) -> int:
		""" draws a state of variables[0] given the parents' states (dict variable -> index) """
		base = sum(self.offsets[i] * sampled_parents[v] for i, v in enumerate(self.variables) if i > 0)
		r = rng.random()
		n = self.dimensions[0]
		acc = self.values[base]
		k = 0
		while r > acc and k < n - 1:
			k += 1
			acc += self.values[base + k]
		return k

	###################### copies ######################
	def copy(self) -> 'TablePotential':
		""" same variables; values cloned, uncertain values shared """
		duplicate = TablePotential(self.variables, self.role, values=self.values, criterion=self.criterion)
		self._copy_attributes_to(duplicate)
		duplicate.uncertain_values = self.uncertain_values
		return duplicate

	def deep_copy(self, target_net) -> 'TablePotential':
		duplicate = TablePotential(self._resolve_variables(target_net), self.role, values=self.values,
			criterion=self.criterion)
		self._copy_attributes_to(duplicate)
		if self.uncertain_values is not None:
			duplicate.uncertain_values = [copy.copy(u) for u in self.uncertain_values]
		return duplicate

	def equals(self, other) -> bool:
		return Potential.__eq__(self, other) and np.array_equal(self.values, other.values)

	def __eq__(self, other):
		return self.equals(other)

	__hash__ = None

	###################### conversions ######################
	def _column_matrix(self):
		""" rows: states of variables[0]; columns: configurations of the other
		variables, the last one varying fastest """
		table = self.values.reshape(self.dimensions, order='F')
		return table.reshape(self.dimensions[0], -1)

	def to_dataframe(self) -> pd.DataFrame:
		if not self.variables:
			return pd.DataFrame([[self.values[0]]], index=['⋆'], columns=['⋆'])

		head, rest = self.variables[0], self.variables[1:]
		if rest:
			index = pd.MultiIndex.from_product([v.state_names for v in rest],
				names=[v.name for v in rest])
		else:
			index = pd.Index(['⋆'])
		df = pd.DataFrame(self._column_matrix().T, index=index, columns=head.state_names)
		df.columns.name = head.name
		return df

	def to_pgmpy(self):
		from pgmpy.factors.discrete import TabularCPD, DiscreteFactor

		names = [v.name for v in self.variables]
		state_names = {v.name: v.state_names for v in self.variables}

		if self.role.is_conditional and self.variables:
			cols = self._column_matrix()
			amt = np.abs(cols.sum(axis=0) - 1).max()
			if amt > 1E-8:
				warnings.warn("%.4f-Unnormalized CPT" % amt)
			return TabularCPD(names[0], self.dimensions[0], cols,
				evidence=names[1:] or None, evidence_card=self.dimensions[1:] or None,
				state_names=state_names)

		return DiscreteFactor(names, self.dimensions,
			self.values.reshape(self.dimensions, order='F'), state_names=state_names)

	def __str__(self):
		vals = ", ".join(format_number(round(x, 3)) for x in self.values[:20])
		if self.table_size > 20:
			vals += ", ..."
		return "%s = {%s}" % (self._head(), vals)

	def __repr__(self):
		return "<TablePotential %s>" % self._head()



####################################################
# Everything else
####################################################
class OpaquePotential(Potential):
	"""
	A potential of a family this package does not model (regression, Gaussian,
	trees, ...). It occupies its place in the network; `project` delegates to
	`projector(potential, evidence)` if one was given.
	"""
	def __init__(self, variables, role=PotentialRole.UNSPECIFIED, name="opaque",
			payload=None, projector=None, **kwargs):
		super().__init__(variables, role, **kwargs)
		self.name = name
		self.payload = payload
		self.projector = projector

	def project(self, evidence=None, options=None, already_projected=None) -> List[TablePotential]:
		if self.projector is None:
			raise NonProjectable("%s potential %s cannot be turned into a table" % (self.name, self._head()))
		return list(self.projector(self, evidence))

	def copy(self) -> 'OpaquePotential':
		duplicate = OpaquePotential(self.variables, self.role, self.name, self.payload, self.projector)
		return self._copy_attributes_to(duplicate)

	def deep_copy(self, target_net) -> 'OpaquePotential':
		duplicate = OpaquePotential(self._resolve_variables(target_net), self.role,
			self.name, self.payload, self.projector)
		return self._copy_attributes_to(duplicate)

	def __repr__(self):
		return "<OpaquePotential %s %s>" % (self.name, self._head())


# Shared constant "this has probability zero". Read-only: never mutate it, copy it.
ZERO_PROBABILITY = TablePotential([], PotentialRole.CONDITIONAL_PROBABILITY, values=[0.])
ZERO_PROBABILITY.values.flags.writeable = False
