import re
import math
from enum import Enum

from .errors import InvalidState, MalformedConfiguration
from .utils import round_half_up, format_number

DEFAULT_PRECISION = 0.01

_TEMPORAL_NAME = re.compile(r"^(?P<base>.*) \[(?P<slice>-?\d+)\]$")


class VariableType(Enum):
    FINITE_STATES = "finiteStates"
    NUMERIC = "numeric"
    DISCRETIZED = "discretized"


class State:
    def __init__(self, name):
        self.name = str(name)

    def __eq__(self, other):
        return isinstance(other, State) and other.name == self.name

    def __hash__(self):
        return hash(self.name)

    def __repr__(self):
        return "State(%r)" % self.name

    def __str__(self):
        return self.name


class PartitionedInterval:
    """
    A real interval cut into consecutive subintervals.

    `limits` are the breakpoints (non-decreasing), and `belongs_to_left_side[i]`
    says whether the point limits[i] belongs to the subinterval on its left.
    So for the partition  [0, 1) [1, 5]  we have
        limits = [0, 1, 5],  belongs_to_left_side = [False, False, True].
    """
    def __init__(self, limits, belongs_to_left_side):
        limits = [float(l) for l in limits]
        belongs = [bool(b) for b in belongs_to_left_side]
        if len(limits) != len(belongs):
            raise MalformedConfiguration("%d limits but %d belongs-to-left flags"
                % (len(limits), len(belongs)))
        if len(limits) < 2:
            raise MalformedConfiguration("A partitioned interval needs at least two limits")
        if any(a > b for a, b in zip(limits, limits[1:])):
            raise MalformedConfiguration("limits must be non-decreasing: " + repr(limits))

        self.limits = limits
        self.belongs_to_left_side = belongs

    @classmethod
    def from_bounds(cls, left_closed: bool, minimum: float, maximum: float,
            right_closed: bool) -> 'PartitionedInterval':
        return cls([minimum, maximum], [not left_closed, right_closed])

    @classmethod
    def default(cls, num_states, precision=DEFAULT_PRECISION):
        """ (-inf, 0], (0, p], ..., ((n-2)p, inf) : one subinterval per state """
        limits = [-math.inf] + [i * precision for i in range(num_states - 1)] + [math.inf]
        belongs = [True] + [False] * num_states
        return cls(limits, belongs)

    @property
    def num_subintervals(self):
        return len(self.limits) - 1

    @property
    def min(self):
        return self.limits[0]

    @property
    def max(self):
        return self.limits[-1]

    @property
    def is_left_closed(self):
        return not self.belongs_to_left_side[0]

    @property
    def is_right_closed(self):
        return self.belongs_to_left_side[-1]

    def _in_subinterval(self, i, x):
        return (self.limits[i] < x < self.limits[i+1]) \
            or (x == self.limits[i] and not self.belongs_to_left_side[i]) \
            or (x == self.limits[i+1] and self.belongs_to_left_side[i+1])

    def contains(self, x) -> bool:
        return (self.limits[0] < x < self.limits[-1]) \
            or (x == self.limits[0] and not self.belongs_to_left_side[0]) \
            or (x == self.limits[-1] and self.belongs_to_left_side[-1])

    def __contains__(self, x):
        return self.contains(x)

    def index_of_subinterval(self, x) -> int:
        """ index of the subinterval containing `x`, or -1 """
        for i in range(self.num_subintervals):
            if self._in_subinterval(i, x):
                return i
        return -1

    def midpoint(self, i):
        return (self.limits[i] + self.limits[i+1]) / 2

    def remove_subinterval(self, index):
        # drops the upper limit of subinterval `index`, merging it with its right neighbour
        if not 0 <= index < self.num_subintervals:
            raise IndexError("no subinterval %d" % index)
        if self.num_subintervals == 1:
            raise MalformedConfiguration("cannot remove the only subinterval")
        del self.limits[index+1]
        del self.belongs_to_left_side[index+1]

    def change_limit(self, index, new_limit, belongs_to_left_side):
        self.limits[index] = float(new_limit)
        self.belongs_to_left_side[index] = bool(belongs_to_left_side)

    def copy(self) -> 'PartitionedInterval':
        return PartitionedInterval(self.limits, self.belongs_to_left_side)

    def __eq__(self, other):
        return isinstance(other, PartitionedInterval) \
            and self.limits == other.limits \
            and self.belongs_to_left_side == other.belongs_to_left_side

    __hash__ = None

    def subinterval_str(self, i):
        return "%s%s, %s%s" % (
            "(" if self.belongs_to_left_side[i] else "[",
            format_number(self.limits[i]), format_number(self.limits[i+1]),
            "]" if self.belongs_to_left_side[i+1] else ")")

    def __str__(self):
        return ' '.join(self.subinterval_str(i) for i in range(self.num_subintervals))

    def __repr__(self):
        return "PartitionedInterval(%s)" % str(self)


class Variable:
    """
    A named quantity in a network. Finite-states and discretized variables
    carry an ordered list of `State`s; numeric and discretized variables
    carry a `PartitionedInterval` domain.

    Variables are compared by identity: they are used as dictionary keys all
    over the network, while their names (time slices) and states can change.

    Temporal variables encode their slice in the name, "X [3]".
    """
    def __init__(self, name, states=(), variable_type=VariableType.FINITE_STATES,
            interval=None, precision=DEFAULT_PRECISION):
        self.states = [s if isinstance(s, State) else State(s) for s in states]
        names = [s.name for s in self.states]
        if len(set(names)) != len(names):
            raise MalformedConfiguration("duplicate state names in %s: %r" % (name, names))

        self._variable_type = variable_type
        self.interval = interval
        self.precision = precision
        self.additional_properties = {}
        self.decision_criterion = None
        self.name = name

    ################## alternate constructors ###################
    @classmethod
    def with_num_states(cls, name : str, n : int) -> 'Variable':
        return cls(name, [str(i) for i in range(n)])

    @classmethod
    def binary(cls, name : str, states=("absent", "present")) -> 'Variable':
        return cls(name, states)

    @classmethod
    def numeric(cls, name : str, left_closed=False, minimum=-math.inf, maximum=math.inf,
            right_closed=False, precision=DEFAULT_PRECISION) -> 'Variable':
        interval = PartitionedInterval.from_bounds(left_closed, minimum, maximum, right_closed)
        return cls(name, ["0"], VariableType.NUMERIC, interval, precision)

    @classmethod
    def discretized(cls, name : str, states, interval : PartitionedInterval,
            precision=DEFAULT_PRECISION) -> 'Variable':
        v = cls(name, states, VariableType.DISCRETIZED, interval, precision)
        if interval.num_subintervals != v.num_states:
            raise MalformedConfiguration("%s has %d states but %d subintervals"
                % (name, v.num_states, interval.num_subintervals))
        return v

    ######################### naming ############################
    @property
    def name(self):
        return self._name

    @name.setter
    def name(self, name):
        self._name = name
        m = _TEMPORAL_NAME.match(name)
        if m:
            self._base_name = m.group('base')
            self._time_slice = int(m.group('slice'))
        else:
            self._base_name = name
            self._time_slice = None

    @property
    def base_name(self):
        return self._base_name

    @property
    def time_slice(self):
        return self._time_slice

    @property
    def is_temporal(self):
        return self._time_slice is not None

    def set_time_slice(self, time_slice):
        self.name = "%s [%d]" % (self._base_name, time_slice)

    def shifted_name(self, time_difference):
        if not self.is_temporal:
            raise ValueError("%s is not a temporal variable" % self.name)
        return "%s [%d]" % (self._base_name, self._time_slice + time_difference)

    ########################## states ###########################
    @property
    def variable_type(self):
        return self._variable_type

    @variable_type.setter
    def variable_type(self, vtype):
        self._variable_type = vtype
        if vtype == VariableType.NUMERIC:
            self.states = [State("0")]
            if self.interval is None:
                self.interval = PartitionedInterval.from_bounds(False, -math.inf, math.inf, False)
        elif vtype == VariableType.DISCRETIZED:
            if self.interval is None or self.interval.num_subintervals != self.num_states:
                self.interval = PartitionedInterval.default(self.num_states, self.precision)
        else:
            self.interval = None

    @property
    def num_states(self):
        return len(self.states)

    @property
    def state_names(self):
        return [s.name for s in self.states]

    def state_name(self, index):
        return self.states[index].name

    def state_index(self, state) -> int:
        name = state.name if isinstance(state, State) else state
        for i, s in enumerate(self.states):
            if s.name == name:
                return i
        raise InvalidState("%s has no state \"%s\" (states are %s)"
            % (self.name, name, ', '.join(self.state_names)))

    def get_state(self, name) -> State:
        return self.states[self.state_index(name)]

    def state_index_of_value(self, value) -> int:
        if self._variable_type == VariableType.FINITE_STATES:
            try:
                return self.state_index(format_number(self.round(value)))
            except InvalidState:
                raise InvalidState("%s has no state for the value %s" % (self.name, value)) from None

        i = self.interval.index_of_subinterval(value)
        if i == -1:
            raise InvalidState("%s is not in any interval of %s (intervals are %s)"
                % (value, self.name, self.interval))
        return i

    def round(self, value):
        return round_half_up(value, self.precision)

    def rename_state(self, old, new):
        if new in self.state_names:
            raise InvalidState("%s already has a state \"%s\"" % (self.name, new))
        self.states[self.state_index(old)] = State(new)

    def delta_potential(self, state):
        """ a CPT over this variable alone, with all its mass on `state` """
        from .potential import TablePotential, PotentialRole

        i = state if isinstance(state, int) else self.state_index(state)
        p = TablePotential([self], PotentialRole.CONDITIONAL_PROBABILITY)
        p.values[:] = 0
        p.values[i] = 1.
        return p

    def copy(self) -> 'Variable':
        duplicate = Variable(self.name, list(self.states), self._variable_type,
            self.interval.copy() if self.interval is not None else None, self.precision)
        duplicate.additional_properties = dict(self.additional_properties)
        duplicate.decision_criterion = self.decision_criterion
        return duplicate

    def shift(self, time_difference) -> 'Variable':
        """ a clone of this temporal variable, `time_difference` slices later """
        duplicate = self.copy()
        duplicate.name = self.shifted_name(time_difference)
        return duplicate

    def __repr__(self):
        if self._variable_type == VariableType.NUMERIC:
            return "Var %s %s" % (self.name, self.interval)
        return "Var %s {%s}" % (self.name, ', '.join(self.state_names))

    def __str__(self):
        return self.name
