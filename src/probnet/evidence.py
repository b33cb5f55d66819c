"""
Observations. A `Finding` fixes one variable to a state (or a numeric value);
an `EvidenceCase` is a set of findings, at most one per variable.
"""
import math
import logging
import collections

from .rv import State, VariableType
from .errors import IncompatibleEvidence, InvalidState, NoFinding

logger = logging.getLogger(__name__)


class Finding:
    def __init__(self, variable, state_index=None, numerical_value=None):
        if state_index is None and numerical_value is None:
            raise ValueError("A finding needs a state or a numerical value")

        self.variable = variable
        vtype = variable.variable_type

        if state_index is not None:
            if isinstance(state_index, (str, State)):
                state_index = variable.state_index(state_index)
            if not 0 <= state_index < variable.num_states:
                raise InvalidState("%s has no state with index %d" % (variable.name, state_index))
            if vtype == VariableType.DISCRETIZED and numerical_value is None:
                numerical_value = variable.interval.midpoint(state_index)
        elif vtype != VariableType.NUMERIC:
            state_index = variable.state_index_of_value(numerical_value)

        self.state_index = state_index
        self._numerical_value = float('nan') if numerical_value is None else float(numerical_value)

    @classmethod
    def from_state(cls, variable, state):
        return cls(variable, variable.state_index(state))

    @property
    def state(self):
        return self.variable.state_name(self.state_index)

    @property
    def numerical_value(self):
        """ the observed value; for a purely discrete finding, the state index """
        if math.isnan(self._numerical_value):
            return self.state_index
        return self._numerical_value

    def agrees_with(self, other) -> bool:
        """ whether two findings for the same variable say the same thing """
        vtype = self.variable.variable_type
        if vtype == VariableType.FINITE_STATES:
            return self.state_index == other.state_index
        if vtype == VariableType.NUMERIC:
            return self.numerical_value == other.numerical_value
        return self.state_index == other.state_index \
            or self._numerical_value == other._numerical_value

    def __eq__(self, other):
        return isinstance(other, Finding) and other.variable is self.variable \
            and self.agrees_with(other)

    def __hash__(self):
        return hash(id(self.variable))

    def __str__(self):
        if self.variable.variable_type == VariableType.FINITE_STATES:
            return "%s:%s(%d)" % (self.variable.name, self.state, self.state_index)
        return "%s:(%s)" % (self.variable.name, self.numerical_value)

    def __repr__(self):
        return "Finding<%s>" % str(self)


class EvidenceCase:
    def __init__(self, findings=()):
        self._findings = {}
        for f in findings:
            self.add_finding(f)

    def copy(self) -> 'EvidenceCase':
        duplicate = EvidenceCase()
        duplicate._findings = dict(self._findings)
        return duplicate

    ###################### adding / removing ######################
    def is_compatible(self, finding) -> bool:
        existing = self._findings.get(finding.variable, None)
        return existing is None or existing.agrees_with(finding)

    def add_finding(self, finding):
        """ Adds `finding` unless its variable already has one. A finding that
        disagrees with the stored one raises `IncompatibleEvidence`. """
        if not self.is_compatible(finding):
            raise IncompatibleEvidence("Cannot add %s: already have %s"
                % (finding, self._findings[finding.variable]))
        if finding.variable not in self._findings:
            self._findings[finding.variable] = finding

    def add_findings(self, findings):
        for f in findings:
            self.add_finding(f)

    def add_finding_by_name(self, net, variable_name, state):
        """ `state` is a state name, or a number for numeric variables """
        variable = net.get_variable(variable_name)
        if isinstance(state, str):
            self.add_finding(Finding(variable, variable.state_index(state)))
        else:
            self.add_finding(Finding(variable, numerical_value=state))

    def change_finding(self, finding):
        self._findings.pop(finding.variable, None)
        self._findings[finding.variable] = finding

    def remove_finding(self, variable) -> Finding:
        try:
            return self._findings.pop(variable)
        except KeyError:
            raise NoFinding("No finding for %s" % variable.name) from None

    ######################### queries #############################
    def get_finding(self, variable) -> Finding:
        try:
            return self._findings[variable]
        except KeyError:
            raise NoFinding("No finding for %s" % variable.name) from None

    def get_state(self, variable) -> int:
        return self.get_finding(variable).state_index

    def get_numerical_value(self, variable):
        return self.get_finding(variable).numerical_value

    @property
    def variables(self):
        return list(self._findings)

    @property
    def findings(self):
        return list(self._findings.values())

    def contains(self, variable) -> bool:
        return variable in self._findings

    __contains__ = contains

    def __len__(self):
        return len(self._findings)

    def __iter__(self):
        return iter(self._findings.values())

    def is_empty(self) -> bool:
        return not self._findings

    def exists_evidence(self, variables) -> bool:
        return any(v in self._findings for v in variables)

    def remaining_nodes(self, net):
        return [n for n in net.nodes() if n.variable not in self._findings]

    ################## combining evidence cases ###################
    def extend_evidence(self, net):
        """
        Adds every finding implied deterministically by the potentials of `net`,
        until nothing new appears. Only network types with deterministic
        induction take part; for the others this does nothing.
        """
        if not net.network_type.deterministic_induction:
            return

        for potential in net.get_potentials():
            for induced in potential.induced_findings(self):
                if induced.variable not in self._findings:
                    self._findings[induced.variable] = induced

        pending = collections.deque(self._findings.values())
        while pending:
            finding = pending.popleft()
            for potential in net.get_potentials_of(finding.variable):
                for induced in potential.induced_findings(self):
                    if induced.variable not in self._findings:
                        logger.debug("%s induces %s", finding, induced)
                        self._findings[induced.variable] = induced
                        pending.append(induced)

    def fuse(self, other, overwrite=False):
        """ Merges `other` into this case. On a conflict the existing finding is
        kept, unless `overwrite`. Findings whose state does not exist in their
        variable are skipped. """
        if other is None:
            return
        for finding in other.findings:
            if finding.state_index is not None \
                    and not 0 <= finding.state_index < finding.variable.num_states:
                logger.debug("skipping finding while fusing: %s has no state %d",
                    finding.variable.name, finding.state_index)
                continue

            if finding.variable in self._findings:
                if overwrite:
                    self.change_finding(finding)
            else:
                self.add_finding(finding)

    def shift_evidence_backwards(self, time_difference, net) -> 'EvidenceCase':
        """ moves temporal findings `time_difference` slices back, onto the
        variables of `net`; findings with no shifted counterpart are dropped """
        shifted = EvidenceCase()
        for finding in self._findings.values():
            variable = finding.variable
            if variable.is_temporal:
                name = variable.shifted_name(-time_difference)
                if net.contains_variable_named(name):
                    moved = Finding(net.get_variable(name), finding.state_index,
                        None if math.isnan(finding._numerical_value) else finding._numerical_value)
                    shifted.add_finding(moved)
            else:
                shifted.add_finding(finding)
        return shifted

    def __eq__(self, other):
        return isinstance(other, EvidenceCase) and self._findings.keys() == other._findings.keys() \
            and all(f.agrees_with(other._findings[v]) for v, f in self._findings.items())

    __hash__ = None

    def __str__(self):
        return "[" + ", ".join(str(f) for f in self._findings.values()) + "]"

    def __repr__(self):
        return "EvidenceCase" + str(self)
