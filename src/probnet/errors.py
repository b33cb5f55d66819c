"""
Error taxonomy for probnet. Everything raised deliberately by this package
derives from `ProbNetError`, so callers can catch the whole family at once.
"""


class ProbNetError(Exception):
    pass


class IncompatibleEvidence(ProbNetError):
    """ a finding disagrees with the finding already stored for its variable """


class InvalidState(ProbNetError, ValueError):
    """ unknown state name, index or value for a variable """


class NodeNotFound(ProbNetError, KeyError):
    def __str__(self):
        # KeyError quotes its argument; we want the plain message.
        return Exception.__str__(self)


class NoFinding(ProbNetError, KeyError):
    def __str__(self):
        return Exception.__str__(self)


class NonProjectable(ProbNetError):
    """ a potential cannot be reduced to a table under the given evidence """


class WrongCriterion(ProbNetError):
    pass


class MalformedConfiguration(ProbNetError, ValueError):
    """ mismatched or inconsistent arrays, e.g. when building an interval """
