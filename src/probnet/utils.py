import math
from functools import reduce
from operator import mul

import numpy as np


def strides(dims):
    """ mixed-radix offsets for a table with the given dimensions:
    offsets[0] = 1, offsets[i] = offsets[i-1] * dims[i-1] """
    offsets = [1] * len(dims)
    for i in range(1, len(dims)):
        offsets[i] = offsets[i-1] * dims[i-1]
    return offsets

def table_size(dims) -> int:
    # python ints, so a huge product is reported as such instead of wrapping
    return reduce(mul, (int(d) for d in dims), 1)

def odometer(dims):
    """ all coordinate vectors of a table, lowest index varying fastest
    (the order in which the flat `values` array is laid out). """
    if any(d == 0 for d in dims):
        return
    coords = [0] * len(dims)
    while True:
        yield tuple(coords)
        i = 0
        while i < len(dims):
            coords[i] += 1
            if coords[i] < dims[i]:
                break
            coords[i] = 0
            i += 1
        else:
            return

def round_half_up(value, precision):
    return math.floor(value / precision + 0.5) * precision

def format_number(value) -> str:
    """ state names for numeric values: at most five decimals, no trailing zeros.
    e.g.  2.0 -> '2',  0.30000000000000004 -> '0.3' """
    if isinstance(value, (float, np.floating)) and math.isinf(value):
        return "inf" if value > 0 else "-inf"
    s = "%.5f" % value
    s = s.rstrip('0').rstrip('.')
    return "0" if s in ("-0", "") else s


class UniqueStack:
    """
    LIFO stack that refuses duplicates among its *pending* elements.
    Pushing something already waiting is a no-op; once popped, an element
    may be pushed again.
    """
    def __init__(self, items=()):
        self._items = []
        self._pending = set()
        for item in items:
            self.push(item)

    def push(self, item) -> bool:
        if item in self._pending:
            return False
        self._pending.add(item)
        self._items.append(item)
        return True

    def pop(self):
        item = self._items.pop()
        self._pending.discard(item)
        return item

    def peek(self):
        return self._items[-1]

    def empty(self) -> bool:
        return not self._items

    def __len__(self):
        return len(self._items)

    def __contains__(self, item):
        return item in self._pending

    def __iter__(self):
        return iter(list(self._items))

    def __repr__(self):
        return "UniqueStack(%s)" % ', '.join(repr(i) for i in self._items)
