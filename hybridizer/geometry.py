'''
Geometry primitives: intervals, points and hyperrectangles (domain boxes)

Dimensions are always ordered like the automaton's variable list.
'''

from hybridizer.util import Freezable

class Interval(Freezable):
    'a closed real interval [min, max]'

    def __init__(self, min_val, max_val=None):
        if max_val is None:
            max_val = min_val

        self.min = float(min_val)
        self.max = float(max_val)

        assert self.min <= self.max, "interval min ({}) is greater than max ({})".format(self.min, self.max)

        self.freeze_attrs()

    def width(self):
        'get the width of the interval'

        return self.max - self.min

    def middle(self):
        'get the midpoint of the interval'

        return (self.min + self.max) / 2.0

    def contains(self, val):
        'is the value inside the (closed) interval?'

        return self.min <= val <= self.max

    def is_constant(self):
        'is this a point interval?'

        return self.min == self.max

    def as_constant(self):
        'get the value of a point interval'

        if not self.is_constant():
            raise RuntimeError("interval is not a constant: {}".format(self))

        return self.min

    def __add__(self, other):
        return Interval(self.min + other.min, self.max + other.max)

    def __eq__(self, other):
        return isinstance(other, Interval) and self.min == other.min and self.max == other.max

    def __hash__(self):
        return hash((self.min, self.max))

    def __str__(self):
        return "[{}, {}]".format(self.min, self.max)

    def __repr__(self):
        return "Interval({}, {})".format(repr(self.min), repr(self.max))

class HyperPoint(Freezable):
    'a point in n-dimensional space'

    def __init__(self, *dims):
        self.dims = [float(d) for d in dims]

        self.freeze_attrs()

    def __len__(self):
        return len(self.dims)

    def __eq__(self, other):
        return isinstance(other, HyperPoint) and self.dims == other.dims

    def __hash__(self):
        return hash(tuple(self.dims))

    def __str__(self):
        return "(" + ", ".join([str(d) for d in self.dims]) + ")"

    def __repr__(self):
        return "HyperPoint({})".format(", ".join([repr(d) for d in self.dims]))

class HyperRectangle(Freezable):
    'a box, one Interval per dimension'

    def __init__(self, *intervals):
        for i in intervals:
            assert isinstance(i, Interval), "HyperRectangle expects Interval dims, got {}".format(type(i))

        self.dims = list(intervals)

        self.freeze_attrs()

    @staticmethod
    def from_bounds_list(bounds_list):
        'make a HyperRectangle from a list of (min, max) pairs'

        return HyperRectangle(*[Interval(lo, hi) for lo, hi in bounds_list])

    def center(self):
        'get the center point of the box'

        return HyperPoint(*[i.middle() for i in self.dims])

    def contains(self, point):
        'is the point inside the box?'

        if len(point.dims) != len(self.dims):
            raise RuntimeError("point has {} dims but box has {}".format(len(point.dims), len(self.dims)))

        return all(i.contains(val) for i, val in zip(self.dims, point.dims))

    def get_corners(self):
        'get all 2^n corner points of the box, as lists of floats'

        rv = [[]]

        for i in self.dims:
            rv = [c + [val] for c in rv for val in (i.min, i.max)]

        return rv

    def __len__(self):
        return len(self.dims)

    def __eq__(self, other):
        return isinstance(other, HyperRectangle) and self.dims == other.dims

    def __hash__(self):
        return hash(tuple(self.dims))

    def __str__(self):
        return "[" + ", ".join([str(i) for i in self.dims]) + "]"

    def __repr__(self):
        return "HyperRectangle({})".format(", ".join([repr(i) for i in self.dims]))

def dot_product(vec, point):
    '''evaluate the dot product of a vector (for example a gradient) and a HyperPoint'''

    if len(vec) != len(point.dims):
        raise RuntimeError("dot product requires vector and point have same number of dimensions: {} and {}".format(
            len(vec), len(point.dims)))

    rv = 0.0

    for v, p in zip(vec, point.dims):
        rv += v * p

    return rv
