'''
Splitting elements for the mixed-triggered hybridization chain

A splitting element decides when control passes from one domain of the chain to the next. It's either
time-triggered (a duration), or space-triggered (a hyperplane given by a point and a gradient).
'''

from hybridizer.util import Freezable, HybridizeError
from hybridizer.geometry import HyperPoint

class SplittingElement(Freezable):
    'a time-triggered or space-triggered splitting element; check kind before reading the other fields'

    TIME, SPACE = range(2)

    def __init__(self, kind, time=None, point=None, gradient=None):
        self.kind = kind

        self.time = time # TIME only
        self.point = point # SPACE only, a HyperPoint
        self.gradient = gradient # SPACE only, list of floats

        self.freeze_attrs()

    @staticmethod
    def make_time(time):
        'make a time-triggered splitting element'

        time = float(time)

        if time <= 0:
            raise HybridizeError("time-triggered splitting element must be positive: {}".format(time))

        return SplittingElement(SplittingElement.TIME, time=time)

    @staticmethod
    def make_space(point, gradient):
        'make a space-triggered splitting element, the hyperplane at point in the direction of gradient'

        if not isinstance(point, HyperPoint):
            point = HyperPoint(*point)

        gradient = [float(g) for g in gradient]

        if len(gradient) != len(point.dims):
            raise HybridizeError("space-triggered splitting element point {} and gradient {} differ in dims".format(
                point, gradient))

        return SplittingElement(SplittingElement.SPACE, point=point, gradient=gradient)

    def num_dims(self):
        'the number of dimensions for space-triggered elements, None for time-triggered'

        if self.kind == SplittingElement.TIME:
            rv = None
        elif self.kind == SplittingElement.SPACE:
            rv = len(self.point.dims)
        else:
            raise RuntimeError("unknown splitting element kind: {}".format(self.kind))

        return rv

    def __str__(self):
        if self.kind == SplittingElement.TIME:
            rv = "({})".format(self.time)
        elif self.kind == SplittingElement.SPACE:
            rv = "({};{})".format(",".join([str(d) for d in self.point.dims]), ",".join([str(g) for g in self.gradient]))
        else:
            rv = "(unknown splitting element kind {})".format(self.kind)

        return rv

    def __repr__(self):
        return "SplittingElement" + str(self)
