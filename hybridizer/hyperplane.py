'''
Hyperplane side-test for space-triggered splitting

Before a simulation-derived point is used to construct a pseudo-invariant hyperplane, it should be checked that the
point is on the far side of the previous domain box, in the direction of the flow. Otherwise trajectories could
come back to the box after crossing the guard, and the constructed transition would be unsound.
'''

from hybridizer.geometry import HyperPoint, HyperRectangle
from hybridizer.hybridize_mt import TT_VARIABLE
from hybridizer import symbolic

def sample_flow(mode, point):
    '''evaluate the nominal flow of a mode at a point

    the point has one dimension per state variable. The time-trigger variable added by the hybridization pass is
    not part of the state, so this also works on hybridized automata.

    returns a list of floats, one per state variable (0 for variables without dynamics)
    '''

    variables = [var for var in mode.ha.variables if var != TT_VARIABLE]

    if len(point.dims) != len(variables):
        raise RuntimeError("flow sample point {} needs {} dims (one per variable in {})".format(
            point, len(variables), variables))

    subs = {symbolic.make_symbol(var): val for var, val in zip(variables, point.dims)}
    rv = []

    for var in variables:
        ei = mode.flow_dynamics.get(var) if mode.flow_dynamics is not None else None

        if ei is None:
            rv.append(0.0)
        else:
            rv.append(float(ei.expression.subs(subs)))

    return rv

def check_hyper_plane(point, box, mode):
    '''is the point strictly downstream of the box along the mode's flow?

    The flow is sampled at the center of the box. For each dimension with a positive flow component the point must
    be past box max, for each with a negative flow component it must be before box min. Dimensions without flow are
    ignored. If there's no flow at all, nothing is downstream.
    '''

    assert isinstance(point, HyperPoint)
    assert isinstance(box, HyperRectangle)

    if len(point.dims) != len(box.dims):
        raise RuntimeError("point {} and box {} have different dimensions".format(point, box))

    flow = sample_flow(mode, box.center())

    rv = False

    for der, val, interval in zip(flow, point.dims, box.dims):
        if der > 0:
            rv = val > interval.max
        elif der < 0:
            rv = val < interval.min
        else:
            continue

        if not rv:
            break

    return rv
