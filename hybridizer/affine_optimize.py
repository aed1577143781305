'''
Affine approximation of nonlinear dynamics within a box

Each derivative f is replaced by its linearization at the box center, a(x), plus an error interval [lo, hi] such
that f(x) in a(x) + [lo, hi] for every x in the box. The error bounds are computed either with global optimization
(scipy's basinhopping, not rigorous) or with interval arithmetic (mpmath.iv, rigorous but conservative).
'''

import numpy as np
import sympy
from scipy.optimize import basinhopping
from mpmath import iv

from hybridizer.util import Freezable, HybridizeError
from hybridizer.geometry import Interval, HyperRectangle
from hybridizer.hybrid_automaton import ExpressionInterval
from hybridizer.settings import HybridizeSettings
from hybridizer import symbolic

# corners are only sampled for boxes up to this many dimensions (2^n points)
MAX_CORNER_DIMS = 10

class OptimizationParams(Freezable):
    'input / output container for a single mode'

    def __init__(self):
        self.original = {} # variable name -> ExpressionInterval, the nominal dynamics
        self.bounds = {} # variable name -> Interval, the box where the approximation should be valid

        self.result = None # variable name -> ExpressionInterval, assigned by create_affine_dynamics

        self.freeze_attrs()

def create_affine_dynamics(opt_type, params_list, settings=None):
    '''compute affine dynamics for every OptimizationParams in params_list (assigns params.result)

    opt_type is one of HybridizeSettings.OPT_METHODS
    '''

    if not params_list:
        raise HybridizeError("create_affine_dynamics was called with an empty params list")

    if opt_type not in HybridizeSettings.OPT_METHODS:
        raise HybridizeError("unknown optimization method: '{}', expected one of {}".format(
            opt_type, HybridizeSettings.OPT_METHODS))

    seed = 0 if settings is None else settings.random_seed
    niter = 50 if settings is None else settings.basinhopping_iterations

    # deterministic sample points for the global search, without touching numpy's global generator
    random_state = np.random.RandomState(seed)

    for params in params_list:
        assert isinstance(params, OptimizationParams)

        params.result = {}

        for var, ei in params.original.items():
            params.result[var] = make_affine(ei, params.bounds, opt_type, niter, random_state)

def make_affine(ei, bounds, opt_type, niter=50, random_state=None):
    '''linearize a single derivative at the center of bounds, and bound the error

    random_state is a numpy RandomState used by the global search (a fresh one seeded with 0 if None)

    returns an ExpressionInterval
    '''

    if random_state is None:
        random_state = np.random.RandomState(0)

    variables = list(bounds.keys())
    syms = [symbolic.make_symbol(var) for var in variables]
    center = [bounds[var].middle() for var in variables]
    expr = sympy.sympify(ei.expression)

    unknown = {s.name for s in expr.free_symbols} - set(variables)

    if unknown:
        raise HybridizeError("derivative '{}' uses variables without bounds: {}".format(expr, sorted(unknown)))

    center_subs = dict(zip(syms, center))

    coeffs = [float(sympy.diff(expr, s).subs(center_subs)) for s in syms]
    constant = float(expr.subs(center_subs)) - sum(c * val for c, val in zip(coeffs, center))

    affine = sympy.Integer(0)

    for c, s in zip(coeffs, syms):
        if c != 0:
            affine = affine + sympy.Float(c) * s

    if constant != 0 or affine == 0:
        affine = affine + sympy.Float(constant)

    err_expr = sympy.expand(expr - affine)

    if err_expr.free_symbols:
        if opt_type == HybridizeSettings.OPT_BASINHOPPING:
            lo, hi = _global_error_bounds(err_expr, syms, [bounds[var] for var in variables], niter, random_state)
        else:
            lo, hi = _interval_error_bounds(err_expr, {var: bounds[var] for var in variables})
    else:
        # constant error, usually 0 since the dynamics were already affine
        lo = hi = float(err_expr)

    error = Interval(min(lo, hi), max(lo, hi))

    if ei.interval is not None:
        error = error + ei.interval

    return ExpressionInterval(affine, error)

def _global_error_bounds(err_expr, syms, intervals, niter, random_state):
    '''bound err_expr over the box using global search

    returns (min, max)
    '''

    func = sympy.lambdify(syms, err_expr, 'numpy')
    box_bounds = [(i.min, i.max) for i in intervals]
    center = np.array([i.middle() for i in intervals], dtype=float)

    samples = [center]

    if len(intervals) <= MAX_CORNER_DIMS:
        samples += [np.array(pt, dtype=float) for pt in HyperRectangle(*intervals).get_corners()]

    rv = []

    for sign in [1.0, -1.0]:
        def obj(x, sign=sign):
            'objective to minimize'

            return sign * float(func(*x))

        best = min(obj(pt) for pt in samples)

        minimizer_kwargs = {'method': 'L-BFGS-B', 'bounds': box_bounds}
        take_step = BoxStep(intervals, random_state.randint(2**31 - 1))
        res = basinhopping(obj, center, niter=niter, minimizer_kwargs=minimizer_kwargs, take_step=take_step,
                           seed=random_state.randint(2**31 - 1))

        best = min(best, float(res.fun))

        rv.append(sign * best)

    return rv[0], rv[1]

class BoxStep():
    'random basinhopping displacement which stays inside the box'

    def __init__(self, intervals, seed):
        self.lower = np.array([i.min for i in intervals], dtype=float)
        self.upper = np.array([i.max for i in intervals], dtype=float)
        self.stepsize = 0.5 # adjusted by basinhopping, as a fraction of the box width
        self.random_state = np.random.RandomState(seed)

    def __call__(self, x):
        width = self.upper - self.lower
        x = x + self.random_state.uniform(-self.stepsize, self.stepsize, x.shape) * width

        return np.clip(x, self.lower, self.upper)

def _iv_sinh(x):
    'interval sinh from interval exp'

    return (iv.exp(x) - iv.exp(-x)) / 2

def _iv_cosh(x):
    'interval cosh from interval exp'

    return (iv.exp(x) + iv.exp(-x)) / 2

def _iv_tanh(x):
    'interval tanh, as sinh / cosh (cosh is always positive)'

    return _iv_sinh(x) / _iv_cosh(x)

# functions supported by interval evaluation; mpmath's interval context has no atan or hyperbolic functions
IV_FUNCS = {
    sympy.sin: iv.sin,
    sympy.cos: iv.cos,
    sympy.tan: iv.tan,
    sympy.exp: iv.exp,
    sympy.log: iv.log,
    sympy.sinh: _iv_sinh,
    sympy.cosh: _iv_cosh,
    sympy.tanh: _iv_tanh,
}

def _interval_error_bounds(err_expr, bounds):
    '''bound err_expr over the box using interval arithmetic

    returns (min, max), rounded outward
    '''

    box = {var: iv.mpf([i.min, i.max]) for var, i in bounds.items()}

    res = interval_eval(err_expr, box)

    lo = np.nextafter(float(res.a), -np.inf)
    hi = np.nextafter(float(res.b), np.inf)

    return float(lo), float(hi)

def interval_eval(e, box):
    '''evaluate the sympy expression e over the box (variable name -> mpmath iv interval)

    returns an mpmath iv interval enclosing every value of e over the box
    '''

    if e.is_Symbol:
        rv = box[e.name]
    elif e.is_Rational:
        rv = iv.mpf(int(e.p)) / iv.mpf(int(e.q))
    elif e.is_Number:
        rv = iv.mpf(str(e))
    elif e.is_Add:
        rv = iv.mpf(0)

        for arg in e.args:
            rv = rv + interval_eval(arg, box)
    elif e.is_Mul:
        rv = iv.mpf(1)

        for arg in e.args:
            rv = rv * interval_eval(arg, box)
    elif e.is_Pow:
        base, exp = e.args

        if exp.is_Integer:
            rv = interval_eval(base, box) ** int(exp)
        elif exp == sympy.Rational(1, 2):
            rv = iv.sqrt(interval_eval(base, box))
        else:
            rv = interval_eval(base, box) ** interval_eval(exp, box)
    elif e.func in IV_FUNCS:
        rv = IV_FUNCS[e.func](interval_eval(e.args[0], box))
    else:
        raise HybridizeError("interval evaluation doesn't support term of type {}: '{}'".format(type(e), e))

    return rv
