'''
Utilities for testing
'''

import numpy as np
import sympy

from hybridizer.hybrid_automaton import HybridAutomaton
from hybridizer.geometry import HyperRectangle
from hybridizer.settings import HybridizeSettings
from hybridizer import symbolic

def make_sample_automaton(dynamics=(('x', '1'), ('y', '1')), init='(x >= 0) & (x <= 0.1)'):
    '''make a sample automaton with a single mode named 'on', with the given (variable, derivative) pairs

    the initial condition is in mode 'on'
    '''

    ha = HybridAutomaton()

    for var, _ in dynamics:
        ha.add_variable(var)

    mode = ha.new_mode('on')
    mode.set_dynamics(dict(dynamics))

    ha.init['on'] = symbolic.parse_expression(init, ha.variables)

    return ha

def make_settings(bounds_lists, split_elements, opt=HybridizeSettings.OPT_INTERVAL):
    '''make quiet pass settings from a list of bounds lists (one per domain)'''

    domains = [HyperRectangle.from_bounds_list(b) for b in bounds_lists]

    settings = HybridizeSettings(domains, split_elements)
    settings.stdout = HybridizeSettings.STDOUT_NONE
    settings.opt = opt

    return settings

def conjuncts(e):
    'get the list of top-level conjuncts of an expression'

    return list(e.args) if isinstance(e, sympy.And) else [e]

def get_transitions(ha, from_mode, to_mode=None):
    'get all transitions from from_mode (and to to_mode, if given)'

    return [t for t in ha.transitions if t.from_mode is from_mode and (to_mode is None or t.to_mode is to_mode)]

def sym(name):
    'shorthand for a variable symbol'

    return symbolic.make_symbol(name)

def assert_encloses(original, ei, variables, bounds_list, num=11, tol=1e-9):
    '''check that the original derivative is inside ei (affine expression + interval) at grid points in the box'''

    syms = [sym(v) for v in variables]
    orig_func = sympy.lambdify(syms, symbolic.parse_expression(original, variables), 'numpy')
    affine_func = sympy.lambdify(syms, ei.expression, 'numpy')

    grids = np.meshgrid(*[np.linspace(lo, hi, num) for lo, hi in bounds_list])
    pts = zip(*[g.flatten() for g in grids])

    for pt in pts:
        diff = float(orig_func(*pt)) - float(affine_func(*pt))

        assert ei.interval.min - tol <= diff <= ei.interval.max + tol, \
            "at point {}, error {} was outside of {}".format(pt, diff, ei.interval)
