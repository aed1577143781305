'''
Symbolic expression helpers for hybridization

Guards, invariants and flow dynamics are sympy expressions. Since sympy expressions are immutable, attaching
the same expression to several transitions can never alias later edits of one of them.
'''

import sympy
from sympy.parsing.sympy_parser import parse_expr
from sympy import Expr, Add, Symbol

def make_symbol(name):
    'get the sympy symbol for a variable name'

    return sympy.Symbol(name)

def make_symbol_dict(variables):
    'make a dict mapping each variable name to its sympy symbol'

    return {var: make_symbol(var) for var in variables}

def parse_expression(text, variables):
    '''parse a string into a sympy expression over the given variables

    '^' is accepted as power, as in most hybrid automaton input formats
    '''

    if not isinstance(text, str):
        return sympy.sympify(text)

    text = text.replace('^', '**')

    return parse_expr(text, local_dict=make_symbol_dict(variables))

def conjoin(a, b):
    'boolean conjunction of two expressions (sympy.true is the unit)'

    return sympy.And(a, b)

def copy_expression(e):
    '''copy an expression so it can be attached somewhere else

    sympy expressions are immutable, so the structural copy is the expression itself
    '''

    return e

def expressions_equal(a, b):
    'structural equality of two expressions'

    return sympy.sympify(a) == sympy.sympify(b)

def make_linear_inequality(variables, gradient, op, value):
    '''make the half-space expression sum(gradient[i] * variables[i]) op value

    op is one of '<=' or '>='
    '''

    if len(variables) != len(gradient):
        raise RuntimeError("linear inequality needs one gradient entry per variable: {} vs {}".format(
            variables, gradient))

    lhs = sympy.Integer(0)

    for var, g in zip(variables, gradient):
        if g != 0:
            lhs = lhs + sympy.Float(g) * make_symbol(var)

    rhs = sympy.Float(value)

    if op == '<=':
        rv = sympy.Le(lhs, rhs)
    elif op == '>=':
        rv = sympy.Ge(lhs, rhs)
    else:
        raise RuntimeError("unsupported linear inequality operator: '{}'".format(op))

    return rv

def extract_linear_terms(e, variables, has_affine_variable):
    '''get the coefficients of an affine sympy expression, for example a hybridized derivative

    each summand is split into its numeric coefficient and the remaining factor, which must either be 1 (the
    constant term) or a single variable

    returns a list of floats, one for each variable (plus the constant term if has_affine_variable)
    '''

    if not isinstance(e, Expr):
        raise RuntimeError("Expected sympy Expr: " + repr(e))

    rv = [0] * len(variables)

    if has_affine_variable:
        rv.append(0)

    for term in Add.make_args(sympy.expand(e)):
        coeff, factor = term.as_coeff_Mul()

        if factor.is_Number:
            val = float(coeff * factor)

            if val == 0:
                continue

            if not has_affine_variable:
                raise RuntimeError(f"constant term {val} in '{e}' but has_affine_variable was False")

            rv[-1] += val
        elif isinstance(factor, Symbol) and factor.name in variables:
            rv[variables.index(factor.name)] += float(coeff)
        else:
            raise RuntimeError(f"term '{term}' of '{e}' is not a multiple of a single variable in {variables}")

    return rv

def make_dynamics_mat(variables, derivatives, has_affine_variable=False):
    '''make the dynamics A matrix from the list of variables and affine derivatives (sympy expressions or strings)

    this is used on hybridized modes, to hand them to a linear reachability tool

    returns a list of lists (a matrix) of size len(variables) by len(variables), one more in each direction
    if has_affine_variable is True
    '''

    rv = []

    for der in derivatives:
        row = extract_linear_terms(parse_expression(der, variables), variables, has_affine_variable)
        rv.append(row)

    if has_affine_variable:
        rv.append([0] * (len(variables) + 1))

    return rv
