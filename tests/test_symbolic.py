'''
Tests for symbolic expression helpers
'''

import sympy

from hybridizer import symbolic

from util import sym

def test_parse_expression():
    'test parsing with ^ as power'

    x, y = sym('x'), sym('y')

    e = symbolic.parse_expression('x^2 + 3*y', ['x', 'y'])
    assert e == x**2 + 3 * y

    e = symbolic.parse_expression('(x >= 0) & (y <= 1)', ['x', 'y'])
    assert e == sympy.And(sympy.Ge(x, 0), sympy.Le(y, 1))

    # already-parsed expressions pass through
    assert symbolic.parse_expression(x * y, ['x', 'y']) == x * y
    assert symbolic.parse_expression(2, ['x']) == sympy.Integer(2)

def test_conjoin():
    'conjunctions flatten and ignore true'

    x = sym('x')
    a = sympy.Ge(x, 0)
    b = sympy.Le(x, 1)
    c = sympy.Le(x, 2)

    assert symbolic.conjoin(sympy.true, a) == a
    assert symbolic.conjoin(symbolic.conjoin(a, b), c) == sympy.And(a, b, c)
    assert symbolic.expressions_equal(symbolic.conjoin(a, b), symbolic.conjoin(b, a))

def test_copy_expression():
    'copies are equal'

    e = symbolic.parse_expression('x^2 - 1', ['x'])

    assert symbolic.expressions_equal(symbolic.copy_expression(e), e)

def test_make_linear_inequality():
    'make half-space constraints'

    x, y = sym('x'), sym('y')

    e = symbolic.make_linear_inequality(['x', 'y'], [1, -2], '<=', 3)
    assert isinstance(e, sympy.LessThan)
    assert e == sympy.Le(1.0 * x - 2.0 * y, 3.0)
    assert bool(e.subs({x: 1, y: 0}))
    assert not bool(e.subs({x: 4, y: 0}))

    # zero gradient entries are skipped
    e = symbolic.make_linear_inequality(['x', 'y'], [0, 1], '>=', 0.5)
    assert isinstance(e, sympy.GreaterThan)
    assert e.lhs.free_symbols == {y}

    try:
        symbolic.make_linear_inequality(['x', 'y'], [1, 1], '<', 0)
        assert False, "expected RuntimeError (bad operator)"
    except RuntimeError:
        pass

    try:
        symbolic.make_linear_inequality(['x', 'y'], [1], '<=', 0)
        assert False, "expected RuntimeError (length mismatch)"
    except RuntimeError:
        pass

def test_extract_linear_terms():
    'extract coefficients from affine expressions'

    variables = ['x', 'y', 'z']

    e = sympy.expand(symbolic.parse_expression('2*x - z + 0.5', variables))
    assert symbolic.extract_linear_terms(e, variables, True) == [2.0, 0, -1.0, 0.5]

    e = sympy.expand(symbolic.parse_expression('y', variables))
    assert symbolic.extract_linear_terms(e, variables, False) == [0, 1, 0]

    # rational coefficients, and expressions which still need expanding
    e = symbolic.parse_expression('x/2 + 3*y', variables)
    assert symbolic.extract_linear_terms(e, variables, False) == [0.5, 3.0, 0]

    e = symbolic.parse_expression('2*(x - 1)', variables)
    assert symbolic.extract_linear_terms(e, variables, True) == [2.0, 0, 0, -2.0]

    # unknown variable
    e = symbolic.parse_expression('w', variables + ['w'])

    try:
        symbolic.extract_linear_terms(e, variables, False)
        assert False, "expected RuntimeError (unknown variable)"
    except RuntimeError:
        pass

    # constant term without an affine variable
    e = sympy.expand(symbolic.parse_expression('x + 1', variables))

    try:
        symbolic.extract_linear_terms(e, variables, False)
        assert False, "expected RuntimeError (affine term)"
    except RuntimeError:
        pass

    # nonlinear
    e = sympy.expand(symbolic.parse_expression('x * y', variables))

    try:
        symbolic.extract_linear_terms(e, variables, False)
        assert False, "expected RuntimeError (nonlinear term)"
    except RuntimeError:
        pass

def test_make_dynamics_mat():
    'make a dynamics matrix from strings'

    mat = symbolic.make_dynamics_mat(['x', 'y'], ['y', '-x + 2*(y - 1)'], True)

    assert mat == [[0, 1, 0], [-1, 2, -2], [0, 0, 0]]

    mat = symbolic.make_dynamics_mat(['x', 'y'], ['3*x', '0'])

    assert mat == [[3, 0], [0, 0]]
