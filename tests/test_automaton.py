'''
Tests for the automaton model, standard form conversion, geometry, splitting elements and settings
'''

import sympy

from hybridizer.hybrid_automaton import HybridAutomaton, ExpressionInterval
from hybridizer.standard_form import convert_to_standard_form, is_standard_form, get_init_mode, get_error_mode
from hybridizer.geometry import Interval, HyperPoint, HyperRectangle, dot_product
from hybridizer.splitting import SplittingElement
from hybridizer.settings import HybridizeSettings
from hybridizer.timerutil import Timers
from hybridizer.util import HybridizeError
from hybridizer import symbolic

from util import make_sample_automaton, get_transitions, sym

def test_automaton_construction():
    'build an automaton and check the bookkeeping'

    ha = make_sample_automaton()

    assert ha.variables == ['x', 'y']
    assert list(ha.modes.keys()) == ['on']

    off = ha.new_mode('off')
    off.set_dynamics({'x': '-x', 'y': ExpressionInterval(0, Interval(-0.1, 0.1))})

    assert off.flow_dynamics['x'].expression == -sym('x')
    assert off.flow_dynamics['y'].interval == Interval(-0.1, 0.1)

    t = ha.new_transition(ha.modes['on'], off, 'switch')
    t.guard = symbolic.parse_expression('x >= 5', ha.variables)

    assert ha.modes['on'].transitions == [t]
    assert str(t) == 'on -> off (switch)'

    ha.validate()

    try:
        ha.new_mode('on')
        assert False, "expected HybridizeError (duplicate mode)"
    except HybridizeError:
        pass

    try:
        ha.add_variable('x')
        assert False, "expected HybridizeError (duplicate variable)"
    except HybridizeError:
        pass

    ha.remove_mode(off)

    assert 'off' not in ha.modes
    assert not ha.transitions
    assert not ha.modes['on'].transitions

def test_validate():
    'validation catches undeclared variables'

    ha = make_sample_automaton()
    ha.modes['on'].conjoin_invariant(sympy.Le(sym('z'), 1))

    try:
        ha.validate()
        assert False, "expected HybridizeError (undeclared variable in invariant)"
    except HybridizeError:
        pass

    ha = make_sample_automaton()
    t = ha.new_transition(ha.modes['on'], ha.modes['on'])
    t.reset['w'] = ExpressionInterval(0)

    try:
        ha.validate()
        assert False, "expected HybridizeError (undeclared reset variable)"
    except HybridizeError:
        pass

def test_expression_interval():
    'copy, equality and printing'

    ei = ExpressionInterval(symbolic.parse_expression('x + 1', ['x']), Interval(0, 0.5))
    ei2 = ei.copy()

    assert ei == ei2
    assert ei2.interval is not ei.interval
    assert str(ei) == 'x + 1 + [0.0, 0.5]'

    assert ExpressionInterval(2) == ExpressionInterval(2.0)
    assert ExpressionInterval(2) != ExpressionInterval(2, Interval(0, 1))

def test_standard_form():
    'convert to standard form'

    ha = make_sample_automaton()
    ha.forbidden['on'] = symbolic.parse_expression('y >= 3', ha.variables)

    assert not is_standard_form(ha)

    convert_to_standard_form(ha)

    assert is_standard_form(ha)

    init_mode = get_init_mode(ha)
    error_mode = get_error_mode(ha)
    on = ha.modes['on']

    assert init_mode.flow_dynamics is None and error_mode.flow_dynamics is None
    assert ha.init == {'_init': sympy.true}
    assert ha.forbidden == {'_error': sympy.true}

    init_transitions = get_transitions(ha, init_mode)
    assert len(init_transitions) == 1
    assert init_transitions[0].to_mode is on
    assert init_transitions[0].guard == symbolic.parse_expression('(x >= 0) & (x <= 0.1)', ha.variables)

    error_transitions = get_transitions(ha, on, error_mode)
    assert len(error_transitions) == 1
    assert error_transitions[0].guard == sympy.Ge(sym('y'), 3)

    ha.validate()

    # converting again does nothing
    num_modes = len(ha.modes)
    num_transitions = len(ha.transitions)

    convert_to_standard_form(ha)

    assert len(ha.modes) == num_modes
    assert len(ha.transitions) == num_transitions

def test_standard_form_errors():
    'standard form conversion errors'

    ha = HybridAutomaton()
    ha.add_variable('x')
    ha.new_mode('on')

    try:
        convert_to_standard_form(ha)
        assert False, "expected HybridizeError (no initial states)"
    except HybridizeError:
        pass

    try:
        get_init_mode(ha)
        assert False, "expected HybridizeError (not in standard form)"
    except HybridizeError:
        pass

    ha = make_sample_automaton()
    ha.new_mode('_error')

    try:
        convert_to_standard_form(ha)
        assert False, "expected HybridizeError (reserved mode name)"
    except HybridizeError:
        pass

def test_geometry():
    'intervals, points, boxes'

    i = Interval(1, 3)

    assert i.width() == 2
    assert i.middle() == 2
    assert i.contains(1) and i.contains(3) and not i.contains(3.5)
    assert not i.is_constant()
    assert Interval(4).as_constant() == 4
    assert i + Interval(-1, 1) == Interval(0, 4)
    assert str(i) == '[1.0, 3.0]'

    try:
        Interval(2, 1)
        assert False, "expected AssertionError (min > max)"
    except AssertionError:
        pass

    box = HyperRectangle.from_bounds_list([(0, 1), (2, 4)])

    assert box.center() == HyperPoint(0.5, 3)
    assert box.contains(HyperPoint(1, 2))
    assert not box.contains(HyperPoint(1.5, 2))
    assert len(box.get_corners()) == 4
    assert [0.0, 4.0] in box.get_corners()

    assert dot_product([1, 2], HyperPoint(3, 4)) == 11

    try:
        dot_product([1, 2, 3], HyperPoint(3, 4))
        assert False, "expected RuntimeError (dimension mismatch)"
    except RuntimeError:
        pass

def test_splitting_element():
    'time and space splitting elements'

    t = SplittingElement.make_time(0.5)

    assert t.kind == SplittingElement.TIME
    assert t.time == 0.5
    assert t.num_dims() is None
    assert str(t) == '(0.5)'

    s = SplittingElement.make_space([1, 2], [0, 1])

    assert s.kind == SplittingElement.SPACE
    assert s.point == HyperPoint(1, 2)
    assert s.num_dims() == 2
    assert str(s) == '(1.0,2.0;0.0,1.0)'

    for bad_time in [0, -1]:
        try:
            SplittingElement.make_time(bad_time)
            assert False, "expected HybridizeError (non-positive time)"
        except HybridizeError:
            pass

    try:
        SplittingElement.make_space([1, 2], [1])
        assert False, "expected HybridizeError (dimension mismatch)"
    except HybridizeError:
        pass

def test_settings_frozen():
    'settings objects can not get new attributes'

    settings = HybridizeSettings([HyperRectangle(Interval(0, 1))], [])

    assert settings.opt == HybridizeSettings.OPT_BASINHOPPING
    assert settings.trigger_mode is None

    try:
        settings.triger_mode = 'on'
        assert False, "expected TypeError (frozen attrs)"
    except TypeError:
        pass

def test_timers():
    'nested timers'

    Timers.reset()

    Timers.tic('total')
    Timers.tic('inner')
    Timers.toc('inner')
    Timers.tic('inner')
    Timers.toc('inner')
    Timers.toc('total')

    top = Timers.top_level_timer

    assert top.name == 'total' and top.num_calls == 1
    assert top.children['inner'].num_calls == 2
    assert top.total_secs >= top.children['inner'].total_secs

    Timers.print_stats()

    Timers.tic('total')

    try:
        Timers.toc('inner')
        assert False, "expected AssertionError (out of order toc)"
    except AssertionError:
        pass

    Timers.reset()
