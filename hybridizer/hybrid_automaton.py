'''
Hybrid Automaton definition with symbolic (possibly nonlinear) dynamics

Modes carry flow dynamics as a map from variable name to an ExpressionInterval, meaning
x' in expression + interval. Guards, invariants and resets are sympy expressions.
'''

import sympy

from hybridizer.util import Freezable, HybridizeError
from hybridizer.geometry import Interval
from hybridizer import symbolic

class ExpressionInterval(Freezable):
    'an expression plus an (optional) additive uncertainty interval'

    def __init__(self, expression, interval=None):
        if isinstance(expression, (int, float)):
            expression = sympy.Float(expression)

        assert interval is None or isinstance(interval, Interval)

        self.expression = expression
        self.interval = interval

        self.freeze_attrs()

    def copy(self):
        'make a copy of this ExpressionInterval'

        i = None if self.interval is None else Interval(self.interval.min, self.interval.max)

        return ExpressionInterval(symbolic.copy_expression(self.expression), i)

    def __eq__(self, other):
        return isinstance(other, ExpressionInterval) and self.interval == other.interval and \
            symbolic.expressions_equal(self.expression, other.expression)

    def __hash__(self):
        return hash(self.expression)

    def __str__(self):
        rv = str(self.expression)

        if self.interval is not None:
            rv += " + " + str(self.interval)

        return rv

    def __repr__(self):
        return "ExpressionInterval({}, {})".format(repr(self.expression), repr(self.interval))

class Mode(Freezable):
    '''
    A single mode of a hybrid automaton with dynamics x' in f(x) + I

    If flow_dynamics is None, the mode has no continuous dynamics (for example the shared initial and error modes
    of an automaton in standard form).
    '''

    def __init__(self, ha, name, mode_id):
        assert isinstance(ha, HybridAutomaton)

        self.ha = ha # pylint: disable=invalid-name
        self.name = name
        self.mode_id = mode_id # unique int identified for this mode

        self.flow_dynamics = {} # variable name -> ExpressionInterval
        self.invariant = sympy.true

        self.transitions = [] # outgoing Transition objects

        self.freeze_attrs()

    def conjoin_invariant(self, expr):
        'strengthen the invariant by conjoining it with expr'

        self.invariant = symbolic.conjoin(self.invariant, expr)

    def set_dynamics(self, der_dict):
        '''sets the flow dynamics from a map of variable name -> expression (string, sympy, or ExpressionInterval)'''

        self.flow_dynamics = {}

        for var, der in der_dict.items():
            if not isinstance(der, ExpressionInterval):
                der = ExpressionInterval(symbolic.parse_expression(der, self.ha.variables))

            self.flow_dynamics[var] = der

    def __str__(self):
        return '[Mode {}, invariant: {}, dynamics: {}]'.format(self.name, self.invariant, \
            "None" if self.flow_dynamics is None else \
            ", ".join(["{}' = {}".format(var, ei) for var, ei in self.flow_dynamics.items()]))

    def __repr__(self):
        return str(self)

class Transition(Freezable):
    'A transition of a hybrid automaton'

    def __init__(self, ha, from_mode, to_mode, name=''):
        assert isinstance(ha, HybridAutomaton)
        self.ha = ha # pylint: disable=invalid-name
        self.from_mode = from_mode
        self.to_mode = to_mode

        self.guard = sympy.true
        self.reset = {} # variable name -> ExpressionInterval; missing variables are unchanged

        self.name = name

        from_mode.transitions.append(self)

        self.freeze_attrs()

    def __str__(self):
        s = self.from_mode.name + " -> " + self.to_mode.name

        if self.name:
            s += f" ({self.name})"

        return s

    def __repr__(self):
        return str(self) + f" [guard: {self.guard}]"

class HybridAutomaton(Freezable):
    'The hybrid automaton'

    def __init__(self, name='HybridAutomaton'):
        self.name = name
        self.variables = [] # ordered variable names
        self.modes = {} # map name -> mode
        self.transitions = []

        self.init = {} # map mode name -> initial condition expression
        self.forbidden = {} # map mode name -> forbidden condition expression

        self.next_mode_id = 0

        self.freeze_attrs()

    def add_variable(self, name):
        '''declare a new variable'''

        if name in self.variables:
            raise HybridizeError("variable '{}' already exists in automaton '{}'".format(name, self.name))

        self.variables.append(name)

    def new_mode(self, name):
        '''add a mode'''

        if name in self.modes:
            raise HybridizeError("Mode with name '{}' already exists in the automaton".format(name))

        m = Mode(self, name, self.next_mode_id)
        self.next_mode_id += 1
        self.modes[m.name] = m

        return m

    def new_transition(self, from_mode, to_mode, name=None):
        '''add a transition'''

        assert self.modes.get(from_mode.name) is from_mode, "from_mode '{}' is not in automaton".format(from_mode.name)
        assert self.modes.get(to_mode.name) is to_mode, "to_mode '{}' is not in automaton".format(to_mode.name)

        t = Transition(self, from_mode, to_mode, name=name)
        self.transitions.append(t)

        return t

    def remove_mode(self, mode):
        '''remove a mode, and all transitions to or from it'''

        del self.modes[mode.name]

        self.transitions = [t for t in self.transitions if t.from_mode is not mode and t.to_mode is not mode]

        for m in self.modes.values():
            m.transitions = [t for t in m.transitions if t.to_mode is not mode]

        self.init.pop(mode.name, None)
        self.forbidden.pop(mode.name, None)

    def validate(self):
        '''check that transitions refer to modes in this automaton, and that every expression only uses declared
        variables. Raises HybridizeError on failure.'''

        declared = set(self.variables)

        if len(declared) != len(self.variables):
            raise HybridizeError("duplicate variable names in automaton: {}".format(self.variables))

        def check_expression(e, where):
            'check that the expression only refers to declared variables'

            names = {s.name for s in sympy.sympify(e).free_symbols}
            unknown = names - declared

            if unknown:
                raise HybridizeError("{} refers to undeclared variables {}".format(where, sorted(unknown)))

        for mode in self.modes.values():
            check_expression(mode.invariant, "invariant of mode '{}'".format(mode.name))

            if mode.flow_dynamics is not None:
                for var, ei in mode.flow_dynamics.items():
                    if var not in declared:
                        raise HybridizeError("mode '{}' has dynamics for undeclared variable '{}'".format(
                            mode.name, var))

                    check_expression(ei.expression, "dynamics of {} in mode '{}'".format(var, mode.name))

        for t in self.transitions:
            for m in [t.from_mode, t.to_mode]:
                if self.modes.get(m.name) is not m:
                    raise HybridizeError("transition {} refers to mode '{}' which is not in the automaton".format(
                        t, m.name))

            check_expression(t.guard, "guard of transition {}".format(t))

            for var, ei in t.reset.items():
                if var not in declared:
                    raise HybridizeError("transition {} resets undeclared variable '{}'".format(t, var))

                check_expression(ei.expression, "reset of {} in transition {}".format(var, t))

        for name, cond in list(self.init.items()) + list(self.forbidden.items()):
            if name not in self.modes:
                raise HybridizeError("initial or forbidden condition refers to unknown mode '{}'".format(name))

            check_expression(cond, "condition in mode '{}'".format(name))

    def __str__(self):
        return "[HybridAutomaton {}: {} variables, {} modes, {} transitions]".format(
            self.name, len(self.variables), len(self.modes), len(self.transitions))
