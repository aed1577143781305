'''
Standard form conversion for hybrid automata

An automaton in standard form has a single shared initial mode (no dynamics, init condition 'true'), with one
transition to every original initial mode guarded by that mode's initial condition, and a single shared error
mode, with one transition from every original forbidden mode guarded by the forbidden condition.

Passes that rewrite the initial or error behavior work on this form, since then they only need to redirect
transitions.
'''

import sympy

from hybridizer.util import HybridizeError

INIT_MODE_NAME = '_init'
ERROR_MODE_NAME = '_error'

def is_standard_form(ha):
    'is the automaton already in standard form?'

    init_mode = ha.modes.get(INIT_MODE_NAME)
    error_mode = ha.modes.get(ERROR_MODE_NAME)

    return init_mode is not None and error_mode is not None and list(ha.init.keys()) == [INIT_MODE_NAME] and \
        list(ha.forbidden.keys()) == [ERROR_MODE_NAME]

def convert_to_standard_form(ha):
    '''convert the automaton to standard form (in place). Does nothing if it's already in standard form.'''

    if is_standard_form(ha):
        return

    if not ha.init:
        raise HybridizeError("automaton '{}' has no initial states".format(ha.name))

    for name in [INIT_MODE_NAME, ERROR_MODE_NAME]:
        if name in ha.modes:
            raise HybridizeError("cannot convert to standard form; mode name '{}' is reserved".format(name))

    init_mode = ha.new_mode(INIT_MODE_NAME)
    init_mode.flow_dynamics = None

    error_mode = ha.new_mode(ERROR_MODE_NAME)
    error_mode.flow_dynamics = None

    for name, cond in ha.init.items():
        t = ha.new_transition(init_mode, ha.modes[name])
        t.guard = cond

    for name, cond in ha.forbidden.items():
        t = ha.new_transition(ha.modes[name], error_mode)
        t.guard = cond

    ha.init = {INIT_MODE_NAME: sympy.true}
    ha.forbidden = {ERROR_MODE_NAME: sympy.true}

def get_init_mode(ha):
    'get the shared initial mode of an automaton in standard form'

    rv = ha.modes.get(INIT_MODE_NAME)

    if rv is None:
        raise HybridizeError("automaton '{}' is not in standard form (no '{}' mode)".format(ha.name, INIT_MODE_NAME))

    return rv

def get_error_mode(ha):
    'get the shared error mode of an automaton in standard form'

    rv = ha.modes.get(ERROR_MODE_NAME)

    if rv is None:
        raise HybridizeError("automaton '{}' is not in standard form (no '{}' mode)".format(ha.name, ERROR_MODE_NAME))

    return rv
