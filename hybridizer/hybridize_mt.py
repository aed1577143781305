'''
Mixed-triggered hybridization pass (raw version)

Rewrites a nonlinear hybrid automaton so that, starting at time 0 (or when a trigger mode is entered), the state
passes through a chain of new modes, each with affine dynamics plus an error interval that's valid inside the mode's
domain box. Control moves from one chain mode to the next either after a fixed time (time-triggered splitting, using
a countdown timer variable), or when a hyperplane is crossed (space-triggered splitting, using a pseudo-invariant).

Inputs are a list of domains D_1, ..., D_n and a list of splitting elements E_1, ..., E_{n-1}. If there are n
splitting elements instead, after the last one the state transitions back to the original automaton (to every
original mode, only restricted by that mode's invariant).

Leaving the domain box inside a chain mode, or being outside the next domain when a splitting element fires, leads to
the shared error mode.
'''

import sympy
from termcolor import cprint

from hybridizer.util import Freezable, HybridizeError
from hybridizer.settings import HybridizeSettings
from hybridizer.hybrid_automaton import HybridAutomaton, ExpressionInterval
from hybridizer.geometry import HyperRectangle, dot_product
from hybridizer.splitting import SplittingElement
from hybridizer.timerutil import Timers
from hybridizer.affine_optimize import OptimizationParams, create_affine_dynamics
from hybridizer import standard_form
from hybridizer import symbolic

TT_VARIABLE = '_tt' # the time-trigger variable
CHAIN_MODE_BASE = '_hybridized'

class HybridizeMTRawPass(Freezable):
    'the mixed-triggered hybridization pass. initialize and call run()'

    def __init__(self, ha, settings):
        assert isinstance(ha, HybridAutomaton)
        assert isinstance(settings, HybridizeSettings)

        self.ha = ha # pylint: disable=invalid-name
        self.settings = settings

        self.state_variables = None # variables before the time-trigger variable was added

        self.mode_chain = [] # the constructed modes, in order
        self.mode_chain_invariants = [] # the HyperRectangle for each mode in mode_chain
        self.chain_entry_resets = [] # the timer reset value upon entering each mode in mode_chain (or None)
        self.chain_mode_count = 0

        self.nominal_dynamics = None # variable name -> ExpressionInterval, copied into each new mode
        self.error_mode = None
        self.init_mode = None

        self.freeze_attrs()

    def print_normal(self, msg):
        'print function for STDOUT_NORMAL and above'

        if self.settings.stdout >= HybridizeSettings.STDOUT_NORMAL:
            cprint(msg, self.settings.stdout_colors[HybridizeSettings.STDOUT_NORMAL])

    def print_verbose(self, msg):
        'print function for STDOUT_VERBOSE and above'

        if self.settings.stdout >= HybridizeSettings.STDOUT_VERBOSE:
            cprint(msg, self.settings.stdout_colors[HybridizeSettings.STDOUT_VERBOSE])

    def print_debug(self, msg):
        'print function for STDOUT_DEBUG and above'

        if self.settings.stdout >= HybridizeSettings.STDOUT_DEBUG:
            cprint(msg, self.settings.stdout_colors[HybridizeSettings.STDOUT_DEBUG])

    def run(self):
        '''run the pass, modifying the automaton in place

        parameters are checked before any modification. If an exception occurs after that, the automaton is left in
        a partially-modified state
        '''

        Timers.reset()
        Timers.tic('hybridize')

        self.check_params()
        self.nominal_dynamics = self.find_nominal_dynamics()

        Timers.tic('standard form')
        standard_form.convert_to_standard_form(self.ha)
        self.error_mode = standard_form.get_error_mode(self.ha)
        self.init_mode = standard_form.get_init_mode(self.ha)
        Timers.toc('standard form')

        self.make_time_trigger_variable()

        Timers.tic('construct chain')
        self.construct_chain()
        Timers.toc('construct chain')

        self.print_normal("Constructed chain of {} modes, running '{}' optimization".format(
            len(self.mode_chain), self.settings.opt))

        Timers.tic('optimization')
        run_optimization(self.settings.opt, self.mode_chain, self.mode_chain_invariants, self.settings)
        Timers.toc('optimization')

        for mode in self.mode_chain:
            mat = get_affine_dynamics_mat(mode)
            self.print_debug("Affine dynamics of '{}' (variables {} + affine): {}".format(
                mode.name, self.ha.variables, mat))

        self.redirect_start()

        Timers.toc('hybridize')

        self.print_normal("Hybridization done: {}".format(self.ha))

        if self.settings.print_timers:
            Timers.print_stats()

    def check_params(self):
        'check the pass parameters, raising HybridizeError on errors'

        domains = self.settings.domains
        split_elements = self.settings.split_elements

        if len(split_elements) != len(domains) and len(split_elements) != len(domains) - 1:
            raise HybridizeError("Expected either the same number of split elements and domains, or one extra " + \
                "domain. Got {} split elements and {} domains.".format(len(split_elements), len(domains)))

        if not domains:
            raise HybridizeError("expected at least one domain")

        if self.settings.opt not in HybridizeSettings.OPT_METHODS:
            raise HybridizeError("unknown optimization method: '{}', expected one of {}".format(
                self.settings.opt, HybridizeSettings.OPT_METHODS))

        num_dims = len(self.ha.variables)

        for se in split_elements:
            if se.kind == SplittingElement.TIME:
                if se.time <= 0:
                    raise HybridizeError("time-triggered splitting element must be positive: {}".format(se))
            elif se.kind == SplittingElement.SPACE:
                if se.num_dims() != num_dims or len(se.gradient) != num_dims:
                    raise HybridizeError("space-triggered splitting element expected to have {} dimensions: {}".format(
                        num_dims, se))

                if all(g == 0 for g in se.gradient):
                    raise HybridizeError("space-triggered splitting element has zero gradient: {}".format(se))
            else:
                raise HybridizeError("unknown splitting element kind: {}".format(se.kind))

        for hr in domains:
            assert isinstance(hr, HyperRectangle)

            if len(hr.dims) != num_dims:
                raise HybridizeError("domain should have {} dimensions: {}".format(num_dims, hr))

        if self.settings.trigger_mode is not None and self.settings.trigger_mode not in self.ha.modes:
            raise HybridizeError("trigger mode '{}' not found in automaton".format(self.settings.trigger_mode))

        if TT_VARIABLE in self.ha.variables:
            raise HybridizeError("time-triggered variable already exists: {}".format(TT_VARIABLE))

    def find_nominal_dynamics(self):
        '''find the (nonlinear) dynamics which the chain modes approximate

        this is the trigger mode's dynamics, or otherwise the dynamics of the initial modes (which must all agree)
        '''

        if self.settings.trigger_mode is not None:
            sources = [self.ha.modes[self.settings.trigger_mode]]
        elif standard_form.is_standard_form(self.ha):
            init_mode = standard_form.get_init_mode(self.ha)
            sources = [t.to_mode for t in init_mode.transitions]
        else:
            sources = [self.ha.modes[name] for name in self.ha.init]

        sources = [m for m in sources if m.flow_dynamics is not None]

        if not sources:
            raise HybridizeError("no mode with dynamics to hybridize (trigger mode: {})".format(
                self.settings.trigger_mode))

        first = sources[0]

        for m in sources[1:]:
            if m.flow_dynamics != first.flow_dynamics:
                raise HybridizeError("initial modes '{}' and '{}' have different dynamics; use a trigger mode".format(
                    first.name, m.name))

        self.print_verbose("Nominal dynamics from mode '{}': {}".format(first.name, first.flow_dynamics))

        return {var: ei.copy() for var, ei in first.flow_dynamics.items()}

    def make_time_trigger_variable(self):
        '''add the time-triggered variable, with derivative 0 in every existing mode, initialized to zero'''

        self.state_variables = list(self.ha.variables)
        self.ha.add_variable(TT_VARIABLE)

        for mode in self.ha.modes.values():
            if mode.flow_dynamics is not None:
                mode.flow_dynamics[TT_VARIABLE] = ExpressionInterval(0)

        tt_zero = sympy.Eq(symbolic.make_symbol(TT_VARIABLE), 0)

        for t in self.ha.transitions:
            if t.from_mode is self.init_mode:
                t.guard = symbolic.conjoin(t.guard, tt_zero)

    def construct_chain(self):
        'populate mode_chain'

        domains = self.settings.domains
        split_elements = self.settings.split_elements

        previous_guard = None
        previous_mode = None

        for i, domain in enumerate(domains):
            cur_mode = self.make_mode_in_chain(domain)

            # add a transition based on previous_guard
            if previous_guard is not None:
                self.add_chain_transition(previous_mode, cur_mode, previous_guard, domain)
                previous_guard = None

            reset_val = None

            # setup previous_guard for the next mode
            if i < len(split_elements):
                e = split_elements[i]

                if e.kind == SplittingElement.TIME:
                    previous_guard = self.make_time_triggered_guard(cur_mode)
                    reset_val = e.time
                elif e.kind == SplittingElement.SPACE:
                    previous_guard = self.make_space_triggered_guard(cur_mode, e.point, e.gradient)
                    reset_val = 0
                else:
                    raise HybridizeError("unknown splitting element kind: {}".format(e.kind))

                self.add_time_reset_to_incoming_transitions(cur_mode, reset_val)

            self.chain_entry_resets.append(reset_val)
            previous_mode = cur_mode

        if previous_guard is not None:
            self.redirect_end(previous_mode, previous_guard)

    def add_time_reset_to_incoming_transitions(self, mode, val):
        'reset the timer to val on every transition into mode'

        for t in self.ha.transitions:
            if t.to_mode is mode:
                t.reset[TT_VARIABLE] = ExpressionInterval(val)

    def get_non_chain_modes(self):
        'get the modes of the original automaton (excluding the shared init and error modes)'

        rv = []

        for mode in self.ha.modes.values():
            if mode is self.error_mode or mode is self.init_mode:
                continue

            if mode in self.mode_chain:
                continue

            rv.append(mode)

        return rv

    def redirect_start(self):
        '''redirect transitions into the first mode of the chain

        without a trigger mode, these are the transitions out of the initial mode, otherwise they are the
        transitions into the trigger mode (other than from the chain itself)
        '''

        first_mode = self.mode_chain[0]
        first_box = self.mode_chain_invariants[0]
        first_reset = self.chain_entry_resets[0]
        trigger_mode = self.settings.trigger_mode

        for t in list(self.ha.transitions):
            if trigger_mode is None:
                redirect = t.from_mode is self.init_mode and t.to_mode is not self.error_mode
            else:
                redirect = t.to_mode.name == trigger_mode and t.from_mode not in self.mode_chain

            if not redirect:
                continue

            self.print_verbose("Redirecting transition {} to chain start '{}'".format(t, first_mode.name))
            t.to_mode = first_mode

            if first_reset is not None:
                t.reset[TT_VARIABLE] = ExpressionInterval(first_reset)

            self.add_error_transitions_at_guard(t.from_mode, t.guard, first_box)

    def redirect_end(self, last_mode, guard):
        '''redirect the end of the chain back to the original automaton

        last_mode is the last mode in the chain
        guard is the condition at which to leave it
        '''

        for mode in self.get_non_chain_modes():
            # this could be optimized by checking satisfiability of guard and mode.invariant
            t = self.ha.new_transition(last_mode, mode)
            t.guard = symbolic.copy_expression(guard)

            self.print_debug("Added chain exit transition {} with guard {}".format(t, t.guard))

    def add_chain_transition(self, previous_mode, cur_mode, previous_guard, domain):
        'create a transition within the chain, plus the error transitions when the next domain is not entered'

        t = self.ha.new_transition(previous_mode, cur_mode)
        t.guard = previous_guard

        self.add_error_transitions_at_guard(previous_mode, previous_guard, domain)

    def add_error_transitions_at_guard(self, mode, guard, next_box):
        '''add transitions to the error mode, enabled when the guard is true but the state is outside of next_box'''

        for le, ge in self.make_box_violations(next_box):
            t = self.ha.new_transition(mode, self.error_mode)
            t.guard = symbolic.conjoin(symbolic.copy_expression(guard), le)

            t = self.ha.new_transition(mode, self.error_mode)
            t.guard = symbolic.conjoin(symbolic.copy_expression(guard), ge)

    def add_mode_error_transitions(self, mode, box):
        'add transitions to the error mode on each side of the box for a given mode'

        for le, ge in self.make_box_violations(box):
            self.ha.new_transition(mode, self.error_mode).guard = le
            self.ha.new_transition(mode, self.error_mode).guard = ge

    def make_box_violations(self, box):
        '''get the conditions for leaving the box, a list of (var <= min, var >= max) for each non-timer variable'''

        rv = []

        for var, interval in zip(self.state_variables, box.dims):
            v = symbolic.make_symbol(var)

            rv.append((sympy.Le(v, sympy.Float(interval.min)), sympy.Ge(v, sympy.Float(interval.max))))

        return rv

    def make_time_triggered_guard(self, mode):
        '''make the outgoing guard for this mode, which is time-triggered (the timer counts down to zero)'''

        mode.flow_dynamics[TT_VARIABLE] = ExpressionInterval(-1)

        return sympy.Eq(symbolic.make_symbol(TT_VARIABLE), 0)

    def make_space_triggered_guard(self, mode, pt, gradient):
        '''make the outgoing guard for this mode, which is space-triggered. Also, update the invariant to
        reflect the guard.'''

        mode.flow_dynamics[TT_VARIABLE] = ExpressionInterval(0)

        mode.conjoin_invariant(self.make_pi_invariant(pt, gradient))

        return self.make_pi_guard(pt, gradient)

    def make_pi_invariant(self, pt, gradient):
        'the pseudo-invariant at the given point with the given gradient: stay on the near side of the hyperplane'

        value = dot_product(gradient, pt)

        return symbolic.make_linear_inequality(self.state_variables, gradient, '<=', value)

    def make_pi_guard(self, pt, gradient):
        'the guard for the pseudo-invariant at the given point with the given gradient: cross the hyperplane'

        value = dot_product(gradient, pt)

        return symbolic.make_linear_inequality(self.state_variables, gradient, '>=', value)

    def make_mode_in_chain(self, domain):
        '''create a mode in the chain, with the domain box as the invariant

        returns the constructed mode
        '''

        mode = self.ha.new_mode(self.next_mode_name())

        # store mode and rectangle for optimization
        self.mode_chain.append(mode)
        self.mode_chain_invariants.append(domain)

        # nominal dynamics here, affine dynamics are assigned during optimization
        mode.flow_dynamics = {var: ei.copy() for var, ei in self.nominal_dynamics.items()}
        mode.flow_dynamics[TT_VARIABLE] = ExpressionInterval(0)

        mode.invariant = sympy.Ge(symbolic.make_symbol(TT_VARIABLE), 0)
        self.add_rectangle_invariant(mode, domain)

        self.add_mode_error_transitions(mode, domain)

        self.print_verbose("Created chain mode '{}' with domain {}".format(mode.name, domain))

        return mode

    def add_rectangle_invariant(self, mode, box):
        'conjoin the box constraints (excluding the timer) to the mode invariant'

        for var, interval in zip(self.state_variables, box.dims):
            v = symbolic.make_symbol(var)
            ge = sympy.Ge(v, sympy.Float(interval.min))
            le = sympy.Le(v, sympy.Float(interval.max))

            mode.conjoin_invariant(sympy.And(ge, le))

    def next_mode_name(self):
        'get a fresh, deterministic name for the next chain mode'

        while True:
            self.chain_mode_count += 1
            name = CHAIN_MODE_BASE + str(self.chain_mode_count)

            if name not in self.ha.modes:
                break

        return name

def run_optimization(opt, mode_chain, rects, settings=None):
    '''do affine approximation over all the modes in the chain. This modifies the flow dynamics for each mode.

    opt is the optimization method, one of HybridizeSettings.OPT_METHODS
    mode_chain is the list of modes in the chain
    rects is the box invariant for each mode in the chain
    '''

    if not mode_chain:
        raise HybridizeError("run_optimization was called with an empty mode chain")

    assert len(mode_chain) == len(rects), "expected one box per mode in the chain"

    params_list = []

    for mode, hr in zip(mode_chain, rects):
        op = OptimizationParams()
        op.original = mode.flow_dynamics

        # the timer is not part of the boxes (and no derivative depends on it)
        for var, interval in zip(mode.ha.variables, hr.dims):
            op.bounds[var] = interval

        params_list.append(op)

    create_affine_dynamics(opt, params_list, settings)

    for mode, op in zip(mode_chain, params_list):
        mode.flow_dynamics = op.result

def get_affine_dynamics_mat(mode):
    '''get the dynamics of a hybridized mode as a matrix with an affine column, in the automaton's variable order

    raises HybridizeError if the dynamics are not affine (for example, before optimization)
    '''

    variables = mode.ha.variables
    derivatives = []

    for var in variables:
        ei = mode.flow_dynamics.get(var)
        derivatives.append(0 if ei is None else ei.expression)

    try:
        rv = symbolic.make_dynamics_mat(variables, derivatives, has_affine_variable=True)
    except RuntimeError as e:
        raise HybridizeError("dynamics of mode '{}' are not affine: {}".format(mode.name, e))

    return rv
