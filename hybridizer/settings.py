'''
Hybridization Settings File
'''

from hybridizer.util import Freezable

class HybridizeSettings(Freezable): # pylint: disable=too-few-public-methods
    'Settings for the mixed-triggered hybridization pass'

    STDOUT_NONE, STDOUT_NORMAL, STDOUT_VERBOSE, STDOUT_DEBUG = range(4)

    OPT_BASINHOPPING = 'basinhopping' # linearize at center, bound the error with global search
    OPT_INTERVAL = 'interval' # linearize at center, bound the error with interval arithmetic
    OPT_METHODS = [OPT_BASINHOPPING, OPT_INTERVAL]

    def __init__(self, domains, split_elements):
        self.domains = list(domains) # list of HyperRectangle, one per chain mode
        self.split_elements = list(split_elements) # list of SplittingElement, len(domains) or len(domains) - 1

        self.opt = HybridizeSettings.OPT_BASINHOPPING
        self.trigger_mode = None # name of the mode whose entry starts the chain; None means start at time 0

        self.stdout = HybridizeSettings.STDOUT_NORMAL
        self.stdout_colors = [None, "white", "blue", "yellow"] # colors for each level of printing
        self.print_timers = False # print timer statistics after the pass?

        # for deterministic global search sample points
        self.random_seed = 0
        self.basinhopping_iterations = 50 # number of basinhopping iterations per error bound

        self.freeze_attrs()
