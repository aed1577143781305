'''
Timer utility functions. Timers are used for performance analysis and
can be refered to statically using Timers.tic(name) and Timers.toc(name)
'''

import time

from termcolor import cprint

class TimerData():
    'Performance timer which can be started with tic() and paused with toc()'

    def __init__(self, name, parent):
        assert parent is None or isinstance(parent, TimerData)

        self.name = name
        self.total_secs = 0
        self.num_calls = 0
        self.last_start_time = None

        self.parent = parent # parent TimerData, None for top-level timers
        self.children = {} # name -> child TimerData, in creation order

    def tic(self):
        'start the timer'

        if self.last_start_time is not None:
            raise RuntimeError("Timer started twice: {}".format(self.name))

        self.num_calls += 1
        self.last_start_time = time.perf_counter()

    def toc(self):
        'stop the timer'

        if self.last_start_time is None:
            raise RuntimeError("Timer stopped without being started: {}".format(self.name))

        self.total_secs += time.perf_counter() - self.last_start_time
        self.last_start_time = None

class Timers():
    '''
    a static class for doing timer messuarements. Use
    Timers.tic(name) and Timers.toc(name) to start and stop timers, use
    print_stats to print time statistics
    '''

    top_level_timer = None

    stack = [] # stack of currently-running timers, parents at the start, children at the end

    def __init__(self):
        raise RuntimeError('Timers is a static class; should not be instantiated')

    @staticmethod
    def reset():
        'reset all timers'

        Timers.top_level_timer = None
        Timers.stack = []

    @staticmethod
    def tic(name):
        'start a timer'

        if not Timers.stack:
            td = Timers.top_level_timer

            if td is None or td.name != name:
                td = Timers.top_level_timer = TimerData(name, None)
        else:
            parent = Timers.stack[-1]
            td = parent.children.get(name)

            if td is None:
                td = parent.children[name] = TimerData(name, parent)

        td.tic()
        Timers.stack.append(td)

    @staticmethod
    def toc(name):
        'stop a timer'

        assert Timers.stack and Timers.stack[-1].name == name, "Out of order toc({}). Running timers: {}".format(
            name, [td.name for td in Timers.stack])

        Timers.stack.pop().toc()

    @staticmethod
    def print_stats():
        'print statistics about performance timers to stdout'

        if Timers.top_level_timer is not None:
            Timers.print_stats_recursive(Timers.top_level_timer, 0)

    @staticmethod
    def print_stats_recursive(td, level):
        'recursively print information about a timer'

        if td.last_start_time is not None:
            raise RuntimeError("Timer was never stopped: {}".format(td.name))

        if td.parent is None or td.parent.total_secs == 0:
            percent_str = ""
            attrs = ['bold']
        else:
            percent = 100 * td.total_secs / td.parent.total_secs
            percent_str = " ({:.1f}%)".format(percent)
            attrs = ['bold'] if percent > 50.0 else None

        cprint("{}{} Time ({} calls): {:.2f} sec{}".format(" " * level * 2, \
            td.name.capitalize(), td.num_calls, td.total_secs, percent_str), None, attrs=attrs)

        for child in td.children.values():
            Timers.print_stats_recursive(child, level + 1)
