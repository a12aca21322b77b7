"""
Convergence detection for value iteration sweeps over a grid maze.

Each reported VTable is turned into a greedy policy table and compared with
the previous one. Training stops on the first of:

    CONVERGED       the greedy action sets did not change (stop_on_convergence)
    DELTAPERCENT    the largest relative value change across all cells was
                    <= stop_on_percent_diff
    ITERATIONCOUNT  iterations_max reports have been made
"""
from enum import Enum

import numpy as np

import grid_printer


class DoneCause(Enum):
    CONVERGED = "CONVERGED"
    DELTAPERCENT = "DELTAPERCENT"
    ITERATIONCOUNT = "ITERATIONCOUNT"


def max_diff_percent(Vprev, V):
    """
    Largest |prev - curr| / |prev| across all cells.
    An unchanged cell counts as 0 even when prev is 0; a changed cell whose
    prev is 0 counts as inf.
    """
    diff = np.abs(Vprev - V)
    with np.errstate(divide="ignore", invalid="ignore"):
        percent = np.where(diff == 0, 0.0, diff / np.abs(Vprev))
    return float(percent.max())


class StopTrainingCondition():
    def __init__(self, maze_env, iterations_max, stop_on_convergence=False, stop_on_percent_diff=0.0, debug=False):
        assert iterations_max > 0, "Max iterations must be greater than 0."
        assert stop_on_percent_diff >= 0, "Percent diff must be non-negative."

        self.maze_env = maze_env
        self.iterations_max = iterations_max
        self.stop_on_convergence = stop_on_convergence
        self.stop_on_percent_diff = float(stop_on_percent_diff)
        self.debug = debug

        self.reset()

    def reset(self):
        self._iterations_current = 0
        self._qtable_prev = None
        self._vtable_prev = None
        self._is_done = False
        self._done_cause = None

    def is_done(self):
        return self._is_done

    def get_iteration_count(self):
        return self._iterations_current

    @property
    def done_cause(self):
        return self._done_cause

    def get_termination_str(self):
        assert self._is_done, "Expected to be done but it's not"
        assert self._done_cause is not None, "Done, but no cause set"

        n = self.get_iteration_count()
        if self._done_cause == DoneCause.CONVERGED:
            # Need 1 extra sweep to detect convergence
            return "Convergence reached after %d sweeps (detected while doing sweep %d)" % (n - 1, n)
        if self._done_cause == DoneCause.DELTAPERCENT:
            return "Deltapercent reached during sweep: %d when delta was <= %.2f" % (n, self.stop_on_percent_diff)
        return "Maximum sweep count reached: %d" % n

    def _done(self, cause):
        self._is_done = True
        self._done_cause = cause
        return True

    def report_iteration(self, vtable):
        assert not self._is_done, "A done condition has already been reported. Illegal to call report_iteration afterwards"

        self._iterations_current += 1

        # Equivalence on 2 max tables means convergence
        qtable = self.maze_env.create_qtable_from_vtable(vtable).reduce_to_max_table()

        if self._qtable_prev is not None:
            if self.debug:
                self._print_debug(vtable, qtable)

            if self.stop_on_convergence and self._qtable_prev.is_action_equivalent(qtable):
                return self._done(DoneCause.CONVERGED)

            if max_diff_percent(self._vtable_prev.V, vtable.V) <= self.stop_on_percent_diff:
                return self._done(DoneCause.DELTAPERCENT)

        if self._iterations_current == self.iterations_max:
            return self._done(DoneCause.ITERATIONCOUNT)

        # Snapshot, the caller may keep updating its table in place
        self._qtable_prev = qtable
        self._vtable_prev = vtable.copy()
        return False

    def _print_debug(self, vtable, qtable):
        n = self.get_iteration_count()
        print("\n********************************************************")
        print("***** StopTrainingCondition: BEGIN DEBUG, iteration: %d has been run" % n)
        grid_printer.print_maze_and_table("1. Prev, after iteration: %d" % (n - 1), self.maze_env,
                                          vtable=self._vtable_prev, qtable=self._qtable_prev)
        grid_printer.print_maze_and_table("2. Current, after iteration: %d" % n, self.maze_env,
                                          vtable=vtable, qtable=qtable)
        print("***** StopTrainingCondition: END DEBUG, iteration: %d has been run" % n)
        print("********************************************************\n")
