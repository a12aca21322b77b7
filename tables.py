"""
Tabular value stores for a grid maze.

    VTable
        (rows, cols) array of state values V(s).
    QTable
        (rows, cols, A) array of action values Q(s, a), indexed by ``Action``.
        An action that is not present in a cell is stored as NaN. A terminal
        cell has no actions at all. Reduced (policy) tables keep only the
        greedy actions of each cell.

    Both are independent of any maze once constructed. Queries taking a
    ``state`` only use its ``row``, ``col`` and ``is_visitable`` attributes.
"""
from collections import namedtuple
from enum import IntEnum

import numpy as np


class Action(IntEnum):
    LEFT = 0
    UP = 1
    DOWN = 2
    RIGHT = 3


ActionValue = namedtuple("ActionValue", ["action", "value"])


def softmax(x):
    e = np.exp(np.asarray(x, dtype=float))
    return e / e.sum()


class VTable():
    def __init__(self, row_count, col_count, initial=0.0):
        assert row_count > 0 and col_count > 0, "VTable must have at least 1 row and 1 column"
        self.V = np.full((row_count, col_count), float(initial))

    @classmethod
    def from_array(cls, values):
        values = np.array(values, dtype=float)
        if values.ndim != 2:
            raise ValueError("VTable values must be 2-dimensional, got shape %s" % (values.shape,))
        vtable = cls(*values.shape)
        vtable.V[:] = values
        return vtable

    @property
    def shape(self):
        return self.V.shape

    @property
    def row_count(self):
        return self.V.shape[0]

    @property
    def col_count(self):
        return self.V.shape[1]

    def __getitem__(self, pos):
        return self.V[pos]

    def __setitem__(self, pos, value):
        self.V[pos] = value

    def copy(self):
        return VTable.from_array(self.V)


class QTable():
    def __init__(self, row_count, col_count):
        assert row_count > 0 and col_count > 0, "QTable must have at least 1 row and 1 column"
        # All cells start out terminal
        self.Q = np.full((row_count, col_count, len(Action)), np.nan)

    @property
    def shape(self):
        return self.Q.shape[:2]

    @property
    def row_count(self):
        return self.Q.shape[0]

    @property
    def col_count(self):
        return self.Q.shape[1]

    def copy(self):
        qtable = QTable(self.row_count, self.col_count)
        qtable.Q[:] = self.Q
        return qtable

    def is_terminal(self, row, col):
        return bool(np.isnan(self.Q[row, col]).all())

    def set_terminal(self, row, col):
        self.Q[row, col, :] = np.nan

    def action_values(self, row, col):
        """
        List of ActionValue present at (row, col), in Action order.
        Empty for a terminal cell.
        """
        return [ActionValue(a, float(self.Q[row, col, a])) for a in Action if not np.isnan(self.Q[row, col, a])]

    def actions(self, row, col):
        return {av.action for av in self.action_values(row, col)}

    def __getitem__(self, pos):
        row, col, action = pos
        assert not self.is_terminal(row, col), "Operation not supported for terminal state (%d,%d)" % (row, col)
        value = self.Q[row, col, action]
        assert not np.isnan(value), "Action %s not present in state (%d,%d)" % (Action(action).name, row, col)
        return float(value)

    def __setitem__(self, pos, value):
        row, col, action = pos
        assert not self.is_terminal(row, col), "Operation not supported for terminal state (%d,%d)" % (row, col)
        assert not np.isnan(self.Q[row, col, action]), \
            "Action %s not present in state (%d,%d)" % (Action(action).name, row, col)
        self.Q[row, col, action] = value

    def get_max_value(self, state):
        if not state.is_visitable:
            return 0.0
        return float(np.nanmax(self._values_of(state)))

    def get_max_action_values(self, state, break_ties_arbitrarily=False, rng=None):
        if not state.is_visitable:
            return []
        values = self._values_of(state)
        max_value = np.nanmax(values)
        max_avl = [ActionValue(a, float(values[a])) for a in Action if values[a] == max_value]
        if break_ties_arbitrarily:
            assert rng is not None, "Breaking ties requires the caller's random generator"
            rng = np.random.default_rng(rng)
            max_avl = [max_avl[rng.integers(len(max_avl))]]
        return max_avl

    def _values_of(self, state):
        assert not self.is_terminal(state.row, state.col), \
            "Visitable state (%d,%d) has no action values" % (state.row, state.col)
        return self.Q[state.row, state.col]

    def is_action_equivalent(self, qtable):
        """
        True if every cell holds the same set of actions in both tables.
        Values are ignored.
        """
        if self.shape != qtable.shape:
            return False
        return bool(np.array_equal(np.isnan(self.Q), np.isnan(qtable.Q)))

    def normalize_2_probability_distribution(self):
        rv = self.copy()
        for row in range(self.row_count):
            for col in range(self.col_count):
                if self.is_terminal(row, col):
                    continue
                values = self.Q[row, col]
                assert not np.isnan(values).any(), \
                    "Softmax requires all actions to be present in state (%d,%d)" % (row, col)
                rv.Q[row, col] = softmax(values)
        return rv

    def reduce_to_max_table(self, break_ties_arbitrarily=False, adjust_probability_to_1=True, rng=None):
        """
        Keep only the action(s) with the maximum value in each non-terminal
        cell. With break_ties_arbitrarily a single one of them is kept at
        random, drawn from rng, which must then be given. With
        adjust_probability_to_1 the kept values are set to 1 / (number kept)
        so each cell is a uniform distribution.
        """
        if break_ties_arbitrarily:
            assert rng is not None, "Breaking ties requires the caller's random generator"
            rng = np.random.default_rng(rng)

        rv = QTable(self.row_count, self.col_count)
        for row in range(self.row_count):
            for col in range(self.col_count):
                if self.is_terminal(row, col):
                    continue
                values = self.Q[row, col]
                kept = np.flatnonzero(values == np.nanmax(values))
                if break_ties_arbitrarily:
                    kept = kept[[rng.integers(len(kept))]]
                if adjust_probability_to_1:
                    rv.Q[row, col, kept] = 1.0 / len(kept)
                else:
                    rv.Q[row, col, kept] = values[kept]
        return rv
