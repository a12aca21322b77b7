"""
Class for specifying a grid maze as a Markov Decision Process.

    The maze is a fixed rectangular grid of ``State`` cells. Moving into a cell
    is resolved through that cell's jump specifications, which may accept the
    agent, bounce it back, or teleport it elsewhere with some probability.

    Parameters
    ----------
    row_count, col_count : int
        Size of the grid. Both must be greater than 0.
    reward_spaces : float
        Reward of the SPACE cells the grid is initially filled with.
    reward_bounce_back : float
        Reward received whenever a move is rejected by the outer border.
        A BounceBack jump keeps the agent in place with the reward of the
        cell it came from.
    rng : int or numpy.random.Generator
        Source of randomness for ``step``. A seed gives reproducible runs.

    Attributes
    ----------
    maze : list of lists of State
        The grid, indexed maze[row][col].

    Methods
    -------
    reset()
        Returns the single start state of the maze.
    step(state, action)
        Sample a (reward, next state) pair from the outcome distribution.
    probe_action_with_probabilities(state, action)
        Full list of (probability, reward, next state) outcomes.
    create_qtable_from_uniform(distribution_total)
        QTable with every action of every non-end cell set to total / 4.
    create_qtable_from_vtable(vtable)
        QTable from a one-step deterministic lookahead over a VTable.
    bellman_update(vtable, discount)
        One sweep of value iteration using the full outcome distribution.
    value_iteration(stop_condition, discount)
        Sweeps until the stop condition reports done.

"""
from collections import namedtuple
from dataclasses import dataclass
from enum import Enum

import numpy as np

from tables import Action, QTable, VTable


class JumpKind(Enum):
    WELCOME = "Welcome"        # entry is accepted
    BOUNCEBACK = "BounceBack"  # entry is rejected, e.g. a wall
    RELATIVE = "Relative"      # teleport to an offset from the entered cell
    ABSOLUTE = "Absolute"      # teleport to a fixed cell


@dataclass(frozen=True)
class JumpSpecification:
    kind: JumpKind
    row: int = 0
    col: int = 0

    @classmethod
    def welcome(cls):
        return cls(JumpKind.WELCOME)

    @classmethod
    def bounce_back(cls):
        return cls(JumpKind.BOUNCEBACK)

    @classmethod
    def relative(cls, row, col):
        return cls(JumpKind.RELATIVE, row, col)

    @classmethod
    def absolute(cls, row, col):
        return cls(JumpKind.ABSOLUTE, row, col)

    def __str__(self):
        if self.kind in (JumpKind.RELATIVE, JumpKind.ABSOLUTE):
            return "%s (%d,%d)" % (self.kind.value, self.row, self.col)
        return self.kind.value


WELCOME = JumpSpecification.welcome()
BOUNCE_BACK = JumpSpecification.bounce_back()


class State:
    """
    A single maze cell.

    jump_probabilities is a list of (JumpSpecification, probability) pairs
    describing what happens when an agent attempts to enter the cell. An
    empty list means Welcome with probability 1.0.
    row and col are -1 until the cell is placed in a GridMazeEnvironment.
    """

    def __init__(self, kind, reward, jump_probabilities=None, is_visitable=True, is_start=False, is_end=False):
        self.kind = kind
        self.reward = float(reward)
        self.is_visitable = is_visitable  # False if there is no V or Q value for this state
        self.is_start = is_start
        self.is_end = is_end
        self.row = -1
        self.col = -1
        self._jump_probabilities = []
        self.set_jump_probabilities(jump_probabilities or [])

    @property
    def jump_probabilities(self):
        return self._jump_probabilities

    @jump_probabilities.setter
    def jump_probabilities(self, jump_probabilities):
        self.set_jump_probabilities(jump_probabilities)

    def set_jump_probabilities(self, jump_probabilities):
        jump_probabilities = [(js, float(p)) for js, p in jump_probabilities]
        if len(jump_probabilities) > 0:
            total = sum(p for _, p in jump_probabilities)
            assert np.isclose(total, 1.0), \
                "Jump probabilities must sum to 1.0, got %s for %s" % (total, self.kind)
        self._jump_probabilities = jump_probabilities

    def is_100_percent_welcoming_state(self):
        jsl = self._jump_probabilities
        if len(jsl) == 0:
            return True
        if len(jsl) == 1 and jsl[0][0] == WELCOME:
            assert np.isclose(jsl[0][1], 1.0), "Single welcome requires 1.0 probability, got: %s" % jsl[0][1]
            return True
        return False

    @property
    def position(self):
        return self.row, self.col

    def __repr__(self):
        return "State(%s, reward=%s, row=%d, col=%d)" % (self.kind, self.reward, self.row, self.col)


# Preset cell kinds

def SPACE(reward=-1.0):
    return State("SPACE", reward, [], is_visitable=True)

def START(reward=-1.0):
    return State("START", reward, [], is_visitable=True, is_start=True)

def END(reward=0.0):
    return State("GOAL", reward, [(WELCOME, 1.0)], is_visitable=False, is_end=True)

def HOLE(reward=-100.0):
    return State("HOLE", reward, [(WELCOME, 1.0)], is_visitable=False, is_end=True)

def WALL(reward=-1.0):
    return State("WALL", reward, [(BOUNCE_BACK, 1.0)], is_visitable=False)

def BOUNCEBACK(reward=-1.0):
    return State("WALL", reward, [(BOUNCE_BACK, 1.0)], is_visitable=False)


# One possible outcome of taking an action
Transition = namedtuple("Transition", ["prob", "reward", "state"])


def random_number(probabilities, rng):
    """
    Index drawn with weights ``probabilities``, which need not sum to 1.
    random_number([1.0, 2.0], rng) returns 0 with probability 1/3 and 1 with 2/3.
    """
    total = sum(probabilities)
    rnd = rng.uniform(0.0, total)

    accum = 0.0
    for i, p in enumerate(probabilities):
        accum += p
        if rnd < accum:
            return i

    # floating point inaccuracies
    return len(probabilities) - 1


class GridMazeEnvironment():
    def __init__(self, row_count, col_count, reward_spaces=-1.0, reward_bounce_back=-1.0, rng=None):
        assert row_count > 0, "Maze must have at least 1 row"
        assert col_count > 0, "Maze must have at least 1 column"

        self.reward_bounce_back = float(reward_bounce_back)
        self.rng = np.random.default_rng(rng)

        self.maze = [[SPACE(reward_spaces) for _ in range(col_count)] for _ in range(row_count)]
        self._row_count = len(self.maze)
        self._col_count = len(self.maze[0])
        for r, row in enumerate(self.maze):
            assert len(row) == self._col_count, "All rows in maze must be of size %d" % self._col_count
            for c, state in enumerate(row):
                state.row, state.col = r, c

    @property
    def row_count(self):
        return self._row_count

    @property
    def col_count(self):
        return self._col_count

    @property
    def shape(self):
        return self._row_count, self._col_count

    def __getitem__(self, pos):
        row, col = pos
        return self.maze[row][col]

    def __setitem__(self, pos, state):
        row, col = pos
        self.maze[row][col] = state
        state.row, state.col = row, col

    def states(self):
        for row in self.maze:
            for state in row:
                yield state

    def reset(self):
        starts = [s for s in self.states() if s.is_start]
        assert len(starts) == 1, "Need exactly 1 start state, found %d" % len(starts)
        state = starts[0]
        assert state.is_visitable, "Cannot return a non-visitable state from reset()"
        return state

    def step(self, state, action):
        outcomes = self.probe_action_with_probabilities(state, action)
        idx = random_number([t.prob for t in outcomes], self.rng)
        return outcomes[idx].reward, outcomes[idx].state

    def probe_action_with_probabilities(self, from_state, action):
        assert from_state.is_visitable, \
            "Cannot probe action from non-visitable state @ (%d,%d)" % from_state.position

        sprime, bounced = self.get_s_prime_with_bounce(from_state, action)
        if bounced:
            # we remain where we are
            return [Transition(1.0, self.reward_bounce_back, from_state)]

        jsl = sprime.jump_probabilities
        if len(jsl) == 0:
            return [Transition(1.0, sprime.reward, sprime)]

        result = []
        for js, p in jsl:
            s = self._get_target_state(from_state, sprime, js)
            result.append(Transition(p, s.reward, s))
        return result

    def probe_action(self, from_state, action):
        """
        Deterministic probe. Only valid when the move has a single outcome.
        """
        outcomes = self.probe_action_with_probabilities(from_state, action)
        assert len(outcomes) == 1, \
            "probe_action does not support probabilities in target state jump specifications"
        return outcomes[0].reward, outcomes[0].state

    def _get_target_state(self, from_state, js_state, js):
        if js.kind == JumpKind.WELCOME:
            return js_state
        if js.kind == JumpKind.BOUNCEBACK:
            target = from_state
        elif js.kind == JumpKind.ABSOLUTE:
            target = self._cell(js.row, js.col)
        elif js.kind == JumpKind.RELATIVE:
            target = self._cell(js_state.row + js.row, js_state.col + js.col)
        else:
            raise ValueError("Unknown jump specification: %s" % (js,))

        # Only 1-step jumps: the target may not specify further jumps
        assert target.is_100_percent_welcoming_state(), \
            "In state (%d,%d). Target state (%d,%d) was not purely welcoming" % (from_state.position + target.position)
        return target

    def _cell(self, row, col):
        assert 0 <= row < self._row_count and 0 <= col < self._col_count, \
            "Jump target (%d,%d) is outside the maze" % (row, col)
        return self.maze[row][col]

    def get_s_prime_with_bounce(self, from_state, action):
        """
        Destination of a single step, ignoring jump specifications.
        Moving beyond the border returns (from_state, True).
        """
        row, col = from_state.position
        if action == Action.LEFT:
            col -= 1
        elif action == Action.RIGHT:
            col += 1
        elif action == Action.UP:
            row -= 1
        elif action == Action.DOWN:
            row += 1
        else:
            raise ValueError("Unknown action: %s" % (action,))

        if 0 <= row < self._row_count and 0 <= col < self._col_count:
            return self.maze[row][col], False
        return from_state, True

    def create_vtable(self, initial=0.0):
        return VTable(self._row_count, self._col_count, initial)

    def create_qtable_from_uniform(self, distribution_total):
        qtable = QTable(self._row_count, self._col_count)
        value_each = distribution_total / len(Action)
        for state in self.states():
            if not state.is_end:
                qtable.Q[state.row, state.col, :] = value_each
        return qtable

    def create_qtable_from_vtable(self, vtable):
        assert vtable.shape == self.shape, \
            "Shape mismatch between maze %s and vtable %s" % (self.shape, vtable.shape)

        qtable = QTable(self._row_count, self._col_count)
        for state in self.states():
            if state.is_end:
                continue
            for a in Action:
                sprime, _ = self.get_s_prime_with_bounce(state, a)
                qtable.Q[state.row, state.col, a] = vtable[sprime.row, sprime.col] + sprime.reward
        return qtable

    def bellman_update(self, Vprev, discount=0.9, GS=True):
        """
        One step of value iteration over the full outcome distribution, using
        either the Jacobi or Gauss-Seidel method. Non-visitable successors
        are worth 0. Returns the new VTable and its QTable.
        """
        assert Vprev.shape == self.shape, "V is not the right shape (Bellman operator)."
        assert 0.0 < discount <= 1.0, "Discount must be in (0, 1]"

        V = Vprev.copy()
        source = V if GS else Vprev
        qtable = QTable(self._row_count, self._col_count)

        for state in self.states():
            if not state.is_visitable:
                V[state.row, state.col] = 0.0
                continue
            for a in Action:
                q = 0.0
                for t in self.probe_action_with_probabilities(state, a):
                    v_next = source[t.state.row, t.state.col] if t.state.is_visitable else 0.0
                    q += t.prob * (t.reward + discount * v_next)
                qtable.Q[state.row, state.col, a] = q
            V[state.row, state.col] = qtable.get_max_value(state)

        return V, qtable

    def value_iteration(self, stop_condition, discount=0.9, GS=True):
        V = self.create_vtable()
        stop_condition.reset()
        while True:
            V, Q = self.bellman_update(V, discount, GS)
            if stop_condition.report_iteration(V):
                break

        return V, Q, Q.reduce_to_max_table()
