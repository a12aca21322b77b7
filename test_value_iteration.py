import numpy as np
import pytest

from mdp import GridMazeEnvironment, START, END, WALL
from stop_condition import DoneCause, StopTrainingCondition
from tables import Action, VTable
from main import build_maze


def test_value_iteration_on_demo_maze():
    env = build_maze(rng=0)
    stop = StopTrainingCondition(env, iterations_max=1000, stop_on_percent_diff=1e-9)
    V, Q, policy = env.value_iteration(stop, discount=0.9)

    assert stop.is_done()
    assert stop.done_cause == DoneCause.DELTAPERCENT

    assert V[4, 5] == pytest.approx(0.0)
    assert V[3, 5] == pytest.approx(-1.0)
    assert V[3, 4] == pytest.approx(-1.9)
    assert V[5, 0] == pytest.approx(-5.6953279)
    # terminal cells carry no value
    assert V[5, 5] == 0.0 and V[5, 1] == 0.0

    assert [av.action for av in policy.action_values(5, 0)] == [Action.UP]
    assert [av.action for av in policy.action_values(4, 0)] == [Action.UP]
    assert [av.action for av in policy.action_values(3, 5)] == [Action.DOWN]
    assert policy.is_terminal(5, 5)


def test_jacobi_and_gauss_seidel_agree():
    env = build_maze(rng=0)
    V_gs, _, _ = env.value_iteration(StopTrainingCondition(env, 1000, stop_on_percent_diff=1e-12), GS=True)
    V_j, _, _ = env.value_iteration(StopTrainingCondition(env, 1000, stop_on_percent_diff=1e-12), GS=False)
    assert np.allclose(V_gs.V, V_j.V)


def test_value_iteration_stops_on_convergence():
    env = build_maze(rng=0)
    stop = StopTrainingCondition(env, iterations_max=1000, stop_on_convergence=True)
    env.value_iteration(stop)
    assert stop.done_cause == DoneCause.CONVERGED
    assert stop.get_iteration_count() < 1000


def test_bellman_update_with_wall():
    env = GridMazeEnvironment(1, 3, reward_spaces=-1.0, reward_bounce_back=-2.0, rng=0)
    env[0, 0] = START()
    env[0, 1] = WALL(reward=-1.0)
    env[0, 2] = END(reward=10.0)

    V, Q = env.bellman_update(VTable(1, 3), discount=0.9)
    # the wall bounces back with the reward of the cell left behind
    assert Q[0, 0, Action.RIGHT] == -1.0
    assert Q[0, 0, Action.LEFT] == -2.0
    assert V[0, 0] == -1.0
    assert V[0, 1] == 0.0 and V[0, 2] == 0.0
    assert Q.is_terminal(0, 1) and Q.is_terminal(0, 2)


def test_bellman_update_expected_value_over_jumps():
    env = build_maze(rng=0)
    V, Q = env.bellman_update(VTable(6, 6), discount=0.9, GS=False)
    # 0.5 * (-100) + 0.5 * (-1 + 0.9 * 0)
    assert Q[3, 2, Action.DOWN] == pytest.approx(-50.5)


def test_bellman_update_checks_arguments():
    env = build_maze(rng=0)
    with pytest.raises(AssertionError):
        env.bellman_update(VTable(5, 6))
    with pytest.raises(AssertionError):
        env.bellman_update(VTable(6, 6), discount=0.0)
