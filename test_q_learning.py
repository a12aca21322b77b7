import pytest

from mdp import GridMazeEnvironment, START, END
from tables import Action
from Q_Learning import QLearning
from main import build_maze


def test_update_rule():
    env = GridMazeEnvironment(1, 2, rng=0)
    env[0, 0] = START()
    env[0, 1] = END(reward=5.0)
    agent = QLearning(env, learning_rate=0.1, discount=0.9, exploration=0.0, episodes=1, rng=0)
    agent.Q[0, 0, Action.RIGHT] = 1.0

    s = agent.step(env.reset())
    assert s is env[0, 1]
    # (1 - 0.1) * 1.0 + 0.1 * (5.0 + 0.9 * 0)
    assert agent.Q[0, 0, Action.RIGHT] == pytest.approx(1.4)


def test_select_action_greedy():
    env = build_maze(rng=0)
    agent = QLearning(env, exploration=0.0, rng=0)
    agent.Q[5, 0, Action.UP] = 1.0
    assert all(agent.select_action(env[5, 0]) == Action.UP for _ in range(50))


def test_select_action_explores_non_max():
    env = build_maze(rng=0)
    agent = QLearning(env, exploration=1.0, rng=0)
    agent.Q[5, 0, Action.UP] = 1.0
    picked = {agent.select_action(env[5, 0]) for _ in range(200)}
    assert picked == {Action.LEFT, Action.DOWN, Action.RIGHT}


def test_select_action_all_tied():
    env = build_maze(rng=0)
    agent = QLearning(env, exploration=1.0, rng=0)
    picked = {agent.select_action(env[5, 0]) for _ in range(200)}
    assert picked == set(Action)


def test_episode_is_capped_by_timesteps():
    env = GridMazeEnvironment(1, 1, rng=0)
    env[0, 0] = START()
    agent = QLearning(env, episodes=2, timesteps=10, rng=0)
    s, t = agent.run_episode()
    assert t == 10
    assert s is env[0, 0]
    assert agent.run() is agent.Q
    assert agent.episode_count == 3
    assert agent.step_count == 30


def test_invalid_hyper_parameters():
    env = build_maze(rng=0)
    with pytest.raises(AssertionError):
        QLearning(env, learning_rate=0.0)
    with pytest.raises(AssertionError):
        QLearning(env, discount=1.5)
    with pytest.raises(AssertionError):
        QLearning(env, exploration=-0.1)


def test_learns_to_route_around_holes():
    env = build_maze(rng=2024)
    agent = QLearning(env, learning_rate=0.1, discount=0.9, exploration=0.1, episodes=5000, rng=env.rng)
    agent.run()

    policy = agent.policy()
    assert [av.action for av in policy.action_values(5, 0)] == [Action.UP]
    assert [av.action for av in policy.action_values(4, 0)] == [Action.UP]
    assert policy.is_terminal(5, 5)
    assert agent.Q.get_max_value(env[5, 0]) > agent.Q[5, 0, Action.RIGHT]


def test_verbose_progress(capsys):
    env = build_maze(rng=0)
    QLearning(env, episodes=20, print_interval=10, verbose=True, rng=0).run()
    out = capsys.readouterr().out
    assert "At episode: 10" in out
    assert "At episode: 20" in out
    assert "Trained for: 20" in out
