import argparse

import numpy as np

from mdp import GridMazeEnvironment, JumpSpecification, WELCOME, START, END, HOLE
from Q_Learning import QLearning
from stop_condition import StopTrainingCondition
from grid_printer import print_maze_and_table

ROW = 6
COL = 6
REWARD_SPACES = -1.0
REWARD_BOUNCE_BACK = -1.0

start_cell = (5, 0)
end_cell = (5, 5)
hole_cells = [(5, 1), (5, 2), (5, 3), (5, 4)]
# Half of the attempts to enter these cells slip one row down, into a hole
slippery_cells = [(4, 1), (4, 2), (4, 3), (4, 4)]
slip_prob = 0.5


def build_maze(rng=None):
    maze_env = GridMazeEnvironment(ROW, COL, reward_spaces=REWARD_SPACES,
                                   reward_bounce_back=REWARD_BOUNCE_BACK, rng=rng)
    maze_env[start_cell] = START()
    maze_env[end_cell] = END(reward=0.0)
    for cell in hole_cells:
        maze_env[cell] = HOLE(reward=-100.0)
    for cell in slippery_cells:
        maze_env[cell].set_jump_probabilities([
            (JumpSpecification.relative(1, 0), slip_prob),
            (WELCOME, 1 - slip_prob),
        ])
    return maze_env


def parse_args():
    parser = argparse.ArgumentParser(description="Tabular Q-learning and value iteration on a grid maze")
    parser.add_argument("--episodes", type=int, default=5000, help="Q-learning episodes")
    parser.add_argument("--learning-rate", type=float, default=0.1)
    parser.add_argument("--discount", type=float, default=0.9)
    parser.add_argument("--epsilon", type=float, default=0.1, help="Exploration rate")
    parser.add_argument("--print-interval", type=int, default=100)
    parser.add_argument("--max-sweeps", type=int, default=1000, help="Value iteration sweep limit")
    parser.add_argument("--percent-diff", type=float, default=0.01,
                        help="Stop value iteration when no value changes by more than this fraction")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--debug", action="store_true", help="Dump tables on every value iteration sweep")
    return parser.parse_args()


def main():
    args = parse_args()
    rng = np.random.default_rng(args.seed)
    maze_env = build_maze(rng=rng)

    # Q-Learning
    agent = QLearning(maze_env, learning_rate=args.learning_rate, discount=args.discount,
                      exploration=args.epsilon, episodes=args.episodes,
                      print_interval=args.print_interval, verbose=True, rng=rng)
    print_maze_and_table("--- Before any iteration", maze_env, qtable=agent.Q)
    qtable = agent.run()
    print_maze_and_table("Result", maze_env, qtable=qtable, print_policy=True)

    # Value Iteration
    stop = StopTrainingCondition(maze_env, iterations_max=args.max_sweeps, stop_on_convergence=False,
                                 stop_on_percent_diff=args.percent_diff, debug=args.debug)
    V, Q, _ = maze_env.value_iteration(stop, discount=args.discount)
    print(stop.get_termination_str())
    print_maze_and_table("Value iteration result", maze_env, vtable=V, qtable=Q, print_policy=True)


if __name__ == "__main__":
    main()
