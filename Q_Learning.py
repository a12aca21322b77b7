import numpy as np

from tables import Action

class QLearning:
    def __init__(self, env, learning_rate: float = 0.1, discount: float = 0.9, exploration: float = 0.1,
                 episodes: int = 5000, timesteps: int = 10000, initial_value: float = 0.0,
                 print_interval: int = 100, verbose: bool = False, rng=None):
        assert 0.0 < learning_rate <= 1.0, "Learning rate must be in (0, 1]"
        assert 0.0 < discount <= 1.0, "Discount must be in (0, 1]"
        assert 0.0 <= exploration <= 1.0, "Exploration must be in [0, 1]"
        assert episodes > 0, "Episodes must be greater than 0."
        assert timesteps > 0, "Timesteps must be greater than 0."

        self.env = env
        self.alpha = learning_rate
        self.gamma = discount
        self.epsilon = exploration
        self.episodes = episodes
        self.T = timesteps
        self.print_interval = print_interval
        self.verbose = verbose
        self.rng = np.random.default_rng(rng)

        # The environment tells us how many states there are, and which are terminal
        self.Q = env.create_qtable_from_uniform(initial_value * len(Action))

        self.episode_count = 0
        self.step_count = 0

    def select_action(self, s):
        """
        Epsilon-greedy: with probability 1 - epsilon pick among the max actions,
        otherwise among the non-max ones. If all actions tie, pick any of them.
        """
        is_greedy = self.rng.random() >= self.epsilon
        max_avl = self.Q.get_max_action_values(s)

        if len(max_avl) == len(Action) or is_greedy:
            return max_avl[self.rng.integers(len(max_avl))].action

        max_actions = {av.action for av in max_avl}
        non_max = [a for a in Action if a not in max_actions]
        return non_max[self.rng.integers(len(non_max))]

    def step(self, s):
        a = self.select_action(s)
        r, new_s = self.env.step(s, a)
        q_max = self.Q.get_max_value(new_s)
        row, col = s.position
        self.Q[row, col, a] = (1 - self.alpha) * self.Q[row, col, a] + self.alpha * (r + self.gamma * q_max)
        return new_s

    def run_episode(self):
        s = self.env.reset()
        t = 0
        while not s.is_end and t < self.T:
            s = self.step(s)
            t += 1
        self.episode_count += 1
        self.step_count += t
        return s, t

    def run(self):
        steps_since_print = 0
        for i in range(self.episodes):
            _, t = self.run_episode()
            steps_since_print += t
            if self.verbose and self.episode_count % self.print_interval == 0:
                print(f"At episode: {self.episode_count}, average steps per episode: "
                      f"{steps_since_print / self.print_interval:.2f}")
                steps_since_print = 0

        if self.verbose:
            print(f"Trained for: {self.episode_count}, average steps per episode: "
                  f"{self.step_count / self.episode_count:.2f}")
        return self.Q

    def policy(self):
        return self.Q.reduce_to_max_table()
