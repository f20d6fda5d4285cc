from mdp.MDP import MDP


class NimMDP(MDP):
    """
    Misere Nim against an opponent who takes a uniformly random legal number
    of stones. Whoever takes the last stone loses.

    A state is the number of stones left when it is our turn to move; 0 means
    the game is over. Reward is +1 when the opponent takes the last stone,
    -1 when we do.
    """

    def __init__(self, max_stones=21, max_take=3, discount=1.0):
        self.max_stones = int(max_stones)
        self.max_take = int(max_take)
        self._discount = float(discount)

    @property
    def discount(self):
        return self._discount

    @property
    def horizon(self):
        # every move we make removes at least one stone
        return self.max_stones

    def states(self):
        return range(0, self.max_stones + 1)

    def actions(self, state):
        if state <= 0:
            return []
        return [take for take in range(1, self.max_take + 1) if take <= state]

    def transitions(self, state, action):
        left = state - action
        if left == 0:
            return [(1.0, 0, -1.0)]
        replies = self.actions(left)
        p = 1.0 / len(replies)
        result = []
        for reply in replies:
            next_stones = left - reply
            reward = 1.0 if next_stones == 0 else 0.0
            result.append((p, next_stones, reward))
        return result

    def is_terminal(self, state):
        return state == 0
