class MDP:
    """
    Minimal finite MDP interface.

    States and actions can be any hashable types. Rewards are expected
    immediate rewards for the acting agent. MDPModel.from_mdp flattens an
    instance into the array layout that the value iteration engine reads.
    """

    @property
    def discount(self):
        return 1.0

    @property
    def horizon(self):
        """
        Optional: number of Bellman backups that covers every episode.
        Returning None forces callers to pass a horizon explicitly.
        """
        return None

    def states(self):
        """Return an iterable of all states, in a stable order."""
        raise NotImplementedError

    def actions(self, state):
        """Return an iterable of valid actions at state (empty when terminal)."""
        raise NotImplementedError

    def transitions(self, state, action):
        """
        Return a list of (probability, next_state, reward) tuples.
        Probabilities should sum to 1 for each (state, action).
        """
        raise NotImplementedError

    def is_terminal(self, state):
        """Return True if state is absorbing with no further reward."""
        raise NotImplementedError
