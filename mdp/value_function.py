from mdp.errors import InvalidArgumentError


class MDPValueFunction:
    """
    Value estimates and greedy policy handed back by a solver.

    Owns its arrays: nothing in the solver keeps a reference to V or pi, so
    the object stays valid after the solver state is released.

    r and S describe the representative states an approximate solver worked
    over. Value iteration solves every state, so r is 0 and S is None.
    """

    def __init__(self, n=0, m=0, r=0, S=None, V=None, pi=None):
        self.n = n
        self.m = m
        self.r = r
        self.S = S
        self.V = V
        self.pi = pi

    def __repr__(self):
        return f"MDPValueFunction(n={self.n}, m={self.m}, r={self.r})"


def release_value_function(policy):
    if policy is None:
        raise InvalidArgumentError("policy is required")
    policy.n = 0
    policy.m = 0
    policy.r = 0
    policy.S = None
    policy.V = None
    policy.pi = None
