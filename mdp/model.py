import logging
import numbers

import numpy as np

from mdp.errors import InvalidArgumentError

log = logging.getLogger(__name__)


class MDPModel:
    """
    Finite MDP in the flat array layout read by the value iteration engine.

    n, m, ns: number of states, actions, and successor slots per (state, action).
    S: successor state index for each (state, action, slot), size n*m*ns.
    T: transition probability for the same (state, action, slot), size n*m*ns.
       Unused slots carry zero probability and may point at any valid state.
    R: expected immediate reward for each (state, action), size n*m.
    gamma: discount factor in [0, 1].
    horizon: number of Bellman backups to perform.
    epsilon: convergence tolerance. Stored and validated, never used to stop.

    The engine only reads a model; it never writes to it.
    """

    def __init__(self, n=0, m=0, ns=0, S=None, T=None, R=None,
                 gamma=1.0, horizon=1, epsilon=0.0):
        self.n = int(n)
        self.m = int(m)
        self.ns = int(ns)
        self.S = None if S is None else np.asarray(S, dtype=np.int64)
        self.T = None if T is None else np.asarray(T, dtype=np.float64)
        self.R = None if R is None else np.asarray(R, dtype=np.float64)
        self.gamma = float(gamma)
        self.horizon = int(horizon)
        self.epsilon = float(epsilon)

        # Set by from_mdp so results can be mapped back to state and action labels.
        self.state_labels = None
        self.action_labels = None

    @classmethod
    def from_mdp(cls, mdp, horizon=None, epsilon=1e-3):
        """
        Flatten an MDP (see mdp.MDP) into the array layout.

        Terminal states and states without actions become zero-reward
        self-loops. States with fewer than m actions are padded with copies of
        their first action; since ties go to the lowest action index a padded
        copy is never preferred over the action it repeats.
        """
        states = list(mdp.states())
        if not states:
            raise ValueError("MDP has no states")

        if horizon is None:
            horizon = mdp.horizon
        if horizon is None or horizon < 1:
            raise ValueError("horizon must be >= 1 (pass one or define MDP.horizon)")

        index = {s: i for i, s in enumerate(states)}
        actions = [[] if mdp.is_terminal(s) else list(mdp.actions(s)) for s in states]
        n = len(states)
        m = max(1, max(len(acts) for acts in actions))

        rows = {}
        ns = 1
        for i, s in enumerate(states):
            for j, a in enumerate(actions[i]):
                successors = {}
                expected_reward = 0.0
                for p, s_next, r in mdp.transitions(s, a):
                    if s_next not in index:
                        raise ValueError(f"transition {s!r} --{a!r}--> {s_next!r} leaves the state set")
                    k = index[s_next]
                    successors[k] = successors.get(k, 0.0) + p
                    expected_reward += p * r
                rows[(i, j)] = (successors, expected_reward)
                ns = max(ns, len(successors))

        S = np.repeat(np.arange(n, dtype=np.int64), m * ns).reshape(n, m, ns)
        T = np.zeros((n, m, ns), dtype=np.float64)
        R = np.zeros((n, m), dtype=np.float64)

        for i in range(n):
            if not actions[i]:
                T[i, :, 0] = 1.0
                continue
            for j in range(m):
                successors, expected_reward = rows[(i, j if j < len(actions[i]) else 0)]
                for slot, (k, p) in enumerate(successors.items()):
                    S[i, j, slot] = k
                    T[i, j, slot] = p
                R[i, j] = expected_reward

        model = cls(n=n, m=m, ns=ns, S=S, T=T, R=R,
                    gamma=mdp.discount, horizon=horizon, epsilon=epsilon)
        model.state_labels = states
        model.action_labels = actions
        log.debug("Built model from %s: n=%d m=%d ns=%d", type(mdp).__name__, n, m, ns)
        return model


def validate_model(mdp):
    """Raise InvalidArgumentError unless mdp is fit for a full solve."""
    if mdp is None:
        raise InvalidArgumentError("mdp is required")
    for name in ("n", "m", "ns", "horizon"):
        if not isinstance(getattr(mdp, name), numbers.Integral):
            raise InvalidArgumentError(f"{name} must be an integer, got {getattr(mdp, name)!r}")
    for name in ("gamma", "epsilon"):
        if not isinstance(getattr(mdp, name), numbers.Real):
            raise InvalidArgumentError(f"{name} must be a real number, got {getattr(mdp, name)!r}")

    if mdp.n < 1:
        raise InvalidArgumentError(f"number of states must be >= 1, got {mdp.n}")
    if mdp.m < 1:
        raise InvalidArgumentError(f"number of actions must be >= 1, got {mdp.m}")
    if mdp.ns < 1:
        raise InvalidArgumentError(f"number of successors must be >= 1, got {mdp.ns}")
    if mdp.S is None or mdp.T is None or mdp.R is None:
        raise InvalidArgumentError("successor, transition and reward arrays are required")

    size = mdp.n * mdp.m * mdp.ns
    if np.size(mdp.S) != size or np.size(mdp.T) != size:
        raise InvalidArgumentError(
            f"successor and transition arrays need {size} entries, "
            f"got {np.size(mdp.S)} and {np.size(mdp.T)}")
    if np.size(mdp.R) != mdp.n * mdp.m:
        raise InvalidArgumentError(f"reward array needs {mdp.n * mdp.m} entries, got {np.size(mdp.R)}")
    S = np.asarray(mdp.S)
    if not np.issubdtype(S.dtype, np.integer):
        raise InvalidArgumentError(f"successor indices must be integers, got dtype {S.dtype}")
    if np.any((S < 0) | (S >= mdp.n)):
        raise InvalidArgumentError(f"successor indices must lie in [0, {mdp.n})")

    if not 0.0 <= mdp.gamma <= 1.0:
        raise InvalidArgumentError(f"discount must lie in [0, 1], got {mdp.gamma}")
    if mdp.horizon < 1:
        raise InvalidArgumentError(f"horizon must be >= 1, got {mdp.horizon}")
    if not mdp.epsilon >= 0.0:
        raise InvalidArgumentError(f"convergence tolerance must be >= 0, got {mdp.epsilon}")


def release_model(mdp):
    """Drop the model's arrays and zero its dimensions. Safe to call twice."""
    if mdp is None:
        raise InvalidArgumentError("mdp is required")
    mdp.n = 0
    mdp.m = 0
    mdp.ns = 0
    mdp.S = None
    mdp.T = None
    mdp.R = None
    mdp.gamma = 0.0
    mdp.horizon = 0
    mdp.epsilon = 0.0
    mdp.state_labels = None
    mdp.action_labels = None


def decode_policy(mdp, policy):
    """
    Map a value function back onto the labels of a model built by from_mdp.

    Returns ({state: value}, {state: action}); terminal states map to None.
    """
    if mdp is None or policy is None:
        raise InvalidArgumentError("mdp and policy are required")
    if mdp.state_labels is None:
        raise ValueError("model was not built with MDPModel.from_mdp")

    values = {}
    actions = {}
    for i, s in enumerate(mdp.state_labels):
        values[s] = float(policy.V[i])
        acts = mdp.action_labels[i]
        if not acts:
            actions[s] = None
            continue
        a = int(policy.pi[i])
        actions[s] = acts[a] if a < len(acts) else acts[0]
    return values, actions
