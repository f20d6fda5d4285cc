"""
Finite-horizon value iteration over an MDPModel.

Two value buffers are ping-ponged between steps. The backup that completes
step k writes buffer_a when k is even and buffer_b when k is odd, reading the
other one. So after k completed steps the freshest values sit in buffer_a
iff k is even, and extract_policy picks its buffer by the same rule.

solve() validates everything once and then runs backup_step() horizon
times. backup_step() does no checking at all; call it directly only with a
model that passed validate_model and a state set up by initialize().
"""
import logging

import numpy as np

from mdp.errors import InvalidArgumentError
from mdp.model import validate_model
from mdp.value_function import MDPValueFunction

log = logging.getLogger(__name__)


class ValueIterationState:
    """
    Working set of one solve in progress.

    initial_values: optional length-n seed for both buffers (zeros if None).
    buffer_a, buffer_b: the two value buffers.
    pi: greedy action per state from the last completed step.
    step_count: completed backup steps.
    residual: max |new - old| over states from the last step, None before one.
    """

    def __init__(self, initial_values=None):
        self.initial_values = initial_values
        self.buffer_a = None
        self.buffer_b = None
        self.pi = None
        self.step_count = 0
        self.residual = None


def _buffers(vi, step):
    """Return (source, destination) for the backup that completes step."""
    if step % 2 == 0:
        return vi.buffer_b, vi.buffer_a
    return vi.buffer_a, vi.buffer_b


def _q_values(mdp, values, states=slice(None)):
    # Q(s, a) = R(s, a) + gamma * sum_slot T(s, a, slot) * V(S(s, a, slot))
    S = np.reshape(mdp.S, (mdp.n, mdp.m, mdp.ns))[states]
    T = np.reshape(mdp.T, (mdp.n, mdp.m, mdp.ns))[states]
    R = np.reshape(mdp.R, (mdp.n, mdp.m))[states]
    return R + mdp.gamma * np.sum(T * values[S], axis=-1)


def backup_state(mdp, values, s):
    """
    Bellman optimality backup for a single state.

    Returns (value, action) where action maximizes Q(s, .) against values,
    ties going to the lowest action index.
    """
    q = _q_values(mdp, np.asarray(values, dtype=np.float64), s)
    a = int(np.argmax(q))
    return float(q[a]), a


def initialize(mdp, vi):
    if mdp is None:
        raise InvalidArgumentError("mdp is required")
    if vi is None:
        raise InvalidArgumentError("value iteration state is required")
    if mdp.n < 1:
        raise InvalidArgumentError(f"number of states must be >= 1, got {mdp.n}")

    if vi.initial_values is not None:
        initial = np.asarray(vi.initial_values, dtype=np.float64)
        if initial.shape != (mdp.n,):
            raise InvalidArgumentError(
                f"initial values must have shape ({mdp.n},), got {initial.shape}")
        vi.buffer_a = initial.copy()
        vi.buffer_b = initial.copy()
    else:
        vi.buffer_a = np.zeros(mdp.n, dtype=np.float64)
        vi.buffer_b = np.zeros(mdp.n, dtype=np.float64)

    vi.pi = np.zeros(mdp.n, dtype=np.int64)
    vi.step_count = 0
    vi.residual = None


def backup_step(mdp, vi):
    """
    One synchronous sweep of Bellman backups over every state.

    Unchecked: a malformed model or state gives garbage (or a numpy error),
    never an InvalidArgumentError.
    """
    step = vi.step_count + 1
    source, destination = _buffers(vi, step)

    q = _q_values(mdp, source)
    vi.pi[:] = np.argmax(q, axis=1)
    destination[:] = np.max(q, axis=1)

    vi.residual = float(np.max(np.abs(destination - source)))
    vi.step_count = step


def extract_policy(mdp, vi, policy=None):
    """
    Copy the freshest values and the policy into a new MDPValueFunction.

    policy must be None; passing an existing value function is treated as a
    caller bug (solving twice into the same result, or reusing one).
    """
    if mdp is None:
        raise InvalidArgumentError("mdp is required")
    if vi is None:
        raise InvalidArgumentError("value iteration state is required")
    if policy is not None:
        raise InvalidArgumentError("policy must be None; it is created and returned")
    if vi.buffer_a is None or vi.buffer_b is None or vi.pi is None:
        raise InvalidArgumentError("value iteration state is not initialized")

    values = vi.buffer_a if vi.step_count % 2 == 0 else vi.buffer_b
    return MDPValueFunction(n=mdp.n, m=mdp.m, r=0, S=None,
                            V=np.array(values, copy=True), pi=np.array(vi.pi, copy=True))


def release(mdp, vi):
    """Drop the state's buffers and reset its step count. Safe to call twice."""
    if mdp is None:
        raise InvalidArgumentError("mdp is required")
    if vi is None:
        raise InvalidArgumentError("value iteration state is required")
    vi.buffer_a = None
    vi.buffer_b = None
    vi.pi = None
    vi.step_count = 0
    vi.residual = None


def solve(mdp, vi, policy=None):
    """
    Run mdp.horizon backups from vi.initial_values and return the result.

    Everything is validated before vi is touched; on InvalidArgumentError
    neither mdp nor vi has changed. The state's buffers are released before
    returning, the returned MDPValueFunction is the only output.
    """
    if mdp is None:
        raise InvalidArgumentError("mdp is required")
    if vi is None:
        raise InvalidArgumentError("value iteration state is required")
    if policy is not None:
        raise InvalidArgumentError("policy must be None; it is created and returned")
    validate_model(mdp)

    log.debug("Value iteration: n=%d m=%d ns=%d gamma=%g horizon=%d",
              mdp.n, mdp.m, mdp.ns, mdp.gamma, mdp.horizon)

    initialize(mdp, vi)
    for _ in range(mdp.horizon):
        backup_step(mdp, vi)

    # epsilon is informational only; exactly horizon steps always run.
    log.debug("Value iteration finished after %d steps, last change %.3g (epsilon %g)",
              vi.step_count, vi.residual, mdp.epsilon)

    policy = extract_policy(mdp, vi)
    release(mdp, vi)
    return policy
