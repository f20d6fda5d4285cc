import argparse
import logging
import os
import sys
import time

import coloredlogs

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT_DIR not in sys.path:
    sys.path.append(ROOT_DIR)

from mdp.model import MDPModel, decode_policy
from mdp.vi import ValueIterationState, solve
from nim.NimMDP import NimMDP

log = logging.getLogger(__name__)


def solve_values(max_stones, max_take, gamma=1.0, horizon=None, epsilon=1e-3):
    """Solve Nim against a random opponent; returns ({stones: value}, {stones: take})."""
    nim = NimMDP(max_stones=max_stones, max_take=max_take, discount=gamma)
    model = MDPModel.from_mdp(nim, horizon=horizon, epsilon=epsilon)
    policy = solve(model, ValueIterationState())
    return decode_policy(model, policy)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Solve misere Nim against a random opponent via value iteration.")
    parser.add_argument('--max_stones', type=int, default=21, help='Number of stones')
    parser.add_argument('--max_take', type=int, default=3, help='Max stones to take')
    parser.add_argument('--gamma', type=float, default=1.0, help='Discount factor')
    parser.add_argument('--horizon', type=int, default=None, help='Number of Bellman backups (default: max_stones)')
    parser.add_argument('--epsilon', type=float, default=1e-3, help='Convergence tolerance (reported only)')
    parser.add_argument('--log_level', type=str, default='INFO', help='Logging level')
    args = parser.parse_args(argv)

    coloredlogs.install(level=args.log_level)

    log.info('Solving Nim with %d stones, taking up to %d', args.max_stones, args.max_take)
    start = time.perf_counter()
    try:
        values, takes = solve_values(args.max_stones, args.max_take, args.gamma, args.horizon, args.epsilon)
    except ValueError as exc:
        log.error('%s', exc)
        sys.exit(1)
    elapsed_ms = (time.perf_counter() - start) * 1000.0

    print("stones | value | optimal_take")
    print("-------+-------+-------------")
    for stones in range(1, args.max_stones + 1):
        print(f"{stones:>6} | {values[stones]:+.3f} | {takes[stones]}")

    print(f"solve_ms: {elapsed_ms:.3f}")


if __name__ == '__main__':
    main()
