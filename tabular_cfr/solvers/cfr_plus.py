"""
CFR+ (Counterfactual Regret Minimization Plus) Solver.

CFR+ improves on vanilla CFR with two key changes:
1. Regret flooring: Cumulative regrets are floored at 0 after each iteration
2. Linear weighting: Average strategy is weighted by iteration number t

Both run with alternating updates.

Reference: Tammelin et al., "Solving Large Imperfect Information Games Using CFR+"
"""

from tabular_cfr.games.base import Game
from tabular_cfr.solvers.cfr import CFRSolverBase


class CFRPlusSolver(CFRSolverBase):
    """CFR+ preset of CFRSolverBase."""

    def __init__(self, game: Game, check_invariants: bool = False):
        super().__init__(
            game,
            alternating_updates=True,
            linear_averaging=True,
            regret_matching_plus=True,
            check_invariants=check_invariants
        )
