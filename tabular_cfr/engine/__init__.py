"""
Compute engine layer (Layer 2).

This layer provides the numpy operations CFR applies per information state.
It may only import from: tabular_cfr.games, tabular_cfr.errors
"""

from tabular_cfr.engine.ops import (
    DISTRIBUTION_TOLERANCE,
    check_distribution,
    check_regret_invariant,
    check_zero_sum,
    normalize,
    regret_match,
    uniform_strategy,
)

__all__ = [
    'DISTRIBUTION_TOLERANCE',
    'check_distribution',
    'check_regret_invariant',
    'check_zero_sum',
    'normalize',
    'regret_match',
    'uniform_strategy',
]
