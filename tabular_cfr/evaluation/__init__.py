"""
Policy evaluation layer (Layer 5).

Best responses against fixed profiles or weighted mixtures, expected
values, NashConv and exploitability.
It may import from: tabular_cfr.solvers, tabular_cfr.policy, tabular_cfr.engine, tabular_cfr.games
"""

from tabular_cfr.evaluation.best_response import BestResponse
from tabular_cfr.evaluation.exploitability import (
    NashConvInfo,
    expected_returns,
    exploitability,
    nash_conv,
    nash_conv_info,
)
from tabular_cfr.evaluation.profiles import (
    Profile,
    WeightedProfiles,
    mixture_value,
    profile_value,
    single_profile,
)

__all__ = [
    'BestResponse',
    'NashConvInfo',
    'expected_returns',
    'exploitability',
    'nash_conv',
    'nash_conv_info',
    'Profile',
    'WeightedProfiles',
    'mixture_value',
    'profile_value',
    'single_profile',
]
