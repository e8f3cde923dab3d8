"""
Correlation layer (Layer 6 - highest).

Correlation devices built from policy snapshots and their distance from
the coarse correlated equilibrium set.
It may import from: tabular_cfr.evaluation, tabular_cfr.solvers, tabular_cfr.policy,
tabular_cfr.engine, tabular_cfr.games
"""

from tabular_cfr.correlation.corr_dev_builder import (
    CorrDevBuilder,
    CorrelationDevice,
    JointPolicy,
    infer_num_players,
    sample_deterministic_policy,
    uniform_correlation_device,
)
from tabular_cfr.correlation.corr_dist import CorrDistConfig, CorrDistInfo, cce_dist

__all__ = [
    'CorrDevBuilder',
    'CorrelationDevice',
    'JointPolicy',
    'infer_num_players',
    'sample_deterministic_policy',
    'uniform_correlation_device',
    'CorrDistConfig',
    'CorrDistInfo',
    'cce_dist',
]
