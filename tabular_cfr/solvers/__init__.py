"""
CFR solver algorithms layer (Layer 4).

This layer implements the tabular CFR variants (vanilla, CFR+, and any mix of
the three switches).
It may import from: tabular_cfr.policy, tabular_cfr.engine, tabular_cfr.games
"""

from tabular_cfr.solvers.cfr import CFRSolver, CFRSolverBase
from tabular_cfr.solvers.cfr_plus import CFRPlusSolver
from tabular_cfr.solvers.info_state import InfoStateEntry, InfoStateTable

__all__ = [
    'CFRSolver',
    'CFRSolverBase',
    'CFRPlusSolver',
    'InfoStateEntry',
    'InfoStateTable',
]
