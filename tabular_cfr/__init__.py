"""
Tabular CFR Solver

Exact Counterfactual Regret Minimization for multi-player extensive-form
games, with NashConv and coarse-correlated-equilibrium distance evaluation.
"""

__version__ = "0.1.0"
