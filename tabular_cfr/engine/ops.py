"""
Core per-information-state CFR operations.

- Regret matching: convert cumulative regrets to a strategy
- Normalisation: convert cumulative policy weights to an average strategy
- Invariant checks: distributions, regret orthogonality, zero-sum values

All operations act on 1-D float64 numpy vectors indexed by the position of
an action in its information state's legal action list.
"""

import numpy as np

from tabular_cfr.errors import InvariantViolationError

# Tolerance for "sums to one" checks
DISTRIBUTION_TOLERANCE = 1e-9


def uniform_strategy(num_actions: int) -> np.ndarray:
    """
    Create uniform strategy (equal probability for all actions).

    Args:
        num_actions: Number of legal actions (>= 1)

    Returns:
        strategy: Array of shape (num_actions,)
    """
    if num_actions < 1:
        raise InvariantViolationError("An information state needs at least one action")
    return np.full(num_actions, 1.0 / num_actions, dtype=np.float64)


def regret_match(cumulative_regret: np.ndarray) -> np.ndarray:
    """
    Convert cumulative regrets to strategy via regret matching.

        positive_regrets = max(0, regrets)
        if sum(positive_regrets) > 0:
            strategy = positive_regrets / sum(positive_regrets)
        else:
            strategy = uniform over actions

    Args:
        cumulative_regret: Array of shape (num_actions,)

    Returns:
        strategy: Array of shape (num_actions,) - valid probability distribution
    """
    positive_regrets = np.maximum(cumulative_regret, 0.0)
    regret_sum = positive_regrets.sum()
    if regret_sum > 0:
        return positive_regrets / regret_sum
    return uniform_strategy(len(cumulative_regret))


def normalize(weights: np.ndarray) -> np.ndarray:
    """
    Normalise non-negative weights into a distribution, uniform if all zero.

    Raises:
        InvariantViolationError: if any weight is negative
    """
    if np.any(weights < 0):
        raise InvariantViolationError(f"Negative policy weights: {weights}")
    total = weights.sum()
    if total > 0:
        return weights / total
    return uniform_strategy(len(weights))


def check_distribution(
    probs: np.ndarray,
    tolerance: float = DISTRIBUTION_TOLERANCE,
    where: str = "distribution"
) -> None:
    """
    Check that probs is non-negative and sums to 1 within tolerance.

    Raises:
        InvariantViolationError: describing the offending distribution
    """
    if probs.ndim != 1 or len(probs) == 0:
        raise InvariantViolationError(f"{where}: expected a non-empty vector, got shape {probs.shape}")
    if not np.all(np.isfinite(probs)):
        raise InvariantViolationError(f"{where}: non-finite probabilities {probs}")
    if np.any(probs < 0):
        raise InvariantViolationError(f"{where}: negative probabilities {probs}")
    total = probs.sum()
    if abs(total - 1.0) > tolerance:
        raise InvariantViolationError(
            f"{where}: probabilities sum to {total:.12f}, tolerance = {tolerance}"
        )


def check_regret_invariant(
    strategy: np.ndarray,
    instant_regret: np.ndarray,
    tolerance: float = 1e-6,
    where: str = "infoset"
) -> None:
    """
    Check CFR invariant: sum_a sigma[a] * instant_regret[a] ≈ 0.

    This must hold because:
    - instant_regret[a] = CFV[a] - CFV
    - CFV = sum_a sigma[a] * CFV[a]
    - Therefore: sum_a sigma[a] * (CFV[a] - CFV) = CFV - CFV = 0
    """
    sigma_regret_sum = float(np.dot(strategy, instant_regret))
    if abs(sigma_regret_sum) > tolerance:
        raise InvariantViolationError(
            f"Regret invariant violated at {where}: "
            f"sum(sigma * regret) = {sigma_regret_sum:.9f}, tolerance = {tolerance}"
        )


def check_zero_sum(values: np.ndarray, utility_sum: float = 0.0, tolerance: float = 1e-6) -> None:
    """
    Check constant-sum invariant: sum of player values ≈ utility_sum.

    For a zero-sum game, the expected values of all players sum to zero.
    """
    total = float(np.sum(values))
    if abs(total - utility_sum) > tolerance:
        raise InvariantViolationError(
            f"Constant-sum invariant violated: values={values}, "
            f"sum={total:.6f}, expected {utility_sum:.6f}"
        )
