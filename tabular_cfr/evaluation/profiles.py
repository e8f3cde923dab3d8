"""
Policy profiles as seen by the evaluators.

Everything the evaluators need from a policy (a single tabular policy, a
joint policy, or one entry of a correlation device) is one capability:
the action distribution of a player at an information state. A weighted
list of such profiles covers both a fixed profile (one entry, weight 1)
and a correlation device.
"""

from typing import Protocol, Sequence, Tuple
import numpy as np

from tabular_cfr.engine.ops import check_distribution
from tabular_cfr.errors import ConfigurationError, InvariantViolationError
from tabular_cfr.games.base import GameTree, Node


class Profile(Protocol):
    """Anything that yields a distribution for (player, info-state key)."""

    def policy_probabilities(self, player: int, key: str) -> np.ndarray:
        ...


WeightedProfiles = Sequence[Tuple[float, Profile]]


def single_profile(profile: Profile) -> WeightedProfiles:
    return [(1.0, profile)]


def check_weights(profiles: WeightedProfiles, tolerance: float = 1e-9) -> None:
    """
    Check that mixture weights form a distribution.

    Raises:
        ConfigurationError: for an empty mixture
        InvariantViolationError: for negative weights or a bad total
    """
    if len(profiles) == 0:
        raise ConfigurationError("At least one profile is required")
    weights = np.array([w for w, _ in profiles], dtype=np.float64)
    check_distribution(weights, tolerance=tolerance, where="profile weights")


def node_probabilities(profile: Profile, node: Node) -> np.ndarray:
    """
    Distribution a profile assigns at a decision node.

    Raises:
        InvariantViolationError: if the profile has no distribution for the
            node's information state or its size does not match the actions
    """
    try:
        probs = profile.policy_probabilities(node.player, node.info_state)
    except KeyError as exc:
        raise InvariantViolationError(
            f"Profile has no distribution for information state {node.info_state!r}"
        ) from exc
    if len(probs) != len(node.actions):
        raise InvariantViolationError(
            f"Profile distribution at {node.info_state!r} has {len(probs)} entries "
            f"for {len(node.actions)} legal actions"
        )
    return probs


def profile_value(tree: GameTree, profile: Profile) -> np.ndarray:
    """Expected payoff vector when every player follows the profile."""

    def value(node_id: int) -> np.ndarray:
        node = tree.nodes[node_id]
        if node.is_terminal:
            return tree.node_utilities[node_id]
        if node.player < 0:
            probs = node.chance_probs
        else:
            probs = node_probabilities(profile, node)
        total = np.zeros(tree.num_players, dtype=np.float64)
        for child_id, prob in zip(node.children, probs):
            if prob > 0:
                total += prob * value(child_id)
        return total

    return value(0)


def mixture_value(tree: GameTree, profiles: WeightedProfiles) -> np.ndarray:
    """Weighted average of the profiles' expected payoff vectors."""
    total = np.zeros(tree.num_players, dtype=np.float64)
    for weight, profile in profiles:
        if weight > 0:
            total += weight * profile_value(tree, profile)
    return total
