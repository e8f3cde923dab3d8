"""
NashConv and exploitability of a fixed policy profile.

NashConv sums, over players, how much each player gains by switching to a
best response while everyone else keeps the profile:

    NashConv(π) = Σ_p (BR_p(π_{-p}) - v_p(π))

It is non-negative, and zero exactly at a Nash equilibrium. For
constant-sum games exploitability is (Σ_p BR_p - utility_sum) / n.
"""

import logging
from dataclasses import dataclass
from typing import Tuple
import numpy as np

from tabular_cfr.errors import ConfigurationError
from tabular_cfr.games.base import Game
from tabular_cfr.policy import TabularPolicy
from tabular_cfr.evaluation.best_response import BestResponse
from tabular_cfr.evaluation.profiles import Profile, profile_value, single_profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NashConvInfo:
    """Per-player breakdown of a NashConv computation."""
    nash_conv: float
    on_policy_values: Tuple[float, ...]
    best_response_values: Tuple[float, ...]
    player_improvements: Tuple[float, ...]
    best_response_policies: Tuple[TabularPolicy, ...]


def expected_returns(game: Game, policy: Profile) -> np.ndarray:
    """Expected payoff of every player when all of them follow policy."""
    return profile_value(game.build_tree(), policy)


def nash_conv_info(game: Game, policy: Profile) -> NashConvInfo:
    """
    Compute NashConv with the per-player values that make it up.

    Args:
        game: Game the policy is defined on
        policy: Profile covering every information state of every player

    Returns:
        NashConvInfo
    """
    tree = game.build_tree()
    on_policy = profile_value(tree, policy)
    profiles = single_profile(policy)

    br_values = []
    br_policies = []
    for player in range(game.num_players):
        br = BestResponse(tree, player, profiles)
        br_values.append(br.value())
        br_policies.append(br.policy())

    improvements = [br_v - float(on_policy[p]) for p, br_v in enumerate(br_values)]
    total = float(sum(improvements))
    logger.debug("NashConv on %s: %.6f (improvements %s)", game.name, total, improvements)

    return NashConvInfo(
        nash_conv=total,
        on_policy_values=tuple(float(v) for v in on_policy),
        best_response_values=tuple(br_values),
        player_improvements=tuple(improvements),
        best_response_policies=tuple(br_policies),
    )


def nash_conv(game: Game, policy: Profile) -> float:
    """Sum of best-response gains over all players."""
    return nash_conv_info(game, policy).nash_conv


def exploitability(game: Game, policy: Profile) -> float:
    """
    Average best-response gain for a constant-sum game.

    Raises:
        ConfigurationError: if the game is not constant-sum
    """
    if game.utility_sum is None:
        raise ConfigurationError(f"Exploitability requires a constant-sum game; {game.name} is general-sum")
    tree = game.build_tree()
    profiles = single_profile(policy)
    br_total = sum(BestResponse(tree, p, profiles).value() for p in range(game.num_players))
    return (br_total - game.utility_sum) / game.num_players
