"""
Distance of a correlation device from the coarse correlated equilibrium set.

For each player p the device is evaluated twice:

- on-policy: every player follows the drawn joint policy,
  v_p = Σ_k w_k v_p(π_k)
- best deviation: p commits to one fixed policy before the draw, without
  seeing which joint policy was recommended, while the others follow π_k

The deviation problem is the game preceded by a hidden chance node that
draws k with probability w_k. p's information states are unchanged, so a
BestResponse against the weighted mixture solves it exactly. The distance
is the summed positive deviation incentive. A device with a single joint
policy gives NashConv.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from tabular_cfr.errors import ConfigurationError
from tabular_cfr.games.base import Game
from tabular_cfr.policy import TabularPolicy
from tabular_cfr.evaluation.best_response import BestResponse
from tabular_cfr.evaluation.profiles import mixture_value
from tabular_cfr.correlation.corr_dev_builder import CorrelationDevice

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorrDistConfig:
    """
    Options for cce_dist.

    Attributes:
        players: Players whose deviation incentives are summed (None for all)
    """
    players: Optional[Tuple[int, ...]] = None


@dataclass(frozen=True)
class CorrDistInfo:
    """Result of cce_dist; per-player tuples are indexed by player id."""
    dist_value: float
    on_policy_values: Tuple[float, ...]
    best_response_values: Tuple[float, ...]
    deviation_incentives: Tuple[float, ...]
    best_response_policies: Tuple[TabularPolicy, ...]
    players: Tuple[int, ...]


def _considered_players(game: Game, config: CorrDistConfig) -> Tuple[int, ...]:
    if config.players is None:
        return tuple(range(game.num_players))
    players = tuple(config.players)
    for p in players:
        if not 0 <= p < game.num_players:
            raise ConfigurationError(f"Player {p} out of range for {game.num_players} players")
    if len(set(players)) != len(players):
        raise ConfigurationError(f"Duplicate players in {players}")
    return players


def cce_dist(game: Game, device: CorrelationDevice, config: CorrDistConfig = CorrDistConfig()) -> CorrDistInfo:
    """
    Compute the CCE distance of a correlation device.

    Args:
        game: Game the joint policies are defined on
        device: Correlation device to evaluate
        config: Evaluation options

    Returns:
        CorrDistInfo; players outside config.players get zero best-response
        value, zero incentive and an empty policy

    Raises:
        ConfigurationError: if a joint policy does not have one policy per player
    """
    players = _considered_players(game, config)
    for _, joint in device:
        if joint.num_players != game.num_players:
            raise ConfigurationError(
                f"Joint policy has {joint.num_players} players, {game.name} has {game.num_players}"
            )
    tree = game.build_tree()
    entries = list(device)
    on_policy = mixture_value(tree, entries)

    n = game.num_players
    br_values = [0.0] * n
    incentives = [0.0] * n
    br_policies = [TabularPolicy({})] * n
    for p in players:
        br = BestResponse(tree, p, entries)
        br_values[p] = br.value()
        br_policies[p] = br.policy()
        incentives[p] = max(0.0, br_values[p] - float(on_policy[p]))
        logger.debug(
            "Player %d: on-policy %.6f, best deviation %.6f, incentive %.6f",
            p, on_policy[p], br_values[p], incentives[p]
        )

    dist = float(sum(incentives))
    logger.debug("CCE distance over %d joint policies: %.6f", len(device), dist)
    return CorrDistInfo(
        dist_value=dist,
        on_policy_values=tuple(float(v) for v in on_policy),
        best_response_values=tuple(br_values),
        deviation_incentives=tuple(incentives),
        best_response_policies=tuple(br_policies),
        players=players,
    )
