"""
Exact best response against a fixed profile or a mixture of profiles.

The responder's action is chosen per information state, not per node:
every node of the state contributes its child values weighted by its
counterfactual reach (mixture weight × chance reach × the other players'
reach). With perfect recall this backward induction is exact, and a
mixture of one profile reduces to the ordinary best response used by
NashConv.

For a mixture the responder does not observe which profile was drawn, so
the result is the best single deviation policy against the whole mixture.
"""

import logging
from typing import Dict, List, Tuple
import numpy as np

from tabular_cfr.errors import ConfigurationError
from tabular_cfr.games.base import GameTree, Player
from tabular_cfr.policy import TabularPolicy
from tabular_cfr.evaluation.profiles import WeightedProfiles, check_weights, node_probabilities

logger = logging.getLogger(__name__)


class BestResponse:
    """
    Best response of one player against weighted profiles.

    Args:
        tree: Flattened game tree
        player: Responding player
        profiles: (weight, profile) pairs; weights must sum to 1
    """

    def __init__(self, tree: GameTree, player: int, profiles: WeightedProfiles):
        if not 0 <= player < tree.num_players:
            raise ConfigurationError(f"Player {player} out of range for {tree.num_players} players")
        check_weights(profiles)

        self._tree = tree
        self._player = player
        self._profiles = list(profiles)

        # info-state key -> [(profile index, node id, counterfactual reach)]
        self._infoset_nodes: Dict[str, List[Tuple[int, int, float]]] = {}
        self._best_actions: Dict[str, int] = {}
        self._values: Dict[Tuple[int, int], float] = {}

        for k, (weight, _) in enumerate(self._profiles):
            if weight > 0:
                self._collect_infosets(k, 0, weight)

    @property
    def player(self) -> int:
        return self._player

    def _collect_infosets(self, k: int, node_id: int, cf_reach: float) -> None:
        """Record the responder's nodes with their counterfactual reach under profile k."""
        node = self._tree.nodes[node_id]
        if node.is_terminal:
            return
        if node.player == Player.CHANCE:
            probs = node.chance_probs
        elif node.player == self._player:
            self._infoset_nodes.setdefault(node.info_state, []).append((k, node_id, cf_reach))
            for child_id in node.children:
                self._collect_infosets(k, child_id, cf_reach)
            return
        else:
            probs = node_probabilities(self._profiles[k][1], node)

        for child_id, prob in zip(node.children, probs):
            if prob > 0:
                self._collect_infosets(k, child_id, cf_reach * prob)

    def _value(self, k: int, node_id: int) -> float:
        """Responder's payoff below node_id when the others follow profile k."""
        memo_key = (k, node_id)
        cached = self._values.get(memo_key)
        if cached is not None:
            return cached

        node = self._tree.nodes[node_id]
        if node.is_terminal:
            value = float(self._tree.node_utilities[node_id, self._player])
        elif node.player == self._player:
            a_idx = self._best_action_index(node.info_state)
            value = self._value(k, node.children[a_idx])
        else:
            if node.player == Player.CHANCE:
                probs = node.chance_probs
            else:
                probs = node_probabilities(self._profiles[k][1], node)
            value = 0.0
            for child_id, prob in zip(node.children, probs):
                if prob > 0:
                    value += prob * self._value(k, child_id)

        self._values[memo_key] = value
        return value

    def action_values(self, key: str) -> np.ndarray:
        """Counterfactual-reach-weighted value of each action at one of the responder's states."""
        infoset = self._tree.infoset(key)
        if infoset.player != self._player:
            raise ConfigurationError(f"{key!r} belongs to player {infoset.player}, not {self._player}")
        q_values = np.zeros(len(infoset.actions), dtype=np.float64)
        for k, node_id, cf_reach in self._infoset_nodes.get(key, ()):
            node = self._tree.nodes[node_id]
            for a_idx, child_id in enumerate(node.children):
                q_values[a_idx] += cf_reach * self._value(k, child_id)
        return q_values

    def _best_action_index(self, key: str) -> int:
        best = self._best_actions.get(key)
        if best is None:
            # States the profiles never reach keep the first action
            best = int(np.argmax(self.action_values(key)))
            self._best_actions[key] = best
        return best

    def best_response_action(self, key: str) -> int:
        """Action the best response plays at information state key."""
        return self._tree.infoset(key).actions[self._best_action_index(key)]

    def value(self) -> float:
        """Expected payoff of the best response, averaged over the profile weights."""
        value = sum(
            weight * self._value(k, 0)
            for k, (weight, _) in enumerate(self._profiles)
            if weight > 0
        )
        logger.debug("Best response value for player %d: %.6f", self._player, value)
        return value

    def policy(self) -> TabularPolicy:
        """Deterministic policy over every information state of the responder."""
        entries = {}
        for infoset in self._tree.infosets_for_player(self._player):
            probs = np.zeros(len(infoset.actions))
            probs[self._best_action_index(infoset.key)] = 1.0
            entries[infoset.key] = (infoset.player, infoset.actions, probs)
        return TabularPolicy(entries)
