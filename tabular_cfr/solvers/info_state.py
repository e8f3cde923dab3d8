"""
Per-information-state CFR accumulators.

The table is keyed by information-state key and grows lazily as the solver
discovers states; entries are never removed.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Sequence, Tuple
import numpy as np

from tabular_cfr.engine.ops import normalize, regret_match, uniform_strategy
from tabular_cfr.errors import InvariantViolationError


@dataclass
class InfoStateEntry:
    """
    Accumulators for one information state.

    Attributes:
        player: Owner of the information state
        legal_actions: Actions, fixed on discovery; vectors are indexed by position
        cumulative_regrets: Sum of reach-weighted instantaneous regrets
        cumulative_policy: Sum of reach-weighted (optionally iteration-weighted) strategies
        current_policy: Regret-matching strategy as of the last update
    """
    player: int
    legal_actions: Tuple[int, ...]
    cumulative_regrets: np.ndarray = field(init=False)
    cumulative_policy: np.ndarray = field(init=False)
    current_policy: np.ndarray = field(init=False)

    def __post_init__(self):
        num_actions = len(self.legal_actions)
        self.cumulative_regrets = np.zeros(num_actions, dtype=np.float64)
        self.cumulative_policy = np.zeros(num_actions, dtype=np.float64)
        self.current_policy = uniform_strategy(num_actions)

    @property
    def num_actions(self) -> int:
        return len(self.legal_actions)

    def apply_regret_matching(self) -> None:
        self.current_policy = regret_match(self.cumulative_regrets)

    def floor_regrets(self) -> None:
        """Regret-matching-plus reset: cumulative regrets never go below zero."""
        np.maximum(self.cumulative_regrets, 0.0, out=self.cumulative_regrets)

    def average_policy(self) -> np.ndarray:
        return normalize(self.cumulative_policy)


class InfoStateTable:
    """Mapping: info-state key -> InfoStateEntry."""

    def __init__(self):
        self._entries: Dict[str, InfoStateEntry] = {}

    def get_or_create(self, key: str, player: int, legal_actions: Sequence[int]) -> InfoStateEntry:
        """
        Return the entry for key, creating it on first visit.

        Raises:
            InvariantViolationError: if key was discovered with a different
                owner or action set
        """
        entry = self._entries.get(key)
        if entry is None:
            entry = InfoStateEntry(player=player, legal_actions=tuple(legal_actions))
            self._entries[key] = entry
        elif entry.player != player or entry.legal_actions != tuple(legal_actions):
            raise InvariantViolationError(
                f"Information state {key!r} revisited with player {player} and actions "
                f"{tuple(legal_actions)}, discovered with player {entry.player} and "
                f"{entry.legal_actions}"
            )
        return entry

    def __getitem__(self, key: str) -> InfoStateEntry:
        return self._entries[key]

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def items(self):
        return self._entries.items()

    def values(self):
        return self._entries.values()
