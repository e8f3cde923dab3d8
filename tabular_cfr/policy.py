"""
Tabular policy snapshots (Layer 3).

A TabularPolicy maps information-state keys to a probability distribution
over that state's legal actions. It is an immutable value: probability
arrays are copied on construction and marked read-only, so holding a
snapshot never aliases solver state.

It may only import from: tabular_cfr.games, tabular_cfr.engine, tabular_cfr.errors
"""

from typing import Dict, Iterator, Mapping, NamedTuple, Optional, Sequence, Tuple
import numpy as np

from tabular_cfr.engine.ops import check_distribution, uniform_strategy
from tabular_cfr.errors import InvariantViolationError
from tabular_cfr.games.base import GameTree


class PolicyEntry(NamedTuple):
    """Distribution at one information state."""
    player: int
    actions: Tuple[int, ...]
    probs: np.ndarray


class TabularPolicy:
    """Immutable mapping: info-state key -> action-probability distribution."""

    def __init__(self, entries: Mapping[str, Tuple[int, Sequence[int], Sequence[float]]]):
        """
        Args:
            entries: key -> (owning player, legal actions, probabilities)

        Raises:
            InvariantViolationError: if a distribution is invalid or does not
                match its action list
        """
        self._entries: Dict[str, PolicyEntry] = {}
        for key, (player, actions, probs) in entries.items():
            actions = tuple(int(a) for a in actions)
            probs = np.array(probs, dtype=np.float64)
            if len(set(actions)) != len(actions) or len(actions) != len(probs):
                raise InvariantViolationError(
                    f"Policy at {key!r}: actions {actions} do not match probabilities {probs}"
                )
            check_distribution(probs, where=f"policy at {key!r}")
            probs.flags.writeable = False
            self._entries[key] = PolicyEntry(int(player), actions, probs)
        self._fingerprint: Optional[Tuple] = None

    @classmethod
    def uniform(cls, tree: GameTree) -> 'TabularPolicy':
        """Uniform random policy over every information state of the tree."""
        return cls({
            info.key: (info.player, info.actions, uniform_strategy(len(info.actions)))
            for info in tree.infosets
        })

    @classmethod
    def from_action_probabilities(
        cls,
        tree: GameTree,
        table: Mapping[str, Mapping[int, float]],
        fill_uniform: bool = False
    ) -> 'TabularPolicy':
        """
        Build a policy from {key: {action: prob}} dictionaries.

        Actions missing from a state's dictionary get probability 0. States
        missing from the table are uniform when fill_uniform is set.

        Raises:
            KeyError: for an unknown key, or a missing one without fill_uniform
            InvariantViolationError: for an action outside the state's actions
        """
        unknown = set(table) - set(tree.infoset_index)
        if unknown:
            raise KeyError(f"Unknown information states: {sorted(unknown)}")

        entries = {}
        for info in tree.infosets:
            if info.key not in table:
                if not fill_uniform:
                    raise KeyError(f"No distribution given for information state {info.key!r}")
                entries[info.key] = (info.player, info.actions, uniform_strategy(len(info.actions)))
                continue
            dist = table[info.key]
            illegal = set(dist) - set(info.actions)
            if illegal:
                raise InvariantViolationError(
                    f"Actions {sorted(illegal)} are not legal at {info.key!r} (legal: {info.actions})"
                )
            probs = [dist.get(a, 0.0) for a in info.actions]
            entries[info.key] = (info.player, info.actions, probs)
        return cls(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def keys(self):
        return self._entries.keys()

    def items(self):
        return self._entries.items()

    def entry(self, key: str) -> PolicyEntry:
        return self._entries[key]

    def probabilities(self, key: str) -> np.ndarray:
        """Read-only probability vector aligned with legal_actions(key)."""
        return self._entries[key].probs

    def policy_probabilities(self, player: int, key: str) -> np.ndarray:
        """Profile lookup used by evaluators; keys already identify the player."""
        return self._entries[key].probs

    def legal_actions(self, key: str) -> Tuple[int, ...]:
        return self._entries[key].actions

    def player(self, key: str) -> int:
        return self._entries[key].player

    def players(self) -> Tuple[int, ...]:
        return tuple(sorted({e.player for e in self._entries.values()}))

    def action_probabilities(self, key: str) -> Dict[int, float]:
        entry = self._entries[key]
        return {a: float(p) for a, p in zip(entry.actions, entry.probs)}

    def restrict_to_player(self, player: int) -> 'TabularPolicy':
        """Sub-policy holding only the information states owned by player."""
        return TabularPolicy({
            key: e for key, e in self._entries.items() if e.player == player
        })

    def is_deterministic(self) -> bool:
        return all(np.count_nonzero(e.probs) == 1 for e in self._entries.values())

    def deterministic_action(self, key: str) -> int:
        """
        Return the single action played at key.

        Raises:
            ValueError: if the distribution at key is mixed
        """
        entry = self._entries[key]
        support = np.flatnonzero(entry.probs)
        if len(support) != 1:
            raise ValueError(f"Policy at {key!r} is mixed: {entry.probs}")
        return entry.actions[support[0]]

    def to_deterministic(self, chosen: Mapping[str, int]) -> 'TabularPolicy':
        """
        Pure policy on the same states, playing chosen[key] with probability 1.

        Raises:
            InvariantViolationError: if a chosen action is not legal
        """
        entries = {}
        for key, e in self._entries.items():
            action = chosen[key]
            if action not in e.actions:
                raise InvariantViolationError(
                    f"Action {action} is not legal at {key!r} (legal: {e.actions})"
                )
            probs = np.zeros(len(e.actions))
            probs[e.actions.index(action)] = 1.0
            entries[key] = (e.player, e.actions, probs)
        return TabularPolicy(entries)

    def to_dict(self) -> Dict[str, Dict[int, float]]:
        return {key: self.action_probabilities(key) for key in self._entries}

    def fingerprint(self) -> Tuple:
        """Hashable, bit-exact identity of the policy."""
        if self._fingerprint is None:
            self._fingerprint = tuple(
                (key, e.actions, e.probs.tobytes())
                for key, e in sorted(self._entries.items())
            )
        return self._fingerprint

    def __eq__(self, other) -> bool:
        if not isinstance(other, TabularPolicy):
            return NotImplemented
        return self.fingerprint() == other.fingerprint()

    def __hash__(self) -> int:
        return hash(self.fingerprint())

    def __repr__(self) -> str:
        return f"TabularPolicy({len(self._entries)} information states)"
