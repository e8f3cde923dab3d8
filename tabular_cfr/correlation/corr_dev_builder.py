"""
Correlation devices built from CFR policy snapshots.

A correlation device is a probability distribution over joint policies
(one TabularPolicy per player). The builder accumulates weighted joint
policies, either whole snapshots or deterministic realisations sampled
from them, and merges identical joint policies by summing their weights.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple
import numpy as np

from tabular_cfr.engine.ops import check_distribution, normalize
from tabular_cfr.errors import ConfigurationError
from tabular_cfr.policy import TabularPolicy

logger = logging.getLogger(__name__)


def infer_num_players(policies: Sequence[TabularPolicy]) -> int:
    """One more than the highest player owning an information state in any policy."""
    return max((max(p.players(), default=-1) for p in policies), default=-1) + 1


@dataclass(frozen=True)
class JointPolicy:
    """One policy per player; policies[p] covers player p's information states."""
    policies: Tuple[TabularPolicy, ...]

    @classmethod
    def from_policy(cls, policy: TabularPolicy, num_players: Optional[int] = None) -> 'JointPolicy':
        """
        Split a policy covering every player into per-player policies.

        Raises:
            ConfigurationError: if the policy owns a player >= num_players
        """
        owners = infer_num_players([policy])
        if num_players is None:
            num_players = owners
        elif owners > num_players:
            raise ConfigurationError(
                f"Policy covers player {owners - 1} but the joint policy has {num_players} players"
            )
        return cls(tuple(policy.restrict_to_player(p) for p in range(num_players)))

    @property
    def num_players(self) -> int:
        return len(self.policies)

    def policy_for(self, player: int) -> TabularPolicy:
        return self.policies[player]

    def policy_probabilities(self, player: int, key: str) -> np.ndarray:
        return self.policies[player].probabilities(key)

    def is_deterministic(self) -> bool:
        return all(p.is_deterministic() for p in self.policies)

    def fingerprint(self) -> Tuple:
        return tuple(p.fingerprint() for p in self.policies)


class CorrelationDevice:
    """Immutable weighted sequence of joint policies with weights summing to 1."""

    def __init__(self, entries: Sequence[Tuple[float, JointPolicy]]):
        """
        Raises:
            ConfigurationError: if there are no entries
            InvariantViolationError: if the weights are not a distribution
        """
        if len(entries) == 0:
            raise ConfigurationError("A correlation device needs at least one joint policy")
        weights = np.array([w for w, _ in entries], dtype=np.float64)
        check_distribution(weights, where="correlation device weights")
        self._entries: Tuple[Tuple[float, JointPolicy], ...] = tuple(
            (float(w), jp) for w, jp in entries
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tuple[float, JointPolicy]]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> Tuple[float, JointPolicy]:
        return self._entries[index]

    @property
    def weights(self) -> np.ndarray:
        return np.array([w for w, _ in self._entries], dtype=np.float64)

    @property
    def joint_policies(self) -> Tuple[JointPolicy, ...]:
        return tuple(jp for _, jp in self._entries)

    def __repr__(self) -> str:
        return f"CorrelationDevice({len(self._entries)} joint policies)"


def sample_deterministic_policy(policy: TabularPolicy, rng: np.random.Generator) -> TabularPolicy:
    """Draw one action per information state from the policy's distributions."""
    chosen = {}
    for key, entry in policy.items():
        a_idx = rng.choice(len(entry.actions), p=entry.probs)
        chosen[key] = entry.actions[a_idx]
    return policy.to_deterministic(chosen)


class CorrDevBuilder:
    """
    Accumulates weighted joint policies into a correlation device.

    Args:
        seed: Seed for the sampling generator (None for fresh entropy)
        num_players: Players per joint policy; None takes the count from
            the first policy added and keeps it for every later one
    """

    def __init__(self, seed: Optional[int] = None, num_players: Optional[int] = None):
        self._rng = np.random.default_rng(seed)
        self.num_players = num_players
        self._joint_policies: List[JointPolicy] = []
        self._weights: List[float] = []
        self._index: Dict[Tuple, int] = {}

    @property
    def num_policies(self) -> int:
        """Number of distinct joint policies added so far."""
        return len(self._joint_policies)

    @property
    def total_weight(self) -> float:
        return float(sum(self._weights))

    def _joint(self, policy: TabularPolicy) -> JointPolicy:
        if self.num_players is None:
            self.num_players = infer_num_players([policy])
        return JointPolicy.from_policy(policy, self.num_players)

    def _add(self, joint_policy: JointPolicy, weight: float) -> None:
        fp = joint_policy.fingerprint()
        idx = self._index.get(fp)
        if idx is None:
            self._index[fp] = len(self._joint_policies)
            self._joint_policies.append(joint_policy)
            self._weights.append(weight)
        else:
            self._weights[idx] += weight

    @staticmethod
    def _check_weight(weight: float) -> None:
        if not weight >= 0:
            raise ConfigurationError(f"weight must be >= 0, got {weight}")

    def add_deterministic_joint_policy(self, policy: TabularPolicy, weight: float = 1.0) -> None:
        """
        Add a deterministic policy as one joint policy.

        Raises:
            ConfigurationError: for a negative weight or a mixed policy
        """
        self._check_weight(weight)
        if not policy.is_deterministic():
            raise ConfigurationError("add_deterministic_joint_policy requires a deterministic policy")
        self._add(self._joint(policy), weight)

    def add_sampled_joint_policy(self, policy: TabularPolicy, num_samples: int, weight: float = 1.0) -> None:
        """
        Sample deterministic realisations of a policy and add each one.

        Args:
            policy: Snapshot covering every player's information states
            num_samples: Number of independent realisations to draw
            weight: Weight given to each realisation
        """
        if num_samples < 1:
            raise ConfigurationError(f"num_samples must be >= 1, got {num_samples}")
        self._check_weight(weight)
        for _ in range(num_samples):
            sampled = sample_deterministic_policy(policy, self._rng)
            self._add(self._joint(sampled), weight)
        logger.debug("Added %d samples; device holds %d joint policies", num_samples, self.num_policies)

    def add_mixed_joint_policy(self, policy: TabularPolicy, weight: float = 1.0, max_policies: int = 10000) -> None:
        """
        Add every deterministic realisation of a policy, weighted by its probability.

        Raises:
            ConfigurationError: if the realisations outnumber max_policies
        """
        self._check_weight(weight)
        keys = list(policy.keys())
        supports = []
        for key in keys:
            entry = policy.entry(key)
            support = [(entry.actions[i], float(entry.probs[i])) for i in np.flatnonzero(entry.probs)]
            supports.append(support)

        count = 1
        for support in supports:
            count *= len(support)
        if count > max_policies:
            raise ConfigurationError(
                f"Policy has {count} deterministic realisations, more than max_policies={max_policies}"
            )

        for combo in itertools.product(*supports):
            prob = float(np.prod([p for _, p in combo]))
            chosen = {key: action for key, (action, _) in zip(keys, combo)}
            self._add(self._joint(policy.to_deterministic(chosen)), weight * prob)

    def get_correlation_device(self) -> CorrelationDevice:
        """
        Normalise the accumulated weights into a device.

        Raises:
            ConfigurationError: if nothing was added or the total weight is zero
        """
        if not self._joint_policies:
            raise ConfigurationError("No joint policies were added to the builder")
        if self.total_weight <= 0:
            raise ConfigurationError("Joint policies in the builder have zero total weight")
        weights = normalize(np.array(self._weights, dtype=np.float64))
        return CorrelationDevice(list(zip(weights, self._joint_policies)))


def uniform_correlation_device(
    policies: Sequence[TabularPolicy],
    num_players: Optional[int] = None
) -> CorrelationDevice:
    """
    Device giving each full policy weight 1/len(policies), without resampling.

    num_players defaults to infer_num_players(policies), so every joint
    policy in the device has the same number of players.
    """
    if len(policies) == 0:
        raise ConfigurationError("uniform_correlation_device needs at least one policy")
    if num_players is None:
        num_players = infer_num_players(policies)
    weight = 1.0 / len(policies)
    return CorrelationDevice([
        (weight, JointPolicy.from_policy(p, num_players)) for p in policies
    ])
