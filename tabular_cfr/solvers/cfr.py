"""
CFR (Counterfactual Regret Minimization) Solver.

Implements tabular CFR as an exact depth-first traversal of the flattened
game tree, once per iteration, for any number of players. Three switches
select the variant:

1. Alternating updates: one player's regrets per iteration, cycling
2. Linear averaging: average strategy weighted by iteration number t
3. Regret matching plus: cumulative regrets floored at 0 after each update

Reference: Zinkevich et al., "Regret Minimization in Games with Incomplete
Information" (2007).
"""

import logging
from typing import Callable, Optional
import numpy as np

from tabular_cfr.engine.ops import check_regret_invariant, check_zero_sum, uniform_strategy
from tabular_cfr.errors import ConfigurationError
from tabular_cfr.games.base import Game, Player
from tabular_cfr.policy import TabularPolicy
from tabular_cfr.solvers.info_state import InfoStateEntry, InfoStateTable

logger = logging.getLogger(__name__)


class CFRSolverBase:
    """
    Tabular CFR solver with configurable update, averaging and regret rules.

    Reach probabilities are carried as a vector of num_players + 1 entries:
    one per player, and chance last.
    """

    def __init__(
        self,
        game: Game,
        alternating_updates: bool = True,
        linear_averaging: bool = False,
        regret_matching_plus: bool = False,
        check_invariants: bool = False
    ):
        """
        Initialize the CFR solver.

        Args:
            game: Game to solve (its tree must be finite)
            alternating_updates: Update one player per iteration, cycling
            linear_averaging: Weight iteration t's average-policy contribution by t
            regret_matching_plus: Floor cumulative regrets at zero after each update
            check_invariants: If True, run invariant checks (slower but useful for debugging)

        Raises:
            ConfigurationError: on non-boolean switches or an unbounded game tree
        """
        switches = {
            'alternating_updates': alternating_updates,
            'linear_averaging': linear_averaging,
            'regret_matching_plus': regret_matching_plus,
            'check_invariants': check_invariants,
        }
        for name, value in switches.items():
            if not isinstance(value, bool):
                raise ConfigurationError(f"{name} must be a bool, got {value!r}")

        self.game = game
        self.alternating_updates = alternating_updates
        self.linear_averaging = linear_averaging
        self.regret_matching_plus = regret_matching_plus
        self.check_invariants = check_invariants

        # Build game tree once; the solver only ever reads it
        self._tree = game.build_tree()
        self._num_players = game.num_players
        self._root_reach = np.ones(self._num_players + 1, dtype=np.float64)

        # Accumulators, grown lazily during traversal
        self._table = InfoStateTable()

        # Iteration counter
        self._iteration = 0
        self._average_policy: Optional[TabularPolicy] = None

        logger.debug(
            "%s on %s: alternating=%s linear=%s rm_plus=%s",
            type(self).__name__, game.name, alternating_updates,
            linear_averaging, regret_matching_plus
        )

    @property
    def iteration(self) -> int:
        """Number of completed evaluate_and_update_policy calls."""
        return self._iteration

    @property
    def info_state_table(self) -> InfoStateTable:
        return self._table

    def evaluate_and_update_policy(self) -> None:
        """Run one CFR iteration: a full traversal followed by regret matching."""
        self._iteration += 1
        update_player = None
        if self.alternating_updates:
            update_player = (self._iteration - 1) % self._num_players

        root_value = self._compute_counterfactual_regret(0, update_player, self._root_reach.copy())
        if self.check_invariants and self.game.utility_sum is not None:
            check_zero_sum(root_value, self.game.utility_sum)

        for entry in self._table.values():
            if self.regret_matching_plus:
                entry.floor_regrets()
            entry.apply_regret_matching()
        self._average_policy = None

        logger.debug(
            "Iteration %d: updated %s, %d information states",
            self._iteration,
            "all players" if update_player is None else f"player {update_player}",
            len(self._table)
        )

    def iterate(self, num_iterations: int = 1) -> None:
        """
        Run CFR iterations.

        Args:
            num_iterations: Number of iterations to run
        """
        if num_iterations < 0:
            raise ConfigurationError(f"num_iterations must be >= 0, got {num_iterations}")
        for _ in range(num_iterations):
            self.evaluate_and_update_policy()

    def solve(self, iterations: int = 1000) -> TabularPolicy:
        """
        Solve the game by running CFR iterations.

        Args:
            iterations: Number of iterations to run

        Returns:
            The average policy after the final iteration
        """
        self.iterate(iterations)
        logger.info("Finished %d iterations on %s", self._iteration, self.game.name)
        return self.average_policy()

    def _averaging_weight(self) -> float:
        return float(self._iteration) if self.linear_averaging else 1.0

    def _compute_counterfactual_regret(
        self,
        node_id: int,
        update_player: Optional[int],
        reach: np.ndarray
    ) -> np.ndarray:
        """
        Return the expected payoff vector of the subtree under the current policy.

        Updates regrets and policy sums of the update player's information
        states (every player's when update_player is None) along the way.
        """
        node = self._tree.nodes[node_id]

        if node.is_terminal:
            return self._tree.node_utilities[node_id]

        if node.player == Player.CHANCE:
            value = np.zeros(self._num_players, dtype=np.float64)
            for child_id, prob in zip(node.children, node.chance_probs):
                child_reach = reach.copy()
                child_reach[-1] *= prob
                value += prob * self._compute_counterfactual_regret(child_id, update_player, child_reach)
            return value

        player = node.player
        entry = self._table.get_or_create(node.info_state, player, node.actions)
        policy = entry.current_policy

        child_values = np.empty((len(node.children), self._num_players), dtype=np.float64)
        for a_idx, child_id in enumerate(node.children):
            child_reach = reach.copy()
            child_reach[player] *= policy[a_idx]
            child_values[a_idx] = self._compute_counterfactual_regret(child_id, update_player, child_reach)
        value = policy @ child_values

        if update_player is None or update_player == player:
            self._update_entry(entry, node.info_state, player, reach, child_values[:, player], value[player])

        return value

    def _update_entry(
        self,
        entry: InfoStateEntry,
        key: str,
        player: int,
        reach: np.ndarray,
        action_values: np.ndarray,
        state_value: float
    ) -> None:
        # π_{-i}: every other player's reach times chance reach
        counterfactual_reach = np.prod(reach[:player]) * np.prod(reach[player + 1:])
        instant_regret = action_values - state_value

        if self.check_invariants:
            check_regret_invariant(entry.current_policy, instant_regret, where=key)

        entry.cumulative_regrets += counterfactual_reach * instant_regret
        entry.cumulative_policy += self._averaging_weight() * reach[player] * entry.current_policy

    def _snapshot(self, extract: Callable[[InfoStateEntry], np.ndarray]) -> TabularPolicy:
        """Policy over every infoset of the game; undiscovered states are uniform."""
        entries = {}
        for infoset in self._tree.infosets:
            if infoset.key in self._table:
                probs = extract(self._table[infoset.key])
            else:
                probs = uniform_strategy(len(infoset.actions))
            entries[infoset.key] = (infoset.player, infoset.actions, probs)
        return TabularPolicy(entries)

    def current_policy(self) -> TabularPolicy:
        """Regret-matching policy the next iteration will play."""
        return self._snapshot(lambda entry: entry.current_policy)

    def average_policy(self) -> TabularPolicy:
        """
        Get average policy (converges to Nash equilibrium in two-player zero-sum games).

        The snapshot is cached until the next update, so repeated calls
        return identical results.
        """
        if self._average_policy is None:
            self._average_policy = self.tabular_average_policy()
        return self._average_policy

    def tabular_average_policy(self) -> TabularPolicy:
        """Build a fresh average-policy snapshot."""
        return self._snapshot(lambda entry: entry.average_policy())

    def get_strategy_for_infoset(self, key: str) -> np.ndarray:
        """Get average strategy for a specific infoset."""
        return self.average_policy().probabilities(key)

    def print_strategy(self) -> None:
        """Print the average strategy for all infosets."""
        avg_policy = self.average_policy()

        print(f"\nAverage Strategy after {self._iteration} iterations:")
        print("-" * 50)

        for infoset in self._tree.infosets:
            probs = avg_policy.probabilities(infoset.key)
            action_strs = [f"{name}={p:.3f}" for name, p in zip(infoset.action_names, probs)]
            print(f"P{infoset.player} [{infoset.key}]: {', '.join(action_strs)}")


class CFRSolver(CFRSolverBase):
    """Vanilla CFR: alternating updates, uniform averaging, plain regret matching."""

    def __init__(self, game: Game, check_invariants: bool = False):
        super().__init__(
            game,
            alternating_updates=True,
            linear_averaging=False,
            regret_matching_plus=False,
            check_invariants=check_invariants
        )
