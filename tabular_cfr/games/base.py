"""
Abstract base classes for game definitions.

This module defines the interface that all games must implement, and the
flattened GameTree that every solver and evaluator traverses.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Tuple, Dict, Optional, Sequence
import numpy as np

from tabular_cfr.errors import ConfigurationError, InvariantViolationError

logger = logging.getLogger(__name__)

# Chance outcome probabilities must sum to 1 within this tolerance
CHANCE_TOLERANCE = 1e-9


class Player(IntEnum):
    """Special player identifiers (real players are 0..num_players-1)."""
    CHANCE = -1
    TERMINAL = -2


class State(ABC):
    """A history in an extensive-form game."""

    @abstractmethod
    def current_player(self) -> int:
        """Player to move, Player.CHANCE or Player.TERMINAL."""
        pass

    def is_terminal(self) -> bool:
        return self.current_player() == Player.TERMINAL

    def is_chance_node(self) -> bool:
        return self.current_player() == Player.CHANCE

    @abstractmethod
    def legal_actions(self) -> List[int]:
        """Legal actions at a decision node, in a fixed order."""
        pass

    @abstractmethod
    def chance_outcomes(self) -> List[Tuple[int, float]]:
        """(action, probability) pairs at a chance node."""
        pass

    @abstractmethod
    def information_state_key(self, player: Optional[int] = None) -> str:
        """
        Return a string key identifying the information set.

        Two histories belong to the same infoset iff they have the same key.
        Keys must be unique across players.
        """
        pass

    @abstractmethod
    def child(self, action: int) -> 'State':
        """Return the state reached by applying action (self is unchanged)."""
        pass

    @abstractmethod
    def returns(self) -> Sequence[float]:
        """Payoff for each player at a terminal state."""
        pass

    def action_to_string(self, player: int, action: int) -> str:
        return str(action)


@dataclass
class Node:
    """A node in the game tree."""
    id: int
    parent_id: Optional[int]
    player: int
    info_state: Optional[str]  # None for chance/terminal nodes
    actions: Tuple[int, ...]  # Empty for terminal nodes
    children: Tuple[int, ...]  # Child node ids, aligned with actions
    chance_probs: Tuple[float, ...]  # Outcome probabilities at chance nodes
    depth: int
    is_terminal: bool
    utility: Optional[Tuple[float, ...]]  # Payoffs for each player if terminal


@dataclass
class Infoset:
    """An information set (nodes indistinguishable to a player)."""
    id: int
    player: int
    actions: Tuple[int, ...]
    action_names: Tuple[str, ...]
    node_ids: List[int]  # Nodes belonging to this infoset
    key: str


@dataclass
class GameTree:
    """Complete game tree structure."""
    nodes: List[Node]
    infosets: List[Infoset]
    infoset_index: Dict[str, int]

    # Counts
    num_nodes: int
    num_terminals: int
    num_decision_nodes: int
    num_infosets: int
    num_players: int
    max_depth: int

    # Utilities matrix: (num_terminals, num_players), in node order
    terminal_utilities: np.ndarray

    # Per-node payoff vectors (zeros for non-terminal nodes)
    node_utilities: np.ndarray

    @property
    def root(self) -> Node:
        return self.nodes[0]

    def infoset(self, key: str) -> Infoset:
        return self.infosets[self.infoset_index[key]]

    def infosets_for_player(self, player: int) -> List[Infoset]:
        return [info for info in self.infosets if info.player == player]


class Game(ABC):
    """Abstract base class for extensive-form games."""

    _tree: Optional[GameTree] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the game."""
        pass

    @property
    @abstractmethod
    def num_players(self) -> int:
        """Number of players (excluding chance)."""
        pass

    @property
    @abstractmethod
    def max_game_length(self) -> int:
        """Upper bound on the number of moves (chance included) in a play."""
        pass

    @property
    def utility_sum(self) -> Optional[float]:
        """Constant sum of the returns, or None for general-sum games."""
        return None

    @abstractmethod
    def new_initial_state(self) -> State:
        """Return the root history."""
        pass

    def build_tree(self) -> GameTree:
        """Build (once) and return the complete game tree."""
        if self._tree is None:
            self._tree = build_game_tree(self)
        return self._tree


def build_game_tree(game: Game) -> GameTree:
    """
    Flatten the reachable game tree by depth-first traversal of states.

    Raises:
        ConfigurationError: if the tree is deeper than game.max_game_length
        InvariantViolationError: if chance probabilities do not sum to 1,
            or an information state is seen with different actions/owner
    """
    num_players = game.num_players
    if num_players < 1:
        raise ConfigurationError(f"Game {game.name} must have at least one player")

    nodes: List[Node] = []
    infosets: Dict[str, Infoset] = {}
    infoset_list: List[Infoset] = []

    def get_or_create_infoset(state: State, player: int, actions: Tuple[int, ...]) -> int:
        key = state.information_state_key(player)
        infoset = infosets.get(key)
        if infoset is None:
            infoset = Infoset(
                id=len(infoset_list),
                player=player,
                actions=actions,
                action_names=tuple(state.action_to_string(player, a) for a in actions),
                node_ids=[],
                key=key
            )
            infosets[key] = infoset
            infoset_list.append(infoset)
        elif infoset.player != player or infoset.actions != actions:
            raise InvariantViolationError(
                f"Information state {key!r} seen with player {player} and actions "
                f"{actions}, previously player {infoset.player} with {infoset.actions}"
            )
        return infoset.id

    def build_subtree(state: State, parent_id: Optional[int], depth: int) -> int:
        if depth > game.max_game_length:
            raise ConfigurationError(
                f"Game {game.name} exceeds its declared max_game_length "
                f"({game.max_game_length}); only finite trees can be solved exactly"
            )

        node = Node(
            id=len(nodes),
            parent_id=parent_id,
            player=int(state.current_player()),
            info_state=None,
            actions=(),
            children=(),
            chance_probs=(),
            depth=depth,
            is_terminal=state.is_terminal(),
            utility=None
        )
        nodes.append(node)

        if node.is_terminal:
            utility = tuple(float(r) for r in state.returns())
            if len(utility) != num_players:
                raise InvariantViolationError(
                    f"Terminal returns {utility} do not have {num_players} entries"
                )
            node.utility = utility
            return node.id

        if state.is_chance_node():
            outcomes = state.chance_outcomes()
            total = sum(prob for _, prob in outcomes)
            if abs(total - 1.0) > CHANCE_TOLERANCE or any(prob < 0 for _, prob in outcomes):
                raise InvariantViolationError(
                    f"Chance outcomes at depth {depth} are not a distribution: {outcomes}"
                )
            node.actions = tuple(action for action, _ in outcomes)
            node.chance_probs = tuple(float(prob) for _, prob in outcomes)
        else:
            actions = tuple(state.legal_actions())
            if not actions:
                raise InvariantViolationError(
                    f"Decision node for player {node.player} has no legal actions"
                )
            infoset_id = get_or_create_infoset(state, node.player, actions)
            infoset_list[infoset_id].node_ids.append(node.id)
            node.info_state = infoset_list[infoset_id].key
            node.actions = actions

        node.children = tuple(
            build_subtree(state.child(action), node.id, depth + 1)
            for action in node.actions
        )
        return node.id

    build_subtree(game.new_initial_state(), None, 0)

    num_nodes = len(nodes)
    terminal_ids = [n.id for n in nodes if n.is_terminal]
    node_utilities = np.zeros((num_nodes, num_players), dtype=np.float64)
    for tid in terminal_ids:
        node_utilities[tid] = nodes[tid].utility

    tree = GameTree(
        nodes=nodes,
        infosets=infoset_list,
        infoset_index={info.key: info.id for info in infoset_list},
        num_nodes=num_nodes,
        num_terminals=len(terminal_ids),
        num_decision_nodes=sum(1 for n in nodes if not n.is_terminal and n.player >= 0),
        num_infosets=len(infoset_list),
        num_players=num_players,
        max_depth=max(n.depth for n in nodes),
        terminal_utilities=node_utilities[terminal_ids],
        node_utilities=node_utilities
    )
    logger.info(
        "Built %s tree: %d nodes, %d terminals, %d infosets, depth %d",
        game.name, tree.num_nodes, tree.num_terminals, tree.num_infosets, tree.max_depth
    )
    return tree
