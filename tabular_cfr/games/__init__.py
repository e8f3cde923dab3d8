"""
Game definitions layer (Layer 1 - lowest).

This layer defines the State/Game interface, the flattened GameTree and
the bundled games. It may only import from tabular_cfr.errors.
"""

from tabular_cfr.games.base import (
    Game,
    GameTree,
    Infoset,
    Node,
    Player,
    State,
    build_game_tree,
)
from tabular_cfr.games.kuhn import KuhnPoker
from tabular_cfr.games.leduc import LeducPoker
from tabular_cfr.games.matrix import (
    MatrixGame,
    chicken,
    matching_pennies,
    prisoners_dilemma,
)

__all__ = [
    'Game',
    'GameTree',
    'Infoset',
    'Node',
    'Player',
    'State',
    'build_game_tree',
    'KuhnPoker',
    'LeducPoker',
    'MatrixGame',
    'chicken',
    'matching_pennies',
    'prisoners_dilemma',
]
