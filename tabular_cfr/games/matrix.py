"""
Two-player normal-form (matrix) games as extensive-form games.

The row player moves first; the column player moves without observing the
row choice, so each player has exactly one information state.
"""

from typing import List, Optional, Sequence, Tuple
import numpy as np

from tabular_cfr.errors import ConfigurationError
from .base import Game, State, Player


ROW_PLAYER = 0
COLUMN_PLAYER = 1


class MatrixState(State):
    """A history in a matrix game: the row action, then the column action."""

    def __init__(self, game: 'MatrixGame', moves: Tuple[int, ...] = ()):
        self._game = game
        self.moves = moves

    def current_player(self) -> int:
        if len(self.moves) == 2:
            return Player.TERMINAL
        return len(self.moves)

    def legal_actions(self) -> List[int]:
        return list(range(self._game.payoffs.shape[len(self.moves)]))

    def chance_outcomes(self) -> List[Tuple[int, float]]:
        return []

    def information_state_key(self, player: Optional[int] = None) -> str:
        if player is None:
            player = self.current_player()
        return f"{self._game.short_name}:p{player}"

    def child(self, action: int) -> 'MatrixState':
        return MatrixState(self._game, self.moves + (action,))

    def returns(self) -> Sequence[float]:
        row, col = self.moves
        return [float(v) for v in self._game.payoffs[row, col]]

    def action_to_string(self, player: int, action: int) -> str:
        return self._game.action_names[player][action]


class MatrixGame(Game):
    """
    Two-player matrix game.

    Args:
        short_name: Name used in information state keys
        row_payoffs: (rows, cols) payoffs for the row player
        col_payoffs: (rows, cols) payoffs for the column player
        row_actions: Optional names for the row actions
        col_actions: Optional names for the column actions
    """

    def __init__(
        self,
        short_name: str,
        row_payoffs,
        col_payoffs,
        row_actions: Optional[Sequence[str]] = None,
        col_actions: Optional[Sequence[str]] = None
    ):
        row_payoffs = np.asarray(row_payoffs, dtype=np.float64)
        col_payoffs = np.asarray(col_payoffs, dtype=np.float64)
        if row_payoffs.ndim != 2 or row_payoffs.shape != col_payoffs.shape:
            raise ConfigurationError(
                f"Payoff matrices must be 2-D with equal shapes, got "
                f"{row_payoffs.shape} and {col_payoffs.shape}"
            )
        if min(row_payoffs.shape) < 1:
            raise ConfigurationError("Each player needs at least one action")

        self.short_name = short_name
        self.payoffs = np.stack([row_payoffs, col_payoffs], axis=-1)
        rows, cols = row_payoffs.shape
        self.action_names = (
            tuple(row_actions) if row_actions else tuple(str(a) for a in range(rows)),
            tuple(col_actions) if col_actions else tuple(str(a) for a in range(cols)),
        )

    @property
    def name(self) -> str:
        return f"matrix_{self.short_name}"

    @property
    def num_players(self) -> int:
        return 2

    @property
    def max_game_length(self) -> int:
        return 2

    @property
    def utility_sum(self) -> Optional[float]:
        sums = self.payoffs.sum(axis=-1)
        if np.allclose(sums, sums.flat[0]):
            return float(sums.flat[0])
        return None

    def new_initial_state(self) -> MatrixState:
        return MatrixState(self)


def matching_pennies() -> MatrixGame:
    """Row player wins on a match, column player on a mismatch."""
    row = [[1, -1], [-1, 1]]
    return MatrixGame(
        "mp", row, np.negative(row), ("H", "T"), ("H", "T")
    )


def prisoners_dilemma() -> MatrixGame:
    """Defect/defect is the unique (pure) Nash equilibrium."""
    row = [[-1, -3], [0, -2]]
    col = [[-1, 0], [-3, -2]]
    return MatrixGame("pd", row, col, ("C", "D"), ("C", "D"))


def chicken() -> MatrixGame:
    """Game of chicken; the uniform mix of (D, C) and (C, D) is a CCE."""
    row = [[0, 7], [2, 6]]
    col = [[0, 2], [7, 6]]
    return MatrixGame("chicken", row, col, ("D", "C"), ("D", "C"))
