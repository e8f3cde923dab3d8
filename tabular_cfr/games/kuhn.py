"""
Kuhn Poker implementation.

Kuhn Poker is a simplified poker game, here for any number of players:
- Deck of num_players + 1 cards, ranked 0 (lowest) to num_players
- Each player antes `ante` chips and is dealt one card
- Player 0 acts first: Pass or Bet (one chip)
- Once someone bets, every other player gets exactly one chance to call
  (Bet) or fold (Pass)
- Highest card among the players still in wins the pot

With two players and ante 1 the tree has 30 terminals and 12 infosets,
and every Nash equilibrium gives player 0 a value of -1/18.
"""

from typing import List, Optional, Sequence, Tuple

from tabular_cfr.errors import ConfigurationError
from .base import Game, State, Player


# Actions
PASS = 0  # Check / fold
BET = 1   # Bet / call
ACTION_NAMES = {PASS: 'p', BET: 'b'}


class KuhnState(State):
    """A Kuhn poker history: dealt cards followed by betting actions."""

    def __init__(self, game: 'KuhnPoker'):
        self._game = game
        self.cards: List[int] = []
        self.bets: List[int] = []
        self.contributions = [game.ante] * game.num_players
        self.first_bettor: Optional[int] = None
        self.winner: Optional[int] = None
        self._to_act = 0

    def current_player(self) -> int:
        if len(self.cards) < self._game.num_players:
            return Player.CHANCE
        if self.winner is not None:
            return Player.TERMINAL
        return self._to_act

    def legal_actions(self) -> List[int]:
        return [PASS, BET]

    def chance_outcomes(self) -> List[Tuple[int, float]]:
        remaining = [c for c in range(self._game.num_cards) if c not in self.cards]
        prob = 1.0 / len(remaining)
        return [(card, prob) for card in remaining]

    def information_state_key(self, player: Optional[int] = None) -> str:
        """
        Player knows: their own card + betting history
        Player doesn't know: opponents' cards
        """
        if player is None:
            player = self.current_player()
        return f"{self.cards[player]}{''.join(ACTION_NAMES[a] for a in self.bets)}"

    def child(self, action: int) -> 'KuhnState':
        state = KuhnState.__new__(KuhnState)
        state._game = self._game
        state.cards = list(self.cards)
        state.bets = list(self.bets)
        state.contributions = list(self.contributions)
        state.first_bettor = self.first_bettor
        state.winner = self.winner
        state._to_act = self._to_act
        state._apply(action)
        return state

    def _apply(self, action: int) -> None:
        num_players = self._game.num_players
        if len(self.cards) < num_players:
            self.cards.append(action)
            return

        player = self._to_act
        self.bets.append(action)
        if action == BET:
            if self.first_bettor is None:
                self.first_bettor = player
            self.contributions[player] += 1

        if self.first_bettor is None and len(self.bets) == num_players:
            # Everyone passed: showdown between all players
            self.winner = max(range(num_players), key=lambda p: self.cards[p])
        elif self.first_bettor is not None and player == (self.first_bettor + num_players - 1) % num_players:
            # Last player to respond to the bet: showdown between bettors
            in_pot = [p for p in range(num_players) if self.contributions[p] > self._game.ante]
            self.winner = max(in_pot, key=lambda p: self.cards[p])
        else:
            self._to_act = (player + 1) % num_players

    def returns(self) -> Sequence[float]:
        pot = sum(self.contributions)
        return [
            float(pot - c) if p == self.winner else float(-c)
            for p, c in enumerate(self.contributions)
        ]

    def action_to_string(self, player: int, action: int) -> str:
        if player == Player.CHANCE:
            return f"deal:{action}"
        return ACTION_NAMES[action]


class KuhnPoker(Game):
    """Kuhn Poker game implementation."""

    def __init__(self, num_players: int = 2, ante: int = 1):
        if num_players < 2:
            raise ConfigurationError(f"Kuhn poker needs at least 2 players, got {num_players}")
        if ante < 1:
            raise ConfigurationError(f"Ante must be positive, got {ante}")
        self._num_players = num_players
        self.ante = ante

    @property
    def name(self) -> str:
        return f"kuhn_poker(players={self._num_players},ante={self.ante})"

    @property
    def num_players(self) -> int:
        return self._num_players

    @property
    def num_cards(self) -> int:
        return self._num_players + 1

    @property
    def max_game_length(self) -> int:
        # Deals, then at most one pass round and one response round
        return self._num_players + 2 * self._num_players - 1

    @property
    def utility_sum(self) -> Optional[float]:
        return 0.0

    def new_initial_state(self) -> KuhnState:
        return KuhnState(self)
