"""
Leduc Poker implementation.

Leduc Poker is a simplified poker game larger than Kuhn:
- Deck of two suits of num_players + 1 ranks (6 cards for two players)
- Each player antes `ante` chips (1 by default)
- Each player is dealt one private card
- Round 1: betting round (max 2 raises)
- Community card is dealt
- Round 2: betting round (max 2 raises)
- Showdown: pair (private matches community) beats high card, ties split

Betting structure:
- Round 1: bet/raise = 2 chips
- Round 2: bet/raise = 4 chips
- Max 2 raises per round
- Fold is only legal when facing a bet

Information states are keyed by card rank, so suit-isomorphic histories
share an infoset.
"""

from typing import List, Optional, Sequence, Tuple

from tabular_cfr.errors import ConfigurationError
from .base import Game, State, Player


# Betting actions
FOLD = 0
CALL = 1   # Also used for check
RAISE = 2  # Also used for bet
ACTION_NAMES = {FOLD: 'f', CALL: 'c', RAISE: 'r'}

# Game constants
ROUND1_BET = 2
ROUND2_BET = 4
MAX_RAISES = 2
NUM_SUITS = 2


def card_rank(card: int) -> int:
    """Convert card index to rank (two cards per rank)."""
    return card // NUM_SUITS


def hand_rank(private_card: int, community_card: int) -> int:
    """
    Compute hand rank. Higher is better.

    Pair (private rank == community rank) beats high card.
    """
    private_rank = card_rank(private_card)
    if private_rank == card_rank(community_card):
        return 100 + private_rank
    return private_rank


class LeducState(State):
    """A Leduc poker history."""

    def __init__(self, game: 'LeducPoker'):
        num_players = game.num_players
        self._game = game
        self.private_cards: List[int] = []
        self.public_card: Optional[int] = None
        self.round = 1
        self.round_actions: Tuple[List[int], List[int]] = ([], [])
        self.contributions = [game.ante] * num_players
        self.folded = [False] * num_players
        self.stakes = game.ante
        self.num_raises = 0
        self.num_calls = 0
        self.finished = False
        self._to_act = 0

    @property
    def remaining_players(self) -> int:
        return self.folded.count(False)

    def current_player(self) -> int:
        if self.finished:
            return Player.TERMINAL
        if len(self.private_cards) < self._game.num_players:
            return Player.CHANCE
        if self.round == 2 and self.public_card is None:
            return Player.CHANCE
        return self._to_act

    def legal_actions(self) -> List[int]:
        actions = []
        if self.contributions[self._to_act] < self.stakes:
            actions.append(FOLD)
        actions.append(CALL)
        if self.num_raises < MAX_RAISES:
            actions.append(RAISE)
        return actions

    def _dealt_cards(self) -> List[int]:
        dealt = list(self.private_cards)
        if self.public_card is not None:
            dealt.append(self.public_card)
        return dealt

    def chance_outcomes(self) -> List[Tuple[int, float]]:
        dealt = self._dealt_cards()
        remaining = [c for c in range(self._game.num_cards) if c not in dealt]
        prob = 1.0 / len(remaining)
        return [(card, prob) for card in remaining]

    def information_state_key(self, player: Optional[int] = None) -> str:
        """
        Player knows: their private rank, community rank (if dealt), betting history
        Player doesn't know: opponents' private cards
        """
        if player is None:
            player = self.current_player()
        public = '?' if self.public_card is None else str(card_rank(self.public_card))
        history = '/'.join(
            ''.join(ACTION_NAMES[a] for a in actions) for actions in self.round_actions
        )
        return f"{player}:{card_rank(self.private_cards[player])}:{public}:{history}"

    def child(self, action: int) -> 'LeducState':
        state = LeducState.__new__(LeducState)
        state._game = self._game
        state.private_cards = list(self.private_cards)
        state.public_card = self.public_card
        state.round = self.round
        state.round_actions = (list(self.round_actions[0]), list(self.round_actions[1]))
        state.contributions = list(self.contributions)
        state.folded = list(self.folded)
        state.stakes = self.stakes
        state.num_raises = self.num_raises
        state.num_calls = self.num_calls
        state.finished = self.finished
        state._to_act = self._to_act
        state._apply(action)
        return state

    def _apply(self, action: int) -> None:
        if len(self.private_cards) < self._game.num_players:
            self.private_cards.append(action)
            return
        if self.round == 2 and self.public_card is None:
            self.public_card = action
            return

        player = self._to_act
        self.round_actions[self.round - 1].append(action)

        if action == FOLD:
            self.folded[player] = True
            if self.remaining_players == 1:
                self.finished = True
                return
        elif action == CALL:
            self.contributions[player] = self.stakes
            self.num_calls += 1
        else:
            bet = ROUND1_BET if self.round == 1 else ROUND2_BET
            self.stakes += bet
            self.contributions[player] = self.stakes
            self.num_raises += 1
            self.num_calls = 0

        if self._ready_for_next_round():
            self._next_round()
        else:
            self._to_act = self._next_active(player)

    def _ready_for_next_round(self) -> bool:
        if self.num_raises == 0:
            return self.num_calls == self.remaining_players
        return self.num_calls == self.remaining_players - 1

    def _next_active(self, player: int) -> int:
        num_players = self._game.num_players
        nxt = (player + 1) % num_players
        while self.folded[nxt]:
            nxt = (nxt + 1) % num_players
        return nxt

    def _next_round(self) -> None:
        if self.round == 2:
            self.finished = True
            return
        self.round = 2
        self.num_raises = 0
        self.num_calls = 0
        self._to_act = self._next_active(self._game.num_players - 1)

    def returns(self) -> Sequence[float]:
        pot = sum(self.contributions)
        active = [p for p in range(self._game.num_players) if not self.folded[p]]
        if len(active) == 1:
            winners = active
        else:
            ranks = {p: hand_rank(self.private_cards[p], self.public_card) for p in active}
            best = max(ranks.values())
            winners = [p for p in active if ranks[p] == best]
        share = pot / len(winners)
        return [
            share - c if p in winners else float(-c)
            for p, c in enumerate(self.contributions)
        ]

    def action_to_string(self, player: int, action: int) -> str:
        if player == Player.CHANCE:
            return f"deal:{action}"
        return ACTION_NAMES[action]


class LeducPoker(Game):
    """Leduc Poker game implementation."""

    def __init__(self, num_players: int = 2, ante: int = 1):
        if num_players < 2:
            raise ConfigurationError(f"Leduc poker needs at least 2 players, got {num_players}")
        if ante < 1:
            raise ConfigurationError(f"Ante must be positive, got {ante}")
        self._num_players = num_players
        self.ante = ante

    @property
    def name(self) -> str:
        return f"leduc_poker(players={self._num_players},ante={self.ante})"

    @property
    def num_players(self) -> int:
        return self._num_players

    @property
    def num_cards(self) -> int:
        return NUM_SUITS * (self._num_players + 1)

    @property
    def max_game_length(self) -> int:
        # Private deals, public deal, and per round at most (MAX_RAISES + 1)
        # passes around the table
        per_round = (MAX_RAISES + 1) * self._num_players
        return self._num_players + 1 + 2 * per_round

    @property
    def utility_sum(self) -> Optional[float]:
        return 0.0

    def new_initial_state(self) -> LeducState:
        return LeducState(self)
