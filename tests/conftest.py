"""
Shared fixtures: bundled games and the closed-form Kuhn equilibrium.
"""

import pytest

from tabular_cfr.games.kuhn import KuhnPoker, PASS, BET
from tabular_cfr.policy import TabularPolicy


# Kuhn poker (two players, ante 1) Nash equilibrium with alpha = 0,
# keyed by information state: {action: probability}
KUHN_NASH = {
    # Player 0 opening, then facing pass-bet
    "0": {PASS: 1.0, BET: 0.0},
    "1": {PASS: 1.0, BET: 0.0},
    "2": {PASS: 1.0, BET: 0.0},
    "0pb": {PASS: 1.0, BET: 0.0},
    "1pb": {PASS: 2.0 / 3.0, BET: 1.0 / 3.0},
    "2pb": {PASS: 0.0, BET: 1.0},
    # Player 1 after a pass, then facing a bet
    "0p": {PASS: 2.0 / 3.0, BET: 1.0 / 3.0},
    "1p": {PASS: 1.0, BET: 0.0},
    "2p": {PASS: 0.0, BET: 1.0},
    "0b": {PASS: 1.0, BET: 0.0},
    "1b": {PASS: 2.0 / 3.0, BET: 1.0 / 3.0},
    "2b": {PASS: 0.0, BET: 1.0},
}

# Player 0's value at every Kuhn Nash equilibrium
KUHN_GAME_VALUE = -1.0 / 18.0


@pytest.fixture
def kuhn_game():
    return KuhnPoker()


@pytest.fixture
def kuhn_tree(kuhn_game):
    return kuhn_game.build_tree()


@pytest.fixture
def kuhn_nash_policy(kuhn_tree):
    return TabularPolicy.from_action_probabilities(kuhn_tree, KUHN_NASH)


@pytest.fixture
def kuhn_uniform_policy(kuhn_tree):
    return TabularPolicy.uniform(kuhn_tree)
