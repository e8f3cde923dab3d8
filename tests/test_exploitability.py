"""
Tests for NashConv and exploitability.

Run with: pytest tests/test_exploitability.py -v
"""

import pytest
import numpy as np

from tabular_cfr.errors import ConfigurationError
from tabular_cfr.games.kuhn import KuhnPoker
from tabular_cfr.games.matrix import matching_pennies, prisoners_dilemma
from tabular_cfr.evaluation import (
    expected_returns,
    exploitability,
    nash_conv,
    nash_conv_info,
)
from tabular_cfr.policy import TabularPolicy


def pure_policy(game, row, col):
    tree = game.build_tree()
    return TabularPolicy.from_action_probabilities(tree, {
        f"{game.short_name}:p0": {row: 1.0},
        f"{game.short_name}:p1": {col: 1.0},
    })


class TestNashConvKuhn:

    def test_uniform(self, kuhn_game, kuhn_uniform_policy):
        assert np.isclose(nash_conv(kuhn_game, kuhn_uniform_policy), 11.0 / 12.0)

    def test_uniform_exploitability(self, kuhn_game, kuhn_uniform_policy):
        assert np.isclose(exploitability(kuhn_game, kuhn_uniform_policy), 11.0 / 24.0)

    def test_equilibrium(self, kuhn_game, kuhn_nash_policy):
        assert abs(nash_conv(kuhn_game, kuhn_nash_policy)) < 1e-9
        assert abs(exploitability(kuhn_game, kuhn_nash_policy)) < 1e-9

    def test_info_breakdown(self, kuhn_game, kuhn_uniform_policy):
        info = nash_conv_info(kuhn_game, kuhn_uniform_policy)
        assert np.isclose(info.nash_conv, sum(info.player_improvements))
        assert all(i >= 0 for i in info.player_improvements)
        assert np.allclose(info.on_policy_values, expected_returns(kuhn_game, kuhn_uniform_policy))
        assert np.allclose(info.best_response_values, [0.5, 5.0 / 12.0])
        assert all(p.is_deterministic() for p in info.best_response_policies)

    def test_best_response_policy_attains_value(self, kuhn_game, kuhn_uniform_policy):
        """Playing the best-response policy recovers the best-response value."""
        info = nash_conv_info(kuhn_game, kuhn_uniform_policy)
        entries = {
            key: kuhn_uniform_policy.entry(key) for key in kuhn_uniform_policy
            if kuhn_uniform_policy.player(key) == 0
        }
        for key, entry in info.best_response_policies[1].items():
            entries[key] = entry
        mixed = TabularPolicy(entries)
        values = expected_returns(kuhn_game, mixed)
        assert np.isclose(values[1], info.best_response_values[1])


class TestNashConvThreePlayerKuhn:
    """Uniform play on three-player Kuhn, best responses worked out by hand."""

    @pytest.fixture(scope="class")
    def game(self):
        return KuhnPoker(num_players=3)

    @pytest.fixture(scope="class")
    def info(self, game):
        return nash_conv_info(game, TabularPolicy.uniform(game.build_tree()))

    def test_best_response_values(self, info):
        assert np.allclose(info.best_response_values, [25 / 32, 31 / 48, 61 / 96])

    def test_nash_conv(self, info):
        assert len(info.on_policy_values) == 3
        assert np.isclose(sum(info.on_policy_values), 0.0)
        assert np.isclose(info.nash_conv, 33 / 16)

    def test_exploitability(self, game):
        policy = TabularPolicy.uniform(game.build_tree())
        assert np.isclose(exploitability(game, policy), 11 / 16)


class TestNashConvMatrixGames:

    def test_matching_pennies_uniform(self):
        game = matching_pennies()
        policy = TabularPolicy.uniform(game.build_tree())
        assert abs(nash_conv(game, policy)) < 1e-12

    def test_matching_pennies_pure(self):
        game = matching_pennies()
        policy = pure_policy(game, 0, 0)
        assert np.isclose(nash_conv(game, policy), 2.0)
        assert np.isclose(exploitability(game, policy), 1.0)

    def test_prisoners_dilemma(self):
        game = prisoners_dilemma()
        defect = pure_policy(game, 1, 1)
        cooperate = pure_policy(game, 0, 0)
        assert abs(nash_conv(game, defect)) < 1e-12
        assert np.isclose(nash_conv(game, cooperate), 2.0)

    def test_exploitability_requires_constant_sum(self):
        game = prisoners_dilemma()
        with pytest.raises(ConfigurationError):
            exploitability(game, pure_policy(game, 1, 1))
