"""
Regression test for Kuhn Poker Nash equilibrium convergence.

Kuhn Poker has infinitely many Nash equilibria, parameterized by player 0's
jack bluffing frequency α in [0, 1/3]. CFR converges to ONE of them.

Key Nash equilibrium INVARIANTS that must hold:
1. Game value = -1/18 ≈ -0.0556 for player 0 (same for all equilibria)
2. Zero-sum: player 0 value + player 1 value = 0
3. Low NashConv after sufficient iterations
4. Player 0 structural constraint: K bet ≈ 3 × J bet (the "3α" relationship)
5. Dominated strategies not played

The closed-form α = 0 equilibrium is checked exactly.

Run with: pytest tests/test_kuhn_nash_regression.py -v -s
"""

import pytest
import numpy as np

from tabular_cfr.games.kuhn import KuhnPoker, BET
from tabular_cfr.evaluation import expected_returns, nash_conv, nash_conv_info
from tabular_cfr.solvers import CFRSolver

from conftest import KUHN_GAME_VALUE


class TestKuhnClosedForm:
    """The α = 0 equilibrium is exactly unexploitable."""

    def test_nash_conv_zero(self, kuhn_game, kuhn_nash_policy):
        assert abs(nash_conv(kuhn_game, kuhn_nash_policy)) < 1e-9

    def test_game_value(self, kuhn_game, kuhn_nash_policy):
        values = expected_returns(kuhn_game, kuhn_nash_policy)
        assert np.isclose(values[0], KUHN_GAME_VALUE)
        assert np.isclose(values.sum(), 0.0)

    def test_best_responses_match_values(self, kuhn_game, kuhn_nash_policy):
        info = nash_conv_info(kuhn_game, kuhn_nash_policy)
        assert np.allclose(info.best_response_values, info.on_policy_values)


class TestKuhnNashRegression:
    """Regression tests for Kuhn Nash equilibrium convergence."""

    @pytest.fixture(scope="class")
    def converged_solver(self):
        """Run CFR for enough iterations to converge."""
        solver = CFRSolver(KuhnPoker())
        solver.solve(iterations=5000)
        return solver

    def test_game_value(self, converged_solver):
        """Game value should be -1/18 for player 0 (same for all equilibria)."""
        values = expected_returns(converged_solver.game, converged_solver.average_policy())

        # Check zero-sum
        assert abs(values[0] + values[1]) < 0.001, f"Not zero-sum: {values}"

        # Check game value (same for ALL Nash equilibria)
        assert abs(values[0] - KUHN_GAME_VALUE) < 0.01, \
            f"Game value {values[0]} != Nash value {KUHN_GAME_VALUE}"

    def test_nash_conv(self, converged_solver):
        value = nash_conv(converged_solver.game, converged_solver.average_policy())
        assert value < 0.02, f"NashConv {value} too high after 5000 iterations"

    def test_alpha_relationship(self, converged_solver):
        """Player 0's K bet should be approximately 3 × J bet (the 3α rule)."""
        j_bet = converged_solver.get_strategy_for_infoset("0")[BET]
        k_bet = converged_solver.get_strategy_for_infoset("2")[BET]
        assert abs(k_bet - 3.0 * j_bet) < 0.1, f"K bet {k_bet:.4f} vs J bet {j_bet:.4f}"

    @pytest.mark.parametrize("key,threshold,is_upper", [
        # Probability of BET (bet or call); dominated strategies end near 0 or 1
        ("0b", 0.05, True),     # J facing bet: never call
        ("2b", 0.95, False),    # K facing bet: always call
        ("2p", 0.95, False),    # K after check: always bet
        ("2pb", 0.95, False),   # K facing check-bet: always call
        ("0pb", 0.05, True),    # J facing check-bet: never call
    ])
    def test_dominated_strategy(self, converged_solver, key, threshold, is_upper):
        """Dominated strategies should converge to their pure values."""
        actual = converged_solver.get_strategy_for_infoset(key)[BET]

        if is_upper:
            assert actual < threshold, \
                f"{key}: got {actual:.4f}, expected < {threshold}"
        else:
            assert actual > threshold, \
                f"{key}: got {actual:.4f}, expected > {threshold}"


@pytest.mark.slow
def test_kuhn_nash_full():
    """Full Nash convergence test with detailed output."""
    print("\n" + "=" * 60)
    print("Kuhn Poker Nash Equilibrium Regression Test")
    print("=" * 60)

    game = KuhnPoker()
    solver = CFRSolver(game)

    previous = None
    for target in [1000, 5000, 20000]:
        solver.iterate(target - solver.iteration)
        value = nash_conv(game, solver.average_policy())
        j_bet = solver.get_strategy_for_infoset("0")[BET]
        k_bet = solver.get_strategy_for_infoset("2")[BET]
        print(f"\nIteration {target:6d}: nash_conv={value:.6f}, J:bet={j_bet:.4f}, K:bet={k_bet:.4f}")
        if previous is not None:
            assert value <= previous + 1e-3
        previous = value

    solver.print_strategy()

    values = expected_returns(game, solver.average_policy())
    print(f"\nGame value: {values[0]:.6f} (expected {KUHN_GAME_VALUE:.6f})")
    assert abs(values[0] - KUHN_GAME_VALUE) < 0.005
    assert previous < 0.005
