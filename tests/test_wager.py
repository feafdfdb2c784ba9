"""
Tests for the ledger and wager engine.
"""

from datetime import datetime, timedelta

import pytest

from risk_reward_sim.errors import (
    BetLimitError,
    GameOverError,
    InsufficientBalanceError,
    PersonaLimitError,
    UnknownEventError,
    WagerError,
)
from risk_reward_sim.models import GameState, Outcome
from risk_reward_sim.wager import Ledger, WagerEngine, resolve_state

from conftest import ScriptedRandom

WIN = 0.01   # Below every event's win probability
LOSS = 0.99


def make_engine(draws=(), **kwargs):
    return WagerEngine(rng=ScriptedRandom(draws), **kwargs)


class TestPlaceWager:
    """Tests for successful wagers."""

    def test_coin_flip_win(self, fixed_clock):
        engine = make_engine([WIN], clock=fixed_clock, initial_balance=1000)
        record = engine.place_wager("coin-flip", 50)

        assert record.outcome == Outcome.WIN
        assert record.settlement_amount == 50
        assert record.balance_after == 1050
        assert record.risk_percentage == 19
        assert record.event_name == "Coin Flip"
        assert engine.balance == 1050
        assert engine.history == (record,)
        assert engine.state == GameState.PLAYING

    def test_coin_flip_win_at_conservative_cap(self):
        # 0.1 * 70 + 15 = 22 -> Conservative, cap floor(1000 * 0.1) = 100
        engine = make_engine([WIN], initial_balance=1000)
        record = engine.place_wager("coin-flip", 100)

        assert record.risk_percentage == 22
        assert record.outcome == Outcome.WIN
        assert record.settlement_amount == 100
        assert record.balance_after == 1100
        assert engine.balance == 1100

    def test_coin_flip_loss(self):
        engine = make_engine([LOSS], initial_balance=1000)
        record = engine.place_wager("coin-flip", 50)

        assert record.outcome == Outcome.LOSS
        assert record.settlement_amount == -50
        assert engine.balance == 950

    def test_win_pays_multiplier_minus_stake(self):
        engine = make_engine([WIN], initial_balance=1000)
        record = engine.place_wager("dice-roll", 100)
        assert record.settlement_amount == pytest.approx(500)
        assert engine.balance == pytest.approx(1500)

    def test_outcome_draw_compared_to_probability(self):
        engine = make_engine([0.49, 0.5], initial_balance=1000)
        assert engine.place_wager("coin-flip", 20).is_win
        assert not engine.place_wager("coin-flip", 20).is_win

    def test_balance_equals_initial_plus_settlements(self):
        draws = [WIN, LOSS, LOSS, WIN, LOSS, WIN]
        engine = make_engine(draws, initial_balance=1000)
        for _ in draws:
            engine.place_wager("coin-flip", 40)

        total = sum(bet.settlement_amount for bet in engine.history)
        assert engine.balance == pytest.approx(1000 + total)

    def test_aggressive_stake_allowed(self):
        # 45 + 15 + 18 = 78 risk, Aggressive persona caps at 100%
        engine = make_engine([WIN], initial_balance=1000, win_goal=100000)
        record = engine.place_wager("coin-flip", 900)
        assert record.risk_percentage == 78
        assert engine.balance == 1900

    def test_balanced_stake_at_cap_allowed(self):
        # 15 + 15 + 6 = 36 risk, Balanced cap is 300
        engine = make_engine([LOSS], initial_balance=1000)
        record = engine.place_wager("coin-flip", 300)
        assert record.risk_percentage == 36
        assert engine.balance == 700

    def test_timestamps_never_go_backwards(self):
        times = iter([datetime(2024, 1, 1, 12, 0), datetime(2024, 1, 1, 11, 0)])
        engine = make_engine([WIN, WIN], clock=lambda: next(times), initial_balance=1000)
        first = engine.place_wager("coin-flip", 20)
        second = engine.place_wager("coin-flip", 20)
        assert second.timestamp == first.timestamp

    def test_record_ids_are_unique(self):
        engine = make_engine([WIN] * 5, initial_balance=1000)
        ids = {engine.place_wager("coin-flip", 20).id for _ in range(5)}
        assert len(ids) == 5


class TestRejections:
    """Tests for rejected wagers leaving the ledger untouched."""

    def _assert_untouched(self, engine, balance, length):
        assert engine.balance == balance
        assert len(engine.history) == length
        assert engine.state == GameState.PLAYING
        assert engine.rng.calls == 0

    def test_unknown_event(self):
        engine = make_engine(initial_balance=1000)
        with pytest.raises(UnknownEventError) as exc:
            engine.place_wager("horse-race", 50)
        assert exc.value.code == "unknown_event"
        self._assert_untouched(engine, 1000, 0)

    def test_below_min_bet(self):
        engine = make_engine(initial_balance=1000)
        with pytest.raises(BetLimitError) as exc:
            engine.place_wager("roulette", 50)
        assert exc.value.bound == "minBet"
        assert exc.value.limit == 100
        assert "minBet" in str(exc.value)
        self._assert_untouched(engine, 1000, 0)

    def test_above_max_bet_checked_before_balance(self):
        engine = make_engine(initial_balance=1000)
        with pytest.raises(BetLimitError) as exc:
            engine.place_wager("dice-roll", 2500)
        assert exc.value.bound == "maxBet"
        assert exc.value.limit == 2000
        self._assert_untouched(engine, 1000, 0)

    def test_insufficient_balance(self):
        engine = make_engine(initial_balance=100)
        with pytest.raises(InsufficientBalanceError) as exc:
            engine.place_wager("coin-flip", 150)
        assert exc.value.balance == 100
        self._assert_untouched(engine, 100, 0)

    def test_persona_limit_conservative(self):
        # 10 + 15 + 4 = 29 risk -> Conservative, cap 100
        engine = make_engine(initial_balance=1000)
        with pytest.raises(PersonaLimitError) as exc:
            engine.place_wager("coin-flip", 200)
        err = exc.value
        assert err.persona_name == "Conservative"
        assert err.max_bet_fraction == 0.1
        assert err.cap == 100
        assert err.risk_percentage == 29
        assert "Conservative" in err.message
        assert "10%" in err.message
        self._assert_untouched(engine, 1000, 0)

    def test_persona_limit_balanced(self):
        # 20 + 15 + 8 = 43 risk -> Balanced, cap 300
        engine = make_engine(initial_balance=1000)
        with pytest.raises(PersonaLimitError) as exc:
            engine.place_wager("coin-flip", 400)
        assert exc.value.cap == 300

    def test_all_rejections_share_base_class(self):
        engine = make_engine(initial_balance=1000)
        for event_id, amount in [("nope", 10), ("roulette", 5), ("coin-flip", 5000), ("coin-flip", 200)]:
            with pytest.raises(WagerError):
                engine.place_wager(event_id, amount)
        self._assert_untouched(engine, 1000, 0)


class TestTerminalStates:
    """Tests for WON / LOST transitions."""

    def test_losing_everything_ends_game(self):
        # 50 + 15 + 20 = 85 risk -> Aggressive, all-in allowed
        engine = make_engine([LOSS], initial_balance=100)
        engine.place_wager("coin-flip", 100)
        assert engine.balance == 0
        assert engine.state == GameState.LOST

        with pytest.raises(GameOverError) as exc:
            engine.place_wager("coin-flip", 10)
        assert exc.value.state == "lost"
        assert len(engine.history) == 1

    def test_reaching_goal_wins_game(self):
        engine = make_engine([WIN], initial_balance=1000, win_goal=1500)
        engine.place_wager("coin-flip", 900)
        assert engine.state == GameState.WON

        with pytest.raises(GameOverError):
            engine.place_wager("coin-flip", 10)

    def test_reset_restores_initial_state(self):
        engine = make_engine([LOSS], initial_balance=100)
        engine.place_wager("coin-flip", 100)
        engine.reset()

        assert engine.balance == 100
        assert engine.history == ()
        assert engine.state == GameState.PLAYING

    def test_reset_from_won(self):
        engine = make_engine([WIN], initial_balance=1000, win_goal=1500)
        engine.place_wager("coin-flip", 900)
        assert engine.state == GameState.WON

        engine.reset()
        assert engine.balance == 1000
        assert engine.history == ()
        assert engine.state == GameState.PLAYING

    def test_revert_undoes_last_wager(self):
        engine = make_engine([LOSS, WIN], initial_balance=100)
        first = engine.place_wager("coin-flip", 10)
        engine.place_wager("coin-flip", 90)
        last = engine.history[-1]
        assert engine.balance == 180

        with pytest.raises(ValueError):
            engine.revert(first, 100, GameState.PLAYING)

        engine.revert(last, 90, GameState.PLAYING)
        assert engine.balance == 90
        assert engine.history == (first,)
        assert engine.state == GameState.PLAYING

    def test_restore_derives_state(self, make_history):
        history = make_history([(100, False, 85)], start_balance=100)
        engine = make_engine(initial_balance=100)
        engine.restore(0, history)
        assert engine.state == GameState.LOST
        assert len(engine.history) == 1


class TestResolveState:
    """Tests for resolve_state."""

    def test_thresholds(self):
        assert resolve_state(0, 10000) == GameState.LOST
        assert resolve_state(10000, 10000) == GameState.WON
        assert resolve_state(5000, 10000) == GameState.PLAYING

    def test_keeps_current_between_thresholds(self):
        assert resolve_state(5000, 10000, GameState.WON) == GameState.WON


class TestScoreRiskPreview:
    """Tests for WagerEngine.score_risk."""

    def test_unknown_event_scores_zero(self):
        assert make_engine(initial_balance=1000).score_risk("nope", 100) == 0

    def test_matches_place_wager_risk(self):
        engine = make_engine([WIN], initial_balance=1000)
        preview = engine.score_risk("bullseye", 100)
        assert engine.place_wager("bullseye", 100).risk_percentage == preview

    def test_ledger_history_snapshot_is_immutable(self):
        engine = make_engine([WIN], initial_balance=1000)
        engine.place_wager("coin-flip", 20)
        snapshot = engine.history
        assert isinstance(snapshot, tuple)
        assert isinstance(engine.ledger, Ledger)
