"""
Main entry point for the Risk Reward Simulator.

This module provides the CLI interface for playing and analyzing a
locally stored betting session.

Usage:
    # List the betting events
    python -m risk_reward_sim.main --events

    # Preview the risk of a wager, then place it
    python -m risk_reward_sim.main --risk coin-flip 50
    python -m risk_reward_sim.main --bet coin-flip 50

    # Analytics over the stored history
    python -m risk_reward_sim.main --stats --patterns --project 25

    # Fill the ledger with a synthetic history
    python -m risk_reward_sim.main --demo 40
"""

import argparse
import logging
import random
import sys

from .catalog import PERSONAS, list_events
from .config import settings
from .database import Database
from .errors import WagerError
from .export import HistoryExporter
from .models import GameState
from .patterns import count_by_severity
from .projection import SUPPORTED_HORIZONS
from .sample_data import PLAY_STYLES, SteppingClock, generate_sample_history, spawn_seeds
from .simulator import BettingSimulator
from .utils import format_currency, format_percentage

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Configure root logging to stdout and the log file."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(settings.log_file),
        ],
    )


def print_events() -> None:
    """Print the event catalog."""
    print("\n" + "=" * 70)
    print("Betting Events")
    print("=" * 70)
    for event in list_events():
        limit = format_currency(event.max_bet, decimals=0) if event.max_bet is not None else "none"
        print(
            f"  {event.id:<14} {event.name:<14} x{event.multiplier:<5g} "
            f"p={event.win_probability:<6g} min={format_currency(event.min_bet, decimals=0):<6} "
            f"max={limit:<7} {event.risk_level.value}"
        )
    print("\nPersonas:")
    for persona in PERSONAS:
        low, high = persona.risk_range
        print(
            f"  {persona.name:<13} risk {low}-{high}, "
            f"cap {format_percentage(persona.max_bet_fraction, decimals=0)} of balance"
        )
    print()


def print_stats(sim: BettingSimulator) -> None:
    """Print ledger metrics and storage statistics."""
    metrics = sim.get_metrics()
    print("\n" + "=" * 50)
    print("Risk Reward Simulator Statistics")
    print("=" * 50)
    print(f"  Balance:          {format_currency(sim.balance)}")
    print(f"  State:            {sim.state.value}")
    print(f"  Persona:          {sim.current_persona().name}")
    print(f"  Total Bets:       {metrics.total_bets:,}")
    print(f"  Win Rate:         {format_percentage(metrics.win_rate)}")
    print(f"  Net Profit:       {format_currency(metrics.net_profit)}")
    print(f"  ROI:              {format_percentage(metrics.roi)}")
    print(f"  Max Drawdown:     {metrics.max_drawdown:.1f}%")
    print(f"  Current Streak:   {metrics.streaks.current_streak:+d}")
    print(f"  Diversification:  {metrics.diversification_index:.2f}")
    print("=" * 50)

    if sim.db is not None:
        stats = sim.db.get_stats()
        print(f"  Stored Bets:      {stats['total_bets']:,}")
        print(f"  Events Played:    {stats['events_played']:,}")

    recent = sim.history[-5:]
    if recent:
        print("\nRecent Bets:")
        print("-" * 50)
        for bet in reversed(recent):
            print(
                f"  {bet.timestamp:%Y-%m-%d %H:%M:%S} - {bet.event_name} "
                f"{format_currency(bet.bet_amount)} {bet.outcome.value} "
                f"({format_currency(bet.settlement_amount)})"
            )
    print()


def print_patterns(sim: BettingSimulator) -> None:
    warnings = sim.detect_patterns()
    if len(sim.history) < settings.min_history_for_analysis:
        print(f"\nNeed at least {settings.min_history_for_analysis} bets for pattern detection.\n")
        return
    counts = count_by_severity(warnings)
    print(f"\nPattern warnings: {len(warnings)} (high {counts['high']}, medium {counts['medium']}, low {counts['low']})")
    for warning in warnings:
        print(f"  [{warning.severity.value.upper()}] {warning.title}: {warning.description}")
        print(f"      -> {warning.recommendation}")
    print()


def print_projection(sim: BettingSimulator, horizon: int) -> None:
    result = sim.project(horizon=horizon)
    if result is None:
        print(f"\nNeed at least {settings.min_history_for_analysis} bets for a projection.\n")
        return
    print(f"\nProjection over the next {horizon} bets (heuristic, not a financial forecast)")
    print("-" * 50)
    print(f"  Final Balance:    {format_currency(result.final_balance)}")
    print(f"  Range:            {format_currency(result.min_balance)} - {format_currency(result.max_balance)}")
    print(f"  Win Rate:         {format_percentage(result.projected_win_rate)}")
    print(f"  Value at Risk:    {format_currency(result.value_at_risk)}")
    print(f"  Bankruptcy Risk:  {result.bankruptcy_risk_score:.1f} ({result.bankruptcy_risk_category})")
    print(f"  Profit Potential: {result.profit_potential}")
    for name, value in result.risk_breakdown.to_dict().items():
        print(f"    {name:<28} {value:5.1f}")
    print()


def print_behavior(sim: BettingSimulator) -> None:
    profile = sim.analyze_behavior()
    if profile is None:
        print("\nNeed at least 3 bets for a behavioral profile.\n")
        return
    print("\nBehavioral profile")
    print("-" * 50)
    print(f"  Avg interval:     {profile.avg_betting_interval}s")
    print(f"  Risk consistency: {profile.risk_consistency} (std {profile.risk_std_dev:.1f})")
    print(f"  Traits:           {', '.join(profile.traits) or 'none'}")

    report = sim.compare_benchmarks()
    if report is not None:
        print(f"  Responsible gambling score: {report.overall_score}/100")
    print()


def print_goals(sim: BettingSimulator) -> None:
    results = sim.evaluate_goals()
    if not results:
        print("\nNeed at least 3 bets to evaluate goals.\n")
        return
    print("\nGoals")
    print("-" * 50)
    for result in results:
        mark = "met" if result.is_met else "MISSED"
        print(
            f"  {result.goal.title:<22} {result.current_value:8.1f} / "
            f"{result.goal.target_value:g} {result.goal.type.value:<10} {mark}"
        )
    print()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Risk Reward Simulator - virtual currency betting with risk analytics"
    )
    parser.add_argument("--db", default=settings.database_path, help="SQLite database path")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible outcomes")
    parser.add_argument("--events", action="store_true", help="List events and personas")
    parser.add_argument(
        "--risk", nargs=2, metavar=("EVENT", "AMOUNT"),
        help="Preview the risk score and persona of a wager"
    )
    parser.add_argument(
        "--bet", nargs=2, metavar=("EVENT", "AMOUNT"),
        help="Place a wager"
    )
    parser.add_argument("--reset", action="store_true", help="Reset the ledger")
    parser.add_argument("--stats", action="store_true", help="Show ledger statistics")
    parser.add_argument("--patterns", action="store_true", help="Detect betting patterns")
    parser.add_argument(
        "--project", type=int, choices=SUPPORTED_HORIZONS, metavar="HORIZON",
        help="Project the next 10, 25 or 50 bets"
    )
    parser.add_argument("--behavior", action="store_true", help="Show behavioral profile and benchmarks")
    parser.add_argument("--goals", action="store_true", help="Evaluate responsible gambling goals")
    parser.add_argument(
        "--set-goal", nargs=2, metavar=("GOAL_ID", "TARGET"),
        help="Change a goal's target value"
    )
    parser.add_argument(
        "--demo", type=int, nargs="?", const=30, metavar="BETS",
        help="Generate a synthetic history (default: 30 bets)"
    )
    parser.add_argument(
        "--style", choices=sorted(PLAY_STYLES), default="balanced",
        help="Play style for --demo (default: balanced)"
    )
    parser.add_argument("--export", metavar="DIR", help="Export history and report to a directory")
    args = parser.parse_args()

    setup_logging()

    if args.events:
        print_events()
        return

    outcome_seed, clock_seed, demo_seed = spawn_seeds(args.seed, 3)
    rng = random.Random(outcome_seed)
    sim = BettingSimulator(database=Database(args.db), rng=rng)

    try:
        if args.reset:
            sim.reset_ledger()
            print(f"Ledger reset to {format_currency(sim.balance)}")

        if args.demo is not None:
            sim.engine.clock = SteppingClock(random.Random(clock_seed))
            stats = generate_sample_history(sim, num_bets=args.demo, style=args.style, seed=demo_seed)
            print(
                f"Generated {stats['bets_placed']} bets ({stats['bets_rejected']} rejected); "
                f"balance {format_currency(stats['final_balance'])}, state {stats['state']}"
            )

        if args.set_goal:
            goal_id, target = args.set_goal
            goal = sim.update_goal(goal_id, target_value=float(target))
            print(f"Goal {goal.id} target set to {goal.target_value:g}")

        if args.risk:
            event_id, amount = args.risk[0], float(args.risk[1])
            persona = sim.current_persona(event_id, amount)
            print(f"Risk {sim.score_risk(event_id, amount)}% -> {persona.name}")

        if args.bet:
            event_id, amount = args.bet[0], float(args.bet[1])
            try:
                record = sim.place_wager(event_id, amount)
            except WagerError as e:
                print(f"Rejected ({e.code}): {e.message}")
                sys.exit(2)
            print(
                f"{record.event_name}: {record.outcome.value.upper()} "
                f"{format_currency(record.settlement_amount)} -> balance {format_currency(record.balance_after)}"
            )
            if sim.state != GameState.PLAYING:
                print(f"Game over: {sim.state.value}. Use --reset to play again.")

        if args.stats:
            print_stats(sim)
        if args.patterns:
            print_patterns(sim)
        if args.project:
            print_projection(sim, args.project)
        if args.behavior:
            print_behavior(sim)
        if args.goals:
            print_goals(sim)

        if args.export:
            files = HistoryExporter(sim).export_all(args.export)
            for fmt, path in files.items():
                print(f"Exported {fmt}: {path}")

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except (KeyError, ValueError) as e:
        logger.error(f"Invalid input: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
