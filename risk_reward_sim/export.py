"""
Export functionality for the Risk Reward Simulator.

This module provides functions to export bet history and analytics
reports to various formats:
- JSON: Full data export with metadata
- CSV: Tabular bet history for spreadsheets
"""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from .models import BetRecord
from .patterns import count_by_severity
from .simulator import BettingSimulator

logger = logging.getLogger(__name__)


# Column order for CSV; keys are the serialized (camelCase) field names
HISTORY_FIELDS = [
    "id",
    "timestamp",
    "eventId",
    "eventName",
    "betAmount",
    "outcome",
    "settlementAmount",
    "balanceAfter",
    "riskPercentage",
]


def bet_to_row(bet: BetRecord) -> dict:
    """Flatten a bet record for JSON or CSV output, keyed by field alias."""
    return bet.model_dump(mode="json", by_alias=True)


class HistoryExporter:
    """
    Export bet history and analytics to various formats.

    Supports JSON and CSV exports with configurable options.
    """

    def __init__(self, simulator: Optional[BettingSimulator] = None):
        """
        Initialize exporter.

        Args:
            simulator: Simulator whose ledger is exported. A fresh one is created if not provided.
        """
        self.simulator = simulator or BettingSimulator()

    def _history(self, history: Optional[Sequence[BetRecord]]) -> Sequence[BetRecord]:
        return self.simulator.history if history is None else history

    def build_report(self, history: Optional[Sequence[BetRecord]] = None) -> dict:
        """
        Collect every analytics view of a history into one dictionary.

        Sections whose minimum history is not met are None.
        """
        bets = self._history(history)
        warnings = self.simulator.detect_patterns(bets)
        projection = self.simulator.project(bets)
        profile = self.simulator.analyze_behavior(bets)
        benchmarks = self.simulator.compare_benchmarks(bets)
        goals = self.simulator.evaluate_goals(bets)

        return {
            "balance": self.simulator.balance,
            "state": self.simulator.state.value,
            "persona": self.simulator.current_persona().name,
            "metrics": self.simulator.get_metrics(bets).to_dict(),
            "patterns": {
                "warnings": [w.to_dict() for w in warnings],
                "by_severity": count_by_severity(warnings),
            },
            "projection": projection.to_dict() if projection else None,
            "behavior": profile.to_dict() if profile else None,
            "benchmarks": benchmarks.to_dict() if benchmarks else None,
            "goals": [g.to_dict() for g in goals],
        }

    def export_history_json(
        self,
        filepath: str,
        history: Optional[Sequence[BetRecord]] = None,
        include_report: bool = True,
        pretty: bool = True
    ) -> str:
        """
        Export bet history to JSON file.

        Args:
            filepath: Output file path.
            history: Bets to export. Defaults to the simulator's ledger.
            include_report: Include the analytics report.
            pretty: Pretty-print JSON output.

        Returns:
            Path to created file.
        """
        bets = self._history(history)

        export_data = {
            "metadata": {
                "exported_at": datetime.utcnow().isoformat(),
                "total_bets": len(bets),
            },
            "history": [bet_to_row(bet) for bet in bets],
        }

        if include_report:
            export_data["report"] = self.build_report(bets)

        # Write to file
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, "w", encoding="utf-8") as f:
            if pretty:
                json.dump(export_data, f, indent=2, default=str)
            else:
                json.dump(export_data, f, default=str)

        logger.info(f"Exported {len(bets)} bets to {filepath}")
        return str(filepath)

    def export_history_csv(
        self,
        filepath: str,
        history: Optional[Sequence[BetRecord]] = None
    ) -> str:
        """
        Export bet history to CSV file.

        Args:
            filepath: Output file path.
            history: Bets to export. Defaults to the simulator's ledger.

        Returns:
            Path to created file.
        """
        bets = self._history(history)

        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=HISTORY_FIELDS)
            writer.writeheader()
            for bet in bets:
                writer.writerow(bet_to_row(bet))

        logger.info(f"Exported {len(bets)} bets to {filepath}")
        return str(filepath)

    def export_all(self, output_dir: str) -> dict[str, str]:
        """
        Export the ledger history as JSON and CSV.

        Args:
            output_dir: Output directory.

        Returns:
            Dictionary mapping format to filepath.
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")
        files = {
            "json": self.export_history_json(str(output_dir / f"history_{timestamp}.json")),
            "csv": self.export_history_csv(str(output_dir / f"history_{timestamp}.csv")),
        }

        logger.info(f"Exported history to {output_dir}")
        return files
