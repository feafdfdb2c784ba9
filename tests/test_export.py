"""
Tests for the export module.
"""

import csv
import json
import os
import random

import pytest

from risk_reward_sim.export import HISTORY_FIELDS, HistoryExporter
from risk_reward_sim.models import BetRecord
from risk_reward_sim.simulator import BettingSimulator

from conftest import FixedClock, ScriptedRandom


@pytest.fixture
def simulator():
    """Simulator with six settled coin flips."""
    draws = [0.01, 0.99, 0.99, 0.01, 0.99, 0.01]
    sim = BettingSimulator(
        rng=ScriptedRandom(draws),
        projection_rng=random.Random(4),
        clock=FixedClock(),
        initial_balance=1000,
    )
    for _ in draws:
        sim.place_wager("coin-flip", 40)
    return sim


@pytest.fixture
def exporter(simulator):
    """Create exporter over the sample simulator."""
    return HistoryExporter(simulator=simulator)


class TestHistoryExporter:
    """Tests for HistoryExporter class."""

    def test_export_json(self, exporter, tmp_path):
        """Test JSON export."""
        result = exporter.export_history_json(str(tmp_path / "history.json"))
        assert os.path.exists(result)

        with open(result) as f:
            data = json.load(f)

        assert data["metadata"]["total_bets"] == 6
        assert len(data["history"]) == 6
        assert data["history"][0]["outcome"] == "win"
        assert data["history"][0]["timestamp"] == "2024-03-01T14:00:00"

        row = data["history"][0]
        assert row["eventId"] == "coin-flip"
        assert row["betAmount"] == 40
        assert row["balanceAfter"] == 1040
        assert "event_id" not in row
        assert BetRecord.model_validate(row) == exporter.simulator.history[0]

        report = data["report"]
        assert {"id", "targetValue", "currentValue", "isActive", "isMet"} <= set(report["goals"][0])
        assert report["balance"] == 1000
        assert report["state"] == "playing"
        assert report["persona"] == "Conservative"
        assert report["metrics"]["total_bets"] == 6
        assert report["projection"]["horizon"] == 25
        assert report["benchmarks"] is not None
        assert len(report["goals"]) == 5

    def test_export_json_without_report(self, exporter, tmp_path):
        """Test JSON export without the analytics report."""
        filepath = exporter.export_history_json(str(tmp_path / "plain.json"), include_report=False, pretty=False)

        with open(filepath) as f:
            data = json.load(f)

        assert "report" not in data

    def test_report_sections_empty_for_short_history(self, exporter):
        report = exporter.build_report(exporter.simulator.history[:2])
        assert report["projection"] is None
        assert report["behavior"] is None
        assert report["benchmarks"] is None
        assert report["goals"] == []
        assert report["patterns"] == {"warnings": [], "by_severity": {"high": 0, "medium": 0, "low": 0}}

    def test_export_csv(self, exporter, tmp_path):
        """Test CSV export."""
        result = exporter.export_history_csv(str(tmp_path / "out" / "history.csv"))
        assert os.path.exists(result)

        with open(result) as f:
            reader = csv.DictReader(f)
            rows = list(reader)

        assert reader.fieldnames == HISTORY_FIELDS
        assert len(rows) == 6
        assert rows[1]["outcome"] == "loss"
        assert float(rows[1]["settlementAmount"]) == -40
        assert float(rows[-1]["balanceAfter"]) == 1000

    def test_export_all(self, exporter, tmp_path):
        """Test exporting every format."""
        files = exporter.export_all(str(tmp_path / "exports"))
        assert set(files) == {"json", "csv"}
        assert all(os.path.exists(path) for path in files.values())
