"""
Tests for the tournament command line.

- schedule: feasible run, CSV export, infeasible exit code, invalid input
- info: problem summary
- root CLI wiring
"""

import csv
import json

import pytest
from typer.testing import CliRunner

from main import app as root_app
from tournament_scheduler.cli import EXIT_INFEASIBLE, EXIT_INVALID_INPUT, app

runner = CliRunner()


@pytest.fixture
def problem_file(tmp_path, problem_data):
    path = tmp_path / "problem.json"
    path.write_text(json.dumps(problem_data), encoding="utf-8")
    return path


def test_schedule_feasible(problem_file):
    result = runner.invoke(app, ["schedule", str(problem_file)])

    assert result.exit_code == 0, result.output
    assert "Loaded Spring Cup: 6 matches, 6 slots" in result.output
    assert "09:00-10:00 [Main Pitch] M1: Alpha vs Bravo" in result.output
    assert "Status: ✅ Feasible" in result.output
    # Top seeds Alpha and Bravo meet in round 1
    assert "Seeded Team Separation" in result.output
    assert "Total soft penalty: 5.40" in result.output


def test_schedule_quiet_still_reports(problem_file):
    result = runner.invoke(app, ["schedule", str(problem_file), "--quiet"])

    assert result.exit_code == 0
    assert "Loaded" not in result.output
    assert "Status: ✅ Feasible" in result.output


def test_schedule_exports_csv(problem_file, tmp_path):
    output = tmp_path / "schedule.csv"

    result = runner.invoke(app, ["schedule", str(problem_file), "--output", str(output), "-q"])

    assert result.exit_code == 0, result.output
    with open(output, encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 6
    assert rows[0]["match_id"] == "M1"
    assert rows[0]["team_a"] == "Alpha"
    assert rows[0]["start_time"] == "09:00"
    assert [r["start_time"] for r in rows] == sorted(r["start_time"] for r in rows)


def test_schedule_infeasible_with_rest(problem_file):
    result = runner.invoke(app, ["schedule", str(problem_file), "--min-rest", "60", "-q"])

    assert result.exit_code == EXIT_INFEASIBLE
    assert "Status: ❌ Infeasible" in result.output
    assert "Infeasible Schedule" in result.output


def test_schedule_too_few_slots(tmp_path, problem_data):
    problem_data["fields"][0]["windows"][0]["end"] = "2025-06-07T12:00:00"
    path = tmp_path / "short_day.json"
    path.write_text(json.dumps(problem_data), encoding="utf-8")

    result = runner.invoke(app, ["schedule", str(path), "-q"])

    assert result.exit_code == EXIT_INFEASIBLE


def test_schedule_overlap_ordering(problem_file):
    result = runner.invoke(app, ["schedule", str(problem_file), "--value-ordering", "overlap", "-q"])
    assert result.exit_code == 0, result.output


def test_rest_from_problem_rules(tmp_path, problem_data):
    problem_data["rules"]["minimum_rest_minutes"] = 60
    path = tmp_path / "rested.json"
    path.write_text(json.dumps(problem_data), encoding="utf-8")

    strict = runner.invoke(app, ["schedule", str(path), "-q"])
    relaxed = runner.invoke(app, ["schedule", str(path), "-q", "--min-rest", "0"])

    assert strict.exit_code == EXIT_INFEASIBLE
    assert relaxed.exit_code == 0


def test_invalid_problem_file(tmp_path, problem_data):
    problem_data["matches"][0]["team_b"] = "Z"
    path = tmp_path / "broken.json"
    path.write_text(json.dumps(problem_data), encoding="utf-8")

    result = runner.invoke(app, ["schedule", str(path)])

    assert result.exit_code == EXIT_INVALID_INPUT
    assert "unknown participants" in result.output


def test_malformed_json(tmp_path):
    path = tmp_path / "garbage.json"
    path.write_text("{not json", encoding="utf-8")

    result = runner.invoke(app, ["schedule", str(path)])

    assert result.exit_code == EXIT_INVALID_INPUT


def test_invalid_env_config(problem_file, monkeypatch):
    monkeypatch.setenv("TOURNAMENT_SCHEDULER_VALUE_ORDERING", "random")

    result = runner.invoke(app, ["schedule", str(problem_file)])

    assert result.exit_code == EXIT_INVALID_INPUT
    assert "Invalid input" in result.output


def test_info(problem_file):
    result = runner.invoke(app, ["info", str(problem_file)])

    assert result.exit_code == 0, result.output
    assert "Tournament: Spring Cup" in result.output
    assert "Participants: 4" in result.output
    assert "#1 Alpha" in result.output
    assert "round_robin: 6" in result.output
    assert "Slots: 6 (generated)" in result.output


def test_root_cli_registers_scheduler(problem_file):
    result = runner.invoke(root_app, ["scheduler", "info", str(problem_file)])
    assert result.exit_code == 0, result.output
    assert "Matches: 6" in result.output


def test_invalid_env_timeout(problem_file, monkeypatch):
    monkeypatch.setenv("TOURNAMENT_SCHEDULER_TIMEOUT_SECONDS", "abc")

    result = runner.invoke(app, ["schedule", str(problem_file), "-q"])

    assert result.exit_code == EXIT_INVALID_INPUT
    assert "Invalid input" in result.output
    assert "TIMEOUT_SECONDS" in result.output
