"""Tests for the CLI, settings loading and doctor checks."""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from whirlbird.config.loader import load_settings
from whirlbird.core.doctor import run_doctor
from whirlbird.core.results import SimulationReport, load_report, save_report
from whirlbird.ui.cli.main import build_parser, main


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("WHIRLBIRD_STORE", raising=False)
        s = load_settings()
        assert s.store_backend == "memory"
        assert s.api.leaderboard_size == 3
        assert s.api.max_score == 9999
        assert s.game.base_speed == 18.0

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("WHIRLBIRD_STORE", "sqlite")
        monkeypatch.setenv("WHIRLBIRD_API_URL", "http://example.test")
        s = load_settings()
        assert s.store_backend == "sqlite"
        assert s.api_url == "http://example.test"

    def test_keyword_beats_env(self, monkeypatch):
        monkeypatch.setenv("WHIRLBIRD_STORE", "sqlite")
        assert load_settings(store_backend="memory").store_backend == "memory"

    def test_speed_curve(self):
        game = load_settings().game
        assert game.speed_for(0) == 18.0
        assert game.speed_for(10) == pytest.approx(20.0)
        assert game.speed_for(1000) == 38.0
        assert game.difficulty_for(4) == 0
        assert game.difficulty_for(5) == 1


class TestDoctor:
    def test_checks_pass(self):
        checks = run_doctor(load_settings(store_backend="memory"))
        names = {c.name for c in checks}
        assert {"store_backend", "fastapi", "speed_range", "frame_delta"} <= names
        assert all(c.ok for c in checks)

    def test_unknown_backend_fails(self):
        settings = load_settings().with_overrides(store_backend="redis")
        store_check = next(c for c in run_doctor(settings) if c.name == "store_backend")
        assert store_check.ok is False


class TestReports:
    def test_frames_stripped(self, tmp_path):
        """Saved reports keep per-run stats but not replay frames."""
        runs = [{"seed": 1, "score": 2, "frames": [{"frame": 10}]}]
        path = save_report(tmp_path / "out" / "r.json", SimulationReport.from_runs({"runs": 1}, runs))
        report = load_report(path)
        assert report.summary == {"runs": 1}
        assert report.results == [{"seed": 1, "score": 2}]
        assert json.loads(path.read_text())["schema_version"] == 1

    def test_unversioned_file_rejected(self, tmp_path):
        path = tmp_path / "old.json"
        path.write_text(json.dumps({"avg_score": 2}))
        with pytest.raises(ValueError, match="schema_version"):
            load_report(path)


class TestCommands:
    def test_parser_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_parser_rejects_unknown_store(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["leaderboard", "--store", "redis"])

    def test_doctor(self, capsys):
        main(["doctor", "--store", "memory"])
        assert "checks passing" in capsys.readouterr().out

    def test_leaderboard_empty(self, capsys):
        main(["leaderboard", "--store", "memory"])
        assert "No scores recorded yet" in capsys.readouterr().out

    def test_simulate_saves(self, tmp_path, capsys):
        out = tmp_path / "sim.json"
        main(["simulate", "--seed", "3", "--seconds", "2", "--out", str(out)])
        report = load_report(out)
        assert report.summary["runs"] == 1
        assert report.results[0]["seed"] == 3
        assert "RESULTS" in capsys.readouterr().out

    def test_simulate_reports_previous(self, tmp_path, capsys):
        """A second save to the same file mentions the earlier run."""
        out = tmp_path / "sim.json"
        main(["simulate", "--seed", "3", "--seconds", "1", "--out", str(out)])
        main(["simulate", "--seed", "4", "--seconds", "1", "--out", str(out)])
        assert "Previous avg_score" in capsys.readouterr().out
        assert load_report(out).results[0]["seed"] == 4
