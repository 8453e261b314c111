"""Tests for contextclaw.py — the command line."""

import pytest
import yaml

import contextclaw
from session_analyzer import SessionAnalyzer

UUID_SESSION_ID = "a1b2c3d4-e5f6-7890-abcd-ef1234567890"


def run(home, *args):
    return contextclaw.main(["--home", str(home), *args])


class TestAnalyzeCommand:
    def test_prints_tables(self, populated_home, capsys):
        assert run(populated_home, "analyze") == 0
        out = capsys.readouterr().out
        assert "Total Sessions:    3" in out
        assert "Largest Sessions" in out
        assert "Oldest Sessions" in out
        assert "Orphaned Sessions (2)" in out
        # labelled sessions are shown by label
        assert "Main chat" in out

    def test_top_limits_rows(self, populated_home, capsys):
        assert run(populated_home, "analyze", "--top", "1") == 0
        out = capsys.readouterr().out
        assert "...and 1 more" in out

    def test_missing_home_exits_1(self, tmp_path, capsys):
        assert run(tmp_path / "nowhere", "analyze") == 1
        assert "Error:" in capsys.readouterr().err


class TestPruneCommand:
    def test_dry_run_by_default(self, populated_home, sessions_dir, capsys):
        assert run(populated_home, "prune") == 0
        out = capsys.readouterr().out
        assert "DRY RUN MODE" in out
        assert "Would delete: 1" in out
        assert len(list(sessions_dir.glob("*.jsonl"))) == 3

    def test_live(self, populated_home, sessions_dir, capsys):
        assert run(populated_home, "prune", "--live") == 0
        assert "Deleted: 1" in capsys.readouterr().out
        assert not (sessions_dir / f"{UUID_SESSION_ID}.jsonl").exists()

    def test_no_keep_cron(self, populated_home, capsys):
        assert run(populated_home, "prune", "--no-keep-cron") == 0
        assert "Would delete: 2" in capsys.readouterr().out

    def test_huge_days(self, populated_home, capsys):
        assert run(populated_home, "prune", "--days", str(10**9)) == 0
        assert "Would delete: 0" in capsys.readouterr().out

    def test_negative_days_rejected(self, populated_home, capsys):
        with pytest.raises(SystemExit) as exc:
            run(populated_home, "prune", "--days", "-1")
        assert exc.value.code == 2
        assert "must be >= 0" in capsys.readouterr().err

    def test_yaml_report(self, populated_home, tmp_path):
        report = tmp_path / "prune.yaml"
        assert run(populated_home, "prune", "--days", "30", "--report", str(report)) == 0
        data = yaml.safe_load(report.read_text())
        assert data["options"] == {
            "days_old": 30, "keep_main": True, "keep_cron": True, "dry_run": True,
        }
        assert data["result"]["deleted_ids"] == [UUID_SESSION_ID]
        assert data["summary"]["deleted"] == 1


class TestCleanOrphanedCommand:
    def test_dry_run(self, populated_home, capsys):
        assert run(populated_home, "clean-orphaned") == 0
        out = capsys.readouterr().out
        assert "Would delete: 2" in out

    def test_nothing_to_clean(self, populated_home, make_metadata, capsys):
        make_metadata({
            "a": {"sessionId": "main-001"},
            "b": {"sessionId": "cron-002"},
            "c": {"sessionId": UUID_SESSION_ID},
        })
        assert run(populated_home, "clean-orphaned", "--live") == 0
        assert "No orphaned sessions found!" in capsys.readouterr().out


class TestStatusCommand:
    def test_status(self, populated_home, capsys):
        assert run(populated_home, "status") == 0
        out = capsys.readouterr().out
        assert "Sessions:   3" in out
        assert "Orphaned:   2" in out


class TestServeCommand:
    def test_runs_uvicorn_with_analyzer(self, populated_home, monkeypatch):
        import uvicorn

        import app as app_module

        calls = {}
        monkeypatch.setattr(uvicorn, "run", lambda app, host, port: calls.update(
            app=app, host=host, port=port))
        try:
            assert run(populated_home, "serve", "--port", "9123") == 0
            assert calls == {"app": app_module.app, "host": "127.0.0.1", "port": 9123}
            assert isinstance(app_module.get_analyzer(), SessionAnalyzer)
            assert app_module.get_analyzer().openclaw_home == populated_home
        finally:
            app_module.set_analyzer(None)
