"""Shared fixtures for contextclaw tests."""

import json
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from session_analyzer import SessionAnalyzer

UUID_SESSION_ID = "a1b2c3d4-e5f6-7890-abcd-ef1234567890"


def write_session(sessions_dir: Path, session_id: str, lines, mtime: datetime | None = None) -> Path:
    """Write a JSONL session file; lines may be dicts or raw strings."""
    path = sessions_dir / f"{session_id}.jsonl"
    rendered = [line if isinstance(line, str) else json.dumps(line) for line in lines]
    path.write_text("\n".join(rendered) + "\n", encoding="utf-8")
    if mtime is not None:
        ts = mtime.timestamp()
        os.utime(path, (ts, ts))
    return path


def write_metadata(sessions_dir: Path, entries: dict) -> Path:
    path = sessions_dir / "sessions.json"
    path.write_text(json.dumps(entries), encoding="utf-8")
    return path


def user_message(content):
    return {"type": "message", "message": {"role": "user", "content": content}}


# ---------------------------------------------------------------------------
# OpenClaw home fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def now():
    """A fixed 'now', truncated to whole seconds so utime round-trips exactly."""
    return datetime.now(timezone.utc).replace(microsecond=0)


@pytest.fixture()
def openclaw_home(tmp_path):
    """An empty OpenClaw home with the sessions directory created."""
    home = tmp_path / ".openclaw"
    (home / "agents" / "main" / "sessions").mkdir(parents=True)
    return home


@pytest.fixture()
def sessions_dir(openclaw_home):
    return openclaw_home / "agents" / "main" / "sessions"


@pytest.fixture()
def analyzer(openclaw_home):
    return SessionAnalyzer(openclaw_home)


@pytest.fixture()
def populated_home(openclaw_home, sessions_dir, now):
    """Three sessions: a fresh main, an old cron, and an old orphaned subagent.

    Only main-001 is listed in sessions.json.
    """
    write_session(
        sessions_dir, "main-001",
        [user_message("hi"), {"role": "assistant", "content": "hello world"}],
        mtime=now,
    )
    write_session(
        sessions_dir, "cron-002",
        [user_message("nightly report")],
        mtime=now - timedelta(days=40),
    )
    write_session(
        sessions_dir, UUID_SESSION_ID,
        [user_message("subtask"), user_message("more work")],
        mtime=now - timedelta(days=40),
    )
    write_metadata(sessions_dir, {
        "agent:main:main": {"sessionId": "main-001", "label": "Main chat"},
    })
    return openclaw_home


@pytest.fixture()
def make_session(sessions_dir):
    """Factory: make_session(session_id, lines, mtime=None) -> Path."""
    def _make(session_id, lines, mtime=None):
        return write_session(sessions_dir, session_id, lines, mtime)
    return _make


@pytest.fixture()
def make_metadata(sessions_dir):
    """Factory: make_metadata(entries) -> Path of sessions.json."""
    def _make(entries):
        return write_metadata(sessions_dir, entries)
    return _make
