"""
Session analysis engine for an OpenClaw home directory.

Scans <home>/agents/main/sessions for *.jsonl transcripts, cross-checks
them against sessions.json, and prunes or cleans them on request. Every
call rescans from scratch; nothing is cached between calls. Used by the
FastAPI app (app.py) and the CLI (contextclaw.py).
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from analyzers import (
    DEFAULT_DAYS_OLD,
    RetentionResult,
    SessionStats,
    build_session_stats,
    clean_orphaned,
    format_bytes,
    prune_sessions,
)
from metadata_index import MetadataIndex
from session_files import SESSION_SUFFIX, find_session_files
from session_parser import ParseFailure, SessionRecord, parse_session_file
from settings import DEFAULT_OPENCLAW_HOME

logger = logging.getLogger("contextclaw")

__all__ = ["SessionAnalyzer", "format_bytes"]


def _is_plain_name(session_id: str) -> bool:
    """True if session_id names a file directly inside the sessions directory."""
    if session_id in ("", ".", ".."):
        return False
    return "/" not in session_id and "\\" not in session_id


class SessionAnalyzer:
    """Analyze and prune the sessions of one OpenClaw home."""

    def __init__(self, openclaw_home: Path | str | None = None):
        home = Path(openclaw_home) if openclaw_home else DEFAULT_OPENCLAW_HOME
        self.openclaw_home = home.expanduser().absolute()
        self.sessions_dir = self.openclaw_home / "agents" / "main" / "sessions"
        self.metadata_path = self.sessions_dir / "sessions.json"

    def load_metadata(self) -> MetadataIndex:
        return MetadataIndex.load(self.metadata_path)

    def analyze_sessions(self) -> SessionStats:
        """Scan, parse and aggregate every session.

        Raises SessionsDirectoryError if the sessions directory is missing.
        Unreadable files are logged and listed in parse_failures.
        """
        paths = find_session_files(self.sessions_dir)
        index = self.load_metadata()

        records: list[SessionRecord] = []
        failures: list[ParseFailure] = []
        for path in paths:
            parsed = parse_session_file(path)
            if isinstance(parsed, ParseFailure):
                logger.warning("Failed to analyze %s: %s", path.name, parsed.error)
                failures.append(parsed)
            else:
                records.append(parsed)

        return build_session_stats(records, index, failures)

    def get_session_details(self, session_id: str) -> SessionRecord | None:
        """Parse a single session by id; None if it does not exist."""
        if not _is_plain_name(session_id):
            return None
        path = self.sessions_dir / f"{session_id}{SESSION_SUFFIX}"
        if not path.is_file():
            return None

        parsed = parse_session_file(path)
        if isinstance(parsed, ParseFailure):
            logger.warning("Failed to analyze %s: %s", path.name, parsed.error)
            return None
        return build_session_stats([parsed], self.load_metadata()).by_age[0]

    def prune_sessions(
        self,
        days_old: int = DEFAULT_DAYS_OLD,
        keep_main: bool = True,
        keep_cron: bool = True,
        dry_run: bool = False,
        now: datetime | None = None,
    ) -> RetentionResult:
        return prune_sessions(
            self.analyze_sessions(),
            days_old=days_old,
            keep_main=keep_main,
            keep_cron=keep_cron,
            dry_run=dry_run,
            now=now,
        )

    def clean_orphaned(self, dry_run: bool = False) -> RetentionResult:
        return clean_orphaned(self.analyze_sessions(), dry_run=dry_run)

    @staticmethod
    def format_bytes(n: int) -> str:
        return format_bytes(n)
