"""
FastAPI service for the ContextClaw session dashboard.

Every request rescans the sessions directory; there is no cache. Prune and
orphan-clean endpoints default to dry runs.

Deployment: uvicorn app:app --host 127.0.0.1 --port 18797
(or: python contextclaw.py serve)
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from analyzers import DEFAULT_DAYS_OLD, RetentionResult, format_bytes, summarize_stats
from session_analyzer import SessionAnalyzer
from session_files import SessionsDirectoryError
from settings import load_config

logger = logging.getLogger("contextclaw")

_STARTED_AT = time.monotonic()

# ---------------------------------------------------------------------------
# Analyzer dependency
# ---------------------------------------------------------------------------
_ANALYZER: SessionAnalyzer | None = None


def set_analyzer(analyzer: SessionAnalyzer | None) -> None:
    global _ANALYZER
    _ANALYZER = analyzer


def get_analyzer() -> SessionAnalyzer:
    """Return the shared analyzer, building it from the config file on first use."""
    global _ANALYZER
    if _ANALYZER is None:
        config = load_config()
        _ANALYZER = SessionAnalyzer(config.openclaw_home)
        logger.info("Analyzing sessions in %s", _ANALYZER.sessions_dir)
    return _ANALYZER


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------
class PruneRequest(BaseModel):
    days_old: int = Field(default=DEFAULT_DAYS_OLD, ge=0)
    keep_main: bool = True
    keep_cron: bool = True
    dry_run: bool = True


class CleanRequest(BaseModel):
    dry_run: bool = True


def _retention_payload(result: RetentionResult) -> dict[str, Any]:
    payload = result.to_dict()
    payload["total_bytes_formatted"] = format_bytes(result.total_bytes_freed)
    return payload


def _analyze(analyzer: SessionAnalyzer):
    try:
        return analyzer.analyze_sessions()
    except SessionsDirectoryError as e:
        logger.error("Error analyzing sessions: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


app = FastAPI(title="ContextClaw Session Dashboard")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/api/sessions")
def api_sessions(analyzer: SessionAnalyzer = Depends(get_analyzer)):
    """All sessions with totals and sorted views."""
    return _analyze(analyzer).to_dict()


@app.get("/api/sessions/{session_id}")
def api_session_detail(session_id: str, analyzer: SessionAnalyzer = Depends(get_analyzer)):
    """Stats for a single session."""
    record = analyzer.get_session_details(session_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return record.to_dict()


@app.post("/api/prune")
def api_prune(
    payload: PruneRequest | None = None,
    analyzer: SessionAnalyzer = Depends(get_analyzer),
):
    """Prune old sessions (dry run unless dry_run is false)."""
    payload = payload or PruneRequest()
    try:
        result = analyzer.prune_sessions(
            days_old=payload.days_old,
            keep_main=payload.keep_main,
            keep_cron=payload.keep_cron,
            dry_run=payload.dry_run,
        )
    except SessionsDirectoryError as e:
        logger.error("Error pruning sessions: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
    return _retention_payload(result)


@app.post("/api/clean-orphaned")
def api_clean_orphaned(
    payload: CleanRequest | None = None,
    analyzer: SessionAnalyzer = Depends(get_analyzer),
):
    """Delete sessions missing from sessions.json (dry run by default)."""
    payload = payload or CleanRequest()
    try:
        result = analyzer.clean_orphaned(dry_run=payload.dry_run)
    except SessionsDirectoryError as e:
        logger.error("Error cleaning orphaned sessions: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
    return _retention_payload(result)


@app.get("/api/stats")
def api_stats(analyzer: SessionAnalyzer = Depends(get_analyzer)):
    """Summary statistics for the dashboard header."""
    stats = _analyze(analyzer)
    return summarize_stats(stats, datetime.now(timezone.utc))


@app.get("/health")
def health():
    return {"status": "ok", "uptime": round(time.monotonic() - _STARTED_AT, 1)}
