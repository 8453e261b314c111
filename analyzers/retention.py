"""
Retention policy: decide which sessions to delete and delete them.

Decisions are pure functions of a SessionStats snapshot and the options,
so a dry run and a live run over the same files produce the same
partition. Deletions are independent per file; a failed unlink keeps the
session rather than aborting the batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable

from session_parser import AgentType, SessionRecord
from .stats import SessionStats

logger = logging.getLogger("contextclaw")

DEFAULT_DAYS_OLD = 30


@dataclass(frozen=True)
class DeletionFailure:
    session_id: str
    file_path: Path
    error: str

    def to_dict(self) -> dict[str, str]:
        return {
            "session_id": self.session_id,
            "file_path": str(self.file_path),
            "error": self.error,
        }


@dataclass
class RetentionResult:
    """Outcome of a prune or orphan clean run."""
    dry_run: bool
    deleted_ids: list[str] = field(default_factory=list)
    kept_ids: list[str] = field(default_factory=list)
    total_bytes_freed: int = 0
    failures: list[DeletionFailure] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "deleted_ids": list(self.deleted_ids),
            "kept_ids": list(self.kept_ids),
            "total_bytes_freed": self.total_bytes_freed,
            "dry_run": self.dry_run,
            "failures": [f.to_dict() for f in self.failures],
        }


def retention_reason(
    record: SessionRecord,
    cutoff: datetime,
    keep_main: bool = True,
    keep_cron: bool = True,
) -> str | None:
    """Return why a session is kept, or None if it should be deleted.

    A session modified exactly at the cutoff is not recent.
    """
    if record.last_modified > cutoff:
        return "recent"
    if keep_main and record.agent_type == AgentType.MAIN:
        return "main"
    if keep_cron and record.agent_type == AgentType.CRON:
        return "cron"
    return None


def _delete_session(record: SessionRecord, result: RetentionResult) -> None:
    """Unlink one session file, recording it as kept if that fails."""
    if not result.dry_run:
        try:
            record.file_path.unlink()
        except OSError as e:
            logger.warning("Failed to delete %s: %s", record.file_path, e)
            result.failures.append(
                DeletionFailure(record.session_id, record.file_path, str(e))
            )
            result.kept_ids.append(record.session_id)
            return
    result.deleted_ids.append(record.session_id)
    result.total_bytes_freed += record.size_bytes


def apply_deletions(
    candidates: Iterable[SessionRecord], dry_run: bool
) -> RetentionResult:
    """Delete (or pretend to delete) every candidate, in order."""
    result = RetentionResult(dry_run=dry_run)
    for record in candidates:
        _delete_session(record, result)
    return result


def _cutoff(now: datetime, days_old: int) -> datetime:
    """now - days_old, clamped to the earliest datetime for huge thresholds."""
    try:
        return now - timedelta(days=days_old)
    except OverflowError:
        return datetime.min.replace(tzinfo=now.tzinfo)


def prune_sessions(
    stats: SessionStats,
    days_old: int = DEFAULT_DAYS_OLD,
    keep_main: bool = True,
    keep_cron: bool = True,
    dry_run: bool = False,
    now: datetime | None = None,
) -> RetentionResult:
    """Delete sessions older than days_old, sparing main/cron sessions if asked.

    Sessions are visited oldest first so the output order is stable.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    cutoff = _cutoff(now, days_old)

    result = RetentionResult(dry_run=dry_run)
    for record in stats.by_age:
        reason = retention_reason(record, cutoff, keep_main, keep_cron)
        if reason is not None:
            logger.debug("Keeping %s (%s)", record.session_id, reason)
            result.kept_ids.append(record.session_id)
            continue
        logger.debug("Deleting %s (older than %s)", record.session_id, cutoff.isoformat())
        _delete_session(record, result)

    logger.info(
        "Prune%s: %d deleted, %d kept, %d bytes freed, %d failures",
        " (dry run)" if dry_run else "",
        len(result.deleted_ids), len(result.kept_ids),
        result.total_bytes_freed, len(result.failures),
    )
    return result


def clean_orphaned(stats: SessionStats, dry_run: bool = False) -> RetentionResult:
    """Delete every session missing from the metadata index. No exemptions."""
    result = apply_deletions(stats.orphaned, dry_run)
    logger.info(
        "Orphan clean%s: %d deleted, %d bytes freed, %d failures",
        " (dry run)" if dry_run else "",
        len(result.deleted_ids), result.total_bytes_freed, len(result.failures),
    )
    return result
