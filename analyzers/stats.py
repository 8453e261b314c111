"""Aggregate statistics over one scan of session records."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Iterable

from metadata_index import MetadataIndex
from session_parser import ParseFailure, SessionRecord


@dataclass
class SessionStats:
    """Totals plus three views over the same record set.

    by_size_desc, by_age and orphaned all hold the same (enriched) record
    objects; they are never built from different scans.
    """
    total_sessions: int
    total_messages: int
    total_tokens: int
    total_size_bytes: int
    by_size_desc: list[SessionRecord]
    by_age: list[SessionRecord]
    orphaned: list[SessionRecord]
    parse_failures: list[ParseFailure] = field(default_factory=list)

    @property
    def known(self) -> list[SessionRecord]:
        """Records present in the metadata index, oldest first."""
        orphaned_ids = {id(r) for r in self.orphaned}
        return [r for r in self.by_age if id(r) not in orphaned_ids]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_sessions": self.total_sessions,
            "total_messages": self.total_messages,
            "total_tokens": self.total_tokens,
            "total_size_bytes": self.total_size_bytes,
            "by_size_desc": [r.to_dict() for r in self.by_size_desc],
            "by_age": [r.to_dict() for r in self.by_age],
            "orphaned": [r.to_dict() for r in self.orphaned],
            "parse_failures": [f.to_dict() for f in self.parse_failures],
        }


def format_bytes(n: int) -> str:
    """Format a byte count as B / KB / MB / GB with one decimal above 1 KB."""
    if n < 1024:
        return f"{n} B"
    if n < 1024 * 1024:
        return f"{n / 1024:.1f} KB"
    if n < 1024 * 1024 * 1024:
        return f"{n / (1024 * 1024):.1f} MB"
    return f"{n / (1024 * 1024 * 1024):.1f} GB"


def enrich_with_labels(
    records: Iterable[SessionRecord], index: MetadataIndex
) -> list[SessionRecord]:
    """Copy each record with its label from the index, where one exists."""
    enriched = []
    for record in records:
        label = index.lookup_label(record.session_id)
        enriched.append(replace(record, label=label) if label else record)
    return enriched


def build_session_stats(
    records: Iterable[SessionRecord],
    index: MetadataIndex,
    parse_failures: Iterable[ParseFailure] = (),
) -> SessionStats:
    """Combine parsed records with the metadata index into SessionStats.

    Args:
        records: One record per successfully parsed file, in scan order
        index: Loaded metadata index (possibly empty)
        parse_failures: Files excluded from the aggregates

    Returns:
        SessionStats whose views are built from this one record list
    """
    sessions = enrich_with_labels(records, index)

    # sorted() is stable, including with reverse=True
    by_size_desc = sorted(sessions, key=lambda r: r.size_bytes, reverse=True)
    by_age = sorted(sessions, key=lambda r: r.last_modified)
    orphaned = [r for r in sessions if not index.contains_session_id(r.session_id)]

    return SessionStats(
        total_sessions=len(sessions),
        total_messages=sum(r.message_count for r in sessions),
        total_tokens=sum(r.token_count for r in sessions),
        total_size_bytes=sum(r.size_bytes for r in sessions),
        by_size_desc=by_size_desc,
        by_age=by_age,
        orphaned=orphaned,
        parse_failures=list(parse_failures),
    )


def summarize_stats(stats: SessionStats, now: datetime) -> dict[str, Any]:
    """Dashboard summary: totals, largest session and oldest session."""
    largest = None
    if stats.by_size_desc:
        top = stats.by_size_desc[0]
        largest = {
            "id": top.session_id,
            "size": format_bytes(top.size_bytes),
            "messages": top.message_count,
        }

    oldest = None
    if stats.by_age:
        first = stats.by_age[0]
        oldest = {
            "id": first.session_id,
            "age_days": (now - first.last_modified).days,
            "last_modified": first.last_modified.isoformat(),
        }

    return {
        "total_sessions": stats.total_sessions,
        "total_messages": stats.total_messages,
        "total_tokens": stats.total_tokens,
        "total_size": format_bytes(stats.total_size_bytes),
        "total_size_bytes": stats.total_size_bytes,
        "orphaned_count": len(stats.orphaned),
        "largest_session": largest,
        "oldest_session": oldest,
    }
