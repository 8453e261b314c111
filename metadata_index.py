"""
Load the OpenClaw sessions.json metadata index.

The index maps arbitrary keys (e.g. "agent:main:telegram:123") to entries
carrying the session id and an optional human label. It is maintained by
a separate process and may lag behind the session files, so a missing or
broken index degrades to empty instead of failing the analysis.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger("contextclaw")


@dataclass(frozen=True)
class MetadataEntry:
    """One index entry. Fields other than sessionId/label are kept in extra."""
    key: str
    session_id: str | None = None
    label: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, key: str, value: dict[str, Any]) -> MetadataEntry:
        session_id = value.get("sessionId")
        label = value.get("label")
        return cls(
            key=key,
            session_id=session_id if isinstance(session_id, str) else None,
            label=label if isinstance(label, str) and label else None,
            extra={k: v for k, v in value.items() if k not in ("sessionId", "label")},
        )


class MetadataIndex:
    """Session metadata keyed by arbitrary strings.

    Matching always uses each entry's sessionId field, never the key.
    """

    def __init__(self, entries: list[MetadataEntry] | None = None):
        self.entries = list(entries or [])
        self._session_ids = {
            e.session_id for e in self.entries if e.session_id is not None
        }

    def __len__(self) -> int:
        return len(self.entries)

    @classmethod
    def load(cls, path: Path) -> MetadataIndex:
        """Load the index from path; any read or decode problem gives an empty index."""
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.debug("No metadata index at %s", path)
            return cls()
        except (OSError, ValueError, RecursionError) as e:
            logger.warning("Ignoring unreadable metadata index %s: %s", path, e)
            return cls()

        if not isinstance(raw, dict):
            logger.warning(
                "Ignoring metadata index %s: expected a JSON object, got %s",
                path, type(raw).__name__,
            )
            return cls()

        entries = [
            MetadataEntry.from_json(key, value)
            for key, value in raw.items()
            if isinstance(value, dict)
        ]
        return cls(entries)

    def lookup_label(self, session_id: str) -> str | None:
        """Label of the first entry whose sessionId matches, if it has one."""
        for entry in self.entries:
            if entry.session_id == session_id:
                return entry.label
        return None

    def contains_session_id(self, session_id: str) -> bool:
        return session_id in self._session_ids
