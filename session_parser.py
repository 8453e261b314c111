"""
Parse OpenClaw JSONL session transcripts into SessionRecord values.

Counts messages, estimates token usage, and classifies each session by
origin (main agent, cron job, subagent). Used by session_analyzer.py.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from session_files import iter_jsonl, read_session_file, session_id_from_path

logger = logging.getLogger("contextclaw")

CHARS_PER_TOKEN = 4


class AgentType(str, Enum):
    MAIN = "main"
    CRON = "cron"
    SUBAGENT = "subagent"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SessionRecord:
    """One parsed session file."""
    session_id: str
    file_path: Path
    message_count: int
    token_count: int
    size_bytes: int
    last_modified: datetime
    agent_type: AgentType
    label: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "file_path": str(self.file_path),
            "message_count": self.message_count,
            "token_count": self.token_count,
            "size_bytes": self.size_bytes,
            "last_modified": self.last_modified.isoformat(),
            "agent_type": self.agent_type.value,
            "label": self.label,
        }


@dataclass(frozen=True)
class ParseFailure:
    """A session file that could not be read; excluded from all aggregates."""
    file_path: Path
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"file_path": str(self.file_path), "error": self.error}


@dataclass
class _SessionCounts:
    message_count: int = 0
    token_count: int = 0
    skipped_lines: int = 0


# -- Agent type classification --
# Evaluated top to bottom, first match wins. The subagent rule is a coarse
# UUID-shape check (36 chars with a hyphen), not real UUID validation.
AGENT_TYPE_RULES: list[tuple[Callable[[str], bool], AgentType]] = [
    (lambda sid: "main" in sid, AgentType.MAIN),
    (lambda sid: "cron" in sid, AgentType.CRON),
    (lambda sid: len(sid) == 36 and "-" in sid, AgentType.SUBAGENT),
]


def classify_agent_type(session_id: str) -> AgentType:
    """Classify a session's origin from its id."""
    for predicate, agent_type in AGENT_TYPE_RULES:
        if predicate(session_id):
            return agent_type
    return AgentType.UNKNOWN


def estimate_tokens(text_length: int) -> int:
    """Rough 4-chars-per-token estimate, rounded up. Not a real tokenizer."""
    if text_length <= 0:
        return 0
    return -(-text_length // CHARS_PER_TOKEN)


def _serialize_arguments(arguments: Any) -> str:
    return json.dumps(arguments, separators=(",", ":"), ensure_ascii=False)


def _has_arguments(arguments: Any) -> bool:
    # Empty objects and arrays still count; null, false, 0 and "" do not.
    if isinstance(arguments, (dict, list)):
        return True
    return bool(arguments)


def estimate_content_tokens(content: Any) -> int:
    """Estimate tokens for message content (handles string and list-of-blocks).

    Each text segment is rounded up separately. toolCall arguments are
    counted by their compact JSON form; other block types count zero.
    """
    if isinstance(content, str):
        return estimate_tokens(len(content))
    if not isinstance(content, list):
        return 0

    tokens = 0
    for block in content:
        if not isinstance(block, dict):
            continue
        block_type = block.get("type")
        if block_type == "text":
            text = block.get("text")
            if isinstance(text, str):
                tokens += estimate_tokens(len(text))
        elif block_type == "toolCall":
            arguments = block.get("arguments")
            if _has_arguments(arguments):
                tokens += estimate_tokens(len(_serialize_arguments(arguments)))
    return tokens


def extract_message(obj: Any) -> dict[str, Any] | None:
    """Return the message dict for a transcript line, or None if it has no role.

    Two shapes are supported: {"message": {"role": ...}} and a bare
    {"role": ...} at the top level.
    """
    if not isinstance(obj, dict):
        return None
    nested = obj.get("message")
    if isinstance(nested, dict) and nested.get("role"):
        return nested
    if obj.get("role"):
        return obj
    return None


def count_messages(text: str) -> _SessionCounts:
    """Count messages and estimate tokens over every line of a transcript."""
    counts = _SessionCounts()
    for _lineno, obj in iter_jsonl(text):
        if obj is None:
            counts.skipped_lines += 1
            continue
        msg = extract_message(obj)
        if msg is None:
            continue
        counts.message_count += 1
        counts.token_count += estimate_content_tokens(msg.get("content"))
    return counts


def parse_session_file(path: Path) -> SessionRecord | ParseFailure:
    """Parse one session file. Never raises for an unreadable file."""
    try:
        text, stat = read_session_file(path)
    except OSError as e:
        return ParseFailure(file_path=path, error=str(e))

    session_id = session_id_from_path(path)
    counts = count_messages(text)
    if counts.skipped_lines:
        logger.debug(
            "Skipped %d malformed lines in %s", counts.skipped_lines, path.name
        )

    return SessionRecord(
        session_id=session_id,
        file_path=path,
        message_count=counts.message_count,
        token_count=counts.token_count,
        size_bytes=stat.st_size,
        last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        agent_type=classify_agent_type(session_id),
    )
