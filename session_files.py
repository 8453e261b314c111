"""
Locate and read OpenClaw session transcripts.

Session files are append-only JSONL transcripts stored flat in one
directory (<home>/agents/main/sessions/<session-id>.jsonl). The metadata
index (sessions.json) lives in the same directory and is not a session.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

SESSION_SUFFIX = ".jsonl"


class SessionsDirectoryError(OSError):
    """The sessions directory is missing or cannot be listed."""


def find_session_files(directory: Path) -> list[Path]:
    """Return every *.jsonl file directly inside directory, sorted by name.

    Raises SessionsDirectoryError if the directory cannot be listed.
    """
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        raise SessionsDirectoryError(
            f"Cannot list sessions directory {directory}: {e}"
        ) from e
    return sorted(p for p in entries if p.name.endswith(SESSION_SUFFIX))


def session_id_from_path(path: Path) -> str:
    """Example: /x/sessions/main-001.jsonl -> main-001"""
    name = path.name
    if name.endswith(SESSION_SUFFIX):
        return name[: -len(SESSION_SUFFIX)]
    return name


def read_session_file(path: Path) -> tuple[str, os.stat_result]:
    """Read a whole transcript and the stat taken on the same open handle.

    A writer appending while we read can leave a truncated last line; that
    line simply fails to parse in iter_jsonl.
    """
    with path.open("rb") as f:
        stat = os.fstat(f.fileno())
        data = f.read()
    return data.decode("utf-8", errors="replace"), stat


def iter_jsonl(text: str) -> Iterable[tuple[int, Any | None]]:
    """
    Iterate over JSONL text line-by-line, yielding (lineno, parsed_value).

    Blank lines are skipped. Yields (lineno, None) for malformed JSON lines
    instead of crashing.
    """
    # Only "\n" separates records; str.splitlines() would also split on
    # U+2028 and friends, which are legal inside JSON strings.
    for lineno, line in enumerate(text.split("\n"), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            yield lineno, json.loads(line)
        except (ValueError, RecursionError):
            yield lineno, None
