"""
Configuration for the ContextClaw dashboard and CLI.

Defaults can be overridden by ~/.openclaw/context-tracker/config.json,
e.g. {"port": 18797, "openclawHome": "/home/pi/.openclaw"}. This module
only reads the file; it never writes it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger("contextclaw")

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_PORT = 18797
DEFAULT_OPENCLAW_HOME = Path.home() / ".openclaw"
CONFIG_PATH = DEFAULT_OPENCLAW_HOME / "context-tracker" / "config.json"


@dataclass
class ServerConfig:
    port: int = DEFAULT_PORT
    openclaw_home: Path = field(default_factory=lambda: DEFAULT_OPENCLAW_HOME)


def load_config(path: Path = CONFIG_PATH) -> ServerConfig:
    """Load config from path, falling back to defaults for anything missing or bad."""
    config = ServerConfig()
    if not path.exists():
        return config

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError, RecursionError) as e:
        logger.warning("Failed to load config %s, using defaults: %s", path, e)
        return config
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: expected a JSON object", path)
        return config

    port = data.get("port")
    if isinstance(port, int) and not isinstance(port, bool):
        config.port = port
    elif port is not None:
        logger.warning("Ignoring invalid port in %s: %r", path, port)

    home = data.get("openclawHome")
    if isinstance(home, str) and home:
        config.openclaw_home = Path(home).expanduser()

    return config
