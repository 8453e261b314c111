"""Analysis modules for session statistics and retention."""

from .stats import (
    SessionStats,
    build_session_stats,
    enrich_with_labels,
    format_bytes,
    summarize_stats,
)
from .retention import (
    DEFAULT_DAYS_OLD,
    DeletionFailure,
    RetentionResult,
    apply_deletions,
    clean_orphaned,
    prune_sessions,
    retention_reason,
)

__all__ = [
    'SessionStats',
    'build_session_stats',
    'enrich_with_labels',
    'format_bytes',
    'summarize_stats',
    'DEFAULT_DAYS_OLD',
    'DeletionFailure',
    'RetentionResult',
    'apply_deletions',
    'clean_orphaned',
    'prune_sessions',
    'retention_reason',
]
