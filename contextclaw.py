#!/usr/bin/env python3
"""
ContextClaw command line: analyze, prune and clean OpenClaw sessions.

Usage:
    python contextclaw.py analyze [--top N]
    python contextclaw.py prune [--days N] [--live] [--report PATH]
    python contextclaw.py clean-orphaned [--live] [--report PATH]
    python contextclaw.py status
    python contextclaw.py serve [--port N]

prune and clean-orphaned are dry runs unless --live is given.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

import yaml

from analyzers import DEFAULT_DAYS_OLD, RetentionResult, SessionStats, format_bytes
from session_analyzer import SessionAnalyzer
from session_files import SessionsDirectoryError
from session_parser import SessionRecord
from settings import load_config

logger = logging.getLogger("contextclaw")


def _display_name(record: SessionRecord) -> str:
    return record.label or record.session_id[:20]


def _age_days(record: SessionRecord, now: datetime) -> int:
    return (now - record.last_modified).days


def format_analysis(stats: SessionStats, top_n: int = 10, now: datetime | None = None) -> str:
    """Render the analyze report as plain text."""
    now = now or datetime.now(timezone.utc)
    lines = [
        "SESSION ANALYSIS",
        "=" * 70,
        f"Total Sessions:    {stats.total_sessions:,}",
        f"Total Messages:    {stats.total_messages:,}",
        f"Total Tokens:      {stats.total_tokens:,}",
        f"Total Size:        {format_bytes(stats.total_size_bytes)}",
        f"Orphaned Sessions: {len(stats.orphaned):,}",
    ]
    if stats.parse_failures:
        lines.append(f"Unreadable Files:  {len(stats.parse_failures):,}")

    lines += ["", f"Largest Sessions (Top {top_n})", "-" * 70]
    lines.append(f"{'Session':<22} {'Type':<9} {'Size':>10} {'Messages':>9} {'Tokens':>10}")
    for r in stats.by_size_desc[:top_n]:
        lines.append(
            f"{_display_name(r):<22} {r.agent_type.value:<9} "
            f"{format_bytes(r.size_bytes):>10} {r.message_count:>9,} {r.token_count:>10,}"
        )

    lines += ["", f"Oldest Sessions (Top {top_n})", "-" * 70]
    lines.append(f"{'Session':<22} {'Type':<9} {'Age (days)':>10} {'Size':>10}")
    for r in stats.by_age[:top_n]:
        lines.append(
            f"{_display_name(r):<22} {r.agent_type.value:<9} "
            f"{_age_days(r, now):>10} {format_bytes(r.size_bytes):>10}"
        )

    if stats.orphaned:
        lines += [
            "",
            f"Orphaned Sessions ({len(stats.orphaned)})",
            "-" * 70,
            "These sessions are not in sessions.json and can be safely removed.",
        ]
        for r in stats.orphaned[:top_n]:
            lines.append(
                f"{r.session_id[:20]:<22} {r.agent_type.value:<9} "
                f"{format_bytes(r.size_bytes):>10} {r.last_modified.date().isoformat():>12}"
            )
        if len(stats.orphaned) > top_n:
            lines.append(f"...and {len(stats.orphaned) - top_n} more")
        lines.append("Run 'contextclaw.py clean-orphaned --live' to remove them.")

    return "\n".join(lines)


def format_retention(result: RetentionResult, title: str) -> str:
    """Render a prune/clean result as plain text."""
    verb = "Would delete" if result.dry_run else "Deleted"
    lines = [
        title,
        "=" * 70,
        "DRY RUN MODE - No files were deleted" if result.dry_run
        else "LIVE MODE - Files were permanently deleted",
        f"  {verb}: {len(result.deleted_ids)}",
        f"  Kept: {len(result.kept_ids)}",
        f"  Space freed: {format_bytes(result.total_bytes_freed)}",
    ]
    for failure in result.failures:
        lines.append(f"  Failed to delete {failure.session_id}: {failure.error}")
    return "\n".join(lines)


def write_retention_yaml(result: RetentionResult, output_path: Path, options: dict) -> None:
    """Write a prune/clean result to a YAML audit report."""
    report = {
        "generated": datetime.now(timezone.utc).isoformat(),
        "options": options,
        "summary": {
            "deleted": len(result.deleted_ids),
            "kept": len(result.kept_ids),
            "total_bytes_freed": result.total_bytes_freed,
            "total_size": format_bytes(result.total_bytes_freed),
        },
        "result": result.to_dict(),
    }
    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(report, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    print(f"Report written to: {output_path}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
def cmd_analyze(analyzer: SessionAnalyzer, args: argparse.Namespace) -> int:
    print(format_analysis(analyzer.analyze_sessions(), args.top))
    return 0


def cmd_prune(analyzer: SessionAnalyzer, args: argparse.Namespace) -> int:
    dry_run = not args.live
    result = analyzer.prune_sessions(
        days_old=args.days,
        keep_main=args.keep_main,
        keep_cron=args.keep_cron,
        dry_run=dry_run,
    )
    print(f"Sessions older than {args.days} days:")
    print(format_retention(result, "SESSION PRUNING"))
    if args.report:
        write_retention_yaml(result, args.report, {
            "days_old": args.days,
            "keep_main": args.keep_main,
            "keep_cron": args.keep_cron,
            "dry_run": dry_run,
        })
    return 0


def cmd_clean_orphaned(analyzer: SessionAnalyzer, args: argparse.Namespace) -> int:
    dry_run = not args.live
    result = analyzer.clean_orphaned(dry_run=dry_run)
    if not result.deleted_ids and not result.failures:
        print("No orphaned sessions found!")
    else:
        print(format_retention(result, "CLEAN ORPHANED SESSIONS"))
    if args.report:
        write_retention_yaml(result, args.report, {"dry_run": dry_run})
    return 0


def cmd_status(analyzer: SessionAnalyzer, args: argparse.Namespace) -> int:
    stats = analyzer.analyze_sessions()
    print(f"Sessions dir: {analyzer.sessions_dir}")
    print(f"  Sessions:   {stats.total_sessions}")
    print(f"  Total Size: {format_bytes(stats.total_size_bytes)}")
    print(f"  Orphaned:   {len(stats.orphaned)}")
    return 0


def cmd_serve(analyzer: SessionAnalyzer, args: argparse.Namespace) -> int:
    import uvicorn

    import app as app_module

    app_module.set_analyzer(analyzer)
    print(f"Context Dashboard: http://localhost:{args.port}")
    uvicorn.run(app_module.app, host=args.host, port=args.port)
    return 0


def _non_negative_int(value: str) -> int:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {n}")
    return n


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    config = load_config()

    parser = argparse.ArgumentParser(
        description="Analyze and prune OpenClaw session transcripts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Summary tables for the default home (~/.openclaw)
  python contextclaw.py analyze

  # Preview which sessions older than 14 days would be removed
  python contextclaw.py prune --days 14

  # Actually delete them and keep an audit report
  python contextclaw.py prune --days 14 --live --report prune.yaml
        """,
    )
    parser.add_argument(
        "--home",
        type=Path,
        default=config.openclaw_home,
        help=f"OpenClaw home directory (default: {config.openclaw_home})",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("analyze", help="Show session statistics")
    p.add_argument("--top", type=int, default=10, help="Rows per table (default: 10)")
    p.set_defaults(func=cmd_analyze)

    p = sub.add_parser("prune", help="Delete old sessions (dry run by default)")
    p.add_argument("--days", type=_non_negative_int, default=DEFAULT_DAYS_OLD,
                   help=f"Age threshold in days (default: {DEFAULT_DAYS_OLD})")
    p.add_argument("--live", action="store_true", help="Actually delete files")
    p.add_argument("--no-keep-main", dest="keep_main", action="store_false",
                   help="Allow deleting old main-agent sessions")
    p.add_argument("--no-keep-cron", dest="keep_cron", action="store_false",
                   help="Allow deleting old cron sessions")
    p.add_argument("--report", type=Path, help="Write a YAML report to this path")
    p.set_defaults(func=cmd_prune)

    p = sub.add_parser("clean-orphaned", help="Delete sessions missing from sessions.json")
    p.add_argument("--live", action="store_true", help="Actually delete files")
    p.add_argument("--report", type=Path, help="Write a YAML report to this path")
    p.set_defaults(func=cmd_clean_orphaned)

    p = sub.add_parser("status", help="Quick stats")
    p.set_defaults(func=cmd_status)

    p = sub.add_parser("serve", help="Run the dashboard API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=config.port,
                   help=f"Port (default: {config.port})")
    p.set_defaults(func=cmd_serve)

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    analyzer = SessionAnalyzer(args.home)
    try:
        return args.func(analyzer, args)
    except SessionsDirectoryError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
