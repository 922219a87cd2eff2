"""Command-line interface for the coaching scheduler."""

from __future__ import annotations

import argparse
from dataclasses import replace

import pandas as pd

from coaching.config import load_config
from coaching.domain.db import DEFAULT_DB_URL, get_session, init_database, reset_database
from coaching.engine.orchestrator import location_week_report, plan_role_week, staff_backfill_status
from coaching.io.export_csv import export_recommendations_csv, export_summaries_csv
from coaching.io.import_csv import (
    import_domains_csv,
    import_locations_csv,
    import_pro_moves_csv,
    import_scores_csv,
    import_staff_csv,
)
from coaching.services.week_clock import anchors


def _now(args: argparse.Namespace) -> pd.Timestamp:
    if args.now:
        return pd.Timestamp(args.now)
    return pd.Timestamp.now(tz="UTC")


def _cmd_init_db(args: argparse.Namespace) -> None:
    """Initialize the database."""
    db_url = args.db or DEFAULT_DB_URL
    init_database(db_url)
    print(f"[OK] Database initialized: {db_url}")


def _cmd_reset_db(args: argparse.Namespace) -> None:
    """Drop and recreate all tables."""
    db_url = args.db or DEFAULT_DB_URL
    if not args.yes:
        print(f"[WARN] Refusing to reset {db_url} without --yes")
        return
    reset_database(db_url)
    print(f"[OK] Database reset: {db_url}")


def _cmd_import_csv(args: argparse.Namespace) -> None:
    """Import CSV data into database."""
    db_url = args.db or DEFAULT_DB_URL
    session = get_session(db_url)

    try:
        # Parents before children so foreign keys resolve
        if args.domains:
            count = import_domains_csv(session, args.domains)
            print(f"[OK] Imported {count} domains")

        if args.pro_moves:
            count = import_pro_moves_csv(session, args.pro_moves)
            print(f"[OK] Imported {count} pro moves")

        if args.locations:
            count = import_locations_csv(session, args.locations)
            print(f"[OK] Imported {count} locations")

        if args.staff:
            count = import_staff_csv(session, args.staff)
            print(f"[OK] Imported {count} staff")

        if args.scores:
            count = import_scores_csv(session, args.scores, week_of=args.week)
            print(f"[OK] Imported {count} score rows")

        session.close()
        print("[OK] CSV import complete")

    except Exception as e:
        session.rollback()
        session.close()
        print(f"[ERROR] Import failed: {e}")
        raise


def _cmd_anchors(args: argparse.Namespace) -> None:
    """Print the week anchors for an instant."""
    cfg = load_config(args.config)
    tz = args.tz or cfg.timezone
    week = anchors(_now(args), tz, cfg.policy_offsets)

    print(f"[INFO] Week of {week.week_of.isoformat()} ({tz})")
    for name in (
        "week_start_utc",
        "checkin_open_utc",
        "checkin_visible_utc",
        "checkin_due_utc",
        "checkout_open_utc",
        "checkout_due_utc",
        "week_end_utc",
    ):
        print(f"  {name:<20} {getattr(week, name).isoformat()}")


def _cmd_rank(args: argparse.Namespace) -> None:
    """Rank and select pro moves for a role's week."""
    db_url = args.db or DEFAULT_DB_URL
    session = get_session(db_url)

    try:
        cfg = load_config(args.config)
        if args.preset:
            cfg = replace(cfg, sequencer=cfg.sequencer.with_preset(args.preset))

        result = plan_role_week(session, args.role, pd.Timestamp(args.week).date(), cfg, persist=not args.dry_run)

        for rec in result.selected:
            flag = " (coverage)" if rec.forced_for_coverage else ""
            print(
                f"  #{rec.skill_id:<6} {rec.domain_name or rec.domain_id!s:<16} "
                f"{rec.final_score:.3f}  {rec.primary_reason_code.value}{flag}"
            )

        if args.out:
            export_recommendations_csv(result.ranked, args.out)

        session.close()

    except Exception as e:
        session.rollback()
        session.close()
        print(f"[ERROR] Ranking failed: {e}")
        raise


def _cmd_report(args: argparse.Namespace) -> None:
    """Print a location's week summary."""
    db_url = args.db or DEFAULT_DB_URL
    session = get_session(db_url)

    try:
        cfg = load_config(args.config)
        report = location_week_report(session, args.location, _now(args), cfg)

        stats = report.stats
        print(f"[INFO] Status: {report.status.value}")
        print(
            f"[INFO] Missing confidence: {stats.missing_conf_count}, "
            f"missing performance: {stats.missing_perf_count}"
        )
        print(f"[INFO] Avg confidence {stats.avg_confidence:.2f}, avg performance {stats.avg_performance:.2f}")
        for s in report.summaries:
            state = "complete" if s.is_complete else "open"
            late = " late" if s.has_any_late else ""
            print(f"  {s.staff_name or s.staff_id:<24} {s.conf_count}/{s.perf_count}/{s.assignment_count} {state}{late}")

        if args.out:
            export_summaries_csv(report.summaries, args.out)

        session.close()

    except Exception as e:
        session.close()
        print(f"[ERROR] Report failed: {e}")
        raise


def _cmd_backfill(args: argparse.Namespace) -> None:
    """Print a staff member's backfill status."""
    db_url = args.db or DEFAULT_DB_URL
    session = get_session(db_url)

    try:
        cfg = load_config(args.config)
        status = staff_backfill_status(session, args.staff, _now(args), cfg)

        print(f"[INFO] Backfill: {status.state.value} ({status.weeks_checked} week(s) checked)")
        for week in status.missing_weeks:
            print(f"  {week.isoformat()}")

        session.close()

    except Exception as e:
        session.close()
        print(f"[ERROR] Backfill check failed: {e}")
        raise


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(prog="coaching", description="Weekly coaching scheduler")

    # Global options
    parser.add_argument("--db", help=f"Database URL (default: {DEFAULT_DB_URL})")

    sub = parser.add_subparsers(dest="command", required=True)

    # init-db command
    init = sub.add_parser("init-db", help="Initialize database")
    init.set_defaults(func=_cmd_init_db)

    # reset-db command
    reset = sub.add_parser("reset-db", help="Drop and recreate all tables (deletes all data)")
    reset.add_argument("--yes", action="store_true", help="Confirm deleting all data")
    reset.set_defaults(func=_cmd_reset_db)

    # import-csv command
    imp = sub.add_parser("import-csv", help="Import CSV data into database")
    imp.add_argument("--domains", help="Path to domains CSV")
    imp.add_argument("--pro-moves", dest="pro_moves", help="Path to pro moves CSV")
    imp.add_argument("--locations", help="Path to locations CSV")
    imp.add_argument("--staff", help="Path to staff CSV")
    imp.add_argument("--scores", help="Path to weekly scores CSV")
    imp.add_argument("--week", help="Week (Monday, YYYY-MM-DD) to filter scores (optional)")
    imp.set_defaults(func=_cmd_import_csv)

    # anchors command
    anc = sub.add_parser("anchors", help="Show week anchors for an instant")
    anc.add_argument("--tz", help="IANA timezone (default: config timezone)")
    anc.add_argument("--now", help="ISO-8601 instant with offset (default: current time)")
    anc.add_argument("--config", help="Path to config YAML")
    anc.set_defaults(func=_cmd_anchors)

    # rank command
    rank = sub.add_parser("rank", help="Rank and select pro moves for a role's week")
    rank.add_argument("--role", type=int, required=True, help="Role ID")
    rank.add_argument("--week", required=True, help="Any date in the target week (YYYY-MM-DD)")
    rank.add_argument("--config", help="Path to config YAML")
    rank.add_argument("--preset", help="Weight preset (balanced, confidence_recovery, variety_first)")
    rank.add_argument("--out", help="Optional: export the full ranking to CSV")
    rank.add_argument("--dry-run", action="store_true", help="Do not persist the selection")
    rank.set_defaults(func=_cmd_rank)

    # report command
    rep = sub.add_parser("report", help="Summarize a location's week")
    rep.add_argument("--location", required=True, help="Location ID")
    rep.add_argument("--now", help="ISO-8601 instant with offset (default: current time)")
    rep.add_argument("--config", help="Path to config YAML")
    rep.add_argument("--out", help="Optional: export staff summaries to CSV")
    rep.set_defaults(func=_cmd_report)

    # backfill command
    bf = sub.add_parser("backfill", help="Check a staff member's backfill status")
    bf.add_argument("--staff", required=True, help="Staff ID")
    bf.add_argument("--now", help="ISO-8601 instant with offset (default: current time)")
    bf.add_argument("--config", help="Path to config YAML")
    bf.set_defaults(func=_cmd_backfill)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
