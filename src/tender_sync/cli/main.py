"""Main CLI entry point."""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional


def main(argv: Optional[list[str]] = None) -> None:
    """Parse args and dispatch to subcommands."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to SQLite database (default: TENDER_SYNC_DB or tender_sync.db)",
    )
    common.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings YAML; environment variables fill anything it leaves out",
    )

    parser = argparse.ArgumentParser(prog="tender-sync", description="Public procurement feed sync and matching")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # sync
    sync_parser = subparsers.add_parser("sync", parents=[common], help="Run one sync now")
    sync_parser.add_argument(
        "--source",
        default="placsp",
        help="Feed source (default: placsp)",
    )

    # schedule
    schedule_parser = subparsers.add_parser("schedule", parents=[common], help="Run sync on the cron schedule")
    schedule_parser.add_argument(
        "--cron",
        type=str,
        default=None,
        help="Cron expression (default: SYNC_CRON_SCHEDULE or '0 */6 * * *')",
    )
    schedule_parser.add_argument(
        "--run-on-start",
        action="store_true",
        help="Run once immediately before waiting for the schedule",
    )

    # records
    records_parser = subparsers.add_parser("records", parents=[common], help="Query the record store")
    records_parser.add_argument(
        "action",
        choices=["list", "count"],
        help="List records or show count",
    )
    records_parser.add_argument(
        "--status",
        type=str,
        default=None,
        help="Filter by status (active, awarded, closed)",
    )
    records_parser.add_argument(
        "--region",
        type=str,
        default=None,
        help="Filter by region",
    )
    records_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Max records to list",
    )

    # subscribers
    subscribers_parser = subparsers.add_parser("subscribers", parents=[common], help="Manage subscribers")
    subscribers_parser.add_argument(
        "action",
        choices=["add", "list"],
        help="Add a subscriber from a profile YAML, or list subscribers",
    )
    subscribers_parser.add_argument(
        "--profile",
        type=Path,
        default=None,
        help="Path to profile YAML (for add)",
    )
    subscribers_parser.add_argument(
        "--status",
        type=str,
        default="active",
        help="Subscription status (for add; default: active)",
    )
    subscribers_parser.add_argument("--company", type=str, default=None, help="Company name (for add)")

    # matches
    matches_parser = subparsers.add_parser("matches", parents=[common], help="Show matches for a subscriber")
    matches_parser.add_argument("--user", type=str, required=True, help="Subscriber user id")
    matches_parser.add_argument(
        "--all",
        action="store_true",
        help="Include notified matches",
    )

    # score
    score_parser = subparsers.add_parser("score", parents=[common], help="Score one record for one profile")
    score_parser.add_argument(
        "--profile",
        type=Path,
        required=True,
        help="Path to profile YAML",
    )
    score_parser.add_argument(
        "--record",
        type=str,
        required=True,
        help="Record id (placsp:<external id>) or external id",
    )

    # runs
    runs_parser = subparsers.add_parser("runs", parents=[common], help="Show recent sync runs")
    runs_parser.add_argument("--limit", type=int, default=10, help="Number of runs (default: 10)")

    # cleanup
    cleanup_parser = subparsers.add_parser("cleanup", parents=[common], help="Deactivate old closed records")
    cleanup_parser.add_argument(
        "--months",
        type=int,
        default=6,
        help="Deactivate closed records with deadline older than this (default: 6)",
    )

    # health
    subparsers.add_parser("health", parents=[common], help="Check the feed is reachable")

    args = parser.parse_args(argv)

    if args.command == "sync":
        _run_sync(args)
    elif args.command == "schedule":
        _run_schedule(args)
    elif args.command == "records":
        _run_records(args)
    elif args.command == "subscribers":
        _run_subscribers(args)
    elif args.command == "matches":
        _run_matches(args)
    elif args.command == "score":
        _run_score(args)
    elif args.command == "runs":
        _run_runs(args)
    elif args.command == "cleanup":
        _run_cleanup(args)
    elif args.command == "health":
        _run_health(args)
    else:
        parser.print_help()


def _load_settings(args: argparse.Namespace):
    """Settings from --config / environment, with --db applied; logging configured."""
    from tender_sync.config import Settings, configure_logging

    settings = Settings.from_yaml(args.config) if args.config else Settings()
    if args.db is not None:
        settings = settings.model_copy(update={"db_path": args.db})
    configure_logging(settings.log_level, settings.log_file)
    return settings


def _build_service(settings, source: str = "placsp"):
    from tender_sync.connectors.registry import ConnectorRegistry
    from tender_sync.store import MatchStore, RecordStore, SubscriberStore, SyncLogStore
    from tender_sync.sync import SyncService

    connector = ConnectorRegistry.get(
        source,
        feed_url=settings.feed_url,
        max_entries=settings.max_entries_to_process,
        timeout=settings.request_timeout,
    )
    return SyncService(
        connector,
        RecordStore(settings.db_path),
        SubscriberStore(settings.db_path),
        MatchStore(settings.db_path),
        SyncLogStore(settings.db_path),
        settings=settings,
    )


def _dump(data) -> None:
    print(json.dumps(data, indent=2, default=str, ensure_ascii=False))


def _run_sync(args: argparse.Namespace) -> None:
    """Run sync command."""
    from tender_sync.errors import TenderSyncError

    settings = _load_settings(args)
    try:
        service = _build_service(settings, args.source)
        result = service.run_sync(sync_type="manual")
    except ValueError as e:
        raise SystemExit(str(e))
    except TenderSyncError as e:
        print(f"Sync failed: {e}", file=sys.stderr)
        raise SystemExit(1)
    _dump(result.model_dump(mode="json"))


def _run_schedule(args: argparse.Namespace) -> None:
    """Run schedule command. Blocks until interrupted."""
    from tender_sync.jobs import SyncJob

    settings = _load_settings(args)
    job = SyncJob(
        _build_service(settings),
        cron_schedule=args.cron or settings.cron_schedule,
        run_on_start=args.run_on_start or settings.run_on_start,
    )
    try:
        job.start()
    except (KeyboardInterrupt, SystemExit):
        job.stop()


def _run_records(args: argparse.Namespace) -> None:
    """Run records command."""
    from tender_sync.store import RecordStore

    settings = _load_settings(args)
    store = RecordStore(settings.db_path)
    records = store.query(status=args.status, region=args.region, is_active=None, limit=args.limit)
    if args.action == "list":
        _dump([r.model_dump(mode="json") for r in records])
    elif args.action == "count":
        print(len(records))


def _run_subscribers(args: argparse.Namespace) -> None:
    """Run subscribers command."""
    from tender_sync.models.profile import SubscriberProfile
    from tender_sync.store import SubscriberStore

    settings = _load_settings(args)
    store = SubscriberStore(settings.db_path)
    if args.action == "add":
        if not args.profile:
            raise SystemExit("subscribers add requires --profile")
        profile = store.save(
            SubscriberProfile.from_yaml(args.profile),
            subscription_status=args.status,
            company_name=args.company,
        )
        print(f"Saved subscriber {profile.user_id} ({args.status})")
    elif args.action == "list":
        for profile in store.get_profiles():
            status = store.subscription_status(profile.user_id)
            regions = ", ".join(sorted(profile.regions)) or "-"
            print(f"  {profile.user_id} [{status}] regions: {regions}")


def _run_matches(args: argparse.Namespace) -> None:
    """Run matches command."""
    from tender_sync.store import MatchStore, RecordStore

    settings = _load_settings(args)
    matches = MatchStore(settings.db_path).list_for_user(args.user, include_notified=args.all)
    records = RecordStore(settings.db_path)
    if not matches:
        print(f"No matches for {args.user}.", file=sys.stderr)
        return
    for m in matches:
        record = records.get(m.record_id)
        title = record.title if record else m.record_id
        print(f"  [{m.score:3d}] {title} ({m.status})")
        for reason in m.reasons:
            print(f"        - {reason}")


def _run_score(args: argparse.Namespace) -> None:
    """Run score command: score one stored record for a profile file."""
    from tender_sync.models.profile import SubscriberProfile
    from tender_sync.scoring import score_record
    from tender_sync.store import RecordStore

    settings = _load_settings(args)
    profile = SubscriberProfile.from_yaml(args.profile)
    store = RecordStore(settings.db_path)
    record = store.get(args.record) or store.find_by_external_id(args.record)
    if record is None:
        print(f"Record not found: {args.record}", file=sys.stderr)
        raise SystemExit(1)
    result = score_record(record, profile)
    _dump({"record_id": record.id, "score": result.score, "reasons": result.reasons})


def _run_runs(args: argparse.Namespace) -> None:
    """Run runs command."""
    from dataclasses import asdict

    from tender_sync.store import SyncLogStore

    settings = _load_settings(args)
    runs = SyncLogStore(settings.db_path).recent_runs(args.limit)
    _dump([asdict(r) for r in runs])


def _run_cleanup(args: argparse.Namespace) -> None:
    """Run cleanup command."""
    settings = _load_settings(args)
    count = _build_service(settings).cleanup_old_records(months=args.months)
    print(f"Deactivated {count} records")


def _run_health(args: argparse.Namespace) -> None:
    """Run health command."""
    from tender_sync.connectors.placsp import PlacspConnector

    settings = _load_settings(args)
    result = PlacspConnector(feed_url=settings.feed_url, timeout=settings.request_timeout).health_check()
    _dump(result)
    if result["status"] != "ok":
        raise SystemExit(1)


if __name__ == "__main__":
    main()
