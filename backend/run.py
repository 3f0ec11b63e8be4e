"""
Run the Leadflow automation service.

Usage:
    python run.py                          # API server + scheduler
    python run.py serve --reload           # Development mode with auto-reload
    python run.py worker                   # Scheduler only, no HTTP server
    python run.py once                     # Run a single automation cycle
    python run.py once --dry-run           # Show what would fire
    python run.py once --at 2026-01-05T09:00:00Z --dry-run
"""
import argparse
import signal
import sys
import threading


def serve(args: argparse.Namespace) -> None:
    import uvicorn

    print("Starting Leadflow automation service...")
    print(f"  Host: {args.host}")
    print(f"  Port: {args.port}")
    print(f"  Reload: {args.reload}")
    print()

    uvicorn.run(
        "leadflow.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1  # One scheduler per deployment
    )


def worker(args: argparse.Namespace) -> None:
    from leadflow.repositories.mongo_client import create_indexes, close_connection
    from leadflow.scheduler.automation_scheduler import start_scheduler, stop_scheduler
    from leadflow.utils.logger import setup_logging

    setup_logging()
    create_indexes()
    start_scheduler()

    stop_event = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop_event.set())
    signal.signal(signal.SIGTERM, lambda *_: stop_event.set())
    stop_event.wait()

    stop_scheduler()
    close_connection()


def once(args: argparse.Namespace) -> int:
    from leadflow.config.settings import get_settings
    from leadflow.engine.action_dispatcher import ActionDispatcher
    from leadflow.engine.cycle import AutomationCycle
    from leadflow.repositories.mongo_client import close_connection
    from leadflow.repositories.store import MongoAutomationStore
    from leadflow.utils.logger import setup_logging
    from leadflow.utils.time import fixed_clock, format_iso, parse_iso, utc_now

    settings = get_settings()
    setup_logging()
    clock = fixed_clock(parse_iso(args.at)) if args.at else utc_now
    store = MongoAutomationStore()
    cycle = AutomationCycle(
        store,
        dispatcher=ActionDispatcher(store, clock=clock, message_template=settings.whatsapp_message_template),
        clock=clock,
        max_workers=settings.automation_max_workers
    )

    try:
        summary = cycle.run(dry_run=args.dry_run)
    finally:
        close_connection()

    mode = "DRY RUN" if args.dry_run else "LIVE"
    print(f"=== Automation cycle ({mode}) at {format_iso(summary.started_at)} ===")
    for stats in summary.per_rule.values():
        line = (
            f"  {stats.rule_name} [{stats.trigger} -> {stats.action}]: "
            f"{stats.matches} matches, {stats.performed} performed, "
            f"{stats.already_executed} already executed, {stats.skipped} skipped, {stats.failed} failed"
        )
        if stats.error:
            line += f" (error: {stats.error})"
        print(line)
    print(f"=== Done: {summary.matches} matches, {summary.performed} performed ===")
    return 1 if summary.failed else 0


def main():
    parser = argparse.ArgumentParser(description="Run the Leadflow automation service")
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="API server with the scheduler (default)")
    serve_parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)"
    )
    serve_parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development"
    )

    subparsers.add_parser("worker", help="Scheduler only, until interrupted")

    once_parser = subparsers.add_parser("once", help="Run a single automation cycle")
    once_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Evaluate triggers without performing actions"
    )
    once_parser.add_argument(
        "--at",
        type=str,
        default=None,
        help="Evaluate as of this ISO 8601 timestamp instead of now"
    )

    args = parser.parse_args()

    if args.command == "worker":
        worker(args)
    elif args.command == "once":
        sys.exit(once(args))
    else:
        if args.command is None:
            args = serve_parser.parse_args([])
        serve(args)


if __name__ == "__main__":
    main()
