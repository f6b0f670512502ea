import argparse
import asyncio
import logging
import sys
from typing import Any, Mapping

from feed_notifier.config import ENV_VARS, load_settings, state_store_from_env
from feed_notifier.errors import ConfigError, StoreError, TransportError
from feed_notifier.models import RunResult
from feed_notifier.orchestrator import run_once
from feed_notifier.store import SQLiteStateStore

log = logging.getLogger("main")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def configure_logging(level: str = "INFO") -> None:
    # force=True: a warm handler process must not keep the previous run's level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feed-notifier",
        description="Notify once for every new feed item published inside a time window.",
    )
    parser.add_argument("--feed-url", help="JSON feed URL (env JSON_FEED_URL)")
    parser.add_argument("--state-store", help="SQLite state file (env STATE_STORE)")
    parser.add_argument("--notify-target", help="'console' or a webhook URL (env NOTIFY_TARGET)")
    parser.add_argument("--start", help="Window start, ISO 8601, inclusive (env START_TRIGGER_DATE)")
    parser.add_argument("--end", help="Window end, ISO 8601, inclusive (env END_TRIGGER_DATE)")
    parser.add_argument("--log-level", help="Logging level (env LOG_LEVEL)")
    parser.add_argument(
        "--list-state",
        action="store_true",
        help="Print the recorded items and exit without polling",
    )
    return parser


def _log_outcome(result: RunResult) -> None:
    if result.ok:
        log.info("Done: %s, %d notification(s) recorded", result.state.name, len(result.records))
    else:
        log.error("Run failed: %s", result.error)


def _list_state(state_store: str) -> int:
    store = SQLiteStateStore(state_store)
    try:
        store.init_db()
        records = store.list_records()
    except StoreError as exc:
        log.error("%s", exc)
        return EXIT_FAILED
    for record in records:
        print(f"{record.detected_at} | {record.published_at} | {record.identity}")
    return EXIT_OK


def cli(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level or "INFO")

    overrides = {
        "feed_url": args.feed_url,
        "state_store": args.state_store,
        "notify_target": args.notify_target,
        "start": args.start,
        "end": args.end,
        "log_level": args.log_level,
    }

    if args.list_state:
        return _list_state(args.state_store or state_store_from_env())

    try:
        settings = load_settings(overrides)
    except ConfigError as exc:
        log.error("Configuration error: %s", exc)
        return EXIT_CONFIG
    configure_logging(settings.log_level)

    log.info("launching from command line")
    try:
        result = asyncio.run(run_once(settings))
    except ConfigError as exc:
        log.error("Configuration error: %s", exc)
        return EXIT_CONFIG
    except TransportError as exc:
        # setup failed before the pipeline started (e.g. state store unreachable)
        log.error("Run failed: %s", exc)
        return EXIT_FAILED
    _log_outcome(result)
    return EXIT_OK if result.ok else EXIT_FAILED


def handler(event: Mapping[str, Any] | None = None, context: Any = None) -> dict[str, Any]:
    """
    Triggered entrypoint (scheduled job, function runtime).

    event may override any setting by key: feed_url, state_store,
    notify_target, start, end, log_level. A failed run re-raises its
    TransportError so the trigger records the invocation as failed.
    """
    # trigger events carry their own metadata; only setting keys are overrides
    event = event or {}
    settings = load_settings({key: event[key] for key in ENV_VARS if key in event})
    configure_logging(settings.log_level)

    log.info("launching from handler")
    result = asyncio.run(run_once(settings))
    _log_outcome(result)
    if result.error is not None:
        raise result.error
    return {"state": result.state.name, "notified": len(result.records)}


if __name__ == "__main__":
    sys.exit(cli())
