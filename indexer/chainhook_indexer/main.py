"""Chainhook indexer service with CLI."""

import argparse
import json
import sys
from dataclasses import asdict

from chainhook_indexer.config import Config
from chainhook_indexer.log import get_logger, setup_logging

logger = get_logger(__name__)


def serve(config: Config) -> None:
    """Run the HTTP API.

    Args:
        config: Configuration object
    """
    import uvicorn

    from api.app import create_app
    from db.healthcheck import check_tables_exist

    app = create_app(config)
    check_tables_exist()

    logger.info(f"chainhook indexer listening on :{config.port}")
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


def migrate(config: Config) -> None:
    """Apply pending schema migrations.

    Args:
        config: Configuration object
    """
    from db.migrate import upgrade

    upgrade(config)


def check(config: Config) -> None:
    """Verify database connectivity and schema.

    Args:
        config: Configuration object
    """
    from db.healthcheck import check_tables_exist, ping_database
    from db.session import init_db

    init_db(config)
    if not ping_database():
        raise RuntimeError("Database is not reachable")
    check_tables_exist()
    print("Database OK")


def replay(config: Config, limit: int = None) -> None:
    """Re-extract events from stored deliveries.

    Args:
        config: Configuration object
        limit: Maximum number of deliveries to scan
    """
    from db.session import init_db
    from services.ingestion import replay_deliveries

    init_db(config)
    result = replay_deliveries(config, limit=limit)
    print(f"Deliveries scanned: {result.deliveries_scanned}")
    print(f"Events extracted: {result.events_extracted}")
    print(f"Events inserted: {result.events_inserted}")


def extract(config: Config, path: str) -> None:
    """Print the events extracted from a payload file, without storing them.

    Args:
        config: Configuration object
        path: Path to a JSON chainhook payload
    """
    from chainhook.canonical import compute_event_uid
    from chainhook.extractor import extract_fundraising_events, extract_top_level_meta

    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)

    meta = extract_top_level_meta(payload)
    events = extract_fundraising_events(
        payload,
        expected_contract_identifier=config.expected_contract_identifier,
    )

    print(f"Delivery UID: {compute_event_uid(payload)}")
    print(f"Envelope: {json.dumps(asdict(meta))}")
    print(f"Events: {len(events)}")
    for event in events:
        row = event.to_row()
        row.pop("raw")
        print(json.dumps(row))


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        description="Chainhook indexer for the fundraising contract",
        prog="chainhook-indexer",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("serve", help="Start the HTTP API")
    subparsers.add_parser("migrate", help="Apply database migrations")
    subparsers.add_parser("check", help="Check database connectivity and schema")

    replay_parser = subparsers.add_parser("replay", help="Re-extract events from stored deliveries")
    replay_parser.add_argument("--limit", type=int, help="Maximum deliveries to scan")

    extract_parser = subparsers.add_parser("extract", help="Show events extracted from a payload file")
    extract_parser.add_argument("path", help="Path to a JSON chainhook payload")

    return parser


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Load config
    try:
        config = Config.from_env()
        config.validate()
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    # Setup logging
    setup_logging(config)

    try:
        if args.command == "serve":
            serve(config)
        elif args.command == "migrate":
            migrate(config)
        elif args.command == "check":
            check(config)
        elif args.command == "replay":
            replay(config, args.limit)
        elif args.command == "extract":
            extract(config, args.path)
        else:
            parser.print_help()
            sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
