"""CLI for the table-initialization seeders."""
import argparse

from quasar.core.database import get_session_local
from quasar.core.logging_config import LoggingConfig
from quasar.seeders import SEEDERS, run_seeders

logger = LoggingConfig.get_logger(__name__)


def build_parser():
    p = argparse.ArgumentParser(prog="quasar-seed", description="Insert default reference data")
    p.add_argument("names", nargs="*", help="Seeders to run (all when omitted)")
    p.add_argument("--list", action="store_true", help="List the available seeders")
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.list:
        for seeder in SEEDERS:
            print(f"{seeder.name:<20} {seeder.description}")
        return 0

    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        results = run_seeders(db, args.names or None)
    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        return 1
    finally:
        db.close()

    for name, result in results.items():
        print(f"{name:<20} {result}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
