"""CLI for the migration sequence (wraps quasar.db.migrator and Alembic)."""
import argparse
import json

from alembic.config import CommandLine

from quasar.core.errors import MigrationError
from quasar.core.logging_config import LoggingConfig
from quasar.db.migrator import Migrator

logger = LoggingConfig.get_logger(__name__)


def _migrator(args) -> Migrator:
    return Migrator(database_url=args.database_url, config_file=args.config)


def cmd_upgrade(args):
    applied = _migrator(args).upgrade(args.target)
    if applied:
        for revision in applied:
            print(f"applied  {revision}")
    else:
        print("Database is up to date")
    return 0


def cmd_downgrade(args):
    reverted = _migrator(args).downgrade(args.target)
    for revision in reverted:
        print(f"reverted {revision}")
    if not reverted:
        print("Nothing to revert")
    return 0


def cmd_current(args):
    current = _migrator(args).current()
    print(", ".join(current) if current else "<base>")
    return 0


def cmd_heads(args):
    for head in _migrator(args).heads():
        print(head)
    return 0


def cmd_history(args):
    history = _migrator(args).history()
    if args.json:
        print(json.dumps([info.to_dict() for info in history], indent=2))
        return 0
    for info in history:
        marker = "[x]" if info.applied else "[ ]"
        print(f"{marker} {info.revision}  {info.doc.splitlines()[0] if info.doc else ''}")
    return 0


def cmd_pending(args):
    pending = _migrator(args).pending()
    for revision in pending:
        print(revision)
    if not pending:
        print("No pending migrations")
    return 0


def cmd_stamp(args):
    _migrator(args).stamp(args.target)
    return 0


def cmd_revision(args):
    path = _migrator(args).revision(args.message, autogenerate=args.autogenerate)
    print(path)
    return 0


def cmd_check(args):
    _migrator(args).check()
    print("Models and migrations are in sync")
    return 0


def cmd_run(args):
    """Pass the remaining arguments to the Alembic command line"""
    cli = CommandLine(prog="quasar-migrate run")
    try:
        options = cli.parser.parse_args(args.alembic_args)
        if not hasattr(options, "cmd"):
            cli.parser.error("too few arguments")
    except SystemExit as e:
        # argparse exits on bad input; report it like any other failed command
        raise MigrationError(f"Invalid Alembic command: {' '.join(args.alembic_args) or '<none>'}") from e
    # Surface CommandError to main() instead of letting Alembic call sys.exit
    options.raiseerr = True
    cfg = _migrator(args).config()
    cfg.cmd_opts = options
    cli.run_cmd(cfg, options)
    return 0


def build_parser():
    p = argparse.ArgumentParser(prog="quasar-migrate", description="Run and inspect database migrations")
    p.add_argument("--database-url", help="Database URL (defaults to DATABASE_URL / settings)")
    p.add_argument("--config", "-c", help="Path to alembic.ini")
    sub = p.add_subparsers(dest="cmd")

    s = sub.add_parser("upgrade", help="Apply pending migrations")
    s.add_argument("target", nargs="?", default="head")
    s.set_defaults(func=cmd_upgrade)

    s = sub.add_parser("downgrade", help="Revert migrations")
    s.add_argument("target", nargs="?", default="-1")
    s.set_defaults(func=cmd_downgrade)

    s = sub.add_parser("current", help="Show the applied revision")
    s.set_defaults(func=cmd_current)

    s = sub.add_parser("heads", help="Show head revisions")
    s.set_defaults(func=cmd_heads)

    s = sub.add_parser("history", help="List all migrations with their state")
    s.add_argument("--json", action="store_true", help="Print as JSON")
    s.set_defaults(func=cmd_history)

    s = sub.add_parser("pending", help="List migrations not yet applied")
    s.set_defaults(func=cmd_pending)

    s = sub.add_parser("stamp", help="Set the version table without running migrations")
    s.add_argument("target")
    s.set_defaults(func=cmd_stamp)

    s = sub.add_parser("revision", help="Create a new migration file")
    s.add_argument("-m", "--message", required=True)
    s.add_argument("--autogenerate", action="store_true")
    s.set_defaults(func=cmd_revision)

    s = sub.add_parser("check", help="Fail when models and migrations disagree")
    s.set_defaults(func=cmd_check)

    s = sub.add_parser("run", help="Run any Alembic command, e.g. `run show head`")
    s.add_argument("alembic_args", nargs=argparse.REMAINDER)
    s.set_defaults(func=cmd_run)
    return p


def main(argv=None):
    p = build_parser()
    args = p.parse_args(argv)
    if not hasattr(args, "func"):
        p.print_help()
        return 2
    try:
        return args.func(args)
    except MigrationError as e:
        logger.error(f"Migration failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Migration command '{args.cmd}' failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
