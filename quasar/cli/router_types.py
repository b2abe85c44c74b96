"""CLI for the router type generator."""
import argparse
from pathlib import Path

from quasar.core.logging_config import LoggingConfig
from quasar.tools.router_types import (DEFAULT_ROUTES_DIR, collect_routers,
                                       render, summarize)

logger = LoggingConfig.get_logger(__name__)


def build_parser():
    p = argparse.ArgumentParser(prog="quasar-router-types",
                                description="Generate typed router definitions from the API routes")
    p.add_argument("--routes", default=str(DEFAULT_ROUTES_DIR), help="Directory of route modules")
    p.add_argument("--out", help="Output file (stdout when omitted)")
    p.add_argument("--format", choices=["ts", "json"], default="ts")
    p.add_argument("--check", action="store_true", help="Exit 1 when --out is missing or stale")
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    routes_dir = Path(args.routes)
    if not routes_dir.is_dir():
        logger.error(f"Routes directory not found: {routes_dir}")
        return 1

    manifest = collect_routers(routes_dir)
    content = render(manifest, args.format)

    if args.check:
        if not args.out:
            logger.error("--check requires --out")
            return 2
        out = Path(args.out)
        if not out.exists() or out.read_text(encoding="utf-8") != content:
            print(f"{out} is out of date, run quasar-router-types --out {out} --format {args.format}")
            return 1
        print(f"{out} is up to date")
        return 0

    if args.out:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(content, encoding="utf-8")
        stats = summarize(manifest)
        print(f"Wrote {out}: {stats['routers']} routers, {stats['queries']} queries, "
              f"{stats['mutations']} mutations")
    else:
        print(content, end="")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
