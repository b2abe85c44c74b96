"""Serve a built frontend directory over HTTP."""
import argparse
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from quasar.core.config import get_settings
from quasar.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)


def create_static_app(directory) -> FastAPI:
    """App serving `directory`, with index.html for directory requests"""
    app = FastAPI(title="quasar-static", docs_url=None, redoc_url=None, openapi_url=None)
    app.mount("/", StaticFiles(directory=str(directory), html=True), name="static")
    return app


def build_parser():
    settings = get_settings()
    p = argparse.ArgumentParser(prog="quasar-static", description="Serve a static directory")
    p.add_argument("directory", nargs="?", default=settings.static_directory)
    p.add_argument("--port", type=int, default=settings.static_port)
    p.add_argument("--host", default=settings.api_host)
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    directory = Path(args.directory).resolve()
    if not directory.is_dir():
        logger.error(f"Static directory not found: {directory}")
        return 1

    import uvicorn

    logger.info(f"Serving {directory} on http://{args.host}:{args.port}")
    uvicorn.run(create_static_app(directory), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
