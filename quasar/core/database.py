"""
Database configuration and session management
"""
import re
import time
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from quasar.core.config import get_settings
from quasar.core.logging_config import LoggingConfig
from quasar.core.metrics import (db_connection_pool_checked_out,
                                 db_queries_total, db_query_duration_seconds)

logger = LoggingConfig.get_logger(__name__)

# Lazy initialization - the engine is created on first use
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None

Base = declarative_base()

_TABLE_PATTERNS = {
    'select': re.compile(r'\bFROM\s+"?(\w+)"?', re.IGNORECASE),
    'insert': re.compile(r'\bINTO\s+"?(\w+)"?', re.IGNORECASE),
    'update': re.compile(r'^\s*UPDATE\s+"?(\w+)"?', re.IGNORECASE),
    'delete': re.compile(r'\bFROM\s+"?(\w+)"?', re.IGNORECASE),
}


def _statement_labels(statement: str):
    """Return (operation, table) labels for a SQL statement"""
    stripped = statement.strip()
    operation = stripped.split(None, 1)[0].lower() if stripped else "unknown"
    table = "unknown"
    pattern = _TABLE_PATTERNS.get(operation)
    if pattern:
        match = pattern.search(stripped)
        if match:
            table = match.group(1).lower()
    return operation, table


def _setup_db_metrics(engine: Engine):
    """Setup SQLAlchemy event listeners for database metrics"""

    @event.listens_for(engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault('query_start_time', []).append(time.perf_counter())

    @event.listens_for(engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if not conn.info.get('query_start_time'):
            return
        duration = time.perf_counter() - conn.info['query_start_time'].pop()
        operation, table = _statement_labels(statement)
        db_queries_total.labels(operation=operation, table=table).inc()
        db_query_duration_seconds.labels(operation=operation, table=table).observe(duration)

    @event.listens_for(engine, "checkout")
    def receive_checkout(dbapi_conn, connection_record, connection_proxy):
        db_connection_pool_checked_out.inc()

    @event.listens_for(engine, "checkin")
    def receive_checkin(dbapi_conn, connection_record):
        db_connection_pool_checked_out.dec()


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine with dialect-appropriate pool and connect arguments"""
    settings = get_settings()

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory databases must share one connection across sessions
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        connect_args = {"connect_timeout": 5}
        if settings.database_statement_timeout_ms:
            connect_args["options"] = f"-c statement_timeout={settings.database_statement_timeout_ms}"
        kwargs = {
            "pool_size": settings.database_pool_size,
            "max_overflow": settings.database_max_overflow,
            "pool_pre_ping": True,
            "connect_args": connect_args,
        }

    engine = create_engine(url, echo=echo, **kwargs)
    _setup_db_metrics(engine)
    return engine


def get_engine() -> Engine:
    """Get or create database engine (lazy initialization)"""
    global _engine
    if _engine is None:
        settings = get_settings()
        LoggingConfig.configure()
        _engine = build_engine(settings.database_url, echo=settings.log_sqlalchemy)
        logger.debug(f"Database engine created for dialect {_engine.dialect.name}")
    return _engine


def get_session_local() -> sessionmaker:
    """Get or create session factory (lazy initialization)"""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def reset_engine():
    """Dispose the cached engine so the next call rebuilds it from settings"""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database session
    """
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
