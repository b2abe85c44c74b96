"""
Alembic environment configuration
"""
import time
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from quasar.core.config import get_settings
from quasar.core.database import Base
from quasar.core.logging_config import LoggingConfig
from quasar.core.metrics import migrations_applied_total
from quasar.models import *  # noqa: F401, F403 - register every table on Base.metadata

config = context.config
logger = LoggingConfig.get_logger("quasar.migrations")


# An explicit URL (set by the migrator or -x / ini) wins over application settings
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", get_settings().database_url.replace("%", "%%"))

if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata

_step_started = {"at": time.perf_counter()}


def _on_version_apply(ctx, step, heads, run_args):
    """Called once a step and its version row are done, inside the step transaction"""
    direction = "upgrade" if step.is_upgrade else "downgrade"
    elapsed = time.perf_counter() - _step_started["at"]
    logger.info(
        f"Migration {direction} {step.up_revision_id} applied",
        extra={"revision": step.up_revision_id, "direction": direction, "duration_s": round(elapsed, 3)},
    )
    migrations_applied_total.labels(direction=direction, status="success").inc()
    _step_started["at"] = time.perf_counter()


def _configure(connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        transaction_per_migration=True,
        render_as_batch=connection.dialect.name == "sqlite",
        compare_type=True,
        on_version_apply=_on_version_apply,
    )


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        transaction_per_migration=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    logger.info(f"Running migrations against {connectable.url.render_as_string(hide_password=True)}")

    with connectable.connect() as connection:
        _configure(connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
