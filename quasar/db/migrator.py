"""
Ordered migration runner built on Alembic

Steps run oldest first, each in its own transaction, and the version table is
advanced only after a step body completes. The first failing step halts the
run, so the tracking table always names the last fully applied revision.
"""
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, pool

from quasar.core.config import PROJECT_ROOT, get_settings
from quasar.core.errors import MigrationError
from quasar.core.logging_config import LoggingConfig
from quasar.core.metrics import migration_duration_seconds, migrations_applied_total

logger = LoggingConfig.get_logger(__name__)

_SLUG = re.compile(r'[^a-z0-9]+')


@dataclass
class MigrationInfo:
    revision: str
    down_revision: Optional[str]
    doc: str
    applied: bool

    def to_dict(self):
        return {
            "revision": self.revision,
            "down_revision": self.down_revision,
            "doc": self.doc,
            "applied": self.applied,
        }


def _resolve(path: str) -> Path:
    candidate = Path(path)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


class Migrator:
    """Applies, reverts and reports on the migration sequence"""

    def __init__(
        self,
        database_url: Optional[str] = None,
        config_file: Optional[str] = None,
        script_location: Optional[str] = None,
    ):
        settings = get_settings()
        self.database_url = database_url or settings.database_url
        self.config_file = _resolve(config_file or settings.migrations_config_file)
        self.script_location = _resolve(script_location or settings.migrations_script_location)

    def config(self) -> Config:
        """Alembic config pointing at this migrator's database and scripts"""
        if self.config_file.exists():
            cfg = Config(str(self.config_file))
        else:
            cfg = Config()
        cfg.set_main_option("script_location", str(self.script_location))
        cfg.set_main_option("sqlalchemy.url", self.database_url.replace("%", "%%"))
        # Application logging is already configured by LoggingConfig
        cfg.attributes["configure_logger"] = False
        return cfg

    def script(self) -> ScriptDirectory:
        return ScriptDirectory.from_config(self.config())

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def current(self) -> List[str]:
        """Revisions recorded in the version table"""
        engine = create_engine(self.database_url, poolclass=pool.NullPool)
        try:
            with engine.connect() as connection:
                context = MigrationContext.configure(connection)
                return list(context.get_current_heads())
        finally:
            engine.dispose()

    def heads(self) -> List[str]:
        return list(self.script().get_heads())

    def history(self) -> List[MigrationInfo]:
        """All revisions, oldest first, flagged with whether they are applied"""
        script = self.script()
        applied = set()
        for head in self.current():
            applied.update(rev.revision for rev in script.iterate_revisions(head, "base"))

        revisions = list(script.walk_revisions("base", "heads"))
        revisions.reverse()
        return [
            MigrationInfo(
                revision=rev.revision,
                down_revision=",".join(rev.down_revision) if isinstance(rev.down_revision, tuple)
                else rev.down_revision,
                doc=(rev.doc or "").strip(),
                applied=rev.revision in applied,
            )
            for rev in revisions
        ]

    def pending(self) -> List[str]:
        return [info.revision for info in self.history() if not info.applied]

    def is_up_to_date(self) -> bool:
        return set(self.current()) == set(self.heads())

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def upgrade(self, target: str = "head") -> List[str]:
        """Apply pending steps up to `target`; returns the revisions applied"""
        before = self.pending()
        self._run("upgrade", command.upgrade, target)
        after = set(self.pending())
        applied = [rev for rev in before if rev not in after]
        if applied:
            logger.info(f"Applied {len(applied)} migration(s): {', '.join(applied)}")
        else:
            logger.info("Database already up to date")
        return applied

    def downgrade(self, target: str = "-1") -> List[str]:
        """Revert steps down to `target`; returns the revisions reverted, newest first"""
        applied_before = [info.revision for info in self.history() if info.applied]
        self._run("downgrade", command.downgrade, target)
        still_applied = {info.revision for info in self.history() if info.applied}
        reverted = [rev for rev in reversed(applied_before) if rev not in still_applied]
        logger.info(f"Reverted {len(reverted)} migration(s)")
        return reverted

    def stamp(self, target: str = "head"):
        """Set the version table without running any step"""
        command.stamp(self.config(), target)
        logger.info(f"Stamped database at {target}")

    def check(self):
        """Raise when the models describe a schema the migrations do not produce"""
        command.check(self.config())

    def revision(self, message: str, autogenerate: bool = False) -> str:
        """Create a new numbered revision file; returns its path"""
        existing = [rev.revision for rev in self.script().walk_revisions()]
        numbers = [int(rev.split("_", 1)[0]) for rev in existing if rev.split("_", 1)[0].isdigit()]
        slug = _SLUG.sub("_", message.lower()).strip("_")[:20] or "revision"
        rev_id = f"{max(numbers, default=0) + 1:04d}_{slug}"
        script = command.revision(self.config(), message=message, autogenerate=autogenerate, rev_id=rev_id)
        path = script.path if script is not None else rev_id
        logger.info(f"Created revision {rev_id}")
        return path

    def _run(self, direction: str, fn, target: str):
        start = time.perf_counter()
        try:
            fn(self.config(), target)
        except Exception as e:
            failed = self._first_unapplied() if direction == "upgrade" else None
            migrations_applied_total.labels(direction=direction, status="failed").inc()
            logger.error(
                f"Migration {direction} to {target} failed at {failed or 'unknown revision'}: {e}",
                exc_info=True,
                extra={"revision": failed, "direction": direction},
            )
            raise MigrationError(f"{direction} failed at {failed}: {e}", revision=failed, cause=e) from e
        finally:
            migration_duration_seconds.labels(direction=direction).observe(time.perf_counter() - start)

    def _first_unapplied(self) -> Optional[str]:
        pending = self.pending()
        return pending[0] if pending else None
