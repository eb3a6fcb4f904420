"""
MigrationRunner - programmatic Alembic migrations for the autotune schema.

Usage:
    runner = MigrationRunner(database_url="postgresql+asyncpg://...")
    runner.upgrade()                 # Upgrade to head
    runner.get_head_revision()       # Latest available revision
    runner.downgrade("base")         # Drop every table

Alembic's command API is synchronous and drives its own event loop in
``env.py``; call these from a thread (or outside the service loop).
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory

from autotune.utils.logger import get_logger

logger = get_logger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent
ALEMBIC_DIR = PROJECT_ROOT / "alembic"


@dataclass
class MigrationInfo:
    """One migration revision."""

    revision: str
    down_revision: str | None
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "revision": self.revision,
            "down_revision": self.down_revision,
            "description": self.description,
        }


class MigrationRunner:
    """Wraps alembic.command with a config built in code (no alembic.ini)."""

    def __init__(self, database_url: str, script_location: str | Path | None = None):
        self._database_url = database_url
        self._script_location = str(script_location or ALEMBIC_DIR)
        self._config = Config()
        self._config.set_main_option("script_location", self._script_location)
        self._config.set_main_option("sqlalchemy.url", database_url)

    @property
    def script_directory(self) -> ScriptDirectory:
        return ScriptDirectory.from_config(self._config)

    def upgrade(self, revision: str = "head") -> None:
        logger.info("migration_upgrade", target=revision)
        command.upgrade(self._config, revision)
        logger.info("migration_upgrade_complete", target=revision)

    def downgrade(self, revision: str = "-1") -> None:
        logger.info("migration_downgrade", target=revision)
        command.downgrade(self._config, revision)
        logger.info("migration_downgrade_complete", target=revision)

    def get_head_revision(self) -> str | None:
        heads = self.script_directory.get_heads()
        return heads[0] if heads else None

    def get_all_revisions(self) -> list[MigrationInfo]:
        """Revisions from head to base."""
        return [
            MigrationInfo(
                revision=rev.revision,
                down_revision=rev.down_revision if isinstance(rev.down_revision, str) else None,
                description=(rev.doc or "").strip(),
            )
            for rev in self.script_directory.walk_revisions()
        ]
