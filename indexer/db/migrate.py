"""Schema migrations - applies the Alembic revisions in db/migrations in order."""

from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig

from chainhook_indexer.config import Config
from chainhook_indexer.log import get_logger

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def get_alembic_config(db_url: str) -> AlembicConfig:
    """Build an Alembic config without an alembic.ini on disk.

    Args:
        db_url: SQLAlchemy database URL

    Returns:
        Alembic Config pointing at the bundled revisions
    """
    alembic_cfg = AlembicConfig()
    alembic_cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    # ConfigParser interpolation treats % specially (URL-encoded passwords)
    alembic_cfg.set_main_option("sqlalchemy.url", db_url.replace("%", "%%"))
    return alembic_cfg


def upgrade(config: Config, revision: str = "head") -> None:
    """Apply pending migrations up to `revision`.

    Args:
        config: Configuration object with db_url
        revision: Target revision (default: latest)
    """
    logger.info(f"Applying migrations up to {revision}")
    command.upgrade(get_alembic_config(config.db_url), revision)
    logger.info("Migrations complete")
