"""Database health checks - connectivity and required tables."""

from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError, SQLAlchemyError

from chainhook_indexer.log import get_logger
from db.session import get_engine, get_session

logger = get_logger(__name__)

# Required tables that must exist
REQUIRED_TABLES = [
    "chainhook_deliveries",
    "fundraising_events",
    "campaign_metadata",
]


def ping_database() -> bool:
    """Run a trivial query to verify storage connectivity.

    Returns:
        True if the database answered, False otherwise
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database ping failed: {e}")
        return False


def check_tables_exist() -> None:
    """Verify all required tables exist in the database.

    Raises:
        RuntimeError: If any required table is missing
    """
    logger.info("Checking database schema...")

    with get_session() as session:
        for table_name in REQUIRED_TABLES:
            try:
                # Try to query the table (will fail if table doesn't exist)
                session.execute(text(f"SELECT 1 FROM {table_name} LIMIT 1"))
                logger.debug(f"Table '{table_name}' exists")
            except (ProgrammingError, OperationalError) as e:
                error_msg = str(e).lower()
                if "does not exist" in error_msg or "no such table" in error_msg:
                    raise RuntimeError(
                        f"DB schema missing. Table '{table_name}' does not exist. "
                        "Run 'chainhook-indexer migrate' first."
                    ) from e
                # Re-raise if it's a different error
                raise

    logger.info("All required tables exist")
