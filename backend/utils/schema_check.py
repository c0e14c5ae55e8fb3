import logging
from typing import Iterable

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from exceptions import InfrastructureError

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("procured_meds", "iar")
MIGRATION_HINT = "Run `alembic upgrade head` to create the procurement tables."


def verify_required_tables(engine, required: Iterable[str] = REQUIRED_TABLES) -> None:
    """Raise InfrastructureError unless every required table exists."""
    try:
        present = set(inspect(engine).get_table_names())
    except SQLAlchemyError as e:
        logger.error(f"Could not inspect database schema: {e}")
        raise InfrastructureError("Database is unreachable.", hint=str(e))

    missing = [table for table in required if table not in present]
    if missing:
        logger.error(f"Missing database tables: {', '.join(missing)}")
        raise InfrastructureError(
            f"Missing database tables: {', '.join(missing)}.",
            hint=MIGRATION_HINT,
        )
