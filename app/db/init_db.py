"""
Database initialization.

Creates all tables directly from the SQLModel metadata.  Production
deployments use Alembic (``alembic upgrade head``); this is for local
development and throwaway databases.
"""

import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

from app.db.session import get_engine

logger = logging.getLogger(__name__)


def init_db(engine: Optional[Engine] = None) -> None:
    """
    Initialize database schema.

    - Registers every model on ``SQLModel.metadata``
    - Creates all tables that do not exist yet
    """
    # Import all models so SQLModel.metadata has them
    import app.db.base  # noqa: F401

    target = engine or get_engine()
    logger.info("Creating database tables on %s", target.url.render_as_string(hide_password=True))
    SQLModel.metadata.create_all(target)
    logger.info("Database initialization complete")


if __name__ == "__main__":
    init_db()
