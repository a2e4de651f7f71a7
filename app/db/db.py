from typing import List

from sqlalchemy.engine import Engine

from .models import Base
from .session import engine

from app.utils.logging import get_logger

logger = get_logger()


def create_tables(bind: Engine = engine) -> List[str]:
    """Create any missing tables and return the names of all mapped tables."""
    Base.metadata.create_all(bind)
    table_names = sorted(Base.metadata.tables)
    logger.info(f"Database ready ({len(table_names)} tables: {', '.join(table_names)})")
    return table_names
