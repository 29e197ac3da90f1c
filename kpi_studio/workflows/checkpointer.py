"""
Checkpointer selection for workflow runs and agent memory.

``postgres`` keeps runs in the application database so a suspended run can be
resumed after a restart; ``memory`` keeps them for the process lifetime.
"""

import logging
import re
from typing import Optional
from langgraph.checkpoint.memory import MemorySaver
from langgraph.checkpoint.postgres import PostgresSaver
from psycopg import Connection
from psycopg.rows import dict_row

from kpi_studio.config.config import Config

logger = logging.getLogger(__name__)


def to_libpq_url(database_url: str) -> str:
    """Drop the SQLAlchemy driver suffix, e.g. postgresql+psycopg2:// -> postgresql://"""
    return re.sub(r'^(postgres(?:ql)?)\+[a-z0-9_]+://', r'\1://', database_url)


def create_checkpointer(backend: Optional[str] = None, database_url: Optional[str] = None):
    """Create the checkpointer named by ``backend`` (defaults to CHECKPOINT_BACKEND)"""
    backend = (backend or Config.CHECKPOINT_BACKEND).strip().lower()

    if backend == 'memory':
        logger.info("Using in-memory checkpointer")
        return MemorySaver()

    if backend == 'postgres':
        url = to_libpq_url(database_url or Config.get_checkpoint_database_url())
        try:
            conn = Connection.connect(url, autocommit=True, prepare_threshold=0, row_factory=dict_row)
            saver = PostgresSaver(conn)
            saver.setup()
        except Exception as e:
            logger.error(f"Error creating PostgreSQL checkpointer: {e}")
            raise
        logger.info("Using PostgreSQL checkpointer")
        return saver

    raise ValueError(f"Unknown checkpoint backend '{backend}'. Use 'postgres' or 'memory'")


def close_checkpointer(checkpointer):
    """Close the connection held by a PostgreSQL checkpointer"""
    conn = getattr(checkpointer, 'conn', None)
    if conn is not None:
        conn.close()
