import logging
from pathlib import Path

from database.connection import get_conn

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")


def load_schema() -> str:
    return SCHEMA_PATH.read_text(encoding="utf-8")


def apply_schema(conn=None):
    """
    Create the chat tables, indexes and row-level security policies.

    Safe to run on every startup: tables and indexes use IF NOT EXISTS and
    policies are dropped before being recreated.
    """
    owns_conn = conn is None
    if owns_conn:
        conn = get_conn()

    cur = conn.cursor()
    try:
        cur.execute(load_schema())
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()
        if owns_conn:
            conn.close()

    logger.info("Chat schema applied")
