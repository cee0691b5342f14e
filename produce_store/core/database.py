"""
PostgreSQL access for the Produce Store backend (Supabase Postgres)

Repositories talk to Postgres with raw SQL over psycopg2; the Supabase
client is only used for Storage (product images).

Author: TM3
Updated: 2026-03-02
"""
import time
import logging
from functools import lru_cache

import psycopg2
from psycopg2.extras import RealDictCursor
from supabase import create_client, Client

from .config import settings
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _database_url() -> str:
    if not settings.DATABASE_URL:
        raise ConfigurationError("DATABASE_URL not configured")
    return settings.DATABASE_URL


def get_db_connection_dict():
    """
    Open a connection whose cursors return rows as dicts.

    Callers own the connection and close it in ``finally``:

        conn = get_db_connection_dict()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM products WHERE id = %s", (product_id,))
            row = cursor.fetchone()
        finally:
            conn.close()
    """
    return psycopg2.connect(_database_url(), cursor_factory=RealDictCursor)


def build_set_clause(updates: dict):
    """
    Build "col = %s, ..." plus params for a partial UPDATE, stamping updated_at.

    Keys must come from a pydantic model's fields, never from raw request JSON.
    """
    columns = [f"{column} = %s" for column in updates]
    columns.append("updated_at = NOW()")
    return ", ".join(columns), list(updates.values())


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Supabase client, created on first use so the API boots without Storage keys"""
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise ConfigurationError("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not configured")

    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


# ============================================================================
# Connect with retry (the Supabase pooler occasionally drops SSL sessions)
# ============================================================================

def _connect_with_retry(max_retries: int, retry_delay: float, **connect_kwargs):
    database_url = _database_url()

    for attempt in range(1, max_retries + 1):
        try:
            conn = psycopg2.connect(database_url, **connect_kwargs)
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.close()
            if attempt > 1:
                logger.info(f"Database connection succeeded on attempt {attempt}")
            return conn

        except psycopg2.OperationalError as e:
            if attempt == max_retries:
                logger.error(f"Database unreachable after {max_retries} attempts: {e}")
                raise

            delay = retry_delay * (2 ** (attempt - 1))
            logger.warning(f"Database connection attempt {attempt}/{max_retries} failed: {e}. Retrying in {delay:.1f}s")
            time.sleep(delay)


def get_db_connection_with_retry(max_retries=3, retry_delay=1.0):
    """
    Tuple-cursor connection, retried with exponential backoff.

    Raises:
        psycopg2.OperationalError: when every attempt fails
    """
    return _connect_with_retry(max_retries, retry_delay)


def get_db_connection_dict_with_retry(max_retries=3, retry_delay=1.0):
    """Same as get_db_connection_with_retry, with dict rows"""
    return _connect_with_retry(max_retries, retry_delay, cursor_factory=RealDictCursor)
