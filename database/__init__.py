"""Database module for managing the catalog tables.

This module handles:
- Database connection pool initialization (PostgreSQL/CockroachDB via asyncpg)
- Schema management
- Opening key-value tables on the configured backend
- Connection lifecycle

A ``memory://`` database URL keeps every table in process instead.
"""

import logging
import ssl
from typing import Optional, Dict, Any
import backoff
import asyncpg
from urllib.parse import urlparse, parse_qs

from .exceptions import DatabaseError, DatabaseSchemaError, UnknownIndexError
from .lib.kv_table import KeyValueTable, PostgresTable, ScanPage, TableSpec
from .lib.memory_table import MemoryTable
from .lib.schema_manager import SchemaManager

logger = logging.getLogger(__name__)

MEMORY_URL = 'memory://'

_pool: Optional[asyncpg.Pool] = None
_schema_manager: Optional[SchemaManager] = None
_db_url: Optional[str] = None
_memory_tables: Dict[str, MemoryTable] = {}

def _get_ssl_context() -> ssl.SSLContext:
    """Create SSL context for CockroachDB Cloud connections."""
    ssl_context = ssl.create_default_context()
    ssl_context.verify_mode = ssl.CERT_REQUIRED
    ssl_context.check_hostname = True
    return ssl_context

def _get_connection_kwargs(db_url: str) -> Dict[str, Any]:
    """Get connection kwargs from database URL.

    Args:
        db_url: Database connection URL

    Returns:
        Dict of connection parameters
    """
    parsed = urlparse(db_url)
    params = parse_qs(parsed.query)

    kwargs: Dict[str, Any] = {}
    if params.get('sslmode', [''])[0] != 'disable':
        kwargs['ssl'] = _get_ssl_context()

    return kwargs

def is_memory_url(db_url: Optional[str]) -> bool:
    return bool(db_url) and db_url.startswith(MEMORY_URL)

@backoff.on_exception(
    backoff.expo,
    (asyncpg.exceptions.PostgresConnectionError, asyncpg.exceptions.CannotConnectNowError, OSError),
    max_tries=5
)
async def init_db(db_url: Optional[str] = None) -> None:
    """Initialize the database connection pool and schema.

    Args:
        db_url: Optional database URL. If not provided, will use settings.

    Raises:
        ValueError: If database URL is not provided
        DatabaseSchemaError: If the schema cannot be applied
    """
    global _pool, _schema_manager, _db_url

    # Import here to avoid circular imports
    from config import settings_conf

    url = db_url or settings_conf.get('db_url')
    if not url:
        raise ValueError("Database URL not provided")
    _db_url = url

    if is_memory_url(url):
        logger.info("Using in-memory catalog tables")
        return

    try:
        conn_kwargs = _get_connection_kwargs(url)

        _pool = await asyncpg.create_pool(
            url,
            min_size=2,
            max_size=20,
            max_inactive_connection_lifetime=300.0,
            command_timeout=60.0,
            **conn_kwargs
        )

        _schema_manager = SchemaManager(_pool)
        await _schema_manager.initialize()
        logger.info("Database initialized")

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise

async def get_pool() -> asyncpg.Pool:
    """Get the database connection pool.

    Returns:
        The connection pool

    Raises:
        RuntimeError: If pool hasn't been initialized
    """
    if not _pool:
        await init_db()
    if not _pool:
        raise RuntimeError("Failed to initialize database pool")
    return _pool

async def open_table(spec: TableSpec) -> KeyValueTable:
    """Open a table on the configured backend.

    Args:
        spec: Key layout of the table

    Returns:
        A MemoryTable for memory:// URLs, otherwise a PostgresTable
    """
    if _db_url is None:
        await init_db()

    if is_memory_url(_db_url):
        if spec.name not in _memory_tables:
            _memory_tables[spec.name] = MemoryTable(spec)
        return _memory_tables[spec.name]

    return PostgresTable(await get_pool(), spec)

async def close() -> None:
    """Close the database connection pool and forget in-memory tables."""
    global _pool, _schema_manager, _db_url

    if _pool:
        await _pool.close()
    _pool = None
    _schema_manager = None
    _db_url = None
    _memory_tables.clear()

# Export public interface
__all__ = [
    'init_db', 'get_pool', 'open_table', 'close', 'is_memory_url',
    'KeyValueTable', 'PostgresTable', 'MemoryTable', 'TableSpec', 'ScanPage',
    'DatabaseError', 'DatabaseSchemaError', 'UnknownIndexError'
]
