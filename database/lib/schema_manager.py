"""Versioned schema for the key-value catalog tables.

Each database/schema/vN.py exports a ``schema`` dict:

    {
        'version': N,
        'tables': [{'name': 'collections', 'indexes': ['address', ...]}, ...],
        'migrations': ['ALTER ...', ...]   # optional, applied on upgrade only
    }

Every table has the same layout (partition_key, sort_key, item JSONB), so a
version only names its tables and the item attributes to index. A fresh
database gets the latest version directly; an existing one replays every
version above the recorded one, each inside its own transaction.
"""
import importlib
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional

from ..exceptions import DatabaseSchemaError

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).resolve().parent.parent / 'schema'

def table_ddl(name: str) -> str:
    """CREATE TABLE statement of a key-value table."""
    return f'''
        CREATE TABLE IF NOT EXISTS {name} (
            partition_key TEXT NOT NULL,
            sort_key TEXT NOT NULL DEFAULT '',
            item JSONB NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT now(),
            updated_at TIMESTAMP NOT NULL DEFAULT now(),
            PRIMARY KEY (partition_key, sort_key)
        )
    '''

def index_ddl(table: str, attribute: str) -> str:
    """Expression index on one JSON attribute of the stored items."""
    return (
        f"CREATE INDEX IF NOT EXISTS idx_{table}_{attribute.lower()} "
        f"ON {table} ((item->>'{attribute}'))"
    )

def schema_statements(schema: Dict[str, Any]) -> List[str]:
    """Every table and index statement of a schema version, in order."""
    statements = []
    for table in schema.get('tables', []):
        statements.append(table_ddl(table['name']))
        statements.extend(index_ddl(table['name'], attribute) for attribute in table.get('indexes', []))
    return statements

class SchemaManager:
    """Creates and upgrades the catalog tables."""

    def __init__(self, pool, schema_dir: Optional[Path] = None) -> None:
        self.pool = pool
        self._schema_dir = Path(schema_dir) if schema_dir else SCHEMA_DIR
        self.current_version = 0

    async def initialize(self) -> None:
        """Record the applied version and bring the schema up to date.

        Raises:
            DatabaseSchemaError: If no schema versions exist or applying one fails
        """
        schemas = self.load_schema_files()
        if not schemas:
            raise DatabaseSchemaError(f"No schema versions found in {self._schema_dir}")

        try:
            async with self.pool.acquire() as conn:
                await conn.execute('''
                    CREATE TABLE IF NOT EXISTS schema_version (
                        version INT8 PRIMARY KEY,
                        applied_at TIMESTAMP NOT NULL DEFAULT now()
                    )
                ''')
                self.current_version = await conn.fetchval(
                    'SELECT COALESCE(MAX(version), 0) FROM schema_version'
                )
                await self._upgrade(conn, schemas)
        except DatabaseSchemaError:
            raise
        except Exception as e:
            logger.error(f"Schema initialization failed: {e}")
            raise DatabaseSchemaError(f"Failed to initialize schema: {e}") from e

    def load_schema_files(self) -> Dict[int, Dict[str, Any]]:
        """Import every vN.py, keyed and sorted by version.

        Raises:
            DatabaseSchemaError: If a file has no ``schema`` or a mismatched version
        """
        schemas = {}
        if not self._schema_dir.exists():
            return schemas

        for file in self._schema_dir.glob('v*.py'):
            try:
                version = int(file.stem[1:])
            except ValueError:
                logger.warning(f"Invalid schema filename: {file}")
                continue

            module = importlib.import_module(f"database.schema.{file.stem}")
            schema = getattr(module, 'schema', None)
            if schema is None:
                raise DatabaseSchemaError(f"Schema file {file} missing 'schema' definition")
            if schema.get('version') != version:
                raise DatabaseSchemaError(
                    f"Schema version mismatch in {file}: expected v{version}, got v{schema.get('version')}"
                )
            schemas[version] = schema

        return dict(sorted(schemas.items()))

    async def _upgrade(self, conn, schemas: Dict[int, Dict[str, Any]]) -> None:
        latest = max(schemas)
        if self.current_version >= latest:
            logger.info(f"Schema is up to date at version {self.current_version}")
            return

        if self.current_version == 0:
            pending = [schemas[latest]]
        else:
            pending = [schemas[v] for v in schemas if v > self.current_version]

        for schema in pending:
            statements = schema_statements(schema)
            if self.current_version:
                statements.extend(schema.get('migrations', []))

            async with conn.transaction():
                for statement in statements:
                    await conn.execute(statement)
                await conn.execute('INSERT INTO schema_version (version) VALUES ($1)', schema['version'])

            logger.info(f"Applied schema version {schema['version']}")
            self.current_version = schema['version']
