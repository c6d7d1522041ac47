"""Exceptions raised by the database package."""

class DatabaseError(Exception):
    """Base exception for database operations."""
    pass

class DatabaseSchemaError(DatabaseError):
    """Raised when schema files are invalid or migrations fail."""
    pass

class UnknownIndexError(DatabaseError):
    """Raised when a query names a secondary index the table does not define."""
    pass
