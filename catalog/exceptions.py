"""Exceptions raised by catalog operations."""
from typing import List, Optional

class CatalogError(Exception):
    """Base exception for catalog operations."""
    pass

class EntityNotFoundError(CatalogError):
    """Raised when an operation needs an existing record and none is stored."""
    pass

class InvalidQueryError(CatalogError):
    """Raised when query parameters cannot select any candidate rows."""
    pass

class AssetIngestionError(CatalogError):
    """Base exception for asset ingestion failures."""
    pass

class BlobStorageError(AssetIngestionError):
    """Raised when the source blob of an asset cannot be read or written."""
    pass

class PinningError(AssetIngestionError):
    """Raised when the pinning service rejects or fails a submission."""
    pass

class BatchIngestionError(AssetIngestionError):
    """Raised when a sequential batch stops at a failing item.

    Items before ``failed_index`` were fully processed and stay committed;
    items after it were never attempted.
    """
    def __init__(self, message: str, failed_index: int, completed: Optional[List] = None,
                 cause: Optional[BaseException] = None):
        self.failed_index = failed_index
        self.completed = completed or []
        self.cause = cause
        super().__init__(message)

class WalletVerificationError(CatalogError):
    """Raised when a wallet signature does not prove ownership for the user."""
    pass
