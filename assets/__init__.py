"""Asset ingestion module.

This module provides functionality for:
- Locating the S3 object behind an asset URL
- Reading and writing blobs in S3
- Pinning media to IPFS through a pinning service
- Creating, bundling and updating Asset records
"""

from .locator import S3Location, parse_s3_url
from .blob import BlobObject, BlobStorage
from .pinning import PinPayload, PinningClient
from .pipeline import (
    AssetIngestionPipeline, IngestionRequest, NFTBundle, UploadTarget,
    metadata_key, upload_key
)

__all__ = [
    'S3Location',
    'parse_s3_url',
    'BlobObject',
    'BlobStorage',
    'PinPayload',
    'PinningClient',
    'AssetIngestionPipeline',
    'IngestionRequest',
    'NFTBundle',
    'UploadTarget',
    'metadata_key',
    'upload_key'
]
