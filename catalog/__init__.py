"""Catalog module for collections, NFTs and their related records.

This module provides functionality for:
- Appending and resolving versions of collections and NFTs
- Like relations between users and collections/NFTs
- Wallet records and recent-wallet resolution
- User profiles looked up by id, tag or wallet
- Filtered, ownership-aware catalog queries
"""

import logging

from .exceptions import (
    CatalogError, EntityNotFoundError, InvalidQueryError, AssetIngestionError,
    BlobStorageError, PinningError, BatchIngestionError, WalletVerificationError
)
from .models import (
    CatalogRecord, VersionedEntity, Collection, NFT, Asset, AssetInfo,
    Wallet, User, LikeRelation, now_ms
)
from .store import VersionedEntityStore, reduce_to_latest
from .likes import LikeRelationStore
from .wallets import WalletStore, WalletSignatureVerifier, sort_by_connected_time
from .users import UserStore
from .query import CatalogQueryEngine, CatalogQuery, Viewer, ANONYMOUS, apply_filters
from . import tables

logger = logging.getLogger(__name__)

__all__ = [
    'CatalogError',
    'EntityNotFoundError',
    'InvalidQueryError',
    'AssetIngestionError',
    'BlobStorageError',
    'PinningError',
    'BatchIngestionError',
    'WalletVerificationError',
    'CatalogRecord',
    'VersionedEntity',
    'Collection',
    'NFT',
    'Asset',
    'AssetInfo',
    'Wallet',
    'User',
    'LikeRelation',
    'now_ms',
    'VersionedEntityStore',
    'reduce_to_latest',
    'LikeRelationStore',
    'WalletStore',
    'WalletSignatureVerifier',
    'sort_by_connected_time',
    'UserStore',
    'CatalogQueryEngine',
    'CatalogQuery',
    'Viewer',
    'ANONYMOUS',
    'apply_filters',
    'tables'
]
