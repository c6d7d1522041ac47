"""Catalog queries with visibility and ownership filtering.

Queries resolve raw candidate rows from the entity stores (an index lookup,
a direct key or a full scan) and pass them through a fixed filter pipeline.
Each stage only removes rows:

1. candidates      category index, creator address index, or a full scan for
                   the ``all`` category
2. visibility      listed rows, plus unlisted rows the viewer owns
3. curated         only platform-curated rows, when requested
4. test hygiene    drop categories containing ``test`` unless overridden
5. chain           only rows on the requested chain
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .exceptions import CatalogError, InvalidQueryError
from .likes import LikeRelationStore
from .models import Asset, Collection, NFT, VersionedEntity
from .store import VersionedEntityStore, reduce_to_latest
from .tables import (
    ADDRESS_INDEX, CATEGORY_INDEX, COLLECTION_ADDRESS_INDEX, COLLECTION_ID_INDEX,
    CREATOR_ADDRESS_INDEX, DOT_ID_INDEX, NFT_ID_INDEX
)
from .wallets import WalletStore

logger = logging.getLogger(__name__)

ALL_CATEGORIES = 'all'
TEST_CATEGORY_MARKER = 'test'

@dataclass(frozen=True)
class Viewer:
    """The caller a query is evaluated for."""
    user_id: Optional[str] = None
    authenticated: bool = False
    wallet_addresses: FrozenSet[str] = frozenset()

    def owns(self, entity: VersionedEntity) -> bool:
        """Whether this viewer may see entity regardless of its listing."""
        if not self.authenticated:
            return False
        if self.user_id and getattr(entity, 'creator_address', None) == self.user_id:
            return True
        return bool(self.wallet_addresses & entity.controller_addresses())

ANONYMOUS = Viewer()

@dataclass
class CatalogQuery:
    """Parameters of a filtered collection or NFT query."""
    category: Optional[str] = None
    creator_address: Optional[str] = None
    collection_id: Optional[str] = None
    is_curated: bool = False
    filter_test_override: bool = False
    chain: Optional[str] = None

def apply_filters(rows: Iterable[VersionedEntity], query: CatalogQuery,
                  viewer: Viewer = ANONYMOUS) -> List[VersionedEntity]:
    """Run the visibility, curated, test hygiene and chain stages over rows."""
    results = [row for row in rows if viewer.owns(row) or row.is_listed]

    if query.is_curated:
        results = [row for row in results if row.is_curated]

    if not query.filter_test_override:
        results = [row for row in results if TEST_CATEGORY_MARKER not in (row.category or '')]

    if query.chain:
        results = [row for row in results if row.chain == query.chain]

    return results

class CatalogQueryEngine:
    """Composes entity, relation and wallet lookups into caller-facing results."""

    def __init__(
        self,
        collections: VersionedEntityStore,
        nfts: VersionedEntityStore,
        assets: VersionedEntityStore,
        collection_likes: LikeRelationStore,
        nft_likes: LikeRelationStore,
        wallets: WalletStore,
        search_index=None
    ):
        self.collections = collections
        self.nfts = nfts
        self.assets = assets
        self.collection_likes = collection_likes
        self.nft_likes = nft_likes
        self.wallets = wallets
        self.search_index = search_index

    async def resolve_viewer(self, user_id: Optional[str], authenticated: bool,
                             chain: Optional[str] = None) -> Viewer:
        """Load the wallet addresses an authenticated caller controls."""
        if not authenticated or not user_id:
            return Viewer(user_id=user_id, authenticated=False)
        addresses = await self.wallets.get_wallet_addresses(user_id, chain)
        return Viewer(user_id=user_id, authenticated=True, wallet_addresses=frozenset(addresses))

    # Collections

    async def get_collection(self, collection_id: str) -> Collection:
        return await self.collections.get_latest(collection_id)

    async def get_collection_by_address(self, address: str) -> Collection:
        return await self.collections.get_latest_by_index(ADDRESS_INDEX, address)

    async def query_collections(self, query: CatalogQuery,
                                viewer: Viewer = ANONYMOUS) -> List[Collection]:
        """Filtered collections by category and/or creator address.

        Raises:
            InvalidQueryError: If neither category nor creator address is given
        """
        if not query.category and not query.creator_address:
            raise InvalidQueryError("either category or creatorAddress must be provided.")

        if query.category:
            if query.category == ALL_CATEGORIES:
                rows = await self.collections.scan_all()
            else:
                rows = await self.collections.get_by_index(CATEGORY_INDEX, query.category)
            if query.creator_address:
                rows = [row for row in rows if row.creator_address == query.creator_address]
        else:
            rows = await self.collections.get_by_index(CREATOR_ADDRESS_INDEX, query.creator_address)

        results = apply_filters(rows, query, viewer)
        logger.debug(f"query_collections kept {len(results)} of {len(rows)} candidates")
        return results

    async def query_collections_by_addresses(self, addresses: Sequence[str]) -> List[Collection]:
        """Latest listed collection for each address, in input order."""
        collections = await asyncio.gather(*(
            self.collections.get_latest_by_index(ADDRESS_INDEX, address)
            for address in addresses
        ))
        return [c for c in collections if not c.is_empty and c.is_listed]

    async def query_liked_collections(self, user_id: str,
                                      chain: Optional[str] = None) -> List[Collection]:
        relations = await self.collection_likes.list_by_user(user_id)
        collections = await asyncio.gather(*(
            self.collections.get_latest(relation.subject_id) for relation in relations
        ))
        return self._drop_empty_and_filter_chain(collections, chain)

    async def search_collections(
        self,
        keyword: str,
        chain: Optional[str] = None,
        category: Optional[str] = None,
        filter_test_override: bool = False
    ) -> List[Collection]:
        """Keyword search, restricted to listed collections.

        Raises:
            CatalogError: If no search index is configured
        """
        if self.search_index is None:
            raise CatalogError("Search index is not configured")

        candidate_ids = await self.search_index.search(keyword)
        collections = await asyncio.gather(*(
            self.collections.get_latest(collection_id) for collection_id in candidate_ids
        ))

        results = [c for c in collections if not c.is_empty and c.is_listed]
        if chain:
            results = [c for c in results if c.chain == chain]
        if category and category != ALL_CATEGORIES:
            results = [c for c in results if c.category == category]
        if not filter_test_override:
            results = [c for c in results if TEST_CATEGORY_MARKER not in (c.category or '')]
        return results

    # NFTs

    async def get_nft(self, nft_id: str) -> NFT:
        return await self.nfts.get_latest(nft_id)

    async def get_nft_by_dot_id(self, dot_id: str) -> NFT:
        return await self.nfts.get_latest_by_index(DOT_ID_INDEX, dot_id)

    async def get_nfts_by_collection_id(self, collection_id: str) -> List[NFT]:
        return reduce_to_latest(await self.nfts.get_by_index(COLLECTION_ID_INDEX, collection_id))

    async def get_nfts_by_collection_address(self, collection_address: str) -> List[NFT]:
        return reduce_to_latest(
            await self.nfts.get_by_index(COLLECTION_ADDRESS_INDEX, collection_address)
        )

    async def count_nfts_by_collection(self, collection_id: str) -> int:
        return len(await self.get_nfts_by_collection_id(collection_id))

    async def query_nfts(self, query: CatalogQuery, viewer: Viewer = ANONYMOUS) -> List[NFT]:
        """Filtered NFTs by collection id, category and/or creator address.

        Raises:
            InvalidQueryError: If no candidate selector is given
        """
        if query.collection_id:
            rows = await self.nfts.get_by_index(COLLECTION_ID_INDEX, query.collection_id)
            if query.category and query.category != ALL_CATEGORIES:
                rows = [row for row in rows if row.category == query.category]
        elif query.category:
            if query.category == ALL_CATEGORIES:
                rows = await self.nfts.scan_all()
            else:
                rows = await self.nfts.get_by_index(CATEGORY_INDEX, query.category)
        elif query.creator_address:
            rows = await self.nfts.get_by_index(CREATOR_ADDRESS_INDEX, query.creator_address)
        else:
            raise InvalidQueryError("either collectionId, category or creatorAddress must be provided.")

        if query.creator_address and (query.collection_id or query.category):
            rows = [row for row in rows if row.creator_address == query.creator_address]

        return apply_filters(rows, query, viewer)

    async def _get_nft_by_address_and_token_id(self, collection_address: str,
                                               token_id: int) -> NFT:
        rows = await self.nfts.get_by_index(COLLECTION_ADDRESS_INDEX, collection_address)
        matching = [row for row in rows if row.token_id == token_id]
        latest = reduce_to_latest(matching)
        return latest[0] if latest else NFT()

    async def query_nfts_by_collection_addresses_and_token_ids(
        self,
        pairs: Sequence[Tuple[str, int]]
    ) -> List[NFT]:
        """NFTs identified by (collection address, token id), in input order."""
        nfts = await asyncio.gather(*(
            self._get_nft_by_address_and_token_id(address, int(token_id))
            for address, token_id in pairs
        ))
        return [nft for nft in nfts if not nft.is_empty]

    async def query_liked_nfts(self, user_id: str, chain: Optional[str] = None) -> List[NFT]:
        relations = await self.nft_likes.list_by_user(user_id)
        nfts = await asyncio.gather(*(
            self.nfts.get_latest(relation.subject_id) for relation in relations
        ))
        return self._drop_empty_and_filter_chain(nfts, chain)

    # Assets

    async def query_assets_by_nft(
        self,
        nft_id: str,
        viewer: Optional[Viewer] = None,
        creator_address: Optional[str] = None,
        wallet_address: Optional[str] = None
    ) -> List[Asset]:
        """Assets of an NFT. Hidden assets are only returned to their owner."""
        assets = await self.assets.get_by_index(NFT_ID_INDEX, nft_id)

        claimed = {address for address in (creator_address, wallet_address) if address}
        if viewer is not None and viewer.authenticated and viewer.wallet_addresses & claimed:
            return assets
        return [asset for asset in assets if asset.visibility]

    @staticmethod
    def _drop_empty_and_filter_chain(entities, chain: Optional[str]):
        results = [entity for entity in entities if not entity.is_empty]
        if chain:
            results = [entity for entity in results if entity.chain == chain]
        return results
