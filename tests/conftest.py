"""Shared fixtures: in-memory catalog tables and fake collaborators."""

from typing import Any, Dict, List, Optional, Tuple

import pytest

from api.dependencies import Services
from assets import AssetIngestionPipeline, BlobObject, PinPayload
from catalog import (
    Asset, CatalogQueryEngine, Collection, LikeRelationStore, NFT,
    UserStore, VersionedEntityStore, WalletStore
)
from catalog.exceptions import BlobStorageError, PinningError
from catalog.tables import (
    ASSETS_TABLE, COLLECTIONS_TABLE, LIKED_COLLECTIONS_TABLE, LIKED_NFTS_TABLE,
    NFTS_TABLE, SEARCH_DOCUMENTS_TABLE, USERS_TABLE, WALLETS_TABLE
)
from database import MemoryTable
from search import SearchIndex

GATEWAY_URL = "https://gateway.example/ipfs"
API_KEY = "test-api-key"

class FakeBlobStorage:
    """Blob storage holding objects in a dict."""

    def __init__(self, objects: Optional[Dict[Tuple[str, str], BlobObject]] = None):
        self.objects = objects or {}
        self.reads: List[Tuple[str, str, Optional[str]]] = []
        self.documents: Dict[Tuple[str, str], Dict[str, Any]] = {}

    async def get_object(self, bucket: str, key: str, region: Optional[str] = None) -> BlobObject:
        self.reads.append((bucket, key, region))
        if (bucket, key) not in self.objects:
            raise BlobStorageError(f"NoSuchKey: s3://{bucket}/{key}")
        return self.objects[(bucket, key)]

    async def put_json(self, bucket: str, key: str, document: Dict[str, Any]) -> None:
        self.documents[(bucket, key)] = document

    async def presign_put(self, bucket: str, key: str, content_type: Optional[str] = None) -> str:
        return f"https://{bucket}.s3.amazonaws.com/{key}?X-Amz-Signature=fake"

class FakePinningClient:
    """Pinning client returning ``Qm<filename>`` and recording every payload."""

    def __init__(self, failing: Optional[set] = None):
        self.payloads: List[PinPayload] = []
        self.failing = failing or set()

    async def pin(self, payload: PinPayload) -> str:
        if payload.filename in self.failing:
            raise PinningError(f"Pinning {payload.filename} failed: 500 Server Error")
        self.payloads.append(payload)
        return f"Qm{payload.filename}"

class FakeGate:
    """Accepts ``token-<userId>`` for userId."""

    async def verify(self, token: str, user_id: str) -> bool:
        return bool(user_id) and token == f"token-{user_id}"

class FakeWalletVerifier:
    """Accepts ``sig-<address>`` as a signature by address."""

    async def verify(self, address: str, signature: str, user_id: str,
                     chain_id: Optional[int] = None) -> bool:
        return signature == f"sig-{address}"

def make_services(blob_storage=None, pinning_client=None, api_keys=None) -> Services:
    """Wire every store, the engine and the pipeline over fresh memory tables."""
    collections = VersionedEntityStore(MemoryTable(COLLECTIONS_TABLE), Collection)
    nfts = VersionedEntityStore(MemoryTable(NFTS_TABLE), NFT)
    assets = VersionedEntityStore(MemoryTable(ASSETS_TABLE), Asset)
    collection_likes = LikeRelationStore(MemoryTable(LIKED_COLLECTIONS_TABLE))
    nft_likes = LikeRelationStore(MemoryTable(LIKED_NFTS_TABLE))
    wallets = WalletStore(MemoryTable(WALLETS_TABLE), FakeWalletVerifier())
    users = UserStore(MemoryTable(USERS_TABLE), wallets)
    search_index = SearchIndex(MemoryTable(SEARCH_DOCUMENTS_TABLE))

    pipeline = AssetIngestionPipeline(
        asset_store=assets,
        nft_store=nfts,
        blob_storage=blob_storage or FakeBlobStorage(),
        pinning_client=pinning_client or FakePinningClient(),
        gateway_url=GATEWAY_URL,
        metadata_bucket="metadata-bucket",
        upload_bucket="upload-bucket"
    )
    query = CatalogQueryEngine(
        collections=collections,
        nfts=nfts,
        assets=assets,
        collection_likes=collection_likes,
        nft_likes=nft_likes,
        wallets=wallets,
        search_index=search_index
    )
    return Services(
        collections=collections,
        nfts=nfts,
        assets=assets,
        collection_likes=collection_likes,
        nft_likes=nft_likes,
        wallets=wallets,
        search_index=search_index,
        query=query,
        pipeline=pipeline,
        users=users,
        gate=FakeGate(),
        api_keys=[API_KEY] if api_keys is None else api_keys
    )

@pytest.fixture
def blob_storage():
    return FakeBlobStorage({
        ("media-bucket", "art/cat.png"): BlobObject(body=b"\x89PNG cat", content_type="image/png"),
        ("media-bucket", "art/dog.mp4"): BlobObject(body=b"dog video", content_type="video/mp4"),
    })

@pytest.fixture
def pinning_client():
    return FakePinningClient()

@pytest.fixture
def services(blob_storage, pinning_client) -> Services:
    return make_services(blob_storage, pinning_client)

@pytest.fixture
def collections(services):
    return services.collections

@pytest.fixture
def nfts(services):
    return services.nfts

@pytest.fixture
def users(services):
    return services.users

@pytest.fixture
def engine(services):
    return services.query

@pytest.fixture
def pipeline(services):
    return services.pipeline
