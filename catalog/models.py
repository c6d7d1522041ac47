"""Catalog record models.

Records are built from loosely structured payloads: unknown keys are dropped
and known keys are validated. Stored items and API payloads use camelCase
keys (``collectionId``, ``isListed``); Python code uses snake_case attributes.
"""
import time
import uuid
from typing import Any, ClassVar, Dict, List, Optional, Set

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)

def curated_field():
    """Curated flag, also accepted under its older wire name isCreatedByNFTube."""
    return Field(
        default=None,
        validation_alias=AliasChoices('isCurated', 'is_curated', 'isCreatedByNFTube'),
        serialization_alias='isCurated'
    )

class CatalogRecord(BaseModel):
    """Base model for every stored record."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore'
    )

    @classmethod
    def from_item(cls, item: Optional[Dict[str, Any]] = None):
        """Build a record from a stored item or request payload."""
        return cls.model_validate(item or {})

    def to_item(self) -> Dict[str, Any]:
        """Serialize to the stored/wire representation, omitting unset values."""
        return self.model_dump(by_alias=True, exclude_none=True)

class VersionedEntity(CatalogRecord):
    """An immutable (id, version) snapshot of a catalog entity."""
    ID_FIELD: ClassVar[str] = ''

    version: Optional[int] = None
    is_latest: Optional[bool] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    @property
    def entity_id(self) -> Optional[str]:
        return getattr(self, self.ID_FIELD)

    @property
    def is_empty(self) -> bool:
        return not self.entity_id

    def controller_addresses(self) -> Set[str]:
        """Addresses whose holder may see this record regardless of listing."""
        return set()

class Collection(VersionedEntity):
    """A versioned collection of NFTs."""
    ID_FIELD: ClassVar[str] = 'collection_id'

    collection_id: Optional[str] = None
    address: Optional[str] = None
    creator_address: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    cover_photo: Optional[str] = None
    main_photo: Optional[str] = None
    chain: Optional[str] = None
    standard: Optional[str] = None
    is_listed: Optional[bool] = None
    status: Optional[str] = None
    links: Optional[List[str]] = None
    is_curated: Optional[bool] = curated_field()
    shipping_required: Optional[bool] = None
    owner_signature_mint_allowed: Optional[bool] = None
    app_id: Optional[str] = None

    def controller_addresses(self) -> Set[str]:
        return {self.creator_address} if self.creator_address else set()

class NFT(VersionedEntity):
    """A versioned NFT record."""
    ID_FIELD: ClassVar[str] = 'nft_id'

    nft_id: Optional[str] = None
    token_id: Optional[int] = None
    dot_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    chain: Optional[str] = None
    standard: Optional[str] = None
    category: Optional[str] = None
    is_listed: Optional[bool] = None
    is_curated: Optional[bool] = curated_field()
    scan_count: Optional[int] = None
    view_count: Optional[int] = None
    supply: Optional[int] = None
    collection_address: Optional[str] = None
    collection_id: Optional[str] = None
    marketplace_url: Optional[str] = Field(default=None, alias='marketplaceURL')
    mint_price: Optional[float] = None
    creator_signature: Optional[str] = None
    amount: Optional[int] = None
    image_url: Optional[str] = Field(default=None, alias='imageURL')
    owner_address: Optional[str] = None
    creator_address: Optional[str] = None
    is_minted: Optional[bool] = None
    signature: Optional[str] = None
    max_token_id: Optional[int] = None
    is_nft_image_scannable: Optional[bool] = Field(default=None, alias='isNFTImageScannable')
    app_id: Optional[str] = None

    def controller_addresses(self) -> Set[str]:
        return {address for address in (self.creator_address, self.owner_address) if address}

class AssetInfo(CatalogRecord):
    """Caller supplied description of an asset to ingest."""
    asset_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    asset_type: str
    asset_url: str = Field(alias='assetURL')
    visibility: Optional[bool] = None
    processed: Optional[bool] = None

class Asset(CatalogRecord):
    """Media attached to an NFT, pinned to IPFS. One row per asset, not versioned."""
    ID_FIELD: ClassVar[str] = 'asset_id'

    asset_id: Optional[str] = None
    nft_id: Optional[str] = None
    asset_type: Optional[str] = None
    asset_url: Optional[str] = Field(default=None, alias='assetURL')
    creator_address: Optional[str] = None
    creator_id: Optional[str] = None
    visibility: Optional[bool] = None
    processed: Optional[bool] = None
    ipfs_hash: Optional[str] = None
    ipfs_url: Optional[str] = Field(default=None, alias='ipfsURL')
    app_id: Optional[str] = None

    @property
    def entity_id(self) -> Optional[str]:
        return self.asset_id

    @property
    def is_empty(self) -> bool:
        return not self.asset_id

class Wallet(CatalogRecord):
    """A wallet address a user connected on a chain."""
    address: Optional[str] = None
    chain: Optional[str] = None
    user_id: Optional[str] = None
    connected_time: Optional[int] = None
    app_id: Optional[str] = None

class User(CatalogRecord):
    """A user profile, keyed by user id and addressable by its unique tag."""
    user_id: Optional[str] = None
    user_tag: Optional[str] = None
    name: Optional[str] = None
    bio: Optional[str] = None
    profile_photo: Optional[str] = None
    cover_photo: Optional[str] = None
    links: Optional[List[str]] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    app_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.user_id

class LikeRelation(BaseModel):
    """Existence of a (subject, user) row means the user likes the subject."""
    subject_id: str
    user_id: str
    created_at: Optional[int] = None
