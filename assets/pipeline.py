"""Asset ingestion: locate the source blob, pin it, persist the Asset record.

Each asset is handled on its own: the first failing step aborts that asset
and nothing already written for other assets is rolled back. An asset whose
URL does not point at S3 is still recorded, just without an IPFS hash.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import Field

from catalog.exceptions import BatchIngestionError, EntityNotFoundError
from catalog.models import NFT, Asset, AssetInfo, CatalogRecord
from catalog.store import VersionedEntityStore
from .blob import BlobStorage
from .locator import parse_s3_url
from .pinning import PinningClient, PinPayload

logger = logging.getLogger(__name__)

class IngestionRequest(CatalogRecord):
    """Assets to ingest for one NFT."""
    nft_id: str
    asset_creator_address: str
    asset_creator_id: str
    assets: List[AssetInfo]
    app_id: Optional[str] = None

class NFTBundle(CatalogRecord):
    """An NFT to create together with its assets and token metadata."""
    nft_data: Dict[str, Any]
    assets: List[AssetInfo] = Field(default_factory=list)
    traits: Optional[Any] = None
    asset_creator_address: Optional[str] = None
    asset_creator_id: Optional[str] = None
    skip_metadata_upload: bool = False

class UploadTarget(CatalogRecord):
    """Where a client wants to upload one file."""
    asset_type: str
    asset_id: str
    file_type: str

def metadata_key(nft: NFT) -> str:
    """Blob key of an NFT's token metadata document."""
    return f"{nft.creator_address}/{nft.collection_id}/{nft.token_id}.json"

def upload_key(user_id: str, target: UploadTarget) -> str:
    return f"{user_id}/{target.asset_type}/{target.asset_id}.{target.file_type}"

class AssetIngestionPipeline:
    """Turns externally hosted media into pinned Asset records."""

    def __init__(
        self,
        asset_store: VersionedEntityStore,
        nft_store: VersionedEntityStore,
        blob_storage: BlobStorage,
        pinning_client: PinningClient,
        gateway_url: str = '',
        metadata_bucket: str = '',
        upload_bucket: str = ''
    ):
        self.asset_store = asset_store
        self.nft_store = nft_store
        self.blob_storage = blob_storage
        self.pinning_client = pinning_client
        self.gateway_url = (gateway_url or '').rstrip('/')
        self.metadata_bucket = metadata_bucket
        self.upload_bucket = upload_bucket

    def ipfs_url(self, ipfs_hash: str) -> str:
        """Gateway URL of a pinned hash, empty when no gateway is configured."""
        if not ipfs_hash or not self.gateway_url:
            return ''
        return f"{self.gateway_url}/{ipfs_hash}"

    async def _pin_source(self, asset_info: AssetInfo) -> str:
        location = parse_s3_url(asset_info.asset_url)
        if not location.is_resolved:
            logger.info(f"Asset {asset_info.asset_id} is not stored in S3, skipping pinning")
            return ''

        blob = await self.blob_storage.get_object(location.bucket, location.key, location.region or None)
        return await self.pinning_client.pin(PinPayload(
            filename=asset_info.asset_id,
            content=blob.body,
            content_type=blob.content_type
        ))

    async def ingest(
        self,
        asset_info: AssetInfo,
        nft_id: str,
        creator_address: str,
        creator_id: str,
        app_id: Optional[str] = None
    ) -> Asset:
        """Pin one asset's media and store its Asset record.

        Args:
            asset_info: Asset to ingest
            nft_id: NFT the asset belongs to
            creator_address: Address of the asset creator
            creator_id: User id of the asset creator
            app_id: Optional calling application id

        Returns:
            The stored Asset

        Raises:
            BlobStorageError: If the source blob cannot be fetched
            PinningError: If the pinning service fails
        """
        try:
            ipfs_hash = await self._pin_source(asset_info)
            asset = Asset(
                asset_id=asset_info.asset_id,
                nft_id=nft_id,
                asset_type=asset_info.asset_type,
                asset_url=asset_info.asset_url,
                creator_address=creator_address,
                creator_id=creator_id,
                visibility=asset_info.visibility,
                processed=asset_info.processed,
                ipfs_hash=ipfs_hash,
                ipfs_url=self.ipfs_url(ipfs_hash),
                app_id=app_id
            )
            return await self.asset_store.put(asset)
        except Exception as e:
            logger.error(f"Error ingesting asset {asset_info.asset_id} for NFT {nft_id}: {e}")
            raise

    async def ingest_many(
        self,
        assets: List[AssetInfo],
        nft_id: str,
        creator_address: str,
        creator_id: str,
        app_id: Optional[str] = None
    ) -> List[Asset]:
        """Ingest assets concurrently. The first failure is raised; finished siblings stay stored."""
        return list(await asyncio.gather(*(
            self.ingest(asset_info, nft_id, creator_address, creator_id, app_id)
            for asset_info in assets
        )))

    async def ingest_batch(self, requests: List[IngestionRequest]) -> List[Asset]:
        """Ingest requests one at a time, stopping at the first failure.

        Raises:
            BatchIngestionError: With the index of the failing request and the
                assets of every request completed before it
        """
        completed: List[Asset] = []
        for index, request in enumerate(requests):
            try:
                completed.extend(await self.ingest_many(
                    request.assets,
                    request.nft_id,
                    request.asset_creator_address,
                    request.asset_creator_id,
                    request.app_id
                ))
            except Exception as e:
                raise BatchIngestionError(
                    f"Ingestion stopped at request {index}: {e}",
                    failed_index=index,
                    completed=completed,
                    cause=e
                ) from e
        return completed

    async def create_bundle(
        self,
        bundle: NFTBundle,
        signature: Optional[str] = None,
        max_token_id: Optional[int] = None,
        app_id: Optional[str] = None
    ) -> NFT:
        """Create an NFT, upload its token metadata and ingest its assets."""
        nft_data = dict(bundle.nft_data)
        nft_data.setdefault('isMinted', False)
        nft_data.setdefault('isNFTImageScannable', False)
        nft_data.setdefault('isListed', True)
        if signature and max_token_id is not None:
            nft_data['signature'] = signature
            nft_data['maxTokenId'] = max_token_id
        if app_id:
            nft_data['appId'] = app_id

        nft = NFT.from_item(nft_data).model_copy(update={'scan_count': 0, 'view_count': 0})
        nft = await self.nft_store.create(nft)

        if not bundle.skip_metadata_upload:
            metadata = {
                'name': nft.name,
                'description': nft.description,
                'image': nft.image_url,
                'traits': bundle.traits
            }
            await self.blob_storage.put_json(self.metadata_bucket, metadata_key(nft), metadata)

        await self.ingest_many(
            bundle.assets,
            nft.nft_id,
            bundle.asset_creator_address,
            bundle.asset_creator_id,
            app_id
        )
        return nft

    async def create_bundles(
        self,
        bundles: List[NFTBundle],
        signature: Optional[str] = None,
        max_token_id: Optional[int] = None,
        app_id: Optional[str] = None
    ) -> List[NFT]:
        """Create bundles one at a time, stopping at the first failure.

        Raises:
            BatchIngestionError: With the index of the failing bundle and the
                NFTs created before it
        """
        created: List[NFT] = []
        for index, bundle in enumerate(bundles):
            try:
                created.append(await self.create_bundle(bundle, signature, max_token_id, app_id))
            except Exception as e:
                raise BatchIngestionError(
                    f"Bundle creation stopped at bundle {index}: {e}",
                    failed_index=index,
                    completed=created,
                    cause=e
                ) from e
        logger.info(f"Created {len(created)} NFT bundles")
        return created

    async def update_asset(self, asset_id: str, patch: Dict[str, Any],
                           app_id: Optional[str] = None) -> Asset:
        """Merge patch over a stored asset and overwrite it in place.

        ``visibility`` only changes when the supplied value differs from the
        stored one; an absent value keeps the stored one.

        Raises:
            EntityNotFoundError: If the asset does not exist
        """
        existing = await self.asset_store.get_latest(asset_id)
        if existing.is_empty:
            raise EntityNotFoundError(f"Asset {asset_id} not found")

        stored = existing.to_item()
        changes = {key: value for key, value in patch.items() if key != 'assetId'}

        visibility = changes.get('visibility')
        if visibility is None or visibility == existing.visibility:
            changes.pop('visibility', None)

        merged = {**stored, **changes, 'assetId': asset_id}
        if app_id is not None:
            merged['appId'] = app_id

        return await self.asset_store.put(Asset.from_item(merged))

    async def presign_uploads(self, user_id: str, targets: List[UploadTarget]) -> List[str]:
        """Presigned PUT URLs, one per upload target, in input order."""
        return list(await asyncio.gather(*(
            self.blob_storage.presign_put(self.upload_bucket, upload_key(user_id, target))
            for target in targets
        )))
