"""Collaborators shared by the API routers and the request checks they run."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import Request
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

import database
from assets import AssetIngestionPipeline, BlobStorage, PinningClient
from auth import AccessGate, TokenVerifier, extract_bearer_token, validate_api_key
from catalog import (
    CatalogQueryEngine, LikeRelationStore, VersionedEntityStore, WalletStore, UserStore,
    WalletSignatureVerifier, Collection, NFT, Asset
)
from catalog import tables
from search import SearchIndex

logger = logging.getLogger(__name__)

@dataclass
class Services:
    """Everything the routers need, built once per application."""
    collections: VersionedEntityStore
    nfts: VersionedEntityStore
    assets: VersionedEntityStore
    collection_likes: LikeRelationStore
    nft_likes: LikeRelationStore
    wallets: WalletStore
    search_index: SearchIndex
    query: CatalogQueryEngine
    pipeline: AssetIngestionPipeline
    users: UserStore
    gate: Optional[AccessGate] = None
    api_keys: List[str] = field(default_factory=list)

async def build_services(
    settings: Dict[str, Any],
    blob_storage: Optional[BlobStorage] = None,
    pinning_client: Optional[PinningClient] = None,
    gate: Optional[AccessGate] = None,
    wallet_verifier: Optional[WalletSignatureVerifier] = None
) -> Services:
    """Open the catalog tables and wire the stores, engine and pipeline.

    The database must already be initialized with ``database.init_db``.
    """
    collections = VersionedEntityStore(await database.open_table(tables.COLLECTIONS_TABLE), Collection)
    nfts = VersionedEntityStore(await database.open_table(tables.NFTS_TABLE), NFT)
    assets = VersionedEntityStore(await database.open_table(tables.ASSETS_TABLE), Asset)
    collection_likes = LikeRelationStore(await database.open_table(tables.LIKED_COLLECTIONS_TABLE))
    nft_likes = LikeRelationStore(await database.open_table(tables.LIKED_NFTS_TABLE))
    wallets = WalletStore(await database.open_table(tables.WALLETS_TABLE), wallet_verifier)
    users = UserStore(await database.open_table(tables.USERS_TABLE), wallets)
    search_index = SearchIndex(await database.open_table(tables.SEARCH_DOCUMENTS_TABLE))

    if gate is None and (settings.get('jwt_secret') or settings.get('jwks_url')):
        gate = TokenVerifier(
            secret=settings.get('jwt_secret') or None,
            jwks_url=settings.get('jwks_url') or None,
            algorithms=settings.get('jwt_algorithms'),
            audience=settings.get('jwt_audience') or None
        )
    if gate is None:
        logger.warning("No token verification configured, authenticated endpoints will reject every request")

    pipeline = AssetIngestionPipeline(
        asset_store=assets,
        nft_store=nfts,
        blob_storage=blob_storage or BlobStorage(settings.get('aws_region')),
        pinning_client=pinning_client or PinningClient(
            settings.get('pinning_url'), settings.get('pinning_jwt', '')
        ),
        gateway_url=settings.get('ipfs_gateway_url', ''),
        metadata_bucket=settings.get('metadata_bucket', ''),
        upload_bucket=settings.get('upload_bucket', '')
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
        gate=gate,
        api_keys=list(settings.get('api_keys') or [])
    )

def get_services(request: Request) -> Services:
    return request.app.state.services

class CatalogRequest(BaseModel):
    """Body shape of write requests: ``{data, userId, appId, device}``."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')

    data: Any = None
    user_id: Optional[str] = None
    app_id: Optional[str] = None
    device: Optional[Any] = None

class QueryParamsError(ValueError):
    pass

def parse_query_params(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    """Decode the JSON ``QUERY_PARAMS`` query string value.

    Raises:
        QueryParamsError: If the value is not a JSON object
    """
    if raw is None:
        return None
    try:
        params = json.loads(raw)
    except json.JSONDecodeError as e:
        raise QueryParamsError(f"QUERY_PARAMS is not valid JSON: {e}") from e
    if not isinstance(params, dict):
        raise QueryParamsError("QUERY_PARAMS must be a JSON object.")
    return params

def api_key_error(services: Services, api_key: Optional[str]) -> Optional[str]:
    """Validation message for a rejected API key, or None."""
    if not validate_api_key(api_key, services.api_keys):
        return "Invalid API Key."
    return None

async def token_error(services: Services, authorization: Optional[str],
                      user_id: Optional[str]) -> Optional[str]:
    """Validation message when the bearer token does not belong to user_id, or None."""
    token = extract_bearer_token(authorization)
    if not token:
        return "Access token should be provided."
    if services.gate is None or not await services.gate.verify(token, user_id):
        return "Invalid JWT Token."
    return None
