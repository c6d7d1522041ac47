"""NFT API endpoints."""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Header, Query
from pydantic import ValidationError

from assets import NFTBundle
from catalog import CatalogQuery, NFT, BatchIngestionError
from ..dependencies import (
    CatalogRequest, QueryParamsError, Services, api_key_error, get_services,
    parse_query_params, token_error
)
from ..responses import ok, fail, operation_error, validation_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/nfts",
    tags=["NFTs"]
)

class BundleRequest(CatalogRequest):
    """Body of a bundle creation request; ``data`` is a list of bundles."""
    signature: Optional[str] = None
    max_token_id: Optional[int] = None

""" Public Endpoints - No Authentication Required """
@router.get("/dot/{dot_id}")
async def query_nft_by_dot_id(dot_id: str, services: Services = Depends(get_services)):
    try:
        return ok(await services.query.get_nft_by_dot_id(dot_id))
    except Exception as e:
        logger.exception(f"Error occured during queryNFTbyDotId: {e}")
        return operation_error("queryNFTbyDotId", e)

@router.get("/collection/{collection_id}/count")
async def query_nft_count_by_collection_id(
    collection_id: str,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    services: Services = Depends(get_services)
):
    """Number of NFTs in a collection."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    try:
        return ok(await services.query.count_nfts_by_collection(collection_id))
    except Exception as e:
        logger.exception(f"Error occured during queryNFTCountByCollectionId for {collection_id}: {e}")
        return operation_error("queryNFTCountByCollectionId", e)

@router.get("/collection/{collection_id}")
async def query_nfts_by_collection_id(collection_id: str, services: Services = Depends(get_services)):
    try:
        return ok(await services.query.get_nfts_by_collection_id(collection_id))
    except Exception as e:
        logger.exception(f"Error occured during queryNFTsbyCollectionId: {e}")
        return operation_error("queryNFTsbyCollectionId", e)

@router.get("/collection_address/{collection_address}")
async def query_nfts_by_collection_address(collection_address: str,
                                           services: Services = Depends(get_services)):
    try:
        return ok(await services.query.get_nfts_by_collection_address(collection_address))
    except Exception as e:
        logger.exception(f"Error occured during queryNFTsbyCollectionAddress: {e}")
        return operation_error("queryNFTsbyCollectionAddress", e)

@router.get("/addresses_and_token_ids")
async def query_nfts_by_collection_addresses_and_token_ids(
    query_params: Optional[str] = Query(None, alias="QUERY_PARAMS"),
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    services: Services = Depends(get_services)
):
    """NFTs for a list of ``{collectionAddress, tokenId}`` pairs."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    try:
        params = parse_query_params(query_params)
    except QueryParamsError as e:
        return validation_error(str(e))
    if params is None:
        return validation_error("QUERY_PARAMS must be provided.")

    identifiers = params.get('addressesAndTokenIds')
    if not isinstance(identifiers, list):
        return validation_error('"addressesAndTokenIds" parameter should be instance of Array')

    try:
        pairs = [(item['collectionAddress'], int(item['tokenId'])) for item in identifiers]
    except (KeyError, TypeError, ValueError):
        return validation_error("each identifier must contain collectionAddress & numeric tokenId.")

    try:
        return ok(await services.query.query_nfts_by_collection_addresses_and_token_ids(pairs))
    except Exception as e:
        logger.exception(f"Error occured during queryNFTSByCollectionAddressesAndTokenIds: {e}")
        return operation_error("queryNFTSByCollectionAddressesAndTokenIds", e)

@router.get("/liked/{user_id}")
async def query_user_liked_nfts(
    user_id: str,
    chain: Optional[str] = Query(None),
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    services: Services = Depends(get_services)
):
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    try:
        return ok(await services.query.query_liked_nfts(user_id, chain))
    except Exception as e:
        logger.exception(f"Error occured during queryUserLikedNFTs for {user_id}: {e}")
        return operation_error("queryUserLikedNFTs", e)

@router.get("")
async def query_nfts(
    query_params: Optional[str] = Query(None, alias="QUERY_PARAMS"),
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Filtered NFTs by collection id, category and/or creator address."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    try:
        params = parse_query_params(query_params)
    except QueryParamsError as e:
        return validation_error(str(e))
    if params is None:
        return validation_error("QUERY_PARAMS must be provided.")

    user_id = params.get('userId')
    authenticated = False
    if user_id and authorization:
        error = await token_error(services, authorization, user_id)
        if error:
            return validation_error(error)
        authenticated = True

    query = CatalogQuery(
        category=params.get('category'),
        creator_address=params.get('creatorAddress'),
        collection_id=params.get('collectionId'),
        is_curated=bool(params.get('isCurated')),
        filter_test_override=bool(params.get('filterTestOverride')),
        chain=params.get('chain')
    )
    if not (query.collection_id or query.category or query.creator_address):
        return validation_error("either collectionId, category or creatorAddress must be provided.")

    try:
        viewer = await services.query.resolve_viewer(user_id, authenticated, query.chain)
        return ok(await services.query.query_nfts(query, viewer))
    except Exception as e:
        logger.exception(f"Error occured during queryNFTs: {e}")
        return operation_error("queryNFTs", e)

@router.get("/{nft_id}/relation/{user_id}")
async def query_nft_user_relation(
    nft_id: str,
    user_id: str,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    services: Services = Depends(get_services)
):
    """Whether a user likes an NFT."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    try:
        return ok({'isLiked': await services.nft_likes.is_liked(nft_id, user_id)})
    except Exception as e:
        logger.exception(f"Error occured during queryNFTUserRelation for {nft_id} / {user_id}: {e}")
        return operation_error("queryNFTUserRelation", e)

@router.get("/{nft_id}/versions/{version}")
async def query_nft_with_version(nft_id: str, version: int, services: Services = Depends(get_services)):
    """One exact version of an NFT. Unknown versions return an empty object."""
    try:
        return ok(await services.nfts.get_version(nft_id, version))
    except Exception as e:
        logger.exception(f"Error occured during queryNFTWithVersion: {e}")
        return operation_error("queryNFTWithVersion", e)

@router.get("/{nft_id}")
async def query_nft(nft_id: str, services: Services = Depends(get_services)):
    """Latest version of an NFT. Unknown ids return an empty object."""
    try:
        return ok(await services.query.get_nft(nft_id))
    except Exception as e:
        logger.exception(f"Error occured during queryNFT: {e}")
        return operation_error("queryNFT", e)

""" Protected Endpoints - Access Token Required """
@router.post("")
async def create_nft(
    request: CatalogRequest,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Create version 1 of an NFT with zeroed counters."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    if not isinstance(request.data, dict) or not request.data.get('nftId') or not request.data.get('tokenId'):
        return validation_error("nftId and tokenId must exist.")
    error = await token_error(services, authorization, request.user_id)
    if error:
        return validation_error(error)

    nft_data = dict(request.data)
    nft_data.setdefault('isMinted', False)
    nft_data.setdefault('isListed', True)
    if request.app_id:
        nft_data['appId'] = request.app_id

    try:
        nft = NFT.from_item(nft_data).model_copy(update={'scan_count': 0, 'view_count': 0})
        return ok(await services.nfts.create(nft))
    except Exception as e:
        logger.exception(f"Error occured during createNFT: {e}")
        return operation_error("createNFT", e)

@router.post("/bundles")
async def create_assets_and_save_nfts(
    request: BundleRequest,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Create NFTs together with their assets, one bundle after another."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    if not isinstance(request.data, list) or not request.data:
        return validation_error("Assets and NFTs data not supplied.")
    error = await token_error(services, authorization, request.user_id)
    if error:
        return validation_error(error)
    if (request.signature or request.max_token_id) and not (request.signature and request.max_token_id):
        return validation_error("Signature & maxTokenId must be provided together.")

    try:
        bundles: List[NFTBundle] = [NFTBundle.model_validate(item) for item in request.data]
    except ValidationError as e:
        return validation_error(f"invalid bundle: {e.errors()[0]['msg']}")

    try:
        await services.pipeline.create_bundles(
            bundles, request.signature, request.max_token_id, request.app_id
        )
        return ok(message="Successfully generated assets and NFTs.")
    except BatchIngestionError as e:
        logger.exception(f"Error occured during createAssetsAndSaveNfts at bundle {e.failed_index}: {e}")
        return fail(
            f"Error occured during createAssetsAndSaveNfts: {e.cause or e} "
            f"({len(e.completed)} bundles created)"
        )
    except Exception as e:
        logger.exception(f"Error occured during createAssetsAndSaveNfts: {e}")
        return operation_error("createAssetsAndSaveNfts", e)

@router.put("/{nft_id}")
async def update_nft(
    nft_id: str,
    request: CatalogRequest,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Append a new version of an NFT with the given changes."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    if not isinstance(request.data, dict):
        return validation_error("data must be an object.")
    error = await token_error(services, authorization, request.user_id)
    if error:
        return validation_error(error)

    changes = dict(request.data)
    if request.app_id:
        changes['appId'] = request.app_id

    try:
        return ok(await services.nfts.append_version(nft_id, changes))
    except Exception as e:
        logger.exception(f"Error occured during updateNFT for {nft_id}: {e}")
        return operation_error("updateNFT", e)

async def _increment(services: Services, nft_id: str, attribute: str, operation: str,
                     api_key: Optional[str], authorization: Optional[str], user_id: Any):
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    error = await token_error(services, authorization, user_id)
    if error:
        return validation_error(error)
    try:
        await services.nfts.increment(nft_id, attribute)
        return ok()
    except Exception as e:
        logger.exception(f"Error occured during {operation} for {nft_id}: {e}")
        return operation_error(operation, e)

@router.post("/{nft_id}/scan")
async def increment_nft_scan_count(
    nft_id: str,
    request: CatalogRequest,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    return await _increment(services, nft_id, 'scanCount', "incrementNFTScanCount",
                            api_key, authorization, request.user_id)

@router.post("/{nft_id}/view")
async def increment_nft_view_count(
    nft_id: str,
    request: CatalogRequest,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    return await _increment(services, nft_id, 'viewCount', "incrementNFTViewCount",
                            api_key, authorization, request.user_id)

@router.post("/{nft_id}/like/{user_id}")
async def like_nft(
    nft_id: str,
    user_id: str,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    error = await token_error(services, authorization, user_id)
    if error:
        return validation_error(error)
    try:
        await services.nft_likes.like(nft_id, user_id)
        return ok()
    except Exception as e:
        logger.exception(f"Error occured during NFTLikeAction for {nft_id} / {user_id}: {e}")
        return operation_error("NFTLikeAction", e)

@router.post("/{nft_id}/unlike/{user_id}")
async def unlike_nft(
    nft_id: str,
    user_id: str,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    error = await token_error(services, authorization, user_id)
    if error:
        return validation_error(error)
    try:
        await services.nft_likes.unlike(nft_id, user_id)
        return ok()
    except Exception as e:
        logger.exception(f"Error occured during NFTUnlikeAction for {nft_id} / {user_id}: {e}")
        return operation_error("NFTUnlikeAction", e)
