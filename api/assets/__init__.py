"""Asset API endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query
from pydantic import ValidationError

from assets import IngestionRequest, UploadTarget
from catalog import AssetInfo, BatchIngestionError
from ..dependencies import (
    CatalogRequest, QueryParamsError, Services, api_key_error, get_services,
    parse_query_params, token_error
)
from ..responses import ok, fail, operation_error, validation_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/assets",
    tags=["Assets"]
)

@router.get("/nft/{nft_id}")
async def query_assets_by_nft_id(
    nft_id: str,
    query_params: Optional[str] = Query(None, alias="QUERY_PARAMS"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Visible assets of an NFT.

    Owners passing ``{userId, creatorAddress, walletAddress}`` with a valid
    access token also receive hidden assets when one of their wallets is
    the creator or wallet address.
    """
    try:
        params = parse_query_params(query_params)
    except QueryParamsError as e:
        return validation_error(str(e))

    viewer = None
    creator_address = wallet_address = None
    if params is not None:
        user_id = params.get('userId')
        error = await token_error(services, authorization, user_id)
        if error:
            return validation_error(error)
        if 'creatorAddress' not in params or 'walletAddress' not in params:
            return validation_error('"creatorAddress" , "walletAddress" must be provided')
        creator_address = params['creatorAddress']
        wallet_address = params['walletAddress']

    try:
        if params is not None:
            viewer = await services.query.resolve_viewer(params.get('userId'), True)
        assets = await services.query.query_assets_by_nft(
            nft_id, viewer, creator_address, wallet_address
        )
        return ok(assets)
    except Exception as e:
        logger.exception(f"Error occured during queryAssetsByNFTId: {e}")
        return operation_error("queryAssetsByNFTId", e)

@router.post("")
async def create_assets(
    request: CatalogRequest,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Pin and store assets for an NFT."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)

    data = request.data if isinstance(request.data, dict) else {}
    nft_id = data.get('nftId')
    creator_address = data.get('assetCreatorAddress')
    creator_id = data.get('assetCreatorId')
    raw_assets = data.get('assets')
    if not nft_id or not creator_address or not creator_id or not raw_assets:
        return validation_error(
            "nftId & creatorAddress & assets (list of asset types and urls) must be present."
        )

    error = await token_error(services, authorization, request.user_id)
    if error:
        return validation_error(error)

    try:
        asset_infos: List[AssetInfo] = [AssetInfo.model_validate(item) for item in raw_assets]
    except ValidationError:
        return validation_error("asset info must contain assetURL & assetType.")

    try:
        assets = await services.pipeline.ingest_many(
            asset_infos, nft_id, creator_address, creator_id, request.app_id
        )
        return ok(assets)
    except Exception as e:
        logger.exception(f"Error occured during createAssets: {e}")
        return operation_error("createAssets", e)

@router.post("/batch")
async def create_assets_batch(
    request: CatalogRequest,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Pin and store assets for several NFTs, one NFT after another.

    ``data`` is a list of ``{nftId, assetCreatorAddress, assetCreatorId, assets}``.
    Processing stops at the first failing entry; earlier entries stay stored.
    """
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    if not isinstance(request.data, list) or not request.data:
        return validation_error("data must be a non-empty list of asset requests.")
    error = await token_error(services, authorization, request.user_id)
    if error:
        return validation_error(error)

    try:
        requests = [
            IngestionRequest.model_validate({**item, 'appId': request.app_id})
            for item in request.data
        ]
    except (ValidationError, TypeError):
        return validation_error(
            "each entry needs nftId, assetCreatorAddress, assetCreatorId & assets with assetURL & assetType."
        )

    try:
        return ok(await services.pipeline.ingest_batch(requests))
    except BatchIngestionError as e:
        logger.exception(f"Error occured during createAssetsBatch at request {e.failed_index}: {e}")
        return fail(
            f"Error occured during createAssetsBatch: {e.cause or e} "
            f"({len(e.completed)} assets created before request {e.failed_index})"
        )
    except Exception as e:
        logger.exception(f"Error occured during createAssetsBatch: {e}")
        return operation_error("createAssetsBatch", e)

@router.put("/{asset_id}")
async def update_asset(
    asset_id: str,
    request: CatalogRequest,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Merge changes into a stored asset."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    if not isinstance(request.data, dict):
        return validation_error("data must be an object.")
    error = await token_error(services, authorization, request.user_id)
    if error:
        return validation_error(error)

    try:
        await services.pipeline.update_asset(asset_id, request.data, request.app_id)
        return ok()
    except Exception as e:
        logger.exception(f"Error occured during updateAsset: {e}")
        return operation_error("updateAsset", e)

@router.post("/presigned_urls")
async def create_presigned_urls(
    request: CatalogRequest,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Presigned upload URLs for ``{assetType, assetId, fileType}`` entries."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)

    data = request.data if isinstance(request.data, dict) else {}
    user_id = data.get('userId')
    raw_targets = data.get('assets')
    if not user_id or not raw_targets:
        return validation_error("userId & assets (list of asset type and ids) must be present.")

    error = await token_error(services, authorization, user_id)
    if error:
        return validation_error(error)

    try:
        targets = [UploadTarget.model_validate(item) for item in raw_targets]
    except ValidationError:
        return validation_error("each asset must contain assetType, assetId & fileType.")

    try:
        return ok(await services.pipeline.presign_uploads(user_id, targets))
    except Exception as e:
        logger.exception(f"Error occured during createPreSignedURL: {e}")
        return operation_error("createPreSignedURL", e)
