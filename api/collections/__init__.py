"""Collection API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query

from catalog import CatalogQuery, InvalidQueryError
from ..dependencies import (
    CatalogRequest, QueryParamsError, Services, api_key_error, get_services,
    parse_query_params, token_error
)
from ..responses import ok, operation_error, validation_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/collections",
    tags=["Collections"]
)

""" Public Endpoints - No Authentication Required """
@router.get("/address/{address}")
async def query_collection_by_address(address: str, services: Services = Depends(get_services)):
    """Latest version of the collection deployed at address."""
    try:
        return ok(await services.query.get_collection_by_address(address))
    except Exception as e:
        logger.exception(f"Error occured during queryCollectionByAddress: {e}")
        return operation_error("queryCollectionByAddress", e)

@router.get("/addresses")
async def query_collections_by_addresses(
    query_params: Optional[str] = Query(None, alias="QUERY_PARAMS"),
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    services: Services = Depends(get_services)
):
    """Listed collections for a list of addresses, in request order."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    try:
        params = parse_query_params(query_params)
    except QueryParamsError as e:
        return validation_error(str(e))
    if params is None:
        return validation_error("QUERY_PARAMS must be provided.")
    if not isinstance(params.get('addresses'), list):
        return validation_error('"addresses" parameter should be instance of Array')

    try:
        return ok(await services.query.query_collections_by_addresses(params['addresses']))
    except Exception as e:
        logger.exception(f"Error occured during queryCollectionsByAddresses: {e}")
        return operation_error("queryCollectionsByAddresses", e)

@router.get("/liked/{user_id}")
async def query_user_liked_collections(
    user_id: str,
    chain: Optional[str] = Query(None),
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    services: Services = Depends(get_services)
):
    """Collections a user likes, optionally on one chain."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    try:
        return ok(await services.query.query_liked_collections(user_id, chain))
    except Exception as e:
        logger.exception(f"Error occured during queryUserLikedCollections for {user_id}: {e}")
        return operation_error("queryUserLikedCollections", e)

@router.get("")
async def query_collections(
    query_params: Optional[str] = Query(None, alias="QUERY_PARAMS"),
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Filtered collections by category and/or creator address.

    Callers that pass their ``userId`` together with a valid access token
    also see their own unlisted collections.
    """
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
        is_curated=bool(params.get('isCurated')),
        filter_test_override=bool(params.get('filterTestOverride')),
        chain=params.get('chain')
    )
    if not query.category and not query.creator_address:
        return validation_error("either category or creatorAddress must be provided.")

    try:
        viewer = await services.query.resolve_viewer(user_id, authenticated)
        return ok(await services.query.query_collections(query, viewer))
    except InvalidQueryError as e:
        return validation_error(str(e))
    except Exception as e:
        logger.exception(f"Error occured during queryCollections: {e}")
        return operation_error("queryCollections", e)

@router.get("/{collection_id}/relation/{user_id}")
async def query_collection_user_relation(
    collection_id: str,
    user_id: str,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    services: Services = Depends(get_services)
):
    """Whether a user likes a collection."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    try:
        return ok({'isLiked': await services.collection_likes.is_liked(collection_id, user_id)})
    except Exception as e:
        logger.exception(f"Error occured during queryCollectionUserRelation for {collection_id} / {user_id}: {e}")
        return operation_error("queryCollectionUserRelation", e)

@router.get("/{collection_id}/versions/{version}")
async def query_collection_with_version(collection_id: str, version: int,
                                        services: Services = Depends(get_services)):
    """One exact version of a collection. Unknown versions return an empty object."""
    try:
        return ok(await services.collections.get_version(collection_id, version))
    except Exception as e:
        logger.exception(f"Error occured during queryCollectionWithVersion: {e}")
        return operation_error("queryCollectionWithVersion", e)

@router.get("/{collection_id}")
async def query_collection(collection_id: str, services: Services = Depends(get_services)):
    """Latest version of a collection. Unknown ids return an empty object."""
    try:
        return ok(await services.query.get_collection(collection_id))
    except Exception as e:
        logger.exception(f"Error occured during queryCollection: {e}")
        return operation_error("queryCollection", e)

""" Protected Endpoints - Access Token Required """
@router.post("")
async def create_collection(
    request: CatalogRequest,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Create version 1 of a collection."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    if not isinstance(request.data, dict) or not request.data.get('collectionId'):
        return validation_error("collectionId must exist.")
    error = await token_error(services, authorization, request.user_id)
    if error:
        return validation_error(error)

    collection_data = dict(request.data)
    collection_data.setdefault('shippingRequired', False)
    collection_data.setdefault('ownerSignatureMintAllowed', True)
    if request.app_id:
        collection_data['appId'] = request.app_id

    try:
        collection = services.collections.model.from_item(collection_data)
        return ok(await services.collections.create(collection))
    except Exception as e:
        logger.exception(f"Error occured during createCollection: {e}")
        return operation_error("createCollection", e)

@router.put("/{collection_id}")
async def update_collection(
    collection_id: str,
    request: CatalogRequest,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Append a new version of a collection with the given changes."""
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
        return ok(await services.collections.append_version(collection_id, changes))
    except Exception as e:
        logger.exception(f"Error occured during updateCollection for {collection_id}: {e}")
        return operation_error("updateCollection", e)

@router.post("/{collection_id}/like/{user_id}")
async def like_collection(
    collection_id: str,
    user_id: str,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Record that a user likes a collection."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    error = await token_error(services, authorization, user_id)
    if error:
        return validation_error(error)
    try:
        await services.collection_likes.like(collection_id, user_id)
        return ok()
    except Exception as e:
        logger.exception(f"Error occured during CollectionLikeAction for {collection_id} / {user_id}: {e}")
        return operation_error("CollectionLikeAction", e)

@router.post("/{collection_id}/unlike/{user_id}")
async def unlike_collection(
    collection_id: str,
    user_id: str,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Remove a user's like from a collection."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    error = await token_error(services, authorization, user_id)
    if error:
        return validation_error(error)
    try:
        await services.collection_likes.unlike(collection_id, user_id)
        return ok()
    except Exception as e:
        logger.exception(f"Error occured during CollectionUnlikeAction for {collection_id} / {user_id}: {e}")
        return operation_error("CollectionUnlikeAction", e)
