"""Search API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import (
    QueryParamsError, Services, api_key_error, get_services, parse_query_params
)
from ..responses import ok, operation_error, validation_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/search",
    tags=["Search"]
)

@router.get("/collections")
async def search_collections(
    query_params: Optional[str] = Query(None, alias="QUERY_PARAMS"),
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    services: Services = Depends(get_services)
):
    """Listed collections matching a keyword."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)
    try:
        params = parse_query_params(query_params)
    except QueryParamsError as e:
        return validation_error(str(e))
    if params is None:
        return validation_error("QUERY_PARAMS must be provided.")

    try:
        collections = await services.query.search_collections(
            params.get('keyword') or '',
            chain=params.get('chain'),
            category=params.get('category'),
            filter_test_override=bool(params.get('filterTestOverride'))
        )
        return ok(collections)
    except Exception as e:
        logger.exception(f"Error occured during searchCollections: {e}")
        return operation_error("searchCollections", e)
