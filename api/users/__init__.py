"""User profile API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from pydantic import ValidationError

from catalog import User
from ..dependencies import CatalogRequest, Services, api_key_error, get_services, token_error
from ..responses import ok, operation_error, validation_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["Users"]
)

@router.get("/tag/{user_tag}")
async def query_user_by_tag(user_tag: str, services: Services = Depends(get_services)):
    """User holding a tag, or an empty object."""
    try:
        return ok(await services.users.get_user_by_tag(user_tag))
    except Exception as e:
        logger.exception(f"Error occured during queryUserByTag: {e}")
        return operation_error("queryUserByTag", e)

@router.get("/wallet/{address}/{chain}")
async def query_user_by_wallet(address: str, chain: str, services: Services = Depends(get_services)):
    """User who connected the wallet (address, chain)."""
    try:
        user = await services.users.get_user_by_wallet(address, chain)
    except Exception as e:
        logger.exception(f"Error occured during queryUserByWallet: {e}")
        return operation_error("queryUserByWallet", e)
    if user is None:
        return validation_error("given wallet does not exist or userId does not exist in wallet data.")
    return ok(user)

@router.get("/{user_id}")
async def query_user(user_id: str, services: Services = Depends(get_services)):
    """User by id, or an empty object."""
    try:
        return ok(await services.users.get_user(user_id))
    except Exception as e:
        logger.exception(f"Error occured during queryUser for {user_id}: {e}")
        return operation_error("queryUser", e)

""" Authenticated Endpoints """
@router.post("")
@router.put("")
async def save_user(
    request: CatalogRequest,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Create or overwrite the calling user's profile."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)

    data = request.data if isinstance(request.data, dict) else {}
    if not data.get('userId') or not data.get('userTag'):
        return validation_error("userId & userTag must exist")

    error = await token_error(services, authorization, data['userId'])
    if error:
        return validation_error(error)

    try:
        user = User.model_validate({**data, 'appId': request.app_id})
    except ValidationError as e:
        return validation_error(str(e.errors()[0].get('msg')))

    try:
        return ok(await services.users.save_user(user))
    except Exception as e:
        logger.exception(f"Error occured during saveUser: {e}")
        return operation_error("saveUser", e)
