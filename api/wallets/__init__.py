"""Wallet API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query

from catalog import Wallet, WalletVerificationError
from ..dependencies import CatalogRequest, Services, api_key_error, get_services, token_error
from ..responses import ok, operation_error, validation_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/wallets",
    tags=["Wallets"]
)

@router.post("")
async def save_wallet(
    request: CatalogRequest,
    api_key: Optional[str] = Query(None, alias="API_KEY"),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services)
):
    """Connect a wallet to the calling user once its signature is verified."""
    error = api_key_error(services, api_key)
    if error:
        return validation_error(error)

    data = request.data if isinstance(request.data, dict) else {}
    address = data.get('address')
    chain = data.get('chain')
    signature = data.get('signature')
    if not address or not chain or not signature:
        return validation_error("address & chain & signature must exist")

    error = await token_error(services, authorization, request.user_id)
    if error:
        return validation_error(error)

    wallet = Wallet(address=address, chain=chain, user_id=request.user_id, app_id=request.app_id)
    try:
        saved = await services.wallets.save_wallet(wallet, signature, data.get('chainId'))
        return ok(saved)
    except WalletVerificationError as e:
        return validation_error(str(e))
    except Exception as e:
        logger.exception(f"Error occured during saveWallet: {e}")
        return operation_error("saveWallet", e)

@router.get("/{user_id}/{chain}/recent")
async def query_recent_wallet_by_user_id_and_chain(
    user_id: str,
    chain: str,
    services: Services = Depends(get_services)
):
    """Address of the user's most recently connected wallet, or an empty string."""
    try:
        return ok(await services.wallets.get_recent_wallet(user_id, chain))
    except Exception as e:
        logger.exception(f"Error occured during queryRecentWalletByUserIdAndChain: {e}")
        return operation_error("queryRecentWalletByUserIdAndChain", e)

@router.get("/{user_id}/{chain}")
async def query_wallets_by_user_id_and_chain(
    user_id: str,
    chain: str,
    services: Services = Depends(get_services)
):
    """A user's wallets on a chain, most recently connected first."""
    try:
        return ok(await services.wallets.get_wallets_by_user_id_and_chain(user_id, chain))
    except Exception as e:
        logger.exception(f"Error occured during queryWalletsByUserIdAndChain: {e}")
        return operation_error("queryWalletsByUserIdAndChain", e)
