"""Tests for wallet records and recent-wallet resolution."""

import pytest

from catalog import Wallet, WalletStore, WalletVerificationError
from catalog.tables import WALLETS_TABLE
from database import MemoryTable

USER_ID = "user-1"

async def put_wallets(store, *wallets):
    for address, chain, connected_time in wallets:
        await store.put_wallet(Wallet(
            address=address, chain=chain, user_id=USER_ID, connected_time=connected_time
        ))

@pytest.mark.asyncio
async def test_recent_wallet_has_max_connected_time(services):
    """Test that the most recently connected wallet is selected."""
    store = services.wallets
    await put_wallets(store, ("0xa", "polygon", 10), ("0xb", "polygon", 30), ("0xc", "polygon", 20))

    assert await store.get_recent_wallet(USER_ID, "polygon") == "0xb"
    wallets = await store.get_wallets_by_user_id_and_chain(USER_ID, "polygon")
    assert [wallet.address for wallet in wallets] == ["0xb", "0xc", "0xa"]

@pytest.mark.asyncio
async def test_recent_wallet_without_wallets(services):
    assert await services.wallets.get_recent_wallet(USER_ID, "polygon") == ""

@pytest.mark.asyncio
async def test_ties_keep_fetch_order(services):
    """Test that equal connected times keep their index order."""
    store = services.wallets
    await put_wallets(store, ("0xfirst", "polygon", 10), ("0xsecond", "polygon", 10))

    assert await store.get_recent_wallet(USER_ID, "polygon") == "0xfirst"

@pytest.mark.asyncio
async def test_chain_scoping(services):
    store = services.wallets
    await put_wallets(store, ("0xa", "polygon", 10), ("0xb", "ethereum", 30))

    assert await store.get_recent_wallet(USER_ID, "polygon") == "0xa"
    assert await store.get_wallet_addresses(USER_ID) == {"0xa", "0xb"}
    assert await store.get_wallet_addresses(USER_ID, "ethereum") == {"0xb"}

@pytest.mark.asyncio
async def test_get_wallet(services):
    await put_wallets(services.wallets, ("0xa", "polygon", 10))

    wallet = await services.wallets.get_wallet("0xa", "polygon")
    assert wallet.user_id == USER_ID
    assert await services.wallets.get_wallet("0xa", "ethereum") is None

@pytest.mark.asyncio
async def test_save_wallet_with_valid_signature(services):
    """Test that a verified wallet is stored with a connection time."""
    saved = await services.wallets.save_wallet(
        Wallet(address="0xa", chain="polygon", user_id=USER_ID), "sig-0xa", chain_id=137
    )

    assert saved.connected_time is not None
    assert await services.wallets.get_recent_wallet(USER_ID, "polygon") == "0xa"

@pytest.mark.asyncio
async def test_save_wallet_with_invalid_signature(services):
    with pytest.raises(WalletVerificationError):
        await services.wallets.save_wallet(
            Wallet(address="0xa", chain="polygon", user_id=USER_ID), "sig-0xother"
        )
    assert await services.wallets.get_wallet("0xa", "polygon") is None

@pytest.mark.asyncio
async def test_save_wallet_without_verifier():
    """Test that wallets cannot be saved when no verifier is configured."""
    store = WalletStore(MemoryTable(WALLETS_TABLE))
    with pytest.raises(WalletVerificationError):
        await store.save_wallet(Wallet(address="0xa", chain="polygon", user_id=USER_ID), "sig-0xa")
