"""Wallet records and recent-wallet resolution."""

import logging
from typing import List, Optional, Protocol, Set

from database import KeyValueTable
from .exceptions import WalletVerificationError
from .models import Wallet, now_ms
from .tables import USER_ID_INDEX

logger = logging.getLogger(__name__)

class WalletSignatureVerifier(Protocol):
    """Confirms that a signature over the user id was produced by address."""

    async def verify(self, address: str, signature: str, user_id: str,
                     chain_id: Optional[int] = None) -> bool:
        ...

def sort_by_connected_time(wallets: List[Wallet]) -> List[Wallet]:
    """Most recently connected first. Ties keep their fetch order."""
    return sorted(wallets, key=lambda wallet: wallet.connected_time or 0, reverse=True)

class WalletStore:
    """Wallets keyed by (address, chain), looked up by user id."""

    def __init__(self, table: KeyValueTable, verifier: Optional[WalletSignatureVerifier] = None):
        self.table = table
        self.verifier = verifier

    async def put_wallet(self, wallet: Wallet) -> Wallet:
        await self.table.put_item(wallet.to_item())
        return wallet

    async def save_wallet(
        self,
        wallet: Wallet,
        signature: str,
        chain_id: Optional[int] = None
    ) -> Wallet:
        """Store a wallet once its signature proves ownership for the user.

        Raises:
            WalletVerificationError: If no verifier is configured or the
                signature does not match the address
        """
        if self.verifier is None:
            raise WalletVerificationError("Wallet signature verification is not configured")

        valid = await self.verifier.verify(wallet.address, signature, wallet.user_id, chain_id)
        if not valid:
            raise WalletVerificationError("presented address isn't owner of signature")

        connected = wallet.model_copy(update={'connected_time': now_ms()})
        return await self.put_wallet(connected)

    async def get_wallet(self, address: str, chain: str) -> Optional[Wallet]:
        item = await self.table.get_item({'address': address, 'chain': chain})
        return Wallet.from_item(item) if item else None

    async def get_wallets_by_user_id(self, user_id: str) -> List[Wallet]:
        """Wallets of a user on every chain, most recently connected first."""
        items = await self.table.query_index(USER_ID_INDEX, user_id)
        return sort_by_connected_time([Wallet.from_item(item) for item in items])

    async def get_wallets_by_user_id_and_chain(self, user_id: str, chain: str) -> List[Wallet]:
        """Wallets of a user on one chain, most recently connected first."""
        wallets = await self.get_wallets_by_user_id(user_id)
        return [wallet for wallet in wallets if wallet.chain == chain]

    async def get_recent_wallet(self, user_id: str, chain: str) -> str:
        """Address of the most recently connected wallet, or an empty string."""
        wallets = await self.get_wallets_by_user_id_and_chain(user_id, chain)
        return wallets[0].address if wallets else ''

    async def get_wallet_addresses(self, user_id: str, chain: Optional[str] = None) -> Set[str]:
        """Addresses a user controls, optionally limited to one chain."""
        if chain:
            wallets = await self.get_wallets_by_user_id_and_chain(user_id, chain)
        else:
            wallets = await self.get_wallets_by_user_id(user_id)
        return {wallet.address for wallet in wallets if wallet.address}
