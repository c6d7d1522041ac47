"""User profiles, looked up by id, tag or connected wallet."""

import logging
from typing import Optional

from database import KeyValueTable
from .models import User, now_ms
from .tables import USER_TAG_INDEX
from .wallets import WalletStore

logger = logging.getLogger(__name__)

class UserStore:
    """Users keyed by user id. Missing users come back as an empty User."""

    def __init__(self, table: KeyValueTable, wallets: Optional[WalletStore] = None):
        self.table = table
        self.wallets = wallets

    async def get_user(self, user_id: str) -> User:
        item = await self.table.get_item({'userId': user_id})
        return User.from_item(item)

    async def get_user_by_tag(self, user_tag: str) -> User:
        items = await self.table.query_index(USER_TAG_INDEX, user_tag)
        if len(items) > 1:
            logger.warning(f"User tag {user_tag!r} is shared by {len(items)} users")
        return User.from_item(items[0] if items else None)

    async def save_user(self, user: User) -> User:
        """Insert or overwrite a user, keeping the original creation time."""
        existing = await self.get_user(user.user_id)
        now = now_ms()
        saved = user.model_copy(update={
            'created_at': existing.created_at or now,
            'updated_at': now
        })
        await self.table.put_item(saved.to_item())
        return saved

    async def get_user_by_wallet(self, address: str, chain: str) -> Optional[User]:
        """User owning the wallet (address, chain).

        Returns:
            The user (empty when no profile was saved), or None when the
            wallet is unknown or carries no user id
        """
        if self.wallets is None:
            return None
        wallet = await self.wallets.get_wallet(address, chain)
        if wallet is None or not wallet.user_id:
            return None
        return await self.get_user(wallet.user_id)
