from typing import List, Union

import structlog

from .core.database import StorageEngine
from .core.repository import Repository
from .core.types import Account, SortOrder
from .errors import AccountNotFoundError

logger = structlog.get_logger()

ACCOUNTS_TABLE = "accounts"


class AccountStore:
    """Accounts keyed by address. Accounts are created and updated, never deleted."""

    def __init__(self, store: StorageEngine):
        self.repo = Repository(store, ACCOUNTS_TABLE, "address")

    async def upsert_account(self, account: Union[Account, dict]) -> None:
        account = Account.model_validate(account)
        await self.repo.upsert(account.model_dump(mode="json"))
        logger.debug("account_upserted", address=account.address, type=account.type.value)

    async def has_account(self, address: str) -> bool:
        return await self.repo.exists(self.repo.key(address))

    async def get_account(self, address: str) -> Account:
        row = await self.repo.first(self.repo.key(address))
        if row is None:
            raise AccountNotFoundError(address)
        return Account.model_validate(row)

    async def get_accounts_by_balance(
        self, offset: int, limit: int, order: Union[str, SortOrder] = SortOrder.DESC
    ) -> List[Account]:
        """Page through accounts ordered numerically by balance, address breaking ties."""
        rows = await self.repo.scan(
            order_by=(("balance", SortOrder.of(order).value), ("address", "asc")),
            offset=offset,
            limit=limit,
        )
        return [Account.model_validate(row) for row in rows]
