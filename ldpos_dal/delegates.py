"""
Delegate records and vote weight bookkeeping.

A delegate's vote weight is the sum of the balances of every account with an
active vote ballot for it. It is maintained incrementally through
adjust_vote_weight and never recomputed from ballot history on read.
"""
from typing import List, Union

import structlog

from .core.database import StorageEngine
from .core.repository import Repository
from .core.types import Delegate, SortOrder, integer_text
from .errors import DelegateNotFoundError

logger = structlog.get_logger()

DELEGATES_TABLE = "delegates"


class DelegateRegistry:
    """Delegates keyed by address, ranked by vote weight."""

    def __init__(self, store: StorageEngine):
        self.repo = Repository(store, DELEGATES_TABLE, "address")

    async def upsert_delegate(self, delegate: Union[Delegate, dict]) -> None:
        delegate = Delegate.model_validate(delegate)
        await self.repo.upsert(delegate.model_dump(mode="json"))

    async def has_delegate(self, address: str) -> bool:
        return await self.repo.exists(self.repo.key(address))

    async def get_delegate(self, address: str) -> Delegate:
        row = await self.repo.first(self.repo.key(address))
        if row is None:
            raise DelegateNotFoundError(address)
        return Delegate.model_validate(row)

    async def adjust_vote_weight(self, address: str, delta: Union[int, str]) -> Delegate:
        """Add delta (negative to subtract) to a delegate's vote weight.

        Args:
            address: Delegate address.
            delta: Signed integer amount, usually the voter's balance.

        Returns:
            The delegate with its updated vote weight.

        Raises:
            DelegateNotFoundError: If no delegate exists at address.
            ValueError: If the result would be negative.
        """
        delegate = await self.get_delegate(address)
        updated = int(delegate.vote_weight) + int(delta)
        if updated < 0:
            raise ValueError(
                f"Vote weight of delegate {address} cannot drop below zero "
                f"({delegate.vote_weight} + {delta})"
            )
        delegate.vote_weight = integer_text(updated)
        await self.repo.upsert(delegate.model_dump(mode="json"))
        logger.debug("vote_weight_adjusted", delegate_address=address, delta=str(delta),
                     vote_weight=delegate.vote_weight)
        return delegate

    async def get_delegates_by_vote_weight(
        self, offset: int, limit: int, order: Union[str, SortOrder] = SortOrder.DESC
    ) -> List[Delegate]:
        """Rank delegates by vote weight in the requested direction.

        Ties are always broken by ascending address so peers with identical
        state produce identical rankings.
        """
        rows = await self.repo.scan(
            order_by=(("vote_weight", SortOrder.of(order).value), ("address", "asc")),
            offset=offset,
            limit=limit,
        )
        return [Delegate.model_validate(row) for row in rows]
