"""
Block and transaction archive.

Blocks are stored as a scalar header row plus one row per transaction.
Block and transaction signature sets are variable shaped and are stored as
opaque blobs; member address lists are stored as a delimited scalar. Each
transaction row records the block it belongs to and its position in the
block's transaction list, which is the canonical order within the block.
"""
from typing import Any, Dict, List, Optional, Union

import structlog

from .codec import decode_member_addresses, decode_signatures, encode_member_addresses, encode_signatures
from .core.database import Row, StorageEngine
from .core.predicates import Where
from .core.repository import Repository
from .core.types import SignedBlock, SignedTransaction, SimplifiedBlock, SortOrder, Transaction
from .errors import BlockNotFoundError, TransactionNotFoundError

logger = structlog.get_logger()

BLOCKS_TABLE = "blocks"
TRANSACTIONS_TABLE = "transactions"

_TRANSACTION_FIELDS = frozenset(SignedTransaction.model_fields)
_BLOCK_LINKAGE_KEYS = frozenset({"block_id", "index_in_block", "blockId", "indexInBlock"})


def transaction_to_row(transaction: SignedTransaction, block_id: str, index_in_block: int) -> Row:
    data = transaction.model_dump(mode="json")
    row = {field: data.get(field) for field in _TRANSACTION_FIELDS}
    payload = {
        key: value for key, value in data.items()
        if key not in _TRANSACTION_FIELDS and key not in _BLOCK_LINKAGE_KEYS
    }
    row["signatures"] = encode_signatures(transaction.signatures)
    row["member_addresses"] = encode_member_addresses(transaction.member_addresses)
    row["payload"] = payload or None
    row["block_id"] = block_id
    row["index_in_block"] = index_in_block
    return row


def transaction_from_row(row: Row) -> Transaction:
    data = dict(row)
    payload = data.pop("payload", None) or {}
    data["signatures"] = decode_signatures(data.get("signatures"))
    data["member_addresses"] = decode_member_addresses(data.get("member_addresses"))
    return Transaction.model_validate({**payload, **data})


def block_to_row(block: SignedBlock, synched: bool) -> Row:
    row = block.model_dump(mode="json", exclude={"transactions", "signatures", "synched"})
    if row.get("number_of_transactions") is None:
        row["number_of_transactions"] = len(block.transactions)
    row["signatures"] = encode_signatures(block.signatures)
    row["synched"] = bool(synched)
    return row


def simplify_block(row: Row) -> SimplifiedBlock:
    header = {key: value for key, value in row.items() if key not in ("forger_signature", "signatures")}
    return SimplifiedBlock.model_validate(header)


def _timestamp_cursor(where: Where, from_timestamp: Optional[int], order: SortOrder) -> Where:
    if from_timestamp is None:
        return where
    if order == SortOrder.DESC:
        return where.lte("timestamp", from_timestamp)
    return where.gte("timestamp", from_timestamp)


class BlockArchive:
    """Ordered, append-mostly chain history."""

    def __init__(self, store: StorageEngine):
        self.blocks = Repository(store, BLOCKS_TABLE, "id")
        self.transactions = Repository(store, TRANSACTIONS_TABLE, "id")

    # Blocks

    async def upsert_block(self, block: Union[SignedBlock, Dict[str, Any]], synched: bool = False) -> None:
        """Store a block and its transactions.

        The block row is keyed by height, so storing a different block at an
        existing height replaces it. The transactions of the block previously
        stored at that height are removed first; transaction rows are keyed by id.
        """
        block = SignedBlock.model_validate(block)
        replaced = await self.blocks.first(self.blocks.where(height=block.height))
        if replaced is not None:
            removed = await self.transactions.delete(self.transactions.where(block_id=replaced["id"]))
            if replaced["id"] != block.id:
                logger.info("block_replaced",
                            height=block.height,
                            replaced_block_id=replaced["id"],
                            block_id=block.id,
                            removed_transactions=removed)
        await self.blocks.upsert(block_to_row(block, synched), "height")
        for index, transaction in enumerate(block.transactions):
            await self.transactions.upsert(transaction_to_row(transaction, block.id, index))
        logger.info("block_upserted",
                    block_id=block.id,
                    height=block.height,
                    transaction_count=len(block.transactions),
                    synched=bool(synched))

    async def _signed(self, row: Row) -> SignedBlock:
        transactions = await self.get_sanitized_transactions_from_block(row["id"])
        return SignedBlock.model_validate({
            **row,
            "signatures": decode_signatures(row.get("signatures")),
            "transactions": transactions,
        })

    async def _block_row(self, where: Where, description: str) -> Row:
        row = await self.blocks.first(where)
        if row is None:
            raise BlockNotFoundError(f"No block existed {description}")
        return row

    async def has_block(self, block_id: str) -> bool:
        return await self.blocks.exists(self.blocks.key(block_id))

    async def get_block(self, block_id: str) -> SimplifiedBlock:
        return simplify_block(await self._block_row(self.blocks.key(block_id), f"with ID {block_id}"))

    async def get_signed_block(self, block_id: str) -> SignedBlock:
        return await self._signed(await self._block_row(self.blocks.key(block_id), f"with ID {block_id}"))

    async def get_block_at_height(self, height: int) -> SimplifiedBlock:
        row = await self._block_row(self.blocks.where(height=height), f"at height {height}")
        return simplify_block(row)

    async def get_signed_block_at_height(self, height: int) -> SignedBlock:
        row = await self._block_row(self.blocks.where(height=height), f"at height {height}")
        return await self._signed(row)

    async def _rows_from_height(self, height: int, limit: int) -> List[Row]:
        height = max(height, 1)
        return await self.blocks.scan(
            Where(BLOCKS_TABLE).gte("height", height),
            order_by=(("height", "asc"),),
            limit=limit,
        )

    async def get_blocks_from_height(self, height: int, limit: int) -> List[SimplifiedBlock]:
        return [simplify_block(row) for row in await self._rows_from_height(height, limit)]

    async def get_signed_blocks_from_height(self, height: int, limit: int) -> List[SignedBlock]:
        return [await self._signed(row) for row in await self._rows_from_height(height, limit)]

    async def get_blocks_between_heights(self, from_height: int, to_height: int, limit: int) -> List[SimplifiedBlock]:
        """Blocks with from_height < height <= to_height, ascending."""
        rows = await self.blocks.scan(
            Where(BLOCKS_TABLE).gt("height", from_height).lte("height", to_height),
            order_by=(("height", "asc"),),
            limit=limit,
        )
        return [simplify_block(row) for row in rows]

    async def get_blocks_by_timestamp(
        self, offset: int, limit: int, order: Union[str, SortOrder] = SortOrder.ASC
    ) -> List[SimplifiedBlock]:
        rows = await self.blocks.scan(
            order_by=(("timestamp", SortOrder.of(order).value), ("height", "asc")),
            offset=offset,
            limit=limit,
        )
        return [simplify_block(row) for row in rows]

    async def get_last_block_at_timestamp(self, timestamp: int) -> SimplifiedBlock:
        rows = await self.blocks.scan(
            Where(BLOCKS_TABLE).lte("timestamp", timestamp),
            order_by=(("timestamp", "desc"), ("height", "desc")),
            limit=1,
        )
        if not rows:
            raise BlockNotFoundError(
                f"No block existed with timestamp less than or equal to {timestamp}"
            )
        return simplify_block(rows[0])

    async def get_max_block_height(self) -> int:
        """Chain tip height, derived from the number of stored blocks."""
        return await self.blocks.count()

    async def get_last_block(self) -> SimplifiedBlock:
        rows = await self.blocks.scan(order_by=(("height", "desc"),), limit=1)
        if not rows:
            raise BlockNotFoundError("No block existed in the archive")
        return simplify_block(rows[0])

    # Transactions

    async def has_transaction(self, transaction_id: str) -> bool:
        return await self.transactions.exists(self.transactions.key(transaction_id))

    async def get_transaction(self, transaction_id: str) -> Transaction:
        row = await self.transactions.first(self.transactions.key(transaction_id))
        if row is None:
            raise TransactionNotFoundError(transaction_id)
        return transaction_from_row(row)

    async def get_transactions_by_timestamp(
        self, offset: int, limit: int, order: Union[str, SortOrder] = SortOrder.ASC
    ) -> List[Transaction]:
        rows = await self.transactions.scan(
            order_by=(("timestamp", SortOrder.of(order).value), ("id", "asc")),
            offset=offset,
            limit=limit,
        )
        return [transaction_from_row(row) for row in rows]

    async def get_transactions_from_block(
        self, block_id: str, offset: Optional[int] = None, limit: Optional[int] = None
    ) -> List[Transaction]:
        """Transactions of a block in block order, starting at index offset."""
        where = Where(TRANSACTIONS_TABLE).eq("block_id", block_id).gte("index_in_block", offset or 0)
        rows = await self.transactions.scan(where, order_by=(("index_in_block", "asc"),), limit=limit)
        return [transaction_from_row(row) for row in rows]

    async def get_sanitized_transactions_from_block(self, block_id: str) -> List[SignedTransaction]:
        return [transaction.sanitized() for transaction in await self.get_transactions_from_block(block_id)]

    async def _directional(
        self,
        where: Where,
        from_timestamp: Optional[int],
        offset: int,
        limit: int,
        order: Union[str, SortOrder],
    ) -> List[Transaction]:
        order = SortOrder.of(order)
        rows = await self.transactions.scan(
            _timestamp_cursor(where, from_timestamp, order),
            order_by=(("timestamp", order.value), ("id", "asc")),
            offset=offset,
            limit=limit,
        )
        return [transaction_from_row(row) for row in rows]

    async def get_account_transactions(
        self,
        wallet_address: str,
        from_timestamp: Optional[int] = None,
        offset: int = 0,
        limit: int = 100,
        order: Union[str, SortOrder] = SortOrder.DESC,
    ) -> List[Transaction]:
        """Transactions sent or received by an address.

        from_timestamp is a pagination cursor: descending pages keep
        timestamps <= cursor, ascending pages keep timestamps >= cursor.
        """
        where = Where(TRANSACTIONS_TABLE).either(
            Where(TRANSACTIONS_TABLE).eq("recipient_address", wallet_address),
            Where(TRANSACTIONS_TABLE).eq("sender_address", wallet_address),
        )
        return await self._directional(where, from_timestamp, offset, limit, order)

    async def get_inbound_transactions(
        self,
        wallet_address: str,
        from_timestamp: Optional[int] = None,
        offset: int = 0,
        limit: int = 100,
        order: Union[str, SortOrder] = SortOrder.DESC,
    ) -> List[Transaction]:
        where = Where(TRANSACTIONS_TABLE).eq("recipient_address", wallet_address)
        return await self._directional(where, from_timestamp, offset, limit, order)

    async def get_outbound_transactions(
        self,
        wallet_address: str,
        from_timestamp: Optional[int] = None,
        offset: int = 0,
        limit: int = 100,
        order: Union[str, SortOrder] = SortOrder.DESC,
    ) -> List[Transaction]:
        where = Where(TRANSACTIONS_TABLE).eq("sender_address", wallet_address)
        return await self._directional(where, from_timestamp, offset, limit, order)

    async def get_inbound_transactions_from_block(self, wallet_address: str, block_id: str) -> List[Transaction]:
        rows = await self.transactions.get(
            self.transactions.where(recipient_address=wallet_address, block_id=block_id),
            order_by=(("index_in_block", "asc"),),
        )
        return [transaction_from_row(row) for row in rows]

    async def get_outbound_transactions_from_block(self, wallet_address: str, block_id: str) -> List[Transaction]:
        rows = await self.transactions.get(
            self.transactions.where(sender_address=wallet_address, block_id=block_id),
            order_by=(("index_in_block", "asc"),),
        )
        return [transaction_from_row(row) for row in rows]
