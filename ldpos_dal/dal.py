"""
LedgerDAL: the data access layer consumed by a ledger service.

All components share one explicitly supplied StorageEngine. The layer takes
no locks and opens no multi-statement transactions; it assumes a single
block-processing pipeline applies mutations one at a time.
"""
from typing import Any, Dict, List, Optional, Union

import structlog

from .accounts import AccountStore
from .archive import BlockArchive
from .ballots import BallotLedger
from .bootstrap import GenesisLoader
from .checkpoints import CheckpointStore
from .config import LedgerSettings
from .core.database import StorageEngine
from .core.types import (
    Account, Ballot, Delegate, Genesis, SignedBlock, SignedTransaction, SimplifiedBlock, SortOrder, Transaction,
)
from .delegates import DelegateRegistry
from .multisig import MultisigRegistry

logger = structlog.get_logger()


class LedgerDAL:
    """Accounts, delegates, ballots, multisig wallets and chain history over one store."""

    def __init__(self, settings: Optional[LedgerSettings] = None, store: Optional[StorageEngine] = None):
        """Build every component around a single store handle.

        Args:
            settings: Configuration; read from the environment when omitted.
            store: Storage engine to use; built from settings.DATABASE_URL when omitted.
        """
        self.settings = settings or LedgerSettings()
        self.store = store or StorageEngine(self.settings.DATABASE_URL, echo=self.settings.SQL_ECHO)
        self.network_symbol = self.settings.NETWORK_SYMBOL

        self.accounts = AccountStore(self.store)
        self.delegates = DelegateRegistry(self.store)
        self.ballots = BallotLedger(self.store)
        self.multisig = MultisigRegistry(self.store, self.accounts)
        self.archive = BlockArchive(self.store)
        self.checkpoints = CheckpointStore(self.store)
        self.genesis_loader = GenesisLoader(
            self.store, self.accounts, self.delegates, self.ballots, self.multisig,
            id_byte_size=self.settings.ID_BYTE_SIZE,
        )

    async def init(self, genesis: Union[Genesis, Dict[str, Any]]) -> bool:
        """Create the schema and seed the store from genesis if it is empty.

        Returns:
            True if genesis data was written.
        """
        genesis = Genesis.model_validate(genesis)
        self.store.migrate_latest()
        self.network_symbol = genesis.network_symbol or self.settings.NETWORK_SYMBOL
        seeded = await self.genesis_loader.load(genesis)
        logger.info("ledger_dal_initialized", network_symbol=self.network_symbol, seeded=seeded)
        return seeded

    async def get_network_symbol(self) -> str:
        return self.network_symbol

    # Checkpoints

    async def save_item(self, key: str, value: Optional[str]) -> None:
        await self.checkpoints.save_item(key, value)

    async def load_item(self, key: str) -> Optional[str]:
        return await self.checkpoints.load_item(key)

    # Accounts

    async def upsert_account(self, account: Union[Account, Dict[str, Any]]) -> None:
        await self.accounts.upsert_account(account)

    async def has_account(self, wallet_address: str) -> bool:
        return await self.accounts.has_account(wallet_address)

    async def get_account(self, wallet_address: str) -> Account:
        return await self.accounts.get_account(wallet_address)

    async def get_accounts_by_balance(self, offset: int, limit: int, order: Union[str, SortOrder]) -> List[Account]:
        return await self.accounts.get_accounts_by_balance(offset, limit, order)

    # Ballots

    async def get_account_votes(self, voter_address: str) -> List[str]:
        return await self.ballots.get_account_votes(voter_address)

    async def has_vote_for_delegate(self, voter_address: str, delegate_address: str) -> bool:
        return await self.ballots.has_vote_for_delegate(voter_address, delegate_address)

    async def vote(self, ballot: Union[Ballot, Dict[str, Any]]) -> None:
        """Record a vote ballot.

        The caller must also add the voter's balance to the delegate's vote
        weight (adjust_vote_weight) in the same commit group.
        """
        await self.ballots.vote(ballot)

    async def unvote(self, ballot: Union[Ballot, Dict[str, Any]]) -> None:
        """Record an unvote ballot.

        The caller must also subtract the voter's balance from the delegate's
        vote weight (adjust_vote_weight) in the same commit group.
        """
        await self.ballots.unvote(ballot)

    # Multisig wallets

    async def register_multisig_wallet(
        self, multisig_address: str, member_addresses: List[str], required_signature_count: int
    ) -> None:
        await self.multisig.register_multisig_wallet(multisig_address, member_addresses, required_signature_count)

    async def get_multisig_wallet_members(self, multisig_address: str) -> List[str]:
        return await self.multisig.get_multisig_wallet_members(multisig_address)

    # Blocks

    async def upsert_block(self, block: Union[SignedBlock, Dict[str, Any]], synched: bool = False) -> None:
        await self.archive.upsert_block(block, synched)

    async def has_block(self, block_id: str) -> bool:
        return await self.archive.has_block(block_id)

    async def get_block(self, block_id: str) -> SimplifiedBlock:
        return await self.archive.get_block(block_id)

    async def get_signed_block(self, block_id: str) -> SignedBlock:
        return await self.archive.get_signed_block(block_id)

    async def get_block_at_height(self, height: int) -> SimplifiedBlock:
        return await self.archive.get_block_at_height(height)

    async def get_signed_block_at_height(self, height: int) -> SignedBlock:
        return await self.archive.get_signed_block_at_height(height)

    async def get_blocks_from_height(self, height: int, limit: int) -> List[SimplifiedBlock]:
        return await self.archive.get_blocks_from_height(height, limit)

    async def get_signed_blocks_from_height(self, height: int, limit: int) -> List[SignedBlock]:
        return await self.archive.get_signed_blocks_from_height(height, limit)

    async def get_blocks_between_heights(self, from_height: int, to_height: int, limit: int) -> List[SimplifiedBlock]:
        return await self.archive.get_blocks_between_heights(from_height, to_height, limit)

    async def get_blocks_by_timestamp(self, offset: int, limit: int, order: Union[str, SortOrder]) -> List[SimplifiedBlock]:
        return await self.archive.get_blocks_by_timestamp(offset, limit, order)

    async def get_last_block_at_timestamp(self, timestamp: int) -> SimplifiedBlock:
        return await self.archive.get_last_block_at_timestamp(timestamp)

    async def get_last_block(self) -> SimplifiedBlock:
        return await self.archive.get_last_block()

    async def get_max_block_height(self) -> int:
        return await self.archive.get_max_block_height()

    # Transactions

    async def has_transaction(self, transaction_id: str) -> bool:
        return await self.archive.has_transaction(transaction_id)

    async def get_transaction(self, transaction_id: str) -> Transaction:
        return await self.archive.get_transaction(transaction_id)

    async def get_transactions_by_timestamp(self, offset: int, limit: int, order: Union[str, SortOrder]) -> List[Transaction]:
        return await self.archive.get_transactions_by_timestamp(offset, limit, order)

    async def get_transactions_from_block(
        self, block_id: str, offset: Optional[int] = None, limit: Optional[int] = None
    ) -> List[Transaction]:
        return await self.archive.get_transactions_from_block(block_id, offset, limit)

    async def get_sanitized_transactions_from_block(self, block_id: str) -> List[SignedTransaction]:
        return await self.archive.get_sanitized_transactions_from_block(block_id)

    async def get_account_transactions(
        self, wallet_address: str, from_timestamp: Optional[int], offset: int, limit: int, order: Union[str, SortOrder]
    ) -> List[Transaction]:
        return await self.archive.get_account_transactions(wallet_address, from_timestamp, offset, limit, order)

    async def get_inbound_transactions(
        self, wallet_address: str, from_timestamp: Optional[int], offset: int, limit: int, order: Union[str, SortOrder]
    ) -> List[Transaction]:
        return await self.archive.get_inbound_transactions(wallet_address, from_timestamp, offset, limit, order)

    async def get_outbound_transactions(
        self, wallet_address: str, from_timestamp: Optional[int], offset: int, limit: int, order: Union[str, SortOrder]
    ) -> List[Transaction]:
        return await self.archive.get_outbound_transactions(wallet_address, from_timestamp, offset, limit, order)

    async def get_inbound_transactions_from_block(self, wallet_address: str, block_id: str) -> List[Transaction]:
        return await self.archive.get_inbound_transactions_from_block(wallet_address, block_id)

    async def get_outbound_transactions_from_block(self, wallet_address: str, block_id: str) -> List[Transaction]:
        return await self.archive.get_outbound_transactions_from_block(wallet_address, block_id)

    # Delegates

    async def upsert_delegate(self, delegate: Union[Delegate, Dict[str, Any]]) -> None:
        await self.delegates.upsert_delegate(delegate)

    async def has_delegate(self, wallet_address: str) -> bool:
        return await self.delegates.has_delegate(wallet_address)

    async def get_delegate(self, wallet_address: str) -> Delegate:
        return await self.delegates.get_delegate(wallet_address)

    async def adjust_vote_weight(self, delegate_address: str, delta: Union[int, str]) -> Delegate:
        return await self.delegates.adjust_vote_weight(delegate_address, delta)

    async def get_delegates_by_vote_weight(self, offset: int, limit: int, order: Union[str, SortOrder]) -> List[Delegate]:
        return await self.delegates.get_delegates_by_vote_weight(offset, limit, order)

    # Maintenance

    async def clear_all_data(self) -> None:
        """Delete every row from every table. Irreversible."""
        await self.store.truncate_all()

    async def destroy(self) -> None:
        await self.store.dispose()
