"""
Genesis bootstrap.

Seeds accounts, delegates, genesis votes and multisig wallets exactly once:
nothing is written unless every table of the store is empty.
"""
import asyncio
import secrets
from typing import Any, Dict, Union

import structlog

from .accounts import AccountStore
from .ballots import BallotLedger
from .constants import ID_BYTE_SIZE
from .core.database import StorageEngine
from .core.types import Ballot, Delegate, Genesis, GenesisAccount
from .delegates import DelegateRegistry
from .multisig import MultisigRegistry

logger = structlog.get_logger()


class GenesisLoader:

    def __init__(
        self,
        store: StorageEngine,
        accounts: AccountStore,
        delegates: DelegateRegistry,
        ballots: BallotLedger,
        multisig: MultisigRegistry,
        id_byte_size: int = ID_BYTE_SIZE,
    ):
        self.store = store
        self.accounts = accounts
        self.delegates = delegates
        self.ballots = ballots
        self.multisig = multisig
        self.id_byte_size = id_byte_size

    def new_ballot_id(self) -> str:
        return secrets.token_hex(self.id_byte_size)

    async def _seed_account(self, genesis_account: GenesisAccount) -> None:
        account = genesis_account.to_account()
        await self.accounts.upsert_account(account)
        if account.forging_public_key:
            await self.delegates.upsert_delegate(Delegate(address=account.address, vote_weight="0"))

    async def _seed_votes(self, genesis_account: GenesisAccount) -> None:
        for delegate_address in genesis_account.votes:
            await self.ballots.vote(Ballot(
                id=self.new_ballot_id(),
                voter_address=genesis_account.address,
                delegate_address=delegate_address,
            ))
            await self.delegates.adjust_vote_weight(delegate_address, int(genesis_account.balance))

    async def load(self, genesis: Union[Genesis, Dict[str, Any]]) -> bool:
        """Apply a genesis document to an empty store.

        Returns:
            True if the store was seeded, False if it already held data.
        """
        genesis = Genesis.model_validate(genesis)
        if not await self.store.are_all_tables_empty():
            logger.info("genesis_bootstrap_skipped", reason="store_not_empty")
            return False

        # Accounts are independent of each other.
        await asyncio.gather(*(self._seed_account(account) for account in genesis.accounts))

        # Each vote reads and rewrites a shared delegate's vote weight, so votes go one at a time.
        for genesis_account in genesis.accounts:
            await self._seed_votes(genesis_account)

        await asyncio.gather(*(
            self.multisig.register_multisig_wallet(
                wallet.address, wallet.members, wallet.required_signature_count
            )
            for wallet in genesis.multisig_wallets
        ))

        logger.info("genesis_bootstrap_complete",
                    accounts=len(genesis.accounts),
                    votes=sum(len(account.votes) for account in genesis.accounts),
                    multisig_wallets=len(genesis.multisig_wallets))
        return True
