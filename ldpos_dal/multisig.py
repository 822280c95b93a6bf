"""
Multisig wallet registration and membership lookup.

Registration validates every member before mutating anything, then writes
the wallet account and the membership rows as separate store calls. There is
no enclosing transaction: a crash between the two leaves an account of type
multisig with zero or partial memberships. Membership rows are the only
signal that an address is a multisig wallet, and re-running registration
repairs the state because every write is an upsert.
"""
from typing import List

import structlog

from .accounts import AccountStore
from .core.database import StorageEngine
from .core.repository import Repository
from .core.types import AccountType
from .errors import MemberNotMultisigCapableError, MultisigWalletNotFoundError, NestedMultisigError

logger = structlog.get_logger()

MEMBERSHIPS_TABLE = "multisig_memberships"


class MultisigRegistry:

    def __init__(self, store: StorageEngine, accounts: AccountStore):
        self.repo = Repository(store, MEMBERSHIPS_TABLE, "multisig_account_address", "member_address")
        self.accounts = accounts

    async def register_multisig_wallet(
        self, multisig_address: str, member_addresses: List[str], required_signature_count: int
    ) -> None:
        """Turn an existing account into a multisig wallet with the given members.

        Args:
            multisig_address: Address of the wallet account.
            member_addresses: Addresses of the member accounts.
            required_signature_count: Number of member signatures needed to authorize.

        Raises:
            AccountNotFoundError: If the wallet or a member account does not exist.
            MemberNotMultisigCapableError: If a member has no multisig key material.
            NestedMultisigError: If a member is itself a multisig wallet or is the wallet.
            ValueError: If there are no members or the threshold is not between 1 and
                the number of members.
        """
        if not member_addresses:
            raise ValueError(f"Multisig wallet {multisig_address} needs at least one member")
        if (
            isinstance(required_signature_count, bool)
            or not isinstance(required_signature_count, int)
            or not 1 <= required_signature_count <= len(member_addresses)
        ):
            raise ValueError(
                f"Required signature count of multisig wallet {multisig_address} must be an integer "
                f"between 1 and {len(member_addresses)}, got {required_signature_count!r}"
            )

        multisig_account = await self.accounts.get_account(multisig_address)
        for member_address in member_addresses:
            if member_address == multisig_address:
                logger.warning("multisig_registration_rejected",
                               multisig_address=multisig_address,
                               member_address=member_address,
                               reason="self_membership")
                raise NestedMultisigError(member_address)
            member_account = await self.accounts.get_account(member_address)
            if not member_account.multisig_public_key:
                logger.warning("multisig_registration_rejected",
                               multisig_address=multisig_address,
                               member_address=member_address,
                               reason="member_not_multisig_capable")
                raise MemberNotMultisigCapableError(member_address)
            if member_account.type == AccountType.MULTISIG:
                logger.warning("multisig_registration_rejected",
                               multisig_address=multisig_address,
                               member_address=member_address,
                               reason="nested_multisig")
                raise NestedMultisigError(member_address)

        multisig_account.type = AccountType.MULTISIG
        multisig_account.required_signature_count = required_signature_count
        await self.accounts.upsert_account(multisig_account)

        for member_address in member_addresses:
            await self.repo.upsert({
                "multisig_account_address": multisig_address,
                "member_address": member_address,
            })

        logger.info("multisig_wallet_registered",
                    multisig_address=multisig_address,
                    member_count=len(member_addresses),
                    required_signature_count=required_signature_count)

    async def get_multisig_wallet_members(self, multisig_address: str) -> List[str]:
        rows = await self.repo.get(self.repo.key(multisig_address), order_by=(("member_address", "asc"),))
        if not rows:
            raise MultisigWalletNotFoundError(multisig_address)
        return [row["member_address"] for row in rows]
