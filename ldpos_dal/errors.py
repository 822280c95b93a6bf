"""
Exceptions raised by the ledger data access layer.

Business rule rejections are InvalidActionError instances carrying a
machine readable kind. Storage engine failures are not wrapped here; they
reach the caller as the SQLAlchemy exception that caused them.
"""
from enum import Enum
from typing import Optional


class InvalidActionKind(str, Enum):
    """Sub-kind of a rejected ledger action."""
    ACCOUNT_NOT_FOUND = "AccountNotFound"
    VOTER_ALREADY_VOTED = "VoterAlreadyVoted"
    VOTER_NOT_VOTING = "VoterNotVoting"
    MEMBER_NOT_MULTISIG_CAPABLE = "MemberNotMultisigCapable"
    NESTED_MULTISIG = "NestedMultisig"
    MULTISIG_WALLET_NOT_FOUND = "MultisigWalletNotFound"
    BLOCK_NOT_FOUND = "BlockNotFound"
    TRANSACTION_NOT_FOUND = "TransactionNotFound"
    DELEGATE_NOT_FOUND = "DelegateNotFound"


class LedgerError(Exception):
    """Base class for errors raised by ldpos_dal."""
    pass


class InvalidActionError(LedgerError):
    """An action was rejected because a ledger precondition did not hold."""

    kind: Optional[InvalidActionKind] = None

    def __init__(self, message: str, kind: Optional[InvalidActionKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind
        self.message = message

    @property
    def type(self) -> str:
        return "InvalidActionError"


class AccountNotFoundError(InvalidActionError):
    kind = InvalidActionKind.ACCOUNT_NOT_FOUND

    def __init__(self, address: str, role: str = "Account"):
        self.address = address
        super().__init__(f"{role} {address} did not exist")


class VoterAlreadyVotedError(InvalidActionError):
    kind = InvalidActionKind.VOTER_ALREADY_VOTED

    def __init__(self, voter_address: str, delegate_address: str):
        self.voter_address = voter_address
        self.delegate_address = delegate_address
        super().__init__(
            f"Voter {voter_address} has already voted for delegate {delegate_address}"
        )


class VoterNotVotingError(InvalidActionError):
    kind = InvalidActionKind.VOTER_NOT_VOTING

    def __init__(self, voter_address: str, delegate_address: str):
        self.voter_address = voter_address
        self.delegate_address = delegate_address
        super().__init__(
            f"Voter {voter_address} could not unvote delegate {delegate_address} "
            f"because it was not voting for it"
        )


class MemberNotMultisigCapableError(InvalidActionError):
    kind = InvalidActionKind.MEMBER_NOT_MULTISIG_CAPABLE

    def __init__(self, member_address: str):
        self.member_address = member_address
        super().__init__(
            f"Account {member_address} was not registered for multisig so it "
            f"cannot be a member of a multisig wallet"
        )


class NestedMultisigError(InvalidActionError):
    kind = InvalidActionKind.NESTED_MULTISIG

    def __init__(self, member_address: str):
        self.member_address = member_address
        super().__init__(
            f"Account {member_address} was a multisig wallet so it could not be "
            f"registered as a member of another multisig wallet"
        )


class MultisigWalletNotFoundError(InvalidActionError):
    kind = InvalidActionKind.MULTISIG_WALLET_NOT_FOUND

    def __init__(self, multisig_address: str):
        self.multisig_address = multisig_address
        super().__init__(f"Address {multisig_address} is not registered as a multisig wallet")


class BlockNotFoundError(InvalidActionError):
    kind = InvalidActionKind.BLOCK_NOT_FOUND


class TransactionNotFoundError(InvalidActionError):
    kind = InvalidActionKind.TRANSACTION_NOT_FOUND

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} did not exist")


class DelegateNotFoundError(InvalidActionError):
    kind = InvalidActionKind.DELEGATE_NOT_FOUND

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Delegate {address} did not exist")


class UnknownColumnError(LedgerError, ValueError):
    """A predicate or ordering named a column the table does not expose."""

    def __init__(self, table: str, column: str):
        self.table = table
        self.column = column
        super().__init__(f"Column {column} cannot be queried on table {table}")
