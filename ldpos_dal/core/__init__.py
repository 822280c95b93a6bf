"""
Core modules for the ledger data access layer: storage engine, predicate
builder, repositories and record types. Nothing here imports the ledger
components built on top of it.
"""
from .types import (
    AccountType,
    BallotType,
    SortOrder,
    Account,
    Delegate,
    Ballot,
    SignedTransaction,
    Transaction,
    SimplifiedBlock,
    SignedBlock,
    Genesis,
)
from .database import StorageEngine
from .predicates import Where
from .repository import Repository

__all__ = [
    'AccountType',
    'BallotType',
    'SortOrder',
    'Account',
    'Delegate',
    'Ballot',
    'SignedTransaction',
    'Transaction',
    'SimplifiedBlock',
    'SignedBlock',
    'Genesis',
    'StorageEngine',
    'Where',
    'Repository',
]
