"""Persistence and bookkeeping layer for a delegated proof of stake ledger."""
from .core import StorageEngine
from .dal import LedgerDAL
from .errors import InvalidActionError, InvalidActionKind, LedgerError

__version__ = "0.1.0"

__all__ = ['LedgerDAL', 'StorageEngine', 'InvalidActionError', 'InvalidActionKind', 'LedgerError']
