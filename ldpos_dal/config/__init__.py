"""Configuration for the ledger data access layer."""
from .settings import LedgerSettings
from .logging import configure_logging, log_error

__all__ = ['LedgerSettings', 'configure_logging', 'log_error']
