"""Ledger data access layer CLI"""
from .commands import cli

__all__ = ['cli']
