"""Constants for the ledger data access layer."""

DEFAULT_NETWORK_SYMBOL = "ldpos"
ID_BYTE_SIZE = 20  # random genesis ballot ids, hex encoded
DEFAULT_DATA_DIR = "~/.ldpos/data"
ENV_PREFIX = "LDPOS_DAL_"
