from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import DEFAULT_NETWORK_SYMBOL, ENV_PREFIX, ID_BYTE_SIZE


class LedgerSettings(BaseSettings):
    """Configuration for the ledger data access layer."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, env_file=".env", extra="ignore")

    # Database Configuration
    DATABASE_URL: Optional[str] = Field(
        default=None,
        description="SQLAlchemy database URL; defaults to a SQLite file under ~/.ldpos/data"
    )
    SQL_ECHO: bool = Field(
        default=False,
        description="Log emitted SQL statements"
    )

    # Ledger Configuration
    NETWORK_SYMBOL: str = Field(
        default=DEFAULT_NETWORK_SYMBOL,
        description="Network symbol used when the genesis document does not name one"
    )
    ID_BYTE_SIZE: int = Field(
        default=ID_BYTE_SIZE,
        gt=0,
        description="Size in bytes of generated genesis ballot ids"
    )

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level"
    )
