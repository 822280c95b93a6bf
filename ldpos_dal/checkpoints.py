from typing import Optional

from .core.database import StorageEngine
from .core.repository import Repository

STORE_TABLE = "store"


class CheckpointStore:
    """Opaque key/value items for consumer metadata such as the last processed height."""

    def __init__(self, store: StorageEngine):
        self.repo = Repository(store, STORE_TABLE, "key")

    async def save_item(self, key: str, value: Optional[str]) -> None:
        await self.repo.upsert({"key": key, "value": value})

    async def load_item(self, key: str) -> Optional[str]:
        row = await self.repo.first(self.repo.key(key))
        return row["value"] if row else None
