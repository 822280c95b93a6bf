"""
Storage engine for the ledger data access layer.
Provides the row level contract the ledger components are written against:
insert, upsert, find, update, delete, exists, count and ordered range scans,
on top of a SQLAlchemy engine (SQLite or PostgreSQL).

Statements run on a single worker thread owned by the engine, so a coroutine
suspends for the duration of every store call while calls still reach the
database one at a time and in submission order.
"""
import asyncio
import os
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence

import structlog
from sqlalchemy import Table, create_engine, delete, func, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ..constants import DEFAULT_DATA_DIR
from ..models import Base
from .predicates import NUMERIC_TEXT_COLUMNS, OrderBy, Where, check_sortable

logger = structlog.get_logger()

Row = Dict[str, Any]


def default_database_url() -> str:
    data_dir = os.path.expanduser(DEFAULT_DATA_DIR)
    os.makedirs(data_dir, exist_ok=True)
    return f"sqlite:///{os.path.join(data_dir, 'ledger.db')}"


class StorageEngine:
    """Row store over SQLAlchemy. Every call runs and commits in its own session."""

    def __init__(self, db_url: Optional[str] = None, echo: bool = False):
        """Initialize the storage engine.

        Args:
            db_url: SQLAlchemy database URL. If None, uses the default SQLite database.
            echo: Log emitted SQL through SQLAlchemy.
        """
        if db_url is None:
            db_url = default_database_url()

        engine_options: Dict[str, Any] = {"echo": echo}
        if db_url.startswith("sqlite"):
            # Connections are opened by the caller's thread and used by the worker thread.
            engine_options["connect_args"] = {"check_same_thread": False}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees a new empty database.
            engine_options["poolclass"] = StaticPool

        self.db_url = db_url
        self.engine = create_engine(db_url, **engine_options)
        self.Session = sessionmaker(bind=self.engine)
        self.tables: Dict[str, Table] = dict(Base.metadata.tables)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ldpos-dal-store")
        logger.info("storage_engine_created", dialect=self.engine.dialect.name)

    def migrate_latest(self) -> None:
        """Create any missing tables."""
        Base.metadata.create_all(self.engine)
        logger.info("database_initialized", tables=sorted(self.tables))

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(fn, *args))

    def _table(self, name: str) -> Table:
        try:
            return self.tables[name]
        except KeyError:
            raise ValueError(f"Unknown table {name}") from None

    def _where(self, table: Table, where: Optional[Where]):
        if where is None:
            return None
        if where.table != table.name:
            raise ValueError(f"Predicate for {where.table} used on {table.name}")
        return where.compile(table)

    def _order_clauses(self, table: Table, order_by: OrderBy) -> List[Any]:
        check_sortable(table.name, order_by)
        numeric_text = NUMERIC_TEXT_COLUMNS.get(table.name, frozenset())
        clauses = []
        for column_name, direction in order_by:
            column = table.c[column_name]
            keys = [func.length(column), column] if column_name in numeric_text else [column]
            for key in keys:
                clauses.append(key.desc() if str(direction).lower() == "desc" else key.asc())
        return clauses

    def _execute_sync(self, event: str, table: str, statement, fetch: bool) -> Any:
        with self.Session() as session:
            try:
                result = session.execute(statement)
                value = [dict(row._mapping) for row in result] if fetch else result.rowcount
                session.commit()
                return value
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(event, table=table, error=str(e))
                raise

    def _scalar_sync(self, table: str, statement) -> Any:
        with self.Session() as session:
            try:
                return session.execute(statement).scalar()
            except SQLAlchemyError as e:
                logger.error("storage_read_failed", table=table, error=str(e))
                raise

    async def _execute(self, event: str, table: str, statement, fetch: bool = False) -> Any:
        return await self._run(self._execute_sync, event, table, statement, fetch)

    async def _scalar(self, table: str, statement) -> Any:
        return await self._run(self._scalar_sync, table, statement)

    async def insert(self, table_name: str, row: Row) -> None:
        table = self._table(table_name)
        await self._execute("storage_insert_failed", table_name, insert(table).values(**row))

    async def upsert(self, table_name: str, row: Row, conflict_keys: Sequence[str]) -> None:
        """Insert a row, or update it in place when a row with the same conflict keys exists.

        Args:
            table_name: Table to write to.
            row: Column values.
            conflict_keys: Primary key or unique columns identifying the row.
        """
        table = self._table(table_name)
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            statement = postgresql.insert(table).values(**row)
        elif dialect == "sqlite":
            statement = sqlite.insert(table).values(**row)
        else:
            raise NotImplementedError(f"Upsert is not supported on {dialect}")

        changes = {
            column: statement.excluded[column]
            for column in row
            if column not in conflict_keys
        }
        if changes:
            statement = statement.on_conflict_do_update(index_elements=list(conflict_keys), set_=changes)
        else:
            statement = statement.on_conflict_do_nothing(index_elements=list(conflict_keys))
        await self._execute("storage_upsert_failed", table_name, statement)

    async def find(
        self,
        table_name: str,
        where: Optional[Where] = None,
        order_by: OrderBy = (),
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        """Find matching rows.

        Args:
            table_name: Table to read.
            where: Constraints every returned row satisfies.
            order_by: (column, 'asc' | 'desc') pairs, applied in order.
            offset: Number of leading rows to skip.
            limit: Maximum number of rows.

        Returns:
            Matching rows as dictionaries keyed by column name.
        """
        table = self._table(table_name)
        statement = select(table)
        clause = self._where(table, where)
        if clause is not None:
            statement = statement.where(clause)
        if order_by:
            statement = statement.order_by(*self._order_clauses(table, order_by))
        if offset:
            statement = statement.offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        return await self._execute("storage_find_failed", table_name, statement, fetch=True)

    async def update(self, table_name: str, where: Optional[Where], patch: Row) -> int:
        """Update matching rows.

        Returns:
            Number of rows updated.
        """
        table = self._table(table_name)
        statement = update(table).values(**patch)
        clause = self._where(table, where)
        if clause is not None:
            statement = statement.where(clause)
        return await self._execute("storage_update_failed", table_name, statement)

    async def delete(self, table_name: str, where: Where) -> int:
        """Delete matching rows.

        Returns:
            Number of rows deleted.
        """
        table = self._table(table_name)
        statement = delete(table).where(self._where(table, where))
        return await self._execute("storage_delete_failed", table_name, statement)

    async def count(self, table_name: str, where: Optional[Where] = None) -> int:
        table = self._table(table_name)
        statement = select(func.count()).select_from(table)
        clause = self._where(table, where)
        if clause is not None:
            statement = statement.where(clause)
        return int(await self._scalar(table_name, statement) or 0)

    async def exists(self, table_name: str, where: Optional[Where] = None) -> bool:
        table = self._table(table_name)
        statement = select(table).limit(1)
        clause = self._where(table, where)
        if clause is not None:
            statement = statement.where(clause)
        return bool(await self._execute("storage_find_failed", table_name, statement, fetch=True))

    async def are_all_tables_empty(self) -> bool:
        for name in self.tables:
            if await self.exists(name):
                return False
        return True

    def _truncate_all_sync(self) -> None:
        with self.Session() as session:
            try:
                for table in reversed(Base.metadata.sorted_tables):
                    session.execute(delete(table))
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error("storage_truncate_failed", error=str(e))
                raise

    async def truncate_all(self) -> None:
        """Delete every row from every table."""
        await self._run(self._truncate_all_sync)
        logger.warning("all_tables_truncated")

    def close(self) -> None:
        """Stop the worker thread and release every pooled connection."""
        self._executor.shutdown(wait=True)
        self.engine.dispose()

    async def dispose(self) -> None:
        self.close()
        logger.info("storage_engine_disposed")
