"""SQLite item store adapter.

Implements ContextProviderPort using SQLite with aiosqlite for async access.
Each session borrows a pooled connection and runs inside the implicit
transaction sqlite3 opens on the first write; closing the session rolls
back anything that was not committed.
"""

import asyncio
import dataclasses
import logging
from abc import abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from decimal import Decimal
from pathlib import Path
from typing import Any

import aiosqlite

from stockroom.core.errors import (
    CommitFailedError,
    EntityNotFoundError,
    StoreUnavailableError,
)
from stockroom.core.models import Category, Item
from stockroom.core.ports import (
    ContextProviderPort,
    EntitySetPort,
    EntityT,
    StoreSessionPort,
)

logger = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS categories (
        category_id INTEGER PRIMARY KEY AUTOINCREMENT,
        category_name TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS items (
        item_id INTEGER PRIMARY KEY AUTOINCREMENT,
        item_name TEXT NOT NULL,
        item_description TEXT NOT NULL DEFAULT '',
        item_price TEXT NOT NULL,
        available_quantity INTEGER NOT NULL DEFAULT 0,
        category_id INTEGER REFERENCES categories(category_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_items_category ON items(category_id)",
)


class _SQLiteEntitySet(EntitySetPort[EntityT]):
    """Shared SQL plumbing for the item and category sets."""

    entity_name: str
    table: str
    id_column: str
    columns: tuple[str, ...]

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def _execute(
        self, sql: str, params: Sequence[Any] = ()
    ) -> aiosqlite.Cursor:
        """Run a statement, translating driver errors.

        Raises:
            ValueError: If the statement violates a store constraint.
            StoreUnavailableError: For any other driver failure.
        """
        try:
            return await self._conn.execute(sql, params)
        except aiosqlite.IntegrityError as e:
            raise ValueError(f"{self.entity_name} violates a store constraint: {e}") from e
        except aiosqlite.Error as e:
            raise StoreUnavailableError(f"SQLite error on {self.table}: {e}") from e

    async def _fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[EntityT]:
        cursor = await self._execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_entity(row) for row in rows]

    def _select(self) -> str:
        return f"SELECT {self.id_column}, {', '.join(self.columns)} FROM {self.table}"

    async def find(self, entity_id: int) -> EntityT | None:
        cursor = await self._execute(
            f"{self._select()} WHERE {self.id_column} = ?", (entity_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_entity(row)

    async def page(self, offset: int, limit: int) -> list[EntityT]:
        return await self._fetchall(
            f"{self._select()} ORDER BY {self.id_column} LIMIT ? OFFSET ?",
            (limit, offset),
        )

    async def count(self) -> int:
        cursor = await self._execute(f"SELECT COUNT(*) FROM {self.table}")
        return (await cursor.fetchone())[0]

    async def all(self) -> list[EntityT]:
        return await self._fetchall(f"{self._select()} ORDER BY {self.id_column}")

    async def _insert(self, values: Sequence[Any]) -> int:
        placeholders = ", ".join("?" for _ in self.columns)
        cursor = await self._execute(
            f"INSERT INTO {self.table} ({', '.join(self.columns)}) VALUES ({placeholders})",
            values,
        )
        return cursor.lastrowid

    async def _update(self, entity_id: int | None, values: Sequence[Any]) -> None:
        assignments = ", ".join(f"{column} = ?" for column in self.columns)
        cursor = await self._execute(
            f"UPDATE {self.table} SET {assignments} WHERE {self.id_column} = ?",
            (*values, entity_id),
        )
        if cursor.rowcount == 0:
            raise EntityNotFoundError(self.entity_name, entity_id)

    async def _delete(self, entity_id: int | None) -> None:
        await self._execute(
            f"DELETE FROM {self.table} WHERE {self.id_column} = ?", (entity_id,)
        )

    @abstractmethod
    def _row_to_entity(self, row: tuple[Any, ...]) -> EntityT:
        """Build an entity from a row in column order."""


class SQLiteItemSet(_SQLiteEntitySet[Item]):
    """Item collection backed by the items table."""

    entity_name = "Item"
    table = "items"
    id_column = "item_id"
    columns = (
        "item_name",
        "item_description",
        "item_price",
        "available_quantity",
        "category_id",
    )

    async def add(self, entity: Item) -> Item:
        item_id = await self._insert(self._values(entity))
        return dataclasses.replace(entity, item_id=item_id)

    async def update(self, entity: Item) -> None:
        await self._update(entity.item_id, self._values(entity))

    async def remove(self, entity: Item) -> None:
        await self._delete(entity.item_id)

    @staticmethod
    def _values(item: Item) -> tuple[Any, ...]:
        # Prices are stored as text to keep Decimal precision.
        return (
            item.item_name,
            item.item_description,
            str(item.item_price),
            item.available_quantity,
            item.category_id,
        )

    def _row_to_entity(self, row: tuple[Any, ...]) -> Item:
        """Convert a database row to an Item.

        Raises:
            ValueError: If the row holds data that violates Item invariants.
        """
        item_id, name, description, price, quantity, category_id = row
        try:
            return Item(
                item_id=item_id,
                item_name=name,
                item_description=description,
                item_price=Decimal(price),
                available_quantity=quantity,
                category_id=category_id,
            )
        except (ValueError, ArithmeticError) as e:
            logger.error(f"Failed to parse item row {item_id}: {e}")
            raise ValueError(f"Row parsing failed for item {item_id}: {e}") from e


class SQLiteCategorySet(_SQLiteEntitySet[Category]):
    """Category collection backed by the categories table."""

    entity_name = "Category"
    table = "categories"
    id_column = "category_id"
    columns = ("category_name",)

    async def add(self, entity: Category) -> Category:
        category_id = await self._insert((entity.category_name,))
        return dataclasses.replace(entity, category_id=category_id)

    async def update(self, entity: Category) -> None:
        await self._update(entity.category_id, (entity.category_name,))

    async def remove(self, entity: Category) -> None:
        await self._delete(entity.category_id)

    def _row_to_entity(self, row: tuple[Any, ...]) -> Category:
        category_id, name = row
        return Category(category_id=category_id, category_name=name)


class SQLiteStoreSession(StoreSessionPort):
    """One unit of work on a borrowed SQLite connection."""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        release: Callable[[aiosqlite.Connection, bool], Awaitable[None]],
    ):
        self._conn = conn
        self._release = release
        self._items = SQLiteItemSet(conn)
        self._categories = SQLiteCategorySet(conn)
        self._closed = False

    @property
    def items(self) -> SQLiteItemSet:
        return self._items

    @property
    def categories(self) -> SQLiteCategorySet:
        return self._categories

    async def commit(self) -> None:
        try:
            await self._conn.commit()
        except aiosqlite.Error as e:
            raise CommitFailedError(f"SQLite commit failed: {e}") from e

    async def close(self) -> None:
        """Roll back uncommitted work and hand the connection back."""
        if self._closed:
            return
        self._closed = True

        healthy = True
        try:
            await self._conn.rollback()
        except aiosqlite.Error as e:
            logger.warning(f"Rollback on session close failed: {e}")
            healthy = False
        await self._release(self._conn, healthy)


class SQLiteContextProvider(ContextProviderPort):
    """SQLite-backed context provider with connection pooling and async access."""

    def __init__(self, db_path: str, pool_size: int = 5):
        """Initialize SQLite provider with connection pooling.

        Args:
            db_path: Path to SQLite database file.
            pool_size: Number of connections to maintain in the pool.
        """
        self.db_path = Path(db_path)
        self._pool: list[aiosqlite.Connection] = []
        self._pool_lock = asyncio.Lock()
        self._schema_lock = asyncio.Lock()
        self._pool_size = pool_size
        self._schema_initialized = False

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a connection from the pool or create a new one."""
        async with self._pool_lock:
            if self._pool:
                return self._pool.pop()

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(str(self.db_path))
        # Enable foreign keys
        await conn.execute("PRAGMA foreign_keys = ON")
        return conn

    async def _return_connection(
        self, conn: aiosqlite.Connection, healthy: bool = True
    ) -> None:
        """Return a connection to the pool, or close it if unusable or surplus."""
        async with self._pool_lock:
            if healthy and len(self._pool) < self._pool_size:
                self._pool.append(conn)
                return
        await conn.close()

    async def close(self) -> None:
        """Close all pooled connections."""
        async with self._pool_lock:
            for conn in self._pool:
                await conn.close()
            self._pool.clear()

    async def _init_schema(self) -> None:
        """Initialize database schema on first use.

        Only runs once per instance. Subsequent calls are no-ops.
        """
        if self._schema_initialized:
            return

        async with self._schema_lock:
            # Check again after acquiring lock to prevent race
            if self._schema_initialized:
                return

            conn = await self._get_connection()
            try:
                for statement in SCHEMA:
                    await conn.execute(statement)
                await conn.commit()
                self._schema_initialized = True
            finally:
                await self._return_connection(conn)

    async def create_session(self) -> SQLiteStoreSession:
        """Open a session on a pooled connection.

        Raises:
            StoreUnavailableError: If the database cannot be opened.
        """
        try:
            await self._init_schema()
            conn = await self._get_connection()
        except (aiosqlite.Error, OSError) as e:
            raise StoreUnavailableError(
                f"Cannot open SQLite store at {self.db_path}: {e}"
            ) from e

        logger.debug(f"Session opened on {self.db_path}")
        return SQLiteStoreSession(conn, self._return_connection)
