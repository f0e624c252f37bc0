"""PostgreSQL item store adapter.

Implements ContextProviderPort using PostgreSQL with asyncpg for async access.
Each session acquires a pooled connection and opens an explicit transaction;
closing the session rolls back whatever was not committed and releases the
connection.
"""

import asyncio
import dataclasses
import logging
from typing import Any

import asyncpg

from stockroom.core.errors import (
    CommitFailedError,
    EntityNotFoundError,
    StoreUnavailableError,
)
from stockroom.core.models import Category, Item
from stockroom.core.ports import ContextProviderPort, EntitySetPort, StoreSessionPort

logger = logging.getLogger(__name__)

# Errors that mean the server or connection is gone, not that the query is wrong.
DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


async def _guarded(entity_name: str, coro: Any) -> Any:
    """Await a driver call, translating its errors."""
    try:
        return await coro
    except asyncpg.IntegrityConstraintViolationError as e:
        raise ValueError(f"{entity_name} violates a store constraint: {e}") from e
    except DRIVER_ERRORS as e:
        raise StoreUnavailableError(f"PostgreSQL error on {entity_name}: {e}") from e


def _affected_rows(status: str) -> int:
    """Parse the row count from a command tag such as 'UPDATE 1'."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except ValueError:
        return 0


class PostgreSQLItemSet(EntitySetPort[Item]):
    """Item collection backed by the items table."""

    SELECT = (
        "SELECT item_id, item_name, item_description, item_price, "
        "available_quantity, category_id FROM items"
    )

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def add(self, entity: Item) -> Item:
        item_id = await _guarded(
            "Item",
            self._conn.fetchval(
                """
                INSERT INTO items
                (item_name, item_description, item_price, available_quantity, category_id)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING item_id
                """,
                entity.item_name,
                entity.item_description,
                entity.item_price,
                entity.available_quantity,
                entity.category_id,
            ),
        )
        return dataclasses.replace(entity, item_id=item_id)

    async def update(self, entity: Item) -> None:
        status = await _guarded(
            "Item",
            self._conn.execute(
                """
                UPDATE items SET
                    item_name = $2,
                    item_description = $3,
                    item_price = $4,
                    available_quantity = $5,
                    category_id = $6
                WHERE item_id = $1
                """,
                entity.item_id,
                entity.item_name,
                entity.item_description,
                entity.item_price,
                entity.available_quantity,
                entity.category_id,
            ),
        )
        if _affected_rows(status) == 0:
            raise EntityNotFoundError("Item", entity.item_id)

    async def remove(self, entity: Item) -> None:
        await _guarded(
            "Item",
            self._conn.execute("DELETE FROM items WHERE item_id = $1", entity.item_id),
        )

    async def find(self, entity_id: int) -> Item | None:
        row = await _guarded(
            "Item", self._conn.fetchrow(f"{self.SELECT} WHERE item_id = $1", entity_id)
        )
        if row is None:
            return None
        return self._row_to_item(row)

    async def page(self, offset: int, limit: int) -> list[Item]:
        rows = await _guarded(
            "Item",
            self._conn.fetch(
                f"{self.SELECT} ORDER BY item_id LIMIT $1 OFFSET $2", limit, offset
            ),
        )
        return [self._row_to_item(row) for row in rows]

    async def count(self) -> int:
        return await _guarded("Item", self._conn.fetchval("SELECT COUNT(*) FROM items"))

    async def all(self) -> list[Item]:
        rows = await _guarded(
            "Item", self._conn.fetch(f"{self.SELECT} ORDER BY item_id")
        )
        return [self._row_to_item(row) for row in rows]

    @staticmethod
    def _row_to_item(row: asyncpg.Record) -> Item:
        return Item(
            item_id=row["item_id"],
            item_name=row["item_name"],
            item_description=row["item_description"],
            item_price=row["item_price"],
            available_quantity=row["available_quantity"],
            category_id=row["category_id"],
        )


class PostgreSQLCategorySet(EntitySetPort[Category]):
    """Category collection backed by the categories table."""

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def add(self, entity: Category) -> Category:
        category_id = await _guarded(
            "Category",
            self._conn.fetchval(
                "INSERT INTO categories (category_name) VALUES ($1) RETURNING category_id",
                entity.category_name,
            ),
        )
        return dataclasses.replace(entity, category_id=category_id)

    async def update(self, entity: Category) -> None:
        status = await _guarded(
            "Category",
            self._conn.execute(
                "UPDATE categories SET category_name = $2 WHERE category_id = $1",
                entity.category_id,
                entity.category_name,
            ),
        )
        if _affected_rows(status) == 0:
            raise EntityNotFoundError("Category", entity.category_id)

    async def remove(self, entity: Category) -> None:
        await _guarded(
            "Category",
            self._conn.execute(
                "DELETE FROM categories WHERE category_id = $1", entity.category_id
            ),
        )

    async def find(self, entity_id: int) -> Category | None:
        row = await _guarded(
            "Category",
            self._conn.fetchrow(
                "SELECT category_id, category_name FROM categories WHERE category_id = $1",
                entity_id,
            ),
        )
        if row is None:
            return None
        return Category(category_id=row["category_id"], category_name=row["category_name"])

    async def page(self, offset: int, limit: int) -> list[Category]:
        rows = await _guarded(
            "Category",
            self._conn.fetch(
                "SELECT category_id, category_name FROM categories "
                "ORDER BY category_id LIMIT $1 OFFSET $2",
                limit,
                offset,
            ),
        )
        return [
            Category(category_id=row["category_id"], category_name=row["category_name"])
            for row in rows
        ]

    async def count(self) -> int:
        return await _guarded(
            "Category", self._conn.fetchval("SELECT COUNT(*) FROM categories")
        )

    async def all(self) -> list[Category]:
        rows = await _guarded(
            "Category",
            self._conn.fetch(
                "SELECT category_id, category_name FROM categories ORDER BY category_id"
            ),
        )
        return [
            Category(category_id=row["category_id"], category_name=row["category_name"])
            for row in rows
        ]


class PostgreSQLStoreSession(StoreSessionPort):
    """One unit of work inside an explicit PostgreSQL transaction."""

    def __init__(self, conn: asyncpg.Connection, pool: asyncpg.Pool):
        self._conn = conn
        self._pool = pool
        self._transaction = conn.transaction()
        self._items = PostgreSQLItemSet(conn)
        self._categories = PostgreSQLCategorySet(conn)
        self._closed = False

    async def begin(self) -> None:
        await self._transaction.start()

    @property
    def items(self) -> PostgreSQLItemSet:
        return self._items

    @property
    def categories(self) -> PostgreSQLCategorySet:
        return self._categories

    async def commit(self) -> None:
        """Commit the open transaction and start a fresh one.

        Raises:
            CommitFailedError: If the commit itself fails.
            StoreUnavailableError: If the commit succeeded but the next
                transaction cannot be started.
        """
        try:
            await self._transaction.commit()
        except DRIVER_ERRORS as e:
            raise CommitFailedError(f"PostgreSQL commit failed: {e}") from e

        self._transaction = self._conn.transaction()
        try:
            await self._transaction.start()
        except DRIVER_ERRORS as e:
            raise StoreUnavailableError(
                f"Committed, but cannot start the next transaction: {e}"
            ) from e

    async def close(self) -> None:
        """Roll back uncommitted work and release the connection."""
        if self._closed:
            return
        self._closed = True

        try:
            await self._transaction.rollback()
        except DRIVER_ERRORS as e:
            logger.warning(f"Rollback on session close failed: {e}")
        await self._pool.release(self._conn)


class PostgreSQLContextProvider(ContextProviderPort):
    """PostgreSQL-backed context provider with connection pooling and async access."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "stockroom",
        user: str = "stockroom",
        password: str = "",
        pool_size: int = 10,
    ):
        """Initialize PostgreSQL provider with connection pooling.

        Args:
            host: PostgreSQL server hostname.
            port: PostgreSQL server port.
            database: Database name.
            user: Database user.
            password: Database password.
            pool_size: Number of connections to maintain in the pool.
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self._pool: asyncpg.Pool | None = None
        self._pool_size = pool_size
        self._pool_lock = asyncio.Lock()
        self._schema_lock = asyncio.Lock()
        self._schema_initialized = False

    async def _init_pool(self) -> asyncpg.Pool:
        """Initialize the connection pool on first use."""
        async with self._pool_lock:
            if self._pool is None:
                self._pool = await asyncpg.create_pool(
                    host=self.host,
                    port=self.port,
                    database=self.database,
                    user=self.user,
                    password=self.password,
                    min_size=1,
                    max_size=self._pool_size,
                )
        return self._pool

    async def close(self) -> None:
        """Close all pooled connections."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def _init_schema(self, pool: asyncpg.Pool) -> None:
        """Initialize database schema on first use.

        Only runs once per instance. Subsequent calls are no-ops.
        Uses dedicated _schema_lock to avoid contention with pool operations.
        """
        # Check first without lock to avoid unnecessary locking
        if self._schema_initialized:
            return

        async with self._schema_lock:
            # Check again after acquiring lock to prevent race
            if self._schema_initialized:
                return

            async with pool.acquire() as conn:
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS categories (
                        category_id SERIAL PRIMARY KEY,
                        category_name TEXT NOT NULL
                    )
                    """
                )
                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS items (
                        item_id SERIAL PRIMARY KEY,
                        item_name TEXT NOT NULL,
                        item_description TEXT NOT NULL DEFAULT '',
                        item_price NUMERIC(12, 2) NOT NULL CHECK (item_price >= 0),
                        available_quantity INTEGER NOT NULL DEFAULT 0,
                        category_id INTEGER REFERENCES categories(category_id)
                    )
                    """
                )
                await conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_items_category ON items(category_id)"
                )

            self._schema_initialized = True

    async def create_session(self) -> PostgreSQLStoreSession:
        """Open a session in a new transaction on a pooled connection.

        Raises:
            StoreUnavailableError: If the server cannot be reached.
        """
        try:
            pool = await self._init_pool()
            await self._init_schema(pool)
            conn = await pool.acquire()
        except DRIVER_ERRORS as e:
            raise StoreUnavailableError(
                f"Cannot connect to PostgreSQL at {self.host}:{self.port}: {e}"
            ) from e

        session = PostgreSQLStoreSession(conn, pool)
        try:
            await session.begin()
        except DRIVER_ERRORS as e:
            await pool.release(conn)
            raise StoreUnavailableError(f"Cannot start transaction: {e}") from e

        logger.debug(f"Session opened on {self.host}:{self.port}/{self.database}")
        return session
