"""Integration tests for the SQLite context provider."""

from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock, patch

import aiosqlite
import pytest

from stockroom.adapters.store.sqlite import SQLiteContextProvider, _SQLiteEntitySet
from stockroom.core.errors import (
    CommitFailedError,
    EntityNotFoundError,
    StoreUnavailableError,
)
from stockroom.core.item_repository import ItemRepository
from stockroom.core.models import Category, Item
from stockroom.tests.fakes import FakeConfiguration


@pytest.fixture
def temp_db(tmp_path: Path) -> Path:
    """Path for a fresh database file."""
    return tmp_path / "data" / "stockroom.db"


@pytest.fixture
async def provider(temp_db: Path) -> SQLiteContextProvider:
    """Create a SQLite provider on a temporary database."""
    adapter = SQLiteContextProvider(db_path=str(temp_db), pool_size=2)
    yield adapter
    await adapter.close()


def new_item(name: str, price: str = "10.00", quantity: int = 0) -> Item:
    return Item(
        item_id=None,
        item_name=name,
        item_description=f"{name} description",
        item_price=Decimal(price),
        available_quantity=quantity,
    )


async def add_committed(provider: SQLiteContextProvider, *items: Item) -> list[Item]:
    session = await provider.create_session()
    try:
        added = [await session.items.add(item) for item in items]
        await session.commit()
    finally:
        await session.close()
    return added


@pytest.mark.asyncio
async def test_create_session_initializes_schema(
    provider: SQLiteContextProvider, temp_db: Path
) -> None:
    """The database file and its parent directory are created on first use."""
    session = await provider.create_session()
    await session.close()

    assert temp_db.exists()


@pytest.mark.asyncio
async def test_add_and_find_item(provider: SQLiteContextProvider) -> None:
    """Added items get store-assigned ids and survive a round trip."""
    first, second = await add_committed(
        provider, new_item("scarf", "12.50", 3), new_item("belt", "20")
    )

    assert first.item_id == 1
    assert second.item_id == 2

    session = await provider.create_session()
    try:
        found = await session.items.find(1)
    finally:
        await session.close()

    assert found is not None
    assert found.item_name == "scarf"
    assert found.item_description == "scarf description"
    assert found.item_price == Decimal("12.50")
    assert found.available_quantity == 3


@pytest.mark.asyncio
async def test_find_missing_item_returns_none(provider: SQLiteContextProvider) -> None:
    session = await provider.create_session()
    try:
        assert await session.items.find(99) is None
    finally:
        await session.close()


@pytest.mark.asyncio
async def test_close_discards_uncommitted_changes(
    provider: SQLiteContextProvider,
) -> None:
    """Anything staged but not committed is rolled back on close."""
    session = await provider.create_session()
    await session.items.add(new_item("ghost"))
    await session.close()

    session = await provider.create_session()
    try:
        assert await session.items.count() == 0
    finally:
        await session.close()


@pytest.mark.asyncio
async def test_update_overwrites_fields(provider: SQLiteContextProvider) -> None:
    (item,) = await add_committed(provider, new_item("scarf"))
    item.item_name = "wool scarf"
    item.item_price = Decimal("15.75")
    item.available_quantity = 4

    session = await provider.create_session()
    try:
        await session.items.update(item)
        await session.commit()
        found = await session.items.find(item.item_id)
    finally:
        await session.close()

    assert found is not None
    assert found.item_name == "wool scarf"
    assert found.item_price == Decimal("15.75")
    assert found.available_quantity == 4


@pytest.mark.asyncio
async def test_update_missing_item_raises(provider: SQLiteContextProvider) -> None:
    missing = Item(7, "nobody", "", Decimal("1"))

    session = await provider.create_session()
    try:
        with pytest.raises(EntityNotFoundError, match="Item 7 not found"):
            await session.items.update(missing)
    finally:
        await session.close()


@pytest.mark.asyncio
async def test_page_orders_by_identity(provider: SQLiteContextProvider) -> None:
    await add_committed(provider, *(new_item(f"item {i}") for i in range(1, 8)))

    session = await provider.create_session()
    try:
        page = await session.items.page(offset=5, limit=5)
        everything = await session.items.all()
        total = await session.items.count()
    finally:
        await session.close()

    assert [item.item_id for item in page] == [6, 7]
    assert [item.item_id for item in everything] == list(range(1, 8))
    assert total == 7


@pytest.mark.asyncio
async def test_remove_deletes_row(provider: SQLiteContextProvider) -> None:
    (item,) = await add_committed(provider, new_item("scarf"))

    session = await provider.create_session()
    try:
        await session.items.remove(item)
        await session.commit()
        assert await session.items.find(item.item_id) is None
    finally:
        await session.close()


@pytest.mark.asyncio
async def test_categories_round_trip(provider: SQLiteContextProvider) -> None:
    session = await provider.create_session()
    try:
        apparels = await session.categories.add(Category(None, "apparels"))
        others = await session.categories.add(Category(None, "others"))
        await session.commit()
        categories = await session.categories.all()
    finally:
        await session.close()

    assert apparels.category_id == 1
    assert others.category_id == 2
    assert [c.category_name for c in categories] == ["apparels", "others"]


@pytest.mark.asyncio
async def test_unknown_category_reference_is_rejected(
    provider: SQLiteContextProvider,
) -> None:
    """Foreign keys are enforced for item categories."""
    item = new_item("scarf")
    item.category_id = 42

    session = await provider.create_session()
    try:
        with pytest.raises(ValueError, match="store constraint"):
            await session.items.add(item)
    finally:
        await session.close()


@pytest.mark.asyncio
async def test_commit_failure_raises_commit_failed(
    provider: SQLiteContextProvider,
) -> None:
    session = await provider.create_session()
    try:
        await session.items.add(new_item("scarf"))
        with patch.object(
            session._conn,
            "commit",
            AsyncMock(side_effect=aiosqlite.OperationalError("database is locked")),
        ):
            with pytest.raises(CommitFailedError, match="database is locked"):
                await session.commit()
    finally:
        await session.close()


@pytest.mark.asyncio
async def test_failed_add_can_be_retried(provider: SQLiteContextProvider) -> None:
    """A rolled-back add leaves no identity on the item, so a retry succeeds."""
    repository = ItemRepository(provider, FakeConfiguration({"ItemsPerPage": "5"}))
    item = new_item("scarf")
    # Schema setup commits too, so run it before commits start failing
    await (await provider.create_session()).close()

    with patch.object(
        aiosqlite.Connection,
        "commit",
        AsyncMock(side_effect=aiosqlite.OperationalError("database is locked")),
    ):
        with pytest.raises(CommitFailedError):
            await repository.add_item(item)

    assert item.item_id is None
    added = await repository.add_item(item)
    assert added.item_id == 1
    assert await repository.get_item(1) is not None


@pytest.mark.asyncio
async def test_unreachable_path_raises_store_unavailable(tmp_path: Path) -> None:
    """A database path under a regular file cannot be opened."""
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("")
    adapter = SQLiteContextProvider(db_path=str(blocker / "stockroom.db"))

    with pytest.raises(StoreUnavailableError, match="Cannot open SQLite store"):
        await adapter.create_session()

    await adapter.close()


@pytest.mark.asyncio
async def test_connections_are_pooled(provider: SQLiteContextProvider) -> None:
    """A closed session hands its connection back for reuse."""
    session = await provider.create_session()
    conn = session._conn
    await session.close()

    session = await provider.create_session()
    try:
        assert session._conn is conn
    finally:
        await session.close()


@pytest.mark.asyncio
async def test_repository_delete_semantics_on_sqlite(
    provider: SQLiteContextProvider,
) -> None:
    """End to end: decrement while more than one unit, then remove."""
    repository = ItemRepository(provider, FakeConfiguration({"ItemsPerPage": "5"}))
    added = await repository.add_item(new_item("scarf", quantity=2))

    assert await repository.delete_item(added.item_id) is True
    remaining = await repository.get_item(added.item_id)
    assert remaining is not None
    assert remaining.available_quantity == 1

    assert await repository.delete_item(added.item_id) is True
    assert await repository.get_item(added.item_id) is None
    assert await repository.delete_item(added.item_id) is False


def test_entity_set_without_row_converter_cannot_be_built() -> None:
    """Every concrete set must say how rows become entities."""

    class Unconverted(_SQLiteEntitySet[Category]):
        async def add(self, entity: Category) -> Category:
            return entity

        async def update(self, entity: Category) -> None:
            pass

        async def remove(self, entity: Category) -> None:
            pass

    with pytest.raises(TypeError, match="_row_to_entity"):
        Unconverted(None)  # type: ignore[arg-type]
