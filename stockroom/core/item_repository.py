"""Item repository: implements ItemRepositoryPort against a store session.

This is the only component with business logic. Each operation obtains a
fresh session from the context provider, works on the session's item
collection, commits at most once and closes the session. Failures from
the provider, the collections or the commit propagate to the caller
unchanged.
"""

import logging

from .errors import ConfigurationError
from .models import Category, Item, ItemPage
from .ports import (
    ConfigurationPort,
    ContextProviderPort,
    ItemRepositoryPort,
    StoreSessionPort,
)

logger = logging.getLogger(__name__)

ITEMS_PER_PAGE_KEY = "ItemsPerPage"


class ItemRepository(ItemRepositoryPort):
    """Core implementation of ItemRepositoryPort.

    Holds no state between calls apart from its collaborators.
    """

    def __init__(
        self,
        context_provider: ContextProviderPort,
        configuration: ConfigurationPort,
    ):
        """Initialize the item repository.

        Args:
            context_provider: Produces a fresh store session per operation.
            configuration: Source of the ItemsPerPage tunable.
        """
        self.context_provider = context_provider
        self.configuration = configuration

    async def add_item(self, item: Item) -> Item:
        """Persist a new item.

        Args:
            item: Candidate item. It is not modified.

        Returns:
            A copy of the item carrying the item_id assigned by the store.

        Raises:
            ValueError: If the item already carries an item_id.
            StoreUnavailableError: If no session can be created.
            CommitFailedError: If the insert cannot be persisted.
        """
        if item.item_id is not None:
            raise ValueError(f"Item {item.item_id} is already persisted")

        session = await self.context_provider.create_session()
        try:
            added = await session.items.add(item)
            await session.commit()
        finally:
            await session.close()

        logger.info(
            f"Item {added.item_id} added",
            extra={"item_id": added.item_id, "item_name": added.item_name},
        )
        return added

    async def edit_item(self, item: Item) -> Item:
        """Overwrite name, description, price and quantity of an item.

        Args:
            item: Item carrying the target item_id and the new values.

        Returns:
            The same item, reflecting the applied values.

        Raises:
            ValueError: If the item has no item_id.
            EntityNotFoundError: If the store has no such item.
            CommitFailedError: If the update cannot be persisted. The staged
                update is left for the session to discard on close.
        """
        if item.item_id is None:
            raise ValueError("Cannot edit an item without an item_id")

        session = await self.context_provider.create_session()
        try:
            await session.items.update(item)
            await session.commit()
        finally:
            await session.close()

        logger.info(
            f"Item {item.item_id} edited",
            extra={"item_id": item.item_id, "item_price": str(item.item_price)},
        )
        return item

    async def get_all_items(self, page_number: int) -> list[Item]:
        """Return one page of items.

        Args:
            page_number: 1-based page number.

        Returns:
            Up to ItemsPerPage items ordered by item_id. Empty if the page
            is past the end.

        Raises:
            ValueError: If page_number is less than 1.
            ConfigurationError: If ItemsPerPage is missing or invalid.
            StoreUnavailableError: If the item collection cannot be read.
        """
        session = await self.context_provider.create_session()
        try:
            items, _ = await self._read_window(session, page_number)
        finally:
            await session.close()
        return items

    async def get_items_page(self, page_number: int) -> ItemPage:
        """Return one page of items along with totals for navigation."""
        session = await self.context_provider.create_session()
        try:
            items, items_per_page = await self._read_window(session, page_number)
            total = await session.items.count()
        finally:
            await session.close()

        return ItemPage(
            items=tuple(items),
            page_number=page_number,
            items_per_page=items_per_page,
            total_items=total,
        )

    async def get_item(self, item_id: int) -> Item | None:
        session = await self.context_provider.create_session()
        try:
            return await session.items.find(item_id)
        finally:
            await session.close()

    async def delete_item(self, item_id: int) -> bool:
        """Remove a single unit of an item.

        If the item has more than one unit in stock, its quantity is
        decremented by one and the record is kept. Otherwise the record is
        removed. The session commits exactly once in every case, including
        when the item does not exist.

        Args:
            item_id: Identity of the item.

        Returns:
            True if the item existed, False if the lookup found nothing.

        Raises:
            StoreUnavailableError: If no session can be created. No lookup
                is attempted in that case.
            CommitFailedError: If the change cannot be persisted.
        """
        removed = False
        session = await self.context_provider.create_session()
        try:
            item = await session.items.find(item_id)
            if item is None:
                logger.warning(
                    f"Delete requested for missing item {item_id}",
                    extra={"item_id": item_id},
                )
            elif item.is_last_unit:
                await session.items.remove(item)
                removed = True
            else:
                item.take_one()
                await session.items.update(item)
            await session.commit()
        finally:
            await session.close()

        if item is None:
            return False

        if removed:
            logger.info(f"Item {item_id} removed", extra={"item_id": item_id})
        else:
            logger.info(
                f"Item {item_id} stock reduced to {item.available_quantity}",
                extra={"item_id": item_id, "available_quantity": item.available_quantity},
            )
        return True

    async def get_all_categories(self) -> list[Category]:
        session = await self.context_provider.create_session()
        try:
            return await session.categories.all()
        finally:
            await session.close()

    async def add_category(self, category: Category) -> Category:
        """Persist a new category and return it with its category_id."""
        session = await self.context_provider.create_session()
        try:
            added = await session.categories.add(category)
            await session.commit()
        finally:
            await session.close()

        logger.info(
            f"Category {added.category_id} added",
            extra={"category_id": added.category_id},
        )
        return added

    async def _read_window(
        self, session: StoreSessionPort, page_number: int
    ) -> tuple[list[Item], int]:
        """Read the item window for a page.

        Returns:
            The items in the window and the page size used.
        """
        if page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {page_number}")

        items_per_page = self._items_per_page()
        offset = (page_number - 1) * items_per_page
        items = await session.items.page(offset, items_per_page)

        logger.debug(
            f"Read page {page_number} ({len(items)} items)",
            extra={"offset": offset, "limit": items_per_page},
        )
        return items, items_per_page

    def _items_per_page(self) -> int:
        """Read and validate the ItemsPerPage tunable.

        Raises:
            ConfigurationError: If the value is missing, non-numeric or
                not positive.
        """
        raw = self.configuration.get(ITEMS_PER_PAGE_KEY)
        if raw is None:
            raise ConfigurationError(f"{ITEMS_PER_PAGE_KEY} is not configured")
        try:
            value = int(raw)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"{ITEMS_PER_PAGE_KEY} must be an integer, got {raw!r}"
            ) from e
        if value <= 0:
            raise ConfigurationError(
                f"{ITEMS_PER_PAGE_KEY} must be positive, got {value}"
            )
        return value
