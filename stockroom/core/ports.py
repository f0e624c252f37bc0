"""Port interfaces for the Stockroom item catalog.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - ContextProviderPort: Produce a fresh store session per operation
   - StoreSessionPort: One unit of work with entity sets and commit
   - EntitySetPort: Queryable, mutable collection of one entity type
   - ConfigurationPort: Read named tunables such as ItemsPerPage

2. **Driving Ports** (adapters/external systems call into core)
   - ItemRepositoryPort: CRUD and paging over items and categories
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from .models import Category, Item, ItemPage

EntityT = TypeVar("EntityT")


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class EntitySetPort(ABC, Generic[EntityT]):
    """Port for a mutable, queryable collection of one entity type.

    Changes made through add/update/remove are staged in the owning
    session and only become durable when the session commits.

    Implementations must handle:
    - Identity assignment on add
    - Stable ordering by identity for paging
    - Translating driver errors into StoreUnavailableError
    """

    @abstractmethod
    async def add(self, entity: EntityT) -> EntityT:
        """Stage a new entity.

        Args:
            entity: Entity without an identity. The store assigns one.

        Returns:
            A new instance carrying the assigned identity. The argument
            is left untouched, so a rolled-back add leaves no identity
            behind on the caller's object.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """

    @abstractmethod
    async def update(self, entity: EntityT) -> None:
        """Stage an update that overwrites every mutable field.

        Args:
            entity: Entity carrying the target identity and new values.

        Raises:
            EntityNotFoundError: If no entity with that identity exists.
            StoreUnavailableError: If the store cannot be reached.
        """

    @abstractmethod
    async def remove(self, entity: EntityT) -> None:
        """Stage removal of an entity.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """

    @abstractmethod
    async def find(self, entity_id: int) -> EntityT | None:
        """Look up an entity by identity.

        Returns:
            The entity if found, None otherwise.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """

    @abstractmethod
    async def page(self, offset: int, limit: int) -> list[EntityT]:
        """Return a contiguous window of entities ordered by identity.

        Args:
            offset: Number of entities to skip.
            limit: Maximum number of entities to return.

        Returns:
            Up to `limit` entities, ascending by identity. Empty list
            if the window is past the end.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """

    @abstractmethod
    async def count(self) -> int:
        """Return the total number of entities in the collection."""

    @abstractmethod
    async def all(self) -> list[EntityT]:
        """Return every entity ordered by identity."""


class StoreSessionPort(ABC):
    """Port for one unit of work against the store.

    A session is handed out by a ContextProviderPort, used for a single
    logical operation and then closed. Closing discards anything staged
    but not committed; rollback is the session's concern, never the
    repository's.
    """

    @property
    @abstractmethod
    def items(self) -> EntitySetPort[Item]:
        """The item collection bound to this session.

        Raises:
            StoreUnavailableError: If the collection cannot be accessed.
        """

    @property
    @abstractmethod
    def categories(self) -> EntitySetPort[Category]:
        """The category collection bound to this session."""

    @abstractmethod
    async def commit(self) -> None:
        """Persist all staged changes.

        Raises:
            CommitFailedError: If the changes cannot be persisted.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the session, discarding uncommitted changes."""


class ContextProviderPort(ABC):
    """Port for producing store sessions.

    The provider is the single point of store-connectivity failure. It is
    a process-wide resource that yields a fresh session on every call.
    """

    @abstractmethod
    async def create_session(self) -> StoreSessionPort:
        """Create a new session bound to the store.

        Returns:
            A fresh StoreSessionPort. The caller must close it.

        Raises:
            StoreUnavailableError: If the store cannot be reached. Each
                call may fail independently.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release pooled resources held by the provider."""


class ConfigurationPort(ABC):
    """Port for reading named configuration tunables."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the raw value for `key`, or None if it is not set."""


# ============================================================================
# DRIVING PORTS (External systems call into core)
# ============================================================================


class ItemRepositoryPort(ABC):
    """Port for CRUD operations on the item catalog.

    Used by the CLI and any other outer surface. Every operation runs in
    its own session and commits at most once.
    """

    @abstractmethod
    async def add_item(self, item: Item) -> Item:
        """Persist a new item and return it with its assigned identity."""

    @abstractmethod
    async def edit_item(self, item: Item) -> Item:
        """Overwrite an existing item's fields and return the item."""

    @abstractmethod
    async def get_all_items(self, page_number: int) -> list[Item]:
        """Return one page of items ordered by identity."""

    @abstractmethod
    async def get_items_page(self, page_number: int) -> ItemPage:
        """Return one page of items with navigation totals."""

    @abstractmethod
    async def get_item(self, item_id: int) -> Item | None:
        """Return a single item, or None if it does not exist."""

    @abstractmethod
    async def delete_item(self, item_id: int) -> bool:
        """Remove one unit of an item.

        Returns:
            True if the item existed, False otherwise.
        """

    @abstractmethod
    async def get_all_categories(self) -> list[Category]:
        """Return every category ordered by identity."""

    @abstractmethod
    async def add_category(self, category: Category) -> Category:
        """Persist a new category and return it with its identity."""
