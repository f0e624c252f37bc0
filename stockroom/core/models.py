"""Domain models for the Stockroom item catalog.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation


@dataclass(frozen=True)
class Category:
    """A classification label that items may reference."""

    category_id: int | None
    category_name: str

    def __post_init__(self) -> None:
        """Validate category invariants on creation."""
        if not self.category_name or not self.category_name.strip():
            raise ValueError("category_name must be a non-empty string")


@dataclass
class Item:
    """A sellable unit held in the store.

    The item_id is assigned by the store when the item is first added and
    is never reassigned afterwards. It is None on items that have not been
    persisted yet.

    Quantity Transitions:
        Deleting an item removes a single unit at a time:
        - quantity > 1: decremented by one (take_one), record kept
        - quantity <= 1: record removed from the store

    Note: This dataclass is intentionally mutable so that edits and
    quantity changes can be applied in place before being persisted.
    """

    item_id: int | None
    item_name: str
    item_description: str
    item_price: Decimal
    available_quantity: int = 0
    category_id: int | None = None

    def __post_init__(self) -> None:
        """Validate item invariants and normalize the price."""
        if not self.item_name or not self.item_name.strip():
            raise ValueError("item_name must be a non-empty string")
        if self.item_description is None:
            raise ValueError("item_description must not be None")

        if not isinstance(self.item_price, Decimal):
            try:
                self.item_price = Decimal(str(self.item_price))
            except InvalidOperation as e:
                raise ValueError(
                    f"item_price must be numeric, got {self.item_price!r}"
                ) from e
        if not self.item_price.is_finite():
            raise ValueError(
                f"item_price must be a finite number, got {self.item_price}"
            )
        if self.item_price < 0:
            raise ValueError(
                f"item_price must be non-negative, got {self.item_price}"
            )

        if self.available_quantity < 0:
            raise ValueError(
                f"available_quantity must be non-negative, got {self.available_quantity}"
            )

    @property
    def is_last_unit(self) -> bool:
        """True when deleting this item should remove the record."""
        return self.available_quantity <= 1

    def take_one(self) -> None:
        """Remove a single unit from stock, keeping the record.

        Raises:
            ValueError: If only the last unit (or none) is left. The caller
                must remove the record instead.
        """
        if self.is_last_unit:
            raise ValueError(
                f"Cannot take a unit from item {self.item_id}: "
                f"only {self.available_quantity} left"
            )
        self.available_quantity -= 1


@dataclass(frozen=True)
class ItemPage:
    """A single page of items plus the totals needed to navigate pages."""

    items: tuple[Item, ...]
    page_number: int
    items_per_page: int
    total_items: int

    def __post_init__(self) -> None:
        """Validate page invariants on creation."""
        if self.page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {self.page_number}")
        if self.items_per_page < 1:
            raise ValueError(
                f"items_per_page must be >= 1, got {self.items_per_page}"
            )
        if self.total_items < 0:
            raise ValueError(
                f"total_items must be non-negative, got {self.total_items}"
            )

    @property
    def total_pages(self) -> int:
        return -(-self.total_items // self.items_per_page)

    @property
    def has_next(self) -> bool:
        return self.page_number < self.total_pages
