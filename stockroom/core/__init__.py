"""Core domain logic for the Stockroom item catalog.

This package contains zero external dependencies and represents
the pure business logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .errors import (
    CommitFailedError,
    ConfigurationError,
    EntityNotFoundError,
    StockroomError,
    StoreUnavailableError,
)
from .models import Category, Item, ItemPage

__all__ = [
    "Category",
    "CommitFailedError",
    "ConfigurationError",
    "EntityNotFoundError",
    "Item",
    "ItemPage",
    "StockroomError",
    "StoreUnavailableError",
]
