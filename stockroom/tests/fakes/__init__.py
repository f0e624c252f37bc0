"""Fake/mock implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without external dependencies:

- FakeContextProvider: Hands out in-memory sessions, can fail on demand
- FakeStoreSession: Shared item/category sets plus commit tracking
- FakeItemSet / FakeCategorySet: Ordered in-memory entity sets
- FakeConfiguration: Dictionary-backed configuration source
- FakeItemRepositoryPort: Captured repository operations for CLI tests
"""

from .configuration import FakeConfiguration
from .repository import FakeItemRepositoryPort
from .store import (
    FakeCategorySet,
    FakeContextProvider,
    FakeEntitySet,
    FakeItemSet,
    FakeStoreSession,
)

__all__ = [
    "FakeCategorySet",
    "FakeConfiguration",
    "FakeContextProvider",
    "FakeEntitySet",
    "FakeItemRepositoryPort",
    "FakeItemSet",
    "FakeStoreSession",
]
