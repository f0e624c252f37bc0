"""Store error taxonomy for the Stockroom item catalog.

Adapters raise these from the underlying driver exceptions. The core
repository never wraps or translates them: whatever an adapter raises
reaches the caller unchanged.
"""


class StockroomError(Exception):
    """Base class for all Stockroom errors."""


class StoreUnavailableError(StockroomError):
    """Raised when a store session cannot be created or read from."""


class CommitFailedError(StockroomError):
    """Raised when staged changes cannot be persisted."""


class EntityNotFoundError(StockroomError):
    """Raised when an update targets a record that does not exist."""

    def __init__(self, entity: str, entity_id: int | None):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConfigurationError(StockroomError):
    """Raised when a required configuration value is missing or invalid."""
