"""Command-line interface adapters for Stockroom."""

from .commands import ItemCommandHandler

__all__ = ["ItemCommandHandler"]
