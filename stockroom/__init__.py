"""Stockroom: async data access for an item catalog with categories."""

__version__ = "0.1.0"
