"""Integration tests for adapter implementations.

These tests exercise adapters against a real SQLite file or mocked
drivers to validate correct translation between core domain models and
relational rows.
"""
