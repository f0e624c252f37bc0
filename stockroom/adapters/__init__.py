"""External adapters for the Stockroom item catalog.

This package contains all external dependencies (SQLite, PostgreSQL,
command-line surfaces) and provides implementations of the core port
interfaces.

Adapter Organization:

- store/: Context providers and sessions for item persistence
- cli/: Command-line interface and management commands
"""
