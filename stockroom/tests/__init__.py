"""Test suite for the Stockroom item catalog.

Organized into three categories:

1. core/: Unit tests for core domain logic
   - Minimal dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Integration tests for adapter implementations
   - Tests against a real SQLite file or mocked drivers
   - Validates adapter behavior and error handling

3. fakes/: Port implementations for testing
   - In-memory implementations of ContextProviderPort, ConfigurationPort, etc.
   - Used by core unit tests
"""
