"""
Shared utilities for the enchanted query cache.

- config: Settings via pydantic-settings
- logging: Structured logging with cache context
- metrics: Prometheus metrics helpers
- errors: Error types and responses
- test_helpers: In-memory doubles and data factories for tests

Nothing in shared/ imports from enchanted_cache/.
"""
