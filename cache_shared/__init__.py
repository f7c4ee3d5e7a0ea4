"""
Shared utilities for the session cache packages.

This package aggregates common building blocks consumed by the cache
adapters:

- config: Cache settings via pydantic-settings
- logging: Structured logging with region correlation
- errors: Canonical cache exception types
- test_helpers: Factories for test configuration and session data

Adapter-specific logic lives in session_cache; do not import from
session_cache into cache_shared/.
"""
