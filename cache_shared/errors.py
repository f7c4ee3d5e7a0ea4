"""
Shared error handling for the session cache.

Every fault raised by the memcached client is re-wrapped into one of these
types so callers never need to know pymemcache's exception hierarchy.
"""

from typing import Dict, Any, Optional


class CacheException(Exception):
    """Base exception for cache managers and caches."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Render the exception for structured logs or API payloads."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


class CacheInitializationError(CacheException):
    """Client construction or connection errors."""

    def __init__(self, message: str = "Cache initialization failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_INITIALIZATION_ERROR", message, details)


class CacheConfigurationError(CacheInitializationError):
    """Missing or malformed cache configuration."""

    def __init__(self, message: str = "Cache configuration invalid", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.code = "CACHE_CONFIGURATION_ERROR"


class CacheOperationError(CacheException):
    """Errors raised while talking to the remote cache."""

    def __init__(self, operation: str, message: str = "Cache operation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_OPERATION_ERROR", f"{operation}: {message}", details)
        self.operation = operation
