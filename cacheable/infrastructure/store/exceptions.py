"""
Cache Infrastructure Exceptions

Domain-specific exceptions for the cache layer.
Executors translate every one of these except configuration errors into
"behave as if the cache did not exist".
"""

from typing import Optional, Any, Dict


class CacheException(Exception):
    """Base exception for cache-layer errors.

    All store and cache operations raise this or its subclasses.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class StoreUnavailableException(CacheException):
    """Raised when the store cannot be resolved (bad config, connection refused)."""

    def __init__(
        self,
        message: str = "Cache store unavailable",
        store_type: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if store_type:
            details["store_type"] = store_type
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="CACHE_STORE_UNAVAILABLE", details=details
        )
        # Preserve exception context for debugging (exception chaining)
        if original_error:
            self.__cause__ = original_error


class StoreOperationException(CacheException):
    """Raised when get/set/delete fails on an otherwise connected store."""

    def __init__(
        self,
        operation: str,
        key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {"operation": operation}
        if key:
            details["key"] = key
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=f"Cache store operation '{operation}' failed",
            error_code="CACHE_STORE_ERROR",
            details=details,
        )
        if original_error:
            self.__cause__ = original_error


class CacheDecodeException(CacheException):
    """Raised when a cached value cannot be decoded."""

    def __init__(self, key: str, original_error: Optional[Exception] = None):
        details: Dict[str, Any] = {"key": key}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message=f"Cached value for '{key}' could not be decoded",
            error_code="CACHE_DECODE_ERROR",
            details=details,
        )
        if original_error:
            self.__cause__ = original_error


class CacheConfigurationException(CacheException):
    """Raised when a cache registration or store configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key
        if config_value is not None:
            details["config_value"] = str(config_value)

        super().__init__(
            message=message, error_code="CACHE_CONFIGURATION_ERROR", details=details
        )
