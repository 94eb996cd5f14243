"""
Cache Value Objects

Immutable value objects for the cache domain.
Covers key derivation, parameter binding, TTLs and the option models that
configure read-through and invalidation wrappers.
"""

import inspect
import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Sequence, Tuple

import xxhash
from pydantic import BaseModel, Field, field_validator

from ...constants import (
    KEY_SEGMENT_SEPARATOR,
    LONG_KEY_THRESHOLD,
    UNBOUND_PARAM_INDEX,
)
from ...core.config import Settings, settings

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def stringify_param(value: Any) -> str:
    """Render a call argument as a stable key segment.

    Scalars use their plain text form, booleans and ``None`` their JSON
    spelling, and containers a canonical JSON dump with sorted keys.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    if isinstance(value, (set, frozenset)):
        value = sorted(value, key=repr)
    if isinstance(value, (dict, list, tuple)):
        try:
            return json.dumps(
                value,
                sort_keys=True,
                separators=(",", ":"),
                default=str,
                ensure_ascii=False,
            )
        except TypeError:
            # Mixed-type dict keys cannot be sorted
            return str(value)
    return str(value)


def hash_key(key: str) -> str:
    """Fixed-width (8 hex chars) non-cryptographic digest of a key."""
    return xxhash.xxh32_hexdigest(key.encode("utf-8"))


def derive_key(
    base_name: str,
    declared_params: Sequence[str],
    bound_indexes: Sequence[int],
    args: Sequence[Any],
    kwargs: Optional[Mapping[str, Any]] = None,
) -> str:
    """
    Build the cache key for one call.

    Segments are appended in declared order as ``:<name>:<value>``. A
    parameter is taken from ``kwargs`` when passed by keyword, otherwise
    from ``args`` at its bound index; parameters not passed at all are
    omitted. Keys longer than ``LONG_KEY_THRESHOLD`` are replaced by their
    hash. Collisions of hashed keys are not resolved.

    Args:
        base_name: Operation identifier (cache name)
        declared_params: Cache-relevant parameter names, in declared order
        bound_indexes: Positional index per declared name (-1 = unbound)
        args: Positional call arguments
        kwargs: Keyword call arguments

    Returns:
        Cache key string
    """
    key = base_name
    for name, index in zip(declared_params, bound_indexes):
        if kwargs and name in kwargs:
            value = kwargs[name]
        elif 0 <= index < len(args):
            value = args[index]
        else:
            continue
        key += f"{KEY_SEGMENT_SEPARATOR}{name}{KEY_SEGMENT_SEPARATOR}{stringify_param(value)}"

    if len(key) > LONG_KEY_THRESHOLD:
        return hash_key(key)
    return key


@dataclass(frozen=True)
class ParamBinding:
    """
    Mapping of cache-relevant parameter names to positional indexes.

    Resolved once at registration time. Names without a positional slot
    carry ``UNBOUND_PARAM_INDEX`` and can still be matched by keyword.
    """

    names: Tuple[str, ...]
    indexes: Tuple[int, ...]

    def __post_init__(self) -> None:
        """Validate binding shape."""
        if len(self.names) != len(self.indexes):
            raise ValueError("Parameter names and indexes must be the same length")
        if any(not name or not name.strip() for name in self.names):
            raise ValueError("Cache parameter names cannot be empty")
        if len(set(self.names)) != len(self.names):
            raise ValueError(f"Duplicate cache parameter names: {list(self.names)}")

    @classmethod
    def empty(cls) -> "ParamBinding":
        """Binding for whole-result caching (no cache-relevant parameters)."""
        return cls((), ())

    @classmethod
    def from_signature_names(
        cls, declared: Sequence[str], signature_names: Sequence[str]
    ) -> "ParamBinding":
        """Bind against an explicit ordered parameter-name list."""
        positions = {name: i for i, name in enumerate(signature_names)}
        return cls(
            tuple(declared),
            tuple(positions.get(name, UNBOUND_PARAM_INDEX) for name in declared),
        )

    @classmethod
    def from_callable(cls, declared: Sequence[str], func: Callable) -> "ParamBinding":
        """Bind against the declared signature of ``func``."""
        signature_names: List[str] = []
        for parameter in inspect.signature(func).parameters.values():
            if parameter.kind not in _POSITIONAL_KINDS:
                break
            signature_names.append(parameter.name)
        return cls.from_signature_names(declared, signature_names)

    @property
    def unbound(self) -> List[str]:
        """Declared names with no positional slot."""
        return [
            name
            for name, index in zip(self.names, self.indexes)
            if index == UNBOUND_PARAM_INDEX
        ]

    def __len__(self) -> int:
        return len(self.names)


@dataclass(frozen=True)
class CacheKey:
    """
    Immutable cache key value object.

    Deterministic for a given base name and declared parameter values.
    """

    value: str

    def __post_init__(self) -> None:
        """Validate cache key."""
        if not self.value:
            raise ValueError("Cache key cannot be empty")

    @classmethod
    def derive(
        cls,
        base_name: str,
        binding: ParamBinding,
        args: Sequence[Any],
        kwargs: Optional[Mapping[str, Any]] = None,
    ) -> "CacheKey":
        """Derive the key for one call of a bound operation."""
        return cls(derive_key(base_name, binding.names, binding.indexes, args, kwargs))

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TTL:
    """
    Time To Live value object for cache expiration.
    """

    seconds: int

    def __post_init__(self) -> None:
        """Validate TTL value."""
        if self.seconds <= 0:
            raise ValueError("TTL must be positive")
        if self.seconds > 86400 * 365:  # Max 1 year
            raise ValueError("TTL too large (max 1 year)")

    @classmethod
    def minutes(cls, minutes: int) -> "TTL":
        """Create TTL from minutes."""
        return cls(minutes * 60)

    @classmethod
    def hours(cls, hours: int) -> "TTL":
        """Create TTL from hours."""
        return cls(hours * 3600)

    def __str__(self) -> str:
        return f"{self.seconds}s"


def _validate_param_names(v: List[str]) -> List[str]:
    if any(not isinstance(name, str) or not name.strip() for name in v):
        raise ValueError("Cache parameter names must be non-empty strings")
    if len(set(v)) != len(v):
        raise ValueError(f"Duplicate cache parameter names: {v}")
    return v


class CacheAbleOptions(BaseModel):
    """Read-through registration options."""

    cache_name: str = Field(..., min_length=1, description="Base key component")
    params: List[str] = Field(
        default_factory=list, description="Cache-relevant parameter names"
    )
    timeout: Optional[int] = Field(
        None, ge=1, description="TTL in seconds; manager default when unset"
    )

    @field_validator("params")
    @classmethod
    def validate_params(cls, v):
        return _validate_param_names(v)


class CacheEvictOptions(BaseModel):
    """Invalidation registration options."""

    cache_name: str = Field(..., min_length=1, description="Base key component")
    params: List[str] = Field(
        default_factory=list, description="Cache-relevant parameter names"
    )
    delayed_double_deletion: Optional[bool] = Field(
        None, description="Schedule a second delete; manager default when unset"
    )
    delay_ms: Optional[int] = Field(
        None, ge=0, description="Second delete delay; manager default when unset"
    )

    @field_validator("params")
    @classmethod
    def validate_params(cls, v):
        return _validate_param_names(v)


class StoreOptions(BaseModel):
    """Connection options used when resolving the backing store."""

    type: Literal["memory", "redis"] = Field("memory", description="Store backend")
    url: str = Field("redis://localhost:6379", description="Redis connection URL")
    key_prefix: str = Field("", max_length=64, description="Prefix for stored keys")
    max_connections: int = Field(10, ge=1, le=50)
    connection_timeout: float = Field(5.0, gt=0)
    operation_timeout: float = Field(5.0, gt=0)

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "StoreOptions":
        """Build store options from application settings."""
        config = config or settings
        return cls(
            type=config.CACHE_STORE_TYPE,
            url=config.REDIS_URL,
            key_prefix=config.CACHE_KEY_PREFIX,
            max_connections=config.REDIS_MAX_CONNECTIONS,
            connection_timeout=config.REDIS_CONNECTION_TIMEOUT,
            operation_timeout=config.REDIS_OPERATION_TIMEOUT,
        )

    def describe(self) -> Dict[str, Any]:
        """Options safe to log (credentials stripped from the URL)."""
        url = self.url.split("@")[-1] if "@" in self.url else self.url
        return {"type": self.type, "url": url, "key_prefix": self.key_prefix}
