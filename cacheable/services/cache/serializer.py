"""
Cached value encoding.

Results are stored as JSON text. Values JSON cannot represent natively are
stored via ``str()``, so tuples come back as lists and datetimes as strings.
"""

import json
from typing import Any

from ...infrastructure.store.exceptions import CacheDecodeException


def is_empty_result(value: Any) -> bool:
    """Results that trigger the penetration guard."""
    return value is None or (isinstance(value, str) and value == "")


def encode(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


def decode(key: str, raw: str) -> Any:
    """Decode a stored value.

    Raises:
        CacheDecodeException: If the stored text is not valid JSON
    """
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        raise CacheDecodeException(key=key, original_error=e)
