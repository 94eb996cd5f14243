"""
Cacheable Global Constants

Centralized location for cache-layer constants used across the package.
"""

# Key derivation
LONG_KEY_THRESHOLD = 128
KEY_SEGMENT_SEPARATOR = ":"
UNBOUND_PARAM_INDEX = -1

# Operation defaults
DEFAULT_CACHE_TIMEOUT = 300  # seconds
DEFAULT_DELAYED_DOUBLE_DELETION = True
DEFAULT_DOUBLE_DELETION_DELAY_MS = 5000

# Penetration guard: empty results are cached this long instead of the operation TTL
PENETRATION_TTL = 5  # seconds

# Package Constants
APP_NAME = "py-cacheable"
APP_VERSION = "1.5.0"
