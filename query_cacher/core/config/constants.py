"""
System Constants and Enumerations

Single source of truth for the key layout, the enumerated retrieval methods
and the stage identifiers used in structured logs.
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Processing stages of a cached query.

    Format: {SEQUENCE}_{DESCRIPTIVE_NAME}, alphabetic prefixes for concerns
    that are not part of the main fetch flow.
    """

    INITIALIZATION = "0.0_INITIALIZATION"
    KEY_DERIVATION = "1.0_KEY_DERIVATION"
    CACHE_LOOKUP = "2.0_CACHE_LOOKUP"
    CACHE_HIT = "2.1_CACHE_HIT"
    CACHE_MISS = "2.2_CACHE_MISS"
    CACHE_POPULATE = "2.3_CACHE_POPULATE"
    CACHE_EVICT = "2.4_CACHE_EVICT"
    SOURCE_FETCH = "3.0_SOURCE_FETCH"
    SOURCE_COALESCED = "3.1_SOURCE_COALESCED"

    INVALIDATION_REQUEST = "I.1_INVALIDATION_REQUEST"
    INVALIDATION_SCAN = "I.2_INVALIDATION_SCAN"
    INVALIDATION_DELETE = "I.3_INVALIDATION_DELETE"

    REDIS = "REDIS"


# ============================================================================
# Retrieval Methods
# ============================================================================

# Fixed set of retrieval methods the facade exposes; anything else is rejected
# before any cache or source access.
RETRIEVAL_METHODS: tuple[str, ...] = (
    "find",
    "find_one",
    "find_all",
    "find_and_count",
    "find_and_count_all",
    "all",
    "min",
    "max",
    "sum",
    "count",
)

DEFAULT_METHOD = "find"


# ============================================================================
# Key Layout
# ============================================================================

DEFAULT_CACHE_PREFIX = "cacher"
DEFAULT_TTL_SECONDS = 30

KEY_SEPARATOR = ":"
EXTRA_KEYS_SEPARATOR = ","

# prefix:__raw__:query:digest
RAW_COLLECTION_SEGMENT = "__raw__"
RAW_METHOD_SEGMENT = "query"

# Joins the SQL text and its serialized options before hashing
RAW_OPTIONS_SEPARATOR = "-"

# Options handed to the source for raw queries when the caller supplies none
RAW_QUERY_DEFAULT_OPTIONS = {"type": "SELECT"}

CIRCULAR_MARKER = "[Circular ~{path}]"


# ============================================================================
# Invalidation Scan
# ============================================================================

DEFAULT_SCAN_COUNT = 100
SCAN_START_CURSOR = 0
SCAN_TERMINAL_CURSOR = 0

# UNLINK is issued in chunks of this size once a sweep completes
DELETE_BATCH_SIZE = 500
