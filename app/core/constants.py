"""Core constants: cache and counter key prefixes and shared literal values.

Single source of truth for key structure (DRY). Used by the permission
cache and the rate-limit counter stores.
"""

# Cache key prefixes (used with :tenant_id:role_id etc.)
CACHE_PREFIX_PERMISSION = "permission"

# Rate-limit counter keys: ratelimit:<tier index>:<client key>
RATE_LIMIT_KEY_PREFIX = "ratelimit"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Messages returned by the tiered limiter when a request is admitted.
RATE_LIMIT_ALLOWED_MESSAGE = "Request allowed"
RATE_LIMIT_FALLBACK_MESSAGE = "Request allowed (fallback)"

# Response headers set by the rate-limit middleware.
RATE_LIMIT_TIER_HEADER = "X-RateLimit-Tier"
RETRY_AFTER_HEADER = "Retry-After"
