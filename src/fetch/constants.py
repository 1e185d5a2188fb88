"""HTTP constants for the fetch layer.

Centralizes all HTTP-related constants to avoid duplication across modules.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_REDIRECT_MIN = 300
HTTP_STATUS_REDIRECT_MAX = 400
HTTP_STATUS_INTERNAL_SERVER_ERROR = 500

# Any three-digit code an upstream can send
HTTP_STATUS_CODE_MIN = 100
HTTP_STATUS_CODE_MAX = 999

# Outbound request identity
DEFAULT_USER_AGENT = "rssss"

# Per-attempt deadline (seconds); each redirect hop gets a fresh one
DEFAULT_TIMEOUT_SECONDS = 60.0

# Response Size Limits
DEFAULT_MAX_RESPONSE_SIZE_BYTES = 1_048_576  # 1 MiB

# Number of Location redirects followed before a 3xx is passed through
DEFAULT_MAX_REDIRECT_HOPS = 1

# Chunk size for streaming reads
DEFAULT_CHUNK_SIZE = 8192
