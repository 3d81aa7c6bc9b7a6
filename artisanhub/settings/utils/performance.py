# ----------------------------------------------------------------------------------
# Performance API prefixes for logging
# -----------------------------------------------------------------------------------
PERFORMANCE_API_PREFIXES = {
    # key = prefix to match in request.path
    # value = short name used to build the logger name "{short_name}_performance"
    "/api/v1/quotes": "quotes",
    "/api/v1/notifications": "notifications",
}

SLOW_REQUEST_THRESHOLD_SEC = 2
