# -----------------------------------------------------------------------------
# CENTRALIZED CACHE-KEY TEMPLATES
#
# For each resource that is cached, list every key name that may be used.
# Use Python-format placeholders for variable parts.
#
# Usage:
#    CacheKeyManager.make_key("quote", "stats", scope="customer", user_id=uid)
#    -> "quote:stats:customer:<uid>"
#
#    CacheKeyManager.make_pattern("quote", "stats_all")
#    -> "quote:stats:*"
#
# The code always prepends Django's KEY_PREFIX.
# -----------------------------------------------------------------------------
CACHE_KEY_TEMPLATES = {
    "quote": {
        # Stats per scope: "global", "customer", "artisan"
        "stats": "quote:stats:{scope}:{user_id}",
        # Wildcard pattern for bulk deletion - NO PLACEHOLDERS
        "stats_all": "quote:stats:*",
    },
}
