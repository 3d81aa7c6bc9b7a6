# Quote negotiation settings
QUOTE_SETTINGS = {
    # Deadlines
    "DEFAULT_EXPIRES_IN_DAYS": 7,
    "MIN_EXPIRES_IN_DAYS": 1,
    "MAX_EXPIRES_IN_DAYS": 30,
    # Monetary sanity: requested price must be >= 50% of the live product price
    "MIN_PRICE_RATIO": "0.50",
    # Text bounds
    "MAX_SPECIFICATIONS_LENGTH": 2000,
    "MAX_MESSAGE_LENGTH": 1000,
    # Expiration sweeper
    "SWEEP_BATCH_SIZE": 500,
    # Caching
    "STATS_CACHE_TIMEOUT": 300,  # 5 minutes
    # Notifications
    "NOTIFY_PARTIES": True,
}
