import os

from celery.schedules import crontab

# Celery Beat Schedule Configuration for the quote expiration sweep
CELERY_BEAT_SCHEDULE = {
    # ============================================
    # QUOTE EXPIRATION
    # ============================================
    # Hourly sweep moving overdue pending/countered quotes to EXPIRED.
    # Safe to overlap with a previous run.
    "expire-overdue-quotes": {
        "task": "apps.quotes.tasks.expire_overdue_quotes",
        "schedule": crontab(minute=0),  # Every hour on the hour
        "options": {
            "expires": 3000,  # Drop the run if it has not started within 50 minutes
            "retry": True,
            "retry_policy": {
                "max_retries": 3,
                "interval_start": 30,
                "interval_step": 30,
                "interval_max": 120,
            },
        },
    },
}

# Development configuration (more frequent)
CELERY_BEAT_SCHEDULE_DEV = {
    "expire-overdue-quotes-dev": {
        "task": "apps.quotes.tasks.expire_overdue_quotes",
        "schedule": crontab(minute="*/15"),  # Every 15 minutes in dev
        "options": {
            "expires": 600,
        },
    },
}

# Testing configuration
CELERY_BEAT_SCHEDULE_TEST = {
    "expire-overdue-quotes-test": {
        "task": "apps.quotes.tasks.expire_overdue_quotes",
        "schedule": crontab(minute="*/1"),  # Every minute in test
        "options": {
            "expires": 60,
            "retry": False,
        },
    },
}


def get_celery_beat_schedule():
    """
    Get the appropriate Celery Beat schedule based on DJANGO_ENV.

    Returns:
        dict: The schedule configuration
    """
    env = os.environ.get("DJANGO_ENV", "production").lower()

    if env in ("test", "testing"):
        return CELERY_BEAT_SCHEDULE_TEST
    elif env in ("development", "dev"):
        return CELERY_BEAT_SCHEDULE_DEV
    return CELERY_BEAT_SCHEDULE
