import logging

from celery import Task
from django.db import DatabaseError

logger = logging.getLogger("quote_tasks")


class BaseTaskWithRetry(Task):
    """
    Base Celery task that retries on transient database failures.

    Business-rule errors are not retried; they are raised to the caller
    (or recorded by the worker) unchanged.
    """

    autoretry_for = (DatabaseError, ConnectionError)
    retry_backoff = True
    retry_backoff_max = 600
    retry_jitter = True
    max_retries = 3

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(
            f"Task {self.name}[{task_id}] failed: {exc}", exc_info=einfo.exc_info
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)

    def on_retry(self, exc, task_id, args, kwargs, einfo):
        logger.warning(f"Retrying task {self.name}[{task_id}] after error: {exc}")
        super().on_retry(exc, task_id, args, kwargs, einfo)
