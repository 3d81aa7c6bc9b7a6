import os

from celery import Celery

import environ

# Initialize environment variables
env = environ.Env()

# set the default Django settings module for the 'celery' program.
if env("DEBUG", default="False") == "True":
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "artisanhub.settings.dev")
else:
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "artisanhub.settings.prod")

app = Celery("artisanhub")

# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")
app.conf.broker_connection_retry_on_startup = True

# Load task modules from all registered Django app configs.
app.autodiscover_tasks()
