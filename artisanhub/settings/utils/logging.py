import os
import sys
from pathlib import Path

# ─────────────────────────────────────────────────────
# Create a "logs" directory next to this settings file:
# ─────────────────────────────────────────────────────
LOG_DIR = Path(__file__).resolve().parent / "logs"

from .performance import PERFORMANCE_API_PREFIXES

# One log path per performance prefix
PERFORMANCE_LOG_PATHS = {
    short_name: LOG_DIR / f"{short_name}_performance.log"
    for short_name in PERFORMANCE_API_PREFIXES.values()
}
ERROR_LOG_PATH = LOG_DIR / "error.log"
INFO_LOG_PATH = LOG_DIR / "info.log"
THROTTLE_LOG_PATH = LOG_DIR / "throttling.log"
TASKS_LOG_PATH = LOG_DIR / "quote_tasks.log"

# Only touch the filesystem when file handlers are actually used
if not os.environ.get("GITHUB_ACTIONS"):
    os.makedirs(LOG_DIR, exist_ok=True)

# ─────────────────────────────────────────────────────
# base logging config
# ─────────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "console": {"format": "%(name)-12s %(levelname)-8s %(message)s"},
        "file": {"format": "%(asctime)s %(name)-12s %(levelname)-8s %(message)s"},
        "verbose": {
            "format": "%(asctime)s %(levelname)s [%(name)s:%(lineno)d] %(message)s"
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "console",
            "stream": sys.stdout,
        },
        "throttle_file": {
            "level": "WARNING",
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "file",
            "filename": str(THROTTLE_LOG_PATH),
            "maxBytes": 1_000_000,
            "backupCount": 10,
        },
        # these get removed in CI
        "info_file": {
            "level": "INFO",
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "file",
            "filename": str(INFO_LOG_PATH),
            "maxBytes": 1_000_000,
            "backupCount": 10,
        },
        "error_file": {
            "level": "ERROR",
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "file",
            "filename": str(ERROR_LOG_PATH),
            "maxBytes": 1_000_000,
            "backupCount": 10,
        },
        **{
            f"{short_name}_performance_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "filename": str(path),
                "formatter": "file",
                "maxBytes": 10 * 1024 * 1024,
                "backupCount": 5,
                "level": "INFO",
            }
            for short_name, path in PERFORMANCE_LOG_PATHS.items()
        },
        "tasks_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(TASKS_LOG_PATH),
            "formatter": "verbose",
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
            "level": "INFO",
        },
    },
    "loggers": {
        # root logger
        "": {
            "level": "INFO",
            "handlers": ["console", "info_file", "error_file"],
            "propagate": True,
        },
        "apps.core.throttle": {
            "handlers": ["throttle_file"],
            "level": "INFO",
            "propagate": True,
        },
        **{
            f"{short_name}_performance": {
                "handlers": [f"{short_name}_performance_file"],
                "level": "INFO",
                "propagate": False,
            }
            for short_name in PERFORMANCE_API_PREFIXES.values()
        },
        "quote_tasks": {
            "handlers": ["console", "tasks_file", "error_file"],
            "level": "INFO",
            "propagate": False,
        },
    },
}

# If running under CI (e.g. GitHub Actions), drop all file handlers:
if os.environ.get("GITHUB_ACTIONS"):
    for h in list(LOGGING["handlers"].keys()):
        if h.endswith("_file"):
            LOGGING["handlers"].pop(h, None)

    for logger_config in LOGGING["loggers"].values():
        logger_config["handlers"] = ["console"]
