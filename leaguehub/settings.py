"""
Django settings for the leaguehub standings service.

Values that differ between environments are read from environment variables.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "leaguehub-dev-secret-key")

DEBUG = os.environ.get("DJANGO_DEBUG", "false").lower() in ("1", "true", "yes")

ALLOWED_HOSTS = [h for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "leaguehub.standings_core",
    "leaguehub.standings",
]

MIDDLEWARE = []

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DJANGO_DB_NAME", str(BASE_DIR / "leaguehub.sqlite3")),
    }
}

CACHES = {
    "default": {
        "BACKEND": os.environ.get(
            "DJANGO_CACHE_BACKEND", "django.core.cache.backends.locmem.LocMemCache"
        ),
        "LOCATION": os.environ.get("DJANGO_CACHE_LOCATION", "leaguehub-standings"),
    }
}

USE_TZ = True
TIME_ZONE = "UTC"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Standings engine. See leaguehub/standings/conf.py for the defaults.
STANDINGS = {
    "CACHE_ALIAS": "default",
    # Seconds a snapshot may live in the cache; None keeps it until invalidated.
    "CACHE_TIMEOUT": None,
    "EAGER_RECOMPUTE": os.environ.get("STANDINGS_EAGER_RECOMPUTE", "false").lower()
    in ("1", "true", "yes"),
    "SERVE_PARTIAL": True,
    "COMPUTE_TIMEOUT": float(os.environ.get("STANDINGS_COMPUTE_TIMEOUT", "5.0")),
    "LOAD_RETRIES": 2,
    "MAX_WORKERS": 4,
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "leaguehub": {
            "handlers": ["console"],
            "level": os.environ.get("LEAGUEHUB_LOG_LEVEL", "INFO"),
        },
    },
}
