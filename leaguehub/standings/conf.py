"""
Settings for the standings service, read from ``settings.STANDINGS``.

Values are looked up on every access so ``override_settings`` works in tests.
"""

from django.conf import settings

DEFAULTS = {
    "CACHE_ALIAS": "default",
    "CACHE_TIMEOUT": None,
    "EAGER_RECOMPUTE": False,
    "SERVE_PARTIAL": True,
    "COMPUTE_TIMEOUT": 5.0,
    "LOAD_RETRIES": 2,
    "MAX_WORKERS": 4,
}


def standings_setting(name: str):
    if name not in DEFAULTS:
        raise KeyError(f"Unknown standings setting {name}")
    return getattr(settings, "STANDINGS", {}).get(name, DEFAULTS[name])
