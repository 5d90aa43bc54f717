from __future__ import annotations

from django.conf import settings

DEFAULTS = {
    "UPLOAD_TIMEOUT_SECONDS": 30,
    "DEFAULT_ATTEMPT_CAP": 1,
    "UPLOAD_FOLDER": "submissions",
    "MAX_UPLOAD_SIZE": 20 * 1024 * 1024,
}


def get_setting(name: str):
    """Read a ``COURSEWORK`` setting, falling back to :data:`DEFAULTS`."""

    config = getattr(settings, "COURSEWORK", {})
    return config.get(name, DEFAULTS[name])


def upload_timeout() -> float:
    return float(get_setting("UPLOAD_TIMEOUT_SECONDS"))


def default_attempt_cap() -> int:
    return max(1, int(get_setting("DEFAULT_ATTEMPT_CAP")))


def upload_folder() -> str:
    return str(get_setting("UPLOAD_FOLDER")).strip("/")


def max_upload_size() -> int:
    return int(get_setting("MAX_UPLOAD_SIZE"))
