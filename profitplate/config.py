"""Application settings stored as one JSON object under the "settings" key.

Known keys (camelCase on disk):
    language      — UI language code, default "en".
    currency      — ISO currency shown next to prices, default "EUR".
    locale        — number-format locale, default "eu".
    autoRecalc    — cost recipes with live purchase prices (True) or with
                    the snapshot frozen on each ingredient line (False).
    showAdvanced  — show advanced columns in the UI.

Missing keys fall back to the defaults; unknown keys are ignored.
"""

import logging
from dataclasses import asdict, fields

from profitplate.db.database import load_collection, save_collection
from profitplate.db.models import Settings, camel, normalize_keys, snake, to_record

logger = logging.getLogger(__name__)

COLLECTION = "settings"

DEFAULTS = to_record(Settings())


def _coerce(name: str, value, default):
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false", "1", "0", "on", "off"):
            return value.strip().lower() in ("true", "1", "on")
        logger.warning("Ignoring invalid value %r for setting %s", value, name)
        return default
    if isinstance(value, str) and value.strip():
        return value.strip()
    logger.warning("Ignoring invalid value %r for setting %s", value, name)
    return default


def settings_from_record(data: dict) -> Settings:
    """Overlay a (possibly partial) record onto the defaults."""
    defaults = Settings()
    values = normalize_keys(data)
    kwargs = {}
    for f in fields(Settings):
        default = getattr(defaults, f.name)
        kwargs[f.name] = _coerce(f.name, values[f.name], default) if f.name in values else default
    return Settings(**kwargs)


def get_settings(storage) -> Settings:
    """Return the stored settings, filled in with defaults."""
    return settings_from_record(load_collection(storage, COLLECTION, dict(DEFAULTS)))


def get_setting(storage, key: str, default=None):
    """Return one setting by snake_case or camelCase name, or default if unknown."""
    values = asdict(get_settings(storage))
    return values.get(snake(key), default)


def save_settings(storage, changes: dict) -> Settings:
    """Merge changes into the stored settings and persist the whole object (upsert)."""
    current = to_record(get_settings(storage))
    for key, value in normalize_keys(changes).items():
        if camel(key) in current:
            current[camel(key)] = value
    updated = settings_from_record(current)
    save_collection(storage, COLLECTION, to_record(updated))
    return updated


def set_setting(storage, key: str, value) -> Settings:
    """Update a single settings key."""
    return save_settings(storage, {key: value})
