"""Session settings read from a YAML file."""

from pathlib import Path
from typing import Any

import yaml

DEFAULT_SETTINGS_PATH = Path("~/.config/crmban/settings.yaml")

SETTINGS_DEFAULTS = {
    "url": "",
    "token": "",
    "api-version": "9.2",
    "timeout": 30.0,
    "user-id": "",
}


class SettingsError(ValueError):
    """The settings file exists but cannot be used."""


def _python_key(key: str) -> str:
    """Convert file-style key (hyphenated) to Python-style (underscored)."""
    return key.replace("-", "_")


def _coerce_value(file_key: str, raw: Any):
    """Type-coerce a settings value using its default."""
    default = SETTINGS_DEFAULTS.get(file_key)
    if default is None or raw is None:
        return raw
    if isinstance(default, float):
        return float(raw)
    return str(raw)


def read_settings(path: str | Path | None = None) -> dict[str, Any]:
    """Read settings into a dict with python-style keys.

    A missing file yields the defaults. Unknown keys are kept as-is.
    """
    settings_path = Path(path or DEFAULT_SETTINGS_PATH).expanduser()
    data: dict[str, Any] = {}
    if settings_path.exists():
        try:
            data = yaml.safe_load(settings_path.read_text()) or {}
        except yaml.YAMLError as exc:
            raise SettingsError(f"{settings_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise SettingsError(f"{settings_path}: expected a mapping")

    result: dict[str, Any] = {}
    for file_key, raw in data.items():
        file_key = str(file_key).replace("_", "-")
        try:
            result[_python_key(file_key)] = _coerce_value(file_key, raw)
        except (TypeError, ValueError) as exc:
            raise SettingsError(f"{settings_path}: bad value for {file_key}: {raw!r}") from exc
    for file_key, default in SETTINGS_DEFAULTS.items():
        result.setdefault(_python_key(file_key), default)
    return result


def api_base_url(settings: dict[str, Any]) -> str:
    """Web API root for the configured organisation."""
    url = settings["url"].rstrip("/")
    if "/api/data/" in url:
        return url + "/"
    return f"{url}/api/data/v{settings['api_version']}/"
