"""Environment flags and config file loading.

* **Test mode** -- :func:`is_test_env` reads ``WEBCACHE_ENV`` (falling back
  to ``PYTHON_ENV``). When it is ``test`` the in-memory store does not warn
  about production use.
* **Config files** -- :func:`load_config` reads a JSON or YAML document
  into a :class:`~webcache.models.WebCacheConfig`.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from webcache.exceptions import ConfigError
from webcache.models import WebCacheConfig

ENV_VAR = "WEBCACHE_ENV"
_FALLBACK_ENV_VAR = "PYTHON_ENV"
TEST_ENV = "test"


def is_test_env() -> bool:
    """Return True if the process runs in test mode."""
    value = os.environ.get(ENV_VAR) or os.environ.get(_FALLBACK_ENV_VAR, "")
    return value.strip().lower() == TEST_ENV


def load_config(path: str | Path) -> WebCacheConfig:
    """Load and validate a webcache config file.

    ``.json``, ``.yaml`` and ``.yml`` files are parsed by extension; any
    other file is tried as JSON, then as YAML.

    Args:
        path: Path to the config file.

    Returns:
        The validated :class:`~webcache.models.WebCacheConfig`.

    Raises:
        ConfigError: If the file is missing, unreadable, unparseable, or
            fails validation.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc}") from exc

    if not content.strip():
        raise ConfigError(f"Config file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    data = _parse_content(content, hint=hint, source=str(path))
    return validate_config(data, source=str(path))


def validate_config(data: Any, source: str = "config") -> WebCacheConfig:
    """Validate a parsed config document.

    Raises:
        ConfigError: If *data* is not a mapping or fails validation.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"{source}: expected a mapping, got {type(data).__name__}")
    try:
        return WebCacheConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {source}: {exc}") from exc


def _parse_content(content: str, hint: str = "", source: str = "config") -> Any:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.
    """
    if hint != "yaml":
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise ConfigError(f"Invalid JSON in {source}: {exc}") from exc

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {source}: {exc}") from exc
