"""Load and save the JSON settings file under the platformdirs config dir."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from himalaya_tui.models import (
    CONFIG_APP_NAME,
    DEFAULT_BACKEND_TIMEOUT,
    DEFAULT_TICK_RATE_MS,
    MAX_BACKEND_TIMEOUT,
    MAX_TICK_RATE_MS,
    MIN_TICK_RATE_MS,
    UserConfig,
)
from himalaya_tui.themes import THEME_NAMES

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Persistence
# ============================================================================
#
# Validation contract: _dict_to_config() guarantees valid output for any input:
#
#   Field                    Rule                          Handler
#   ───────────────────────  ────────────────────────────  ───────────────────
#   tick_rate_ms             10 ≤ x ≤ 10000                _coerce_tick_rate
#   backend_timeout_seconds  1 ≤ x ≤ 600                   _coerce_backend_timeout
#   himalaya_command         non-blank string              _dict_to_config
#   theme_name               in THEME_NAMES                _dict_to_config
#   scalar fields            type-checked via _safe_get()  _dict_to_config
#
CONFIG_FILENAME = "config.json"


def get_config_path() -> Path:
    """Location of ``config.json``.

    Resolved through platformdirs, e.g.:
    - Linux: ~/.config/himalaya-tui/config.json
    - macOS: ~/Library/Application Support/himalaya-tui/config.json
    - Windows: %APPDATA%/himalaya-tui/config.json
    """
    config_dir = Path(user_config_dir(CONFIG_APP_NAME))
    return config_dir / CONFIG_FILENAME


def _safe_get(data: dict, key: str, default: Any, expected_type: type) -> Any:
    """``data[key]`` if it has ``expected_type``, else ``default``.

    Booleans never count as ints.
    """
    value = data.get(key, default)
    if not isinstance(value, expected_type) or (
        expected_type is int and isinstance(value, bool)
    ):
        return default
    return value


def _coerce_tick_rate(value: Any) -> int:
    """Validate and clamp the tick interval in milliseconds."""
    if isinstance(value, bool) or not isinstance(value, int):
        return DEFAULT_TICK_RATE_MS
    return max(MIN_TICK_RATE_MS, min(value, MAX_TICK_RATE_MS))


def _coerce_backend_timeout(value: Any) -> int:
    """Validate and clamp the backend subprocess timeout in seconds."""
    if isinstance(value, bool) or not isinstance(value, int):
        return DEFAULT_BACKEND_TIMEOUT
    return max(1, min(value, MAX_BACKEND_TIMEOUT))


def _config_to_dict(config: UserConfig) -> dict[str, Any]:
    """Serialize UserConfig to a JSON-compatible dictionary."""
    return {
        "version": config.version,
        "himalaya_command": config.himalaya_command,
        "account": config.account,
        "mailbox": config.mailbox,
        "tick_rate_ms": _coerce_tick_rate(config.tick_rate_ms),
        "backend_timeout_seconds": _coerce_backend_timeout(config.backend_timeout_seconds),
        "ascii_icons": config.ascii_icons,
        "link_opener": config.link_opener,
        "theme_name": config.theme_name,
    }


def _dict_to_config(data: dict[str, Any]) -> UserConfig:
    """Deserialize a dictionary to UserConfig with type validation."""
    command = _safe_get(data, "himalaya_command", "himalaya", str).strip() or "himalaya"
    theme_name = _safe_get(data, "theme_name", "monokai", str)
    if theme_name not in THEME_NAMES:
        logger.warning("Unknown theme %r, defaulting to 'monokai'", theme_name)
        theme_name = "monokai"
    return UserConfig(
        himalaya_command=command,
        account=_safe_get(data, "account", "", str),
        mailbox=_safe_get(data, "mailbox", "", str),
        tick_rate_ms=_coerce_tick_rate(data.get("tick_rate_ms", DEFAULT_TICK_RATE_MS)),
        backend_timeout_seconds=_coerce_backend_timeout(
            data.get("backend_timeout_seconds", DEFAULT_BACKEND_TIMEOUT)
        ),
        ascii_icons=_safe_get(data, "ascii_icons", False, bool),
        link_opener=_safe_get(data, "link_opener", "", str),
        theme_name=theme_name,
        version=_safe_get(data, "version", 1, int),
    )


def load_config() -> UserConfig:
    """Read ``config.json``, falling back to defaults.

    A missing file is a normal first run. An unreadable or malformed file
    also yields defaults, flagged with ``config_defaulted`` so the app can
    warn about it.
    """
    config_path = get_config_path()
    if not config_path.exists():
        return UserConfig()

    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning("Config unreadable at %s, using defaults: %s", config_path, e)
        return UserConfig(config_defaulted=True)

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Config is not valid JSON, using defaults: %s", e)
        return UserConfig(config_defaulted=True)

    if not isinstance(data, dict):
        logger.warning(
            "Config root must be a JSON object, got %s; using defaults", type(data).__name__
        )
        return UserConfig(config_defaulted=True)
    return _dict_to_config(data)


def save_config(config: UserConfig) -> bool:
    """Write ``config`` to ``config.json`` and report whether it landed.

    The JSON goes to a sibling temp file first and is moved into place with
    ``os.replace``, so readers never see a half-written file.
    """
    config_path = get_config_path()
    payload = json.dumps(_config_to_dict(config), indent=2, ensure_ascii=False)

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=config_path.parent, prefix=".config-", suffix=".tmp")
    except OSError as e:
        logger.error("Cannot prepare config directory %s: %s", config_path.parent, e)
        return False

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
        os.replace(tmp_path, config_path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        logger.error("Failed to write config to %s: %s", config_path, e)
        return False
    logger.debug("Saved config to %s", config_path)
    return True


__all__ = [
    "CONFIG_APP_NAME",
    "CONFIG_FILENAME",
    "get_config_path",
    "load_config",
    "save_config",
]
