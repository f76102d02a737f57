from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

import yaml

from brightness_notifier.operation import FADE_RANGE, STEP_RANGE, TIMEOUT_RANGE
from brightness_notifier.paths import default_config_path

log = logging.getLogger(__name__)

BACKLIGHT_BACKENDS = ("xbacklight", "sysfs")
NOTIFY_BACKENDS = ("dbus", "notify-send")

DEFAULTS: dict[str, Any] = {
    "backlight": {
        "backend": "xbacklight",
        "xbacklight_bin": "xbacklight",
        "sysfs_dir": "/sys/class/backlight/intel_backlight",
    },
    "notification": {
        "backend": "dbus",
        "app_name": "brightness-notifier",
        "timeout_ms": 2000,
    },
    "fade": {
        "duration_ms": 100,
        "steps": 25,
    },
    "step_percent": 5,
}


class ConfigError(ValueError):
    pass


def _section(cfg: dict[str, Any], key: str) -> dict[str, Any]:
    section = cfg.get(key, {})
    if not isinstance(section, dict):
        raise ConfigError(f"{key} must be a mapping")
    return section


def _int_in(value: Any, name: str, bounds: tuple[int, int]) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    lo, hi = bounds
    if not lo <= value <= hi:
        raise ConfigError(f"{name} must be between {lo} and {hi}, got {value}")
    return value


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load(path: str | Path | None = None) -> dict[str, Any]:
    """Load the YAML config merged over DEFAULTS.

    Without an explicit path a missing default file just means defaults.
    """

    if path is None:
        p = default_config_path()
        if not p.exists():
            log.debug("no config at %s, using defaults", p)
            return copy.deepcopy(DEFAULTS)
    else:
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"Config file not found: {p}")

    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {p}: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Top-level config must be a mapping")
    cfg = _merge(DEFAULTS, data)
    validate(cfg)
    return cfg


def validate(cfg: dict[str, Any]) -> None:
    backlight = _section(cfg, "backlight")
    backend = backlight.get("backend")
    if backend not in BACKLIGHT_BACKENDS:
        raise ConfigError(f"backlight.backend must be one of {', '.join(BACKLIGHT_BACKENDS)}")
    if backend == "sysfs" and not str(backlight.get("sysfs_dir") or "").strip():
        raise ConfigError("backlight.sysfs_dir is required for the sysfs backend")
    if backend == "xbacklight" and not str(backlight.get("xbacklight_bin") or "").strip():
        raise ConfigError("backlight.xbacklight_bin must not be empty")

    notification = _section(cfg, "notification")
    if notification.get("backend") not in NOTIFY_BACKENDS:
        raise ConfigError(f"notification.backend must be one of {', '.join(NOTIFY_BACKENDS)}")
    if not str(notification.get("app_name") or "").strip():
        raise ConfigError("notification.app_name must not be empty")
    _int_in(notification.get("timeout_ms"), "notification.timeout_ms", TIMEOUT_RANGE)

    fade = _section(cfg, "fade")
    _int_in(fade.get("duration_ms"), "fade.duration_ms", FADE_RANGE)
    _int_in(fade.get("steps"), "fade.steps", STEP_RANGE)

    _int_in(cfg.get("step_percent"), "step_percent", (1, 100))
