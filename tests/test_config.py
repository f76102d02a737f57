from __future__ import annotations

import copy
from pathlib import Path

import pytest

from brightness_notifier.config import DEFAULTS, ConfigError, load, validate
from brightness_notifier.paths import default_config_path


def test_defaults_are_valid() -> None:
    validate(copy.deepcopy(DEFAULTS))


def test_missing_default_file_means_defaults(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert load() == DEFAULTS


def test_default_path_follows_xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert default_config_path() == tmp_path / "brightness-notifier" / "config.yaml"

    monkeypatch.delenv("XDG_CONFIG_HOME")
    assert str(default_config_path()).startswith(str(Path.home()))


def test_missing_explicit_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load(tmp_path / "missing.yaml")


def test_partial_file_is_merged_over_defaults(tmp_path: Path) -> None:
    p = tmp_path / "config.yaml"
    p.write_text(
        "backlight:\n  backend: sysfs\n  sysfs_dir: /sys/class/backlight/acpi_video0\n"
        "fade:\n  steps: 10\n",
        encoding="utf-8",
    )
    cfg = load(p)
    assert cfg["backlight"]["backend"] == "sysfs"
    assert cfg["backlight"]["xbacklight_bin"] == "xbacklight"
    assert cfg["fade"] == {"duration_ms": 100, "steps": 10}
    assert cfg["notification"]["timeout_ms"] == 2000


def test_empty_file_is_defaults(tmp_path: Path) -> None:
    p = tmp_path / "config.yaml"
    p.write_text("", encoding="utf-8")
    assert load(p) == DEFAULTS


@pytest.mark.parametrize(
    "text",
    [
        "- just\n- a list\n",
        "backlight: [1, 2]\n",
        "backlight:\n  backend: ddc\n",
        "notification:\n  backend: toast\n",
        "notification:\n  timeout_ms: 120001\n",
        "fade:\n  duration_ms: 60001\n",
        "fade:\n  steps: 0\n",
        "fade:\n  steps: '25'\n",
        "step_percent: 0\n",
        "key: [unclosed\n",
    ],
)
def test_invalid_files_are_rejected(tmp_path: Path, text: str) -> None:
    p = tmp_path / "config.yaml"
    p.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load(p)
