from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

log = logging.getLogger(__name__)

MIN_LEVEL = 1
MAX_LEVEL = 100


class BacklightError(RuntimeError):
    pass


class QueryError(BacklightError):
    """The current brightness could not be read."""


class ApplyError(BacklightError):
    """A brightness write failed; the device state is whatever it was left at."""


class BrightnessProvider(Protocol):
    def get_current(self) -> int: ...

    def set_level(self, level: int) -> None: ...


def _check_level(level: int) -> int:
    if not MIN_LEVEL <= int(level) <= MAX_LEVEL:
        raise ApplyError(f"Refusing to set brightness outside {MIN_LEVEL}-{MAX_LEVEL}%: {level}")
    return int(level)


@dataclass(frozen=True)
class XBacklight:
    """Drive the backlight through the ``xbacklight`` command."""

    bin_path: str = "xbacklight"

    def _run(self, *args: str) -> subprocess.CompletedProcess[str]:
        cmd = [self.bin_path, *args]
        log.debug("running %s", " ".join(cmd))
        return subprocess.run(cmd, capture_output=True, text=True, check=False)  # noqa: S603

    def get_current(self) -> int:
        try:
            proc = self._run("-get")
        except FileNotFoundError as e:
            raise QueryError(
                f"{self.bin_path} not found, please install the xbacklight package"
            ) from e
        except OSError as e:
            raise QueryError(f"Failed to run {self.bin_path}: {e}") from e
        if proc.returncode != 0:
            raise QueryError(
                f"{self.bin_path} -get exited with {proc.returncode}: {proc.stderr.strip()}"
            )
        try:
            value = float(proc.stdout.strip())
        except ValueError as e:
            raise QueryError(f"Unparseable brightness from {self.bin_path}: {proc.stdout!r}") from e
        return round(value)

    def set_level(self, level: int) -> None:
        level = _check_level(level)
        try:
            proc = self._run("-set", str(level))
        except FileNotFoundError as e:
            raise ApplyError(
                f"{self.bin_path} not found, please install the xbacklight package"
            ) from e
        except OSError as e:
            raise ApplyError(f"Failed to run {self.bin_path}: {e}") from e
        if proc.returncode != 0:
            raise ApplyError(f"Failed to set brightness to {level}%: {proc.stderr.strip()}")


@dataclass(frozen=True)
class SysfsBacklight:
    sysfs_dir: Path

    @property
    def _brightness(self) -> Path:
        return self.sysfs_dir / "brightness"

    @property
    def _actual_brightness(self) -> Path:
        return self.sysfs_dir / "actual_brightness"

    @property
    def _max_brightness(self) -> Path:
        return self.sysfs_dir / "max_brightness"

    def _read_int(self, path: Path) -> int:
        try:
            return int(path.read_text(encoding="utf-8").strip())
        except (OSError, ValueError) as e:
            raise QueryError(f"Cannot read {path}: {e}") from e

    def _max(self) -> int:
        max_raw = self._read_int(self._max_brightness)
        if max_raw <= 0:
            raise QueryError(f"{self._max_brightness} reports no usable range: {max_raw}")
        return max_raw

    def get_current(self) -> int:
        # actual_brightness reflects the hardware, brightness only the last request.
        src = self._actual_brightness if self._actual_brightness.exists() else self._brightness
        raw = self._read_int(src)
        return round(raw * 100 / self._max())

    def set_level(self, level: int) -> None:
        level = _check_level(level)
        try:
            max_raw = self._max()
        except QueryError as e:
            raise ApplyError(str(e)) from e
        raw = max(1, round(max_raw * level / 100))
        try:
            self._brightness.write_text(str(raw), encoding="utf-8")
        except OSError as e:
            raise ApplyError(f"Cannot write {self._brightness}: {e}") from e


def build_backlight(
    backend: str, xbacklight_bin: str = "xbacklight", sysfs_dir: str = ""
) -> BrightnessProvider:
    if backend == "xbacklight":
        return XBacklight(bin_path=xbacklight_bin)
    if backend == "sysfs":
        return SysfsBacklight(Path(sysfs_dir))
    raise ValueError(f"Unknown backlight backend: {backend}")
