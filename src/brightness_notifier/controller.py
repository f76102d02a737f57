from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from brightness_notifier.fade import FadeScheduler, FadeSpec
from brightness_notifier.notify import Notifier, NotifyError, build_notifier
from brightness_notifier.operation import (
    TIMEOUT_RANGE,
    Operation,
    ReadOnly,
    check_range,
    resolve,
    validate,
)
from brightness_notifier.system.backlight import BrightnessProvider, build_backlight

log = logging.getLogger(__name__)


@dataclass
class Outcome:
    level: int
    changed: bool
    notified: bool


@dataclass
class Controller:
    provider: BrightnessProvider
    notifier: Notifier
    fade: FadeSpec = field(default_factory=FadeSpec)
    timeout_ms: int = 2000

    def __post_init__(self) -> None:
        check_range("notification timeout (ms)", self.timeout_ms, TIMEOUT_RANGE)
        self.scheduler = FadeScheduler(self.provider)

    @classmethod
    def from_config(cls, cfg: dict[str, Any], fade: FadeSpec, timeout_ms: int) -> Controller:
        bl = cfg["backlight"]
        provider = build_backlight(
            str(bl["backend"]),
            xbacklight_bin=str(bl["xbacklight_bin"]),
            sysfs_dir=str(bl["sysfs_dir"]),
        )
        nt = cfg["notification"]
        notifier = build_notifier(str(nt["backend"]), app_name=str(nt["app_name"]))
        return cls(provider=provider, notifier=notifier, fade=fade, timeout_ms=timeout_ms)

    async def _notify(self, level: int) -> bool:
        print(f"Current brightness: {level}%")
        try:
            await self.notifier.show(level, self.timeout_ms)
        except NotifyError as e:
            # The brightness change already happened; the bubble is best effort.
            log.warning("%s", e)
            return False
        return True

    async def run(self, op: Operation) -> Outcome:
        """Apply one operation and notify the resulting level.

        InvalidValue and QueryError are raised before any write. ApplyError
        aborts the fade and is raised without notifying.
        """

        validate(op)
        current = self.provider.get_current()
        intent = resolve(op, current)
        if isinstance(intent, ReadOnly):
            notified = await self._notify(intent.current)
            return Outcome(level=intent.current, changed=False, notified=notified)

        log.debug("brightness %d%% -> %d%%", current, intent.target)
        level = await self.scheduler.run(current, intent.target, self.fade)
        notified = await self._notify(level)
        return Outcome(level=level, changed=level != current, notified=notified)
