from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass, field
from typing import Any, Protocol

from dbus_next import Variant
from dbus_next.aio import MessageBus
from dbus_next.errors import DBusError, InvalidAddressError

from brightness_notifier.operation import TIMEOUT_RANGE, check_range

log = logging.getLogger(__name__)

APP_NAME = "brightness-notifier"
SUMMARY = "Brightness"

BUS = "org.freedesktop.Notifications"
OBJ = "/org/freedesktop/Notifications"

BAR_WIDTH = 10


class NotifyError(RuntimeError):
    pass


@dataclass
class NotificationHandle:
    """Id of the last notification this process showed (0 = none yet)."""

    id: int = 0


@dataclass(frozen=True)
class Rendered:
    summary: str
    body: str
    icon: str
    value: int


def icon_for(level: int) -> str:
    if level < 33:
        return "display-brightness-low"
    if level < 66:
        return "display-brightness-medium"
    return "display-brightness-high"


def bar(level: int, width: int = BAR_WIDTH) -> str:
    filled = round(width * max(0, min(100, level)) / 100)
    return "■" * filled + "□" * (width - filled)


def render(level: int) -> Rendered:
    return Rendered(
        summary=SUMMARY,
        body=f"{bar(level)} {level}%",
        icon=icon_for(level),
        value=level,
    )


class Notifier(Protocol):
    handle: NotificationHandle

    async def show(self, level: int, timeout_ms: int) -> None: ...


@dataclass
class DbusNotifier:
    """Show notifications through org.freedesktop.Notifications."""

    app_name: str = APP_NAME
    handle: NotificationHandle = field(default_factory=NotificationHandle)

    def hints(self, value: int) -> dict[str, Variant]:
        return {
            # Stack tags make the daemon replace our previous bubble across processes.
            "x-canonical-private-synchronous": Variant("s", self.app_name),
            "x-dunst-stack-tag": Variant("s", self.app_name),
            "value": Variant("i", value),
        }

    async def _notify(self, *args: Any) -> int:
        bus = await MessageBus().connect()
        try:
            introspection = await bus.introspect(BUS, OBJ)
            obj = bus.get_proxy_object(BUS, OBJ, introspection)
            iface = obj.get_interface(BUS)
            return int(await iface.call_notify(*args))
        finally:
            bus.disconnect()

    async def show(self, level: int, timeout_ms: int) -> None:
        check_range("notification timeout (ms)", timeout_ms, TIMEOUT_RANGE)
        r = render(level)
        try:
            nid = await self._notify(
                self.app_name,
                self.handle.id,
                r.icon,
                r.summary,
                r.body,
                [],
                self.hints(r.value),
                timeout_ms,
            )
        except (DBusError, InvalidAddressError, OSError) as e:
            raise NotifyError(f"Failed to display notification: {e}") from e
        log.debug("notification %d replaced by %d", self.handle.id, nid)
        self.handle.id = nid


@dataclass
class NotifySendNotifier:
    """Show notifications by running ``notify-send``."""

    app_name: str = APP_NAME
    bin_path: str = "notify-send"
    handle: NotificationHandle = field(default_factory=NotificationHandle)

    def command(self, level: int, timeout_ms: int) -> list[str]:
        r = render(level)
        cmd = [
            self.bin_path,
            f"--app-name={self.app_name}",
            f"--icon={r.icon}",
            f"--expire-time={timeout_ms}",
            f"--hint=string:x-canonical-private-synchronous:{self.app_name}",
            f"--hint=string:x-dunst-stack-tag:{self.app_name}",
            f"--hint=int:value:{r.value}",
            "--print-id",
        ]
        if self.handle.id:
            cmd.append(f"--replace-id={self.handle.id}")
        return [*cmd, r.summary, r.body]

    async def show(self, level: int, timeout_ms: int) -> None:
        check_range("notification timeout (ms)", timeout_ms, TIMEOUT_RANGE)
        cmd = self.command(level, timeout_ms)
        try:
            proc = await asyncio.to_thread(
                subprocess.run, cmd, capture_output=True, text=True, check=False
            )
        except OSError as e:
            raise NotifyError(f"Failed to run {self.bin_path}: {e}") from e
        if proc.returncode != 0:
            raise NotifyError(
                f"{self.bin_path} exited with {proc.returncode}: {proc.stderr.strip()}"
            )
        out = proc.stdout.strip()
        if out.isdigit():
            self.handle.id = int(out)


def build_notifier(backend: str, app_name: str = APP_NAME) -> Notifier:
    if backend == "dbus":
        return DbusNotifier(app_name=app_name)
    if backend == "notify-send":
        return NotifySendNotifier(app_name=app_name)
    raise ValueError(f"Unknown notification backend: {backend}")
