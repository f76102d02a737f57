from __future__ import annotations

import asyncio
import subprocess
from typing import Any

import pytest

from brightness_notifier import notify
from brightness_notifier.notify import (
    DbusNotifier,
    NotifyError,
    NotifySendNotifier,
    bar,
    build_notifier,
    icon_for,
    render,
)
from brightness_notifier.operation import InvalidValue


@pytest.mark.parametrize(
    "level,icon",
    [
        (1, "display-brightness-low"),
        (32, "display-brightness-low"),
        (33, "display-brightness-medium"),
        (65, "display-brightness-medium"),
        (66, "display-brightness-high"),
        (100, "display-brightness-high"),
    ],
)
def test_icon_thresholds(level: int, icon: str) -> None:
    assert icon_for(level) == icon


def test_bar_is_proportional() -> None:
    assert bar(0) == "□" * 10
    assert bar(50) == "■" * 5 + "□" * 5
    assert bar(100) == "■" * 10


def test_render_shows_bar_and_value() -> None:
    r = render(42)
    assert r.summary == "Brightness"
    assert r.body.endswith(" 42%")
    assert r.value == 42


def test_dbus_notifier_reuses_handle(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[Any, ...]] = []

    async def fake_notify(self: DbusNotifier, *args: Any) -> int:
        calls.append(args)
        return 7

    monkeypatch.setattr(DbusNotifier, "_notify", fake_notify)
    n = DbusNotifier(app_name="bn-test")

    asyncio.run(n.show(40, 2000))
    asyncio.run(n.show(45, 2000))

    assert n.handle.id == 7
    app_name, replaces_id, icon, summary, body, actions, hints, timeout = calls[0]
    assert (app_name, replaces_id, icon, summary, timeout) == (
        "bn-test",
        0,
        "display-brightness-medium",
        "Brightness",
        2000,
    )
    assert actions == []
    assert hints["x-canonical-private-synchronous"].value == "bn-test"
    assert hints["value"].value == 40
    assert calls[1][1] == 7


def test_dbus_notifier_wraps_bus_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    async def broken(self: DbusNotifier, *args: Any) -> int:
        raise OSError("no session bus")

    monkeypatch.setattr(DbusNotifier, "_notify", broken)
    n = DbusNotifier()
    with pytest.raises(NotifyError):
        asyncio.run(n.show(40, 2000))
    assert n.handle.id == 0


def test_timeout_is_range_checked() -> None:
    with pytest.raises(InvalidValue):
        asyncio.run(NotifySendNotifier().show(40, 120_001))


def test_notify_send_command_replaces_previous() -> None:
    n = NotifySendNotifier(app_name="bn-test")
    cmd = n.command(70, 1500)
    assert cmd[0] == "notify-send"
    assert "--expire-time=1500" in cmd
    assert "--icon=display-brightness-high" in cmd
    assert "--hint=int:value:70" in cmd
    assert not any(c.startswith("--replace-id") for c in cmd)
    assert cmd[-2:] == ["Brightness", render(70).body]

    n.handle.id = 12
    assert "--replace-id=12" in n.command(70, 1500)


def test_notify_send_records_printed_id(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd: list[str], **_kw: Any) -> subprocess.CompletedProcess[str]:
        return subprocess.CompletedProcess(cmd, 0, "31\n", "")

    monkeypatch.setattr(notify.subprocess, "run", fake_run)
    n = NotifySendNotifier()
    asyncio.run(n.show(20, 2000))
    assert n.handle.id == 31


def test_notify_send_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(cmd: list[str], **_kw: Any) -> subprocess.CompletedProcess[str]:
        return subprocess.CompletedProcess(cmd, 1, "", "cannot connect")

    monkeypatch.setattr(notify.subprocess, "run", fake_run)
    with pytest.raises(NotifyError):
        asyncio.run(NotifySendNotifier().show(20, 2000))


def test_notify_send_missing_binary() -> None:
    with pytest.raises(NotifyError):
        asyncio.run(NotifySendNotifier(bin_path="/nonexistent/notify-send").show(20, 2000))


def test_build_notifier() -> None:
    assert isinstance(build_notifier("dbus"), DbusNotifier)
    assert isinstance(build_notifier("notify-send"), NotifySendNotifier)
    with pytest.raises(ValueError):
        build_notifier("toast")
