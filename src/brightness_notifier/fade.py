from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from brightness_notifier.operation import FADE_RANGE, STEP_RANGE, check_range
from brightness_notifier.system.backlight import BacklightError, BrightnessProvider

log = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class FadeSpec:
    duration_ms: int = 100
    steps: int = 25

    def __post_init__(self) -> None:
        check_range("fade duration (ms)", self.duration_ms, FADE_RANGE)
        check_range("step count", self.steps, STEP_RANGE)


@dataclass(frozen=True)
class FadeStep:
    level: int
    delay_ms: int


def _div_round(num: int, den: int) -> int:
    """Integer division rounding halves away from zero."""

    q = (abs(num) * 2 + den) // (den * 2)
    return q if num >= 0 else -q


def plan_fade(start: int, target: int, spec: FadeSpec) -> list[FadeStep]:
    """Return the steps that take the backlight from ``start`` to ``target``.

    Levels are a linear interpolation whose last entry is always ``target``.
    Each step waits ``duration_ms // steps``; the remainder goes to the last
    step so the delays add up to the full duration.
    """

    base_delay = spec.duration_ms // spec.steps
    if start == target:
        return [FadeStep(level=target, delay_ms=base_delay)]

    delta = target - start
    plan = [
        FadeStep(level=start + _div_round(delta * (i + 1), spec.steps), delay_ms=base_delay)
        for i in range(spec.steps)
    ]
    last = plan[-1]
    plan[-1] = FadeStep(level=target, delay_ms=last.delay_ms + spec.duration_ms % spec.steps)
    return plan


class FadeState(enum.Enum):
    IDLE = "idle"
    PLANNING = "planning"
    STEPPING = "stepping"
    DONE = "done"


async def _asyncio_sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


@dataclass
class FadeScheduler:
    """Walk a provider through a fade plan, one write per distinct level.

    A failed write aborts the fade where it is. Levels already applied are
    left in place. Nothing waits after the target is written.
    """

    provider: BrightnessProvider
    sleep: Sleep = _asyncio_sleep
    state: FadeState = field(default=FadeState.IDLE, init=False)
    step_index: int | None = field(default=None, init=False)
    applied: list[int] = field(default_factory=list, init=False)
    error: BacklightError | None = field(default=None, init=False)

    async def run(self, start: int, target: int, spec: FadeSpec) -> int:
        self.state = FadeState.PLANNING
        self.step_index = None
        self.applied = []
        self.error = None
        plan = plan_fade(start, target, spec)
        log.debug("fade %d%% -> %d%% in %d step(s)", start, target, len(plan))

        # A lone step is always written so a boundary request still reaches the device.
        previous: int | None = start if len(plan) > 1 else None
        last = len(plan) - 1
        for i, step in enumerate(plan):
            self.state = FadeState.STEPPING
            self.step_index = i
            if step.level != previous:
                try:
                    self.provider.set_level(step.level)
                except BacklightError as e:
                    self.error = e
                    self.state = FadeState.DONE
                    raise
                self.applied.append(step.level)
                log.debug("step %d: %d%%", i, step.level)
            previous = step.level
            if i == last:
                break
            # Repeated levels still wait so the fade keeps its pacing.
            await self.sleep(step.delay_ms / 1000)

        self.state = FadeState.DONE
        return target
