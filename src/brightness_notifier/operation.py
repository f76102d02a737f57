from __future__ import annotations

from dataclasses import dataclass

from brightness_notifier.system.backlight import MAX_LEVEL, MIN_LEVEL

TIMEOUT_RANGE = (0, 120_000)
FADE_RANGE = (0, 60_000)
STEP_RANGE = (1, 200)


class InvalidValue(ValueError):
    pass


@dataclass(frozen=True)
class Increase:
    delta: int


@dataclass(frozen=True)
class Decrease:
    delta: int


@dataclass(frozen=True)
class SetTo:
    value: int


@dataclass(frozen=True)
class Get:
    pass


Operation = Increase | Decrease | SetTo | Get


@dataclass(frozen=True)
class Transition:
    target: int


@dataclass(frozen=True)
class ReadOnly:
    current: int


ResolvedIntent = Transition | ReadOnly


def clamp(value: int, lo: int = MIN_LEVEL, hi: int = MAX_LEVEL) -> int:
    return max(lo, min(hi, value))


def check_range(name: str, value: int, bounds: tuple[int, int]) -> int:
    lo, hi = bounds
    if not lo <= value <= hi:
        raise InvalidValue(f"{name} must be between {lo} and {hi}, got {value}")
    return value


def validate(op: Operation) -> Operation:
    """Reject operations that can never be applied.

    Only an explicit ``SetTo`` is range checked; increase/decrease deltas
    are clamped during resolution instead.
    """

    if isinstance(op, SetTo):
        check_range("brightness", op.value, (MIN_LEVEL, MAX_LEVEL))
    elif isinstance(op, (Increase, Decrease)) and op.delta < 0:
        raise InvalidValue(f"brightness step must not be negative, got {op.delta}")
    return op


def resolve(op: Operation, current: int) -> ResolvedIntent:
    validate(op)
    if isinstance(op, Get):
        return ReadOnly(current)
    if isinstance(op, Increase):
        return Transition(clamp(current + op.delta))
    if isinstance(op, Decrease):
        return Transition(clamp(current - op.delta))
    if isinstance(op, SetTo):
        return Transition(clamp(op.value))
    raise InvalidValue(f"Unknown operation: {op!r}")
