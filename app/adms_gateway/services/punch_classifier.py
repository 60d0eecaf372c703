"""IN/OUT classification of a punch against the person's punches for the day.

A day moves through three states::

    EMPTY --IN--> OPEN --OUT--> CLOSED

Only those two transitions write a record. Every other scan is absorbed as a
skip rather than raised.

Rules, first match wins:

1. no punch yet today                      -> IN
2. elapsed < duplicate window              -> skip ``duplicate``
3. device in CHECK_IN_ONLY / CHECK_OUT_ONLY -> IN / OUT
4. last IN, elapsed >= minimum OUT gap     -> OUT
5. last IN, elapsed < minimum OUT gap      -> skip ``gap_too_short``
6. last OUT                                -> skip ``already_out``

Elapsed time runs from the last record's ``created_at``, the instant the
server stored it, to the scan's device timestamp.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Protocol

from adms_gateway.services.store import DeviceConfig
from devices.models import Device

IN = "IN"
OUT = "OUT"

MODE_IN_OUT = Device.MODE_IN_OUT
MODE_CHECK_IN_ONLY = Device.MODE_CHECK_IN_ONLY
MODE_CHECK_OUT_ONLY = Device.MODE_CHECK_OUT_ONLY


class DayState(enum.Enum):
    EMPTY = "EMPTY"
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class SkipReason(str, enum.Enum):
    DUPLICATE = "duplicate"
    GAP_TOO_SHORT = "gap_too_short"
    ALREADY_OUT = "already_out"


@dataclass(frozen=True)
class Classification:
    punch_type: str | None = None
    skip_reason: SkipReason | None = None
    elapsed_seconds: int | None = None

    @property
    def skipped(self) -> bool:
        return self.skip_reason is not None

    @classmethod
    def record(cls, punch_type: str, elapsed_seconds: int | None = None) -> Classification:
        return cls(punch_type=punch_type, elapsed_seconds=elapsed_seconds)

    @classmethod
    def skip(cls, reason: SkipReason, elapsed_seconds: int | None = None) -> Classification:
        return cls(skip_reason=reason, elapsed_seconds=elapsed_seconds)


class Punch(Protocol):
    punch_type: str
    created_at: datetime


def state_after(punch_type: str | None) -> DayState:
    if punch_type is None:
        return DayState.EMPTY
    return DayState.OPEN if punch_type == IN else DayState.CLOSED


def transition(
    state: DayState,
    elapsed_seconds: int | None,
    config: DeviceConfig,
) -> tuple[DayState, Classification]:
    """Apply one scan to the day state. ``elapsed_seconds`` is ignored for EMPTY."""
    if state is DayState.EMPTY:
        return DayState.OPEN, Classification.record(IN)

    if elapsed_seconds is None or elapsed_seconds < config.duplicate_window_seconds:
        return state, Classification.skip(SkipReason.DUPLICATE, elapsed_seconds)

    if config.attendance_mode == MODE_CHECK_IN_ONLY:
        return DayState.OPEN, Classification.record(IN, elapsed_seconds)
    if config.attendance_mode == MODE_CHECK_OUT_ONLY:
        return DayState.CLOSED, Classification.record(OUT, elapsed_seconds)

    if state is DayState.OPEN:
        if elapsed_seconds >= config.min_out_gap_seconds:
            return DayState.CLOSED, Classification.record(OUT, elapsed_seconds)
        return state, Classification.skip(SkipReason.GAP_TOO_SHORT, elapsed_seconds)

    return state, Classification.skip(SkipReason.ALREADY_OUT, elapsed_seconds)


def last_punch(records: Iterable[Punch]) -> Punch | None:
    # Ties go to the later record in store order.
    latest = None
    for record in records:
        if latest is None or record.created_at >= latest.created_at:
            latest = record
    return latest


def elapsed_between(later: datetime, earlier: datetime) -> int:
    return int((later - earlier).total_seconds())


def classify_punch(
    scanned_at: datetime,
    todays_records: Iterable[Punch],
    config: DeviceConfig | None = None,
) -> Classification:
    config = config or DeviceConfig.defaults()
    latest = last_punch(todays_records)
    if latest is None:
        _, outcome = transition(DayState.EMPTY, None, config)
        return outcome

    elapsed = elapsed_between(scanned_at, latest.created_at)
    _, outcome = transition(state_after(latest.punch_type), elapsed, config)
    return outcome
