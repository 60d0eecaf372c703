from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from django.conf import settings
from django.utils import timezone


def attendance_zone() -> ZoneInfo:
    return ZoneInfo(getattr(settings, "ATTENDANCE_TIME_ZONE", "Asia/Kolkata"))


def localize(naive: datetime) -> datetime:
    # Ambiguous or skipped wall-clock times resolve with fold=0.
    return timezone.make_aware(naive, attendance_zone())


def local_date(moment: datetime) -> date:
    return timezone.localtime(moment, attendance_zone()).date()


def local_today() -> date:
    return local_date(timezone.now())
