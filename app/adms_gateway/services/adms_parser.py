"""Parsing of ADMS ``cdata`` bodies pushed by eSSL/ZKTeco terminals.

A body carries newline separated records. Attendance lines come in three
shapes::

    PUNCH\\t1093\\t2025-01-10 09:00:00\\t0\\t1\\t0
    1093\\t2025-01-10 09:00:00\\t0\\t1\\t0
    1093 2025-01-10 09:00:00 0 1 0

``USER`` lines announce a template stored on the terminal and ``OPLOG`` lines
are operation logs; neither is attendance.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, Union

logger = logging.getLogger(__name__)

USER_KEYWORD = "USER"
OPLOG_KEYWORD = "OPLOG"
PUNCH_KEYWORD = "PUNCH"

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")
_PIN_RE = re.compile(r"PIN=(\d+)")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ScanEvent:
    device_serial: str
    raw_line: str
    template_id: str
    scanned_at: datetime  # naive, attendance time zone


@dataclass(frozen=True)
class EnrollmentAnnouncement:
    device_serial: str
    raw_line: str
    pin: str


@dataclass(frozen=True)
class Skip:
    raw_line: str
    reason: str


ParseResult = Union[ScanEvent, EnrollmentAnnouncement, Skip]


def parse_timestamp(value: str) -> datetime | None:
    value = value.strip()
    if not _TIMESTAMP_RE.match(value):
        return None
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        return None


def _split_fields(line: str) -> list[str]:
    fields = line.split("\t")
    if len(fields) < 3:
        fields = _WHITESPACE_RE.split(line)
    return fields


def _extract(line: str, fields: list[str]) -> tuple[str, str]:
    if fields[0] == PUNCH_KEYWORD:
        return fields[1], fields[2]
    if "\t" in line:
        return fields[0], fields[1]
    # Whitespace split separates the date from the time.
    return fields[0], f"{fields[1]} {fields[2]}"


def parse_line(line: str, device_serial: str = "") -> ParseResult:
    if line.startswith(USER_KEYWORD):
        match = _PIN_RE.search(line)
        if match:
            return EnrollmentAnnouncement(device_serial=device_serial, raw_line=line, pin=match.group(1))
        return Skip(raw_line=line, reason="user_without_pin")

    if line.startswith(OPLOG_KEYWORD):
        return Skip(raw_line=line, reason="operation_log")

    if "\t" not in line and " " not in line and PUNCH_KEYWORD not in line:
        return Skip(raw_line=line, reason="no_separator")

    fields = _split_fields(line)
    if len(fields) < 3:
        return Skip(raw_line=line, reason="not_enough_fields")

    template_id, timestamp_raw = _extract(line, fields)
    scanned_at = parse_timestamp(timestamp_raw)
    if scanned_at is None:
        return Skip(raw_line=line, reason="invalid_timestamp")

    return ScanEvent(
        device_serial=device_serial,
        raw_line=line,
        template_id=template_id.strip(),
        scanned_at=scanned_at,
    )


def iter_lines(body: str) -> Iterator[str]:
    for line in body.split("\n"):
        line = line.rstrip("\r")
        if line.strip():
            yield line


def parse_payload(body: str, device_serial: str = "") -> Iterator[ParseResult]:
    for line in iter_lines(body):
        result = parse_line(line, device_serial)
        if isinstance(result, Skip):
            logger.debug(
                "ADMS line skipped",
                extra={"device_serial": device_serial, "reason": result.reason, "raw_line": line},
            )
        yield result
