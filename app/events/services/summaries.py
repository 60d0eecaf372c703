from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F

from events.client import SummaryWebhookClient
from events.models import AttendanceRecord, DailySummary, SummaryJob
from people.models import Person

logger = logging.getLogger(__name__)


def enqueue_summary(person: Person, day: date) -> SummaryJob:
    with transaction.atomic():
        job = SummaryJob.objects.filter(person=person, date=day, status=SummaryJob.STATUS_PENDING).first()
        if job:
            return job
        return SummaryJob.objects.create(person=person, date=day)


def _overall_status(records: list[AttendanceRecord]) -> str:
    statuses = {record.status for record in records}
    if AttendanceRecord.STATUS_LATE in statuses:
        return AttendanceRecord.STATUS_LATE
    if AttendanceRecord.STATUS_EARLY_OUT in statuses:
        return AttendanceRecord.STATUS_EARLY_OUT
    return AttendanceRecord.STATUS_PRESENT


def compute_daily_summary(person: Person, day: date) -> DailySummary | None:
    records = list(AttendanceRecord.objects.filter(person=person, date=day).order_by("punched_at", "id"))
    if not records:
        return None

    first_in = next((record for record in records if record.punch_type == AttendanceRecord.TYPE_IN), None)
    outs = [record for record in records if record.punch_type == AttendanceRecord.TYPE_OUT]
    last_out = outs[-1] if outs else None

    total_hours = Decimal("0")
    if first_in and last_out and last_out.punched_at > first_in.punched_at:
        minutes = int((last_out.punched_at - first_in.punched_at).total_seconds() // 60)
        total_hours = (Decimal(minutes) / Decimal(60)).quantize(Decimal("0.01"))

    summary, _ = DailySummary.objects.update_or_create(
        person=person,
        date=day,
        defaults={
            "first_in": first_in.punched_at if first_in else None,
            "last_out": last_out.punched_at if last_out else None,
            "total_hours": total_hours,
            "status": _overall_status(records),
            "record_count": len(records),
        },
    )
    return summary


def summary_payload(summary: DailySummary) -> dict:
    return {
        "person": summary.person.external_id,
        "date": summary.date.isoformat(),
        "first_in": summary.first_in.isoformat() if summary.first_in else None,
        "last_out": summary.last_out.isoformat() if summary.last_out else None,
        "total_hours": str(summary.total_hours),
        "status": summary.status,
        "record_count": summary.record_count,
    }


def _run_job(job: SummaryJob, client: SummaryWebhookClient | None) -> None:
    with transaction.atomic():
        summary = compute_daily_summary(job.person, job.date)
    if summary is not None and client is not None:
        client.send_daily_summary(summary_payload(summary))


def process_pending_jobs(limit: int = 100, client: SummaryWebhookClient | None = None) -> tuple[int, int]:
    """Recompute summaries for queued jobs; each job succeeds or fails on its own."""
    if client is None:
        client = SummaryWebhookClient.from_settings()
    max_attempts = getattr(settings, "ATTENDANCE_SUMMARY_MAX_ATTEMPTS", 5)

    jobs = list(
        SummaryJob.objects.select_related("person")
        .filter(status__in=[SummaryJob.STATUS_PENDING, SummaryJob.STATUS_FAILED], attempts__lt=max_attempts)
        .order_by("created_at", "id")[:limit]
    )

    done = 0
    failed = 0
    for job in jobs:
        # A claimed job is no longer pending, so punches recorded from here on
        # queue a fresh job instead of joining this one.
        claimed = SummaryJob.objects.filter(pk=job.pk, status=job.status).update(
            status=SummaryJob.STATUS_PROCESSING,
            attempts=F("attempts") + 1,
        )
        if not claimed:
            continue

        try:
            _run_job(job, client)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "Daily summary job failed",
                extra={"job_id": job.id, "person": job.person.external_id, "date": job.date.isoformat()},
            )
            SummaryJob.objects.filter(pk=job.pk).update(status=SummaryJob.STATUS_FAILED, last_error=str(exc))
            failed += 1
            continue

        SummaryJob.objects.filter(pk=job.pk).update(status=SummaryJob.STATUS_DONE, last_error="")
        done += 1

    return done, failed
