from __future__ import annotations

import json
import logging

from django.conf import settings
from django.db import DatabaseError
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from adms_gateway.services.adms_parser import ScanEvent, parse_timestamp
from adms_gateway.services.punch_ingest import OUTCOME_RECORDED, PunchIngestor
from devices.models import Device
from events.models import AttendanceRecord


logger = logging.getLogger(__name__)

ACK_OK = "OK"
ACK_ERROR = "ERROR"


def _text(body: str) -> HttpResponse:
    return HttpResponse(body, content_type="text/plain")


def _client_ip(request: HttpRequest) -> str:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "")


def _is_allowed_ip(ip: str) -> bool:
    allowed = getattr(settings, "ADMS_ALLOWED_IPS", [])
    if not allowed:
        return True
    return ip in allowed


def _is_allowed_token(request: HttpRequest, payload: dict | None = None) -> bool:
    expected = getattr(settings, "ADMS_WEBHOOK_SECRET", "")
    if not expected:
        return True
    provided = request.headers.get("X-Webhook-Secret", "")
    if not provided and isinstance(payload, dict):
        provided = str(payload.get("secret") or "")
    return provided == expected


def _device_serial(request: HttpRequest) -> str:
    # Absent serial means "unknown device"; configuration defaults apply.
    return (request.headers.get("SN") or request.GET.get("SN") or "").strip()


def _load_json(request: HttpRequest) -> dict | None:
    try:
        payload = json.loads(request.body.decode("utf-8", errors="replace") or "{}")
    except json.JSONDecodeError:
        return None
    return payload if isinstance(payload, dict) else None


def _handle_punch(request: HttpRequest) -> HttpResponse:
    device_serial = _device_serial(request)
    raw_body = request.body.decode("utf-8", errors="replace")
    logger.info(
        "ADMS punch payload received",
        extra={
            "device_serial": device_serial,
            "client_ip": _client_ip(request),
            "table": request.GET.get("table", ""),
            "raw_body": raw_body,
        },
    )

    try:
        PunchIngestor().ingest_payload(raw_body, device_serial)
    except Exception:  # noqa: BLE001
        logger.exception("ADMS punch processing failed", extra={"device_serial": device_serial})
        return _text(ACK_ERROR)

    return _text(ACK_OK)


def _handle_sync(request: HttpRequest) -> HttpResponse:
    logger.info(
        "ADMS device sync",
        extra={
            "device_serial": _device_serial(request),
            "options": request.GET.get("options", ""),
            "table": request.GET.get("table", ""),
        },
    )
    return _text(ACK_OK)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def adms_cdata(request: HttpRequest) -> HttpResponse:
    if request.method == "POST":
        return _handle_punch(request)
    return _handle_sync(request)


@csrf_exempt
@require_POST
def adms_punch(request: HttpRequest) -> HttpResponse:
    return _handle_punch(request)


@csrf_exempt
@require_GET
def adms_getrequest(request: HttpRequest) -> HttpResponse:
    device_serial = _device_serial(request)
    if device_serial:
        try:
            Device.objects.filter(serial_number=device_serial).update(
                is_online=True,
                last_heartbeat_at=timezone.now(),
            )
        except DatabaseError:
            logger.warning("Unable to stamp device heartbeat", exc_info=True, extra={"device_serial": device_serial})

    # No command queue: an empty OK tells the terminal there is nothing to do.
    return _text(ACK_OK)


def _push_event(device_serial: str, item: dict) -> ScanEvent | None:
    template_id = str(item.get("template_id") or item.get("templateId") or item.get("user_id") or "").strip()
    scanned_at = parse_timestamp(str(item.get("timestamp") or ""))
    if not template_id or scanned_at is None:
        return None
    return ScanEvent(
        device_serial=device_serial,
        raw_line=json.dumps(item, sort_keys=True),
        template_id=template_id,
        scanned_at=scanned_at,
    )


@csrf_exempt
@require_POST
def attendance_push(request: HttpRequest) -> JsonResponse:
    payload = _load_json(request)
    if not _is_allowed_ip(_client_ip(request)) or not _is_allowed_token(request, payload):
        return JsonResponse({"detail": "Unauthorized source"}, status=403)
    if payload is None:
        return JsonResponse({"detail": "Invalid JSON"}, status=400)

    device_serial = str(payload.get("device_id") or payload.get("deviceId") or "").strip()
    records = payload.get("records")
    if not isinstance(records, list):
        return JsonResponse({"detail": "records must be a list"}, status=400)

    ingestor = PunchIngestor()
    device, config = ingestor.device_context(device_serial)
    recorded = 0
    skipped = 0
    for item in records:
        event = _push_event(device_serial, item) if isinstance(item, dict) else None
        if event is None:
            skipped += 1
            continue
        outcome = ingestor.ingest_event(event, device=device, config=config, source=AttendanceRecord.SOURCE_PUSH)
        if outcome.status == OUTCOME_RECORDED:
            recorded += 1
        else:
            skipped += 1

    return JsonResponse(
        {"status": "ok", "received": len(records), "recorded": recorded, "skipped": skipped},
        status=201 if recorded else 200,
    )


def _to_optional_int(value):
    if value is None or value == "":
        return None
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return None


@csrf_exempt
@require_POST
def device_heartbeat(request: HttpRequest, serial_number: str) -> JsonResponse:
    payload = _load_json(request) or {}
    if not _is_allowed_ip(_client_ip(request)) or not _is_allowed_token(request, payload):
        return JsonResponse({"detail": "Unauthorized source"}, status=403)

    device = Device.objects.filter(serial_number=serial_number).first()
    if device is None:
        return JsonResponse({"detail": "Device not found"}, status=404)

    device.is_online = True
    device.last_heartbeat_at = timezone.now()
    update_fields = ["is_online", "last_heartbeat_at", "updated_at"]
    for field_name, key in (
        ("battery_level", "battery_level"),
        ("storage_used", "storage_used"),
        ("daily_records", "daily_records"),
    ):
        value = _to_optional_int(payload.get(key))
        if value is not None:
            setattr(device, field_name, value)
            update_fields.append(field_name)
    device.save(update_fields=update_fields)

    return JsonResponse({"status": "ok", "message": "Heartbeat received"})
