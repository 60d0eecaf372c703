from datetime import date

from rest_framework import status, viewsets
from rest_framework.decorators import api_view
from rest_framework.response import Response

from .models import AttendanceRecord, DailySummary
from .serializers import AttendanceRecordSerializer, DailySummarySerializer
from .timezones import local_today


def _parse_date(value):
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


class AttendanceRecordViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = AttendanceRecord.objects.none()
    serializer_class = AttendanceRecordSerializer

    def get_queryset(self):
        queryset = AttendanceRecord.objects.select_related('person').order_by('-punched_at', '-id')
        params = self.request.query_params

        if params.get('person'):
            queryset = queryset.filter(person_id=params['person'])
        if params.get('punch_type'):
            queryset = queryset.filter(punch_type=params['punch_type'].upper())

        day = _parse_date(params.get('date'))
        if day:
            queryset = queryset.filter(date=day)
        start = _parse_date(params.get('start_date'))
        if start:
            queryset = queryset.filter(date__gte=start)
        end = _parse_date(params.get('end_date'))
        if end:
            queryset = queryset.filter(date__lte=end)

        return queryset


class DailySummaryViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = DailySummary.objects.none()
    serializer_class = DailySummarySerializer

    def get_queryset(self):
        queryset = DailySummary.objects.all().order_by('-date', '-id')
        params = self.request.query_params

        if params.get('person'):
            queryset = queryset.filter(person_id=params['person'])

        month = params.get('month', '')
        if month:
            year_part, _, month_part = month.partition('-')
            if year_part.isdigit() and month_part.isdigit():
                queryset = queryset.filter(date__year=int(year_part), date__month=int(month_part))
        year = params.get('year', '')
        if year.isdigit():
            queryset = queryset.filter(date__year=int(year))

        return queryset


@api_view(['GET'])
def daily_report(request):
    raw_date = request.query_params.get('date')
    day = _parse_date(raw_date) if raw_date else local_today()
    if day is None:
        return Response({'detail': 'date must be YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)

    records = AttendanceRecord.objects.filter(date=day).select_related('person').order_by('punched_at', 'id')

    by_person = {}
    for record in records:
        by_person.setdefault(record.person_id, []).append(record)

    report = []
    for person_records in by_person.values():
        person = person_records[0].person
        first_in = next((r for r in person_records if r.punch_type == AttendanceRecord.TYPE_IN), None)
        outs = [r for r in person_records if r.punch_type == AttendanceRecord.TYPE_OUT]
        last_out = outs[-1] if outs else None
        report.append(
            {
                'person': person.id,
                'external_id': person.external_id,
                'name': person.name,
                'student_id': person.student_id,
                'employee_id': person.employee_id,
                'first_in': first_in.punched_at if first_in else None,
                'last_out': last_out.punched_at if last_out else None,
                'status': first_in.status if first_in else DailySummary.STATUS_ABSENT,
                'total_records': len(person_records),
            }
        )

    return Response(
        {
            'date': day.isoformat(),
            'total_people': len(report),
            'present': sum(1 for row in report if row['status'] != DailySummary.STATUS_ABSENT),
            'late': sum(1 for row in report if row['status'] == AttendanceRecord.STATUS_LATE),
            'report': report,
        }
    )
