from rest_framework import serializers
from .models import AttendanceRecord, DailySummary


class AttendanceRecordSerializer(serializers.ModelSerializer):
    person_external_id = serializers.CharField(source='person.external_id', read_only=True)

    class Meta:
        model = AttendanceRecord
        fields = [
            'id',
            'person',
            'person_external_id',
            'device',
            'device_serial',
            'template_id',
            'date',
            'punch_type',
            'punched_at',
            'status',
            'duration_minutes',
            'raw_line',
            'source',
            'created_at',
        ]


class DailySummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = DailySummary
        fields = [
            'id',
            'person',
            'date',
            'first_in',
            'last_out',
            'total_hours',
            'status',
            'record_count',
            'calculated_at',
        ]
