from django.db import models
from django.utils import timezone
from people.models import Person
from devices.models import Device


class AttendanceRecord(models.Model):
    TYPE_IN = 'IN'
    TYPE_OUT = 'OUT'
    TYPE_CHOICES = [
        (TYPE_IN, 'In'),
        (TYPE_OUT, 'Out'),
    ]

    STATUS_PRESENT = 'PRESENT'
    STATUS_LATE = 'LATE'
    STATUS_EARLY_OUT = 'EARLY_OUT'
    STATUS_CHOICES = [
        (STATUS_PRESENT, 'Present'),
        (STATUS_LATE, 'Late'),
        (STATUS_EARLY_OUT, 'Early out'),
    ]

    SOURCE_ADMS = 'adms'
    SOURCE_PUSH = 'push'
    SOURCE_CHOICES = [
        (SOURCE_ADMS, 'ADMS'),
        (SOURCE_PUSH, 'JSON push'),
    ]

    person = models.ForeignKey(Person, on_delete=models.CASCADE, related_name='attendance_records')
    device = models.ForeignKey(Device, on_delete=models.SET_NULL, null=True, blank=True, related_name='attendance_records')
    device_serial = models.CharField(max_length=64, blank=True, default='')
    template_id = models.CharField(max_length=32, blank=True, default='')
    date = models.DateField()
    punch_type = models.CharField(max_length=8, choices=TYPE_CHOICES)
    punched_at = models.DateTimeField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PRESENT)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    raw_line = models.TextField(blank=True, default='')
    source = models.CharField(max_length=16, choices=SOURCE_CHOICES, default=SOURCE_ADMS)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [
            models.Index(fields=['person', 'date'], name='attendance_person_date_idx'),
            models.Index(fields=['date'], name='attendance_date_idx'),
        ]


class DailySummary(models.Model):
    STATUS_ABSENT = 'ABSENT'
    STATUS_CHOICES = AttendanceRecord.STATUS_CHOICES + [(STATUS_ABSENT, 'Absent')]

    person = models.ForeignKey(Person, on_delete=models.CASCADE, related_name='daily_summaries')
    date = models.DateField()
    first_in = models.DateTimeField(null=True, blank=True)
    last_out = models.DateTimeField(null=True, blank=True)
    total_hours = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=AttendanceRecord.STATUS_PRESENT)
    record_count = models.PositiveIntegerField(default=0)
    calculated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['person', 'date'], name='uq_daily_summary_person_date'),
        ]


class SummaryJob(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_PROCESSING = 'processing'
    STATUS_DONE = 'done'
    STATUS_FAILED = 'failed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PROCESSING, 'Processing'),
        (STATUS_DONE, 'Done'),
        (STATUS_FAILED, 'Failed'),
    ]

    person = models.ForeignKey(Person, on_delete=models.CASCADE, related_name='summary_jobs')
    date = models.DateField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [models.Index(fields=['status', 'created_at'], name='summary_job_status_idx')]
