from django.db import models


class Device(models.Model):
    MODE_IN_OUT = 'IN_OUT'
    MODE_CHECK_IN_ONLY = 'CHECK_IN_ONLY'
    MODE_CHECK_OUT_ONLY = 'CHECK_OUT_ONLY'
    ATTENDANCE_MODE_CHOICES = [
        (MODE_IN_OUT, 'In/Out toggle'),
        (MODE_CHECK_IN_ONLY, 'Check-in only'),
        (MODE_CHECK_OUT_ONLY, 'Check-out only'),
    ]

    DEFAULT_MIN_OUT_GAP_SECONDS = 14400
    DEFAULT_DUPLICATE_WINDOW_SECONDS = 300

    serial_number = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255, blank=True, default='')
    model = models.CharField(max_length=100, blank=True, default='')
    manufacturer = models.CharField(max_length=100, blank=True, default='')
    location = models.CharField(max_length=255, blank=True, default='')
    protocol = models.CharField(max_length=50, blank=True, default='ADMS')

    attendance_mode = models.CharField(max_length=16, choices=ATTENDANCE_MODE_CHOICES, default=MODE_IN_OUT)
    min_out_gap_seconds = models.PositiveIntegerField(default=DEFAULT_MIN_OUT_GAP_SECONDS)
    duplicate_window_seconds = models.PositiveIntegerField(default=DEFAULT_DUPLICATE_WINDOW_SECONDS)

    is_online = models.BooleanField(default=False)
    last_heartbeat_at = models.DateTimeField(null=True, blank=True)
    battery_level = models.PositiveSmallIntegerField(null=True, blank=True)
    storage_used = models.PositiveIntegerField(null=True, blank=True)
    daily_records = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name or self.serial_number
