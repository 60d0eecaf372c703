from django.db import models


class Person(models.Model):
    ROLE_STUDENT = 'student'
    ROLE_STAFF = 'staff'
    ROLE_FACULTY = 'faculty'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = [
        (ROLE_STUDENT, 'Student'),
        (ROLE_STAFF, 'Staff'),
        (ROLE_FACULTY, 'Faculty'),
        (ROLE_ADMIN, 'Admin'),
    ]

    ENROLLMENT_PENDING = 'pending'
    ENROLLMENT_ACTIVE = 'active'
    ENROLLMENT_CHOICES = [
        (ENROLLMENT_PENDING, 'Pending'),
        (ENROLLMENT_ACTIVE, 'Active'),
    ]

    external_id = models.CharField(max_length=255, unique=True)
    name = models.CharField(max_length=255, blank=True, default='')
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_STUDENT)

    device_pin = models.CharField(max_length=32, blank=True, default='')
    student_id = models.CharField(max_length=64, blank=True, default='')
    employee_id = models.CharField(max_length=64, blank=True, default='')
    biometric_id = models.CharField(max_length=32, blank=True, default='')

    enrollment_status = models.CharField(max_length=16, choices=ENROLLMENT_CHOICES, default=ENROLLMENT_PENDING)
    enrolled_at = models.DateTimeField(null=True, blank=True)
    devices_seen = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['device_pin'], name='person_device_pin_idx'),
            models.Index(fields=['student_id'], name='person_student_id_idx'),
            models.Index(fields=['employee_id'], name='person_employee_id_idx'),
            models.Index(fields=['biometric_id'], name='person_biometric_id_idx'),
        ]

    @property
    def is_active_enrollment(self):
        return self.enrollment_status == self.ENROLLMENT_ACTIVE

    def __str__(self):
        return self.name or self.external_id


class EnrollmentTask(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    person = models.ForeignKey(Person, on_delete=models.CASCADE, related_name='enrollment_tasks')
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [models.Index(fields=['person', 'status'], name='enrollment_task_person_idx')]


class BiometricIdCounter(models.Model):
    name = models.CharField(max_length=64, unique=True)
    last_number = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)
