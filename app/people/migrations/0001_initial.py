from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Person",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("external_id", models.CharField(max_length=255, unique=True)),
                ("name", models.CharField(blank=True, default="", max_length=255)),
                (
                    "role",
                    models.CharField(
                        choices=[("student", "Student"), ("staff", "Staff"), ("faculty", "Faculty"), ("admin", "Admin")],
                        default="student",
                        max_length=16,
                    ),
                ),
                ("device_pin", models.CharField(blank=True, default="", max_length=32)),
                ("student_id", models.CharField(blank=True, default="", max_length=64)),
                ("employee_id", models.CharField(blank=True, default="", max_length=64)),
                ("biometric_id", models.CharField(blank=True, default="", max_length=32)),
                (
                    "enrollment_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("active", "Active")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("enrolled_at", models.DateTimeField(blank=True, null=True)),
                ("devices_seen", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["device_pin"], name="person_device_pin_idx"),
                    models.Index(fields=["student_id"], name="person_student_id_idx"),
                    models.Index(fields=["employee_id"], name="person_employee_id_idx"),
                    models.Index(fields=["biometric_id"], name="person_biometric_id_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BiometricIdCounter",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=64, unique=True)),
                ("last_number", models.PositiveIntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="EnrollmentTask",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("completed", "Completed")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "person",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="enrollment_tasks",
                        to="people.person",
                    ),
                ),
            ],
            options={
                "indexes": [models.Index(fields=["person", "status"], name="enrollment_task_person_idx")],
            },
        ),
    ]
