from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Device",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("serial_number", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(blank=True, default="", max_length=255)),
                ("model", models.CharField(blank=True, default="", max_length=100)),
                ("manufacturer", models.CharField(blank=True, default="", max_length=100)),
                ("location", models.CharField(blank=True, default="", max_length=255)),
                ("protocol", models.CharField(blank=True, default="ADMS", max_length=50)),
                (
                    "attendance_mode",
                    models.CharField(
                        choices=[
                            ("IN_OUT", "In/Out toggle"),
                            ("CHECK_IN_ONLY", "Check-in only"),
                            ("CHECK_OUT_ONLY", "Check-out only"),
                        ],
                        default="IN_OUT",
                        max_length=16,
                    ),
                ),
                ("min_out_gap_seconds", models.PositiveIntegerField(default=14400)),
                ("duplicate_window_seconds", models.PositiveIntegerField(default=300)),
                ("is_online", models.BooleanField(default=False)),
                ("last_heartbeat_at", models.DateTimeField(blank=True, null=True)),
                ("battery_level", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("storage_used", models.PositiveIntegerField(blank=True, null=True)),
                ("daily_records", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
    ]
