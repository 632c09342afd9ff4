import uuid

import apps.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Prescription",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("medications", models.JSONField(default=list)),
                ("photo_hash", models.CharField(blank=True, default="", max_length=255)),
                ("status", models.CharField(
                    choices=[("pending", "Pending"), ("in_process", "In Process"), ("dispensed", "Dispensed")],
                    db_index=True,
                    default="pending",
                    max_length=20,
                )),
                ("prescription_date", models.DateField(
                    validators=[apps.core.validators.validate_not_in_future],
                )),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("claimed_by", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name="claimed_prescriptions",
                    to="accounts.profile",
                )),
                ("doctor", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="issued_prescriptions",
                    to="accounts.profile",
                )),
                ("patient", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="patient_prescriptions",
                    to="accounts.profile",
                )),
            ],
            options={
                "db_table": "prescriptions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="rx_status_created_idx"),
                ],
            },
        ),
    ]
