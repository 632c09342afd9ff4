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
            name="Document",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("type", models.CharField(
                    choices=[
                        ("medical_report", "Medical Report"),
                        ("prescription", "Prescription"),
                        ("test_result", "Test Result"),
                        ("other", "Other"),
                    ],
                    default="medical_report",
                    max_length=20,
                )),
                ("ipfs_hash", models.CharField(max_length=255)),
                ("test_date", models.DateField(
                    blank=True,
                    null=True,
                    validators=[apps.core.validators.validate_not_in_future],
                )),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("owner", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="documents",
                    to="accounts.profile",
                )),
            ],
            options={
                "db_table": "documents",
                "ordering": ["-created_at"],
            },
        ),
    ]
