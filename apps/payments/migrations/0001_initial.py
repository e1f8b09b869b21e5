import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="WebhookLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("provider", models.CharField(default="flitt", max_length=20)),
                ("order_ref", models.CharField(db_index=True, max_length=64)),
                ("gateway_status", models.CharField(max_length=32)),
                ("amount", models.CharField(max_length=20)),
                ("outcome", models.CharField(
                    choices=[
                        ("paid", "Marked Paid"), ("failed", "Marked Failed"),
                        ("amount_mismatch", "Amount Mismatch"), ("ignored", "Ignored (no change)"),
                        ("not_found", "Order Not Found"), ("error", "Processing Error"),
                    ],
                    max_length=20,
                )),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("order", models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.PROTECT,
                    related_name="webhook_logs", to="orders.order",
                )),
            ],
            options={
                "db_table": "payment_webhook_logs",
                "ordering": ["-created_at"],
            },
        ),
    ]
