import uuid
from decimal import Decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SiteSettings",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("key", models.CharField(default="main", max_length=20, unique=True)),
                ("delivery_tbilisi_price", models.DecimalField(decimal_places=2, default=Decimal("10.00"), max_digits=10, validators=[django.core.validators.MinValueValidator(0)])),
                ("delivery_tbilisi_free_over", models.DecimalField(decimal_places=2, default=Decimal("150.00"), max_digits=10, validators=[django.core.validators.MinValueValidator(0)])),
                ("delivery_region_price", models.DecimalField(decimal_places=2, default=Decimal("15.00"), max_digits=10, validators=[django.core.validators.MinValueValidator(0)])),
                ("delivery_region_free_over", models.DecimalField(decimal_places=2, default=Decimal("300.00"), max_digits=10, validators=[django.core.validators.MinValueValidator(0)])),
            ],
            options={
                "db_table": "site_settings",
                "verbose_name_plural": "Site settings",
            },
        ),
    ]
