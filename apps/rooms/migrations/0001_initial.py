from decimal import Decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies: list = []

    operations = [
        migrations.CreateModel(
            name="Room",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("standard", "Standard"),
                            ("deluxe", "Deluxe"),
                            ("executive_suite", "Executive suite"),
                        ],
                        default="standard",
                        max_length=20,
                    ),
                ),
                ("description", models.TextField(blank=True)),
                (
                    "price_per_night",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "capacity",
                    models.PositiveSmallIntegerField(
                        default=1,
                        help_text="Maximum number of guests.",
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                ("amenities", models.JSONField(blank=True, default=list, help_text="List of amenity labels.")),
                ("images", models.JSONField(blank=True, default=list, help_text="List of image URLs.")),
                (
                    "is_available",
                    models.BooleanField(
                        default=True,
                        help_text="Manual switch; switched-off rooms cannot be booked.",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Room",
                "verbose_name_plural": "Rooms",
                "ordering": ["price_per_night", "name"],
                "indexes": [
                    models.Index(fields=["category"], name="room_category_idx"),
                    models.Index(fields=["is_available"], name="room_is_available_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(price_per_night__gte=0),
                        name="room_price_not_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(capacity__gte=1),
                        name="room_capacity_at_least_one",
                    ),
                ],
            },
        ),
    ]
