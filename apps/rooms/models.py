"""Room catalogue models."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Room(models.Model):
    """A bookable hotel room."""

    class Category(models.TextChoices):
        STANDARD = "standard", _("Standard")
        DELUXE = "deluxe", _("Deluxe")
        EXECUTIVE_SUITE = "executive_suite", _("Executive suite")

    name = models.CharField(max_length=100)
    category = models.CharField(
        max_length=20,
        choices=Category.choices,
        default=Category.STANDARD,
    )
    description = models.TextField(blank=True)
    price_per_night = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    capacity = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        help_text=_("Maximum number of guests."),
    )
    amenities = models.JSONField(default=list, blank=True, help_text=_("List of amenity labels."))
    images = models.JSONField(default=list, blank=True, help_text=_("List of image URLs."))
    is_available = models.BooleanField(
        default=True,
        help_text=_("Manual switch; switched-off rooms cannot be booked."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Room")
        verbose_name_plural = _("Rooms")
        ordering = ["price_per_night", "name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price_per_night__gte=0),
                name="room_price_not_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(capacity__gte=1),
                name="room_capacity_at_least_one",
            ),
        ]
        indexes = [
            models.Index(fields=["category"], name="room_category_idx"),
            models.Index(fields=["is_available"], name="room_is_available_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.get_category_display()})"

    def can_host(self, guests: int) -> bool:
        return 1 <= guests <= self.capacity
