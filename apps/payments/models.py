"""Payment records for booking checkouts."""

from __future__ import annotations

from decimal import Decimal

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Payment(models.Model):
    """One hosted checkout session opened for a booking."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Awaiting payment")
        PAID = "paid", _("Paid")
        UNPAID = "unpaid", _("Not paid")
        FAILED = "failed", _("Failed")

    class Provider(models.TextChoices):
        STRIPE = "stripe", _("Stripe Checkout")
        DEMO = "demo", _("Demo checkout")

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="payments",
    )
    provider = models.CharField(max_length=20, choices=Provider.choices)
    session_id = models.CharField(max_length=255, unique=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="USD")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    checkout_url = models.URLField(max_length=1000, blank=True)
    payment_reference = models.CharField(
        max_length=255,
        blank=True,
        help_text=_("Provider payment id, e.g. a Stripe payment intent"),
    )
    metadata = models.JSONField(default=dict, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="payment_status_created_idx"),
        ]

    def __str__(self) -> str:
        return f"Payment {self.session_id} for booking {self.booking_id} ({self.status})"

    @property
    def is_open(self) -> bool:
        return self.status == self.Status.PENDING

    def mark_paid(self, payment_reference: str = "") -> None:
        self.status = self.Status.PAID
        if payment_reference:
            self.payment_reference = payment_reference
        self.paid_at = self.paid_at or timezone.now()
        self.save(update_fields=["status", "payment_reference", "paid_at", "updated_at"])

    def mark_failed(self, reason: str) -> None:
        self.status = self.Status.FAILED
        self.metadata["failure_reason"] = reason
        self.save(update_fields=["status", "metadata", "updated_at"])

    def mark_unpaid(self) -> None:
        """Checkout finished without funds captured (e.g. a delayed payment method)."""
        self.status = self.Status.UNPAID
        self.save(update_fields=["status", "updated_at"])
