"""API views for analytics.

Dashboard totals and period reports for hotel administrators. Revenue
only counts confirmed and completed stays; pending and cancelled
bookings still show up in the payment status breakdown.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from rest_framework import serializers  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.domain.occupancy import occupancy_rate
from apps.bookings.models import Booking
from apps.reviews.models import Review
from apps.rooms.models import Room
from apps.users.models import User
from apps.users.permissions import IsHotelAdmin
from shared.domain.value_objects import DateRange

REVENUE_STATUSES = [Booking.Status.CONFIRMED, Booking.Status.COMPLETED]

PERIOD_DAYS = {
    '7days': 7,
    '30days': 30,
    '90days': 90,
    'year': 365,
}

ZERO = Decimal('0.00')


def _money(value) -> Decimal:
    return (value or ZERO).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def _percent_change(current: Decimal, previous: Decimal) -> Decimal:
    """Change against the previous period in percent; 0 when there is nothing to compare with."""
    if previous <= 0:
        return Decimal('0.0')
    change = (Decimal(current) - Decimal(previous)) * 100 / Decimal(previous)
    return change.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)


class OverviewAnalyticsView(APIView):
    """Headline numbers for the admin dashboard."""

    permission_classes = [IsHotelAdmin]

    def get(self, request, format=None):  # type: ignore
        today = timezone.localdate()
        booking_qs = Booking.objects.all()
        revenue_qs = booking_qs.filter(status__in=REVENUE_STATUSES)

        active_bookings = booking_qs.filter(
            status__in=[Booking.Status.PENDING, Booking.Status.CONFIRMED],
            check_out__gt=today,
        ).count()
        total_revenue = revenue_qs.aggregate(total=models.Sum('total_price')).get('total')
        avg_rating = Review.objects.aggregate(avg=models.Avg('rating')).get('avg')

        return Response(
            {
                'rooms': Room.objects.count(),
                'available_rooms': Room.objects.filter(is_available=True).count(),
                'bookings': booking_qs.count(),
                'active_bookings': active_bookings,
                'revenue': _money(total_revenue),
                'customers': User.objects.filter(role=User.RoleChoices.CUSTOMER).count(),
                'avg_rating': round(avg_rating, 2) if avg_rating is not None else None,
            }
        )


class ReportQuerySerializer(serializers.Serializer):
    period = serializers.ChoiceField(choices=list(PERIOD_DAYS), required=False, default='30days')


class ReportsAnalyticsView(APIView):
    """
    Revenue report for the last 7, 30 or 90 days or the last year.

    Bookings belong to the period in which they were made. Occupancy is
    measured over the nights of the same window: nights sold by
    confirmed and completed stays against every room's nights.
    """

    permission_classes = [IsHotelAdmin]

    def get(self, request, format=None):  # type: ignore
        query = ReportQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        period = query.validated_data['period']
        days = PERIOD_DAYS[period]

        now = timezone.now()
        start = now - timedelta(days=days)
        previous_start = start - timedelta(days=days)

        current_qs = Booking.objects.filter(created_at__gt=start, created_at__lte=now)
        previous_qs = Booking.objects.filter(created_at__gt=previous_start, created_at__lte=start)
        valid = list(current_qs.filter(status__in=REVENUE_STATUSES).select_related('room'))
        previous_valid = previous_qs.filter(status__in=REVENUE_STATUSES)

        revenue = sum((b.total_price for b in valid), ZERO)
        previous_revenue = previous_valid.aggregate(total=models.Sum('total_price')).get('total') or ZERO
        booking_count = len(valid)
        previous_count = previous_valid.count()
        total_nights = sum(b.nights for b in valid)

        today = timezone.localdate()
        window = DateRange(today - timedelta(days=days), today)
        sold_stays = [
            b.stay
            for b in Booking.objects.filter(
                status__in=REVENUE_STATUSES,
                check_in__lt=window.end_date,
                check_out__gt=window.start_date,
            )
        ]

        return Response(
            {
                'period': period,
                'start': start,
                'end': now,
                'revenue': _money(revenue),
                'revenue_change': _percent_change(revenue, previous_revenue),
                'bookings': booking_count,
                'bookings_change': _percent_change(Decimal(booking_count), Decimal(previous_count)),
                'average_booking_value': _money(revenue / booking_count) if booking_count else ZERO,
                'average_stay': (
                    (Decimal(total_nights) / booking_count).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)
                    if booking_count else Decimal('0.0')
                ),
                'occupancy_rate': occupancy_rate(sold_stays, window, Room.objects.count()),
                'revenue_by_category': self._revenue_by_category(valid, revenue),
                'payment_status': self._payment_status_breakdown(current_qs),
            }
        )

    @staticmethod
    def _revenue_by_category(bookings: list[Booking], total: Decimal) -> list[dict]:
        totals: dict[str, Decimal] = {}
        for booking in bookings:
            totals[booking.room.category] = totals.get(booking.room.category, ZERO) + booking.total_price
        labels = dict(Room.Category.choices)
        return [
            {
                'category': category,
                'label': str(labels.get(category, category)),
                'revenue': _money(amount),
                'percentage': (
                    (amount * 100 / total).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)
                    if total > 0 else Decimal('0.0')
                ),
            }
            for category, amount in sorted(totals.items(), key=lambda item: item[1], reverse=True)
        ]

    @staticmethod
    def _payment_status_breakdown(qs) -> dict[str, int]:
        counts = {choice: 0 for choice in Booking.PaymentStatus.values}
        for row in qs.order_by().values('payment_status').annotate(count=models.Count('id')):
            counts[row['payment_status']] = row['count']
        return counts
