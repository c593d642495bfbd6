"""
Occupancy arithmetic

Pure date arithmetic for reports and the admin
calendar. Everything works on half-open ``DateRange`` values, so a stay
ending on the day another starts is never counted as a clash.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from shared.domain.value_objects import DateRange


def nights_within(stay: DateRange, window: DateRange) -> int:
    """Number of nights of ``stay`` that fall inside ``window`` (both half-open)."""
    if not stay.overlaps_with(window):
        return 0
    start = max(stay.start_date, window.start_date)
    end = min(stay.end_date, window.end_date)
    return (end - start).days


def occupancy_rate(stays: Iterable[DateRange], window: DateRange, room_count: int) -> Decimal:
    """
    Sold room-nights divided by available room-nights, as a percentage

    Returns 0 when there are no rooms.
    """
    capacity = room_count * len(window)
    if capacity <= 0:
        return Decimal("0.0")
    sold = sum(nights_within(stay, window) for stay in stays)
    rate = Decimal(sold) * 100 / Decimal(capacity)
    return rate.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
