"""
"My Trips" helpers: which bookings to show and whether check-in is open.

These mirror the server's window rule (0 < hours <= 24) for display only;
the server remains the authority when the check-in call is made.
"""

import math
from datetime import datetime, timezone
from typing import Iterable, Optional, Union

from falconair.client.timeutils import parse_timestamp

CHECKIN_WINDOW_HOURS = 24


def hours_until_departure(departure_time: Union[str, datetime], now: Optional[datetime] = None) -> float:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (parse_timestamp(departure_time) - now).total_seconds() / 3600


def active_bookings(bookings: Iterable[dict]) -> list[dict]:
    """Drop cancelled bookings; the API returns every status."""
    return [b for b in bookings if b.get("booking_status") != "cancelled"]


def can_check_in(booking: dict, now: Optional[datetime] = None) -> bool:
    if booking.get("booking_status") != "confirmed":
        return False
    departure = (booking.get("flight") or {}).get("departure_time")
    if not departure:
        return False
    hours = hours_until_departure(departure, now)
    return 0 < hours <= CHECKIN_WINDOW_HOURS


def check_in_message(booking: dict, now: Optional[datetime] = None) -> str:
    status = booking.get("booking_status")
    if status == "checked_in":
        return "You're checked in."
    if status == "cancelled":
        return "This booking has been cancelled."

    departure = (booking.get("flight") or {}).get("departure_time")
    if not departure:
        return "Departure time unavailable."

    hours = hours_until_departure(departure, now)
    if hours <= 0:
        return "This flight has already departed."
    if hours > CHECKIN_WINDOW_HOURS:
        hours_until_open = hours - CHECKIN_WINDOW_HOURS
        days_until_open = math.floor(hours_until_open / 24)
        if days_until_open > 0:
            plural = "s" if days_until_open > 1 else ""
            return f"Check-in opens in {days_until_open} day{plural} (24 hours before departure)."
        return f"Check-in opens in {math.ceil(hours_until_open)} hours."
    return "Check-in is open."
