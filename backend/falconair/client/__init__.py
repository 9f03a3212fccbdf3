"""
Python client for the Falcon Air API.
"""

from falconair.client.api import FalconAirClient
from falconair.client.errors import ApiError, ClientError, ConnectivityError, NotAuthenticated
from falconair.client.session import ClientSession
from falconair.client.timeutils import parse_timestamp
from falconair.client.trips import active_bookings, can_check_in, check_in_message, hours_until_departure

__all__ = [
    "FalconAirClient", "ClientSession",
    "ApiError", "ClientError", "ConnectivityError", "NotAuthenticated",
    "parse_timestamp",
    "active_bookings", "can_check_in", "check_in_message", "hours_until_departure",
]
