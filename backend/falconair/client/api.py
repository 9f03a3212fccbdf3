"""
Async HTTP façade over the Falcon Air REST API.

Every call goes through `_request`, which
  - adds the bearer token from the explicit ClientSession,
  - bounds the call with a timeout (15s by default),
  - raises ApiError for error statuses (message from `detail`, then `message`),
  - raises ConnectivityError when no response arrives.

Nothing is retried here. Callers may retry reads and ConnectivityError;
create / cancel / check-in must not be retried blindly.
"""

from typing import Any, Optional

import httpx

from falconair.client.errors import ApiError, ConnectivityError, NotAuthenticated
from falconair.client.session import ClientSession
from falconair.core.config import get_settings
from falconair.core.logging import get_logger

logger = get_logger(__name__)


class FalconAirClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[ClientSession] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.session = session or ClientSession()
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.CLIENT_BASE_URL,
            timeout=timeout if timeout is not None else settings.CLIENT_TIMEOUT_SECONDS,
            transport=transport,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    async def __aenter__(self) -> "FalconAirClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
        auth: bool = False,
    ) -> Any:
        if auth and not self.session.is_authenticated:
            raise NotAuthenticated(f"{method} {path} requires a signed-in session")

        logger.debug("api_request", method=method, path=path)
        try:
            response = await self._http.request(
                method,
                path,
                json=json,
                params=params,
                headers=self.session.auth_headers(),
            )
        except httpx.TimeoutException as e:
            logger.warning("api_timeout", method=method, path=path, error=str(e))
            raise ConnectivityError("Request timed out. Please try again.") from e
        except httpx.TransportError as e:
            logger.warning("api_unreachable", method=method, path=path, error=str(e))
            raise ConnectivityError() from e

        if response.is_error:
            raise self._error_from(response)
        if not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_from(response: httpx.Response) -> ApiError:
        message = None
        code = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("detail")
            message = detail if isinstance(detail, str) else body.get("message")
            code = body.get("code")
        message = message or f"HTTP error! status: {response.status_code}"
        logger.info("api_error", status_code=response.status_code, code=code, message=message)
        return ApiError(response.status_code, message, code)

    async def test_connection(self) -> bool:
        try:
            await self._request("GET", "/")
        except (ConnectivityError, ApiError):
            return False
        return True

    # Authentication

    async def register(
        self,
        username: str,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        phone_number: Optional[str] = None,
    ) -> dict:
        return await self._request("POST", "/auth/register", json={
            "username": username,
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "phone_number": phone_number,
            "password": password,
        })

    async def login(
        self,
        password: str,
        email: Optional[str] = None,
        falcon_flyer_number: Optional[str] = None,
    ) -> dict:
        if bool(email) == bool(falcon_flyer_number):
            raise ValueError("Pass exactly one of email or falcon_flyer_number")

        body = {"password": password}
        if falcon_flyer_number:
            body["falcon_flyer_number"] = falcon_flyer_number
        else:
            body["email"] = email

        data = await self._request("POST", "/auth/login", json=body)
        self.session.set_token(data["token"], data.get("user"))
        return data

    async def logout(self) -> None:
        """Clear the session; the server-side revocation is best effort."""
        try:
            if self.session.is_authenticated:
                await self._request("POST", "/auth/logout")
        except (ApiError, ConnectivityError) as e:
            logger.info("logout_request_failed", error=str(e))
        finally:
            self.session.clear()

    async def get_profile(self) -> dict:
        return await self._request("GET", "/auth/profile", auth=True)

    # Flights

    async def list_flights(self) -> list:
        return await self._request("GET", "/api/flights")

    async def search_flights(self, departure: str, arrival: str, date: Optional[str] = None) -> list:
        params = {"date": date} if date else None
        return await self._request("GET", f"/api/flights/search/{departure}/{arrival}", params=params)

    async def get_flight(self, flight_id: int) -> dict:
        return await self._request("GET", f"/api/flights/{flight_id}")

    async def get_flight_status(self, flight_number: str) -> dict:
        return await self._request("GET", f"/api/flights/status/{flight_number}")

    # Bookings

    async def create_booking(
        self,
        flight_id: int,
        passenger_name: str,
        passenger_email: str,
        passport_number: str,
        seat_class: str,
        seat_number: str,
        total_price: float,
    ) -> dict:
        return await self._request("POST", "/api/bookings", auth=True, json={
            "flight_id": flight_id,
            "passenger_name": passenger_name,
            "passenger_email": passenger_email,
            "passport_number": passport_number,
            "seat_class": seat_class,
            "seat_number": seat_number,
            "total_price": total_price,
        })

    async def list_bookings(self) -> list:
        return await self._request("GET", "/api/bookings", auth=True)

    async def get_booking(self, booking_id: int) -> dict:
        return await self._request("GET", f"/api/bookings/{booking_id}", auth=True)

    async def cancel_booking(self, booking_id: int) -> dict:
        return await self._request("DELETE", f"/api/bookings/{booking_id}", auth=True)

    async def check_in(self, booking_id: int) -> dict:
        return await self._request("POST", f"/api/bookings/{booking_id}/checkin", auth=True)

    async def reschedule_booking(
        self,
        booking_id: int,
        new_flight_id: int,
        seat_class: Optional[str] = None,
        seat_number: Optional[str] = None,
    ) -> dict:
        body = {"new_flight_id": new_flight_id}
        if seat_class:
            body["seat_class"] = seat_class
        if seat_number:
            body["seat_number"] = seat_number
        return await self._request("POST", f"/api/bookings/{booking_id}/reschedule", auth=True, json=body)

    # Falcon Flyer

    async def get_loyalty_status(self) -> dict:
        return await self._request("GET", "/api/loyalty/status", auth=True)

    async def enroll_loyalty(self) -> dict:
        return await self._request("POST", "/api/loyalty/enroll", auth=True)

    async def get_loyalty_tiers(self) -> list:
        return await self._request("GET", "/api/loyalty/tiers")
