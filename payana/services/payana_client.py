"""Payana remote service client.

Thin typed layer over the JSON-over-HTTP ride service. No business
rules live here: callers validate inputs first, and this module only
maps transport and HTTP outcomes onto the error taxonomy.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from payana.config.settings import Settings, get_settings
from payana.shared.errors import RemoteUnavailable, TransitionRejected
from payana.shared.models import (
    Driver,
    FareEstimate,
    GeoSearchResult,
    Location,
    RegistrationResult,
    Ride,
    Vehicle,
)
from payana.shared.types import RideStatus

logger = logging.getLogger(__name__)

_DRIVER_LIST = TypeAdapter(list[Driver])
_RIDE_LIST = TypeAdapter(list[Ride])
_RESULT_LIST = TypeAdapter(list[GeoSearchResult])


class PayanaClient:
    """Async client for the ride service.

    Attributes:
        base_url: Service root URL.
        timeout: Per-request timeout in seconds.
        api_key_header: Header carrying the actor credential.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 10.0,
        api_key_header: str = "X-API-Key",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize PayanaClient.

        Args:
            base_url: Service root URL.
            timeout: Per-request timeout in seconds.
            api_key_header: Header carrying the actor credential.
            transport: Optional httpx transport (tests, proxies).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.api_key_header = api_key_header
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> PayanaClient:
        """Build a client from application settings.

        Args:
            settings: Settings to read; defaults to get_settings().
            transport: Optional httpx transport.

        Returns:
            Configured PayanaClient.
        """
        settings = settings or get_settings()
        return cls(
            base_url=settings.backend_url,
            timeout=settings.request_timeout_seconds,
            api_key_header=settings.api_key_header,
            transport=transport,
        )

    # --- Riders and drivers ---

    async def create_rider(
        self,
        *,
        name: str,
        phone: str,
        rating: float = 5,
    ) -> RegistrationResult:
        """Register a rider.

        Args:
            name: Rider display name.
            phone: Contact phone.
            rating: Initial rating.

        Returns:
            RegistrationResult with the rider id and credential.
        """
        body = {"name": name, "phone": phone, "rating": rating}
        data = await self._request_json("POST", "/riders", json=body)
        return _parse(RegistrationResult.model_validate, data, "POST /riders")

    async def create_driver(
        self,
        *,
        name: str,
        phone: str,
        vehicle: Vehicle,
        is_available: bool = True,
    ) -> RegistrationResult:
        """Register a driver.

        Args:
            name: Driver display name.
            phone: Contact phone.
            vehicle: Vehicle descriptor.
            is_available: Initial availability.

        Returns:
            RegistrationResult with the driver id and credential.
        """
        body = {
            "name": name,
            "phone": phone,
            "vehicle": vehicle.model_dump(exclude_none=True),
            "is_available": is_available,
        }
        data = await self._request_json("POST", "/drivers", json=body)
        return _parse(RegistrationResult.model_validate, data, "POST /drivers")

    async def list_drivers(self) -> list[Driver]:
        """Fetch every driver.

        Returns:
            List of Driver records.
        """
        data = await self._request_json("GET", "/drivers")
        return _parse(_DRIVER_LIST.validate_python, data, "GET /drivers")

    async def nearby_drivers(
        self,
        origin: Location,
        radius_km: float,
    ) -> list[Driver]:
        """Fetch drivers within a radius of a point.

        Args:
            origin: Search center.
            radius_km: Search radius in kilometres.

        Returns:
            List of Driver records inside the radius.
        """
        params = {"lat": origin.lat, "lng": origin.lng, "radius_km": radius_km}
        data = await self._request_json("GET", "/drivers/nearby", params=params)
        return _parse(_DRIVER_LIST.validate_python, data, "GET /drivers/nearby")

    async def update_driver_location(
        self,
        driver_id: str,
        *,
        credential: str,
        location: Location,
    ) -> bool:
        """Record a driver's new position.

        Args:
            driver_id: Driver identifier.
            credential: The driver's own credential.
            location: New position.

        Returns:
            True if the service recorded a change, False for a no-op.
        """
        path = f"/drivers/{driver_id}/location"
        data = await self._request_json(
            "PATCH",
            path,
            json=location.model_dump(),
            credential=credential,
        )
        if not isinstance(data, dict) or not isinstance(data.get("updated"), bool):
            raise RemoteUnavailable(f"PATCH {path} returned an unexpected body")
        return data["updated"]

    # --- Rides ---

    async def list_rides(self) -> list[Ride]:
        """Fetch every ride.

        Returns:
            List of Ride records.
        """
        data = await self._request_json("GET", "/rides")
        return _parse(_RIDE_LIST.validate_python, data, "GET /rides")

    async def create_ride(
        self,
        *,
        rider_id: str,
        credential: str,
        pickup: Location,
        dropoff: Location,
        distance_km: float | None = None,
        duration_min: float | None = None,
        fare_estimate: float | None = None,
    ) -> Ride:
        """Create a ride in requested status.

        Args:
            rider_id: Requesting rider.
            credential: The rider's credential.
            pickup: Pickup location.
            dropoff: Dropoff location.
            distance_km: Trip distance, omitted when None.
            duration_min: Trip duration, omitted when None.
            fare_estimate: Displayed fare, omitted when None.

        Returns:
            The created Ride.
        """
        body: dict[str, Any] = {
            "rider_id": rider_id,
            "pickup": pickup.model_dump(),
            "dropoff": dropoff.model_dump(),
            "status": RideStatus.REQUESTED.value,
        }
        optional = {
            "distance_km": distance_km,
            "duration_min": duration_min,
            "fare_estimate": fare_estimate,
        }
        body.update({k: v for k, v in optional.items() if v is not None})
        data = await self._request_json(
            "POST", "/rides", json=body, credential=credential,
        )
        return _parse(Ride.model_validate, data, "POST /rides")

    async def update_ride(
        self,
        ride_id: str,
        *,
        credential: str,
        status: RideStatus,
        driver_id: str | None = None,
    ) -> Ride:
        """Request a ride status transition.

        Args:
            ride_id: Ride identifier.
            credential: Credential of the actor authorizing the change.
            status: Target status.
            driver_id: Driver to attach, for assignment.

        Returns:
            The updated Ride as confirmed by the service.

        Raises:
            TransitionRejected: If the service refuses the change (4xx).
            RemoteUnavailable: On transport failure or 5xx.
        """
        path = f"/rides/{ride_id}"
        body: dict[str, Any] = {"status": status.value}
        if driver_id is not None:
            body["driver_id"] = driver_id
        response = await self._send("PATCH", path, json=body, credential=credential)
        if response.is_client_error:
            detail = _error_detail(response)
            logger.info(
                "ride_transition_rejected",
                extra={
                    "ride_id": ride_id,
                    "target": status.value,
                    "http_status": response.status_code,
                },
            )
            message = f"Ride {ride_id} cannot move to {status.value}"
            if detail:
                message = f"{message}: {detail}"
            raise TransitionRejected(
                message,
                http_status=response.status_code,
                detail=detail,
            )
        data = _decode(response, "PATCH", path)
        return _parse(Ride.model_validate, data, f"PATCH {path}")

    # --- Pricing and geocoding ---

    async def estimate_fare(
        self,
        *,
        distance_km: float,
        duration_min: float | None = None,
    ) -> FareEstimate:
        """Ask the pricing service for an authoritative quote.

        Args:
            distance_km: Trip distance.
            duration_min: Trip duration, omitted when None.

        Returns:
            FareEstimate with the service's fare and surge.
        """
        body: dict[str, Any] = {"distance_km": distance_km}
        if duration_min is not None:
            body["duration_min"] = duration_min
        data = await self._request_json("POST", "/pricing/estimate", json=body)
        if not isinstance(data, dict) or data.get("fare") is None:
            raise RemoteUnavailable("POST /pricing/estimate returned no fare")
        surge = data.get("surge_multiplier")
        quote = {
            "fare": data["fare"],
            "surge_multiplier": 1.0 if surge is None else surge,
        }
        return _parse(FareEstimate.model_validate, quote, "POST /pricing/estimate")

    async def search_places(
        self,
        term: str,
        *,
        limit: int = 6,
    ) -> list[GeoSearchResult]:
        """Look up places matching free text.

        Args:
            term: Search text.
            limit: Maximum results requested.

        Returns:
            At most ``limit`` GeoSearchResult items.
        """
        data = await self._request_json(
            "GET", "/geo/search", params={"q": term, "limit": limit},
        )
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise RemoteUnavailable("GET /geo/search returned no results list")
        results = _parse(_RESULT_LIST.validate_python, data["results"], "GET /geo/search")
        return results[:limit]

    # --- Transport ---

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        credential: str | None = None,
    ) -> httpx.Response:
        """Send one request and return the raw response.

        Raises:
            RemoteUnavailable: On any transport-level failure.
        """
        headers = {self.api_key_header: credential} if credential else {}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                return await client.request(
                    method, path, json=json, params=params, headers=headers,
                )
        except httpx.HTTPError as exc:
            logger.warning(
                "remote_request_failed",
                extra={"method": method, "path": path, "error": type(exc).__name__},
            )
            raise RemoteUnavailable(f"{method} {path} failed: {exc}") from exc

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        credential: str | None = None,
    ) -> Any:
        response = await self._send(
            method, path, json=json, params=params, credential=credential,
        )
        return _decode(response, method, path)


def _decode(response: httpx.Response, method: str, path: str) -> Any:
    """Return the JSON body of a successful response.

    Raises:
        RemoteUnavailable: On a non-2xx status or an unparseable body.
    """
    if response.is_error:
        message = f"{method} {path} returned HTTP {response.status_code}"
        detail = _error_detail(response)
        if detail:
            message = f"{message}: {detail}"
        raise RemoteUnavailable(message)
    try:
        return response.json()
    except ValueError as exc:
        raise RemoteUnavailable(f"{method} {path} returned invalid JSON") from exc


def _error_detail(response: httpx.Response) -> str | None:
    try:
        data = response.json()
    except ValueError:
        return response.text or None
    if isinstance(data, dict) and data.get("detail"):
        return str(data["detail"])
    return None


def _parse(validate: Any, data: Any, what: str) -> Any:
    try:
        return validate(data)
    except ValidationError as exc:
        raise RemoteUnavailable(f"{what} returned a malformed body") from exc
