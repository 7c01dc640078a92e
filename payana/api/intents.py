"""User intent endpoints for the presentation surface.

Each endpoint turns a UI action into one orchestration call. Errors
are not handled here: PayanaError propagates to the app-level handler,
which turns it into a transient notification.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from payana.api.event_bus import connect, disconnect
from payana.api.surface import Surface, serialize_fare, serialize_ride
from payana.shared.errors import PreconditionError
from payana.shared.models import Ride

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["intents"])
ws_router = APIRouter(tags=["websocket"])


def get_surface(request: Request) -> Surface:
    """Return the Surface attached to the running app."""
    return request.app.state.surface


# --- Request Models ---
# Fields are loosely typed; the orchestration layer validates them.


class RiderForm(BaseModel):
    """Rider registration form."""

    name: str | None = None
    phone: str | None = None
    rating: float = 5


class ExistingRiderForm(BaseModel):
    """Switch to a rider registered earlier."""

    rider_id: str | None = None
    api_key: str | None = None


class DriverForm(BaseModel):
    """Driver registration form."""

    name: str | None = None
    phone: str | None = None
    make: str | None = None
    model: str | None = None
    plate: str | None = None
    color: str | None = None
    is_available: bool = True


class RideForm(BaseModel):
    """Ride request form."""

    pickup: Any = None
    dropoff: Any = None
    distance_km: Any = None
    duration_min: Any = None
    fare_estimate: Any = None


class AssignForm(BaseModel):
    """Driver assignment for an explicitly selected ride."""

    driver_id: str | None = None


class FareForm(BaseModel):
    """Fare estimate inputs."""

    distance_km: Any = None
    duration_min: Any = None


class LocationForm(BaseModel):
    """Driver position update."""

    lat: Any = None
    lng: Any = None


# --- Reads ---


@router.get("/snapshot")
async def get_snapshot(surface: Surface = Depends(get_surface)) -> dict[str, Any]:
    """Return everything the UI displays."""
    return surface.snapshot()


@router.post("/refresh")
async def refresh(surface: Surface = Depends(get_surface)) -> dict[str, Any]:
    """Reload drivers and rides from the service."""
    await surface.store.refresh_all()
    return surface.snapshot()


@router.get("/geo/search")
async def geo_search(q: str = "", surface: Surface = Depends(get_surface)) -> dict[str, Any]:
    """Run a debounced place search.

    Args:
        q: Query text.
        surface: Active surface.

    Returns:
        Dict with the results list (empty if superseded or failed).
    """
    results = await surface.geosearch.search(q)
    return {"results": [r.model_dump(mode="json") for r in results]}


@router.post("/fare")
async def estimate_fare(
    form: FareForm,
    surface: Surface = Depends(get_surface),
) -> dict[str, Any]:
    """Re-estimate the displayed fare for new inputs."""
    estimate = await surface.fares.on_input_changed(form.distance_km, form.duration_min)
    return {"fare": serialize_fare(estimate)}


@router.get("/drivers/nearby")
async def nearby_drivers(
    lat: str | None = None,
    lng: str | None = None,
    radius_km: str | None = None,
    surface: Surface = Depends(get_surface),
) -> dict[str, Any]:
    """Replace the displayed drivers with those near a point."""
    drivers = await surface.locator.find_nearby({"lat": lat, "lng": lng}, radius_km)
    return {"drivers": [d.model_dump(mode="json") for d in drivers]}


@router.post("/drivers/all")
async def all_drivers(surface: Surface = Depends(get_surface)) -> dict[str, Any]:
    """Clear the nearby lookup and display every driver."""
    drivers = await surface.store.show_all_drivers()
    return {"drivers": [d.model_dump(mode="json") for d in drivers]}


# --- Registration ---


@router.post("/riders")
async def register_rider(
    form: RiderForm,
    surface: Surface = Depends(get_surface),
) -> dict[str, Any]:
    """Create a rider and make it active."""
    result = await surface.registration.register_rider(
        surface.session, name=form.name, phone=form.phone, rating=form.rating,
    )
    surface.notify("Rider created")
    return {"id": result.id}


@router.post("/riders/active")
async def use_existing_rider(
    form: ExistingRiderForm,
    surface: Surface = Depends(get_surface),
) -> dict[str, Any]:
    """Make a previously registered rider active."""
    surface.registration.use_existing_rider(
        surface.session, rider_id=form.rider_id, credential=form.api_key,
    )
    return {"id": surface.session.rider_id}


@router.post("/drivers")
async def register_driver(
    form: DriverForm,
    surface: Surface = Depends(get_surface),
) -> dict[str, Any]:
    """Create a driver."""
    result = await surface.registration.register_driver(
        surface.session,
        name=form.name,
        phone=form.phone,
        make=form.make,
        model=form.model,
        plate=form.plate,
        color=form.color,
        is_available=form.is_available,
    )
    surface.notify("Driver added")
    return {"id": result.id}


@router.post("/drivers/{driver_id}/location")
async def update_driver_location(
    driver_id: str,
    form: LocationForm,
    surface: Surface = Depends(get_surface),
) -> dict[str, Any]:
    """Record a session driver's new position."""
    updated = await surface.locator.update_location(
        driver_id,
        surface.session.driver_credential(driver_id),
        {"lat": form.lat, "lng": form.lng},
    )
    surface.notify("Location updated" if updated else "Location unchanged")
    return {"updated": updated}


# --- Ride lifecycle ---


@router.post("/rides")
async def request_ride(
    form: RideForm,
    surface: Surface = Depends(get_surface),
) -> dict[str, Any]:
    """Request a ride for the active rider."""
    ride = await surface.lifecycle.request_ride(
        surface.session,
        pickup=form.pickup,
        dropoff=form.dropoff,
        distance_km=form.distance_km,
        duration_min=form.duration_min,
        fare_estimate=form.fare_estimate,
    )
    surface.notify("Ride requested")
    return serialize_ride(ride)


@router.post("/rides/{ride_id}/assign")
async def assign_driver(
    ride_id: str,
    form: AssignForm,
    surface: Surface = Depends(get_surface),
) -> dict[str, Any]:
    """Assign a session driver to the selected ride."""
    ride = await surface.lifecycle.assign_driver(
        ride_id,
        form.driver_id,
        surface.session.driver_credential(form.driver_id),
    )
    surface.notify("Driver assigned")
    return serialize_ride(ride)


@router.post("/rides/{ride_id}/advance")
async def advance_ride(
    ride_id: str,
    surface: Surface = Depends(get_surface),
) -> dict[str, Any]:
    """Move the selected ride to its next status."""
    ride = await surface.lifecycle.advance(_displayed_ride(surface, ride_id), surface.session)
    surface.notify(f"Ride status → {ride.status.value}")
    return serialize_ride(ride)


@router.post("/rides/{ride_id}/cancel")
async def cancel_ride(
    ride_id: str,
    surface: Surface = Depends(get_surface),
) -> dict[str, Any]:
    """Cancel the selected ride."""
    ride = await surface.lifecycle.cancel(_displayed_ride(surface, ride_id), surface.session)
    surface.notify(f"Ride status → {ride.status.value}")
    return serialize_ride(ride)


def _displayed_ride(surface: Surface, ride_id: str) -> Ride:
    ride = surface.find_ride(ride_id)
    if ride is None:
        raise PreconditionError("Ride not found, refresh and retry")
    return ride


@ws_router.websocket("/ws/events")
async def websocket_events(websocket: WebSocket) -> None:
    """Real-time snapshot and notification stream.

    Args:
        websocket: Incoming WebSocket connection.
    """
    await websocket.accept()
    connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        disconnect(websocket)
