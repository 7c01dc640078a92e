"""Pydantic models for riders, drivers, rides, and search results.

All entities are owned by the remote service. The client only holds
transient copies that get replaced on each refresh, so every model
tolerates extra fields and accepts either ``id`` or ``_id``.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from payana.shared.money import round2
from payana.shared.types import RideStatus


class PayanaModel(BaseModel):
    """Base model for service payloads."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        allow_inf_nan=False,
    )


class Location(PayanaModel):
    """A latitude/longitude pair in degrees."""

    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class Vehicle(PayanaModel):
    """Driver vehicle descriptor."""

    make: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    plate: str = Field(..., min_length=1)
    color: str | None = None


class RegistrationResult(PayanaModel):
    """Identity and credential issued when a rider or driver is created.

    Attributes:
        id: Service identifier.
        api_key: Opaque bearer credential for this actor.
    """

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"))
    api_key: str


class Rider(PayanaModel):
    """A registered rider."""

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"))
    name: str
    phone: str
    rating: float = 5.0


class Driver(PayanaModel):
    """A registered driver and their last known position."""

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"))
    name: str
    phone: str | None = None
    vehicle: Vehicle | None = None
    is_available: bool = True
    location: Location | None = None


class Ride(PayanaModel):
    """A trip tracked through the fixed status lifecycle."""

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"))
    rider_id: str
    driver_id: str | None = None
    pickup: Location
    dropoff: Location
    distance_km: float | None = Field(None, ge=0)
    duration_min: float | None = Field(None, ge=0)
    fare_estimate: float | None = Field(None, ge=0)
    status: RideStatus

    @field_validator("fare_estimate")
    @classmethod
    def _round_fare(cls, value: float | None) -> float | None:
        return None if value is None else round2(value)


class GeoSearchResult(PayanaModel):
    """A place candidate returned by geosearch."""

    display_name: str
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)

    @property
    def location(self) -> Location:
        """Return the coordinates as a Location."""
        return Location(lat=self.lat, lng=self.lng)


class FareEstimate(PayanaModel):
    """A displayed fare quote.

    Attributes:
        fare: Fare in currency units, rounded to 2 decimal places.
        surge_multiplier: Surge applied by the pricing service.
        degraded: True when computed by the local fallback formula.
    """

    fare: float = Field(..., ge=0)
    surge_multiplier: float = Field(1.0, ge=0)
    degraded: bool = False
