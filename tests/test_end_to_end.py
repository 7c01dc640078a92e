"""End-to-end ride lifecycle against the in-memory service."""

from payana.services.driver_locator import DriverLocator
from payana.services.fare_estimator import FareEstimator
from payana.services.registration import RegistrationService
from payana.services.ride_lifecycle import RideLifecycleController
from payana.shared.types import RideStatus


async def test_rider_to_completed_ride(client, store, session, fake_service) -> None:
    """Create rider and driver, then walk a ride to completion."""
    registration = RegistrationService(client, store)
    controller = RideLifecycleController(client, store)

    await registration.register_rider(session, name="Ravi", phone="9000000000")
    driver = await registration.register_driver(
        session,
        name="Asha",
        phone="9000000001",
        make="Bajaj",
        model="Pulsar",
        plate="KA01AB1234",
        color="Black",
    )
    await DriverLocator(client, store).update_location(
        driver.id, driver.api_key, {"lat": 12.97, "lng": 77.59},
    )

    fake_service.pricing_available = False
    fare = await FareEstimator(client).estimate("10")
    assert (fare.fare, fare.surge_multiplier) == (14.00, 1.0)

    ride = await controller.request_ride(
        session,
        pickup={"lat": 12.9716, "lng": 77.5946},
        dropoff={"lat": 12.9352, "lng": 77.6245},
        distance_km=10,
        fare_estimate=fare.fare,
    )
    assert ride.status is RideStatus.REQUESTED
    assert ride.driver_id is None

    ride = await controller.assign_driver(ride.id, driver.id, driver.api_key)
    assert ride.status is RideStatus.ASSIGNED
    assert ride.driver_id == driver.id

    ride = await controller.advance(ride, session)
    assert ride.status is RideStatus.ONGOING

    ride = await controller.advance(ride, session)
    assert ride.status is RideStatus.COMPLETED

    calls_before = len(fake_service.calls)
    assert await controller.advance(ride, session) is ride
    assert len(fake_service.calls) == calls_before

    displayed = store.rides[0]
    assert displayed.status is RideStatus.COMPLETED
    assert displayed.fare_estimate == 14.0
    for shown in store.rides:
        assert (shown.driver_id is None) == (shown.status is RideStatus.REQUESTED)
