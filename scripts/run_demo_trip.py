"""Walk one ride through its full lifecycle against a running service.

Registers a rider and a driver, quotes a fare, requests a ride, assigns
the driver, and advances the ride to completion, logging each step.

Usage:
    PAYANA_BACKEND_URL=http://localhost:8000 python -m scripts.run_demo_trip

All data is synthetic.
"""

import asyncio
import logging

from payana.config.settings import get_settings
from payana.services.driver_locator import DriverLocator
from payana.services.fare_estimator import FareEstimator
from payana.services.payana_client import PayanaClient
from payana.services.registration import RegistrationService
from payana.services.ride_lifecycle import RideLifecycleController
from payana.services.snapshot import SnapshotStore
from payana.shared.session import RideSession

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# --- Demo trip: MG Road to Koramangala, Bengaluru ---
DEMO_PICKUP = {"lat": 12.9756, "lng": 77.6050}
DEMO_DROPOFF = {"lat": 12.9352, "lng": 77.6245}
DEMO_DISTANCE_KM = 6.2
DEMO_DURATION_MIN = 18


async def run_demo_trip() -> None:
    """Register actors and drive one ride from requested to completed."""
    settings = get_settings()
    client = PayanaClient.from_settings(settings)
    store = SnapshotStore(client)
    session = RideSession()
    registration = RegistrationService(client, store)
    controller = RideLifecycleController(client, store)

    await registration.register_rider(session, name="Demo Rider", phone="+919000000000")
    driver = await registration.register_driver(
        session,
        name="Demo Driver",
        phone="+919000000001",
        make="Bajaj",
        model="Pulsar",
        plate="KA01DEMO",
    )
    await DriverLocator(client, store).update_location(
        driver.id, driver.api_key, DEMO_PICKUP,
    )

    fare = await FareEstimator.from_settings(client, settings).estimate(
        DEMO_DISTANCE_KM, DEMO_DURATION_MIN,
    )
    logger.info("demo_fare fare=%s degraded=%s", fare.fare, fare.degraded)

    ride = await controller.request_ride(
        session,
        pickup=DEMO_PICKUP,
        dropoff=DEMO_DROPOFF,
        distance_km=DEMO_DISTANCE_KM,
        duration_min=DEMO_DURATION_MIN,
        fare_estimate=fare.fare,
    )
    ride = await controller.assign_driver(ride.id, driver.id, driver.api_key)
    while not ride.status.is_terminal:
        ride = await controller.advance(ride, session)
        logger.info("demo_ride_status %s", ride.status.value)

    logger.info("Demo trip complete: ride %s", ride.id)


if __name__ == "__main__":
    asyncio.run(run_demo_trip())
