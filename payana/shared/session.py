"""Explicit session context for the actors a client is acting as."""

from dataclasses import dataclass, field


@dataclass
class RideSession:
    """Identities and credentials held for the current session.

    Passed into each lifecycle operation instead of living in ambient
    UI state, so operations can be driven without a rendering surface.

    Attributes:
        rider_id: Active rider identifier, if one is set.
        rider_credential: Active rider's bearer credential.
        driver_credentials: Credentials of drivers registered in this
            session, keyed by driver id.
    """

    rider_id: str | None = None
    rider_credential: str | None = None
    driver_credentials: dict[str, str] = field(default_factory=dict)

    def set_rider(self, rider_id: str, credential: str) -> None:
        """Make a rider the active one.

        Args:
            rider_id: Rider identifier.
            credential: Rider's bearer credential.
        """
        self.rider_id = rider_id
        self.rider_credential = credential

    def add_driver(self, driver_id: str, credential: str) -> None:
        """Remember a driver's credential.

        Args:
            driver_id: Driver identifier.
            credential: Driver's bearer credential.
        """
        self.driver_credentials[driver_id] = credential

    def driver_credential(self, driver_id: str | None) -> str | None:
        """Look up the credential for a driver, if held."""
        if not driver_id:
            return None
        return self.driver_credentials.get(driver_id)
