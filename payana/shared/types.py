"""Shared types, enums, and constants used across the application."""

import enum


class RideStatus(str, enum.Enum):
    """Ride lifecycle state."""

    REQUESTED = "requested"
    ASSIGNED = "assigned"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition may leave this status."""
        return self in TERMINAL_STATUSES


class Actor(str, enum.Enum):
    """Party whose credential authorizes a mutating request."""

    RIDER = "rider"
    DRIVER = "driver"


TERMINAL_STATUSES = frozenset({RideStatus.COMPLETED, RideStatus.CANCELLED})

# Terminal statuses map to themselves.
SUCCESSOR: dict[RideStatus, RideStatus] = {
    RideStatus.REQUESTED: RideStatus.ASSIGNED,
    RideStatus.ASSIGNED: RideStatus.ONGOING,
    RideStatus.ONGOING: RideStatus.COMPLETED,
    RideStatus.COMPLETED: RideStatus.COMPLETED,
    RideStatus.CANCELLED: RideStatus.CANCELLED,
}


def next_status(status: RideStatus) -> RideStatus:
    """Look up the forward successor of a ride status.

    Args:
        status: Current ride status.

    Returns:
        The successor status (itself when terminal).
    """
    return SUCCESSOR[status]


def actor_for_target(target: RideStatus) -> Actor:
    """Return which actor must authorize a transition into ``target``.

    Args:
        target: Status the ride is moving to.

    Returns:
        RIDER for cancellation, DRIVER for all forward progress.
    """
    if target is RideStatus.CANCELLED:
        return Actor.RIDER
    return Actor.DRIVER
