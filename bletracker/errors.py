"""Exception hierarchy for bletracker."""


class BleTrackerError(Exception):
    """Base class for all bletracker errors."""


class ParseError(BleTrackerError):
    """A raw sighting is malformed or incomplete and cannot be normalized."""


class TransportError(BleTrackerError):
    """A sink failed to transmit a record (network, HTTP status, timeout)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidPolicyError(BleTrackerError, ValueError):
    """A delivery policy is invalid. Raised at construction/registration time."""


class DuplicateSinkError(BleTrackerError):
    """A sink with the same id is already registered."""


class SessionAlreadyActiveError(BleTrackerError):
    """A scanning session was started while another one is still armed."""
