"""Scan error kinds.

All of these are recovered at the orchestrator boundary; none of them is
fatal to the process.
"""


class ScanError(Exception):
    """Base for everything the scan pipeline raises."""

    user_message = "Could not scan the ticket"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)

    @property
    def message(self) -> str:
        return str(self)


class PermissionDenied(ScanError):
    """The image source cannot be read."""

    user_message = "Allow access to the image to scan the ticket"


class TransportFailure(ScanError):
    """Network unreachable, non-2xx response or malformed body."""

    user_message = "Scan failed"


class ScanTimeout(TransportFailure):
    def __init__(self, seconds: float):
        self.seconds = seconds
        super().__init__(f"Scan timed out after {seconds:g}s")


class ScanRejected(ScanError):
    """The service could not find a valid ticket in the image."""

    user_message = "The image does not look like a Lô Tô ticket"


class IncompleteResult(ScanError):
    """Success status but no usable blocks."""

    user_message = "No ticket rows were recognized"


class ScanStateError(ScanError):
    """Request not valid in the orchestrator's current state."""


class ConfirmationRequired(ScanError):
    """A destructive action was committed without confirmation."""

    def __init__(self, action: str, matched_count: int):
        self.action = action
        self.matched_count = matched_count
        super().__init__(
            f"{matched_count} numbers are marked; confirm to {action}"
        )
