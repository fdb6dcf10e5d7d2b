"""Exception taxonomy for the operations engine.

ValidationFailure and PersistenceFailure reach the HTTP layer. DependencyUnavailable
is normally caught where it is raised and replaced by a default. SourceKeyConflict
is the internal signal that a concurrent request already created the ticket.
"""


class HotelOpsError(Exception):
    """Base exception for hotelops errors."""

    pass


class ValidationFailure(HotelOpsError):
    """Missing or malformed input."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class DependencyUnavailable(HotelOpsError):
    """An upstream source (weather, bookings, market data) could not be read."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class PersistenceFailure(HotelOpsError):
    """A snapshot or ticket write failed and was rolled back."""

    pass


class SourceKeyConflict(HotelOpsError):
    """A ticket with the same source key was committed first."""

    def __init__(self, source_key: str):
        super().__init__(f"Ticket already exists for source key {source_key}")
        self.source_key = source_key
