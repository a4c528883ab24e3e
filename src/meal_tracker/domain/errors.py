"""Error taxonomy shared by services, adapters and the HTTP layer."""


class MealTrackerError(Exception):
    """Base class for errors raised by the meal tracker core."""

    public_message = "Something went wrong"


class ValidationError(MealTrackerError):
    """Required input is missing or malformed."""

    public_message = "Invalid request"


class NotFound(MealTrackerError):
    """The targeted meal or meal food association does not exist."""

    public_message = "Not found"


class RemoteError(MealTrackerError):
    """The nutrition provider call failed."""

    public_message = "Food lookup failed"


class RemoteUnavailable(RemoteError):
    """The nutrition provider could not be reached or returned an error."""


class RemoteNotFound(RemoteError):
    """The nutrition provider has no food with the requested identifier."""

    public_message = "Food was not found"


class StorageError(MealTrackerError):
    """The persistence layer failed."""
