"""Domain exceptions translated to HTTP responses at the request boundary."""


class AppError(Exception):
    """Base application error class."""

    status_code = 400

    def __init__(self, message="Request failed.", status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class Unauthorized(AppError):
    """Raised when no valid session accompanies the request."""

    status_code = 401

    def __init__(self, message="Unauthorized"):
        super().__init__(message)


class Forbidden(AppError):
    """Raised when the caller's role or ownership does not allow the action."""

    status_code = 403

    def __init__(self, message="Forbidden"):
        super().__init__(message)


class NotFound(AppError):
    """Raised when a resource is not found."""

    status_code = 404

    def __init__(self, resource="Resource"):
        super().__init__(f"{resource} not found")


class ValidationError(AppError):
    """Raised when user input fails validation."""

    status_code = 400

    def __init__(self, message="Validation failed."):
        super().__init__(message)


class Conflict(AppError):
    """Raised when the request collides with existing state."""

    status_code = 409

    def __init__(self, message="Resource already exists."):
        super().__init__(message)


class DuplicateRegistration(Conflict):
    def __init__(self, message="You are already registered for this event"):
        super().__init__(message)


class SeatUnavailable(Conflict):
    def __init__(self, message="Seat is not available"):
        super().__init__(message)


class CapacityExceeded(Conflict):
    def __init__(self, message="Capacity exceeded"):
        super().__init__(message)


class DuplicateTeamName(Conflict):
    def __init__(self, message="A team with this name already exists"):
        super().__init__(message)


class RateLimited(AppError):
    """Raised when a client sends too many requests."""

    status_code = 429

    def __init__(self, message="Rate limit exceeded. Please try again later."):
        super().__init__(message)
