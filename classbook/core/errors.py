"""Typed failures raised by the service layer.

Routes translate these into HTTP responses (see ``api.deps.http_error``);
the sweeper logs and skips them. Nothing below carries transport details.
"""


class ClassbookError(Exception):
    pass


class InvalidInputError(ClassbookError):
    pass


class PermissionDeniedError(ClassbookError):
    pass


class NotFoundError(ClassbookError):
    pass


class PreconditionFailedError(ClassbookError):
    """A state or time rule refused the operation.

    ``code`` is stable and meant for clients to branch on, e.g.
    ``check_in_window_expired``.
    """

    def __init__(self, code: str, message: str | None = None) -> None:
        super().__init__(message or code)
        self.code = code


CHECK_IN_WINDOW_EXPIRED = "check_in_window_expired"
INVALID_STATUS = "invalid_status"
BOOKING_NOT_OPEN = "booking_not_open"
BOOKING_CLOSED = "booking_closed"
ALREADY_BOOKED = "already_booked"
ACTIVE_BOOKING_EXISTS = "active_booking_exists"
CLASS_FULL = "class_full"
