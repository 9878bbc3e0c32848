"""Reservation domain errors, rendered as {"detail": ...} by the API"""


class ReservationError(Exception):
    """Base class; carries the HTTP status the API answers with"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(ReservationError):
    status_code = 400


class Forbidden(ReservationError):
    status_code = 403


class NotFound(ReservationError):
    status_code = 404


class Conflict(ReservationError):
    status_code = 409


class DirectoryUnavailable(ReservationError):
    """A collaborator needed to answer (not merely enrich) is down"""
    status_code = 503
