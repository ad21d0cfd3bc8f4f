class RoomError(Exception):
    """Domain failure carrying the HTTP status the API answers with."""

    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'error': self.message}


class ValidationError(RoomError):
    status_code = 400


class AuthError(RoomError):
    status_code = 401


class NotFoundError(RoomError):
    status_code = 404


class ConflictError(RoomError):
    status_code = 409


class OpeningSourceError(Exception):
    """Raised when an opening source cannot produce or update openings."""
