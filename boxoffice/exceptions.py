class CustomBaseError(Exception):
    """Base class for all service errors - carries the HTTP status the handlers respond with"""

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class InvalidArgumentError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class InvalidDataError(CustomBaseError):
    """Submitted payload is malformed or does not match stored records"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class ConflictError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class UnexpectedStateError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 500)


class QRCodeEncodingError(UnexpectedStateError):
    pass
