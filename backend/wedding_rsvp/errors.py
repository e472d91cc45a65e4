"""Domain exceptions and their HTTP mapping.

Stores and services raise these; the handlers registered in ``main.py``
translate them into the ``{success, error, errors?}`` JSON envelope.
The ``message`` is shown to guests and the admin, so it is in Bulgarian.
"""

from fastapi import status

GENERIC_ERROR_MESSAGE = "Възникна техническа грешка. Моля, опитайте отново."


class WeddingAppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Възникна неочаквана грешка. Моля, опитайте отново."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidRequestError(WeddingAppError):
    """Malformed or missing input. ``errors`` maps field name -> message."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Невалидни данни в заявката"

    def __init__(self, message: str | None = None, errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or {}


class UnauthorizedError(WeddingAppError):
    """Missing, invalid, or expired admin session."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Неоторизиран достъп"

    def __init__(self, reason: str = "missing", message: str | None = None) -> None:
        super().__init__(message)
        self.reason = reason  # missing | invalid | expired


class InvalidAccessCodeError(WeddingAppError):
    """Wrong admin access code on login. Never turned into a login redirect."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Неправилен код за достъп"


class GuestNotFoundError(WeddingAppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Гостът не е намерен"


class DuplicateEmailError(WeddingAppError):
    status_code = status.HTTP_409_CONFLICT
    message = (
        "Вече сте изпратили RSVP с този email адрес. "
        "Ако искате да промените отговора си, моля свържете се с нас."
    )


class RateLimitedError(WeddingAppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, window_hours: float, retry_after: int = 0) -> None:
        hours = f"{window_hours:g}"
        unit = "час" if hours == "1" else "часа"
        super().__init__(
            f"Превишихте лимита за подаване на формуляри. Моля, опитайте отново след {hours} {unit}."
        )
        self.retry_after = retry_after


class StorageError(WeddingAppError):
    """Backend I/O failure. Details are logged, never sent to the client."""

    message = GENERIC_ERROR_MESSAGE

    def __init__(self, detail: str) -> None:
        super().__init__()
        self.detail = detail

    def __str__(self) -> str:
        return self.detail
