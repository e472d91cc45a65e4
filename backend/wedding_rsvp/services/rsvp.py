"""RSVP intake: validation, sanitization, duplicate and rate-limit checks, storage."""

import logging
from typing import Any

from pydantic import ValidationError

from wedding_rsvp.errors import DuplicateEmailError, InvalidRequestError, RateLimitedError, StorageError
from wedding_rsvp.schemas.guest import GuestCreate, GuestRecord
from wedding_rsvp.schemas.rsvp import RSVPForm
from wedding_rsvp.services.rate_limiter import RateLimiter
from wedding_rsvp.storage.base import GuestStore

logger = logging.getLogger(__name__)

FORM_ERROR_MESSAGE = "Моля, коригирайте грешките във формуляра"
ATTENDING_MESSAGE = "Благодарим ви! RSVP-то ви е получено. Очакваме ви с нетърпение!"
NOT_ATTENDING_MESSAGE = "Благодарим ви за отговора! Съжаляваме, че няма да можете да присъствате."

# Messages for errors raised by pydantic itself (missing or wrongly typed fields).
_REQUIRED_MESSAGES = {
    "guestName": "Името е задължително",
    "email": "Email адресът е задължителен",
    "attending": "Моля, посочете дали ще присъствате",
}
_TYPE_MESSAGES = {
    "attending": "Моля, посочете дали ще присъствате",
    "plusOneAttending": "Невалидна стойност за спътник",
    "childrenCount": "Броят деца трябва да бъде цяло число",
    "dietaryPreference": "Моля, изберете валидно хранително предпочитание",
    "menuChoice": "Моля, изберете валидно меню",
    "plusOneMenuChoice": "Моля, изберете валидно меню за спътника",
}
_FALLBACK_MESSAGE = "Невалидна стойност"


def _field_errors(exc: ValidationError) -> dict[str, str]:
    """First error message per field, keyed by the camelCase field name."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "general"
        if field in errors:
            continue
        if error["type"] == "rsvp_field":
            errors[field] = error["msg"]
        elif error["type"] == "missing":
            errors[field] = _REQUIRED_MESSAGES.get(field, _FALLBACK_MESSAGE)
        else:
            errors[field] = _TYPE_MESSAGES.get(field, _FALLBACK_MESSAGE)
    return errors


def _cross_field_errors(form: RSVPForm) -> dict[str, str]:
    errors: dict[str, str] = {}
    if form.plus_one_attending and not (form.plus_one_name and form.plus_one_name.strip()):
        errors["plusOneName"] = "Моля, въведете името на спътника ви"
    if not form.attending and form.plus_one_attending:
        errors["plusOneAttending"] = "Не можете да доведете спътник, ако не присъствате"
    if form.attending and not form.menu_choice:
        errors["menuChoice"] = "Моля, изберете меню за себе си"
    if form.plus_one_attending and not form.plus_one_menu_choice:
        errors["plusOneMenuChoice"] = "Моля, изберете меню за спътника си"
    return errors


def validate_rsvp_form(data: Any) -> RSVPForm:
    """Validate raw form data.

    Raises:
        InvalidRequestError: with a field -> message map in ``errors``.
    """
    if not isinstance(data, dict):
        raise InvalidRequestError()

    try:
        form = RSVPForm.model_validate(data)
    except ValidationError as exc:
        raise InvalidRequestError(FORM_ERROR_MESSAGE, errors=_field_errors(exc)) from None

    errors = _cross_field_errors(form)
    if errors:
        raise InvalidRequestError(FORM_ERROR_MESSAGE, errors=errors)
    return form


def sanitize_string(value: str) -> str:
    """Trim and collapse runs of whitespace to a single space."""
    return " ".join(value.split())


def sanitize_guest_data(form: RSVPForm, ip_address: str | None = None) -> GuestCreate:
    """Normalize a validated form into the record handed to the store."""
    phone = None
    if form.phone:
        phone = sanitize_string(form.phone.replace(" ", "").replace("-", ""))

    return GuestCreate(
        guest_name=sanitize_string(form.guest_name),
        email=sanitize_string(form.email.lower()),
        phone=phone,
        attending=form.attending,
        plus_one_attending=form.plus_one_attending,
        plus_one_name=sanitize_string(form.plus_one_name) if form.plus_one_name else None,
        children_count=form.children_count,
        dietary_preference=form.dietary_preference,
        menu_choice=form.menu_choice,
        plus_one_menu_choice=form.plus_one_menu_choice,
        allergies=sanitize_string(form.allergies) if form.allergies else None,
        ip_address=ip_address,
    )


def rsvp_success_message(record: GuestRecord) -> str:
    return ATTENDING_MESSAGE if record.attending else NOT_ATTENDING_MESSAGE


async def submit_rsvp(
    store: GuestStore,
    limiter: RateLimiter,
    data: Any,
    ip_address: str,
) -> GuestRecord:
    """Run one RSVP submission end to end.

    Order: rate-limit check, validation, sanitization, duplicate-email check,
    insert, rate-limit update. Only successful submissions count against the
    limit. The duplicate check and the insert are not atomic.

    Raises:
        RateLimitedError, InvalidRequestError, DuplicateEmailError, StorageError
    """
    if not await limiter.check(ip_address):
        raise RateLimitedError(limiter.window_hours, await limiter.retry_after(ip_address))

    form = validate_rsvp_form(data)
    guest = sanitize_guest_data(form, ip_address)

    if await store.find_by_email(guest.email) is not None:
        logger.info("Duplicate RSVP rejected for existing email")
        raise DuplicateEmailError()

    record = await store.add(guest)

    try:
        await limiter.update(ip_address)
    except StorageError:
        # The guest is already stored; the submission stands.
        logger.warning("Failed to update rate limit for IP %s", ip_address)

    logger.info(
        "RSVP submission successful: %s (%s) - attending: %s",
        record.guest_name,
        record.id,
        record.attending,
    )
    return record
