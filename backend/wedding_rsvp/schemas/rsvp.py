"""Pydantic v2 schema for the public RSVP form.

Field validators raise ``PydanticCustomError`` so the Bulgarian message reaches
the form unchanged. Cross-field rules are checked in ``services.rsvp``, after
the individual fields are valid, so each error can be reported against the
field it belongs to.
"""

import re

from pydantic import StrictBool, field_validator
from pydantic_core import PydanticCustomError

from wedding_rsvp.schemas.guest import CamelModel, DietaryPreference, MenuChoice

# Cyrillic and Latin letters, spaces, apostrophe, dash
NAME_PATTERN = re.compile(r"^[а-яА-Яa-zA-Z\s'-]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# 0877311601, 087 731 1601, +359 87 731 1601, 032 123 456, ...
BULGARIAN_PHONE_PATTERN = re.compile(r"^(\+359[\s-]?|0)[2-9]\d{1}[\s-]?\d{3}[\s-]?\d{3,4}$")

MAX_CHILDREN = 10
MAX_ALLERGIES_LENGTH = 500


def _invalid(message: str) -> PydanticCustomError:
    return PydanticCustomError("rsvp_field", message)


class RSVPForm(CamelModel):
    """Fields a guest submits. ``id``, ``submissionDate`` and the IP are set server-side."""

    guest_name: str
    email: str
    phone: str | None = None
    attending: StrictBool
    plus_one_attending: StrictBool = False
    plus_one_name: str | None = None
    children_count: int = 0
    dietary_preference: DietaryPreference | None = None
    menu_choice: MenuChoice | None = None
    plus_one_menu_choice: MenuChoice | None = None
    allergies: str | None = None

    @field_validator("guest_name")
    @classmethod
    def _check_guest_name(cls, value: str) -> str:
        if len(value) < 2:
            raise _invalid("Името трябва да съдържа поне 2 символа")
        if len(value) > 100:
            raise _invalid("Името не може да съдържа повече от 100 символа")
        if not NAME_PATTERN.match(value):
            raise _invalid("Името може да съдържа само букви, спейсове, апостроф и тире")
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise _invalid("Невалиден email адрес")
        if len(value) > 255:
            raise _invalid("Email адресът не може да съдържа повече от 255 символа")
        return value

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: str | None) -> str | None:
        if value and not BULGARIAN_PHONE_PATTERN.match(value):
            raise _invalid(
                "Невалиден български телефонен номер "
                "(използвайте формат: 0877311601, 087 731 1601, +359 87 731 1601 или подобни)"
            )
        return value

    @field_validator("plus_one_name")
    @classmethod
    def _check_plus_one_name(cls, value: str | None) -> str | None:
        if not value:
            return value
        if not 2 <= len(value) <= 100:
            raise _invalid("Името на спътника трябва да съдържа между 2 и 100 символа")
        if not NAME_PATTERN.match(value):
            raise _invalid("Името на спътника може да съдържа само букви, спейсове, апостроф и тире")
        return value

    @field_validator("children_count")
    @classmethod
    def _check_children_count(cls, value: int) -> int:
        if value < 0:
            raise _invalid("Броят деца не може да бъде отрицателен")
        if value > MAX_CHILDREN:
            raise _invalid(f"Броят деца не може да бъде повече от {MAX_CHILDREN}")
        return value

    @field_validator("allergies")
    @classmethod
    def _check_allergies(cls, value: str | None) -> str | None:
        if value and len(value) > MAX_ALLERGIES_LENGTH:
            raise _invalid(
                f"Информацията за алергии не може да съдържа повече от {MAX_ALLERGIES_LENGTH} символа"
            )
        return value
