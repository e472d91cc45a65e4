"""Delimited-text exports of the guest list.

The full export is for spreadsheets: Bulgarian headers, UTF-8 with a BOM.
The email exports follow the column layout each mailing platform expects on
import.
"""

import csv
import io
from collections.abc import Iterable
from datetime import date
from typing import Literal

from wedding_rsvp.errors import InvalidRequestError
from wedding_rsvp.schemas.guest import GuestRecord

EmailPlatform = Literal["mailchimp", "constant-contact", "sendgrid", "generic"]
EmailFormat = Literal["csv", "txt"]

NO_GUESTS_MESSAGE = "Няма гости за експортиране"

GUEST_EXPORT_HEADERS = [
    "Име",
    "Имейл",
    "Телефон",
    "Присъства",
    "+1",
    "Име на +1",
    "Брой деца",
    "Меню",
    "+1 Меню",
    "Хранително предпочитание",
    "Алергии",
    "Дата на изпращане",
]

_MENU_LABELS = {"meat": "Месно", "vegetarian": "Вегетарианско"}
_DIETARY_LABELS = {"standard": "Стандартно", "vegetarian": "Вегетарианско"}


def _yes_no(value: bool) -> str:
    return "Да" if value else "Не"


def _split_name(full_name: str) -> tuple[str, str]:
    first, _, last = full_name.partition(" ")
    return first, last


def _filtered(guests: Iterable[GuestRecord], attending_only: bool) -> list[GuestRecord]:
    selected = [guest for guest in guests if guest.attending or not attending_only]
    if not selected:
        raise InvalidRequestError(NO_GUESTS_MESSAGE)
    return selected


def _to_csv(rows: list[list[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def export_guests_csv(guests: Iterable[GuestRecord], attending_only: bool = False) -> bytes:
    """Full guest list as CSV bytes. The IP address is never exported."""
    selected = _filtered(guests, attending_only)
    rows = [GUEST_EXPORT_HEADERS]
    for guest in selected:
        rows.append(
            [
                guest.guest_name,
                guest.email,
                guest.phone or "",
                _yes_no(guest.attending),
                _yes_no(guest.plus_one_attending),
                guest.plus_one_name or "",
                str(guest.children_count),
                _MENU_LABELS.get(guest.menu_choice or "", ""),
                _MENU_LABELS.get(guest.plus_one_menu_choice or "", "") if guest.plus_one_attending else "",
                _DIETARY_LABELS.get(guest.dietary_preference or "", ""),
                guest.allergies or "",
                guest.submission_date,
            ]
        )
    return _to_csv(rows).encode("utf-8-sig")


def export_emails_for_platform(
    guests: Iterable[GuestRecord],
    platform: EmailPlatform = "generic",
    include_names: bool = True,
    include_phones: bool = False,
    include_dietary: bool = False,
    fmt: EmailFormat = "csv",
    attending_only: bool = False,
) -> str:
    """Email list in the import layout of the given mailing platform.

    ``fmt`` only applies to ``generic``; ``txt`` is one address per line.
    SendGrid has no phone column and the other platforms have no dietary column.
    """
    selected = _filtered(guests, attending_only)

    if platform == "generic" and fmt == "txt":
        return "\n".join(guest.email for guest in selected)

    if platform == "mailchimp":
        headers = ["Email Address"]
        name_headers = ["First Name", "Last Name"]
        phone_header = "Phone"
        dietary_header = None
    elif platform == "constant-contact":
        headers = ["Email"]
        name_headers = ["First Name", "Last Name"]
        phone_header = "Work Phone"
        dietary_header = None
    elif platform == "sendgrid":
        headers = ["email"]
        name_headers = ["first_name", "last_name"]
        phone_header = None
        dietary_header = "dietary_preference"
    else:
        headers = ["Email"]
        name_headers = ["Name"]
        phone_header = "Phone"
        dietary_header = "Dietary Preference"

    with_phones = include_phones and phone_header is not None
    with_dietary = include_dietary and dietary_header is not None
    if include_names:
        headers += name_headers
    if with_phones:
        headers.append(phone_header)
    if with_dietary:
        headers.append(dietary_header)

    rows = [headers]
    for guest in selected:
        row = [guest.email]
        if include_names:
            if len(name_headers) == 2:
                row.extend(_split_name(guest.guest_name))
            else:
                row.append(guest.guest_name)
        if with_phones:
            row.append(guest.phone or "")
        if with_dietary:
            row.append(guest.dietary_preference or "")
        rows.append(row)
    return _to_csv(rows)


def guests_export_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"wedding-guests-{today.isoformat()}.csv"


def emails_export_filename(
    platform: str,
    attending_only: bool,
    fmt: str = "csv",
    today: date | None = None,
) -> str:
    today = today or date.today()
    scope = "attending" if attending_only else "all"
    return f"wedding-emails-{platform}-{scope}-{today.isoformat()}.{fmt}"
