"""Tests for RSVP form validation, sanitization, and the intake flow."""

import pytest

from wedding_rsvp.errors import DuplicateEmailError, InvalidRequestError, RateLimitedError, StorageError
from wedding_rsvp.services.rsvp import (
    ATTENDING_MESSAGE,
    NOT_ATTENDING_MESSAGE,
    rsvp_success_message,
    sanitize_guest_data,
    submit_rsvp,
    validate_rsvp_form,
)

_IP = "203.0.113.7"


def _form(**overrides) -> dict:
    data = {
        "guestName": "Алиса Петрова",
        "email": "alice@x.com",
        "phone": "0877311601",
        "attending": True,
        "plusOneAttending": False,
        "childrenCount": 0,
        "menuChoice": "meat",
    }
    data.update(overrides)
    return data


def _errors(data) -> dict:
    with pytest.raises(InvalidRequestError) as exc_info:
        validate_rsvp_form(data)
    return exc_info.value.errors


class TestFieldValidation:
    """Per-field rules and their Bulgarian messages."""

    def test_valid_form(self) -> None:
        form = validate_rsvp_form(_form())
        assert form.guest_name == "Алиса Петрова"
        assert form.menu_choice == "meat"

    @pytest.mark.parametrize("name", ["A", "x" * 101, "Robert'); DROP", "Иван3"])
    def test_invalid_names(self, name: str) -> None:
        assert "guestName" in _errors(_form(guestName=name))

    def test_name_with_apostrophe_and_dash(self) -> None:
        validate_rsvp_form(_form(guestName="Mary-Jane O'Neil"))

    @pytest.mark.parametrize("email", ["not-an-email", "a@b", "a b@c.com"])
    def test_invalid_email(self, email: str) -> None:
        assert _errors(_form(email=email))["email"] == "Невалиден email адрес"

    @pytest.mark.parametrize("phone", ["0877311601", "087 731 1601", "+359 87 731 1601", "+359877311601", "032 123 456"])
    def test_bulgarian_phone_formats(self, phone: str) -> None:
        validate_rsvp_form(_form(phone=phone))

    @pytest.mark.parametrize("phone", ["12345", "0177311601", "+44 20 7946 0958"])
    def test_invalid_phone(self, phone: str) -> None:
        assert _errors(_form(phone=phone))["phone"].startswith("Невалиден български телефонен номер")

    def test_phone_is_optional(self) -> None:
        data = _form()
        del data["phone"]
        assert validate_rsvp_form(data).phone is None

    def test_children_count_bounds(self) -> None:
        assert "childrenCount" in _errors(_form(childrenCount=11))
        assert "childrenCount" in _errors(_form(childrenCount=-1))
        assert validate_rsvp_form(_form(childrenCount=10)).children_count == 10

    def test_allergies_length(self) -> None:
        assert "allergies" in _errors(_form(allergies="x" * 501))

    def test_missing_required_fields(self) -> None:
        errors = _errors({})
        assert errors["guestName"] == "Името е задължително"
        assert errors["email"] == "Email адресът е задължителен"
        assert errors["attending"] == "Моля, посочете дали ще присъствате"

    @pytest.mark.parametrize("value", ["yes", "on", "true", 1])
    def test_attendance_must_be_a_boolean(self, value) -> None:
        assert _errors(_form(attending=value))["attending"] == "Моля, посочете дали ще присъствате"
        assert _errors(_form(plusOneAttending=value))["plusOneAttending"] == "Невалидна стойност за спътник"

    def test_unknown_menu_choice(self) -> None:
        assert _errors(_form(menuChoice="fish"))["menuChoice"] == "Моля, изберете валидно меню"

    def test_non_object_body(self) -> None:
        with pytest.raises(InvalidRequestError):
            validate_rsvp_form(["not", "a", "form"])


class TestCrossFieldValidation:
    """Rules that depend on more than one field."""

    def test_plus_one_requires_name(self) -> None:
        errors = _errors(_form(plusOneAttending=True, plusOneMenuChoice="meat"))
        assert errors == {"plusOneName": "Моля, въведете името на спътника ви"}

    def test_plus_one_requires_attending(self) -> None:
        errors = _errors(
            _form(attending=False, menuChoice=None, plusOneAttending=True, plusOneName="Иван", plusOneMenuChoice="meat")
        )
        assert errors["plusOneAttending"] == "Не можете да доведете спътник, ако не присъствате"

    def test_attending_requires_menu(self) -> None:
        assert _errors(_form(menuChoice=None))["menuChoice"] == "Моля, изберете меню за себе си"

    def test_plus_one_requires_menu(self) -> None:
        errors = _errors(_form(plusOneAttending=True, plusOneName="Иван Иванов"))
        assert errors["plusOneMenuChoice"] == "Моля, изберете меню за спътника си"

    def test_not_attending_needs_no_menu(self) -> None:
        validate_rsvp_form(_form(attending=False, menuChoice=None))


class TestSanitize:
    """Whitespace, case, and phone normalization."""

    def test_normalizes_fields(self) -> None:
        form = validate_rsvp_form(
            _form(
                guestName="  Алиса   Петрова ",
                email="Alice@X.com",
                phone="087 731-1601",
                allergies="  ядки,   мляко ",
            )
        )
        guest = sanitize_guest_data(form, _IP)
        assert guest.guest_name == "Алиса Петрова"
        assert guest.email == "alice@x.com"
        assert guest.phone == "0877311601"
        assert guest.allergies == "ядки, мляко"
        assert guest.ip_address == _IP


@pytest.mark.asyncio
class TestSubmitRsvp:
    """The end-to-end intake flow over a filesystem store."""

    async def test_creates_record(self, guest_store, rate_limiter) -> None:
        record = await submit_rsvp(guest_store, rate_limiter, _form(), _IP)
        assert record.email == "alice@x.com"
        assert await guest_store.get_all() == [record]
        assert rsvp_success_message(record) == ATTENDING_MESSAGE

    async def test_not_attending_message(self, guest_store, rate_limiter) -> None:
        record = await submit_rsvp(guest_store, rate_limiter, _form(attending=False, menuChoice=None), _IP)
        assert rsvp_success_message(record) == NOT_ATTENDING_MESSAGE

    async def test_duplicate_email_rejected(self, guest_store, rate_limiter) -> None:
        await submit_rsvp(guest_store, rate_limiter, _form(), _IP)
        with pytest.raises(DuplicateEmailError):
            await submit_rsvp(guest_store, rate_limiter, _form(email="ALICE@x.com"), "198.51.100.1")
        assert len(await guest_store.get_all()) == 1

    async def test_only_successful_submissions_count(self, guest_store, rate_limiter) -> None:
        with pytest.raises(InvalidRequestError):
            await submit_rsvp(guest_store, rate_limiter, _form(email="bad"), _IP)
        assert await guest_store.get_rate_limit(_IP) is None

    async def test_rate_limited_after_three_submissions(self, guest_store, rate_limiter) -> None:
        for index in range(3):
            await submit_rsvp(guest_store, rate_limiter, _form(email=f"guest{index}@example.com"), _IP)

        with pytest.raises(RateLimitedError) as exc_info:
            await submit_rsvp(guest_store, rate_limiter, _form(email="guest9@example.com"), _IP)
        assert exc_info.value.retry_after > 0
        assert "1 час" in exc_info.value.message

    async def test_rate_limit_update_failure_does_not_fail_submission(
        self, guest_store, rate_limiter, monkeypatch
    ) -> None:
        async def broken_save(ip_address, record):
            raise StorageError("disk full")

        monkeypatch.setattr(guest_store, "save_rate_limit", broken_save)
        record = await submit_rsvp(guest_store, rate_limiter, _form(), _IP)
        assert await guest_store.get(record.id) == record
