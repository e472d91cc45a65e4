"""JSON backups of the guest list, backup validation, and restore dry runs."""

import hashlib
import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

from wedding_rsvp.schemas.backup import BackupData, BackupMetadata, BackupValidationResult, RestoreResult
from wedding_rsvp.schemas.guest import GuestRecord
from wedding_rsvp.storage.base import iso_timestamp

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"
BACKUP_SOURCE = "wedding-website-admin"

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def compute_checksum(guests: list[dict]) -> str:
    """SHA-256 hex digest of the compact JSON encoding of ``guests``."""
    payload = json.dumps(guests, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _parse_timestamp(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def create_backup(guests: list[GuestRecord], now: datetime | None = None) -> BackupData:
    raw_guests = [guest.to_json_dict() for guest in guests]
    metadata = BackupMetadata(
        version=BACKUP_VERSION,
        timestamp=iso_timestamp(now or datetime.now(timezone.utc)),
        total_guests=len(raw_guests),
        source=BACKUP_SOURCE,
        checksum=compute_checksum(raw_guests),
    )
    logger.info("Created backup of %d guests", len(raw_guests))
    return BackupData(metadata=metadata, guests=raw_guests)


def backup_filename(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"wedding-guests-backup-{now.date().isoformat()}.json"


def validate_backup_data(data: Any) -> BackupValidationResult:
    """Check that ``data`` looks like a backup produced by ``create_backup``.

    Structural problems and missing required guest fields are errors. A guest
    count or checksum mismatch, malformed emails, and unparseable submission
    dates are only warnings.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(data, dict):
        return BackupValidationResult(is_valid=False, errors=["Invalid backup file format"])

    metadata = data.get("metadata")
    guests = data.get("guests")
    if not metadata or guests is None:
        return BackupValidationResult(
            is_valid=False,
            errors=["Backup file is missing required fields (metadata, guests)"],
        )
    if not isinstance(metadata, dict):
        return BackupValidationResult(is_valid=False, errors=["Backup metadata is not an object"])

    version = metadata.get("version")
    if not version:
        errors.append("Backup metadata is missing version")
    elif not isinstance(version, str):
        errors.append("Backup metadata has invalid version")

    if "source" in metadata and not isinstance(metadata["source"], str):
        errors.append("Backup metadata has invalid source")

    checksum = metadata.get("checksum")
    if checksum is not None and not isinstance(checksum, str):
        errors.append("Backup metadata has invalid checksum")

    timestamp = metadata.get("timestamp")
    if not timestamp:
        errors.append("Backup metadata is missing timestamp")
    elif not isinstance(timestamp, str):
        errors.append("Backup metadata has invalid timestamp format")
    elif _parse_timestamp(timestamp) is None:
        errors.append("Backup metadata has invalid timestamp")

    total_guests = metadata.get("totalGuests")
    if not isinstance(total_guests, int) or isinstance(total_guests, bool):
        errors.append("Backup metadata is missing or has invalid totalGuests")

    if not isinstance(guests, list):
        errors.append("Backup guests data is not an array")
        return BackupValidationResult(is_valid=False, errors=errors, warnings=warnings)

    if len(guests) != total_guests:
        warnings.append(f"Guest count mismatch: metadata says {total_guests}, found {len(guests)}")

    if isinstance(checksum, str) and checksum and compute_checksum(guests) != checksum:
        warnings.append("Backup checksum mismatch - data may have been modified")

    for guest in guests:
        if not isinstance(guest, dict):
            errors.append("Guest is not a valid object")
            continue

        name = guest.get("guestName")
        email = guest.get("email")
        label = name if isinstance(name, str) else "Unknown"

        if not name or not isinstance(name, str):
            errors.append("Guest is missing or has invalid name")
        if not email or not isinstance(email, str):
            errors.append("Guest is missing or has invalid email")
        if not isinstance(guest.get("attending"), bool):
            errors.append("Guest has invalid attendance status")

        if isinstance(email, str) and not _EMAIL_PATTERN.match(email):
            warnings.append(f'Guest "{label}" has invalid email format')

        submitted = guest.get("submissionDate")
        if isinstance(submitted, str) and submitted and _parse_timestamp(submitted) is None:
            warnings.append(f'Guest "{label}" has invalid submission date')

    is_valid = not errors
    return BackupValidationResult(
        is_valid=is_valid,
        errors=errors,
        warnings=warnings,
        metadata=BackupMetadata.model_validate(metadata) if is_valid else None,
    )


def simulate_restore(data: Any, existing: list[GuestRecord]) -> RestoreResult:
    """Report what restoring ``data`` would do. Nothing is written.

    Guests whose lowercased email already exists are skipped.
    """
    validation = validate_backup_data(data)
    if not validation.is_valid:
        return RestoreResult(errors=validation.errors)

    result = RestoreResult(success=True, warnings=list(validation.warnings))
    known_emails = {guest.email.lower() for guest in existing}

    for guest in data["guests"]:
        if guest["email"].lower() in known_emails:
            result.skipped += 1
            result.warnings.append(f'Skipped guest "{guest["guestName"]}" - email already exists')
        else:
            result.restored += 1

    if result.restored:
        result.warnings.append(f"Restore preview only: {result.restored} guests would be added")
    return result
