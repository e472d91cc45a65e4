"""Pydantic v2 schemas for guest-list backups and restore previews."""

from pydantic import Field

from wedding_rsvp.schemas.guest import CamelModel


class BackupMetadata(CamelModel):
    version: str
    timestamp: str
    total_guests: int
    source: str = "wedding-website-admin"
    checksum: str | None = None


class BackupData(CamelModel):
    """A JSON snapshot of the guest list.

    ``guests`` holds raw camelCase dicts so that a backup taken by an older
    version (or edited by hand) can still be inspected by the validator.
    """

    metadata: BackupMetadata
    guests: list[dict]


class BackupValidationResult(CamelModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    metadata: BackupMetadata | None = None


class RestoreResult(CamelModel):
    """Outcome of a restore dry run. Nothing is written to the store."""

    success: bool = False
    restored: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
