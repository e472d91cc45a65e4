"""Filesystem JSON guest store.

``<data_dir>/guests.json`` holds the guest array and ``<data_dir>/rate-limits.json``
holds an object keyed by IP. Both files are created on first access. Expired
rate-limit entries are ignored at read time but never pruned from the file.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from wedding_rsvp.errors import StorageError
from wedding_rsvp.schemas.rate_limit import RateLimitRecord
from wedding_rsvp.storage.base import GuestStore

logger = logging.getLogger(__name__)


class FileGuestStore(GuestStore):
    backend_name = "file"

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self.guests_file = self.data_dir / "guests.json"
        self.rate_limit_file = self.data_dir / "rate-limits.json"

    def _initialize(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if not self.guests_file.exists():
            self.guests_file.write_text("[]", encoding="utf-8")
        if not self.rate_limit_file.exists():
            self.rate_limit_file.write_text("{}", encoding="utf-8")

    def _read_json(self, path: Path) -> Any:
        self._initialize()
        return json.loads(path.read_text(encoding="utf-8"))

    def _write_json(self, path: Path, data: Any) -> None:
        self._initialize()
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run blocking file I/O off the event loop, mapping failures to ``StorageError``."""
        try:
            return await asyncio.to_thread(func, *args)
        except (OSError, ValueError) as exc:
            logger.exception("File storage operation failed in %s", self.data_dir)
            raise StorageError(f"File storage operation failed: {exc}") from exc

    async def _load_guests(self) -> list[dict]:
        guests = await self._run(self._read_json, self.guests_file)
        if not isinstance(guests, list):
            raise StorageError(f"{self.guests_file} does not contain a JSON array")
        return guests

    async def _save_guests(self, guests: list[dict]) -> None:
        await self._run(self._write_json, self.guests_file, guests)

    async def _load_rate_limits(self) -> dict[str, dict]:
        rate_limits = await self._run(self._read_json, self.rate_limit_file)
        if not isinstance(rate_limits, dict):
            raise StorageError(f"{self.rate_limit_file} does not contain a JSON object")
        return rate_limits

    async def get_rate_limit(self, ip_address: str) -> RateLimitRecord | None:
        raw = (await self._load_rate_limits()).get(ip_address)
        if raw is None:
            return None
        try:
            return RateLimitRecord.model_validate(raw)
        except ValidationError as exc:
            raise StorageError(f"Rate-limit entry for {ip_address} is malformed") from exc

    async def save_rate_limit(self, ip_address: str, record: RateLimitRecord) -> None:
        rate_limits = await self._load_rate_limits()
        rate_limits[ip_address] = record.to_json_dict()
        await self._run(self._write_json, self.rate_limit_file, rate_limits)
