"""Managed key-value store (Upstash / Vercel KV) over its REST API.

Each command is sent as a JSON array, e.g. ``["SET", "key", "value", "EX", "3600"]``,
in a POST to the REST URL with a bearer token. The reply is
``{"result": ...}`` or ``{"error": "..."}``.
"""

import logging

import httpx

from wedding_rsvp.errors import StorageError
from wedding_rsvp.storage.keyvalue import KeyValueGuestStore

logger = logging.getLogger(__name__)


class KVGuestStore(KeyValueGuestStore):
    backend_name = "kv"

    def __init__(
        self,
        rest_url: str,
        token: str,
        rate_limit_ttl_seconds: int = 60 * 60,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(rate_limit_ttl_seconds=rate_limit_ttl_seconds)
        self._client = httpx.AsyncClient(
            base_url=rest_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def _command(self, *args: str | int):
        command = [str(arg) for arg in args]
        try:
            response = await self._client.post("", json=command)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.exception("KV %s %s failed", command[0], command[1] if len(command) > 1 else "-")
            raise StorageError(f"KV {command[0]} failed: {exc}") from exc

        if "error" in body:
            logger.error("KV %s returned an error: %s", command[0], body["error"])
            raise StorageError(f"KV {command[0]} failed: {body['error']}")
        return body.get("result")

    async def _get(self, key: str) -> str | None:
        return await self._command("GET", key)

    async def _set(self, key: str, value: str, ex: int | None = None) -> None:
        if ex is None:
            await self._command("SET", key, value)
        else:
            await self._command("SET", key, value, "EX", ex)

    async def _delete(self, key: str) -> None:
        await self._command("DEL", key)

    async def ping(self) -> None:
        if await self._command("PING") != "PONG":
            raise StorageError("KV ping did not return PONG")

    async def close(self) -> None:
        await self._client.aclose()
