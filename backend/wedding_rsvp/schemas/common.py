"""Response envelope shared by every JSON endpoint."""

from typing import Any


def envelope(
    data: Any = None,
    message: str | None = None,
    *,
    success: bool = True,
    error: str | None = None,
    errors: dict[str, str] | None = None,
) -> dict:
    """Build ``{success, data?, message?, error?, errors?}``, omitting unset keys."""
    body: dict[str, Any] = {"success": success}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    if error is not None:
        body["error"] = error
    if errors:
        body["errors"] = errors
    return body
