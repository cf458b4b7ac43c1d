"""
Response envelope shared by every endpoint.

Successful responses: ``{"success": true, "data": ...}``
Failures (see main.py handlers): ``{"success": false, "error": "..."}``
"""

from typing import Any


def ok(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """Build a success envelope. ``data`` is always present unless only a message is sent."""
    body: dict[str, Any] = {"success": True}
    if message is None or data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body


def error_body(message: str, **extra: Any) -> dict[str, Any]:
    """Build a failure envelope."""
    return {"success": False, "error": message, **extra}
