"""Request dependencies shared by the API routers."""

import hmac
import json
from typing import Any, Optional

from fastapi import Header, Request

from chainhook_indexer.config import Config


class UnauthorizedDelivery(Exception):
    """Raised when a chainhook delivery lacks the configured bearer token."""
    pass


class InvalidPayload(Exception):
    """Raised when a delivery body is not valid JSON."""
    pass


class PayloadTooLarge(Exception):
    """Raised when a delivery body exceeds the configured limit."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Payload of {size} bytes exceeds {limit} bytes")


def get_config(request: Request) -> Config:
    """Config the application was created with."""
    return request.app.state.config


def require_chainhook_auth(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> None:
    """Enforce `Authorization: Bearer <token>` when a token is configured."""
    config = get_config(request)
    if not config.auth_enabled:
        return

    expected = f"Bearer {config.chainhook_auth_token}"
    if authorization is None or not hmac.compare_digest(authorization.encode(), expected.encode()):
        raise UnauthorizedDelivery()


async def read_json_payload(request: Request) -> Any:
    """Read and decode a delivery body, enforcing max_payload_bytes.

    The limit applies to the bytes actually received, so chunked bodies
    without a Content-Length are bounded too. An oversized declared length
    is rejected before reading anything.

    Raises:
        PayloadTooLarge: If the body is larger than the limit
        InvalidPayload: If the body is not JSON
    """
    limit = get_config(request).max_payload_bytes
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLarge(int(declared), limit)

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise PayloadTooLarge(len(body), limit)

    try:
        return json.loads(body)
    except ValueError as e:
        raise InvalidPayload(str(e)) from e


def clamp_limit(raw: Optional[str], default: int, cap: int) -> int:
    """Parse a ?limit= value; missing, invalid or non-positive means `default`."""
    try:
        value = int(raw) if raw is not None else 0
    except ValueError:
        value = 0
    if value <= 0:
        value = default
    return min(value, cap)
