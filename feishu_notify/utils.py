"""Signing and small parsing helpers."""

from __future__ import annotations

import base64
import hashlib
import hmac
import time
from typing import Optional

HOOK_MARKER = "hook/"


def sign_with_timestamp(timestamp: str, secret: str) -> str:
    """
    Sign a Feishu custom-bot request.

    The HMAC-SHA256 key is ``secret`` and the message is
    ``"{timestamp}\\n{secret}"``; the request body is not part of it.

    Returns
    -------
    str
        Base64-encoded digest.
    """
    message = f"{timestamp}\n{secret}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), msg=message, digestmod=hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def current_timestamp() -> str:
    """Seconds since epoch, as text."""
    return str(int(time.time()))


def signing_material(secret: str, timestamp: Optional[str] = None) -> tuple[str | None, str | None]:
    """Return ``(timestamp, sign)`` or ``(None, None)`` when signing is off."""
    if not secret:
        return None, None
    tm = timestamp or current_timestamp()
    return tm, sign_with_timestamp(tm, secret)


def parse_webhook_id(webhook: str) -> str:
    """
    Accept either a full webhook URL or a bare hook id.

    Example
    -------
    'https://open.feishu.cn/open-apis/bot/v2/hook/abc-123' → 'abc-123'
    """
    webhook = (webhook or "").strip()
    if HOOK_MARKER in webhook:
        return webhook[webhook.index(HOOK_MARKER) + len(HOOK_MARKER):]
    return webhook


def gh_verify(secret: str, body: bytes, signature_header: str | None) -> bool:
    """
    Verify GitHub webhook HMAC signature (X-Hub-Signature-256).

    Returns
    -------
    bool
        True if valid, False otherwise.
    """
    if not signature_header or not signature_header.startswith("sha256="):
        return False
    sig = signature_header.split("=", 1)[1]
    mac = hmac.new(secret.encode(), msg=body, digestmod=hashlib.sha256).hexdigest()
    return hmac.compare_digest(mac, sig)
