"""Yet another feishu services"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from feishu_notify.config import FEISHU_API_BASE

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_SECONDS = 15
HOOK_PATH = "/open-apis/bot/v2/hook/"

SIGNATURE_MISMATCH_CODE = 19021

PROVIDER_DIAGNOSTICS: dict[int, str] = {
    SIGNATURE_MISMATCH_CODE: (
        "Feishu rejected the signature: check FEISHU_BOT_SIGNKEY and that the "
        "runner clock is within one hour of Feishu's (timestamp drift)"
    ),
    19022: "Feishu rejected the request: caller IP is not in the bot's allow list",
    19024: "Feishu rejected the message: required keyword not found in content",
}

JSONDict = dict[str, Any]


@dataclass
class DeliveryResult:
    """What came back from one webhook POST."""

    status_code: int
    provider_success: bool = True
    provider_code: Optional[int] = None
    body: Any = None


def serialize_payload(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False)


def build_hook_url(webhook_id: str, base_url: str = FEISHU_API_BASE) -> str:
    return f"{base_url.rstrip('/')}{HOOK_PATH}{webhook_id}"


def _numeric_code(data: JSONDict, field: str) -> Optional[int]:
    value = data.get(field)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def classify_response(status_code: int, text: str) -> DeliveryResult:
    """
    Interpret a Feishu webhook response body.

    A non-zero numeric ``StatusCode`` or ``code`` is a provider failure. It
    is logged (with a specific hint for known codes) but never raised.
    Bodies that are not JSON are logged verbatim.
    """
    try:
        data = json.loads(text or "{}")
    except ValueError:
        logger.info("Feishu response text: %s", text or "<empty>")
        return DeliveryResult(status_code=status_code, provider_success=False, body=text)

    logger.info("Feishu response JSON: %s", json.dumps(data, ensure_ascii=False))
    if not isinstance(data, dict):
        return DeliveryResult(status_code=status_code, body=data)

    code = None
    for field in ("StatusCode", "code"):
        value = _numeric_code(data, field)
        if value:
            code = value
            break
    if code is None:
        return DeliveryResult(status_code=status_code, provider_code=0, body=data)

    message = data.get("msg") or data.get("StatusMessage") or ""
    logger.error("Feishu returned code %s: %s", code, message or "<no message>")
    diagnostic = PROVIDER_DIAGNOSTICS.get(code)
    if diagnostic:
        logger.error(diagnostic)
    return DeliveryResult(
        status_code=status_code,
        provider_success=False,
        provider_code=code,
        body=data,
    )


async def post_to_feishu(
    webhook_id: str,
    body: str,
    timestamp: Optional[str] = None,
    sign: Optional[str] = None,
    *,
    base_url: str = FEISHU_API_BASE,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DeliveryResult:
    """
    POST a serialized payload to a custom-bot webhook, exactly once.

    With ``timestamp`` and ``sign`` both given they are sent as query
    parameters. Transport failures are logged and re-raised; anything the
    server answers with is classified by :func:`classify_response`.
    """
    url = build_hook_url(webhook_id, base_url)
    params = {"timestamp": timestamp, "sign": sign} if timestamp and sign else None
    content = body.encode("utf-8")
    headers = {"Content-Type": "application/json; charset=utf-8"}

    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS, transport=transport) as client:
            resp = await client.post(url, params=params, content=content, headers=headers)
    except httpx.TransportError as exc:
        logger.error("Feishu request error: %r", exc)
        raise

    return classify_response(resp.status_code, resp.text)
