"""Ruter GH → Feishu"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Optional, Sequence

import httpx
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import PlainTextResponse

from feishu_notify.config import Settings
from feishu_notify.errors import ConfigurationError
from feishu_notify.reporter import Reporter
from feishu_notify.services.github import build_run_context, pretty_label
from feishu_notify.services.notifier import require_webhook, run
from feishu_notify.utils import gh_verify

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wh", tags=["github"])


def get_settings() -> Settings:
    return Settings.from_env()


def get_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Default transport; overridden in tests."""
    return None


def _no_git(_args: Sequence[str]) -> str:
    return ""


@router.post("", response_class=PlainTextResponse)
async def github_webhook(
    request: Request,
    x_hub_signature_256: str | None = Header(None),
    x_github_event: str | None = Header(None),
    settings: Settings = Depends(get_settings),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_transport),
):
    """
    GitHub webhook endpoint.

    The payload signature is validated against `X-Hub-Signature-256` using
    `RELAY_SECRET`; the event is rendered into the default status card and
    forwarded to the configured Feishu bot. One POST per delivery, no retry.
    """
    body = await request.body()
    if not settings.relay_secret or not gh_verify(settings.relay_secret, body, x_hub_signature_256):
        raise HTTPException(401, "Invalid signature")

    event = x_github_event or "unknown"
    if event == "ping":
        return "pong"

    try:
        require_webhook(settings)
    except ConfigurationError as exc:
        raise HTTPException(503, str(exc)) from exc

    try:
        payload = json.loads(body or b"{}")
    except ValueError as exc:
        raise HTTPException(400, "Invalid JSON payload") from exc
    if not isinstance(payload, dict):
        raise HTTPException(400, "Invalid JSON payload")

    context = await build_run_context(
        payload,
        {},
        github_token=settings.github_token,
        api_base=settings.github_api_base,
        git=_no_git,
    )
    label = pretty_label(event)
    context = replace(context, title=f"{label} · {context.repo_full or context.repo_name or '-'}")

    reporter = Reporter(logger)
    result = await run(replace(settings, msg_text=""), context, reporter, transport=transport)
    if reporter.failed:
        raise HTTPException(502, reporter.failure_message or "Delivery failed")
    if result is None:
        return f"{event} event rendered (dry run)"
    return f"{event} event forwarded to Feishu ({result.status_code})"
