"""One notifier invocation: settings + context in, at most one POST out."""

from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from feishu_notify.config import Settings
from feishu_notify.errors import ConfigurationError
from feishu_notify.reporter import Reporter
from feishu_notify.services.cards import (
    build_i18n_card,
    build_interactive_payload,
    build_text_payload,
)
from feishu_notify.services.feishu import DeliveryResult, post_to_feishu, serialize_payload
from feishu_notify.services.github import RunContext, build_run_context, load_event_payload
from feishu_notify.services.markdown import (
    MarkdownOptions,
    clean_markdown_syntax,
    process_markdown_content,
    validate_markdown,
)
from feishu_notify.services.template import DEFAULT_TEMPLATE, render_template
from feishu_notify.utils import parse_webhook_id, signing_material

JSONDict = dict[str, Any]

MISSING_WEBHOOK = (
    "FEISHU_BOT_WEBHOOK is required for live send. "
    "For dry run set DRY_RUN=true or use --dry."
)

MESSAGE_OPTIONS = MarkdownOptions(
    text_size="normal",
    text_align="left",
    enable_at_parsing=True,
    enable_emoji_parsing=True,
    enable_link_parsing=True,
)


def require_webhook(settings: Settings) -> str:
    """Return the hook id, or raise when a live send has nowhere to go."""
    webhook_id = parse_webhook_id(settings.webhook)
    if not webhook_id and not settings.dry_run:
        raise ConfigurationError(MISSING_WEBHOOK)
    return webhook_id


def build_message_payload(text: str, context: RunContext, reporter: Reporter) -> Optional[JSONDict]:
    """
    Card (or plain text) for a free-text message.

    Validation warnings are reported and ignored; validation errors are
    reported and yield ``None``.
    """
    content = process_markdown_content(text, MESSAGE_OPTIONS)
    validation = validate_markdown(content)
    for warning in validation.warnings:
        reporter.warning(warning)
    if not validation.valid:
        for error in validation.errors:
            reporter.error(error)
        return None
    card = build_i18n_card(context.title, content, MESSAGE_OPTIONS, processed=True)
    return build_interactive_payload(card)


def build_payload(settings: Settings, context: RunContext, reporter: Reporter) -> Optional[JSONDict]:
    if settings.msg_text and settings.msg_type == "text":
        return build_text_payload(clean_markdown_syntax(settings.msg_text))
    if settings.msg_text:
        return build_message_payload(settings.msg_text, context, reporter)
    card = render_template(DEFAULT_TEMPLATE, context.template_values())
    return build_interactive_payload(card)


async def deliver(
    settings: Settings,
    payload: JSONDict,
    reporter: Reporter,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timestamp: Optional[str] = None,
) -> Optional[DeliveryResult]:
    """Serialize, sign when a key is set, and POST once (or log, on a dry run)."""
    webhook_id = require_webhook(settings)
    body = serialize_payload(payload)
    if settings.dry_run:
        reporter.info("DRY RUN: final card JSON:")
        reporter.info(body)
        return None

    tm, sign = signing_material(settings.sign_key, timestamp)
    result = await post_to_feishu(
        webhook_id,
        body,
        tm,
        sign,
        base_url=settings.feishu_api_base,
        transport=transport,
    )
    reporter.info(f"Sent {payload.get('msg_type')} message to Feishu, HTTP status: {result.status_code}")
    return result


async def run(
    settings: Settings,
    context: RunContext,
    reporter: Reporter,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timestamp: Optional[str] = None,
) -> Optional[DeliveryResult]:
    """
    Build the payload for ``context`` and deliver it.

    Failures are reported through ``reporter.fail`` rather than raised:
    a missing webhook before anything else happens, rejected content before
    sending, and anything raised after that as ``Action failed: ...``.
    """
    try:
        require_webhook(settings)
        payload = build_payload(settings, context, reporter)
        if payload is None:
            reporter.fail("Markdown content validation failed")
            return None
        return await deliver(settings, payload, reporter, transport=transport, timestamp=timestamp)
    except ConfigurationError as exc:
        reporter.fail(str(exc))
    except Exception as exc:
        reporter.fail(f"Action failed: {exc!r}")
    return None


async def run_from_env(
    settings: Settings,
    env: Mapping[str, str],
    reporter: Reporter,
    *,
    event_path: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[DeliveryResult]:
    """Resolve the run context from the Actions environment, then :func:`run`."""
    try:
        require_webhook(settings)
    except ConfigurationError as exc:
        # before the commit-message lookup, which may hit the network
        reporter.fail(str(exc))
        return None
    payload = load_event_payload(event_path or env.get("GITHUB_EVENT_PATH"))
    reporter.debug(serialize_payload(payload))
    context = await build_run_context(
        payload,
        env,
        github_token=settings.github_token,
        api_base=settings.github_api_base,
    )
    return await run(settings, context, reporter, transport=transport)
