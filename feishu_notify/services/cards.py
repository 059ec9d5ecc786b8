"""Feishu interactive card builders."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional

from feishu_notify.services.markdown import (
    JSONDict,
    MarkdownOptions,
    extract_links_for_href,
    process_markdown_content,
)

DEFAULT_HEADER_THEME = "blue"
LOCALES = ("zh_cn", "en_us")


def _icon(token: str, color: str) -> JSONDict:
    return {"tag": "standard_icon", "token": token, "color": color}


FEISHU_ICONS: dict[str, JSONDict] = {
    # status
    "SUCCESS": _icon("success_outlined", "green"),
    "ERROR": _icon("error_outlined", "red"),
    "WARNING": _icon("warning_outlined", "orange"),
    "INFO": _icon("info_outlined", "blue"),
    # features
    "CHAT": _icon("chat_outlined", "blue"),
    "NOTIFICATION": _icon("notification_outlined", "orange"),
    "SETTINGS": _icon("settings_outlined", "gray"),
    "LINK": _icon("link_outlined", "blue"),
    # development
    "CODE": _icon("code_outlined", "purple"),
    "GIT": _icon("git_outlined", "orange"),
    "BUILD": _icon("build_outlined", "green"),
    "DEPLOY": _icon("deploy_outlined", "blue"),
    # documents
    "DOC": _icon("doc_outlined", "blue"),
    "FOLDER": _icon("folder_outlined", "yellow"),
    "FILE": _icon("file_outlined", "gray"),
}

DEFAULT_CARD_ICON = _icon("chat-forbidden_outlined", "orange")


def build_markdown_element(
    md_text: str,
    options: Optional[MarkdownOptions] = None,
    *,
    processed: bool = False,
) -> JSONDict:
    """
    Build a ``markdown`` card element.

    ``md_text`` goes through :func:`process_markdown_content` unless
    ``processed`` says the caller already did that (for instance to validate
    the content first). Display attributes are copied from ``options`` when
    set. An explicit ``options.href`` wins; otherwise the links found in the
    final content are attached, if there are any.
    """
    options = options or MarkdownOptions()
    content = md_text if processed else process_markdown_content(md_text, options)

    element: JSONDict = {"tag": "markdown", "content": content}
    if options.text_size:
        element["text_size"] = options.text_size
    if options.text_align:
        element["text_align"] = options.text_align
    if options.icon:
        element["icon"] = dict(options.icon)

    if options.href is not None:
        element["href"] = options.href
    else:
        href = extract_links_for_href(content)
        if href:
            element["href"] = href
    return element


def build_header(title: str, theme: str = DEFAULT_HEADER_THEME) -> JSONDict:
    return {
        "template": theme,
        "title": {"tag": "plain_text", "content": title},
    }


def _with_defaults(options: Optional[MarkdownOptions]) -> MarkdownOptions:
    defaults = MarkdownOptions(text_size="normal", text_align="left", icon=DEFAULT_CARD_ICON)
    if options is None:
        return defaults
    return replace(
        options,
        text_size=options.text_size or defaults.text_size,
        text_align=options.text_align or defaults.text_align,
        icon=options.icon or defaults.icon,
    )


def build_feishu_markdown_card(
    title: str,
    md_text: str,
    options: Optional[MarkdownOptions] = None,
    *,
    theme: str = DEFAULT_HEADER_THEME,
) -> JSONDict:
    """Single-locale card: header plus one markdown element."""
    element = build_markdown_element(md_text, _with_defaults(options))
    return build_interactive_payload(
        {"header": build_header(title, theme), "elements": [element]}
    )


def build_i18n_elements(
    md_text: str,
    options: Optional[MarkdownOptions] = None,
    *,
    processed: bool = False,
) -> dict[str, list[JSONDict]]:
    """Same markdown element for every locale in :data:`LOCALES`."""
    options = options or MarkdownOptions()
    content = md_text if processed else process_markdown_content(md_text, options)
    return {
        locale: [build_markdown_element(content, options, processed=True)]
        for locale in LOCALES
    }


def build_i18n_card(
    title: Optional[str],
    md_text: str,
    options: Optional[MarkdownOptions] = None,
    *,
    processed: bool = False,
    theme: str = DEFAULT_HEADER_THEME,
) -> JSONDict:
    card: JSONDict = {}
    if title:
        card["header"] = build_header(title, theme)
    card["i18n_elements"] = build_i18n_elements(md_text, options, processed=processed)
    return card


def build_i18n_feishu_markdown_card(
    title: str,
    md_text: str,
    options: Optional[MarkdownOptions] = None,
) -> JSONDict:
    return build_interactive_payload(build_i18n_card(title, md_text, options))


def _status_card(icon_name: str, title: str, message: str, options: Optional[MarkdownOptions]) -> JSONDict:
    options = options or MarkdownOptions()
    if not options.icon:
        options = replace(options, icon=FEISHU_ICONS[icon_name])
    return build_feishu_markdown_card(title, message, options)


def create_success_card(title: str, message: str, options: Optional[MarkdownOptions] = None) -> JSONDict:
    return _status_card("SUCCESS", title, message, options)


def create_error_card(title: str, message: str, options: Optional[MarkdownOptions] = None) -> JSONDict:
    return _status_card("ERROR", title, message, options)


def create_warning_card(title: str, message: str, options: Optional[MarkdownOptions] = None) -> JSONDict:
    return _status_card("WARNING", title, message, options)


def create_info_card(title: str, message: str, options: Optional[MarkdownOptions] = None) -> JSONDict:
    return _status_card("INFO", title, message, options)


def build_interactive_payload(card: Any) -> JSONDict:
    return {"msg_type": "interactive", "card": card}


def build_text_payload(text: str) -> JSONDict:
    return {"msg_type": "text", "content": {"text": text}}
