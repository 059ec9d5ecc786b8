"""Whole-value template substitution and the default status card."""

from __future__ import annotations

from typing import Any, Mapping


def render_template(template: Any, values: Mapping[str, str]) -> Any:
    """
    Return a copy of ``template`` with placeholder strings replaced.

    A string node is replaced only when it is exactly a key of ``values``;
    ``"Hello branch_raw"`` is left as is. Lists and dicts are rebuilt
    recursively (dict key order is kept), other scalars are returned
    unchanged, and ``template`` itself is never modified.
    """
    if isinstance(template, str):
        return values[template] if template in values else template
    if isinstance(template, list):
        return [render_template(item, values) for item in template]
    if isinstance(template, Mapping):
        return {key: render_template(value, values) for key, value in template.items()}
    return template


def _markdown(content: str, **extra: Any) -> dict[str, Any]:
    return {"tag": "markdown", "content": content, **extra}


def _plain_div(content: str) -> dict[str, Any]:
    return {"tag": "div", "text": {"content": content, "tag": "plain_text"}}


def _linked_markdown(content: str, link_key: str, url_placeholder: str, **extra: Any) -> dict[str, Any]:
    href = {link_key: {"ios_url": "", "pc_url": "", "android_url": "", "url": url_placeholder}}
    return _markdown(content, **extra, href=href)


def _column(width: str, *elements: dict[str, Any]) -> dict[str, Any]:
    return {
        "tag": "column",
        "width": width,
        "weight": 1,
        "vertical_align": "center",
        "elements": list(elements),
    }


def _column_set(*columns: dict[str, Any]) -> dict[str, Any]:
    return {
        "tag": "column_set",
        "flex_mode": "none",
        "background_style": "default",
        "columns": list(columns),
    }


def _status_elements(labels: Mapping[str, str]) -> list[dict[str, Any]]:
    return [
        _column_set(
            _column("auto", _markdown(labels["branch"])),
            _column("weighted", _plain_div("branch_raw")),
            _column("auto", _markdown(labels["commit"], text_align="left")),
            _column(
                "weighted",
                _linked_markdown("commit_raw", "commit_url", "commit_url_value", text_align="left"),
            ),
        ),
        _column_set(
            _column("auto", _markdown(labels["user"])),
            _column("weighted", _linked_markdown("user_raw", "user_url", "user_url_value")),
            _column("auto", _markdown(labels["status"])),
            _column("weighted", _plain_div("status_raw")),
        ),
        _markdown("msg_raw"),
        {"tag": "hr"},
        {
            "tag": "action",
            "actions": [
                {
                    "tag": "button",
                    "text": {"tag": "plain_text", "content": labels["button"]},
                    "type": "primary",
                    "multi_url": {
                        "url": "detail_url_value",
                        "pc_url": "",
                        "android_url": "",
                        "ios_url": "",
                    },
                }
            ],
        },
    ]


STATUS_LABELS: dict[str, dict[str, str]] = {
    "zh_cn": {
        "branch": "**分支：**",
        "commit": "**ID：**",
        "user": "**用户：**",
        "status": "**状态：**",
        "button": "查看详情",
    },
    "en_us": {
        "branch": "**Branch：**",
        "commit": "**Commit：**",
        "user": "**User：**",
        "status": "**Status：**",
        "button": "Get info",
    },
}

DEFAULT_TEMPLATE: dict[str, Any] = {
    "i18n_elements": {
        locale: _status_elements(labels) for locale, labels in STATUS_LABELS.items()
    },
    "header": {
        "template": "blue",
        "title": {
            "tag": "plain_text",
            "i18n": {locale: "title_raw" for locale in STATUS_LABELS},
        },
    },
}
