"""Markdown clean-up, mentions and links for Feishu card content."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

MAX_CONTENT_LENGTH = 10000

JSONDict = dict[str, Any]
LinkMap = dict[str, dict[str, str]]

PLATFORM_URL_KEYS = ("pc_url", "ios_url", "android_url")

# Sanitizer rules, applied in this order by clean_markdown_syntax().
_BLANK_RUN_RE = re.compile(r"\n(?:[ \t]*\n){2,}")
_TRAILING_WS_RE = re.compile(r"[ \t]+$", re.MULTILINE)
_UNORDERED_RE = re.compile(r"^[ \t]*[*+-][ \t]+", re.MULTILINE)
_ORDERED_RE = re.compile(r"^[ \t]*(\d+)\.[ \t]+", re.MULTILINE)
_FENCE_BLOCK_RE = re.compile(r"^```[^\n]*\n.*?^```[ \t]*$", re.MULTILINE | re.DOTALL)
_FENCE_OPENER_RE = re.compile(r"\A```[ \t]*([^\s{]*)[^\n]*")
_QUOTE_RE = re.compile(r"^[ \t]*>[ \t]*(?=\S)", re.MULTILINE)
_STRONG_UNDERSCORE_RE = re.compile(r"(?<!\w)__(?=\S)([^_\n]+?)(?<=\S)__(?!\w)")
_EM_UNDERSCORE_RE = re.compile(r"(?<!\w)_(?=\S)([^_\n]+?)(?<=\S)_(?!\w)")

_INLINE_CODE_RE = re.compile(r"`[^`\n]+`")
_BARE_URL_RE = re.compile(r"https?://[^\s<>()\[\]{}\x00]+")
_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
_PLACEHOLDER_RE = re.compile(r"\x00(\d+)\x00")

# A mention must not continue an address or a path, and must not be followed
# by another "@" or by something that reads as ".domain".
_MENTION_BEFORE = r"(?<![A-Za-z0-9_.%+/-])"
_MENTION_AFTER = r"(?![A-Za-z0-9_-])(?!@|[A-Za-z0-9.-]*\.[A-Za-z]{2,})"
_AT_ALL_RE = re.compile(_MENTION_BEFORE + r"@all" + _MENTION_AFTER)
_AT_USER_RE = re.compile(_MENTION_BEFORE + r"@([A-Za-z0-9_-]+)" + _MENTION_AFTER)

AT_ALL_TOKEN = "<at id=all></at>"

_UNSUPPORTED_TAG_RE = re.compile(r"<(script|style|iframe|form|input|button)[^>]*>", re.IGNORECASE)
_DASH_ROW_RE = re.compile(r"-{3,}")

_URL_TRAILING_PUNCTUATION = ".,;:!?'\""


@dataclass
class MarkdownOptions:
    """Processing switches plus the display attributes of a markdown element."""

    text_size: Optional[str] = None
    text_align: Optional[str] = None
    icon: Optional[JSONDict] = None
    href: Optional[LinkMap] = None
    enable_at_parsing: bool = True
    enable_emoji_parsing: bool = True
    enable_link_parsing: bool = True


@dataclass
class ValidationResult:
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def _protect(text: str, pattern: re.Pattern[str], transform: Callable[[str], str]) -> str:
    """Run ``transform`` with every ``pattern`` match masked out."""
    stash: list[str] = []

    def _stash(m: re.Match[str]) -> str:
        stash.append(m.group(0))
        return f"\x00{len(stash) - 1}\x00"

    masked = transform(pattern.sub(_stash, text))
    return _PLACEHOLDER_RE.sub(lambda m: stash[int(m.group(1))], masked)


def _split_fences(text: str) -> list[tuple[bool, str]]:
    """Split text into ``(is_fenced_block, chunk)`` pieces."""
    parts: list[tuple[bool, str]] = []
    pos = 0
    for m in _FENCE_BLOCK_RE.finditer(text):
        if m.start() > pos:
            parts.append((False, text[pos:m.start()]))
        parts.append((True, m.group(0)))
        pos = m.end()
    if pos < len(text):
        parts.append((False, text[pos:]))
    return parts


def normalize_newlines(text: str) -> str:
    # NUL is reserved for the masking placeholders above
    return (text or "").replace("\r\n", "\n").replace("\r", "\n").replace("\x00", "")


def collapse_blank_lines(text: str) -> str:
    return _BLANK_RUN_RE.sub("\n\n", text)


def strip_trailing_whitespace(text: str) -> str:
    return _TRAILING_WS_RE.sub("", text)


def normalize_unordered_lists(text: str) -> str:
    return _UNORDERED_RE.sub("- ", text)


def normalize_ordered_lists(text: str) -> str:
    return _ORDERED_RE.sub(r"\1. ", text)


def normalize_fence_opener(block: str) -> str:
    """Keep only the language tag on a fenced block's opening line."""
    return _FENCE_OPENER_RE.sub(r"```\1", block, count=1)


def normalize_block_quotes(text: str) -> str:
    return _QUOTE_RE.sub("> ", text)


def normalize_emphasis(text: str) -> str:
    """
    Re-emit emphasis in asterisk style.

    ``__strong__`` becomes ``**strong**`` and ``_em_`` becomes ``*em*``.
    Inline code and bare URLs are left alone, as are underscores inside
    words such as ``snake_case``.
    """

    def _rewrite(masked: str) -> str:
        # nested spans only match once the inner one is rewritten
        while True:
            rewritten = _STRONG_UNDERSCORE_RE.sub(r"**\1**", masked)
            rewritten = _EM_UNDERSCORE_RE.sub(r"*\1*", rewritten)
            if rewritten == masked:
                return rewritten
            masked = rewritten

    protected = re.compile(f"{_INLINE_CODE_RE.pattern}|{_BARE_URL_RE.pattern}")
    return _protect(text, protected, _rewrite)


def clean_markdown_syntax(text: str) -> str:
    """
    Normalize raw markdown into the canonical form used on cards.

    Line-level rules run over the whole text; list, quote and emphasis rules
    skip fenced code blocks, whose opening line only loses its info string
    beyond the language tag. The result is stable under a second call.
    """
    text = normalize_newlines(text)
    text = collapse_blank_lines(text)
    text = strip_trailing_whitespace(text)

    chunks: list[str] = []
    for fenced, chunk in _split_fences(text):
        if fenced:
            chunks.append(normalize_fence_opener(chunk))
            continue
        chunk = normalize_unordered_lists(chunk)
        chunk = normalize_ordered_lists(chunk)
        chunk = normalize_block_quotes(chunk)
        chunk = normalize_emphasis(chunk)
        chunks.append(chunk)
    return "".join(chunks)


def _code_pattern() -> re.Pattern[str]:
    return re.compile(
        f"{_FENCE_BLOCK_RE.pattern}|{_INLINE_CODE_RE.pattern}",
        re.MULTILINE | re.DOTALL,
    )


def process_at_mentions(text: str) -> str:
    """
    Rewrite ``@all`` and ``@name`` into Feishu ``<at>`` tokens.

    Email addresses (``user@example.com``), ``@x@y`` runs and ``/@path``
    segments are not mentions. Existing ``<at id=...></at>`` tokens carry no
    ``@`` and pass through, so the rewrite is idempotent. Code is skipped.
    """

    def _rewrite(masked: str) -> str:
        masked = _AT_ALL_RE.sub(AT_ALL_TOKEN, masked)
        return _AT_USER_RE.sub(r"<at id=\1></at>", masked)

    return _protect(text, _code_pattern(), _rewrite)


def process_emojis(text: str) -> str:
    """Shortcodes (``:tada:``) and Unicode emoji are rendered by Feishu as-is."""
    return text


def _link_spans(text: str) -> list[tuple[int, int]]:
    return [m.span() for m in _LINK_RE.finditer(text)]


def _inside(pos: int, spans: list[tuple[int, int]]) -> bool:
    return any(start <= pos < end for start, end in spans)


def wrap_bare_urls(text: str) -> str:
    spans = _link_spans(text)

    def _wrap(m: re.Match[str]) -> str:
        start = m.start()
        if _inside(start, spans) or (start > 0 and text[start - 1] in "(["):
            return m.group(0)
        raw = m.group(0)
        url = raw.rstrip(_URL_TRAILING_PUNCTUATION)
        if url.endswith("://"):
            return raw
        return f"[{url}]({url}){raw[len(url):]}"

    return _BARE_URL_RE.sub(_wrap, text)


def wrap_bare_emails(text: str) -> str:
    spans = _link_spans(text)

    def _wrap(m: re.Match[str]) -> str:
        start = m.start()
        if _inside(start, spans) or (start > 0 and text[start - 1] in "(["):
            return m.group(0)
        email = m.group(0)
        return f"[{email}](mailto:{email})"

    return _EMAIL_RE.sub(_wrap, text)


def process_links(text: str) -> str:
    """
    Wrap bare URLs and emails as markdown links.

    Existing ``[text](url)`` spans are never wrapped a second time; URLs
    are handled before emails so that addresses inside a URL stay put.
    """

    def _rewrite(masked: str) -> str:
        return wrap_bare_emails(wrap_bare_urls(masked))

    return _protect(text, _code_pattern(), _rewrite)


def extract_links_for_href(
    text: str,
    overrides: Optional[Mapping[str, Mapping[str, str]]] = None,
) -> LinkMap:
    """
    Collect ``[text](url)`` links in order of first occurrence.

    Returns
    -------
    dict
        ``{"link_0": {"url": ..., "pc_url": ..., "ios_url": ..., "android_url": ...}, ...}``.
        Platform URLs default to ``url``; ``overrides`` maps a url to the
        platform variants that should replace the defaults.
    """
    overrides = overrides or {}
    href: LinkMap = {}
    for index, m in enumerate(_LINK_RE.finditer(text)):
        url = m.group(2)
        entry = {"url": url}
        custom = overrides.get(url) or {}
        for key in PLATFORM_URL_KEYS:
            entry[key] = custom.get(key) or url
        href[f"link_{index}"] = entry
    return href


def validate_markdown(content: str) -> ValidationResult:
    """Check content against the card renderer's limits without changing it."""
    result = ValidationResult()

    if len(content) > MAX_CONTENT_LENGTH:
        result.errors.append(
            f"Content is {len(content)} characters, over the {MAX_CONTENT_LENGTH} character limit"
        )

    if _UNSUPPORTED_TAG_RE.search(content):
        result.warnings.append("Content contains unsupported HTML tags; they will be ignored")

    for m in _IMAGE_RE.finditer(content):
        image_url = m.group(2)
        if not image_url.startswith("http"):
            result.warnings.append(
                f'Image link "{image_url}" is not an absolute URL and may not render'
            )

    if "|" in content and _DASH_ROW_RE.search(content):
        result.warnings.append(
            "Table syntax detected; Feishu cards have limited table support, prefer lists"
        )

    return result


def process_markdown_content(text: str, options: Optional[MarkdownOptions] = None) -> str:
    """Sanitize, then rewrite mentions, emoji and links, in that order."""
    options = options or MarkdownOptions()
    processed = clean_markdown_syntax(text)
    if options.enable_at_parsing:
        processed = process_at_mentions(processed)
    if options.enable_emoji_parsing:
        processed = process_emojis(processed)
    if options.enable_link_parsing:
        processed = process_links(processed)
    return processed
