"""Tests for markdown clean-up, mentions, links and validation."""

from __future__ import annotations

import pytest

from feishu_notify.services.markdown import (
    AT_ALL_TOKEN,
    MAX_CONTENT_LENGTH,
    MarkdownOptions,
    clean_markdown_syntax,
    extract_links_for_href,
    process_at_mentions,
    process_emojis,
    process_links,
    process_markdown_content,
    validate_markdown,
)


class TestCleanMarkdownSyntax:
    def test_line_endings(self) -> None:
        assert clean_markdown_syntax("a\r\nb\rc") == "a\nb\nc"

    def test_blank_line_runs_collapse(self) -> None:
        assert clean_markdown_syntax("a\n\n\n\nb") == "a\n\nb"

    def test_whitespace_only_lines_count_as_blank(self) -> None:
        assert clean_markdown_syntax("a\n  \n\t\n\nb") == "a\n\nb"

    def test_single_blank_line_kept(self) -> None:
        assert clean_markdown_syntax("a\n\nb") == "a\n\nb"

    def test_trailing_whitespace(self) -> None:
        assert clean_markdown_syntax("line  \nnext\t") == "line\nnext"

    def test_unordered_markers(self) -> None:
        assert clean_markdown_syntax("* one\n+ two\n-   three") == "- one\n- two\n- three"

    def test_ordered_markers(self) -> None:
        assert clean_markdown_syntax("1.  first\n2.\tsecond") == "1. first\n2. second"

    def test_decimal_is_not_a_list(self) -> None:
        assert clean_markdown_syntax("1.5 apples") == "1.5 apples"

    def test_fence_opener_keeps_language_only(self) -> None:
        src = "```python  {linenos}\nprint(1)\n```"
        assert clean_markdown_syntax(src) == "```python\nprint(1)\n```"

    @pytest.mark.parametrize("lang", ["c++", "objective-c", "c#", "python"])
    def test_fence_opener_keeps_whole_language_tag(self, lang: str) -> None:
        src = f"```{lang} title=x\nint x;\n```"
        assert clean_markdown_syntax(src) == f"```{lang}\nint x;\n```"

    def test_nested_emphasis(self) -> None:
        assert clean_markdown_syntax("__bold with _em_ inside__") == "**bold with *em* inside**"
        assert clean_markdown_syntax("_em with __bold__ inside_") == "*em with **bold** inside*"

    def test_fenced_block_body_untouched(self) -> None:
        src = "```\n* not a list\n__dunder__\n> not a quote\n```"
        assert clean_markdown_syntax(src) == src

    def test_block_quotes(self) -> None:
        assert clean_markdown_syntax(">quote\n   >  spaced") == "> quote\n> spaced"

    def test_strong_and_emphasis(self) -> None:
        assert clean_markdown_syntax("__bold__ and _em_") == "**bold** and *em*"

    def test_canonical_spans_pass_through(self) -> None:
        src = "~~strike~~ **bold** *em* `code`"
        assert clean_markdown_syntax(src) == src

    def test_snake_case_untouched(self) -> None:
        assert clean_markdown_syntax("set snake_case_name here") == "set snake_case_name here"

    def test_inline_code_and_urls_untouched(self) -> None:
        src = "call `__init__` or open https://x.test/_a_b_"
        assert clean_markdown_syntax(src) == src

    @pytest.mark.parametrize(
        "text",
        [
            "Title  \r\n\r\n\r\n\r\n* item one\n+ item two\n1.   step\n>  quoted\n"
            "```js  extra\nconst a_b = 1;  \n```\n__bold__ _em_ `co_de`\n",
            "a\n \n \nb",
            ">\n>> nested\n* * *\n-\n",
            "_ not emphasis _ and __x__y",
            "__bold with _em_ inside__",
            "_em with __bold__ inside_",
            "')>__>_~~_](>```__+",
            "```c++\nint x;\n```",
            "",
        ],
    )
    def test_idempotent(self, text: str) -> None:
        once = clean_markdown_syntax(text)
        assert clean_markdown_syntax(once) == once


class TestAtMentions:
    def test_at_all(self) -> None:
        assert process_at_mentions("Hello @all, see") == f"Hello {AT_ALL_TOKEN}, see"

    def test_user(self) -> None:
        assert process_at_mentions("ping @bob_smith-2 now") == "ping <at id=bob_smith-2></at> now"

    def test_sentence_end(self) -> None:
        assert process_at_mentions("Thanks @bob.") == "Thanks <at id=bob></at>."

    def test_after_cjk_text(self) -> None:
        assert process_at_mentions("你好@bob") == "你好<at id=bob></at>"

    def test_email_is_not_a_mention(self) -> None:
        assert process_at_mentions("mail user@example.com") == "mail user@example.com"

    def test_domain_like_handle_is_not_a_mention(self) -> None:
        assert process_at_mentions("@example.com") == "@example.com"

    def test_url_path_is_not_a_mention(self) -> None:
        src = "https://medium.com/@bob/post"
        assert process_at_mentions(src) == src

    def test_code_is_skipped(self) -> None:
        assert process_at_mentions("see `@bob` here") == "see `@bob` here"

    def test_existing_token_unchanged(self) -> None:
        once = process_at_mentions("hi @bob and @all")
        assert process_at_mentions(once) == once
        assert once == f"hi <at id=bob></at> and {AT_ALL_TOKEN}"

    def test_user_at_domain_overlap(self) -> None:
        # no mention for either "@"; the address itself becomes a mailto link
        assert process_at_mentions("@user@domain.com") == "@user@domain.com"
        assert (
            process_markdown_content("@user@domain.com")
            == "@[user@domain.com](mailto:user@domain.com)"
        )


def test_emojis_pass_through() -> None:
    src = "done :tada: 😀 ✅"
    assert process_emojis(src) == src


class TestProcessLinks:
    def test_bare_url(self) -> None:
        assert process_links("see https://x.test") == "see [https://x.test](https://x.test)"

    def test_trailing_punctuation_stays_outside(self) -> None:
        assert process_links("Visit https://x.test.") == "Visit [https://x.test](https://x.test)."

    def test_existing_link_not_rewrapped(self) -> None:
        src = "[docs](https://x.test/docs)"
        assert process_links(src) == src

    def test_same_url_outside_existing_link(self) -> None:
        src = "[docs](https://x.test/docs) and https://x.test/docs"
        assert process_links(src) == (
            "[docs](https://x.test/docs) and [https://x.test/docs](https://x.test/docs)"
        )

    def test_email(self) -> None:
        assert process_links("mail dev@example.com") == (
            "mail [dev@example.com](mailto:dev@example.com)"
        )

    def test_email_inside_url_left_alone(self) -> None:
        assert process_links("https://x.test/?u=a@b.com") == (
            "[https://x.test/?u=a@b.com](https://x.test/?u=a@b.com)"
        )

    def test_code_is_skipped(self) -> None:
        assert process_links("`https://x.test`") == "`https://x.test`"

    def test_idempotent(self) -> None:
        once = process_links("a https://x.test b dev@example.com [c](https://c.test)")
        assert process_links(once) == once


class TestExtractLinks:
    def test_order_and_keys(self) -> None:
        text = "[a](https://a.test) then [b](https://b.test) and [a2](https://a.test)"
        href = extract_links_for_href(text)
        assert list(href) == ["link_0", "link_1", "link_2"]
        assert [entry["url"] for entry in href.values()] == [
            "https://a.test",
            "https://b.test",
            "https://a.test",
        ]

    def test_platform_urls_default_to_url(self) -> None:
        href = extract_links_for_href("[a](https://a.test)")
        assert href["link_0"] == {
            "url": "https://a.test",
            "pc_url": "https://a.test",
            "ios_url": "https://a.test",
            "android_url": "https://a.test",
        }

    def test_overrides(self) -> None:
        href = extract_links_for_href(
            "[b](https://b.test)",
            overrides={"https://b.test": {"ios_url": "app://b"}},
        )
        assert href["link_0"]["ios_url"] == "app://b"
        assert href["link_0"]["pc_url"] == "https://b.test"

    def test_no_links(self) -> None:
        assert extract_links_for_href("nothing here") == {}


class TestValidateMarkdown:
    def test_length_boundary(self) -> None:
        assert validate_markdown("x" * MAX_CONTENT_LENGTH).valid

    def test_too_long(self) -> None:
        result = validate_markdown("x" * (MAX_CONTENT_LENGTH + 1))
        assert not result.valid
        assert len(result.errors) == 1

    def test_unsupported_tags_warn(self) -> None:
        result = validate_markdown("<SCRIPT>alert(1)</SCRIPT> hi")
        assert result.valid
        assert any("HTML" in w for w in result.warnings)

    def test_relative_image_warns(self) -> None:
        result = validate_markdown("![img](/local.png) ![ok](https://x.test/img.png)")
        assert len(result.warnings) == 1
        assert "/local.png" in result.warnings[0]

    def test_table_warns(self) -> None:
        result = validate_markdown("| a | b |\n| --- | --- |")
        assert any("Table" in w for w in result.warnings)

    def test_clean_content(self) -> None:
        result = validate_markdown("**all good** - [x](https://x.test)")
        assert result.valid
        assert result.warnings == []


class TestProcessMarkdownContent:
    def test_at_all_and_bare_link(self) -> None:
        out = process_markdown_content("Hello @all, see https://x.test")
        assert AT_ALL_TOKEN in out
        assert "[https://x.test](https://x.test)" in out

    def test_switches(self) -> None:
        options = MarkdownOptions(enable_at_parsing=False, enable_link_parsing=False)
        assert process_markdown_content("@bob https://x.test", options) == "@bob https://x.test"
