"""Tests for the metadata block codec."""

from __future__ import annotations

import pytest

from librarynotes.metadata.codec import (
    KEY_LINE_PATTERN,
    ParseState,
    decode,
    encode_field_update,
    encode_fields,
    render_field,
    scan_fields,
    split_document,
)

DOCUMENT = (
    "---\n"
    "title: Hello\n"
    "status: غير مقروء\n"
    "tags:\n"
    "  - a\n"
    "  - b\n"
    "pages: 10\n"
    "---\n"
    "\n"
    "Body text\n"
    "---\n"
    "more: body\n"
)


class TestDecode:
    """Test reading metadata blocks."""

    def test_decode_fields_and_body(self) -> None:
        """Scalars, lists and numbers are read; the body follows the block."""
        block, body = decode(DOCUMENT)

        assert block == {
            "title": "Hello",
            "status": "غير مقروء",
            "tags": ["a", "b"],
            "pages": 10,
        }
        assert list(block) == ["title", "status", "tags", "pages"]
        assert body == "\nBody text\n---\nmore: body\n"

    def test_no_opening_delimiter(self) -> None:
        assert decode("title: x\n---\n") is None

    def test_delimiter_not_on_first_line(self) -> None:
        assert decode("\n---\na: 1\n---\n") is None

    def test_unclosed_block(self) -> None:
        assert decode("---\na: 1\nbody\n") is None

    def test_split_document_without_block(self) -> None:
        """A document without a block yields an empty mapping and the whole text."""
        assert split_document("just text\n") == ({}, "just text\n")

    def test_inline_list(self) -> None:
        block, _ = decode("---\ntags: [a, b]\n---\n")
        assert block["tags"] == ["a", "b"]

    def test_empty_brackets_without_items(self) -> None:
        block, _ = decode("---\ntags: []\nnext: x\n---\n")
        assert block["tags"] == []

    def test_blank_lines_inside_list(self) -> None:
        """Blank lines between list items are tolerated."""
        block, _ = decode("---\ntags:\n  - a\n\n  - b\nx: 1\n---\n")
        assert block == {"tags": ["a", "b"], "x": 1}

    def test_empty_value_without_items(self) -> None:
        block, _ = decode("---\nempty:\nnext: x\n---\n")
        assert block == {"empty": "", "next": "x"}

    def test_scalar_continuation(self) -> None:
        """Lines that are not keys continue the previous scalar."""
        block, _ = decode("---\ndesc: first\n  second\n\nnext: x\n---\n")
        assert block["desc"] == "first\n  second"
        assert block["next"] == "x"

    def test_quoted_value_with_colon(self) -> None:
        block, _ = decode('---\nurl: "https://example.com/a"\n---\n')
        assert block["url"] == "https://example.com/a"

    def test_unquoted_value_with_colon(self) -> None:
        block, _ = decode("---\nurl: https://example.com/a\n---\n")
        assert block["url"] == "https://example.com/a"

    def test_duplicate_keys_last_wins(self) -> None:
        """A repeated key keeps its first position but takes the last value."""
        block, _ = decode("---\na: 1\nb: 2\na: 3\n---\n")
        assert block == {"a": 3, "b": 2}
        assert list(block) == ["a", "b"]

    def test_indented_key_is_not_a_field(self) -> None:
        block, _ = decode("---\na: x\n  b: y\n---\n")
        assert list(block) == ["a"]

    def test_value_directly_after_colon(self) -> None:
        """A key written without a space after the colon is still its own field."""
        block, body = decode("---\ntitle: A\npages:10\n---\nbody\n")
        assert block == {"title": "A", "pages": 10}
        assert body == "body\n"

    def test_crlf_and_bom(self) -> None:
        block, body = decode("\ufeff---\r\na: 1\r\n---\r\nBody\r\n")
        assert block == {"a": 1}
        assert body == "Body\r\n"

    def test_numeric_strings_coerce(self) -> None:
        """Sharp edge: a value written as 007 reads back as the integer 7."""
        text = encode_field_update("---\n---\n", "code", "007")
        block, _ = decode(text)
        assert block["code"] == 7


class TestScanFields:
    """Test the block state machine directly."""

    def test_spans_cover_owned_lines(self) -> None:
        lines = ["a: 1", "tags:", "  - x", "", "  - y", "", "b: 2"]
        spans = scan_fields(lines)

        assert [(span.key, span.start, span.end) for span in spans] == [
            ("a", 0, 1),
            ("tags", 1, 5),
            ("b", 6, 7),
        ]

    def test_stray_lines_before_first_key(self) -> None:
        spans = scan_fields(["  - orphan", "a: 1"])
        assert [span.key for span in spans] == ["a"]

    def test_key_pattern(self) -> None:
        assert KEY_LINE_PATTERN.match("key: value")
        assert KEY_LINE_PATTERN.match("key:")
        assert not KEY_LINE_PATTERN.match("- item")
        assert not KEY_LINE_PATTERN.match("# comment: x")
        assert KEY_LINE_PATTERN.match("time:10").group("value") == "10"

    def test_states(self) -> None:
        assert {state.name for state in ParseState} == {
            "EXPECT_KEY",
            "IN_SCALAR_CONTINUATION",
            "IN_LIST",
        }


class TestRenderField:
    """Test serialization of a single field."""

    def test_list_key(self) -> None:
        assert render_field("tags", ["a", "b"], ["tags"]) == ["tags:", "  - a", "  - b"]

    def test_empty_list_key(self) -> None:
        assert render_field("tags", [], ["tags"]) == ["tags: []"]

    def test_other_list_inline(self) -> None:
        assert render_field("authors", ["a", "b"]) == ["authors: [a, b]"]

    def test_empty_scalar(self) -> None:
        assert render_field("date", "") == ["date:"]


class TestEncodeFieldUpdate:
    """Test surgical updates of a single field."""

    def test_status_update_keeps_other_fields(self) -> None:
        """Updating one field leaves the other values and their types intact."""
        text = "---\nstatus: غير مقروء\npages: 10\n---\nBody\n"

        updated = encode_field_update(text, "status", "مقروء")

        assert updated == "---\nstatus: مقروء\npages: 10\n---\nBody\n"
        block, _ = decode(updated)
        assert block == {"status": "مقروء", "pages": 10}

    def test_body_and_other_lines_untouched(self) -> None:
        """Only the lines owned by the key change."""
        updated = encode_field_update(DOCUMENT, "pages", 12)
        assert updated == DOCUMENT.replace("pages: 10", "pages: 12")

    def test_idempotent(self) -> None:
        once = encode_field_update(DOCUMENT, "tags", ["x", "y"], ["tags"])
        twice = encode_field_update(once, "tags", ["x", "y"], ["tags"])
        assert once == twice

    def test_replace_list_block(self) -> None:
        updated = encode_field_update(DOCUMENT, "tags", ["x"], ["tags"])
        assert "tags:\n  - x\npages: 10\n" in updated
        assert "  - a" not in updated
        assert decode(updated)[0]["tags"] == ["x"]

    def test_list_becomes_scalar(self) -> None:
        updated = encode_field_update(DOCUMENT, "tags", "none")
        block, _ = decode(updated)
        assert block["tags"] == "none"
        assert block["pages"] == 10

    def test_append_missing_key(self) -> None:
        """A new key is appended at the end of the block."""
        updated = encode_field_update(DOCUMENT, "rating", 5)
        assert "pages: 10\nrating: 5\n---\n\nBody text" in updated

    def test_synthesizes_block(self) -> None:
        """A document without a block gets one prepended."""
        assert encode_field_update("Just body\n", "title", "T") == "---\ntitle: T\n---\n\nJust body\n"

    def test_preserves_crlf(self) -> None:
        text = "---\r\ntitle: X\r\nother: 1\r\n---\r\nBody\r\nline2\r\n"
        updated = encode_field_update(text, "title", "Y")
        assert updated == "---\r\ntitle: Y\r\nother: 1\r\n---\r\nBody\r\nline2\r\n"

    def test_preserves_bom(self) -> None:
        updated = encode_field_update("\ufeff---\na: 1\n---\nB", "a", 2)
        assert updated == "\ufeff---\na: 2\n---\nB"

    def test_removes_duplicates(self) -> None:
        updated = encode_field_update("---\na: 1\nb: 2\na: 3\n---\n", "a", 9)
        assert updated == "---\na: 9\nb: 2\n---\n"

    def test_replaces_continuation_lines(self) -> None:
        text = "---\ndesc: first\n  second\nnext: x\n---\n"
        updated = encode_field_update(text, "desc", "only")
        assert updated == "---\ndesc: only\nnext: x\n---\n"

    def test_keeps_blank_line_after_field(self) -> None:
        text = "---\na: 1\n\nb: 2\n---\n"
        assert encode_field_update(text, "a", 5) == "---\na: 5\n\nb: 2\n---\n"

    def test_quotes_round_trip(self) -> None:
        updated = encode_field_update(DOCUMENT, "note", 'a: "b"')
        assert decode(updated)[0]["note"] == 'a: "b"'

    def test_encode_fields_in_order(self) -> None:
        updated = encode_fields("Body\n", {"a": 1, "b": ["x"]}, ["b"])
        assert updated == "---\na: 1\nb:\n  - x\n---\n\nBody\n"

    def test_update_value_written_without_space(self) -> None:
        """Updating a ``key:value`` field replaces it instead of adding a second line."""
        updated = encode_field_update("---\ntitle: A\npages:10\n---\nbody\n", "pages", 12)
        assert updated == "---\ntitle: A\npages: 12\n---\nbody\n"


class TestTypedRoundTrip:
    """Values written by the encoder read back with the same type."""

    @pytest.mark.parametrize(
        "value",
        [
            True,
            False,
            3,
            2.5,
            "plain words",
            'needs: "quotes" #here',
            ["third", "first", "second"],
        ],
    )
    def test_round_trip(self, value: object) -> None:
        updated = encode_field_update(DOCUMENT, "extra", value, ["extra"])

        block, body = decode(updated)

        assert block["extra"] == value
        assert type(block["extra"]) is type(value)
        assert block["pages"] == 10
        assert body == "\nBody text\n---\nmore: body\n"

    @pytest.mark.parametrize("value", [True, 3, 2.5, "a: b", ["x", "y", "z"]])
    def test_scalar_and_list_updates_are_idempotent(self, value: object) -> None:
        once = encode_field_update(DOCUMENT, "status", value, ["status"])
        twice = encode_field_update(once, "status", value, ["status"])
        assert once == twice

    def test_inline_list_round_trip(self) -> None:
        """A list under a key that is not a list key keeps its order inline."""
        updated = encode_field_update(DOCUMENT, "authors", ["b", "a"])
        assert "authors: [b, a]\n" in updated
        assert decode(updated)[0]["authors"] == ["b", "a"]
