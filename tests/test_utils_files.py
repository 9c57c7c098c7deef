"""Tests for file name and library path helpers."""

from __future__ import annotations

from datetime import datetime

import pytest

from librarynotes.utils.files import (
    INVALID_NAME_CHARS,
    is_sub_path,
    join_path,
    name_of,
    parent_of,
    sanitize_file_name,
)

NOW = datetime(2024, 1, 1, 12, 0, 0)


class TestSanitizeFileName:
    """Test sanitize_file_name."""

    def test_removes_illegal_characters(self) -> None:
        """All characters that are illegal in file names are dropped."""
        assert sanitize_file_name('a*b"c\\d/e<f>g:h|i?j#k') == "abcdefghijk"

    def test_collapses_whitespace(self) -> None:
        assert sanitize_file_name("  many \t  spaces  ") == "many spaces"

    def test_truncates_to_default_length(self) -> None:
        assert len(sanitize_file_name("x" * 150)) == 100

    def test_trims_after_truncation(self) -> None:
        """Truncation may expose a trailing space, which is trimmed again."""
        assert sanitize_file_name("abcd efg", max_length=5) == "abcd"

    def test_keeps_arabic_text(self) -> None:
        assert sanitize_file_name("شرح: الأربعين؟") == "شرح الأربعين؟"

    def test_fallback_for_empty_result(self) -> None:
        """Names that sanitize to nothing get a timestamped fallback."""
        expected = f"file-{int(NOW.timestamp() * 1000)}"
        assert sanitize_file_name("???", now=NOW) == expected
        assert sanitize_file_name("", now=NOW) == expected
        assert sanitize_file_name(None, now=NOW) == expected

    @pytest.mark.parametrize(
        "name", ["<<>>", "a" * 300, ' x "quoted" y ', "#tag", "tab\tname", "ok"]
    )
    def test_result_is_always_safe(self, name: str) -> None:
        """The result never contains illegal characters, is non-empty and bounded."""
        result = sanitize_file_name(name, max_length=40, now=NOW)

        assert result
        assert len(result) <= 40
        assert not INVALID_NAME_CHARS.search(result)


class TestLibraryPaths:
    """Test the ``/``-separated path helpers."""

    def test_parent_of(self) -> None:
        assert parent_of("a/b/c.md") == "a/b"
        assert parent_of("c.md") == ""

    def test_name_of(self) -> None:
        assert name_of("a/b/c.md") == "c.md"
        assert name_of("c.md") == "c.md"

    def test_join_path_skips_empty_segments(self) -> None:
        assert join_path("a/", "", "/b", "c.md") == "a/b/c.md"

    def test_is_sub_path(self) -> None:
        assert is_sub_path("Videos", "Videos/x")
        assert not is_sub_path("Videos", "Videos")
        assert not is_sub_path("Videos", "VideosOther/x")
        assert not is_sub_path("", "x")
