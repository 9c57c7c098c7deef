"""Tests for core data models."""

from __future__ import annotations

import pytest

from librarynotes.models import (
    BaseRecord,
    BookRecord,
    BulkResult,
    FolderData,
    OperationResult,
    PlaylistRecord,
    ScanStats,
    VideoRecord,
)


def make_video(**overrides: object) -> VideoRecord:
    values = dict(
        title="Lesson",
        path="V/Lesson.md",
        type="مقطع",
        status="لم يشاهد",
        date_added="2024-01-01",
        presenter="Ahmad",
    )
    values.update(overrides)
    return VideoRecord(**values)


class TestRecords:
    """Test the record variants."""

    def test_video_party_is_presenter(self) -> None:
        record = make_video()
        assert record.kind == "video"
        assert record.party == "Ahmad"
        assert record.categories == []

    def test_book_party_is_author(self) -> None:
        record = BookRecord(
            title="B",
            path="Books/B.md",
            type="كتاب",
            status="",
            date_added="",
            author="Nawawi",
        )
        assert record.kind == "book"
        assert record.party == "Nawawi"

    def test_playlist_kind(self) -> None:
        record = PlaylistRecord(
            title="P", path="V/P.md", type="سلسلة", status="", date_added="", presenter="X"
        )
        assert record.kind == "playlist"
        assert record.item_count == 0

    def test_as_dict_includes_party(self) -> None:
        data = make_video(tags=["a"]).as_dict()
        assert data["party"] == "Ahmad"
        assert data["tags"] == ["a"]
        assert data["duration"] == "00:00:00"

    def test_default_lists_not_shared(self) -> None:
        first = make_video()
        first.tags.append("x")
        assert make_video().tags == []

    def test_base_record_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            BaseRecord(title="T", path="p.md", kind="video", type="", status="", date_added="")


class TestFolderData:
    """Test the placeholder projection."""

    def test_as_fields(self) -> None:
        data = FolderData(type="T", party="P", date="2024-01-01", category="C")
        assert data.as_fields() == {
            "type": "T",
            "party": "P",
            "presenter": "P",
            "author": "P",
            "date": "2024-01-01",
            "category": "C",
        }

    def test_empty_values_omitted(self) -> None:
        assert FolderData().as_fields() == {}


class TestCounters:
    """Test scan and bulk counters."""

    def test_scan_stats(self) -> None:
        stats = ScanStats()
        stats.increment("indexed", "a.md")
        stats.increment("skipped", "b.md")
        stats.increment("failed", "c.md", "boom")

        assert (stats.scanned, stats.indexed, stats.skipped, stats.failed) == (3, 1, 1, 1)
        assert stats.messages == ["c.md: boom"]

    def test_bulk_result(self) -> None:
        result = BulkResult()
        result.record(OperationResult(ok=True, path="a"), "a")
        result.record(OperationResult(ok=False, path="b", error="missing"), "b")
        result.record(OperationResult(ok=False, path="c"), "c")

        assert result.success == 1
        assert result.failed == 2
        assert result.messages == ["b: missing", "c: failed"]
