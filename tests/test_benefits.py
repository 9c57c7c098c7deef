"""Tests for the benefits section codec."""

from __future__ import annotations

from librarynotes.metadata.benefits import (
    add_benefit,
    format_benefit,
    parse_benefit,
    read_benefits,
    remove_benefit,
    replace_benefit,
)
from librarynotes.models import Benefit

NOTE = """---
العنوان: الأذكار
المؤلف: النووي
---

# الأذكار

## الوصف

desc
"""

SECTION = (
    "# الفوائد\n"
    "\n"
    "## A\n"
    "<!-- benefit-id: a -->\n"
    "الفائدة: x\n"
    "\n"
    "## B\n"
    "<!-- benefit-id: b -->\n"
    "الفائدة: y\n"
)


def make_benefit(**overrides: object) -> Benefit:
    values = dict(
        id="b1",
        title="فائدة",
        text="نص",
        date_created="2024-05-06 10:00:00",
        page=12,
        categories=["فقه", "حديث"],
    )
    values.update(overrides)
    return Benefit(**values)


class TestFormatBenefit:
    """Test rendering of a single benefit block."""

    def test_book_block(self) -> None:
        assert format_benefit(make_benefit(volume=2, tags=["t"]), "book") == (
            "## فائدة\n"
            "<!-- benefit-id: b1 -->\n"
            "<!-- date-created: 2024-05-06 10:00:00 -->\n"
            "الصفحة: 12\n"
            "المجلد: 2\n"
            "التصنيفات: فقه، حديث\n"
            "الوسوم: t\n"
            "الفائدة: نص"
        )

    def test_video_block_uses_timestamp(self) -> None:
        """Videos carry a clock timestamp and never page lines."""
        block = format_benefit(make_benefit(timestamp=3723, categories=[]), "video")
        assert "الوقت: 1:02:03" in block
        assert "الصفحة" not in block

    def test_modified_date(self) -> None:
        block = format_benefit(make_benefit(date_modified="2024-05-07 09:00:00"), "book")
        assert "<!-- date-modified: 2024-05-07 09:00:00 -->" in block


class TestReadBenefits:
    """Test parsing the benefits section."""

    def test_no_section(self) -> None:
        assert read_benefits(NOTE) == []

    def test_reads_blocks_in_order(self) -> None:
        benefits = read_benefits(NOTE + "\n" + SECTION)
        assert [(item.id, item.title, item.text) for item in benefits] == [("a", "A", "x"), ("b", "B", "y")]

    def test_multi_line_text(self) -> None:
        text = "# الفوائد\n\n## A\n<!-- benefit-id: a -->\nالفائدة: first\nsecond line\n"
        assert read_benefits(text)[0].text == "first\nsecond line"

    def test_block_without_text_is_skipped(self) -> None:
        text = SECTION + "\n## C\n<!-- benefit-id: c -->\n"
        assert [item.id for item in read_benefits(text)] == ["a", "b"]

    def test_section_ends_at_next_top_heading(self) -> None:
        text = SECTION + "\n# خاتمة\n\n## not a benefit\nالفائدة: z\n"
        assert [item.id for item in read_benefits(text)] == ["a", "b"]

    def test_list_separators(self) -> None:
        benefit = parse_benefit(["## T", "التصنيفات: a، b, c", "الفائدة: x"])
        assert benefit is not None
        assert benefit.categories == ["a", "b", "c"]

    def test_timestamp_and_page(self) -> None:
        benefit = parse_benefit(["## T", "الوقت: 2:05", "الصفحة: 7", "المجلد: 3", "الفائدة: x"])
        assert benefit is not None
        assert (benefit.timestamp, benefit.page, benefit.volume) == (125, 7, 3)


class TestAddBenefit:
    """Test appending benefits."""

    def test_creates_section(self) -> None:
        """A note without a section gets one at the end; the rest is untouched."""
        benefit = make_benefit()

        updated = add_benefit(NOTE, benefit, "book")

        assert updated == NOTE.rstrip("\n") + "\n\n# الفوائد\n\n" + format_benefit(benefit, "book") + "\n"
        assert read_benefits(updated) == [benefit]

    def test_appends_to_existing_section(self) -> None:
        first = make_benefit()
        second = make_benefit(id="b2", title="ثانية", page=None, categories=[])

        updated = add_benefit(add_benefit(NOTE, first, "book"), second, "book")

        assert [item.id for item in read_benefits(updated)] == ["b1", "b2"]
        assert updated.startswith(NOTE.rstrip("\n"))

    def test_inserts_before_following_section(self) -> None:
        text = SECTION + "\n# خاتمة\n\nend\n"

        updated = add_benefit(text, make_benefit(id="c", title="C", page=None, categories=[]), "book")

        assert "الفائدة: y\n\n## C\n" in updated
        assert updated.endswith("الفائدة: نص\n\n# خاتمة\n\nend\n")
        assert [item.id for item in read_benefits(updated)] == ["a", "b", "c"]

    def test_video_round_trip(self) -> None:
        benefit = make_benefit(page=None, timestamp=3723)
        assert read_benefits(add_benefit("# Lesson\n", benefit, "video")) == [benefit]


class TestEditBenefits:
    """Test replacing and removing single blocks."""

    def test_replace_keeps_other_blocks(self) -> None:
        fresh = make_benefit(id="a", title="A2", text="x2", page=None, categories=[])

        updated = replace_benefit(SECTION, "a", fresh, "book")

        assert updated is not None
        assert updated.endswith("الفائدة: x2\n\n## B\n<!-- benefit-id: b -->\nالفائدة: y\n")
        assert [(item.id, item.title) for item in read_benefits(updated)] == [("a", "A2"), ("b", "B")]

    def test_replace_unknown_id(self) -> None:
        assert replace_benefit(SECTION, "zzz", make_benefit(), "book") is None

    def test_remove_first(self) -> None:
        assert remove_benefit(SECTION, "a") == "# الفوائد\n\n## B\n<!-- benefit-id: b -->\nالفائدة: y\n"

    def test_remove_last(self) -> None:
        assert remove_benefit(SECTION, "b") == "# الفوائد\n\n## A\n<!-- benefit-id: a -->\nالفائدة: x\n"

    def test_remove_unknown_id(self) -> None:
        assert remove_benefit(SECTION, "zzz") is None

    def test_metadata_block_untouched(self) -> None:
        text = NOTE + "\n" + SECTION
        updated = remove_benefit(text, "a")
        assert updated is not None
        assert updated.startswith(NOTE)
