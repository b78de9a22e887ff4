"""Tests for document traversal and offset bookkeeping."""

import pytest

from appraisal_docs.core.types import TextRange
from appraisal_docs.documents.index import (
    OffsetCursor,
    OffsetTracker,
    body_content,
    find_table_after,
    iter_tables,
    iter_text_runs,
    utf16_len,
)
from appraisal_docs.documents.operations import (
    DeleteRange,
    InsertImage,
    InsertTable,
    InsertText,
    ReplaceAllText,
    SetTextStyle,
)


class TestUtf16Len:
    def test_ascii(self):
        assert utf16_len("hello") == 5

    def test_bmp_accents_count_once(self):
        assert utf16_len("café") == 4

    def test_astral_characters_count_twice(self):
        """Emoji outside the BMP are surrogate pairs in Docs indices."""
        assert utf16_len("a🎨b") == 4


class TestTraversal:
    def test_text_runs_in_order(self, make_document):
        doc = make_document("Title\n", "Body text\n")
        runs = list(iter_text_runs(body_content(doc)))
        assert [r.content for r in runs] == ["Title\n", "Body text\n"]
        assert runs[0].start == 1
        assert runs[1].start == 7

    def test_text_runs_descend_into_cells(self, make_document, make_table):
        doc = make_document("Before\n")
        doc["body"]["content"].append(make_table(8, 1, 2))
        runs = list(iter_text_runs(body_content(doc)))
        assert len(runs) == 3
        assert runs[1].start == 11

    def test_nested_tables_follow_parent(self, make_table):
        outer = make_table(10, 1, 1)
        inner = make_table(13, 1, 1)
        outer["table"]["tableRows"][0]["tableCells"][0]["content"].append(inner)
        found = list(iter_tables([outer]))
        assert [t["startIndex"] for t in found] == [10, 13]

    def test_empty_body(self):
        assert body_content({}) == []
        assert list(iter_text_runs([])) == []


class TestFindTableAfter:
    def test_layout_cells_row_major(self, make_table):
        layout = find_table_after([make_table(20, 2, 3)], 20)
        assert layout.start == 20
        assert len(layout.rows) == 2
        cells = layout.cells()
        assert [(c.row, c.column) for c in cells[:4]] == [(0, 0), (0, 1), (0, 2), (1, 0)]
        assert cells[0].start == 22
        assert cells[1].start == 24

    def test_skips_tables_before_index(self, make_table):
        content = [make_table(5, 1, 1), make_table(40, 1, 1)]
        assert find_table_after(content, 10).start == 40

    def test_none_when_absent(self, make_table):
        assert find_table_after([make_table(5, 1, 1)], 100) is None


class TestOffsetCursor:
    def test_advance_returns_absolute_ranges(self):
        cursor = OffsetCursor(10)
        assert cursor.advance("ab") == TextRange(10, 12)
        assert cursor.advance("🎨") == TextRange(12, 14)
        assert cursor.position == 14


class TestOffsetTracker:
    def test_insert_shifts_later_indices(self):
        tracker = OffsetTracker()
        tracker.record(InsertText(5, "abc"))
        assert tracker.resolve(4) == 4
        assert tracker.resolve(5) == 8
        assert tracker.resolve(10) == 13

    def test_delete_collapses_inner_indices(self):
        tracker = OffsetTracker()
        tracker.record(DeleteRange(10, 20))
        assert tracker.resolve(9) == 9
        assert tracker.resolve(15) == 10
        assert tracker.resolve(20) == 10
        assert tracker.resolve(25) == 15

    def test_image_counts_as_one(self):
        tracker = OffsetTracker()
        tracker.record(DeleteRange(10, 24))
        tracker.record(InsertImage(10, "https://x/img.jpg", 100, 100))
        assert tracker.resolve(30) == 17
        assert tracker.drift == -13

    def test_style_updates_do_not_move(self):
        tracker = OffsetTracker()
        tracker.record(SetTextStyle(1, 5, bold=True))
        assert tracker.resolve(3) == 3
        assert tracker.drift == 0

    @pytest.mark.parametrize("op", [InsertTable(1, 2, 2), ReplaceAllText("{{a}}", "b")])
    def test_server_sized_operations_rejected(self, op):
        with pytest.raises(ValueError, match="re-fetch"):
            OffsetTracker().record(op)
