"""Tests for batch request builders and operation serialization."""

import pytest

from appraisal_docs.core.types import TextRange
from appraisal_docs.documents.operations import (
    DeleteRange,
    InsertImage,
    InsertText,
    ReplaceAllText,
    SetCellStyle,
    SetParagraphStyle,
    SetTextStyle,
    to_requests,
)
from appraisal_docs.documents.requests import (
    build_metadata_block_requests,
    build_replace_all_requests,
    build_title_style_request,
    clean_value,
    format_metadata_block,
    parse_metadata_rows,
    title_font_size,
)


class TestReplaceAll:
    def test_one_request_per_key(self):
        """Two keys give two requests however often each token occurs."""
        ops = build_replace_all_requests({"title": "Vase", "year": None})
        assert len(ops) == 2
        by_token = {op.placeholder: op.replacement for op in ops}
        assert by_token == {"{{title}}": "Vase", "{{year}}": ""}

    def test_match_is_case_sensitive(self):
        request = build_replace_all_requests({"Title": "x"})[0].to_request()
        assert request["replaceAllText"]["containsText"] == {"text": "{{Title}}", "matchCase": True}

    def test_container_values_skipped(self):
        ops = build_replace_all_requests({
            "title": "Vase",
            "statistics": {"count": 3},
            "top_auction_results": [{"price": 10}],
        })
        assert [op.placeholder for op in ops] == ["{{title}}"]

    def test_empty_data(self):
        assert build_replace_all_requests({}) == []


class TestCleanValue:
    def test_none_becomes_empty(self):
        assert clean_value("year", None) == ""

    def test_whitespace_collapsed(self):
        assert clean_value("medium", "Oil  on\n canvas ") == "Oil on canvas"

    def test_numbers_stringified(self):
        assert clean_value("height", 24) == "24"

    def test_summary_fields_laid_out(self):
        text = clean_value("condition_summary", "Frame: good - Canvas: minor cracks")
        assert text == "Frame: good\n\nCanvas: minor cracks"

    def test_summary_without_pairs_untouched(self):
        assert clean_value("condition_summary", "Excellent overall") == "Excellent overall"


class TestMetadataBlock:
    def test_two_rows_text_and_bold_ranges(self):
        block = format_metadata_block("Name: Leonardo - Period: Renaissance")
        assert block.text == "**Name:** Leonardo\n**Period:** Renaissance"
        assert [block.text[r.start:r.end] for r in block.bold_ranges] == ["Name:", "Period:"]

    def test_bare_segments_and_trailing_separator(self):
        rows = parse_metadata_rows("Key1: Value1 - Key2: Value2 - Key3 -")
        assert [(r.key, r.value) for r in rows] == [
            ("Key1", "Value1"),
            ("Key2", "Value2"),
            (None, "Key3"),
        ]

    def test_leading_colon_is_bare_value(self):
        rows = parse_metadata_rows(": orphan")
        assert rows[0].key is None
        assert rows[0].value == ": orphan"

    def test_key_without_value(self):
        block = format_metadata_block("Signed: - Medium: Oil")
        assert block.text == "**Signed:**\n**Medium:** Oil"
        assert [block.text[r.start:r.end] for r in block.bold_ranges] == ["Signed:", "Medium:"]

    def test_bare_rows_are_not_bolded(self):
        block = format_metadata_block("Untitled - Medium: Oil")
        assert block.text == "Untitled\n**Medium:** Oil"
        assert len(block.bold_ranges) == 1

    def test_ranges_count_utf16_units(self):
        block = format_metadata_block("Título: café 🎨 - Año: 1900")
        assert block.bold_ranges[1] == TextRange(22, 26)

    def test_empty_input(self):
        block = format_metadata_block("  -  - ")
        assert block.text == ""
        assert block.bold_ranges == []

    def test_requests_use_placeholder_start(self):
        ops = build_metadata_block_requests(TextRange(10, 22), "Name: Leonardo - Period: Renaissance")
        assert ops[0] == DeleteRange(10, 22)
        assert ops[1] == InsertText(10, "**Name:** Leonardo\n**Period:** Renaissance")
        assert ops[2:] == [
            SetTextStyle(12, 17, bold=True),
            SetTextStyle(31, 38, bold=True),
        ]

    def test_empty_block_only_deletes_token(self):
        assert build_metadata_block_requests(TextRange(3, 15), "") == [DeleteRange(3, 15)]


class TestTitleSizing:
    @pytest.mark.parametrize("length,size", [(1, 18), (20, 18), (21, 16), (40, 16), (41, 14), (90, 14)])
    def test_length_tiers(self, length, size):
        assert title_font_size("x" * length) == size

    def test_style_request_covers_run(self):
        request = build_title_style_request(TextRange(5, 30), "y" * 25).to_request()
        body = request["updateTextStyle"]
        assert body["range"] == {"startIndex": 5, "endIndex": 30}
        assert body["textStyle"] == {"fontSize": {"magnitude": 16, "unit": "PT"}}
        assert body["fields"] == "fontSize"


class TestOperationRequests:
    def test_batch_order_preserved(self):
        requests = to_requests([DeleteRange(1, 5), InsertText(1, "hi")])
        assert list(requests[0]) == ["deleteContentRange"]
        assert requests[1] == {"insertText": {"location": {"index": 1}, "text": "hi"}}

    def test_inline_image(self):
        request = InsertImage(12, "https://example.com/a.jpg", 150, 150).to_request()
        body = request["insertInlineImage"]
        assert body["location"] == {"index": 12}
        assert body["objectSize"]["width"] == {"magnitude": 150, "unit": "PT"}

    def test_cell_style(self):
        body = SetCellStyle(20, 1, 2).to_request()["updateTableCellStyle"]
        location = body["tableRange"]["tableCellLocation"]
        assert location == {"tableStartLocation": {"index": 20}, "rowIndex": 1, "columnIndex": 2}
        assert body["tableCellStyle"]["contentAlignment"] == "MIDDLE"
        assert body["tableCellStyle"]["paddingLeft"] == {"magnitude": 5, "unit": "PT"}

    def test_paragraph_style_named_type(self):
        body = SetParagraphStyle(1, 9, named_style_type="HEADING_1").to_request()["updateParagraphStyle"]
        assert body["paragraphStyle"] == {"alignment": "CENTER", "namedStyleType": "HEADING_1"}
        assert body["fields"] == "alignment,namedStyleType"

    def test_text_style_bold_only(self):
        body = SetTextStyle(1, 4, bold=True).to_request()["updateTextStyle"]
        assert body["textStyle"] == {"bold": True}
        assert body["fields"] == "bold"

    def test_replace_all(self):
        request = ReplaceAllText("{{a}}", "b").to_request()
        assert request["replaceAllText"]["replaceText"] == "b"
