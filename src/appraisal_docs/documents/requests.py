"""Batch request builders for text substitution, metadata blocks and titles.

Text substitution is matched by content (replaceAllText) so it survives any
index drift from earlier batches. Literal offsets are only used where new
styled text is inserted: the metadata block and the title font size.
"""

from dataclasses import dataclass, field

from appraisal_docs.core.types import TextRange
from appraisal_docs.documents.formatters import format_summary_field
from appraisal_docs.documents.index import OffsetCursor
from appraisal_docs.documents.locator import placeholder_token
from appraisal_docs.documents.operations import (
    DeleteRange,
    EditOperation,
    InsertText,
    ReplaceAllText,
    SetTextStyle,
)

ROW_SEPARATOR = "-"
KEY_SEPARATOR = ":"
LINE_SEPARATOR = "\n"


# ---------------------------------------------------------------------------
# Text substitution
# ---------------------------------------------------------------------------

def clean_value(key: str, value) -> str:
    """Render a placeholder value as document text; None becomes ''."""
    if value is None:
        return ""
    text = str(value)
    if key.endswith("_summary") and KEY_SEPARATOR in text:
        return format_summary_field(text)
    return " ".join(text.split())


def build_replace_all_requests(data: dict) -> list[ReplaceAllText]:
    """One replace-all per key, regardless of how often {{key}} occurs.

    Dict and list values are container data rendered elsewhere and are
    skipped.
    """
    return [
        ReplaceAllText(placeholder_token(key), clean_value(key, value))
        for key, value in data.items()
        if not isinstance(value, (dict, list))
    ]


# ---------------------------------------------------------------------------
# Metadata block: "Key1: Value1 - Key2: Value2 - Bare -"
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MetadataRow:
    key: str | None
    value: str

    @property
    def line(self) -> str:
        if self.key is None:
            return self.value
        return f"**{self.key}:** {self.value}" if self.value else f"**{self.key}:**"


@dataclass
class MetadataBlock:
    text: str
    bold_ranges: list[TextRange] = field(default_factory=list)


def parse_metadata_rows(raw: str) -> list[MetadataRow]:
    """Split the mini-format into rows; segments without a leading key are bare values."""
    rows = []
    for segment in raw.split(ROW_SEPARATOR):
        segment = segment.strip()
        if not segment:
            continue
        colon = segment.find(KEY_SEPARATOR)
        if colon > 0:
            rows.append(MetadataRow(segment[:colon].strip(), segment[colon + 1:].strip()))
        else:
            rows.append(MetadataRow(None, segment))
    return rows


def format_metadata_block(raw: str, origin: int = 0) -> MetadataBlock:
    """Build the block text and the ranges covering each 'key:' (offsets from origin)."""
    cursor = OffsetCursor(origin)
    parts: list[str] = []
    bold_ranges: list[TextRange] = []

    for i, row in enumerate(parse_metadata_rows(raw)):
        if i:
            parts.append(LINE_SEPARATOR)
            cursor.advance(LINE_SEPARATOR)
        if row.key is None:
            parts.append(row.line)
            cursor.advance(row.line)
            continue
        key_text = f"{row.key}{KEY_SEPARATOR}"
        cursor.advance("**")
        bold_ranges.append(cursor.advance(key_text))
        cursor.advance(row.line[2 + len(key_text):])
        parts.append(row.line)

    return MetadataBlock(text="".join(parts), bold_ranges=bold_ranges)


def build_metadata_block_requests(placeholder: TextRange, raw: str) -> list[EditOperation]:
    """Delete the token, insert the block at its start, bold each key.

    Style ranges are post-insert offsets; the batch applies in order.
    """
    block = format_metadata_block(raw, origin=placeholder.start)
    ops: list[EditOperation] = [DeleteRange(placeholder.start, placeholder.end)]
    if not block.text:
        return ops
    ops.append(InsertText(placeholder.start, block.text))
    ops.extend(SetTextStyle(r.start, r.end, bold=True) for r in block.bold_ranges)
    return ops


# ---------------------------------------------------------------------------
# Title font size
# ---------------------------------------------------------------------------

def title_font_size(title: str) -> int:
    """18pt up to 20 chars, 16pt up to 40, else 14pt."""
    if len(title) <= 20:
        return 18
    if len(title) <= 40:
        return 16
    return 14


def build_title_style_request(run: TextRange, title: str) -> SetTextStyle:
    return SetTextStyle(run.start, run.end, font_size_pt=title_font_size(title))
