"""Edit operations — typed wrappers over Docs API batchUpdate requests.

Each operation knows the single request dict it serializes to. A batch is a
plain list of operations applied by the Docs API atomically, in list order.
Offsets in a batch refer to the document as it was fetched, unless the batch
is ordered so that earlier edits' shifts are already accounted for.

API Reference:
  https://developers.google.com/workspace/docs/api/reference/rest/v1/documents/request
"""

from dataclasses import dataclass


def _pt(magnitude: float) -> dict:
    return {"magnitude": magnitude, "unit": "PT"}


@dataclass(frozen=True)
class DeleteRange:
    start: int
    end: int

    def to_request(self) -> dict:
        return {"deleteContentRange": {"range": {"startIndex": self.start, "endIndex": self.end}}}


@dataclass(frozen=True)
class InsertText:
    index: int
    text: str

    def to_request(self) -> dict:
        return {"insertText": {"location": {"index": self.index}, "text": self.text}}


@dataclass(frozen=True)
class InsertTable:
    index: int
    rows: int
    columns: int

    def to_request(self) -> dict:
        return {
            "insertTable": {
                "rows": self.rows,
                "columns": self.columns,
                "location": {"index": self.index},
            }
        }


@dataclass(frozen=True)
class InsertImage:
    index: int
    uri: str
    width_pt: float
    height_pt: float

    def to_request(self) -> dict:
        return {
            "insertInlineImage": {
                "location": {"index": self.index},
                "uri": self.uri,
                "objectSize": {"height": _pt(self.height_pt), "width": _pt(self.width_pt)},
            }
        }


@dataclass(frozen=True)
class SetCellStyle:
    table_start: int
    row: int
    column: int
    padding_pt: float = 5
    content_alignment: str = "MIDDLE"

    def to_request(self) -> dict:
        return {
            "updateTableCellStyle": {
                "tableRange": {
                    "tableCellLocation": {
                        "tableStartLocation": {"index": self.table_start},
                        "rowIndex": self.row,
                        "columnIndex": self.column,
                    },
                    "rowSpan": 1,
                    "columnSpan": 1,
                },
                "tableCellStyle": {
                    "paddingTop": _pt(self.padding_pt),
                    "paddingBottom": _pt(self.padding_pt),
                    "paddingLeft": _pt(self.padding_pt),
                    "paddingRight": _pt(self.padding_pt),
                    "contentAlignment": self.content_alignment,
                },
                "fields": "paddingTop,paddingBottom,paddingLeft,paddingRight,contentAlignment",
            }
        }


@dataclass(frozen=True)
class SetParagraphStyle:
    start: int
    end: int
    alignment: str = "CENTER"
    named_style_type: str | None = None

    def to_request(self) -> dict:
        style: dict = {"alignment": self.alignment}
        fields = ["alignment"]
        if self.named_style_type:
            style["namedStyleType"] = self.named_style_type
            fields.append("namedStyleType")
        return {
            "updateParagraphStyle": {
                "range": {"startIndex": self.start, "endIndex": self.end},
                "paragraphStyle": style,
                "fields": ",".join(fields),
            }
        }


@dataclass(frozen=True)
class SetTextStyle:
    start: int
    end: int
    bold: bool | None = None
    font_size_pt: float | None = None

    def to_request(self) -> dict:
        style: dict = {}
        fields = []
        if self.bold is not None:
            style["bold"] = self.bold
            fields.append("bold")
        if self.font_size_pt is not None:
            style["fontSize"] = _pt(self.font_size_pt)
            fields.append("fontSize")
        return {
            "updateTextStyle": {
                "range": {"startIndex": self.start, "endIndex": self.end},
                "textStyle": style,
                "fields": ",".join(fields),
            }
        }


@dataclass(frozen=True)
class ReplaceAllText:
    """Content-matched substitution; needs no offsets."""

    placeholder: str
    replacement: str
    match_case: bool = True

    def to_request(self) -> dict:
        return {
            "replaceAllText": {
                "containsText": {"text": self.placeholder, "matchCase": self.match_case},
                "replaceText": self.replacement,
            }
        }


EditOperation = (
    DeleteRange
    | InsertText
    | InsertTable
    | InsertImage
    | SetCellStyle
    | SetParagraphStyle
    | SetTextStyle
    | ReplaceAllText
)


def to_requests(operations: list[EditOperation]) -> list[dict]:
    """Serialize a batch of operations, preserving order."""
    return [op.to_request() for op in operations]
