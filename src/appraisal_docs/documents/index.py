"""Document index tracking — structural traversal and offset bookkeeping.

A Google Doc body is an ordered list of structural elements (paragraphs,
tables, section breaks) occupying non-overlapping [startIndex, endIndex)
ranges in one global index space. Table cells hold their own content lists,
which may contain further tables.

Indices count UTF-16 code units, so every length derived from Python text
goes through utf16_len().
"""

from collections.abc import Iterator

from appraisal_docs.core.types import TableCell, TableLayout, TextRange, TextRun
from appraisal_docs.documents.operations import (
    DeleteRange,
    EditOperation,
    InsertImage,
    InsertTable,
    InsertText,
    ReplaceAllText,
)


def utf16_len(text: str) -> int:
    """Length of text in Docs index units."""
    return len(text.encode("utf-16-le")) // 2


def body_content(document: dict) -> list[dict]:
    """The body's structural elements from a documents.get response."""
    return document.get("body", {}).get("content", [])


def _cell_contents(table_element: dict) -> Iterator[list[dict]]:
    for row in table_element["table"].get("tableRows", []):
        for cell in row.get("tableCells", []):
            yield cell.get("content", [])


def iter_text_runs(content: list[dict]) -> Iterator[TextRun]:
    """Yield every text run in document order, descending into table cells."""
    for element in content:
        paragraph = element.get("paragraph")
        if paragraph:
            for elem in paragraph.get("elements", []):
                text_run = elem.get("textRun")
                if text_run and text_run.get("content"):
                    yield TextRun(
                        start=elem.get("startIndex", 0),
                        end=elem.get("endIndex", 0),
                        content=text_run["content"],
                    )
        elif "table" in element:
            for cell_content in _cell_contents(element):
                yield from iter_text_runs(cell_content)


def iter_tables(content: list[dict]) -> Iterator[dict]:
    """Yield table elements in document order, nested tables after their parent."""
    for element in content:
        if "table" in element:
            yield element
            for cell_content in _cell_contents(element):
                yield from iter_tables(cell_content)


def table_layout(table_element: dict) -> TableLayout:
    """Resolve a raw table element into its cell grid."""
    rows = []
    for row_index, row in enumerate(table_element["table"].get("tableRows", [])):
        rows.append([
            TableCell(
                row=row_index,
                column=column_index,
                start=cell.get("startIndex", 0),
                end=cell.get("endIndex", 0),
            )
            for column_index, cell in enumerate(row.get("tableCells", []))
        ])
    return TableLayout(
        start=table_element.get("startIndex", 0),
        end=table_element.get("endIndex", 0),
        rows=rows,
    )


def find_table_after(content: list[dict], index: int) -> TableLayout | None:
    """First table starting at or after index, or None."""
    for element in iter_tables(content):
        if element.get("startIndex", 0) >= index:
            return table_layout(element)
    return None


class OffsetCursor:
    """Hands out absolute ranges for text appended piece by piece.

    Used while building inserted text so that style ranges are computed from
    the text actually produced rather than predicted from a fixed layout.
    """

    def __init__(self, origin: int = 0):
        self.origin = origin
        self.position = origin

    def advance(self, text: str) -> TextRange:
        start = self.position
        self.position += utf16_len(text)
        return TextRange(start, self.position)


class OffsetTracker:
    """Maps indices of the fetched document through edits already batched.

    Record each operation as it is appended to a batch (in the coordinates it
    was built with); resolve() then translates a fetched index into the
    coordinates the next operation must use.
    """

    def __init__(self):
        self._edits: list[tuple[str, int, int]] = []

    def record(self, op: EditOperation) -> None:
        if isinstance(op, InsertText):
            self._edits.append(("insert", op.index, utf16_len(op.text)))
        elif isinstance(op, InsertImage):
            self._edits.append(("insert", op.index, 1))
        elif isinstance(op, DeleteRange):
            self._edits.append(("delete", op.start, op.end))
        elif isinstance(op, (InsertTable, ReplaceAllText)):
            raise ValueError(f"{type(op).__name__} has a server-defined footprint; re-fetch instead")
        # Style updates leave indices untouched

    def resolve(self, index: int) -> int:
        for kind, a, b in self._edits:
            if kind == "insert":
                if index >= a:
                    index += b
            elif index >= b:
                index -= b - a
            elif index > a:
                index = a
        return index

    @property
    def drift(self) -> int:
        """Net length change of all recorded edits."""
        return sum(b if kind == "insert" else a - b for kind, a, b in self._edits)
