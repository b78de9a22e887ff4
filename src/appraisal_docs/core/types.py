"""Domain types for the appraisal document pipeline.

All shared dataclasses live here to prevent circular imports between the
document core, the external clients and the orchestration layer.
"""

from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Document structure
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextRange:
    """Half-open [start, end) range in a document's global index space."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "TextRange") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class TextRun:
    """A paragraph text run with its literal content."""

    start: int
    end: int
    content: str

    @property
    def range(self) -> TextRange:
        return TextRange(self.start, self.end)


@dataclass(frozen=True)
class TableCell:
    """A table cell addressed by zero-based (row, column)."""

    row: int
    column: int
    start: int
    end: int


@dataclass
class TableLayout:
    """A table element resolved from a fetched document."""

    start: int
    end: int
    rows: list[list[TableCell]] = field(default_factory=list)

    def cells(self) -> list[TableCell]:
        """All cells in row-major order."""
        return [cell for row in self.rows for cell in row]


# ---------------------------------------------------------------------------
# WordPress content
# ---------------------------------------------------------------------------

@dataclass
class ImageSet:
    """Image URLs extracted from an appraisal post's ACF fields."""

    main: str | None = None
    age: str | None = None
    signature: str | None = None
    gallery: list[str] = field(default_factory=list)


@dataclass
class PostData:
    """An appraisal post as fetched from WordPress."""

    post_id: str
    acf: dict
    title: str
    date: str
    images: ImageSet = field(default_factory=ImageSet)


# ---------------------------------------------------------------------------
# Pipeline results
# ---------------------------------------------------------------------------

@dataclass
class FileLink:
    """A Drive file id with its browser link."""

    id: str
    link: str


@dataclass
class MetadataValidation:
    is_valid: bool
    missing_fields: list[str] = field(default_factory=list)
    empty_fields: list[str] = field(default_factory=list)


@dataclass
class StepLog:
    timestamp: str
    level: str
    message: str


@dataclass
class PdfResult:
    """Outcome of a step-by-step PDF generation run."""

    success: bool
    pdf_link: str | None = None
    doc_link: str | None = None
    error: str | None = None
    logs: list[StepLog] = field(default_factory=list)


@dataclass
class GeneratedDocument:
    """Outcome of an LLM-formatted document generation."""

    doc_id: str | None
    doc_url: str | None
    pdf_url: str | None = None
    test_mode: bool = False
    fallback: bool = False
    error: str | None = None
