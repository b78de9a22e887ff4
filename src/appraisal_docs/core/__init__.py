"""Core domain types shared across all appraisal_docs modules."""

from appraisal_docs.core.errors import (
    ClientNotConnectedError,
    DocumentGenerationError,
    TableNotFoundError,
)
from appraisal_docs.core.types import (
    FileLink,
    GeneratedDocument,
    ImageSet,
    MetadataValidation,
    PdfResult,
    PostData,
    StepLog,
    TableCell,
    TableLayout,
    TextRange,
    TextRun,
)

__all__ = [
    "ClientNotConnectedError",
    "DocumentGenerationError",
    "FileLink",
    "GeneratedDocument",
    "ImageSet",
    "MetadataValidation",
    "PdfResult",
    "PostData",
    "StepLog",
    "TableCell",
    "TableLayout",
    "TableNotFoundError",
    "TextRange",
    "TextRun",
]
