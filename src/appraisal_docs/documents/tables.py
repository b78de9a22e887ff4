"""Gallery table population at a {{gallery}}-style placeholder.

Inserting a table is two-phase. The Docs API decides where the new table's
cells land, so after the insert batch the document is re-fetched and the
styling and image batches are built from the observed cell indices.
"""

import asyncio
import logging
import math

from appraisal_docs.config import settings
from appraisal_docs.core.errors import TableNotFoundError
from appraisal_docs.core.types import TableCell, TableLayout, TextRange
from appraisal_docs.documents.index import body_content, find_table_after
from appraisal_docs.documents.locator import find_placeholder
from appraisal_docs.documents.operations import (
    DeleteRange,
    EditOperation,
    InsertImage,
    InsertTable,
    SetCellStyle,
    SetParagraphStyle,
    to_requests,
)

logger = logging.getLogger(__name__)

CELL_IMAGE_SIZE_PT = 150
CELL_PADDING_PT = 5


def assign_images(table: TableLayout, gallery: list[str]) -> list[tuple[TableCell, str]]:
    """Pair images with cells row-major. Extra images are dropped, extra cells stay empty."""
    return list(zip(table.cells(), gallery))


def build_table_insert_requests(placeholder: TextRange, rows: int, columns: int) -> list[EditOperation]:
    return [
        DeleteRange(placeholder.start, placeholder.end),
        InsertTable(placeholder.start, rows, columns),
    ]


def build_cell_style_requests(table: TableLayout) -> list[EditOperation]:
    ops: list[EditOperation] = []
    for cell in table.cells():
        ops.append(SetCellStyle(table.start, cell.row, cell.column, padding_pt=CELL_PADDING_PT))
        ops.append(SetParagraphStyle(cell.start, cell.end, alignment="CENTER"))
    return ops


def build_image_requests(assignments: list[tuple[TableCell, str]]) -> list[InsertImage]:
    """One inline image per assigned cell, highest index first.

    Each image grows the document by one index; emitting right-to-left means
    no insert shifts a cell that is still waiting for its image.
    """
    ordered = sorted(assignments, key=lambda pair: pair[0].start, reverse=True)
    return [
        InsertImage(cell.start + 1, uri, CELL_IMAGE_SIZE_PT, CELL_IMAGE_SIZE_PT)
        for cell, uri in ordered
    ]


class TablePopulator:
    """Replaces a placeholder with a grid of gallery images."""

    def __init__(self, client, settle_seconds: float | None = None):
        self.client = client
        self.settle_seconds = settings.table_settle_seconds if settle_seconds is None else settle_seconds

    async def populate(
        self,
        document_id: str,
        gallery: list[str],
        rows: int | None = None,
        columns: int | None = None,
        placeholder: str = "gallery",
    ) -> int:
        """Insert and fill the table. Returns the number of images placed.

        Raises:
            ValueError: rows or columns given explicitly and not positive.
            TableNotFoundError: the inserted table is not in the re-fetched document.
        """
        if columns is None:
            columns = settings.gallery_columns
        if columns <= 0:
            raise ValueError(f"Table needs at least one column, got {columns}")
        if rows is None:
            if not gallery:
                logger.warning("No gallery images for document %s, skipping {{%s}}", document_id, placeholder)
                return 0
            rows = math.ceil(len(gallery) / columns)
        elif rows <= 0:
            raise ValueError(f"Table needs at least one row, got {rows}")

        document = await self.client.get_document(document_id)
        token = find_placeholder(body_content(document), placeholder)
        if token is None:
            logger.warning("Placeholder {{%s}} not found in document %s", placeholder, document_id)
            return 0

        await self.client.batch_update(
            document_id, to_requests(build_table_insert_requests(token, rows, columns))
        )
        logger.info("Inserted %dx%d table at index %d", rows, columns, token.start)

        if self.settle_seconds:
            await asyncio.sleep(self.settle_seconds)

        document = await self.client.get_document(document_id)
        table = find_table_after(body_content(document), token.start)
        if table is None:
            raise TableNotFoundError(
                f"No table at or after index {token.start} in document {document_id}"
            )

        await self.client.batch_update(document_id, to_requests(build_cell_style_requests(table)))

        assignments = assign_images(table, gallery)
        if len(gallery) > len(assignments):
            logger.warning("Gallery has %d images but table holds %d; dropping the rest",
                           len(gallery), len(assignments))
        if assignments:
            await self.client.batch_update(
                document_id, to_requests(build_image_requests(assignments))
            )

        logger.info("Placed %d gallery images in document %s", len(assignments), document_id)
        return len(assignments)
