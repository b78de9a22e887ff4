"""DocumentEditor — the mutation operations the pipeline applies to a cloned template.

Each method reads the document fresh before any batch that depends on
offsets; nothing is cached between calls.
"""

import logging

from appraisal_docs.documents.formatters import build_appraisal_card, build_statistics_section
from appraisal_docs.documents.images import build_image_placeholder_requests, image_size
from appraisal_docs.documents.index import body_content
from appraisal_docs.documents.locator import find_placeholder, find_title_run, locate_placeholders
from appraisal_docs.documents.operations import ReplaceAllText, to_requests
from appraisal_docs.documents.requests import (
    build_metadata_block_requests,
    build_replace_all_requests,
    build_title_style_request,
    title_font_size,
)
from appraisal_docs.documents.tables import TablePopulator

logger = logging.getLogger(__name__)


class DocumentEditor:
    """Applies placeholder, metadata, title, image and gallery edits to one client's documents."""

    def __init__(self, client, settle_seconds: float | None = None):
        self.client = client
        self.tables = TablePopulator(client, settle_seconds=settle_seconds)

    async def replace_placeholders(self, document_id: str, data: dict) -> int:
        """Replace every {{key}} with its value. Returns the number of requests sent."""
        ops = build_replace_all_requests(data)
        await self.client.batch_update(document_id, to_requests(ops))
        logger.info("Replaced %d placeholder keys in document %s", len(ops), document_id,
                    extra={"document_id": document_id})
        return len(ops)

    async def replace_container_placeholders(self, document_id: str, metadata: dict) -> None:
        """Render {{appraisal_card}} and {{statistics_section}} from the post metadata.

        Each block goes in its own batch. A block that fails to render or
        apply is logged and skipped; the statistics section is emptied when
        the post carries no statistics.
        """
        await self._replace_container(document_id, "appraisal_card", lambda: build_appraisal_card(metadata))

        statistics = metadata.get("statistics")
        justification = metadata.get("justification")
        if isinstance(statistics, dict) and statistics:
            await self._replace_container(
                document_id,
                "statistics_section",
                lambda: build_statistics_section(
                    statistics,
                    justification if isinstance(justification, dict) else None,
                    metadata,
                ),
            )
        else:
            logger.info("No statistics for document %s, emptying {{statistics_section}}", document_id)
            await self._replace_container(document_id, "statistics_section", lambda: "")

    async def _replace_container(self, document_id: str, name: str, render) -> bool:
        try:
            op = ReplaceAllText("{{" + name + "}}", render())
            await self.client.batch_update(document_id, to_requests([op]))
        except Exception:
            logger.warning("Failed to replace {{%s}} in document %s", name, document_id,
                           exc_info=True, extra={"document_id": document_id})
            return False
        return True

    async def insert_metadata_block(self, document_id: str, placeholder: str, raw: str) -> bool:
        """Swap {{placeholder}} for the key: value block with bold keys.

        Returns False (and edits nothing) when the placeholder is absent.
        """
        document = await self.client.get_document(document_id)
        token = find_placeholder(body_content(document), placeholder)
        if token is None:
            logger.warning("Placeholder {{%s}} not found in document %s", placeholder, document_id)
            return False
        ops = build_metadata_block_requests(token, raw or "")
        await self.client.batch_update(document_id, to_requests(ops))
        return True

    async def adjust_title_font_size(self, document_id: str, title: str) -> int | None:
        """Size the run containing the title by its length. Returns the size applied."""
        if not title or not title.strip():
            logger.warning("No title given for document %s, leaving font size", document_id)
            return None
        document = await self.client.get_document(document_id)
        run = find_title_run(body_content(document), title)
        if run is None:
            logger.warning("Title %r not found in document %s", title, document_id)
            return None
        await self.client.batch_update(document_id, to_requests([build_title_style_request(run, title)]))
        size = title_font_size(title)
        logger.info("Title font size set to %dpt (%d chars)", size, len(title))
        return size

    async def insert_image_at_placeholder(self, document_id: str, placeholder: str, url: str | None) -> int:
        """Replace every {{placeholder}} with the image. Returns occurrences replaced."""
        if not url:
            logger.warning("No image URL for {{%s}} in document %s", placeholder, document_id)
            return 0
        document = await self.client.get_document(document_id)
        ranges = locate_placeholders(body_content(document), [placeholder])[placeholder]
        if not ranges:
            logger.warning("Placeholder {{%s}} not found in document %s", placeholder, document_id)
            return 0
        ops = build_image_placeholder_requests(ranges, url, image_size(placeholder))
        await self.client.batch_update(document_id, to_requests(ops))
        return len(ranges)

    async def populate_gallery(
        self,
        document_id: str,
        gallery: list[str],
        rows: int | None = None,
        columns: int | None = None,
        placeholder: str = "gallery",
    ) -> int:
        return await self.tables.populate(document_id, gallery, rows=rows, columns=columns,
                                          placeholder=placeholder)
