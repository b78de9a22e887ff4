"""Step-by-step PDF pipeline — WordPress post → cloned template → filled Doc → PDF.

Steps run in a fixed order and share a PdfContext. A run can start at any
step; state a later step needs (document id, doc link) can be handed in
through options, and post data is fetched on demand when the run starts
past the fetch.

Title, main image, gallery and specific-image steps are non-critical: their
failures are logged as warnings and the run continues. Any other failure
stops the run, writes an error note at the top of the document (when one
exists) and a note on the WordPress post.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from appraisal_docs.config import settings
from appraisal_docs.core.types import MetadataValidation, PdfResult, PostData, StepLog
from appraisal_docs.documents.editor import DocumentEditor
from appraisal_docs.documents.operations import InsertText, to_requests
from appraisal_docs.observability.logging import timed_step
from appraisal_docs.observability.tracing import start_span, trace
from appraisal_docs.pipeline.metadata import (
    appraisal_type,
    container_data,
    get_template_id,
    process_metadata,
)
from appraisal_docs.retrieval import wordpress
from appraisal_docs.retrieval.google_workspace import GoogleWorkspaceClient

logger = logging.getLogger(__name__)


class PdfStep(str, Enum):
    FETCH_POST_DATA = "STEP_FETCH_POST_DATA"
    PROCESS_METADATA = "STEP_PROCESS_METADATA"
    GET_TEMPLATE = "STEP_GET_TEMPLATE"
    CLONE_TEMPLATE = "STEP_CLONE_TEMPLATE"
    MOVE_TO_FOLDER = "STEP_MOVE_TO_FOLDER"
    REPLACE_PLACEHOLDERS = "STEP_REPLACE_PLACEHOLDERS"
    ADJUST_TITLE = "STEP_ADJUST_TITLE"
    INSERT_MAIN_IMAGE = "STEP_INSERT_MAIN_IMAGE"
    INSERT_GALLERY = "STEP_INSERT_GALLERY"
    INSERT_SPECIFIC_IMAGES = "STEP_INSERT_SPECIFIC_IMAGES"
    EXPORT_PDF = "STEP_EXPORT_PDF"
    UPLOAD_PDF = "STEP_UPLOAD_PDF"
    UPDATE_WORDPRESS = "STEP_UPDATE_WORDPRESS"


DEFAULT_STEP_ORDER: list[PdfStep] = list(PdfStep)

_LOG_LEVELS = {"info": logging.INFO, "warn": logging.WARNING, "error": logging.ERROR}


def parse_step(value: "str | PdfStep") -> PdfStep:
    """Accept a step value ('STEP_EXPORT_PDF') or name ('EXPORT_PDF')."""
    if isinstance(value, PdfStep):
        return value
    try:
        return PdfStep(value)
    except ValueError:
        pass
    try:
        return PdfStep[value]
    except KeyError:
        valid = ", ".join(step.value for step in PdfStep)
        raise ValueError(f"Invalid step name: {value}. Valid steps are: {valid}") from None


@dataclass
class PdfContext:
    """State carried between steps of one run."""

    post_id: str
    client: GoogleWorkspaceClient
    session_id: str | None = None
    options: dict = field(default_factory=dict)
    logs: list[StepLog] = field(default_factory=list)

    post: PostData | None = None
    metadata: dict | None = None
    validation: MetadataValidation | None = None
    folder_id: str | None = None
    template_id: str | None = None
    document_id: str | None = None
    doc_link: str | None = None
    pdf_bytes: bytes | None = None
    pdf_filename: str | None = None
    pdf_link: str | None = None

    def __post_init__(self):
        self.editor = DocumentEditor(self.client)

    def log(self, level: str, message: str) -> None:
        self.logs.append(StepLog(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            message=message,
        ))
        logger.log(
            _LOG_LEVELS[level], message,
            extra={"post_id": self.post_id, "document_id": self.document_id},
        )

    @property
    def title(self) -> str:
        return self.post.title if self.post and self.post.title else "Untitled Appraisal"


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------

async def _fetch_post_data(ctx: PdfContext) -> None:
    ctx.log("info", f"Fetching post data for {ctx.post_id}")
    ctx.post = await wordpress.fetch_post_data(ctx.post_id)
    ctx.log("info", f"Post data fetched: {ctx.title}")


async def _ensure_post_data(ctx: PdfContext) -> None:
    if ctx.post is None:
        await _fetch_post_data(ctx)


async def _process_metadata(ctx: PdfContext) -> None:
    await _ensure_post_data(ctx)
    ctx.log("info", "Processing metadata")
    ctx.metadata, ctx.validation = process_metadata(ctx.post)

    if not ctx.validation.is_valid:
        missing = ", ".join(ctx.validation.missing_fields)
        ctx.log("warn", f"Missing metadata fields: {missing}, but continuing anyway")
        try:
            await wordpress.update_notes(ctx.post_id, f"PDF generation warning: Missing fields: {missing}")
        except Exception as e:
            ctx.log("error", f"Failed to update notes: {e}")


async def _ensure_metadata(ctx: PdfContext) -> None:
    if ctx.metadata is None:
        await _process_metadata(ctx)


def _folder_id(ctx: PdfContext) -> str:
    if not ctx.folder_id:
        folder_id = ctx.options.get("folder_id") or settings.google_drive_folder_id
        if not folder_id:
            raise ValueError("GOOGLE_DRIVE_FOLDER_ID must be set")
        ctx.folder_id = folder_id
    return ctx.folder_id


def _document_id(ctx: PdfContext) -> str:
    if not ctx.document_id:
        raise ValueError("Document ID not available. Run CLONE_TEMPLATE first or pass options.document_id")
    return ctx.document_id


async def _get_template(ctx: PdfContext) -> None:
    await _ensure_post_data(ctx)
    ctx.log("info", "Getting template ID")
    _folder_id(ctx)
    ctx.template_id = get_template_id(appraisal_type(ctx.post))
    ctx.log("info", f"Using template ID: {ctx.template_id}")


async def _clone_template(ctx: PdfContext) -> None:
    if not ctx.template_id:
        await _get_template(ctx)
    ctx.log("info", "Cloning document template")
    name = f"Appraisal_Report_{datetime.now(timezone.utc).isoformat()}"
    cloned = await ctx.client.copy_file(ctx.template_id, name)
    ctx.document_id, ctx.doc_link = cloned.id, cloned.link
    ctx.log("info", f"Template cloned successfully: {ctx.document_id}")


async def _move_to_folder(ctx: PdfContext) -> None:
    document_id, folder_id = _document_id(ctx), _folder_id(ctx)
    ctx.log("info", "Moving document to folder")
    await ctx.client.move_file(document_id, folder_id)
    ctx.log("info", "Document moved to folder successfully")


async def _replace_placeholders(ctx: PdfContext) -> None:
    document_id = _document_id(ctx)
    await _ensure_metadata(ctx)
    ctx.log("info", "Replacing placeholders in document")

    await ctx.editor.replace_container_placeholders(document_id, container_data(ctx.post, ctx.metadata))
    data = {
        **ctx.metadata,
        "appraisal_title": ctx.title,
        "appraisal_date": ctx.post.date or datetime.now(timezone.utc).date().isoformat(),
    }
    count = await ctx.editor.replace_placeholders(document_id, data)
    ctx.log("info", f"Placeholders replaced successfully ({count} keys)")


async def _adjust_title(ctx: PdfContext) -> None:
    document_id = _document_id(ctx)
    await _ensure_post_data(ctx)
    ctx.log("info", "Adjusting title font size")
    try:
        size = await ctx.editor.adjust_title_font_size(document_id, ctx.post.title)
    except Exception as e:
        ctx.log("warn", f"Error adjusting title font size: {e}")
        ctx.log("warn", "Continuing despite title adjustment error")
        return
    if size:
        ctx.log("info", f"Title font size adjusted to {size}pt")
    else:
        ctx.log("warn", "Title not found in document, font size unchanged")


async def _insert_main_image(ctx: PdfContext) -> None:
    document_id = _document_id(ctx)
    await _ensure_post_data(ctx)
    ctx.log("info", "Inserting main image")
    if not ctx.post.images.main:
        ctx.log("warn", "No main image available to insert")
        return
    try:
        await ctx.editor.insert_image_at_placeholder(document_id, "main_image", ctx.post.images.main)
        ctx.log("info", "Main image inserted successfully")
    except Exception as e:
        ctx.log("warn", f"Error inserting main image: {e}")
        ctx.log("warn", "Continuing despite image insertion error")


async def _insert_gallery(ctx: PdfContext) -> None:
    document_id = _document_id(ctx)
    await _ensure_post_data(ctx)
    ctx.log("info", "Adding gallery images")
    gallery = ctx.post.images.gallery
    if not gallery:
        ctx.log("warn", "No gallery images to add")
        return
    try:
        placed = await ctx.editor.populate_gallery(document_id, gallery)
        ctx.log("info", f"Added {placed} gallery images")
    except Exception as e:
        ctx.log("warn", f"Error adding gallery images: {e}")
        ctx.log("warn", "Continuing with PDF generation despite gallery error")


async def _insert_specific_images(ctx: PdfContext) -> None:
    document_id = _document_id(ctx)
    await _ensure_post_data(ctx)
    ctx.log("info", "Inserting specific images")
    images = ctx.post.images
    try:
        if images.age:
            await ctx.editor.insert_image_at_placeholder(document_id, "age_image", images.age)
            ctx.log("info", "Age image inserted successfully")
        if images.signature:
            await ctx.editor.insert_image_at_placeholder(document_id, "signature_image", images.signature)
            ctx.log("info", "Signature image inserted successfully")
    except Exception as e:
        ctx.log("warn", f"Error inserting specific images: {e}")
        ctx.log("warn", "Continuing despite image insertion error")


async def _export_pdf(ctx: PdfContext) -> None:
    document_id = _document_id(ctx)
    ctx.log("info", "Exporting document to PDF")
    ctx.pdf_bytes = await ctx.client.export_pdf(document_id)
    ctx.log("info", f"PDF generated successfully, size: {len(ctx.pdf_bytes)} bytes")


def pdf_filename(post_id: str, session_id: str | None) -> str:
    if session_id and session_id.strip():
        return f"{session_id.strip()}.pdf"
    return f"Appraisal_Report_Post_{post_id}_{uuid.uuid4()}.pdf"


async def _upload_pdf(ctx: PdfContext) -> None:
    if ctx.pdf_bytes is None:
        await _export_pdf(ctx)
    folder_id = _folder_id(ctx)
    ctx.pdf_filename = pdf_filename(ctx.post_id, ctx.session_id)
    ctx.log("info", f"Uploading PDF to Google Drive with filename: {ctx.pdf_filename}")
    uploaded = await ctx.client.upload_pdf(ctx.pdf_bytes, ctx.pdf_filename, folder_id)
    ctx.pdf_link = uploaded.link
    ctx.log("info", "PDF uploaded successfully")


async def _update_wordpress(ctx: PdfContext) -> None:
    if not ctx.pdf_link or not ctx.doc_link:
        raise ValueError("PDF link or document link not available")
    ctx.log("info", "Updating WordPress with PDF link")
    await wordpress.update_post_links(ctx.post_id, ctx.pdf_link, ctx.doc_link)
    await wordpress.update_notes(
        ctx.post_id, f"PDF generated successfully. PDF: {ctx.pdf_link}, Doc: {ctx.doc_link}"
    )
    ctx.log("info", "WordPress updated successfully")


STEP_HANDLERS: dict[PdfStep, Callable[[PdfContext], Awaitable[None]]] = {
    PdfStep.FETCH_POST_DATA: _fetch_post_data,
    PdfStep.PROCESS_METADATA: _process_metadata,
    PdfStep.GET_TEMPLATE: _get_template,
    PdfStep.CLONE_TEMPLATE: _clone_template,
    PdfStep.MOVE_TO_FOLDER: _move_to_folder,
    PdfStep.REPLACE_PLACEHOLDERS: _replace_placeholders,
    PdfStep.ADJUST_TITLE: _adjust_title,
    PdfStep.INSERT_MAIN_IMAGE: _insert_main_image,
    PdfStep.INSERT_GALLERY: _insert_gallery,
    PdfStep.INSERT_SPECIFIC_IMAGES: _insert_specific_images,
    PdfStep.EXPORT_PDF: _export_pdf,
    PdfStep.UPLOAD_PDF: _upload_pdf,
    PdfStep.UPDATE_WORDPRESS: _update_wordpress,
}


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

async def _write_error_note(ctx: PdfContext, error: Exception) -> None:
    if not ctx.document_id:
        return
    ctx.log("info", "Adding error note to document")
    try:
        note = InsertText(1, f"ERROR GENERATING PDF: {error}\n\n")
        await ctx.client.batch_update(ctx.document_id, to_requests([note]))
        ctx.log("info", "Error note added to document")
    except Exception as e:
        ctx.log("error", f"Failed to add error note to document: {e}")


async def _run_steps(ctx: PdfContext, start: PdfStep) -> None:
    for step in DEFAULT_STEP_ORDER[DEFAULT_STEP_ORDER.index(start):]:
        ctx.log("info", f"Executing step: {step.value}")
        with start_span(name=step.name.lower(), span_type="CHAIN"), timed_step(logger, step.name, post_id=ctx.post_id):
            try:
                await STEP_HANDLERS[step](ctx)
            except Exception as e:
                ctx.log("error", f"Error in step {step.value}: {e}")
                await _write_error_note(ctx, e)
                raise


@trace(name="generate_pdf", span_type="CHAIN")
async def generate_pdf(
    post_id: str | int,
    session_id: str | None = None,
    start_step: "str | PdfStep" = PdfStep.FETCH_POST_DATA,
    options: dict | None = None,
    client: GoogleWorkspaceClient | None = None,
) -> PdfResult:
    """Run the pipeline from start_step and report links and per-step logs.

    A client passed in is used as-is and left open; otherwise one is created,
    connected and closed for this run.

    Raises:
        ValueError: start_step is not a known step.
    """
    start = parse_step(start_step)
    options = options or {}
    owns_client = client is None
    if owns_client:
        client = await GoogleWorkspaceClient().connect()

    ctx = PdfContext(
        post_id=str(post_id),
        client=client,
        session_id=session_id,
        options=options,
        document_id=options.get("document_id"),
        doc_link=options.get("doc_link"),
    )

    try:
        ctx.log("info", f"Starting PDF generation for post {ctx.post_id}")
        await _run_steps(ctx, start)
    except Exception as e:
        ctx.log("error", f"PDF generation failed: {e}")
        try:
            await wordpress.update_notes(ctx.post_id, f"PDF generation error: {e}")
        except Exception as notes_error:
            ctx.log("error", f"Failed to update error notes: {notes_error}")
        return PdfResult(success=False, doc_link=ctx.doc_link, error=str(e), logs=ctx.logs)
    finally:
        if owns_client:
            await client.close()

    ctx.log("info", "PDF generation completed successfully")
    return PdfResult(success=True, pdf_link=ctx.pdf_link, doc_link=ctx.doc_link, logs=ctx.logs)
