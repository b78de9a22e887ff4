"""LLM document path — fill the master markdown template with Gemini, publish as a Google Doc.

The template pipeline in pipeline.steps is the fallback for PDF output.
"""

import json
import logging
import time
from dataclasses import asdict
from pathlib import Path

from appraisal_docs.config import settings
from appraisal_docs.core.errors import DocumentGenerationError
from appraisal_docs.core.types import GeneratedDocument, PostData
from appraisal_docs.observability.prompts import get_active_prompt, get_prompt_version
from appraisal_docs.observability.tracing import trace
from appraisal_docs.pipeline.steps import generate_pdf
from appraisal_docs.retrieval import wordpress
from appraisal_docs.retrieval.google_workspace import GoogleWorkspaceClient
from appraisal_docs.retrieval.llm import generate_text, strip_code_fences

logger = logging.getLogger(__name__)

TEMPLATE_PATH = Path(__file__).resolve().parent.parent / "templates" / "master_template.md"
OUTPUT_FORMATS = ("docs", "pdf")
PROMPT_NAME = "document_formatter"


def load_template(path: Path = TEMPLATE_PATH) -> str:
    return path.read_text(encoding="utf-8")


def build_prompt(template: str, post: PostData) -> str:
    """Formatter prompt with the template and the post's data as JSON."""
    data = {
        "title": post.title,
        "date": post.date,
        "images": asdict(post.images),
        **post.acf,
    }
    return get_active_prompt(PROMPT_NAME).format(
        template=template,
        data=json.dumps(data, indent=2, default=str),
    )


@trace(name="generate_doc_from_post", span_type="CHAIN")
async def generate_doc_from_post(
    post_id: str | int,
    client: GoogleWorkspaceClient,
    output_format: str = "docs",
    test_mode: bool = False,
) -> GeneratedDocument:
    """Fill the template for one post and publish it.

    Raises:
        DocumentGenerationError: the LLM returned nothing usable.
    """
    post = await wordpress.fetch_post_data(post_id)
    prompt = build_prompt(load_template(), post)

    logger.info("Filling template for post %s (prompt %s/%s)", post_id, PROMPT_NAME,
                get_prompt_version(PROMPT_NAME), extra={"post_id": str(post_id)})
    content = await generate_text(prompt)
    if not content or not content.strip():
        raise DocumentGenerationError(f"LLM returned no content for post {post_id}")
    markdown = strip_code_fences(content)

    title = f"Appraisal-{post_id}-{int(time.time() * 1000)}"
    doc = await client.create_document(title, markdown)

    pdf_url = None
    if output_format == "pdf":
        pdf = await client.export_pdf(doc.id)
        uploaded = await client.upload_pdf(pdf, f"{title}.pdf", settings.google_drive_folder_id or None)
        pdf_url = uploaded.link

    if not test_mode:
        fields = {"gemini_doc_url": doc.link}
        if pdf_url:
            fields["gemini_pdf_url"] = pdf_url
        await wordpress.update_acf_fields(post_id, fields)

    return GeneratedDocument(doc_id=doc.id, doc_url=doc.link, pdf_url=pdf_url, test_mode=test_mode)


async def generate_document(
    post_id: str | int,
    output_format: str = "docs",
    test_mode: bool = False,
    client: GoogleWorkspaceClient | None = None,
) -> GeneratedDocument:
    """LLM generation with template-pipeline fallback for PDF output.

    For 'docs' output LLM-path errors propagate. For 'pdf' output they are
    logged and the step-by-step pipeline produces the PDF instead.

    Raises:
        ValueError: unknown output format.
        DocumentGenerationError: the fallback pipeline failed too.
    """
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown output format {output_format!r}; expected one of {OUTPUT_FORMATS}")

    owns_client = client is None
    if owns_client:
        client = await GoogleWorkspaceClient().connect()

    try:
        try:
            return await generate_doc_from_post(post_id, client, output_format, test_mode)
        except Exception as e:
            if output_format != "pdf":
                raise
            logger.warning("LLM generation failed for post %s, falling back to template pipeline: %s",
                           post_id, e, extra={"post_id": str(post_id)})
            llm_error = str(e)

        result = await generate_pdf(post_id, client=client)
        if not result.success:
            raise DocumentGenerationError(f"Fallback PDF generation failed: {result.error}")
        return GeneratedDocument(
            doc_id=None,
            doc_url=result.doc_link,
            pdf_url=result.pdf_link,
            test_mode=test_mode,
            fallback=True,
            error=llm_error,
        )
    finally:
        if owns_client:
            await client.close()
