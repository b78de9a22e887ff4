"""API route handlers.

POST /api/pdf/generate-pdf — template pipeline from the first step
POST /api/pdf/generate-pdf-steps — template pipeline from a chosen step, with step logs
GET  /api/pdf/steps — step names and default order
POST /api/gemini-docs/generate — LLM document (PDF output falls back to the template pipeline)
GET  /api/gemini-docs/generate/{post_id} — same, query-string form
"""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from appraisal_docs.api.schemas import (
    GeminiDocsData,
    GeminiDocsRequest,
    GeminiDocsResponse,
    GeneratePdfRequest,
    GeneratePdfStepsRequest,
    PdfResponse,
    StepLogResponse,
    StepsResponse,
)
from appraisal_docs.config import settings
from appraisal_docs.core.types import PdfResult
from appraisal_docs.pipeline.gemini_docs import generate_document
from appraisal_docs.pipeline.steps import DEFAULT_STEP_ORDER, PdfStep, generate_pdf, parse_step

logger = logging.getLogger(__name__)

pdf_router = APIRouter(prefix="/api/pdf", tags=["pdf"])
gemini_router = APIRouter(prefix="/api/gemini-docs", tags=["gemini-docs"])


def _pdf_response(result: PdfResult, include_steps: bool) -> PdfResponse | JSONResponse:
    steps = None
    if include_steps:
        steps = [StepLogResponse(time=log.timestamp, level=log.level, message=log.message)
                 for log in result.logs]
    if result.success:
        return PdfResponse(
            success=True,
            message="PDF generated successfully.",
            pdf_link=result.pdf_link,
            doc_link=result.doc_link,
            steps=steps,
        )
    message = result.error or "Error generating PDF"
    if settings.environment == "production":
        message = "Error generating PDF"
    body = PdfResponse(success=False, message=message, steps=steps)
    return JSONResponse(status_code=500, content=body.model_dump(by_alias=True))


@pdf_router.post("/generate-pdf", response_model=PdfResponse)
async def generate_pdf_route(request: GeneratePdfRequest):
    """Generate the report PDF for a post, always from the first step."""
    logger.info("Starting PDF generation for post %s", request.post_id,
                extra={"post_id": request.post_id})
    result = await generate_pdf(request.post_id, request.session_id, options=request.options)
    return _pdf_response(result, include_steps=False)


@pdf_router.post("/generate-pdf-steps", response_model=PdfResponse)
async def generate_pdf_steps_route(request: GeneratePdfStepsRequest):
    """Generate the report PDF starting at startStep, returning the step log."""
    try:
        start = parse_step(request.start_step) if request.start_step else PdfStep.FETCH_POST_DATA
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("Starting PDF generation for post %s from step %s", request.post_id, start.value,
                extra={"post_id": request.post_id})
    result = await generate_pdf(request.post_id, request.session_id, start, request.options)
    return _pdf_response(result, include_steps=True)


@pdf_router.get("/steps", response_model=StepsResponse)
async def list_steps():
    values = [step.value for step in DEFAULT_STEP_ORDER]
    return StepsResponse(steps=[step.value for step in PdfStep], default_order=values)


async def _gemini_generate(post_id: str, output_format: str, test: bool):
    logger.info("Generating %s for post %s, test mode: %s", output_format, post_id, test,
                extra={"post_id": post_id})
    try:
        doc = await generate_document(post_id, output_format, test)
    except Exception as e:
        logger.exception("Document generation failed for post %s", post_id)
        body = GeminiDocsResponse(
            success=False,
            message="Error generating document",
            error=None if settings.environment == "production" else str(e),
        )
        return JSONResponse(status_code=500, content=body.model_dump(by_alias=True))

    if doc.fallback:
        return GeminiDocsResponse(
            success=True,
            message="Document generated using traditional method (Gemini fallback)",
            data=GeminiDocsData(
                document_url=doc.doc_url,
                pdf_url=doc.pdf_url,
                test_mode=test,
                fallback=True,
                error="Gemini generation failed" if settings.environment == "production" else doc.error,
            ),
        )
    return GeminiDocsResponse(
        success=True,
        message="Document generated successfully with Gemini",
        data=GeminiDocsData(
            document_url=doc.doc_url,
            pdf_url=doc.pdf_url if output_format == "pdf" else None,
            test_mode=test,
        ),
    )


@gemini_router.post("/generate", response_model=GeminiDocsResponse)
async def gemini_generate(request: GeminiDocsRequest):
    return await _gemini_generate(request.post_id, request.format, request.test)


@gemini_router.get("/generate/{post_id}", response_model=GeminiDocsResponse)
async def gemini_generate_get(post_id: str, format: str = "docs", test: bool = False):
    if format not in ("docs", "pdf"):
        raise HTTPException(status_code=400, detail=f"Unknown format {format!r}; use 'docs' or 'pdf'")
    return await _gemini_generate(post_id, format, test)
