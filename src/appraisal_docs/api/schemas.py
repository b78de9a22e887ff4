"""Pydantic request/response models for the appraisal docs API.

Field aliases keep the camelCase wire names existing WordPress callers send
(postId, session_ID, startStep); handlers work with the snake_case names.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _PostRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    post_id: str = Field(..., alias="postId", min_length=1, examples=["142"])

    @field_validator("post_id", mode="before")
    @classmethod
    def _coerce_post_id(cls, value):
        return str(value).strip() if isinstance(value, (int, str)) else value


class GeneratePdfRequest(_PostRequest):
    """Request body for POST /api/pdf/generate-pdf."""

    session_id: str | None = Field(None, alias="session_ID")
    options: dict = Field(default_factory=dict)


class GeneratePdfStepsRequest(GeneratePdfRequest):
    """Request body for POST /api/pdf/generate-pdf-steps."""

    start_step: str | None = Field(None, alias="startStep", examples=["STEP_REPLACE_PLACEHOLDERS"])


class StepLogResponse(BaseModel):
    time: str
    level: str
    message: str


class PdfResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    pdf_link: str | None = Field(None, alias="pdfLink")
    doc_link: str | None = Field(None, alias="docLink")
    steps: list[StepLogResponse] | None = None


class StepsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    steps: list[str]
    default_order: list[str] = Field(..., alias="defaultOrder")


class GeminiDocsRequest(_PostRequest):
    """Request body for POST /api/gemini-docs/generate."""

    format: Literal["docs", "pdf"] = "docs"
    test: bool = False


class GeminiDocsData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_url: str | None = Field(None, alias="documentUrl")
    pdf_url: str | None = Field(None, alias="pdfUrl")
    test_mode: bool = Field(False, alias="testMode")
    fallback: bool = False
    error: str | None = None


class GeminiDocsResponse(BaseModel):
    success: bool
    message: str
    data: GeminiDocsData | None = None
    error: str | None = None
