"""Appraisal metadata extraction, validation and template selection."""

import json
import logging

from appraisal_docs.config import settings
from appraisal_docs.core.types import MetadataValidation, PostData
from appraisal_docs.documents.formatters import format_currency

logger = logging.getLogger(__name__)

REQUIRED_METADATA_FIELDS = [
    "test", "ad_copy", "age_text", "age1", "condition",
    "signature1", "signature2", "style", "valuation_method",
    "conclusion1", "conclusion2", "authorship", "table", "justification_html",
    "glossary", "value",
    "top_auction_results", "statistics_summary_text",
    "googlevision",
    # Static report sections
    "Introduction", "ImageAnalysisText", "SignatureText",
    "AppraiserText", "LiabilityText", "SellingGuideText",
]

# Structured ACF fields rendered by the container placeholders
CONTAINER_FIELDS = ("statistics", "justification", "top_auction_results")

TAX_TEMPLATE_TYPE = "TaxArt"


def validate_metadata(metadata: dict) -> MetadataValidation:
    """Check required fields, normalizing missing and empty ones to ''.

    Only missing keys make the metadata invalid; empty values are reported.
    """
    missing, empty = [], []
    for name in REQUIRED_METADATA_FIELDS:
        if name not in metadata:
            missing.append(name)
            metadata[name] = ""
        elif not metadata[name] and metadata[name] != 0:
            empty.append(name)
            metadata[name] = ""
    return MetadataValidation(is_valid=not missing, missing_fields=missing, empty_fields=empty)


def process_metadata(post: PostData) -> tuple[dict, MetadataValidation]:
    """Pull the required fields out of the post's ACF data and add appraisal_value."""
    metadata = {name: post.acf[name] for name in REQUIRED_METADATA_FIELDS if name in post.acf}

    value = metadata.get("value")
    if value:
        try:
            metadata["appraisal_value"] = format_currency(float(value))
        except (TypeError, ValueError):
            metadata["appraisal_value"] = str(value)
    else:
        metadata["appraisal_value"] = ""

    validation = validate_metadata(metadata)
    if not validation.is_valid:
        logger.warning("Missing required metadata fields: %s", ", ".join(validation.missing_fields),
                       extra={"post_id": post.post_id})
    if validation.empty_fields:
        logger.info("Empty metadata fields: %s", ", ".join(validation.empty_fields),
                    extra={"post_id": post.post_id})
    return metadata, validation


def container_data(post: PostData, metadata: dict) -> dict:
    """Metadata plus decoded structured fields for the card and statistics blocks."""
    data = {**post.acf, **metadata}
    for name in CONTAINER_FIELDS:
        raw = post.acf.get(name)
        if isinstance(raw, str) and raw.strip():
            try:
                data[name] = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("ACF field %s is not valid JSON, ignoring", name)
                data[name] = None
    data.setdefault("title", post.title)
    return data


def appraisal_type(post: PostData) -> str:
    return post.acf.get("appraisaltype") or post.acf.get("appraisal_type") or ""


def get_template_id(appraisal_type: str | None) -> str:
    """Template document for an appraisal type: TaxArt has its own, everything else the default.

    Raises:
        ValueError: the selected template id is not configured.
    """
    if appraisal_type and appraisal_type.strip() == TAX_TEMPLATE_TYPE:
        if not settings.google_docs_template_tax_id:
            raise ValueError("TaxArt template ID not configured (GOOGLE_DOCS_TEMPLATE_TAX_ID)")
        return settings.google_docs_template_tax_id.strip()

    if not settings.google_docs_template_id:
        raise ValueError("Default template ID not configured (GOOGLE_DOCS_TEMPLATE_ID)")
    return settings.google_docs_template_id.strip()
