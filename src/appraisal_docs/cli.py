"""Appraisal docs CLI — run report generation for a single post."""

import asyncio
import logging
import sys

from appraisal_docs.config import settings
from appraisal_docs.observability.tracing import init_tracking


def _init() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    init_tracking(settings.mlflow_tracking_uri, settings.mlflow_experiment_name)


def main() -> None:
    """Run the PDF pipeline: appraisal-docs <post_id> [start_step]"""
    from appraisal_docs.pipeline.steps import DEFAULT_STEP_ORDER, PdfStep, generate_pdf, parse_step

    if len(sys.argv) < 2 or sys.argv[1] == "--help":
        print("Usage: appraisal-docs <post_id> [start_step]")
        print("  Example: appraisal-docs 142")
        print("  Example: appraisal-docs 142 STEP_GET_TEMPLATE")
        print(f"  Steps: {', '.join(step.value for step in DEFAULT_STEP_ORDER)}")
        sys.exit(0 if sys.argv[1:] == ["--help"] else 1)

    post_id = sys.argv[1]
    try:
        start = parse_step(sys.argv[2]) if len(sys.argv) > 2 else PdfStep.FETCH_POST_DATA
    except ValueError as e:
        print(e)
        sys.exit(1)

    _init()
    result = asyncio.run(generate_pdf(post_id, start_step=start))

    print(f"\nAppraisal Report: post {post_id}")
    print(f"{'=' * 50}")
    for log in result.logs:
        print(f"  [{log.level.upper():<5}] {log.message}")
    print()
    if not result.success:
        print(f"FAILED: {result.error}")
        sys.exit(1)
    print(f"Document: {result.doc_link}")
    print(f"PDF:      {result.pdf_link}")


def gemini_main() -> None:
    """Run LLM generation: appraisal-docs-gemini <post_id> [pdf] [--test]"""
    from appraisal_docs.pipeline.gemini_docs import generate_document

    args = [a for a in sys.argv[1:] if a != "--test"]
    test_mode = "--test" in sys.argv[1:]
    if not args:
        print("Usage: appraisal-docs-gemini <post_id> [docs|pdf] [--test]")
        print("  --test: create the document without writing links back to WordPress")
        sys.exit(1)

    post_id = args[0]
    output_format = args[1] if len(args) > 1 else "docs"

    _init()
    try:
        doc = asyncio.run(generate_document(post_id, output_format, test_mode))
    except Exception as e:
        print(f"FAILED: {e}")
        sys.exit(1)

    if doc.fallback:
        print(f"LLM generation failed ({doc.error}); used the template pipeline instead")
    if doc.doc_url:
        print(f"Document: {doc.doc_url}")
    if doc.pdf_url:
        print(f"PDF:      {doc.pdf_url}")
    if test_mode:
        print("Test mode: WordPress not updated")


if __name__ == "__main__":
    main()
