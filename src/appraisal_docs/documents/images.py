"""Inline images at {{*_image}} placeholders."""

import logging

from appraisal_docs.core.types import TextRange
from appraisal_docs.documents.index import OffsetTracker
from appraisal_docs.documents.operations import DeleteRange, EditOperation, InsertImage

logger = logging.getLogger(__name__)

# (width, height) bounding boxes in points
IMAGE_DIMENSIONS: dict[str, tuple[int, int]] = {
    "main_image": (400, 300),
    "signature_image": (200, 150),
    "age_image": (300, 200),
    "googlevision": (200, 150),
}
DEFAULT_IMAGE_SIZE = (200, 150)


def image_size(placeholder: str) -> tuple[int, int]:
    return IMAGE_DIMENSIONS.get(placeholder, DEFAULT_IMAGE_SIZE)


def build_image_placeholder_requests(
    ranges: list[TextRange],
    uri: str,
    size: tuple[float, float],
) -> list[EditOperation]:
    """Replace every occurrence with the image, first occurrence first.

    Each token collapses to a one-index image, so later occurrences are
    shifted through an OffsetTracker before their requests are built.
    """
    width, height = size
    tracker = OffsetTracker()
    ops: list[EditOperation] = []
    for occurrence in sorted(ranges, key=lambda r: r.start):
        start, end = tracker.resolve(occurrence.start), tracker.resolve(occurrence.end)
        for op in (DeleteRange(start, end), InsertImage(start, uri, width, height)):
            ops.append(op)
            tracker.record(op)
    if ops:
        logger.debug("Built %d image requests, net drift %d", len(ops), tracker.drift)
    return ops
