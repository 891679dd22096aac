"""Service layer – verdict, result rows and overlay boxes."""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence

from PIL import Image, ImageDraw

from src.weldscan.config import (
    CLEAN_VERDICT,
    DEFECT_COLOR,
    DEFECT_VERDICT,
    OK_COLOR,
    VERDICT_SUMMARIES,
    settings,
)
from src.weldscan.schemas.inspection import ImageDimensions, OverlayBox, ResultRow
from src.weldscan.schemas.prediction import Prediction

logger = logging.getLogger(__name__)


def is_defect(prediction: Prediction, marker: str | None = None) -> bool:
    marker = (marker if marker is not None else settings.defect_marker).lower()
    return marker in prediction.class_name.lower()


def overall_verdict(predictions: Sequence[Prediction], marker: str | None = None) -> str | None:
    """``None`` without predictions, otherwise the defect / clean verdict."""
    if not predictions:
        return None
    if any(is_defect(p, marker) for p in predictions):
        return DEFECT_VERDICT
    return CLEAN_VERDICT


def verdict_summary(verdict: str | None) -> str | None:
    return VERDICT_SUMMARIES.get(verdict) if verdict else None


def format_confidence(confidence: float) -> str:
    return f"{confidence * 100:.1f}%"


def result_rows(predictions: Sequence[Prediction], marker: str | None = None) -> list[ResultRow]:
    rows = []
    for pred in predictions:
        bad = is_defect(pred, marker)
        rows.append(
            ResultRow(
                label=pred.class_name,
                confidence=format_confidence(pred.confidence),
                tone="defect" if bad else "ok",
                color=DEFECT_COLOR if bad else OK_COLOR,
            )
        )
    return rows


def scale_factors(dimensions: ImageDimensions | None) -> tuple[float, float] | None:
    if dimensions is None or not dimensions.natural_width or not dimensions.natural_height:
        return None
    return (
        dimensions.width / dimensions.natural_width,
        dimensions.height / dimensions.natural_height,
    )


def overlay_boxes(
    predictions: Sequence[Prediction],
    dimensions: ImageDimensions | None,
    marker: str | None = None,
) -> list[OverlayBox]:
    """Position every prediction in displayed pixels. Empty until dimensions are known."""
    factors = scale_factors(dimensions)
    if factors is None or not predictions:
        return []
    scale_x, scale_y = factors

    boxes = []
    for pred in predictions:
        x1, y1, x2, y2 = pred.bbox
        boxes.append(
            OverlayBox(
                left=x1 * scale_x,
                top=y1 * scale_y,
                width=(x2 - x1) * scale_x,
                height=(y2 - y1) * scale_y,
                label=f"{pred.class_name} ({format_confidence(pred.confidence)})",
                color=DEFECT_COLOR if is_defect(pred, marker) else OK_COLOR,
            )
        )
    return boxes


def render_overlay_png(
    content: bytes,
    predictions: Sequence[Prediction],
    marker: str | None = None,
) -> bytes:
    """Draw the boxes onto the original image and return it as PNG bytes."""
    image = Image.open(io.BytesIO(content)).convert("RGB")
    draw = ImageDraw.Draw(image)
    width, height = image.size
    # natural size == displayed size, so the boxes keep original coordinates
    natural = ImageDimensions(width=width, height=height, naturalWidth=width, naturalHeight=height)

    for box in overlay_boxes(predictions, natural, marker):
        left, top = box.left, box.top
        draw.rectangle(
            [left, top, left + box.width, top + box.height],
            outline=box.color,
            width=2,
        )
        draw.text((left + 4, max(top - 12, 0)), box.label, fill=box.color)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    logger.debug("Rendered overlay with %d boxes", len(predictions))
    return buffer.getvalue()
