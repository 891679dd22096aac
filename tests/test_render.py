"""Tests for verdict, result rows, overlay boxes and image storage."""

import io

import pytest
from PIL import Image

from fakes import make_jpeg
from src.weldscan.schemas.inspection import ImageDimensions
from src.weldscan.schemas.prediction import Prediction
from src.weldscan.services.image_store import TemporaryImageStore
from src.weldscan.services.render_service import (
    format_confidence,
    overall_verdict,
    overlay_boxes,
    render_overlay_png,
    result_rows,
    scale_factors,
    verdict_summary,
)


def _pred(label: str, confidence: float = 0.5, bbox=(0, 0, 10, 10)) -> Prediction:
    return Prediction(bbox=bbox, class_name=label, confidence=confidence)


# ──────────────────────────────────────────────
# Verdict / rows
# ──────────────────────────────────────────────
def test_verdict_none_without_predictions() -> None:
    assert overall_verdict([], "bad") is None


@pytest.mark.parametrize(
    "labels, expected",
    [
        (["bad_weld"], "Defects Detected"),
        (["good_weld", "BAD Weld"], "Defects Detected"),
        (["good_weld"], "No Defects"),
        (["good_weld", "porosity"], "No Defects"),
    ],
)
def test_verdict_depends_on_marker(labels, expected) -> None:
    assert overall_verdict([_pred(label) for label in labels], "bad") == expected


def test_result_rows() -> None:
    rows = result_rows([_pred("bad_weld", 0.92), _pred("good_weld", 0.5)], "bad")

    assert [(r.label, r.confidence, r.tone, r.color) for r in rows] == [
        ("bad_weld", "92.0%", "defect", "#ff3b30"),
        ("good_weld", "50.0%", "ok", "#34c759"),
    ]


def test_format_confidence_rounds_to_one_decimal() -> None:
    assert format_confidence(0.9876) == "98.8%"
    assert format_confidence(1.0) == "100.0%"


# ──────────────────────────────────────────────
# Overlay
# ──────────────────────────────────────────────
def test_scale_factors_need_natural_size() -> None:
    assert scale_factors(None) is None
    dims = ImageDimensions(width=300, height=150, naturalWidth=600, naturalHeight=600)
    assert scale_factors(dims) == (0.5, 0.25)


def test_overlay_boxes_scaled_to_display() -> None:
    dims = ImageDimensions(width=320, height=240, naturalWidth=640, naturalHeight=480)
    boxes = overlay_boxes([_pred("bad_weld", 0.92, (100, 50, 300, 250))], dims, "bad")

    assert len(boxes) == 1
    box = boxes[0]
    assert (box.left, box.top, box.width, box.height) == (50, 25, 100, 100)
    assert box.label == "bad_weld (92.0%)"
    assert box.color == "#ff3b30"


def test_overlay_boxes_empty_without_dimensions() -> None:
    assert overlay_boxes([_pred("bad_weld")], None, "bad") == []


def test_render_overlay_png_keeps_size() -> None:
    png = render_overlay_png(make_jpeg(120, 80), [_pred("bad_weld", 0.9, (10, 10, 60, 60))], "bad")

    with Image.open(io.BytesIO(png)) as img:
        assert img.format == "PNG"
        assert img.size == (120, 80)


# ──────────────────────────────────────────────
# Temporary images
# ──────────────────────────────────────────────
def test_image_store_create_and_release(tmp_path) -> None:
    store = TemporaryImageStore(tmp_path)
    stored = store.create(make_jpeg(40, 30), "weld.jpg", "image/jpeg")

    assert stored.path.exists()
    assert (stored.natural_width, stored.natural_height) == (40, 30)
    assert store.get(stored.ref.id) is stored

    store.release(stored.ref.id)
    store.release(stored.ref.id)

    assert not stored.path.exists()
    assert store.get(stored.ref.id) is None


def test_image_store_release_all(tmp_path) -> None:
    store = TemporaryImageStore(tmp_path)
    paths = [store.create(make_jpeg(), f"{i}.jpg", "image/jpeg").path for i in range(3)]

    store.release_all()

    assert len(store) == 0
    assert not any(p.exists() for p in paths)


def test_image_store_rejects_non_image(tmp_path) -> None:
    store = TemporaryImageStore(tmp_path)
    with pytest.raises(ValueError, match="Invalid image"):
        store.create(b"not an image", "notes.txt", "text/plain")
    assert list(tmp_path.iterdir()) == []


def test_verdict_summary() -> None:
    assert verdict_summary(None) is None
    assert verdict_summary("Defects Detected").startswith("Critical defects")
    assert verdict_summary("No Defects") == "No critical defects were detected in the analyzed areas."
