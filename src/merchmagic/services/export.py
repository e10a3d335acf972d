"""Export mockups as a zip archive or as a single filtered PNG.

Batch export writes the stored payload of every ready mockup into one zip.
Single export bakes the editor's local filter and flip into the pixels so the
file matches the preview.
"""

import io
import math
import re
import time
import zipfile
from typing import Optional

import structlog
from PIL import Image, ImageOps, UnidentifiedImageError
from pydantic import BaseModel

from merchmagic.models.mockup import Mockup, MockupStatus
from merchmagic.models.presets import FilterPreset, FilterStep
from merchmagic.services.exceptions import ExportError, NoImageToExportError
from merchmagic.services.image_generation.data_uri import decode_data_uri

logger = structlog.get_logger(__name__)

# Rec. 709 luma weights, as used by CSS filter matrices
LUMA_R, LUMA_G, LUMA_B = 0.2126, 0.7152, 0.0722


class ExportFile(BaseModel):
    """A file ready for download."""

    filename: str
    media_type: str
    content: bytes


def slugify_product(product_type: str) -> str:
    """Lowercase and replace whitespace runs with hyphens."""
    return re.sub(r"\s+", "-", product_type.lower())


def archive_entry_name(mockup: Mockup) -> str:
    """Archive filename for a mockup: product slug plus the last 4 id characters."""
    return f"{slugify_product(mockup.product_type)}-{mockup.id[-4:]}.png"


def _millis() -> int:
    return int(time.time() * 1000)


def build_archive(mockups: list[Mockup], prefix: str = "merchmagic") -> Optional[ExportFile]:
    """Package ready mockups into a zip archive.

    Args:
        mockups: Mockup set; only ready mockups are exported
        prefix: Archive name prefix

    Returns:
        ExportFile with the zip, or None when no mockup is ready

    Raises:
        ExportError: If a payload cannot be decoded or the archive cannot be written
    """
    ready = [m for m in mockups if m.status == MockupStatus.READY]
    if not ready:
        logger.info("export.archive.skipped", reason="no_ready_mockups")
        return None

    buffer = io.BytesIO()
    try:
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
            for mockup in ready:
                zf.writestr(archive_entry_name(mockup), decode_data_uri(mockup.image_url))
    except (ValueError, zipfile.BadZipFile, OSError) as e:
        logger.error("export.archive.failed", error_type=type(e).__name__, error_message=str(e))
        raise ExportError("Failed to generate zip file. Please try again.") from e

    filename = f"{prefix}-suite-{_millis()}.zip"
    logger.info("export.archive.created", filename=filename, entries=len(ready))
    return ExportFile(filename=filename, media_type="application/zip", content=buffer.getvalue())


def _sepia_matrix(amount: float) -> list[list[float]]:
    a = 1 - min(max(amount, 0.0), 1.0)
    return [
        [0.393 + 0.607 * a, 0.769 - 0.769 * a, 0.189 - 0.189 * a],
        [0.349 - 0.349 * a, 0.686 + 0.314 * a, 0.168 - 0.168 * a],
        [0.272 - 0.272 * a, 0.534 - 0.534 * a, 0.131 + 0.869 * a],
    ]


def _grayscale_matrix(amount: float) -> list[list[float]]:
    a = 1 - min(max(amount, 0.0), 1.0)
    return [
        [LUMA_R + (1 - LUMA_R) * a, LUMA_G - LUMA_G * a, LUMA_B - LUMA_B * a],
        [LUMA_R - LUMA_R * a, LUMA_G + (1 - LUMA_G) * a, LUMA_B - LUMA_B * a],
        [LUMA_R - LUMA_R * a, LUMA_G - LUMA_G * a, LUMA_B + (1 - LUMA_B) * a],
    ]


def _saturate_matrix(s: float) -> list[list[float]]:
    return [
        [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
    ]


def _hue_rotate_matrix(degrees: float) -> list[list[float]]:
    c = math.cos(math.radians(degrees))
    s = math.sin(math.radians(degrees))
    return [
        [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
        [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
        [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
    ]


def _step_matrix(step: FilterStep) -> tuple[float, ...]:
    """Return the 12-tuple RGB colour matrix (with offsets) for one filter step."""
    if step.op == "brightness":
        k = step.amount
        rows, offset = [[k, 0, 0], [0, k, 0], [0, 0, k]], 0.0
    elif step.op == "contrast":
        k = step.amount
        rows, offset = [[k, 0, 0], [0, k, 0], [0, 0, k]], 255 * (1 - k) / 2
    elif step.op == "grayscale":
        rows, offset = _grayscale_matrix(step.amount), 0.0
    elif step.op == "sepia":
        rows, offset = _sepia_matrix(step.amount), 0.0
    elif step.op == "saturate":
        rows, offset = _saturate_matrix(step.amount), 0.0
    elif step.op == "hue_rotate":
        rows, offset = _hue_rotate_matrix(step.amount), 0.0
    else:
        raise ValueError(f"Unsupported filter operation: {step.op}")

    return tuple(value for row in rows for value in (*row, offset))


def apply_filter(image: Image.Image, preset: FilterPreset) -> Image.Image:
    """Apply a filter chain to an RGBA image; alpha is left untouched."""
    if not preset.steps:
        return image

    alpha = image.getchannel("A")
    rgb = image.convert("RGB")
    for step in preset.steps:
        rgb = rgb.convert("RGB", _step_matrix(step))
    result = rgb.convert("RGBA")
    result.putalpha(alpha)
    return result


def render_png(image_url: str, preset: FilterPreset, flipped: bool) -> bytes:
    """Decode an image, bake in filter and horizontal flip, and encode as PNG.

    Raises:
        ExportError: If the image cannot be decoded or encoded
    """
    try:
        with Image.open(io.BytesIO(decode_data_uri(image_url))) as source:
            image = source.convert("RGBA")
        image = apply_filter(image, preset)
        if flipped:
            image = ImageOps.mirror(image)

        output = io.BytesIO()
        image.save(output, format="PNG")
        return output.getvalue()
    except (ValueError, UnidentifiedImageError, OSError) as e:
        logger.error("export.image.failed", error_type=type(e).__name__, error_message=str(e))
        raise ExportError("Failed to export image. Please try again.") from e


def export_single(
    mockup: Mockup, preset: FilterPreset, flipped: bool, prefix: str = "merchmagic"
) -> ExportFile:
    """Export one mockup as a standalone PNG matching the editor preview.

    Raises:
        NoImageToExportError: If the mockup has no image yet
        ExportError: If the image cannot be processed
    """
    if not mockup.has_image:
        raise NoImageToExportError(f"Mockup {mockup.id} has no image to export")

    content = render_png(mockup.image_url, preset, flipped)
    filename = f"{prefix}-{slugify_product(mockup.product_type)}-{_millis()}.png"
    logger.info(
        "export.image.created",
        mockup_id=mockup.id,
        filename=filename,
        filter=preset.name,
        flipped=flipped,
    )
    return ExportFile(filename=filename, media_type="image/png", content=content)
