"""Image compositor: fit, crop and blur-composite a product photo onto target canvases."""

from __future__ import annotations

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import PurePath
from typing import BinaryIO, Sequence, Union

from PIL import Image, ImageFilter, ImageOps, UnidentifiedImageError

from fotix.errors import ContextError, DecodeError, EncodeError
from fotix.models import RenderedVariant, TargetSpec, Treatment

logger = logging.getLogger(__name__)

JPEG_QUALITY = 90
BACKDROP_BLUR_RADIUS = 20

WHITE = (255, 255, 255, 255)
TRANSPARENT = (0, 0, 0, 0)

# (render_width, render_height, x, y) in canvas pixels
Placement = tuple[int, int, int, int]
Source = Union[bytes, bytearray, memoryview, BinaryIO, Image.Image]


def load_source(source: Source) -> Image.Image:
    """Decode raw bytes, a binary stream or a Pillow image into an upright RGBA raster."""
    if isinstance(source, Image.Image):
        image = source
    else:
        stream = io.BytesIO(source) if isinstance(source, (bytes, bytearray, memoryview)) else source
        try:
            image = Image.open(stream)
            image.load()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
            raise DecodeError(f"Could not decode image: {exc}") from exc

    try:
        image = ImageOps.exif_transpose(image)
        return image.convert("RGBA")
    except (OSError, ValueError) as exc:
        raise DecodeError(f"Unsupported image data: {exc}") from exc


def _scaled(value: float) -> int:
    return max(1, round(value))


def cover_placement(source_size: tuple[int, int], target_size: tuple[int, int]) -> Placement:
    """Scale uniformly so the source fills the target, centred; overflow is cropped."""
    src_w, src_h = source_size
    width, height = target_size
    src_ratio = src_w / src_h
    target_ratio = width / height

    if src_ratio > target_ratio:
        render_h = height
        render_w = _scaled(height * src_ratio)
    else:
        render_w = width
        render_h = _scaled(width / src_ratio)

    return render_w, render_h, (width - render_w) // 2, (height - render_h) // 2


def contain_placement(source_size: tuple[int, int], target_size: tuple[int, int]) -> Placement:
    """Scale uniformly so the whole source fits inside the target, centred on both axes."""
    src_w, src_h = source_size
    width, height = target_size
    src_ratio = src_w / src_h
    target_ratio = width / height

    if src_ratio > target_ratio:
        render_w = width
        render_h = _scaled(width / src_ratio)
    else:
        render_h = height
        render_w = _scaled(height * src_ratio)

    return render_w, render_h, (width - render_w) // 2, (height - render_h) // 2


def _new_canvas(target: TargetSpec, color: tuple[int, int, int, int]) -> Image.Image:
    try:
        return Image.new("RGBA", target.size, color)
    except (ValueError, MemoryError) as exc:
        raise ContextError(
            f"Could not allocate a {target.width}x{target.height} canvas for {target.name!r}: {exc}"
        ) from exc


def _draw(canvas: Image.Image, image: Image.Image, placement: Placement) -> None:
    """Draw ``image`` scaled to the placement, resampling only the part that lands on the canvas."""
    render_w, render_h, x, y = placement
    left, top = max(x, 0), max(y, 0)
    right, bottom = min(x + render_w, canvas.width), min(y + render_h, canvas.height)
    if right <= left or bottom <= top:
        return

    scale_x = image.width / render_w
    scale_y = image.height / render_h
    # Clamp against float drift so the box never leaves the source bounds
    box = (
        max(0.0, (left - x) * scale_x),
        max(0.0, (top - y) * scale_y),
        min(float(image.width), (right - x) * scale_x),
        min(float(image.height), (bottom - y) * scale_y),
    )
    layer = image.resize((right - left, bottom - top), Image.Resampling.LANCZOS, box=box)
    canvas.alpha_composite(layer, dest=(left, top))


def render_default(image: Image.Image, target: TargetSpec) -> Image.Image:
    """White canvas with the source covering it edge to edge."""
    canvas = _new_canvas(target, WHITE)
    placement = cover_placement(image.size, target.size)
    logger.debug("Cover placement for %s: %s", target.name, placement)
    _draw(canvas, image, placement)
    return canvas


def render_blurred_backdrop(image: Image.Image, target: TargetSpec) -> Image.Image:
    """Sharp contained source over a stretched, blurred copy of itself."""
    canvas = _new_canvas(target, TRANSPARENT)

    backdrop = image.resize(target.size, Image.Resampling.LANCZOS)
    backdrop = backdrop.filter(ImageFilter.GaussianBlur(radius=BACKDROP_BLUR_RADIUS))
    canvas.alpha_composite(backdrop)

    placement = contain_placement(image.size, target.size)
    logger.debug("Contain placement for %s: %s", target.name, placement)
    _draw(canvas, image, placement)
    return canvas


def encode_jpeg(
    canvas: Image.Image,
    matte: tuple[int, int, int] = (0, 0, 0),
    quality: int = JPEG_QUALITY,
) -> bytes:
    """Flatten any remaining transparency onto ``matte`` and encode as JPEG."""
    rgba = canvas if canvas.mode == "RGBA" else canvas.convert("RGBA")
    flat = Image.new("RGB", rgba.size, matte)
    flat.paste(rgba, mask=rgba.getchannel("A"))

    buf = io.BytesIO()
    try:
        flat.save(buf, format="JPEG", quality=quality)
    except (OSError, ValueError) as exc:
        raise EncodeError(f"Could not encode JPEG: {exc}") from exc
    return buf.getvalue()


def output_name(filename: str, target: TargetSpec) -> str:
    """``shirt.png`` at 500x500 becomes ``shirt_500x500.jpg``."""
    stem = PurePath(filename).stem if filename else "image"
    return f"{stem}_{target.width}x{target.height}.jpg"


def render_variant(image: Image.Image, target: TargetSpec, filename: str) -> RenderedVariant:
    """Render, encode and name a single target."""
    if target.treatment is Treatment.BLURRED_BACKDROP:
        canvas = render_blurred_backdrop(image, target)
        data = encode_jpeg(canvas, matte=(0, 0, 0))
    else:
        canvas = render_default(image, target)
        data = encode_jpeg(canvas, matte=(255, 255, 255))

    variant = RenderedVariant(
        name=output_name(filename, target),
        data=data,
        size=len(data),
        width=target.width,
        height=target.height,
        target=target.name,
    )
    logger.info("Rendered %s (%s, %d bytes)", variant.name, target.treatment.value, variant.size)
    return variant


def composite(
    source: Source,
    targets: Sequence[TargetSpec],
    filename: str | None = None,
    max_workers: int | None = None,
) -> list[RenderedVariant]:
    """Render one JPEG per target, in input order.

    Targets are rendered concurrently against the same decoded source. The
    first failure propagates and no partial list is returned.
    """
    filename = filename or getattr(source, "name", None) or "image"
    targets = list(targets)
    image = load_source(source)

    logger.info(
        "Compositing %s (%dx%d) into %d target(s)",
        filename, image.width, image.height, len(targets),
    )
    if not targets:
        return []
    if len(targets) == 1:
        return [render_variant(image, targets[0], filename)]

    with ThreadPoolExecutor(max_workers=max_workers or len(targets)) as pool:
        futures = [pool.submit(render_variant, image, target, filename) for target in targets]
        return [future.result() for future in futures]
