"""Batch pipeline: composite every upload and fetch its AI copy concurrently."""

from __future__ import annotations

import io
import json
import logging
import mimetypes
import time
import zipfile
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence, Union

from PIL import Image, UnidentifiedImageError

from fotix.compositor import composite
from fotix.content_generator import ProductContentGenerator, to_data_uri
from fotix.errors import FotixError
from fotix.models import ProcessedUpload, TargetSpec

logger = logging.getLogger(__name__)

# (filename, data) or (filename, data, reported_mime_type)
Upload = Union[tuple[str, bytes], tuple[str, bytes, Union[str, None]]]


def guess_mime_type(filename: str) -> str:
    mime, _ = mimetypes.guess_type(filename)
    return mime or "application/octet-stream"


def detect_mime_type(filename: str, data: bytes, reported: str | None = None) -> str:
    """Pick the image MIME type to send alongside the photo.

    A browser-reported ``image/*`` type wins, then the filename extension,
    then the format Pillow sniffs from the header.
    """
    if reported and reported.startswith("image/"):
        return reported
    guessed = guess_mime_type(filename)
    if guessed.startswith("image/"):
        return guessed
    try:
        with Image.open(io.BytesIO(data)) as img:
            return Image.MIME.get(img.format or "", guessed)
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return guessed


def process_upload(
    filename: str,
    data: bytes,
    targets: Sequence[TargetSpec],
    generator: ProductContentGenerator | None = None,
    description: str | None = None,
    mime_type: str | None = None,
) -> ProcessedUpload:
    """Run compositing and AI content generation for one file side by side.

    Either half failing raises; nothing partial is returned.
    """
    start = time.time()
    with ThreadPoolExecutor(max_workers=2) as pool:
        variants_future = pool.submit(composite, data, targets, filename)
        content_future = None
        if generator is not None:
            data_uri = to_data_uri(data, detect_mime_type(filename, data, mime_type))
            content_future = pool.submit(generator.generate_product_content, data_uri, description)

        variants = variants_future.result()
        content = content_future.result() if content_future is not None else None

    logger.info(
        "Processed %s: %d variant(s), ai=%s in %.2fs",
        filename, len(variants), content is not None, time.time() - start,
    )
    return ProcessedUpload(filename=filename, variants=variants, content=content)


def _process_or_record(
    upload: Upload,
    targets: Sequence[TargetSpec],
    generator: ProductContentGenerator | None,
    description: str | None,
) -> ProcessedUpload:
    filename, data = upload[0], upload[1]
    mime_type = upload[2] if len(upload) > 2 else None
    try:
        return process_upload(filename, data, targets, generator, description, mime_type)
    except FotixError as e:
        logger.error("Processing failed for %s: %s", filename, e)
        return ProcessedUpload(filename=filename, error=str(e))


def run_batch(
    uploads: Sequence[Upload],
    targets: Sequence[TargetSpec],
    generator: ProductContentGenerator | None = None,
    description: str | None = None,
    max_workers: int = 4,
) -> list[ProcessedUpload]:
    """Process every ``(filename, data[, mime_type])`` upload concurrently.

    Results come back in upload order. A file that fails carries its error
    message instead of aborting the rest of the batch.
    """
    if not uploads:
        return []

    logger.info("Starting batch: %d file(s) x %d target(s)", len(uploads), len(targets))
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(uploads)))) as pool:
        futures = [
            pool.submit(_process_or_record, upload, targets, generator, description)
            for upload in uploads
        ]
        results = [f.result() for f in futures]

    failed = sum(1 for r in results if not r.ok)
    logger.info("Batch complete: %d succeeded, %d failed", len(results) - failed, failed)
    return results


def archive_folder(index: int, result: ProcessedUpload) -> str:
    """Per-upload folder inside the export, unique even for identical filenames."""
    return f"{index + 1:02d}_{result.filename}"


def build_zip(results: Sequence[ProcessedUpload]) -> bytes:
    """Bundle every rendered variant plus the AI content as JSON."""
    zip_buf = io.BytesIO()
    content = {}
    with zipfile.ZipFile(zip_buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for index, result in enumerate(results):
            folder = archive_folder(index, result)
            written: set[str] = set()
            for variant in result.variants:
                path = f"{folder}/{variant.name}"
                if path in written:
                    # Same dimensions for two targets share a name
                    path = f"{folder}/{variant.target}/{variant.name}"
                written.add(path)
                zf.writestr(path, variant.data)
            if result.content is not None:
                content[folder] = result.content.to_dict()
        if content:
            zf.writestr("content.json", json.dumps(content, indent=2, ensure_ascii=False))
    return zip_buf.getvalue()
