from pathlib import Path
import io
import json
import sys
import threading
import zipfile
from types import SimpleNamespace

import pytest
from PIL import Image

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from fotix.content_generator import ProductContentGenerator
from fotix.errors import AiGenerationError, DecodeError
from fotix.models import ProductContent, TargetSpec
from fotix.pipeline import build_zip, detect_mime_type, guess_mime_type, process_upload, run_batch

TARGETS = [TargetSpec.site(120, 90), TargetSpec.erp(60, 60)]


def _png(size=(80, 40)):
    buf = io.BytesIO()
    Image.new("RGB", size, (120, 60, 30)).save(buf, format="PNG")
    return buf.getvalue()


class FakeGenerator:
    def __init__(self, fail_for=None):
        self.fail_for = fail_for
        self.calls = []
        self._lock = threading.Lock()

    def generate_product_content(self, photo_data_uri, description=None):
        with self._lock:
            self.calls.append((photo_data_uri, description))
        if self.fail_for and self.fail_for in description:
            raise AiGenerationError("Failed to generate AI content: model overloaded")
        return ProductContent(title="Tote Bag", description="Canvas tote.", seo_tags=["tote"])


def test_process_upload_runs_compositing_and_ai():
    generator = FakeGenerator()
    result = process_upload("bag.png", _png(), TARGETS, generator=generator, description="canvas")

    assert result.ok
    assert [v.name for v in result.variants] == ["bag_120x90.jpg", "bag_60x60.jpg"]
    assert result.content.title == "Tote Bag"
    uri, description = generator.calls[0]
    assert uri.startswith("data:image/png;base64,")
    assert description == "canvas"


def test_process_upload_without_generator_skips_ai():
    result = process_upload("bag.png", _png(), TARGETS)
    assert result.content is None
    assert len(result.variants) == 2


def test_process_upload_fails_fast_on_bad_image():
    with pytest.raises(DecodeError):
        process_upload("broken.png", b"garbage", TARGETS, generator=FakeGenerator())


def test_batch_records_per_file_failures_in_upload_order():
    uploads = [("a.png", _png()), ("broken.png", b"garbage"), ("c.png", _png((30, 90)))]
    results = run_batch(uploads, TARGETS, generator=FakeGenerator(), max_workers=3)

    assert [r.filename for r in results] == ["a.png", "broken.png", "c.png"]
    assert [r.ok for r in results] == [True, False, True]
    assert "Could not decode image" in results[1].error
    assert results[1].variants == []
    assert results[2].variants[0].name == "c_120x90.jpg"


def test_batch_surfaces_ai_failure_message():
    results = run_batch([("a.png", _png())], TARGETS, generator=FakeGenerator(fail_for="x"), description="x")
    assert results[0].error == "Failed to generate AI content: model overloaded"
    assert results[0].variants == []


def test_empty_batch():
    assert run_batch([], TARGETS) == []


def test_guess_mime_type():
    assert guess_mime_type("photo.JPG") == "image/jpeg"
    assert guess_mime_type("photo") == "application/octet-stream"


def test_malformed_model_reply_fails_each_file_without_aborting_batch():
    class SeoTagsAsNumber:
        def generate_content(self, **kwargs):
            return SimpleNamespace(text=json.dumps({"title": "t", "description": "d", "seoTags": 5}))

    generator = ProductContentGenerator(api_key="test-key")
    generator._client = SimpleNamespace(models=SeoTagsAsNumber())

    results = run_batch([("a.png", _png()), ("b.png", _png())], TARGETS, generator=generator)
    assert [r.filename for r in results] == ["a.png", "b.png"]
    assert all(not r.ok for r in results)
    assert all("malformed reply" in r.error for r in results)


def test_zip_keeps_every_variant_of_same_stem_uploads():
    uploads = [("shirt.png", _png()), ("shirt.jpg", _png((40, 80)))]
    results = run_batch(uploads, TARGETS, generator=FakeGenerator())

    with zipfile.ZipFile(io.BytesIO(build_zip(results))) as zf:
        names = zf.namelist()
        content = json.loads(zf.read("content.json"))

    assert len(names) == len(set(names))
    assert sorted(names) == [
        "01_shirt.png/shirt_120x90.jpg",
        "01_shirt.png/shirt_60x60.jpg",
        "02_shirt.jpg/shirt_120x90.jpg",
        "02_shirt.jpg/shirt_60x60.jpg",
        "content.json",
    ]
    assert set(content) == {"01_shirt.png", "02_shirt.jpg"}


def test_zip_separates_targets_sharing_dimensions():
    results = run_batch([("x.png", _png())], [TargetSpec.site(64, 64), TargetSpec.erp(64, 64)])
    with zipfile.ZipFile(io.BytesIO(build_zip(results))) as zf:
        assert zf.namelist() == ["01_x.png/x_64x64.jpg", "01_x.png/erp/x_64x64.jpg"]


def test_detect_mime_type_prefers_reported_then_name_then_header():
    data = _png()
    assert detect_mime_type("photo.png", data, "image/webp") == "image/webp"
    assert detect_mime_type("photo.jpg", data, "application/octet-stream") == "image/jpeg"
    assert detect_mime_type("photo", data) == "image/png"
    assert detect_mime_type("photo", b"garbage") == "application/octet-stream"


def test_extensionless_upload_sends_sniffed_image_type():
    generator = FakeGenerator()
    run_batch([("photo", _png())], TARGETS, generator=generator)
    uri, _ = generator.calls[0]
    assert uri.startswith("data:image/png;base64,")


def test_reported_type_reaches_the_model():
    generator = FakeGenerator()
    run_batch([("photo.bin", _png(), "image/png")], TARGETS, generator=generator)
    assert generator.calls[0][0].startswith("data:image/png;base64,")
