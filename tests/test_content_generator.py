from pathlib import Path
import json
import sys
from types import SimpleNamespace

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from fotix.content_generator import ProductContentGenerator, parse_data_uri, to_data_uri
from fotix.errors import AiGenerationError

PHOTO_URI = to_data_uri(b"\x89PNG fake bytes", "image/png")


class FakeModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


def _generator(models):
    generator = ProductContentGenerator(api_key="test-key", model="gemini-test")
    generator._client = SimpleNamespace(models=models)
    return generator


def test_generates_structured_product_content():
    models = FakeModels(text=json.dumps({
        "title": "Linen Shirt",
        "description": "A breathable shirt for summer.",
        "seoTags": ["linen shirt", "summer shirt", ""],
    }))
    content = _generator(models).generate_product_content(PHOTO_URI)

    assert content.title == "Linen Shirt"
    assert content.seo_tags == ["linen shirt", "summer shirt"]

    call = models.calls[0]
    assert call["model"] == "gemini-test"
    assert call["config"]["response_mime_type"] == "application/json"
    image_part, prompt = call["contents"]
    assert image_part.inline_data.mime_type == "image/png"
    assert image_part.inline_data.data == b"\x89PNG fake bytes"
    assert "Based on the product image" in prompt


def test_description_is_sent_as_ground_truth():
    models = FakeModels(text='{"title": "t", "description": "d", "seoTags": []}')
    _generator(models).generate_product_content(PHOTO_URI, description="Blue 100% cotton mug")

    prompt = models.calls[0]["contents"][1]
    assert "Blue 100% cotton mug" in prompt
    assert "ground truth" in prompt


def test_api_failure_message_is_passed_through():
    models = FakeModels(error=RuntimeError("quota exceeded"))
    with pytest.raises(AiGenerationError, match="Failed to generate AI content: quota exceeded"):
        _generator(models).generate_product_content(PHOTO_URI)
    assert len(models.calls) == 1


@pytest.mark.parametrize("reply", ["", "not json", "[1, 2]", '{"description": "d", "seoTags": []}'])
def test_unusable_replies_raise(reply):
    with pytest.raises(AiGenerationError):
        _generator(FakeModels(text=reply)).generate_product_content(PHOTO_URI)


def test_malformed_data_uri_never_reaches_the_model():
    models = FakeModels(text="{}")
    with pytest.raises(AiGenerationError, match="data URI"):
        _generator(models).generate_product_content("https://example.com/shirt.png")
    assert models.calls == []


def test_missing_api_key(monkeypatch):
    for name in ("GEMINI_API_KEY", "CHAVE_API_GEMINI", "GOOGLE_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    generator = ProductContentGenerator(api_key=None)
    assert generator.available is False
    with pytest.raises(AiGenerationError, match="API key"):
        generator.generate_product_content(PHOTO_URI)


def test_campaign_ideas():
    models = FakeModels(text='{"campaignIdeas": ["Summer flash sale", " ", "Influencer unboxing"]}')
    ideas = _generator(models).suggest_campaign_ideas(PHOTO_URI, "Linen shirt")
    assert ideas == ["Summer flash sale", "Influencer unboxing"]
    assert "Linen shirt" in models.calls[0]["contents"][1]


def test_campaign_ideas_require_list():
    with pytest.raises(AiGenerationError, match="campaignIdeas"):
        _generator(FakeModels(text='{"ideas": []}')).suggest_campaign_ideas(PHOTO_URI)


def test_parse_data_uri():
    assert parse_data_uri(PHOTO_URI) == ("image/png", b"\x89PNG fake bytes")
    with pytest.raises(ValueError):
        parse_data_uri("data:image/png;base64,@@@")
    with pytest.raises(ValueError):
        parse_data_uri("data:image/png;base64,")


@pytest.mark.parametrize("reply", [
    '{"title": "t", "description": "d", "seoTags": null}',
    '{"title": "t", "description": "d", "seoTags": 5}',
    '{"title": null, "description": "d", "seoTags": []}',
    '{"title": "t", "description": 3, "seoTags": []}',
])
def test_wrongly_typed_fields_raise_generation_error(reply):
    with pytest.raises(AiGenerationError, match="malformed reply"):
        _generator(FakeModels(text=reply)).generate_product_content(PHOTO_URI)
