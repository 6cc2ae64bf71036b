"""Product copy and SEO tag generation using Google Gemini."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from typing import Any

from fotix.config import DEFAULT_GEMINI_MODEL, GEMINI_KEY_ENV_VARS, resolve_api_key
from fotix.errors import AiGenerationError
from fotix.models import ProductContent
from prompts.templates import (
    CAMPAIGN_IDEAS_SCHEMA,
    CAMPAIGN_SYSTEM_PROMPT,
    PRODUCT_DETAILS_SCHEMA,
    PRODUCT_DETAILS_SYSTEM_PROMPT,
    campaign_ideas_prompt,
    product_details_prompt,
)

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<payload>.*)$", re.DOTALL)


def to_data_uri(data: bytes, mime_type: str) -> str:
    """Embed raw bytes as ``data:<mime>;base64,<payload>``."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def parse_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a base64 data URI into its MIME type and decoded bytes."""
    match = _DATA_URI_RE.match(uri.strip()) if uri else None
    if not match:
        raise ValueError("Expected a data URI of the form 'data:<mimetype>;base64,<encoded_data>'")
    try:
        payload = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Invalid base64 payload in data URI: {exc}") from exc
    if not payload:
        raise ValueError("Data URI carries an empty payload")
    return match.group("mime"), payload


class ProductContentGenerator:
    """Asks Gemini for a title, description and SEO tags from a product photo."""

    def __init__(self, api_key: str | None = None, model: str = DEFAULT_GEMINI_MODEL) -> None:
        self.api_key = resolve_api_key(api_key, *GEMINI_KEY_ENV_VARS)
        self.model = model
        self._client = None

    def _get_client(self):
        if self._client is None:
            from google import genai
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def _ask(self, photo_data_uri: str, prompt: str, system_prompt: str, schema: dict) -> dict[str, Any]:
        if not self.available:
            raise AiGenerationError(
                "Failed to generate AI content: Gemini API key is not configured. "
                "Set GEMINI_API_KEY or pass api_key."
            )

        try:
            mime_type, image_bytes = parse_data_uri(photo_data_uri)
        except ValueError as exc:
            raise AiGenerationError(f"Failed to generate AI content: {exc}") from exc

        try:
            from google.genai import types

            client = self._get_client()
            response = client.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                    prompt,
                ],
                config={
                    "system_instruction": system_prompt,
                    "temperature": 0.7,
                    "response_mime_type": "application/json",
                    "response_schema": schema,
                },
            )
            raw = (response.text or "").strip()
        except Exception as e:
            logger.error("Gemini request failed: %s", e)
            raise AiGenerationError(f"Failed to generate AI content: {e}") from e

        if not raw:
            raise AiGenerationError("Failed to generate AI content: the model returned an empty response.")
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Unparsable Gemini reply: %.200s", raw)
            raise AiGenerationError(f"Failed to generate AI content: reply was not valid JSON ({exc})") from exc
        if not isinstance(data, dict):
            raise AiGenerationError("Failed to generate AI content: reply was not a JSON object.")
        return data

    def generate_product_content(
        self, photo_data_uri: str, description: str | None = None
    ) -> ProductContent:
        """Return title, description and SEO tags for the pictured product.

        A non-empty ``description`` is treated as ground truth and the image as
        visual context. Any failure raises :class:`AiGenerationError`.
        """
        data = self._ask(
            photo_data_uri,
            product_details_prompt(description),
            PRODUCT_DETAILS_SYSTEM_PROMPT,
            PRODUCT_DETAILS_SCHEMA,
        )
        try:
            content = ProductContent.from_dict(data)
        except KeyError as exc:
            raise AiGenerationError(f"Failed to generate AI content: reply is missing {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise AiGenerationError(f"Failed to generate AI content: malformed reply ({exc})") from exc

        logger.info("Generated product content: %r (%d tags)", content.title, len(content.seo_tags))
        return content

    def suggest_campaign_ideas(self, photo_data_uri: str, description: str | None = None) -> list[str]:
        """Return short, actionable marketing campaign ideas for the product."""
        data = self._ask(
            photo_data_uri,
            campaign_ideas_prompt(description),
            CAMPAIGN_SYSTEM_PROMPT,
            CAMPAIGN_IDEAS_SCHEMA,
        )
        ideas = data.get("campaignIdeas")
        if not isinstance(ideas, list):
            raise AiGenerationError("Failed to generate AI content: reply is missing 'campaignIdeas'")
        return [str(i).strip() for i in ideas if i is not None and str(i).strip()]
