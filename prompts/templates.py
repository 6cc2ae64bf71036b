"""Prompt templates for product copy generation with Gemini."""

from __future__ import annotations

from string import Template

# --- System instructions ---

PRODUCT_DETAILS_SYSTEM_PROMPT = """\
You are an AI assistant specializing in generating e-commerce product details.
Write copy that is accurate, persuasive and ready to paste into a storefront.

Rules:
- The title is short (under 80 characters) and names the product plainly
- The description is 2-4 sentences covering material, use and key features
- Provide between 5 and 13 SEO tags, lowercase, no hashtags, no duplicates
- Never invent brand names, sizes or prices that are not visible or stated
"""

CAMPAIGN_SYSTEM_PROMPT = """\
You are a marketing specialist. Generate creative marketing campaign ideas for
the product provided. Each idea must be concise and actionable.
"""

# --- User prompts ---

PRODUCT_DETAILS_FROM_IMAGE = Template(
    "Based on the product image, generate a title, description, and SEO tags "
    "for the product."
)

PRODUCT_DETAILS_WITH_DESCRIPTION = Template(
    "Generate a title, description, and SEO tags for the product.\n\n"
    "Seller description (treat as ground truth, it overrides anything you infer):\n"
    "$description\n\n"
    "Use the product image only as visual context for details the description "
    "does not cover."
)

CAMPAIGN_IDEAS = Template(
    "Product description: $description\n\n"
    "Provide a list of marketing campaign ideas to improve the promotion of the "
    "product shown in the image."
)

# Structured reply shapes sent as response_schema
PRODUCT_DETAILS_SCHEMA: dict = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING", "description": "The title of the product."},
        "description": {"type": "STRING", "description": "The description of the product."},
        "seoTags": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "SEO tags for the product.",
        },
    },
    "required": ["title", "description", "seoTags"],
}

CAMPAIGN_IDEAS_SCHEMA: dict = {
    "type": "OBJECT",
    "properties": {
        "campaignIdeas": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "Marketing campaign ideas for the product.",
        },
    },
    "required": ["campaignIdeas"],
}


def product_details_prompt(description: str | None = None) -> str:
    """Pick the prompt variant depending on whether the seller described the product."""
    if description and description.strip():
        return PRODUCT_DETAILS_WITH_DESCRIPTION.safe_substitute(description=description.strip())
    return PRODUCT_DETAILS_FROM_IMAGE.safe_substitute()


def campaign_ideas_prompt(description: str | None = None) -> str:
    text = description.strip() if description and description.strip() else "(not provided)"
    return CAMPAIGN_IDEAS.safe_substitute(description=text)
