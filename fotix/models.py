"""Data models for the product image and content kit."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Treatment(str, Enum):
    DEFAULT = "default"
    BLURRED_BACKDROP = "blurred_backdrop"


# Form limits and defaults for the two surfaces
MIN_DIMENSION = 50
MAX_DIMENSION = 4000
MAX_UPLOAD_MB = 10

DEFAULT_SITE_SIZE: tuple[int, int] = (1080, 1080)
DEFAULT_ERP_SIZE: tuple[int, int] = (400, 400)

JPEG_MIME_TYPE = "image/jpeg"


@dataclass(frozen=True)
class TargetSpec:
    """One requested rendition of the source photo."""

    name: str
    width: int
    height: int
    treatment: Treatment = Treatment.DEFAULT

    def __post_init__(self) -> None:
        for label, value in (("width", self.width), ("height", self.height)):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(
                    f"TargetSpec {self.name!r}: {label} must be a positive integer, got {value!r}"
                )
        # Accept plain strings such as "blurred_backdrop"
        object.__setattr__(self, "treatment", Treatment(self.treatment))

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def aspect(self) -> float:
        return self.width / self.height

    @classmethod
    def site(cls, width: int, height: int) -> TargetSpec:
        """Storefront image: cover the canvas, white behind transparency."""
        return cls("site", width, height, Treatment.DEFAULT)

    @classmethod
    def erp(cls, width: int, height: int) -> TargetSpec:
        """Catalog/ERP image: sharp photo over a blurred stretched copy."""
        return cls("erp", width, height, Treatment.BLURRED_BACKDROP)


@dataclass(frozen=True)
class RenderedVariant:
    name: str
    data: bytes
    size: int
    width: int
    height: int
    target: str = ""

    @property
    def mime_type(self) -> str:
        return JPEG_MIME_TYPE

    @property
    def size_label(self) -> str:
        """Human readable byte size, e.g. ``"182.4 KB"``."""
        if self.size < 1024:
            return f"{self.size} B"
        if self.size < 1024 * 1024:
            return f"{self.size / 1024:.1f} KB"
        return f"{self.size / (1024 * 1024):.2f} MB"


@dataclass
class ProductContent:
    title: str
    description: str
    seo_tags: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProductContent:
        """Build from a model reply, accepting ``seoTags`` or ``seo_tags``.

        Raises ``KeyError`` for a missing field and ``ValueError`` for a
        field of the wrong type.
        """
        for key in ("title", "description"):
            if not isinstance(data[key], str):
                raise ValueError(f"{key!r} must be a string, got {type(data[key]).__name__}")

        tags_raw = data.get("seoTags", data.get("seo_tags", []))
        if isinstance(tags_raw, str):
            tags_raw = tags_raw.split(",")
        if not isinstance(tags_raw, list):
            raise ValueError(f"'seoTags' must be a list, got {type(tags_raw).__name__}")
        tags = [str(t).strip() for t in tags_raw if t is not None and str(t).strip()]
        return cls(
            title=data["title"].strip(),
            description=data["description"].strip(),
            seo_tags=tags,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "seoTags": list(self.seo_tags),
        }


@dataclass
class ProcessedUpload:
    """Everything produced for one uploaded file in a batch."""

    filename: str
    variants: list[RenderedVariant] = field(default_factory=list)
    content: ProductContent | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def total_bytes(self) -> int:
        return sum(v.size for v in self.variants)
