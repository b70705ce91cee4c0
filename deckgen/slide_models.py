"""Canonical presentation model shared by the assembler and every renderer."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple


class SlideLayout(str, Enum):
    TITLE = "title"
    TITLE_SUBTITLE = "title-subtitle"
    CONTENT = "content"
    CONTENT_IMAGE = "content-image"
    IMAGE_CONTENT = "image-content"
    TWO_COLUMN = "two-column"
    FULL_IMAGE = "full-image"
    QUOTE = "quote"
    STATS = "stats"
    THANK_YOU = "thank-you"

    @classmethod
    def coerce(cls, value: Any, default: "SlideLayout" = None) -> "SlideLayout":
        """Map free-form layout names onto a known layout.

        Unknown names fall back to ``default`` (``content`` when omitted).
        """

        fallback = default or cls.CONTENT
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return fallback
        normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
        try:
            return cls(normalized)
        except ValueError:
            return fallback

    @property
    def canonical(self) -> "SlideLayout":
        """``title-subtitle`` is rendered exactly like ``title``."""

        if self is SlideLayout.TITLE_SUBTITLE:
            return SlideLayout.TITLE
        return self


IMAGE_LAYOUTS = frozenset(
    {SlideLayout.CONTENT_IMAGE, SlideLayout.IMAGE_CONTENT, SlideLayout.FULL_IMAGE}
)


class TitleAlignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class ImageSource(str, Enum):
    GENERATIVE = "generative"
    STOCK = "stock"


class PresentationStyle(str, Enum):
    PROFESSIONAL = "professional"
    CREATIVE = "creative"
    MINIMAL = "minimal"
    ACADEMIC = "academic"


class AspectRatio(str, Enum):
    WIDE = "16:9"
    STANDARD = "4:3"
    WIDE_10 = "16:10"
    PORTRAIT = "9:16"

    @property
    def ratio(self) -> float:
        width, height = self.value.split(":")
        return int(width) / int(height)


VARIANTS: Tuple[int, ...] = (1, 2, 3)


def new_identity(prefix: str = "slide") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return _now()


@dataclass(frozen=True, slots=True)
class Stat:
    """One stat card: a short value label and its description."""

    value: str
    label: str

    def to_dict(self) -> Dict[str, str]:
        return {"value": self.value, "label": self.label}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Stat":
        return cls(value=str(data.get("value", "")), label=str(data.get("label", "")))


@dataclass(frozen=True, slots=True)
class SlideBackground:
    type: str = "solid"
    value: str = "transparent"

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type, "value": self.value}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SlideBackground":
        data = data or {}
        return cls(type=data.get("type", "solid"), value=data.get("value", "transparent"))


@dataclass(frozen=True, slots=True)
class SlideTransition:
    type: str = "fade"
    duration: float = 0.5

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "duration": self.duration}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SlideTransition":
        data = data or {}
        return cls(type=data.get("type", "fade"), duration=float(data.get("duration", 0.5)))


@dataclass(frozen=True, slots=True)
class Slide:
    """A single slide.

    ``layout_variant`` and ``title_alignment`` are always set; the assembler
    fills them when the AI leaves them out.
    """

    id: str
    title: str
    layout: SlideLayout = SlideLayout.CONTENT
    layout_variant: int = 1
    title_alignment: TitleAlignment = TitleAlignment.LEFT
    subtitle: Optional[str] = None
    content: Optional[str] = None
    bullet_points: Tuple[str, ...] = ()
    image_url: Optional[str] = None
    image_prompt: Optional[str] = None
    image_source: Optional[ImageSource] = None
    quote: Optional[str] = None
    quote_author: Optional[str] = None
    stats: Tuple[Stat, ...] = ()
    notes: Optional[str] = None
    background: SlideBackground = field(default_factory=SlideBackground)
    transition: SlideTransition = field(default_factory=SlideTransition)

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)

    def with_image(self, url: Optional[str], source: Optional[ImageSource]) -> "Slide":
        return replace(self, image_url=url, image_source=source if url else None)

    def content_fields(self) -> Dict[str, Any]:
        """Every field except identity, for equality checks across runs."""

        payload = self.to_dict()
        payload.pop("id")
        return payload

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "subtitle": self.subtitle,
            "content": self.content,
            "bulletPoints": list(self.bullet_points),
            "layout": self.layout.value,
            "layoutVariant": self.layout_variant,
            "titleAlignment": self.title_alignment.value,
            "imageUrl": self.image_url,
            "imagePrompt": self.image_prompt,
            "imageSource": self.image_source.value if self.image_source else None,
            "quote": self.quote,
            "quoteAuthor": self.quote_author,
            "stats": [stat.to_dict() for stat in self.stats],
            "notes": self.notes,
            "background": self.background.to_dict(),
            "transition": self.transition.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Slide":
        image_source = data.get("imageSource")
        variant = data.get("layoutVariant")
        return cls(
            id=data.get("id") or new_identity(),
            title=data.get("title", ""),
            subtitle=data.get("subtitle"),
            content=data.get("content"),
            bullet_points=tuple(data.get("bulletPoints") or ()),
            layout=SlideLayout.coerce(data.get("layout")),
            layout_variant=int(variant) if variant in VARIANTS else 1,
            title_alignment=TitleAlignment(data.get("titleAlignment") or "left"),
            image_url=data.get("imageUrl"),
            image_prompt=data.get("imagePrompt"),
            image_source=ImageSource(image_source) if image_source else None,
            quote=data.get("quote"),
            quote_author=data.get("quoteAuthor"),
            stats=tuple(Stat.from_dict(item) for item in data.get("stats") or ()),
            notes=data.get("notes"),
            background=SlideBackground.from_dict(data.get("background")),
            transition=SlideTransition.from_dict(data.get("transition")),
        )


@dataclass(frozen=True, slots=True)
class Theme:
    """Color and font tokens. Owned by the theme catalog, read by renderers."""

    id: str = "midnight"
    name: str = "Midnight"
    primary_color: str = "#6366F1"
    secondary_color: str = "#8B5CF6"
    accent_color: str = "#22D3EE"
    background_color: str = "#0F172A"
    surface_color: str = "#1E293B"
    text_color: str = "#F8FAFC"
    text_muted: str = "#94A3B8"
    font_family: str = "Inter, sans-serif"
    heading_font: str = "Inter, sans-serif"

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "primaryColor": self.primary_color,
            "secondaryColor": self.secondary_color,
            "accentColor": self.accent_color,
            "backgroundColor": self.background_color,
            "surfaceColor": self.surface_color,
            "textColor": self.text_color,
            "textMuted": self.text_muted,
            "fontFamily": self.font_family,
            "headingFont": self.heading_font,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Theme":
        if not data:
            return DEFAULT_THEME
        defaults = DEFAULT_THEME
        return cls(
            id=data.get("id", defaults.id),
            name=data.get("name", defaults.name),
            primary_color=data.get("primaryColor", defaults.primary_color),
            secondary_color=data.get("secondaryColor", defaults.secondary_color),
            accent_color=data.get("accentColor", defaults.accent_color),
            background_color=data.get("backgroundColor", defaults.background_color),
            surface_color=data.get("surfaceColor", defaults.surface_color),
            text_color=data.get("textColor", defaults.text_color),
            text_muted=data.get("textMuted", defaults.text_muted),
            font_family=data.get("fontFamily", defaults.font_family),
            heading_font=data.get("headingFont", defaults.heading_font),
        )


DEFAULT_THEME = Theme()


@dataclass(frozen=True, slots=True)
class Presentation:
    """An ordered deck of slides.

    Values are immutable; every edit helper returns a new ``Presentation``.
    """

    id: str
    title: str
    slides: Tuple[Slide, ...] = ()
    description: Optional[str] = None
    theme: Theme = DEFAULT_THEME
    aspect_ratio: AspectRatio = AspectRatio.WIDE
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    # ------------------------------------------------------------------
    # immutable updates
    # ------------------------------------------------------------------
    def with_slides(self, slides: Iterable[Slide]) -> "Presentation":
        return replace(self, slides=tuple(slides), updated_at=_now())

    def replace_slide(self, slide: Slide) -> "Presentation":
        index = self.index_of(slide.id)
        slides = list(self.slides)
        slides[index] = slide
        return self.with_slides(slides)

    def insert_slide(self, slide: Slide, position: Optional[int] = None) -> "Presentation":
        slides = list(self.slides)
        slides.insert(len(slides) if position is None else position, slide)
        return self.with_slides(slides)

    def remove_slide(self, slide_id: str) -> "Presentation":
        index = self.index_of(slide_id)
        return self.with_slides(self.slides[:index] + self.slides[index + 1 :])

    def move_slide(self, slide_id: str, new_position: int) -> "Presentation":
        slides = list(self.slides)
        slide = slides.pop(self.index_of(slide_id))
        new_position = max(0, min(new_position, len(slides)))
        slides.insert(new_position, slide)
        return self.with_slides(slides)

    # ------------------------------------------------------------------
    # lookup helpers
    # ------------------------------------------------------------------
    def index_of(self, slide_id: str) -> int:
        for idx, slide in enumerate(self.slides):
            if slide.id == slide_id:
                return idx
        raise KeyError(f"Unknown slide id: {slide_id}")

    def get_slide(self, slide_id: str) -> Optional[Slide]:
        return next((slide for slide in self.slides if slide.id == slide_id), None)

    # ------------------------------------------------------------------
    # serialisation
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "slides": [slide.to_dict() for slide in self.slides],
            "theme": self.theme.to_dict(),
            "aspectRatio": self.aspect_ratio.value,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Presentation":
        return cls(
            id=data.get("id") or new_identity("presentation"),
            title=data.get("title", ""),
            description=data.get("description"),
            slides=tuple(Slide.from_dict(item) for item in data.get("slides", [])),
            theme=Theme.from_dict(data.get("theme")),
            aspect_ratio=AspectRatio(data.get("aspectRatio") or AspectRatio.WIDE.value),
            created_at=_parse_timestamp(data.get("createdAt")),
            updated_at=_parse_timestamp(data.get("updatedAt")),
        )


def slides_equal_ignoring_identity(left: Sequence[Slide], right: Sequence[Slide]) -> bool:
    if len(left) != len(right):
        return False
    return all(a.content_fields() == b.content_fields() for a, b in zip(left, right))


def ordered_ids(slides: Sequence[Slide]) -> List[str]:
    return [slide.id for slide in slides]
