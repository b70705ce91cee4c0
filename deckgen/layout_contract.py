"""Per-layout zone contract shared by every renderer target.

Each target (live view, HTML export, pptx deck, print) draws slides with its
own code. This module only describes *which* zones a slide must produce, in
which order, and what stands in for a missing optional field. The contract
tests render every layout on every target and compare against
:func:`expected_zones`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .slide_models import Slide, SlideLayout, Stat

# Zone names. Renderers tag their output with these.
TITLE = "title"
SUBTITLE = "subtitle"
CONTENT = "content"
BULLETS = "bullets"
MEDIA = "media"
COLUMN_LEFT = "column-left"
COLUMN_RIGHT = "column-right"
QUOTE_MARK = "quote-mark"
QUOTE = "quote"
AUTHOR = "author"
STATS = "stats"
ICON = "icon"
CHIPS = "chips"

# Placeholder kinds.
ICON_PLACEHOLDER = "icon"
SOLID_PLACEHOLDER = "solid"
STAT_PLACEHOLDER = "stat-card"

CONTACT_CHIPS: Tuple[str, ...] = ("Email", "LinkedIn", "Website")
THANK_YOU_FALLBACK = "Thank you!"
PLACEHOLDER_STAT = Stat(value="N/A", label="No data yet")


@dataclass(frozen=True)
class ZoneSpec:
    """One zone of a layout.

    ``placeholder`` names what a renderer draws when the zone's field is
    empty. Optional zones without a placeholder are simply omitted.
    """

    name: str
    required: bool = False
    placeholder: Optional[str] = None


@dataclass(frozen=True)
class LayoutContract:
    layout: SlideLayout
    zones: Tuple[ZoneSpec, ...]

    @property
    def zone_names(self) -> Tuple[str, ...]:
        return tuple(zone.name for zone in self.zones)

    @property
    def required_zones(self) -> Tuple[str, ...]:
        return tuple(zone.name for zone in self.zones if zone.required)

    def zone(self, name: str) -> ZoneSpec:
        for zone in self.zones:
            if zone.name == name:
                return zone
        raise KeyError(f"{self.layout.value} has no zone {name!r}")


_TEXT_BLOCK = (ZoneSpec(TITLE, required=True), ZoneSpec(CONTENT), ZoneSpec(BULLETS))

LAYOUT_CONTRACTS: Dict[SlideLayout, LayoutContract] = {
    SlideLayout.TITLE: LayoutContract(
        SlideLayout.TITLE,
        (ZoneSpec(TITLE, required=True), ZoneSpec(SUBTITLE), ZoneSpec(CONTENT)),
    ),
    SlideLayout.CONTENT: LayoutContract(SlideLayout.CONTENT, _TEXT_BLOCK),
    SlideLayout.CONTENT_IMAGE: LayoutContract(
        SlideLayout.CONTENT_IMAGE,
        _TEXT_BLOCK + (ZoneSpec(MEDIA, placeholder=ICON_PLACEHOLDER),),
    ),
    SlideLayout.IMAGE_CONTENT: LayoutContract(
        SlideLayout.IMAGE_CONTENT,
        (ZoneSpec(MEDIA, placeholder=ICON_PLACEHOLDER),) + _TEXT_BLOCK,
    ),
    SlideLayout.TWO_COLUMN: LayoutContract(
        SlideLayout.TWO_COLUMN,
        (
            ZoneSpec(TITLE, required=True),
            ZoneSpec(COLUMN_LEFT, required=True),
            ZoneSpec(COLUMN_RIGHT, required=True),
        ),
    ),
    SlideLayout.FULL_IMAGE: LayoutContract(
        SlideLayout.FULL_IMAGE,
        (
            ZoneSpec(MEDIA, placeholder=SOLID_PLACEHOLDER),
            ZoneSpec(TITLE, required=True),
            ZoneSpec(CONTENT),
        ),
    ),
    SlideLayout.QUOTE: LayoutContract(
        SlideLayout.QUOTE,
        (ZoneSpec(QUOTE_MARK, required=True), ZoneSpec(QUOTE, required=True), ZoneSpec(AUTHOR)),
    ),
    SlideLayout.STATS: LayoutContract(
        SlideLayout.STATS,
        (
            ZoneSpec(TITLE, required=True),
            ZoneSpec(CONTENT),
            ZoneSpec(STATS, required=True, placeholder=STAT_PLACEHOLDER),
        ),
    ),
    SlideLayout.THANK_YOU: LayoutContract(
        SlideLayout.THANK_YOU,
        (
            ZoneSpec(ICON, required=True),
            ZoneSpec(TITLE, required=True),
            ZoneSpec(CONTENT),
            ZoneSpec(CHIPS, required=True),
        ),
    ),
}


def contract_for(layout: SlideLayout) -> LayoutContract:
    """Contract for ``layout``; ``title-subtitle`` shares the title contract."""

    return LAYOUT_CONTRACTS.get(layout.canonical, LAYOUT_CONTRACTS[SlideLayout.CONTENT])


# ----- Field accessors with the documented fallbacks -----


def quote_text(slide: Slide) -> str:
    return slide.quote or slide.content or slide.title or ""


def quote_author(slide: Slide) -> Optional[str]:
    return slide.quote_author or slide.subtitle or None


def thank_you_title(slide: Slide) -> str:
    return slide.title or THANK_YOU_FALLBACK


def display_stats(slide: Slide) -> Tuple[Stat, ...]:
    """Stats in stored order, or a single placeholder card."""

    return slide.stats or (PLACEHOLDER_STAT,)


def stat_grid_columns(count: int) -> int:
    """Stat grid width: three columns up to three stats, four beyond that."""

    return 3 if count <= 3 else 4


def split_columns(slide: Slide) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """Left and right column text for ``two-column`` slides.

    The content paragraph fills the left column and the bullets the right.
    Without a paragraph the bullets are split in half, first half left.
    """

    bullets = tuple(slide.bullet_points)
    if slide.content:
        return (slide.content,), bullets
    middle = (len(bullets) + 1) // 2
    return bullets[:middle], bullets[middle:]


def zone_has_content(slide: Slide, zone: str) -> bool:
    if zone == SUBTITLE:
        return bool(slide.subtitle)
    if zone == CONTENT:
        return bool(slide.content)
    if zone == BULLETS:
        return bool(slide.bullet_points)
    if zone == MEDIA:
        return slide.has_image
    if zone == AUTHOR:
        return bool(quote_author(slide))
    if zone == STATS:
        return bool(slide.stats)
    return True


def composition_order(slide: Slide) -> List[str]:
    """Zone names in reading order for this slide's variant.

    Variant 2 of ``content-image`` puts the media first. Variants never add
    or remove zones.
    """

    names = list(contract_for(slide.layout).zone_names)
    if slide.layout is SlideLayout.CONTENT_IMAGE and slide.layout_variant == 2:
        names.remove(MEDIA)
        names.insert(0, MEDIA)
    return names


def expected_zones(slide: Slide) -> List[str]:
    """Zones a renderer must emit for ``slide``, placeholders included."""

    contract = contract_for(slide.layout)
    zones = []
    for name in composition_order(slide):
        zone_spec = contract.zone(name)
        if zone_spec.required or zone_spec.placeholder or zone_has_content(slide, name):
            zones.append(name)
    return zones


def uses_placeholder(slide: Slide, zone: str) -> bool:
    zone_spec = contract_for(slide.layout).zone(zone)
    return zone_spec.placeholder is not None and not zone_has_content(slide, zone)
