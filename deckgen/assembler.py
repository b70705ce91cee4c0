"""Map decoded slide records onto canonical :class:`Slide` values."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .slide_models import (
    IMAGE_LAYOUTS,
    VARIANTS,
    Slide,
    SlideLayout,
    Stat,
    TitleAlignment,
    new_identity,
)

LOGGER = logging.getLogger(__name__)

ALIGNMENT_CYCLE: Tuple[TitleAlignment, ...] = (
    TitleAlignment.LEFT,
    TitleAlignment.CENTER,
    TitleAlignment.RIGHT,
)

# Keys the AI has been seen to use for the same field.
KEYWORD_KEYS = ("imageKeywords", "imagePrompt", "imageQuery", "image_keywords")
NOTES_KEYS = ("notes", "speakerNotes", "speaker_notes")
BULLET_KEYS = ("bulletPoints", "bullets", "points", "bullet_points")


@dataclass(frozen=True)
class AssemblyPreferences:
    include_images: bool = True


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _first(record: Dict[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if record.get(key) not in (None, "", []):
            return record[key]
    return None


def _bullets(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = [line.lstrip("-•* ").strip() for line in value.splitlines()]
    if not isinstance(value, (list, tuple)):
        return ()
    items = []
    for item in value:
        if isinstance(item, dict):
            item = item.get("text") or item.get("title")
        text = _text(item)
        if text:
            items.append(text)
    return tuple(items)


def _keywords(value: Any) -> Optional[str]:
    if isinstance(value, (list, tuple)):
        value = " ".join(str(item) for item in value if item)
    return _text(value)


def _stats(value: Any) -> Tuple[Stat, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    stats = []
    for item in value:
        if not isinstance(item, dict):
            continue
        stat_value = _text(item.get("value"))
        label = _text(item.get("label") or item.get("description"))
        if stat_value or label:
            stats.append(Stat(value=stat_value or "", label=label or ""))
    return tuple(stats)


def _quote(record: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    quote = record.get("quote")
    author = _text(record.get("quoteAuthor"))
    if isinstance(quote, dict):
        author = author or _text(quote.get("author"))
        quote = quote.get("text")
    return _text(quote), author


def _layout(value: Any, preferences: AssemblyPreferences) -> SlideLayout:
    """Canonical layout for a record.

    With images disabled, an image layout the AI chose explicitly is still
    replaced by ``content``, since no image is resolved for that deck.
    """

    layout = SlideLayout.coerce(value)
    if not preferences.include_images and layout in IMAGE_LAYOUTS:
        return SlideLayout.CONTENT
    return layout


def _variant(value: Any, index: int) -> int:
    try:
        variant = int(value)
    except (TypeError, ValueError):
        variant = 0
    if variant in VARIANTS:
        return variant
    return VARIANTS[index % len(VARIANTS)]


def _alignment(value: Any, index: int) -> TitleAlignment:
    if isinstance(value, str):
        try:
            return TitleAlignment(value.strip().lower())
        except ValueError:
            pass
    # Offset from the variant cycle so variant and alignment do not move in lockstep.
    return ALIGNMENT_CYCLE[(index + 1) % len(ALIGNMENT_CYCLE)]


class SlideAssembler:
    """Build canonical slides from raw records.

    Never fails on partial records: every missing field has a default.
    Variants and alignments are assigned round-robin by position, so a deck
    with three or more slides covers all three variants and the result is
    identical between runs except for the generated identities.
    """

    def __init__(self, id_factory: Callable[[], str] = new_identity) -> None:
        self.id_factory = id_factory

    def assemble(
        self,
        records: Sequence[Dict[str, Any]],
        *,
        total_count: Optional[int] = None,
        preferences: AssemblyPreferences = AssemblyPreferences(),
    ) -> List[Slide]:
        if total_count is not None and len(records) > total_count:
            LOGGER.info("Trimming %d slides to the requested %d", len(records), total_count)
            records = records[:total_count]
        slides = [
            self.assemble_one(record, index, preferences=preferences)
            for index, record in enumerate(records)
        ]
        LOGGER.info("Assembled %d slides", len(slides))
        return slides

    def assemble_one(
        self,
        record: Dict[str, Any],
        index: int,
        *,
        preferences: AssemblyPreferences = AssemblyPreferences(),
    ) -> Slide:
        if not isinstance(record, dict):
            record = {}
        title = _text(record.get("title")) or f"Slide {index + 1}"
        quote, quote_author = _quote(record)
        keywords = _keywords(_first(record, KEYWORD_KEYS))
        return Slide(
            id=self.id_factory(),
            title=title,
            subtitle=_text(record.get("subtitle")),
            content=_text(record.get("content")),
            bullet_points=_bullets(_first(record, BULLET_KEYS)),
            layout=_layout(record.get("layout"), preferences),
            layout_variant=_variant(record.get("layoutVariant"), index),
            title_alignment=_alignment(record.get("titleAlignment"), index),
            image_prompt=keywords,
            quote=quote,
            quote_author=quote_author,
            stats=_stats(record.get("stats")),
            notes=_text(_first(record, NOTES_KEYS)),
        )
