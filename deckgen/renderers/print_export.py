"""Print target: rasterized live compositions combined into a PDF."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from .. import layout_contract as contract
from ..slide_models import Presentation, TitleAlignment
from .images import ImageLoader, load_image
from .live import LiveSlideRenderer, SlideView, ZoneView

LOGGER = logging.getLogger(__name__)

PAGE_SIZE = (1600, 900)
PADDING = 80
GAP = 28

Box = Tuple[int, int, int, int]


@dataclass
class DrawnZone:
    name: str
    box: Box
    lines: Tuple[str, ...] = ()
    placeholder: Optional[str] = None
    columns: int = 0


@dataclass
class PrintPage:
    index: int
    slide_id: str
    image: Image.Image
    drawn: List[DrawnZone] = field(default_factory=list)

    @property
    def zones(self) -> List[str]:
        return [zone.name for zone in self.drawn]

    def zone(self, name: str) -> Optional[DrawnZone]:
        return next((zone for zone in self.drawn if zone.name == name), None)


def _hex(value: str, fallback: Tuple[int, int, int] = (0, 0, 0)) -> Tuple[int, int, int]:
    raw = (value or "").strip().lstrip("#")
    if len(raw) == 3:
        raw = "".join(ch * 2 for ch in raw)
    try:
        return int(raw[0:2], 16), int(raw[2:4], 16), int(raw[4:6], 16)
    except ValueError:
        return fallback


def _font(size: int) -> ImageFont.ImageFont:
    return ImageFont.load_default(size=size)


class _PageDrawer:
    def __init__(self, view: SlideView, image_loader: ImageLoader) -> None:
        self.view = view
        self.theme = view.theme
        self.image_loader = image_loader
        self.image = Image.new("RGB", PAGE_SIZE, _hex(self.theme.background_color))
        self.draw = ImageDraw.Draw(self.image)
        self.drawn: List[DrawnZone] = []

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------
    def render(self) -> PrintPage:
        layout = self.view.layout.value
        if layout in ("content-image", "image-content"):
            self._split()
        elif layout == "full-image":
            self._full_bleed()
        else:
            self._stack(self.view.zones, PADDING, PAGE_SIZE[0] - PADDING, PADDING)
        return PrintPage(
            index=self.view.index,
            slide_id=self.view.slide_id,
            image=self.image,
            drawn=self.drawn,
        )

    def _split(self) -> None:
        width, height = PAGE_SIZE
        middle = width // 2
        media_box = (
            (PADDING, PADDING, middle - GAP, height - PADDING)
            if self.view.media_first
            else (middle + GAP, PADDING, width - PADDING, height - PADDING)
        )
        text_left, text_right = (
            (middle + GAP, width - PADDING) if self.view.media_first else (PADDING, middle - GAP)
        )
        for zone in self.view.zones:
            if zone.name == contract.MEDIA:
                self._media(zone, media_box)
            else:
                self._stack([zone], text_left, text_right, self._next_top(text_left, text_right))

    def _full_bleed(self) -> None:
        width, height = PAGE_SIZE
        text_zones = [zone for zone in self.view.zones if zone.name != contract.MEDIA]
        for zone in self.view.zones:
            if zone.name == contract.MEDIA:
                self._media(zone, (0, 0, width, height))
                self.draw.rectangle((0, height * 2 // 3, width, height), fill=(0, 0, 0))
            else:
                top = height * 2 // 3 + 20 if zone is text_zones[0] else self._next_top(PADDING, width - PADDING)
                self._stack([zone], PADDING, width - PADDING, top, color=(255, 255, 255))

    def _next_top(self, left: int, right: int) -> int:
        tops = [
            zone.box[3] + GAP
            for zone in self.drawn
            if zone.name != contract.MEDIA and zone.box[0] >= left and zone.box[2] <= right
        ]
        return max(tops) if tops else PADDING

    def _stack(self, zones: Sequence[ZoneView], left: int, right: int, top: int, color=None) -> None:
        y = top
        column_top = None
        for zone in zones:
            name = zone.name
            if name == contract.COLUMN_LEFT:
                column_top = y
                y = self._column(zone, (left, y, (left + right) // 2 - GAP // 2, PAGE_SIZE[1] - PADDING))
            elif name == contract.COLUMN_RIGHT:
                start = column_top if column_top is not None else y
                bottom = self._column(zone, ((left + right) // 2 + GAP // 2, start, right, PAGE_SIZE[1] - PADDING))
                y = max(y, bottom)
            elif name == contract.STATS:
                y = self._stats(zone, left, right, y)
            elif name == contract.MEDIA:
                y = self._media(zone, (left, y, right, min(y + 360, PAGE_SIZE[1] - PADDING)))
            else:
                y = self._text_zone(zone, left, right, y, color)
            y += GAP

    # ------------------------------------------------------------------
    # Zone primitives
    # ------------------------------------------------------------------
    def _text_zone(self, zone: ZoneView, left: int, right: int, top: int, color=None) -> int:
        sizes = {
            contract.TITLE: 64 if self.view.layout.value in ("title", "thank-you") else 52,
            contract.SUBTITLE: 36,
            contract.QUOTE_MARK: 140,
            contract.QUOTE: 44,
            contract.ICON: 96,
        }
        size = sizes.get(zone.name, 30)
        fill = color or _hex(
            self.theme.primary_color if zone.name in (contract.TITLE, contract.QUOTE_MARK, contract.ICON)
            else self.theme.text_color
        )
        if zone.name == contract.BULLETS:
            lines = [f"{number}. {item}" for number, item in enumerate(zone.items, start=1)]
        elif zone.name == contract.CHIPS:
            lines = ["     ".join(zone.items)]
        else:
            lines = [zone.text or ""]
        centered = self.view.layout.value in ("quote", "thank-you") or (
            zone.name == contract.TITLE and self.view.alignment is TitleAlignment.CENTER
        )
        right_aligned = zone.name == contract.TITLE and self.view.alignment is TitleAlignment.RIGHT
        bottom = self._paragraphs(lines, left, right, top, size, fill, centered=centered, right_aligned=right_aligned)
        self.drawn.append(DrawnZone(zone.name, (left, top, right, bottom), tuple(lines), zone.placeholder))
        return bottom

    def _column(self, zone: ZoneView, box: Box) -> int:
        left, top, right, bottom = box
        self.draw.rounded_rectangle(box, radius=24, fill=_hex(self.theme.surface_color))
        text_bottom = self._paragraphs(list(zone.items), left + 32, right - 32, top + 32, 30, _hex(self.theme.text_color))
        self.drawn.append(DrawnZone(zone.name, box, tuple(zone.items)))
        return max(text_bottom + 32, min(bottom, top + 200))

    def _stats(self, zone: ZoneView, left: int, right: int, top: int) -> int:
        columns = zone.columns or contract.stat_grid_columns(len(zone.stats))
        card_width = (right - left - GAP * (columns - 1)) // columns
        card_height = 200
        bottom = top
        for position, stat in enumerate(zone.stats):
            row, column = divmod(position, columns)
            x0 = left + column * (card_width + GAP)
            y0 = top + row * (card_height + GAP)
            box = (x0, y0, x0 + card_width, y0 + card_height)
            self.draw.rounded_rectangle(box, radius=24, fill=_hex(self.theme.surface_color))
            self._paragraphs([stat.value], x0 + 16, box[2] - 16, y0 + 36, 56, _hex(self.theme.accent_color), centered=True)
            self._paragraphs([stat.label], x0 + 16, box[2] - 16, y0 + 120, 26, _hex(self.theme.text_muted), centered=True)
            bottom = box[3]
        lines = tuple(f"{stat.value}|{stat.label}" for stat in zone.stats)
        self.drawn.append(
            DrawnZone(zone.name, (left, top, right, bottom), lines, zone.placeholder, columns=columns)
        )
        return bottom

    def _media(self, zone: ZoneView, box: Box) -> int:
        picture = self._load(zone.image_url) if zone.image_url else None
        width, height = box[2] - box[0], box[3] - box[1]
        if picture is not None:
            self.image.paste(picture.resize((max(width, 1), max(height, 1))), (box[0], box[1]))
            placeholder = None
        else:
            # The zone view drops its placeholder once a URL is set; an
            # undecodable image still needs the layout's own kind.
            media_spec = contract.contract_for(self.view.layout).zone(contract.MEDIA)
            placeholder = zone.placeholder or media_spec.placeholder
            self.draw.rectangle(box, fill=_hex(self.theme.surface_color))
            if placeholder == contract.ICON_PLACEHOLDER:
                self._picture_icon(box)
        self.drawn.append(DrawnZone(zone.name, box, (), placeholder))
        return box[3]

    def _picture_icon(self, box: Box) -> None:
        cx, cy = (box[0] + box[2]) // 2, (box[1] + box[3]) // 2
        frame = (cx - 60, cy - 45, cx + 60, cy + 45)
        muted = _hex(self.theme.text_muted)
        self.draw.rectangle(frame, outline=muted, width=5)
        self.draw.polygon([(cx - 50, cy + 35), (cx - 10, cy - 10), (cx + 20, cy + 20), (cx + 50, cy + 35)], fill=muted)
        self.draw.ellipse((cx + 20, cy - 35, cx + 40, cy - 15), fill=muted)

    def _load(self, url: str) -> Optional[Image.Image]:
        blob = self.image_loader(url)
        if not blob:
            return None
        try:
            with Image.open(io.BytesIO(blob)) as picture:
                return picture.convert("RGB")
        except (UnidentifiedImageError, OSError) as exc:
            LOGGER.warning("Could not decode image %s: %s", url, exc)
            return None

    def _paragraphs(self, lines, left, right, top, size, fill, *, centered=False, right_aligned=False) -> int:
        font = _font(size)
        y = top
        line_height = int(size * 1.25)
        for paragraph in lines:
            for line in self._wrap(paragraph, font, right - left):
                width = self.draw.textlength(line, font=font)
                if centered:
                    x = left + (right - left - width) / 2
                elif right_aligned:
                    x = right - width
                else:
                    x = left
                self.draw.text((x, y), line, font=font, fill=fill)
                y += line_height
        return y

    def _wrap(self, text: str, font, max_width: int) -> List[str]:
        words = (text or "").split()
        if not words:
            return [""]
        lines: List[str] = []
        current = words[0]
        for word in words[1:]:
            candidate = f"{current} {word}"
            if self.draw.textlength(candidate, font=font) <= max_width:
                current = candidate
            else:
                lines.append(current)
                current = word
        lines.append(current)
        return lines


class PrintDeckRenderer:
    """One fixed-size page per slide, in deck order."""

    def __init__(
        self,
        live_renderer: Optional[LiveSlideRenderer] = None,
        image_loader: Optional[ImageLoader] = None,
    ) -> None:
        self.live_renderer = live_renderer or LiveSlideRenderer()
        self.image_loader = image_loader or load_image

    def render_pages(self, presentation: Presentation) -> List[PrintPage]:
        pages = []
        for index, slide in enumerate(presentation.slides):
            view = self.live_renderer.compose(slide, presentation.theme, index)
            pages.append(_PageDrawer(view, self.image_loader).render())
        return pages

    def render_document(self, presentation: Presentation) -> bytes:
        """Return the PDF bytes of every page."""

        pages = self.render_pages(presentation)
        if not pages:
            raise ValueError("Presentation has no slides to print")
        first, rest = pages[0].image, [page.image for page in pages[1:]]
        buffer = io.BytesIO()
        first.save(buffer, format="PDF", save_all=True, append_images=rest, resolution=150.0)
        LOGGER.info("Rendered print document for %s (%d pages)", presentation.id, len(pages))
        return buffer.getvalue()
