"""Interactive editor view: slide compositions and deck navigation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from jinja2 import Environment, select_autoescape

from .. import layout_contract as contract
from ..slide_models import DEFAULT_THEME, Slide, SlideLayout, Stat, Theme, TitleAlignment


@dataclass(frozen=True)
class ZoneView:
    """One drawable zone of a composed slide."""

    name: str
    text: Optional[str] = None
    items: Tuple[str, ...] = ()
    stats: Tuple[Stat, ...] = ()
    image_url: Optional[str] = None
    placeholder: Optional[str] = None
    columns: int = 0
    numbered: bool = False

    @property
    def is_placeholder(self) -> bool:
        return self.placeholder is not None


@dataclass(frozen=True)
class SlideView:
    slide_id: str
    index: int
    layout: SlideLayout
    variant: int
    alignment: TitleAlignment
    zones: Tuple[ZoneView, ...]
    theme: Theme = DEFAULT_THEME

    @property
    def zone_names(self) -> Tuple[str, ...]:
        return tuple(zone.name for zone in self.zones)

    def zone(self, name: str) -> Optional[ZoneView]:
        return next((zone for zone in self.zones if zone.name == name), None)

    @property
    def media_first(self) -> bool:
        names = self.zone_names
        return contract.MEDIA in names and names[0] == contract.MEDIA


class LiveSlideRenderer:
    """Compose slides for the editor canvas."""

    def compose(self, slide: Slide, theme: Theme = DEFAULT_THEME, index: int = 0) -> SlideView:
        layout = slide.layout.canonical
        builder = {
            SlideLayout.TITLE: self._title,
            SlideLayout.CONTENT: self._content,
            SlideLayout.CONTENT_IMAGE: self._content_image,
            SlideLayout.IMAGE_CONTENT: self._image_content,
            SlideLayout.TWO_COLUMN: self._two_column,
            SlideLayout.FULL_IMAGE: self._full_image,
            SlideLayout.QUOTE: self._quote,
            SlideLayout.STATS: self._stats,
            SlideLayout.THANK_YOU: self._thank_you,
        }.get(layout, self._content)
        return SlideView(
            slide_id=slide.id,
            index=index,
            layout=layout,
            variant=slide.layout_variant,
            alignment=slide.title_alignment,
            zones=tuple(builder(slide)),
            theme=theme,
        )

    def to_html(self, view: SlideView) -> str:
        """HTML fragment of ``view`` for embedding in the editor page."""

        return _FRAGMENT.render(view=view, theme=view.theme)

    # ------------------------------------------------------------------
    # Layout builders
    # ------------------------------------------------------------------
    def _text_block(self, slide: Slide):
        zones = [ZoneView(contract.TITLE, text=slide.title)]
        if slide.content:
            zones.append(ZoneView(contract.CONTENT, text=slide.content))
        if slide.bullet_points:
            zones.append(ZoneView(contract.BULLETS, items=slide.bullet_points, numbered=True))
        return zones

    def _media(self, slide: Slide, placeholder: str) -> ZoneView:
        if slide.image_url:
            return ZoneView(contract.MEDIA, image_url=slide.image_url, text=slide.title)
        return ZoneView(contract.MEDIA, placeholder=placeholder)

    def _title(self, slide: Slide):
        zones = [ZoneView(contract.TITLE, text=slide.title)]
        if slide.subtitle:
            zones.append(ZoneView(contract.SUBTITLE, text=slide.subtitle))
        if slide.content:
            zones.append(ZoneView(contract.CONTENT, text=slide.content))
        return zones

    def _content(self, slide: Slide):
        return self._text_block(slide)

    def _content_image(self, slide: Slide):
        media = self._media(slide, contract.ICON_PLACEHOLDER)
        if slide.layout_variant == 2:
            return [media] + self._text_block(slide)
        return self._text_block(slide) + [media]

    def _image_content(self, slide: Slide):
        return [self._media(slide, contract.ICON_PLACEHOLDER)] + self._text_block(slide)

    def _two_column(self, slide: Slide):
        left, right = contract.split_columns(slide)
        return [
            ZoneView(contract.TITLE, text=slide.title),
            ZoneView(contract.COLUMN_LEFT, items=left),
            ZoneView(contract.COLUMN_RIGHT, items=right),
        ]

    def _full_image(self, slide: Slide):
        zones = [self._media(slide, contract.SOLID_PLACEHOLDER), ZoneView(contract.TITLE, text=slide.title)]
        if slide.content:
            zones.append(ZoneView(contract.CONTENT, text=slide.content))
        return zones

    def _quote(self, slide: Slide):
        zones = [
            ZoneView(contract.QUOTE_MARK, text="“"),
            ZoneView(contract.QUOTE, text=contract.quote_text(slide)),
        ]
        author = contract.quote_author(slide)
        if author:
            zones.append(ZoneView(contract.AUTHOR, text=author))
        return zones

    def _stats(self, slide: Slide):
        zones = [ZoneView(contract.TITLE, text=slide.title)]
        if slide.content:
            zones.append(ZoneView(contract.CONTENT, text=slide.content))
        stats = contract.display_stats(slide)
        zones.append(
            ZoneView(
                contract.STATS,
                stats=stats,
                columns=contract.stat_grid_columns(len(stats)),
                placeholder=None if slide.stats else contract.STAT_PLACEHOLDER,
            )
        )
        return zones

    def _thank_you(self, slide: Slide):
        zones = [
            ZoneView(contract.ICON, text="♥"),
            ZoneView(contract.TITLE, text=contract.thank_you_title(slide)),
        ]
        if slide.content:
            zones.append(ZoneView(contract.CONTENT, text=slide.content))
        zones.append(ZoneView(contract.CHIPS, items=contract.CONTACT_CHIPS))
        return zones


@dataclass
class DeckNavigator:
    """Current-slide index with forward/back movement, clamped to the deck."""

    total: int
    current: int = 0

    def __post_init__(self) -> None:
        if self.total < 0:
            raise ValueError("total must not be negative")
        self.current = self._clamp(self.current)

    @property
    def is_first(self) -> bool:
        return self.current == 0

    @property
    def is_last(self) -> bool:
        return self.total == 0 or self.current == self.total - 1

    def next(self) -> int:
        self.current = self._clamp(self.current + 1)
        return self.current

    def previous(self) -> int:
        self.current = self._clamp(self.current - 1)
        return self.current

    def go_to(self, index: int) -> int:
        if not 0 <= index < max(self.total, 1):
            raise IndexError(f"slide {index} is outside 0..{self.total - 1}")
        self.current = index
        return self.current

    def resize(self, total: int) -> None:
        """Follow a deck that gained or lost slides."""

        self.total = max(0, total)
        self.current = self._clamp(self.current)

    def _clamp(self, index: int) -> int:
        if self.total == 0:
            return 0
        return max(0, min(index, self.total - 1))


_ENV = Environment(autoescape=select_autoescape(default_for_string=True))

_FRAGMENT = _ENV.from_string(
    """\
<div class="deckgen-slide layout-{{ view.layout.value }} variant-{{ view.variant }}"
     data-slide-id="{{ view.slide_id }}"
     style="background:{{ theme.background_color }};color:{{ theme.text_color }};font-family:{{ theme.font_family }};text-align:{{ view.alignment.value }};padding:32px;border-radius:12px;aspect-ratio:16/9;overflow:hidden;">
{%- for zone in view.zones %}
  <div data-zone="{{ zone.name }}"{% if zone.is_placeholder %} data-placeholder="{{ zone.placeholder }}"{% endif %}>
  {%- if zone.name == "media" %}
    {%- if zone.image_url %}<img src="{{ zone.image_url }}" alt="{{ zone.text or 'Slide image' }}" style="max-width:100%;border-radius:8px;">
    {%- elif zone.placeholder == "solid" %}<div style="height:160px;background:{{ theme.surface_color }};"></div>
    {%- else %}<div style="height:160px;display:flex;align-items:center;justify-content:center;font-size:48px;background:{{ theme.surface_color }};">&#128444;</div>
    {%- endif %}
  {%- elif zone.name == "stats" %}
    <div style="display:grid;grid-template-columns:repeat({{ zone.columns }},1fr);gap:16px;">
    {%- for stat in zone.stats %}
      <div class="stat-card" style="background:{{ theme.surface_color }};padding:16px;border-radius:8px;">
        <div style="font-size:32px;font-weight:700;color:{{ theme.accent_color }};">{{ stat.value }}</div>
        <div style="color:{{ theme.text_muted }};">{{ stat.label }}</div>
      </div>
    {%- endfor %}
    </div>
  {%- elif zone.name == "title" %}
    <h2 style="font-family:{{ theme.heading_font }};color:{{ theme.primary_color }};margin:0 0 12px;">{{ zone.text }}</h2>
  {%- elif zone.name == "bullets" %}
    <ol>{% for item in zone.items %}<li>{{ item }}</li>{% endfor %}</ol>
  {%- elif zone.name in ("column-left", "column-right", "chips") %}
    <ul>{% for item in zone.items %}<li>{{ item }}</li>{% endfor %}</ul>
  {%- else %}
    <p>{{ zone.text }}</p>
  {%- endif %}
  </div>
{%- endfor %}
</div>
"""
)
