"""Renderer targets. Each one honours :mod:`deckgen.layout_contract` on its own."""

from .html_export import HtmlDeckExporter
from .images import ImageLoader, load_image
from .live import DeckNavigator, LiveSlideRenderer, SlideView, ZoneView
from .pptx_export import SlideDeckRenderer, zone_shape_name
from .print_export import DrawnZone, PrintDeckRenderer, PrintPage

__all__ = [
    "DeckNavigator",
    "DrawnZone",
    "HtmlDeckExporter",
    "ImageLoader",
    "LiveSlideRenderer",
    "PrintDeckRenderer",
    "PrintPage",
    "SlideDeckRenderer",
    "SlideView",
    "ZoneView",
    "load_image",
    "zone_shape_name",
]
