"""Render presentations into PPTX files (and optional previews)."""

from __future__ import annotations

import io
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Optional, Sequence

from pptx import Presentation as PptxPresentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.util import Emu, Inches, Pt

from .. import layout_contract as contract
from ..slide_models import Presentation, Slide, SlideLayout, Theme, TitleAlignment
from .images import ImageLoader, load_image

LOGGER = logging.getLogger(__name__)

SLIDE_WIDTH = Inches(13.333)
SLIDE_HEIGHT = Inches(7.5)
MARGIN = Inches(0.6)
BLANK_LAYOUT_INDEX = 6

_ALIGN = {
    TitleAlignment.LEFT: PP_ALIGN.LEFT,
    TitleAlignment.CENTER: PP_ALIGN.CENTER,
    TitleAlignment.RIGHT: PP_ALIGN.RIGHT,
}


def zone_shape_name(zone: str) -> str:
    return f"zone:{zone}"


class SlideDeckRenderer:
    """Render presentations into PPTX binaries. Every zone is a named shape."""

    def __init__(self, image_loader: Optional[ImageLoader] = None) -> None:
        self.image_loader = image_loader or load_image

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def render_document(self, presentation: Presentation) -> io.BytesIO:
        """Return a PPTX stream that represents ``presentation``."""

        deck = PptxPresentation()
        deck.slide_width = SLIDE_WIDTH
        deck.slide_height = SLIDE_HEIGHT
        blank = deck.slide_layouts[BLANK_LAYOUT_INDEX]

        for slide in presentation.slides:
            pptx_slide = deck.slides.add_slide(blank)
            _Canvas(pptx_slide, presentation.theme, self.image_loader).draw(slide)
            if slide.notes:
                pptx_slide.notes_slide.notes_text_frame.text = slide.notes

        buffer = io.BytesIO()
        deck.save(buffer)
        buffer.seek(0)
        LOGGER.info("Rendered PPTX for %s (%d slides)", presentation.id, len(presentation.slides))
        return buffer

    def render_preview_image(
        self,
        presentation: Presentation,
        *,
        slide_index: int = 0,
        pptx_bytes: Optional[bytes] = None,
    ) -> Optional[bytes]:
        """Generate a PNG preview if LibreOffice is available."""

        soffice_path = _locate_soffice()
        if soffice_path is None:
            return None

        payload = pptx_bytes or self.render_document(presentation).getvalue()
        with tempfile.TemporaryDirectory() as tmpdir:
            pptx_path = Path(tmpdir) / "preview.pptx"
            pptx_path.write_bytes(payload)
            cmd = [
                soffice_path,
                "--headless",
                "--convert-to",
                "png",
                "--outdir",
                tmpdir,
                str(pptx_path),
            ]
            try:
                subprocess.run(
                    cmd,
                    check=True,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    timeout=60,
                )
            except (OSError, subprocess.SubprocessError) as exc:
                LOGGER.warning("LibreOffice preview failed: %s", exc)
                return None

            png_files = sorted(Path(tmpdir).glob("*.png"))
            if not png_files:
                return None
            index = max(0, min(slide_index, len(png_files) - 1))
            return png_files[index].read_bytes()


class _Canvas:
    """Draws one slide's zones onto a blank python-pptx slide."""

    def __init__(self, pptx_slide, theme: Theme, image_loader: ImageLoader) -> None:
        self.slide = pptx_slide
        self.shapes = pptx_slide.shapes
        self.theme = theme
        self.image_loader = image_loader

    def draw(self, slide: Slide) -> None:
        self._background()
        layout = slide.layout.canonical
        drawer = {
            SlideLayout.TITLE: self._title_layout,
            SlideLayout.CONTENT: self._content_layout,
            SlideLayout.CONTENT_IMAGE: self._content_image_layout,
            SlideLayout.IMAGE_CONTENT: self._image_content_layout,
            SlideLayout.TWO_COLUMN: self._two_column_layout,
            SlideLayout.FULL_IMAGE: self._full_image_layout,
            SlideLayout.QUOTE: self._quote_layout,
            SlideLayout.STATS: self._stats_layout,
            SlideLayout.THANK_YOU: self._thank_you_layout,
        }.get(layout, self._content_layout)
        drawer(slide)

    # ------------------------------------------------------------------
    # Layouts
    # ------------------------------------------------------------------
    def _title_layout(self, slide: Slide) -> None:
        width = SLIDE_WIDTH - 2 * MARGIN
        self._text(contract.TITLE, slide.title, MARGIN, Inches(2.2), width, Inches(1.6),
                   size=54, bold=True, color=self.theme.primary_color, align=_ALIGN[slide.title_alignment])
        if slide.subtitle:
            self._text(contract.SUBTITLE, slide.subtitle, MARGIN, Inches(3.9), width, Inches(0.8),
                       size=26, color=self.theme.text_muted, align=_ALIGN[slide.title_alignment])
        if slide.content:
            self._text(contract.CONTENT, slide.content, MARGIN, Inches(4.8), width, Inches(1.4),
                       size=18, color=self.theme.text_muted, align=_ALIGN[slide.title_alignment])

    def _content_layout(self, slide: Slide) -> None:
        self._text_block(slide, MARGIN, SLIDE_WIDTH - 2 * MARGIN)

    def _content_image_layout(self, slide: Slide) -> None:
        half = (SLIDE_WIDTH - 3 * MARGIN) // 2
        if slide.layout_variant == 2:
            self._media(slide, MARGIN, Inches(1.2), half, Inches(5.1), contract.ICON_PLACEHOLDER)
            self._text_block(slide, MARGIN * 2 + half, half)
        else:
            self._text_block(slide, MARGIN, half)
            self._media(slide, MARGIN * 2 + half, Inches(1.2), half, Inches(5.1), contract.ICON_PLACEHOLDER)

    def _image_content_layout(self, slide: Slide) -> None:
        half = (SLIDE_WIDTH - 3 * MARGIN) // 2
        self._media(slide, MARGIN, Inches(1.2), half, Inches(5.1), contract.ICON_PLACEHOLDER)
        self._text_block(slide, MARGIN * 2 + half, half)

    def _two_column_layout(self, slide: Slide) -> None:
        width = SLIDE_WIDTH - 2 * MARGIN
        self._text(contract.TITLE, slide.title, MARGIN, MARGIN, width, Inches(1.0),
                   size=36, bold=True, color=self.theme.text_color, align=_ALIGN[slide.title_alignment])
        left, right = contract.split_columns(slide)
        half = (SLIDE_WIDTH - 3 * MARGIN) // 2
        self._panel(contract.COLUMN_LEFT, left, MARGIN, Inches(1.9), half, Inches(4.9))
        self._panel(contract.COLUMN_RIGHT, right, MARGIN * 2 + half, Inches(1.9), half, Inches(4.9))

    def _full_image_layout(self, slide: Slide) -> None:
        self._media(slide, 0, 0, SLIDE_WIDTH, SLIDE_HEIGHT, contract.SOLID_PLACEHOLDER)
        width = SLIDE_WIDTH - 2 * MARGIN
        self._text(contract.TITLE, slide.title, MARGIN, Inches(4.6), width, Inches(1.2),
                   size=44, bold=True, color="#FFFFFF", align=_ALIGN[slide.title_alignment])
        if slide.content:
            self._text(contract.CONTENT, slide.content, MARGIN, Inches(5.8), width, Inches(1.1),
                       size=20, color="#FFFFFF", align=_ALIGN[slide.title_alignment])

    def _quote_layout(self, slide: Slide) -> None:
        width = SLIDE_WIDTH - 4 * MARGIN
        self._text(contract.QUOTE_MARK, "“", MARGIN * 2, Inches(0.6), width, Inches(1.6),
                   size=120, bold=True, color=self.theme.primary_color, align=PP_ALIGN.CENTER)
        self._text(contract.QUOTE, contract.quote_text(slide), MARGIN * 2, Inches(2.3), width, Inches(2.6),
                   size=32, italic=True, color=self.theme.text_color, align=PP_ALIGN.CENTER)
        author = contract.quote_author(slide)
        if author:
            self._text(contract.AUTHOR, author, MARGIN * 2, Inches(5.2), width, Inches(0.7),
                       size=20, color=self.theme.text_muted, align=PP_ALIGN.CENTER)

    def _stats_layout(self, slide: Slide) -> None:
        width = SLIDE_WIDTH - 2 * MARGIN
        self._text(contract.TITLE, slide.title, MARGIN, MARGIN, width, Inches(1.0),
                   size=36, bold=True, color=self.theme.primary_color, align=_ALIGN[slide.title_alignment])
        if slide.content:
            self._text(contract.CONTENT, slide.content, MARGIN, Inches(1.6), width, Inches(0.9),
                       size=18, color=self.theme.text_muted, align=_ALIGN[slide.title_alignment])
        self._stat_grid(contract.display_stats(slide), MARGIN, Inches(2.8), width, placeholder=not slide.stats)

    def _thank_you_layout(self, slide: Slide) -> None:
        width = SLIDE_WIDTH - 2 * MARGIN
        self._text(contract.ICON, "♥", MARGIN, Inches(0.9), width, Inches(1.3),
                   size=66, color=self.theme.primary_color, align=PP_ALIGN.CENTER)
        self._text(contract.TITLE, contract.thank_you_title(slide), MARGIN, Inches(2.3), width, Inches(1.4),
                   size=54, bold=True, color=self.theme.primary_color, align=PP_ALIGN.CENTER)
        if slide.content:
            self._text(contract.CONTENT, slide.content, MARGIN, Inches(3.8), width, Inches(1.0),
                       size=22, color=self.theme.text_muted, align=PP_ALIGN.CENTER)
        self._text(contract.CHIPS, "    ".join(contract.CONTACT_CHIPS), MARGIN, Inches(5.3), width, Inches(0.7),
                   size=18, color=self.theme.text_color, align=PP_ALIGN.CENTER)

    # ------------------------------------------------------------------
    # Zone primitives
    # ------------------------------------------------------------------
    def _text_block(self, slide: Slide, left: int, width: int) -> None:
        self._text(contract.TITLE, slide.title, left, Inches(0.8), width, Inches(1.2),
                   size=36, bold=True, color=self.theme.text_color, align=_ALIGN[slide.title_alignment])
        top = Inches(2.1)
        if slide.content:
            self._text(contract.CONTENT, slide.content, left, top, width, Inches(1.3),
                       size=18, color=self.theme.text_muted)
            top = Inches(3.5)
        if slide.bullet_points:
            lines = [f"{number}. {point}" for number, point in enumerate(slide.bullet_points, start=1)]
            self._text(contract.BULLETS, lines, left, top, width, SLIDE_HEIGHT - top - MARGIN,
                       size=18, color=self.theme.text_color)

    def _text(self, zone: str, text, left, top, width, height, *, size: int = 18, bold: bool = False,
              italic: bool = False, color: Optional[str] = None, align=PP_ALIGN.LEFT):
        box = self.shapes.add_textbox(Emu(left), Emu(top), Emu(width), Emu(height))
        box.name = zone_shape_name(zone)
        frame = box.text_frame
        frame.word_wrap = True
        lines: Sequence[str] = [text] if isinstance(text, str) else list(text) or [""]
        for idx, line in enumerate(lines):
            paragraph = frame.paragraphs[0] if idx == 0 else frame.add_paragraph()
            paragraph.alignment = align
            run = paragraph.add_run()
            run.text = line
            run.font.size = Pt(size)
            run.font.bold = bold
            run.font.italic = italic
            if color:
                run.font.color.rgb = _rgb(color)
        return box

    def _panel(self, zone: str, lines: Sequence[str], left, top, width, height):
        panel = self.shapes.add_shape(MSO_SHAPE.ROUNDED_RECTANGLE, Emu(left), Emu(top), Emu(width), Emu(height))
        panel.name = zone_shape_name(zone)
        _fill(panel, self.theme.surface_color)
        frame = panel.text_frame
        frame.word_wrap = True
        frame.vertical_anchor = MSO_ANCHOR.TOP
        for idx, line in enumerate(list(lines) or [""]):
            paragraph = frame.paragraphs[0] if idx == 0 else frame.add_paragraph()
            paragraph.alignment = PP_ALIGN.LEFT
            run = paragraph.add_run()
            run.text = line
            run.font.size = Pt(18)
            run.font.color.rgb = _rgb(self.theme.text_color)
        return panel

    def _media(self, slide: Slide, left, top, width, height, placeholder: str):
        blob = self.image_loader(slide.image_url) if slide.image_url else None
        if blob:
            try:
                picture = self.shapes.add_picture(io.BytesIO(blob), Emu(left), Emu(top), Emu(width), Emu(height))
            except Exception as exc:  # unreadable image data falls back to the placeholder
                LOGGER.warning("Could not embed image for slide %s: %s", slide.id, exc)
            else:
                picture.name = zone_shape_name(contract.MEDIA)
                return picture

        shape = self.shapes.add_shape(MSO_SHAPE.RECTANGLE, Emu(left), Emu(top), Emu(width), Emu(height))
        shape.name = zone_shape_name(contract.MEDIA)
        _fill(shape, self.theme.surface_color)
        if placeholder == contract.ICON_PLACEHOLDER:
            frame = shape.text_frame
            frame.vertical_anchor = MSO_ANCHOR.MIDDLE
            paragraph = frame.paragraphs[0]
            paragraph.alignment = PP_ALIGN.CENTER
            run = paragraph.add_run()
            run.text = "\U0001F5BC"
            run.font.size = Pt(48)
        return shape

    def _stat_grid(self, stats, left, top, width, *, placeholder: bool = False):
        columns = contract.stat_grid_columns(len(stats))
        gap = Inches(0.3)
        card_width = (width - gap * (columns - 1)) // columns
        card_height = Inches(1.8)
        group = self.shapes.add_group_shape()
        group.name = zone_shape_name(contract.STATS)
        for position, stat in enumerate(stats):
            row, column = divmod(position, columns)
            card = group.shapes.add_shape(
                MSO_SHAPE.ROUNDED_RECTANGLE,
                Emu(left + column * (card_width + gap)),
                Emu(top + row * (card_height + gap)),
                Emu(card_width),
                Emu(card_height),
            )
            card.name = f"stat:{position}"
            _fill(card, self.theme.surface_color)
            frame = card.text_frame
            frame.word_wrap = True
            frame.vertical_anchor = MSO_ANCHOR.MIDDLE
            value_paragraph = frame.paragraphs[0]
            value_paragraph.alignment = PP_ALIGN.CENTER
            value_run = value_paragraph.add_run()
            value_run.text = stat.value
            value_run.font.size = Pt(40)
            value_run.font.bold = True
            value_run.font.color.rgb = _rgb(self.theme.text_muted if placeholder else self.theme.accent_color)
            label_paragraph = frame.add_paragraph()
            label_paragraph.alignment = PP_ALIGN.CENTER
            label_run = label_paragraph.add_run()
            label_run.text = stat.label
            label_run.font.size = Pt(16)
            label_run.font.color.rgb = _rgb(self.theme.text_muted)
        return group

    def _background(self) -> None:
        fill = self.slide.background.fill
        fill.solid()
        fill.fore_color.rgb = _rgb(self.theme.background_color)


# ----------------------------------------------------------------------
# Helper functions
# ----------------------------------------------------------------------

def _rgb(value: str) -> RGBColor:
    hex_value = (value or "").strip().lstrip("#")
    if len(hex_value) == 3:
        hex_value = "".join(ch * 2 for ch in hex_value)
    try:
        return RGBColor.from_string(hex_value.upper())
    except ValueError:
        return RGBColor(0, 0, 0)


def _fill(shape, color: str) -> None:
    shape.fill.solid()
    shape.fill.fore_color.rgb = _rgb(color)
    shape.line.fill.background()


def _locate_soffice() -> Optional[str]:
    candidates = [
        "soffice",
        "/Applications/LibreOffice.app/Contents/MacOS/soffice",
        "/usr/bin/soffice",
    ]
    for candidate in candidates:
        try:
            subprocess.run(
                [candidate, "--version"],
                check=True,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=30,
            )
            return candidate
        except (OSError, subprocess.SubprocessError):
            continue
    return None
