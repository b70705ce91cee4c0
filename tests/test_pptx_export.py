import io

import pytest

pytest.importorskip("pptx")

from PIL import Image
from pptx import Presentation as load_pptx
from pptx.shapes.picture import Picture

from deckgen.assembler import SlideAssembler
from deckgen.renderers import SlideDeckRenderer
from deckgen.renderers.pptx_export import SLIDE_HEIGHT, SLIDE_WIDTH, zone_shape_name
from deckgen.slide_models import Presentation, Slide, SlideLayout

from tests.llm_stubs import deck_payload


def _png():
    buffer = io.BytesIO()
    Image.new("RGB", (32, 18), (0, 120, 200)).save(buffer, format="PNG")
    return buffer.getvalue()


def _deck(*slides):
    return Presentation(id="deck", title="Deck", slides=tuple(slides))


def test_render_document_creates_one_slide_per_slide():
    slides = SlideAssembler().assemble(deck_payload(6)["slides"])
    renderer = SlideDeckRenderer(image_loader=lambda url: None)

    stream = renderer.render_document(_deck(*slides))

    deck = load_pptx(stream)
    assert len(deck.slides) == 6
    assert deck.slide_width == SLIDE_WIDTH
    assert deck.slide_height == SLIDE_HEIGHT


def test_notes_are_written_to_notes_slide():
    slide = Slide(id="s", title="Intro", notes="Welcome everyone")

    deck = load_pptx(SlideDeckRenderer(image_loader=lambda url: None).render_document(_deck(slide)))

    assert deck.slides[0].notes_slide.notes_text_frame.text == "Welcome everyone"


def test_loaded_image_becomes_picture():
    slide = Slide(id="s", title="Photo", layout=SlideLayout.IMAGE_CONTENT, image_url="https://img/a.png")
    renderer = SlideDeckRenderer(image_loader=lambda url: _png())

    deck = load_pptx(renderer.render_document(_deck(slide)))

    media = next(shape for shape in deck.slides[0].shapes if shape.name == zone_shape_name("media"))
    assert isinstance(media, Picture)


def test_unreadable_image_falls_back_to_placeholder():
    slide = Slide(id="s", title="Photo", layout=SlideLayout.CONTENT_IMAGE, image_url="https://img/a.png")
    renderer = SlideDeckRenderer(image_loader=lambda url: b"not an image")

    deck = load_pptx(renderer.render_document(_deck(slide)))

    media = next(shape for shape in deck.slides[0].shapes if shape.name == zone_shape_name("media"))
    assert not isinstance(media, Picture)
    assert media.text_frame.text == "\U0001F5BC"


def test_bullets_are_numbered():
    slide = Slide(id="s", title="List", bullet_points=("alpha", "beta"))

    deck = load_pptx(SlideDeckRenderer(image_loader=lambda url: None).render_document(_deck(slide)))

    bullets = next(shape for shape in deck.slides[0].shapes if shape.name == "zone:bullets")
    assert bullets.text_frame.text == "1. alpha\n2. beta"


def test_preview_returns_none_without_libreoffice(monkeypatch):
    monkeypatch.setattr("deckgen.renderers.pptx_export._locate_soffice", lambda: None)

    renderer = SlideDeckRenderer(image_loader=lambda url: None)

    assert renderer.render_preview_image(_deck(Slide(id="s", title="t"))) is None
