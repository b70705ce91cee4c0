import io

import pytest

from PIL import Image

from deckgen.renderers.print_export import PAGE_SIZE, PrintDeckRenderer
from deckgen.slide_models import Presentation, Slide, SlideLayout


def _png():
    buffer = io.BytesIO()
    Image.new("RGB", (40, 30), (10, 200, 10)).save(buffer, format="PNG")
    return buffer.getvalue()


def _deck(*slides):
    return Presentation(id="deck", title="Deck", slides=tuple(slides))


def test_pages_follow_deck_order():
    deck = _deck(*(Slide(id=f"s{i}", title=f"Slide {i}") for i in range(3)))

    pages = PrintDeckRenderer(image_loader=lambda url: None).render_pages(deck)

    assert [page.slide_id for page in pages] == ["s0", "s1", "s2"]
    assert all(page.image.size == PAGE_SIZE for page in pages)


def test_pdf_document_is_produced():
    deck = _deck(Slide(id="a", title="One"), Slide(id="b", title="Two", layout=SlideLayout.QUOTE))

    pdf = PrintDeckRenderer(image_loader=lambda url: None).render_document(deck)

    assert pdf.startswith(b"%PDF")


def test_empty_deck_cannot_be_printed():
    with pytest.raises(ValueError):
        PrintDeckRenderer().render_document(_deck())


def test_missing_image_draws_icon_placeholder():
    slide = Slide(id="s", title="Photo", layout=SlideLayout.CONTENT_IMAGE, image_url="https://img/a.png")

    page = PrintDeckRenderer(image_loader=lambda url: None).render_pages(_deck(slide))[0]

    assert page.zone("media").placeholder == "icon"


def test_loaded_image_is_drawn_without_placeholder():
    slide = Slide(id="s", title="Photo", layout=SlideLayout.FULL_IMAGE, image_url="https://img/a.png")

    page = PrintDeckRenderer(image_loader=lambda url: _png()).render_pages(_deck(slide))[0]

    assert page.zone("media").placeholder is None
    assert page.zone("media").box == (0, 0, PAGE_SIZE[0], PAGE_SIZE[1])


@pytest.mark.parametrize(
    "layout, expected",
    [
        (SlideLayout.FULL_IMAGE, "solid"),
        (SlideLayout.CONTENT_IMAGE, "icon"),
        (SlideLayout.IMAGE_CONTENT, "icon"),
    ],
)
def test_undecodable_image_uses_layout_placeholder(layout, expected):
    slide = Slide(id="s", title="Photo", layout=layout, image_url="https://img/a.png")

    page = PrintDeckRenderer(image_loader=lambda url: b"garbage").render_pages(_deck(slide))[0]

    assert page.zone("media").placeholder == expected


def test_two_columns_sit_side_by_side():
    slide = Slide(id="s", title="Compare", layout=SlideLayout.TWO_COLUMN, bullet_points=("a", "b", "c", "d"))

    page = PrintDeckRenderer(image_loader=lambda url: None).render_pages(_deck(slide))[0]
    left, right = page.zone("column-left"), page.zone("column-right")

    assert left.lines == ("a", "b")
    assert right.lines == ("c", "d")
    assert left.box[1] == right.box[1]
    assert left.box[2] < right.box[0]
