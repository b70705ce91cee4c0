"""Every layout rendered on every target emits the documented zones in order."""

import io
import re

import pytest

pytest.importorskip("pptx")
pytest.importorskip("PIL")

from PIL import Image
from pptx import Presentation as load_pptx

from deckgen.layout_contract import expected_zones
from deckgen.renderers import (
    HtmlDeckExporter,
    LiveSlideRenderer,
    PrintDeckRenderer,
    SlideDeckRenderer,
)
from deckgen.slide_models import Presentation, Slide, SlideLayout, Stat

pytestmark = pytest.mark.contract

IMAGE_URL = "https://images.example/photo.png"
TARGETS = ["live", "html", "pptx", "print"]


def _png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (16, 9), (200, 40, 40)).save(buffer, format="PNG")
    return buffer.getvalue()


PNG = _png_bytes()


def _loader(url):
    return PNG if url == IMAGE_URL else None


def _full_slide(layout, variant, with_image):
    return Slide(
        id=f"{layout.value}-{variant}-{'img' if with_image else 'noimg'}",
        title="Why it matters",
        layout=layout,
        layout_variant=variant,
        subtitle="A closer look",
        content="Short supporting paragraph.",
        bullet_points=("First point", "Second point", "Third point"),
        image_url=IMAGE_URL if with_image else None,
        quote="Simplicity is the ultimate sophistication.",
        quote_author="Leonardo da Vinci",
        stats=(Stat("73%", "adoption"), Stat("2x", "speed")),
    )


def _sparse_slide(layout):
    return Slide(id=f"{layout.value}-sparse", title="Only a title", layout=layout)


def _zones_for(target, slide):
    deck = Presentation(id="deck", title="Contract", slides=(slide,))
    if target == "live":
        return list(LiveSlideRenderer().compose(slide).zone_names)
    if target == "html":
        return _html_zones(HtmlDeckExporter().render(deck))[0]
    if target == "pptx":
        return _pptx_zones(SlideDeckRenderer(image_loader=_loader).render_document(deck))[0]
    return PrintDeckRenderer(image_loader=_loader).render_pages(deck)[0].zones


def _html_zones(html):
    sections = re.findall(r"<section .*?</section>", html, re.DOTALL)
    return [re.findall(r'data-zone="([^"]+)"', section) for section in sections]


def _pptx_zones(stream):
    deck = load_pptx(stream)
    return [
        [shape.name[len("zone:"):] for shape in slide.shapes if shape.name.startswith("zone:")]
        for slide in deck.slides
    ]


CASES = [
    pytest.param(layout, variant, with_image, id=f"{layout.value}-v{variant}-{'img' if with_image else 'noimg'}")
    for layout in SlideLayout
    for variant in (1, 2, 3)
    for with_image in (True, False)
]


@pytest.mark.parametrize("target", TARGETS)
@pytest.mark.parametrize("layout,variant,with_image", CASES)
def test_full_slide_zones_match_contract(target, layout, variant, with_image):
    slide = _full_slide(layout, variant, with_image)

    assert _zones_for(target, slide) == expected_zones(slide)


@pytest.mark.parametrize("target", TARGETS)
@pytest.mark.parametrize("layout", list(SlideLayout), ids=lambda layout: layout.value)
def test_sparse_slide_zones_match_contract(target, layout):
    slide = _sparse_slide(layout)

    assert _zones_for(target, slide) == expected_zones(slide)


def test_all_targets_agree_on_a_whole_deck():
    slides = tuple(_full_slide(layout, 1, False) for layout in SlideLayout)
    deck = Presentation(id="deck", title="Contract", slides=slides)
    expected = [expected_zones(slide) for slide in slides]

    live = [list(LiveSlideRenderer().compose(slide, deck.theme, i).zone_names) for i, slide in enumerate(slides)]
    html = _html_zones(HtmlDeckExporter().render(deck))
    pptx = _pptx_zones(SlideDeckRenderer(image_loader=_loader).render_document(deck))
    pages = [page.zones for page in PrintDeckRenderer(image_loader=_loader).render_pages(deck)]

    assert live == html == pptx == pages == expected


# ----- Stat grid -----

THREE_STATS = (Stat("73%", "adoption"), Stat("2x", "speed"), Stat("$4M", "savings"))


def _stats_deck(stats):
    slide = Slide(id="stats", title="By the numbers", layout=SlideLayout.STATS, stats=stats)
    return Presentation(id="deck", title="Stats", slides=(slide,))


def _pptx_stat_cards(deck):
    pptx = load_pptx(SlideDeckRenderer(image_loader=_loader).render_document(deck))
    group = next(shape for shape in pptx.slides[0].shapes if shape.name == "zone:stats")
    return list(group.shapes)


def test_three_stats_live_grid():
    view = LiveSlideRenderer().compose(_stats_deck(THREE_STATS).slides[0])

    assert view.zone("stats").columns == 3
    assert view.zone("stats").stats == THREE_STATS


def test_three_stats_html_grid():
    html = HtmlDeckExporter().render(_stats_deck(THREE_STATS))

    assert 'data-columns="3"' in html
    assert re.findall(r'<div class="stat-value">([^<]+)</div>', html) == ["73%", "2x", "$4M"]


def test_three_stats_pptx_grid():
    cards = _pptx_stat_cards(_stats_deck(THREE_STATS))

    assert [card.name for card in cards] == ["stat:0", "stat:1", "stat:2"]
    assert [card.text_frame.text.split("\n")[0] for card in cards] == ["73%", "2x", "$4M"]
    assert len({card.top for card in cards}) == 1
    lefts = [card.left for card in cards]
    assert lefts == sorted(lefts)


def test_three_stats_print_grid():
    page = PrintDeckRenderer(image_loader=_loader).render_pages(_stats_deck(THREE_STATS))[0]
    zone = page.zone("stats")

    assert zone.columns == 3
    assert zone.lines == ("73%|adoption", "2x|speed", "$4M|savings")


def test_five_stats_wrap_into_four_columns():
    stats = tuple(Stat(str(i), f"label {i}") for i in range(5))
    deck = _stats_deck(stats)

    cards = _pptx_stat_cards(deck)
    page = PrintDeckRenderer(image_loader=_loader).render_pages(deck)[0]

    assert len({card.top for card in cards}) == 2
    assert page.zone("stats").columns == 4
    assert 'data-columns="4"' in HtmlDeckExporter().render(deck)


def test_missing_stats_render_placeholder_everywhere():
    deck = _stats_deck(())

    view = LiveSlideRenderer().compose(deck.slides[0])
    html = HtmlDeckExporter().render(deck)
    cards = _pptx_stat_cards(deck)
    page = PrintDeckRenderer(image_loader=_loader).render_pages(deck)[0]

    assert view.zone("stats").placeholder == "stat-card"
    assert 'data-placeholder="stat-card"' in html
    assert [card.text_frame.text.split("\n")[0] for card in cards] == ["N/A"]
    assert page.zone("stats").placeholder == "stat-card"
