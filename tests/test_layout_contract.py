import pytest

from deckgen import layout_contract as contract
from deckgen.slide_models import Slide, SlideLayout, Stat


def test_every_layout_has_a_contract():
    for layout in SlideLayout:
        assert contract.contract_for(layout).layout is layout.canonical


def test_title_subtitle_shares_title_contract():
    assert contract.contract_for(SlideLayout.TITLE_SUBTITLE) is contract.LAYOUT_CONTRACTS[SlideLayout.TITLE]


def test_unknown_zone_lookup_raises():
    with pytest.raises(KeyError):
        contract.contract_for(SlideLayout.QUOTE).zone(contract.MEDIA)


def test_optional_zones_without_placeholder_are_omitted():
    slide = Slide(id="s", title="Only a title", layout=SlideLayout.CONTENT)

    assert contract.expected_zones(slide) == ["title"]


def test_media_zone_is_always_expected_for_image_layouts():
    slide = Slide(id="s", title="t", layout=SlideLayout.IMAGE_CONTENT)

    assert contract.expected_zones(slide) == ["media", "title"]
    assert contract.uses_placeholder(slide, contract.MEDIA)
    assert not contract.uses_placeholder(slide.with_image("https://img", None), contract.MEDIA)


def test_content_image_variant_two_puts_media_first():
    slide = Slide(id="s", title="t", layout=SlideLayout.CONTENT_IMAGE, layout_variant=2, content="c")

    assert contract.expected_zones(slide) == ["media", "title", "content"]
    assert contract.expected_zones(Slide(id="s", title="t", layout=SlideLayout.CONTENT_IMAGE, content="c")) == [
        "title",
        "content",
        "media",
    ]


def test_quote_falls_back_to_content_then_title():
    assert contract.quote_text(Slide(id="s", title="T", quote="Q", content="C")) == "Q"
    assert contract.quote_text(Slide(id="s", title="T", content="C")) == "C"
    assert contract.quote_text(Slide(id="s", title="T")) == "T"
    assert contract.quote_author(Slide(id="s", title="T", subtitle="Sub")) == "Sub"
    assert contract.quote_author(Slide(id="s", title="T")) is None


def test_thank_you_title_fallback():
    assert contract.thank_you_title(Slide(id="s", title="")) == contract.THANK_YOU_FALLBACK


def test_missing_stats_use_placeholder_card():
    slide = Slide(id="s", title="t", layout=SlideLayout.STATS)

    assert contract.display_stats(slide) == (contract.PLACEHOLDER_STAT,)
    assert contract.expected_zones(slide) == ["title", "stats"]


@pytest.mark.parametrize("count,columns", [(1, 3), (2, 3), (3, 3), (4, 4), (6, 4)])
def test_stat_grid_columns(count, columns):
    assert contract.stat_grid_columns(count) == columns


def test_split_columns_prefers_paragraph_on_the_left():
    slide = Slide(id="s", title="t", content="Before", bullet_points=("a", "b"))

    assert contract.split_columns(slide) == (("Before",), ("a", "b"))


def test_split_columns_halves_bullets_without_paragraph():
    slide = Slide(id="s", title="t", bullet_points=("a", "b", "c"))

    assert contract.split_columns(slide) == (("a", "b"), ("c",))


def test_stats_keep_their_order():
    stats = (Stat("1", "one"), Stat("2", "two"), Stat("3", "three"))

    assert contract.display_stats(Slide(id="s", title="t", stats=stats)) == stats
