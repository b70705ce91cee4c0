import pytest

from deckgen.slide_models import (
    DEFAULT_THEME,
    AspectRatio,
    ImageSource,
    Presentation,
    Slide,
    SlideLayout,
    Stat,
    Theme,
    ordered_ids,
)


def _deck():
    slides = [Slide(id=f"s{i}", title=f"Slide {i}") for i in range(1, 5)]
    return Presentation(id="deck-1", title="Deck", slides=tuple(slides))


def test_coerce_handles_unknown_and_enum_values():
    assert SlideLayout.coerce("Full Image") is SlideLayout.FULL_IMAGE
    assert SlideLayout.coerce(None) is SlideLayout.CONTENT
    assert SlideLayout.coerce("bogus", SlideLayout.TITLE) is SlideLayout.TITLE
    assert SlideLayout.coerce(SlideLayout.STATS) is SlideLayout.STATS


def test_title_subtitle_is_canonically_title():
    assert SlideLayout.TITLE_SUBTITLE.canonical is SlideLayout.TITLE
    assert SlideLayout.QUOTE.canonical is SlideLayout.QUOTE


def test_aspect_ratio_value():
    assert AspectRatio.STANDARD.ratio == pytest.approx(4 / 3)


def test_with_image_drops_source_without_url():
    slide = Slide(id="s", title="t")

    assert slide.with_image("https://img", ImageSource.STOCK).image_source is ImageSource.STOCK
    assert slide.with_image(None, ImageSource.STOCK).image_source is None
    assert not slide.has_image


def test_slide_round_trips_through_dict():
    slide = Slide(
        id="s1",
        title="Growth",
        layout=SlideLayout.STATS,
        layout_variant=3,
        stats=(Stat("10x", "faster"),),
        image_url="https://img",
        image_source=ImageSource.GENERATIVE,
        notes="say hi",
    )

    assert Slide.from_dict(slide.to_dict()) == slide


def test_presentation_round_trips_through_dict():
    deck = _deck()

    restored = Presentation.from_dict(deck.to_dict())

    assert restored == deck
    assert restored.theme == DEFAULT_THEME


def test_theme_from_partial_dict_keeps_defaults():
    theme = Theme.from_dict({"primaryColor": "#000000"})

    assert theme.primary_color == "#000000"
    assert theme.text_color == DEFAULT_THEME.text_color


def test_edits_return_new_presentations():
    deck = _deck()

    moved = deck.move_slide("s1", 10)
    removed = deck.remove_slide("s2")
    inserted = deck.insert_slide(Slide(id="new", title="New"), 1)
    replaced = deck.replace_slide(Slide(id="s3", title="Replaced"))

    assert ordered_ids(deck.slides) == ["s1", "s2", "s3", "s4"]
    assert ordered_ids(moved.slides) == ["s2", "s3", "s4", "s1"]
    assert ordered_ids(removed.slides) == ["s1", "s3", "s4"]
    assert ordered_ids(inserted.slides) == ["s1", "new", "s2", "s3", "s4"]
    assert replaced.get_slide("s3").title == "Replaced"


def test_unknown_slide_id_raises_key_error():
    with pytest.raises(KeyError):
        _deck().index_of("missing")
    assert _deck().get_slide("missing") is None
