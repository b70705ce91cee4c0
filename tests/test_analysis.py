from deckgen.analysis import analyze_presentation
from deckgen.slide_models import Presentation, Slide, SlideLayout

LAYOUTS = [
    SlideLayout.TITLE,
    SlideLayout.CONTENT_IMAGE,
    SlideLayout.STATS,
    SlideLayout.QUOTE,
    SlideLayout.IMAGE_CONTENT,
    SlideLayout.TWO_COLUMN,
    SlideLayout.FULL_IMAGE,
    SlideLayout.CONTENT,
    SlideLayout.THANK_YOU,
]


def _good_deck():
    slides = tuple(
        Slide(
            id=f"s{i}",
            title=f"A clear headline number {i}",
            layout=layout,
            bullet_points=("one", "two", "three"),
            image_url="https://img" if i % 2 == 0 else None,
            notes="Talk through the main point with an example.",
        )
        for i, layout in enumerate(LAYOUTS)
    )
    return Presentation(id="deck", title="Good", slides=slides)


def test_well_built_deck_scores_full_marks():
    analysis = analyze_presentation(_good_deck())

    assert analysis.score == 100
    assert analysis.improvements == []


def test_weak_deck_gets_suggestions():
    deck = Presentation(
        id="deck",
        title="Weak",
        slides=(Slide(id="a", title="Hi", bullet_points=tuple(str(i) for i in range(8))),),
    )

    analysis = analyze_presentation(deck)

    categories = {item.category for item in analysis.improvements}
    assert {"Structure", "Visual variety", "Visual content", "Copywriting", "Readability", "Preparation"} <= categories
    assert analysis.score == 5 + 5 + 10 + 5 + 5 + 5
    assert analysis.to_dict()["suggestions"] == analysis.suggestions


def test_analysis_does_not_change_presentation():
    deck = _good_deck()
    before = deck.to_dict()

    analyze_presentation(deck)

    assert deck.to_dict() == before


def test_empty_deck_is_scored_without_errors():
    analysis = analyze_presentation(Presentation(id="deck", title="Empty"))

    assert 0 <= analysis.score <= 100
