"""Advisory quality score for a finished presentation.

The checks mirror what the generation prompt asks for (length, layout
variety, image coverage, readable titles and bullets, opening and closing
slides, speaker notes). Nothing here changes the presentation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .slide_models import Presentation, SlideLayout

MIN_SLIDES = 8
MAX_SLIDES = 15
MIN_DISTINCT_LAYOUTS = 4
MIN_IMAGE_RATIO = 0.5
TITLE_LENGTH_RANGE = (15, 60)
MAX_BULLETS = 5
MIN_NOTES_RATIO = 0.5
MIN_NOTES_LENGTH = 20


@dataclass(frozen=True)
class Improvement:
    category: str
    issue: str
    fix: str

    def to_dict(self) -> Dict[str, str]:
        return {"category": self.category, "issue": self.issue, "fix": self.fix}


@dataclass(frozen=True)
class PresentationAnalysis:
    score: int
    improvements: List[Improvement] = field(default_factory=list)

    @property
    def suggestions(self) -> List[str]:
        return [item.fix for item in self.improvements]

    def to_dict(self) -> Dict[str, object]:
        return {
            "score": self.score,
            "suggestions": self.suggestions,
            "improvements": [item.to_dict() for item in self.improvements],
        }


def analyze_presentation(presentation: Presentation) -> PresentationAnalysis:
    slides = presentation.slides
    total = max(len(slides), 1)
    score = 0
    improvements: List[Improvement] = []

    # Length
    if MIN_SLIDES <= len(slides) <= MAX_SLIDES:
        score += 15
    else:
        improvements.append(
            Improvement(
                "Structure",
                "Too few slides" if len(slides) < MIN_SLIDES else "Too many slides",
                f"Aim for {MIN_SLIDES}-{MAX_SLIDES} slides for a 15-minute talk.",
            )
        )
        score += 5

    # Layout variety
    layouts = {slide.layout.canonical for slide in slides}
    if len(layouts) >= MIN_DISTINCT_LAYOUTS:
        score += 15
    else:
        improvements.append(
            Improvement(
                "Visual variety",
                "Slides reuse the same few layouts",
                "Mix layouts such as title, content-image, stats and quote.",
            )
        )
        score += 5

    # Images
    image_ratio = sum(1 for slide in slides if slide.has_image) / total
    if image_ratio >= MIN_IMAGE_RATIO:
        score += 20
    else:
        improvements.append(
            Improvement(
                "Visual content",
                "Not enough images",
                "Add images to at least half of the slides.",
            )
        )
        score += 10

    # Title length
    low, high = TITLE_LENGTH_RANGE
    average_title = sum(len(slide.title or "") for slide in slides) / total
    if low <= average_title <= high:
        score += 15
    else:
        improvements.append(
            Improvement(
                "Copywriting",
                "Titles are too short" if average_title < low else "Titles are too long",
                "Keep headlines to 5-10 words.",
            )
        )
        score += 5

    # Bullets
    if not any(len(slide.bullet_points) > MAX_BULLETS for slide in slides):
        score += 15
    else:
        improvements.append(
            Improvement(
                "Readability",
                "Too many bullet points on a slide",
                f"Limit bullet lists to {MAX_BULLETS} items.",
            )
        )
        score += 5

    # Opening and closing
    has_title = any(slide.layout.canonical is SlideLayout.TITLE for slide in slides)
    has_thank_you = any(slide.layout is SlideLayout.THANK_YOU for slide in slides)
    if has_title and has_thank_you:
        score += 10
    else:
        improvements.append(
            Improvement(
                "Structure",
                "No title slide" if not has_title else "No closing slide",
                "Open with a title slide and close with a thank-you slide.",
            )
        )
        score += 5

    # Speaker notes
    with_notes = sum(1 for slide in slides if slide.notes and len(slide.notes) > MIN_NOTES_LENGTH)
    if slides and with_notes >= len(slides) * MIN_NOTES_RATIO:
        score += 10
    else:
        improvements.append(
            Improvement(
                "Preparation",
                "Few speaker notes",
                "Add speaker notes to every slide.",
            )
        )

    return PresentationAnalysis(score=min(score, 100), improvements=improvements)
