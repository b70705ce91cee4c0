"""Build the system/user prompt pair for a presentation request."""

from __future__ import annotations

import json
import textwrap
from dataclasses import dataclass
from typing import Dict, List

from .slide_models import PresentationStyle, SlideLayout

CONTRACT_LAYOUTS: List[str] = [
    SlideLayout.TITLE.value,
    SlideLayout.CONTENT.value,
    SlideLayout.CONTENT_IMAGE.value,
    SlideLayout.IMAGE_CONTENT.value,
    SlideLayout.TWO_COLUMN.value,
    SlideLayout.FULL_IMAGE.value,
    SlideLayout.QUOTE.value,
    SlideLayout.STATS.value,
    SlideLayout.THANK_YOU.value,
]

STYLE_GUIDANCE: Dict[PresentationStyle, str] = {
    PresentationStyle.PROFESSIONAL: (
        "Business tone, concise headlines, data-backed claims, clear calls to action."
    ),
    PresentationStyle.CREATIVE: (
        "Vivid storytelling, bold metaphors, surprising facts, energetic headlines."
    ),
    PresentationStyle.MINIMAL: (
        "One idea per slide, very short text, generous use of full-image and quote slides."
    ),
    PresentationStyle.ACADEMIC: (
        "Precise terminology, research question, methodology, results and references to sources."
    ),
}

MIN_IMAGE_SHARE = 0.6


@dataclass(frozen=True)
class GenerationRequest:
    """What the user asked for."""

    topic: str
    subject: str = "general"
    style: PresentationStyle = PresentationStyle.PROFESSIONAL
    slide_count: int = 10
    include_images: bool = True
    language: str = "English"

    def validate(self) -> None:
        if not self.topic or not self.topic.strip():
            raise ValueError("topic must not be blank")
        if self.slide_count < 1:
            raise ValueError(f"slide_count must be positive, got {self.slide_count}")


@dataclass(frozen=True)
class PromptPair:
    system: str
    user: str


def _output_shape() -> Dict[str, object]:
    return {
        "title": "Presentation title",
        "description": "One or two sentences describing the deck",
        "slides": [
            {
                "title": "Slide headline (max 8 words)",
                "subtitle": "Optional supporting line",
                "content": "Short paragraph (2-3 sentences)",
                "bulletPoints": ["point with a benefit", "point with a number"],
                "layout": " | ".join(CONTRACT_LAYOUTS),
                "layoutVariant": "1 | 2 | 3",
                "titleAlignment": "left | center | right",
                "imageKeywords": "3-6 English keywords describing a photo",
                "quote": "Quote text, quote slides only",
                "quoteAuthor": "Quote author",
                "stats": [{"value": "73%", "label": "what the number measures"}],
                "notes": "Speaker notes: what to say on this slide",
            }
        ],
    }


def build_system_prompt() -> str:
    shape = json.dumps(_output_shape(), ensure_ascii=False, indent=2)
    sections = [
        "You are a world-class presentation designer and researcher.",
        "Respond with a single JSON object and nothing else: no prose, no markdown fences.",
        "The object must follow this shape exactly:",
        shape,
        "Rules:",
        "1. `slides` is an array in presentation order.",
        f"2. `layout` is one of: {', '.join(CONTRACT_LAYOUTS)}.",
        "3. `stats` slides carry 3 or 4 entries; `quote` slides carry `quote` and `quoteAuthor`.",
        "4. `two-column` slides put contrasting points into `content` and `bulletPoints`.",
        "5. Keep at most 5 bullet points per slide and at most 6 words per bullet where possible.",
    ]
    return "\n".join(sections)


def build_user_prompt(request: GenerationRequest) -> str:
    style = PresentationStyle(request.style)
    min_images = max(1, round(request.slide_count * MIN_IMAGE_SHARE)) if request.include_images else 0
    lines = [
        f'Create a presentation of exactly {request.slide_count} slides on the topic: "{request.topic.strip()}".',
        f"Subject area: {request.subject}.",
        f"Style: {style.value}. {STYLE_GUIDANCE[style]}",
        f"Write every text field in {request.language}; `imageKeywords` stay in English.",
        "",
        "Narrative arc:",
        "- Slide 1 uses the `title` layout and hooks the audience.",
        "- Middle slides move from problem to insight to evidence.",
        "- The last slide uses the `thank-you` layout with a clear call to action.",
        "",
        "Layout variety:",
        "- Use at least 4 different layouts and vary `layoutVariant` and `titleAlignment`.",
        "- Include at least one `quote` slide and at least one `stats` slide.",
    ]
    if request.include_images:
        lines.append(
            f"- At least {min_images} slides use image layouts (content-image, image-content, full-image) "
            "and every slide with an image layout has `imageKeywords`."
        )
    else:
        lines.append("- Do not use image layouts; leave `imageKeywords` empty.")
    return textwrap.dedent("\n".join(lines)).strip()


def compile_prompts(request: GenerationRequest) -> PromptPair:
    """Return the prompt pair for ``request``. Pure function."""

    return PromptPair(system=build_system_prompt(), user=build_user_prompt(request))
