"""Natural-language edit commands for a single slide."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any, Dict, Optional

from completion_api import CompletionModel, CompletionOptions, LLMError

from .assembler import KEYWORD_KEYS, AssemblyPreferences, SlideAssembler
from .decoder import ResilientDecoder
from .errors import CompletionError, SchemaValidationError
from .prompts import CONTRACT_LAYOUTS, PromptPair
from .slide_models import Slide

LOGGER = logging.getLogger(__name__)

EDITABLE_KEYS = (
    "title",
    "subtitle",
    "content",
    "bulletPoints",
    "layout",
    "layoutVariant",
    "titleAlignment",
    "imageKeywords",
    "quote",
    "quoteAuthor",
    "stats",
    "notes",
)


def _editable_view(slide: Slide) -> Dict[str, Any]:
    data = slide.to_dict()
    view = {key: data.get(key) for key in EDITABLE_KEYS if key != "imageKeywords"}
    view["imageKeywords"] = slide.image_prompt
    return view


def build_edit_prompts(slide: Slide, command: str) -> PromptPair:
    """Prompt pair asking the AI to rewrite ``slide`` according to ``command``."""

    if not command or not command.strip():
        raise ValueError("edit command must not be blank")
    system = "\n".join(
        [
            "You edit one slide of a presentation.",
            "Respond with a single JSON object describing the whole updated slide and nothing else.",
            f"Allowed keys: {', '.join(EDITABLE_KEYS)}.",
            f"`layout` is one of: {', '.join(CONTRACT_LAYOUTS)}.",
            "Keep every field the command does not ask to change.",
        ]
    )
    user = "\n".join(
        [
            "Current slide:",
            json.dumps(_editable_view(slide), ensure_ascii=False, indent=2),
            "",
            f"Command: {command.strip()}",
        ]
    )
    return PromptPair(system=system, user=user)


def decode_slide_patch(text: Optional[str], decoder: Optional[ResilientDecoder] = None) -> Dict[str, Any]:
    """Decode an edit response into a patch of slide fields.

    Accepts a bare slide object, ``{"slide": {...}}`` or a one-slide
    ``{"slides": [...]}`` payload.
    """

    data, strategy = (decoder or ResilientDecoder()).decode_object(text)
    if isinstance(data.get("slide"), dict):
        data = data["slide"]
    elif isinstance(data.get("slides"), list) and data["slides"]:
        first = data["slides"][0]
        if isinstance(first, dict):
            data = first
    patch = {key: value for key, value in data.items() if key in EDITABLE_KEYS or key in KEYWORD_KEYS}
    if not patch:
        raise SchemaValidationError("edit response carries no slide fields", payload=data)
    LOGGER.debug("Decoded slide patch with keys %s (strategy: %s)", sorted(patch), strategy)
    return patch


def apply_slide_patch(slide: Slide, patch: Dict[str, Any], index: int = 0) -> Slide:
    """Return a new slide with the patched fields replaced.

    Identity is preserved. The image stays unless the keywords change.
    """

    record = _editable_view(slide)
    record.update(patch)
    for key in KEYWORD_KEYS:
        if key in patch:
            record["imageKeywords"] = patch[key]
            break
    assembler = SlideAssembler(id_factory=lambda: slide.id)
    updated = assembler.assemble_one(record, index, preferences=AssemblyPreferences())
    updated = replace(updated, background=slide.background, transition=slide.transition)
    if updated.image_prompt == slide.image_prompt:
        updated = updated.with_image(slide.image_url, slide.image_source)
    return updated


class SlideEditor:
    """Apply a natural-language command to one slide through the AI client."""

    def __init__(
        self,
        model: CompletionModel,
        *,
        decoder: Optional[ResilientDecoder] = None,
        options: Optional[CompletionOptions] = None,
    ) -> None:
        self.model = model
        self.decoder = decoder or ResilientDecoder()
        self.options = options or CompletionOptions(temperature=0.5, max_output_tokens=2000)

    async def apply_command(self, slide: Slide, command: str, index: int = 0) -> Slide:
        prompts = build_edit_prompts(slide, command)
        try:
            text = await self.model.complete(prompts.system, prompts.user, self.options)
        except LLMError as exc:
            raise CompletionError(str(exc)) from exc
        patch = decode_slide_patch(text, self.decoder)
        LOGGER.info("Applied edit %r to slide %s", command.strip(), slide.id)
        return apply_slide_patch(slide, patch, index)
