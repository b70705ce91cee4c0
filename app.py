"""Streamlit UI for generating and editing AI presentations."""

from __future__ import annotations

import asyncio
import json
import re
import textwrap
from typing import Any, Dict, List, Optional, Tuple

import streamlit as st

from completion_api import (
    CompletionModel,
    CompletionRequest,
    CompletionResponse,
    ProviderConfig,
)

from deckgen.analysis import analyze_presentation
from deckgen.config import Settings
from deckgen.errors import DeckgenError
from deckgen.image_enrichment import ImageEnricher
from deckgen.image_providers import GenerativeImageProvider, InMemoryQuotaGuard, StockPhotoProvider
from deckgen.pipeline import PresentationPipeline
from deckgen.prompts import GenerationRequest
from deckgen.renderers import (
    DeckNavigator,
    HtmlDeckExporter,
    LiveSlideRenderer,
    PrintDeckRenderer,
    SlideDeckRenderer,
)
from deckgen.slide_document import PresentationStore
from deckgen.slide_editing import SlideEditor
from deckgen.slide_models import Presentation, PresentationStyle
from deckgen.workspace import StepStatus, WorkspaceStep

TOPIC_PATTERN = re.compile(r'on the topic:\s*"(?P<topic>[^"]+)"')
COUNT_PATTERN = re.compile(r"exactly (?P<count>\d+) slides")
COMMAND_PATTERN = re.compile(r"Command:\s*(?P<command>.+)", re.DOTALL)

STATUS_ICONS = {
    StepStatus.PENDING: "⏳",
    StepStatus.IN_PROGRESS: "🔄",
    StepStatus.COMPLETED: "✅",
    StepStatus.ERROR: "❌",
}


def _extract_topic(prompt: str, *, max_width: int = 60) -> str:
    """Return the topic embedded in a generation prompt."""

    if not prompt:
        return "Untitled topic"
    match = TOPIC_PATTERN.search(prompt)
    section = match.group("topic") if match else prompt
    section = section.strip().replace("\n", " ")
    if not section:
        return "Untitled topic"
    return textwrap.shorten(section, width=max_width, placeholder="…")


def _extract_count(prompt: str, default: int = 6) -> int:
    match = COUNT_PATTERN.search(prompt or "")
    return int(match.group("count")) if match else default


class StubCompletionModel(CompletionModel):
    """Offline completion model that writes a plausible deck for demos/tests."""

    def __init__(self) -> None:
        super().__init__(api_key="stub", model_name="stub-deck")

    def setup_client(self) -> None:
        self.client = None

    def _get_provider_config(self) -> ProviderConfig:
        return ProviderConfig(provider_name="stub", model_name="stub-deck")

    async def generate(self, request: CompletionRequest) -> CompletionResponse:
        if "You edit one slide" in request.system_prompt:
            payload = self._edit_payload(request.user_prompt)
        else:
            payload = self._deck_payload(request.user_prompt)
        return CompletionResponse(
            text=json.dumps(payload, ensure_ascii=False),
            model_used="stub-deck",
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _deck_payload(self, prompt: str) -> Dict[str, Any]:
        topic = _extract_topic(prompt)
        count = max(1, _extract_count(prompt))
        body: List[Dict[str, Any]] = [
            {
                "title": f"Why {topic} matters",
                "layout": "content-image",
                "content": f"A short look at where {topic} stands today.",
                "bulletPoints": ["Where it started", "What changed recently", "Who benefits"],
                "imageKeywords": f"{topic} overview",
            },
            {
                "title": f"{topic} in numbers",
                "layout": "stats",
                "content": "Three figures that frame the discussion.",
                "stats": [
                    {"value": "3x", "label": "growth in five years"},
                    {"value": "42%", "label": "of teams already experimenting"},
                    {"value": "$1B", "label": "invested last year"},
                ],
            },
            {
                "title": "A view from the field",
                "layout": "quote",
                "quote": f"{topic} rewards the teams that start small and learn fast.",
                "quoteAuthor": "Industry practitioner",
            },
            {
                "title": "Opportunities and risks",
                "layout": "two-column",
                "bulletPoints": ["Faster decisions", "New products", "Skills gap", "Unclear regulation"],
            },
            {
                "title": "How it works",
                "layout": "image-content",
                "content": f"The building blocks behind {topic}.",
                "bulletPoints": ["Inputs", "Processing", "Outcomes"],
                "imageKeywords": f"{topic} diagram",
            },
            {
                "title": "Looking ahead",
                "layout": "full-image",
                "content": "What the next five years could bring.",
                "imageKeywords": "horizon future landscape",
            },
        ]
        slides: List[Dict[str, Any]] = [
            {
                "title": topic,
                "subtitle": "An overview",
                "layout": "title",
                "notes": f"Introduce {topic} and what the audience will take away.",
            }
        ]
        index = 0
        while len(slides) < count - 1:
            slides.append(dict(body[index % len(body)]))
            index += 1
        if count > 1:
            slides.append(
                {
                    "title": "Thank you!",
                    "layout": "thank-you",
                    "content": "Questions and discussion",
                }
            )
        return {
            "title": topic,
            "description": f"A {count}-slide introduction to {topic}.",
            "slides": slides[:count],
        }

    def _edit_payload(self, prompt: str) -> Dict[str, Any]:
        current_json = prompt.split("Current slide:", 1)[-1].split("Command:", 1)[0]
        try:
            current = json.loads(current_json)
        except json.JSONDecodeError:
            current = {}
        match = COMMAND_PATTERN.search(prompt)
        command = match.group("command").strip() if match else ""
        current["notes"] = f"Edited: {command}" if command else current.get("notes")
        if "shorter" in command.lower() and current.get("bulletPoints"):
            current["bulletPoints"] = current["bulletPoints"][:3]
        return current


@st.cache_resource(show_spinner=False)
def load_resources() -> Tuple[LiveSlideRenderer, HtmlDeckExporter, SlideDeckRenderer, PrintDeckRenderer]:
    """Initialise the renderer targets once per session."""

    return LiveSlideRenderer(), HtmlDeckExporter(), SlideDeckRenderer(), PrintDeckRenderer()


# Exports download every slide image, so reruns with an unchanged deck
# (navigation, expanders, typing) must reuse the previous bytes.
@st.cache_data(show_spinner="Rendering PPTX...", max_entries=8)
def build_pptx_export(deck_json: str) -> bytes:
    _, _, deck_renderer, _ = load_resources()
    return deck_renderer.render_document(Presentation.from_dict(json.loads(deck_json))).getvalue()


@st.cache_data(show_spinner="Rendering PDF...", max_entries=8)
def build_pdf_export(deck_json: str) -> bytes:
    _, _, _, print_renderer = load_resources()
    return print_renderer.render_document(Presentation.from_dict(json.loads(deck_json)))


def _instantiate_model(choice: str, settings: Settings) -> Optional[CompletionModel]:
    if choice == "Provider from environment":
        try:
            from completion_api.providers import create_model

            return create_model(settings.llm_provider, model_name=settings.model_name)
        except Exception as exc:  # pragma: no cover - depends on runtime secrets
            st.warning(
                "Could not initialise the AI provider. Check DECKGEN_LLM_PROVIDER and the API key."
            )
            st.text(str(exc))
            return None
    return StubCompletionModel()


def _build_enricher(settings: Settings, use_generative: bool) -> ImageEnricher:
    generative = GenerativeImageProvider() if use_generative and settings.image_quota > 0 else None
    stock = StockPhotoProvider(
        pexels_api_key=settings.pexels_api_key,
        unsplash_access_key=settings.unsplash_access_key,
        use_fallback_catalog=True,
    )
    return ImageEnricher(
        generative,
        stock,
        InMemoryQuotaGuard(settings.image_quota),
        retry_delay=settings.image_retry_delay,
        per_slide_timeout=settings.image_timeout,
    )


def _render_steps(container, steps: List[WorkspaceStep]) -> None:
    lines = []
    for step in steps:
        lines.append(f"{STATUS_ICONS[step.status]} **{step.title}**")
        lines.extend(f"    - {detail}" for detail in step.details[-3:])
    container.markdown("\n".join(lines))


def _current_presentation() -> Optional[Presentation]:
    data = st.session_state.get("presentation")
    return Presentation.from_dict(data) if data else None


def _store_presentation(presentation: Presentation) -> None:
    st.session_state["presentation"] = presentation.to_dict()


def main() -> None:
    settings = Settings.from_env()
    settings.configure_logging()

    st.set_page_config(page_title="Deckgen", layout="wide")
    st.title("Deckgen – AI presentation builder")

    live, html_exporter, deck_renderer, _ = load_resources()
    st.session_state.setdefault("presentation", None)
    st.session_state.setdefault("slide_index", 0)

    with st.sidebar:
        st.header("Generation settings")
        model_option = st.radio(
            "Generation mode",
            ("Stub generation", "Provider from environment"),
            index=0,
            help="Use stub generation when no API key is configured.",
        )
        use_generative = st.checkbox(
            "Allow generated images",
            value=False,
            help=f"Up to {settings.image_quota} generated images per session (DECKGEN_IMAGE_QUOTA).",
        )
        store = PresentationStore(settings.store_dir)
        saved_ids = store.list_ids()
        if saved_ids:
            chosen = st.selectbox("Open a saved presentation", ["(none)"] + saved_ids)
            if chosen != "(none)" and st.button("Open"):
                _store_presentation(store.load(chosen))
                st.session_state["slide_index"] = 0

    st.subheader("What should the presentation cover?")
    topic = st.text_input("Topic", placeholder="e.g. Quantum computing for product managers")
    col_a, col_b, col_c = st.columns(3)
    with col_a:
        subject = st.text_input("Subject area", value="general")
    with col_b:
        style = st.selectbox("Style", [style.value for style in PresentationStyle])
    with col_c:
        slide_count = st.slider("Slides", min_value=3, max_value=20, value=10)
    include_images = st.checkbox("Include images", value=True)

    if st.button("Generate presentation", type="primary"):
        model = _instantiate_model(model_option, settings)
        if model is None:
            st.info("Falling back to stub generation.")
            model = StubCompletionModel()
        pipeline = PresentationPipeline(
            model,
            _build_enricher(settings, use_generative),
            store=store,
            settings=settings,
        )
        request = GenerationRequest(
            topic=topic,
            subject=subject,
            style=PresentationStyle(style),
            slide_count=slide_count,
            include_images=include_images,
        )
        progress_box = st.empty()
        result = asyncio.run(
            pipeline.generate(
                request,
                progress=lambda step: progress_box.markdown(
                    f"{STATUS_ICONS[step.status]} {step.title}: "
                    f"{step.details[-1] if step.details else step.description}"
                ),
            )
        )
        _render_steps(progress_box, result.workspace.steps)
        if result.succeeded:
            _store_presentation(result.presentation)
            st.session_state["slide_index"] = 0
            st.success("Presentation ready.")
        else:
            st.error(f"{result.error.user_message} (step: {result.failed_step})")
            if result.error.step_id == "generate-content":
                st.caption(str(result.error.cause))

    st.divider()

    presentation = _current_presentation()
    if presentation is None:
        st.caption("Generate a presentation or open a saved one to start editing.")
        return
    if not presentation.slides:
        st.info("The presentation has no slides.")
        return

    st.subheader(presentation.title)
    if presentation.description:
        st.caption(presentation.description)

    navigator = DeckNavigator(len(presentation.slides), st.session_state.get("slide_index", 0))
    nav_cols = st.columns([1, 6, 1])
    with nav_cols[0]:
        if st.button("← Back", disabled=navigator.is_first):
            navigator.previous()
    with nav_cols[2]:
        if st.button("Next →", disabled=navigator.is_last):
            navigator.next()
    with nav_cols[1]:
        st.caption(f"Slide {navigator.current + 1} of {navigator.total}")
    st.session_state["slide_index"] = navigator.current

    slide = presentation.slides[navigator.current]
    view = live.compose(slide, presentation.theme, navigator.current)
    st.markdown(live.to_html(view), unsafe_allow_html=True)
    if slide.notes:
        st.info(f"Speaker notes: {slide.notes}")

    with st.expander("Edit this slide", expanded=False):
        command = st.text_input("Edit command", placeholder="e.g. make the bullets shorter")
        edit_cols = st.columns(3)
        with edit_cols[0]:
            if st.button("Apply command") and command.strip():
                model = _instantiate_model(model_option, settings) or StubCompletionModel()
                try:
                    updated = asyncio.run(
                        SlideEditor(model).apply_command(slide, command, navigator.current)
                    )
                except DeckgenError as exc:
                    st.error(exc.user_message)
                else:
                    _store_presentation(presentation.replace_slide(updated))
                    st.rerun()
        with edit_cols[1]:
            if st.button("Move earlier", disabled=navigator.is_first):
                _store_presentation(presentation.move_slide(slide.id, navigator.current - 1))
                st.session_state["slide_index"] = navigator.current - 1
                st.rerun()
        with edit_cols[2]:
            if st.button("Delete slide", disabled=len(presentation.slides) == 1):
                _store_presentation(presentation.remove_slide(slide.id))
                navigator.resize(len(presentation.slides) - 1)
                st.session_state["slide_index"] = navigator.current
                st.rerun()

    analysis = analyze_presentation(presentation)
    with st.expander(f"Quality score: {analysis.score}/100", expanded=False):
        if not analysis.improvements:
            st.write("No suggestions.")
        for item in analysis.improvements:
            st.markdown(f"- **{item.category}**: {item.issue}. {item.fix}")

    st.markdown("#### Export")
    deck_json = json.dumps(presentation.to_dict(), ensure_ascii=False, indent=2)
    export_cols = st.columns(4)
    with export_cols[0]:
        st.download_button(
            "HTML",
            data=html_exporter.render(presentation).encode("utf-8"),
            file_name="presentation.html",
            mime="text/html",
        )
    with export_cols[1]:
        pptx_bytes = build_pptx_export(deck_json)
        st.download_button(
            "PPTX",
            data=pptx_bytes,
            file_name="presentation.pptx",
            mime="application/vnd.openxmlformats-officedocument.presentationml.presentation",
        )
    with export_cols[2]:
        st.download_button(
            "PDF",
            data=build_pdf_export(deck_json),
            file_name="presentation.pdf",
            mime="application/pdf",
        )
    with export_cols[3]:
        st.download_button(
            "JSON",
            data=deck_json.encode("utf-8"),
            file_name=f"{presentation.id}.json",
            mime="application/json",
        )

    if st.checkbox("Show PPTX preview (requires LibreOffice)", value=False):
        preview_bytes = deck_renderer.render_preview_image(
            presentation, pptx_bytes=pptx_bytes, slide_index=navigator.current
        )
        if preview_bytes:
            st.image(preview_bytes, caption=f"Slide {navigator.current + 1} preview", use_container_width=True)
        else:
            st.info("Could not create a preview image. Check the LibreOffice installation.")

    if st.button("Save presentation"):
        path = store.save(presentation)
        st.success(f"Saved to {path}")


if __name__ == "__main__":  # pragma: no cover - Streamlit handles execution
    main()
