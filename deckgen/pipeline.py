"""End-to-end presentation generation.

The pipeline walks the workspace steps in order::

    analyze -> research -> structure -> generate-content
            -> enrich-images -> style -> finalize

Each step runs inside :meth:`WorkspaceProgress.step`, so any failure marks
that step as ``error``, leaves the later steps pending, and is returned on
the :class:`PipelineResult` instead of being raised.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional

from completion_api import (
    CompletionModel,
    CompletionOptions,
    CompletionRequest,
    CompletionResponse,
    LLMError,
    LLMRateLimitError,
    async_retry,
)
from completion_api.exceptions import RATE_LIMIT

from .assembler import AssemblyPreferences, SlideAssembler
from .config import Settings
from .decoder import DecodedPresentation, ResilientDecoder
from .errors import CompletionError, StepError
from .image_enrichment import ImageEnricher
from .prompts import STYLE_GUIDANCE, GenerationRequest, PromptPair, compile_prompts
from .slide_document import PresentationStore
from .slide_models import DEFAULT_THEME, Presentation, Slide, SlideLayout, Theme, new_identity
from .workspace import WorkspaceProgress, WorkspaceStep

LOGGER = logging.getLogger(__name__)

# Completion attempts when the provider reports a rate limit.
RATE_LIMIT_ATTEMPTS = 3


@dataclass
class PipelineResult:
    workspace: WorkspaceProgress
    presentation: Optional[Presentation] = None
    error: Optional[StepError] = None

    @property
    def succeeded(self) -> bool:
        return self.presentation is not None and self.error is None

    @property
    def failed_step(self) -> Optional[str]:
        return self.error.step_id if self.error else None


class PresentationPipeline:
    """Generate a complete :class:`Presentation` from a request."""

    def __init__(
        self,
        model: CompletionModel,
        enricher: ImageEnricher,
        *,
        store: Optional[PresentationStore] = None,
        settings: Optional[Settings] = None,
        theme: Optional[Theme] = None,
        decoder: Optional[ResilientDecoder] = None,
        assembler: Optional[SlideAssembler] = None,
    ) -> None:
        self.model = model
        self.enricher = enricher
        self.store = store
        self.settings = settings or Settings()
        self.theme = theme or DEFAULT_THEME
        self.decoder = decoder or ResilientDecoder()
        self.assembler = assembler or SlideAssembler()
        self._generate_with_backoff = async_retry(
            max_attempts=RATE_LIMIT_ATTEMPTS,
            delay=self.settings.completion_retry_delay,
            exceptions=(LLMRateLimitError,),
        )(self._generate_once)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def generate(
        self,
        request: GenerationRequest,
        progress: Optional[Callable[[WorkspaceStep], None]] = None,
    ) -> PipelineResult:
        workspace = WorkspaceProgress()
        if progress is not None:
            workspace.subscribe(progress)

        try:
            presentation = await self._run(request, workspace)
        except StepError as exc:
            LOGGER.error(
                "Generation of %r stopped at step '%s': %s", request.topic, exc.step_id, exc.cause
            )
            return PipelineResult(workspace=workspace, error=exc)

        return PipelineResult(workspace=workspace, presentation=presentation)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    async def _run(self, request: GenerationRequest, workspace: WorkspaceProgress) -> Presentation:
        async with workspace.step("analyze"):
            request.validate()
            workspace.log("analyze", f"Topic: {request.topic.strip()}")
            workspace.log(
                "analyze",
                f"{request.slide_count} slides, {request.style.value} style, "
                f"images {'on' if request.include_images else 'off'}",
            )
        await self._pause()

        async with workspace.step("research"):
            workspace.log("research", f"Subject area: {request.subject}")
            workspace.log("research", STYLE_GUIDANCE[request.style])
        await self._pause()

        async with workspace.step("structure"):
            prompts = compile_prompts(request)
            workspace.log("structure", "Planned opening, body and closing sections")
        await self._pause()

        async with workspace.step("generate-content"):
            text = await self._complete(prompts)
            workspace.log("generate-content", f"Received {len(text)} characters")
            decoded = self.decoder.decode_presentation(text)
            workspace.log(
                "generate-content",
                f"Decoded {len(decoded.slides)} slides (strategy: {decoded.strategy})",
            )
            slides = self.assembler.assemble(
                decoded.slides,
                total_count=request.slide_count,
                preferences=AssemblyPreferences(include_images=request.include_images),
            )
        await self._pause()

        async with workspace.step("enrich-images"):
            if request.include_images:
                slides = await self.enricher.enrich(
                    slides,
                    include_images=True,
                    progress=lambda line: workspace.log("enrich-images", line),
                )
            else:
                workspace.log("enrich-images", "Images disabled")
        await self._pause()

        async with workspace.step("style"):
            workspace.log("style", f"Theme: {self.theme.name}")
        await self._pause()

        async with workspace.step("finalize"):
            presentation = self._build_presentation(decoded, slides, request)
            if self.store is not None:
                path = self.store.save(presentation)
                workspace.log("finalize", f"Saved to {path}")
            workspace.log("finalize", f"{len(presentation.slides)} slides ready")

        return presentation

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _complete(self, prompts: PromptPair) -> str:
        request = CompletionRequest(
            system_prompt=prompts.system,
            user_prompt=prompts.user,
            options=CompletionOptions(
                temperature=self.settings.temperature,
                max_output_tokens=self.settings.max_output_tokens,
            ),
            model_name=self.settings.model_name,
        )
        try:
            response = await self._generate_with_backoff(request)
        except LLMError as exc:
            raise CompletionError(str(exc)) from exc
        except (OSError, asyncio.TimeoutError) as exc:
            raise CompletionError(f"completion transport failed: {exc}") from exc

        if not response.success:
            raise CompletionError(response.error or "completion failed")
        if response.truncated:
            LOGGER.warning("Completion hit the output token limit; relying on truncation recovery")
        return response.text or ""

    async def _generate_once(self, request: CompletionRequest) -> CompletionResponse:
        response = await self.model.generate(request)
        if response.error_type == RATE_LIMIT:
            raise LLMRateLimitError(
                response.error or "rate limited",
                provider=self.model.get_provider_name(),
                error_type=RATE_LIMIT,
            )
        return response

    def _build_presentation(
        self,
        decoded: DecodedPresentation,
        slides: List[Slide],
        request: GenerationRequest,
    ) -> Presentation:
        title = decoded.title or request.topic.strip()
        presentation = Presentation(
            id=new_identity("presentation"),
            title=title,
            description=decoded.description,
            slides=tuple(slides),
            theme=self.theme,
        )
        if slides and slides[0].layout is SlideLayout.CONTENT and not decoded.slides[0].get("layout"):
            # An opener without a layout is treated as the title slide.
            presentation = presentation.replace_slide(replace(slides[0], layout=SlideLayout.TITLE))
        return presentation

    async def _pause(self) -> None:
        if self.settings.step_delay > 0:
            await asyncio.sleep(self.settings.step_delay)
