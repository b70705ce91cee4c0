import json

import pytest

from completion_api import CompletionResponse, LLMAPIError, LLMRateLimitError, StopReason
from deckgen.config import Settings
from deckgen.errors import CompletionError, GenerationParseError, SchemaValidationError
from deckgen.image_enrichment import ImageEnricher
from deckgen.image_providers import InMemoryQuotaGuard
from deckgen.pipeline import PresentationPipeline
from deckgen.prompts import GenerationRequest
from deckgen.slide_document import PresentationStore
from deckgen.slide_models import SlideLayout, VARIANTS
from deckgen.workspace import StepStatus

from tests.llm_stubs import FakeImageProvider, ScriptedCompletionModel, deck_payload


def _pipeline(model, tmp_path, *, stock=None, generative=None, quota=0, settings=None):
    enricher = ImageEnricher(
        generative,
        stock or FakeImageProvider("stock", default="https://stock/img.jpg"),
        InMemoryQuotaGuard(quota),
        retry_delay=0,
        per_slide_timeout=2.0,
    )
    store = PresentationStore(tmp_path / "store")
    return PresentationPipeline(model, enricher, store=store, settings=settings or Settings()), store


@pytest.mark.asyncio
async def test_valid_response_produces_requested_deck(tmp_path):
    model = ScriptedCompletionModel([deck_payload(5)])
    pipeline, store = _pipeline(model, tmp_path)

    result = await pipeline.generate(GenerationRequest(topic="Quantum computing", slide_count=5))

    assert result.succeeded
    presentation = result.presentation
    assert len(presentation.slides) == 5
    assert presentation.title == "Quantum computing"
    assert {slide.layout_variant for slide in presentation.slides} == set(VARIANTS)
    assert all(step.status is StepStatus.COMPLETED for step in result.workspace.steps)
    assert store.list_ids() == [presentation.id]
    assert 'on the topic: "Quantum computing"' in model.requests[0].user_prompt
    assert "exactly 5 slides" in model.requests[0].user_prompt


@pytest.mark.asyncio
async def test_image_slides_get_urls(tmp_path):
    pipeline, _ = _pipeline(ScriptedCompletionModel([deck_payload(4)]), tmp_path)

    result = await pipeline.generate(GenerationRequest(topic="Quantum computing", slide_count=4))

    image_slides = [slide for slide in result.presentation.slides if slide.image_prompt]
    assert image_slides
    assert all(slide.image_url == "https://stock/img.jpg" for slide in image_slides)


@pytest.mark.asyncio
async def test_fenced_response_is_accepted(tmp_path):
    text = '```json\n{"title":"T","slides":[{"title":"S1"}]}\n```'
    pipeline, _ = _pipeline(ScriptedCompletionModel([text]), tmp_path)

    result = await pipeline.generate(GenerationRequest(topic="Topic", slide_count=1))

    assert result.succeeded
    assert result.presentation.title == "T"
    assert [slide.title for slide in result.presentation.slides] == ["S1"]
    assert result.presentation.slides[0].layout is SlideLayout.TITLE
    details = result.workspace.get("generate-content").details
    assert any("strategy: fenced" in line for line in details)


@pytest.mark.asyncio
async def test_empty_response_fails_generate_content(tmp_path):
    pipeline, store = _pipeline(ScriptedCompletionModel([""]), tmp_path)

    result = await pipeline.generate(GenerationRequest(topic="Topic", slide_count=3))

    assert not result.succeeded
    assert result.presentation is None
    assert result.failed_step == "generate-content"
    assert isinstance(result.error.cause, GenerationParseError)
    assert result.workspace.overall_status is StepStatus.ERROR
    assert result.workspace.not_attempted() == ["enrich-images", "style", "finalize"]
    assert store.list_ids() == []


@pytest.mark.asyncio
async def test_response_without_slides_is_schema_error(tmp_path):
    pipeline, _ = _pipeline(ScriptedCompletionModel([{"title": "Empty", "slides": []}]), tmp_path)

    result = await pipeline.generate(GenerationRequest(topic="Topic", slide_count=3))

    assert isinstance(result.error.cause, SchemaValidationError)


@pytest.mark.asyncio
async def test_provider_error_becomes_completion_error(tmp_path):
    model = ScriptedCompletionModel([LLMAPIError("boom", provider="stub")])
    pipeline, _ = _pipeline(model, tmp_path)

    result = await pipeline.generate(GenerationRequest(topic="Topic", slide_count=3))

    assert result.failed_step == "generate-content"
    assert isinstance(result.error.cause, CompletionError)
    assert result.error.user_message == "Generation failed, please retry."


@pytest.mark.asyncio
async def test_invalid_request_fails_first_step(tmp_path):
    model = ScriptedCompletionModel([])
    pipeline, _ = _pipeline(model, tmp_path)

    result = await pipeline.generate(GenerationRequest(topic="  ", slide_count=3))

    assert result.failed_step == "analyze"
    assert model.requests == []


@pytest.mark.asyncio
async def test_extra_slides_are_trimmed(tmp_path):
    pipeline, _ = _pipeline(ScriptedCompletionModel([deck_payload(9)]), tmp_path)

    result = await pipeline.generate(GenerationRequest(topic="Topic", slide_count=6))

    assert len(result.presentation.slides) == 6


@pytest.mark.asyncio
async def test_truncated_response_is_recovered(tmp_path):
    text = json.dumps(deck_payload(4))[:-3]
    model = ScriptedCompletionModel([text], stop_reason=StopReason.MAX_TOKENS)
    pipeline, _ = _pipeline(model, tmp_path)

    result = await pipeline.generate(GenerationRequest(topic="Topic", slide_count=4))

    assert result.succeeded
    assert result.presentation.slides[0].title == "Quantum computing"


@pytest.mark.asyncio
async def test_images_disabled_skips_providers(tmp_path):
    stock = FakeImageProvider("stock", default="https://stock/img.jpg")
    pipeline, _ = _pipeline(ScriptedCompletionModel([deck_payload(4)]), tmp_path, stock=stock)

    result = await pipeline.generate(
        GenerationRequest(topic="Topic", slide_count=4, include_images=False)
    )

    assert result.succeeded
    assert stock.calls == []
    assert all(slide.image_url is None for slide in result.presentation.slides)
    assert SlideLayout.CONTENT_IMAGE not in {slide.layout for slide in result.presentation.slides}


@pytest.mark.asyncio
async def test_progress_callback_receives_steps(tmp_path):
    pipeline, _ = _pipeline(ScriptedCompletionModel([deck_payload(3)]), tmp_path)
    seen = []

    await pipeline.generate(
        GenerationRequest(topic="Topic", slide_count=3),
        progress=lambda step: seen.append((step.id, step.status)),
    )

    assert ("analyze", StepStatus.IN_PROGRESS) in seen
    assert seen[-1] == ("finalize", StepStatus.COMPLETED)


@pytest.mark.asyncio
async def test_five_slide_deck_without_images(tmp_path):
    stock = FakeImageProvider("stock", default="https://stock/img.jpg")
    model = ScriptedCompletionModel([deck_payload(5)])
    pipeline, store = _pipeline(model, tmp_path, stock=stock)

    result = await pipeline.generate(
        GenerationRequest(topic="Quantum computing", slide_count=5, include_images=False)
    )

    assert result.succeeded
    slides = result.presentation.slides
    assert len(slides) == 5
    assert slides[0].layout is SlideLayout.TITLE
    assert all(slide.image_url is None for slide in slides)
    assert all(slide.to_dict()["imageUrl"] is None for slide in slides)
    assert stock.calls == []
    assert all(step.status is StepStatus.COMPLETED for step in result.workspace.steps)
    assert store.list_ids() == [result.presentation.id]


@pytest.mark.asyncio
async def test_rate_limited_completion_is_retried(tmp_path):
    limited = CompletionResponse(error="429 Too Many Requests", error_type="rate_limit")
    model = ScriptedCompletionModel([limited, LLMRateLimitError("slow down", provider="stub"), deck_payload(3)])
    pipeline, _ = _pipeline(model, tmp_path, settings=Settings(completion_retry_delay=0))

    result = await pipeline.generate(GenerationRequest(topic="Topic", slide_count=3))

    assert result.succeeded
    assert len(model.requests) == 3


@pytest.mark.asyncio
async def test_persistent_rate_limit_becomes_completion_error(tmp_path):
    limited = CompletionResponse(error="429 Too Many Requests", error_type="rate_limit")
    model = ScriptedCompletionModel([limited, limited, limited])
    pipeline, _ = _pipeline(model, tmp_path, settings=Settings(completion_retry_delay=0))

    result = await pipeline.generate(GenerationRequest(topic="Topic", slide_count=3))

    assert result.failed_step == "generate-content"
    assert isinstance(result.error.cause, CompletionError)
    assert len(model.requests) == 3
