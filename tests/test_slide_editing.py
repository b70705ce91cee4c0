import json

import pytest

from completion_api import LLMAPIError
from deckgen.errors import CompletionError, SchemaValidationError
from deckgen.slide_editing import SlideEditor, apply_slide_patch, build_edit_prompts, decode_slide_patch
from deckgen.slide_models import ImageSource, Slide, SlideBackground, SlideLayout, TitleAlignment

from tests.llm_stubs import ScriptedCompletionModel


def _slide():
    return Slide(
        id="slide-7",
        title="Old title",
        layout=SlideLayout.CONTENT_IMAGE,
        layout_variant=2,
        title_alignment=TitleAlignment.CENTER,
        content="Old content",
        bullet_points=("a", "b"),
        image_url="https://img/old.png",
        image_prompt="old keywords",
        image_source=ImageSource.STOCK,
        background=SlideBackground(type="gradient", value="#000"),
    )


def test_edit_prompts_embed_slide_and_command():
    pair = build_edit_prompts(_slide(), "  make it shorter ")

    assert pair.system.startswith("You edit one slide of a presentation.")
    assert '"title": "Old title"' in pair.user
    assert '"imageKeywords": "old keywords"' in pair.user
    assert pair.user.endswith("Command: make it shorter")


def test_blank_command_is_rejected():
    with pytest.raises(ValueError):
        build_edit_prompts(_slide(), "   ")


@pytest.mark.parametrize(
    "text",
    [
        '{"title": "New"}',
        '{"slide": {"title": "New"}}',
        '```json\n{"slides": [{"title": "New"}]}\n```',
    ],
)
def test_decode_patch_accepts_common_shapes(text):
    assert decode_slide_patch(text) == {"title": "New"}


def test_decode_patch_without_known_keys_fails():
    with pytest.raises(SchemaValidationError):
        decode_slide_patch('{"unrelated": 1}')


def test_patch_keeps_identity_and_untouched_fields():
    slide = _slide()

    updated = apply_slide_patch(slide, {"title": "New title"})

    assert updated.id == slide.id
    assert updated.title == "New title"
    assert updated.content == "Old content"
    assert updated.layout_variant == 2
    assert updated.title_alignment is TitleAlignment.CENTER
    assert updated.background == slide.background
    assert updated.image_url == "https://img/old.png"
    assert updated.image_source is ImageSource.STOCK


def test_changed_keywords_drop_the_old_image():
    updated = apply_slide_patch(_slide(), {"imagePrompt": "new keywords"})

    assert updated.image_prompt == "new keywords"
    assert updated.image_url is None
    assert updated.image_source is None


@pytest.mark.asyncio
async def test_editor_applies_model_answer():
    model = ScriptedCompletionModel([{"title": "Sharper", "bulletPoints": ["one"]}])

    updated = await SlideEditor(model).apply_command(_slide(), "sharpen the title")

    assert updated.title == "Sharper"
    assert updated.bullet_points == ("one",)
    assert "Command: sharpen the title" in model.requests[0].user_prompt


@pytest.mark.asyncio
async def test_editor_wraps_provider_errors():
    model = ScriptedCompletionModel([LLMAPIError("down", provider="stub")])

    with pytest.raises(CompletionError):
        await SlideEditor(model).apply_command(_slide(), "shorter")


@pytest.mark.asyncio
async def test_editor_rejects_unparseable_answer():
    model = ScriptedCompletionModel([json.dumps({"nothing": True})])

    with pytest.raises(SchemaValidationError):
        await SlideEditor(model).apply_command(_slide(), "shorter")
