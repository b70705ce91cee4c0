"""Error taxonomy for the generation pipeline."""

from __future__ import annotations

from typing import Any, Optional


class DeckgenError(Exception):
    """Base class for every error raised by :mod:`deckgen`."""

    default_user_message = "Something went wrong while building the presentation."

    def __init__(self, message: str, *, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def user_message(self) -> str:
        return self.default_user_message


class ConfigurationError(DeckgenError):
    """An environment setting could not be interpreted."""

    default_user_message = "The generator is misconfigured."


class CompletionError(DeckgenError):
    """The AI client failed. Not retried automatically."""

    default_user_message = "Generation failed, please retry."


class GenerationParseError(DeckgenError):
    """Every decoder strategy failed on the AI response."""

    default_user_message = "The AI returned an unusable response."

    def __init__(self, message: str, *, raw_text: str) -> None:
        super().__init__(message, details=raw_text[:500] if raw_text else None)
        self.raw_text = raw_text


class SchemaValidationError(DeckgenError):
    """The response parsed but has no usable ``slides`` array."""

    default_user_message = "The AI did not produce a presentation."

    def __init__(self, message: str, *, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload


class ImageResolutionFailure(DeckgenError):
    """A single slide's image could not be resolved. Never reaches the caller."""

    default_user_message = "No image could be found for this slide."

    def __init__(self, slide_id: str, keywords: str, reason: str = "") -> None:
        super().__init__(
            f"image resolution failed for slide {slide_id} ({keywords!r}) {reason}".strip()
        )
        self.slide_id = slide_id
        self.keywords = keywords


class StepError(DeckgenError):
    """Wraps an error raised while a workspace step was running."""

    def __init__(self, step_id: str, cause: BaseException) -> None:
        super().__init__(f"step '{step_id}' failed: {cause}")
        self.step_id = step_id
        self.cause = cause

    @property
    def user_message(self) -> str:
        if isinstance(self.cause, DeckgenError):
            return self.cause.user_message
        return f"Step '{self.step_id}' failed."
