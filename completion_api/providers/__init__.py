"""
Completion Provider Implementations
"""

from typing import Optional

from ..base import CompletionModel
from .claude import ClaudeModel
from .gemini import GeminiModel
from .openai import OpenAIModel

PROVIDERS = {
    "claude": ClaudeModel,
    "gemini": GeminiModel,
    "openai": OpenAIModel,
}


def create_model(
    provider: str,
    api_key: Optional[str] = None,
    model_name: Optional[str] = None,
) -> CompletionModel:
    """Instantiate the provider registered under ``provider``."""
    try:
        model_cls = PROVIDERS[provider.lower()]
    except KeyError as exc:
        raise ValueError(
            f"Unknown provider '{provider}'. Choose one of: {', '.join(sorted(PROVIDERS))}"
        ) from exc
    if model_name:
        return model_cls(api_key=api_key, model_name=model_name)
    return model_cls(api_key=api_key)


__all__ = ['ClaudeModel', 'GeminiModel', 'OpenAIModel', 'PROVIDERS', 'create_model']
