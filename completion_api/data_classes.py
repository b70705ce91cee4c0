from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from enum import Enum


# ========== Enums ==========

class StopReason(Enum):
    """Why the provider stopped producing text"""
    COMPLETED = "completed"
    MAX_TOKENS = "max_tokens"
    OTHER = "other"


# ========== Request / Response ==========

@dataclass
class CompletionOptions:
    """Sampling options forwarded to every provider"""
    temperature: Optional[float] = 0.7
    max_output_tokens: Optional[int] = 8000

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass
class CompletionRequest:
    """A system/user prompt pair sent to a text completion provider"""
    system_prompt: str = ""
    user_prompt: str = ""
    options: CompletionOptions = field(default_factory=CompletionOptions)
    model_name: Optional[str] = None

    @property
    def has_prompt(self) -> bool:
        return bool(self.user_prompt.strip() or self.system_prompt.strip())


@dataclass
class CompletionResponse:
    """Text returned by a provider, or the error that prevented it"""
    text: str = ""
    model_used: Optional[str] = None
    usage: Optional[Dict[str, int]] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    stop_reason: StopReason = StopReason.COMPLETED
    raw_response: Optional[Any] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def truncated(self) -> bool:
        """True when the output hit the token limit and may be cut mid-object"""
        return self.stop_reason is StopReason.MAX_TOKENS


# ========== Provider metadata ==========

@dataclass
class ProviderConfig:
    """Static facts about a provider"""
    provider_name: str = ""
    model_name: str = ""
    max_tokens_limit: Optional[int] = None
    supports_system_prompt: bool = True


def usage_dict(prompt_tokens: int, completion_tokens: int) -> Dict[str, int]:
    return {
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": prompt_tokens + completion_tokens,
    }
