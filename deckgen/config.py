"""Runtime settings loaded from the environment (``.env`` supported)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional, TypeVar

from dotenv import load_dotenv

from .errors import ConfigurationError

T = TypeVar("T")

PROVIDER_CHOICES = ("claude", "openai", "gemini")


@dataclass(frozen=True)
class Settings:
    """Knobs for the generation pipeline."""

    llm_provider: str = "openai"
    model_name: Optional[str] = None
    temperature: float = 0.7
    max_output_tokens: int = 8000
    completion_retry_delay: float = 2.0
    image_quota: int = 0
    image_retry_delay: float = 1.5
    image_timeout: float = 30.0
    step_delay: float = 0.0
    store_dir: Path = Path("output/presentations")
    pexels_api_key: Optional[str] = None
    unsplash_access_key: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        dotenv: bool = True,
    ) -> "Settings":
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        provider = environ.get("DECKGEN_LLM_PROVIDER", cls.llm_provider).lower()
        if provider not in PROVIDER_CHOICES:
            raise ConfigurationError(
                f"DECKGEN_LLM_PROVIDER must be one of {', '.join(PROVIDER_CHOICES)}, got {provider!r}"
            )

        return cls(
            llm_provider=provider,
            model_name=environ.get("DECKGEN_MODEL") or None,
            temperature=_read(environ, "DECKGEN_TEMPERATURE", float, cls.temperature),
            max_output_tokens=_read(
                environ, "DECKGEN_MAX_OUTPUT_TOKENS", int, cls.max_output_tokens
            ),
            completion_retry_delay=_read(
                environ, "DECKGEN_COMPLETION_RETRY_DELAY", float, cls.completion_retry_delay
            ),
            image_quota=_read(environ, "DECKGEN_IMAGE_QUOTA", int, cls.image_quota),
            image_retry_delay=_read(
                environ, "DECKGEN_IMAGE_RETRY_DELAY", float, cls.image_retry_delay
            ),
            image_timeout=_read(environ, "DECKGEN_IMAGE_TIMEOUT", float, cls.image_timeout),
            step_delay=_read(environ, "DECKGEN_STEP_DELAY", float, cls.step_delay),
            store_dir=Path(environ.get("DECKGEN_STORE_DIR", str(cls.store_dir))),
            pexels_api_key=environ.get("PEXELS_API_KEY") or None,
            unsplash_access_key=environ.get("UNSPLASH_ACCESS_KEY") or None,
            log_level=environ.get("DECKGEN_LOG_LEVEL", cls.log_level).upper(),
        )

    def configure_logging(self) -> None:
        level = logging.getLevelName(self.log_level)
        if not isinstance(level, int):
            raise ConfigurationError(f"Unknown log level: {self.log_level}")
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )


def _read(environ: Mapping[str, str], key: str, cast: Callable[[str], T], default: T) -> T:
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} has an invalid value: {raw!r}") from exc
    if isinstance(value, (int, float)) and value < 0:
        raise ConfigurationError(f"{key} must not be negative: {raw!r}")
    return value
