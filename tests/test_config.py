from pathlib import Path

import pytest

from deckgen.config import Settings
from deckgen.errors import ConfigurationError


def test_defaults_without_environment():
    settings = Settings.from_env({})

    assert settings == Settings()


def test_values_are_read_and_cast():
    settings = Settings.from_env(
        {
            "DECKGEN_LLM_PROVIDER": "Claude",
            "DECKGEN_MODEL": "claude-sonnet",
            "DECKGEN_TEMPERATURE": "0.3",
            "DECKGEN_MAX_OUTPUT_TOKENS": "4000",
            "DECKGEN_IMAGE_QUOTA": "5",
            "DECKGEN_COMPLETION_RETRY_DELAY": "0.5",
            "DECKGEN_STORE_DIR": "/tmp/decks",
            "PEXELS_API_KEY": "pk",
            "DECKGEN_LOG_LEVEL": "debug",
        }
    )

    assert settings.llm_provider == "claude"
    assert settings.model_name == "claude-sonnet"
    assert settings.temperature == 0.3
    assert settings.max_output_tokens == 4000
    assert settings.image_quota == 5
    assert settings.completion_retry_delay == 0.5
    assert settings.store_dir == Path("/tmp/decks")
    assert settings.pexels_api_key == "pk"
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "environ",
    [
        {"DECKGEN_LLM_PROVIDER": "mistral"},
        {"DECKGEN_TEMPERATURE": "hot"},
        {"DECKGEN_IMAGE_QUOTA": "-1"},
    ],
)
def test_invalid_values_raise_configuration_error(environ):
    with pytest.raises(ConfigurationError):
        Settings.from_env(environ)


def test_unknown_log_level_is_rejected():
    with pytest.raises(ConfigurationError):
        Settings(log_level="CHATTY").configure_logging()
