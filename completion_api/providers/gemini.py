from typing import Optional

from google import genai
from google.genai import errors, types

from ..data_classes import (
    CompletionRequest, CompletionResponse,
    ProviderConfig, StopReason, usage_dict
)
from ..exceptions import RATE_LIMIT
from ._base_provider import BaseProvider


class GeminiModel(BaseProvider):
    """Gemini implementation of CompletionModel using the async client"""

    env_var_name = "GEMINI_API_KEY"

    def __init__(self, api_key: Optional[str] = None, model_name: str = "gemini-2.5-flash"):
        super().__init__(api_key=api_key, model_name=model_name)

    def _get_provider_config(self) -> ProviderConfig:
        """Get Gemini provider configuration"""
        return ProviderConfig(
            provider_name="Gemini",
            model_name=self.model_name or "gemini-2.5-flash",
            max_tokens_limit=65536,
        )

    def setup_client(self):
        """Setup Gemini client"""
        self.client = genai.Client(api_key=self._get_api_key())

    def _classify_error(self, error: Exception) -> str:
        # google-genai reports HTTP status on ``code`` rather than ``status_code``
        if isinstance(error, errors.APIError) and error.code == 429:
            return RATE_LIMIT
        return super()._classify_error(error)

    async def generate(self, request: CompletionRequest) -> CompletionResponse:
        """Generate JSON-oriented text through ``client.aio``"""
        model = self.resolve_model(request)
        try:
            self._validate_request(request)
            config = types.GenerateContentConfig(
                system_instruction=request.system_prompt or None,
                temperature=request.options.temperature,
                max_output_tokens=request.options.max_output_tokens,
                response_mime_type="application/json",
            )
            response = await self.client.aio.models.generate_content(
                model=model,
                contents=request.user_prompt,
                config=config,
            )

            stop_reason = StopReason.COMPLETED
            candidates = getattr(response, "candidates", None) or []
            if candidates and candidates[0].finish_reason == types.FinishReason.MAX_TOKENS:
                stop_reason = StopReason.MAX_TOKENS

            usage = None
            metadata = getattr(response, "usage_metadata", None)
            if metadata is not None:
                usage = usage_dict(
                    metadata.prompt_token_count or 0,
                    metadata.candidates_token_count or 0,
                )

            return CompletionResponse(
                text=getattr(response, "text", "") or "",
                model_used=model,
                usage=usage,
                stop_reason=stop_reason,
                raw_response=response
            )
        except Exception as e:
            return self._error_response(model, e)
