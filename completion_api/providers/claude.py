from typing import Optional, Dict, Any

import anthropic

from ..data_classes import (
    CompletionRequest, CompletionResponse,
    ProviderConfig, StopReason, usage_dict
)
from ._base_provider import BaseProvider


class ClaudeModel(BaseProvider):
    """Anthropic Claude implementation of CompletionModel"""

    env_var_name = "ANTHROPIC_API_KEY"
    rate_limit_errors = (anthropic.RateLimitError,)
    timeout_errors = (anthropic.APITimeoutError,)

    def __init__(self, api_key: Optional[str] = None, model_name: str = "claude-3-5-sonnet-20241022"):
        super().__init__(api_key=api_key, model_name=model_name)

    def _get_provider_config(self) -> ProviderConfig:
        """Get Claude provider configuration"""
        return ProviderConfig(
            provider_name="Claude",
            model_name=self.model_name or "claude-3-5-sonnet-20241022",
            max_tokens_limit=64000,
        )

    def setup_client(self):
        """Setup the async Anthropic client"""
        self.client = anthropic.AsyncAnthropic(api_key=self._get_api_key())

    async def generate(self, request: CompletionRequest) -> CompletionResponse:
        """Generate text with a system prompt and a single user turn"""
        model = self.resolve_model(request)
        try:
            self._validate_request(request)
            request_params: Dict[str, Any] = {
                "model": model,
                "max_tokens": request.options.max_output_tokens or 4096,
                "messages": [{"role": "user", "content": request.user_prompt}],
            }
            if request.system_prompt:
                request_params["system"] = request.system_prompt
            if request.options.temperature is not None:
                request_params["temperature"] = request.options.temperature

            response = await self.client.messages.create(**request_params)

            text_content = ""
            for content in response.content:
                if content.type == "text":
                    text_content += content.text

            usage = None
            if getattr(response, "usage", None) is not None:
                usage = usage_dict(
                    getattr(response.usage, "input_tokens", 0),
                    getattr(response.usage, "output_tokens", 0),
                )

            stop_reason = StopReason.COMPLETED
            if response.stop_reason == "max_tokens":
                stop_reason = StopReason.MAX_TOKENS

            return CompletionResponse(
                text=text_content,
                model_used=model,
                usage=usage,
                stop_reason=stop_reason,
                raw_response=response
            )

        except Exception as e:
            return self._error_response(model, e)
