from typing import Optional, Dict, Any, List

from openai import APITimeoutError, AsyncOpenAI, RateLimitError

from ..data_classes import (
    CompletionRequest, CompletionResponse,
    ProviderConfig, StopReason, usage_dict
)
from ._base_provider import BaseProvider


class OpenAIModel(BaseProvider):
    """OpenAI chat completions implementation of CompletionModel"""

    env_var_name = "OPENAI_API_KEY"
    rate_limit_errors = (RateLimitError,)
    timeout_errors = (APITimeoutError,)

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = "gpt-4o",
        json_mode: bool = True,
    ):
        self.json_mode = json_mode
        super().__init__(api_key=api_key, model_name=model_name)

    def _get_provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            provider_name="OpenAI",
            model_name=self.model_name or "gpt-4o",
            max_tokens_limit=128000,
        )

    def setup_client(self):
        self.client = AsyncOpenAI(api_key=self._get_api_key())

    async def generate(self, request: CompletionRequest) -> CompletionResponse:
        model = self.resolve_model(request)
        try:
            self._validate_request(request)
            messages: List[Dict[str, str]] = []
            if request.system_prompt:
                messages.append({"role": "system", "content": request.system_prompt})
            messages.append({"role": "user", "content": request.user_prompt})

            request_data: Dict[str, Any] = {"model": model, "messages": messages}
            if request.options.temperature is not None:
                request_data["temperature"] = request.options.temperature
            if request.options.max_output_tokens:
                request_data["max_completion_tokens"] = request.options.max_output_tokens
            if self.json_mode:
                request_data["response_format"] = {"type": "json_object"}

            response = await self.client.chat.completions.create(**request_data)
            choice = response.choices[0]

            usage = None
            if getattr(response, "usage", None) is not None:
                usage = usage_dict(
                    response.usage.prompt_tokens or 0,
                    response.usage.completion_tokens or 0,
                )

            return CompletionResponse(
                text=choice.message.content or "",
                model_used=model,
                usage=usage,
                stop_reason=(
                    StopReason.MAX_TOKENS
                    if choice.finish_reason == "length"
                    else StopReason.COMPLETED
                ),
                raw_response=response
            )
        except Exception as e:
            return self._error_response(model, e)
