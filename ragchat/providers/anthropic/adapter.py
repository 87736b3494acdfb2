from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple

from anthropic import AsyncAnthropic

from ..base import ProviderAdapter, ProviderError, close_stream
from ..errors import ErrorMapper
from ...core.routing.selector import resolve_api_key, resolve_base_url
from ...models.generation import ProviderConfig
from ...observability.logging import ChatLogger
from ...streaming import StreamAdapter, StreamDelta
from .payloads import convert_messages

logger = ChatLogger("anthropic")

DEFAULT_MAX_TOKENS = 4096


class AnthropicProvider(ProviderAdapter):
    """Anthropic Messages API transport."""

    wire_format = "anthropic"

    def __init__(self, timeout: Optional[float] = None, max_tokens: int = DEFAULT_MAX_TOKENS):
        self._timeout = timeout
        self._max_tokens = max_tokens
        self._clients: Dict[Tuple[Optional[str], str], AsyncAnthropic] = {}

    def client_for(self, config: ProviderConfig) -> AsyncAnthropic:
        """Lazy, cached client per (base_url, api_key)."""
        api_key = resolve_api_key(config)
        if not api_key:
            raise ProviderError("Anthropic API key not configured", provider="anthropic", status_code=401)

        base_url = resolve_base_url(config)
        key = (base_url, api_key)
        if key not in self._clients:
            kwargs: Dict[str, Any] = {"api_key": api_key}
            if base_url:
                kwargs["base_url"] = base_url
            if self._timeout is not None:
                kwargs["timeout"] = self._timeout
            self._clients[key] = AsyncAnthropic(**kwargs)
        return self._clients[key]

    def _build_params(self, messages: List[Dict[str, Any]], config: ProviderConfig) -> Dict[str, Any]:
        system_prompt, converted = convert_messages(messages)
        params: Dict[str, Any] = {
            "model": config.model_name,
            "messages": converted,
            "max_tokens": self._max_tokens,
        }
        # The SDK rejects an explicit None system prompt
        if system_prompt:
            params["system"] = system_prompt
        return params

    async def generate(self,
                       messages: List[Dict[str, Any]],
                       config: ProviderConfig) -> str:
        """Blocking Messages API call."""
        with logger.track_request("generate", config.model_name) as request_info:
            params = self._build_params(messages, config)
            try:
                response = await self.client_for(config).messages.create(**params)
            except ProviderError:
                raise
            except Exception as e:
                raise ErrorMapper.map_error(e, "anthropic")

            request_info['outcome'] = getattr(response, 'stop_reason', None)
            return "".join(
                block.text for block in response.content
                if getattr(block, 'type', None) == "text"
            )

    async def generate_stream(self,
                              messages: List[Dict[str, Any]],
                              config: ProviderConfig) -> AsyncGenerator[StreamDelta, None]:
        """Streaming Messages API call yielding normalized deltas."""
        with logger.track_request("stream", config.model_name) as request_info:
            adapter = StreamAdapter(self.wire_format, config.model_name)
            params = self._build_params(messages, config)
            stream = None

            try:
                stream = await self.client_for(config).messages.create(**params, stream=True)
                async for event in stream:
                    delta = adapter.normalize_delta(event)
                    if delta is not None:
                        yield delta
            except ProviderError:
                raise
            except Exception as e:
                raise ErrorMapper.map_error(e, "anthropic")
            finally:
                if stream is not None:
                    await close_stream(stream)
                logger.log_stream_stats(adapter.stats, config.model_name, request_info['request_id'])

    def is_available(self, config: ProviderConfig) -> bool:
        """Check if the provider is available."""
        return bool(resolve_api_key(config))
