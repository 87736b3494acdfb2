from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple

from openai import AsyncOpenAI

from ..base import ProviderAdapter, ProviderError, close_stream
from ..errors import ErrorMapper
from ...config.providers import get_provider_entry
from ...core.routing.selector import resolve_api_key, resolve_base_url
from ...models.generation import ProviderConfig
from ...observability.logging import ChatLogger
from ...streaming import StreamAdapter, StreamDelta

logger = ChatLogger("openai")

# Local servers accept any key but the SDK refuses to start without one
PLACEHOLDER_API_KEY = "not-needed"


class OpenAICompatibleProvider(ProviderAdapter):
    """Chat Completions transport for OpenAI and every OpenAI-compatible server."""

    wire_format = "openai"

    def __init__(self, timeout: Optional[float] = None):
        self._timeout = timeout
        self._clients: Dict[Tuple[Optional[str], Optional[str]], AsyncOpenAI] = {}

    def client_for(self, config: ProviderConfig) -> AsyncOpenAI:
        """Lazy, cached client per (base_url, api_key)."""
        base_url = resolve_base_url(config)
        api_key = resolve_api_key(config)
        if not api_key:
            if get_provider_entry(config.provider_kind).requires_api_key:
                raise ProviderError(
                    f"No API key configured for {config.provider_kind.value}",
                    provider=config.provider_kind.value,
                    status_code=401
                )
            api_key = PLACEHOLDER_API_KEY

        key = (base_url, api_key)
        if key not in self._clients:
            kwargs: Dict[str, Any] = {"api_key": api_key, "base_url": base_url}
            if self._timeout is not None:
                kwargs["timeout"] = self._timeout
            self._clients[key] = AsyncOpenAI(**kwargs)
        return self._clients[key]

    async def generate(self,
                       messages: List[Dict[str, Any]],
                       config: ProviderConfig) -> str:
        """Blocking chat completion."""
        provider = config.provider_kind.value
        with logger.track_request("generate", config.model_name) as request_info:
            try:
                response = await self.client_for(config).chat.completions.create(
                    model=config.model_name,
                    messages=messages,
                )
            except Exception as e:
                raise ErrorMapper.map_error(e, provider)

            if not response.choices:
                raise ProviderError("Provider returned no choices", provider=provider)

            request_info['outcome'] = response.choices[0].finish_reason
            return response.choices[0].message.content or ""

    async def generate_stream(self,
                              messages: List[Dict[str, Any]],
                              config: ProviderConfig) -> AsyncGenerator[StreamDelta, None]:
        """Streaming chat completion yielding normalized deltas."""
        provider = config.provider_kind.value
        with logger.track_request("stream", config.model_name) as request_info:
            adapter = StreamAdapter(self.wire_format, config.model_name)
            stream = None

            try:
                stream = await self.client_for(config).chat.completions.create(
                    model=config.model_name,
                    messages=messages,
                    stream=True,
                )
                async for chunk in stream:
                    delta = adapter.normalize_delta(chunk)
                    if delta is not None:
                        yield delta
            except ProviderError:
                raise
            except Exception as e:
                raise ErrorMapper.map_error(e, provider)
            finally:
                if stream is not None:
                    await close_stream(stream)
                logger.log_stream_stats(adapter.stats, config.model_name, request_info['request_id'])

    def is_available(self, config: ProviderConfig) -> bool:
        """Check if a base URL and (where needed) an API key are configured."""
        if not resolve_base_url(config):
            return False
        if get_provider_entry(config.provider_kind).requires_api_key:
            return bool(resolve_api_key(config))
        return True
