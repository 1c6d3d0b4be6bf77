"""
LLM Service for Workshop Coach
===============================

One provider capability behind two calls:
- "given a prompt, return text" (structured generation)
- "given a prompt, return a sequence of text chunks" (AI Coach)

The concrete vendor (Anthropic or Vertex AI Gemini) is picked from
configuration.
"""

import logging
from typing import Any, AsyncIterator, Dict, Optional
from pydantic import BaseModel

from anthropic import AsyncAnthropic

from ..config import LLMConfig
from ..errors import ConfigurationError, ProviderError, WorkshopCoachError

logger = logging.getLogger(__name__)

# Try to import Vertex AI
try:
    import vertexai
    from vertexai.generative_models import GenerativeModel, GenerationConfig
    VERTEXAI_AVAILABLE = True
except ImportError:
    VERTEXAI_AVAILABLE = False
    logger.warning("vertexai not available, the 'vertex' provider cannot be used")


class LLMResponse(BaseModel):
    """Response from LLM."""
    success: bool
    content: str = ""
    error: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None


class AnthropicBackend:
    """Claude through the official async SDK."""

    name = "anthropic"

    def __init__(self, config: LLMConfig):
        self.config = config
        self._client = AsyncAnthropic(
            api_key=config.anthropic_api_key,
            timeout=config.request_timeout,
        )

    def _request(self, prompt: str, system_instruction: Optional[str]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": self.config.anthropic_model,
            "max_tokens": self.config.max_output_tokens,
            "temperature": self.config.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_instruction:
            kwargs["system"] = system_instruction
        return kwargs

    async def complete(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        message = await self._client.messages.create(**self._request(prompt, system_instruction))

        # First text block only
        for block in message.content:
            if getattr(block, "type", None) == "text":
                return block.text
        raise ProviderError("No text response from AI")

    async def stream(self, prompt: str, system_instruction: Optional[str] = None) -> AsyncIterator[str]:
        async with self._client.messages.stream(**self._request(prompt, system_instruction)) as stream:
            async for text in stream.text_stream:
                yield text


class VertexBackend:
    """Gemini through Vertex AI."""

    name = "vertex"

    def __init__(self, config: LLMConfig):
        if not VERTEXAI_AVAILABLE:
            raise ConfigurationError("vertexai is not installed")

        self.config = config
        vertexai.init(project=config.vertex_project, location=config.vertex_location)
        logger.info(f"[LLM-SERVICE] Vertex AI initialized with project={config.vertex_project}")

    def _model(self, system_instruction: Optional[str]) -> "GenerativeModel":
        return GenerativeModel(self.config.vertex_model, system_instruction=system_instruction)

    def _generation_config(self) -> "GenerationConfig":
        return GenerationConfig(
            temperature=self.config.temperature,
            max_output_tokens=self.config.max_output_tokens,
        )

    async def complete(self, prompt: str, system_instruction: Optional[str] = None) -> str:
        response = await self._model(system_instruction).generate_content_async(
            prompt,
            generation_config=self._generation_config(),
        )
        try:
            return response.text
        except ValueError as e:
            raise ProviderError(f"No text response from AI: {e}") from e

    async def stream(self, prompt: str, system_instruction: Optional[str] = None) -> AsyncIterator[str]:
        responses = await self._model(system_instruction).generate_content_async(
            prompt,
            generation_config=self._generation_config(),
            stream=True,
        )
        async for chunk in responses:
            try:
                text = chunk.text
            except ValueError:
                # Safety-filtered or empty candidate
                logger.warning("[LLM-SERVICE] Skipping Vertex chunk without text")
                continue
            yield text


BACKENDS = {
    AnthropicBackend.name: AnthropicBackend,
    VertexBackend.name: VertexBackend,
}


def create_backend(config: LLMConfig):
    """Instantiate the backend named by `config.provider`."""
    try:
        backend_cls = BACKENDS[config.provider]
    except KeyError:
        raise ConfigurationError(f"Unknown LLM provider '{config.provider}'")
    return backend_cls(config)


class LLMService:
    """
    Provider-neutral entry point used by the generator and the coach route.

    Usage:
        llm = LLMService()
        response = await llm.generate_text("...")
        async for chunk in llm.stream_text("...", system_instruction="..."):
            ...
    """

    def __init__(self, config: Optional[LLMConfig] = None, backend=None):
        self.config = config or LLMConfig.from_env()
        self._backend = backend

    @property
    def provider_name(self) -> str:
        return getattr(self._backend, "name", None) or self.config.provider

    def ensure_configured(self) -> None:
        """Raise ConfigurationError if the provider cannot be called."""
        if self._backend is not None:
            return
        missing = self.config.missing_credential()
        if missing:
            raise ConfigurationError(f"{missing} is not configured")

    def _get_backend(self):
        if self._backend is None:
            self.ensure_configured()
            self._backend = create_backend(self.config)
            logger.info(f"[LLM-SERVICE] Initialized provider={self.provider_name}")
        return self._backend

    async def generate_text(self, prompt: str, system_instruction: Optional[str] = None) -> LLMResponse:
        """
        Generate a complete text response.

        Args:
            prompt: User prompt
            system_instruction: Optional system context

        Returns:
            LLMResponse with generated content, or success=False with the
            provider's message
        """
        try:
            backend = self._get_backend()
            content = await backend.complete(prompt, system_instruction)
        except WorkshopCoachError as e:
            logger.error(f"[LLM-SERVICE] Text generation failed: {e.message}")
            return LLMResponse(success=False, error=e.message)
        except Exception as e:
            logger.error(f"[LLM-SERVICE] Text generation failed: {e}")
            return LLMResponse(success=False, error=str(e) or "LLM provider error")

        content = content or ""
        logger.info(f"[LLM-SERVICE] Generated text, length={len(content)}")
        return LLMResponse(success=True, content=content)

    async def stream_text(self, prompt: str, system_instruction: Optional[str] = None) -> AsyncIterator[str]:
        """
        Stream a text response chunk by chunk, in arrival order.

        Raises:
            ConfigurationError: provider is not configured
            ProviderError: the provider call failed, before or during streaming
        """
        backend = self._get_backend()
        total = 0
        stream = backend.stream(prompt, system_instruction)
        try:
            async for chunk in stream:
                if not chunk:
                    continue
                total += len(chunk)
                yield chunk
        except WorkshopCoachError:
            raise
        except Exception as e:
            logger.error(f"[LLM-SERVICE] Streaming failed after {total} chars: {e}")
            raise ProviderError(str(e) or "LLM provider error") from e
        finally:
            await stream.aclose()

        logger.info(f"[LLM-SERVICE] Stream complete, length={total}")
