"""
Coach Client for Workshop Coach
================================

HTTP client for the coach and generate endpoints. The provider credential
stays on the server; this client only ever talks to `/api/ai` and
`/api/generate`.
"""

import codecs
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional, Sequence, Union
import httpx

from ..config import CoachClientConfig
from ..errors import ProviderError, error_from_status
from ..models.canvas_models import CanvasElement
from ..models.coach_models import CoachMode, CoachResponse
from ..models.generation_models import GeneratedContent, GenerateResponse
from .cancellation import CancellationToken
from .workshop_summary import ExerciseInput, build_workshop_summary

logger = logging.getLogger(__name__)

ElementInput = Union[CanvasElement, Dict[str, Any]]

_END = object()


def _element_payload(element: ElementInput) -> Dict[str, Any]:
    if isinstance(element, CanvasElement):
        return element.to_wire()
    return dict(element)


async def _error_message(response: httpx.Response) -> str:
    body = await response.aread()
    text = body.decode("utf-8", errors="replace")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return text or f"HTTP {response.status_code}"
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return text


class CoachClient:
    """
    Client for the Workshop Coach server.

    Usage:
        client = CoachClient()
        async for chunk in client.analyze_canvas(elements, "Tiivistä", "summarize"):
            print(chunk, end="")
        content = await client.generate_content(workshop_summary)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = CoachClientConfig.from_env()
        self.base_url = (base_url or config.base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else config.timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def analyze_canvas(
        self,
        elements: Sequence[ElementInput],
        prompt: str,
        mode: CoachMode,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[str]:
        """
        Stream the coach's reply for the given canvas.

        Args:
            elements: Canvas elements sent as context
            prompt: User request
            mode: Coach mode
            cancel_token: Aborts the request at any suspension point

        Yields:
            Decoded text chunks in arrival order

        Raises:
            StreamCancelled: the token fired
            WorkshopCoachError: non-2xx response, timeout or transport failure
        """
        token = cancel_token or CancellationToken()
        mode = CoachMode(mode)
        payload = {
            "elements": [_element_payload(e) for e in elements],
            "prompt": prompt,
            "mode": mode.value,
        }

        client = await self._get_client()
        request = client.build_request("POST", "/api/ai", json=payload)
        logger.info(f"[COACH-CLIENT] Coach request mode={mode.value}, elements={len(elements)}")

        try:
            response = await token.race(client.send(request, stream=True))
        except httpx.TimeoutException as e:
            raise ProviderError("AI request timed out") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"AI request failed: {e}") from e

        try:
            if not response.is_success:
                message = await token.race(_error_message(response))
                logger.warning(f"[COACH-CLIENT] Coach request failed ({response.status_code}): {message}")
                raise error_from_status(response.status_code, message)

            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            raw_chunks = response.aiter_bytes()
            while True:
                data = await token.race(_next_bytes(raw_chunks))
                if data is _END:
                    break
                text = decoder.decode(data)
                if text:
                    yield text
            tail = decoder.decode(b"", final=True)
            if tail:
                yield tail
        except httpx.TimeoutException as e:
            raise ProviderError("AI response timed out") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"AI stream interrupted: {e}") from e
        finally:
            await response.aclose()

    async def analyze_canvas_full(
        self,
        elements: Sequence[ElementInput],
        prompt: str,
        mode: CoachMode,
        cancel_token: Optional[CancellationToken] = None,
    ) -> CoachResponse:
        """Collect the whole streamed reply."""
        parts = []
        async for chunk in self.analyze_canvas(elements, prompt, mode, cancel_token):
            parts.append(chunk)
        return CoachResponse(content="".join(parts), mode=CoachMode(mode))

    async def generate_content(self, workshop_content: str) -> GeneratedContent:
        """
        Request structured content for the workshop notes.

        Raises:
            WorkshopCoachError: non-2xx response, timeout or transport failure
        """
        client = await self._get_client()
        logger.info(f"[COACH-CLIENT] Generate request, {len(workshop_content)} chars")

        try:
            response = await client.post("/api/generate", json={"workshopContent": workshop_content})
        except httpx.TimeoutException as e:
            raise ProviderError("Generation request timed out") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Generation request failed: {e}") from e

        if not response.is_success:
            message = await _error_message(response)
            logger.warning(f"[COACH-CLIENT] Generate failed ({response.status_code}): {message}")
            raise error_from_status(response.status_code, message)

        return GenerateResponse.model_validate(response.json()).content

    async def generate_from_exercises(self, exercise_data: ExerciseInput) -> GeneratedContent:
        """Summarize the exercise answers, then generate content from them."""
        return await self.generate_content(build_workshop_summary(exercise_data))


async def _next_bytes(chunks: AsyncIterator[bytes]):
    try:
        return await chunks.__anext__()
    except StopAsyncIteration:
        return _END
