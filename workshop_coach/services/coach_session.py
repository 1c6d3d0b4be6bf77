"""
Streaming Coach Session
=======================

Client-side AI Coach: runs one cancellable, incrementally rendered
exchange at a time and folds finished replies into a short history.

The state machine is a set of pure transitions over an immutable
`CoachState`; `CoachSession` drives them from an async chunk stream.

    idle -> requesting -> streaming -> idle (completed | cancelled | failed)
"""

import asyncio
import logging
from datetime import datetime
from typing import AsyncIterator, Callable, List, Optional, Sequence

from ..errors import StreamCancelled, WorkshopCoachError
from ..models.canvas_models import CanvasElement
from ..models.coach_models import (
    MAX_HISTORY, MODE_LABELS, CoachMode, CoachOutcome, CoachPhase, CoachState, Interaction
)
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)

# (elements, prompt, mode, cancel_token) -> async text chunks
StreamFn = Callable[[List[CanvasElement], str, CoachMode, CancellationToken], AsyncIterator[str]]

_END = object()


# ---------------------------------------------------------------------------
# Pure transitions
# ---------------------------------------------------------------------------

def resolve_prompt(mode: CoachMode, prompt: Optional[str] = None, draft: str = "") -> str:
    """Explicit prompt, else the typed draft, else the quick-action label."""
    return (prompt or "").strip() or (draft or "").strip() or MODE_LABELS[CoachMode(mode)]


def start(state: CoachState, mode: CoachMode, prompt: Optional[str] = None) -> CoachState:
    """Begin a request. A busy state is returned unchanged."""
    if state.is_busy:
        return state
    mode = CoachMode(mode)
    return state.model_copy(update={
        "phase": CoachPhase.REQUESTING,
        "live_text": "",
        "error": None,
        "active_mode": mode,
        "active_prompt": resolve_prompt(mode, prompt, state.draft),
        "last_outcome": None,
    })


def on_chunk(state: CoachState, chunk: str) -> CoachState:
    if not state.is_busy:
        return state
    return state.model_copy(update={
        "phase": CoachPhase.STREAMING,
        "live_text": state.live_text + chunk,
    })


def on_complete(
    state: CoachState,
    interaction_id: Optional[str] = None,
    timestamp: Optional[datetime] = None,
) -> CoachState:
    """Push the finished reply to the front of history, newest first."""
    if not state.is_busy:
        return state
    interaction = Interaction(
        mode=state.active_mode,
        prompt=state.active_prompt,
        response=state.live_text,
        **({"id": interaction_id} if interaction_id else {}),
        **({"timestamp": timestamp} if timestamp else {}),
    )
    return state.model_copy(update={
        "phase": CoachPhase.IDLE,
        "draft": "",
        "live_text": "",
        "history": ((interaction,) + state.history)[:MAX_HISTORY],
        "active_mode": None,
        "active_prompt": None,
        "last_outcome": CoachOutcome.COMPLETED,
    })


def on_cancel(state: CoachState) -> CoachState:
    if not state.is_busy:
        return state
    return state.model_copy(update={
        "phase": CoachPhase.IDLE,
        "live_text": "",
        "active_mode": None,
        "active_prompt": None,
        "last_outcome": CoachOutcome.CANCELLED,
    })


def on_error(state: CoachState, message: str) -> CoachState:
    """Drop the partial reply and keep the message until the next start."""
    if not state.is_busy:
        return state
    return state.model_copy(update={
        "phase": CoachPhase.IDLE,
        "live_text": "",
        "error": message or "Tuntematon virhe",
        "active_mode": None,
        "active_prompt": None,
        "last_outcome": CoachOutcome.FAILED,
    })


def set_draft(state: CoachState, text: str) -> CoachState:
    return state.model_copy(update={"draft": text})


def insert_newline(state: CoachState) -> CoachState:
    return state.model_copy(update={"draft": state.draft + "\n"})


def clear_history(state: CoachState) -> CoachState:
    if state.is_busy:
        return state.model_copy(update={"history": ()})
    return state.model_copy(update={"history": (), "live_text": "", "error": None})


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class CoachSession:
    """
    One AI Coach instance.

    Usage:
        client = CoachClient()
        session = CoachSession(client.analyze_canvas, elements=canvas_elements)
        outcome = await session.run("brainstorm")
        for item in session.history:
            print(item.response)

    `on_update` is called with every new state, including each chunk,
    so a view can re-render the live text.
    """

    def __init__(
        self,
        stream_fn: StreamFn,
        elements: Optional[Sequence[CanvasElement]] = None,
        on_update: Optional[Callable[[CoachState], None]] = None,
    ):
        self._stream_fn = stream_fn
        self.elements: List[CanvasElement] = list(elements or [])
        self._on_update = on_update
        self._state = CoachState()
        self._token: Optional[CancellationToken] = None

    @property
    def state(self) -> CoachState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._state.is_busy

    @property
    def live_text(self) -> str:
        return self._state.live_text

    @property
    def history(self) -> List[Interaction]:
        return list(self._state.history)

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    def _set(self, state: CoachState) -> None:
        if state is self._state:
            return
        self._state = state
        if self._on_update:
            self._on_update(state)

    async def run(
        self,
        mode: CoachMode,
        prompt: Optional[str] = None,
        elements: Optional[Sequence[CanvasElement]] = None,
    ) -> Optional[CoachOutcome]:
        """
        Run one exchange to completion, cancellation or failure.

        Args:
            mode: Coach mode
            prompt: Request text; falls back to the draft, then the mode label
            elements: Canvas elements; defaults to `self.elements`

        Returns:
            The outcome, or None if another exchange is in flight
        """
        if self.is_busy:
            logger.info("[COACH-SESSION] Request ignored, exchange already in flight")
            return None

        mode = CoachMode(mode)
        token = CancellationToken()
        self._token = token
        self._set(start(self._state, mode, prompt))
        context = list(elements) if elements is not None else list(self.elements)

        logger.info(f"[COACH-SESSION] Starting mode={mode.value}, elements={len(context)}")
        chunks = None
        try:
            chunks = self._stream_fn(context, self._state.active_prompt, mode, token)
            while True:
                chunk = await token.race(_next_chunk(chunks))
                if chunk is _END:
                    break
                self._set(on_chunk(self._state, chunk))
            token.raise_if_cancelled()
            self._set(on_complete(self._state))
        except StreamCancelled:
            logger.info("[COACH-SESSION] Exchange cancelled")
            self._set(on_cancel(self._state))
        except asyncio.CancelledError:
            # The task running this exchange was cancelled (timeout, shutdown)
            logger.info("[COACH-SESSION] Exchange task cancelled")
            token.cancel()
            self._set(on_cancel(self._state))
            raise
        except WorkshopCoachError as e:
            logger.warning(f"[COACH-SESSION] Exchange failed: {e.message}")
            self._set(on_error(self._state, e.message))
        except Exception as e:
            logger.exception(f"[COACH-SESSION] Exchange failed: {e}")
            self._set(on_error(self._state, str(e)))
        finally:
            self._token = None
            aclose = getattr(chunks, "aclose", None)
            if aclose is not None:
                try:
                    await aclose()
                except RuntimeError as e:
                    logger.warning(f"[COACH-SESSION] Could not close chunk stream: {e}")

        return self._state.last_outcome

    def cancel(self) -> None:
        """Abort the in-flight exchange, if any."""
        if self._token is not None:
            self._token.cancel()

    async def submit(self) -> Optional[CoachOutcome]:
        """Send the typed draft as a custom request."""
        if not self._state.draft.strip():
            return None
        return await self.run(CoachMode.CUSTOM, self._state.draft)

    async def handle_key(self, key: str, shift: bool = False) -> Optional[CoachOutcome]:
        """Enter submits the draft; Shift+Enter inserts a line break."""
        if key != "Enter":
            return None
        if shift:
            self._set(insert_newline(self._state))
            return None
        return await self.submit()

    def set_draft(self, text: str) -> None:
        self._set(set_draft(self._state, text))

    def clear_history(self) -> None:
        self._set(clear_history(self._state))


async def _next_chunk(chunks: AsyncIterator[str]):
    try:
        return await chunks.__anext__()
    except StopAsyncIteration:
        return _END
