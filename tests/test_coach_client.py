import asyncio
import json

import httpx
import pytest

from conftest import wait_until
from workshop_coach.api.dependencies import get_llm_service
from workshop_coach.errors import ProviderError, StreamCancelled, ValidationError, WorkshopCoachError
from workshop_coach.models.canvas_models import CanvasElement
from workshop_coach.models.coach_models import CoachMode, CoachOutcome
from workshop_coach.server import app
from workshop_coach.services.cancellation import CancellationToken
from workshop_coach.services.coach_client import CoachClient
from workshop_coach.services.coach_session import CoachSession
from workshop_coach.services.workshop_summary import build_workshop_summary


async def byte_stream(*parts):
    for part in parts:
        yield part


def client_for(handler):
    return CoachClient(base_url="http://coach.test", transport=httpx.MockTransport(handler))


async def collect(client, *args, **kwargs):
    return [chunk async for chunk in client.analyze_canvas(*args, **kwargs)]


def test_posts_request_and_decodes_split_utf8():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, content=byte_stream(b"Hyv\xc3", b"\xa4 ", b"alku"))

    elements = [CanvasElement.model_validate({"id": "1", "type": "text", "text": "Kasvu", "x": 3})]
    chunks = asyncio.run(collect(client_for(handler), elements, "Tiivistä", "summarize"))

    assert chunks == ["Hyv", "ä ", "alku"]
    assert seen["path"] == "/api/ai"
    assert seen["body"] == {
        "elements": [{"id": "1", "type": "text", "text": "Kasvu", "x": 3}],
        "prompt": "Tiivistä",
        "mode": "summarize",
    }


@pytest.mark.parametrize("status, error_cls", [
    (400, ValidationError),
    (502, ProviderError),
    (500, WorkshopCoachError),
])
def test_error_status_is_raised_not_streamed(status, error_cls):
    def handler(request):
        return httpx.Response(status, json={"error": "overloaded"})

    with pytest.raises(error_cls) as exc_info:
        asyncio.run(collect(client_for(handler), [], "x", "custom"))
    assert exc_info.value.message == "overloaded"
    assert exc_info.value.status_code == status


def test_timeout_becomes_provider_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(ProviderError, match="timed out"):
        asyncio.run(collect(client_for(handler), [], "x", "custom"))


def test_cancelled_token_stops_before_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, content=b"x")

    token = CancellationToken()
    token.cancel()
    with pytest.raises(StreamCancelled):
        asyncio.run(collect(client_for(handler), [], "x", "custom", cancel_token=token))
    assert calls == []


def test_session_cancels_hanging_stream():
    async def scenario():
        never = asyncio.Event()

        async def hanging():
            yield "Ensimmäinen ajatus".encode("utf-8")
            await never.wait()
            yield b"ei koskaan"

        client = client_for(lambda request: httpx.Response(200, content=hanging()))
        session = CoachSession(client.analyze_canvas)

        task = asyncio.create_task(session.run(CoachMode.BRAINSTORM))
        await wait_until(lambda: session.live_text == "Ensimmäinen ajatus", attempts=2000)
        session.cancel()
        outcome = await asyncio.wait_for(task, timeout=5)
        await client.close()
        return session, outcome

    session, outcome = asyncio.run(scenario())

    assert outcome == CoachOutcome.CANCELLED
    assert session.history == []
    assert session.live_text == ""
    assert session.error is None


def test_generate_content_parses_envelope():
    def handler(request):
        assert request.url.path == "/api/generate"
        assert json.loads(request.content) == {"workshopContent": "muistiinpanot"}
        return httpx.Response(200, json={"content": {
            "postIts": [{"text": "Idea", "color": "purple", "category": "idea"}],
            "milestones": [],
            "summary": "ok",
            "nextSteps": [],
            "risks": [],
            "insights": [],
        }})

    content = asyncio.run(client_for(handler).generate_content("muistiinpanot"))
    assert content.summary == "ok"
    assert content.post_its[0].category == "idea"


def test_generate_error_envelope():
    def handler(request):
        return httpx.Response(400, json={"error": "No workshop content provided"})

    with pytest.raises(ValidationError, match="No workshop content provided"):
        asyncio.run(client_for(handler).generate_content(" "))


def test_generate_from_exercises_sends_summary():
    exercises = {"1.1": {"notes": "Vapaus"}, "3.1": {"notes": "Perustetaan oy"}}
    sent = {}

    def handler(request):
        sent.update(json.loads(request.content))
        return httpx.Response(200, json={"content": {"summary": "ok"}})

    asyncio.run(client_for(handler).generate_from_exercises(exercises))
    assert sent["workshopContent"] == build_workshop_summary(exercises)


def test_full_round_trip_through_server(llm_service, fake_backend):
    fake_backend.chunks = ["Kolme ", "ideaa."]
    app.dependency_overrides[get_llm_service] = lambda: llm_service

    async def scenario():
        client = CoachClient(base_url="http://coach.test", transport=httpx.ASGITransport(app=app))
        try:
            return await client.analyze_canvas_full([], "Ideoi", CoachMode.BRAINSTORM)
        finally:
            await client.close()

    try:
        response = asyncio.run(scenario())
    finally:
        app.dependency_overrides.clear()

    assert response.content == "Kolme ideaa."
    assert response.mode == CoachMode.BRAINSTORM
