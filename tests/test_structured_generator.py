import asyncio
import json

import pytest

from conftest import FakeBackend
from workshop_coach.config import LLMConfig
from workshop_coach.errors import ParseError, ProviderError, ValidationError
from workshop_coach.models.generation_models import GeneratedContent, PostItColor
from workshop_coach.services.llm_service import LLMService
from workshop_coach.services.structured_generator import StructuredGenerator, extract_json_object

EXAMPLE_REPLY = (
    'Selitys...\n'
    '{"postIts":[],"milestones":[],"summary":"ok","nextSteps":[],"risks":[],"insights":[]}'
)


def make_generator(backend):
    return StructuredGenerator(LLMService(config=LLMConfig(anthropic_api_key="k"), backend=backend))


def test_extracts_object_from_prose():
    payload = {"summary": "Hyvä päivä", "risks": ["aika"], "nested": {"a": [1, 2, {"b": None}]}}
    text = f"Tässä tulos:\n\n{json.dumps(payload, ensure_ascii=False)}\n\nToivottavasti auttaa."
    assert extract_json_object(text) == payload


def test_extracts_object_from_code_fence():
    text = '```json\n{"summary": "x"}\n```'
    assert extract_json_object(text) == {"summary": "x"}


def test_braces_inside_strings_do_not_end_the_object():
    text = 'Vastaus: {"summary": "käytä } ja { merkkejä", "risks": []} loppu'
    assert extract_json_object(text) == {"summary": "käytä } ja { merkkejä", "risks": []}


def test_skips_prose_braces_before_the_json():
    text = 'Esimerkki {ei json} ja sitten {"summary": "ok"}'
    assert extract_json_object(text) == {"summary": "ok"}


def test_unclosed_brace_swallows_the_rest():
    text = 'Avaa { ja unohda sulkea. {"summary": "ok"}'
    with pytest.raises(ParseError):
        extract_json_object(text)


TRUNCATABLE = {
    "postIts": [{"text": "Arvot", "color": "green", "category": "arvo"}],
    "milestones": [],
    "summary": "Yhteenveto",
}


def test_truncated_reply_is_not_salvaged_from_inner_object():
    text = "Tässä:\n" + json.dumps(TRUNCATABLE)[:-40]
    with pytest.raises(ParseError):
        extract_json_object(text)


def test_trailing_comma_is_not_salvaged_from_inner_object():
    text = '{"postIts": [{"text": "Arvot", "color": "green", "category": "arvo"}], "summary": "x",}'
    with pytest.raises(ParseError):
        extract_json_object(text)


def test_broken_object_is_skipped_as_a_whole():
    text = '{"a": {"b": 1},} ja sitten {"summary": "ok"}'
    assert extract_json_object(text) == {"summary": "ok"}


def test_deep_unclosed_input_fails_in_one_pass():
    with pytest.raises(ParseError):
        extract_json_object("{" * 200_000)


def test_takes_first_of_several_objects():
    assert extract_json_object('{"a": 1} ja {"b": 2}') == {"a": 1}


@pytest.mark.parametrize("text", ["", "ei JSONia ollenkaan", "[1, 2, 3]", "{ rikki", "} väärin päin {"])
def test_no_object_is_a_parse_error(text):
    with pytest.raises(ParseError):
        extract_json_object(text)


def test_example_reply_is_parsed():
    backend = FakeBackend(text=EXAMPLE_REPLY)
    content = asyncio.run(make_generator(backend).generate("Päätimme perustaa osakeyhtiön."))

    assert content.summary == "ok"
    assert content.post_its == []
    assert content.milestones == []
    assert content.next_steps == [] and content.risks == [] and content.insights == []
    assert content.decision is None

    prompt, system = backend.complete_calls[0]
    assert "Päätimme perustaa osakeyhtiön." in prompt
    assert system is None


def test_same_input_gives_same_content():
    backend = FakeBackend(text=EXAMPLE_REPLY)
    generator = make_generator(backend)
    first = asyncio.run(generator.generate("Muistiinpanot"))
    second = asyncio.run(generator.generate("Muistiinpanot"))
    assert first == second
    assert len(backend.complete_calls) == 2


def test_blank_content_never_reaches_provider():
    backend = FakeBackend(text=EXAMPLE_REPLY)
    with pytest.raises(ValidationError):
        asyncio.run(make_generator(backend).generate("   \n"))
    assert backend.call_count == 0


def test_provider_failure_is_provider_error():
    backend = FakeBackend(error=RuntimeError("rate limited"))
    with pytest.raises(ProviderError) as exc_info:
        asyncio.run(make_generator(backend).generate("Muistiinpanot"))
    assert "rate limited" in exc_info.value.message


def test_empty_reply_is_provider_error():
    with pytest.raises(ProviderError):
        asyncio.run(make_generator(FakeBackend(text="  ")).generate("Muistiinpanot"))


def test_reply_without_json_is_parse_error():
    with pytest.raises(ParseError):
        asyncio.run(make_generator(FakeBackend(text="Valitettavasti en voi.")).generate("Muistiinpanot"))


def test_reply_cut_off_by_token_limit_is_parse_error():
    reply = json.dumps(TRUNCATABLE)[:-40]
    with pytest.raises(ParseError):
        asyncio.run(make_generator(FakeBackend(text=reply)).generate("Muistiinpanot"))


def test_wrong_field_types_are_parse_error():
    reply = '{"postIts": "ei lista", "summary": "x"}'
    with pytest.raises(ParseError):
        asyncio.run(make_generator(FakeBackend(text=reply)).generate("Muistiinpanot"))


def test_enum_and_date_values_are_coerced():
    reply = json.dumps({
        "postIts": [
            {"text": "Arvot", "color": "GREEN", "category": "arvo"},
            {"text": "Outo", "color": "magenta"},
        ],
        "milestones": [
            {"title": "Y-tunnus", "date": "2025-03-01", "description": "", "status": "planned"},
            {"title": "Joskus", "date": "ensi keväänä", "status": "maybe"},
        ],
        "summary": "Päätös tehty.",
        "decision": "Perustetaan osakeyhtiö",
        "nextSteps": ["Soita tilitoimistoon"],
        "risks": [],
        "insights": [],
    })
    content = asyncio.run(make_generator(FakeBackend(text=reply)).generate("Muistiinpanot"))

    assert [p.color for p in content.post_its] == [PostItColor.GREEN, PostItColor.YELLOW]
    assert content.post_its[0].hex_color == "#bbf7d0"
    assert content.milestones[0].date == "2025-03-01"
    assert content.milestones[1].date is None
    assert content.milestones[1].status == "planned"
    assert content.decision == "Perustetaan osakeyhtiö"


def test_wire_shape_uses_camel_case_and_omits_missing_decision():
    content = GeneratedContent.model_validate(json.loads(EXAMPLE_REPLY.split("\n", 1)[1]))
    assert content.to_wire() == {
        "postIts": [],
        "milestones": [],
        "summary": "ok",
        "nextSteps": [],
        "risks": [],
        "insights": [],
    }
