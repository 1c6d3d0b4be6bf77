"""
Prompt Builder for Workshop Coach
==================================

Renders the prompts sent to the LLM provider. Pure functions, no I/O.

- Coach prompts: one fixed system prompt per mode plus a user message
  built from the canvas elements and the user's request.
- Generation prompt: one fixed template with the workshop summary
  substituted for `{CONTENT}`.
"""

from typing import Dict, Iterable

from ..models.canvas_models import CanvasElement
from ..models.coach_models import CoachMode, CoachPrompt


SYSTEM_PROMPTS: Dict[CoachMode, str] = {
    CoachMode.SUMMARIZE: " ".join([
        "Olet strategiaworkshop-fasilitaattori.",
        "Tiivistä workshopin ydinkohdat suomeksi.",
        "Käytä selkeää rakennetta: otsikot, luettelomerkit, lyhyet kappaleet.",
        "Keskity strategisiin päätöksiin, avainlöydöksiin ja toimenpiteisiin.",
        "Vastaa suomeksi.",
    ]),
    CoachMode.BRAINSTORM: " ".join([
        "Olet luova strategiakonsultti.",
        "Ideoi 5 uutta näkökulmaa perustuen workshopin sisältöön.",
        "Jokaiselle idealle: otsikko, lyhyt kuvaus, ja miksi se on arvokas.",
        "Ole rohkea, haasta totuttuja ajattelumalleja.",
        "Vastaa suomeksi.",
    ]),
    CoachMode.CHALLENGE: " ".join([
        "Olet kriittinen strategia-analyytikko.",
        "Haasta oletukset ja kysy kriittisiä kysymyksiä.",
        "Tunnista sokeita pisteitä, riskejä ja puuttuvia näkökulmia.",
        "Ole rakentavan kriittinen ja tarjoa myös vaihtoehtoisia polkuja.",
        "Vastaa suomeksi.",
    ]),
    CoachMode.CUSTOM: " ".join([
        "Olet strategiaworkshop-avustaja.",
        "Vastaa käyttäjän kysymykseen perustuen workshopin sisältöön.",
        "Vastaa selkeästi ja konkreettisesti suomeksi.",
    ]),
}

EMPTY_CANVAS_CONTEXT = "Workshop-kanvas on tyhjä. Käyttäjä ei ole vielä lisännyt sisältöä."
NO_TEXT_CONTEXT = "Workshop-kanvas sisältää elementtejä, mutta niissä ei ole tekstiä."
CONTEXT_HEADER = "Workshop-kanvaksen sisältö:"
REQUEST_PREFIX = "Käyttäjän pyyntö: "


GENERATION_PROMPT = """Olet strategiatyöpajan assistentti. Analysoi alla oleva työpajamateriaali ja generoi strukturoitu JSON-vastaus.

MATERIAALI:
{CONTENT}

GENEROI JSON seuraavassa formaatissa (vastaa VAIN JSON, ei muuta):

{
  "postIts": [
    {
      "text": "Lyhyt post-it teksti (max 50 merkkiä)",
      "color": "yellow|green|blue|red|purple|orange",
      "category": "arvo|tavoite|riski|idea|ratkaisu|toimenpide"
    }
  ],
  "milestones": [
    {
      "title": "Virstanpylväs otsikko",
      "date": "YYYY-MM-DD",
      "description": "Lyhyt kuvaus",
      "status": "planned"
    }
  ],
  "summary": "1-3 lauseen yhteenveto työpajasta",
  "decision": "Päätös jos tehty (esim. 'Perustetaan sivutoiminen yritys')",
  "nextSteps": ["Askel 1", "Askel 2", "Askel 3"],
  "risks": ["Riski 1", "Riski 2"],
  "insights": ["Oivallus 1", "Oivallus 2"]
}

OHJEET:
- Luo 8-15 post-itia kattamaan kaikki avainpointit
- Käytä eri värejä kategorioiden mukaan:
  - yellow = yleiset muistiinpanot
  - green = arvot ja positiiviset
  - blue = tavoitteet ja visiot
  - red = riskit ja pelot
  - purple = ideat ja innovaatiot
  - orange = toimenpiteet ja askeleet
- Milestoneissa käytä realistisia päivämääriä (aloita tästä päivästä eteenpäin)
- Tiivistä mutta säilytä oleelliset yksityiskohdat"""


def elements_to_context(elements: Iterable[CanvasElement]) -> str:
    """
    Render canvas elements as the context block of a coach prompt.

    Args:
        elements: Canvas elements in canvas order

    Returns:
        One of two fixed sentences when there is nothing to list,
        otherwise a header followed by one `[type] text` line per element
    """
    elements = list(elements)
    if not elements:
        return EMPTY_CANVAS_CONTEXT

    lines = [f"[{el.type}] {el.text}" for el in elements if el.has_text]
    if not lines:
        return NO_TEXT_CONTEXT

    return "\n".join([CONTEXT_HEADER, "", *lines])


def build_user_message(elements: Iterable[CanvasElement], prompt: str) -> str:
    """Context block, separator, then the literal user request."""
    return "\n".join([
        elements_to_context(elements),
        "",
        "---",
        "",
        f"{REQUEST_PREFIX}{prompt}",
    ])


def build_coach_prompt(mode: CoachMode, elements: Iterable[CanvasElement], prompt: str) -> CoachPrompt:
    """System prompt for `mode` plus the rendered user message."""
    mode = CoachMode(mode)
    return CoachPrompt(
        system=SYSTEM_PROMPTS[mode],
        user=build_user_message(elements, prompt),
    )


def build_generation_prompt(workshop_content: str) -> str:
    return GENERATION_PROMPT.replace("{CONTENT}", workshop_content, 1)
