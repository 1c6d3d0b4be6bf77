"""
Workshop Summary Builder
========================

Flattens the exercise template's answers into the plain-text workshop
summary fed to the structured generator.
"""

from typing import Dict, Mapping, Optional, Union

from ..models.workshop_models import ExerciseData

EMPTY_SUMMARY = "Ei vielä syötteitä."

# (exercise id, section heading, field rendered)
SUMMARY_SECTIONS = [
    ("1.1", "Arvot ja suunta", "notes"),
    ("1.2", "Tavoitteet", "answers"),
    ("2.1", "Valitut vaihtoehdot", "selections"),
    ("2.2", "Painotukset", "weights"),
    ("2.3", "Pelot ja riskit", "notes"),
    ("3.1", "Päätös", "notes"),
    ("3.2", "Seuraavat askeleet", "notes"),
    ("LDJ.1", "LDJ: Ongelmat", "notes"),
    ("LDJ.5", "LDJ: Ratkaisut", "notes"),
    ("LDJ.8", "LDJ: Toimenpiteet", "notes"),
]

ExerciseInput = Mapping[str, Union[ExerciseData, dict]]


def _coerce(exercise_data: ExerciseInput) -> Dict[str, ExerciseData]:
    return {
        key: value if isinstance(value, ExerciseData) else ExerciseData.model_validate(value)
        for key, value in exercise_data.items()
    }


def _format_weight(weight: float) -> str:
    return str(int(weight)) if float(weight).is_integer() else str(weight)


def _render(data: ExerciseData, field: str) -> Optional[str]:
    if field == "notes":
        return data.notes.strip() or None
    if field == "answers":
        return "\n".join(f"- {q}: {a}" for q, a in data.answers.items()) or None
    if field == "selections":
        return ", ".join(data.selections) or None
    if field == "weights":
        return "\n".join(f"- {c}: {_format_weight(w)}/5" for c, w in data.weights.items()) or None
    raise ValueError(f"Unknown exercise field: {field}")


def build_workshop_summary(exercise_data: ExerciseInput) -> str:
    """
    Build the Markdown workshop summary from exercise answers.

    Args:
        exercise_data: Exercise ID -> ExerciseData (or its dict form)

    Returns:
        One `## heading` section per filled-in exercise, in template order,
        or a fixed placeholder sentence when nothing has been entered
    """
    exercises = _coerce(exercise_data)
    sections = []
    for exercise_id, heading, field in SUMMARY_SECTIONS:
        data = exercises.get(exercise_id)
        if data is None:
            continue
        body = _render(data, field)
        if body:
            sections.append(f"## {heading}\n{body}")

    return "\n\n".join(sections) or EMPTY_SUMMARY


def collect_notes(exercise_data: ExerciseInput) -> str:
    """All non-blank notes as `[id] notes`, separated by blank lines."""
    exercises = _coerce(exercise_data)
    return "\n\n".join(
        f"[{exercise_id}] {data.notes}"
        for exercise_id, data in exercises.items()
        if data.notes.strip()
    )
