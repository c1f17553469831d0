"""
Survey records and their questions.

Records are plain JSON-ready dicts (the shape stored by SurveyRepository):

    {
        "id": "3f2a...",
        "name": "Q3 customer survey",
        "owner": "Dana",
        "creationDate": "2024-12-11",
        "lastModified": "2024-12-12",
        "demographics": [{"id": "age", "label": "Age", "ranges": [...]}],
        "customInformation": "",
        "questions": [{"id": "...", "type": "slider", "question": "...", ...}]
    }

Helpers here return new records rather than editing the one passed in.
Question text and options are stored as given.
"""

import copy
import uuid
from datetime import datetime, timezone

from services.chart_session import DemographicDefinition
from services.errors import IndexOutOfRangeError

QUESTION_TYPES = {
    "multiple-choice": {
        "label": "Multiple Choice",
        "default_config": {
            "question": "",
            "options": ["Option 1", "Option 2", "Option 3", "Option 4"],
        },
    },
    "slider": {
        "label": "Scale (1-10)",
        "default_config": {"question": "", "min": 1, "max": 10, "step": 1},
    },
    "numeric": {
        "label": "Numeric Input",
        "default_config": {
            "question": "",
            "min": 0,
            "max": None,
            "placeholder": "Enter a number",
        },
    },
    "true-false": {
        "label": "True/False",
        "default_config": {"question": "", "options": ["True", "False"]},
    },
}


def new_survey(name: str, owner: str = "", custom_information: str = "") -> dict:
    name = (name or "").strip()
    if not name:
        raise ValueError("Survey name is required")
    return {
        "id": uuid.uuid4().hex,
        "name": name,
        "owner": owner or "",
        "creationDate": datetime.now(timezone.utc).date().isoformat(),
        "demographics": [],
        "customInformation": custom_information or "",
        "questions": [],
    }


def list_question_types() -> list[dict]:
    return [
        {"id": type_id, "label": info["label"], "default_config": copy.deepcopy(info["default_config"])}
        for type_id, info in QUESTION_TYPES.items()
    ]


# ── Demographics ─────────────────────────────────────────────────────────

def get_demographic(survey: dict, demographic_id: str) -> DemographicDefinition | None:
    for item in survey.get("demographics", []):
        if str(item["id"]) == str(demographic_id):
            return DemographicDefinition.from_dict(item)
    return None


def upsert_demographic(survey: dict, definition: DemographicDefinition) -> dict:
    """Replace the chart with the same id, or append it."""
    demographics = [dict(d) for d in survey.get("demographics", [])]
    for i, item in enumerate(demographics):
        if str(item["id"]) == definition.id:
            demographics[i] = definition.to_dict()
            break
    else:
        demographics.append(definition.to_dict())
    return {**survey, "demographics": demographics}


def remove_demographics(survey: dict, demographic_ids) -> dict:
    ids = {str(i) for i in demographic_ids}
    demographics = [d for d in survey.get("demographics", []) if str(d["id"]) not in ids]
    return {**survey, "demographics": demographics}


# ── Questions ────────────────────────────────────────────────────────────

def new_question(question_type: str, config: dict | None = None) -> dict:
    """Build a question from its type's defaults overlaid with config."""
    info = QUESTION_TYPES.get(question_type)
    if info is None:
        raise ValueError(f"Unknown question type '{question_type}'")
    question = copy.deepcopy(info["default_config"])
    question.update(config or {})
    question["type"] = question_type
    question["id"] = str(question.get("id") or uuid.uuid4().hex)
    return question


def rebuild_questions(items) -> list[dict]:
    """
    Check a whole replacement questions list and rebuild each entry.

    Raises ValueError unless items is a list of dicts with a known type, so a
    bad list never reaches the stored record.
    """
    if not isinstance(items, list):
        raise ValueError("Questions must be a list")
    questions = []
    for item in items:
        if not isinstance(item, dict):
            raise ValueError("Each question must be an object")
        config = dict(item)
        questions.append(new_question(config.pop("type", ""), config))
    return questions


def upsert_question(survey: dict, question: dict) -> dict:
    questions = list(survey.get("questions", []))
    for i, existing in enumerate(questions):
        if str(existing["id"]) == str(question["id"]):
            questions[i] = question
            break
    else:
        questions.append(question)
    return {**survey, "questions": questions}


def delete_question(survey: dict, question_id) -> dict:
    questions = [q for q in survey.get("questions", []) if str(q["id"]) != str(question_id)]
    return {**survey, "questions": questions}


def move_question(survey: dict, old_index: int, new_index: int) -> dict:
    """Move one question to a new position, shifting the rest."""
    questions = list(survey.get("questions", []))
    for index in (old_index, new_index):
        if index < 0 or index >= len(questions):
            raise IndexOutOfRangeError(f"Question index {index} out of range")
    questions.insert(new_index, questions.pop(old_index))
    return {**survey, "questions": questions}
