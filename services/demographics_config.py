"""
Static demographic catalog: built-in chart templates and the custom default.

Each built-in template carries a default split that already sums to 100.
Custom charts get ids prefixed with CUSTOM_PREFIX and need a user-supplied
label before they can be saved.
"""

import uuid

CUSTOM_TEMPLATE_ID = "custom"
CUSTOM_PREFIX = "custom-"

# ── Built-in templates ───────────────────────────────────────────────────

DEMOGRAPHIC_TEMPLATES = {
    "age": {
        "label": "Age",
        "ranges": [("0-18", 25), ("19-35", 40), ("36-55", 25), ("56+", 10)],
    },
    "gender": {
        "label": "Gender",
        "ranges": [("Male", 50), ("Female", 50)],
    },
    "income": {
        "label": "Income",
        "ranges": [("Under $50k", 30), ("$50k-$100k", 40), ("Over $100k", 30)],
    },
    "location": {
        "label": "Location",
        "ranges": [("Urban", 55), ("Suburban", 30), ("Rural", 15)],
    },
    "education": {
        "label": "Education",
        "ranges": [("High School", 35), ("Bachelor's", 45), ("Graduate", 20)],
    },
}

# New custom charts start as a 50/50 two-option split
CUSTOM_DEFAULT_RANGES = [("Option 1", 50), ("Option 2", 50)]


def list_templates() -> list[dict]:
    """Catalog entries as {id, label, ranges} dicts, custom slot last."""
    entries = [
        {
            "id": template_id,
            "label": template["label"],
            "ranges": [{"label": label, "value": value} for label, value in template["ranges"]],
        }
        for template_id, template in DEMOGRAPHIC_TEMPLATES.items()
    ]
    entries.append(
        {
            "id": CUSTOM_TEMPLATE_ID,
            "label": "Custom",
            "ranges": [{"label": label, "value": value} for label, value in CUSTOM_DEFAULT_RANGES],
        }
    )
    return entries


def is_custom_id(demographic_id: str) -> bool:
    return demographic_id.startswith(CUSTOM_PREFIX)


def new_custom_id() -> str:
    return f"{CUSTOM_PREFIX}{uuid.uuid4().hex[:12]}"
