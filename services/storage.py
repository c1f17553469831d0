"""
Survey persistence.

The engine never talks to storage. Callers read whole survey records through
SurveyRepository, which sits on a KeyValueStore: a get/set store of JSON
documents keyed by string. InMemoryStore is for tests and scripts;
SqlKeyValueStore keeps the documents in the kv_entries table.
"""

import copy
import logging
from datetime import datetime, timezone
from typing import Protocol

from models import db
from models.kv_entry import KeyValueEntry

logger = logging.getLogger(__name__)

DEFAULT_SURVEYS_KEY = "surveys"


class KeyValueStore(Protocol):
    def get(self, key: str): ...

    def set(self, key: str, value) -> None: ...


class InMemoryStore:
    """Dict-backed store. Values are deep-copied in and out."""

    def __init__(self, initial: dict | None = None):
        self._data = copy.deepcopy(initial) if initial else {}

    def get(self, key: str):
        return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value) -> None:
        self._data[key] = copy.deepcopy(value)


class SqlKeyValueStore:
    """Store backed by KeyValueEntry rows. Needs an app context."""

    def get(self, key: str):
        entry = KeyValueEntry.query.filter_by(key=key).first()
        if entry is None:
            return None
        return copy.deepcopy(entry.value)

    def set(self, key: str, value) -> None:
        entry = KeyValueEntry.query.filter_by(key=key).first()
        if entry is None:
            entry = KeyValueEntry(key=key)
            db.session.add(entry)
        # Assign a fresh object so the JSON column registers the change
        entry.value = copy.deepcopy(value)
        db.session.commit()


class SurveyRepository:
    """Reads and writes whole survey records kept under one key."""

    def __init__(self, store: KeyValueStore, key: str = DEFAULT_SURVEYS_KEY):
        self.store = store
        self.key = key

    def list_surveys(self) -> list[dict]:
        return self.store.get(self.key) or []

    def get_survey(self, survey_id) -> dict | None:
        for survey in self.list_surveys():
            if str(survey["id"]) == str(survey_id):
                return survey
        return None

    def save_survey(self, survey: dict) -> dict:
        """Insert or replace a survey by id, stamping lastModified."""
        record = dict(survey)
        record["lastModified"] = datetime.now(timezone.utc).date().isoformat()

        surveys = self.list_surveys()
        for i, existing in enumerate(surveys):
            if str(existing["id"]) == str(record["id"]):
                surveys[i] = record
                break
        else:
            surveys.append(record)

        self.store.set(self.key, surveys)
        logger.debug("Saved survey %s (%d total)", record["id"], len(surveys))
        return record

    def delete_survey(self, survey_id) -> bool:
        surveys = self.list_surveys()
        kept = [s for s in surveys if str(s["id"]) != str(survey_id)]
        if len(kept) == len(surveys):
            return False
        self.store.set(self.key, kept)
        logger.info("Deleted survey %s", survey_id)
        return True
