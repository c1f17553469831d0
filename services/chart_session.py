"""
Chart edit sessions.

A ChartSession owns the working copy of one demographic definition while the
author edits it. It moves through

    SELECTING -> EDITING -> COMMITTED
                         -> DISCARDED

and only hands back a finished DemographicDefinition from commit() when the
ranges add up to 100 (and, for custom charts, a name has been given). Failed
commits leave the session in EDITING so the author can fix the values.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass, field, replace

from services.demographics_config import (
    CUSTOM_DEFAULT_RANGES,
    CUSTOM_TEMPLATE_ID,
    DEMOGRAPHIC_TEMPLATES,
    is_custom_id,
    new_custom_id,
)
from services.errors import (
    EmptyLabelError,
    IncompleteAllocationError,
    MissingNameError,
    SessionStateError,
)
from services.range_set import RangeSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DemographicDefinition:
    """A demographic chart: catalog id or custom-* id, label and ranges."""

    id: str
    label: str
    ranges: RangeSet = field(default_factory=RangeSet)

    @property
    def is_custom(self) -> bool:
        return is_custom_id(self.id)

    @classmethod
    def from_template(cls, template_id: str) -> DemographicDefinition:
        if template_id == CUSTOM_TEMPLATE_ID:
            return cls.new_custom()
        template = DEMOGRAPHIC_TEMPLATES.get(template_id)
        if template is None:
            raise ValueError(f"Unknown demographic template '{template_id}'")
        return cls(template_id, template["label"], RangeSet.from_pairs(template["ranges"]))

    @classmethod
    def new_custom(cls, label: str = "", seeded: bool = True) -> DemographicDefinition:
        ranges = RangeSet.from_pairs(CUSTOM_DEFAULT_RANGES) if seeded else RangeSet()
        return cls(new_custom_id(), label, ranges)

    @classmethod
    def from_dict(cls, data: dict) -> DemographicDefinition:
        return cls(
            id=str(data["id"]),
            label=data.get("label") or "",
            ranges=RangeSet.from_list(data.get("ranges") or []),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "label": self.label,
            "ranges": self.ranges.to_list(),
        }


class SessionState(enum.Enum):
    SELECTING = "selecting"
    EDITING = "editing"
    COMMITTED = "committed"
    DISCARDED = "discarded"


class ChartSession:
    """Editing context for a single demographic chart."""

    def __init__(self):
        self.state = SessionState.SELECTING
        self.definition: DemographicDefinition | None = None
        self.pending_label = ""

    # ── Lifecycle ────────────────────────────────────────────────────────

    def open(self, definition_or_template) -> DemographicDefinition:
        """
        Start editing.

        Args:
            definition_or_template: an existing DemographicDefinition, a
                catalog template id such as "age", or "custom" for a new
                custom chart seeded with a 50/50 split.
        """
        self._require(SessionState.SELECTING)
        if isinstance(definition_or_template, DemographicDefinition):
            definition = definition_or_template
        else:
            definition = DemographicDefinition.from_template(str(definition_or_template))

        self.definition = definition
        self.state = SessionState.EDITING
        logger.debug("Opened chart session for %s (%d ranges)", definition.id, len(definition.ranges))
        return definition

    def commit(self) -> DemographicDefinition:
        self._require(SessionState.EDITING)
        definition = self.definition

        if definition.is_custom and not definition.label.strip():
            logger.info("Rejected commit for %s: missing chart name", definition.id)
            raise MissingNameError("Custom charts need a name before they can be saved")
        if not definition.ranges.is_complete():
            logger.info(
                "Rejected commit for %s: ranges sum to %.4f", definition.id, definition.ranges.sum()
            )
            raise IncompleteAllocationError(
                f"Ranges must sum to 100 (currently {definition.ranges.sum():g})"
            )

        finalised = replace(definition, label=definition.label.strip())
        self.definition = finalised
        self.state = SessionState.COMMITTED
        logger.info("Committed chart %s with %d ranges", finalised.id, len(finalised.ranges))
        return finalised

    def discard(self) -> None:
        self._require(SessionState.SELECTING, SessionState.EDITING)
        self.definition = None
        self.pending_label = ""
        self.state = SessionState.DISCARDED

    # ── Edits ────────────────────────────────────────────────────────────

    @property
    def ranges(self) -> RangeSet:
        self._require(SessionState.EDITING, SessionState.COMMITTED)
        return self.definition.ranges

    @property
    def remaining(self) -> float:
        return self.ranges.remaining

    def set_pending_label(self, text: str) -> None:
        self._require(SessionState.EDITING)
        self.pending_label = text or ""

    def add_range_from_remainder(self, label: str | None = None) -> RangeSet:
        """Add a range holding whatever is still unassigned (never negative)."""
        self._require(SessionState.EDITING)
        text = self.pending_label if label is None else label
        text = (text or "").strip()
        if not text:
            raise EmptyLabelError("Enter a label for the new range")

        value = max(0.0, self.ranges.remaining)
        self._set_ranges(self.ranges.add_range(text, value))
        self.pending_label = ""
        return self.ranges

    def update_value(self, index: int, value: float) -> RangeSet:
        self._require(SessionState.EDITING)
        self._set_ranges(self.ranges.update_value(index, value))
        return self.ranges

    def delete_range(self, index: int) -> RangeSet:
        self._require(SessionState.EDITING)
        self._set_ranges(self.ranges.delete_range(index))
        return self.ranges

    def set_label(self, label: str) -> None:
        self._require(SessionState.EDITING)
        self.definition = replace(self.definition, label=label or "")

    def to_dict(self):
        data = {"state": self.state.value, "pending_label": self.pending_label}
        if self.definition is not None:
            data.update(
                {
                    "definition": self.definition.to_dict(),
                    "is_custom": self.definition.is_custom,
                    "sum": self.definition.ranges.sum(),
                    "remaining": self.definition.ranges.remaining,
                    "is_complete": self.definition.ranges.is_complete(),
                }
            )
        return data

    # ── Internal helpers ─────────────────────────────────────────────────

    def _set_ranges(self, ranges: RangeSet) -> None:
        self.definition = replace(self.definition, ranges=ranges)

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise SessionStateError(
                f"Session is {self.state.value}; expected one of: {allowed}"
            )


class SessionRegistry:
    """Open chart sessions keyed by a random id, each tied to a survey."""

    def __init__(self):
        self._sessions: dict[str, tuple[str, ChartSession]] = {}

    def create(self, survey_id: str, definition_or_template) -> tuple[str, ChartSession]:
        session = ChartSession()
        session.open(definition_or_template)
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = (survey_id, session)
        return session_id, session

    def get(self, session_id: str) -> tuple[str, ChartSession] | None:
        return self._sessions.get(session_id)

    def close(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def close_for_survey(self, survey_id: str) -> int:
        """Drop every session opened on survey_id. Returns how many."""
        stale = [sid for sid, (owner, _) in self._sessions.items() if str(owner) == str(survey_id)]
        for session_id in stale:
            del self._sessions[session_id]
        if stale:
            logger.info("Closed %d chart session(s) of deleted survey %s", len(stale), survey_id)
        return len(stale)

    def __len__(self) -> int:
        return len(self._sessions)
