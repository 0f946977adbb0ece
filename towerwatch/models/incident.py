"""Incident record — the unit tracked through the Active / Under Review / Resolved lifecycle."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from ..engine.errors import ValidationError

IncidentKey = Union[str, int]


class IncidentStatus(str, Enum):
    ACTIVE = "Active"
    UNDER_REVIEW = "Under Review"
    RESOLVED = "Resolved"


class IncidentType(str, Enum):
    SOS = "SOS"
    SUSPICIOUS_ACTIVITY = "Suspicious Activity"
    THEFT = "Theft"
    VANDALISM = "Vandalism"
    TRESPASSING = "Trespassing"
    SAFETY_HAZARD = "Safety Hazard"
    OTHER = "Other"


def _normalize_label(value: str) -> str:
    return value.strip().lower().replace("-", " ").replace("_", " ")


def coerce_status(value: Any) -> IncidentStatus:
    """Accept an IncidentStatus, its label, or a slug like ``under-review``."""
    if isinstance(value, IncidentStatus):
        return value
    if isinstance(value, str):
        wanted = _normalize_label(value)
        for status in IncidentStatus:
            if _normalize_label(status.value) == wanted:
                return status
    raise ValidationError(f"Unknown incident status: {value!r}", field="status")


def coerce_incident_type(value: Any) -> Optional[IncidentType]:
    """Like coerce_status, but blank values mean the type is still unset."""
    if value is None or isinstance(value, IncidentType):
        return value
    if isinstance(value, str):
        if not value.strip():
            return None
        wanted = _normalize_label(value)
        for incident_type in IncidentType:
            if _normalize_label(incident_type.value) == wanted:
                return incident_type
    raise ValidationError(f"Unknown incident type: {value!r}", field="incident_type")


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}") from None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise ValidationError(f"Invalid timestamp: {value!r}")


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class Incident:
    """A reported security event at a site."""

    id: IncidentKey
    site_id: Optional[IncidentKey] = None
    raised_by_guard_id: Optional[IncidentKey] = None
    incident_time: Optional[datetime] = None
    status: IncidentStatus = IncidentStatus.ACTIVE
    incident_type: Optional[IncidentType] = None
    description: str = ""
    initial_incident_media_url: list[Optional[str]] = field(default_factory=list)
    attended_by_patrolling_officer_id: Optional[IncidentKey] = None
    incident_id: Optional[str] = None
    resolution_notes: Optional[str] = None
    resolved_incident_media_url: Optional[list[Optional[str]]] = None
    resolved_time: Optional[datetime] = None
    resolved_by_user_id: Optional[str] = None

    def copy(self) -> Incident:
        return copy.deepcopy(self)

    @property
    def is_resolved(self) -> bool:
        return self.status is IncidentStatus.RESOLVED

    def to_dict(self) -> dict:
        """Serialize to the dashboard's camelCase wire shape."""
        return {
            "id": self.id,
            "incident_id": self.incident_id,
            "status": self.status.value,
            "incidentType": self.incident_type.value if self.incident_type else None,
            "description": self.description,
            "siteId": self.site_id,
            "raisedByGuardId": self.raised_by_guard_id,
            "attendedByPatrollingOfficerId": self.attended_by_patrolling_officer_id,
            "incidentTime": format_timestamp(self.incident_time),
            "initialIncidentMediaUrl": list(self.initial_incident_media_url),
            "resolutionNotes": self.resolution_notes,
            "resolvedIncidentMediaUrl": (
                list(self.resolved_incident_media_url)
                if self.resolved_incident_media_url is not None else None
            ),
            "resolvedTime": format_timestamp(self.resolved_time),
            "resolvedByUserId": self.resolved_by_user_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Incident:
        """Build an incident from the mock (camelCase) or REST (snake_case) shape.

        Keys this record does not model, such as denormalized site names in
        REST listings, are ignored.
        """
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = FIELD_ALIASES.get(key)
            if name is not None:
                values[name] = value
        if values.get("id") is None:
            raise ValidationError("Incident record has no id", field="id")
        return cls(**coerce_fields(values))


_FIELD_NAMES = {f.name for f in fields(Incident)}

# wire key -> attribute name
FIELD_ALIASES: dict[str, str] = {name: name for name in _FIELD_NAMES}
FIELD_ALIASES.update({
    "siteId": "site_id",
    "raisedByGuardId": "raised_by_guard_id",
    "attendedByPatrollingOfficerId": "attended_by_patrolling_officer_id",
    "incidentTime": "incident_time",
    "incident_status": "status",
    "incidentType": "incident_type",
    "initialIncidentMediaUrl": "initial_incident_media_url",
    "resolutionNotes": "resolution_notes",
    "resolvedIncidentMediaUrl": "resolved_incident_media_url",
    "resolvedTime": "resolved_time",
    "resolvedByUserId": "resolved_by_user_id",
})


def coerce_fields(values: dict[str, Any]) -> dict[str, Any]:
    """Convert wire values for already-normalized attribute names."""
    out = dict(values)
    if "status" in out:
        out["status"] = coerce_status(out["status"])
    if "incident_type" in out:
        out["incident_type"] = coerce_incident_type(out["incident_type"])
    for name in ("incident_time", "resolved_time"):
        if name in out:
            out[name] = parse_timestamp(out[name])
    if "description" in out and out["description"] is None:
        out["description"] = ""
    for name in ("initial_incident_media_url", "resolved_incident_media_url"):
        if name in out and out[name] is not None:
            if isinstance(out[name], (str, bytes)) or not isinstance(out[name], (list, tuple)):
                raise ValidationError(f"{name} must be a list of media references", field=name)
            out[name] = list(out[name])
    if out.get("initial_incident_media_url", []) is None:
        out["initial_incident_media_url"] = []
    return out


def normalize_update(partial: dict[str, Any]) -> dict[str, Any]:
    """Map a partial update onto attribute names, rejecting unknown keys."""
    values: dict[str, Any] = {}
    for key, value in partial.items():
        name = FIELD_ALIASES.get(key)
        if name is None:
            raise ValidationError(f"Unknown incident field: {key}", field=key)
        values[name] = value
    return coerce_fields(values)
