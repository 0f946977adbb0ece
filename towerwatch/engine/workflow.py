"""Incident status workflow — Active -> Under Review -> Resolved.

Every update to an incident is checked here against the merged record before
the store applies it, so an illegal change never reaches the stored state.
"""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from ..models.incident import Incident, IncidentStatus, IncidentType
from .errors import InvalidTransitionError, ValidationError

VALID_TRANSITIONS: dict[IncidentStatus, list[IncidentStatus]] = {
    IncidentStatus.ACTIVE: [IncidentStatus.UNDER_REVIEW],
    IncidentStatus.UNDER_REVIEW: [IncidentStatus.RESOLVED],
    IncidentStatus.RESOLVED: [],
}

IMMUTABLE_FIELDS = ("id", "incident_id", "incident_time")

# Only writable in the same update that moves the incident into Resolved
RESOLUTION_FIELDS = (
    "resolution_notes",
    "resolved_incident_media_url",
    "resolved_time",
    "resolved_by_user_id",
)


def allowed_transitions(status: IncidentStatus) -> list[IncidentStatus]:
    return list(VALID_TRANSITIONS.get(status, []))


def can_transition(current: IncidentStatus, target: IncidentStatus) -> bool:
    return target in VALID_TRANSITIONS.get(current, [])


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def validate_update(
    incident: Incident,
    changes: dict[str, Any],
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Check normalized ``changes`` against ``incident`` and return what to apply.

    The returned dict may carry side-effect fields (resolution timestamp,
    empty resolution media) on top of the caller's changes.

    Raises:
        InvalidTransitionError: the status change is not in the table.
        ValidationError: a guard failed or a field may not change now.
    """
    current = incident.status
    target = changes.get("status", current)
    transitioning = target is not current

    if transitioning and not can_transition(current, target):
        raise InvalidTransitionError(
            current.value, target.value, [s.value for s in allowed_transitions(current)]
        )

    for name in IMMUTABLE_FIELDS:
        if name in changes and changes[name] != getattr(incident, name):
            raise ValidationError(f"{name} cannot be changed", field=name)

    if current is IncidentStatus.RESOLVED:
        for name, value in changes.items():
            if value != getattr(incident, name):
                raise ValidationError("Resolved incidents cannot be modified", field=name)
        return {}

    entering_resolved = transitioning and target is IncidentStatus.RESOLVED
    if not entering_resolved:
        for name in RESOLUTION_FIELDS:
            if name in changes and changes[name] != getattr(incident, name):
                raise ValidationError(f"{name} can only be set when resolving", field=name)

    if "initial_incident_media_url" in changes:
        existing = incident.initial_incident_media_url
        proposed = changes["initial_incident_media_url"]
        if proposed[:len(existing)] != existing:
            raise ValidationError(
                "Incident media can only be appended", field="initial_incident_media_url"
            )

    effective = dict(changes)
    merged = replace(incident, **changes)

    # Type and description stay required once the incident leaves Active
    if merged.status is not IncidentStatus.ACTIVE:
        if merged.incident_type is None:
            raise ValidationError("Incident type is required.", field="incident_type")
        if _blank(merged.description):
            raise ValidationError("Incident description is required.", field="description")

    if entering_resolved:
        if _blank(merged.resolution_notes):
            raise ValidationError("Resolution notes are required.", field="resolution_notes")
        if merged.resolved_incident_media_url is None:
            effective["resolved_incident_media_url"] = []
        if merged.resolved_time is None:
            effective["resolved_time"] = now or datetime.now(timezone.utc)

    return effective


def begin_review_fields(
    incident: Incident,
    incident_type: IncidentType | str,
    description: str,
    new_media: Iterable[Optional[str]] = (),
) -> dict[str, Any]:
    """Partial update submitted by the initial-report form."""
    return {
        "incident_type": incident_type,
        "description": description,
        "initial_incident_media_url": [*incident.initial_incident_media_url, *new_media],
        "status": IncidentStatus.UNDER_REVIEW,
    }


def resolve_fields(
    resolution_notes: str,
    resolved_media: Iterable[Optional[str]] = (),
    resolved_by_user_id: Optional[str] = None,
) -> dict[str, Any]:
    """Partial update submitted by the resolution form."""
    fields = {
        "resolution_notes": resolution_notes,
        "resolved_incident_media_url": list(resolved_media),
        "status": IncidentStatus.RESOLVED,
    }
    if resolved_by_user_id is not None:
        fields["resolved_by_user_id"] = resolved_by_user_id
    return fields
