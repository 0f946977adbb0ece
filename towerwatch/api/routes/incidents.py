"""Incident routes — list, inspect and drive incidents through their workflow."""

from datetime import datetime
from typing import Any, Optional, Union

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ...dependencies import get_incident_store, get_roster
from ...engine.incident_store import IncidentStore
from ...engine.metrics import status_summary
from ...engine.workflow import allowed_transitions, begin_review_fields, resolve_fields
from ...models.incident import Incident
from ...models.roster import Roster

router = APIRouter(prefix="/incidents", tags=["incidents"])


# --- Request bodies ---

class RaiseIncidentRequest(BaseModel):
    id: Union[int, str]
    site_id: Union[int, str]
    raised_by_guard_id: Union[int, str]
    attended_by_patrolling_officer_id: Optional[Union[int, str]] = None
    incident_id: Optional[str] = None
    incident_type: Optional[str] = None
    description: str = Field(default="", max_length=5000)
    initial_incident_media_url: list[str] = []
    incident_time: Optional[datetime] = None


class ReviewRequest(BaseModel):
    incident_type: str
    description: str = Field(max_length=5000)
    media: list[str] = []


class ResolveRequest(BaseModel):
    resolution_notes: str = Field(max_length=5000)
    media: list[str] = []
    resolved_by_user_id: Optional[str] = None


class MediaRequest(BaseModel):
    urls: list[str] = Field(min_length=1)


# --- Helpers ---

def _serialize(incident: Incident) -> dict:
    data = incident.to_dict()
    data["allowedTransitions"] = [s.value for s in allowed_transitions(incident.status)]
    return data


def _require(store: IncidentStore, incident_id: str) -> Incident:
    incident = store.get_incident_by_id(incident_id)
    if incident is None:
        raise HTTPException(status_code=404, detail="Incident not found")
    return incident


def _agency_site_ids(roster: Roster, agency_id: Optional[str]) -> Optional[list]:
    if agency_id is None:
        return None
    agency = next((a for a in roster.agencies if str(a.id) == agency_id), None)
    if agency is None:
        raise HTTPException(status_code=404, detail="Agency not found")
    return agency.site_ids


# --- Endpoints ---

@router.get("/")
async def list_incidents(
    status: Optional[str] = None,
    site_id: Optional[str] = None,
    agency_id: Optional[str] = None,
    guard_id: Optional[str] = None,
    officer_id: Optional[str] = None,
    year: Optional[int] = Query(None, ge=1970, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    store: IncidentStore = Depends(get_incident_store),
    roster: Roster = Depends(get_roster),
):
    """List incidents, newest first, with optional filters."""
    incidents = store.list_incidents(
        status=status,
        site_id=site_id,
        site_ids=_agency_site_ids(roster, agency_id),
        guard_id=guard_id,
        officer_id=officer_id,
        year=year,
        month=month,
    )
    incidents.sort(key=lambda i: i.incident_time.timestamp() if i.incident_time else 0.0, reverse=True)
    return [_serialize(i) for i in incidents]


@router.post("/", status_code=201)
async def raise_incident(
    body: RaiseIncidentRequest,
    store: IncidentStore = Depends(get_incident_store),
):
    """Register an incident raised by a guard."""
    incident = store.add_incident(body.model_dump())
    return _serialize(incident)


@router.get("/summary")
async def get_status_summary(
    agency_id: Optional[str] = None,
    store: IncidentStore = Depends(get_incident_store),
    roster: Roster = Depends(get_roster),
):
    """Incident counts per status."""
    incidents = store.list_incidents(site_ids=_agency_site_ids(roster, agency_id))
    summary = status_summary(incidents)
    return {"total": len(incidents), "by_status": summary}


@router.get("/{incident_id}")
async def get_incident(
    incident_id: str,
    store: IncidentStore = Depends(get_incident_store),
):
    return _serialize(_require(store, incident_id))


@router.patch("/{incident_id}")
async def update_incident(
    incident_id: str,
    body: dict[str, Any] = Body(...),
    store: IncidentStore = Depends(get_incident_store),
):
    """Apply a partial update. Workflow violations return 409 or 422."""
    _require(store, incident_id)
    store.update_incident(incident_id, body)
    return _serialize(_require(store, incident_id))


@router.post("/{incident_id}/review")
async def submit_initial_report(
    incident_id: str,
    body: ReviewRequest,
    store: IncidentStore = Depends(get_incident_store),
):
    """Save the initial report and move the incident to Under Review."""
    incident = _require(store, incident_id)
    store.update_incident(
        incident_id,
        begin_review_fields(incident, body.incident_type, body.description, body.media),
    )
    return _serialize(_require(store, incident_id))


@router.post("/{incident_id}/resolve")
async def resolve_incident(
    incident_id: str,
    body: ResolveRequest,
    store: IncidentStore = Depends(get_incident_store),
):
    """Close an incident under review with resolution notes."""
    _require(store, incident_id)
    store.update_incident(
        incident_id,
        resolve_fields(body.resolution_notes, body.media, body.resolved_by_user_id),
    )
    return _serialize(_require(store, incident_id))


@router.post("/{incident_id}/media")
async def upload_media(
    incident_id: str,
    body: MediaRequest,
    store: IncidentStore = Depends(get_incident_store),
):
    """Append media to the initial report."""
    _require(store, incident_id)
    store.append_media(incident_id, body.urls)
    return _serialize(_require(store, incident_id))
