"""Analytics routes — agency, guard and patrolling-officer performance."""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ...dependencies import get_incident_store, get_roster
from ...engine.incident_store import IncidentStore
from ...engine.metrics import (
    agency_performance,
    average_response_time,
    display_percent,
    guard_performance_overview,
    officer_site_visit_rate,
    officers_site_visit_rate,
    performance_band,
    site_incident_counts,
)
from ...models.roster import Roster, SecurityAgency

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _find_agency(roster: Roster, agency_id: str) -> SecurityAgency:
    agency = next((a for a in roster.agencies if str(a.id) == agency_id), None)
    if agency is None:
        raise HTTPException(status_code=404, detail="Agency not found")
    return agency


def _scope(roster: Roster, agency_id: Optional[str]):
    """Sites, guards and officers for one agency, or for everyone."""
    if agency_id is None:
        return roster.sites, roster.guards, roster.patrolling_officers
    sites = roster.sites_for_agency(_find_agency(roster, agency_id))
    return sites, roster.guards_for_sites(sites), roster.officers_for_sites(sites)


@router.get("/agencies")
async def list_agency_performance(
    store: IncidentStore = Depends(get_incident_store),
    roster: Roster = Depends(get_roster),
):
    """Score every agency with the same per-guard and per-officer means as
    the single-agency breakdown, so the list and detail views agree.
    """
    incidents = store.get_incidents()
    results = []
    for agency in roster.agencies:
        perf = agency_performance(agency, roster, incidents)
        results.append({"agency_id": agency.id, "name": agency.name, **perf.as_display()})
    return results


@router.get("/agencies/{agency_id}/performance")
async def get_agency_performance(
    agency_id: str,
    store: IncidentStore = Depends(get_incident_store),
    roster: Roster = Depends(get_roster),
):
    """Overall score and component breakdown for one agency."""
    agency = _find_agency(roster, agency_id)
    perf = agency_performance(agency, roster, store.get_incidents())
    return {
        "agency_id": agency.id,
        "name": agency.name,
        "display": perf.as_display(),
        "raw": {**asdict(perf), "performance": perf.overall},
    }


@router.get("/guards/overview")
async def get_guard_overview(
    agency_id: Optional[str] = None,
    roster: Roster = Depends(get_roster),
):
    _, guards, _ = _scope(roster, agency_id)
    overview = guard_performance_overview(guards)
    return {
        **asdict(overview),
        "perimeter_accuracy_display": round(overview.perimeter_accuracy, 1),
        "selfie_accuracy_display": round(overview.selfie_accuracy, 1),
    }


@router.get("/officers/site-visits")
async def get_officer_site_visits(
    agency_id: Optional[str] = None,
    roster: Roster = Depends(get_roster),
):
    sites, _, officers = _scope(roster, agency_id)
    average = officers_site_visit_rate(officers, sites)
    return {
        "average_site_visit_rate": display_percent(average),
        "band": performance_band(average),
        "average_response_time": average_response_time(officers),
        "officers": [
            {
                "id": officer.id,
                "name": officer.name,
                "site_visit_rate": display_percent(officer_site_visit_rate(officer.id, sites)),
            }
            for officer in officers
        ],
    }


@router.get("/sites/incident-counts")
async def get_site_incident_counts(
    store: IncidentStore = Depends(get_incident_store),
):
    return site_incident_counts(store.get_incidents())
