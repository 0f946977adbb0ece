"""Shared test fixtures."""

import pytest

from towerwatch.engine.incident_store import create_incident_store
from towerwatch.models.roster import Guard, PatrollingOfficer, Roster, SecurityAgency, Site


def make_incident(id="INC1", status="Active", **overrides) -> dict:
    """Build an incident record in the dashboard's camelCase shape."""
    record = {
        "id": id,
        "status": status,
        "incidentTime": "2024-07-20T14:30:00Z",
        "description": "",
        "raisedByGuardId": "GL001",
        "siteId": "SITE01",
        "attendedByPatrollingOfficerId": "PO01",
        "initialIncidentMediaUrl": [],
    }
    record.update(overrides)
    return record


@pytest.fixture
def sample_incidents():
    return [
        make_incident("INC1"),
        make_incident(
            "INC2",
            status="Under Review",
            incidentType="Theft",
            description="Copper cable stolen from tower base.",
            siteId="SITE02",
            raisedByGuardId="GL002",
            incidentTime="2024-06-02T08:00:00Z",
            initialIncidentMediaUrl=["https://media.example/inc2-1.png"],
        ),
        make_incident(
            "INC3",
            status="Resolved",
            incidentType="Vandalism",
            description="Graffiti on the shelter.",
            resolutionNotes="Wall repainted.",
            resolvedIncidentMediaUrl=[],
            siteId="SITE03",
            attendedByPatrollingOfficerId="PO02",
            incidentTime="2023-12-24T22:10:00Z",
        ),
    ]


@pytest.fixture
def store(sample_incidents):
    return create_incident_store(sample_incidents)


@pytest.fixture
def roster():
    return Roster(
        guards=[
            Guard(id="GL001", site_id="SITE01", total_selfie_requests=20, missed_selfie_count=1, perimeter_accuracy=96),
            Guard(id="GL002", site_id="SITE01", total_selfie_requests=25, missed_selfie_count=0, perimeter_accuracy=100),
            Guard(id="GL003", site_id="SITE03", total_selfie_requests=10, missed_selfie_count=5, perimeter_accuracy=70),
        ],
        sites=[
            Site(id="SITE01", agency_id="AGY01", patrolling_officer_id="PO01", guard_ids=["GL001", "GL002"], visited=True),
            Site(id="SITE02", agency_id="AGY01", patrolling_officer_id="PO01", guard_ids=[], visited=False),
            Site(id="SITE03", agency_id="AGY02", patrolling_officer_id="PO02", guard_ids=["GL003"], visited=True),
        ],
        patrolling_officers=[
            PatrollingOfficer(id="PO01", name="Michael Scott", average_response_time=15),
            PatrollingOfficer(id="PO02", name="Jessica Pearson", average_response_time=12),
        ],
        agencies=[
            SecurityAgency(id="AGY01", name="GuardLink Security", site_ids=["SITE01", "SITE02"]),
            SecurityAgency(id="AGY02", name="Vigilant Watch", site_ids=["SITE03"]),
            SecurityAgency(id="AGY03", name="Aegis Protection", site_ids=[]),
        ],
    )
