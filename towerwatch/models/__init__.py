"""Record types for incidents and the roster they reference."""

from .incident import Incident, IncidentStatus, IncidentType
from .roster import Guard, PatrollingOfficer, Roster, SecurityAgency, Site

__all__ = [
    "Incident",
    "IncidentStatus",
    "IncidentType",
    "Guard",
    "PatrollingOfficer",
    "Roster",
    "SecurityAgency",
    "Site",
]
