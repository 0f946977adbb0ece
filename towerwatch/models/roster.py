"""Roster records — guards, sites, patrolling officers and agencies.

These are the inputs of the performance metrics. Incidents refer to them by
id only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

Key = Union[str, int]


def _first(data: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass
class Guard:
    id: Key
    name: str = ""
    site_id: Optional[Key] = None
    total_selfie_requests: int = 0
    missed_selfie_count: int = 0
    perimeter_accuracy: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict) -> Guard:
        performance = data.get("performance") or {}
        site = data.get("site")
        site_id = site.get("id") if isinstance(site, dict) else _first(data, "site_id", "siteId")
        name = _first(data, "name", default="")
        if not name:
            name = " ".join(p for p in (data.get("first_name"), data.get("last_name")) if p)
        return cls(
            id=data["id"],
            name=name,
            site_id=site_id,
            total_selfie_requests=int(_first(data, "totalSelfieRequests", "total_selfie_requests", default=0)),
            missed_selfie_count=int(_first(data, "missedSelfieCount", "missed_selfie_count", default=0)),
            perimeter_accuracy=_first(performance, "perimeterAccuracy", "perimeter_accuracy"),
        )


@dataclass
class Site:
    id: Key
    site_name: str = ""
    agency_id: Optional[Key] = None
    patrolling_officer_id: Optional[Key] = None
    guard_ids: list[Key] = field(default_factory=list)
    visited: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> Site:
        agency = data.get("assigned_agency")
        agency_id = agency.get("id") if isinstance(agency, dict) else _first(data, "agencyId", "agency_id")
        return cls(
            id=data["id"],
            site_name=_first(data, "site_name", "name", default=""),
            agency_id=agency_id,
            patrolling_officer_id=_first(data, "patrollingOfficerId", "patrolling_officer_id"),
            guard_ids=list(_first(data, "guards", "guard_ids", default=[])),
            visited=bool(data.get("visited", False)),
        )


@dataclass
class PatrollingOfficer:
    id: Key
    name: str = ""
    average_response_time: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict) -> PatrollingOfficer:
        return cls(
            id=data["id"],
            name=_first(data, "name", "first_name", default=""),
            average_response_time=_first(data, "averageResponseTime", "average_response_time"),
        )


@dataclass
class SecurityAgency:
    id: Key
    name: str = ""
    site_ids: list[Key] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> SecurityAgency:
        site_ids = _first(data, "siteIds", "site_ids")
        if site_ids is None:
            site_ids = [
                d["site_details"]["id"]
                for d in data.get("assigned_sites_details", [])
                if isinstance(d.get("site_details"), dict)
            ]
        return cls(
            id=data["id"],
            name=_first(data, "name", "agency_name", default=""),
            site_ids=list(site_ids),
        )


@dataclass
class Roster:
    """Everything the metrics need besides incidents."""

    guards: list[Guard] = field(default_factory=list)
    sites: list[Site] = field(default_factory=list)
    patrolling_officers: list[PatrollingOfficer] = field(default_factory=list)
    agencies: list[SecurityAgency] = field(default_factory=list)

    def get_agency(self, agency_id: Key) -> Optional[SecurityAgency]:
        return next((a for a in self.agencies if a.id == agency_id), None)

    def sites_for_agency(self, agency: SecurityAgency) -> list[Site]:
        site_ids = set(agency.site_ids)
        return [s for s in self.sites if s.id in site_ids]

    def guards_for_sites(self, sites: list[Site]) -> list[Guard]:
        guard_ids = {g for s in sites for g in s.guard_ids}
        return [g for g in self.guards if g.id in guard_ids]

    def officers_for_sites(self, sites: list[Site]) -> list[PatrollingOfficer]:
        officer_ids = {s.patrolling_officer_id for s in sites if s.patrolling_officer_id}
        return [o for o in self.patrolling_officers if o.id in officer_ids]

    @classmethod
    def from_dict(cls, data: dict) -> Roster:
        return cls(
            guards=[Guard.from_dict(d) for d in data.get("guards", [])],
            sites=[Site.from_dict(d) for d in data.get("sites", [])],
            patrolling_officers=[
                PatrollingOfficer.from_dict(d)
                for d in _first(data, "patrollingOfficers", "patrolling_officers", default=[])
            ],
            agencies=[SecurityAgency.from_dict(d) for d in data.get("agencies", [])],
        )
