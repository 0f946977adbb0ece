"""Derived performance metrics — percentage summaries over filtered collections.

Every ratio follows the same zero-denominator policy: an entity with nothing
to succeed or fail at scores 100%. Values stay unrounded through every
aggregate and are rounded only by ``display_percent``.
"""

from collections import Counter
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from ..models.incident import Incident, IncidentStatus
from ..models.roster import Guard, PatrollingOfficer, Roster, SecurityAgency, Site

VACUOUS_PERCENT = 100.0

# Dashboard colour tiers
GOOD_THRESHOLD = 95.0
FAIR_THRESHOLD = 65.0


def ratio(successes: int, total: int) -> float:
    """Percentage of ``successes`` out of ``total``; 100 when ``total`` is 0."""
    if total < 0 or successes < 0:
        raise ValueError("ratio() takes non-negative counts")
    if total == 0:
        return VACUOUS_PERCENT
    return successes / total * 100


def mean(values: Iterable[float]) -> float:
    values = list(values)
    if not values:
        return VACUOUS_PERCENT
    return sum(values) / len(values)


def display_percent(value: float) -> int:
    """Round half-up to a whole percent (62.5 -> 63)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def performance_band(value: float) -> str:
    if value >= GOOD_THRESHOLD:
        return "good"
    if value >= FAIR_THRESHOLD:
        return "fair"
    return "poor"


# --- Incidents ---

def incident_resolution_rate(incidents: Iterable[Incident]) -> float:
    incidents = list(incidents)
    resolved = sum(1 for i in incidents if i.status is IncidentStatus.RESOLVED)
    return ratio(resolved, len(incidents))


def status_summary(incidents: Iterable[Incident]) -> dict[str, int]:
    """Incident counts per status, keyed by status label."""
    counts = Counter(i.status for i in incidents)
    return {status.value: counts.get(status, 0) for status in IncidentStatus}


def site_incident_counts(incidents: Iterable[Incident]) -> dict[str, int]:
    return dict(Counter(str(i.site_id) for i in incidents if i.site_id is not None))


# --- Guards ---

def guard_selfie_accuracy(guard: Guard) -> float:
    taken = max(guard.total_selfie_requests - guard.missed_selfie_count, 0)
    return ratio(taken, guard.total_selfie_requests)


def guard_perimeter_accuracy(guards: Iterable[Guard]) -> float:
    """Mean perimeter accuracy; a guard with no reading counts as 0."""
    return mean(g.perimeter_accuracy or 0.0 for g in guards)


def guards_selfie_accuracy(guards: Iterable[Guard]) -> float:
    """Mean of per-guard selfie accuracy.

    Each guard weighs the same regardless of request volume. The pooled
    figure lives on ``guard_performance_overview``.
    """
    return mean(guard_selfie_accuracy(g) for g in guards)


@dataclass
class GuardOverview:
    guard_count: int
    perimeter_accuracy: float
    selfie_accuracy: float
    total_selfie_requests: int
    total_selfies_taken: int


def guard_performance_overview(guards: Iterable[Guard]) -> GuardOverview:
    """Fleet-wide guard figures; selfie accuracy is pooled over all requests."""
    guards = list(guards)
    requests = sum(g.total_selfie_requests for g in guards)
    taken = sum(max(g.total_selfie_requests - g.missed_selfie_count, 0) for g in guards)
    return GuardOverview(
        guard_count=len(guards),
        perimeter_accuracy=guard_perimeter_accuracy(guards),
        selfie_accuracy=ratio(taken, requests),
        total_selfie_requests=requests,
        total_selfies_taken=taken,
    )


# --- Patrolling officers ---

def officer_site_visit_rate(officer_id, sites: Iterable[Site]) -> float:
    assigned = [s for s in sites if s.patrolling_officer_id == officer_id]
    return ratio(sum(1 for s in assigned if s.visited), len(assigned))


def officers_site_visit_rate(officers: Iterable[PatrollingOfficer], sites: Iterable[Site]) -> float:
    """Mean of per-officer visit rates, not visits pooled over all sites."""
    sites = list(sites)
    return mean(officer_site_visit_rate(o.id, sites) for o in officers)


def average_response_time(officers: Iterable[PatrollingOfficer]) -> Optional[float]:
    officers = list(officers)
    if not officers:
        return None
    return sum(o.average_response_time or 0.0 for o in officers) / len(officers)


# --- Composite ---

def overall_performance(components: Iterable[float]) -> float:
    """Unweighted mean of the four agency performance components."""
    components = list(components)
    if len(components) != 4:
        raise ValueError(f"overall_performance expects 4 components, got {len(components)}")
    return sum(components) / 4


@dataclass
class AgencyPerformance:
    """Raw (unrounded) agency performance components."""

    incident_resolution_rate: float
    guard_perimeter_accuracy: float
    guard_selfie_accuracy: float
    officer_site_visit_rate: float

    @property
    def components(self) -> list[float]:
        return [
            self.incident_resolution_rate,
            self.guard_perimeter_accuracy,
            self.guard_selfie_accuracy,
            self.officer_site_visit_rate,
        ]

    @property
    def overall(self) -> float:
        return overall_performance(self.components)

    def as_display(self) -> dict:
        display = {name: display_percent(value) for name, value in asdict(self).items()}
        display["performance"] = display_percent(self.overall)
        display["band"] = performance_band(self.overall)
        return display


def agency_performance(
    agency: SecurityAgency,
    roster: Roster,
    incidents: Iterable[Incident],
) -> AgencyPerformance:
    """Score an agency over the sites it is assigned."""
    sites = roster.sites_for_agency(agency)
    site_ids = {str(s) for s in agency.site_ids}
    agency_incidents = [i for i in incidents if str(i.site_id) in site_ids]
    guards = roster.guards_for_sites(sites)
    officers = roster.officers_for_sites(sites)

    return AgencyPerformance(
        incident_resolution_rate=incident_resolution_rate(agency_incidents),
        guard_perimeter_accuracy=guard_perimeter_accuracy(guards),
        guard_selfie_accuracy=guards_selfie_accuracy(guards),
        officer_site_visit_rate=officers_site_visit_rate(officers, sites),
    )
