"""Incident Store — the single authoritative in-memory incident collection.

Many consumers read the same records and subscribe for change notifications.
Writes are serialized behind a lock; subscribers are notified after the lock
is released, from a snapshot of the subscriber list, so a subscriber may read
the store, update it, or unsubscribe itself while being notified.
"""

import copy
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from ..models.incident import (
    Incident,
    IncidentKey,
    IncidentStatus,
    coerce_status,
    normalize_update,
)
from ..utils.logging import get_logger
from .errors import DuplicateIncidentError, IncidentError, ValidationError
from .workflow import RESOLUTION_FIELDS, validate_update

logger = get_logger("engine.incident_store")

Listener = Callable[[], None]


class _Subscription:
    __slots__ = ("callback", "active")

    def __init__(self, callback: Listener):
        self.callback = callback
        self.active = True


def _key(incident_id: IncidentKey) -> str:
    # "7" and 7 address the same record: ids arrive as path strings over HTTP
    return str(incident_id)


class IncidentStore:
    """In-memory incident collection with update/subscribe/notify semantics.

    With ``enforce_workflow`` (the default) every update is validated against
    the status workflow and rejected before mutation when illegal. Without it
    the store merges whatever known fields the caller sends, status
    regressions included; that mode exists for building test fixtures and is
    never used for the service store.
    """

    def __init__(
        self,
        initial: Optional[Iterable[Incident | dict]] = None,
        enforce_workflow: bool = True,
    ):
        self._initial = [self._coerce(item) for item in (initial or [])]
        self._enforce_workflow = enforce_workflow
        self._incidents: dict[str, Incident] = {}
        self._subscribers: list[_Subscription] = []
        self._lock = threading.RLock()
        self._load_initial()

    @staticmethod
    def _coerce(item: Incident | dict) -> Incident:
        if isinstance(item, Incident):
            return item.copy()
        return Incident.from_dict(item)

    def _load_initial(self) -> None:
        incidents: dict[str, Incident] = {}
        for incident in self._initial:
            key = _key(incident.id)
            if key in incidents:
                raise DuplicateIncidentError(f"Duplicate incident id in initial data: {incident.id}")
            incidents[key] = incident.copy()
        self._incidents = incidents

    @property
    def enforce_workflow(self) -> bool:
        return self._enforce_workflow

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def __len__(self) -> int:
        return len(self._incidents)

    # --- Reads ---

    def get_incident_by_id(self, incident_id: IncidentKey) -> Optional[Incident]:
        """Return a copy of the incident, or None when the id is unknown."""
        with self._lock:
            incident = self._incidents.get(_key(incident_id))
            return incident.copy() if incident is not None else None

    def get_incidents(self) -> list[Incident]:
        with self._lock:
            return [incident.copy() for incident in self._incidents.values()]

    def list_incidents(
        self,
        status: Optional[IncidentStatus | str] = None,
        site_id: Optional[IncidentKey] = None,
        site_ids: Optional[Iterable[IncidentKey]] = None,
        guard_id: Optional[IncidentKey] = None,
        officer_id: Optional[IncidentKey] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> list[Incident]:
        """Filtered view used by the incident list pages.

        ``month`` is 1-12 and matches ``incident_time`` in UTC; incidents
        without a timestamp never match a date filter.
        """
        wanted_status = coerce_status(status) if status is not None else None
        wanted_sites = {str(s) for s in site_ids} if site_ids is not None else None

        results = []
        for incident in self.get_incidents():
            if wanted_status is not None and incident.status is not wanted_status:
                continue
            if site_id is not None and str(incident.site_id) != str(site_id):
                continue
            if wanted_sites is not None and str(incident.site_id) not in wanted_sites:
                continue
            if guard_id is not None and str(incident.raised_by_guard_id) != str(guard_id):
                continue
            if officer_id is not None and str(incident.attended_by_patrolling_officer_id) != str(officer_id):
                continue
            if year is not None or month is not None:
                if incident.incident_time is None:
                    continue
                when = incident.incident_time.astimezone(timezone.utc)
                if year is not None and when.year != year:
                    continue
                if month is not None and when.month != month:
                    continue
            results.append(incident)
        return results

    # --- Writes ---

    def add_incident(self, incident: Incident | dict) -> Incident:
        """Register a newly raised incident. New incidents always start Active."""
        record = self._coerce(incident)
        if record.status is not IncidentStatus.ACTIVE:
            raise ValidationError("New incidents must start Active", field="status")
        for name in RESOLUTION_FIELDS:
            if getattr(record, name) is not None:
                raise ValidationError(f"{name} can only be set when resolving", field=name)
        if record.incident_time is None:
            record.incident_time = datetime.now(timezone.utc)

        with self._lock:
            key = _key(record.id)
            if key in self._incidents:
                raise DuplicateIncidentError(f"Incident {record.id} already exists")
            self._incidents[key] = record

        logger.info("incident_created", id=record.id, site_id=record.site_id)
        self._notify()
        return record.copy()

    def update_incident(self, incident_id: IncidentKey, partial_fields: dict[str, Any]) -> None:
        """Merge ``partial_fields`` into the incident and notify subscribers.

        An unknown id is a silent no-op. With workflow enforcement on, an
        illegal update raises ValidationError or InvalidTransitionError and
        leaves the record unchanged.
        """
        with self._lock:
            current = self._incidents.get(_key(incident_id))
            if current is None:
                logger.debug("incident_update_unknown_id", id=incident_id)
                return
            changes = normalize_update(partial_fields)
            updated = self._apply(current, changes)

        if updated.status is not current.status:
            logger.info(
                "incident_status_changed",
                id=updated.id,
                old=current.status.value,
                new=updated.status.value,
            )
        else:
            logger.info("incident_updated", id=updated.id, fields=sorted(changes))
        self._notify()

    def append_media(self, incident_id: IncidentKey, urls: Iterable[Optional[str]]) -> None:
        """Append media references to the initial report of an open incident."""
        urls = list(urls)
        with self._lock:
            current = self._incidents.get(_key(incident_id))
            if current is None:
                logger.debug("incident_update_unknown_id", id=incident_id)
                return
            if current.is_resolved:
                raise ValidationError(
                    "Media cannot be added to a resolved incident",
                    field="initial_incident_media_url",
                )
            self._apply(current, {
                "initial_incident_media_url": [*current.initial_incident_media_url, *urls],
            })

        logger.info("incident_media_added", id=current.id, count=len(urls))
        self._notify()

    def _apply(self, current: Incident, changes: dict[str, Any]) -> Incident:
        # Caller holds the lock
        if self._enforce_workflow:
            try:
                changes = validate_update(current, changes)
            except IncidentError as e:
                logger.info(
                    "incident_update_rejected",
                    id=current.id,
                    status=current.status.value,
                    error=str(e),
                )
                raise
        updated = replace(current, **copy.deepcopy(changes))
        self._incidents[_key(current.id)] = updated
        return updated

    def reset(self) -> None:
        """Restore the initial data set and notify subscribers."""
        with self._lock:
            self._load_initial()
        logger.info("incident_store_reset", count=len(self._initial))
        self._notify()

    # --- Subscriptions ---

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Register ``callback`` for every change. Returns its disposer."""
        subscription = _Subscription(callback)
        with self._lock:
            self._subscribers.append(subscription)

        def unsubscribe() -> None:
            with self._lock:
                subscription.active = False
                if subscription in self._subscribers:
                    self._subscribers.remove(subscription)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            snapshot = list(self._subscribers)
        for subscription in snapshot:
            if not subscription.active:
                continue
            try:
                subscription.callback()
            except Exception as e:
                logger.error("incident_subscriber_error", error=str(e), exc_info=True)


def create_incident_store(
    initial: Optional[Iterable[Incident | dict]] = None,
    enforce_workflow: bool = True,
) -> IncidentStore:
    """Build an isolated store seeded with ``initial`` records."""
    store = IncidentStore(initial, enforce_workflow=enforce_workflow)
    logger.debug("incident_store_created", count=len(store), enforce_workflow=enforce_workflow)
    return store
