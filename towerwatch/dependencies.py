"""FastAPI dependency providers — config, incident store and roster singletons."""

from typing import Optional

from .config import TowerwatchConfig, get_config
from .data.loader import DashboardData, load_seed_file
from .engine.incident_store import IncidentStore, create_incident_store
from .models.roster import Roster
from .utils.logging import get_logger

_dep_logger = get_logger("dependencies")

_config_instance: Optional[TowerwatchConfig] = None
_incident_store: Optional[IncidentStore] = None
_roster: Optional[Roster] = None


def get_app_config() -> TowerwatchConfig:
    """Get the application config singleton."""
    global _config_instance
    if _config_instance is None:
        _config_instance = get_config()
    return _config_instance


def init_dashboard_data(data: DashboardData) -> IncidentStore:
    """Install freshly loaded data as the process-wide store and roster."""
    global _incident_store, _roster
    _incident_store = create_incident_store(data.incidents)
    _roster = data.roster
    _dep_logger.info(
        "dashboard_data_installed",
        incidents=len(_incident_store),
        agencies=len(_roster.agencies),
    )
    return _incident_store


def _ensure_loaded() -> None:
    # Lifespan normally loads the data; fall back to the seed file when it did not run
    if _incident_store is None or _roster is None:
        init_dashboard_data(load_seed_file(get_app_config().resolved_seed_path))


def get_incident_store() -> IncidentStore:
    _ensure_loaded()
    return _incident_store


def get_roster() -> Roster:
    _ensure_loaded()
    return _roster


def reset_singletons() -> None:
    global _config_instance, _incident_store, _roster
    _config_instance = None
    _incident_store = None
    _roster = None
