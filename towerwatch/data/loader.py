"""Data sources — bundled mock data or the paginated REST backend."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from urllib.parse import urljoin

import httpx

from ..engine.errors import DataSourceError, ValidationError
from ..models.incident import Incident
from ..models.roster import Roster
from ..utils.logging import get_logger

logger = get_logger("data.loader")


@dataclass
class DashboardData:
    incidents: list[Incident] = field(default_factory=list)
    roster: Roster = field(default_factory=Roster)


def _parse_incidents(records: list[dict], source: str) -> list[Incident]:
    incidents = []
    for record in records:
        try:
            incidents.append(Incident.from_dict(record))
        except (ValidationError, TypeError) as e:
            raise DataSourceError(f"Malformed incident record from {source}: {e}") from e
    return incidents


def load_seed_file(path: str | Path) -> DashboardData:
    """Read a JSON document holding incidents and roster collections."""
    path = Path(path)
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise DataSourceError(f"Seed file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise DataSourceError(f"Seed file is not valid JSON: {path}: {e}") from e

    if not isinstance(document, dict):
        raise DataSourceError(f"Seed file must hold a JSON object: {path}")

    try:
        roster = Roster.from_dict(document)
    except (KeyError, TypeError, ValueError) as e:
        raise DataSourceError(f"Malformed roster in {path}: {e}") from e

    data = DashboardData(
        incidents=_parse_incidents(document.get("incidents", []), str(path)),
        roster=roster,
    )
    logger.info(
        "seed_data_loaded",
        path=str(path),
        incidents=len(data.incidents),
        sites=len(roster.sites),
        guards=len(roster.guards),
    )
    return data


class ApiDataSource:
    """Reads collections from the dashboard REST backend.

    Listings are paginated as ``{count, next, previous, results}``; ``next``
    links are followed up to ``page_limit`` pages. A bare JSON list is
    accepted as a single unpaginated page.
    """

    def __init__(self, base_url: str, timeout: float = 30.0, page_limit: int = 50) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self.page_limit = page_limit

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return urljoin(self.base_url, path.lstrip("/"))

    async def _get_json(self, client: httpx.AsyncClient, url: str) -> dict | list:
        try:
            response = await client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            logger.error("api_request_failed", url=url, error=str(e))
            raise DataSourceError(f"Request to {url} failed: {e}") from e

        if response.status_code >= 400:
            logger.error("api_error_response", url=url, status_code=response.status_code)
            raise DataSourceError(f"{url} returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            logger.error("api_invalid_json", url=url)
            raise DataSourceError(f"{url} did not return JSON") from e

    async def fetch_all(self, path: str) -> list[dict]:
        """Collect ``results`` from every page of a listing."""
        results: list[dict] = []
        next_url: Optional[str] = self._url(path)
        pages = 0

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while next_url and pages < self.page_limit:
                payload = await self._get_json(client, next_url)
                pages += 1
                if isinstance(payload, list):
                    results.extend(payload)
                    break
                page = payload.get("results") if isinstance(payload, dict) else None
                if not isinstance(page, list):
                    raise DataSourceError(f"{next_url} is not a paginated listing")
                results.extend(page)
                next_url = payload.get("next")

        if next_url and pages >= self.page_limit:
            logger.warning("api_page_limit_reached", path=path, pages=pages)
        logger.info("api_listing_fetched", path=path, pages=pages, records=len(results))
        return results

    async def fetch_incidents(self, path: str) -> list[Incident]:
        return _parse_incidents(await self.fetch_all(path), self._url(path))


async def load_dashboard_data(config) -> DashboardData:
    """Load incidents and roster from the source named by ``config.data_source``.

    The REST backend supplies incidents only; the roster always comes from
    the seed file.
    """
    seed = load_seed_file(config.resolved_seed_path)
    if config.data_source == "mock":
        return seed

    source = ApiDataSource(
        config.api_base_url,
        timeout=config.api_timeout,
        page_limit=config.api_page_limit,
    )
    incidents = await source.fetch_incidents(config.api_incidents_path)
    return DashboardData(incidents=incidents, roster=seed.roster)
