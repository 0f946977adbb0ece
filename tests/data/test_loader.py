"""Tests for the seed-file and REST data sources."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from towerwatch.config import TowerwatchConfig
from towerwatch.data.loader import ApiDataSource, load_dashboard_data, load_seed_file
from towerwatch.engine.errors import DataSourceError
from towerwatch.models.incident import IncidentStatus


def _mock_httpx_response(status_code=200, json_data=None):
    """Create a mock httpx Response."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data if json_data is not None else {}
    return response


def _mock_client(*responses):
    client = AsyncMock()
    client.get = AsyncMock(side_effect=list(responses))
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


class TestSeedFile:
    def test_bundled_seed_loads(self):
        data = load_seed_file(TowerwatchConfig().resolved_seed_path)
        assert len(data.incidents) == 13
        assert data.incidents[0].id == "INC001"
        assert {a.id for a in data.roster.agencies} == {"AGY01", "AGY02", "AGY03"}
        assert data.roster.guards[0].perimeter_accuracy == 96

    def test_missing_file(self, tmp_path):
        with pytest.raises(DataSourceError):
            load_seed_file(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(DataSourceError):
            load_seed_file(path)

    def test_malformed_incident(self, tmp_path):
        path = tmp_path / "seed.json"
        path.write_text(json.dumps({"incidents": [{"id": "X", "status": "Closed"}]}), encoding="utf-8")
        with pytest.raises(DataSourceError):
            load_seed_file(path)

    def test_top_level_must_be_object(self, tmp_path):
        path = tmp_path / "seed.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(DataSourceError):
            load_seed_file(path)


class TestApiDataSource:
    @pytest.mark.asyncio
    async def test_follows_next_links(self):
        page1 = {
            "count": 3,
            "next": "http://api.test/api/v1/incidents/?page=2",
            "previous": None,
            "results": [{"id": 1, "incident_status": "Active"}, {"id": 2, "incident_status": "Resolved"}],
        }
        page2 = {"count": 3, "next": None, "previous": "x", "results": [{"id": 3, "incident_status": "Under Review"}]}
        client = _mock_client(_mock_httpx_response(json_data=page1), _mock_httpx_response(json_data=page2))

        with patch("towerwatch.data.loader.httpx.AsyncClient", return_value=client):
            incidents = await ApiDataSource("http://api.test").fetch_incidents("/api/v1/incidents/")

        assert [i.id for i in incidents] == [1, 2, 3]
        assert incidents[2].status is IncidentStatus.UNDER_REVIEW
        first_url = client.get.await_args_list[0].args[0]
        assert first_url == "http://api.test/api/v1/incidents/"
        assert client.get.await_args_list[1].args[0] == "http://api.test/api/v1/incidents/?page=2"

    @pytest.mark.asyncio
    async def test_page_limit(self):
        looping = {"count": 99, "next": "http://api.test/more", "previous": None, "results": [{"id": 1}]}
        client = _mock_client(*[_mock_httpx_response(json_data=looping) for _ in range(3)])

        with patch("towerwatch.data.loader.httpx.AsyncClient", return_value=client):
            records = await ApiDataSource("http://api.test", page_limit=2).fetch_all("/more")

        assert len(records) == 2
        assert client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_plain_list_response(self):
        client = _mock_client(_mock_httpx_response(json_data=[{"id": 1}]))
        with patch("towerwatch.data.loader.httpx.AsyncClient", return_value=client):
            records = await ApiDataSource("http://api.test").fetch_all("/incidents/")
        assert records == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_error_status(self):
        client = _mock_client(_mock_httpx_response(status_code=503))
        with patch("towerwatch.data.loader.httpx.AsyncClient", return_value=client):
            with pytest.raises(DataSourceError):
                await ApiDataSource("http://api.test").fetch_all("/incidents/")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        client = _mock_client(httpx.ConnectError("connection refused"))
        with patch("towerwatch.data.loader.httpx.AsyncClient", return_value=client):
            with pytest.raises(DataSourceError):
                await ApiDataSource("http://api.test").fetch_all("/incidents/")

    @pytest.mark.asyncio
    async def test_non_paginated_object(self):
        client = _mock_client(_mock_httpx_response(json_data={"detail": "nope"}))
        with patch("towerwatch.data.loader.httpx.AsyncClient", return_value=client):
            with pytest.raises(DataSourceError):
                await ApiDataSource("http://api.test").fetch_all("/incidents/")


    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", ["ok", 42, True])
    async def test_scalar_payload(self, payload):
        client = _mock_client(_mock_httpx_response(json_data=payload))
        with patch("towerwatch.data.loader.httpx.AsyncClient", return_value=client):
            with pytest.raises(DataSourceError):
                await ApiDataSource("http://api.test").fetch_all("/incidents/")


class TestLoadDashboardData:
    @pytest.mark.asyncio
    async def test_mock_source(self):
        data = await load_dashboard_data(TowerwatchConfig(data_source="mock"))
        assert len(data.incidents) == 13

    @pytest.mark.asyncio
    async def test_api_source_keeps_seed_roster(self):
        config = TowerwatchConfig(data_source="api", api_base_url="http://api.test")
        page = {"count": 1, "next": None, "previous": None, "results": [{"id": 42}]}
        client = _mock_client(_mock_httpx_response(json_data=page))

        with patch("towerwatch.data.loader.httpx.AsyncClient", return_value=client):
            data = await load_dashboard_data(config)

        assert [i.id for i in data.incidents] == [42]
        assert len(data.roster.sites) == 4

    def test_invalid_data_source_rejected(self):
        with pytest.raises(ValueError):
            TowerwatchConfig(data_source="ftp")
