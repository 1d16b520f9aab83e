"""Unit tests for the HTTP snapshot backend."""

import json

import httpx
import pytest

from kursplan.entities import PersistenceError, SnapshotSchemaError
from kursplan.persistence import HttpSnapshotClient, Snapshot

BASE_URL = "http://planner.test/api/v1"


def _client(handler) -> HttpSnapshotClient:
    return HttpSnapshotClient(BASE_URL, transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestHttpSnapshotClient:
    """Tests for HttpSnapshotClient."""

    def test_load_unwraps_envelope(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.path == "/api/v1/bulk-load"
            cohort = {"cohort_id": 1, "start_date": "2025-01-08", "planned_size": 30}
            payload = {"cohorts": [cohort]}
            return httpx.Response(200, json={"data": payload, "error": None})

        client = _client(handler)

        snapshot = client.load()

        assert snapshot.cohorts[0].planned_size == 30
        client.close()

    def test_load_empty_data(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"data": None}))

        assert client.load().is_empty()

    def test_load_invalid_snapshot(self) -> None:
        client = _client(
            lambda request: httpx.Response(200, json={"data": {"schema_version": 9}})
        )

        with pytest.raises(SnapshotSchemaError):
            client.load()

    def test_save_posts_wire_format(self) -> None:
        received: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            received["path"] = request.url.path
            received["body"] = json.loads(request.content)
            return httpx.Response(200, json={"data": {}, "error": None})

        client = _client(handler)

        client.save(Snapshot())

        assert received["path"] == "/api/v1/bulk-save"
        assert received["body"]["schema_version"] == 1
        assert received["body"]["courseRuns"] == []

    def test_error_status(self) -> None:
        client = _client(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(PersistenceError, match="500 - boom"):
            client.load()

    def test_error_envelope(self) -> None:
        client = _client(
            lambda request: httpx.Response(200, json={"data": None, "error": "locked"})
        )

        with pytest.raises(PersistenceError, match="locked"):
            client.save(Snapshot())

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)

        with pytest.raises(PersistenceError, match="refused"):
            client.load()

    def test_close_is_idempotent(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"data": None}))
        client.load()

        client.close()
        client.close()
