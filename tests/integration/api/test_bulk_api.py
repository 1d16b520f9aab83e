"""Integration tests for the bulk snapshot routes."""

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from kursplan.api.app import create_app
from kursplan.config import PlannerConfig


@pytest.fixture
def temp_db_path() -> Generator[str, None, None]:
    """Create a temporary database path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = f.name
    yield path
    Path(path).unlink(missing_ok=True)
    Path(f"{path}-wal").unlink(missing_ok=True)
    Path(f"{path}-shm").unlink(missing_ok=True)


@pytest.fixture
def client(temp_db_path: str):
    """Create a test client over a seeded temporary database."""
    app = create_app(temp_db_path, PlannerConfig(seed=True))
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


def _small_snapshot() -> dict:
    return {
        "schema_version": 1,
        "courses": [
            {"course_id": 1, "code": "AI180U", "name": "Juridisk översiktskurs"},
            {"course_id": 2, "code": "AI183U", "name": "Husbyggnadsteknik"},
        ],
        "teachers": [{"teacher_id": 1, "name": "Bo Ek", "home_department": "AIE"}],
        "teacherCourses": [{"teacher_id": 1, "course_id": 2}],
        "cohorts": [{"cohort_id": 1, "start_date": "2025-01-08", "planned_size": 30}],
        "slots": [
            {"slot_id": 1, "start_date": "2025-01-13", "end_date": "2025-02-09"},
            {"slot_id": 2, "start_date": "2025-02-10", "end_date": "2025-03-09"},
        ],
        "courseRuns": [
            {"run_id": 1, "course_id": 2, "slot_id": 1, "teachers": [1], "cohorts": [1]},
        ],
    }


@pytest.mark.integration
class TestBulkLoad:
    """Tests for GET /bulk-load."""

    def test_seeded_on_first_start(self, client: TestClient) -> None:
        """An empty database is filled with the built-in dataset."""
        response = client.get("/api/v1/bulk-load")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["schema_version"] == 1
        assert len(data["courses"]) == 14
        assert len(data["cohorts"]) == 10
        assert len(data["slots"]) == 30
        assert data["courseRuns"] == []
        assert data["businessLogic"]["scheduling"]["params"]["maxStudentsHard"] == 130


@pytest.mark.integration
class TestBulkSave:
    """Tests for POST /bulk-save."""

    def test_replace_state(self, client: TestClient) -> None:
        """The saved snapshot becomes the state returned by bulk-load."""
        response = client.post("/api/v1/bulk-save", json=_small_snapshot())

        assert response.status_code == 200
        assert response.json()["data"]["changed"] is False

        data = client.get("/api/v1/bulk-load").json()["data"]
        assert [c["code"] for c in data["courses"]] == ["AI180U", "AI183U"]
        assert data["cohorts"][0]["name"] == "Kull 1"
        assert data["courseRuns"][0]["planned_students"] == 30
        assert len(data["courseSlots"]) == 1

    def test_state_survives_restart(self, temp_db_path: str) -> None:
        """A saved snapshot is read back by a new app on the same database."""
        config = PlannerConfig(seed=True)
        with TestClient(create_app(temp_db_path, config)) as first:
            assert first.post("/api/v1/bulk-save", json=_small_snapshot()).status_code == 200

        with TestClient(create_app(temp_db_path, config)) as second:
            data = second.get("/api/v1/bulk-load").json()["data"]

        assert [c["code"] for c in data["courses"]] == ["AI180U", "AI183U"]

    def test_reconciliation_reported(self, client: TestClient) -> None:
        """Runs no teacher can take are removed and reported."""
        snapshot = _small_snapshot()
        snapshot["courseRuns"].append(
            {"run_id": 2, "course_id": 1, "slot_id": 2, "teachers": [], "cohorts": [1]}
        )

        response = client.post("/api/v1/bulk-save", json=snapshot)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["changed"] is True
        assert data["removed_courses"][0]["course_code"] == "AI180U"
        assert data["removed_courses"][0]["cohort_names"] == ["Kull 1"]
        runs = client.get("/api/v1/bulk-load").json()["data"]["courseRuns"]
        assert [r["run_id"] for r in runs] == [1]

    def test_overlapping_slots_rejected(self, client: TestClient) -> None:
        """Overlapping slots are refused and the state is kept."""
        snapshot = _small_snapshot()
        snapshot["slots"][1]["start_date"] = "2025-02-01"

        response = client.post("/api/v1/bulk-save", json=snapshot)

        assert response.status_code == 422
        assert "får inte överlappa" in response.json()["error"]
        data = client.get("/api/v1/bulk-load").json()["data"]
        assert len(data["courses"]) == 14

    def test_duplicate_course_codes_merged(self, client: TestClient) -> None:
        snapshot = _small_snapshot()
        snapshot["courses"].append({"course_id": 3, "code": "ai183u", "name": "husbyggnadsteknik"})
        snapshot["courseRuns"][0]["course_id"] = 3

        response = client.post("/api/v1/bulk-save", json=snapshot)

        assert response.status_code == 200
        data = client.get("/api/v1/bulk-load").json()["data"]
        assert [c["code"] for c in data["courses"]] == ["AI180U", "AI183U"]
        assert data["courseRuns"][0]["course_id"] == 2

    def test_duplicate_course_name_conflict(self, client: TestClient) -> None:
        """Two codes sharing a course name are refused and the state is kept."""
        snapshot = _small_snapshot()
        snapshot["courses"].append(
            {"course_id": 3, "code": "AI199U", "name": "JURIDISK översiktskurs"}
        )

        response = client.post("/api/v1/bulk-save", json=snapshot)

        assert response.status_code == 409
        assert response.json()["error"] == "En kurs med samma kursnamn finns redan."
        assert len(client.get("/api/v1/bulk-load").json()["data"]["courses"]) == 14

    def test_unsupported_schema_version(self, client: TestClient) -> None:
        response = client.post("/api/v1/bulk-save", json={"schema_version": 7})

        assert response.status_code == 422
        assert response.json()["data"] is None
        assert "unsupported schema version" in response.json()["error"]

    def test_body_required(self, client: TestClient) -> None:
        response = client.post("/api/v1/bulk-save")

        assert response.status_code == 422
