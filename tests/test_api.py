import pytest
from fastapi.testclient import TestClient

from traveled_world.application.store import TravelStore
from traveled_world.infrastructure.database.persistence import SqlStatePersistence
from traveled_world.main import app
from traveled_world.presentation.api_routes import get_persistence, get_store

TOKYO = {
    "id": "tokyo",
    "name": "Tokyo",
    "country": "Japan",
    "coordinates": [35.6762, 139.6503],
}
NEAR_TOKYO = {
    "name": "NearTokyo",
    "country": "Japan",
    "coordinates": [35.6800, 139.6550],
}
PARIS = {
    "id": "paris",
    "name": "Paris",
    "country": "France",
    "coordinates": [48.8566, 2.3522],
    "type": "lived",
    "lastVisited": "2024-03-01",
}


@pytest.fixture(name="persistence")
def persistence_fixture(engine):
    return SqlStatePersistence(engine)


@pytest.fixture(name="client")
def client_fixture(store: TravelStore, persistence: SqlStatePersistence):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_persistence] = lambda: persistence
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def _add(client: TestClient, body: dict) -> dict:
    response = client.post("/api/v1/cities", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client: TestClient):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_city(client: TestClient, persistence):
    data = _add(client, PARIS)

    assert data["id"] == "paris"
    assert data["type"] == "lived"
    assert data["lastVisited"] == "2024-03-01"
    assert data["coordinates"] == [48.8566, 2.3522]
    assert persistence.load()["cities"][0]["id"] == "paris"


def test_create_city_generates_id(client: TestClient):
    data = _add(client, NEAR_TOKYO)
    assert data["id"]
    assert data["type"] == "visited"


def test_duplicate_city_returns_conflict(client: TestClient):
    _add(client, TOKYO)

    response = client.post("/api/v1/cities", json=NEAR_TOKYO)

    assert response.status_code == 409
    problem = response.json()
    assert problem["type"] == "/problems/city-already-exists"
    assert problem["existingId"] == "tokyo"
    assert problem["conflictingField"] == "coordinates"
    assert "NearTokyo" in problem["detail"]
    assert problem["instance"] == "/api/v1/cities"

    assert len(client.get("/api/v1/cities").json()) == 1
    assert client.get("/api/v1/history").json()["length"] == 2


def test_create_city_validation_problem(client: TestClient):
    response = client.post(
        "/api/v1/cities", json={"name": "", "country": "X", "coordinates": [0, 0]}
    )

    assert response.status_code == 400
    problem = response.json()
    assert problem["title"] == "Validation Failed"
    assert problem["errors"][0]["field"] == "name"


def test_create_city_domain_validation(client: TestClient):
    response = client.post(
        "/api/v1/cities",
        json={"name": "Pole", "country": "None", "coordinates": [91.0, 0.0]},
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "coordinates"


def test_get_update_and_delete_city(client: TestClient):
    _add(client, TOKYO)

    assert client.get("/api/v1/cities/tokyo").json()["name"] == "Tokyo"

    response = client.patch("/api/v1/cities/tokyo", json={"type": "lived"})
    assert response.status_code == 200
    assert response.json()["type"] == "lived"

    assert client.delete("/api/v1/cities/tokyo").status_code == 204
    assert client.get("/api/v1/cities/tokyo").status_code == 404


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/api/v1/cities/nowhere"),
        ("patch", "/api/v1/cities/nowhere"),
        ("delete", "/api/v1/cities/nowhere"),
        ("patch", "/api/v1/trips/nowhere"),
        ("delete", "/api/v1/trips/nowhere"),
        ("get", "/api/v1/trips/nowhere/itinerary"),
    ],
)
def test_unknown_ids_return_404(client: TestClient, method: str, path: str):
    kwargs = {"json": {}} if method == "patch" else {}
    response = client.request(method, path, **kwargs)
    assert response.status_code == 404
    assert client.get("/api/v1/history").json()["length"] == 1


def test_trip_lifecycle(client: TestClient):
    _add(client, TOKYO)
    _add(client, PARIS)

    response = client.post(
        "/api/v1/trips",
        json={
            "id": "loop",
            "name": "Loop",
            "cityIds": ["paris", "tokyo"],
            "dates": ["2024-06-01", "2024-06-09"],
        },
    )
    assert response.status_code == 201
    assert response.json()["cityIds"] == ["paris", "tokyo"]

    stops = client.get("/api/v1/trips/loop/itinerary").json()
    assert [s["city"]["id"] for s in stops] == ["paris", "tokyo"]
    assert stops[1]["visitDate"] == "2024-06-09"

    client.delete("/api/v1/cities/tokyo")
    [trip] = client.get("/api/v1/trips").json()
    assert trip["cityIds"] == ["paris"]
    assert trip["dates"] == ["2024-06-01"]

    response = client.patch("/api/v1/trips/loop", json={"name": "Paris only"})
    assert response.json()["name"] == "Paris only"

    assert client.delete("/api/v1/trips/loop").status_code == 204
    assert client.get("/api/v1/trips").json() == []


def test_trip_with_unknown_city_rejected(client: TestClient):
    response = client.post(
        "/api/v1/trips", json={"name": "Imaginary", "cityIds": ["atlantis"]}
    )
    assert response.status_code == 400
    assert "atlantis" in response.json()["detail"]


def test_preferences_and_filtered_cities(client: TestClient):
    _add(client, TOKYO)
    _add(client, PARIS)
    client.post("/api/v1/trips", json={"id": "t", "name": "T", "cityIds": ["paris"]})

    response = client.patch(
        "/api/v1/preferences", json={"selectedTripId": "t", "theme": "light"}
    )
    assert response.status_code == 200
    assert response.json()["theme"] == "light"

    filtered = client.get("/api/v1/cities", params={"filtered": True}).json()
    assert [c["id"] for c in filtered] == ["paris"]
    assert len(client.get("/api/v1/cities").json()) == 2


def test_invalid_preferences_rejected(client: TestClient):
    response = client.patch("/api/v1/preferences", json={"animationSpeed": 5})
    assert response.status_code == 400


def test_undo_redo(client: TestClient):
    _add(client, TOKYO)
    _add(client, PARIS)

    response = client.post("/api/v1/history/undo")
    data = response.json()
    assert data["changed"] is True
    assert [c["id"] for c in data["cities"]] == ["tokyo"]
    assert data["history"]["canRedo"] is True

    data = client.post("/api/v1/history/redo").json()
    assert [c["id"] for c in data["cities"]] == ["tokyo", "paris"]
    assert data["history"]["canRedo"] is False

    data = client.post("/api/v1/history/redo").json()
    assert data["changed"] is False


def test_export_and_import(client: TestClient, persistence):
    _add(client, TOKYO)
    _add(client, PARIS)

    response = client.get("/api/v1/export")
    assert response.status_code == 200
    assert "traveled-world-" in response.headers["content-disposition"]
    document = response.json()
    assert document["version"] == "1.0"

    client.delete("/api/v1/cities/tokyo")

    response = client.post("/api/v1/import", json=document)
    assert response.status_code == 200
    assert response.json() == {
        "canUndo": False,
        "canRedo": False,
        "cursor": 0,
        "length": 1,
    }
    assert len(client.get("/api/v1/cities").json()) == 2
    assert len(persistence.load()["cities"]) == 2


def test_import_malformed_payload(client: TestClient):
    _add(client, TOKYO)

    response = client.post("/api/v1/import", json=[1, 2, 3])

    assert response.status_code == 400
    assert response.json()["type"] == "/problems/malformed-import"
    assert len(client.get("/api/v1/cities").json()) == 1


def test_summary(client: TestClient):
    _add(client, TOKYO)
    _add(client, PARIS)

    summary = client.get("/api/v1/summary").json()

    assert summary["totalCities"] == 2
    assert summary["livedCities"] == 1
    assert summary["countryCount"] == 2
    assert summary["topCountries"][0]["count"] == 1


@pytest.mark.parametrize(
    "body",
    [{"lastVisited": None}, {"country": None}, {"name": None}, {"type": None}],
)
def test_null_city_fields_are_ignored(client: TestClient, body: dict):
    _add(client, PARIS)

    response = client.patch("/api/v1/cities/paris", json=body)

    assert response.status_code == 200
    city = response.json()
    assert city["lastVisited"] == "2024-03-01"
    assert city["country"] == "France"
    assert city["type"] == "lived"
    assert client.get("/api/v1/cities").status_code == 200
    assert client.get("/api/v1/export").status_code == 200


def test_null_clears_optional_city_metadata(client: TestClient):
    _add(client, {**PARIS, "iso2": "FR"})

    response = client.patch("/api/v1/cities/paris", json={"iso2": None})

    assert response.status_code == 200
    assert response.json()["iso2"] is None


@pytest.mark.parametrize("body", [{"color": None}, {"cityIds": None}])
def test_null_trip_fields_are_ignored(client: TestClient, body: dict):
    _add(client, TOKYO)
    client.post(
        "/api/v1/trips",
        json={"id": "t", "name": "T", "cityIds": ["tokyo"], "dates": ["2024-01-01"]},
    )

    response = client.patch("/api/v1/trips/t", json=body)

    assert response.status_code == 200
    trip = response.json()
    assert trip["color"] == "#3B82F6"
    assert trip["cityIds"] == ["tokyo"]
    assert client.get("/api/v1/export").status_code == 200


def test_null_clears_trip_dates(client: TestClient):
    _add(client, TOKYO)
    client.post(
        "/api/v1/trips",
        json={"id": "t", "name": "T", "cityIds": ["tokyo"], "dates": ["2024-01-01"]},
    )

    response = client.patch("/api/v1/trips/t", json={"dates": None})

    assert response.json()["dates"] is None


def test_wrongly_typed_trip_color_rejected(client: TestClient):
    _add(client, TOKYO)
    client.post("/api/v1/trips", json={"id": "t", "name": "T", "cityIds": ["tokyo"]})

    response = client.patch("/api/v1/trips/t", json={"color": ""})

    assert response.status_code == 400
    assert client.get("/api/v1/trips/t/itinerary").status_code == 200


def test_request_id_header(client: TestClient):
    generated = client.get("/health").headers["x-request-id"]
    assert generated

    response = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["x-request-id"] == "trace-123"
