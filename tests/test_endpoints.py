"""Route tests for the weather dashboard API."""

import os

import httpx
import pytest
from fastapi.testclient import TestClient

from weather_dashboard import config
from weather_dashboard.errors import ConfigurationError, StorageError
from weather_dashboard.history.store import HistoryStore
from weather_dashboard.main import create_app, lifespan


@pytest.fixture
def static_dir(tmp_path):
    dist = tmp_path / "dist"
    (dist / "assets").mkdir(parents=True)
    (dist / "index.html").write_text("<html>weather</html>")
    (dist / "assets" / "app.js").write_text("console.log('hi')")
    return str(dist)


@pytest.fixture
def build_client(history_store, static_dir, make_service):
    """Factory returning a TestClient over an app with injected services."""

    def _build(**service_kwargs) -> TestClient:
        app = create_app(
            weather_service=make_service(**service_kwargs),
            history_store=history_store,
            static_dir=static_dir
        )
        return TestClient(app)

    return _build


class TestPostWeather:
    def test_city_name_returns_weather(self, build_client):
        response = build_client().post("/weather", json={"cityName": "London"})

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"current", "forecast", "coordinates"}
        assert len(body["forecast"]) <= 5
        assert body["coordinates"]["name"] == "London"
        assert set(body["current"]) == {"date", "temperature", "humidity", "windSpeed", "description", "icon"}

    def test_city_key_is_accepted(self, build_client):
        response = build_client().post("/weather", json={"city": "London"})

        assert response.status_code == 200

    def test_success_records_city_in_history(self, build_client, history_store):
        client = build_client()

        client.post("/weather", json={"cityName": "London"})
        client.post("/weather", json={"cityName": "london"})

        history = client.get("/weather/history").json()
        assert [entry["name"] for entry in history] == ["London"]

    def test_missing_city_is_bad_request(self, build_client):
        response = build_client().post("/weather", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "City name is required"}

    def test_blank_city_is_bad_request(self, build_client):
        response = build_client().post("/weather", json={"cityName": "   "})

        assert response.status_code == 400

    def test_non_json_body_is_bad_request(self, build_client):
        response = build_client().post(
            "/weather", content="city=London", headers={"content-type": "text/plain"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body"

    def test_unknown_city_is_not_found_and_not_recorded(self, build_client):
        client = build_client(geocode=[])

        response = client.post("/weather", json={"cityName": "Atlantis"})

        assert response.status_code == 404
        assert response.json() == {"error": "City not found"}
        assert client.get("/weather/history").json() == []

    def test_upstream_failure_is_server_error_without_detail(self, build_client):
        client = build_client(forecast=({"cod": 500}, 500))

        response = client.post("/weather", json={"cityName": "London"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch weather data"}

    def test_upstream_detail_echoed_outside_production(self, build_client, monkeypatch):
        monkeypatch.setattr(config, "APP_ENV", "development")
        client = build_client(current=httpx.ConnectError("refused"))

        response = client.post("/weather", json={"cityName": "London"})

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to fetch current weather"

    def test_history_failure_does_not_fail_lookup(self, build_client, history_store, monkeypatch):
        async def _broken_add(name):
            raise StorageError("Failed to write search history")

        monkeypatch.setattr(history_store, "add_city", _broken_add)

        response = build_client().post("/weather", json={"cityName": "London"})

        assert response.status_code == 200


class TestHistoryRoutes:
    def test_lists_history_in_order(self, build_client):
        client = build_client()
        client.post("/weather", json={"cityName": "London"})

        response = client.get("/weather/history")

        assert response.status_code == 200
        assert [entry["name"] for entry in response.json()] == ["London"]
        assert response.json()[0]["id"]

    def test_delete_existing_city(self, build_client):
        client = build_client()
        client.post("/weather", json={"cityName": "London"})
        city_id = client.get("/weather/history").json()[0]["id"]

        response = client.delete(f"/weather/history/{city_id}")

        assert response.status_code == 200
        assert response.json() == {"message": "City deleted successfully"}
        assert client.get("/weather/history").json() == []

    def test_delete_unknown_id_is_not_found(self, build_client):
        response = build_client().delete("/weather/history/missing")

        assert response.status_code == 404
        assert response.json() == {"error": "City not found in history"}

    def test_delete_without_id_is_not_found(self, build_client):
        client = build_client()

        for path in ("/weather/history/", "/weather/history"):
            response = client.delete(path)

            assert response.status_code == 404
            assert response.json() == {"error": "City not found in history"}

    def test_non_utf8_history_is_server_error(self, history_path, static_dir, make_service):
        os.makedirs(os.path.dirname(history_path))
        with open(history_path, "wb") as f:
            f.write(b'[{"id": "a", "name": "\xff\xfe"}]')
        app = create_app(
            weather_service=make_service(),
            history_store=HistoryStore(history_path),
            static_dir=static_dir
        )

        response = TestClient(app).get("/weather/history")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch search history"}

    def test_uninitialized_store_hides_detail_in_production(self, static_dir, make_service, monkeypatch):
        monkeypatch.setattr(config, "APP_ENV", "production")
        app = create_app(weather_service=make_service(), static_dir=static_dir)

        response = TestClient(app).get("/weather/history")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal Server Error"}

    def test_uninitialized_store_detail_outside_production(self, static_dir, make_service, monkeypatch):
        monkeypatch.setattr(config, "APP_ENV", "development")
        app = create_app(weather_service=make_service(), static_dir=static_dir)

        response = TestClient(app).get("/weather/history")

        assert response.json() == {
            "error": "Internal Server Error",
            "message": "Search history is not initialized"
        }

    def test_unreadable_history_is_server_error(self, history_path, static_dir, make_service):
        os.makedirs(os.path.dirname(history_path))
        with open(history_path, "w", encoding="utf-8") as f:
            f.write("not json")
        app = create_app(
            weather_service=make_service(),
            history_store=HistoryStore(history_path),
            static_dir=static_dir
        )

        response = TestClient(app).get("/weather/history")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch search history"}


class TestRootRoutes:
    def test_test_route(self, build_client):
        response = build_client().get("/test")

        assert response.status_code == 200
        assert response.json() == {"message": "API routes are working"}

    def test_health(self, build_client):
        assert build_client().get("/weather/health").json()["status"] == "healthy"

    def test_unknown_path_serves_index(self, build_client):
        response = build_client().get("/some/client/route")

        assert response.status_code == 200
        assert "weather" in response.text

    def test_static_asset_is_served(self, build_client):
        response = build_client().get("/assets/app.js")

        assert response.status_code == 200
        assert "console.log" in response.text

    def test_path_traversal_falls_back_to_index(self, build_client):
        response = build_client().get("/..%2F..%2Fetc%2Fpasswd")

        assert response.status_code == 200
        assert "weather" in response.text

    def test_missing_client_build_is_server_error(self, history_store, make_service, tmp_path):
        app = create_app(
            weather_service=make_service(),
            history_store=history_store,
            static_dir=str(tmp_path / "nowhere")
        )

        response = TestClient(app).get("/")

        assert response.status_code == 500
        assert response.json() == {"error": "Error serving the application"}

    @pytest.mark.asyncio
    async def test_missing_api_key_fails_startup(self, monkeypatch, history_store, static_dir):
        monkeypatch.setattr("weather_dashboard.weather.client.API_KEY", "")
        app = create_app(history_store=history_store, static_dir=static_dir)

        with pytest.raises(ConfigurationError):
            async with lifespan(app):
                pass
