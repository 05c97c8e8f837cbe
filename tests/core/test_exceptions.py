from unittest.mock import MagicMock, patch

from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel

from src.api.deps import get_notion, get_storage
from src.config import Settings
from src.core.exceptions import AppError, NotionError
from src.main import app


class _DummyBody(BaseModel):
    value: int


@app.post("/_validate")
async def _validation_endpoint(body: _DummyBody) -> _DummyBody:
    return body


async def test_validation_error_format() -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/_validate", json={"value": "not_an_int"})
    assert response.status_code == 422
    data = response.json()
    assert "detail" in data
    assert isinstance(data["detail"], list)
    error = data["detail"][0]
    assert "loc" in error
    assert "msg" in error
    assert "type" in error
    assert "url" not in error


async def test_validation_error_missing_field() -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post("/_validate", json={})
    assert response.status_code == 422
    data = response.json()
    assert isinstance(data["detail"], list)
    assert any("value" in str(e["loc"]) for e in data["detail"])


class TestAppError:
    def test_stores_status_and_detail(self) -> None:
        err = AppError(status_code=404, detail="Not found")
        assert err.status_code == 404
        assert err.detail == "Not found"

    async def test_app_error_handler_returns_json(self) -> None:
        app.dependency_overrides[get_storage] = lambda: MagicMock()
        app.dependency_overrides[get_notion] = lambda: MagicMock()
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                response = await client.post("/mirror/nonexistent-collection")
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 404
        assert response.json() == {"detail": "Unknown collection"}


class TestConfigurationError:
    async def test_missing_storage_settings_is_503(self) -> None:
        bare = Settings(_env_file=None, cos_bucket=None, cos_region=None, cos_secret_id=None, cos_secret_key=None)  # type: ignore[call-arg]
        with patch("src.api.deps.settings", bare):
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                response = await client.get("/images/classify", params={"url": "https://example.com/a.png"})
        assert response.status_code == 503
        assert response.json() == {
            "detail": "Missing required environment variables: COS_BUCKET, COS_REGION, COS_SECRET_ID, COS_SECRET_KEY"
        }


class TestNotionError:
    def test_message(self) -> None:
        err = NotionError(429, "rate limited")
        assert err.status_code == 429
        assert str(err) == "Notion API error 429: rate limited"
