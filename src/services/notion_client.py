from collections.abc import AsyncIterator
from typing import Any

import httpx
import structlog
from resilient_httpx import AsyncProxyHttpClient, MaxRetriesExceeded, RetryPolicy

from src.config import Settings
from src.core.exceptions import ConfigurationError, NotionError
from src.schemas.notion import NotionPage, NotionQueryResult

logger = structlog.get_logger()


class NotionClient:
    """Thin async client for the parts of the Notion REST API this project uses."""

    def __init__(self, client: AsyncProxyHttpClient, api_url: str, page_size: int = 100) -> None:
        self._client = client
        self.api_url = api_url.rstrip("/")
        self.page_size = page_size

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotionClient":
        if not settings.notion_token:
            raise ConfigurationError("Missing required environment variable: NOTION_TOKEN")
        client = AsyncProxyHttpClient(
            retry=RetryPolicy(max_attempts=settings.fetch_max_retries),
            timeout=settings.fetch_timeout,
            headers={
                "Authorization": f"Bearer {settings.notion_token}",
                "Notion-Version": settings.notion_version,
                "Content-Type": "application/json",
            },
        )
        return cls(client, settings.notion_api_url, settings.notion_page_size)

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.api_url}/{path.lstrip('/')}"
        try:
            if method == "GET":
                response = await self._client.get(url)
            elif method == "PATCH":
                response = await self._client.patch(url, json=payload or {})
            else:
                response = await self._client.post(url, json=payload or {})
        except MaxRetriesExceeded as e:
            raise NotionError(503, str(e)) from e
        except httpx.HTTPError as e:
            raise NotionError(0, str(e)) from e

        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise NotionError(response.status_code, message)
        return response.json()

    async def query_database(
        self,
        database_id: str,
        *,
        sorts: list[dict[str, str]] | None = None,
        filter: dict[str, Any] | None = None,
        page_size: int | None = None,
        start_cursor: str | None = None,
    ) -> NotionQueryResult:
        payload: dict[str, Any] = {"page_size": page_size or self.page_size}
        if sorts:
            payload["sorts"] = sorts
        if filter:
            payload["filter"] = filter
        if start_cursor:
            payload["start_cursor"] = start_cursor
        data = await self._request("POST", f"databases/{database_id}/query", payload)
        return NotionQueryResult.model_validate(data)

    async def iter_database(
        self,
        database_id: str,
        *,
        sorts: list[dict[str, str]] | None = None,
        filter: dict[str, Any] | None = None,
        page_size: int | None = None,
    ) -> AsyncIterator[NotionPage]:
        cursor: str | None = None
        while True:
            result = await self.query_database(
                database_id, sorts=sorts, filter=filter, page_size=page_size, start_cursor=cursor
            )
            for page in result.results:
                yield page
            if not result.has_more or not result.next_cursor:
                return
            cursor = result.next_cursor

    async def retrieve_page(self, page_id: str) -> NotionPage:
        data = await self._request("GET", f"pages/{page_id}")
        return NotionPage.model_validate(data)

    async def update_page(
        self,
        page_id: str,
        *,
        properties: dict[str, Any] | None = None,
        icon: dict[str, Any] | None = None,
    ) -> NotionPage:
        payload: dict[str, Any] = {}
        if properties is not None:
            payload["properties"] = properties
        if icon is not None:
            payload["icon"] = icon
        data = await self._request("PATCH", f"pages/{page_id}", payload)
        logger.debug("notion_page_updated", page_id=page_id, fields=sorted(payload))
        return NotionPage.model_validate(data)

    async def aclose(self) -> None:
        await self._client.aclose()
