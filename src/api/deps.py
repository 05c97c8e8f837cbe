from fastapi import Request

from src.config import Settings, settings
from src.services.notion_client import NotionClient
from src.services.object_storage import ObjectStorage


def get_settings() -> Settings:
    return settings


async def get_storage(request: Request) -> ObjectStorage:
    storage: ObjectStorage | None = getattr(request.app.state, "storage", None)
    if storage is None:
        storage = ObjectStorage.from_settings(settings)
        request.app.state.storage = storage
    return storage


async def get_notion(request: Request) -> NotionClient:
    notion: NotionClient | None = getattr(request.app.state, "notion", None)
    if notion is None:
        notion = NotionClient.from_settings(settings)
        request.app.state.notion = notion
    return notion
