from typing import Any

import structlog

from src.schemas.assets import FieldKind
from src.services.notion_client import NotionClient

logger = structlog.get_logger()


def build_update_payload(field_kind: FieldKind, field_name: str, new_url: str) -> dict[str, Any]:
    """Keyword arguments for ``NotionClient.update_page`` touching only the one field."""
    if field_kind is FieldKind.PAGE_ICON:
        return {"icon": {"type": "external", "external": {"url": new_url}}}
    if field_kind is FieldKind.ICON_LIST_FIELD:
        files = [{"name": field_name, "type": "external", "external": {"url": new_url}}]
        return {"properties": {field_name: {"files": files}}}
    return {"properties": {field_name: {"url": new_url}}}


class ContentReferenceUpdater:
    def __init__(self, notion: NotionClient) -> None:
        self.notion = notion

    async def update_reference(self, document_id: str, field_kind: FieldKind, field_name: str, new_url: str) -> None:
        await self.notion.update_page(document_id, **build_update_payload(field_kind, field_name, new_url))
        logger.info("reference_updated", page_id=document_id, field=field_name, kind=field_kind.value)
