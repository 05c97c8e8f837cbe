from unittest.mock import AsyncMock, MagicMock

from src.schemas.assets import FieldKind
from src.services.content_updater import ContentReferenceUpdater, build_update_payload

NEW_URL = "https://site-1250000000.cos.ap-guangzhou.myqcloud.com/notion-images/" + "b" * 64 + ".png"


class TestBuildUpdatePayload:
    def test_page_icon(self) -> None:
        assert build_update_payload(FieldKind.PAGE_ICON, "icon", NEW_URL) == {
            "icon": {"type": "external", "external": {"url": NEW_URL}}
        }

    def test_icon_list_field_replaces_list_with_single_entry(self) -> None:
        assert build_update_payload(FieldKind.ICON_LIST_FIELD, "icon", NEW_URL) == {
            "properties": {"icon": {"files": [{"name": "icon", "type": "external", "external": {"url": NEW_URL}}]}}
        }

    def test_url_field(self) -> None:
        assert build_update_payload(FieldKind.URL_FIELD, "FeatureImage", NEW_URL) == {
            "properties": {"FeatureImage": {"url": NEW_URL}}
        }


class TestContentReferenceUpdater:
    async def test_patches_only_the_target_field(self) -> None:
        notion = MagicMock()
        notion.update_page = AsyncMock()
        updater = ContentReferenceUpdater(notion)

        await updater.update_reference("page-1", FieldKind.URL_FIELD, "Image", NEW_URL)

        notion.update_page.assert_awaited_once_with("page-1", properties={"Image": {"url": NEW_URL}})

    async def test_page_icon_uses_icon_argument(self) -> None:
        notion = MagicMock()
        notion.update_page = AsyncMock()

        await ContentReferenceUpdater(notion).update_reference("page-1", FieldKind.PAGE_ICON, "icon", NEW_URL)

        notion.update_page.assert_awaited_once_with("page-1", icon={"type": "external", "external": {"url": NEW_URL}})
