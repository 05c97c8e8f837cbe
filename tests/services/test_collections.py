from typing import Any

from src.config import Settings
from src.schemas.assets import FieldKind
from src.schemas.notion import NotionPage
from src.services.collections import COLLECTIONS, DEFAULT_COLLECTIONS, scan_page
from src.services.image_optimizer import FULL_IMAGE_PROFILE, THUMBNAIL_PROFILE

S3_ICON = "https://prod-files-secure.s3.us-west-2.amazonaws.com/a/b/icon.png"
EXTERNAL_ICON = "https://example.com/favicon.png"


def _page(icon: dict[str, Any] | None = None, properties: dict[str, Any] | None = None) -> NotionPage:
    return NotionPage.model_validate({"id": "page-1", "icon": icon, "properties": properties or {}})


def _files(url: str) -> dict[str, Any]:
    return {"type": "files", "files": [{"name": "icon.png", "type": "file", "file": {"url": url}}]}


class TestCollections:
    def test_default_collections(self) -> None:
        assert DEFAULT_COLLECTIONS == ("good-websites", "stack", "music")
        assert all(name in COLLECTIONS for name in DEFAULT_COLLECTIONS)

    def test_sorts(self) -> None:
        assert COLLECTIONS["music"].sorts == [{"property": "Played At", "direction": "descending"}]
        assert COLLECTIONS["stack"].sorts == [{"property": "Name", "direction": "ascending"}]

    def test_database_id_from_settings(self) -> None:
        settings = Settings(_env_file=None, notion_stack_database_id="db-stack")  # type: ignore[call-arg]
        assert COLLECTIONS["stack"].database_id(settings) == "db-stack"

    def test_unconfigured_database_id(self) -> None:
        settings = Settings(_env_file=None, notion_music_database_id="")  # type: ignore[call-arg]
        assert COLLECTIONS["music"].database_id(settings) is None

    def test_title_of(self) -> None:
        page = _page(properties={"Name": {"type": "title", "title": [{"plain_text": "Linear"}]}})
        assert COLLECTIONS["stack"].title_of(page) == "Linear"
        assert COLLECTIONS["stack"].title_of(_page()) == "Untitled"


class TestScanPage:
    def test_icon_property_then_page_icon(self) -> None:
        page = _page(icon={"type": "external", "external": {"url": EXTERNAL_ICON}}, properties={"icon": _files(S3_ICON)})

        refs = scan_page(page, COLLECTIONS["good-websites"])

        assert [(ref.field_kind, ref.source_url) for ref, _ in refs] == [
            (FieldKind.ICON_LIST_FIELD, S3_ICON),
            (FieldKind.PAGE_ICON, EXTERNAL_ICON),
        ]
        assert all(ref.owner_document_id == "page-1" for ref, _ in refs)

    def test_stack_image_url_field(self) -> None:
        page = _page(properties={"Image": {"type": "url", "url": S3_ICON}})

        refs = scan_page(page, COLLECTIONS["stack"])

        assert len(refs) == 1
        reference, profile = refs[0]
        assert reference.field_kind is FieldKind.URL_FIELD
        assert reference.field_name == "Image"
        assert profile is THUMBNAIL_PROFILE

    def test_feature_image_uses_full_profile(self) -> None:
        page = _page(properties={"FeatureImage": {"type": "url", "url": S3_ICON}})
        refs = scan_page(page, COLLECTIONS["writing"])
        assert refs[0][1] is FULL_IMAGE_PROFILE

    def test_emoji_icon_ignored(self) -> None:
        page = _page(icon={"type": "emoji", "emoji": "🎧"})
        assert scan_page(page, COLLECTIONS["music"]) == []

    def test_empty_fields_ignored(self) -> None:
        page = _page(properties={"icon": {"type": "files", "files": []}, "Image": {"type": "url", "url": None}})
        assert scan_page(page, COLLECTIONS["stack"]) == []

    def test_collection_without_slots(self) -> None:
        page = _page(icon={"type": "external", "external": {"url": EXTERNAL_ICON}})
        assert scan_page(page, COLLECTIONS["ama"]) == []
