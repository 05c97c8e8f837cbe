"""Content collections and where their images live.

Each collection lists its image slots in the order they are mirrored:
icon property, then page icon, then image-valued URL fields.
"""

from dataclasses import dataclass

from src.config import Settings
from src.schemas.assets import FieldKind, ImageReference, OptimizeProfile
from src.schemas.notion import NotionPage, get_first_file_url, get_icon_url, get_title, get_url
from src.services.image_optimizer import FULL_IMAGE_PROFILE, THUMBNAIL_PROFILE

PAGE_ICON_FIELD = "icon"


@dataclass(frozen=True)
class ImageSlot:
    field_kind: FieldKind
    field_name: str
    profile: OptimizeProfile = THUMBNAIL_PROFILE

    def extract(self, page: NotionPage) -> str | None:
        if self.field_kind is FieldKind.PAGE_ICON:
            return get_icon_url(page)
        if self.field_kind is FieldKind.ICON_LIST_FIELD:
            return get_first_file_url(page, self.field_name)
        return get_url(page, self.field_name)


@dataclass(frozen=True)
class Collection:
    name: str
    settings_attr: str
    sort_property: str
    sort_direction: str
    slots: tuple[ImageSlot, ...] = ()
    title_property: str = "Name"

    def database_id(self, settings: Settings) -> str | None:
        return getattr(settings, self.settings_attr, None) or None

    @property
    def sorts(self) -> list[dict[str, str]]:
        return [{"property": self.sort_property, "direction": self.sort_direction}]

    def title_of(self, page: NotionPage) -> str:
        return get_title(page, self.title_property) or "Untitled"


ICON_PROPERTY = ImageSlot(FieldKind.ICON_LIST_FIELD, "icon")
PAGE_ICON = ImageSlot(FieldKind.PAGE_ICON, PAGE_ICON_FIELD)

COLLECTIONS: dict[str, Collection] = {
    collection.name: collection
    for collection in (
        Collection("good-websites", "notion_good_websites_database_id", "Name", "ascending", (ICON_PROPERTY, PAGE_ICON)),
        Collection(
            "stack",
            "notion_stack_database_id",
            "Name",
            "ascending",
            (ICON_PROPERTY, PAGE_ICON, ImageSlot(FieldKind.URL_FIELD, "Image")),
        ),
        Collection("music", "notion_music_database_id", "Played At", "descending", (ICON_PROPERTY, PAGE_ICON)),
        Collection(
            "writing",
            "notion_writing_database_id",
            "Published",
            "descending",
            (ImageSlot(FieldKind.URL_FIELD, "FeatureImage", FULL_IMAGE_PROFILE),),
        ),
        Collection(
            "design-details-episodes",
            "notion_design_details_episodes_database_id",
            "Episode Number",
            "descending",
            (ImageSlot(FieldKind.URL_FIELD, "Image URL", FULL_IMAGE_PROFILE),),
        ),
        Collection("app-dissection", "notion_app_dissection_database_id", "Name", "ascending", (PAGE_ICON,)),
        Collection("ama", "notion_ama_database_id", "Answered At", "descending"),
        Collection("speaking", "notion_speaking_database_id", "Date", "descending"),
    )
}

DEFAULT_COLLECTIONS = ("good-websites", "stack", "music")


def scan_page(page: NotionPage, collection: Collection) -> list[tuple[ImageReference, OptimizeProfile]]:
    references = []
    for slot in collection.slots:
        url = slot.extract(page)
        if not url:
            continue
        reference = ImageReference(
            source_url=url,
            owner_document_id=page.id,
            field_kind=slot.field_kind,
            field_name=slot.field_name,
        )
        references.append((reference, slot.profile))
    return references
