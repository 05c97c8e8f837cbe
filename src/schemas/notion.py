"""Typed views over Notion page payloads.

Notion returns every property as ``{"type": <kind>, <kind>: <value>}``. Each kind
gets its own model and the union is discriminated on ``type``; kinds this project
does not read fall through to :class:`OtherProperty`. The ``get_*`` helpers never
raise on a missing or differently-typed property, they return ``None`` instead.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Tag


class _NotionModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class RichTextItem(_NotionModel):
    plain_text: str = ""


class SelectOption(_NotionModel):
    name: str


class DateValue(_NotionModel):
    start: str
    end: str | None = None


class FileUrl(_NotionModel):
    url: str


class FileEntry(_NotionModel):
    type: str = "external"
    name: str | None = None
    file: FileUrl | None = None
    external: FileUrl | None = None

    @property
    def url(self) -> str | None:
        if self.file:
            return self.file.url
        if self.external:
            return self.external.url
        return None


class TitleProperty(_NotionModel):
    type: Literal["title"] = "title"
    title: list[RichTextItem] = []


class RichTextProperty(_NotionModel):
    type: Literal["rich_text"] = "rich_text"
    rich_text: list[RichTextItem] = []


class UrlProperty(_NotionModel):
    type: Literal["url"] = "url"
    url: str | None = None


class SelectProperty(_NotionModel):
    type: Literal["select"] = "select"
    select: SelectOption | None = None


class MultiSelectProperty(_NotionModel):
    type: Literal["multi_select"] = "multi_select"
    multi_select: list[SelectOption] = []


class DateProperty(_NotionModel):
    type: Literal["date"] = "date"
    date: DateValue | None = None


class NumberProperty(_NotionModel):
    type: Literal["number"] = "number"
    number: float | None = None


class FilesProperty(_NotionModel):
    type: Literal["files"] = "files"
    files: list[FileEntry] = []


class OtherProperty(_NotionModel):
    type: str


_PROPERTY_KINDS = {"title", "rich_text", "url", "select", "multi_select", "date", "number", "files"}


def _property_tag(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return kind if kind in _PROPERTY_KINDS else "other"


PropertyValue = Annotated[
    Union[
        Annotated[TitleProperty, Tag("title")],
        Annotated[RichTextProperty, Tag("rich_text")],
        Annotated[UrlProperty, Tag("url")],
        Annotated[SelectProperty, Tag("select")],
        Annotated[MultiSelectProperty, Tag("multi_select")],
        Annotated[DateProperty, Tag("date")],
        Annotated[NumberProperty, Tag("number")],
        Annotated[FilesProperty, Tag("files")],
        Annotated[OtherProperty, Tag("other")],
    ],
    Discriminator(_property_tag),
]


class ExternalIcon(_NotionModel):
    type: Literal["external"] = "external"
    external: FileUrl


class EmojiIcon(_NotionModel):
    type: Literal["emoji"] = "emoji"
    emoji: str


class FileIcon(_NotionModel):
    type: Literal["file"] = "file"
    file: FileUrl


class FilesIcon(_NotionModel):
    type: Literal["files"] = "files"
    files: list[FileEntry] = []


class OtherIcon(_NotionModel):
    type: str


_ICON_KINDS = {"external", "emoji", "file", "files"}


def _icon_tag(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return kind if kind in _ICON_KINDS else "other"


PageIcon = Annotated[
    Union[
        Annotated[ExternalIcon, Tag("external")],
        Annotated[EmojiIcon, Tag("emoji")],
        Annotated[FileIcon, Tag("file")],
        Annotated[FilesIcon, Tag("files")],
        Annotated[OtherIcon, Tag("other")],
    ],
    Discriminator(_icon_tag),
]


class NotionPage(_NotionModel):
    id: str
    created_time: str | None = None
    icon: PageIcon | None = None
    properties: dict[str, PropertyValue] = {}


class NotionQueryResult(_NotionModel):
    results: list[NotionPage] = []
    next_cursor: str | None = None
    has_more: bool = False


def get_title(page: NotionPage, name: str) -> str | None:
    prop = page.properties.get(name)
    if isinstance(prop, TitleProperty) and prop.title:
        return prop.title[0].plain_text or None
    return None


def get_rich_text(page: NotionPage, name: str) -> str | None:
    prop = page.properties.get(name)
    if isinstance(prop, RichTextProperty) and prop.rich_text:
        return prop.rich_text[0].plain_text or None
    return None


def get_url(page: NotionPage, name: str) -> str | None:
    prop = page.properties.get(name)
    if isinstance(prop, UrlProperty):
        return prop.url or None
    return None


def get_select(page: NotionPage, name: str) -> str | None:
    prop = page.properties.get(name)
    if isinstance(prop, SelectProperty) and prop.select:
        return prop.select.name
    return None


def get_multi_select(page: NotionPage, name: str) -> list[str] | None:
    prop = page.properties.get(name)
    if isinstance(prop, MultiSelectProperty):
        return [option.name for option in prop.multi_select]
    return None


def get_date(page: NotionPage, name: str) -> str | None:
    prop = page.properties.get(name)
    if isinstance(prop, DateProperty) and prop.date:
        return prop.date.start
    return None


def get_number(page: NotionPage, name: str) -> float | None:
    prop = page.properties.get(name)
    if isinstance(prop, NumberProperty):
        return prop.number
    return None


def get_first_file_url(page: NotionPage, name: str) -> str | None:
    prop = page.properties.get(name)
    if isinstance(prop, FilesProperty) and prop.files:
        return prop.files[0].url
    return None


def get_icon_url(page: NotionPage) -> str | None:
    icon = page.icon
    if isinstance(icon, ExternalIcon):
        return icon.external.url
    if isinstance(icon, FileIcon):
        return icon.file.url
    if isinstance(icon, FilesIcon) and icon.files:
        return icon.files[0].url
    return None
