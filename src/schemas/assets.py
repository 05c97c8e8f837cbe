from dataclasses import dataclass
from enum import Enum


class FieldKind(str, Enum):
    PAGE_ICON = "page_icon"
    ICON_LIST_FIELD = "icon_list_field"
    URL_FIELD = "url_field"


class MirrorStatus(str, Enum):
    SKIPPED_ALREADY_OPTIMIZED = "skipped_already_optimized"
    SKIPPED_IRRELEVANT = "skipped_irrelevant"
    SKIPPED_FAILED = "skipped_failed"
    ERRORED = "errored"
    PROCESSED = "processed"

    @property
    def is_skip(self) -> bool:
        return self in (
            MirrorStatus.SKIPPED_ALREADY_OPTIMIZED,
            MirrorStatus.SKIPPED_IRRELEVANT,
            MirrorStatus.SKIPPED_FAILED,
        )


@dataclass(frozen=True)
class ImageReference:
    """A pointer to an image inside one Notion page."""

    source_url: str
    owner_document_id: str
    field_kind: FieldKind
    field_name: str


@dataclass
class RawAsset:
    buffer: bytes
    content_type: str
    byte_size: int


@dataclass
class OptimizedAsset:
    """Transform output. ``savings_percent`` is negative when re-encoding grew the image."""

    buffer: bytes
    format: str
    width: int
    height: int
    original_size: int
    optimized_size: int
    savings_percent: float


@dataclass(frozen=True)
class StoredObject:
    public_url: str
    key: str
    content_hash: str
    byte_size: int


@dataclass(frozen=True)
class UrlClassification:
    is_own_bucket: bool
    is_already_optimized: bool
    is_foreign_candidate: bool

    @property
    def needs_mirroring(self) -> bool:
        if self.is_already_optimized:
            return False
        return self.is_own_bucket or self.is_foreign_candidate


@dataclass(frozen=True)
class OptimizeProfile:
    name: str
    max_dimension: int
    quality: int


@dataclass
class MirrorOutcome:
    reference: ImageReference
    status: MirrorStatus
    new_url: str | None = None
    error: str | None = None
    original_size: int = 0
    optimized_size: int = 0


@dataclass
class MirrorStats:
    processed: int = 0
    skipped: int = 0
    errors: int = 0
    original_total_size: int = 0
    optimized_total_size: int = 0

    def record(self, outcome: MirrorOutcome) -> None:
        if outcome.status is MirrorStatus.PROCESSED:
            self.processed += 1
            self.original_total_size += outcome.original_size
            self.optimized_total_size += outcome.optimized_size
        elif outcome.status.is_skip:
            self.skipped += 1
        else:
            self.errors += 1

    @property
    def savings_percent(self) -> float:
        if self.original_total_size == 0:
            return 0.0
        return (1 - self.optimized_total_size / self.original_total_size) * 100
