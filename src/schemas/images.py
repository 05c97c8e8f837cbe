from typing import Literal

from pydantic import BaseModel


class OptimizeRequest(BaseModel):
    url: str
    profile: Literal["thumbnail", "full"] = "thumbnail"
    delete_original: bool = False


class OptimizeResponse(BaseModel):
    original_url: str
    optimized_url: str
    already_optimized: bool = False
    original_size: int = 0
    optimized_size: int = 0
    savings_percent: float = 0.0
    width: int | None = None
    height: int | None = None


class ImageUploadRequest(BaseModel):
    data: str
    content_type: str | None = None


class ImageUploadResponse(BaseModel):
    url: str
    key: str
    content_hash: str
    size: int


class ImageDeleteResponse(BaseModel):
    deleted: bool


class ClassifyResponse(BaseModel):
    url: str
    is_own_bucket: bool
    is_already_optimized: bool
    is_foreign_candidate: bool
    needs_mirroring: bool


class MirrorRunResponse(BaseModel):
    collection: str
    processed: int
    skipped: int
    errors: int
    original_total_size: int
    optimized_total_size: int
    savings_percent: float
