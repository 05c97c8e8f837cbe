import base64
import binascii
import ipaddress
from urllib.parse import urlparse

import structlog
from fastapi import APIRouter, Depends

from src.api.deps import get_storage
from src.core.exceptions import AppError, ImageProcessingError, StorageError
from src.schemas.images import (
    ClassifyResponse,
    ImageDeleteResponse,
    ImageUploadRequest,
    ImageUploadResponse,
    OptimizeRequest,
    OptimizeResponse,
)
from src.services.image_optimizer import PROFILES, optimize_with_profile
from src.services.object_storage import ObjectStorage
from src.services.url_classifier import ensure_scheme

logger = structlog.get_logger()

router = APIRouter(prefix="/images")


def _validate_path_segment(value: str, name: str) -> None:
    if not value or ".." in value or "/" in value:
        raise AppError(status_code=400, detail=f"Invalid {name}")


def _is_blocked_ip(hostname: str) -> bool:
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_reserved or ip.is_multicast or ip.is_unspecified


def _validate_fetch_url(url: str) -> None:
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme not in ("http", "https"):
        raise AppError(status_code=400, detail="Invalid url")
    if not parsed.hostname:
        raise AppError(status_code=400, detail="Invalid url")
    hostname = parsed.hostname
    if hostname == "localhost" or hostname.endswith(".localhost"):
        raise AppError(status_code=400, detail="Invalid url")
    if _is_blocked_ip(hostname):
        raise AppError(status_code=400, detail="Invalid url")


def _decode_payload(data: str) -> bytes:
    if ";base64," in data:
        data = data.split(";base64,", 1)[1]
    try:
        payload = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AppError(status_code=400, detail="Invalid base64 data") from e
    if not payload:
        raise AppError(status_code=400, detail="Empty upload")
    return payload


@router.get("/classify", response_model=ClassifyResponse)
async def classify_url(url: str, storage: ObjectStorage = Depends(get_storage)) -> ClassifyResponse:
    classification = storage.classify(url)
    return ClassifyResponse(
        url=url,
        is_own_bucket=classification.is_own_bucket,
        is_already_optimized=classification.is_already_optimized,
        is_foreign_candidate=classification.is_foreign_candidate,
        needs_mirroring=classification.needs_mirroring,
    )


@router.post("/optimize", response_model=OptimizeResponse)
async def optimize_image_url(body: OptimizeRequest, storage: ObjectStorage = Depends(get_storage)) -> OptimizeResponse:
    url = ensure_scheme(body.url)
    classification = storage.classify(url)
    if classification.is_already_optimized:
        return OptimizeResponse(original_url=body.url, optimized_url=body.url, already_optimized=True)
    if not classification.is_own_bucket:
        _validate_fetch_url(url)

    raw = await storage.download(url)
    if raw is None:
        raise AppError(status_code=502, detail="Failed to download image")

    try:
        optimized = optimize_with_profile(raw.buffer, PROFILES[body.profile])
    except ImageProcessingError as e:
        raise AppError(status_code=422, detail=str(e)) from e

    try:
        stored = await storage.upload_optimized(optimized)
    except StorageError as e:
        logger.error("optimize_upload_failed", url=url[:120], error=str(e))
        raise AppError(status_code=502, detail="Failed to store image") from e

    if body.delete_original and classification.is_own_bucket and stored.public_url != url:
        await storage.delete(url)

    return OptimizeResponse(
        original_url=body.url,
        optimized_url=stored.public_url,
        original_size=raw.byte_size,
        optimized_size=optimized.optimized_size,
        savings_percent=optimized.savings_percent,
        width=optimized.width,
        height=optimized.height,
    )


@router.post("/{namespace}", response_model=ImageUploadResponse)
async def upload_image(
    namespace: str, body: ImageUploadRequest, storage: ObjectStorage = Depends(get_storage)
) -> ImageUploadResponse:
    _validate_path_segment(namespace, "namespace")
    payload = _decode_payload(body.data)

    try:
        stored = await storage.upload(payload, namespace, body.content_type)
    except StorageError as e:
        logger.error("image_upload_failed", namespace=namespace, error=str(e))
        raise AppError(status_code=502, detail="Failed to store image") from e

    return ImageUploadResponse(url=stored.public_url, key=stored.key, content_hash=stored.content_hash, size=stored.byte_size)


@router.delete("", response_model=ImageDeleteResponse)
async def delete_image(url: str, storage: ObjectStorage = Depends(get_storage)) -> ImageDeleteResponse:
    return ImageDeleteResponse(deleted=await storage.delete(url))
