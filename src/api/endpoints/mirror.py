from fastapi import APIRouter, Depends

from src.api.deps import get_notion, get_settings, get_storage
from src.config import Settings
from src.core.exceptions import AppError, NotionError
from src.schemas.images import MirrorRunResponse
from src.services.collections import COLLECTIONS
from src.services.content_updater import ContentReferenceUpdater
from src.services.mirror import ImageMirror
from src.services.notion_client import NotionClient
from src.services.object_storage import ObjectStorage

router = APIRouter(prefix="/mirror")


@router.post("/{collection}", response_model=MirrorRunResponse)
async def mirror_collection(
    collection: str,
    settings: Settings = Depends(get_settings),
    storage: ObjectStorage = Depends(get_storage),
    notion: NotionClient = Depends(get_notion),
) -> MirrorRunResponse:
    if collection not in COLLECTIONS:
        raise AppError(status_code=404, detail="Unknown collection")
    target = COLLECTIONS[collection]
    database_id = target.database_id(settings)
    if not database_id:
        raise AppError(status_code=409, detail=f"Collection {collection} is not configured")

    mirror = ImageMirror(storage, ContentReferenceUpdater(notion))
    try:
        stats = await mirror.run_collection(notion, target, database_id)
    except NotionError as e:
        raise AppError(status_code=502, detail=str(e)) from e

    return MirrorRunResponse(
        collection=collection,
        processed=stats.processed,
        skipped=stats.skipped,
        errors=stats.errors,
        original_total_size=stats.original_total_size,
        optimized_total_size=stats.optimized_total_size,
        savings_percent=stats.savings_percent,
    )
