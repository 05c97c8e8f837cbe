"""Mirror images referenced by Notion pages into the COS bucket.

Per reference: classify, download, optimize, upload, point the Notion field at the
new object, then delete the old object when it lived in our bucket. References are
handled one at a time in scan order. A failure is recorded on the outcome and the
batch moves on; only missing configuration stops a run.
"""

from collections.abc import Iterable

import structlog

from src.config import Settings
from src.core.exceptions import NotionError
from src.schemas.assets import ImageReference, MirrorOutcome, MirrorStats, MirrorStatus, OptimizeProfile
from src.schemas.notion import NotionPage
from src.services.collections import COLLECTIONS, Collection, scan_page
from src.services.content_updater import ContentReferenceUpdater
from src.services.image_optimizer import THUMBNAIL_PROFILE, optimize_with_profile
from src.services.notion_client import NotionClient
from src.services.object_storage import ObjectStorage

logger = structlog.get_logger()


class ImageMirror:
    def __init__(self, storage: ObjectStorage, updater: ContentReferenceUpdater) -> None:
        self.storage = storage
        self.updater = updater

    async def mirror_reference(
        self, reference: ImageReference, profile: OptimizeProfile = THUMBNAIL_PROFILE
    ) -> MirrorOutcome:
        url = reference.source_url
        log = logger.bind(page_id=reference.owner_document_id, field=reference.field_name, url=url[:120])

        classification = self.storage.classify(url)
        if classification.is_already_optimized:
            log.info("mirror_skipped", reason="already_optimized")
            return MirrorOutcome(reference, MirrorStatus.SKIPPED_ALREADY_OPTIMIZED, new_url=url)
        if not classification.needs_mirroring:
            log.info("mirror_skipped", reason="not_mirrorable")
            return MirrorOutcome(reference, MirrorStatus.SKIPPED_IRRELEVANT)

        raw = await self.storage.download(url)
        if raw is None:
            log.warning("mirror_skipped", reason="download_failed")
            return MirrorOutcome(reference, MirrorStatus.SKIPPED_FAILED, error="Failed to download image")

        stage = "optimize"
        try:
            optimized = optimize_with_profile(raw.buffer, profile)
            stage = "upload"
            stored = await self.storage.upload_optimized(optimized)
            stage = "update_reference"
            await self.updater.update_reference(
                reference.owner_document_id, reference.field_kind, reference.field_name, stored.public_url
            )
        except Exception as e:
            log.error("mirror_failed", stage=stage, error=str(e))
            return MirrorOutcome(reference, MirrorStatus.ERRORED, error=str(e))

        if classification.is_own_bucket and stored.public_url != url:
            await self._cleanup(url)

        log.info(
            "mirror_processed",
            new_url=stored.public_url,
            original_size=raw.byte_size,
            optimized_size=optimized.optimized_size,
            savings=round(optimized.savings_percent, 1),
        )
        return MirrorOutcome(
            reference,
            MirrorStatus.PROCESSED,
            new_url=stored.public_url,
            original_size=raw.byte_size,
            optimized_size=optimized.optimized_size,
        )

    async def _cleanup(self, old_url: str) -> None:
        try:
            deleted = await self.storage.delete(old_url)
        except Exception as e:
            logger.warning("old_object_cleanup_failed", url=old_url[:120], error=str(e))
            return
        if deleted:
            logger.info("old_object_deleted", url=old_url[:120])

    async def mirror_document(self, page: NotionPage, collection: Collection) -> list[MirrorOutcome]:
        outcomes = []
        for reference, profile in scan_page(page, collection):
            outcomes.append(await self.mirror_reference(reference, profile))
        return outcomes

    async def run_collection(
        self,
        notion: NotionClient,
        collection: Collection,
        database_id: str,
        stats: MirrorStats | None = None,
    ) -> MirrorStats:
        stats = stats if stats is not None else MirrorStats()
        logger.info("collection_started", collection=collection.name)
        count = 0
        async for page in notion.iter_database(database_id, sorts=collection.sorts):
            count += 1
            logger.info("document_started", collection=collection.name, title=collection.title_of(page))
            for outcome in await self.mirror_document(page, collection):
                stats.record(outcome)
        logger.info("collection_finished", collection=collection.name, documents=count)
        return stats


def resolve_collections(names: Iterable[str]) -> list[Collection]:
    collections = []
    for name in names:
        if name not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {name}")
        collections.append(COLLECTIONS[name])
    return collections


async def run_mirror(settings: Settings, collection_names: Iterable[str]) -> MirrorStats:
    collections = resolve_collections(collection_names)
    storage = ObjectStorage.from_settings(settings)
    notion = NotionClient.from_settings(settings)
    mirror = ImageMirror(storage, ContentReferenceUpdater(notion))
    stats = MirrorStats()
    try:
        for collection in collections:
            database_id = collection.database_id(settings)
            if not database_id:
                logger.warning("collection_not_configured", collection=collection.name)
                continue
            try:
                await mirror.run_collection(notion, collection, database_id, stats)
            except NotionError as e:
                logger.error("collection_query_failed", collection=collection.name, error=str(e))
    finally:
        await storage.close()
        await notion.aclose()
    return stats
