import asyncio
import contextlib
import hashlib
from typing import Any

import aioboto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from src.config import Settings
from src.core.exceptions import ConfigurationError, StorageError
from src.schemas.assets import OptimizedAsset, RawAsset, StoredObject, UrlClassification
from src.services.image_fetcher import HttpImageFetcher
from src.services.url_classifier import UrlClassifier, key_under_base, parse_store_url

logger = structlog.get_logger()

CACHE_CONTROL = "public, max-age=31536000, immutable"
PUBLIC_READ_ACL = "public-read"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_EXTENSION = ".jpg"

EXT_TO_CONTENT_TYPE = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "pdf": "application/pdf",
}

CONTENT_TYPE_TO_EXT = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
    "application/pdf": ".pdf",
}

FORMAT_TO_CONTENT_TYPE = {
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
}


def content_type_for_path(path: str) -> str:
    filename = path.rsplit("/", 1)[-1]
    if "." not in filename:
        return DEFAULT_CONTENT_TYPE
    ext = filename.rsplit(".", 1)[-1].lower()
    return EXT_TO_CONTENT_TYPE.get(ext, DEFAULT_CONTENT_TYPE)


def extension_for_content_type(content_type: str) -> str:
    return CONTENT_TYPE_TO_EXT.get(content_type.split(";")[0].strip().lower(), DEFAULT_EXTENSION)


def content_type_for_format(fmt: str) -> str:
    return FORMAT_TO_CONTENT_TYPE.get(fmt.lower(), f"image/{fmt.lower()}")


class ObjectStorage:
    """Gateway to the COS bucket through its S3-compatible API.

    The aioboto3 client is opened by :meth:`ensure_ready` on first use and kept
    for the lifetime of the gateway; call :meth:`close` when the run is over.
    Keys are content addressed, so an object at a given key never changes.
    """

    def __init__(
        self,
        bucket: str,
        region: str,
        secret_id: str,
        secret_key: str,
        public_url: str,
        fetcher: HttpImageFetcher,
        *,
        service: str = "cos",
        domain: str = "myqcloud.com",
        endpoint_url: str | None = None,
        optimized_namespace: str = "notion-images",
        foreign_hosts: list[str] | None = None,
    ) -> None:
        self.bucket = bucket
        self.region = region
        self.public_url = public_url.rstrip("/")
        self.service = service
        self.domain = domain
        self.endpoint_url = endpoint_url
        self.optimized_namespace = optimized_namespace
        self.fetcher = fetcher
        self.classifier = UrlClassifier(
            public_url=self.public_url,
            service=service,
            domain=domain,
            optimized_namespace=optimized_namespace,
            foreign_hosts=foreign_hosts if foreign_hosts is not None else ["amazonaws.com", "notion-static.com"],
        )
        self._secret_id = secret_id
        self._secret_key = secret_key
        self._session: Any = None
        self._client: Any = None
        self._exit_stack: contextlib.AsyncExitStack | None = None
        self._ready_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, fetcher: HttpImageFetcher | None = None) -> "ObjectStorage":
        missing = settings.missing_storage_settings
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")
        return cls(
            bucket=settings.cos_bucket or "",
            region=settings.cos_region or "",
            secret_id=settings.cos_secret_id or "",
            secret_key=settings.cos_secret_key or "",
            public_url=settings.storage_public_url,
            fetcher=fetcher or HttpImageFetcher.from_settings(settings),
            service=settings.cos_service,
            domain=settings.cos_domain,
            endpoint_url=settings.cos_endpoint_url,
            optimized_namespace=settings.optimized_namespace,
            foreign_hosts=settings.foreign_image_hosts,
        )

    @property
    def is_ready(self) -> bool:
        return self._client is not None

    def _endpoint_for(self, region: str) -> str:
        if self.endpoint_url and region == self.region:
            return self.endpoint_url
        return f"https://{self.service}.{region}.{self.domain}"

    def _client_kwargs(self, region: str) -> dict[str, Any]:
        return {
            "endpoint_url": self._endpoint_for(region),
            "region_name": region,
            "config": Config(s3={"addressing_style": "virtual"}),
        }

    async def ensure_ready(self) -> None:
        if self.is_ready:
            return
        async with self._ready_lock:
            if self.is_ready:
                return
            self._session = aioboto3.Session(
                aws_access_key_id=self._secret_id,
                aws_secret_access_key=self._secret_key,
                region_name=self.region,
            )
            self._exit_stack = contextlib.AsyncExitStack()
            self._client = await self._exit_stack.enter_async_context(
                self._session.client("s3", **self._client_kwargs(self.region))
            )
        logger.debug("object_storage_ready", bucket=self.bucket, region=self.region)

    async def close(self) -> None:
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
        self._exit_stack = None
        self._client = None
        await self.fetcher.aclose()

    def public_url_for(self, key: str) -> str:
        return f"{self.public_url}/{key}"

    def classify(self, url: str) -> UrlClassification:
        return self.classifier.classify(url)

    async def _get_object(self, bucket: str, region: str, key: str) -> bytes:
        await self.ensure_ready()
        if region == self.region:
            response = await self._client.get_object(Bucket=bucket, Key=key)
            return await response["Body"].read()
        async with self._session.client("s3", **self._client_kwargs(region)) as client:
            response = await client.get_object(Bucket=bucket, Key=key)
            return await response["Body"].read()

    async def download(self, url: str) -> RawAsset | None:
        location = parse_store_url(url, self.service, self.domain)
        if location is None:
            return await self.fetcher.fetch(url)

        try:
            data = await self._get_object(location.bucket, location.region, location.key)
        except Exception as e:
            logger.error("object_download_failed", bucket=location.bucket, key=location.key, error=str(e))
            return None
        return RawAsset(buffer=data, content_type=content_type_for_path(location.key), byte_size=len(data))

    async def upload(self, buffer: bytes, namespace: str, content_type: str | None = None) -> StoredObject:
        namespace = namespace.strip("/")
        content_hash = hashlib.sha256(buffer).hexdigest()
        extension = extension_for_content_type(content_type or content_type_for_path(namespace))
        key = f"{namespace}/{content_hash}{extension}"
        resolved_content_type = content_type or content_type_for_path(key)

        await self.ensure_ready()
        try:
            await self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=buffer,
                ContentType=resolved_content_type,
                ACL=PUBLIC_READ_ACL,
                CacheControl=CACHE_CONTROL,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to upload {key}: {e}") from e

        logger.info("object_uploaded", key=key, size=len(buffer))
        return StoredObject(
            public_url=self.public_url_for(key),
            key=key,
            content_hash=content_hash,
            byte_size=len(buffer),
        )

    async def upload_optimized(self, asset: OptimizedAsset) -> StoredObject:
        return await self.upload(asset.buffer, self.optimized_namespace, content_type_for_format(asset.format))

    async def delete(self, url: str) -> bool:
        key = key_under_base(url, self.public_url)
        if key is None:
            return False

        try:
            await self.ensure_ready()
            await self._client.delete_object(Bucket=self.bucket, Key=key)
        except Exception as e:
            logger.error("object_delete_failed", key=key, error=str(e))
            return False

        logger.info("object_deleted", key=key)
        return True
