import structlog
from resilient_httpx import AsyncProxyHttpClient, RetryPolicy

from src.config import Settings
from src.schemas.assets import RawAsset
from src.services.url_classifier import ensure_scheme

logger = structlog.get_logger()

DEFAULT_CONTENT_TYPE = "image/jpeg"
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


def build_http_client(settings: Settings) -> AsyncProxyHttpClient:
    return AsyncProxyHttpClient(
        proxies=settings.proxies or None,
        proxy_strategy=settings.proxy_strategy,
        retry=RetryPolicy(max_attempts=settings.fetch_max_retries),
        timeout=settings.fetch_timeout,
        headers={"User-Agent": USER_AGENT},
        fallback_to_direct=True,
    )


class HttpImageFetcher:
    """Downloads images from arbitrary http(s) URLs, e.g. Notion's signed S3 links."""

    def __init__(self, client: AsyncProxyHttpClient, max_bytes: int) -> None:
        self._client = client
        self.max_bytes = max_bytes

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpImageFetcher":
        return cls(build_http_client(settings), settings.max_fetch_bytes)

    async def fetch(self, url: str) -> RawAsset | None:
        url = ensure_scheme(url)
        chunks: list[bytes] = []
        received = 0
        try:
            async with self._client.stream("GET", url) as response:
                response.raise_for_status()
                content_length = response.headers.get("Content-Length")
                if content_length and int(content_length) > self.max_bytes:
                    logger.warning("image_fetch_too_large", url=url[:120], size=int(content_length))
                    return None
                content_type = response.headers.get("Content-Type") or DEFAULT_CONTENT_TYPE
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > self.max_bytes:
                        logger.warning("image_fetch_too_large", url=url[:120], size=received)
                        return None
                    chunks.append(chunk)
        except Exception as e:
            logger.error("image_fetch_failed", url=url[:120], error=str(e))
            return None

        content_type = content_type.split(";")[0].strip().lower()
        return RawAsset(buffer=b"".join(chunks), content_type=content_type, byte_size=received)

    async def aclose(self) -> None:
        await self._client.aclose()
