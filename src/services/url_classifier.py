from dataclasses import dataclass
from urllib.parse import unquote, urlparse

from src.schemas.assets import UrlClassification

HEX_DIGITS = frozenset("0123456789abcdef")
SHA256_HEX_LENGTH = 64

NOTION_IMAGE_PROXY_HOST = "www.notion.so"
NOTION_IMAGE_PROXY_PATH = "/image"


@dataclass(frozen=True)
class StoreLocation:
    bucket: str
    region: str
    key: str


def ensure_scheme(url: str) -> str:
    if "://" in url:
        return url
    return f"https://{url.lstrip('/')}"


def _hostname(url: str) -> str:
    try:
        return (urlparse(ensure_scheme(url)).hostname or "").lower()
    except ValueError:
        return ""


def is_sha256_filename(segment: str) -> bool:
    stem = segment.split(".", 1)[0]
    return len(stem) == SHA256_HEX_LENGTH and all(ch in HEX_DIGITS for ch in stem)


def host_matches(host: str, domain: str) -> bool:
    domain = domain.lower()
    return host == domain or host.endswith(f".{domain}")


def parse_store_host(host: str, service: str, domain: str) -> tuple[str, str] | None:
    """Split ``<bucket>.<service>.<region>.<domain>`` into bucket and region."""
    suffix = f".{domain.lower()}"
    if not host.endswith(suffix):
        return None
    labels = host[: -len(suffix)].split(".")
    if len(labels) != 3 or labels[1] != service.lower() or not labels[0] or not labels[2]:
        return None
    return labels[0], labels[2]


def parse_store_url(url: str, service: str, domain: str) -> StoreLocation | None:
    try:
        parsed = urlparse(ensure_scheme(url))
    except ValueError:
        return None
    host = (parsed.hostname or "").lower()
    bucket_region = parse_store_host(host, service, domain)
    if bucket_region is None:
        return None
    key = unquote(parsed.path.lstrip("/"))
    if not key:
        return None
    bucket, region = bucket_region
    return StoreLocation(bucket=bucket, region=region, key=key)


def key_under_base(url: str, base_url: str) -> str | None:
    """Return the object key when ``url`` lives below ``base_url``, else ``None``."""
    try:
        parsed = urlparse(ensure_scheme(url))
        base = urlparse(base_url)
        parsed_port = parsed.port
        base_port = base.port
    except ValueError:
        return None
    if parsed.scheme.lower() != base.scheme.lower():
        return None
    if (parsed.hostname or "").lower() != (base.hostname or "").lower():
        return None
    if parsed_port != base_port:
        return None
    base_path = base.path.rstrip("/") + "/"
    if not parsed.path.startswith(base_path):
        return None
    key = unquote(parsed.path[len(base_path) :])
    return key or None


def is_foreign_candidate(url: str, foreign_hosts: list[str]) -> bool:
    host = _hostname(url)
    if not host:
        return False
    if any(host_matches(host, domain) for domain in foreign_hosts):
        return True
    if host == NOTION_IMAGE_PROXY_HOST:
        path = urlparse(ensure_scheme(url)).path
        return path == NOTION_IMAGE_PROXY_PATH or path.startswith(f"{NOTION_IMAGE_PROXY_PATH}/")
    return False


class UrlClassifier:
    def __init__(
        self,
        public_url: str,
        service: str,
        domain: str,
        optimized_namespace: str,
        foreign_hosts: list[str],
    ) -> None:
        self.public_url = public_url.rstrip("/")
        self.service = service
        self.domain = domain
        self.optimized_namespace = optimized_namespace
        self.foreign_hosts = foreign_hosts

    def own_bucket_key(self, url: str) -> str | None:
        key = key_under_base(url, self.public_url)
        if key is not None:
            return key
        location = parse_store_url(url, self.service, self.domain)
        if location is not None:
            return location.key
        return None

    def is_own_bucket(self, url: str) -> bool:
        if key_under_base(url, self.public_url) is not None:
            return True
        return parse_store_host(_hostname(url), self.service, self.domain) is not None

    def is_already_optimized(self, url: str) -> bool:
        key = self.own_bucket_key(url)
        if key is None:
            return False
        segments = key.split("/")
        return len(segments) == 2 and segments[0] == self.optimized_namespace and is_sha256_filename(segments[1])

    def classify(self, url: str) -> UrlClassification:
        return UrlClassification(
            is_own_bucket=self.is_own_bucket(url),
            is_already_optimized=self.is_already_optimized(url),
            is_foreign_candidate=is_foreign_candidate(url, self.foreign_hosts),
        )
