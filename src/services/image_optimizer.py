import re
from io import BytesIO
from typing import Any

import structlog
from PIL import Image, UnidentifiedImageError

from src.core.exceptions import ImageProcessingError
from src.schemas.assets import OptimizedAsset, OptimizeProfile

logger = structlog.get_logger()

THUMBNAIL_PROFILE = OptimizeProfile(name="thumbnail", max_dimension=80, quality=90)
FULL_IMAGE_PROFILE = OptimizeProfile(name="full", max_dimension=4000, quality=90)

PROFILES = {profile.name: profile for profile in (THUMBNAIL_PROFILE, FULL_IMAGE_PROFILE)}

SUPPORTED_FORMATS = {"jpeg", "png", "webp", "gif"}

_SVG_TAG_RE = re.compile(rb"<svg\b[^>]*>", re.IGNORECASE | re.DOTALL)
_SVG_ATTR_RE = re.compile(rb"""\b(width|height|viewBox)\s*=\s*["']([^"']*)["']""", re.IGNORECASE)
_LEADING_NUMBER_RE = re.compile(r"^\s*([0-9]*\.?[0-9]+)")


def is_svg(buffer: bytes) -> bool:
    head = buffer[:1024].lstrip(b"\xef\xbb\xbf \t\r\n").lower()
    if head.startswith(b"<svg"):
        return True
    if head.startswith((b"<?xml", b"<!doctype svg", b"<!--")):
        return b"<svg" in buffer[:4096].lower()
    return False


def _parse_length(value: bytes) -> int:
    match = _LEADING_NUMBER_RE.match(value.decode("ascii", errors="ignore"))
    if not match:
        return 0
    return round(float(match.group(1)))


def svg_dimensions(buffer: bytes) -> tuple[int, int]:
    tag = _SVG_TAG_RE.search(buffer)
    if not tag:
        return 0, 0
    attrs = {name.lower(): value for name, value in _SVG_ATTR_RE.findall(tag.group(0))}
    width = _parse_length(attrs.get(b"width", b""))
    height = _parse_length(attrs.get(b"height", b""))
    if (not width or not height) and b"viewbox" in attrs:
        parts = attrs[b"viewbox"].replace(b",", b" ").split()
        if len(parts) == 4:
            width = width or _parse_length(parts[2])
            height = height or _parse_length(parts[3])
    return width, height


def fit_within(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Scale down to fit a ``max_dimension`` square, keeping the aspect ratio. Never upscales."""
    if width <= max_dimension and height <= max_dimension:
        return width, height
    if width >= height:
        return max_dimension, max(1, round(height * max_dimension / width))
    return max(1, round(width * max_dimension / height)), max_dimension


def _save_options(fmt: str, quality: int, img: Image.Image) -> dict[str, Any]:
    options: dict[str, Any]
    if fmt == "png":
        options = {"optimize": True, "compress_level": 9}
    elif fmt == "jpeg":
        options = {"quality": quality, "optimize": True, "progressive": True}
    elif fmt == "webp":
        options = {"quality": quality, "method": 6}
    else:
        options = {"optimize": True}
    icc_profile = img.info.get("icc_profile")
    if icc_profile and fmt != "gif":
        options["icc_profile"] = icc_profile
    return options


def optimize_image(buffer: bytes, max_dimension: int = 80, quality: int = 90) -> OptimizedAsset:
    original_size = len(buffer)

    if is_svg(buffer):
        width, height = svg_dimensions(buffer)
        return OptimizedAsset(
            buffer=buffer,
            format="svg",
            width=width,
            height=height,
            original_size=original_size,
            optimized_size=original_size,
            savings_percent=0.0,
        )

    try:
        img: Image.Image = Image.open(BytesIO(buffer))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageProcessingError(f"Cannot decode image: {e}") from e

    fmt = (img.format or "").lower()
    if fmt not in SUPPORTED_FORMATS:
        raise ImageProcessingError(f"Unsupported image format: {fmt or 'unknown'}")

    width, height = img.size
    new_width, new_height = fit_within(width, height, max_dimension)
    if (new_width, new_height) != (width, height):
        try:
            # palette and bilevel images only resample with NEAREST
            if img.mode == "P":
                img = img.convert("RGBA")
            elif img.mode == "1":
                img = img.convert("L")
            img = img.resize((new_width, new_height), Image.Resampling.LANCZOS)
        except (OSError, ValueError) as e:
            raise ImageProcessingError(f"Cannot resize {fmt} image: {e}") from e

    output = BytesIO()
    try:
        img.save(output, format=fmt.upper(), **_save_options(fmt, quality, img))
    except (OSError, ValueError) as e:
        raise ImageProcessingError(f"Cannot encode {fmt} image: {e}") from e

    optimized = output.getvalue()
    savings = (1 - len(optimized) / original_size) * 100 if original_size > 0 else 0.0
    logger.debug(
        "image_optimized",
        format=fmt,
        original=f"{width}x{height}",
        optimized=f"{img.size[0]}x{img.size[1]}",
        original_size=original_size,
        optimized_size=len(optimized),
    )
    return OptimizedAsset(
        buffer=optimized,
        format=fmt,
        width=img.size[0],
        height=img.size[1],
        original_size=original_size,
        optimized_size=len(optimized),
        savings_percent=savings,
    )


def optimize_with_profile(buffer: bytes, profile: OptimizeProfile) -> OptimizedAsset:
    return optimize_image(buffer, max_dimension=profile.max_dimension, quality=profile.quality)
