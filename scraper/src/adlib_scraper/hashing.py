"""Deterministic keys and image fingerprints for cached creatives."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import date
from io import BytesIO
from typing import Any, Literal, Union, cast

from PIL import Image, UnidentifiedImageError

from .urls import strip_query

CACHE_KEY_CHARS = 32
DERIVED_ID_CHARS = 20
DERIVED_PREFIX = "derived_"

LanczosType = Union[Any, Literal[0, 1, 2, 3, 4, 5]]


def _lanczos_filter() -> LanczosType:
    resampling: Any = getattr(Image, "Resampling", None)
    if resampling is not None:
        return cast(LanczosType, getattr(resampling, "LANCZOS"))
    return cast(LanczosType, getattr(Image, "LANCZOS"))


def sha256_hex(value: str | bytes) -> str:
    data = value.encode("utf-8") if isinstance(value, str) else value
    return hashlib.sha256(data).hexdigest()


def cache_key(identity: str, origin_url: str) -> str:
    """Content address of one (ad, origin URL) pair."""

    return sha256_hex(f"{identity}\n{origin_url}")[:CACHE_KEY_CHARS]


def derived_identity(advertiser: str, creative_url: str | None, discovered_on: date) -> str:
    """Stable identity for cards that expose no library id.

    The creative query string is dropped because CDN URLs carry rotating
    signatures that would otherwise change the identity on every render.
    """

    parts = [advertiser.strip().lower(), strip_query(creative_url or ""), discovered_on.isoformat()]
    return DERIVED_PREFIX + sha256_hex("|".join(parts))[:DERIVED_ID_CHARS]


@dataclass(frozen=True, slots=True)
class ImageFingerprint:
    sha256: str
    phash: str
    width: int
    height: int


def fingerprint_image(body: bytes) -> ImageFingerprint | None:
    """Decode ``body`` with Pillow; None when it is not a readable image."""

    try:
        with Image.open(BytesIO(body)) as im:
            im.load()
            width, height = im.size
            ah = im.convert("L").resize((8, 8), resample=_lanczos_filter())
            pixels = list(ah.getdata())
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        return None
    avg = sum(pixels) / len(pixels)
    bits = "".join("1" if p > avg else "0" for p in pixels)
    return ImageFingerprint(sha256=sha256_hex(body), phash=f"{int(bits, 2):016x}", width=width, height=height)


__all__ = [
    "CACHE_KEY_CHARS",
    "DERIVED_PREFIX",
    "ImageFingerprint",
    "cache_key",
    "derived_identity",
    "fingerprint_image",
    "sha256_hex",
]
