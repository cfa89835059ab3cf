"""On-disk layout of the media cache."""

from __future__ import annotations

import os
import tempfile
import time
import urllib.parse
from pathlib import Path

from .logging import jlog

IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "avif"}
MEDIA_KINDS = ("image", "video")


def infer_extension(origin_url: str, kind: str) -> str:
    if kind == "video":
        return "mp4"
    suffix = Path(urllib.parse.urlparse(origin_url).path).suffix.lower().lstrip(".")
    return suffix if suffix in IMAGE_EXTENSIONS else "jpg"


def media_relative_path(kind: str, key: str, ext: str) -> str:
    """``<kind>/<key[:2]>/<key>.<ext>``, shared by the disk path and the public path."""

    assert kind in MEDIA_KINDS, f"unknown media kind {kind!r}"
    return f"{kind}/{key[:2]}/{key}.{ext}"


def media_file_path(media_dir: str | os.PathLike[str], kind: str, key: str, ext: str) -> Path:
    return Path(media_dir) / media_relative_path(kind, key, ext)


def media_public_path(kind: str, key: str, ext: str, prefix: str = "/media") -> str:
    return f"{prefix.rstrip('/')}/{media_relative_path(kind, key, ext)}"


def write_atomic(path: Path, body: bytes) -> None:
    """Write ``body`` to ``path`` through a sibling temp file and ``os.replace``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".part")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(body)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
        raise


def prune_media(media_dir: str | os.PathLike[str], max_age_days: float = 30, *, now: float | None = None) -> int:
    """Delete cached files older than ``max_age_days``; return how many were removed."""

    root = Path(media_dir)
    cutoff = (now if now is not None else time.time()) - max_age_days * 86400
    removed = 0
    for kind in MEDIA_KINDS:
        base = root / kind
        if not base.is_dir():
            continue
        for path in base.rglob("*"):
            if not path.is_file():
                continue
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except OSError as exc:
                jlog("warning", event="media_prune_error", path=str(path), error=str(exc))
    jlog("info", event="media_pruned", media_dir=str(root), removed=removed, max_age_days=max_age_days)
    return removed


__all__ = [
    "IMAGE_EXTENSIONS",
    "MEDIA_KINDS",
    "infer_extension",
    "media_file_path",
    "media_public_path",
    "media_relative_path",
    "prune_media",
    "write_atomic",
]
