"""Gallery export: the download manifest and a streamed zip of it.

Photo names are not unique, so the manifest renames repeats in listing
order: ``a.jpg``, ``a_2.jpg``, ``a_3.jpg``. The zip archive uses exactly the
manifest names. Stored names are cut down to their last path component
first, so an archive never contains directories or parent references.
"""
import logging
import re
import zipfile
from collections.abc import AsyncIterator, Iterable

from galleria.models.gallery import Gallery
from galleria.models.photo import Photo
from galleria.schemas.photo import ExportEntry, ExportManifest
from galleria.services.storage import BlobStore
from galleria.services.uploads import safe_filename

logger = logging.getLogger(__name__)

_UNSAFE_ARCHIVE_CHARS = re.compile(r"[^a-zA-Z0-9_\-. ]")
DEFAULT_ENTRY_NAME = "photo"


def _split_name(name: str) -> tuple[str, str]:
    if "." not in name:
        return name, ""
    base, _, ext = name.rpartition(".")
    return base, f".{ext}"


def dedupe_names(names: Iterable[str]) -> list[str]:
    seen_counts: dict[str, int] = {}
    used: set[str] = set()
    result = []
    for name in names:
        count = seen_counts.get(name, 0) + 1
        candidate = name
        if count > 1 or name in used:
            base, ext = _split_name(name)
            count = max(count, 2)
            candidate = f"{base}_{count}{ext}"
            while candidate in used:
                count += 1
                candidate = f"{base}_{count}{ext}"
        seen_counts[name] = count
        used.add(candidate)
        result.append(candidate)
    return result


def entry_names(photos: list[Photo]) -> list[str]:
    return dedupe_names(safe_filename(p.original_name, DEFAULT_ENTRY_NAME) for p in photos)


def image_url(api_prefix: str, blob_key: str) -> str:
    return f"{api_prefix}/images/{blob_key}?variant=full"


def build_manifest(gallery: Gallery, photos: list[Photo], api_prefix: str) -> ExportManifest:
    names = entry_names(photos)
    return ExportManifest(
        gallery_name=gallery.name,
        photos=[
            ExportEntry(name=name, url=image_url(api_prefix, p.blob_key))
            for name, p in zip(names, photos)
        ],
    )


def archive_filename(gallery_name: str) -> str:
    return f"{_UNSAFE_ARCHIVE_CHARS.sub('_', gallery_name) or 'gallery'}.zip"


class _ChunkSink:
    """Write-only file object that hands written bytes back in batches."""

    def __init__(self) -> None:
        self._chunks: list[bytes] = []

    def write(self, data) -> int:
        self._chunks.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


async def stream_zip(photos: list[Photo], storage: BlobStore) -> AsyncIterator[bytes]:
    """Yield a zip archive of ``photos`` without holding it in memory.

    Entries are stored uncompressed (photos are already compressed) and each
    blob is copied chunk by chunk, so memory stays around one chunk. The
    sink is not seekable, so zipfile writes data descriptors after each entry.
    """
    names = entry_names(photos)
    sink = _ChunkSink()

    with zipfile.ZipFile(sink, mode="w", compression=zipfile.ZIP_STORED) as zf:
        for name, photo in zip(names, photos):
            blob = await storage.get(photo.blob_key)
            if blob is None:
                logger.warning("Skipping %s in export: blob %s is missing", name, photo.blob_key)
                continue
            with zf.open(name, mode="w", force_zip64=blob.size > zipfile.ZIP64_LIMIT) as entry:
                async for chunk in blob.iter_chunks():
                    entry.write(chunk)
                    if data := sink.drain():
                        yield data
            if data := sink.drain():
                yield data

    if data := sink.drain():
        yield data
