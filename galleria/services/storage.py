"""Blob storage for photo bytes."""
import asyncio
import hashlib
import logging
import mimetypes
import os
from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, AsyncIterator
from functools import lru_cache
from pathlib import Path, PurePosixPath
from stat import S_ISREG

from galleria.config import settings

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class BlobObject(ABC):
    """A stored blob, read lazily."""

    key: str
    size: int
    content_type: str
    etag: str

    @abstractmethod
    def iter_chunks(self, chunk_size: int | None = None) -> AsyncIterator[bytes]:
        pass

    async def read(self) -> bytes:
        return b"".join([chunk async for chunk in self.iter_chunks()])


class BlobStore(ABC):
    """Abstract base class for blob stores."""

    @abstractmethod
    async def put_stream(self, key: str, chunks: AsyncIterable[bytes]) -> int:
        """Write ``chunks`` under ``key`` as they arrive.

        Returns:
            Number of bytes written
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> BlobObject | None:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete ``key``. Deleting a missing key is not an error."""
        pass


class LocalBlobObject(BlobObject):
    def __init__(self, key: str, path: Path, stat: os.stat_result, chunk_size: int) -> None:
        self.key = key
        self.path = path
        self.size = stat.st_size
        self.content_type = mimetypes.guess_type(path.name)[0] or DEFAULT_CONTENT_TYPE
        self.etag = '"%s"' % hashlib.md5(f"{key}:{stat.st_size}:{stat.st_mtime_ns}".encode()).hexdigest()
        self._chunk_size = chunk_size

    async def iter_chunks(self, chunk_size: int | None = None) -> AsyncIterator[bytes]:
        size = chunk_size or self._chunk_size
        f = await asyncio.to_thread(open, self.path, "rb")
        try:
            while chunk := await asyncio.to_thread(f.read, size):
                yield chunk
        finally:
            await asyncio.to_thread(f.close)


class LocalBlobStore(BlobStore):
    """Local filesystem blob store rooted at ``base_dir``.

    File system calls run in worker threads so the event loop never waits on disk.
    """

    def __init__(self, base_dir: Path, chunk_size: int) -> None:
        self.base_dir = base_dir
        self.chunk_size = chunk_size

    def _path_for(self, key: str) -> Path:
        parts = PurePosixPath(key).parts
        if not parts or any(part in ("..", "/") for part in parts):
            raise ValueError(f"Invalid blob key: {key!r}")
        return self.base_dir.joinpath(*parts)

    async def put_stream(self, key: str, chunks: AsyncIterable[bytes]) -> int:
        path = self._path_for(key)
        await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)

        written = 0
        try:
            f = await asyncio.to_thread(open, path, "wb")
            try:
                async for chunk in chunks:
                    await asyncio.to_thread(f.write, chunk)
                    written += len(chunk)
            finally:
                await asyncio.to_thread(f.close)
        except BaseException:
            await asyncio.to_thread(path.unlink, missing_ok=True)
            raise

        logger.info("Stored blob %s (%d bytes)", key, written)
        return written

    async def get(self, key: str) -> BlobObject | None:
        try:
            path = self._path_for(key)
        except ValueError:
            return None
        try:
            stat = await asyncio.to_thread(path.stat)
        except FileNotFoundError:
            return None
        if not S_ISREG(stat.st_mode):
            return None
        return LocalBlobObject(key, path, stat, self.chunk_size)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._path_for(key).unlink, missing_ok=True)
        logger.info("Deleted blob %s", key)


@lru_cache
def get_blob_store() -> BlobStore:
    return LocalBlobStore(Path(settings.data_dir) / "blobs", settings.upload_chunk_size)
