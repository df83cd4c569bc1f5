"""Writes downloaded media to a uniquely named transient file."""

import asyncio
import itertools
import logging
import os
import time
from collections.abc import AsyncIterable, AsyncIterator
from contextlib import asynccontextmanager

from .exceptions import StageWriteError, UnsupportedSource
from .models import StagedMedia

logger = logging.getLogger(__name__)

_counter = itertools.count()


def unique_media_path(directory: str, suffix: str = "") -> str:
    """Builds a file name no other request in this process can collide with."""
    name = f"media-{os.getpid()}-{time.monotonic_ns()}-{next(_counter)}{suffix}"
    return os.path.join(directory, name)


class StagedMediaHandle:
    """Owns a staged file and deletes it at most once."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.released = False

    def release(self) -> None:
        """Removes the staged file. A missing file is not an error."""
        if self.released:
            return
        self.released = True
        try:
            os.remove(self.path)
            logger.info("Staged media removed", extra={"path": self.path})
        except FileNotFoundError:
            pass


class MediaStager:
    """Stages media streams under ``directory`` for the duration of a request."""

    def __init__(self, directory: str) -> None:
        self.directory = directory

    @asynccontextmanager
    async def stage(self, chunks: AsyncIterable[bytes], suffix: str = "") -> AsyncIterator[StagedMedia]:
        """
        Writes ``chunks`` to disk and yields the staged file.

        The file is removed when the block exits, however it exits.

        Raises:
            StageWriteError: If the file cannot be written.
            UnsupportedSource: If the stream carried no bytes at all.
        """
        handle = StagedMediaHandle(unique_media_path(self.directory, suffix))
        try:
            size = 0
            try:
                with open(handle.path, "wb") as f:
                    async for chunk in chunks:
                        await asyncio.to_thread(f.write, chunk)
                        size += len(chunk)
            except OSError as e:
                logger.exception("Failed to stage media", extra={"path": handle.path})
                raise StageWriteError(handle.path, e) from e

            if size == 0:
                raise UnsupportedSource(getattr(chunks, "source_url", handle.path))

            logger.info("Media staged", extra={"path": handle.path, "size_bytes": size})
            yield StagedMedia(path=handle.path, size_bytes=size)
        finally:
            handle.release()
