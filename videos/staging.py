"""Materialize an inbound byte stream as a local temporary file."""
import logging
import os
import tempfile
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path

from .errors import PayloadTooLarge

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1 << 20


@dataclass(frozen=True)
class StagedFile:
    path: Path
    size: int

    def release(self) -> None:
        _remove(self.path)


def _remove(path) -> None:
    try:
        Path(path).unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove temp file %s", path, exc_info=True)


def _read_chunks(stream):
    # Django UploadedFile and plain file objects both expose read(size).
    while True:
        chunk = stream.read(CHUNK_SIZE)
        if not chunk:
            return
        yield chunk


def stage(stream, max_bytes: int, *, suffix: str = "", prefix: str = "upload-", directory=None) -> StagedFile:
    """
    Copy at most ``max_bytes`` from ``stream`` into a uniquely named temp file.

    Raises PayloadTooLarge as soon as the stream goes past the bound; the
    partial file is removed before the error propagates.
    """
    fd, name = tempfile.mkstemp(suffix=suffix, prefix=prefix, dir=directory)
    path = Path(name)
    written = 0
    try:
        with os.fdopen(fd, "wb") as out:
            for chunk in _read_chunks(stream):
                written += len(chunk)
                if written > max_bytes:
                    raise PayloadTooLarge(max_bytes)
                out.write(chunk)
    except BaseException:
        _remove(path)
        raise

    logger.info("Staged %d bytes to %s", written, path)
    return StagedFile(path=path, size=written)


class RunScope:
    """
    Every temp artifact a single run creates, released together on exit.

        with RunScope() as scope:
            staged = stage(...)
            scope.track(staged.path)
            ...

    Tracking the same path twice is harmless.
    """

    def __init__(self):
        self._stack = ExitStack()
        self._tracked: set[Path] = set()

    @property
    def tracked(self) -> frozenset:
        return frozenset(self._tracked)

    def track(self, *paths) -> None:
        for p in paths:
            p = Path(p)
            if p in self._tracked:
                continue
            self._tracked.add(p)
            self._stack.callback(_remove, p)

    def close(self) -> None:
        self._stack.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
        return False
