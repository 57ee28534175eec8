"""
File Backend Module

Durable backend storing one file per key in a directory. File names are
the hex encoding of the UTF-8 key, so any key maps to a safe name.
Blocking file I/O runs in worker threads.
"""

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from ..config.settings import settings
from .base import Backend

logger = logging.getLogger(__name__)


class FileBackend(Backend):
    """
    Directory-backed key-value backend.

    Writes are atomic: the value goes to a temporary file in the same
    directory which then replaces the target, so a reader sees either the
    old or the new value, never a partial one.

    Attributes:
        directory: Where value files are kept (created if missing)
    """

    def __init__(self, directory: Union[str, Path, None] = None):
        self.directory = Path(directory if directory is not None else settings.DATA_DIR)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        """Return the file holding ``key``'s value."""
        return self.directory / (key.encode("utf-8").hex() + settings.FILE_SUFFIX)

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)

    def keys(self) -> List[str]:
        """List the keys currently stored, sorted."""
        found = []
        for path in self.directory.glob("*" + settings.FILE_SUFFIX):
            try:
                found.append(bytes.fromhex(path.name[: -len(settings.FILE_SUFFIX)]).decode("utf-8"))
            except ValueError:
                logger.debug("Ignoring foreign file %s", path)
        return sorted(found)

    def _read(self, key: str) -> Optional[str]:
        try:
            return self.path_for(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write(self, key: str, value: str) -> None:
        target = self.path_for(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, target)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.debug("Wrote %d chars to %s", len(value), target.name)
