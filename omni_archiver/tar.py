import logging
import lzma
import os
import tarfile
import tempfile
import time
from typing import IO, Optional, Union

from .abc import ArchiveEntry, EntrySink, EntrySource

logger = logging.getLogger(__name__)

# Truncated or corrupt gzip, bz2 and xz streams surface from the decompressors
CODEC_ERRORS = (tarfile.TarError, EOFError, lzma.LZMAError)

# Entry content up to this size is buffered in memory, larger entries spill to disk.
SPOOL_MAX_SIZE = 16 * 1024 * 1024


class TarEntrySink(EntrySink):
    """
    An EntrySink for writing TAR archives.

    A TAR header carries the size of the entry, so the content of an entry is
    spooled until ``end_entry`` and then appended to the archive in one go.
    """

    _formats = ["tar"]

    def __init__(
        self,
        fileobj: IO[bytes],
        *,
        compress_hint=True,
        spool_max_size: int = SPOOL_MAX_SIZE,
    ) -> None:
        # tar does not compress files individually
        del compress_hint

        super().__init__(fileobj)
        self.spool_max_size = spool_max_size
        self._tarfile = tarfile.open(fileobj=fileobj, mode="w", dereference=True)
        self._tar_info: Optional[tarfile.TarInfo] = None
        self._buffer: Optional[IO[bytes]] = None

    def begin_entry(
        self,
        name: str,
        is_directory: bool,
        source: Optional[Union[str, os.PathLike]] = None,
    ) -> None:
        self._check_entry(False)

        tar_info = None
        if source is not None:
            tar_info = self._tarfile.gettarinfo(os.fspath(source), arcname=name)

        # gettarinfo returns None for sockets and other unsupported types
        if tar_info is None:
            tar_info = tarfile.TarInfo(name)
            tar_info.mtime = int(time.time())
            tar_info.mode = 0o755 if is_directory else 0o644

        if is_directory:
            tar_info.type = tarfile.DIRTYPE
            tar_info.size = 0
        else:
            tar_info.type = tarfile.REGTYPE
            self._buffer = tempfile.SpooledTemporaryFile(max_size=self.spool_max_size)

        self._tar_info = tar_info
        self._in_entry = True

    def write(self, data: bytes) -> int:
        self._check_entry(True)

        if self._buffer is None:
            raise ValueError(f"Directory entry {self._tar_info.name} carries no content")

        return self._buffer.write(data)

    def end_entry(self) -> None:
        self._check_entry(True)

        tar_info, buffer = self._tar_info, self._buffer
        self._tar_info, self._buffer, self._in_entry = None, None, False

        if buffer is None:
            self._tarfile.addfile(tar_info)
            return

        with buffer:
            # The content may differ from what was stat'ed in begin_entry
            tar_info.size = buffer.tell()
            buffer.seek(0)
            self._tarfile.addfile(tar_info, fileobj=buffer)

    def close(self) -> None:
        if self._buffer is not None:
            self._buffer.close()
            self._buffer = None
        self._tarfile.close()


class TarEntrySource(EntrySource):
    """An EntrySource for reading (optionally gzip, bz2 or xz compressed) TAR archives."""

    @staticmethod
    def is_readable(fileobj: IO[bytes]) -> bool:
        pos = fileobj.tell()
        try:
            return tarfile.is_tarfile(fileobj)
        finally:
            fileobj.seek(pos)

    def __init__(self, fileobj: IO[bytes]) -> None:
        super().__init__(fileobj)
        self._tarfile = tarfile.open(fileobj=fileobj, mode="r:*")

    def next_entry(self) -> Optional[ArchiveEntry]:
        while True:
            tar_info = self._tarfile.next()

            if tar_info is None:
                return None

            if tar_info.isdir():
                return ArchiveEntry(self, tar_info.name + "/", True, 0, tar_info)

            if tar_info.isfile():
                return ArchiveEntry(self, tar_info.name, False, tar_info.size, tar_info)

            logger.warning("Skipping %s: not a regular file or directory", tar_info.name)

    def open_member(self, member: tarfile.TarInfo) -> IO[bytes]:
        stream = self._tarfile.extractfile(member)

        if stream is None:
            raise IOError(f"There's no data associated with {member.name}")

        return stream

    def close(self) -> None:
        self._tarfile.close()
