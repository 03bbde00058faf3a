import logging
import os
import stat
import time
import zipfile
import zlib
from typing import IO, Iterator, Optional, Union

from .abc import ArchiveEntry, EntrySink, EntrySource

logger = logging.getLogger(__name__)

CODEC_ERRORS = (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error)


class ZipEntrySink(EntrySink):
    """An EntrySink for writing ZIP (and JAR) archives."""

    _formats = ["zip", "jar"]

    def __init__(
        self,
        fileobj: IO[bytes],
        *,
        compress_hint=True,
        spool_max_size: Optional[int] = None,
    ) -> None:
        # Entries are streamed directly into the archive, nothing to spool
        del spool_max_size

        super().__init__(fileobj)
        self.compress_type = zipfile.ZIP_DEFLATED if compress_hint else zipfile.ZIP_STORED
        self._zipfile = zipfile.ZipFile(fileobj, "w")
        self._stream: Optional[IO[bytes]] = None

    def begin_entry(
        self,
        name: str,
        is_directory: bool,
        source: Optional[Union[str, os.PathLike]] = None,
    ) -> None:
        self._check_entry(False)

        if is_directory and not name.endswith("/"):
            name += "/"

        if source is not None:
            zip_info = zipfile.ZipInfo.from_file(source, arcname=name, strict_timestamps=False)
        else:
            zip_info = zipfile.ZipInfo(name, date_time=time.localtime(time.time())[:6])
            if is_directory:
                zip_info.external_attr = 0o40775 << 16  # drwxrwxr-x
                zip_info.external_attr |= 0x10  # MS-DOS directory flag
            else:
                zip_info.external_attr = 0o644 << 16

        self._in_entry = True

        if is_directory:
            self._zipfile.writestr(zip_info, b"")
            return

        zip_info.compress_type = self.compress_type

        # Without a source the final size is unknown
        self._stream = self._zipfile.open(zip_info, "w", force_zip64=source is None)

    def write(self, data: bytes) -> int:
        self._check_entry(True)

        if self._stream is None:
            raise ValueError("Directory entries carry no content")

        return self._stream.write(data)

    def end_entry(self) -> None:
        self._check_entry(True)

        stream, self._stream, self._in_entry = self._stream, None, False

        if stream is not None:
            stream.close()

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        self._zipfile.close()


class ZipEntrySource(EntrySource):
    """An EntrySource for reading ZIP archives in central directory order."""

    @staticmethod
    def is_readable(fileobj: IO[bytes]) -> bool:
        pos = fileobj.tell()
        try:
            return zipfile.is_zipfile(fileobj)
        finally:
            fileobj.seek(pos)

    def __init__(self, fileobj: IO[bytes]) -> None:
        super().__init__(fileobj)
        self._zipfile = zipfile.ZipFile(fileobj, "r")
        self._members: Iterator[zipfile.ZipInfo] = iter(self._zipfile.infolist())

    def next_entry(self) -> Optional[ArchiveEntry]:
        for zip_info in self._members:
            # Unix file type is stored in the upper 16 bits
            if stat.S_ISLNK(zip_info.external_attr >> 16):
                logger.warning("Skipping %s: not a regular file or directory", zip_info.filename)
                continue

            return ArchiveEntry(
                self, zip_info.filename, zip_info.is_dir(), zip_info.file_size, zip_info
            )

        return None

    def open_member(self, member: zipfile.ZipInfo) -> IO[bytes]:
        try:
            return self._zipfile.open(member, "r")
        except (NotImplementedError, RuntimeError) as exc:
            # Unsupported compression methods and encrypted entries
            raise zipfile.BadZipFile(f"Can not read {member.filename}: {exc}") from exc

    def close(self) -> None:
        self._zipfile.close()
