from typing import IO, List

from . import tar, zip
from .abc import EntrySink, EntrySource
from .errors import UnknownArchiveError
from .pathutil import COPY_BUFSIZE

# Exceptions raised by the archive codecs that are reported as ArchiverError
CODEC_ERRORS = (UnknownArchiveError,) + tar.CODEC_ERRORS + zip.CODEC_ERRORS


class ArchiveStreamFactory:
    """
    Creates entry sinks and sources for the registered archive formats.

    Sinks are looked up by format name, sources by probing the stream header.
    An ArchiveStreamFactory only holds configuration and can be shared.

    Args:
        compress_hint: Compress entries individually where the format supports it (ZIP).
        bufsize: Chunk size for copying entry contents.
        spool_max_size: In-memory limit for entries that have to be buffered (TAR).
    """

    def __init__(
        self,
        *,
        compress_hint=True,
        bufsize: int = COPY_BUFSIZE,
        spool_max_size: int = tar.SPOOL_MAX_SIZE,
    ) -> None:
        self.compress_hint = compress_hint
        self.bufsize = bufsize
        self.spool_max_size = spool_max_size

    @property
    def output_formats(self) -> List[str]:
        return sorted(fmt for subclass in EntrySink.__subclasses__() for fmt in subclass._formats)

    def create_output_sink(self, archiver_name: str, fileobj: IO[bytes]) -> EntrySink:
        for subclass in EntrySink.__subclasses__():
            if archiver_name in subclass._formats:
                return subclass(
                    fileobj,
                    compress_hint=self.compress_hint,
                    spool_max_size=self.spool_max_size,
                )

        raise UnknownArchiveError(f"No handler found to write {archiver_name!r} archives")

    def create_input_source(self, fileobj: IO[bytes]) -> EntrySource:
        for subclass in EntrySource.__subclasses__():
            if subclass.is_readable(fileobj):
                return subclass(fileobj)

        raise UnknownArchiveError(f"No handler found to read {getattr(fileobj, 'name', fileobj)}")

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(compress_hint={self.compress_hint!r}, "
            f"bufsize={self.bufsize!r}, spool_max_size={self.spool_max_size!r})"
        )
