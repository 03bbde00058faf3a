import abc
import os
from typing import IO, Any, Iterator, List, Optional, Union


class ArchiveEntry:
    """An entry read from an archive stream."""

    def __init__(
        self,
        source: "EntrySource",
        name: str,
        is_directory: bool,
        size: int,
        member: Any = None,
    ) -> None:
        self._source = source
        self._member = member
        self.name = name
        self.is_directory = is_directory
        self.size = size

    def open(self) -> IO[bytes]:
        """Open the content of this entry for binary reading."""
        if self.is_directory:
            raise IsADirectoryError(self.name)

        return self._source.open_member(self._member)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.name!r})>"


class EntrySink(abc.ABC):
    """
    An entry-oriented archive writer.

    Entries are written one after another:
    ``begin_entry`` announces an entry, ``write`` appends to its content
    and ``end_entry`` finalizes it before the next one may begin.
    """

    # Format names this sink is registered for
    _formats: List[str] = []

    def __init__(self, fileobj: IO[bytes]) -> None:
        self.fileobj = fileobj
        self._in_entry = False

    @abc.abstractmethod
    def begin_entry(
        self,
        name: str,
        is_directory: bool,
        source: Optional[Union[str, os.PathLike]] = None,
    ) -> None:
        """
        Start a new entry.

        `source` is the filesystem path whose metadata (mode, mtime, size) is stored with the entry.
        """
        ...

    @abc.abstractmethod
    def write(self, data: bytes) -> int:
        """Append data to the current entry."""
        ...

    @abc.abstractmethod
    def end_entry(self) -> None:
        """Finalize the current entry."""
        ...

    def flush(self) -> None:
        self.fileobj.flush()

    @abc.abstractmethod
    def close(self) -> None:
        """Finish the archive. The underlying file stays open, it belongs to the caller."""
        ...

    def _check_entry(self, expected: bool) -> None:
        if self._in_entry != expected:
            if expected:
                raise ValueError("No entry was started")
            raise ValueError("The current entry was not finalized")

    def __enter__(self):
        return self

    def __exit__(self, *_, **__):
        self.close()


class EntrySource(abc.ABC):
    """An entry-oriented archive reader that yields entries in stream order."""

    def __init__(self, fileobj: IO[bytes]) -> None:
        self.fileobj = fileobj

    @staticmethod
    def is_readable(fileobj: IO[bytes]) -> bool:
        """Static method to determine if a subclass can read a certain stream."""
        raise NotImplementedError()  # pragma: no cover

    @abc.abstractmethod
    def next_entry(self) -> Optional[ArchiveEntry]:
        """Return the next entry or None if the stream is exhausted."""
        ...

    @abc.abstractmethod
    def open_member(self, member: Any) -> IO[bytes]:
        ...

    @abc.abstractmethod
    def close(self) -> None:
        ...

    def __iter__(self) -> Iterator[ArchiveEntry]:
        while True:
            entry = self.next_entry()
            if entry is None:
                return
            yield entry

    def __enter__(self):
        return self

    def __exit__(self, *_, **__):
        self.close()
