import logging
import os
import pathlib
from typing import IO, Iterable, Optional, Union

from .abc import ArchiveEntry, EntrySink, EntrySource
from .errors import ArchiverError, UnsafeEntryError
from .factory import CODEC_ERRORS, ArchiveStreamFactory
from .pathutil import copy_stream, relative_path, require_directory

logger = logging.getLogger(__name__)


class Archiver:
    """
    Creates and extracts archives of one format, independent of which format that is.

    The format is selected by name (e.g. "tar" or "zip"). The name is only resolved
    when an archive is actually written, so an Archiver for an unknown format can be
    constructed but fails on ``create``.

    An Archiver holds no state besides its format name and stream factory and can be
    reused for any number of ``create`` and ``extract`` calls.
    """

    def __init__(
        self, archiver_name: str, stream_factory: Optional[ArchiveStreamFactory] = None
    ):
        self._archiver_name = archiver_name.lower()
        self._file_extension = "." + self._archiver_name

        if stream_factory is None:
            stream_factory = ArchiveStreamFactory()
        self._stream_factory = stream_factory

    @property
    def archiver_name(self) -> str:
        return self._archiver_name

    @property
    def file_extension(self) -> str:
        """The file extension, which is "." + archiver_name."""
        return self._file_extension

    @property
    def stream_factory(self) -> ArchiveStreamFactory:
        return self._stream_factory

    def create(
        self,
        archive: Union[str, os.PathLike],
        destination: Union[str, os.PathLike],
        *sources: Union[str, os.PathLike],
    ) -> pathlib.Path:
        """
        Create an archive in `destination` from the given files and directories.

        A file is stored under its own name. A directory is stored with its
        contents relative to the directory itself.

        Returns:
            The path of the created archive.

        Raises:
            InvalidDestinationError if `destination` is not an existing directory.
            ArchiverError if the archive format is unknown or the archive could not be written.
            ValueError if `archive` is an absolute path or no sources are given.
        """
        destination = require_directory(destination)

        if not sources:
            raise ValueError("No sources given")

        archive_fn = self._create_new_archive_file(archive, self._file_extension, destination)

        with open(archive_fn, "wb") as fileobj:
            try:
                with self._create_output_sink(fileobj) as sink:
                    self._write_to_archive(sources, sink)
                    sink.flush()
            except CODEC_ERRORS as exc:
                raise ArchiverError(f"Could not create {archive_fn}: {exc}") from exc

        logger.info("Created %s from %d source(s)", archive_fn, len(sources))

        return archive_fn

    def extract(
        self, archive: Union[str, os.PathLike], destination: Union[str, os.PathLike]
    ) -> None:
        """
        Extract all entries of `archive` into `destination`.

        Existing files are overwritten, unrelated content of `destination` is left alone.

        Raises:
            InvalidDestinationError if `destination` is not an existing directory.
            ArchiverError if the archive format is not recognized or the archive is malformed.
            UnsafeEntryError if an entry would end up outside of `destination`.
        """
        destination = require_directory(destination)
        archive_fn = pathlib.Path(archive)

        n_entries = 0
        with open(archive_fn, "rb") as fileobj:
            try:
                with self._create_input_source(fileobj) as source:
                    for entry in source:
                        self._extract_entry(entry, destination)
                        n_entries += 1
            except CODEC_ERRORS as exc:
                raise ArchiverError(f"Could not extract {archive_fn}: {exc}") from exc

        logger.info("Extracted %d entries from %s to %s", n_entries, archive_fn, destination)

    def _create_output_sink(self, fileobj: IO[bytes]) -> EntrySink:
        return self._stream_factory.create_output_sink(self._archiver_name, fileobj)

    def _create_input_source(self, fileobj: IO[bytes]) -> EntrySource:
        return self._stream_factory.create_input_source(fileobj)

    def _create_new_archive_file(
        self, archive: Union[str, os.PathLike], file_extension: str, destination: pathlib.Path
    ) -> pathlib.Path:
        """
        Create an empty archive file in `destination`.

        `file_extension` is only appended if `archive` does not already end with it.
        """
        archive = os.fspath(archive)
        if os.path.isabs(archive):
            raise ValueError(f"Archive name must be relative to the destination, got {archive}")

        if not archive.endswith(file_extension):
            archive += file_extension

        archive_fn = destination / archive
        archive_fn.touch()

        return archive_fn

    def _write_to_archive(
        self, sources: Iterable[Union[str, os.PathLike]], sink: EntrySink
    ) -> None:
        for source in sources:
            source = pathlib.Path(source).absolute()

            if source.is_file():
                self._write_tree(source.parent, source, sink)
            elif source.is_dir():
                self._write_tree(source, source, sink)
            else:
                raise FileNotFoundError(f"No such file or directory: {source}")

    def _write_tree(self, root: pathlib.Path, node: pathlib.Path, sink: EntrySink) -> None:
        """Write `node` and everything below it, named relative to `root`."""
        # The root itself has no name in the archive
        if node != root:
            self._create_archive_entry(node, self._entry_name(root, node), sink)

        if node.is_dir():
            for child in node.iterdir():
                self._write_tree(root, child, sink)

    @staticmethod
    def _entry_name(root: pathlib.Path, node: pathlib.Path) -> str:
        name = relative_path(root, node)
        if node.is_dir():
            name += "/"
        return name

    def _create_archive_entry(self, fn: pathlib.Path, entry_name: str, sink: EntrySink) -> None:
        is_directory = fn.is_dir()

        sink.begin_entry(entry_name, is_directory, fn)

        if not is_directory:
            with open(fn, "rb") as f:
                copy_stream(f, sink, self._stream_factory.bufsize)

        sink.end_entry()

        logger.debug("Added %s", entry_name)

    def _extract_entry(self, entry: ArchiveEntry, destination: pathlib.Path) -> None:
        fn = self._resolve_entry(entry.name, destination)

        if entry.is_directory:
            fn.mkdir(parents=True, exist_ok=True)
        else:
            # A file entry may precede the entry of its parent directory
            fn.parent.mkdir(parents=True, exist_ok=True)

            with entry.open() as src, open(fn, "wb") as dst:
                copy_stream(src, dst, self._stream_factory.bufsize)

        logger.debug("Extracted %s", entry.name)

    @staticmethod
    def _resolve_entry(entry_name: str, destination: pathlib.Path) -> pathlib.Path:
        root = destination.absolute()
        fn = pathlib.Path(os.path.normpath(root / entry_name))

        if pathlib.PurePosixPath(entry_name).is_absolute() or (
            fn != root and root not in fn.parents
        ):
            raise UnsafeEntryError(f"Refusing to extract {entry_name!r} outside of {destination}")

        return fn

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._archiver_name!r})"


def create_archiver(archiver_name: str, **factory_options) -> Archiver:
    """Create an Archiver for `archiver_name`, passing `factory_options` to its ArchiveStreamFactory."""
    return Archiver(archiver_name, ArchiveStreamFactory(**factory_options))
