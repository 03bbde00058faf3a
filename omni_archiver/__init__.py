"""
OmniArchiver

This Python module provides a generic archiver that creates and extracts archives
of various formats, including ZIP and TAR, through one format-independent interface.
"""

from .abc import ArchiveEntry, EntrySink, EntrySource
from .errors import ArchiverError, InvalidDestinationError, UnknownArchiveError, UnsafeEntryError
from .factory import ArchiveStreamFactory
from .generic import Archiver, create_archiver
from .tar import TarEntrySink, TarEntrySource
from .zip import ZipEntrySink, ZipEntrySource

__all__ = [
    "Archiver",
    "create_archiver",
    "ArchiveStreamFactory",
    "ArchiveEntry",
    "EntrySink",
    "EntrySource",
    "ArchiverError",
    "InvalidDestinationError",
    "UnknownArchiveError",
    "UnsafeEntryError",
    "TarEntrySink",
    "TarEntrySource",
    "ZipEntrySink",
    "ZipEntrySource",
]

__version__ = "0.1.0"
