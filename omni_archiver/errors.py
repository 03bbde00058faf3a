class UnknownArchiveError(Exception):
    """Raised if no handler is found for the requested archive format or stream."""

    pass


class InvalidDestinationError(ValueError):
    """Raised if a destination does not exist or is not a directory."""

    def __init__(self, path) -> None:
        super().__init__(f"{path} does not exist or is not a directory")
        self.path = path


class ArchiverError(OSError):
    """Raised if reading or writing an archive fails inside the archive codec."""

    pass


class UnsafeEntryError(ArchiverError):
    """Raised if an archive entry would be extracted outside of the destination."""

    pass
