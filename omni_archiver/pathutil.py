import os
import pathlib
import shutil
from typing import IO, Union

from .errors import InvalidDestinationError

COPY_BUFSIZE = shutil.COPY_BUFSIZE


def relative_path(
    ancestor: Union[str, os.PathLike], target: Union[str, os.PathLike]
) -> str:
    """
    Express `target` relative to `ancestor`, using forward slashes.

    `ancestor` has to be a (transitive) parent of `target`.
    """
    return pathlib.PurePath(target).relative_to(ancestor).as_posix()


def require_directory(path: Union[str, os.PathLike]) -> pathlib.Path:
    path = pathlib.Path(path)

    if not path.is_dir():
        raise InvalidDestinationError(path)

    return path


def copy_stream(src: IO[bytes], dst: IO[bytes], bufsize: int = COPY_BUFSIZE) -> int:
    """Copy `src` to `dst` in chunks of `bufsize` bytes and return the number of bytes copied."""
    total = 0
    while True:
        chunk = src.read(bufsize)
        if not chunk:
            return total
        dst.write(chunk)
        total += len(chunk)
