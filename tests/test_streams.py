import io
import pathlib

import pytest

from omni_archiver import (
    ArchiveStreamFactory,
    TarEntrySink,
    TarEntrySource,
    UnknownArchiveError,
    ZipEntrySink,
    ZipEntrySource,
)

_SINKS = {"tar": TarEntrySink, "zip": ZipEntrySink, "jar": ZipEntrySink}
_SOURCES = {"tar": TarEntrySource, "zip": ZipEntrySource}


def _read_back(data: bytes):
    result = {}
    with ArchiveStreamFactory().create_input_source(io.BytesIO(data)) as source:
        for entry in source:
            if entry.is_directory:
                result[entry.name] = None
            else:
                with entry.open() as f:
                    result[entry.name] = f.read()
                assert entry.size == len(result[entry.name])
    return result


def test_output_formats():
    assert ArchiveStreamFactory().output_formats == ["jar", "tar", "zip"]


@pytest.mark.parametrize("name", ["tar", "zip", "jar"])
def test_create_output_sink(name):
    with ArchiveStreamFactory().create_output_sink(name, io.BytesIO()) as sink:
        assert type(sink) is _SINKS[name]


def test_create_output_sink_unknown():
    with pytest.raises(UnknownArchiveError):
        ArchiveStreamFactory().create_output_sink("rar", io.BytesIO())


def test_sink_without_source(archiver_name):
    fileobj = io.BytesIO()

    with ArchiveStreamFactory().create_output_sink(archiver_name, fileobj) as sink:
        sink.begin_entry("dir/", True)
        sink.end_entry()

        sink.begin_entry("dir/spam.txt", False)
        sink.write(b"sp")
        sink.write(b"am")
        sink.end_entry()

        sink.begin_entry("empty.txt", False)
        sink.end_entry()

    assert _read_back(fileobj.getvalue()) == {
        "dir/": None,
        "dir/spam.txt": b"spam",
        "empty.txt": b"",
    }


def test_sink_with_source(tmp_path, archiver_name):
    spam_fn: pathlib.Path = tmp_path / "spam.txt"
    spam_fn.write_bytes(b"spam")

    fileobj = io.BytesIO()

    with ArchiveStreamFactory().create_output_sink(archiver_name, fileobj) as sink:
        sink.begin_entry("tmp/", True, tmp_path)
        sink.end_entry()

        sink.begin_entry("tmp/spam.txt", False, spam_fn)
        sink.write(b"spam")
        sink.end_entry()

    assert _read_back(fileobj.getvalue()) == {"tmp/": None, "tmp/spam.txt": b"spam"}


def test_sink_entry_protocol(archiver_name):
    with ArchiveStreamFactory().create_output_sink(archiver_name, io.BytesIO()) as sink:
        with pytest.raises(ValueError):
            sink.write(b"no entry")

        with pytest.raises(ValueError):
            sink.end_entry()

        sink.begin_entry("dir/", True)

        with pytest.raises(ValueError):
            sink.write(b"directories carry no content")

        with pytest.raises(ValueError):
            sink.begin_entry("other/", True)

        sink.end_entry()


def test_sink_closed_on_error(archiver_name):
    sink = ArchiveStreamFactory().create_output_sink(archiver_name, io.BytesIO())

    with pytest.raises(RuntimeError):
        with sink:
            sink.begin_entry("spam.txt", False)
            sink.write(b"spam")
            raise RuntimeError()

    if isinstance(sink, ZipEntrySink):
        assert sink._zipfile.fp is None
    elif isinstance(sink, TarEntrySink):
        assert sink._tarfile.closed
        assert sink._buffer is None


def test_create_input_source(archiver_name):
    fileobj = io.BytesIO()
    with ArchiveStreamFactory().create_output_sink(archiver_name, fileobj) as sink:
        sink.begin_entry("spam.txt", False)
        sink.write(b"spam")
        sink.end_entry()

    fileobj.seek(0)
    with ArchiveStreamFactory().create_input_source(fileobj) as source:
        assert type(source) is _SOURCES[archiver_name]

        entry = source.next_entry()
        assert entry.name == "spam.txt"
        assert not entry.is_directory
        assert repr(entry) == "<ArchiveEntry('spam.txt')>"

        # The stream is exhausted
        assert source.next_entry() is None


def test_create_input_source_unknown():
    fileobj = io.BytesIO(b"garbage" * 100)

    with pytest.raises(UnknownArchiveError):
        ArchiveStreamFactory().create_input_source(fileobj)

    # Probing does not move the stream
    assert fileobj.tell() == 0


def test_open_directory_entry(archiver_name):
    fileobj = io.BytesIO()
    with ArchiveStreamFactory().create_output_sink(archiver_name, fileobj) as sink:
        sink.begin_entry("dir/", True)
        sink.end_entry()

    fileobj.seek(0)
    with ArchiveStreamFactory().create_input_source(fileobj) as source:
        entry = source.next_entry()
        assert entry.is_directory

        with pytest.raises(IsADirectoryError):
            entry.open()


def test_factory_repr():
    factory = ArchiveStreamFactory(compress_hint=False, bufsize=10, spool_max_size=20)

    assert repr(factory) == "ArchiveStreamFactory(compress_hint=False, bufsize=10, spool_max_size=20)"
