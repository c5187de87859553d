import io
import logging
import os
import posixpath
import zipfile
from datetime import datetime
from typing import IO, BinaryIO, Callable, Optional, Tuple

from deb2ipa.exceptions import OutputWriteError, SpilloverIOError
from deb2ipa.file_store import VirtualFileStore
from deb2ipa.permissions import zip_entry_attributes
from deb2ipa.types import (
    AppBundleInfo,
    InMemoryContent,
    SpilledContent,
    VirtualFile,
    ZipEntryAttributes,
)

logger = logging.getLogger(__name__)

PAYLOAD_DIR = "Payload"
CREATE_SYSTEM_UNIX = 3

DateTime = Tuple[int, int, int, int, int, int]
ProgressCallback = Callable[[int, int], None]

_MIN_DATE_TIME: DateTime = (1980, 1, 1, 0, 0, 0)
_MAX_DATE_TIME: DateTime = (2107, 12, 31, 23, 59, 58)


def zip_date_time(mtime: datetime) -> DateTime:
    """Convert to a local-time zip timestamp, clamped to the range zip can store."""
    try:
        local = mtime.astimezone()
    except (OverflowError, OSError, ValueError):
        # Near the ends of the datetime range the local time cannot be represented.
        return _MAX_DATE_TIME if mtime.year > 1980 else _MIN_DATE_TIME
    date_time: DateTime = (
        local.year,
        local.month,
        local.day,
        local.hour,
        local.minute,
        local.second,
    )
    if date_time < _MIN_DATE_TIME:
        logger.debug(f"Clamping timestamp {mtime} to {_MIN_DATE_TIME}")
        return _MIN_DATE_TIME
    if date_time > _MAX_DATE_TIME:
        logger.debug(f"Clamping timestamp {mtime} to {_MAX_DATE_TIME}")
        return _MAX_DATE_TIME
    return date_time


def zip_entry_name(path: str) -> str:
    """Return ``path`` with the bytes that are not valid UTF-8 replaced.

    tarfile keeps such bytes as surrogate escapes, which a zip entry name
    cannot hold.
    """
    name = os.fsencode(path).decode("utf-8", errors="replace")
    if name != path:
        logger.warning(f"Entry name {path!r} is not valid UTF-8, stored as {name!r}")
    return name


def payload_path(app_folder_name: str, relative_path: str, is_dir: bool) -> str:
    """Map a path inside the app root to its location in the output archive.

    ``Info.plist`` in ``MyApp.app`` maps to ``Payload/MyApp.app/Info.plist``.
    Directory paths end with a slash.
    """
    path = posixpath.normpath(posixpath.join(PAYLOAD_DIR, app_folder_name, relative_path))
    if is_dir:
        path += "/"
    return zip_entry_name(path)


class IpaWriter:
    """Writes entries with explicit Unix attributes into an .ipa (zip) file."""

    def __init__(self, archive_path: str | os.PathLike, chunk_size: int = 1024 * 1024):
        self.archive_path = archive_path
        self.chunk_size = chunk_size
        try:
            self._zip = zipfile.ZipFile(archive_path, "w", allowZip64=True)
        except OSError as e:
            raise OutputWriteError(f"Cannot create {archive_path}: {e}") from e

    def close(self) -> None:
        try:
            self._zip.close()
        except OSError as e:
            raise OutputWriteError(f"Cannot finish {self.archive_path}: {e}") from e

    def __enter__(self) -> "IpaWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _zipinfo(
        self, name: str, attributes: ZipEntryAttributes, date_time: DateTime
    ) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(name, date_time=date_time)
        info.create_system = CREATE_SYSTEM_UNIX
        info.compress_type = attributes.method
        info.external_attr = attributes.external_attr
        return info

    def add_bytes(
        self, name: str, attributes: ZipEntryAttributes, date_time: DateTime, data: bytes
    ) -> None:
        """Add an entry whose whole body is ``data`` (directories, symlinks)."""
        info = self._zipinfo(name, attributes, date_time)
        try:
            self._zip.writestr(info, data)
        except (OSError, UnicodeEncodeError, zipfile.LargeZipFile) as e:
            raise OutputWriteError(f"Cannot write {name}: {e}") from e

    def add_stream(
        self,
        name: str,
        attributes: ZipEntryAttributes,
        date_time: DateTime,
        body: IO[bytes],
        size: int,
        progress: Optional[Callable[[int], None]] = None,
    ) -> None:
        """Add an entry whose body is copied from ``body`` in chunks."""
        info = self._zipinfo(name, attributes, date_time)
        # Declared up front so that zipfile decides on Zip64 before writing.
        info.file_size = size
        try:
            dest = self._zip.open(info, "w")
        except (OSError, UnicodeEncodeError, zipfile.LargeZipFile) as e:
            raise OutputWriteError(f"Cannot write {name}: {e}") from e

        with dest:
            while True:
                try:
                    chunk = body.read(self.chunk_size)
                except OSError as e:
                    raise SpilloverIOError(f"Cannot read body of {name}: {e}") from e
                if not chunk:
                    break
                try:
                    dest.write(chunk)
                except OSError as e:
                    raise OutputWriteError(f"Cannot write {name}: {e}") from e
                if progress is not None:
                    progress(len(chunk))


def _open_body(file: VirtualFile) -> BinaryIO:
    if isinstance(file.content, InMemoryContent):
        return io.BytesIO(file.content.data)
    assert isinstance(file.content, SpilledContent)
    try:
        return open(file.content.path, "rb")
    except OSError as e:
        raise SpilloverIOError(
            f"Cannot open spilled {file.path} at {file.content.path}: {e}"
        ) from e


def package_ipa(
    store: VirtualFileStore,
    app_root: str,
    bundle_info: AppBundleInfo,
    output_path: str | os.PathLike,
    *,
    chunk_size: int = 1024 * 1024,
    progress: Optional[ProgressCallback] = None,
) -> int:
    """Write the entries under ``app_root`` to ``output_path`` as an .ipa.

    Entries are written in store order. ``progress`` is called with
    ``(bytes_written, total_bytes)`` after each body chunk. Returns the
    number of entries written.
    """
    total = store.total_size
    written_bytes = 0

    def _report(n: int) -> None:
        nonlocal written_bytes
        written_bytes += n
        if progress is not None:
            progress(n, total)

    count = 0
    with IpaWriter(output_path, chunk_size=chunk_size) as writer:
        for file in store.under_root(app_root):
            relative_path = file.path[len(app_root) :]
            name = payload_path(bundle_info.app_folder_name, relative_path, file.is_dir)
            is_main_executable = (
                posixpath.basename(name) == bundle_info.executable_name
            )
            attributes = zip_entry_attributes(
                file.kind, file.mode, is_main_executable, name
            )
            date_time = zip_date_time(file.mtime)
            logger.debug(
                f"{name}: mode {attributes.external_attr >> 16:o}, method {attributes.method.name}"
            )

            if file.is_symlink:
                assert file.link_target is not None
                writer.add_bytes(
                    name, attributes, date_time, os.fsencode(file.link_target)
                )
            elif file.is_dir:
                writer.add_bytes(name, attributes, date_time, b"")
            else:
                with _open_body(file) as body:
                    writer.add_stream(
                        name, attributes, date_time, body, file.size, _report
                    )
            count += 1

    logger.info(f"Wrote {count} entries ({written_bytes} bytes) to {output_path}")
    return count
