"""Single-pass extraction of the payload tar stream into a VirtualFileStore.

Regular files are held in memory while the running total stays below the
configured memory limit; any file for which that check fails is streamed to
a uniquely named file in the spillover directory instead. The same pass
detects the app root and captures the bundle descriptor bytes.
"""

import logging
import os
import tarfile
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import IO, BinaryIO, Iterator, Optional

from deb2ipa.config import ConverterConfig
from deb2ipa.exceptions import AppRootNotFound, SpilloverIOError, TarReadError
from deb2ipa.file_store import VirtualFileStore, find_app_root
from deb2ipa.types import (
    EntryKind,
    FileContent,
    InMemoryContent,
    SpilledContent,
    VirtualFile,
)

logger = logging.getLogger(__name__)

# Bounds of a zip timestamp; tar times outside the datetime range are clamped to them.
MIN_MTIME = datetime(1980, 1, 1, tzinfo=timezone.utc)
MAX_MTIME = datetime(2107, 12, 31, 23, 59, 58, tzinfo=timezone.utc)


@dataclass
class ExtractionState:
    """Running counters of one extraction pass."""

    memory_limit: int
    ram_usage: int = 0
    total_size: int = 0
    file_count: int = 0
    spill_count: int = 0
    app_root: Optional[str] = None
    metadata: Optional[bytes] = None

    def fits_in_memory(self, size: int) -> bool:
        """Whether a file of ``size`` bytes is kept in memory at this point of the pass."""
        return self.ram_usage + size < self.memory_limit

    def observe_path(self, path: str) -> None:
        if self.app_root is not None:
            return
        self.app_root = find_app_root(path)
        if self.app_root is not None:
            logger.debug(f"App root detected: {self.app_root}")


@dataclass
class ExtractionResult:
    store: VirtualFileStore
    state: ExtractionState = field(repr=False)

    @property
    def app_root(self) -> str:
        assert self.state.app_root is not None
        return self.state.app_root

    @property
    def metadata(self) -> Optional[bytes]:
        return self.state.metadata


def classify(info: tarfile.TarInfo) -> Optional[EntryKind]:
    if info.isdir():
        return EntryKind.DIRECTORY
    elif info.issym():
        return EntryKind.SYMLINK
    elif info.isreg():
        return EntryKind.REGULAR
    return None


def entry_mtime(info: tarfile.TarInfo) -> datetime:
    try:
        return datetime.fromtimestamp(info.mtime, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        clamped = MAX_MTIME if info.mtime > 0 else MIN_MTIME
        logger.debug(f"{info.name}: mtime {info.mtime} out of range, using {clamped}")
        return clamped


def entry_path(info: tarfile.TarInfo) -> str:
    # tarfile strips the trailing slash from directory names; put it back so
    # that "./MyApp.app/" is seen as the app root itself.
    if info.isdir() and not info.name.endswith("/"):
        return info.name + "/"
    return info.name


@contextmanager
def spillover_area(config: ConverterConfig) -> Iterator[str]:
    """Create the spillover directory, and remove it with its contents on exit."""
    try:
        tempdir = tempfile.TemporaryDirectory(
            prefix=config.spill_dir_prefix, dir=config.spill_dir_parent
        )
    except OSError as e:
        raise SpilloverIOError(f"Cannot create spillover directory: {e}") from e

    with tempdir as path:
        logger.debug(f"Spillover directory: {path}")
        yield path


class PayloadExtractor:
    """Classifies tar entries into a VirtualFileStore, one entry at a time."""

    def __init__(self, spill_dir: str, config: ConverterConfig):
        self.spill_dir = spill_dir
        self.config = config
        self.state = ExtractionState(memory_limit=config.memory_limit)
        self.store = VirtualFileStore()

    def add_entry(
        self, info: tarfile.TarInfo, stream: Optional[IO[bytes]]
    ) -> Optional[VirtualFile]:
        """Classify one tar entry and append it to the store.

        ``stream`` is the entry's data and is only read for regular files.
        Returns the stored entry, or None if the entry type is not carried over.
        """
        self.state.file_count += 1
        path = entry_path(info)
        self.state.observe_path(path)

        kind = classify(info)
        if kind is None:
            logger.debug(f"Skipping {path}: unsupported entry type {info.type!r}")
            return None

        mtime = entry_mtime(info)
        if kind == EntryKind.SYMLINK:
            file = VirtualFile(
                path=path,
                kind=kind,
                mode=info.mode,
                mtime=mtime,
                link_target=info.linkname,
            )
        elif kind == EntryKind.REGULAR:
            assert stream is not None
            self.state.total_size += info.size
            content = self._place_content(path, info.size, stream)
            self._capture_metadata(path, content)
            file = VirtualFile(
                path=path, kind=kind, mode=info.mode, mtime=mtime, content=content
            )
        else:
            file = VirtualFile(path=path, kind=kind, mode=info.mode, mtime=mtime)

        self.store.append(file)
        return file

    def _place_content(self, path: str, size: int, stream: IO[bytes]) -> FileContent:
        if self.state.fits_in_memory(size):
            data = stream.read()
            self.state.ram_usage += len(data)
            logger.debug(f"{path}: {len(data)} bytes kept in memory")
            return InMemoryContent(data)

        self.state.spill_count += 1
        spill_path = os.path.join(self.spill_dir, f"spill_{self.state.spill_count}")
        written = self._spill(stream, spill_path)
        logger.debug(f"{path}: {written} bytes spilled to {spill_path}")
        return SpilledContent(path=spill_path, size=written)

    def _spill(self, stream: IO[bytes], spill_path: str) -> int:
        try:
            out = open(spill_path, "xb")
        except OSError as e:
            raise SpilloverIOError(f"Cannot create spill file {spill_path}: {e}") from e

        written = 0
        with out:
            for chunk in iter(lambda: stream.read(self.config.copy_chunk_size), b""):
                try:
                    out.write(chunk)
                except OSError as e:
                    raise SpilloverIOError(
                        f"Cannot write spill file {spill_path}: {e}"
                    ) from e
                written += len(chunk)
        return written

    def _capture_metadata(self, path: str, content: FileContent) -> None:
        if not path.endswith(self.config.metadata_filename):
            return

        if isinstance(content, InMemoryContent):
            data = content.data
        elif self.config.read_spilled_metadata:
            try:
                with open(content.path, "rb") as f:
                    data = f.read()
            except OSError as e:
                raise SpilloverIOError(
                    f"Cannot read spilled {path} from {content.path}: {e}"
                ) from e
        else:
            logger.warning(
                f"{path} was spilled to disk; bundle metadata is not read from it"
            )
            return

        if data:
            self.state.metadata = data

    def extract(self, tar_stream: BinaryIO) -> ExtractionResult:
        """Run the pass over a forward-only decompressed tar stream."""
        try:
            with tarfile.open(fileobj=tar_stream, mode="r|") as archive:
                for info in archive:
                    stream = archive.extractfile(info) if info.isreg() else None
                    self.add_entry(info, stream)
        except tarfile.TarError as e:
            raise TarReadError(f"tar read error: {e}") from e

        logger.info(
            f"Processed {self.state.file_count} entries "
            f"(RAM: {self.state.ram_usage // (1024 * 1024)} MB | "
            f"Disk spills: {self.state.spill_count})"
        )

        if self.state.app_root is None:
            raise AppRootNotFound(
                "unsupported app: could not find .app directory inside deb"
            )
        return ExtractionResult(store=self.store, state=self.state)


def extract_payload(
    tar_stream: BinaryIO, spill_dir: str, config: ConverterConfig
) -> ExtractionResult:
    return PayloadExtractor(spill_dir, config).extract(tar_stream)
