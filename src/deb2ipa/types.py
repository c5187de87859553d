import stat
import sys
import zipfile
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from enum import StrEnum
elif sys.version_info >= (3, 11):
    from enum import StrEnum
else:
    from backports.strenum import StrEnum


class EntryKind(StrEnum):
    """The tar entry types that are carried into the output archive."""

    DIRECTORY = "dir"
    REGULAR = "file"
    SYMLINK = "symlink"


class CompressionKind(StrEnum):
    """Supported payload codecs, keyed by the member-name suffix that selects them."""

    GZIP = ".gz"
    XZ = ".xz"
    LZMA = ".lzma"
    BZIP2 = ".bzip2"


class CompressionMethod(IntEnum):
    """Zip compression methods used for output entries."""

    STORE = zipfile.ZIP_STORED
    DEFLATE = zipfile.ZIP_DEFLATED


class UnixFileType(IntEnum):
    """File-type bits placed in the high half of a zip entry's external attributes."""

    REGULAR = stat.S_IFREG  # 0x8000
    DIRECTORY = stat.S_IFDIR  # 0x4000
    SYMLINK = stat.S_IFLNK  # 0xA000


@dataclass(frozen=True)
class InMemoryContent:
    """Contents of a regular file held in memory."""

    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class SpilledContent:
    """Contents of a regular file written to the spillover directory."""

    path: str
    size: int


FileContent = Union[InMemoryContent, SpilledContent]


@dataclass
class VirtualFile:
    """An entry of the source tree, as classified during extraction.

    Regular files carry exactly one ``content`` value; directories and symlinks
    carry none. Only symlinks carry a ``link_target``.
    """

    path: str
    kind: EntryKind
    mode: int
    mtime: datetime
    content: Optional[FileContent] = None
    link_target: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.kind == EntryKind.REGULAR) != (self.content is not None):
            raise ValueError(
                f"{self.path}: content must be set for regular files and only for them"
            )
        if (self.kind == EntryKind.SYMLINK) != (self.link_target is not None):
            raise ValueError(
                f"{self.path}: link_target must be set for symlinks and only for them"
            )

    @property
    def size(self) -> int:
        return self.content.size if self.content is not None else 0

    @property
    def is_spilled(self) -> bool:
        return isinstance(self.content, SpilledContent)

    @property
    def is_dir(self) -> bool:
        return self.kind == EntryKind.DIRECTORY

    @property
    def is_symlink(self) -> bool:
        return self.kind == EntryKind.SYMLINK


@dataclass
class AppBundleInfo:
    """Metadata of the application bundle, recovered from its Info.plist."""

    executable_name: str
    app_folder_name: str
    bundle_id: str = "Unknown"
    version: str = "Unknown"


@dataclass(frozen=True)
class ZipEntryAttributes:
    """Type bits, permission bits and compression method of an output entry."""

    type_bits: int
    permission_bits: int
    method: CompressionMethod

    @property
    def external_attr(self) -> int:
        """The 32-bit zip external attributes: Unix mode in the high 16 bits."""
        return (self.type_bits | self.permission_bits) << 16


@dataclass
class ConversionResult:
    """Summary of a completed conversion."""

    output_path: str
    app_root: str
    bundle_info: AppBundleInfo
    file_count: int
    spill_count: int
    ram_usage: int
    total_size: int
    entries_written: int
