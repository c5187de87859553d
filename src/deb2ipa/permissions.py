"""Maps POSIX entry semantics onto zip external attributes.

iOS install and signing tools read the Unix mode from the high 16 bits of
each entry's external attributes, so the file-type bits must be present and
the main executable and dynamic libraries must be executable.
"""

from deb2ipa.types import CompressionMethod, EntryKind, UnixFileType, ZipEntryAttributes

PERMISSION_MASK = 0o777

SYMLINK_PERMISSIONS = 0o777
DEFAULT_DIR_PERMISSIONS = 0o755
DEFAULT_FILE_PERMISSIONS = 0o644
EXECUTABLE_PERMISSIONS = 0o755


def needs_exec_bit(path: str) -> bool:
    """Whether a regular file at ``path`` is a dylib or sits under a ``bin`` directory."""
    return path.endswith(".dylib") or "/bin/" in path


def zip_entry_attributes(
    kind: EntryKind, source_mode: int, is_main_executable: bool, path: str
) -> ZipEntryAttributes:
    """Return the type bits, permission bits and method for an output entry.

    ``source_mode`` is the mode read from the tar header; only its permission
    bits are used, and 0 means unspecified.
    """
    permissions = source_mode & PERMISSION_MASK

    if kind == EntryKind.SYMLINK:
        return ZipEntryAttributes(
            UnixFileType.SYMLINK, SYMLINK_PERMISSIONS, CompressionMethod.STORE
        )

    if kind == EntryKind.DIRECTORY:
        return ZipEntryAttributes(
            UnixFileType.DIRECTORY,
            permissions or DEFAULT_DIR_PERMISSIONS,
            CompressionMethod.STORE,
        )

    if is_main_executable:
        # The main binary is stored uncompressed.
        return ZipEntryAttributes(
            UnixFileType.REGULAR, EXECUTABLE_PERMISSIONS, CompressionMethod.STORE
        )

    if needs_exec_bit(path):
        permissions = EXECUTABLE_PERMISSIONS
    return ZipEntryAttributes(
        UnixFileType.REGULAR,
        permissions or DEFAULT_FILE_PERMISSIONS,
        CompressionMethod.DEFLATE,
    )
