import pytest

from deb2ipa.permissions import needs_exec_bit, zip_entry_attributes
from deb2ipa.types import (
    CompressionMethod,
    EntryKind,
    UnixFileType,
    ZipEntryAttributes,
)

STORE = CompressionMethod.STORE
DEFLATE = CompressionMethod.DEFLATE


@pytest.mark.parametrize(
    "kind,mode,is_main,path,expected",
    [
        (EntryKind.REGULAR, 0o644, True, "Payload/Foo.app/Foo", (0x8000, 0o755, STORE)),
        (EntryKind.REGULAR, 0o600, True, "Payload/Foo.app/Foo", (0x8000, 0o755, STORE)),
        (EntryKind.REGULAR, 0o644, False, "Payload/Foo.app/lib.dylib", (0x8000, 0o755, DEFLATE)),
        (EntryKind.REGULAR, 0o644, False, "Payload/Foo.app/bin/tool", (0x8000, 0o755, DEFLATE)),
        (EntryKind.REGULAR, 0o600, False, "Payload/Foo.app/data.bin", (0x8000, 0o600, DEFLATE)),
        (EntryKind.REGULAR, 0, False, "Payload/Foo.app/Info.plist", (0x8000, 0o644, DEFLATE)),
        (EntryKind.REGULAR, 0o100755, False, "Payload/Foo.app/run.sh", (0x8000, 0o755, DEFLATE)),
        (EntryKind.REGULAR, 0o4755, False, "Payload/Foo.app/setuid", (0x8000, 0o755, DEFLATE)),
        (EntryKind.DIRECTORY, 0o750, False, "Payload/Foo.app/", (0x4000, 0o750, STORE)),
        (EntryKind.DIRECTORY, 0, False, "Payload/Foo.app/", (0x4000, 0o755, STORE)),
        (EntryKind.SYMLINK, 0o755, False, "Payload/Foo.app/link", (0xA000, 0o777, STORE)),
        (EntryKind.SYMLINK, 0o777, True, "Payload/Foo.app/Foo", (0xA000, 0o777, STORE)),
    ],
    ids=[
        "main_executable",
        "main_executable_private",
        "dylib",
        "bin_dir",
        "regular_keeps_mode",
        "regular_default",
        "regular_masks_type_bits",
        "regular_masks_special_bits",
        "dir_keeps_mode",
        "dir_default",
        "symlink",
        "symlink_named_like_executable",
    ],
)
def test_zip_entry_attributes(kind, mode, is_main, path, expected):
    type_bits, permission_bits, method = expected
    attributes = zip_entry_attributes(kind, mode, is_main, path)
    assert attributes == ZipEntryAttributes(type_bits, permission_bits, method)


@pytest.mark.parametrize(
    "attributes,external_attr",
    [
        (ZipEntryAttributes(UnixFileType.REGULAR, 0o755, STORE), 0x81ED0000),
        (ZipEntryAttributes(UnixFileType.REGULAR, 0o644, DEFLATE), 0x81A40000),
        (ZipEntryAttributes(UnixFileType.DIRECTORY, 0o755, STORE), 0x41ED0000),
        (ZipEntryAttributes(UnixFileType.SYMLINK, 0o777, STORE), 0xA1FF0000),
    ],
)
def test_external_attr(attributes, external_attr):
    assert attributes.external_attr == external_attr


@pytest.mark.parametrize(
    "path,expected",
    [
        ("Payload/Foo.app/lib.dylib", True),
        ("Payload/Foo.app/Frameworks/libswiftCore.dylib", True),
        ("Payload/Foo.app/bin/tool", True),
        ("Payload/Foo.app/usr/bin/env", True),
        ("Payload/Foo.app/dylib.txt", False),
        ("Payload/Foo.app/binary", False),
        ("Payload/Foo.app/sbin", False),
    ],
)
def test_needs_exec_bit(path, expected):
    assert needs_exec_bit(path) == expected
