"""Forward iteration over the members of a Unix ar container (a .deb file)."""

import logging
import struct
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Iterator, Optional

from ar.substream import Substream  # type: ignore

from deb2ipa.exceptions import ContainerFormatError, MissingPayloadMember

logger = logging.getLogger(__name__)

ENTRY_STRUCT = struct.Struct("16s12s6s6s8s10s2s")
MAGIC = b"!<arch>\n"
ENTRY_END = b"`\n"

PAYLOAD_MEMBER_PREFIX = "data.tar"


def _padding(n: int, pad_size: int) -> int:
    reminder = n % pad_size
    return pad_size - reminder if reminder else 0


def _pad(n: int, pad_size: int) -> int:
    return n + _padding(n, pad_size)


@dataclass
class ArMember:
    """A container member, exposed as a bounded byte stream over the container file."""

    name: str
    size: int
    mtime: int
    mode: int
    stream: BinaryIO


def _read_entries(fileobj: BinaryIO) -> Iterator[ArMember]:
    magic = fileobj.read(len(MAGIC))
    if magic != MAGIC:
        raise ContainerFormatError(f"Unexpected magic: {magic!r}")

    lookup_data: Optional[bytes] = None
    offset = len(MAGIC)
    while True:
        fileobj.seek(offset)
        buffer = fileobj.read(ENTRY_STRUCT.size)
        if not buffer:
            break
        if len(buffer) < ENTRY_STRUCT.size:
            raise ContainerFormatError(f"Truncated member header at offset {offset}")

        name_field, timestamp, _, _, mode, size, end = ENTRY_STRUCT.unpack(buffer)
        if end != ENTRY_END:
            raise ContainerFormatError(f"Bad member header terminator at offset {offset}")

        name = name_field.decode().rstrip()
        mtime = int(timestamp.decode().rstrip() or "0")
        mode_bits = int(mode.decode().rstrip() or "0", 8)
        size = int(size.decode().rstrip() or "0")
        data_offset = offset + ENTRY_STRUCT.size
        offset = data_offset + _pad(size, 2)

        if name == "/":
            continue
        elif name == "//":
            lookup_data = fileobj.read(size)
            continue
        elif name.startswith("/"):
            if lookup_data is None:
                raise ContainerFormatError("GNU long filename without lookup table")
            lookup_offset = int(name[1:])
            end_of_name = lookup_data.find(b"\n", lookup_offset)
            if end_of_name == -1:
                end_of_name = len(lookup_data)
            name = lookup_data[lookup_offset:end_of_name].decode()
        elif name.startswith("#1/"):
            name_length = int(name[3:])
            name = fileobj.read(name_length).rstrip(b"\x00").decode()
            data_offset += name_length
            size -= name_length

        # GNU ar terminates member names with a slash.
        name = name.rstrip("/")

        yield ArMember(
            name=name,
            size=size,
            mtime=mtime,
            mode=mode_bits,
            stream=Substream(fileobj, data_offset, size),
        )


def iter_ar_members(fileobj: BinaryIO) -> Iterator[ArMember]:
    """Yield the members of the ar container in ``fileobj``, in container order.

    Headers are read lazily, one member at a time; a member's data is only
    read through its ``stream``.
    """
    try:
        yield from _read_entries(fileobj)
    except (ValueError, UnicodeDecodeError) as e:
        raise ContainerFormatError(f"Invalid deb archive: {e}") from e
    except OSError as e:
        raise ContainerFormatError(f"Error reading deb archive: {e}") from e


def find_payload_member(members: Iterable[ArMember]) -> ArMember:
    """Return the first member whose name begins with ``data.tar``.

    Iteration stops at that member, so later members are never read.
    """
    for member in members:
        logger.debug(f"Container member {member.name} ({member.size} bytes)")
        if member.name.startswith(PAYLOAD_MEMBER_PREFIX):
            return member
    raise MissingPayloadMember("data.tar not found in deb")
