import bz2
import gzip
import logging
import lzma
import zlib
from typing import BinaryIO, Callable, Optional

from deb2ipa.exceptions import (
    ConversionError,
    DecompressionInitError,
    TarReadError,
    UnsupportedCompressionKind,
)
from deb2ipa.io_helpers import ExceptionTranslatingIO, raise_translated
from deb2ipa.types import CompressionKind

logger = logging.getLogger(__name__)

_CODEC_NAMES = {
    CompressionKind.GZIP: "GZIP",
    CompressionKind.XZ: "XZ",
    CompressionKind.LZMA: "LZMA",
    CompressionKind.BZIP2: "BZIP2",
}


def detect_compression_kind(member_name: str) -> CompressionKind:
    """Select the payload codec by exact suffix match on the member name."""
    for kind in CompressionKind:
        if member_name.endswith(kind.value):
            return kind
    raise UnsupportedCompressionKind(f"unsupported compression method: {member_name}")


def open_gzip_stream_fileobj(fileobj: BinaryIO) -> gzip.GzipFile:
    return gzip.GzipFile(fileobj=fileobj, mode="rb")


def open_xz_stream_fileobj(fileobj: BinaryIO) -> lzma.LZMAFile:
    return lzma.LZMAFile(fileobj, format=lzma.FORMAT_XZ)


def open_lzma_stream_fileobj(fileobj: BinaryIO) -> lzma.LZMAFile:
    return lzma.LZMAFile(fileobj, format=lzma.FORMAT_ALONE)


def open_bzip2_stream_fileobj(fileobj: BinaryIO) -> bz2.BZ2File:
    return bz2.BZ2File(fileobj)


_OPENERS: dict[CompressionKind, Callable[[BinaryIO], BinaryIO]] = {
    CompressionKind.GZIP: open_gzip_stream_fileobj,
    CompressionKind.XZ: open_xz_stream_fileobj,
    CompressionKind.LZMA: open_lzma_stream_fileobj,
    CompressionKind.BZIP2: open_bzip2_stream_fileobj,
}


def _translate_init_exception(
    kind: CompressionKind,
) -> Callable[[Exception], Optional[ConversionError]]:
    codec = _CODEC_NAMES[kind]

    def _translate(e: Exception) -> Optional[ConversionError]:
        if isinstance(e, (gzip.BadGzipFile, lzma.LZMAError, zlib.error, OSError)):
            return DecompressionInitError(f"decompression failed: {codec}: {repr(e)}")
        elif isinstance(e, EOFError):
            return DecompressionInitError(f"{codec} stream is truncated: {repr(e)}")
        return None

    return _translate


def _translate_stream_exception(
    kind: CompressionKind,
) -> Callable[[Exception], Optional[ConversionError]]:
    codec = _CODEC_NAMES[kind]

    def _translate(e: Exception) -> Optional[ConversionError]:
        if isinstance(e, (gzip.BadGzipFile, lzma.LZMAError, zlib.error)):
            return TarReadError(f"Error reading {codec} payload: {repr(e)}")
        elif isinstance(e, EOFError):
            return TarReadError(f"{codec} payload is truncated: {repr(e)}")
        elif isinstance(e, OSError):
            return TarReadError(f"{codec} payload is corrupted: {repr(e)}")
        return None

    return _translate


def open_decompressed_stream(member_name: str, fileobj: BinaryIO) -> BinaryIO:
    """Open a forward-only decoder over ``fileobj`` chosen by ``member_name``'s suffix.

    The decoder is primed by decoding its first bytes, so a bad stream header
    is reported as :class:`DecompressionInitError`. Errors found later while
    reading are reported as :class:`TarReadError`.
    """
    kind = detect_compression_kind(member_name)
    logger.debug(f"Payload {member_name} uses {_CODEC_NAMES[kind]} compression")

    try:
        decoder = _OPENERS[kind](fileobj)
        decoder.peek(1)  # type: ignore[attr-defined]
    except (OSError, EOFError, ValueError, zlib.error, lzma.LZMAError) as e:
        raise_translated(e, _translate_init_exception(kind))

    return ExceptionTranslatingIO(decoder, _translate_stream_exception(kind))
