"""Provides an I/O wrapper that translates library exceptions into ConversionError subclasses."""

import bz2
import gzip
import io
import logging
import lzma
import tarfile
import zlib
from typing import IO, Any, BinaryIO, Callable, Optional

from deb2ipa.exceptions import ConversionError

logger = logging.getLogger(__name__)

_CAUGHT_EXCEPTIONS = (
    OSError,
    EOFError,
    ValueError,
    zlib.error,
    lzma.LZMAError,
    gzip.BadGzipFile,
    tarfile.TarError,
)

ExceptionTranslator = Callable[[Exception], Optional[ConversionError]]


def raise_translated(e: Exception, translator: ExceptionTranslator) -> None:
    """Raise the translation of ``e``, or ``e`` itself if the translator declines it."""
    translated = translator(e)
    if translated is not None:
        logger.debug(f"Translated exception: {repr(e)} -> {repr(translated)}")
        raise translated from e

    if not isinstance(e, ConversionError):
        logger.error(f"Unknown exception when reading IO: {e}", exc_info=e)
    raise e


class ExceptionTranslatingIO(io.RawIOBase, BinaryIO):
    """
    Wraps a binary stream opened by a third-party or standard library codec so
    that its exceptions surface as ConversionError subclasses.

    The translator receives the original exception and returns the exception
    to raise in its place, or None to let the original propagate. Translators
    should only handle the exceptions they recognize.
    """

    def __init__(
        self,
        inner: IO[bytes] | bz2.BZ2File | gzip.GzipFile | lzma.LZMAFile,
        exception_translator: ExceptionTranslator,
    ):
        super().__init__()
        self._inner = inner
        self._translate = exception_translator

    def read(self, n: int = -1) -> bytes:
        try:
            return self._inner.read(n)
        except _CAUGHT_EXCEPTIONS as e:
            raise_translated(e, self._translate)
            return b""  # pragma: no cover - unreachable, raise_translated always raises

    def readinto(self, b: Any) -> int:
        data = self.read(len(b))
        b[: len(data)] = data
        return len(data)

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return False

    def seekable(self) -> bool:
        return False

    def close(self) -> None:
        try:
            self._inner.close()
        except _CAUGHT_EXCEPTIONS as e:
            raise_translated(e, self._translate)
        finally:
            super().close()

    def __repr__(self) -> str:
        return f"ExceptionTranslatingIO({self._inner!r})"
