"""Defines the exceptions raised by a deb-to-ipa conversion.

Every failure is terminal for the run: the conversion aborts and the error
propagates to the caller. Exceptions raised by third-party libraries are
translated into one of these classes where they occur, with the original
exception chained as ``__cause__``.
"""


class ConversionError(Exception):
    """Base exception for all errors encountered while converting a package."""

    pass


class ContainerFormatError(ConversionError):
    """Raised when the outer ar container cannot be opened or has bad framing."""

    pass


class MissingPayloadMember(ConversionError):
    """Raised when the container has no member whose name begins with ``data.tar``."""

    pass


class UnsupportedCompressionKind(ConversionError):
    """Raised when the payload member's name ends with an unrecognized suffix."""

    pass


class DecompressionInitError(ConversionError):
    """Raised when the payload decoder cannot be started, e.g. a bad stream header."""

    pass


class TarReadError(ConversionError):
    """
    Raised when the decompressed payload cannot be read as a tar stream,
    including corrupted or truncated compressed data found mid-stream.
    """

    pass


class AppRootNotFound(ConversionError):
    """Raised when no tar entry path contains an ``.app/`` segment."""

    pass


class SpilloverIOError(ConversionError):
    """Raised when the spillover directory or one of its files cannot be created, written or read."""

    pass


class OutputWriteError(ConversionError):
    """
    Raised when the output archive cannot be created or written. The
    partially written output file is left on disk.
    """

    pass
