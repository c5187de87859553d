from deb2ipa.config import (
    ConverterConfig,
    default_config,
    get_default_config,
    set_default_config,
)
from deb2ipa.core import convert_deb_to_ipa, ipa_path_for
from deb2ipa.exceptions import (
    AppRootNotFound,
    ContainerFormatError,
    ConversionError,
    DecompressionInitError,
    MissingPayloadMember,
    OutputWriteError,
    SpilloverIOError,
    TarReadError,
    UnsupportedCompressionKind,
)
from deb2ipa.types import (
    AppBundleInfo,
    CompressionKind,
    ConversionResult,
    EntryKind,
    VirtualFile,
)

__all__ = [
    # Core
    "convert_deb_to_ipa",
    "ipa_path_for",
    "AppBundleInfo",
    "ConversionResult",
    "VirtualFile",
    # Enums
    "EntryKind",
    "CompressionKind",
    # Config
    "ConverterConfig",
    "default_config",
    "get_default_config",
    "set_default_config",
    # Exceptions
    "ConversionError",
    "ContainerFormatError",
    "MissingPayloadMember",
    "UnsupportedCompressionKind",
    "DecompressionInitError",
    "TarReadError",
    "AppRootNotFound",
    "SpilloverIOError",
    "OutputWriteError",
]

__version__ = "0.1.0"
