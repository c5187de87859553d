from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Optional

DEFAULT_MEMORY_LIMIT = 2 * 1024 * 1024 * 1024


@dataclass
class ConverterConfig:
    """Configuration for :func:`deb2ipa.convert_deb_to_ipa`."""

    # Regular files are kept in memory while the running total stays below this.
    memory_limit: int = DEFAULT_MEMORY_LIMIT

    metadata_filename: str = "Info.plist"

    # Read the bundle descriptor back from disk if it was spilled. When False,
    # a spilled descriptor is not captured and the fallback names are used.
    read_spilled_metadata: bool = False

    spill_dir_prefix: str = "ipa-spill"
    spill_dir_parent: Optional[str] = None

    copy_chunk_size: int = 1024 * 1024


_default_config_var: contextvars.ContextVar[ConverterConfig] = contextvars.ContextVar(
    "deb2ipa_default_config", default=ConverterConfig()
)


def get_default_config() -> ConverterConfig:
    """Return the current default configuration."""
    return _default_config_var.get()


def set_default_config(config: ConverterConfig) -> None:
    """Set the default configuration for :func:`convert_deb_to_ipa`."""
    _default_config_var.set(config)


@contextmanager
def default_config(config: ConverterConfig | None = None, **kwargs: Any):
    """Temporarily use ``config`` (with ``kwargs`` applied) as the default configuration."""
    if config is None:
        config = get_default_config()

    if kwargs:
        config = replace(config, **kwargs)

    token = _default_config_var.set(config)
    try:
        yield config
    finally:
        _default_config_var.reset(token)
