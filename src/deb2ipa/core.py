"""Converts a .deb package into an .ipa archive."""

import logging
import os
from typing import Optional

from deb2ipa.ar_reader import find_payload_member, iter_ar_members
from deb2ipa.compressed_streams import open_decompressed_stream
from deb2ipa.config import ConverterConfig, get_default_config
from deb2ipa.exceptions import ContainerFormatError
from deb2ipa.extraction import extract_payload, spillover_area
from deb2ipa.file_store import app_folder_name
from deb2ipa.metadata import parse_bundle_info
from deb2ipa.packager import ProgressCallback, package_ipa
from deb2ipa.types import ConversionResult

logger = logging.getLogger(__name__)


def ipa_path_for(deb_path: str | os.PathLike) -> str:
    """Return the output path next to ``deb_path``: ``.deb`` replaced by ``.ipa``."""
    return os.fspath(deb_path).removesuffix(".deb") + ".ipa"


def convert_deb_to_ipa(
    deb_path: str | os.PathLike,
    output_path: Optional[str | os.PathLike] = None,
    *,
    config: Optional[ConverterConfig] = None,
    progress: Optional[ProgressCallback] = None,
) -> ConversionResult:
    """Convert the package at ``deb_path`` into an installable .ipa.

    Args:
        deb_path: Path to the ar container holding a ``data.tar.{gz,xz,lzma,bzip2}``
            member.
        output_path: Where to write the .ipa. Defaults to :func:`ipa_path_for`.
        config: Conversion settings. Defaults to :func:`get_default_config`.
        progress: Called with ``(bytes_written, total_bytes)`` while the
            output archive is written.

    Returns:
        ConversionResult: The recovered bundle metadata and extraction counters.

    Raises:
        ConversionError: On any failure. The spillover directory is always
            removed; a partially written output file is not.
    """
    if config is None:
        config = get_default_config()
    if output_path is None:
        output_path = ipa_path_for(deb_path)

    logger.info(f"Opening deb archive {deb_path}")
    try:
        deb_file = open(deb_path, "rb")
    except OSError as e:
        raise ContainerFormatError(f"no permission or file not found: {e}") from e

    with deb_file:
        member = find_payload_member(iter_ar_members(deb_file))
        logger.info(f"Found {member.name}, decompressing")
        tar_stream = open_decompressed_stream(member.name, member.stream)

        with tar_stream, spillover_area(config) as spill_dir:
            logger.info("Extracting and analyzing files")
            extraction = extract_payload(tar_stream, spill_dir, config)

            logger.info("Parsing app metadata")
            bundle_info = parse_bundle_info(
                extraction.metadata, app_folder_name(extraction.app_root)
            )

            logger.info(f"Zipping payload into {output_path}")
            entries_written = package_ipa(
                extraction.store,
                extraction.app_root,
                bundle_info,
                output_path,
                chunk_size=config.copy_chunk_size,
                progress=progress,
            )

    return ConversionResult(
        output_path=os.fspath(output_path),
        app_root=extraction.app_root,
        bundle_info=bundle_info,
        file_count=extraction.state.file_count,
        spill_count=extraction.state.spill_count,
        ram_usage=extraction.state.ram_usage,
        total_size=extraction.state.total_size,
        entries_written=entries_written,
    )
