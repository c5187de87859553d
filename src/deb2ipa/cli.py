# Command-line entry point: converts a .deb into an .ipa next to it.

import argparse
import logging
import time
from dataclasses import replace
from typing import List, Optional

from tqdm import tqdm

from deb2ipa.config import get_default_config
from deb2ipa.core import convert_deb_to_ipa
from deb2ipa.exceptions import ConversionError
from deb2ipa.types import ConversionResult


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deb2ipa",
        description="Convert a Debian package containing an .app bundle into an .ipa.",
    )
    parser.add_argument("deb", help="Path to the .deb file")
    parser.add_argument(
        "-o", "--output", help="Output .ipa path (default: next to the .deb)"
    )
    parser.add_argument(
        "--memory-limit",
        type=int,
        metavar="MIB",
        help="Keep extracted files in memory up to this many MiB, spill the rest to disk",
    )
    parser.add_argument(
        "--read-spilled-metadata",
        action="store_true",
        help="Read Info.plist back from disk if it was spilled",
    )
    parser.add_argument("--hide-progress", action="store_true", help="Hide progress bar")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def format_summary(result: ConversionResult) -> str:
    info = result.bundle_info
    return (
        f"   Name: {info.app_folder_name}\n"
        f"   ID:   {info.bundle_id}\n"
        f"   Ver:  {info.version}\n"
        f"   Exec: {info.executable_name}"
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s"
    )

    config = get_default_config()
    if args.memory_limit is not None:
        config = replace(config, memory_limit=args.memory_limit * 1024 * 1024)
    if args.read_spilled_metadata:
        config = replace(config, read_spilled_metadata=True)

    bar: Optional[tqdm] = None

    def progress(n: int, total: int) -> None:
        nonlocal bar
        if bar is None:
            bar = tqdm(
                total=total,
                unit="B",
                unit_scale=True,
                desc="Writing IPA",
                disable=args.hide_progress,
            )
        bar.update(n)

    print("DebToIPA")
    print("-" * 42)
    start = time.monotonic()
    try:
        result = convert_deb_to_ipa(
            args.deb, args.output, config=config, progress=progress
        )
    except ConversionError as e:
        print(f"\nError: {e}")
        return 1
    finally:
        if bar is not None:
            bar.close()

    print(format_summary(result))
    print(
        f"\nSuccessfully converted to {result.output_path} "
        f"in {time.monotonic() - start:.1f}s"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
