"""Recovers bundle metadata from an Info.plist descriptor.

Only the flat top-level ``<dict>`` of an XML property list is read. Its
``<key>`` and ``<string>`` children are collected as two separate lists and
paired by position, so non-string values are not matched to their keys.
"""

import logging
from typing import List, Optional, Tuple
from xml.etree import ElementTree

from deb2ipa.types import AppBundleInfo

logger = logging.getLogger(__name__)

EXECUTABLE_KEY = "CFBundleExecutable"
IDENTIFIER_KEY = "CFBundleIdentifier"
VERSION_KEYS = ("CFBundleVersion", "CFBundleShortVersionString")


def _element_text(element: ElementTree.Element) -> str:
    return "".join(element.itertext())


def parse_plist_pairs(data: bytes) -> List[Tuple[str, str]]:
    """Pair the i-th ``<key>`` with the i-th ``<string>`` of the top-level dict.

    Pairs beyond the shorter of the two lists are dropped. Raises
    ``ElementTree.ParseError`` on malformed XML.
    """
    root = ElementTree.fromstring(data)
    plist_dict = root.find("dict")
    if plist_dict is None:
        return []

    keys = [_element_text(key) for key in plist_dict.findall("key")]
    strings = [_element_text(value) for value in plist_dict.findall("string")]
    return list(zip(keys, strings))


def executable_from_folder_name(app_folder_name: str) -> str:
    return app_folder_name.removesuffix(".app")


def parse_bundle_info(data: Optional[bytes], app_folder_name: str) -> AppBundleInfo:
    """Build the AppBundleInfo for a bundle from its captured descriptor bytes.

    A missing or malformed descriptor is not an error: the fields keep their
    defaults, and the executable name falls back to the folder name without
    its ``.app`` suffix.
    """
    executable_name = ""
    info = AppBundleInfo(executable_name="", app_folder_name=app_folder_name)

    pairs: List[Tuple[str, str]] = []
    if data:
        try:
            pairs = parse_plist_pairs(data)
        except (ElementTree.ParseError, LookupError, ValueError) as e:
            logger.warning(f"Could not parse bundle descriptor: {e}")

    for key, value in pairs:
        if key == EXECUTABLE_KEY:
            executable_name = value
        elif key == IDENTIFIER_KEY:
            info.bundle_id = value
        elif key in VERSION_KEYS:
            info.version = value

    if not executable_name:
        executable_name = executable_from_folder_name(app_folder_name)
    info.executable_name = executable_name
    return info
