import posixpath
from typing import Iterator, List, Optional

from deb2ipa.types import VirtualFile

APP_ROOT_MARKER = ".app/"


def find_app_root(path: str) -> Optional[str]:
    """Return ``path`` up to and including its first ``.app/``, or None.

    ``Applications/MyApp.app/Info.plist`` gives ``Applications/MyApp.app/``.
    """
    index = path.find(APP_ROOT_MARKER)
    if index == -1:
        return None
    return path[: index + len(APP_ROOT_MARKER)]


def app_folder_name(app_root: str) -> str:
    """Return the bundle folder name of an app root, e.g. ``MyApp.app``."""
    return posixpath.basename(app_root.rstrip("/"))


class VirtualFileStore:
    """The classified entries of a payload, in the order they were extracted."""

    def __init__(self) -> None:
        self._files: List[VirtualFile] = []
        self._total_size = 0

    def append(self, file: VirtualFile) -> None:
        self._files.append(file)
        self._total_size += file.size

    def __iter__(self) -> Iterator[VirtualFile]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __getitem__(self, index: int) -> VirtualFile:
        return self._files[index]

    @property
    def total_size(self) -> int:
        """Total size in bytes of all regular file contents."""
        return self._total_size

    def under_root(self, app_root: str) -> Iterator[VirtualFile]:
        """Iterate the entries whose path begins with ``app_root``, in store order."""
        for file in self._files:
            if file.path.startswith(app_root):
                yield file
