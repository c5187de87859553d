import pathlib
from typing import Callable

import pytest

from deb2ipa.config import ConverterConfig
from tests.deb2ipa.deb_builder import foo_app_entries, write_deb

DebFactory = Callable[..., str]


@pytest.fixture
def make_deb(tmp_path: pathlib.Path) -> DebFactory:
    """Return a function that writes a .deb into ``tmp_path`` and returns its path."""

    def _make(entries=None, name: str = "Foo.deb", **kwargs) -> str:
        if entries is None:
            entries = foo_app_entries()
        return write_deb(tmp_path / name, entries, **kwargs)

    return _make


@pytest.fixture
def foo_deb(make_deb: DebFactory) -> str:
    return make_deb()


@pytest.fixture
def spill_dir(tmp_path: pathlib.Path) -> str:
    path = tmp_path / "spill"
    path.mkdir()
    return str(path)


@pytest.fixture
def config(tmp_path: pathlib.Path) -> ConverterConfig:
    """A config whose spillover directories are created under ``tmp_path``."""
    return ConverterConfig(spill_dir_parent=str(tmp_path))
