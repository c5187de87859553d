import os
import zipfile
from unittest import mock

import pytest

from deb2ipa.cli import build_arg_parser, main
from deb2ipa.config import default_config
from deb2ipa.core import ipa_path_for
from tests.deb2ipa.deb_builder import dir_entry, file_entry, info_plist


@pytest.fixture(autouse=True)
def spill_under_tmp_path(tmp_path):
    with default_config(spill_dir_parent=str(tmp_path)):
        yield


def test_cli_converts(foo_deb, capsys):
    assert main([foo_deb, "--hide-progress"]) == 0

    out = capsys.readouterr().out
    assert "DebToIPA" in out
    assert "Name: Foo.app" in out
    assert "ID:   Unknown" in out
    assert "Exec: Foo" in out
    assert f"Successfully converted to {ipa_path_for(foo_deb)}" in out
    assert zipfile.is_zipfile(ipa_path_for(foo_deb))


def test_cli_output_option(make_deb, tmp_path, capsys):
    entries = [
        dir_entry("./Bar.app/"),
        file_entry(
            "./Bar.app/Info.plist",
            info_plist(
                ("CFBundleIdentifier", "com.example.bar"),
                ("CFBundleVersion", "7"),
            ),
        ),
    ]
    deb_path = make_deb(entries, name="Bar.deb")
    output = str(tmp_path / "renamed.ipa")

    assert main([deb_path, "-o", output, "--hide-progress"]) == 0

    out = capsys.readouterr().out
    assert "ID:   com.example.bar" in out
    assert "Ver:  7" in out
    assert "Exec: Bar" in out
    assert os.path.exists(output)
    assert not os.path.exists(ipa_path_for(deb_path))


def test_cli_memory_limit(foo_deb, capsys):
    assert main([foo_deb, "--memory-limit", "0", "--hide-progress"]) == 0
    # Everything was spilled, so the descriptor was not read.
    assert "Exec: Foo" in capsys.readouterr().out


def test_cli_read_spilled_metadata(make_deb, capsys):
    entries = [
        dir_entry("./Bar.app/"),
        file_entry("./Bar.app/Info.plist", info_plist(("CFBundleExecutable", "Real"))),
    ]
    deb_path = make_deb(entries, name="Bar.deb")

    assert main([deb_path, "--memory-limit", "0", "--read-spilled-metadata"]) == 0
    assert "Exec: Real" in capsys.readouterr().out


def test_cli_error(tmp_path, capsys):
    assert main([str(tmp_path / "missing.deb"), "--hide-progress"]) == 1

    out = capsys.readouterr().out
    assert "\nError: " in out
    assert "Successfully" not in out


def test_cli_unsupported_compression(make_deb, capsys):
    deb_path = make_deb(payload_name="data.tar.zst", payload=b"zstd")

    assert main([deb_path]) == 1
    assert "unsupported compression method" in capsys.readouterr().out


def test_arg_parser_defaults():
    args = build_arg_parser().parse_args(["pkg.deb"])
    assert args.deb == "pkg.deb"
    assert args.output is None
    assert args.memory_limit is None
    assert not args.read_spilled_metadata
    assert not args.hide_progress
    assert not args.verbose


def test_cli_progress_bar(foo_deb):
    with mock.patch("deb2ipa.cli.tqdm") as tqdm_mock:
        assert main([foo_deb]) == 0

    tqdm_mock.assert_called_once()
    assert tqdm_mock.call_args.kwargs["disable"] is False
    bar = tqdm_mock.return_value
    written = sum(call.args[0] for call in bar.update.call_args_list)
    assert written == tqdm_mock.call_args.kwargs["total"]
    bar.close.assert_called_once()
