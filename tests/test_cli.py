"""CLI parser and entrypoint tests."""

from __future__ import annotations

import pytest

from shimcheck.cli import EXIT_PRECONDITION, _build_parser, main
from tests._fixtures.layer_builder import LayerBuilder


def test_cli_accepts_verbose_before_command() -> None:
    args = _build_parser().parse_args(["--verbose", "check"])
    assert args.verbose is True
    assert args.command == "check"


def test_cli_accepts_quiet_after_command() -> None:
    args = _build_parser().parse_args(["check", "--quiet"])
    assert args.quiet is True


def test_cli_rejects_verbose_with_quiet() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["check", "--verbose", "--quiet"])


def test_cli_collects_repeated_generated_dirs() -> None:
    args = _build_parser().parse_args(
        ["check", "--generated-dir", "rbi/gems", "--generated-dir", "rbi/dsl", "-j", "3"]
    )
    assert args.generated_dirs == ["rbi/gems", "rbi/dsl"]
    assert args.jobs == 3


def test_main_reports_duplicates_and_fails(
    layers: LayerBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    layers.write(
        {
            "rbi/gem/foo.pyi": "class Foo:\n    def foo(self): ...\n",
            "rbi/dsl/foo.pyi": "class Foo:\n    def bar(self): ...\n",
            "rbi/shim/foo.pyi": "class Foo:\n    def foo(self): ...\n    def bar(self): ...\n",
        }
    )

    exit_code = main(
        [
            "check",
            str(layers.root),
            "--shim-dir=rbi/shim",
            "--generated-dir=rbi/gem",
            "--generated-dir=rbi/dsl",
            "--quiet",
        ]
    )

    captured = capsys.readouterr()
    assert exit_code == 1
    assert (
        "Duplicated declaration for foo.Foo#foo:\n"
        " * rbi/shim/foo.pyi:2:4-2:22\n"
        " * rbi/gem/foo.pyi:2:4-2:22\n"
    ) in captured.err
    assert (
        "Duplicated declaration for foo.Foo#bar:\n"
        " * rbi/shim/foo.pyi:3:4-3:22\n"
        " * rbi/dsl/foo.pyi:2:4-2:22\n"
    ) in captured.err
    assert "Please remove the duplicated definitions from the rbi/shim directory." in captured.err
    assert captured.out == "Found duplicated declarations for 2 symbols\n"


def test_main_succeeds_without_shims(
    layers: LayerBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main(["check", str(layers.root), "--quiet"])

    assert exit_code == 0
    assert capsys.readouterr().out == "No shim stubs to check\n"


def test_main_reads_layers_from_config_file(
    layers: LayerBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    layers.write(
        {
            ".shimcheck.yml": "shim_dir: shims\ngenerated_dirs: [generated]\n",
            "generated/foo.pyi": "x: int\n",
            "shims/foo.pyi": "x: str\n",
        }
    )

    exit_code = main(["check", str(layers.root), "--quiet"])

    assert exit_code == 0
    assert capsys.readouterr().out == "No duplicates found in shim stubs\n"


def test_main_exits_with_precondition_code(
    layers: LayerBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["check", str(layers.root), "--shim-dir=stubs", "--quiet"])

    assert excinfo.value.code == EXIT_PRECONDITION
    assert "overlaps" in capsys.readouterr().err
