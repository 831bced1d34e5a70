"""Tests for shimcheck.loader."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from shimcheck.loader import DeclarationLoader, find_stub_files, module_name
from tests._fixtures.layer_builder import LayerBuilder


def test_load_directory_returns_empty_result_for_missing_path(tmp_path: Path) -> None:
    result = DeclarationLoader().load_directory(tmp_path / "missing")

    assert result.files == []
    assert result.trees == []
    assert result.warnings == []


def test_load_directory_ignores_non_stub_files(layers: LayerBuilder) -> None:
    layers.write({"stubs/README.md": "# notes\n", "stubs/mod.py": "x = 1\n"})

    result = DeclarationLoader().load_directory(layers.root / "stubs")

    assert result.trees == []


def test_find_stub_files_sorts_lexicographically(layers: LayerBuilder) -> None:
    layers.write(
        {
            "stubs/b.pyi": "x: int\n",
            "stubs/a/z.pyi": "x: int\n",
            "stubs/a.pyi": "x: int\n",
        }
    )

    files = find_stub_files(layers.root / "stubs")

    assert [path.relative_to(layers.root).as_posix() for path in files] == [
        "stubs/a.pyi",
        "stubs/a/z.pyi",
        "stubs/b.pyi",
    ]


@pytest.mark.parametrize(
    ("relative", "expected"),
    [
        ("os/path.pyi", "os.path"),
        ("pkg/__init__.pyi", "pkg"),
        ("requests-stubs/api.pyi", "requests.api"),
        ("string.pyi", "string"),
    ],
)
def test_module_name_follows_stub_layout(relative: str, expected: str) -> None:
    root = Path("/layer")

    assert module_name(root / relative, root) == expected


def test_load_directory_skips_unparsable_files(
    layers: LayerBuilder, caplog: pytest.LogCaptureFixture
) -> None:
    layers.write(
        {
            "shims/a.pyi": """
                class Foo:
                    foo(bar)
            """,
            "shims/b.pyi": """
                class Foo:
                    def foo(self): ...
            """,
        }
    )

    with caplog.at_level(logging.WARNING, logger="shimcheck.loader"):
        result = DeclarationLoader().load_directory(
            layers.root / "shims", relative_to=layers.root
        )

    assert [tree.file for tree in result.trees] == ["shims/b.pyi"]
    assert len(result.warnings) == 1
    warning = result.warnings[0]
    assert warning.message == "Unsupported expression `call`"
    assert str(warning.location) == "shims/a.pyi:2:4-2:12"
    assert "Warning: Unsupported expression `call` (shims/a.pyi:2:4-2:12)" in caplog.messages


def test_load_directory_uses_module_names_relative_to_layer(layers: LayerBuilder) -> None:
    layers.write({"stubs/generated/pkg/sub.pyi": "class Foo: ...\n"})

    result = DeclarationLoader().load_directory(
        layers.root / "stubs/generated", relative_to=layers.root
    )

    tree = result.trees[0]
    assert tree.module == "pkg.sub"
    assert tree.file == "stubs/generated/pkg/sub.pyi"
    assert tree.nodes[0].qualified_name == "pkg.sub.Foo"


def test_parallel_loading_keeps_sorted_order(layers: LayerBuilder) -> None:
    layers.write({f"stubs/mod{index:02d}.pyi": f"value{index}: int\n" for index in range(12)})
    layers.write({"stubs/mod05.pyi": "foo()\n"})

    sequential = DeclarationLoader().load_directory(layers.root / "stubs")
    parallel = DeclarationLoader(jobs=4).load_directory(layers.root / "stubs")

    assert [tree.module for tree in parallel.trees] == [tree.module for tree in sequential.trees]
    assert [tree.module for tree in parallel.trees][:6] == [
        "mod00",
        "mod01",
        "mod02",
        "mod03",
        "mod04",
        "mod06",
    ]
    assert parallel.warnings == sequential.warnings
