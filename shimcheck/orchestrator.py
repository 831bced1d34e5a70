"""Pipeline orchestration for shim checks: load, index, detect."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Sequence

from .config import CheckConfig, project_relative
from .duplicates import find_duplicates
from .index import SymbolIndex, index_trees
from .loader import DeclarationLoader, find_stub_files
from .logging import get_logger
from .models import DeclarationNode, ParseFailure


class PreconditionError(RuntimeError):
    """Raised before any loading when a check cannot be run meaningfully."""


class LayerKind(str, Enum):
    BASE = "base"
    OVERRIDE = "shim"
    GENERATED = "generated"


@dataclass(frozen=True)
class Layer:
    """A directory of stubs and the role it plays in the check."""

    kind: LayerKind
    dir: str

    @property
    def label(self) -> str:
        return {
            LayerKind.BASE: "base stubs",
            LayerKind.OVERRIDE: "shim stubs",
            LayerKind.GENERATED: "generated stubs",
        }[self.kind]


@dataclass
class CheckReport:
    """Duplicates and parse warnings of a run, kept as separate channels."""

    override_dir: str
    shims_checked: bool
    duplicates: Dict[str, List[DeclarationNode]] = field(default_factory=dict)
    warnings: List[ParseFailure] = field(default_factory=list)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.duplicates)

    @property
    def exit_code(self) -> int:
        return 1 if self.duplicates else 0


def layers_for(config: CheckConfig) -> List[Layer]:
    """Return the layers of ``config`` in indexing order: base, shims, generated."""
    layers: List[Layer] = []
    if config.base.dir:
        layers.append(Layer(LayerKind.BASE, config.base.dir))
    layers.append(Layer(LayerKind.OVERRIDE, config.shim_dir))
    layers.extend(Layer(LayerKind.GENERATED, directory) for directory in config.generated_dirs)
    return layers


def check_preconditions(config: CheckConfig) -> None:
    """Reject configurations where the shim directory overlaps another layer."""
    if config.jobs < 1:
        raise PreconditionError(f"jobs must be at least 1 (got {config.jobs})")

    shim = PurePosixPath(config.shim_dir)
    others = list(config.generated_dirs)
    if config.base.dir:
        others.append(config.base.dir)
    for other in others:
        other_path = PurePosixPath(other)
        if shim == other_path or _is_within(shim, other_path) or _is_within(other_path, shim):
            raise PreconditionError(
                f"Shim directory {config.shim_dir} overlaps layer directory {other}; "
                "shim stubs would be compared against themselves"
            )


def _is_within(path: PurePosixPath, parent: PurePosixPath) -> bool:
    return parent in path.parents


class ShimChecker:
    """Coordinates a duplicate check across the configured stub layers."""

    def __init__(self, loader: DeclarationLoader | None = None) -> None:
        self._loader = loader
        self.logger = get_logger("checker")

    def run(self, config: CheckConfig, layers: Optional[Sequence[Layer]] = None) -> CheckReport:
        """Run a check; ``layers`` overrides the default indexing order."""
        check_preconditions(config)
        root = config.root
        report = CheckReport(override_dir=config.shim_dir, shims_checked=False)

        if not find_stub_files(root / config.shim_dir):
            self.logger.info("No shim stubs to check in %s", config.shim_dir)
            return report

        loader = self._loader or DeclarationLoader(jobs=config.jobs)
        index = SymbolIndex()
        for layer in layers if layers is not None else layers_for(config):
            self.logger.info("Loading %s from %s...", layer.label, layer.dir)
            result = loader.load_directory(root / layer.dir, relative_to=root)
            index_trees(index, result.trees)
            report.warnings.extend(result.warnings)
            self.logger.debug(
                "Indexed %d files from %s (%d warnings)",
                len(result.trees),
                layer.dir,
                len(result.warnings),
            )

        report.shims_checked = True
        report.duplicates = find_duplicates(index, _override_prefix(config.shim_dir, root))
        self.logger.info("Found %d duplicated declarations", len(report.duplicates))
        return report


def _override_prefix(shim_dir: str, root: Path) -> str:
    """Shim directory with a trailing slash, so ``stubs/shims2`` never matches ``stubs/shims``."""
    relative = project_relative(shim_dir, root).rstrip("/")
    return "" if relative == "." else f"{relative}/"


__all__ = [
    "CheckReport",
    "Layer",
    "LayerKind",
    "PreconditionError",
    "ShimChecker",
    "check_preconditions",
    "layers_for",
]
