"""Layer loading: discover stub files in a directory and parse them in order."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .logging import get_logger
from .models import DeclarationTree, ParseFailure
from .parser import DeclarationParser, ParseError

STUB_SUFFIX = ".pyi"
_STUBS_PACKAGE_SUFFIX = "-stubs"


@dataclass(frozen=True)
class FileResult:
    """Outcome of parsing one file: exactly one of ``tree`` or ``failure`` is set."""

    path: Path
    tree: Optional[DeclarationTree] = None
    failure: Optional[ParseFailure] = None


@dataclass
class LoadResult:
    """Trees and warnings collected from one directory, in sorted-path order."""

    files: List[Path] = field(default_factory=list)
    trees: List[DeclarationTree] = field(default_factory=list)
    warnings: List[ParseFailure] = field(default_factory=list)


def find_stub_files(path: Path) -> List[Path]:
    """Return stub files under ``path`` sorted lexicographically; [] when missing."""
    if not path.is_dir():
        return []
    files = [candidate for candidate in path.rglob(f"*{STUB_SUFFIX}") if candidate.is_file()]
    return sorted(files, key=lambda candidate: candidate.as_posix())


def module_name(path: Path, root: Path) -> str:
    """Derive the dotted module name of a stub file from its path under ``root``."""
    parts = list(path.relative_to(root).with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    if parts and parts[0].endswith(_STUBS_PACKAGE_SUFFIX):
        parts[0] = parts[0][: -len(_STUBS_PACKAGE_SUFFIX)]
    return ".".join(parts)


def _display_path(path: Path, relative_to: Optional[Path]) -> str:
    if relative_to is None:
        return path.as_posix()
    try:
        return path.relative_to(relative_to).as_posix()
    except ValueError:
        return path.as_posix()


class DeclarationLoader:
    """Loads every stub file of a layer directory into declaration trees."""

    def __init__(self, parser: DeclarationParser | None = None, *, jobs: int = 1) -> None:
        self.parser = parser or DeclarationParser()
        self.jobs = max(1, jobs)
        self.logger = get_logger("loader")

    def load_directory(self, path: Path, *, relative_to: Path | None = None) -> LoadResult:
        """Parse all stubs under ``path``.

        A file that fails to parse is logged, recorded in ``warnings`` and left
        out of ``trees``; it never stops the remaining files from loading.
        """
        files = find_stub_files(path)
        result = LoadResult(files=files)
        if not files:
            self.logger.debug("No stub files found under %s", path)
            return result

        for outcome in self._parse_all(files, path, relative_to):
            if outcome.failure is not None:
                self.logger.warning("Warning: %s", outcome.failure)
                result.warnings.append(outcome.failure)
            elif outcome.tree is not None:
                result.trees.append(outcome.tree)

        self.logger.debug(
            "Parsed %d of %d stub files under %s", len(result.trees), len(files), path
        )
        return result

    def _parse_all(
        self, files: Sequence[Path], root: Path, relative_to: Optional[Path]
    ) -> List[FileResult]:
        def _run(file: Path) -> FileResult:
            return self._parse_one(file, root, relative_to)

        if self.jobs == 1 or len(files) == 1:
            return [_run(file) for file in files]
        # map() yields in submission order, keeping results in sorted-path order.
        with ThreadPoolExecutor(max_workers=self.jobs) as executor:
            return list(executor.map(_run, files))

    def _parse_one(self, file: Path, root: Path, relative_to: Optional[Path]) -> FileResult:
        display = _display_path(file, relative_to)
        try:
            tree = self.parser.parse_file(
                file, module=module_name(file, root), display_path=display
            )
        except ParseError as exc:
            return FileResult(path=file, failure=ParseFailure(exc.message, exc.location))
        return FileResult(path=file, tree=tree)


__all__ = [
    "DeclarationLoader",
    "FileResult",
    "LoadResult",
    "STUB_SUFFIX",
    "find_stub_files",
    "module_name",
]
