"""Plain-text rendering of check reports."""

from __future__ import annotations

from typing import List

from .locations import resolve_location
from .orchestrator import CheckReport


def format_duplicates(
    report: CheckReport,
    base_path_prefix: str | None = None,
    base_url: str | None = None,
) -> str:
    """Render one block per duplicated symbol followed by a removal hint."""
    if not report.duplicates:
        return ""
    blocks: List[str] = []
    for key, nodes in report.duplicates.items():
        lines = [f"Duplicated declaration for {key}:"]
        for node in nodes:
            lines.append(f" * {resolve_location(node.location, base_path_prefix, base_url)}")
        blocks.append("\n".join(lines))
    blocks.append(
        f"Please remove the duplicated definitions from the {report.override_dir} directory."
    )
    return "\n\n".join(blocks) + "\n"


def format_summary(report: CheckReport) -> str:
    if not report.shims_checked:
        return "No shim stubs to check\n"
    if not report.duplicates:
        return "No duplicates found in shim stubs\n"
    count = len(report.duplicates)
    noun = "symbol" if count == 1 else "symbols"
    return f"Found duplicated declarations for {count} {noun}\n"


__all__ = ["format_duplicates", "format_summary"]
