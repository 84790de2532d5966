"""Fact-record parsers and directory dispatcher."""

from __future__ import annotations

from pathlib import Path

from depgraph.models import ScanResult
from depgraph.scanner.base import BaseParser
from depgraph.scanner.manifest_parser import ManifestParser
from depgraph.scanner.pbxproj_parser import PbxprojParser
from depgraph.scanner.resolved_parser import ResolvedParser


def scan_directory(
    directory: Path,
    skip_dirs: list[str] | None = None,
) -> ScanResult:
    """Scan a directory with every parser and group the records by source."""
    return ScanResult(
        lockfiles=ResolvedParser(skip_dirs=skip_dirs).scan_directory(directory),
        project_configs=PbxprojParser(skip_dirs=skip_dirs).scan_directory(directory),
        local_packages=ManifestParser(skip_dirs=skip_dirs).scan_directory(directory),
    )


__all__ = [
    "BaseParser",
    "ManifestParser",
    "PbxprojParser",
    "ResolvedParser",
    "scan_directory",
]
