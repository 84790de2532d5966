"""Abstract base parser for fact-record sources."""

from __future__ import annotations

import abc
import fnmatch
import logging
from pathlib import Path

from depgraph.models import FactRecord, SourceKind

logger = logging.getLogger(__name__)


class BaseParser(abc.ABC):
    """Base class for per-source fact parsers."""

    source: SourceKind
    filename: str

    def __init__(self, skip_dirs: list[str] | None = None):
        self.skip_dirs = skip_dirs or [
            ".build", ".git", ".swiftpm", "DerivedData", "Pods", "Carthage",
        ]

    @abc.abstractmethod
    def parse_file(self, file_path: Path) -> FactRecord | None:
        """Parse a single file; return None when it is not usable."""

    def scan_directory(self, directory: Path) -> list[FactRecord]:
        """Recursively find and parse every matching file under ``directory``."""
        records: list[FactRecord] = []
        for path in sorted(directory.rglob(self.filename)):
            if not path.is_file():
                continue
            if self._should_skip(path.relative_to(directory)):
                continue
            try:
                record = self.parse_file(path)
            except (OSError, UnicodeDecodeError, ValueError) as e:
                logger.debug("Skipping %s: %s", path, e)
                continue
            if record is None:
                logger.debug("No usable facts in %s", path)
                continue
            records.append(record)
        return records

    def _should_skip(self, path: Path) -> bool:
        for part in path.parts[:-1]:
            for pattern in self.skip_dirs:
                if fnmatch.fnmatch(part, pattern):
                    return True
        return False


def project_root_for(path: Path) -> tuple[str, Path]:
    """Name and root of the project that owns ``path``.

    Files inside an ``.xcodeproj`` or ``.xcworkspace`` bundle belong to the
    bundle's project; anything else belongs to its own directory.
    """
    # project.xcworkspace lives inside every .xcodeproj, so the project wins
    for suffix in (".xcodeproj", ".xcworkspace"):
        for parent in path.parents:
            if parent.suffix == suffix:
                return parent.stem, parent.parent
    return path.parent.name, path.parent
