"""Package.resolved lockfile parser (SwiftPM v1, v2 and v3 layouts)."""

from __future__ import annotations

import json
from pathlib import Path

from depgraph.identity import normalize_identity
from depgraph.models import FactRecord, SourceKind
from depgraph.scanner.base import BaseParser, project_root_for


class ResolvedParser(BaseParser):
    source = SourceKind.LOCKFILE
    filename = "Package.resolved"

    def parse_file(self, file_path: Path) -> FactRecord | None:
        data = json.loads(file_path.read_text(encoding="utf-8"))
        pins = parse_pins(data)
        if pins is None:
            return None

        name, root = project_root_for(file_path)
        return FactRecord(
            name=name,
            root=root,
            source=self.source,
            dependencies=tuple(pins),
        )


def parse_pins(data: object) -> list[str] | None:
    """Pin names from decoded Package.resolved JSON, or None if it is not one.

    v2/v3 keep pins at the top level with ``identity``; v1 nests them under
    ``object`` with ``package``.
    """
    if not isinstance(data, dict):
        return None
    pins = data.get("pins")
    if pins is None and isinstance(data.get("object"), dict):
        pins = data["object"].get("pins")
    if not isinstance(pins, list):
        return None

    names: list[str] = []
    for pin in pins:
        if not isinstance(pin, dict):
            continue
        name = pin.get("identity") or pin.get("package")
        if not name:
            location = pin.get("location") or pin.get("repositoryURL")
            if not location:
                continue
            name = normalize_identity(location)
        names.append(str(name))
    return names
