"""Package.swift manifest parser (package name and declared package dependencies)."""

from __future__ import annotations

import re
from pathlib import Path

from depgraph.identity import normalize_identity
from depgraph.models import FactRecord, SourceKind
from depgraph.scanner.base import BaseParser

_COMMENT_RE = re.compile(r'("(?:[^"\\\n]|\\.)*")|//[^\n]*|/\*.*?\*/', re.DOTALL)
_PACKAGE_NAME_RE = re.compile(r'\bPackage\s*\(\s*name\s*:\s*"([^"]+)"')
_PACKAGE_DEP_RE = re.compile(r"\.package\s*\(([^)]*)\)")
_LOCATION_RE = re.compile(r'\b(url|path|id)\s*:\s*"([^"]+)"')


class ManifestParser(BaseParser):
    source = SourceKind.LOCAL_PACKAGE
    filename = "Package.swift"

    def parse_file(self, file_path: Path) -> FactRecord | None:
        text = file_path.read_text(encoding="utf-8")
        text = _COMMENT_RE.sub(lambda m: m.group(1) or "", text)

        if "Package(" not in text.replace(" ", ""):
            return None

        m = _PACKAGE_NAME_RE.search(text)
        name = m.group(1) if m else file_path.parent.name
        dependencies = tuple(dict.fromkeys(parse_package_dependencies(text)))

        return FactRecord(
            name=name,
            root=file_path.parent,
            source=self.source,
            dependencies=dependencies,
            explicit=frozenset(dependencies),
        )


def parse_package_dependencies(text: str) -> list[str]:
    """Identities of every ``.package(...)`` entry in a manifest body."""
    identities: list[str] = []
    for m in _PACKAGE_DEP_RE.finditer(text):
        locations = dict(
            (key, value) for key, value in _LOCATION_RE.findall(m.group(1))
        )
        location = locations.get("url") or locations.get("path")
        if location:
            identities.append(normalize_identity(location))
        elif locations.get("id"):
            # registry ids look like "scope.name"
            identities.append(locations["id"].rsplit(".", 1)[-1].lower())
    return identities
