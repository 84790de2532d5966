"""project.pbxproj parser: package references, products and native targets.

Only the handful of object types that carry dependency facts are read; the
rest of the property list is skipped.
"""

from __future__ import annotations

import re
from pathlib import Path

from depgraph.identity import normalize_identity
from depgraph.models import FactRecord, SourceKind, TargetRecord
from depgraph.scanner.base import BaseParser, project_root_for

_COMMENT_RE = re.compile(r'("(?:[^"\\]|\\.)*")|/\*.*?\*/', re.DOTALL)
_OBJECT_START_RE = re.compile(r"\b([0-9A-Fa-f]{24})\s*=\s*\{")
_LIST_RE = re.compile(r"(?<![\w.])(\w+)\s*=\s*\((.*?)\)\s*;", re.DOTALL)
_SCALAR_RE = re.compile(r'(?<![\w.])(\w+)\s*=\s*("(?:[^"\\]|\\.)*"|[^;"{(\s][^;]*?)\s*;')

_REMOTE_REF = "XCRemoteSwiftPackageReference"
_LOCAL_REF = "XCLocalSwiftPackageReference"
_PRODUCT_DEP = "XCSwiftPackageProductDependency"
_NATIVE_TARGET = "PBXNativeTarget"
_TARGET_DEP = "PBXTargetDependency"


class PbxprojParser(BaseParser):
    source = SourceKind.PROJECT_CONFIG
    filename = "project.pbxproj"

    def parse_file(self, file_path: Path) -> FactRecord | None:
        text = file_path.read_text(encoding="utf-8")
        objects = parse_objects(text)
        if not objects:
            return None

        # Pass 1: package references
        packages: dict[str, str] = {}
        for oid, fields in objects.items():
            isa = fields.get("isa")
            if isa == _REMOTE_REF and fields.get("repositoryURL"):
                packages[oid] = normalize_identity(fields["repositoryURL"])
            elif isa == _LOCAL_REF and fields.get("relativePath"):
                packages[oid] = normalize_identity(fields["relativePath"])

        # Pass 2: products, target dependencies and target names
        products: dict[str, str] = {}
        target_deps: dict[str, str] = {}
        target_names: dict[str, str] = {}
        for oid, fields in objects.items():
            isa = fields.get("isa")
            if isa == _PRODUCT_DEP:
                identity = packages.get(fields.get("package", ""))
                if identity is None and fields.get("productName"):
                    identity = normalize_identity(fields["productName"])
                if identity:
                    products[oid] = identity
            elif isa == _TARGET_DEP and fields.get("target"):
                target_deps[oid] = fields["target"]
            elif isa == _NATIVE_TARGET and fields.get("name"):
                target_names[oid] = fields["name"]

        targets: list[TargetRecord] = []
        for oid, name in target_names.items():
            fields = objects[oid]
            package_deps = _unique(
                products[p] for p in fields.get("packageProductDependencies", [])
                if p in products
            )
            dep_names = _unique(
                target_names[target_deps[d]] for d in fields.get("dependencies", [])
                if d in target_deps and target_deps[d] in target_names
            )
            targets.append(TargetRecord(
                name=name,
                package_dependencies=package_deps,
                target_dependencies=dep_names,
            ))

        project_name, root = project_root_for(file_path)
        return FactRecord(
            name=project_name,
            root=root,
            source=self.source,
            explicit=frozenset(packages.values()),
            targets=tuple(sorted(targets, key=lambda t: t.name)),
        )


def parse_objects(text: str) -> dict[str, dict]:
    """Map object id -> fields for every top-level object in a pbxproj file.

    Scalar fields are strings, list fields are lists of strings.
    """
    text = _COMMENT_RE.sub(lambda m: m.group(1) or "", text)
    objects: dict[str, dict] = {}
    pos = 0
    while True:
        m = _OBJECT_START_RE.search(text, pos)
        if not m:
            break
        end = _matching_brace(text, m.end() - 1)
        if end < 0:
            break
        objects[m.group(1)] = _parse_fields(text[m.end():end])
        pos = end + 1
    return objects


def _parse_fields(body: str) -> dict:
    fields: dict = {}
    for m in _LIST_RE.finditer(body):
        items = [_unquote(item.strip()) for item in m.group(2).split(",")]
        fields.setdefault(m.group(1), [item for item in items if item])
    for m in _SCALAR_RE.finditer(body):
        fields.setdefault(m.group(1), _unquote(m.group(2).strip()))
    return fields


def _matching_brace(text: str, start: int) -> int:
    depth = 0
    in_string = False
    i = start
    while i < len(text):
        c = text[i]
        if in_string:
            if c == "\\":
                i += 2
                continue
            if c == '"':
                in_string = False
        elif c == '"':
            in_string = True
        elif c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1].replace('\\"', '"')
    return value


def _unique(values) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))
