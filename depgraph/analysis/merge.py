"""Merge engine: fold lockfile, project-config and local-package records into one record per root."""

from __future__ import annotations

from pathlib import Path

from depgraph.identity import normalize_identity
from depgraph.models import FactRecord, MergedRecord, ScanResult


def merge_scan(scan: ScanResult) -> list[MergedRecord]:
    """Convenience: merge every source of a ScanResult."""
    return merge_records(scan.lockfiles, scan.project_configs, scan.local_packages)


def merge_records(
    lockfiles: list[FactRecord],
    project_configs: list[FactRecord],
    local_packages: list[FactRecord],
) -> list[MergedRecord]:
    """Merge per-source records.

    Lockfiles are authoritative for dependencies, project configs for explicit
    packages and targets, local packages for package existence. Output order:
    joined lockfile records, unmatched project configs, then local packages
    not already represented by (name, root).
    """
    configs_by_name = _index(project_configs)
    locals_by_name = _index(local_packages)
    config_for = _assign_configs(lockfiles, configs_by_name)
    used_configs = {id(config) for config in config_for.values()}

    merged: list[MergedRecord] = []
    represented: set[tuple[str, Path]] = set()

    for index, lock in enumerate(lockfiles):
        canon = normalize_identity(lock.name)
        config = config_for.get(index)
        local = _pick(locals_by_name.get(canon, []), lock.root)

        explicit = set(lock.explicit)
        targets = lock.targets
        if config is not None:
            explicit |= config.explicit
            targets = config.targets
        if local is not None:
            explicit |= local.explicit
            # a package with both a manifest and a lockfile is still a package
            explicit.add(canon)

        merged.append(MergedRecord(
            name=lock.name,
            root=lock.root,
            dependencies=lock.dependencies,
            explicit=frozenset(explicit),
            targets=targets,
            # only the manifest's own root becomes the package node
            is_local_package=local is not None and local.root == lock.root,
        ))
        represented.add((canon, lock.root))

    for config in project_configs:
        if id(config) in used_configs:
            continue
        merged.append(MergedRecord(
            name=config.name,
            root=config.root,
            dependencies=config.dependencies,
            explicit=config.explicit,
            targets=config.targets,
        ))
        represented.add((normalize_identity(config.name), config.root))

    for local in local_packages:
        key = (normalize_identity(local.name), local.root)
        if key in represented:
            continue
        merged.append(MergedRecord(
            name=local.name,
            root=local.root,
            dependencies=local.dependencies,
            explicit=local.explicit,
            is_local_package=True,
        ))
        represented.add(key)

    return merged


def _assign_configs(
    lockfiles: list[FactRecord],
    configs_by_name: dict[str, list[FactRecord]],
) -> dict[int, FactRecord]:
    """Lockfile index -> project config. Each config joins at most one lockfile.

    Same-root matches are settled first so a fallback can never take a config
    that belongs to a later lockfile.
    """
    assigned: dict[int, FactRecord] = {}
    used: set[int] = set()

    for index, lock in enumerate(lockfiles):
        for config in configs_by_name.get(normalize_identity(lock.name), []):
            if config.root == lock.root and id(config) not in used:
                assigned[index] = config
                used.add(id(config))
                break

    for index, lock in enumerate(lockfiles):
        if index in assigned:
            continue
        for config in configs_by_name.get(normalize_identity(lock.name), []):
            if id(config) not in used:
                assigned[index] = config
                used.add(id(config))
                break

    return assigned


def _index(records: list[FactRecord]) -> dict[str, list[FactRecord]]:
    index: dict[str, list[FactRecord]] = {}
    for record in records:
        index.setdefault(normalize_identity(record.name), []).append(record)
    return index


def _pick(candidates: list[FactRecord], root: Path) -> FactRecord | None:
    for record in candidates:
        if record.root == root:
            return record
    return candidates[0] if candidates else None
