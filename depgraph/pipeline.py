"""Pipeline orchestrator: scan -> merge -> build -> augment -> filter -> layer."""

from __future__ import annotations

import logging
from typing import Callable

from depgraph.models import GraphConfig, PipelineResult, ScanResult
from depgraph.scanner import scan_directory
from depgraph.analysis.augment import DependencyResolver, EdgeAugmenter
from depgraph.analysis.graph_builder import GraphBuilder
from depgraph.analysis.layering import compute_layers
from depgraph.analysis.merge import merge_scan
from depgraph.analysis.transience import filter_transient

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


def run_scan(config: GraphConfig, progress: ProgressCallback | None = None) -> ScanResult:
    """Stage 1: Scan the source directory for fact records."""
    if progress:
        progress("Scanning", 0, 1)
    scan = scan_directory(config.source_dir, skip_dirs=config.skip_dirs)
    if progress:
        progress("Scanning", 1, 1)
    logger.debug(
        "Scanned %s: %d lockfile(s), %d project(s), %d local package(s)",
        config.source_dir, len(scan.lockfiles), len(scan.project_configs),
        len(scan.local_packages),
    )
    return scan


def run_pipeline(
    config: GraphConfig,
    progress: ProgressCallback | None = None,
    resolver: DependencyResolver | None = None,
) -> PipelineResult:
    """Run the full graph pipeline.

    Finding nothing is not an error: the result has no records and an empty
    graph, and callers report it as such.
    """
    scan = run_scan(config, progress=progress)

    if scan.is_empty:
        logger.info("No project facts found under %s", config.source_dir)
        return PipelineResult(schema_version=config.schema_version)

    # Stage 2: Merge
    records = merge_scan(scan)

    # Stage 3: Build
    if progress:
        progress("Building", 0, 1)
    builder = GraphBuilder(show_targets=config.show_targets, stable_ids=config.stable_ids)
    graph = builder.build(records)
    if progress:
        progress("Building", 1, 1)

    # Stage 4: Augment
    augmented = 0
    if config.resolve_local:
        if progress:
            progress("Resolving", 0, 1)
        if resolver is None:
            resolver = DependencyResolver(
                swift_executable=config.swift_executable,
                timeout=config.resolve_timeout,
            )
        augmenter = EdgeAugmenter(builder, resolver, hide_transient=config.hide_transient)
        augmented = augmenter.augment(graph, records)
        if progress:
            progress("Resolving", 1, 1)

    # Stage 5: Filter + layer
    if config.hide_transient:
        graph = filter_transient(graph)
    compute_layers(graph)

    return PipelineResult(
        records=records,
        graph=graph,
        schema_version=config.schema_version,
        augmented_edges=augmented,
    )
