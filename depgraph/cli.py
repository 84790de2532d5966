"""Click CLI with graph, analyze, and serve subcommands."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from depgraph import __version__
from depgraph.models import GraphConfig, PipelineResult
from depgraph.pipeline import run_pipeline
from depgraph.analysis.navigation import (
    DIRECTION_DEPENDENCIES,
    DIRECTION_DEPENDENTS,
    dependency_subgraph,
    dependent_subgraph,
    find_node,
)
from depgraph.analysis.pinch_points import analyze_pinch_points
from depgraph.exporter import analysis_to_dict, format_report, graph_to_dict, write_graph_document

_SOURCE_DIR = click.Path(exists=True, file_okay=False, path_type=Path)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """depgraph: Dependency graphs and pinch-point analysis for Swift projects."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _run(config: GraphConfig) -> PipelineResult | None:
    result = run_pipeline(config)
    if not result.found:
        click.echo(f"No Package.resolved, project.pbxproj or Package.swift files found in {config.source_dir}")
        return None
    return result


@cli.command()
@click.argument("source_dir", type=_SOURCE_DIR, default=".")
@click.option("--show-targets", is_flag=True, help="Include build targets as nodes")
@click.option("--hide-transient", is_flag=True, help="Drop dependencies no project declares")
@click.option("--stable-ids", is_flag=True, help="Type-qualified node ids (schema version 2)")
@click.option("--resolve/--no-resolve", default=False, help="Query `swift package show-dependencies` for local packages")
@click.option("--timeout", type=float, default=None, help="Seconds before a dependency query is abandoned")
@click.option("--focus", help="Restrict output to one node (id or label)")
@click.option(
    "--direction",
    type=click.Choice([DIRECTION_DEPENDENCIES, DIRECTION_DEPENDENTS]),
    default=DIRECTION_DEPENDENCIES,
    help="With --focus: follow dependencies or dependents",
)
@click.option("-o", "--output", "output_file", type=click.Path(dir_okay=False, path_type=Path), help="Write JSON to a file")
def graph(
    source_dir: Path,
    show_targets: bool,
    hide_transient: bool,
    stable_ids: bool,
    resolve: bool,
    timeout: float | None,
    focus: str | None,
    direction: str,
    output_file: Path | None,
):
    """Build the dependency graph and print it as JSON."""
    config = GraphConfig(
        source_dir=source_dir,
        show_targets=show_targets,
        hide_transient=hide_transient,
        stable_ids=stable_ids,
        resolve_local=resolve,
        resolve_timeout=timeout,
    )
    result = _run(config)
    if result is None:
        return

    g = result.graph
    if focus:
        node_id = find_node(g, focus)
        if node_id is None:
            raise click.ClickException(f"No node matches {focus!r}")
        if direction == DIRECTION_DEPENDENTS:
            g = dependent_subgraph(g, node_id)
        else:
            g = dependency_subgraph(g, node_id)

    if output_file:
        write_graph_document(g, output_file, result.schema_version)
        click.echo(f"Wrote {len(g.nodes)} node(s) and {len(g.edges)} edge(s) to {output_file}")
    else:
        click.echo(json.dumps(graph_to_dict(g, result.schema_version), indent=2))


@cli.command()
@click.argument("source_dir", type=_SOURCE_DIR, default=".")
@click.option("--show-targets", is_flag=True, help="Include build targets as nodes")
@click.option("--internal-only", is_flag=True, help="Ignore external packages")
@click.option("--hide-transient", is_flag=True, help="Drop dependencies no project declares")
@click.option("--stable-ids", is_flag=True, help="Type-qualified node ids (schema version 2)")
@click.option("--resolve/--no-resolve", default=False, help="Query `swift package show-dependencies` for local packages")
@click.option("--timeout", type=float, default=None, help="Seconds before a dependency query is abandoned")
@click.option("--limit", "-n", type=click.IntRange(min=1), default=10, help="Entries per list")
@click.option("--json", "as_json", is_flag=True, help="Print the analysis as JSON")
def analyze(
    source_dir: Path,
    show_targets: bool,
    internal_only: bool,
    hide_transient: bool,
    stable_ids: bool,
    resolve: bool,
    timeout: float | None,
    limit: int,
    as_json: bool,
):
    """Rank modules by impact and vulnerability (cycle-safe)."""
    config = GraphConfig(
        source_dir=source_dir,
        show_targets=show_targets,
        hide_transient=hide_transient,
        stable_ids=stable_ids,
        resolve_local=resolve,
        resolve_timeout=timeout,
    )
    result = _run(config)
    if result is None:
        return

    analysis = analyze_pinch_points(result.graph, internal_only=internal_only)
    if as_json:
        click.echo(json.dumps(analysis_to_dict(analysis, limit=limit), indent=2))
        return

    for line in format_report(analysis, limit=limit):
        if line.startswith("="):
            click.echo(click.style(line, fg="cyan"))
        elif "[critical]" in line:
            click.echo(click.style(line, fg="red"))
        elif "[high]" in line:
            click.echo(click.style(line, fg="yellow"))
        else:
            click.echo(line)


@cli.command()
@click.option("--port", "-p", default=8421, help="Port number")
@click.option("--host", default="127.0.0.1", help="Host address")
def serve(port: int, host: str):
    """Start the web API."""
    try:
        import uvicorn
    except ImportError:
        raise click.ClickException(
            "uvicorn is required for the web API. "
            "Install with: pip install 'depgraph[web]'"
        )

    from depgraph.web import create_app

    click.echo(f"Starting depgraph API at http://{host}:{port}")
    uvicorn.run(create_app(), host=host, port=port, log_level="info")


if __name__ == "__main__":
    cli()
