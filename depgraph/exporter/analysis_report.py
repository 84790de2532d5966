"""Pinch-point analysis document and plain-text report."""

from __future__ import annotations

from dataclasses import asdict

from depgraph.analysis.pinch_points import (
    CRITICAL_THRESHOLD,
    HIGH_THRESHOLD,
    MEDIUM_THRESHOLD,
    PinchPointAnalysis,
    PinchPointInfo,
)


def _info_to_dict(info: PinchPointInfo) -> dict:
    data = asdict(info)
    data["risk_level"] = info.risk_level
    return data


def analysis_to_dict(analysis: PinchPointAnalysis, limit: int = 10) -> dict:
    """JSON-serializable analysis summary with the top ``limit`` entries per list."""
    critical = analysis.bucket("critical")
    high = analysis.bucket("high")
    medium = analysis.bucket("medium")
    labels = {i.node_id: i.label for i in analysis.infos}
    return {
        "summary": {
            "analyzed_nodes": len(analysis.infos),
            "components": analysis.component_count,
            "cycles": len(analysis.cycles),
            "largest_cycle": max((len(c) for c in analysis.cycles), default=0),
            "max_depth": analysis.max_depth,
            "critical": len(critical),
            "high": len(high),
            "medium": len(medium),
            "projects": analysis.project_count,
            "dependencies": analysis.dependency_count,
            "edges": analysis.edge_count,
            "shared_dependencies": len(analysis.shared),
        },
        "thresholds": {
            "critical": CRITICAL_THRESHOLD,
            "high": HIGH_THRESHOLD,
            "medium": MEDIUM_THRESHOLD,
        },
        "cycles": analysis.cycles,
        "shared": [
            {"node_id": node_id, "label": labels.get(node_id, node_id), "dependents": count}
            for node_id, count in analysis.shared[:limit]
        ],
        "high_impact": [_info_to_dict(i) for i in analysis.high_impact[:limit]],
        "most_vulnerable": [_info_to_dict(i) for i in analysis.most_vulnerable[:limit]],
        "buckets": {
            "critical": [i.node_id for i in critical],
            "high": [i.node_id for i in high],
            "medium": [i.node_id for i in medium],
        },
    }


def format_report(analysis: PinchPointAnalysis, limit: int = 10) -> list[str]:
    """Human-readable report lines."""
    data = analysis_to_dict(analysis, limit=limit)
    summary = data["summary"]
    rule = "=" * 70
    lines = [
        rule,
        "  PINCH POINT ANALYSIS",
        rule,
        f"Analyzed nodes: {summary['analyzed_nodes']}   "
        f"Components: {summary['components']}   "
        f"Max depth: {summary['max_depth']}",
        f"Critical: {summary['critical']}   High: {summary['high']}   "
        f"Medium: {summary['medium']}",
        f"Projects: {summary['projects']}   "
        f"Dependencies: {summary['dependencies']}   "
        f"Edges: {summary['edges']}   "
        f"Shared: {summary['shared_dependencies']}",
    ]

    if analysis.cycles:
        lines += ["", f"Cycles ({len(analysis.cycles)}):"]
        for cycle in analysis.cycles:
            lines.append("  " + " <-> ".join(cycle))

    if data["shared"]:
        lines += ["", "Shared dependencies (used by more than one node):"]
        for entry in data["shared"]:
            lines.append(f"  {entry['dependents']:>8d}  {entry['label']}")

    lines += ["", "High impact (change forces the widest revalidation):"]
    if not analysis.infos:
        lines.append("  (none)")
    for info in analysis.high_impact[:limit]:
        lines.append(
            f"  {info.impact_score:>8.1f}  {info.label:<32} "
            f"dependents={info.transitive_dependents} depth={info.depth} "
            f"[{info.risk_level}]"
        )

    lines += ["", "Most vulnerable (exposed to the most upstream change):"]
    if not analysis.infos:
        lines.append("  (none)")
    for info in analysis.most_vulnerable[:limit]:
        cycle_note = f" cycle={info.cycle_size}" if info.cycle_size > 1 else ""
        lines.append(
            f"  {info.vulnerability_score:>8d}  {info.label:<32} "
            f"direct={info.direct_dependencies}{cycle_note}"
        )
    return lines
