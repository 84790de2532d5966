"""Exporter layer."""

from depgraph.exporter.analysis_report import analysis_to_dict, format_report
from depgraph.exporter.graph_document import graph_to_dict, write_graph_document

__all__ = ["analysis_to_dict", "format_report", "graph_to_dict", "write_graph_document"]
