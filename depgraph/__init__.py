"""depgraph: declared-dependency graphs and pinch-point analysis for Swift projects."""

__version__ = "0.3.0"
