"""Static analysis engine for Ren'Py-style scripts.

Phase 1 (:mod:`extractor`) scans blocks independently; phase 2
(:mod:`resolver`, :mod:`classifier`, :mod:`usage`, :mod:`routes`) runs
against the complete global tables. :mod:`layout` is shared by the block
graph and the route graph.
"""

from rpygraph.analysis.engine import (
    AnalysisSnapshot,
    Analyzer,
    analyze,
    analyze_routes,
    coerce_blocks,
    layout_blocks,
)
from rpygraph.analysis.extractor import GlobalTables, extract
from rpygraph.analysis.layout import compute_layered_layout, compute_layers
from rpygraph.analysis.patterns import PALETTE, sanitize_line, string_to_color
from rpygraph.analysis.resolver import ResolvedReferences, resolve, scan_jumps
from rpygraph.analysis.routes import build_route_graph, enumerate_routes

__all__ = [
    "PALETTE",
    "AnalysisSnapshot",
    "Analyzer",
    "GlobalTables",
    "ResolvedReferences",
    "analyze",
    "analyze_routes",
    "build_route_graph",
    "coerce_blocks",
    "compute_layered_layout",
    "compute_layers",
    "enumerate_routes",
    "extract",
    "layout_blocks",
    "resolve",
    "sanitize_line",
    "scan_jumps",
    "string_to_color",
]
