"""rpygraph: static analysis and flow graphs for Ren'Py-style scripts."""

from rpygraph.analysis.engine import (
    AnalysisSnapshot,
    Analyzer,
    analyze,
    analyze_routes,
    layout_blocks,
)
from rpygraph.models import AnalysisResult, Block, RouteAnalysis

__version__ = "0.3.0"

__all__ = [
    "AnalysisResult",
    "AnalysisSnapshot",
    "Analyzer",
    "Block",
    "RouteAnalysis",
    "__version__",
    "analyze",
    "analyze_routes",
    "layout_blocks",
]
