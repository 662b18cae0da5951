"""Pydantic models for engine inputs and outputs.

Everything here is plain data: no behaviour beyond validation and
serialization, safe to hand to a renderer or dump as JSON.
"""

from rpygraph.models.analysis import AnalysisResult
from rpygraph.models.route import (
    IdentifiedRoute,
    LabelNode,
    Position,
    RouteAnalysis,
    RouteLink,
    route_link_key,
)
from rpygraph.models.script import (
    Block,
    Character,
    DialogueLine,
    JumpLocation,
    LabelLocation,
    Link,
    RenpyScreen,
    Variable,
    VariableUsage,
)

__all__ = [
    "AnalysisResult",
    "Block",
    "Character",
    "DialogueLine",
    "IdentifiedRoute",
    "JumpLocation",
    "LabelLocation",
    "LabelNode",
    "Link",
    "Position",
    "RenpyScreen",
    "RouteAnalysis",
    "RouteLink",
    "Variable",
    "VariableUsage",
    "route_link_key",
]
