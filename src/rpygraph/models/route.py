"""Route graph models.

The route graph is label-level: one node per label, edges for explicit
jumps/calls and for implicit fall-through between consecutive labels.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_serializer


class Position(BaseModel):
    """Top-left corner of a laid-out node."""

    x: float = 0.0
    y: float = 0.0


class LabelNode(BaseModel):
    """A label in the route graph. ``id`` is ``"<block_id>:<label>"``."""

    id: str
    block_id: str
    label: str
    start_line: int
    container_name: str = "Untitled"
    position: Position = Field(default_factory=Position)
    width: float = 180
    height: float = 40


class RouteLink(BaseModel):
    """A directed edge between two label nodes."""

    source_id: str
    target_id: str
    type: Literal["jump", "call", "implicit"]

    @property
    def key(self) -> str:
        """Deterministic ``"sourceId-targetId"`` key used by routes."""
        return route_link_key(self.source_id, self.target_id)


class IdentifiedRoute(BaseModel):
    """One entry-to-terminal path through the route graph."""

    id: int
    color: str
    link_ids: set[str] = Field(default_factory=set)

    @field_serializer("link_ids", when_used="json")
    def _serialize_link_ids(self, value: set[str]) -> list[str]:
        return sorted(value)


class RouteAnalysis(BaseModel):
    """The route sub-feature output: nodes, edges, and routes."""

    label_nodes: list[LabelNode] = Field(default_factory=list)
    route_links: list[RouteLink] = Field(default_factory=list)
    identified_routes: list[IdentifiedRoute] = Field(default_factory=list)


def route_link_key(source_id: str, target_id: str) -> str:
    return f"{source_id}-{target_id}"
