"""Layered layout.

A topological layering shared by the block graph and the label route
graph. Nodes are processed in waves of zero in-degree; a fully cyclic
graph is entered through its lowest in-degree node, and anything never
reached lands in one final catch-all layer. Only list order is used for
anything observable, so equal input yields equal positions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from rpygraph.models import Position

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from rpygraph.config import LayoutConfig


class LayoutNode(Protocol):
    """Anything with an id and a size."""

    @property
    def id(self) -> str: ...

    @property
    def width(self) -> float: ...

    @property
    def height(self) -> float: ...


class LayoutEdge(Protocol):
    """Anything with a source and a target id."""

    @property
    def source_id(self) -> str: ...

    @property
    def target_id(self) -> str: ...


def compute_layers(node_ids: Sequence[str], edges: Iterable[LayoutEdge]) -> list[list[str]]:
    """Assign node ids to layers by dependency depth.

    Edges touching unknown ids are ignored. Parallel edges count once
    per occurrence on both the increment and the decrement side.

    Returns:
        Layers in left-to-right order; every node id appears exactly once.
    """
    ordered = list(dict.fromkeys(node_ids))
    in_degree = dict.fromkeys(ordered, 0)
    successors: dict[str, list[str]] = {node_id: [] for node_id in ordered}
    for edge in edges:
        if edge.source_id in in_degree and edge.target_id in in_degree:
            successors[edge.source_id].append(edge.target_id)
            in_degree[edge.target_id] += 1

    queue = [node_id for node_id in ordered if in_degree[node_id] == 0]
    if not queue and ordered:
        # min() keeps the first of equal candidates, i.e. input order.
        queue = [min(ordered, key=lambda node_id: in_degree[node_id])]

    layers: list[list[str]] = []
    visited: set[str] = set()
    queued = set(queue)
    while queue:
        layer: list[str] = []
        next_queue: list[str] = []
        for node_id in queue:
            if node_id in visited:
                continue
            visited.add(node_id)
            layer.append(node_id)
            for succ in successors[node_id]:
                in_degree[succ] -= 1
                if in_degree[succ] <= 0 and succ not in visited and succ not in queued:
                    next_queue.append(succ)
                    queued.add(succ)
        if layer:
            layers.append(layer)
        queue = next_queue

    remaining = [node_id for node_id in ordered if node_id not in visited]
    if remaining:
        layers.append(remaining)
    return layers


def compute_layered_layout(
    nodes: Sequence[LayoutNode],
    edges: Iterable[LayoutEdge],
    layout: LayoutConfig,
) -> dict[str, Position]:
    """Compute top-left positions for every node.

    Layers advance along x by the widest node of the previous layer plus
    ``padding_x``. Within a layer nodes are stacked along y, separated by
    ``padding_y`` and centred around zero; narrower nodes are centred
    horizontally on the layer's widest node.
    """
    by_id = {node.id: node for node in nodes}
    positions: dict[str, Position] = {}
    layer_x = 0.0

    for layer in compute_layers([node.id for node in nodes], edges):
        members = [by_id[node_id] for node_id in layer]
        max_width = max(node.width for node in members)
        total_height = sum(node.height for node in members) + (len(members) - 1) * layout.padding_y

        y = -total_height / 2
        for node in members:
            positions[node.id] = Position(x=layer_x + (max_width - node.width) / 2, y=y)
            y += node.height + layout.padding_y
        layer_x += max_width + layout.padding_x

    return positions
