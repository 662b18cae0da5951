"""Script graph visualization.

Extracts the block Link graph or the label route graph from an analysis
and renders it as DOT (Graphviz) or Mermaid markup.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rpygraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rpygraph.models import AnalysisResult, Block, RouteAnalysis

log = get_logger(__name__)

_ROOT_COLOR = "#90EE90"  # light green
_LEAF_COLOR = "#FFB6C1"  # light pink
_DEFAULT_COLOR = "#D3D3D3"  # light grey
_BRANCHING_BORDER = "#FF4500"  # orange-red border for branching blocks
_IMPLICIT_COLOR = "#808080"


@dataclass
class VizNode:
    """A block or label node in the visualization."""

    id: str
    label: str
    is_start: bool = False
    is_ending: bool = False
    is_branching: bool = False


@dataclass
class VizEdge:
    """A link or route edge in the visualization."""

    from_id: str
    to_id: str
    label: str = ""
    is_implicit: bool = False
    color: str | None = None


@dataclass
class ScriptGraph:
    """Complete visualization data for one graph."""

    nodes: list[VizNode]
    edges: list[VizEdge]


def build_block_graph(blocks: Sequence[Block], result: AnalysisResult) -> ScriptGraph:
    """Block-level graph: one node per block, one edge per Link.

    Roots are drawn as starts, leaves as endings, branching blocks get a
    thick border.
    """
    nodes = [
        VizNode(
            id=block.id,
            label=_truncate(block.title or block.file_path or block.id, 40),
            is_start=block.id in result.root_block_ids,
            is_ending=block.id in result.leaf_block_ids,
            is_branching=block.id in result.branching_block_ids,
        )
        for block in blocks
    ]
    edges = [
        VizEdge(from_id=link.source_id, to_id=link.target_id, label=link.target_label)
        for link in result.links
    ]
    log.debug("block_graph_built", nodes=len(nodes), edges=len(edges))
    return ScriptGraph(nodes=nodes, edges=edges)


def build_route_graph_view(routes: RouteAnalysis) -> ScriptGraph:
    """Label-level graph: entry labels as starts, terminal labels as endings.

    Each edge takes the colour of the first route that contains it.
    """
    has_incoming = {link.target_id for link in routes.route_links}
    has_outgoing = {link.source_id for link in routes.route_links}

    edge_color: dict[str, str] = {}
    for route in routes.identified_routes:
        for key in route.link_ids:
            edge_color.setdefault(key, route.color)

    nodes = [
        VizNode(
            id=node.id,
            label=f"{node.label} ({node.container_name})",
            is_start=node.id not in has_incoming,
            is_ending=node.id not in has_outgoing,
        )
        for node in routes.label_nodes
    ]
    edges = [
        VizEdge(
            from_id=link.source_id,
            to_id=link.target_id,
            label="" if link.type == "implicit" else link.type,
            is_implicit=link.type == "implicit",
            color=edge_color.get(link.key),
        )
        for link in routes.route_links
    ]
    log.debug("route_graph_view_built", nodes=len(nodes), edges=len(edges))
    return ScriptGraph(nodes=nodes, edges=edges)


def render_dot(sg: ScriptGraph, *, no_labels: bool = False) -> str:
    """Render a ScriptGraph as DOT (Graphviz) markup.

    Args:
        sg: Graph data.
        no_labels: If True, omit edge labels.

    Returns:
        DOT format string.
    """
    lines = [
        "digraph script {",
        "  rankdir=LR;",
        '  node [fontname="Helvetica" fontsize=10 style="filled,solid"];',
        '  edge [fontname="Helvetica" fontsize=8];',
        "",
    ]

    for node in sg.nodes:
        attrs = _dot_node_attrs(node)
        attr_str = " ".join(f"{k}={v}" for k, v in attrs.items())
        lines.append(f'  "{_dot_escape(node.id)}" [{attr_str}];')

    lines.append("")

    for edge in sg.edges:
        edge_attrs: dict[str, str] = {}
        if not no_labels and edge.label:
            edge_attrs["label"] = f'"{_dot_escape(edge.label)}"'
        if edge.is_implicit:
            edge_attrs["style"] = '"dashed"'
            edge_attrs["color"] = f'"{_IMPLICIT_COLOR}"'
        # Route colour wins over the implicit grey; the dash stays.
        if edge.color:
            edge_attrs["color"] = f'"{edge.color}"'
            edge_attrs["penwidth"] = '"2"'
        edge_attr_str = " ".join(f"{k}={v}" for k, v in edge_attrs.items())
        suffix = f" [{edge_attr_str}]" if edge_attr_str else ""
        lines.append(f'  "{_dot_escape(edge.from_id)}" -> "{_dot_escape(edge.to_id)}"{suffix};')

    lines.append("}")
    return "\n".join(lines)


def render_mermaid(sg: ScriptGraph, *, no_labels: bool = False) -> str:
    """Render a ScriptGraph as Mermaid markup.

    Args:
        sg: Graph data.
        no_labels: If True, omit edge labels.

    Returns:
        Mermaid format string.
    """
    lines = ["graph LR"]
    endpoints = [node_id for e in sg.edges for node_id in (e.from_id, e.to_id)]
    ids = _mermaid_ids([n.id for n in sg.nodes] + endpoints)

    for node in sg.nodes:
        safe_id = ids[node.id]
        label = _mermaid_escape(node.label)
        if node.is_start:
            lines.append(f'  {safe_id}["{label}"]:::start')
        elif node.is_ending:
            lines.append(f'  {safe_id}["{label}"]:::ending')
        elif node.is_branching:
            lines.append(f"  {safe_id}{{{{{label}}}}}")
        else:
            lines.append(f'  {safe_id}["{label}"]')
        if node.is_branching and (node.is_start or node.is_ending):
            lines.append(f"  class {safe_id} branching")

    lines.append("")

    for edge in sg.edges:
        src = ids[edge.from_id]
        dst = ids[edge.to_id]
        arrow = "-.->" if edge.is_implicit else "-->"
        if not no_labels and edge.label:
            label = _mermaid_escape(edge.label)
            lines.append(f'  {src} {arrow}|"{label}"| {dst}')
        else:
            lines.append(f"  {src} {arrow} {dst}")

    lines.append("")
    lines.append(f"  classDef start fill:{_ROOT_COLOR},stroke:#333")
    lines.append(f"  classDef ending fill:{_LEAF_COLOR},stroke:#333")
    lines.append(f"  classDef branching stroke:{_BRANCHING_BORDER},stroke-width:3px")
    # Mermaid styles edges by index only.
    for i, edge in enumerate(sg.edges):
        if edge.color:
            lines.append(f"  linkStyle {i} stroke:{edge.color},stroke-width:2px")

    return "\n".join(lines)


def _truncate(text: str, max_len: int) -> str:
    """Truncate text with ellipsis if too long."""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _dot_node_attrs(node: VizNode) -> dict[str, str]:
    """Build DOT attribute dict for a node."""
    attrs: dict[str, str] = {}

    if node.is_start:
        attrs["shape"] = "doubleoctagon"
        attrs["fillcolor"] = f'"{_ROOT_COLOR}"'
    elif node.is_ending:
        attrs["shape"] = "octagon"
        attrs["fillcolor"] = f'"{_LEAF_COLOR}"'
    else:
        attrs["shape"] = "box"
        attrs["fillcolor"] = f'"{_DEFAULT_COLOR}"'

    if node.is_branching:
        attrs["color"] = f'"{_BRANCHING_BORDER}"'
        attrs["penwidth"] = '"2.5"'

    attrs["label"] = f'"{_dot_escape(node.label)}"'
    return attrs


def _dot_escape(text: str) -> str:
    """Escape special characters for DOT strings."""
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _mermaid_id(node_id: str) -> str:
    """Convert a node ID to a Mermaid-safe identifier."""
    return "".join(ch if ch.isalnum() or ch == "_" else "_" for ch in node_id)


def _mermaid_ids(node_ids: list[str]) -> dict[str, str]:
    """Map node IDs to distinct Mermaid identifiers.

    IDs that sanitize to the same identifier get a numeric suffix in
    first-seen order (``a/b.rpy`` -> ``a_b_rpy``, ``a_b.rpy`` -> ``a_b_rpy_2``).
    """
    ids: dict[str, str] = {}
    used: set[str] = set()
    for node_id in node_ids:
        if node_id in ids:
            continue
        base = _mermaid_id(node_id)
        candidate = base
        n = 2
        while candidate in used:
            candidate = f"{base}_{n}"
            n += 1
        ids[node_id] = candidate
        used.add(candidate)
    return ids


def _mermaid_escape(text: str) -> str:
    """Escape special characters for Mermaid labels."""
    return text.replace('"', "&quot;").replace("\n", " ")
