"""Label-level route graph and route enumeration.

The route graph is finer than the block Link graph: one node per plain
label, an explicit edge for every resolvable jump/call (attributed to
the label the statement sits under), and an implicit edge wherever a
label's body runs into the next label without a top-level ``jump``,
``call`` or ``return``.

Routes are the simple paths from entry labels (no incoming edge) to
terminal labels (no outgoing edge).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rpygraph.analysis.patterns import (
    TERMINAL_STATEMENT_RE,
    indentation,
    palette_color,
    sanitize_line,
    split_lines,
)
from rpygraph.models import IdentifiedRoute, LabelNode, RouteLink, route_link_key
from rpygraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from rpygraph.config import AnalysisConfig, LayoutConfig
    from rpygraph.models import Block, JumpLocation, LabelLocation

log = get_logger(__name__)


@dataclass
class _LabelSpan:
    label: str
    line: int
    node_id: str


def node_id_for(block_id: str, label: str) -> str:
    return f"{block_id}:{label}"


def container_name(block: Block) -> str:
    """Caption for label nodes: block title, else file name, else "Untitled"."""
    if block.title:
        return block.title
    if block.file_path:
        return block.file_path.replace("\\", "/").rsplit("/", 1)[-1]
    return "Untitled"


def has_top_level_terminal(body: Sequence[str]) -> bool:
    """True if ``body`` holds a jump, call or return at its own base indentation.

    The base indentation is that of the first non-blank line; statements
    nested deeper (inside a menu, an ``if``) do not count.
    """
    base: int | None = None
    for raw in body:
        line = sanitize_line(raw)
        stripped = line.strip()
        if not stripped:
            continue
        depth = indentation(line)
        if base is None:
            base = depth
        if depth <= base and TERMINAL_STATEMENT_RE.match(stripped):
            return True
    return False


def _enclosing(spans: Sequence[_LabelSpan], line: int) -> _LabelSpan | None:
    """Nearest span starting at or before ``line``."""
    found = None
    for span in spans:
        if span.line > line:
            break
        found = span
    return found


def build_route_graph(
    blocks: Sequence[Block],
    labels: Mapping[str, LabelLocation],
    jumps: Mapping[str, Sequence[JumpLocation]],
    config: AnalysisConfig,
    layout: LayoutConfig,
) -> tuple[list[LabelNode], list[RouteLink]]:
    """Build label nodes and route links.

    Args:
        blocks: Input blocks in caller order.
        labels: Global label table.
        jumps: Per-block jump occurrences.
        config: Analysis settings (ignored paths).
        layout: Label node size.

    Returns:
        Tuple of (label nodes in block then line order, deduplicated
        route links with each block's explicit edges before its
        implicit ones).
    """
    spans_by_block: dict[str, list[_LabelSpan]] = {}
    for location in labels.values():
        if location.type == "label":
            spans_by_block.setdefault(location.block_id, []).append(
                _LabelSpan(location.label, location.line, node_id_for(location.block_id, location.label))
            )
    for spans in spans_by_block.values():
        spans.sort(key=lambda span: span.line)

    # Label name -> node a jump to it lands on. Named menus execute inside
    # their enclosing label, so they resolve to that label's node.
    target_nodes: dict[str, str] = {}
    for name, location in labels.items():
        if location.type == "label":
            target_nodes[name] = node_id_for(location.block_id, name)
        else:
            enclosing = _enclosing(spans_by_block.get(location.block_id, []), location.line)
            if enclosing is not None:
                target_nodes[name] = enclosing.node_id

    nodes: list[LabelNode] = []
    links: dict[tuple[str, str], RouteLink] = {}

    def add_link(source_id: str, target_id: str, link_type: str) -> None:
        if (source_id, target_id) not in links:
            links[(source_id, target_id)] = RouteLink(
                source_id=source_id, target_id=target_id, type=link_type
            )

    for block in blocks:
        if config.is_ignored(block.file_path):
            continue
        spans = spans_by_block.get(block.id, [])
        caption = container_name(block)
        for span in spans:
            nodes.append(
                LabelNode(
                    id=span.node_id,
                    block_id=block.id,
                    label=span.label,
                    start_line=span.line,
                    container_name=caption,
                    width=layout.label_node_width,
                    height=layout.label_node_height,
                )
            )

        for jump in jumps.get(block.id, []):
            if jump.is_dynamic:
                continue
            source = _enclosing(spans, jump.line)
            target_id = target_nodes.get(jump.target)
            if source is None or target_id is None:
                continue
            add_link(source.node_id, target_id, jump.type)

        if len(spans) > 1:
            lines = split_lines(block.content)
            for current, following in zip(spans, spans[1:], strict=False):
                body = lines[current.line : following.line - 1]
                if not has_top_level_terminal(body):
                    add_link(current.node_id, following.node_id, "implicit")

    route_links = list(links.values())
    log.debug("route_graph_built", label_nodes=len(nodes), route_links=len(route_links))
    return nodes, route_links


class _RouteCollector:
    """Accumulates unique routes up to a cap."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.paths: list[list[str]] = []
        self._signatures: set[str] = set()

    @property
    def full(self) -> bool:
        return len(self.paths) >= self.limit

    def add(self, node_path: Sequence[str], link_keys: Sequence[str]) -> None:
        if not link_keys or self.full:
            return
        signature = "->".join(node_path)
        if signature in self._signatures:
            return
        self._signatures.add(signature)
        self.paths.append(list(link_keys))


def enumerate_routes(
    label_nodes: Sequence[LabelNode],
    route_links: Sequence[RouteLink],
    max_routes: int,
) -> list[IdentifiedRoute]:
    """Enumerate entry-to-terminal routes.

    Each entry label is walked depth-first over simple paths; a node
    already on the current path is never re-entered. A path that could
    only continue by closing a cycle is kept as a loop route, and loop
    routes are reported only when no terminal route exists at all. With
    no entry label (a fully cyclic graph) the first node of lowest
    in-degree acts as the entry.
    """
    successors: dict[str, list[tuple[str, str]]] = {node.id: [] for node in label_nodes}
    in_degree = dict.fromkeys(successors, 0)
    for link in route_links:
        if link.source_id in successors and link.target_id in successors:
            successors[link.source_id].append((link.target_id, link.key))
            in_degree[link.target_id] += 1

    entries = [node_id for node_id, degree in in_degree.items() if degree == 0]
    if not entries and in_degree:
        entries = [min(in_degree, key=in_degree.__getitem__)]

    terminal = _RouteCollector(max_routes)
    loops = _RouteCollector(max_routes)

    for entry in entries:
        if terminal.full:
            break
        node_path = [entry]
        link_path: list[str] = []
        on_path = {entry}
        stack: list[Iterator[tuple[str, str]]] = [iter(successors[entry])]
        while stack and not terminal.full:
            step = next(stack[-1], None)
            if step is None:
                stack.pop()
                on_path.discard(node_path.pop())
                if link_path:
                    link_path.pop()
                continue
            target, key = step
            if target in on_path:
                loops.add([*node_path, target], [*link_path, key])
                continue
            node_path.append(target)
            link_path.append(key)
            on_path.add(target)
            if not successors[target]:
                terminal.add(node_path, link_path)
                node_path.pop()
                link_path.pop()
                on_path.discard(target)
                continue
            stack.append(iter(successors[target]))

    if terminal.full:
        log.warning("routes_truncated", max_routes=max_routes)

    paths = terminal.paths or loops.paths
    routes = [
        IdentifiedRoute(id=index, color=palette_color(index), link_ids=set(keys))
        for index, keys in enumerate(paths)
    ]
    log.debug(
        "routes_enumerated",
        entries=len(entries),
        routes=len(routes),
        loop_routes=0 if terminal.paths else len(loops.paths),
    )
    return routes
