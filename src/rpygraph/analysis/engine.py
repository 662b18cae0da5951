"""Analysis pipeline.

``analyze`` runs the two phases in order: extraction over every block
first, then resolution, classification and usage indexing against the
complete tables. ``analyze_routes`` builds and lays out the label-level
route graph from the tables ``analyze`` produced. Both are pure
functions of their inputs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from rpygraph.analysis.classifier import classify
from rpygraph.analysis.extractor import extract
from rpygraph.analysis.layout import compute_layered_layout
from rpygraph.analysis.resolver import resolve
from rpygraph.analysis.routes import build_route_graph, enumerate_routes
from rpygraph.analysis.usage import index_usage
from rpygraph.config import ProjectConfig
from rpygraph.models import AnalysisResult, Block, RouteAnalysis
from rpygraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from rpygraph.config import LayoutConfig
    from rpygraph.models import JumpLocation, LabelLocation, Link, Position

log = get_logger(__name__)


def coerce_blocks(blocks: Iterable[Block | Mapping[str, Any]]) -> list[Block]:
    """Accept Block models or plain mappings (``filePath`` or ``file_path``)."""
    return [b if isinstance(b, Block) else Block.model_validate(b) for b in blocks]


def analyze(
    blocks: Iterable[Block | Mapping[str, Any]],
    config: ProjectConfig | None = None,
) -> AnalysisResult:
    """Analyze one snapshot of blocks.

    Never raises for script content: unresolved references end up in
    ``invalid_jumps``, malformed Character arguments are skipped.

    Args:
        blocks: Input blocks in caller order. Ids must be unique.
        config: Project configuration; defaults when omitted.

    Returns:
        The complete AnalysisResult.
    """
    config = config or ProjectConfig()
    block_list = coerce_blocks(blocks)

    tables = extract(block_list, config.analysis)
    refs = resolve(block_list, tables)
    classes = classify(block_list, tables, refs, config.analysis)
    usage = index_usage(block_list, tables)

    result = AnalysisResult(
        labels=tables.labels,
        jumps=refs.jumps,
        links=refs.links,
        invalid_jumps=refs.invalid_jumps,
        first_labels=tables.first_labels,
        root_block_ids=classes.root_block_ids,
        leaf_block_ids=classes.leaf_block_ids,
        branching_block_ids=classes.branching_block_ids,
        screen_only_block_ids=classes.screen_only_block_ids,
        story_block_ids=classes.story_block_ids,
        config_block_ids=classes.config_block_ids,
        characters=tables.characters,
        dialogue_lines=usage.dialogue_lines,
        character_usage=usage.character_usage,
        variables=tables.variables,
        variable_usages=usage.variable_usages,
        screens=tables.screens,
        defined_images=tables.defined_images,
        block_types=classes.block_types,
    )
    log.debug("analysis_complete", blocks=len(block_list), links=len(result.links))
    return result


def analyze_routes(
    blocks: Iterable[Block | Mapping[str, Any]],
    labels: Mapping[str, LabelLocation],
    jumps: Mapping[str, Sequence[JumpLocation]],
    config: ProjectConfig | None = None,
) -> RouteAnalysis:
    """Build, enumerate and lay out the label-level route graph.

    Args:
        blocks: The same blocks passed to :func:`analyze`.
        labels: ``AnalysisResult.labels``.
        jumps: ``AnalysisResult.jumps``.
        config: Project configuration; defaults when omitted.

    Returns:
        RouteAnalysis whose label nodes carry their layout positions.
    """
    config = config or ProjectConfig()
    block_list = coerce_blocks(blocks)

    nodes, links = build_route_graph(block_list, labels, jumps, config.analysis, config.layout)
    routes = enumerate_routes(nodes, links, config.analysis.max_routes)
    positions = compute_layered_layout(nodes, links, config.layout)
    placed = [node.model_copy(update={"position": positions[node.id]}) for node in nodes]

    return RouteAnalysis(label_nodes=placed, route_links=links, identified_routes=routes)


class _SizedNode:
    __slots__ = ("height", "id", "width")

    def __init__(self, node_id: str, width: float, height: float) -> None:
        self.id = node_id
        self.width = width
        self.height = height


def layout_blocks(
    blocks: Iterable[Block | Mapping[str, Any]],
    links: Sequence[Link],
    layout: LayoutConfig | None = None,
) -> dict[str, Position]:
    """Lay out the block-level Link graph.

    Block sizes at or below ``min_node_size`` (or missing) fall back to
    the configured defaults.
    """
    layout = layout or ProjectConfig().layout
    nodes = [
        _SizedNode(block.id, *layout.node_size(block.width, block.height))
        for block in coerce_blocks(blocks)
    ]
    return compute_layered_layout(nodes, links, layout)


class AnalysisSnapshot(BaseModel):
    """Analysis and route data computed from one input snapshot."""

    result: AnalysisResult
    routes: RouteAnalysis


class Analyzer:
    """Memoizing front end for callers that re-analyze on every edit.

    Keeps the snapshot of the last call. Calling again with blocks whose
    ids, contents, paths and sizes are unchanged, and the same trigger,
    returns the cached snapshot; anything else recomputes from scratch.

    Example:
        analyzer = Analyzer()
        snapshot = analyzer.analyze(blocks)
        snapshot = analyzer.analyze(blocks, trigger=1)  # forced re-analysis
    """

    def __init__(self, config: ProjectConfig | None = None) -> None:
        self.config = config or ProjectConfig()
        self._key: tuple[Any, ...] | None = None
        self._snapshot: AnalysisSnapshot | None = None

    @staticmethod
    def _signature(blocks: Sequence[Block]) -> tuple[Any, ...]:
        return tuple(
            (b.id, b.content, b.file_path, b.title, b.width, b.height) for b in blocks
        )

    def analyze(
        self,
        blocks: Iterable[Block | Mapping[str, Any]],
        trigger: Any = 0,
    ) -> AnalysisSnapshot:
        """Return the snapshot for ``blocks``, recomputing only on change."""
        block_list = coerce_blocks(blocks)
        key = (self._signature(block_list), trigger)
        if self._snapshot is not None and key == self._key:
            log.debug("analysis_cache_hit", blocks=len(block_list))
            return self._snapshot

        result = analyze(block_list, self.config)
        routes = analyze_routes(block_list, result.labels, result.jumps, self.config)
        self._key = key
        self._snapshot = AnalysisSnapshot(result=result, routes=routes)
        return self._snapshot

    def invalidate(self) -> None:
        """Drop the cached snapshot."""
        self._key = None
        self._snapshot = None
