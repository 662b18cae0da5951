"""Tests for script graph visualization module."""

from __future__ import annotations

from rpygraph import analyze, analyze_routes
from rpygraph.analysis.patterns import PALETTE
from rpygraph.models import Block
from rpygraph.visualization import (
    ScriptGraph,
    VizEdge,
    VizNode,
    build_block_graph,
    build_route_graph_view,
    render_dot,
    render_mermaid,
)


def _route_view(blocks: list[Block]) -> ScriptGraph:
    result = analyze(blocks)
    return build_route_graph_view(analyze_routes(blocks, result.labels, result.jumps))


class TestBuildBlockGraph:
    """Tests for build_block_graph()."""

    def test_nodes_and_edges(self, sample_blocks: list[Block]) -> None:
        """One node per block, one edge per link."""
        sg = build_block_graph(sample_blocks, analyze(sample_blocks))

        assert [n.id for n in sg.nodes] == ["characters", "script", "paths", "screens"]
        assert [(e.from_id, e.to_id, e.label) for e in sg.edges] == [
            ("script", "paths", "left_path"),
        ]

    def test_roles(self, sample_blocks: list[Block]) -> None:
        """Roots, leaves and branching blocks are flagged."""
        sg = build_block_graph(sample_blocks, analyze(sample_blocks))
        by_id = {n.id: n for n in sg.nodes}

        assert by_id["script"].is_start
        assert by_id["script"].is_branching
        assert not by_id["paths"].is_start
        assert by_id["screens"].is_ending

    def test_label_prefers_title(self, sample_blocks: list[Block]) -> None:
        """Node captions use the title, then the file path."""
        sg = build_block_graph(sample_blocks, analyze(sample_blocks))
        by_id = {n.id: n for n in sg.nodes}

        assert by_id["script"].label == "Opening"
        assert by_id["paths"].label == "game/paths.rpy"


class TestBuildRouteGraphView:
    """Tests for build_route_graph_view()."""

    def test_entry_and_terminal(self, sample_blocks: list[Block]) -> None:
        """Entry labels start; terminal labels end."""
        sg = _route_view(sample_blocks)
        by_id = {n.id: n for n in sg.nodes}

        assert by_id["script:start"].is_start
        assert by_id["paths:ending"].is_ending
        assert by_id["script:start"].label == "start (Opening)"

    def test_edge_colours_from_first_route(self, sample_blocks: list[Block]) -> None:
        """Edges take the colour of the first route containing them."""
        sg = _route_view(sample_blocks)
        colours = {(e.from_id, e.to_id): e.color for e in sg.edges}

        assert colours[("script:start", "paths:left_path")] == PALETTE[0]
        assert colours[("paths:right_path", "paths:ending")] == PALETTE[1]

    def test_implicit_edges(self, sample_blocks: list[Block]) -> None:
        """Fall-through edges are marked implicit and unlabelled."""
        sg = _route_view(sample_blocks)
        implicit = [e for e in sg.edges if e.is_implicit]

        assert [(e.from_id, e.to_id, e.label) for e in implicit] == [
            ("paths:right_path", "paths:ending", ""),
        ]


class TestRenderDot:
    """Tests for render_dot()."""

    def test_structure(self, sample_blocks: list[Block]) -> None:
        """DOT output declares nodes and edges."""
        dot = render_dot(build_block_graph(sample_blocks, analyze(sample_blocks)))

        assert dot.startswith("digraph script {")
        assert dot.endswith("}")
        assert '"script" [' in dot
        assert '"script" -> "paths" [label="left_path"];' in dot

    def test_start_and_branching_styles(self) -> None:
        """Start nodes are double octagons; branching nodes get a border."""
        sg = ScriptGraph(
            nodes=[VizNode(id="a", label="A", is_start=True, is_branching=True)],
            edges=[],
        )
        dot = render_dot(sg)
        assert "shape=doubleoctagon" in dot
        assert 'penwidth="2.5"' in dot

    def test_implicit_and_coloured_edges(self) -> None:
        """Implicit edges are dashed; route colours are applied."""
        sg = ScriptGraph(
            nodes=[VizNode(id="a", label="A"), VizNode(id="b", label="B")],
            edges=[VizEdge(from_id="a", to_id="b", is_implicit=True, color="#E57373")],
        )
        dot = render_dot(sg)
        assert 'style="dashed"' in dot
        assert 'color="#E57373"' in dot

    def test_no_labels(self, sample_blocks: list[Block]) -> None:
        """no_labels drops edge labels."""
        dot = render_dot(
            build_block_graph(sample_blocks, analyze(sample_blocks)), no_labels=True
        )
        assert '"script" -> "paths";' in dot

    def test_escaping(self) -> None:
        """Quotes in captions are escaped."""
        sg = ScriptGraph(nodes=[VizNode(id="a", label='say "hi"')], edges=[])
        assert 'label="say \\"hi\\""' in render_dot(sg)


class TestRenderMermaid:
    """Tests for render_mermaid()."""

    def test_structure(self, sample_blocks: list[Block]) -> None:
        """Mermaid output uses safe ids and solid arrows for jumps."""
        mermaid = render_mermaid(_route_view(sample_blocks))

        assert mermaid.startswith("graph LR")
        assert 'script_start["start (Opening)"]:::start' in mermaid
        assert 'script_start -->|"jump"| paths_left_path' in mermaid

    def test_implicit_edges_dashed(self, sample_blocks: list[Block]) -> None:
        """Fall-through edges use dotted arrows."""
        mermaid = render_mermaid(_route_view(sample_blocks))
        assert "paths_right_path -.-> paths_ending" in mermaid

    def test_link_styles_for_route_colours(self, sample_blocks: list[Block]) -> None:
        """Each coloured edge gets a linkStyle line."""
        mermaid = render_mermaid(_route_view(sample_blocks))
        assert f"linkStyle 0 stroke:{PALETTE[0]},stroke-width:2px" in mermaid
        assert f"linkStyle 3 stroke:{PALETTE[1]},stroke-width:2px" in mermaid

    def test_colliding_ids_stay_distinct(self) -> None:
        """IDs that sanitize alike become different Mermaid nodes."""
        sg = ScriptGraph(
            nodes=[
                VizNode(id="a/b.rpy", label="first"),
                VizNode(id="a_b.rpy", label="second"),
                VizNode(id="b1:start", label="third"),
                VizNode(id="b1_start", label="fourth"),
            ],
            edges=[
                VizEdge(from_id="a/b.rpy", to_id="a_b.rpy"),
                VizEdge(from_id="b1_start", to_id="b1:start"),
            ],
        )
        mermaid = render_mermaid(sg)

        assert 'a_b_rpy["first"]' in mermaid
        assert 'a_b_rpy_2["second"]' in mermaid
        assert 'b1_start["third"]' in mermaid
        assert 'b1_start_2["fourth"]' in mermaid
        assert "a_b_rpy --> a_b_rpy_2" in mermaid
        assert "b1_start_2 --> b1_start" in mermaid

    def test_branching_node_shape(self) -> None:
        """Branching nodes in the middle of a graph are hexagons."""
        sg = ScriptGraph(nodes=[VizNode(id="hub", label="Hub", is_branching=True)], edges=[])
        assert "hub{{Hub}}" in render_mermaid(sg)
