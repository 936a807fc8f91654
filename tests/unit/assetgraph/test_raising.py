"""Tests for the raising pass (graph -> asset tree)."""

import logging

from assetgraph.graph import Graph, GraphEdge, GraphNode
from assetgraph.lowering import lower_sections, lower_to_graph
from assetgraph.raising import (
    find_roots,
    node_discriminant,
    raise_graph,
    raise_multi,
    raise_node,
    raise_sections,
)


def _node(node_id, type_label, asset_type=None, **fields):
    return GraphNode(id=node_id, type=type_label, asset_type=asset_type, fields=fields)


class TestNodeDiscriminant:
    """Tests for recovering the Type field."""

    def test_prefers_raw_asset_type(self):
        assert node_discriminant(_node("v", "Vector:Constant", "Constant")) == "Constant"

    def test_strips_category_when_raw_missing(self):
        assert node_discriminant(_node("p", "Position:Offset")) == "Offset"


class TestRaiseNode:
    """Tests for raising a single tree."""

    def test_array_order_from_slot_index(self):
        graph = Graph(
            [
                _node("s", "Sum", "Sum"),
                _node("a", "Constant", "Constant", Value=1),
                _node("b", "Constant", "Constant", Value=2),
                _node("c", "Constant", "Constant", Value=3),
            ],
            [
                GraphEdge(source="c", target="s", target_port="Inputs[2]"),
                GraphEdge(source="a", target="s", target_port="Inputs[0]"),
                GraphEdge(source="b", target="s", target_port="Inputs[1]"),
            ],
        )
        asset = raise_node(graph, "s")
        assert [i["Value"] for i in asset["Inputs"]] == [1, 2, 3]

    def test_lowered_named_fields_stay_named(self):
        choice = _node("c", "RangeChoice", "RangeChoice")
        choice.array_fields = []
        graph = Graph(
            [choice, _node("t", "One", "One"), _node("f", "Zero", "Zero")],
            [
                GraphEdge(source="t", target="c", target_port="TrueInput"),
                GraphEdge(source="f", target="c", target_port="FalseInput"),
            ],
        )
        assert raise_node(graph, "c") == {
            "Type": "RangeChoice",
            "TrueInput": {"Type": "One"},
            "FalseInput": {"Type": "Zero"},
        }

    def test_editor_node_named_ports_become_array(self):
        graph = Graph(
            [_node("c", "RangeChoice", "RangeChoice"), _node("t", "One", "One")],
            [GraphEdge(source="t", target="c", target_port="TrueInput")],
        )
        assert raise_node(graph, "c") == {"Type": "RangeChoice", "Inputs": [{"Type": "One"}]}

    def test_gaps_are_compacted(self):
        graph = Graph(
            [_node("s", "Sum", "Sum"), _node("a", "Zero", "Zero"), _node("b", "One", "One")],
            [
                GraphEdge(source="a", target="s", target_port="Inputs[0]"),
                GraphEdge(source="b", target="s", target_port="Inputs[5]"),
            ],
        )
        asset = raise_node(graph, "s")
        assert asset["Inputs"] == [{"Type": "Zero"}, {"Type": "One"}]

    def test_named_handles_raised_to_array(self):
        graph = Graph(
            [
                _node("b", "Blend", "Blend"),
                _node("f", "Constant", "Constant", Value=0.25),
                _node("x", "Zero", "Zero"),
                _node("y", "One", "One"),
            ],
            [
                GraphEdge(source="f", target="b", target_port="Factor"),
                GraphEdge(source="y", target="b", target_port="InputB"),
                GraphEdge(source="x", target="b", target_port="InputA"),
            ],
        )
        asset = raise_node(graph, "b")
        assert asset == {
            "Type": "Blend",
            "Inputs": [{"Type": "Zero"}, {"Type": "One"}, {"Type": "Constant", "Value": 0.25}],
        }

    def test_legacy_port_on_hand_built_graph(self):
        graph = Graph(
            [_node("s", "Sum", "Sum"), _node("a", "Zero", "Zero"), _node("b", "One", "One")],
            [
                GraphEdge(source="b", target="s", target_port="InputB"),
                GraphEdge(source="a", target="s", target_port="InputA"),
            ],
        )
        asset = raise_node(graph, "s")
        assert asset == {"Type": "Sum", "Inputs": [{"Type": "Zero"}, {"Type": "One"}]}

    def test_fields_are_copied(self):
        graph = Graph([_node("l", "List", "List", Positions=[{"x": 1, "z": 1}])])
        asset = raise_node(graph, "l")
        asset["Positions"].clear()
        assert graph.nodes[0].fields["Positions"] == [{"x": 1, "z": 1}]

    def test_unknown_root_returns_none(self):
        assert raise_node(Graph([_node("a", "Zero")]), "missing") is None

    def test_cycle_input_omitted(self):
        graph = Graph(
            [_node("a", "Sum", "Sum"), _node("b", "Negate", "Negate")],
            [
                GraphEdge(source="b", target="a", target_port="Inputs[0]"),
                GraphEdge(source="a", target="b", target_port="Input"),
            ],
        )
        asset = raise_graph(graph)
        assert asset == {"Type": "Sum", "Inputs": [{"Type": "Negate"}]}


class TestFindRoots:
    """Tests for root discovery."""

    def test_output_tag_wins(self):
        graph = lower_to_graph({"Type": "Negate", "Input": {"Type": "Zero"}})
        graph.nodes[1].output = True
        assert [n.id for n in find_roots(graph)] == ["graph_2"]

    def test_terminals_in_node_order(self):
        graph = Graph([_node("a", "Zero"), _node("b", "One")])
        assert [n.id for n in find_roots(graph)] == ["a", "b"]

    def test_all_cycle_falls_back_to_first_node(self):
        graph = Graph(
            [_node("a", "Negate"), _node("b", "Abs")],
            [
                GraphEdge(source="a", target="b", target_port="Input"),
                GraphEdge(source="b", target="a", target_port="Input"),
            ],
        )
        assert [n.id for n in find_roots(graph)] == ["a"]


class TestRaiseGraph:
    """Tests for whole-graph raising."""

    def test_empty_graph(self):
        assert raise_graph(Graph()) is None

    def test_unknown_explicit_root(self, caplog):
        graph = lower_to_graph({"Type": "Zero"})
        with caplog.at_level(logging.WARNING, logger="assetgraph.raising"):
            assert raise_graph(graph, root_id="nope") is None
        assert any("nope" in r.message for r in caplog.records)

    def test_extra_terminals_become_disconnected_trees(self):
        graph = lower_to_graph({"Type": "Negate", "Input": {"Type": "Zero"}})
        graph.add_node(_node("loose", "One", "One"))
        asset = raise_graph(graph)
        assert asset["Type"] == "Negate"
        assert asset["$DisconnectedTrees"] == [{"Type": "One"}]

    def test_non_terminal_root_has_no_disconnected_trees(self):
        graph = lower_to_graph({"Type": "Negate", "Input": {"Type": "Zero"}})
        graph.add_node(_node("loose", "One", "One"))
        asset = raise_graph(graph, root_id="graph_2")
        assert asset == {"Type": "Zero"}


class TestRaiseMulti:
    """Tests for multi-root raising."""

    def test_one_asset_per_terminal(self):
        graph = Graph([_node("a", "Zero", "Zero"), _node("b", "One", "One")])
        assert raise_multi(graph) == [{"Type": "Zero"}, {"Type": "One"}]

    def test_explicit_roots_skip_unknown(self):
        graph = Graph([_node("a", "Zero", "Zero"), _node("b", "One", "One")])
        assert raise_multi(graph, ["b", "ghost"]) == [{"Type": "One"}]


class TestRaiseSections:
    """Tests for tagged multi-section raising."""

    def test_tagged_sections_partitioned(self):
        sections = {
            "Positions": {
                "Type": "Occurrence",
                "Chance": 0.5,
                "PositionProvider": {"Type": "SimpleHorizontal", "Spacing": 8},
            },
            "Assignments": {"Type": "Constant", "Prop": {"Type": "Box", "Size": 2}},
        }
        graph = lower_sections(sections)
        assert raise_sections(graph, ["Positions", "Assignments"]) == sections

    def test_untagged_roots_assigned_by_order(self):
        graph = Graph([_node("a", "Zero", "Zero"), _node("b", "One", "One")])
        result = raise_sections(graph, ["Positions", "Assignments"])
        assert result == {"Positions": {"Type": "Zero"}, "Assignments": {"Type": "One"}}

    def test_extra_untagged_roots_warned(self, caplog):
        graph = Graph([_node("a", "Zero", "Zero"), _node("b", "One", "One")])
        with caplog.at_level(logging.WARNING, logger="assetgraph.raising"):
            result = raise_sections(graph, ["Positions"])
        assert result == {"Positions": {"Type": "Zero"}}
        assert len(caplog.records) == 1

    def test_missing_section_omitted(self):
        graph = lower_sections({"Positions": {"Type": "SimpleHorizontal"}})
        result = raise_sections(graph, ["Positions", "Assignments"])
        assert list(result) == ["Positions"]
