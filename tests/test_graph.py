"""Tests for dependency graph construction and ordering."""

import pytest

from asset_packer.core.errors import CyclicDependency, GraphError, UnknownAssetReference
from asset_packer.core.manifest import parse_manifest
from asset_packer.graph import DependencyGraph, build_graph, find_cycle

from conftest import file_asset, filtered_asset


class TestBuildGraph:
    """Test reference checks and edges."""

    def test_edges_keep_input_order(self) -> None:
        """Test that inputs are recorded in declared order."""
        manifest = parse_manifest({
            "assets": {
                "bundle": filtered_asset("concat", ["z", "y"]),
                "y": file_asset("y"),
                "z": file_asset("z"),
            },
        })

        graph = build_graph(manifest)

        assert graph.inputs_of("bundle") == ("z", "y")
        assert graph.dependents_of("y") == ["bundle"]
        assert graph.inputs_of("y") == ()
        assert len(graph) == 3
        assert "bundle" in graph
        assert "missing" not in graph

    def test_unknown_input(self) -> None:
        """Test that a reference to an undefined input names both assets."""
        manifest = parse_manifest({
            "assets": {"bundle": filtered_asset("concat", ["ghost"])},
        })

        with pytest.raises(UnknownAssetReference) as exc_info:
            build_graph(manifest)

        assert exc_info.value.name == "ghost"
        assert exc_info.value.referenced_by == "bundle"
        assert "ghost" in str(exc_info.value)

    def test_unknown_public_asset(self) -> None:
        """Test that public names must be defined."""
        manifest = parse_manifest({
            "assets": {"a": file_asset("a")},
            "public_assets": ["missing"],
        })

        with pytest.raises(UnknownAssetReference) as exc_info:
            build_graph(manifest)

        assert exc_info.value.name == "missing"
        assert exc_info.value.referenced_by is None

    def test_two_asset_cycle_names_both(self) -> None:
        """Test that a <-> b is reported with the full cycle."""
        manifest = parse_manifest({
            "assets": {
                "a": filtered_asset("concat", ["b"]),
                "b": filtered_asset("concat", ["a"]),
            },
        })

        with pytest.raises(CyclicDependency) as exc_info:
            build_graph(manifest)

        assert exc_info.value.cycle == ["a", "b", "a"]
        assert "a -> b -> a" in str(exc_info.value)
        assert isinstance(exc_info.value, GraphError)

    def test_self_cycle(self) -> None:
        """Test that an asset using itself is a cycle."""
        manifest = parse_manifest({"assets": {"a": filtered_asset("concat", ["a"])}})

        with pytest.raises(CyclicDependency) as exc_info:
            build_graph(manifest)

        assert exc_info.value.cycle == ["a", "a"]

    def test_longer_cycle_behind_acyclic_prefix(self) -> None:
        """Test that the reported cycle excludes assets leading into it."""
        manifest = parse_manifest({
            "assets": {
                "entry": filtered_asset("concat", ["a"]),
                "a": filtered_asset("concat", ["b"]),
                "b": filtered_asset("concat", ["c"]),
                "c": filtered_asset("concat", ["a"]),
            },
        })

        with pytest.raises(CyclicDependency) as exc_info:
            build_graph(manifest)

        assert exc_info.value.cycle == ["a", "b", "c", "a"]

    def test_diamond_is_not_a_cycle(self) -> None:
        """Test that shared inputs are fine."""
        manifest = parse_manifest({
            "assets": {
                "base": file_asset("base"),
                "left": filtered_asset("concat", ["base"]),
                "right": filtered_asset("concat", ["base"]),
                "top": filtered_asset("concat", ["left", "right", "base"]),
            },
        })

        graph = build_graph(manifest)

        assert find_cycle(graph) is None


class TestTopologicalOrder:
    """Test Kahn ordering with declaration-order tie-break."""

    def test_independent_assets_follow_declaration_order(self) -> None:
        """Test that unrelated assets keep manifest order."""
        manifest = parse_manifest({
            "assets": {"c": file_asset("c"), "a": file_asset("a"), "b": file_asset("b")},
        })

        assert build_graph(manifest).topological_order() == ["c", "a", "b"]

    def test_inputs_precede_dependents(self) -> None:
        """Test that a dependent declared first still comes after its inputs."""
        manifest = parse_manifest({
            "assets": {
                "bundle": filtered_asset("concat", ["z", "y"]),
                "y": file_asset("y"),
                "z": file_asset("z"),
            },
        })

        assert build_graph(manifest).topological_order() == ["y", "z", "bundle"]

    def test_duplicate_inputs_counted_once(self) -> None:
        """Test that listing an input twice does not stall the ordering."""
        manifest = parse_manifest({
            "assets": {
                "a": file_asset("a"),
                "twice": filtered_asset("concat", ["a", "a"]),
            },
        })

        assert build_graph(manifest).topological_order() == ["a", "twice"]

    def test_hand_built_cycle_detected(self) -> None:
        """Test that ordering a cyclic graph raises instead of dropping nodes."""
        graph = DependencyGraph(["a", "b"], {"a": ("b",), "b": ("a",)})

        with pytest.raises(CyclicDependency):
            graph.topological_order()
