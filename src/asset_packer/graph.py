"""Dependency graph construction and ordering.

Nodes are asset names; each filtered asset has an edge to every one of its
inputs, in input order. The graph is rebuilt for every pack run and never
persisted.
"""

import heapq
import logging
from collections.abc import Iterator

from .core.errors import CyclicDependency, UnknownAssetReference
from .core.types import Manifest

logger = logging.getLogger(__name__)

_IN_PROGRESS = 1
_DONE = 2


class DependencyGraph:
    """Name-keyed adjacency structure over the assets of a manifest.

    Attributes:
        nodes: Asset names in manifest declaration order
    """

    def __init__(self, nodes: list[str], inputs: dict[str, tuple[str, ...]]):
        self.nodes = list(nodes)
        self._index = {name: i for i, name in enumerate(self.nodes)}
        self._inputs = inputs
        self._dependents: dict[str, list[str]] = {name: [] for name in self.nodes}
        for name in self.nodes:
            for input_name in dict.fromkeys(inputs[name]):
                self._dependents[input_name].append(name)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[str]:
        return iter(self.nodes)

    def inputs_of(self, name: str) -> tuple[str, ...]:
        """Inputs of an asset in declared order (duplicates preserved)."""
        return self._inputs[name]

    def dependents_of(self, name: str) -> list[str]:
        """Assets that list ``name`` as an input, in declaration order."""
        return list(self._dependents[name])

    def declaration_index(self, name: str) -> int:
        return self._index[name]

    def topological_order(self) -> list[str]:
        """Order assets so that every input precedes the assets using it.

        Kahn's algorithm; among assets that are ready at the same time the
        one declared first in the manifest goes first.
        """
        remaining = {name: len(set(self._inputs[name])) for name in self.nodes}
        ready = [self._index[name] for name, count in remaining.items() if count == 0]
        heapq.heapify(ready)

        order: list[str] = []
        while ready:
            name = self.nodes[heapq.heappop(ready)]
            order.append(name)
            for dependent in self._dependents[name]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    heapq.heappush(ready, self._index[dependent])

        if len(order) != len(self.nodes):
            # build_graph() rejects cycles, so this only happens for graphs
            # constructed by hand.
            leftover = [name for name in self.nodes if remaining[name] > 0]
            raise CyclicDependency(find_cycle(self, leftover) or leftover)
        return order


def find_cycle(graph: DependencyGraph, roots: list[str] | None = None) -> list[str] | None:
    """Depth-first search for a cycle.

    Returns:
        The cycle as a list of names starting and ending with the same
        asset (e.g. ['a', 'b', 'a']), or None if the graph is acyclic.
    """
    state: dict[str, int] = {}
    for root in roots if roots is not None else graph.nodes:
        if root in state:
            continue
        path = [root]
        state[root] = _IN_PROGRESS
        stack = [iter(graph.inputs_of(root))]
        while stack:
            child = next(stack[-1], None)
            if child is None:
                stack.pop()
                state[path.pop()] = _DONE
                continue
            child_state = state.get(child)
            if child_state == _IN_PROGRESS:
                return path[path.index(child):] + [child]
            if child_state is None:
                state[child] = _IN_PROGRESS
                path.append(child)
                stack.append(iter(graph.inputs_of(child)))
    return None


def build_graph(manifest: Manifest) -> DependencyGraph:
    """Validate references and build the dependency graph of a manifest.

    Args:
        manifest: Loaded manifest

    Returns:
        Acyclic DependencyGraph over every asset in the manifest

    Raises:
        UnknownAssetReference: If an input or public asset is not defined
        CyclicDependency: If assets depend on each other in a loop
    """
    nodes = manifest.declaration_order()
    inputs: dict[str, tuple[str, ...]] = {}

    for name in nodes:
        definition = manifest.assets[name]
        for input_name in definition.input_names:
            if input_name not in manifest.assets:
                raise UnknownAssetReference(input_name, referenced_by=name)
        inputs[name] = definition.input_names

    for name in manifest.public_assets:
        if name not in manifest.assets:
            raise UnknownAssetReference(name)

    graph = DependencyGraph(nodes, inputs)
    cycle = find_cycle(graph)
    if cycle is not None:
        raise CyclicDependency(cycle)

    logger.debug("Built dependency graph with %d assets", len(graph))
    return graph
