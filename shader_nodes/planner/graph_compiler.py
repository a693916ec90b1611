"""
GraphCompiler - Compiles node graphs to stages with caching.

The compiler runs the whole pipeline on a copy of the input graph:

    topological order -> type concretisation -> domain / subgraph / branch
    labelling -> pruning -> decomposition -> stage codegen

Caching Strategy:
- Graph hash is computed from nodes, edges, port types, tags and constraints
- Compile results are cached by graph hash and config
- Any edit to the graph changes the hash, so stale entries are never served
"""

import logging
import hashlib
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional

from ..config import CompilerConfig, DEFAULT_CONFIG
from ..data_types import ComputationDomain, ConcreteDataType
from ..graph.model import BranchedMultiGraph, Graph
from ..graph.port_ids import PortId, port_sort_key
from ..codegen.compute_rasterizer import generate_compute_rasterizer
from .analysis import (
    label_branches,
    label_computation_domains,
    label_subgraphs,
    topologically_order_nodes,
)
from .decompose import decompose_branches, decompose_subgraphs, prune_graph
from .stages import BaseSizeMultiplier, IntermediateOutput, Stage
from .type_resolution import concretise_types_in_graph

logger = logging.getLogger(__name__)

RASTERIZER_STAGE_ID = 0


class LRUCache:
    """
    Least Recently Used cache with size limit.

    When capacity is exceeded, the least recently accessed items are evicted.
    """

    def __init__(self, capacity: int = 16):
        self.capacity = capacity
        self._cache: OrderedDict = OrderedDict()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Get item from cache, marking it as recently used."""
        if key in self._cache:
            self._cache.move_to_end(key)
            self._hits += 1
            return self._cache[key]
        self._misses += 1
        return None

    def put(self, key: str, value: Any) -> None:
        """Add item to cache, evicting oldest if at capacity."""
        if key in self._cache:
            self._cache.move_to_end(key)
        else:
            if len(self._cache) >= self.capacity:
                self._cache.popitem(last=False)
        self._cache[key] = value

    def invalidate(self, key: str) -> bool:
        if key in self._cache:
            del self._cache[key]
            return True
        return False

    def clear(self) -> None:
        self._cache.clear()
        self._hits = 0
        self._misses = 0

    def __len__(self):
        return len(self._cache)

    def stats(self) -> Dict[str, Any]:
        total = self._hits + self._misses
        hit_rate = (self._hits / total * 100) if total > 0 else 0
        return {
            'size': len(self._cache),
            'capacity': self.capacity,
            'hits': self._hits,
            'misses': self._misses,
            'hit_rate': hit_rate,
        }


@dataclass
class CompileResult:
    port_types: Dict[PortId, ConcreteDataType]
    multi_graph: BranchedMultiGraph
    output: IntermediateOutput
    pruned_nodes: list


def subgraph_domains(
    multi_graph: BranchedMultiGraph,
    computation_domains: Dict[int, FrozenSet[ComputationDomain]],
) -> Dict[int, FrozenSet[ComputationDomain]]:
    """The domain of a subgraph is the union of its member nodes' domains."""
    result = {}
    for subgraph_id in multi_graph.subgraph_ordering:
        subgraph = multi_graph.subgraphs[subgraph_id]
        members = list(subgraph.nodes)
        for branch in subgraph.branches.values():
            members.extend(branch)
        domain = set()
        for node_id in members:
            domain |= computation_domains.get(node_id, frozenset())
        result[subgraph_id] = frozenset(domain)
    return result


def compile_stages(
    multi_graph: BranchedMultiGraph,
    computation_domains: Dict[int, FrozenSet[ComputationDomain]],
    config: CompilerConfig = DEFAULT_CONFIG,
) -> IntermediateOutput:
    """
    Emit the stages a branched multigraph needs.

    A compute rasterizer stage is emitted when any subgraph is model
    dependent; every such subgraph becomes one of its dependants.
    """
    output = IntermediateOutput()
    domains = subgraph_domains(multi_graph, computation_domains)
    model_dependent = {
        subgraph_id for subgraph_id, domain in domains.items()
        if ComputationDomain.MODEL_DEPENDENT in domain
    }
    if model_dependent:
        shader = generate_compute_rasterizer(
            BaseSizeMultiplier(config.base_size_multiplier),
            config.generate_mip_maps,
            config,
        )
        output.stages.append(Stage(
            id=RASTERIZER_STAGE_ID,
            shader=shader,
            domain=frozenset({ComputationDomain.MODEL_DEPENDENT}),
            dependencies=[],
            dependants=model_dependent,
        ))
    return output


class GraphCompiler:
    """
    Compiles node graphs to stages with caching.

    Example:
        compiler = GraphCompiler()
        result = compiler.compile(graph)
        # Second call with an unchanged graph is cached
        result = compiler.compile(graph)
    """

    def __init__(self, config: CompilerConfig = DEFAULT_CONFIG):
        self.config = config
        self._cache = LRUCache(capacity=config.cache_capacity)

    def compile(self, graph: Graph) -> CompileResult:
        """
        Compile a graph. The input graph is never modified.

        Raises:
            ContradictionFound: if the graph cannot be typed
            GraphStructureError: if the graph is cyclic or malformed
        """
        graph_hash = self._compute_graph_hash(graph)

        cached = self._cache.get(graph_hash)
        if cached is not None:
            logger.debug(f"Graph compile CACHE HIT (hash={graph_hash[:8]}...)")
            return cached

        logger.debug(f"Graph compile CACHE MISS (hash={graph_hash[:8]}...)")
        result = self._compile_uncached(graph.copy())
        self._cache.put(graph_hash, result)
        return result

    def _compile_uncached(self, graph: Graph) -> CompileResult:
        ordered_nodes = topologically_order_nodes(graph)
        port_types = concretise_types_in_graph(graph, ordered_nodes)
        computation_domains = label_computation_domains(graph, ordered_nodes)
        subgraph_tags = label_subgraphs(graph)
        branch_tags = label_branches(graph)

        pruned = []
        if self.config.prune_unreachable:
            pruned = prune_graph(graph, subgraph_tags)
            if pruned:
                ordered_nodes = topologically_order_nodes(graph)

        multi_graph = decompose_branches(
            decompose_subgraphs(graph, subgraph_tags, ordered_nodes), branch_tags
        )
        output = compile_stages(multi_graph, computation_domains, self.config)
        logger.info(
            f"Compiled graph {graph.id}: {len(graph.nodes)} nodes, "
            f"{len(multi_graph.subgraph_ordering)} subgraphs, {len(output)} stages"
        )
        return CompileResult(port_types, multi_graph, output, pruned)

    def _compute_graph_hash(self, graph: Graph) -> str:
        """
        Compute a hash that identifies the graph and the compile settings.

        The hash includes:
        - Root id and compiler config
        - Node ids and types
        - Port types and branch/subgraph tags
        - Edges and constraints
        """
        hasher = hashlib.sha256()
        hasher.update(f"root:{graph.id}:{self.config}".encode())

        for node_id in sorted(graph.nodes):
            hasher.update(f"node{node_id}:{graph.nodes[node_id].node_type.type_name}".encode())

        for port_id, port_type in sorted(graph.port_types().items(), key=lambda kv: port_sort_key(kv[0])):
            port_str = f"{port_id}:{port_type}"
            port = graph.input_ports.get(port_id)
            if port is not None:
                port_str += f":b={port.new_branch_id}:s={port.new_subgraph_id}"
            hasher.update(port_str.encode())

        for edge_id in sorted(graph.edges):
            edge = graph.edges[edge_id]
            hasher.update(f"edge{edge_id}:{edge.output_port}->{edge.input_port}".encode())

        for constraint in graph.constraints:
            hasher.update(repr(constraint).encode())

        return hasher.hexdigest()

    def invalidate(self, graph: Graph) -> bool:
        graph_hash = self._compute_graph_hash(graph)
        return self._cache.invalidate(graph_hash)

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.debug("GraphCompiler cache cleared")

    def stats(self) -> Dict[str, Any]:
        return self._cache.stats()


# Singleton instance for convenience
_global_compiler: Optional[GraphCompiler] = None


def get_compiler() -> GraphCompiler:
    """Get the global GraphCompiler instance."""
    global _global_compiler
    if _global_compiler is None:
        _global_compiler = GraphCompiler()
    return _global_compiler


def compile_graph(graph: Graph) -> CompileResult:
    """Compile a graph using the global compiler."""
    return get_compiler().compile(graph)
