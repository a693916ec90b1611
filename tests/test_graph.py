"""
Tests for the graph model, node behaviour and graph analysis passes.
"""

import pytest

from conftest import CHAIN_SUBGRAPH, LEFT_BRANCH, RIGHT_BRANCH, build_chain

from shader_nodes.data_types import (
    ALL_COMPUTATION_DOMAINS,
    ANY_MATERIAL,
    ANY_NUMBER,
    BOOL,
    FLOAT3,
    INT,
    ComputationDomain,
    concrete_type,
)
from shader_nodes.errors import ContradictionFound, GraphStructureError
from shader_nodes.graph.model import GraphBuilder
from shader_nodes.graph.node_types import (
    JUNCTION,
    OUTPUT,
    PREVIEW,
    SLAB,
    BinaryOperation,
    BuiltIn,
    NodeType,
)
from shader_nodes.graph.port_ids import InputPortId, OutputPortId
from shader_nodes.planner.analysis import (
    label_branches,
    label_computation_domains,
    label_subgraphs,
    topologically_order_nodes,
    topologically_order_ports,
)
from shader_nodes.planner.decompose import decompose_branches, decompose_subgraphs, prune_graph
from shader_nodes.planner.type_resolution import concretise_types_in_graph, narrow_abstract_types

MODEL_AND_TRANSFORM = frozenset({
    ComputationDomain.MODEL_DEPENDENT,
    ComputationDomain.TRANSFORM_DEPENDENT,
})


class TestNodeTypes:
    """Per-node behaviour derived from NodeType."""

    def test_arithmetic_ports_and_constraints(self):
        add = NodeType.binary(BinaryOperation.ADD)
        assert (add.input_port_count(), add.output_port_count()) == (2, 1)
        assert add.input_port_type(0) == ANY_NUMBER
        assert add.output_port_type(0) == ANY_NUMBER
        (constraint,) = add.constraints(4)
        assert constraint.ports == {InputPortId(4, 0), InputPortId(4, 1), OutputPortId(4, 0)}

    def test_comparison_outputs_bool_and_ties_inputs_only(self):
        less = NodeType.binary(BinaryOperation.LESS)
        assert less.output_port_type(0) == concrete_type(BOOL)
        (constraint,) = less.constraints(1)
        assert constraint.ports == {InputPortId(1, 0), InputPortId(1, 1)}

    def test_shift_amount_is_int(self):
        shift = NodeType.binary(BinaryOperation.SHIFT_LEFT)
        assert shift.input_port_type(0) == ANY_NUMBER
        assert shift.input_port_type(1) == concrete_type(INT)
        assert shift.constraints(1) == []

    def test_sinks_and_sources(self):
        assert (OUTPUT.input_port_count(), OUTPUT.output_port_count()) == (1, 0)
        assert OUTPUT.input_port_type(0) == ANY_MATERIAL
        assert (SLAB.input_port_count(), SLAB.output_port_count()) == (0, 1)
        position = NodeType.built_in(BuiltIn.WORLD_POSITION)
        assert position.output_port_type(0) == concrete_type(FLOAT3)

    def test_computation_domains(self):
        assert OUTPUT.computation_domain() == ALL_COMPUTATION_DOMAINS
        assert PREVIEW.computation_domain() == ALL_COMPUTATION_DOMAINS
        assert NodeType.built_in(BuiltIn.TEXTURE_COORDINATE).computation_domain() == MODEL_AND_TRANSFORM
        assert NodeType.binary(BinaryOperation.MULTIPLY).computation_domain() is None

    @pytest.mark.parametrize("name", ["output", "slab", "preview", "junction", "add", "<<", "==", "tex_coord_2"])
    def test_type_names_round_trip(self, name):
        assert NodeType.from_type_name(name).type_name == name

    def test_unknown_type_name(self):
        assert NodeType.from_type_name("teapot") is None


class TestGraphBuilder:

    def test_rejects_second_incoming_edge(self):
        builder = build_chain(subgraph_tag=None)
        builder.add_node(JUNCTION, 4)
        with pytest.raises(GraphStructureError):
            builder.connect(4, 0, 2, 0)

    def test_unknown_port_raises_structure_error(self):
        builder = GraphBuilder()
        builder.add_node(PREVIEW, 1)
        with pytest.raises(GraphStructureError) as excinfo:
            builder.connect(1, 0, 1, 0)
        assert excinfo.value.node_id == 1

    def test_default_root_is_lowest_sink(self, chain_graph):
        assert chain_graph.id == 3

    def test_build_collects_node_constraints(self, chain_graph):
        assert len(chain_graph.constraints) == 1
        assert chain_graph.port_types()[InputPortId(2, 1)] == ANY_NUMBER

    def test_build_returns_independent_graphs(self):
        builder = build_chain()
        first = builder.build()
        first.remove_node(1)
        assert 1 in builder.build().nodes


class TestOrdering:

    def test_nodes_follow_their_sources(self, branched_graph):
        order = topologically_order_nodes(branched_graph)
        position = {node_id: i for i, node_id in enumerate(order)}
        for edge in branched_graph.edges.values():
            assert position[edge.output_port.node_id] < position[edge.input_port.node_id]

    def test_ties_break_by_lowest_id(self, branched_graph):
        """
        Given: Three sources and two Adds that become ready together
        When: The graph is ordered
        Then: Ready nodes are visited lowest id first
        """
        assert topologically_order_nodes(branched_graph) == [1, 2, 3, 6, 8, 10]

    def test_cycle_raises(self):
        builder = GraphBuilder()
        builder.add_node(JUNCTION, 1)
        builder.add_node(JUNCTION, 2)
        builder.connect(1, 0, 2, 0)
        builder.connect(2, 0, 1, 0)
        with pytest.raises(GraphStructureError):
            topologically_order_nodes(builder.build())

    def test_ports_inputs_before_outputs(self, chain_graph):
        ports = topologically_order_ports(chain_graph, [1, 2, 3])
        assert ports == [
            OutputPortId(1, 0),
            InputPortId(2, 0), InputPortId(2, 1), OutputPortId(2, 0),
            InputPortId(3, 0),
        ]


class TestTypeResolution:

    def test_chain_resolves_float3(self, chain_graph):
        """
        WorldPosition drives the type of everything downstream.

        Given: WorldPosition -> Add -> Preview
        When: Types are concretised
        Then: Both Add inputs, its output and the Preview input are Float(S3)
        """
        types = concretise_types_in_graph(chain_graph)
        assert types[OutputPortId(2, 0)] == FLOAT3
        assert types[InputPortId(2, 1)] == FLOAT3
        assert types[InputPortId(3, 0)] == FLOAT3

    def test_float_into_material_sink_contradicts(self, chain_to_output_graph):
        with pytest.raises(ContradictionFound):
            concretise_types_in_graph(chain_to_output_graph)

    def test_unconnected_ports_take_first_candidate(self):
        builder = GraphBuilder()
        builder.add_node(NodeType.binary(BinaryOperation.SHIFT_RIGHT), 1)
        types = concretise_types_in_graph(builder.build())
        assert types[InputPortId(1, 1)] == INT
        assert types[OutputPortId(1, 0)] == ANY_NUMBER.get_concrete_domain()[0]

    def test_narrowing_keeps_abstract_types(self, chain_graph):
        narrowed = narrow_abstract_types(chain_graph)
        assert narrowed[OutputPortId(2, 0)] == concrete_type(FLOAT3)


class TestLabelling:

    def test_domains_flow_forward(self, chain_graph):
        domains = label_computation_domains(chain_graph, [1, 2, 3])
        assert domains[1] == MODEL_AND_TRANSFORM
        assert domains[2] == MODEL_AND_TRANSFORM
        assert domains[3] == ALL_COMPUTATION_DOMAINS

    def test_unconnected_inherited_domain_is_empty(self, junction_only_graph):
        domains = label_computation_domains(junction_only_graph, [1, 2])
        assert domains[1] == frozenset()

    def test_branch_labels_stay_local(self, branched_graph):
        """
        A node carries only the branches it can reach the root through.

        Given: Two tagged root inputs sharing source node 3
        When: Branches are labelled
        Then: Private nodes carry one tag and the shared node carries both
        """
        labels = label_branches(branched_graph)
        assert labels[6] == {LEFT_BRANCH}
        assert labels[1] == {LEFT_BRANCH}
        assert labels[8] == {RIGHT_BRANCH}
        assert labels[2] == {RIGHT_BRANCH}
        assert labels[3] == {LEFT_BRANCH, RIGHT_BRANCH}
        assert 10 not in labels

    def test_untagged_root_labels_nothing(self):
        graph = build_chain(subgraph_tag=None).build()
        assert label_subgraphs(graph) == {}

    def test_missing_root_labels_nothing(self, chain_graph):
        chain_graph.id = 99
        assert label_branches(chain_graph) == {}

    def test_inner_tag_overrides(self):
        """
        Given: Root input tagged 100 and an inner Add input tagged 200
        When: Subgraphs are labelled
        Then: Nodes above the inner port carry 200 instead of 100
        """
        builder = build_chain()
        builder.tag_subgraph(2, 0, 200)
        labels = label_subgraphs(builder.build())
        assert labels[2] == {CHAIN_SUBGRAPH}
        assert labels[1] == {200}


class TestDecomposition:

    def test_prune_removes_untagged_nodes(self):
        builder = build_chain()
        builder.add_node(NodeType.built_in(BuiltIn.WORLD_NORMAL), 8)
        builder.add_node(JUNCTION, 9)
        builder.connect(8, 0, 9, 0, edge_id=20)
        graph = builder.build()

        removed = prune_graph(graph, label_subgraphs(graph))

        assert removed == [8, 9]
        assert set(graph.nodes) == {1, 2, 3}
        assert 20 not in graph.edges
        assert all(port.incoming_edge in graph.edges
                   for port in graph.input_ports.values() if port.incoming_edge is not None)

    def test_prune_keeps_root(self):
        graph = build_chain(subgraph_tag=None).build()
        assert prune_graph(graph, {}) == [1, 2]
        assert set(graph.nodes) == {3}

    def test_subgraphs_in_topological_order(self, chain_graph):
        order = topologically_order_nodes(chain_graph)
        multi = decompose_subgraphs(chain_graph, label_subgraphs(chain_graph), order)
        assert multi.subgraph_ordering == [CHAIN_SUBGRAPH]
        assert multi.subgraphs[CHAIN_SUBGRAPH].nodes == [1, 2]

    def test_branches_partition_subgraph(self, branched_graph):
        """
        Branch decomposition loses no node and duplicates none.

        Given: The two-branch graph, all in subgraph 100
        When: Subgraphs and branches are decomposed
        Then: Private nodes sit in their branch, the shared node in the subgraph
        """
        order = topologically_order_nodes(branched_graph)
        multi = decompose_subgraphs(branched_graph, label_subgraphs(branched_graph), order)
        branched = decompose_branches(multi, label_branches(branched_graph))

        subgraph = branched.subgraphs[CHAIN_SUBGRAPH]
        assert subgraph.branches == {LEFT_BRANCH: [1, 6], RIGHT_BRANCH: [2, 8]}
        assert subgraph.nodes == [3]
        assert subgraph.node_count() == len(multi.subgraphs[CHAIN_SUBGRAPH].nodes)
