"""
Tests for the type lattice.

Domains are explicit enumerations, so these tests check the properties the
solver relies on: closure of abstract domains, rank ordering and the
projections used by the dimensionality and composite-size constraints.
"""

import pytest

from shader_nodes.data_types import (
    ANY,
    ANY_FLOAT,
    ANY_FLOAT_123,
    ANY_MATERIAL,
    ANY_NUMBER,
    ANY_TEXTURE,
    ANY_VECTOR_OR_SCALAR,
    BOOL,
    FLOAT1,
    FLOAT2,
    FLOAT3,
    FLOAT4,
    INT,
    SLAB_MATERIAL,
    CompositeSize,
    Dimensionality,
    all_abstract_types,
    any_field_with_dimensionality,
    any_texture_with_composite_size,
    are_types_compatible,
    concrete_type,
    get_most_specific_type,
    float_type,
    texture_type,
)


class TestConcreteTypes:
    """Projections of concrete types."""

    def test_float_dimensionality_follows_composite_size(self):
        """
        Float(Sn) reports Dn.

        Given: The four float types
        When: Their dimensionality is read
        Then: It mirrors the composite size ordinal
        """
        for size, dim in zip(CompositeSize, Dimensionality):
            t = float_type(size)
            assert t.get_composite_size() == size
            assert t.get_dimensionality() == dim
        assert FLOAT3.get_dimensionality() == Dimensionality.D3

    def test_scalars_are_one_wide(self):
        for scalar in (INT, BOOL):
            assert scalar.get_composite_size() == CompositeSize.S1
            assert scalar.get_dimensionality() == Dimensionality.D1

    def test_texture_keeps_both_parameters(self):
        t = texture_type(Dimensionality.D2, CompositeSize.S4)
        assert t.get_dimensionality() == Dimensionality.D2
        assert t.get_composite_size() == CompositeSize.S4

    def test_slab_material_has_no_shape(self):
        assert SLAB_MATERIAL.get_composite_size() is None
        assert SLAB_MATERIAL.get_dimensionality() is None
        assert SLAB_MATERIAL.get_rank() == 0


class TestAbstractDomains:
    """Closure and ordering of abstract domains."""

    def test_abstract_domain_is_closed(self):
        """
        Every member of an abstract domain admits a subset of the concrete types.

        Given: Every abstract type
        When: Each member of its abstract domain is expanded
        Then: The member's concrete domain lies inside the parent's
        """
        for parent in all_abstract_types():
            parent_concrete = set(parent.get_concrete_domain())
            for member in parent.get_abstract_domain():
                assert set(member.get_concrete_domain()) <= parent_concrete, (parent, member)

    def test_members_are_at_least_as_specific(self):
        for parent in all_abstract_types():
            for member in parent.get_abstract_domain():
                assert member.get_rank() >= parent.get_rank(), (parent, member)

    def test_abstract_domain_wraps_concrete_domain(self):
        """
        The tail of an abstract domain is its concrete domain, in order.

        Given: AnyFloat
        When: Its abstract domain is listed
        Then: It ends with the four floats wrapped as ConcreteType
        """
        domain = ANY_FLOAT.get_abstract_domain()
        assert domain[:2] == (ANY_FLOAT, ANY_FLOAT_123)
        assert domain[2:] == tuple(concrete_type(f) for f in (FLOAT1, FLOAT2, FLOAT3, FLOAT4))

    def test_concrete_type_domain(self):
        wrapped = concrete_type(INT)
        assert wrapped.get_concrete_domain() == (INT,)
        assert wrapped.get_abstract_domain() == (wrapped,)
        assert wrapped.get_rank() == 5

    def test_ranks(self):
        assert ANY.get_rank() == 0
        assert ANY_VECTOR_OR_SCALAR.get_rank() == 1
        assert ANY_NUMBER.get_rank() == 2
        assert ANY_FLOAT.get_rank() == 3
        assert ANY_FLOAT_123.get_rank() == 4

    def test_parameterised_projections(self):
        with_dim = any_field_with_dimensionality(Dimensionality.D3)
        with_size = any_texture_with_composite_size(CompositeSize.S2)
        assert with_dim.get_dimensionality() == Dimensionality.D3
        assert with_dim.get_composite_size() is None
        assert with_size.get_composite_size() == CompositeSize.S2
        assert all(t.get_composite_size() == CompositeSize.S2 for t in with_size.get_concrete_domain())

    def test_any_covers_every_concrete_type(self):
        assert len(set(ANY.get_concrete_domain())) == len(ANY.get_concrete_domain())
        assert SLAB_MATERIAL in ANY.get_concrete_domain()
        assert set(ANY_TEXTURE.get_concrete_domain()) <= set(ANY.get_concrete_domain())


class TestCompatibility:

    @pytest.mark.parametrize("a, b, expected", [
        (ANY_FLOAT, ANY_NUMBER, True),
        (ANY, ANY_MATERIAL, True),
        (ANY_MATERIAL, ANY_FLOAT, False),
        (concrete_type(INT), ANY_FLOAT, False),
    ])
    def test_are_types_compatible(self, a, b, expected):
        assert are_types_compatible(a, b) is expected
        assert are_types_compatible(b, a) is expected

    def test_most_specific_type(self):
        assert get_most_specific_type(ANY_NUMBER, ANY_FLOAT) == ANY_FLOAT
        assert get_most_specific_type(ANY_FLOAT, ANY_NUMBER) == ANY_FLOAT
        assert get_most_specific_type(ANY_MATERIAL, ANY_FLOAT) == ANY_MATERIAL
