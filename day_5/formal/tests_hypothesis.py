"""
Property-based tests for the range mapper using Hypothesis.

This module verifies the merge / compose algorithm by checking invariant
properties on randomly generated almanac stages, against a brute force
stage-by-stage lookup over every point of a small domain.
"""

import pytest
from hypothesis import given, strategies as st, settings
from hypothesis.strategies import lists, integers

from formal.strategies import DOMAIN, chain_strategy, stage
from software_reference.range_mapper import Map, compose, lookup_sequential


def covered_points(mappings):
    """Convert a list of mappings to the set of source points they cover."""
    result = set()
    for mapping in mappings:
        result.update(range(mapping.source_start, mapping.source_end))
    return result


def has_disjoint_sources(mappings):
    """Check if no two mappings share a source point."""
    ordered = sorted(mappings, key=lambda m: m.source_start)
    for i in range(len(ordered) - 1):
        if ordered[i].source_end > ordered[i + 1].source_start:
            return False
    return True


# Property 1: Points outside every rule map to themselves
@given(stage(), integers(min_value=0, max_value=DOMAIN))
def test_identity_fallback(table, point):
    """
    Property: lookup(p) == p whenever no rule covers p.
    """
    if any(mapping.maps(point) is not None for mapping in table):
        return
    assert table.lookup(point) == point


# Property 2: Merging two stages equals applying them one after the other
@given(stage(), stage())
@settings(max_examples=500, deadline=None)
def test_merge_equivalence(first, second):
    """
    Property: first.merge(second).lookup(p) == second.lookup(first.lookup(p))
    for every point of the domain.
    """
    merged = first.merge(second)
    for point in range(DOMAIN):
        assert merged.lookup(point) == second.lookup(first.lookup(point)), \
            f"Mismatch at {point}: merged={merged.to_triples()}"


# Property 3: Composing a chain equals sequential lookup
@given(chain_strategy)
@settings(max_examples=200, deadline=None)
def test_compose_equivalence(stages):
    """
    Property: compose(stages).lookup(p) == lookup through each stage in turn.
    """
    composed = compose(stages)
    for point in range(DOMAIN):
        assert composed.lookup(point) == lookup_sequential(stages, point), \
            f"Mismatch at {point}"


# Property 4: Merge never produces a zero-length rule
@given(stage(), stage())
def test_no_zero_length_rules(first, second):
    """
    Property: every merged rule has a positive length.
    """
    merged = first.merge(second)
    assert all(mapping.length > 0 for mapping in merged)


# Property 5: Source domain of the input stage is conserved
@given(stage(), stage())
def test_coverage_conservation(first, second):
    """
    Property: merged sources restricted to the input stage's source domain
    equal that domain exactly.
    """
    original = covered_points(first)
    merged = covered_points(first.merge(second))
    assert merged & original == original


# Property 6: Merged rules never overlap
@given(chain_strategy)
def test_composed_sources_disjoint(stages):
    """
    Property: the composed stage has pairwise disjoint source intervals.
    """
    assert has_disjoint_sources(compose(stages))


# Property 7: Range minimum equals brute force
@given(
    chain_strategy,
    lists(
        st.tuples(integers(min_value=0, max_value=DOMAIN), integers(min_value=0, max_value=60)),
        min_size=1, max_size=4,
    ),
)
@settings(max_examples=200, deadline=None)
def test_min_destination_matches_brute_force(stages, ranges):
    """
    Property: the minimum over candidate points equals the minimum over every
    point of every range.
    """
    points = [p for start, length in ranges for p in range(start, start + length)]
    if not points:
        return

    composed = compose(stages)
    expected = min(lookup_sequential(stages, p) for p in points)
    assert composed.min_destination_over_ranges(ranges) == expected


# Property 8: Merging with an empty stage keeps the other stage's behaviour
@given(stage())
@settings(deadline=None)
def test_empty_stage_is_neutral(table):
    """
    Property: an empty stage on either side does not change any lookup.
    """
    empty = Map()
    for point in range(DOMAIN):
        assert table.merge(empty).lookup(point) == table.lookup(point)
        assert empty.merge(table).lookup(point) == table.lookup(point)


if __name__ == "__main__":
    # Run pytest
    pytest.main([__file__, "-v", "--tb=short"])
