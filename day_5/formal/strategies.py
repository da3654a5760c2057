"""
Hypothesis strategies shared by the software and hardware property tests.
"""

from hypothesis import strategies as st
from hypothesis.strategies import lists, integers, booleans

from software_reference.range_mapper import Map, Mapping

# Every generated rule lies inside [0, DOMAIN)
DOMAIN = 400


@st.composite
def stage(draw):
    """
    Generate one stage: disjoint source intervals and disjoint destination
    intervals, like a real almanac stage.

    Sources are laid out left to right with random gaps, destinations are the
    same lengths laid out in a random order with their own gaps.
    """
    lengths = draw(lists(integers(min_value=1, max_value=20), min_size=0, max_size=8))
    count = len(lengths)
    source_gaps = draw(lists(integers(min_value=0, max_value=15), min_size=count, max_size=count))
    dest_gaps = draw(lists(integers(min_value=0, max_value=15), min_size=count, max_size=count))
    order = draw(st.permutations(range(count)))
    keep = draw(lists(booleans(), min_size=count, max_size=count))

    source_starts = []
    position = 0
    for gap, length in zip(source_gaps, lengths):
        position += gap
        source_starts.append(position)
        position += length

    dest_starts = [0] * count
    position = 0
    for gap, index in zip(dest_gaps, order):
        position += gap
        dest_starts[index] = position
        position += lengths[index]

    return Map(tuple(
        Mapping(length=lengths[i], source_start=source_starts[i], dest_start=dest_starts[i])
        for i in range(count)
        if keep[i]
    ))


chain_strategy = lists(stage(), min_size=1, max_size=5)
