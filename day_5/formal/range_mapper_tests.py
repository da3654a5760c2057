"""
Unit tests for the range mapper and the almanac front-end.

Hand-checked cases: pairwise merges, the two-stage merge from the sample
almanac, the sample answers, and every error path.
"""

import os

import pytest

from software_reference.almanac import (
    Almanac,
    InvalidAlmanac,
    main,
    parse_almanac,
    read_input,
)
from software_reference.range_mapper import (
    InvalidMapping,
    Map,
    Mapping,
    MergeResult,
    MergeSource,
    MissingSeeds,
    MissingStages,
    Origin,
    StageCountMismatch,
    compose,
    lookup_sequential,
)

SAMPLE_FILE = os.path.join(os.path.dirname(__file__), "..", "testcases", "sample_input.txt")


@pytest.fixture
def almanac():
    return read_input(SAMPLE_FILE)


# Mapping primitives

def test_maps_inside_and_outside():
    mapping = Mapping(length=2, source_start=98, dest_start=50)
    assert mapping.maps(98) == 50
    assert mapping.maps(99) == 51
    assert mapping.maps(100) is None
    assert mapping.maps(97) is None


def test_exclusive_ends():
    mapping = Mapping.from_triple(52, 50, 48)
    assert mapping.source_end == 98
    assert mapping.dest_end == 100
    assert mapping.to_triple() == (52, 50, 48)


def test_truncate_end_keeps_low_end():
    mapping = Mapping(length=10, source_start=5, dest_start=100)
    assert mapping.truncate_end(3) == Mapping(3, 5, 100)
    assert mapping.truncate_end(50) == mapping


def test_truncate_start_keeps_high_end():
    mapping = Mapping(length=10, source_start=5, dest_start=100)
    assert mapping.truncate_start(3) == Mapping(3, 12, 107)
    assert mapping.truncate_start(50) == mapping


def test_restrict():
    mapping = Mapping(length=10, source_start=5, dest_start=100)
    assert mapping.restrict(7, 9) == Mapping(2, 7, 102)


@pytest.mark.parametrize("length", [0, -1])
def test_non_positive_length_rejected(length):
    with pytest.raises(InvalidMapping):
        Mapping(length=length, source_start=0, dest_start=0)


def test_negative_start_rejected():
    with pytest.raises(InvalidMapping):
        Mapping.from_triple(-1, 0, 5)


def test_mapping_is_immutable():
    mapping = Mapping(1, 1, 1)
    with pytest.raises(AttributeError):
        mapping.length = 2


# Pairwise merge

def test_merge_mapping_with_self():
    mapping = Mapping(length=1, source_start=1, dest_start=1)
    assert mapping.merge(mapping) == MergeResult(None, mapping, None)


def test_merge_input_before_output():
    input_mapping = Mapping(length=1, source_start=1, dest_start=1)
    output_mapping = Mapping(length=1, source_start=2, dest_start=2)
    assert input_mapping.merge(output_mapping) == MergeResult(
        left=MergeSource(Origin.INPUT, input_mapping),
        intersection=None,
        right=MergeSource(Origin.OUTPUT, output_mapping),
    )


def test_merge_input_after_output():
    input_mapping = Mapping(length=1, source_start=3, dest_start=3)
    output_mapping = Mapping(length=1, source_start=2, dest_start=2)
    assert input_mapping.merge(output_mapping) == MergeResult(
        left=MergeSource(Origin.OUTPUT, output_mapping),
        intersection=None,
        right=MergeSource(Origin.INPUT, input_mapping),
    )


def test_merge_partial_overlap():
    input_mapping = Mapping(length=2, source_start=0, dest_start=10)
    output_mapping = Mapping(length=3, source_start=11, dest_start=20)
    assert input_mapping.merge(output_mapping) == MergeResult(
        left=MergeSource(Origin.INPUT, Mapping(1, 0, 10)),
        intersection=Mapping(1, 1, 20),
        right=MergeSource(Origin.OUTPUT, Mapping(2, 12, 21)),
    )


def test_merge_output_starts_first():
    input_mapping = Mapping(length=2, source_start=98, dest_start=50)
    output_mapping = Mapping(length=37, source_start=15, dest_start=0)
    assert input_mapping.merge(output_mapping) == MergeResult(
        left=MergeSource(Origin.OUTPUT, Mapping(length=35, source_start=15, dest_start=0)),
        intersection=Mapping(length=2, source_start=98, dest_start=35),
        right=None,
    )


def test_merge_abutting_ranges_leave_no_empty_piece():
    input_mapping = Mapping(length=5, source_start=0, dest_start=10)
    output_mapping = Mapping(length=5, source_start=15, dest_start=40)
    result = input_mapping.merge(output_mapping)
    assert result.intersection is None
    assert result.left == MergeSource(Origin.INPUT, input_mapping)
    assert result.right == MergeSource(Origin.OUTPUT, output_mapping)


# Map merge

def test_merge_maps():
    input_map = Map.from_triples([(50, 98, 2), (52, 50, 48)])
    output_map = Map.from_triples([(0, 15, 37), (37, 52, 2), (39, 0, 15)])

    merged = input_map.merge(output_map)

    assert merged.to_triples() == [
        (39, 0, 15),
        (0, 15, 35),
        (35, 98, 2),
        (37, 50, 2),
        (54, 52, 46),
    ]


def test_merge_with_empty_map_drains_other_side():
    stage = Map.from_triples([(50, 98, 2), (52, 50, 48)])
    assert stage.merge(Map()).to_triples() == stage.to_triples()
    assert sorted(Map().merge(stage).to_triples()) == sorted(stage.to_triples())
    assert Map().merge(Map()) == Map()


def test_output_rule_does_not_shadow_input_rule():
    # 5 -> 105 through the first stage, which the second stage leaves alone
    first = Map.from_triples([(100, 0, 10)])
    second = Map.from_triples([(500, 0, 10)])
    merged = first.merge(second)
    assert merged.lookup(5) == 105
    assert merged.lookup(15) == 15


def test_output_rule_reached_through_identity():
    # 20 is untouched by the first stage and lands in the second stage's rule,
    # inside the first stage's destination range
    first = Map.from_triples([(15, 0, 10)])
    second = Map.from_triples([(300, 15, 10)])
    merged = first.merge(second)
    assert merged.lookup(20) == 305
    assert merged.lookup(3) == 303
    assert merged.lookup(12) == 12


def test_merge_input_rules_sharing_destinations():
    # Both rules land on 100..109; each one is composed against the output rule
    first = Map.from_triples([(100, 0, 10), (100, 200, 10)])
    second = Map.from_triples([(500, 105, 3)])
    merged = first.merge(second)
    assert merged.lookup(6) == 501
    assert merged.lookup(206) == 501
    assert merged.lookup(209) == 109
    assert merged.lookup(105) == 500


def test_lookup_identity_fallback():
    stage = Map.from_triples([(50, 98, 2)])
    assert stage.lookup(10) == 10
    assert stage.lookup(98) == 50


# Chain composition and lookup

def test_compose_empty_chain_fails():
    with pytest.raises(MissingStages):
        compose([])


def test_compose_single_stage_is_unchanged():
    stage = Map.from_triples([(50, 98, 2)])
    assert compose([stage]) == stage


@pytest.mark.parametrize("point", [0, 5, 7, 8, 105, 107, 108, 200, 205, 207, 209, 300])
def test_compose_three_stages(point):
    stages = [
        Map.from_triples([(100, 0, 10)]),
        Map.from_triples([(100, 200, 10)]),
        Map.from_triples([(500, 105, 3)]),
    ]
    assert compose(stages).lookup(point) == lookup_sequential(stages, point)


def test_compose_three_stages_reaches_last_rule_through_identity():
    stages = [
        Map.from_triples([(100, 0, 10)]),
        Map.from_triples([(100, 200, 10)]),
        Map.from_triples([(500, 105, 3)]),
    ]
    composed = compose(stages)
    assert composed.lookup(205) == 500
    assert composed.min_destination_over_ranges([(200, 10)]) == 100
    assert composed.min_destination_over_ranges([(204, 2)]) == 104


@pytest.mark.parametrize("seed, location", [(79, 82), (14, 43), (55, 86), (13, 35)])
def test_seed_locations(almanac, seed, location):
    assert almanac.lookup_seed_location(seed) == location
    assert almanac.lookup_seed_location_sequential(seed) == location


def test_seed_to_location(almanac):
    assert almanac.seed_to_location.lookup(82) == 46


def test_seed_to_location_is_memoized(almanac):
    assert almanac.seed_to_location is almanac.seed_to_location


def test_sample_part_one(almanac):
    assert almanac.closest_seed_location() == 35


def test_sample_part_two(almanac):
    assert almanac.seed_ranges() == [(79, 14), (55, 13)]
    assert almanac.closest_seed_range_location() == 46


def test_min_destination_considers_identity_gaps():
    stage = Map.from_triples([(100, 10, 5)])
    # 5..9 stay identity, 10..14 go to 100..104, 15..19 stay identity
    assert stage.min_destination_over_ranges([(12, 8)]) == 15
    assert stage.min_destination_over_ranges([(0, 3)]) == 0


def test_min_destination_without_ranges_fails():
    with pytest.raises(MissingSeeds):
        Map().min_destination_over_ranges([])
    with pytest.raises(MissingSeeds):
        Map().min_destination_over_ranges([(10, 0)])


# Almanac parsing

def test_parse_stage_names(almanac):
    assert almanac.names[0] == "seed-to-soil"
    assert almanac.names[-1] == "humidity-to-location"
    assert len(almanac.stages) == 7


def test_parse_without_trailing_blank_line():
    almanac = parse_almanac(["seeds: 1 2", "", "a-to-b map:", "10 0 5"])
    assert almanac.seeds == (1, 2)
    assert almanac.stages == (Map.from_triples([(10, 0, 5)]),)


def test_expected_stage_count():
    with open(SAMPLE_FILE) as f:
        assert len(parse_almanac(f, expected_stages=7).stages) == 7
    with pytest.raises(StageCountMismatch):
        read_input(SAMPLE_FILE, expected_stages=6)


def test_almanac_without_stages_fails():
    with pytest.raises(MissingStages):
        parse_almanac(["seeds: 1 2"])
    with pytest.raises(MissingStages):
        Almanac([1], [])


@pytest.mark.parametrize("lines", [
    ["", "a-to-b map:", "1 2 3"],
    ["seeds: 1 x"],
    ["seeds: 1", "", "1 2 3"],
    ["seeds: 1", "", "a-to-b map:", "1 2"],
    ["seeds: 1", "", "a-to-b map:", "1 2 0"],
])
def test_parse_errors(lines):
    with pytest.raises(InvalidAlmanac):
        parse_almanac(lines)


def test_odd_seed_count_has_no_ranges():
    almanac = parse_almanac(["seeds: 1 2 3", "", "a-to-b map:", "10 0 5"])
    with pytest.raises(InvalidAlmanac):
        almanac.seed_ranges()


def test_no_seeds_part_one_fails():
    almanac = parse_almanac(["seeds:", "", "a-to-b map:", "10 0 5"])
    with pytest.raises(MissingSeeds):
        almanac.closest_seed_location()


# Command line

def test_main_part_one(capsys):
    assert main([SAMPLE_FILE, "--part", "1"]) == 0
    assert capsys.readouterr().out.strip() == "35"


def test_main_part_two(capsys):
    assert main([SAMPLE_FILE, "--stages", "7"]) == 0
    assert capsys.readouterr().out.strip() == "46"


def test_main_reports_errors(capsys):
    assert main([SAMPLE_FILE, "--stages", "3"]) == 1
    assert "Error:" in capsys.readouterr().err
