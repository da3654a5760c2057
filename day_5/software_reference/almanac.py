#!/usr/bin/env python3
"""
Almanac - Part One and Part Two: Closest Seed Location

Reads an almanac (seed values followed by an ordered list of mapping
stages), composes every stage into a single seed-to-location map and
reports the lowest location reachable from the seeds.

Part one reads the seeds as individual values, part two as
(start, length) pairs describing whole seed ranges.
"""

import argparse
import functools
import sys
from typing import Iterable, List, Optional, Sequence, Tuple

from software_reference.range_mapper import (
    AlmanacError,
    InvalidMapping,
    Map,
    Mapping,
    MissingSeeds,
    MissingStages,
    StageCountMismatch,
    compose,
    lookup_sequential,
)


class InvalidAlmanac(AlmanacError, ValueError):
    """Malformed almanac text."""


class Almanac:
    """Seeds plus the ordered chain of stages they go through."""

    def __init__(self, seeds: Sequence[int], stages: Sequence[Map],
                 names: Optional[Sequence[str]] = None,
                 expected_stages: Optional[int] = None):
        if not stages:
            raise MissingStages("almanac has no mapping stages")
        if expected_stages is not None and len(stages) != expected_stages:
            raise StageCountMismatch(
                f"expected {expected_stages} mapping stages, found {len(stages)}"
            )

        self.seeds = tuple(seeds)
        self.stages = tuple(stages)
        if names is None:
            names = [f"stage-{i + 1}" for i in range(len(self.stages))]
        self.names = tuple(names)

    @functools.cached_property
    def seed_to_location(self) -> Map:
        """All stages composed into one map, computed on first use."""
        return compose(self.stages)

    def lookup_seed_location(self, seed: int) -> int:
        return self.seed_to_location.lookup(seed)

    def lookup_seed_location_sequential(self, seed: int) -> int:
        """Same as lookup_seed_location, stage by stage."""
        return lookup_sequential(self.stages, seed)

    def closest_seed_location(self) -> int:
        """
        Part one: lowest location over the individual seeds.

        Raises:
            MissingSeeds: The almanac lists no seed
        """
        if not self.seeds:
            raise MissingSeeds("almanac lists no seeds")
        return min(self.lookup_seed_location(seed) for seed in self.seeds)

    def seed_ranges(self) -> List[Tuple[int, int]]:
        """
        Seeds read as (start, length) pairs.

        Raises:
            InvalidAlmanac: Odd number of seed values
        """
        if len(self.seeds) % 2:
            raise InvalidAlmanac(
                f"seed ranges need an even number of values, got {len(self.seeds)}"
            )
        return list(zip(self.seeds[::2], self.seeds[1::2]))

    def closest_seed_range_location(self) -> int:
        """Part two: lowest location over every seed of every seed range."""
        return self.seed_to_location.min_destination_over_ranges(self.seed_ranges())


def _parse_numbers(text, line_number):
    try:
        return [int(value) for value in text.split()]
    except ValueError:
        raise InvalidAlmanac(f"line {line_number}: expected integers, got {text.strip()!r}") from None


def parse_almanac(lines: Iterable[str], expected_stages: Optional[int] = None) -> Almanac:
    """
    Parse almanac text.

    Args:
        lines: Text lines, with or without line terminators
        expected_stages: Number of stages to require, None accepts any non-zero count

    Returns:
        Almanac: Parsed seeds and stages

    Format:
        seeds: 79 14 55 13

        seed-to-soil map:
        50 98 2
        52 50 48

        soil-to-fertilizer map:
        ...

    Raises:
        InvalidAlmanac: Missing seeds line, rule outside a map block, rule
            without exactly three values or with an invalid length
        MissingStages: No map block at all
    """
    seeds = None
    names = []
    stages = []
    current = None

    for line_number, line in enumerate(lines, start=1):
        line = line.strip()

        if not line:
            current = None
            continue

        if seeds is None:
            if not line.startswith("seeds:"):
                raise InvalidAlmanac(f"line {line_number}: expected 'seeds:', got {line!r}")
            seeds = _parse_numbers(line[len("seeds:"):], line_number)

        elif line.endswith("map:"):
            names.append(line[:-len("map:")].strip())
            current = []
            stages.append(current)

        elif current is None:
            raise InvalidAlmanac(f"line {line_number}: mapping rule outside of a map block")

        else:
            values = _parse_numbers(line, line_number)
            if len(values) != 3:
                raise InvalidAlmanac(
                    f"line {line_number}: invalid mapping line {line!r}"
                )
            try:
                current.append(Mapping.from_triple(*values))
            except InvalidMapping as e:
                raise InvalidAlmanac(f"line {line_number}: {e}") from e

    if seeds is None:
        raise InvalidAlmanac("missing 'seeds:' line")

    return Almanac(
        seeds,
        [Map(tuple(stage)) for stage in stages],
        names=names,
        expected_stages=expected_stages,
    )


def read_input(filename, expected_stages=None):
    """Read and parse an almanac file."""
    with open(filename) as f:
        return parse_almanac(f, expected_stages=expected_stages)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Lowest location reachable from the seeds of an almanac'
    )
    parser.add_argument('input_file', help='Almanac input file')
    parser.add_argument('--part', type=int, choices=(1, 2), default=2,
                        help='1: seeds are single values, 2: seeds are (start, length) ranges')
    parser.add_argument('--stages', type=int, default=None,
                        help='Number of mapping stages the almanac must hold')
    args = parser.parse_args(argv)

    try:
        almanac = read_input(args.input_file, expected_stages=args.stages)
        if args.part == 1:
            result = almanac.closest_seed_location()
        else:
            result = almanac.closest_seed_range_location()
    except (AlmanacError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
