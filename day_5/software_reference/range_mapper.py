"""
Range Mapper - Composition of Interval Mappings

Models one almanac stage as a set of half-open interval rules
(source range -> destination range, identity elsewhere) and composes
consecutive stages into a single equivalent stage, so that a whole chain
of stages can be queried with one lookup.

Algorithm overview:
    1. Pairwise merge: one input rule (X -> Y) against one output rule
       (Y -> Z) gives the composed overlap plus the leftovers on each side.
    2. Map merge: a sorted sweep of every input rule over the output rules
       overlapping its destination, carrying the right-hand leftover on.
    3. Chain composition: fold the map merge over every stage.
"""

import functools
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple


class AlmanacError(Exception):
    """Base class for every almanac failure."""


class InvalidMapping(AlmanacError, ValueError):
    """A mapping rule with a non-positive length or a negative start."""


class MissingStages(AlmanacError):
    """A chain of stages that is empty or does not have the expected size."""


class StageCountMismatch(MissingStages):
    """The number of parsed stages differs from the configured one."""


class MissingSeeds(AlmanacError):
    """A minimum was requested over no points at all."""


@dataclass(frozen=True)
class Mapping:
    """
    A single rule: [source_start, source_start + length) is translated
    to [dest_start, dest_start + length).
    """

    length: int
    source_start: int
    dest_start: int

    def __post_init__(self):
        if self.length <= 0:
            raise InvalidMapping(f"mapping length must be positive, got {self.length}")
        if self.source_start < 0 or self.dest_start < 0:
            raise InvalidMapping(
                f"mapping starts must not be negative, got source={self.source_start} "
                f"dest={self.dest_start}"
            )

    @classmethod
    def from_triple(cls, dest_start: int, source_start: int, length: int) -> "Mapping":
        """Build a rule from the almanac's (dest, source, length) order."""
        return cls(length=length, source_start=source_start, dest_start=dest_start)

    def to_triple(self) -> Tuple[int, int, int]:
        return (self.dest_start, self.source_start, self.length)

    @property
    def source_end(self) -> int:
        return self.source_start + self.length

    @property
    def dest_end(self) -> int:
        return self.dest_start + self.length

    def maps(self, source: int) -> Optional[int]:
        """
        Translate a single point.

        Args:
            source: Point in the source domain

        Returns:
            int or None: Image of the point, None when the rule does not apply
        """
        if self.source_start <= source < self.source_end:
            return self.dest_start + (source - self.source_start)
        return None

    def truncate_end(self, max_length: int) -> "Mapping":
        """Keep at most max_length values from the low end."""
        return Mapping(min(self.length, max_length), self.source_start, self.dest_start)

    def truncate_start(self, max_length: int) -> "Mapping":
        """Keep at most max_length values from the high end."""
        length = min(self.length, max_length)
        delta = self.length - length
        return Mapping(length, self.source_start + delta, self.dest_start + delta)

    def restrict(self, start: int, end: int) -> "Mapping":
        """Sub-rule whose source is [start, end), which must be non-empty and inside this rule."""
        return self.truncate_start(self.source_end - start).truncate_end(end - start)

    def merge(self, output: "Mapping") -> "MergeResult":
        """
        Compose this rule (X -> Y) with an output rule (Y -> Z).

        Args:
            output: Rule applied after this one

        Returns:
            MergeResult: (left, intersection, right) where left and right are
            the leftovers before and after the overlap in Y, each tagged with
            the side it came from and still in that side's own coordinates

        Algorithm:
            1. Whichever of this destination range and the output source range
               starts first contributes the left leftover, up to the other start
            2. The overlap in Y is translated back to this rule's source and
               forward to the output's destination
            3. Whichever range ends last contributes the right leftover
            Equal bounds produce no leftover on that side.
        """
        if self.dest_start < output.source_start:
            left = MergeSource(
                Origin.INPUT, self.truncate_end(output.source_start - self.dest_start)
            )
        elif output.source_start < self.dest_start:
            left = MergeSource(
                Origin.OUTPUT, output.truncate_end(self.dest_start - output.source_start)
            )
        else:
            left = None

        start = max(self.dest_start, output.source_start)
        end = min(self.dest_end, output.source_end)
        if end > start:
            intersection = Mapping(
                length=end - start,
                source_start=self.source_start + (start - self.dest_start),
                dest_start=output.dest_start + (start - output.source_start),
            )
        else:
            intersection = None

        if self.dest_end > output.source_end:
            right = MergeSource(
                Origin.INPUT, self.truncate_start(self.dest_end - output.source_end)
            )
        elif output.source_end > self.dest_end:
            right = MergeSource(
                Origin.OUTPUT, output.truncate_start(output.source_end - self.dest_end)
            )
        else:
            right = None

        return MergeResult(left, intersection, right)


class Origin(Enum):
    INPUT = "input"
    OUTPUT = "output"


class MergeSource(NamedTuple):
    """A leftover piece and the stage it still belongs to."""

    origin: Origin
    mapping: Mapping


class MergeResult(NamedTuple):
    left: Optional[MergeSource]
    intersection: Optional[Mapping]
    right: Optional[MergeSource]


def _uncovered_pieces(mapping: Mapping, covered: Sequence[Tuple[int, int]]) -> List[Mapping]:
    """
    Split a rule into the parts whose source lies outside the covered intervals.

    Args:
        mapping: Rule to clip
        covered: Sorted, non-overlapping (start, end) half-open intervals

    Returns:
        list: Sub-rules of mapping, in source order, never zero-length
    """
    pieces = []
    start, end = mapping.source_start, mapping.source_end

    for cover_start, cover_end in covered:
        if cover_end <= start:
            continue
        if cover_start >= end:
            break
        if cover_start > start:
            pieces.append(mapping.restrict(start, cover_start))
        start = cover_end
        if start >= end:
            break

    if start < end:
        pieces.append(mapping.restrict(start, end))

    return pieces


@dataclass(frozen=True)
class Map:
    """
    One translation stage: a set of rules, identity where no rule applies.

    Rules must have pairwise disjoint source intervals, which is not checked.
    Destination intervals may overlap.
    """

    mappings: Tuple[Mapping, ...] = ()

    def __post_init__(self):
        # Accept any iterable, store a tuple
        object.__setattr__(self, "mappings", tuple(self.mappings))

    @classmethod
    def from_triples(cls, triples: Iterable[Tuple[int, int, int]]) -> "Map":
        return cls(tuple(Mapping.from_triple(*triple) for triple in triples))

    def to_triples(self) -> List[Tuple[int, int, int]]:
        return [mapping.to_triple() for mapping in self.mappings]

    def __iter__(self) -> Iterator[Mapping]:
        return iter(self.mappings)

    def __len__(self) -> int:
        return len(self.mappings)

    def source_intervals(self) -> List[Tuple[int, int]]:
        """Source intervals of every rule as sorted (start, end) pairs."""
        return sorted((m.source_start, m.source_end) for m in self.mappings)

    def lookup(self, point: int) -> int:
        for mapping in self.mappings:
            dest = mapping.maps(point)
            if dest is not None:
                return dest
        return point

    def merge(self, output: "Map") -> "Map":
        """
        Compose this stage with the stage applied after it.

        Args:
            output: Stage whose source domain is this stage's destination domain

        Returns:
            Map: Single stage equivalent to applying self, then output

        Algorithm:
            1. Sort input rules by dest_start and output rules by source_start
            2. For each input rule, walk the output rules overlapping its
               destination: emit the left leftover and the intersection, keep
               the right leftover as the rest of the input rule
            3. Output rules are never consumed, so input rules sharing
               destinations are each composed against them
            Output rules only apply to points this stage leaves untouched, so
            each one is also emitted once, clipped to the gaps between this
            stage's source intervals, when the walk first reaches it.

        Time Complexity: O((n + m) log(n + m)) for the sort, plus one step
        per overlapping (input, output) pair
        """
        inputs = sorted(self.mappings, key=lambda m: m.dest_start)
        outputs = sorted(output.mappings, key=lambda m: m.source_start)
        covered = self.source_intervals()
        merged = []
        passed = 0  # outputs[:passed] already emitted as pass-through pieces
        first = 0   # outputs[:first] end before every remaining input

        def pass_through(upto):
            nonlocal passed
            for mapping in outputs[passed:upto]:
                merged.extend(_uncovered_pieces(mapping, covered))
            passed = max(passed, upto)

        for input_rule in inputs:
            while first < len(outputs) and outputs[first].source_end <= input_rule.dest_start:
                first += 1

            reached = first
            while reached < len(outputs) and outputs[reached].source_start < input_rule.dest_start:
                reached += 1
            pass_through(reached)

            piece = input_rule
            for index in range(first, len(outputs)):
                output_rule = outputs[index]
                if output_rule.source_start >= input_rule.dest_end:
                    break
                pass_through(index + 1)

                result = piece.merge(output_rule)
                if result.left is not None and result.left.origin is Origin.INPUT:
                    merged.append(result.left.mapping)
                if result.intersection is not None:
                    merged.append(result.intersection)

                if result.right is not None and result.right.origin is Origin.INPUT:
                    piece = result.right.mapping
                else:
                    piece = None
                    break

            if piece is not None:
                merged.append(piece)

        pass_through(len(outputs))

        return Map(tuple(merged))

    def candidate_points(self, ranges: Iterable[Tuple[int, int]]) -> Iterator[int]:
        """
        Points where the minimum of lookup over the ranges can occur.

        Inside one rule the lookup is increasing, and so is it inside an
        identity gap, so only the start of each piece has to be evaluated.

        Args:
            ranges: (start, length) pairs

        Yields:
            int: Range starts, rule starts and rule ends falling inside a range
        """
        for range_start, length in ranges:
            range_end = range_start + length
            if range_end <= range_start:
                continue

            yield range_start
            for mapping in self.mappings:
                if range_start < mapping.source_start < range_end:
                    yield mapping.source_start
                if range_start < mapping.source_end < range_end:
                    yield mapping.source_end

    def min_destination_over_ranges(self, ranges: Iterable[Tuple[int, int]]) -> int:
        """
        Smallest destination reachable from any point of the given ranges.

        Raises:
            MissingSeeds: No range holds any point
        """
        destinations = [self.lookup(point) for point in self.candidate_points(ranges)]
        if not destinations:
            raise MissingSeeds("no source point to look up")
        return min(destinations)


def compose(stages: Sequence[Map]) -> Map:
    """
    Fold every stage into one equivalent stage, first stage applied first.

    Raises:
        MissingStages: stages is empty
    """
    if not stages:
        raise MissingStages("cannot compose an empty chain of stages")
    return functools.reduce(Map.merge, stages)


def lookup_sequential(stages: Iterable[Map], point: int) -> int:
    """Apply each stage in turn to a single point."""
    for stage in stages:
        point = stage.lookup(point)
    return point
