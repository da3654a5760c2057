"""
Mapping Stage Hardware Implementation using Amaranth HDL

This module implements almanac lookups in hardware RTL.
Each stage holds its mapping table as constants and compares the incoming
value against every rule in parallel, so a lookup takes a single cycle
regardless of the table size.

Architecture:
- MappingStage: one table, registered output (latency 1)
- AlmanacPipeline: stages chained back to back (latency = number of stages),
  with a running minimum over every value leaving the last stage

A composed map (see software_reference.range_mapper.compose) can be loaded
into a single MappingStage, giving the same answer as the full pipeline.
"""

from amaranth import *

from software_reference.range_mapper import MissingStages


class MappingStage(Elaboratable):
    """
    Hardware module translating a value through one mapping table.

    Ports:
        Input:
            - value_in: Value to translate
            - valid_in: Input data valid signal

        Output:
            - value_out: Translated value (identity when no rule applies)
            - valid_out: Output data valid signal
            - hit_out: A rule applied to the value
    """

    def __init__(self, mapping_table, width=64):
        """
        Initialize the Mapping Stage module.

        Args:
            mapping_table: Iterable of Mapping rules (a Map works)
            width: Bit width for values (default: 64)
        """
        self.mappings = tuple(mapping_table)
        self.width = width

        limit = 1 << width
        for mapping in self.mappings:
            if mapping.source_end > limit or mapping.dest_end > limit:
                raise ValueError(f"{mapping} does not fit in {width} bits")

        # Input interface
        self.value_in = Signal(width)
        self.valid_in = Signal()

        # Output interface
        self.value_out = Signal(width)
        self.valid_out = Signal()
        self.hit_out = Signal()

    def elaborate(self, platform):
        m = Module()

        translated = Signal(self.width)
        hit = Signal()

        # Identity unless a rule matches; source ranges are disjoint so at
        # most one of the branches below is taken
        m.d.comb += translated.eq(self.value_in)

        for mapping in self.mappings:
            in_range = ((self.value_in >= mapping.source_start) &
                        (self.value_in < mapping.source_end))
            with m.If(in_range):
                m.d.comb += [
                    translated.eq(self.value_in - mapping.source_start + mapping.dest_start),
                    hit.eq(1),
                ]

        m.d.sync += [
            self.value_out.eq(translated),
            self.valid_out.eq(self.valid_in),
            self.hit_out.eq(hit),
        ]

        return m


class AlmanacPipeline(Elaboratable):
    """
    Chain of MappingStage modules, first stage applied first.

    Ports:
        Input:
            - value_in: Seed value
            - valid_in: Input data valid signal
            - clear: Restart the running minimum from the current output, if any

        Output:
            - value_out: Location value, `latency` cycles after the seed
            - valid_out: Output data valid signal
            - min_out: Lowest location seen since reset or clear
            - have_min: min_out holds a value
    """

    def __init__(self, stages, width=64):
        if not stages:
            raise MissingStages("a pipeline needs at least one stage")

        self.width = width
        self.stages = [MappingStage(stage, width=width) for stage in stages]
        self.latency = len(self.stages)

        # Input interface
        self.value_in = Signal(width)
        self.valid_in = Signal()
        self.clear = Signal()

        # Output interface
        self.value_out = Signal(width)
        self.valid_out = Signal()
        self.min_out = Signal(width)
        self.have_min = Signal()

    def elaborate(self, platform):
        m = Module()

        for i, stage in enumerate(self.stages):
            m.submodules[f"stage_{i}"] = stage

        first = self.stages[0]
        last = self.stages[-1]

        m.d.comb += [
            first.value_in.eq(self.value_in),
            first.valid_in.eq(self.valid_in),
        ]

        for upstream, downstream in zip(self.stages, self.stages[1:]):
            m.d.comb += [
                downstream.value_in.eq(upstream.value_out),
                downstream.valid_in.eq(upstream.valid_out),
            ]

        m.d.comb += [
            self.value_out.eq(last.value_out),
            self.valid_out.eq(last.valid_out),
        ]

        # Running minimum over the pipeline output; on clear, an output
        # leaving the pipeline in the same cycle starts the new minimum
        with m.If(last.valid_out & (self.clear | ~self.have_min |
                                    (last.value_out < self.min_out))):
            m.d.sync += [
                self.min_out.eq(last.value_out),
                self.have_min.eq(1),
            ]
        with m.Elif(self.clear):
            m.d.sync += self.have_min.eq(0)

        return m
