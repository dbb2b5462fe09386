"""Data models for clocks and timing exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sdc_toolkit.core.netlist import Wire


class ClockOrigin(StrEnum):
    """Where a clock definition comes from."""

    EXPLICIT = "explicit"
    GENERATED = "generated"


@dataclass(frozen=True)
class Waveform:
    """Period and edge pair of a clock, in nanoseconds."""

    period: float
    rising_edge: float
    falling_edge: float

    @classmethod
    def default(cls, period: float) -> Waveform:
        """Return the 50% duty cycle waveform starting with a rising edge."""
        return cls(period=period, rising_edge=0.0, falling_edge=period / 2)

    @property
    def duty_cycle(self) -> float:
        """Fraction of the period the clock is high."""
        high = (self.falling_edge - self.rising_edge) % self.period
        return high / self.period


@dataclass(frozen=True)
class Clock:
    """A named periodic timing reference carried by one or more wires.

    Attributes
    ----------
    name : str
        Unique clock name.
    wires : tuple[Wire, ...]
        Wires carrying the clock signal.
    period : float
        Clock period in nanoseconds.
    rising_edge : float
        Time of the rising edge within one period.
    falling_edge : float
        Time of the falling edge.
    origin : ClockOrigin
        Whether the clock was declared or derived by propagation.
    parent : str | None
        Name of the clock this one was derived from.
    """

    name: str
    wires: tuple[Wire, ...]
    period: float
    rising_edge: float
    falling_edge: float
    origin: ClockOrigin = ClockOrigin.EXPLICIT
    parent: str | None = None

    @property
    def waveform(self) -> Waveform:
        """Return the clock's period and edges as a :class:`Waveform`."""
        return Waveform(self.period, self.rising_edge, self.falling_edge)

    @property
    def is_generated(self) -> bool:
        """Whether the clock was produced by propagation."""
        return self.origin == ClockOrigin.GENERATED

    @property
    def wire_paths(self) -> list[str]:
        """Constraint-file names of the clock's wires."""
        return [wire.path for wire in self.wires]


class ObjectKind(StrEnum):
    """Kind of design object an endpoint selection refers to."""

    CLOCKS = "clocks"
    PORTS = "ports"
    NETS = "nets"
    PINS = "pins"
    CELLS = "cells"
    NAMES = "names"


@dataclass(frozen=True)
class Selection:
    """An endpoint selection, resolved only when constraints are written.

    Attributes
    ----------
    kind : ObjectKind
        The kind of object the patterns name. ``NAMES`` are bare object
        names as they appear on a command line.
    patterns : tuple[str, ...]
        Glob patterns or literal names.
    include_generated : bool
        For clock selections, also select every clock derived from a
        matched clock.
    of_nets : tuple[str, ...] | None
        For clock selections, select the clocks carried by these nets
        instead of matching clock names.
    """

    kind: ObjectKind
    patterns: tuple[str, ...]
    include_generated: bool = False
    of_nets: tuple[str, ...] | None = None

    @property
    def is_deferred(self) -> bool:
        """Whether the selected clocks depend on the registry when written."""
        return self.include_generated or self.of_nets is not None

    @classmethod
    def of(cls, kind: ObjectKind | str, *patterns: str) -> Selection:
        """Build a selection from a kind and any number of patterns."""
        return cls(kind=ObjectKind(kind), patterns=tuple(patterns))

    def __str__(self) -> str:
        """Render the selection as SDC text."""
        if self.kind == ObjectKind.NAMES:
            if len(self.patterns) == 1:
                return self.patterns[0]
            return "{" + " ".join(self.patterns) + "}"
        options = ""
        if self.include_generated:
            options += " -include_generated_clocks"
        if self.of_nets is not None:
            return f"[get_{self.kind}{options} -of {{{' '.join(self.of_nets)}}}]"
        return f"[get_{self.kind}{options} {{{' '.join(self.patterns)}}}]"


class ClockGroupRelation(StrEnum):
    """Relationship between the groups of a ``set_clock_groups`` record."""

    NONE = "none"
    ASYNCHRONOUS = "asynchronous"
    LOGICALLY_EXCLUSIVE = "logically_exclusive"
    PHYSICALLY_EXCLUSIVE = "physically_exclusive"


@dataclass(frozen=True)
class FalsePath:
    """Paths between the endpoints carry no timing relationship."""

    from_: Selection | None = None
    to: Selection | None = None
    through: Selection | None = None

    @property
    def selections(self) -> list[Selection]:
        """Non-empty endpoint selections in ``from``/``through``/``to`` order."""
        return [s for s in (self.from_, self.through, self.to) if s is not None]


@dataclass(frozen=True)
class MaxDelay:
    """Upper bound on path delay; missing endpoints mean all endpoints."""

    delay: float
    from_: Selection | None = None
    to: Selection | None = None

    @property
    def selections(self) -> list[Selection]:
        """Non-empty endpoint selections in ``from``/``to`` order."""
        return [s for s in (self.from_, self.to) if s is not None]


@dataclass(frozen=True)
class ClockGroup:
    """Partition of clocks into mutually related groups.

    Each group is a clock selection, so a group given as
    ``[get_clocks -include_generated_clocks clk]`` also covers the clocks
    propagation derives from ``clk`` later on.
    """

    groups: tuple[Selection, ...]
    relation: ClockGroupRelation = ClockGroupRelation.ASYNCHRONOUS
    name: str | None = None

    @property
    def selections(self) -> list[Selection]:
        """One clock selection per group."""
        return list(self.groups)


TimingException = FalsePath | MaxDelay | ClockGroup
