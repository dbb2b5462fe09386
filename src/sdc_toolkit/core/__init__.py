"""Core data structures: netlist graph, clock model, registry and session."""

from sdc_toolkit.core.builder import NetlistBuilder
from sdc_toolkit.core.constraints import TimingExceptionStore
from sdc_toolkit.core.model import (
    Clock,
    ClockGroup,
    ClockGroupRelation,
    ClockOrigin,
    FalsePath,
    MaxDelay,
    ObjectKind,
    Selection,
    TimingException,
    Waveform,
)
from sdc_toolkit.core.netlist import Cell, Netlist, PortDirection, Wire
from sdc_toolkit.core.registry import ClockRegistry

__all__ = [
    # model
    "Clock",
    "ClockGroup",
    "ClockGroupRelation",
    "ClockOrigin",
    "FalsePath",
    "MaxDelay",
    "ObjectKind",
    "Selection",
    "TimingException",
    "Waveform",
    # netlist
    "Cell",
    "Netlist",
    "NetlistBuilder",
    "PortDirection",
    "Wire",
    # state
    "ClockRegistry",
    "TimingExceptionStore",
]
