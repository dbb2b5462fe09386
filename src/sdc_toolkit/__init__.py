"""sdc_toolkit -- derive clocks through a netlist and write SDC constraints."""

from sdc_toolkit.core import (
    Clock,
    ClockGroup,
    ClockGroupRelation,
    ClockOrigin,
    ClockRegistry,
    FalsePath,
    MaxDelay,
    Netlist,
    NetlistBuilder,
    ObjectKind,
    Selection,
    TimingExceptionStore,
    Waveform,
    Wire,
)
from sdc_toolkit.core.session import SDCSession
from sdc_toolkit.errors import (
    InvalidArgumentError,
    MalformedCellError,
    NotFoundError,
    SDCError,
    StructuralPreconditionError,
)
from sdc_toolkit.io import emit_sdc, load_netlist, netlist_from_json, write_sdc
from sdc_toolkit.parser import parse_sdc, parse_sdc_file
from sdc_toolkit.propagation import RuleSet, default_rules, propagate_clocks

__all__ = [
    # core
    "Clock",
    "ClockGroup",
    "ClockGroupRelation",
    "ClockOrigin",
    "ClockRegistry",
    "FalsePath",
    "MaxDelay",
    "Netlist",
    "NetlistBuilder",
    "ObjectKind",
    "SDCSession",
    "Selection",
    "TimingExceptionStore",
    "Waveform",
    "Wire",
    # errors
    "InvalidArgumentError",
    "MalformedCellError",
    "NotFoundError",
    "SDCError",
    "StructuralPreconditionError",
    # io
    "emit_sdc",
    "load_netlist",
    "netlist_from_json",
    "write_sdc",
    # parser
    "parse_sdc",
    "parse_sdc_file",
    # propagation
    "RuleSet",
    "default_rules",
    "propagate_clocks",
]
