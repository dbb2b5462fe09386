"""Netlist loading and SDC writing."""

from sdc_toolkit.io.writer import ResolutionIssue, emit_sdc, render_sdc, write_sdc
from sdc_toolkit.io.yosys import load_netlist, netlist_from_json

__all__ = [
    # writer
    "ResolutionIssue",
    "emit_sdc",
    "render_sdc",
    "write_sdc",
    # yosys
    "load_netlist",
    "netlist_from_json",
]
