"""Load a netlist written by Yosys ``write_json``."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sdc_toolkit.core.netlist import Netlist, ParamValue, Wire

if TYPE_CHECKING:
    from collections.abc import Mapping

log = logging.getLogger(__name__)

_BITS = re.compile(r"^[01xz]+$")
_INT = re.compile(r"^[+-]?\d+$")
_REAL = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")


def decode_parameter(value: Any) -> ParamValue:
    """Decode a Yosys JSON parameter value.

    Yosys writes integers as binary strings and appends a space to string
    parameters that would otherwise look like one.

    Examples
    --------
    >>> decode_parameter("00000000000000000000000000000100")
    4
    >>> decode_parameter("BYPASS")
    'BYPASS'
    >>> decode_parameter("90.0")
    90.0
    """
    if isinstance(value, int | float):
        return value
    text = str(value)
    if _BITS.match(text):
        if set(text) <= {"0", "1"}:
            return int(text, 2)
        return text
    if text.endswith(" ") and _BITS.match(text[:-1]):
        return text[:-1]
    text = text.strip()
    if _INT.match(text):
        return int(text)
    if _REAL.match(text):
        return float(text)
    return text


def _is_top(module: Mapping[str, Any]) -> bool:
    attribute = module.get("attributes", {}).get("top")
    if attribute is None:
        return False
    decoded = decode_parameter(attribute)
    return bool(decoded) if isinstance(decoded, int) else decoded not in ("", "0")


def _find_top(modules: Mapping[str, Any], top: str | None) -> str | None:
    if top is not None:
        return top
    tops = [name for name, module in modules.items() if _is_top(module)]
    if len(tops) == 1:
        return tops[0]
    if not tops and len(modules) == 1:
        return next(iter(modules))
    if tops:
        log.warning("Several top modules found (%s); none selected", ", ".join(tops))
    return None


def _load_module(netlist: Netlist, name: str, module: Mapping[str, Any]) -> None:
    """Populate one module's wires and cells."""
    ports = module.get("ports", {})
    bit_wires: dict[int, list[Wire]] = {}
    bit_driver: dict[int, Wire] = {}
    public: set[Wire] = set()

    for net_name, net in module.get("netnames", {}).items():
        direction = ports.get(net_name, {}).get("direction")
        wire = netlist.add_wire(
            name, net_name, direction, width=max(len(net.get("bits", [])), 1)
        )
        if not net.get("hide_name", 0):
            public.add(wire)
        for bit in net.get("bits", []):
            if not isinstance(bit, int):
                continue
            bit_wires.setdefault(bit, []).append(wire)
            current = bit_driver.get(bit)
            if current is None or (wire in public and current not in public):
                bit_driver[bit] = wire

    # Ports without a netname entry still need a wire.
    for port_name, port in ports.items():
        wire = netlist.add_wire(
            name,
            port_name,
            port.get("direction"),
            width=max(len(port.get("bits", [])), 1),
        )
        for bit in port.get("bits", []):
            if isinstance(bit, int):
                if wire not in bit_wires.setdefault(bit, []):
                    bit_wires[bit].append(wire)
                bit_driver.setdefault(bit, wire)

    for cell_name, cell in module.get("cells", {}).items():
        directions = cell.get("port_directions", {})
        inputs: dict[str, list[Wire]] = {}
        outputs: dict[str, list[Wire]] = {}
        for port, bits in cell.get("connections", {}).items():
            int_bits = [b for b in bits if isinstance(b, int)]
            direction = directions.get(port)
            if direction is None:
                log.debug("%s/%s: unknown direction of port %s", name, cell_name, port)
            if direction in (None, "input", "inout"):
                wires = [w for b in int_bits for w in bit_wires.get(b, [])]
                inputs[port] = list(dict.fromkeys(wires))
            if direction in (None, "output", "inout"):
                wires = [bit_driver[b] for b in int_bits if b in bit_driver]
                outputs[port] = list(dict.fromkeys(wires))
        netlist.add_cell(
            name,
            cell_name,
            cell["type"],
            inputs=inputs,
            outputs=outputs,
            parameters={
                key: decode_parameter(value)
                for key, value in cell.get("parameters", {}).items()
            },
        )


def netlist_from_json(data: Mapping[str, Any], top: str | None = None) -> Netlist:
    """Build a :class:`Netlist` from parsed Yosys JSON.

    Parameters
    ----------
    data : Mapping[str, Any]
        The decoded JSON document.
    top : str | None
        Top module name; by default the module carrying the ``top``
        attribute, or the only module of the design.

    Returns
    -------
    Netlist
        The netlist.
    """
    modules: Mapping[str, Any] = data.get("modules", {})
    top = _find_top(modules, top)
    netlist = Netlist()
    for name in modules:
        netlist.add_module(name, top=name == top)
    for name, module in modules.items():
        _load_module(netlist, name, module)
    log.debug(
        "Loaded %d module(s), %d wire(s), %d cell(s)",
        len(modules),
        len(netlist.wires()),
        len(netlist.cells()),
    )
    return netlist


def load_netlist(path: Path | str, top: str | None = None) -> Netlist:
    """Read a Yosys JSON netlist from *path*."""
    with Path(path).open(encoding="utf-8") as f:
        data = json.load(f)
    return netlist_from_json(data, top)
