"""Netlist graph the clock model is attached to.

Wires and cells are nodes of a directed multigraph. An edge
``wire -> cell`` means the wire drives an input port of the cell, an edge
``cell -> wire`` means an output port of the cell drives the wire. The
graph is the sole owner of these objects; clocks refer to wires through
the hashable :class:`Wire` handles only.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

import networkx as nx

from sdc_toolkit.errors import InvalidArgumentError, NotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

ParamValue = int | float | str


class PortDirection(StrEnum):
    """Direction of a module port or a cell pin."""

    INPUT = "input"
    OUTPUT = "output"
    INOUT = "inout"


@dataclass(frozen=True)
class Wire:
    """Handle of a single net inside a module.

    Attributes
    ----------
    module : str
        Name of the module owning the wire.
    name : str
        Local wire name.
    top : bool
        Whether the owning module is the design top. Only affects
        :attr:`path`.
    """

    module: str
    name: str
    top: bool = field(default=True, compare=False)

    @property
    def path(self) -> str:
        """Name used in constraint files (``module/name`` below the top)."""
        if self.top:
            return self.name
        return f"{self.module}/{self.name}"


@dataclass(frozen=True)
class Cell:
    """Handle of a cell instance.

    Parameters are kept out of equality and hashing so the handle stays
    usable as a graph node.
    """

    module: str
    name: str
    type: str
    parameters: Mapping[str, ParamValue] = field(
        default_factory=dict, compare=False, hash=False
    )

    @property
    def path(self) -> str:
        """Hierarchical instance name."""
        return f"{self.module}/{self.name}"


@dataclass
class _Module:
    name: str
    top: bool = False
    wires: dict[str, Wire] = field(default_factory=dict)
    ports: dict[str, PortDirection] = field(default_factory=dict)
    cells: dict[str, Cell] = field(default_factory=dict)


class Netlist:
    """Queryable netlist made of modules, wires and cells.

    Parameters
    ----------
    top : str | None
        Name of the top module. When given, the module is created.
    """

    def __init__(self, top: str | None = None) -> None:
        self._graph: nx.MultiDiGraph = nx.MultiDiGraph()
        self._modules: dict[str, _Module] = {}
        self._top: str | None = None
        if top is not None:
            self.add_module(top, top=True)

    @property
    def graph(self) -> nx.MultiDiGraph:
        """Expose the underlying NetworkX MultiDiGraph."""
        return self._graph

    @property
    def top_module(self) -> str | None:
        """Name of the top module, or None when the design has none."""
        return self._top

    # ── Construction ─────────────────────────────────────────────────

    def add_module(self, name: str, top: bool = False) -> None:
        """Create a module; marking it ``top`` replaces any previous top.

        The top module must be declared before its wires are added, since
        wire paths are fixed when the handle is created.
        """
        module = self._modules.setdefault(name, _Module(name=name))
        if top:
            if self._top is not None and self._top != name:
                self._modules[self._top].top = False
            module.top = True
            self._top = name

    def _module(self, name: str) -> _Module:
        try:
            return self._modules[name]
        except KeyError:
            msg = f"Module {name!r} does not exist"
            raise NotFoundError(msg) from None

    def add_wire(
        self,
        module: str,
        name: str,
        direction: PortDirection | str | None = None,
        width: int = 1,
    ) -> Wire:
        """Add a wire to *module*, or return the existing one.

        Parameters
        ----------
        module : str
            The owning module.
        name : str
            Local wire name.
        direction : PortDirection | str | None
            Port direction when the wire is a module port.
        width : int
            Number of bits; re-adding a wire keeps the widest value.

        Returns
        -------
        Wire
            The wire handle.
        """
        mod = self._module(module)
        wire = mod.wires.get(name)
        if wire is None:
            wire = Wire(module=module, name=name, top=mod.top)
            mod.wires[name] = wire
            self._graph.add_node(wire, width=width)
        else:
            node = self._graph.nodes[wire]
            node["width"] = max(node.get("width", 1), width)
        if direction is not None:
            mod.ports[name] = PortDirection(direction)
        return wire

    def add_cell(  # noqa: PLR0913
        self,
        module: str,
        name: str,
        cell_type: str,
        inputs: Mapping[str, Iterable[Wire]] | None = None,
        outputs: Mapping[str, Iterable[Wire]] | None = None,
        parameters: Mapping[str, ParamValue] | None = None,
    ) -> Cell:
        """Add a cell and connect its ports.

        Parameters
        ----------
        module : str
            The owning module.
        name : str
            Instance name, unique within the module.
        cell_type : str
            The cell type (e.g. ``"BUFG"``).
        inputs : Mapping[str, Iterable[Wire]] | None
            Input port name to the wires driving it.
        outputs : Mapping[str, Iterable[Wire]] | None
            Output port name to the wires it drives.
        parameters : Mapping[str, ParamValue] | None
            Cell parameters.

        Returns
        -------
        Cell
            The cell handle.

        Raises
        ------
        InvalidArgumentError
            If a cell with the same name already exists in the module.
        """
        mod = self._module(module)
        if name in mod.cells:
            msg = f"Cell {name!r} already exists in module {module!r}"
            raise InvalidArgumentError(msg)
        cell = Cell(
            module=module,
            name=name,
            type=cell_type,
            parameters=MappingProxyType(dict(parameters or {})),
        )
        mod.cells[name] = cell
        self._graph.add_node(cell)
        for port, wires in (inputs or {}).items():
            for wire in wires:
                self._graph.add_edge(wire, cell, port=port)
        for port, wires in (outputs or {}).items():
            for wire in wires:
                self._graph.add_edge(cell, wire, port=port)
        return cell

    # ── Queries ──────────────────────────────────────────────────────

    def modules(self) -> list[str]:
        """Return module names in insertion order."""
        return list(self._modules)

    def wires(self, module: str | None = None) -> list[Wire]:
        """Return wires of one module, or of all modules, in insertion order."""
        if module is not None:
            return list(self._module(module).wires.values())
        return [w for mod in self._modules.values() for w in mod.wires.values()]

    def width(self, wire: Wire) -> int:
        """Return the number of bits of *wire*."""
        if wire not in self._graph:
            msg = f"Wire {wire.path} does not exist"
            raise NotFoundError(msg)
        return self._graph.nodes[wire].get("width", 1)

    def cells(self, module: str | None = None) -> list[Cell]:
        """Return cells of one module, or of all modules, in insertion order."""
        if module is not None:
            return list(self._module(module).cells.values())
        return [c for mod in self._modules.values() for c in mod.cells.values()]

    def ports(self, module: str | None = None) -> dict[str, PortDirection]:
        """Return the ports of *module* (default: the top module).

        Raises
        ------
        NotFoundError
            If no module is given and the design has no top module.
        """
        if module is None:
            if self._top is None:
                msg = "Design has no top module"
                raise NotFoundError(msg)
            module = self._top
        return dict(self._module(module).ports)

    def get_wire(self, name: str, module: str | None = None) -> Wire | None:
        """Look up a wire by local name (default module: the top)."""
        module = module if module is not None else self._top
        if module is None or module not in self._modules:
            return None
        return self._modules[module].wires.get(name)

    def select_wires(self, patterns: Iterable[str]) -> list[Wire]:
        """Select wires whose name or path matches any glob pattern.

        Parameters
        ----------
        patterns : Iterable[str]
            Glob patterns; a pattern containing ``/`` is matched against
            the wire path, otherwise against the local name.

        Returns
        -------
        list[Wire]
            Matching wires in netlist order, without duplicates.
        """
        patterns = list(patterns)
        selected: list[Wire] = []
        for wire in self.wires():
            for pattern in patterns:
                target = wire.path if "/" in pattern else wire.name
                if fnmatch.fnmatchcase(target, pattern):
                    selected.append(wire)
                    break
        return selected

    def select_cells(self, patterns: Iterable[str]) -> list[Cell]:
        """Select cells whose instance name matches any glob pattern."""
        patterns = list(patterns)
        return [
            cell
            for cell in self.cells()
            if any(fnmatch.fnmatchcase(cell.name, p) for p in patterns)
        ]

    def select_pins(self, patterns: Iterable[str]) -> list[str]:
        """Select cell pins (``cell/port``) matching any glob pattern."""
        patterns = list(patterns)
        pins: list[str] = []
        for cell in self.cells():
            for port in sorted(self.cell_ports(cell)):
                pin = f"{cell.name}/{port}"
                if any(fnmatch.fnmatchcase(pin, p) for p in patterns):
                    pins.append(pin)
        return pins

    def cell_ports(self, cell: Cell) -> set[str]:
        """Return the names of all connected ports of *cell*."""
        ports = {attrs["port"] for _, _, attrs in self._graph.in_edges(cell, data=True)}
        ports |= {
            attrs["port"] for _, _, attrs in self._graph.out_edges(cell, data=True)
        }
        return ports

    def fanout(self, wire: Wire) -> list[tuple[Cell, str]]:
        """Return ``(cell, input port)`` pairs driven by *wire*."""
        if wire not in self._graph:
            return []
        return [
            (cell, attrs["port"])
            for _, cell, attrs in self._graph.out_edges(wire, data=True)
        ]

    def driven_wires(self, cell: Cell, port: str) -> list[Wire]:
        """Return the wires driven by output *port* of *cell*."""
        if cell not in self._graph:
            return []
        return [
            wire
            for _, wire, attrs in self._graph.out_edges(cell, data=True)
            if attrs["port"] == port
        ]

    def __contains__(self, item: object) -> bool:
        """Check whether a wire or cell handle belongs to this netlist."""
        return item in self._graph
