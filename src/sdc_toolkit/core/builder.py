"""Programmatic builder for constructing Netlist objects."""

from collections.abc import Iterable, Mapping

from sdc_toolkit.core.netlist import Netlist, ParamValue, PortDirection, Wire

# A port connection is a single wire name or several of them.
Connection = str | Iterable[str]


def _names(connection: Connection) -> list[str]:
    if isinstance(connection, str):
        return [connection]
    return list(connection)


class NetlistBuilder:
    """Fluent builder for small netlists in tests and scripts.

    Wires are created the first time a cell connection names them, so only
    ports need to be declared up front.

    Parameters
    ----------
    top : str
        Name of the top module, which receives every wire and cell.

    Examples
    --------
    >>> from sdc_toolkit.core.builder import NetlistBuilder
    >>> netlist = (
    ...     NetlistBuilder()
    ...     .add_port("clk", "input")
    ...     .add_cell("bufg", "BUFG", inputs={"I": "clk"}, outputs={"O": "clk_g"})
    ...     .build()
    ... )
    >>> [w.name for w in netlist.wires()]
    ['clk', 'clk_g']
    """

    def __init__(self, top: str = "top") -> None:
        self._top = top
        self._netlist = Netlist(top=top)

    def add_port(
        self,
        name: str,
        direction: PortDirection | str = PortDirection.INPUT,
    ) -> "NetlistBuilder":
        """Declare a top-level port.

        Returns
        -------
        NetlistBuilder
            This builder instance for method chaining.
        """
        self._netlist.add_wire(self._top, name, direction)
        return self

    def add_wire(self, name: str) -> "NetlistBuilder":
        """Declare an internal wire.

        Returns
        -------
        NetlistBuilder
            This builder instance for method chaining.
        """
        self._netlist.add_wire(self._top, name)
        return self

    def _wires(self, connections: Mapping[str, Connection]) -> dict[str, list[Wire]]:
        return {
            port: [self._netlist.add_wire(self._top, n) for n in _names(connection)]
            for port, connection in connections.items()
        }

    def add_cell(
        self,
        name: str,
        cell_type: str,
        inputs: Mapping[str, Connection] | None = None,
        outputs: Mapping[str, Connection] | None = None,
        **parameters: ParamValue,
    ) -> "NetlistBuilder":
        """Add a cell, creating any wire it names.

        Parameters
        ----------
        name : str
            Instance name.
        cell_type : str
            The cell type (e.g. ``"BUFR"``).
        inputs : Mapping[str, Connection] | None
            Input port to wire name(s).
        outputs : Mapping[str, Connection] | None
            Output port to wire name(s).
        **parameters : ParamValue
            Cell parameters, e.g. ``BUFR_DIVIDE="4"``.

        Returns
        -------
        NetlistBuilder
            This builder instance for method chaining.
        """
        self._netlist.add_cell(
            self._top,
            name,
            cell_type,
            inputs=self._wires(inputs or {}),
            outputs=self._wires(outputs or {}),
            parameters=parameters,
        )
        return self

    def build(self) -> Netlist:
        """Return the constructed netlist."""
        return self._netlist
