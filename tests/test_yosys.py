import pytest

from sdc_toolkit.core.netlist import Netlist, PortDirection
from sdc_toolkit.io.yosys import decode_parameter, netlist_from_json


class TestDecodeParameter:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("00000000000000000000000000000100", 4),
            ("4", 4),
            ("0.5", 0.5),
            ("-90.0", -90.0),
            ("BYPASS", "BYPASS"),
            ("1 ", "1"),
            ("1x0", "1x0"),
            (7, 7),
        ],
    )
    def test_decode(self, raw: object, expected: object) -> None:
        assert decode_parameter(raw) == expected


class TestLoadNetlist:
    def test_top_from_attribute(self, design: Netlist) -> None:
        assert design.top_module == "top"

    def test_ports(self, design: Netlist) -> None:
        assert design.ports() == {
            "clk": PortDirection.INPUT,
            "led": PortDirection.OUTPUT,
        }

    def test_cells(self, design: Netlist) -> None:
        types = {cell.name: cell.type for cell in design.cells()}
        assert types["clk_bufr"] == "BUFR"
        assert types["pll"] == "PLLE2_ADV"

    def test_parameters_decoded(self, design: Netlist) -> None:
        [pll] = design.select_cells(["pll"])
        assert pll.parameters["CLKFBOUT_MULT"] == 8
        assert pll.parameters["CLKOUT0_PHASE"] == 90.0

    def test_output_drives_public_alias(self, design: Netlist) -> None:
        [bufg] = design.select_cells(["clk_bufg"])
        assert [w.name for w in design.driven_wires(bufg, "O")] == ["clk_g"]

    def test_public_alias_reaches_loads(self, design: Netlist) -> None:
        clk_g = design.get_wire("clk_g")
        assert clk_g is not None
        loads = {(cell.name, port) for cell, port in design.fanout(clk_g)}
        assert loads == {("clk_bufr", "I"), ("pll", "CLKIN1")}

    def test_single_module_is_top(self) -> None:
        netlist = netlist_from_json({"modules": {"m": {"ports": {}}}})
        assert netlist.top_module == "m"

    def test_bus_width(self) -> None:
        data = {
            "modules": {
                "m": {
                    "ports": {"d": {"direction": "input", "bits": [2, 3, 4, 5]}},
                    "netnames": {"d": {"bits": [2, 3, 4, 5]}, "n": {"bits": [6]}},
                }
            }
        }
        netlist = netlist_from_json(data)
        assert netlist.width(netlist.get_wire("d")) == 4
        assert netlist.width(netlist.get_wire("n")) == 1

    def test_explicit_top(self) -> None:
        data = {"modules": {"a": {}, "b": {}}}
        assert netlist_from_json(data, top="b").top_module == "b"
        assert netlist_from_json(data).top_module is None
