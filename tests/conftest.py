"""Shared test constants and fixtures."""

from pathlib import Path

import pytest

from sdc_toolkit.core.builder import NetlistBuilder
from sdc_toolkit.core.netlist import Netlist
from sdc_toolkit.core.session import SDCSession
from sdc_toolkit.io.yosys import load_netlist

DATA_DIR = (Path(__file__).parent / "data").resolve()


@pytest.fixture
def design() -> Netlist:
    """Load the design.json test fixture."""
    return load_netlist(DATA_DIR / "design.json")


@pytest.fixture
def session(design: Netlist) -> SDCSession:
    """A session on the design.json fixture."""
    return SDCSession(design)


@pytest.fixture
def divider_chain() -> Netlist:
    """clk -> BUFG -> BUFR(/4) -> BUFG, with a flop on the divided clock."""
    return (
        NetlistBuilder()
        .add_port("clk", "input")
        .add_port("q", "output")
        .add_cell("bufg0", "BUFG", inputs={"I": "clk"}, outputs={"O": "clk_g"})
        .add_cell(
            "bufr0",
            "BUFR",
            inputs={"I": "clk_g"},
            outputs={"O": "clk_div"},
            BUFR_DIVIDE="4",
        )
        .add_cell("bufg1", "BUFG", inputs={"I": "clk_div"}, outputs={"O": "clk_div_g"})
        .add_cell("ff0", "FDRE", inputs={"C": "clk_div_g", "D": "d"}, outputs={"Q": "q"})
        .build()
    )
