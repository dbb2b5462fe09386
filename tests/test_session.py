import io
import logging

import pytest
from conftest import DATA_DIR

from sdc_toolkit.core.model import ClockOrigin, Selection, Waveform
from sdc_toolkit.core.netlist import Netlist, Wire
from sdc_toolkit.core.session import SDCSession
from sdc_toolkit.errors import (
    InvalidArgumentError,
    NotFoundError,
    StructuralPreconditionError,
)


class TestPackage:
    def test_top_level_exports(self) -> None:
        import sdc_toolkit

        assert sdc_toolkit.SDCSession is SDCSession
        assert "SDCSession" in sdc_toolkit.__all__

    def test_clock_target_iterables(self, session: SDCSession) -> None:
        clock = session.create_clock(
            10.0, iter([Selection.of("ports", "clk"), "clk_g"]), name="multi"
        )
        assert [w.name for w in clock.wires] == ["clk", "clk_g"]


class TestCreateClock:
    def test_on_port(self, session: SDCSession) -> None:
        clock = session.create_clock(
            10.0, Selection.of("ports", "clk"), name="sys_clk"
        )
        assert clock.name == "sys_clk"
        assert clock.wires == (Wire("top", "clk"),)
        assert clock.waveform == Waveform(10.0, 0.0, 5.0)

    def test_name_defaults_to_wire(self, session: SDCSession) -> None:
        assert session.create_clock(10.0, "clk_g").name == "clk_g"

    def test_waveform(self, session: SDCSession) -> None:
        clock = session.create_clock(10.0, "clk", waveform=[2.0, 7.0])
        assert (clock.rising_edge, clock.falling_edge) == (2.0, 7.0)

    def test_fallback_to_name(self, session: SDCSession) -> None:
        clock = session.create_clock(5.0, [], name="clk_ibuf")
        assert clock.wire_paths == ["clk_ibuf"]

    def test_empty_selection(self, session: SDCSession) -> None:
        with pytest.raises(InvalidArgumentError, match="Target selection is empty"):
            session.create_clock(5.0, "nothing*")
        assert len(session.registry) == 0

    @pytest.mark.parametrize("period", [0.0, -3.0])
    def test_bad_period(self, session: SDCSession, period: float) -> None:
        with pytest.raises(InvalidArgumentError):
            session.create_clock(period, "clk")

    def test_bad_waveform(self, session: SDCSession) -> None:
        with pytest.raises(InvalidArgumentError):
            session.create_clock(10.0, "clk", waveform=[1.0])

    def test_clock_selection(self, session: SDCSession) -> None:
        session.create_clock(10.0, "clk", name="a")
        clock = session.create_clock(20.0, Selection.of("clocks", "a"), name="b")
        assert clock.wire_paths == ["clk"]
        assert "a" not in session.registry


class TestQueries:
    def test_get_clocks_without_clocks(
        self, session: SDCSession, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            assert session.get_clocks() == []
        assert "No clocks found in design" in caplog.text

    def test_get_clocks_include_generated(self, session: SDCSession) -> None:
        session.create_clock(10.0, "clk", name="sys_clk")
        session.propagate_clocks()
        assert session.get_clocks(["sys_clk"]) == ["sys_clk"]
        assert session.get_clocks(["sys_clk"], include_generated=True) == [
            "sys_clk",
            "clk_ibuf",
            "clk_g",
            "clk_div",
            "clk_pll",
        ]

    def test_get_clocks_of(self, session: SDCSession) -> None:
        session.create_clock(10.0, "clk")
        session.propagate_clocks()
        assert session.get_clocks(of=["clk_div", "led"]) == ["clk_div"]

    def test_get_ports(self, session: SDCSession) -> None:
        assert session.get_ports() == ["clk", "led"]
        assert session.get_ports("led") == ["led"]
        with pytest.raises(NotFoundError):
            session.get_ports("rst")

    def test_get_ports_without_top(self) -> None:
        with pytest.raises(StructuralPreconditionError):
            SDCSession(Netlist()).get_ports()

    def test_no_design(self) -> None:
        with pytest.raises(StructuralPreconditionError):
            SDCSession().create_clock(10.0, "clk")


class TestPropagate:
    def test_design(self, session: SDCSession) -> None:
        session.create_clock(10.0, "clk")
        result = session.propagate_clocks()
        assert [c.name for c in result.generated] == [
            "clk_ibuf",
            "clk_g",
            "clk_div",
            "clk_pll",
        ]
        pll = session.registry.get("clk_pll")
        assert pll.waveform == Waveform(5.0, 1.25, 3.75)
        assert pll.origin == ClockOrigin.GENERATED
        assert session.registry.get("clk_div").period == 40.0

    def test_delay_target(self, session: SDCSession) -> None:
        session.create_clock(10.0, "clk")
        session.propagate_clocks()
        assert session.scratchpad["abc9.D"] == 5000

    def test_requires_clock(self, session: SDCSession) -> None:
        with pytest.raises(StructuralPreconditionError):
            session.propagate_clocks()
        assert "abc9.D" not in session.scratchpad


class TestLifecycle:
    def test_reset(self, session: SDCSession) -> None:
        session.create_clock(10.0, "clk")
        session.set_max_delay(1.0)
        session.propagate_clocks()
        session.reset()
        assert len(session.registry) == 0
        assert len(session.exceptions) == 0
        assert session.scratchpad == {}

    def test_load_netlist_clears_state(
        self, session: SDCSession, divider_chain: Netlist
    ) -> None:
        session.create_clock(10.0, "clk")
        session.load_netlist(divider_chain)
        assert len(session.registry) == 0
        assert session.netlist is divider_chain


class TestSdcRoundTrip:
    def test_read_and_write(self, session: SDCSession) -> None:
        result = session.read_sdc((DATA_DIR / "constraints.sdc").read_text())
        assert [c.name for c in result.skipped] == ["set_input_delay"]
        assert result.ok
        session.propagate_clocks()
        stream = io.StringIO()
        issues = session.write_sdc(stream, include_generated=True)
        assert issues == []
        assert stream.getvalue().splitlines() == [
            "create_clock -name sys_clk -period 10 -waveform {0 5} clk",
            "create_clock -period 10 -waveform {0 5} clk_ibuf",
            "create_clock -period 10 -waveform {0 5} clk_g",
            "create_clock -period 40 -waveform {0 20} clk_div",
            "create_clock -period 5 -waveform {1.25 3.75} clk_pll",
            "set_false_path -from [get_ports {clk}] -to [get_nets {led}]",
            "set_clock_groups -asynchronous -group {sys_clk} -group {clk_pll}",
        ]

    def test_unresolved_before_propagation(self, session: SDCSession) -> None:
        session.read_sdc((DATA_DIR / "constraints.sdc").read_text())
        text = session.emit_sdc()
        assert "set_clock_groups" not in text
        assert text.startswith("create_clock -name sys_clk")
