import logging

import pytest
from conftest import DATA_DIR
from lark import LarkError

from sdc_toolkit.core.model import (
    ClockGroupRelation,
    MaxDelay,
    ObjectKind,
    Selection,
)
from sdc_toolkit.core.session import SDCSession
from sdc_toolkit.parser import (
    Command,
    SDCInterpreter,
    get_parser,
    parse_sdc,
    parse_sdc_file,
)
from sdc_toolkit.parser.transformer import unescape


class TestParse:
    def test_nested_command(self) -> None:
        commands = parse_sdc("create_clock -period 10 [get_ports clk]")
        assert commands == [
            Command(
                "create_clock",
                ("-period", "10", Command("get_ports", ("clk",), 1)),
                1,
            )
        ]

    def test_separators_and_comments(self) -> None:
        text = "# header\n\ncreate_clock -period 1 a; create_clock -period 2 b\n"
        commands = parse_sdc(text)
        assert [c.args[-1] for c in commands] == ["a", "b"]
        assert [c.line for c in commands] == [3, 3]

    def test_line_continuation(self) -> None:
        [command] = parse_sdc("set_false_path -from a \\\n    -to b")
        assert command.args == ("-from", "a", "-to", "b")

    def test_braced_list_spans_lines(self) -> None:
        [command] = parse_sdc("set_clock_groups -group {a\n  b} -group {}")
        assert command.args == ("-group", ["a", "b"], "-group", [])

    def test_braces_keep_brackets(self) -> None:
        [command] = parse_sdc("get_ports {data[0] data[1]}")
        assert command.args == (["data[0]", "data[1]"],)

    def test_escaped_brackets(self) -> None:
        [command] = parse_sdc(r"get_ports data\[0\]")
        assert command.args == ("data[0]",)

    def test_quoted_string(self) -> None:
        [command] = parse_sdc('create_clock -name "main clk" -period 1 a')
        assert command.args[1] == "main clk"

    def test_negative_number(self) -> None:
        [command] = parse_sdc("set_max_delay -0.5")
        assert command.args == ("-0.5",)

    def test_empty(self) -> None:
        assert parse_sdc("") == []
        assert parse_sdc("\n# only a comment\n;;\n") == []

    @pytest.mark.parametrize("text", ["create_clock [get_ports a", "get_ports {a"])
    def test_syntax_error(self, text: str) -> None:
        with pytest.raises(LarkError, match="SDC parsing failed"):
            parse_sdc(text)

    def test_parse_file(self) -> None:
        commands = parse_sdc_file(DATA_DIR / "constraints.sdc")
        assert [c.name for c in commands] == [
            "create_clock",
            "set_false_path",
            "set_clock_groups",
            "set_input_delay",
        ]
        assert [c.line for c in commands] == [2, 4, 6, 8]

    def test_missing_file(self) -> None:
        with pytest.raises(OSError, match="Error reading SDC file"):
            parse_sdc_file(DATA_DIR / "missing.sdc")

    def test_parser_is_cached(self) -> None:
        assert get_parser() is get_parser()

    def test_unescape(self) -> None:
        assert unescape(r"a\ b") == "a b"


def _run(session: SDCSession, text: str):  # noqa: ANN202
    return SDCInterpreter(session).execute(parse_sdc(text))


class TestInterpreter:
    def test_create_clock(self, session: SDCSession) -> None:
        result = _run(
            session, "create_clock -name sys -period 8 -waveform {1 5} [get_ports clk]"
        )
        assert result.ok
        [(_command, name)] = result.executed
        assert name == "sys"
        clock = session.registry.get("sys")
        assert (clock.period, clock.rising_edge, clock.falling_edge) == (8.0, 1.0, 5.0)

    def test_errors_do_not_stop_batch(
        self, session: SDCSession, caplog: pytest.LogCaptureFixture
    ) -> None:
        text = (
            "create_clock -period 0 clk\n"
            "create_clock -bogus 1 clk\n"
            "create_clock clk\n"
            "create_clock -period 5 clk\n"
        )
        with caplog.at_level(logging.ERROR):
            result = _run(session, text)
        assert [c.line for c, _e in result.errors] == [1, 2, 3]
        assert not result.ok
        assert session.registry.get("clk").period == 5.0
        assert "Line 2: create_clock: unknown option -bogus" in caplog.text

    def test_unsupported_command_skipped(
        self, session: SDCSession, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            result = _run(session, "set_input_delay 1 -clock c [get_ports a]")
        assert [c.name for c in result.skipped] == ["set_input_delay"]
        assert result.ok
        assert "unsupported command set_input_delay" in caplog.text

    def test_unsupported_nested_command(self, session: SDCSession) -> None:
        result = _run(session, "set_false_path -from [all_inputs]")
        assert len(result.errors) == 1
        assert len(session.exceptions) == 0

    def test_get_commands(self, session: SDCSession) -> None:
        result = _run(
            session,
            "create_clock -period 10 clk\npropagate_clocks\nget_clocks clk_d*\nget_ports",
        )
        values = [value for _command, value in result.executed]
        assert values == ["clk", 5000, ["clk_div"], ["clk", "led"]]

    def test_get_clocks_of_nets(self, session: SDCSession) -> None:
        result = _run(
            session,
            "create_clock -period 10 clk\npropagate_clocks\n"
            "set_false_path -to [get_clocks -of [get_nets clk_pll]]",
        )
        assert result.ok
        [record] = session.exceptions
        assert record.to == Selection(ObjectKind.CLOCKS, (), of_nets=("clk_pll",))
        assert "set_false_path -to [get_clocks {clk_pll}]" in session.emit_sdc()

    def test_set_max_delay(self, session: SDCSession) -> None:
        _run(session, "set_max_delay 2 -from [get_cells clk_*] -to [get_pins led_reg/D]")
        assert session.exceptions.max_delays == [
            MaxDelay(
                2.0,
                from_=Selection(ObjectKind.CELLS, ("clk_*",)),
                to=Selection(ObjectKind.PINS, ("led_reg/D",)),
            )
        ]

    def test_set_max_delay_needs_value(self, session: SDCSession) -> None:
        result = _run(session, "set_max_delay -to [get_ports led]")
        assert len(result.errors) == 1

    def test_set_false_path_names(self, session: SDCSession) -> None:
        _run(session, "set_false_path -through {n1 n2}")
        [record] = session.exceptions
        assert record.through == Selection(ObjectKind.NAMES, ("n1", "n2"))

    def test_set_clock_groups(self, session: SDCSession) -> None:
        _run(
            session,
            "set_clock_groups -name g -logically_exclusive "
            "-group {a b} -group [get_clocks c*]\n"
            "set_clock_groups -group x",
        )
        first, second = session.exceptions.clock_groups
        assert first.name == "g"
        assert first.relation == ClockGroupRelation.LOGICALLY_EXCLUSIVE
        assert first.groups == (
            Selection.of("clocks", "a", "b"),
            Selection.of("clocks", "c*"),
        )
        assert second.relation == ClockGroupRelation.NONE

    def test_clock_groups_declared_before_propagation(
        self, session: SDCSession
    ) -> None:
        result = _run(
            session,
            "create_clock -period 10 -name sys_clk [get_ports clk]\n"
            "create_clock -period 20 -name other led\n"
            "set_clock_groups -asynchronous "
            "-group [get_clocks -include_generated_clocks sys_clk] "
            "-group [get_clocks other]\n"
            "propagate_clocks",
        )
        assert result.ok
        lines = session.emit_sdc(include_generated=True).splitlines()
        assert lines[-1] == (
            "set_clock_groups -asynchronous "
            "-group {sys_clk clk_ibuf clk_g clk_div clk_pll} -group {other}"
        )

    def test_get_clocks_of_nets_before_clocks_exist(
        self, session: SDCSession
    ) -> None:
        result = _run(
            session,
            "set_false_path -from [get_clocks -of [get_nets clk_div]]\n"
            "create_clock -period 10 clk\n"
            "propagate_clocks",
        )
        assert result.ok
        assert "set_false_path -from [get_clocks {clk_div}]" in session.emit_sdc()

    def test_set_clock_groups_two_relations(self, session: SDCSession) -> None:
        result = _run(
            session, "set_clock_groups -asynchronous -physically_exclusive -group a"
        )
        assert len(result.errors) == 1
