from pathlib import Path

from conftest import DATA_DIR
from typer.testing import CliRunner

from sdc_toolkit.cli import app

runner = CliRunner()

DESIGN = str(DATA_DIR / "design.json")
CONSTRAINTS = str(DATA_DIR / "constraints.sdc")


class TestWrite:
    def test_write(self) -> None:
        result = runner.invoke(app, ["write", DESIGN, "--sdc", CONSTRAINTS])
        assert result.exit_code == 0
        assert "create_clock -name sys_clk -period 10 -waveform {0 5} clk" in result.output
        assert "clk_pll" in result.output
        assert "-period 5 -waveform {1.25 3.75} clk_pll" not in result.output

    def test_include_propagated_clocks(self) -> None:
        result = runner.invoke(
            app, ["write", DESIGN, "-s", CONSTRAINTS, "--include-propagated-clocks"]
        )
        assert result.exit_code == 0
        assert "create_clock -period 5 -waveform {1.25 3.75} clk_pll" in result.output
        assert "create_clock -period 40 -waveform {0 20} clk_div" in result.output

    def test_no_propagate(self) -> None:
        result = runner.invoke(
            app, ["write", DESIGN, "-s", CONSTRAINTS, "--no-propagate"]
        )
        assert result.exit_code == 0
        sdc_lines = result.stdout.splitlines()
        assert any(line.startswith("create_clock -name sys_clk") for line in sdc_lines)
        # The group names a clock that only propagation derives.
        assert not any(line.startswith("set_clock_groups") for line in sdc_lines)

    def test_output_file(self, tmp_path: Path) -> None:
        out = tmp_path / "out.sdc"
        result = runner.invoke(app, ["write", DESIGN, "-s", CONSTRAINTS, "-o", str(out)])
        assert result.exit_code == 0
        assert out.read_text().startswith("create_clock -name sys_clk")

    def test_without_constraints(self) -> None:
        result = runner.invoke(app, ["write", DESIGN])
        assert result.exit_code == 0
        assert result.output == ""

    def test_failing_constraints(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.sdc"
        bad.write_text("create_clock -period 0 clk\n")
        result = runner.invoke(app, ["write", DESIGN, "-s", str(bad)])
        assert result.exit_code == 1
        assert "failed" in result.output

    def test_syntax_error(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.sdc"
        bad.write_text("create_clock [get_ports clk\n")
        result = runner.invoke(app, ["write", DESIGN, "-s", str(bad)])
        assert result.exit_code == 1
        assert "SDC parsing failed" in result.output

    def test_missing_netlist(self) -> None:
        result = runner.invoke(app, ["write", "/nonexistent/design.json"])
        assert result.exit_code == 1


class TestClocks:
    def test_clocks_table(self) -> None:
        result = runner.invoke(app, ["clocks", DESIGN, "-s", CONSTRAINTS])
        assert result.exit_code == 0
        assert "Clocks" in result.output
        assert "sys_clk" in result.output
        assert "generated" in result.output
        assert "Delay target: 5000 ps" in result.output

    def test_clocks_without_propagation(self) -> None:
        result = runner.invoke(
            app, ["clocks", DESIGN, "-s", CONSTRAINTS, "--no-propagate"]
        )
        assert result.exit_code == 0
        assert "generated" not in result.output
        assert "Delay target" not in result.output


class TestPorts:
    def test_ports(self) -> None:
        result = runner.invoke(app, ["ports", DESIGN])
        assert result.exit_code == 0
        assert "clk" in result.output
        assert "output" in result.output
        assert "Width" in result.output

    def test_log_level(self) -> None:
        result = runner.invoke(app, ["--log-level", "debug", "ports", DESIGN])
        assert result.exit_code == 0

    def test_log_level_from_env(self) -> None:
        result = runner.invoke(
            app, ["ports", DESIGN], env={"SDC_TOOLKIT_LOG_LEVEL": "error"}
        )
        assert result.exit_code == 0


class TestHelp:
    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "write" in result.output
        assert "clocks" in result.output
