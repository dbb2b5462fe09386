"""Typer CLI for deriving clocks and writing SDC constraints.

Provides commands to write the constraint set of a Yosys JSON netlist,
list the clocks it carries and list its top-level ports.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path  # noqa: TC003 - required at runtime by Typer
from typing import Annotated

import typer
from lark import LarkError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from sdc_toolkit.core.session import SDCSession
from sdc_toolkit.errors import SDCError
from sdc_toolkit.io.writer import format_number
from sdc_toolkit.io.yosys import load_netlist
from sdc_toolkit.parser import parse_sdc_file
from sdc_toolkit.parser.interpreter import SDCInterpreter

app = typer.Typer(no_args_is_help=True)
console = Console()
err_console = Console(stderr=True)

log = logging.getLogger(__name__)


class LogLevel(StrEnum):
    """Log levels accepted by ``--log-level``."""

    debug = "debug"
    info = "info"
    warning = "warning"
    error = "error"


@app.callback()
def configure(
    log_level: Annotated[
        LogLevel,
        typer.Option(
            "--log-level",
            "-l",
            envvar="SDC_TOOLKIT_LOG_LEVEL",
            help="Verbosity of diagnostics on stderr.",
        ),
    ] = LogLevel.warning,
) -> None:
    """Derive clocks through a netlist and write SDC constraints."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(code=1)


def _open_session(
    netlist_file: Path,
    top: str | None,
    sdc_files: list[Path],
    propagate: bool,
) -> SDCSession:
    """Load a netlist, read constraint files and optionally propagate.

    Parameters
    ----------
    netlist_file : Path
        Yosys JSON netlist.
    top : str | None
        Top module override.
    sdc_files : list[Path]
        Constraint files executed in order.
    propagate : bool
        Whether to derive clocks after reading the constraints.

    Returns
    -------
    SDCSession
        The populated session.
    """
    try:
        session = SDCSession(load_netlist(netlist_file, top))
    except (OSError, ValueError) as e:
        raise _fail(f"cannot load {netlist_file}: {e}") from e

    interpreter = SDCInterpreter(session)
    for sdc_file in sdc_files:
        try:
            commands = parse_sdc_file(sdc_file)
        except (OSError, LarkError) as e:
            raise _fail(str(e)) from e
        result = interpreter.execute(commands)
        if not result.ok:
            raise _fail(f"{len(result.errors)} command(s) in {sdc_file} failed")

    if propagate and len(session.registry) > 0:
        try:
            session.propagate_clocks()
        except SDCError as e:
            raise _fail(str(e)) from e
    return session


NetlistArg = Annotated[
    Path,
    typer.Argument(help="Path to the Yosys JSON netlist."),
]
TopOption = Annotated[
    str | None,
    typer.Option("--top", help="Top module (default: from the netlist)."),
]
SdcOption = Annotated[
    list[Path] | None,
    typer.Option("--sdc", "-s", help="SDC file to read; may be repeated."),
]
PropagateOption = Annotated[
    bool,
    typer.Option(
        "--propagate/--no-propagate",
        help="Derive clocks through buffers and dividers.",
    ),
]


@app.command()
def write(
    netlist_file: NetlistArg,
    sdc: SdcOption = None,
    top: TopOption = None,
    propagate: PropagateOption = True,
    include_propagated_clocks: Annotated[
        bool,
        typer.Option(
            "--include-propagated-clocks",
            help="Also write the clocks derived by propagation.",
        ),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output file (default: stdout)."),
    ] = None,
) -> None:
    """Write the constraint set of a netlist as SDC."""
    session = _open_session(netlist_file, top, sdc or [], propagate)
    text = session.emit_sdc(include_generated=include_propagated_clocks)
    if output is None:
        typer.echo(text, nl=False)
    else:
        output.write_text(text)
        log.info("Wrote %s", output)


@app.command()
def clocks(
    netlist_file: NetlistArg,
    sdc: SdcOption = None,
    top: TopOption = None,
    propagate: PropagateOption = True,
) -> None:
    """Show the clocks of a netlist after reading its constraints."""
    session = _open_session(netlist_file, top, sdc or [], propagate)

    table = Table(title="Clocks")
    table.add_column("Name", style="cyan")
    table.add_column("Period", style="green")
    table.add_column("Waveform", style="green")
    table.add_column("Origin")
    table.add_column("Parent")
    table.add_column("Wires")
    for clock in session.registry:
        table.add_row(
            clock.name,
            format_number(clock.period),
            f"{format_number(clock.rising_edge)} {format_number(clock.falling_edge)}",
            str(clock.origin),
            clock.parent or "",
            " ".join(clock.wire_paths),
        )
    console.print(table)

    target = session.scratchpad.get("abc9.D")
    if target is not None:
        console.print(f"Delay target: {target} ps")


@app.command()
def ports(
    netlist_file: NetlistArg,
    top: TopOption = None,
) -> None:
    """List the top-level ports of a netlist."""
    session = _open_session(netlist_file, top, [], propagate=False)
    try:
        directions = session.netlist.ports()
    except SDCError as e:
        raise _fail(str(e)) from e

    table = Table(title="Ports")
    table.add_column("Port", style="cyan")
    table.add_column("Direction", style="green")
    table.add_column("Width", justify="right")
    netlist = session.netlist
    for name, direction in directions.items():
        wire = netlist.get_wire(name)
        width = netlist.width(wire) if wire is not None else 1
        table.add_row(name, str(direction), str(width))
    console.print(table)


def main() -> None:
    """Entry point for the ``sdc-toolkit`` console script."""
    app()
