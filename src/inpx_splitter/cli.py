"""Main CLI application."""

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.markup import escape

from inpx_splitter import __version__
from inpx_splitter.commands.split import SplitConfig, display_summary, execute_split
from inpx_splitter.core.errors import InpxSplitError
from inpx_splitter.core.variant_builder import DEFAULT_PLACEHOLDER
from inpx_splitter.log_config import console, setup_logging

app = typer.Typer(
    name="inpx-splitter",
    help="Split a full Flibusta INPX catalog into FB2 and USR variants.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"inpx-splitter {__version__}")
        raise typer.Exit()


@app.command()
def split(
    input_file: Annotated[
        Optional[Path],
        typer.Argument(
            help="INPX file to split, relative to --input-dir. If omitted, shows a file picker.",
        ),
    ] = None,
    input_dir: Annotated[
        Path,
        typer.Option(
            "--input-dir",
            "-i",
            envvar="INPX_DIR",
            help="Directory holding the source INPX files",
        ),
    ] = Path("."),
    output_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--output-dir",
            "-o",
            envvar="INPX_OUTPUT_DIR",
            help="Where variant archives are written (default: next to the input file)",
        ),
    ] = None,
    placeholder: Annotated[
        str,
        typer.Option(
            "--placeholder",
            help="Token in the input file name replaced by the variant tag",
        ),
    ] = DEFAULT_PLACEHOLDER,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            "-d",
            help="Enable debug output",
        ),
    ] = False,
    log_file: Annotated[
        Optional[Path],
        typer.Option(
            "--log-file",
            envvar="INPX_LOG_FILE",
            help="Also append log lines to this file",
        ),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Split an INPX file into per-format variants and rewrite their headers.

    Each variant keeps the *.info marker files plus its own record files
    (*fb2-*.inp or *usr-*.inp). Book counts are recomputed and written into
    each variant's collection.info.
    """
    setup_logging(debug=debug, log_file=log_file)

    config = SplitConfig(
        input_dir=input_dir,
        input_file=input_file,
        output_dir=output_dir,
        placeholder=placeholder,
    )

    try:
        summary = execute_split(config, console=console)
    except InpxSplitError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)

    display_summary(summary, console)
    raise typer.Exit(summary.exit_code)


if __name__ == "__main__":
    app()
