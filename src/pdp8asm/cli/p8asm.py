"""
p8asm - PDP-8 Assembler Command-Line Interface
==============================================

This module implements the command-line interface for the PDP-8 family
assembler.

Usage Examples
--------------
Basic assembly (writes monitor.bin):
    $ p8asm monitor.pal

Generate all output files:
    $ p8asm monitor.pal -o monitor.bin -l monitor.lst -s monitor.sym

Assemble for the HM6120 and silence off-field warnings:
    $ p8asm --cpu hm6120 -W F boot.pal

Environment
-----------
PDP8ASM_CPU and PDP8ASM_NOWARN provide defaults for ``--cpu`` and ``-W``.

Exit Status
-----------
0 when no error-class diagnostic remains after suppression, 1 when some
do, 2 for bad arguments or unreadable files, 3 for internal errors.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from pdp8asm import __version__
from pdp8asm.assembler import Assembler
from pdp8asm.cli.errors import ExitCode, handle_cli_exception
from pdp8asm.config import CPU_VARIANTS, AssemblerConfig, parse_codes


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


def _validate_codes(ctx: click.Context, param: click.Parameter, value: tuple[str, ...]) -> frozenset[str]:
    try:
        return parse_codes(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from None


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output BIN tape file (default: input.bin)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "--cpu",
    type=click.Choice(CPU_VARIANTS, case_sensitive=False),
    default=None,
    help="Target CPU variant (default: pdp8, or PDP8ASM_CPU)",
)
@click.option(
    "-W", "--nowarn",
    multiple=True,
    callback=_validate_codes,
    help="Suppress a diagnostic code, e.g. -W F (can be repeated)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="p8asm")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    cpu: Optional[str],
    nowarn: frozenset[str],
    verbose: bool,
) -> None:
    """
    Assemble PDP-8 family source code.

    INPUT_FILE is the assembly source file to assemble.

    Diagnostics are printed as FILE:LINE:COL: CODE message. The listing is
    written even when there are errors; the tape and symbol files are
    not.

    \b
    Examples:
        p8asm monitor.pal               # Outputs monitor.bin
        p8asm monitor.pal -o out.bin    # Specify output file
        p8asm --cpu im6100 io.pal       # Intersil instruction set
    """
    setup_logging(verbose)
    output_file = output if output is not None else input_file.with_suffix(".bin")

    try:
        config = AssemblerConfig.from_env()
        config = config.with_overrides(
            cpu=cpu.lower() if cpu else None,
            nowarn=(config.nowarn | nowarn) if nowarn else None,
            verbose=verbose,
        )

        asm = Assembler(config)
        result = asm.assemble_file(input_file)

        for diagnostic in result.diagnostics:
            click.echo(str(diagnostic), err=True)

        if listing:
            asm.write_listing(listing)

        if result.has_errors:
            click.echo(f"{result.error_count} errors, {result.warning_count} warnings", err=True)
            sys.exit(ExitCode.ASSEMBLY_ERROR)

        asm.write_bin(output_file)

        if symbols:
            asm.write_symbols(symbols)

        if verbose:
            click.echo(f"Wrote {len(result.words)} words to {output_file}")
            click.echo(f"Defined {len(result.symbols)} symbols")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
