"""
vmtranslate - VM Translator Command-Line Interface
==================================================

Translates a .vm file, or every .vm file in a directory, into a single
Hack assembly file.

Usage Examples
--------------
Single file:
    $ vmtranslate SimpleAdd.vm              # writes SimpleAdd.asm

Directory (one program, many units):
    $ vmtranslate FibonacciElement/         # writes FibonacciElement.asm

With bootstrap and output path:
    $ vmtranslate --bootstrap Prog/ -o out.asm

Verbose mode:
    $ vmtranslate -v Prog/
"""

import logging
from pathlib import Path
from typing import Optional

import click

from hack_vm import __version__
from hack_vm.cli.errors import handle_cli_exception
from hack_vm.translator import Translator, TranslatorOptions

logger = logging.getLogger(__name__)


VM_SUFFIX = ".vm"


# =============================================================================
# Source Discovery
# =============================================================================

def collect_sources(path: Path) -> list[Path]:
    """
    Return the .vm files to translate for a file or directory argument.

    Directory entries are sorted by name so output is reproducible.

    Raises:
        click.BadParameter: If the file is not a .vm file, or the
            directory holds none
    """
    if path.is_file():
        if path.suffix.lower() != VM_SUFFIX:
            raise click.BadParameter(
                f"Expected a {VM_SUFFIX} file: {path}", param_hint="'PATH'"
            )
        return [path]

    sources = sorted(
        (child for child in path.iterdir() if child.is_file() and child.suffix.lower() == VM_SUFFIX),
        key=lambda child: child.name,
    )
    if not sources:
        raise click.BadParameter(
            f"No {VM_SUFFIX} files found in directory: {path}", param_hint="'PATH'"
        )
    return sources


def resolve_output_path(path: Path, output: Optional[Path]) -> Path:
    """Default output is '<path without suffix>.asm' beside the input."""
    if output is not None:
        return output
    if path.is_dir():
        resolved = path.resolve()
        return resolved.parent / f"{resolved.name}.asm"
    return path.with_suffix(".asm")


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "path",
    type=click.Path(exists=True, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output assembly file (default: PATH with .asm suffix)",
)
@click.option(
    "--bootstrap/--no-bootstrap",
    default=None,
    help="Emit 'call Sys.init 0' after stack pointer setup",
)
@click.option(
    "--comments/--no-comments",
    default=None,
    help="Annotate output with the VM instruction behind each block",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="vmtranslate")
def main(
    path: Path,
    output: Optional[Path],
    bootstrap: Optional[bool],
    comments: Optional[bool],
    verbose: bool,
) -> None:
    """
    Translate VM code to Hack assembly.

    PATH is a .vm file or a directory of .vm files. All files are
    translated into one program; each file's name (without .vm)
    namespaces its static variables.

    \b
    Examples:
        vmtranslate Main.vm               # Outputs Main.asm
        vmtranslate Prog/                 # Outputs Prog.asm
        vmtranslate --bootstrap Prog/     # Start at Sys.init

    Options not given on the command line fall back to the
    HACKVM_BOOTSTRAP, HACKVM_COMMENTS and HACKVM_STACK_BASE
    environment variables.
    """
    setup_logging(verbose)

    try:
        options = TranslatorOptions.from_env()
        if bootstrap is not None:
            options.bootstrap = bootstrap
        if comments is not None:
            options.emit_comments = comments

        sources = collect_sources(path)
        output = resolve_output_path(path, output)

        translator = Translator(options)
        for source in sources:
            if verbose:
                click.echo(f"Translating {source}...")
            translator.translate_file(source)

        output.write_text(translator.getvalue(), encoding="utf-8")
        logger.debug(f"Generated {translator.emitter.label_count} internal labels")

        click.echo(f"Translated {len(sources)} file(s) -> {output}")

    except Exception as e:
        handle_cli_exception(e, verbose)


if __name__ == "__main__":
    main()
