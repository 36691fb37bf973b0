"""Main CLI entry point."""

import logging
import sys
from pathlib import Path
from typing import Optional

import rich.panel
import rich_click as click
from rich.console import Console
from rich.logging import RichHandler

from chocola import __version__
from chocola.compiler.exceptions import ChocolaError

console = Console()

BRAND = "#945e33"

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.STYLE_HELPTEXT_FIRST = True
click.rich_click.STYLE_COMMANDS_TABLE_SHOW_LINES = False
click.rich_click.STYLE_COMMANDS_TABLE_PAD_EDGE = False
click.rich_click.STYLE_COMMANDS_TABLE_BOX = None
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = "Try running 'chocola --help' for more information."
click.rich_click.STYLE_OPTIONS_PANEL_BOX = None
click.rich_click.STYLE_COMMANDS_PANEL_BOX = None

click.rich_click.STYLE_HEADER_TEXT = f"bold {BRAND}"
click.rich_click.STYLE_OPTION = BRAND
click.rich_click.STYLE_SWITCH = BRAND
click.rich_click.STYLE_METAVAR = "dim white"
click.rich_click.STYLE_USAGE_COMMAND = BRAND
click.rich_click.STYLE_USAGE = "dim"

click.rich_click.COMMAND_GROUPS = {
    "chocola": [
        {
            "name": "Commands",
            "commands": ["build", "dev"],
        }
    ]
}

# rich-click wraps tables in Panels which default to expand=True.
original_panel_init = rich.panel.Panel.__init__


def panel_init(self, *args, **kwargs):
    kwargs.setdefault("expand", False)
    original_panel_init(self, *args, **kwargs)


rich.panel.Panel.__init__ = panel_init  # type: ignore[method-assign]

SEPARATOR = "_" * 72 + "\n" + "=" * 72


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
        force=True,
    )


def _banner() -> None:
    console.print(f"\n[bold {BRAND}]                     RUNNING CHOCOLA BUNDLER[/]")
    console.print(f"[yellow]{SEPARATOR}[/]")


def _fail(error: ChocolaError) -> None:
    console.print("[bold red]Error![/] A fatal error has occurred:\n")
    console.print(f"[red]{error.format()}[/]", highlight=False)
    sys.exit(1)


def _root(root: Optional[str]) -> Path:
    return Path(root or ".").resolve()


@click.group(
    help=f"""
[bold white on {BRAND}] chocola [/] [bold]v{__version__}[/] Static component compiler.

Run [bold]chocola build[/] to bundle the project in the current directory.
Run [bold]chocola dev[/] to serve it and rebuild on every change.
"""
)
@click.version_option(__version__)
def cli() -> None:
    pass


@cli.command()
@click.argument("root", required=False)
@click.option("--strict", is_flag=True, help="Remove unknown custom elements.")
@click.option(
    "--recursive",
    is_flag=True,
    help="Expand components used inside other component bodies.",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def build(root: Optional[str], strict: bool, recursive: bool, verbose: bool) -> None:
    """Build a static bundle of the project."""
    from chocola.compiler.build import build_project

    configure_logging(verbose)
    root_dir = _root(root)
    _banner()

    try:
        summary = build_project(root_dir, strict=strict, recursive=recursive)
    except ChocolaError as e:
        _fail(e)
        return

    console.print(f"[yellow]{SEPARATOR}[/]")
    console.print(
        f"[bold green]>[/] Project bundled successfully at "
        f"[green underline]{summary.out_dir}[/] "
        f"(components={summary.components}, usages={summary.usages})\n"
    )


@cli.command()
@click.argument("root", required=False)
@click.option("--host", default=None, help="Host to bind to (default: config dev.hostname)")
@click.option(
    "--port", default=None, type=int, help="Port to bind to (default: config dev.port)"
)
@click.option("--strict", is_flag=True, help="Remove unknown custom elements.")
@click.option(
    "--recursive",
    is_flag=True,
    help="Expand components used inside other component bodies.",
)
def dev(
    root: Optional[str],
    host: Optional[str],
    port: Optional[int],
    strict: bool,
    recursive: bool,
) -> None:
    """Start the development server."""
    import asyncio

    from chocola.runtime.dev_server import run_dev_server

    root_dir = _root(root)
    try:
        asyncio.run(
            run_dev_server(
                root_dir, host=host, port=port, strict=strict, recursive=recursive
            )
        )
    except ChocolaError as e:
        _fail(e)


if __name__ == "__main__":
    cli()
