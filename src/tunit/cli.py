"""Command line entry point for tunit."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tunit import __version__
from tunit.config import TunitConfig
from tunit.diffing import DiffKind, compare, parse_markup
from tunit.errors import ConfigurationError

_KIND_STYLES: dict[DiffKind, str] = {
    DiffKind.MISSING_NODE: "red",
    DiffKind.UNEXPECTED_NODE: "green",
    DiffKind.MISSING_ATTR: "red",
    DiffKind.UNEXPECTED_ATTR: "green",
}


@click.group()
@click.version_option(__version__, prog_name="tunit")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Wait helpers and semantic snapshot tests for Textual components."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("expected", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("actual", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="tunit.toml or pyproject.toml to read comparison rules from",
)
@click.option("--strict-classes", is_flag=True, help="Treat class order as significant")
def diff(expected: Path, actual: Path, config_path: Path | None, strict_classes: bool) -> None:
    """Compare two markup files semantically.

    Exits 0 when they are equivalent and 1 when they differ.

    \b
    Examples:
        tunit diff expected.html actual.html
        tunit diff --strict-classes snapshots/card.html out/card.html
    """
    try:
        config = TunitConfig.load(config_path)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    diff_config = config.diff
    if strict_classes:
        diff_config = diff_config.model_copy(update={"ignore_class_order": False})

    expected_nodes = parse_markup(expected.read_text(encoding="utf-8"))
    actual_nodes = parse_markup(actual.read_text(encoding="utf-8"))
    diffs = compare(actual_nodes, expected_nodes, diff_config)

    console = Console()
    if not diffs:
        console.print("[green]Markup is equivalent[/]", highlight=False)
        return

    table = Table(title=f"{len(diffs)} difference(s)", show_lines=False)
    table.add_column("Kind")
    table.add_column("Path")
    table.add_column("Expected")
    table.add_column("Actual")
    for item in diffs:
        style = _KIND_STYLES.get(item.kind, "yellow")
        table.add_row(
            f"[{style}]{item.kind.value}[/]",
            escape(item.path),
            escape(item.expected or ""),
            escape(item.actual or ""),
        )
    console.print(table)
    raise SystemExit(1)


__all__ = ["main"]
