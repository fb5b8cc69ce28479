"""The ``postkit check`` command."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from postkit.cli.common import console
from postkit.utils import ValidationError, parse_email_address

__all__ = ["check"]


def _create_table() -> Table:
    table = Table(title="Address check", show_header=True, header_style="bold cyan")
    table.add_column("Input", style="white")
    table.add_column("Address", style="green")
    table.add_column("Name", style="dim")
    table.add_column("Result")
    return table


def check(
    addresses: Annotated[
        list[str],
        typer.Argument(help="Addresses to validate, bare or as 'Name <address>'."),
    ],
) -> None:
    """Validate email addresses the way the builder does.

    Exits with code 1 when at least one address is invalid.

    Examples:
        postkit check ab@bc.com "Grace Hopper <grace@example.org>"
    """
    table = _create_table()
    invalid = 0
    for raw in addresses:
        try:
            parsed = parse_email_address(raw)
        except ValidationError as exc:
            invalid += 1
            table.add_row(escape(raw), "-", "-", f"[red]{escape(str(exc))}[/]")
            continue
        table.add_row(escape(raw), parsed.address, escape(parsed.name or "-"), "[green]valid[/]")

    console.print(table)
    console.print(f"\n[dim]{len(addresses) - invalid} valid / {len(addresses)} checked[/]")
    if invalid:
        raise typer.Exit(code=1)
