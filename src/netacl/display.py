from __future__ import annotations

from typing import Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from netacl import __version__
from netacl.acl import AccessControlList, Decision
from netacl.errors import NotationError
from netacl.Policy.RuleActionEnum import RuleActionEnum as Action
from netacl.rules import int_to_address

console = Console()


def _verdict_style(decision: Decision) -> str:
    return "bold green" if decision.permitted else "bold red"


def print_banner() -> None:
    banner = Text()
    banner.append("  netacl", style="bold cyan")
    banner.append(f"  v{__version__}\n", style="dim")
    banner.append("  IPv4 allow/deny access control", style="italic dim")
    console.print(Panel(banner, border_style="cyan", padding=(0, 1)))


def print_acl_info(acl: AccessControlList) -> None:
    table = Table(show_header=False, box=box.SIMPLE, padding=(0, 2))
    table.add_column(style="bold cyan", min_width=12)
    table.add_column()

    if acl.is_restricted:
        table.add_row("Access", f"[bold yellow]{acl.policy.value.upper()}[/bold yellow]")
        for rule_desc in acl.describe_rules():
            if rule_desc.startswith("allow"):
                table.add_row("", f"[green]{rule_desc}[/green]")
            else:
                table.add_row("", f"[red]{rule_desc}[/red]")
    else:
        table.add_row("Access", "[dim]open to all[/dim]")

    console.print()
    console.print(Panel(table, title="[bold cyan]Access Control[/bold cyan]", border_style="cyan", padding=(1, 2)))


def print_rules_table(acl: AccessControlList) -> None:
    rules = list(acl.deny_rules) + list(acl.allow_rules)
    if not rules:
        console.print("\n  [yellow]No rules configured, every address is permitted.[/yellow]\n")
        return

    table = Table(title="Rules", box=box.ROUNDED, border_style="cyan")
    table.add_column("Action", justify="center")
    table.add_column("Notation", style="bold")
    table.add_column("Network", style="green")
    table.add_column("Addresses", justify="right")
    table.add_column("First", style="dim")
    table.add_column("Last", style="dim")

    for rule in rules:
        action_str = "[green]allow[/green]" if rule.action is Action.ALLOW else "[red]deny[/red]"
        table.add_row(
            action_str,
            escape(rule.notation),
            str(rule.range),
            f"{rule.address_count:,}",
            int_to_address(rule.range.low_address),
            int_to_address(rule.range.high_address),
        )

    console.print()
    console.print(table)
    console.print()


def print_decisions(results: Sequence[tuple[str, Decision]]) -> None:
    table = Table(box=box.ROUNDED, border_style="cyan")
    table.add_column("Address", style="bold")
    table.add_column("Verdict", justify="center")
    table.add_column("Reason", style="dim")
    table.add_column("Rule")

    for address, decision in results:
        style = _verdict_style(decision)
        table.add_row(
            escape(address),
            f"[{style}]{decision.verdict.value.upper()}[/{style}]",
            decision.reason,
            str(decision.rule.range) if decision.rule else "[dim]-[/dim]",
        )

    console.print()
    console.print(table)
    console.print()


def print_validation(rows: Sequence[tuple[str, str, str | None, NotationError | None]]) -> None:
    """Rows are (action, notation, canonical range, error)."""
    if not rows:
        console.print("\n  [yellow]No rules configured.[/yellow]\n")
        return

    table = Table(title="Rule Validation", box=box.ROUNDED, border_style="cyan")
    table.add_column("Action", justify="center")
    table.add_column("Notation", style="bold")
    table.add_column("Result")

    for action, notation, network, error in rows:
        if error is None:
            result = f"[green]ok[/green]  {network}"
        else:
            result = f"[bold red]invalid[/bold red]  [dim]{escape(str(error))}[/dim]"
        table.add_row(action, escape(str(notation)), result)

    console.print()
    console.print(table)
    console.print()


def print_errors(errors: Sequence[Exception]) -> None:
    for e in errors:
        console.print(f"  [red]•[/red] {escape(str(e))}")
    console.print()


def print_error(msg: str) -> None:
    console.print(f"\n  [bold red]Error:[/bold red] {escape(msg)}\n")


def print_success(msg: str) -> None:
    console.print(f"\n  [bold green]✓[/bold green] {msg}\n")
