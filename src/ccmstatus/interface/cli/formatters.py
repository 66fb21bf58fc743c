"""
CLI result formatters.

Rich tables for the terminal and JSON for piping. Session handles and
secrets never reach the output.
"""

import json
import logging
from typing import Any, Dict, List, Sequence

from rich.console import Console
from rich.table import Table

from ccmstatus.domain.models import HostSession, HostStatus, PatchStatusRecord

logger = logging.getLogger(__name__)
console = Console()

YES = "[green]Yes[/green]"
NO = "[red]No[/red]"
UNKNOWN = "[dim]-[/dim]"


def _flag(value) -> str:
    if value is None:
        return UNKNOWN
    return YES if value else NO


def record_to_dict(record: HostSession) -> Dict[str, Any]:
    """Plain dict for JSON output; the credential is reduced to its username."""
    data = record.model_dump(mode="json", exclude={"credential"})
    data["username"] = record.credential.username if record.credential else None
    return data


def records_to_json(records: Sequence[HostSession]) -> str:
    return json.dumps([record_to_dict(record) for record in records], indent=2)


class ResultFormatter:
    """Renders pipeline records."""

    def __init__(self, out: Console = None):
        self.console = out or console

    def print_json(self, records: Sequence[HostSession]) -> None:
        self.console.print_json(records_to_json(records))

    def print_sessions(self, records: Sequence[HostSession]) -> None:
        table = Table(title="Sessions")
        table.add_column("Host", style="cyan", no_wrap=True)
        table.add_column("FQDN", style="blue")
        table.add_column("User", style="magenta")
        table.add_column("Connected")

        for record in records:
            table.add_row(
                record.host_name,
                record.fqdn,
                record.credential.username if record.credential else "",
                _flag(record.connected),
            )

        self.console.print(table)
        connected = sum(1 for record in records if record.connected)
        self.console.print(f"[blue]{connected}/{len(records)} host(s) connected[/blue]")

    def print_status(self, records: Sequence[HostStatus]) -> None:
        table = Table(title="Host Status")
        table.add_column("Host", style="cyan", no_wrap=True)
        table.add_column("FQDN", style="blue")
        table.add_column("Connected")
        table.add_column("Agent")
        table.add_column("Reboot Pending")

        for record in records:
            table.add_row(
                record.host_name,
                record.fqdn,
                _flag(record.connected),
                _flag(record.agent_installed),
                _flag(record.reboot_pending),
            )

        self.console.print(table)

    def print_patch_status(self, records: Sequence[PatchStatusRecord]) -> None:
        self.print_status(records)

        for record in records:
            if record.missing_count is None:
                continue

            title = f"{record.host_name}: {record.missing_count} missing update(s)"
            if not record.missing_updates:
                self.console.print(f"[green]{title}[/green]")
                continue

            table = Table(title=title)
            table.add_column("Article", style="yellow", no_wrap=True)
            table.add_column("Name")
            table.add_column("Deployed From", style="magenta")
            for update in record.missing_updates:
                table.add_row(
                    update.article_id and f"KB{update.article_id}",
                    update.name,
                    "\n".join(update.deployed_from) or UNKNOWN,
                )
            self.console.print(table)

            if record.all_deployment_names:
                self.console.print(
                    f"[dim]Deployments: {', '.join(record.all_deployment_names)}[/dim]"
                )


def filter_records(records: List[HostStatus], mode: str) -> List[HostStatus]:
    """
    Keep only records of interest.

    Modes: all, reboot (reboot pending), missing (at least one missing update).
    """
    if mode == "reboot":
        return [r for r in records if r.reboot_pending]
    if mode == "missing":
        return [r for r in records if getattr(r, "missing_count", None)]
    return list(records)
