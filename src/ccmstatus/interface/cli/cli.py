"""
CLI orchestrator - main entry point.

Commands:
    ccmstatus sessions [HOSTS...]   resolution and connectivity
    ccmstatus status [HOSTS...]     agent installed / reboot pending
    ccmstatus patches [HOSTS...]    missing updates and their deployments

Hosts default to the local machine.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from ccmstatus.application.container import Container
from ccmstatus.application.session_factory import close_sessions, local_host_name
from ccmstatus.domain.errors import CcmStatusError
from ccmstatus.domain.models import Credential, SessionProtocol
from ccmstatus.infrastructure.credentials import (
    NoCredentialProvider,
    PromptCredentialProvider,
)
from ccmstatus.infrastructure.logging_config import setup_logging

from .formatters import ResultFormatter, filter_records

logger = logging.getLogger(__name__)
console = Console(stderr=True)

app = typer.Typer(
    name="ccmstatus",
    help="Agent, reboot and patch status for Windows endpoints.",
    add_completion=False,
    no_args_is_help=True,
)


class Stage(str, Enum):
    SESSIONS = "sessions"
    STATUS = "status"
    PATCHES = "patches"


class RecordFilter(str, Enum):
    ALL = "all"
    REBOOT = "reboot"
    MISSING = "missing"


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_dir: Path = typer.Option(Path("config"), "--config-dir", help="Directory holding ccmstatus.json"),
    secure: bool = typer.Option(False, "--secure", help="Use the HTTPS listener instead of the legacy HTTP/NTLM one"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also write a debug log to this file"),
):
    """ccmstatus - query agent, reboot and patch state over WinRM."""
    setup_logging(logging.DEBUG if verbose else logging.WARNING, log_file)
    ctx.obj = {
        "config_dir": config_dir,
        "protocol": SessionProtocol.SECURE if secure else SessionProtocol.LEGACY,
    }


def _build_container(
    ctx: typer.Context, username: Optional[str], password: Optional[str], no_prompt: bool
) -> Container:
    if no_prompt:
        provider = NoCredentialProvider()
    else:
        provider = PromptCredentialProvider(username=username, password=password)
    return Container(
        config_dir=ctx.obj["config_dir"],
        credential_provider=provider,
        protocol=ctx.obj["protocol"],
    )


def run_stage(
    ctx: typer.Context,
    stage: Stage,
    hosts: Optional[List[str]],
    username: Optional[str],
    password: Optional[str],
    no_prompt: bool,
    output_json: bool,
    record_filter: RecordFilter = RecordFilter.ALL,
) -> None:
    """Run the pipeline up to ``stage`` and print the records."""
    host_list = hosts or [local_host_name()]
    credential = Credential(username=username, password=password) if username and password else None

    try:
        container = _build_container(ctx, username, password, no_prompt)
        sessions = container.session_factory.create_sessions(host_list, credential)
    except CcmStatusError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e

    try:
        if stage == Stage.SESSIONS:
            records = sessions
        else:
            records = container.host_status_builder.build_status(sessions)
            if stage == Stage.PATCHES:
                records = container.patch_status_aggregator.build_patch_status(records)
            records = filter_records(records, record_filter.value)
    finally:
        close_sessions(sessions)

    formatter = ResultFormatter()
    if output_json:
        formatter.print_json(records)
    elif stage == Stage.SESSIONS:
        formatter.print_sessions(records)
    elif stage == Stage.STATUS:
        formatter.print_status(records)
    else:
        formatter.print_patch_status(records)


HOSTS_ARGUMENT = typer.Argument(None, help="Host names or FQDNs (default: this machine)")
USERNAME_OPTION = typer.Option(None, "--username", "-u", help="Account for remote hosts")
PASSWORD_OPTION = typer.Option(
    None, "--password", "-p", envvar="CCMSTATUS_PASSWORD",
    help="Password (prompted when omitted)"
)
NO_PROMPT_OPTION = typer.Option(False, "--no-prompt", help="Never prompt; use integrated authentication")
JSON_OPTION = typer.Option(False, "--json", help="Print JSON instead of tables")
FILTER_OPTION = typer.Option(RecordFilter.ALL, "--filter", help="all, reboot or missing")


@app.command("sessions")
def sessions_command(
    ctx: typer.Context,
    hosts: Optional[List[str]] = HOSTS_ARGUMENT,
    username: Optional[str] = USERNAME_OPTION,
    password: Optional[str] = PASSWORD_OPTION,
    no_prompt: bool = NO_PROMPT_OPTION,
    output_json: bool = JSON_OPTION,
):
    """Resolve hosts and test that a session can be opened."""
    run_stage(ctx, Stage.SESSIONS, hosts, username, password, no_prompt, output_json)


@app.command("status")
def status_command(
    ctx: typer.Context,
    hosts: Optional[List[str]] = HOSTS_ARGUMENT,
    username: Optional[str] = USERNAME_OPTION,
    password: Optional[str] = PASSWORD_OPTION,
    no_prompt: bool = NO_PROMPT_OPTION,
    output_json: bool = JSON_OPTION,
    record_filter: RecordFilter = FILTER_OPTION,
):
    """Show whether the agent is installed and a reboot is pending."""
    run_stage(ctx, Stage.STATUS, hosts, username, password, no_prompt, output_json, record_filter)


@app.command("patches")
def patches_command(
    ctx: typer.Context,
    hosts: Optional[List[str]] = HOSTS_ARGUMENT,
    username: Optional[str] = USERNAME_OPTION,
    password: Optional[str] = PASSWORD_OPTION,
    no_prompt: bool = NO_PROMPT_OPTION,
    output_json: bool = JSON_OPTION,
    record_filter: RecordFilter = FILTER_OPTION,
):
    """Show missing updates and the deployments that push them."""
    run_stage(ctx, Stage.PATCHES, hosts, username, password, no_prompt, output_json, record_filter)


def main() -> None:
    """Main entry point for the ccmstatus CLI. Exits through typer with the command's exit code."""
    app()
