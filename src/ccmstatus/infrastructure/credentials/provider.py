"""
Credential providers.

The session factory asks a provider for a credential only when a remote
host is targeted and the caller supplied none. Prompting lives here so the
pipeline itself has no interactive side effects.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import typer

from ccmstatus.domain.models import Credential

logger = logging.getLogger(__name__)


class CredentialProvider(Protocol):
    """Supplies a credential for a remote host."""

    def get_credential(self, host_name: str) -> Optional[Credential]:
        ...


class NoCredentialProvider:
    """Always answers None, so sessions fall back to integrated authentication."""

    def get_credential(self, host_name: str) -> Optional[Credential]:
        return None


class StaticCredentialProvider:
    """Hands out one fixed credential."""

    def __init__(self, credential: Credential) -> None:
        self.credential = credential

    def get_credential(self, host_name: str) -> Optional[Credential]:
        return self.credential


class PromptCredentialProvider:
    """
    Prompts on the terminal.

    The answer is kept for the lifetime of the provider, so a batch of hosts
    prompts once. A username or password given up front is not asked for.
    """

    def __init__(self, username: str | None = None, password: str | None = None) -> None:
        self.username = username
        self.password = password
        self._credential: Credential | None = None

    def get_credential(self, host_name: str) -> Optional[Credential]:
        if self._credential is None:
            logger.debug("Prompting for credential (first remote host: %s)", host_name)
            username = self.username or typer.prompt(f"Username for {host_name}")
            password = self.password or typer.prompt(f"Password for {username}", hide_input=True)
            self._credential = Credential(username=username, password=password)
        return self._credential
