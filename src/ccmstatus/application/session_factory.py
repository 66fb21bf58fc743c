"""
Session factory - first pipeline stage.

Turns host names into HostSession records: normalize, resolve, pick a
credential, open a session. Every host yields a record, connected or not.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
from typing import Any, Iterable, Optional, Protocol, Sequence

from ccmstatus.domain.errors import HostListError, SessionOpenError
from ccmstatus.domain.models import Credential, HostSession, SessionProtocol, UNRESOLVED
from ccmstatus.infrastructure.credentials import CredentialProvider, NoCredentialProvider

logger = logging.getLogger(__name__)

# Aliases that always mean the machine running ccmstatus
_LOCALHOST_ALIASES = {"localhost", "127.0.0.1", "::1", "."}


class SessionTransport(Protocol):
    """Opens sessions; raises SessionOpenError on failure."""

    def open(
        self,
        fqdn: str,
        credential: Credential | None,
        protocol: SessionProtocol = SessionProtocol.LEGACY,
        local: bool = False,
    ) -> Any:
        ...


class HostResolver(Protocol):
    """Resolves a host name to an FQDN, or None."""

    def resolve(self, host_name: str) -> str | None:
        ...


def normalize_host_name(name: str) -> str:
    """
    Reduce a host name to its lowercased short form.

    ``Server01.domain.local`` becomes ``server01``. IP literals are kept whole.
    """
    name = name.strip()
    try:
        ipaddress.ip_address(name)
        return name
    except ValueError:
        pass
    return name.split(".", 1)[0].lower()


def local_host_name() -> str:
    """Short name of the machine running ccmstatus."""
    return normalize_host_name(socket.gethostname())


class SessionFactory:
    """
    Creates one HostSession per requested host.

    Hosts are processed sequentially and independently; a failure on one
    host never stops the others.
    """

    def __init__(
        self,
        transport: SessionTransport,
        resolver: HostResolver,
        credential_provider: CredentialProvider | None = None,
        protocol: SessionProtocol = SessionProtocol.LEGACY,
        local_name: str | None = None,
    ) -> None:
        """
        Initialize the factory.

        Args:
            transport: Opens sessions
            resolver: Resolves names to FQDNs
            credential_provider: Asked for a credential when a remote host has none
            protocol: Protocol hint passed to the transport
            local_name: Short name of the local machine (detected when omitted)
        """
        self.transport = transport
        self.resolver = resolver
        self.credential_provider = credential_provider or NoCredentialProvider()
        self.protocol = protocol
        self.local_name = (local_name or local_host_name()).lower()

    def is_local(self, host_name: str) -> bool:
        return host_name == self.local_name

    def create_sessions(
        self,
        host_names: Optional[Sequence[str]],
        credential: Credential | None = None,
    ) -> list[HostSession]:
        """
        Create sessions for a batch of hosts.

        If the batch is interrupted (e.g. the credential prompt is aborted),
        sessions already opened are closed before the exception propagates.

        Args:
            host_names: Host names or FQDNs
            credential: Credential for remote hosts; the provider is asked when None

        Returns:
            One HostSession per host, in input order

        Raises:
            HostListError: If host_names is None, empty, or holds blank entries
        """
        hosts = validate_host_names(host_names)
        logger.info("Creating sessions for %d host(s)", len(hosts))

        records: list[HostSession] = []
        try:
            for host in hosts:
                records.append(self.create_session(host, credential))
        except BaseException:
            close_sessions(records)
            raise
        return records

    def create_session(self, host: str, credential: Credential | None = None) -> HostSession:
        """Create the session record for a single host."""
        host = host.strip()
        if host.lower() in _LOCALHOST_ALIASES:
            host_name = self.local_name
        else:
            host_name = normalize_host_name(host)

        fqdn = self.resolver.resolve(host_name)
        if not fqdn:
            logger.warning("%s: unresolved, skipping connection", host_name)
            return HostSession(host_name=host_name, fqdn=UNRESOLVED)

        local = self.is_local(host_name)
        if local:
            credential = None
        elif credential is None:
            try:
                credential = self.credential_provider.get_credential(host_name)
            except ValueError as e:
                logger.warning("%s: no usable credential: %s", host_name, e)
                return HostSession(host_name=host_name, fqdn=fqdn)

        try:
            session = self.transport.open(fqdn, credential, self.protocol, local=local)
        except SessionOpenError as e:
            logger.warning("%s: connection failed: %s", host_name, e.reason)
            return HostSession(host_name=host_name, fqdn=fqdn, credential=credential)

        logger.debug("%s: connected to %s", host_name, fqdn)
        return HostSession(
            host_name=host_name,
            fqdn=fqdn,
            credential=credential,
            connected=True,
            session=session,
        )


def validate_host_names(host_names: Optional[Sequence[str]]) -> list[str]:
    """
    Check a host list before any stage runs.

    Raises:
        HostListError: If the list is None, empty, or has blank entries
    """
    if host_names is None:
        raise HostListError("No host list given")
    if isinstance(host_names, str):
        host_names = [host_names]
    hosts = list(host_names)
    if not hosts:
        raise HostListError("Host list is empty")
    for host in hosts:
        if not isinstance(host, str) or not host.strip():
            raise HostListError(f"Invalid host name: {host!r}")
    return hosts


def close_sessions(records: Iterable[HostSession]) -> None:
    """Close every session handle held by the given records."""
    for record in records:
        try:
            record.close()
        except Exception as e:  # pylint: disable=broad-except
            logger.debug("%s: error closing session: %s", record.host_name, e)


class SessionBatch:
    """
    Context manager that creates sessions and closes them on exit.

    Usage:
        with SessionBatch(factory, ["server01"]) as sessions:
            statuses = builder.build_status(sessions)
    """

    def __init__(
        self,
        factory: SessionFactory,
        host_names: Sequence[str],
        credential: Credential | None = None,
    ) -> None:
        self.factory = factory
        self.host_names = host_names
        self.credential = credential
        self.sessions: list[HostSession] = []

    def __enter__(self) -> list[HostSession]:
        self.sessions = self.factory.create_sessions(self.host_names, self.credential)
        return self.sessions

    def __exit__(self, exc_type, exc, tb) -> None:
        close_sessions(self.sessions)
