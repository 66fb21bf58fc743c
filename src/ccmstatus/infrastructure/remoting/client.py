"""
WinRM transport - opens remote management sessions.

Legacy protocol:
    HTTP listener (5985) with NTLM. Message-level encryption is negotiated
    by NTLM, and it works against older hosts and workgroup machines.

Secure protocol:
    HTTPS listener (5986) with the configured authentication.

One attempt per host. There is no retry and no credential escalation.
"""

from __future__ import annotations

import logging

import winrm

from ccmstatus.domain.config import TransportSettings
from ccmstatus.domain.errors import SessionOpenError
from ccmstatus.domain.models import Credential, SessionProtocol

from .session import LocalSession, WinRMSession

logger = logging.getLogger(__name__)


class WinRMTransport:
    """
    Opens sessions through pywinrm.

    Every session is probed with a trivial command before it is handed out,
    because pywinrm connects lazily.
    """

    def __init__(self, settings: TransportSettings | None = None) -> None:
        self.settings = settings or TransportSettings()

    def open(
        self,
        fqdn: str,
        credential: Credential | None,
        protocol: SessionProtocol = SessionProtocol.LEGACY,
        local: bool = False,
    ) -> WinRMSession | LocalSession:
        """
        Open a session to a host.

        Args:
            fqdn: Resolved host name
            credential: Account to authenticate with; None uses integrated auth
            protocol: Protocol hint
            local: Run against the local machine without WinRM

        Returns:
            A live session handle

        Raises:
            SessionOpenError: If the session cannot be established
        """
        if local:
            logger.debug("Using local PowerShell for %s", fqdn)
            return LocalSession(fqdn, timeout_sec=self.settings.read_timeout_sec)

        endpoint, auth_transport = self._endpoint(fqdn, protocol, credential)
        if credential is not None:
            auth = (credential.username, credential.get_password())
        else:
            auth = (None, None)

        logger.debug("Opening %s with %s", endpoint, auth_transport)

        try:
            session = winrm.Session(
                target=endpoint,
                auth=auth,
                transport=auth_transport,
                server_cert_validation=self.settings.server_cert_validation,
                operation_timeout_sec=self.settings.operation_timeout_sec,
                read_timeout_sec=self.settings.read_timeout_sec,
            )
            probe = session.run_cmd("echo", ["OK"])
        except Exception as e:  # pylint: disable=broad-except
            raise SessionOpenError(fqdn, f"{type(e).__name__}: {str(e)[:200]}") from e

        if probe.status_code != 0 or b"OK" not in probe.std_out:
            raise SessionOpenError(fqdn, f"probe command returned {probe.status_code}")

        logger.info("Connected: %s (%s)", fqdn, auth_transport)
        return WinRMSession(fqdn, session, transport=auth_transport)

    def _endpoint(
        self, fqdn: str, protocol: SessionProtocol, credential: Credential | None
    ) -> tuple[str, str]:
        """Endpoint URL and pywinrm auth transport for a protocol hint."""
        if protocol == SessionProtocol.SECURE:
            auth_transport = self.settings.secure_auth
            endpoint = f"https://{fqdn}:{self.settings.https_port}/wsman"
        else:
            auth_transport = "ntlm"
            endpoint = f"http://{fqdn}:{self.settings.http_port}/wsman"

        # Integrated auth only exists through Kerberos
        if credential is None:
            auth_transport = "kerberos"
        return endpoint, auth_transport
