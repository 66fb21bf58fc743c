"""
Dependency injection container.

Builds the pipeline from Settings. Transport tuning is applied once, the
first time a transport is requested.
"""

import logging
from pathlib import Path
from typing import Optional

from ccmstatus.domain.config import Settings
from ccmstatus.domain.models import SessionProtocol
from ccmstatus.infrastructure.config import ConfigRepository
from ccmstatus.infrastructure.credentials import CredentialProvider, NoCredentialProvider
from ccmstatus.infrastructure.remoting import CimClient, WinRMTransport, configure_transport
from ccmstatus.infrastructure.resolution import NameResolver

from .host_status_builder import HostStatusBuilder
from .patch_status_aggregator import PatchStatusAggregator
from .session_factory import SessionFactory

logger = logging.getLogger(__name__)


class Container:
    """
    Creates and caches the pipeline components.

    Every component can be replaced by assigning it before first use, which
    is how tests inject fakes.
    """

    def __init__(
        self,
        config_dir: Optional[Path] = None,
        settings: Optional[Settings] = None,
        credential_provider: Optional[CredentialProvider] = None,
        protocol: SessionProtocol = SessionProtocol.LEGACY,
    ):
        """
        Initialize the container.

        Args:
            config_dir: Directory holding ccmstatus.json
            settings: Settings override (skips the config file)
            credential_provider: Asked for credentials for remote hosts
            protocol: Protocol hint for new sessions
        """
        self.config_dir = config_dir or Path.cwd() / "config"
        self._settings = settings
        self.credential_provider = credential_provider or NoCredentialProvider()
        self.protocol = protocol

        self._transport: Optional[WinRMTransport] = None
        self._resolver: Optional[NameResolver] = None
        self._cim: Optional[CimClient] = None
        self._session_factory: Optional[SessionFactory] = None
        self._status_builder: Optional[HostStatusBuilder] = None
        self._patch_aggregator: Optional[PatchStatusAggregator] = None

    @property
    def settings(self) -> Settings:
        """Settings from the override or the config file."""
        if self._settings is None:
            self._settings = ConfigRepository(self.config_dir).load_settings()
        return self._settings

    @property
    def transport(self) -> WinRMTransport:
        if self._transport is None:
            configure_transport(self.settings.transport.max_envelope_size_kb)
            self._transport = WinRMTransport(self.settings.transport)
        return self._transport

    @transport.setter
    def transport(self, value) -> None:
        self._transport = value

    @property
    def resolver(self) -> NameResolver:
        if self._resolver is None:
            self._resolver = NameResolver()
        return self._resolver

    @resolver.setter
    def resolver(self, value) -> None:
        self._resolver = value

    @property
    def cim(self) -> CimClient:
        if self._cim is None:
            self._cim = CimClient()
        return self._cim

    @cim.setter
    def cim(self, value) -> None:
        self._cim = value

    @property
    def session_factory(self) -> SessionFactory:
        if self._session_factory is None:
            self._session_factory = SessionFactory(
                transport=self.transport,
                resolver=self.resolver,
                credential_provider=self.credential_provider,
                protocol=self.protocol,
            )
        return self._session_factory

    @property
    def host_status_builder(self) -> HostStatusBuilder:
        if self._status_builder is None:
            self._status_builder = HostStatusBuilder(
                cim=self.cim,
                session_factory=self.session_factory,
                agent_product_name=self.settings.agent.product_name,
            )
        return self._status_builder

    @property
    def patch_status_aggregator(self) -> PatchStatusAggregator:
        if self._patch_aggregator is None:
            self._patch_aggregator = PatchStatusAggregator(
                cim=self.cim,
                status_builder=self.host_status_builder,
            )
        return self._patch_aggregator
