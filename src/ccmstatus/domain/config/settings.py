"""
Settings domain model.

Transport tuning and agent detection parameters. Every field has a default,
so a missing config file yields a working setup.
"""

import logging
from typing import Literal

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

DEFAULT_AGENT_PRODUCT_NAME = "Configuration Manager Client"
DEFAULT_MAX_ENVELOPE_SIZE_KB = 8192


class TransportSettings(BaseModel):
    """
    WinRM transport settings.

    The envelope size is raised well above the WinRM default so that large
    CIM result sets (update inventories, assignment policies) fit in one reply.
    """

    max_envelope_size_kb: int = Field(
        default=DEFAULT_MAX_ENVELOPE_SIZE_KB,
        description="Maximum SOAP envelope size requested from the WinRM service",
        ge=150,
        le=65536
    )

    http_port: int = Field(default=5985, ge=1, le=65535)
    https_port: int = Field(default=5986, ge=1, le=65535)

    secure_auth: Literal["negotiate", "kerberos", "ntlm", "credssp"] = Field(
        default="negotiate",
        description="Authentication used with the secure protocol"
    )

    operation_timeout_sec: int = Field(
        default=20,
        description="WS-Management operation timeout",
        ge=1,
        le=300
    )

    read_timeout_sec: int = Field(
        default=30,
        description="HTTP read timeout, must exceed the operation timeout",
        ge=2,
        le=600
    )

    server_cert_validation: Literal["validate", "ignore"] = Field(default="validate")

    @model_validator(mode="after")
    def validate_timeouts(self) -> "TransportSettings":
        """pywinrm refuses a read timeout that does not exceed the operation timeout."""
        if self.read_timeout_sec <= self.operation_timeout_sec:
            raise ValueError("read_timeout_sec must be greater than operation_timeout_sec")
        if self.operation_timeout_sec > 60:
            logger.warning("Operation timeout of %s is very high for read-only queries", self.operation_timeout_sec)
        return self


class AgentSettings(BaseModel):
    """How the software-management agent is recognized."""

    product_name: str = Field(
        default=DEFAULT_AGENT_PRODUCT_NAME,
        description="Exact Win32_Product name of the agent",
        min_length=1
    )


class Settings(BaseModel):
    """Top-level settings for ccmstatus."""

    transport: TransportSettings = TransportSettings()
    agent: AgentSettings = AgentSettings()
