"""Configuration domain models."""

from .settings import (
    AgentSettings,
    DEFAULT_AGENT_PRODUCT_NAME,
    DEFAULT_MAX_ENVELOPE_SIZE_KB,
    Settings,
    TransportSettings,
)

__all__ = [
    "AgentSettings",
    "DEFAULT_AGENT_PRODUCT_NAME",
    "DEFAULT_MAX_ENVELOPE_SIZE_KB",
    "Settings",
    "TransportSettings",
]
