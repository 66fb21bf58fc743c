# pylint: disable=missing-module-docstring
from typing import Optional

from pydantic import Field

from .host_session import HostSession


class HostStatus(HostSession):
    """
    Agent and reboot state for a host.

    Both fields stay ``None`` when the host was not connected.
    """

    agent_installed: Optional[bool] = Field(default=None, description="Agent found in product inventory")
    reboot_pending: Optional[bool] = Field(default=None, description="Any reboot check tripped")
