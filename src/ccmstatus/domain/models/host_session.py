"""
Host session record.

First stage of the pipeline. Later records subclass this one and only add
fields; the fields defined here never change once the record is returned.
"""

from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .credential import Credential

UNRESOLVED = "unresolved"

RecordT = TypeVar("RecordT", bound="HostSession")


class HostSession(BaseModel):
    """
    One requested host and the outcome of opening a session to it.

    ``session`` holds the live remote handle and is present iff ``connected``.
    The caller owns the handle and must close it when done.
    """

    model_config = ConfigDict(frozen=True)

    host_name: str = Field(..., description="Short host name, lowercased")
    fqdn: str = Field(default=UNRESOLVED, description="Resolved FQDN or the unresolved sentinel")
    credential: Optional[Credential] = Field(default=None, description="Credential used for the session")
    connected: bool = Field(default=False, description="Whether a session was established")
    session: Optional[Any] = Field(default=None, description="Remote session handle", exclude=True, repr=False)

    @model_validator(mode="after")
    def check_session_handle(self) -> "HostSession":
        """Keep the handle and the connected flag in step."""
        if self.connected and self.session is None:
            raise ValueError("connected sessions must carry a session handle")
        if not self.connected and self.session is not None:
            raise ValueError("session handle given for an unconnected host")
        if self.connected and not self.is_resolved:
            raise ValueError("unresolved hosts cannot be connected")
        return self

    @property
    def is_resolved(self) -> bool:
        return self.fqdn != UNRESOLVED

    def extend(self, record_type: Type[RecordT], **fields: Any) -> RecordT:
        """Build a later-stage record carrying every field of this one."""
        carried = {name: getattr(self, name) for name in type(self).model_fields}
        carried.update(fields)
        return record_type(**carried)

    def close(self) -> None:
        """Release the remote session handle, if any."""
        if self.session is not None:
            self.session.close()
