"""
Credential domain model.

Holds the username/password pair used to open remote sessions. The secret
stays in memory for session establishment only and is never serialized.
"""

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class Credential(BaseModel):
    """
    Windows account used for remote management sessions.

    Username may be plain, DOMAIN\\user or user@domain.
    """

    model_config = ConfigDict(frozen=True)

    username: str = Field(..., description="Account name")
    password: SecretStr = Field(..., description="Account password", repr=False)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Validate username is not empty."""
        if not v or not v.strip():
            raise ValueError("Username cannot be empty")
        return v.strip()

    def get_password(self) -> str:
        """Get the plain text password."""
        return self.password.get_secret_value()  # pylint: disable=no-member
