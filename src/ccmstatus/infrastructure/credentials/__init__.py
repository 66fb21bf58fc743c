"""Credential providers."""

from .provider import (
    CredentialProvider,
    NoCredentialProvider,
    PromptCredentialProvider,
    StaticCredentialProvider,
)

__all__ = [
    "CredentialProvider",
    "NoCredentialProvider",
    "PromptCredentialProvider",
    "StaticCredentialProvider",
]
