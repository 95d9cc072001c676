"""Configuration: connection settings and credential lookup."""
from .settings import ConnectionSettings
from .credentials import (
    SettingsCredentialStore,
    create_credential_resolver,
    prompt_credentials,
)

__all__ = [
    "ConnectionSettings",
    "SettingsCredentialStore",
    "create_credential_resolver",
    "prompt_credentials",
]
