"""Authentication boundary package."""

from zenfinance.auth.authenticator import (
    AccountExistsError,
    AuthenticationError,
    AuthenticatorInterface,
    DemoAuthenticator,
    StoreAuthenticator,
)

__all__ = [
    "AccountExistsError",
    "AuthenticationError",
    "AuthenticatorInterface",
    "DemoAuthenticator",
    "StoreAuthenticator",
]
