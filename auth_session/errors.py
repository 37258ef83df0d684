"""
Error taxonomy for the auth session client.

Only transport and storage problems are exceptions. A rejection by the
authentication service is an ordinary response and is turned into a
human-readable message by the session manager.
"""

# Fallback messages used when the service rejects a call without a message
LOGIN_FAILED = "Login failed"
PROFILE_FETCH_FAILED = "Unable to fetch user profile"
REGISTRATION_FAILED = "Registration failed"

# Messages for transport-level failures
LOGIN_UNEXPECTED = "An unexpected error occurred during login."
REGISTRATION_UNEXPECTED = "An unexpected error occurred during registration."
LOGIN_SUPERSEDED = "Login was superseded by a newer session change."


class AuthSessionError(Exception):
    """Base class for auth session failures."""
    pass


class TransportError(AuthSessionError):
    """Network, timeout or decoding failure while talking to the auth service."""

    def __init__(self, operation: str, reason: str):
        super().__init__(f"{operation}: {reason}")
        self.operation = operation
        self.reason = reason


class CredentialStoreError(AuthSessionError):
    """The credential could not be read from or written to its store."""
    pass


__all__ = [
    "AuthSessionError",
    "TransportError",
    "CredentialStoreError",
    "LOGIN_FAILED",
    "PROFILE_FETCH_FAILED",
    "REGISTRATION_FAILED",
    "LOGIN_UNEXPECTED",
    "REGISTRATION_UNEXPECTED",
    "LOGIN_SUPERSEDED",
]
