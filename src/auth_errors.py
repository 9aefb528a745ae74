"""
Google OAuth2 Client Errors

Exception hierarchy shared by the token codec, credential store, interactive
authorizer and client assembler. Library code raises these; only the
command-line entry point turns them into an exit status.
"""


class GoogleAuthError(Exception):
    """Base class for all errors raised while building an authorized client."""


class UserResolutionError(GoogleAuthError):
    """Raised when the current user's home directory cannot be determined."""


class CacheMiss(GoogleAuthError):
    """Raised when no cached token file exists or it cannot be opened."""

    def __init__(self, path, reason=None):
        message = f"No cached token at {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path


class MalformedRecord(GoogleAuthError):
    """Raised when a token record cannot be decoded or is missing its access token."""


class EncodingError(GoogleAuthError):
    """Raised when a token record holds values that cannot be serialized."""


class PersistError(GoogleAuthError):
    """Raised when a token record cannot be written to its cache file."""

    def __init__(self, path, reason):
        super().__init__(f"Unable to cache oauth token at {path}: {reason}")
        self.path = path


class InputError(GoogleAuthError):
    """Raised when the authorization code cannot be read from the operator."""


class ExchangeError(GoogleAuthError):
    """Raised when the authorization code cannot be exchanged for a token."""


class ConfigParseError(GoogleAuthError):
    """Raised when the client secret configuration is unreadable or invalid."""
