"""
Google Client Secret Configuration

Parses the client secret JSON downloaded from the Google Cloud console:

    {"installed": {"client_id": "...", "client_secret": "...",
                   "auth_uri": "...", "token_uri": "...",
                   "redirect_uris": ["urn:ietf:wg:oauth:2.0:oob", "http://localhost"]}}

Both "installed" and "web" application types are accepted.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field

from auth_errors import ConfigParseError

CLIENT_TYPES = ("web", "installed")
REQUIRED_KEYS = ("client_id", "client_secret", "auth_uri", "token_uri")


@dataclass(frozen=True)
class OAuthClientConfig:
    client_type: str
    client_id: str
    client_secret: str
    auth_uri: str
    token_uri: str
    redirect_uris: list[str] = field(default_factory=list)
    scopes: list[str] = field(default_factory=list)

    @property
    def redirect_uri(self) -> str:
        return self.redirect_uris[0]

    def to_client_config(self) -> dict:
        """Return the dict layout expected by google_auth_oauthlib.flow.Flow.from_client_config."""
        return {
            self.client_type: {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": self.auth_uri,
                "token_uri": self.token_uri,
                "redirect_uris": list(self.redirect_uris),
            }
        }


def normalize_scopes(scope) -> list[str]:
    """Accept a space-delimited scope string or an iterable of scopes."""
    if isinstance(scope, str):
        scopes = scope.split()
    elif scope is None:
        scopes = []
    else:
        scopes = [s for s in scope if s]
    if not scopes:
        raise ConfigParseError("At least one OAuth2 scope is required")
    return scopes


def parse_client_config(data, scopes) -> OAuthClientConfig:
    """
    Parse a client secret JSON document.

    Args:
        data: bytes or str JSON document
        scopes: requested scopes (string or list, see normalize_scopes)

    Returns:
        OAuthClientConfig

    Raises:
        ConfigParseError: the document is not valid JSON or not a client secret config.
    """
    try:
        if isinstance(data, (bytes, bytearray)):
            data = data.decode("utf-8")
        payload = json.loads(data)
    except (UnicodeDecodeError, ValueError) as e:
        raise ConfigParseError(f"Unable to parse client secret file to config: {e}") from e

    if not isinstance(payload, dict):
        raise ConfigParseError("Unable to parse client secret file to config: expected a JSON object")

    client_type = next((t for t in CLIENT_TYPES if isinstance(payload.get(t), dict)), None)
    if client_type is None:
        raise ConfigParseError("Client secrets must be for a web or installed app")
    section = payload[client_type]

    missing = [k for k in REQUIRED_KEYS if not isinstance(section.get(k), str) or not section.get(k)]
    if missing:
        raise ConfigParseError(f"Client secret config is missing: {', '.join(missing)}")

    redirect_uris = section.get("redirect_uris")
    if not isinstance(redirect_uris, list) or not redirect_uris or not all(isinstance(u, str) for u in redirect_uris):
        raise ConfigParseError("Missing redirect URL in the client secret config")

    return OAuthClientConfig(
        client_type=client_type,
        client_id=section["client_id"],
        client_secret=section["client_secret"],
        auth_uri=section["auth_uri"],
        token_uri=section["token_uri"],
        redirect_uris=list(redirect_uris),
        scopes=normalize_scopes(scopes),
    )


def load_client_config(secret, scopes) -> OAuthClientConfig:
    """
    Load the client secret config from raw bytes, a JSON string, or a file path.

    A str is treated as JSON when it starts with "{", otherwise as a path.
    """
    if isinstance(secret, os.PathLike) or (isinstance(secret, str) and not secret.lstrip().startswith("{")):
        try:
            with open(secret, "rb") as f:
                secret = f.read()
        except OSError as e:
            raise ConfigParseError(f"Unable to read client secret file: {e}") from e
    return parse_client_config(secret, scopes)
