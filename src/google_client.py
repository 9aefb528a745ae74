"""
Google API Client Builder

Given a client secret config, a token file name and a scope, get (or obtain
and cache) an OAuth2 token and wrap it in an authorized requests session
ready for API calls.

The token is cached at ~/.credentials/<token file>. When the cache is missing
or unreadable the interactive authorization flow runs once and the result is
written back, so later runs skip the browser step. Expired access tokens are
refreshed by the session itself using the cached refresh token.
"""

from __future__ import annotations

from datetime import timezone

from google.auth.transport.requests import AuthorizedSession
from google.oauth2.credentials import Credentials

import credential_store
import oauth2_google
from auth_errors import CacheMiss, MalformedRecord
from client_secrets import OAuthClientConfig, load_client_config
from credential_store import default_home_directory
from token_codec import TokenRecord


def get_token(
    config: OAuthClientConfig,
    token_file: str,
    *,
    home_provider=default_home_directory,
    authorizer=None,
    log_fn=print,
) -> TokenRecord:
    """
    Return the cached token for token_file, or obtain and cache a new one.

    Args:
        config: Parsed client secret config
        token_file: Logical token file name under ~/.credentials
        home_provider: Callable returning the home directory (see credential_store)
        authorizer: Callable taking the config and returning a TokenRecord;
            defaults to the interactive browser/paste flow
        log_fn: Status message sink

    Raises:
        UserResolutionError, PersistError, and any error raised by the authorizer.
    """
    cache_file = credential_store.resolve_path(token_file, home_provider)

    try:
        record = credential_store.load(cache_file)
    except (CacheMiss, MalformedRecord) as e:
        log_fn(f"No usable cached token ({e}). Starting authorization flow...")
    else:
        log_fn(f"Using cached credential file: {cache_file}")
        return record

    if authorizer is None:
        authorizer = oauth2_google.obtain_via_interactive_flow
    record = authorizer(config)

    log_fn(f"Saving credential file to: {cache_file}")
    credential_store.save(cache_file, record, log_fn=log_fn)
    return record


def build_credentials(config: OAuthClientConfig, record: TokenRecord) -> Credentials:
    """Wrap a token record in google-auth user credentials that can refresh themselves."""
    expiry = None
    if record.expiry is not None:
        # google-auth compares against naive UTC timestamps
        expiry = record.expiry.astimezone(timezone.utc).replace(tzinfo=None)

    return Credentials(
        record.access_token,
        refresh_token=record.refresh_token,
        token_uri=config.token_uri,
        client_id=config.client_id,
        client_secret=config.client_secret,
        scopes=config.scopes,
        expiry=expiry,
    )


def get_client(
    config: OAuthClientConfig,
    token_file: str,
    *,
    home_provider=default_home_directory,
    authorizer=None,
    log_fn=print,
) -> AuthorizedSession:
    """Resolve a token (cached or interactive) and return an AuthorizedSession."""
    record = get_token(config, token_file, home_provider=home_provider, authorizer=authorizer, log_fn=log_fn)
    return AuthorizedSession(build_credentials(config, record))


def create_client(
    secret,
    token_file: str,
    scope,
    *,
    home_provider=default_home_directory,
    authorizer=None,
    open_browser=True,
    log_fn=print,
) -> AuthorizedSession:
    """
    Create an HTTP client ready to invoke Google API calls.

    Args:
        secret: Client secret JSON as bytes/str, or a path to the JSON file
        token_file: Logical token file name under ~/.credentials
        scope: Space-delimited scope string or list of scopes
        home_provider: Callable returning the home directory
        authorizer: Override for the interactive flow (takes the config)
        open_browser: Try to open the consent URL in a browser
        log_fn: Status message sink

    Returns:
        google.auth.transport.requests.AuthorizedSession

    Raises:
        ConfigParseError: the client secret is unreadable or invalid
        GoogleAuthError: any other terminal failure while obtaining the token
    """
    config = load_client_config(secret, scope)

    if authorizer is None:

        def authorizer(cfg):
            return oauth2_google.obtain_via_interactive_flow(cfg, open_browser=open_browser, log_fn=log_fn)

    return get_client(config, token_file, home_provider=home_provider, authorizer=authorizer, log_fn=log_fn)
