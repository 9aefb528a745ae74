"""
Google OAuth2 Token Acquisition

Interactive authorization-code flow for Google APIs using google-auth-oauthlib.
Prints the consent URL (and tries to open it in a browser), reads the code the
operator pastes back, and exchanges it for an access/refresh token pair.

The redirect target is the first redirect URI registered in the client secret
config, so the operator copies the code from the consent page or from the
redirect URL by hand.
"""

from __future__ import annotations

import webbrowser

import requests
from google_auth_oauthlib.flow import Flow
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

import token_codec
from auth_errors import ExchangeError, InputError, MalformedRecord
from client_secrets import OAuthClientConfig
from token_codec import TokenRecord

# Fixed state value sent with every consent request. This is only acceptable
# because the flow is local and single-user; it is not a CSRF defence.
AUTHORIZATION_STATE = "state-token"


def build_flow(config: OAuthClientConfig) -> Flow:
    """Create a Flow for the configured client, scopes and first redirect URI."""
    return Flow.from_client_config(
        config.to_client_config(),
        scopes=config.scopes,
        redirect_uri=config.redirect_uri,
    )


def request_authorization(flow: Flow) -> str:
    """Return the consent page URL, asking for offline access (a refresh token)."""
    url, _state = flow.authorization_url(access_type="offline", state=AUTHORIZATION_STATE)
    return url


def present_to_user(url, *, open_browser=True, log_fn=print, browser_fn=None):
    """
    Show the consent URL and optionally open it in the default browser.

    The URL is always printed. A failed browser launch is reported via log_fn
    and never aborts the flow, since the operator can copy the URL manually.

    Returns:
        True if a browser was opened, False otherwise.
    """
    print(f"Go to the following link in your browser then type the authorization code: \n{url}")

    if not open_browser:
        return False

    browser_fn = browser_fn or webbrowser.open
    try:
        opened = browser_fn(url)
    except (webbrowser.Error, OSError) as e:
        log_fn(f"Warning: could not open a browser ({e}). Copy the URL above instead.")
        return False

    if not opened:
        log_fn("Warning: no browser available. Copy the URL above instead.")
        return False
    return True


def read_authorization_code(input_fn=None) -> str:
    """
    Read the authorization code pasted by the operator.

    Blank lines are skipped; the first whitespace-delimited token is returned.
    """
    input_fn = input_fn or input
    while True:
        try:
            line = input_fn()
        except (EOFError, OSError) as e:
            raise InputError(f"Unable to read authorization code: {e or 'input closed'}") from e
        parts = line.split()
        if parts:
            return parts[0]


def exchange(flow: Flow, code: str) -> TokenRecord:
    """
    Exchange an authorization code for a token. Single attempt, no retry.

    Raises:
        ExchangeError: the token endpoint rejected the code, the request
            failed, or the response held no access token.

    A response granting a different scope than requested is accepted.
    """
    try:
        token = flow.fetch_token(code=code)
    except OAuth2Error as e:
        raise ExchangeError(f"Unable to retrieve token from web: {e.description or e.error}") from e
    except requests.exceptions.RequestException as e:
        raise ExchangeError(f"Unable to retrieve token from web: {e}") from e
    except Warning as e:
        # oauthlib raises on a changed scope but still carries the parsed token
        token = getattr(e, "token", None)
        if token is None:
            raise ExchangeError(f"Unable to retrieve token from web: {e}") from e
    except ValueError as e:
        raise ExchangeError(f"Unable to retrieve token from web: {e}") from e

    try:
        return token_codec.from_oauth_response(token)
    except MalformedRecord as e:
        raise ExchangeError(f"Unable to retrieve token from web: {e}") from e


def obtain_via_interactive_flow(
    config: OAuthClientConfig,
    *,
    open_browser=True,
    input_fn=None,
    log_fn=print,
    browser_fn=None,
) -> TokenRecord:
    """
    Run the full interactive flow: consent URL, browser, code prompt, exchange.

    Any step's error propagates unchanged; nothing is retried.
    """
    flow = build_flow(config)
    url = request_authorization(flow)
    present_to_user(url, open_browser=open_browser, log_fn=log_fn, browser_fn=browser_fn)
    code = read_authorization_code(input_fn)
    return exchange(flow, code)
