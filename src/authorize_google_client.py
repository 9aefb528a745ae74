"""
Google API Authorization Script

Builds an authorized HTTP client for Google APIs. The first run walks you
through the OAuth2 consent page and caches the resulting token under
~/.credentials/<token file>; later runs reuse the cached token without any
browser interaction.

Configuration (Environment Variables):
    GOOGLE_CLIENT_SECRET_FILE : Path to the client secret JSON from the Google Cloud console
    GOOGLE_TOKEN_FILE         : Cached token file name (default: google-api-token.json)
    GOOGLE_OAUTH2_SCOPE       : Space-delimited OAuth2 scope(s)

Usage:
    python3 authorize_google_client.py

Examples:
    # Authorize read-only Gmail access and cache the token
    python3 authorize_google_client.py \\
        --client-secret-file "./client_secret.json" \\
        --scope "https://www.googleapis.com/auth/gmail.readonly"

    # Verify the cached token against an API endpoint, without opening a browser
    export GOOGLE_CLIENT_SECRET_FILE="./client_secret.json"
    export GOOGLE_OAUTH2_SCOPE="https://www.googleapis.com/auth/drive.metadata.readonly"
    python3 authorize_google_client.py --no-browser \\
        --check-url "https://www.googleapis.com/drive/v3/files?pageSize=1"
"""

import argparse
import os
import sys

import requests

import google_client
from auth_errors import GoogleAuthError

DEFAULT_TOKEN_FILE = "google-api-token.json"


def check_url(session, url):
    """Perform a single GET with the authorized session and report the status."""
    print(f"Checking {url}...")
    try:
        response = session.get(url)
    except requests.exceptions.RequestException as e:
        print(f"Error: Request failed: {e}")
        return False
    print(f"HTTP {response.status_code} {response.reason}")
    return response.ok


def main():
    default_secret_file = os.getenv("GOOGLE_CLIENT_SECRET_FILE")
    default_scope = os.getenv("GOOGLE_OAUTH2_SCOPE")

    parser = argparse.ArgumentParser(description="Obtain and cache an OAuth2 token for Google APIs.")
    parser.add_argument(
        "--client-secret-file",
        default=default_secret_file,
        required=not bool(default_secret_file),
        help="Client secret JSON file (or GOOGLE_CLIENT_SECRET_FILE)",
    )
    parser.add_argument(
        "--token-file",
        default=os.getenv("GOOGLE_TOKEN_FILE") or DEFAULT_TOKEN_FILE,
        help=f"Cached token file name under ~/.credentials (or GOOGLE_TOKEN_FILE, default: {DEFAULT_TOKEN_FILE})",
    )
    parser.add_argument(
        "--scope",
        default=default_scope,
        required=not bool(default_scope),
        help="Space-delimited OAuth2 scope(s) (or GOOGLE_OAUTH2_SCOPE)",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Only print the consent URL instead of opening a browser",
    )
    parser.add_argument(
        "--check-url",
        default=None,
        help="Optional URL to GET with the authorized client",
    )

    args = parser.parse_args()

    print("\n--- Configuration Summary ---")
    print(f"Client Secret   : {args.client_secret_file}")
    print(f"Token File      : {args.token_file}")
    print(f"Scope           : {args.scope}")
    print("-----------------------------\n")

    try:
        session = google_client.create_client(
            args.client_secret_file,
            args.token_file,
            args.scope,
            open_browser=not args.no_browser,
        )
    except GoogleAuthError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print("Authorized client ready.")

    if args.check_url and not check_url(session, args.check_url):
        sys.exit(1)


if __name__ == "__main__":
    main()
