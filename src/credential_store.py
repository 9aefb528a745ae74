"""
OAuth2 Credential Store

Maps a logical token-file name to ``<home>/.credentials/<escaped name>`` and
reads/writes the JSON token record at that path.

The home directory comes from an injectable provider so callers (and tests)
can point the cache somewhere other than the invoking user's home.
"""

from __future__ import annotations

import os
import urllib.parse
from collections.abc import Callable

import token_codec
from auth_errors import CacheMiss, PersistError, UserResolutionError
from token_codec import TokenRecord

CREDENTIALS_DIR_NAME = ".credentials"
CREDENTIALS_DIR_MODE = 0o700
TOKEN_FILE_MODE = 0o600

HomeDirectoryProvider = Callable[[], str]


def default_home_directory() -> str:
    """Return the current user's home directory, or raise UserResolutionError."""
    home = os.path.expanduser("~")
    if not home or home == "~":
        raise UserResolutionError("Unable to determine the current user's home directory")
    return home


def resolve_path(logical_name: str, home_provider: HomeDirectoryProvider = default_home_directory) -> str:
    """
    Build the cache file path for a logical token-file name.

    The .credentials directory is created (owner-only) if absent. Failure to
    create it is ignored here; the following load/save reports the real error.

    Args:
        logical_name: Token file name chosen by the caller (URL-escaped on disk)
        home_provider: Zero-argument callable returning the home directory

    Returns:
        Absolute path of the cache file.
    """
    try:
        home = home_provider()
    except UserResolutionError:
        raise
    except (KeyError, OSError, RuntimeError) as e:
        raise UserResolutionError(f"Unable to determine the current user's home directory: {e}") from e
    if not home:
        raise UserResolutionError("Unable to determine the current user's home directory")

    cache_dir = os.path.join(home, CREDENTIALS_DIR_NAME)
    try:
        os.makedirs(cache_dir, mode=CREDENTIALS_DIR_MODE, exist_ok=True)
    except OSError:
        pass

    return os.path.join(cache_dir, urllib.parse.quote_plus(logical_name))


def load(path: str) -> TokenRecord:
    """
    Read the cached token record at path.

    Raises:
        CacheMiss: the file does not exist or cannot be opened or read
        MalformedRecord: the file content is not a valid token record
    """
    try:
        f = open(path, "rb")
    except OSError as e:
        raise CacheMiss(path, e.strerror or str(e)) from e

    with f:
        try:
            data = f.read()
        except OSError as e:
            raise CacheMiss(path, e.strerror or str(e)) from e

    return token_codec.decode(data)


def save(path: str, record: TokenRecord, log_fn=print) -> None:
    """
    Write record to path, replacing any existing cache file.

    Raises:
        PersistError: the file cannot be created or written
        EncodingError: the record cannot be serialized
    """
    data = token_codec.encode(record)
    try:
        # New files are created owner-only; the chmod below covers existing ones
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, TOKEN_FILE_MODE)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
    except OSError as e:
        raise PersistError(path, e.strerror or str(e)) from e

    try:
        os.chmod(path, TOKEN_FILE_MODE)
    except OSError as e:
        log_fn(f"Warning: could not set permissions on {path}: {e}")
