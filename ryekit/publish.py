"""Credentials and command line for publishing distributions."""

from __future__ import annotations

import os
from collections.abc import Iterable, MutableMapping
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import tomlkit

DEFAULT_REPOSITORY_URL = "https://upload.pypi.org/legacy/"
PYPI_UPLOAD_HOST = "upload.pypi.org"
DEFAULT_USERNAME = "__token__"


class PublishError(Exception):
    """Raised when publishing cannot proceed."""


def pad_hex(s: str) -> str:
    """Left-pad a hex string with a zero to an even length."""
    return f"0{s}" if len(s) % 2 == 1 else s


def maybe_encode(original: str, new_secret: bytes) -> str:
    """Hex-encode ``new_secret`` if it differs from ``original``.

    A differing secret is taken to be encrypted data; otherwise the original
    text is returned unchanged.
    """
    if original.encode("utf-8") != bytes(new_secret):
        return bytes(new_secret).hex()
    return original


def _normalize_url(text: str) -> str | None:
    try:
        parts = urlsplit(text)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    path = parts.path or "/"
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


def _repository_value(credentials: Any, repository: str, key: str) -> str | None:
    table = credentials.get(repository) if credentials is not None else None
    if not hasattr(table, "get"):
        return None
    value = table.get(key)
    return None if value is None else str(value)


def resolve_repository_url(
    credentials: Any, repository: str, url: str | None = None
) -> str:
    """Return the upload URL: explicit, stored, or the default index."""
    if url is not None:
        resolved = _normalize_url(url)
        if resolved is None:
            raise PublishError(f"invalid repository url {url}")
    else:
        stored = _repository_value(credentials, repository, "repository-url")
        resolved = (_normalize_url(stored) if stored else None) or DEFAULT_REPOSITORY_URL
    if repository == "pypi" and urlsplit(resolved).hostname != PYPI_UPLOAD_HOST:
        raise PublishError(f"invalid pypi url {resolved} (use -h for help)")
    return resolved


def resolve_username(
    credentials: Any, repository: str, username: str | None = None
) -> str:
    """Return the upload username: explicit, stored, or the token user."""
    if username is not None:
        return username
    return _repository_value(credentials, repository, "username") or DEFAULT_USERNAME


def stored_token(credentials: Any, repository: str) -> str | None:
    """Return the token stored for a repository, if any."""
    return _repository_value(credentials, repository, "token")


def store_credentials(
    credentials: MutableMapping,
    repository: str,
    repository_url: str,
    username: str,
    token: str | None = None,
) -> None:
    """Record the repository URL, username and optionally the token."""
    if repository not in credentials:
        credentials[repository] = tomlkit.table()
    table = credentials[repository]
    if token is not None:
        table["token"] = token
    table["repository-url"] = repository_url
    table["username"] = username


def build_upload_command(
    python: os.PathLike | str,
    files: Iterable[os.PathLike | str],
    username: str,
    token: str,
    repository_url: str,
    sign: bool = False,
    identity: str | None = None,
    cert: os.PathLike | str | None = None,
) -> list[str]:
    """Return the command line that uploads ``files`` with twine."""
    cmd = [os.fspath(python), "-mtwine", "--no-color", "upload"]
    cmd.extend(os.fspath(f) for f in files)
    cmd += ["--username", username, "--password", token]
    cmd += ["--repository-url", repository_url]
    if sign:
        cmd.append("--sign")
    if identity is not None:
        cmd += ["--identity", identity]
    if cert is not None:
        cmd += ["--cert", os.fspath(cert)]
    return cmd