"""Resolving which executable a shim stands in for."""

from __future__ import annotations

import os
import shutil
import sys
from collections.abc import Sequence
from pathlib import Path


class ShimError(Exception):
    """Raised when a shim cannot be resolved."""


def detect_shim(exe_path: os.PathLike | str) -> str | None:
    """Return the shim name if ``exe_path`` lies in a ``shims`` folder."""
    path = Path(exe_path)
    if path.name in ("rye", "rye.exe", ""):
        return None
    if path.parent.name != "shims":
        return None
    return path.name


def _ascii_fold(text: str) -> str:
    return "".join(c.lower() if c.isascii() else c for c in text)


def matches_shim(name: str, reference: str, windows: bool | None = None) -> bool:
    """Compare a shim name with a reference, ignoring ASCII case.

    On Windows a trailing ``.exe`` is ignored as well.
    """
    if windows is None:
        windows = os.name == "nt"
    if windows and _ascii_fold(name[-4:]) == ".exe":
        name = name[:-4]
    return _ascii_fold(name) == _ascii_fold(reference)


def split_python_selector(args: Sequence[str]) -> tuple[str | None, list[str]]:
    """Split off a ``+<version>`` selector given as the first argument."""
    args = list(args)
    if len(args) > 1 and args[1].startswith("+"):
        return args[1][1:], [args[0], *args[2:]]
    return None, args


def _same_file(a: str, b: os.PathLike | str) -> bool:
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


def find_shadowed_target(
    target: str,
    args: Sequence[str],
    exe: os.PathLike | str | None = None,
    path: str | None = None,
) -> list[str] | None:
    """Find the next ``target`` on the search path that is not ``exe``.

    Returns ``args`` with the first element replaced by that executable.
    """
    if exe is None:
        exe = sys.argv[0]
    if path is None:
        path = os.environ.get("PATH", "")
    for directory in path.split(os.pathsep):
        if not directory:
            continue
        candidate = shutil.which(target, path=directory)
        if candidate is None or _same_file(candidate, exe):
            continue
        return [candidate, *list(args)[1:]]
    return None