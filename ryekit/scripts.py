"""Resolving project scripts into command lines and environments."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path


class ScriptError(Exception):
    """Raised when a script definition cannot be turned into a command."""


def call_script_args(
    python: os.PathLike | str, entry: str, args: Sequence[str]
) -> list[str]:
    """Build the command line for a ``module:callable`` or ``module`` script.

    ``args`` is the invocation with the script name first; the rest is passed on.
    """
    python = os.fspath(python)
    rest = list(args[1:])
    module, sep, func = entry.partition(":")
    if not sep:
        return [python, "-m", entry, *rest]
    if not module or not func:
        raise ScriptError(
            "Python callable must be in the form <module_name>:<callable_name> "
            "or <module_name>"
        )
    call = func if "(" in func else f"{func}()"
    code = f"import sys, {module} as _1; sys.exit(_1.{call})"
    return [python, "-c", code, *rest]


def cmd_script_args(
    venv_bin: os.PathLike | str, script_args: Sequence[str], args: Sequence[str]
) -> list[str]:
    """Build the command line for a command script.

    The first word is resolved inside the virtualenv's bin folder when a file
    of that name exists there.
    """
    if not script_args:
        raise ScriptError("script has no arguments")
    rest = list(args[1:])
    target = Path(venv_bin) / script_args[0]
    if target.is_file():
        return [os.fspath(target), *script_args[1:], *rest]
    return [*script_args, *rest]


def build_run_env(
    environ: Mapping[str, str],
    venv_path: os.PathLike | str,
    venv_bin: os.PathLike | str,
    overrides: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Return the environment a script runs with inside the virtualenv."""
    env = dict(environ)
    env["VIRTUAL_ENV"] = os.fspath(venv_path)
    bin_dir = os.fspath(venv_bin)
    path = environ.get("PATH")
    env["PATH"] = bin_dir if path is None else os.pathsep.join([bin_dir, path])
    if overrides:
        env.update(overrides)
    env.pop("PYTHONHOME", None)
    return env


def _ascii_lower(text: str) -> str:
    return "".join(c.lower() if c.isascii() else c for c in text)


def sort_script_names(names: Iterable[str]) -> list[str]:
    """Sort script names case-insensitively."""
    return sorted(names, key=_ascii_lower)