"""Preparing an interactive shell with a virtualenv activated."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

import psutil

_MS_SHELLS = frozenset({"cmd.exe", "powershell.exe", "pwsh.exe"})


class ShellError(Exception):
    """Raised when the shell cannot be determined or started."""


def is_ms_shell(shell: str) -> bool:
    """Return True for the Windows command shells."""
    return shell in _MS_SHELLS


def get_shell(environ: Mapping[str, str] | None = None) -> str:
    """Return the user's shell from ``SHELL`` or a Windows parent process."""
    if environ is None:
        environ = os.environ
    shell = environ.get("SHELL")
    if shell is not None:
        return shell
    try:
        proc = psutil.Process(os.getpid())
    except psutil.Error:
        proc = None
    while proc is not None:
        try:
            name = proc.name()
        except psutil.Error:
            break
        if is_ms_shell(name):
            return name
        try:
            proc = proc.parent()
        except psutil.Error:
            break
    raise ShellError("don't know which shell is used")


def build_shell_invocation(
    shell: str, venv_path: os.PathLike | str, environ: Mapping[str, str] | None = None
) -> tuple[list[str], dict[str, str]]:
    """Return the command line and environment of a virtualenv shell."""
    if environ is None:
        environ = os.environ
    venv = Path(venv_path)
    venv_bin = venv / ("Scripts" if os.name == "nt" else "bin")
    ms = is_ms_shell(shell)
    sep = ";" if ms else ":"
    args = [shell] if ms else [shell, "-l"]
    env = dict(environ)
    env["VIRTUAL_ENV"] = os.fspath(venv)
    path = environ.get("PATH")
    env["PATH"] = os.fspath(venv_bin) if path is None else f"{venv_bin}{sep}{path}"
    env.pop("PYTHONHOME", None)
    env["__RYE_SHELL"] = "1"
    return args, env