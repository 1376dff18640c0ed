"""Helpers for bootstrapping the internal tool environment."""

from __future__ import annotations

import contextlib
import enum
import os
import shutil
import subprocess
import sys
import urllib.error
import urllib.request
from pathlib import Path

SELF_PYTHON_TARGET_VERSION = "cpython@3.11"
SELF_VERSION = 4

SELF_REQUIREMENTS = """
build==0.10.0
certifi==2022.12.7
charset-normalizer==3.1.0
click==8.1.3
distlib==0.3.6
filelock==3.12.0
idna==3.4
packaging==23.1
pip-tools==6.13.0
platformdirs==3.4.0
pyproject_hooks==1.0.0
requests==2.29.0
tomli==2.0.1
twine==4.0.2
unearth==0.9.0
urllib3==1.26.15
virtualenv==20.22.0
"""

_IS_WINDOWS = os.name == "nt"
_IS_LINUX = sys.platform.startswith("linux")
_CHUNK_SIZE = 64 * 1024
_PROGRESS_WIDTH = 40


class BootstrapError(Exception):
    """Raised when the internal environment cannot be prepared."""


class CommandOutput(enum.Enum):
    """How much a command should print."""

    NORMAL = "normal"
    VERBOSE = "verbose"
    QUIET = "quiet"

    @classmethod
    def from_quiet_and_verbose(cls, quiet: bool, verbose: bool) -> "CommandOutput":
        if quiet:
            return cls.QUIET
        if verbose:
            return cls.VERBOSE
        return cls.NORMAL


def is_up_to_date(app_dir: os.PathLike | str) -> bool:
    """Return True if the self environment carries the current tool version."""
    marker = Path(app_dir) / "self" / "tool-version.txt"
    try:
        return int(marker.read_text()) == SELF_VERSION
    except (OSError, ValueError):
        return False


def is_self_compatible_toolchain(name: str, major: int, minor: int) -> bool:
    """Only cpython 3.9 to 3.11 may host the internal environment."""
    return name == "cpython" and major == 3 and 9 <= minor < 12


def get_pip_module(venv: os.PathLike | str) -> Path:
    """Return the path of the pip package inside a virtualenv."""
    lib = Path(venv) / "lib"
    if _IS_WINDOWS:
        return lib / "site-packages" / "pip"
    try:
        entries = sorted(lib.iterdir())
    except OSError as exc:
        raise BootstrapError(f"unable to read {lib}: {exc}") from exc
    for entry in entries:
        if entry.name.startswith("python"):
            site_packages = entry / "site-packages"
            if site_packages.is_dir():
                return site_packages / "pip"
    raise BootstrapError("no site-packages in venv")


def get_pip_runner(venv: os.PathLike | str) -> Path:
    """Return the pip runner script for a virtualenv."""
    return get_pip_module(venv) / "__pip-runner__.py"


def pip_verbosity(output: CommandOutput) -> tuple[list[str], dict[str, str]]:
    """Return the extra pip arguments and environment for an output mode."""
    if output is CommandOutput.VERBOSE:
        return ["--verbose"], {}
    return ["--quiet"], {"PYTHONWARNINGS": "ignore"}


def find_missing_libraries(ldd_output: str) -> list[str]:
    """Return the sorted, unique libraries that ldd reports as not found."""
    missing: list[str] = []
    for line in ldd_output.splitlines():
        before, sep, after = line.strip().partition(" => ")
        if sep and after == "not found" and before not in missing:
            missing.append(before)
    return sorted(missing)


def validate_shared_libraries(py: os.PathLike | str) -> None:
    """Check with ldd that an interpreter finds all of its shared libraries."""
    try:
        result = subprocess.run(["ldd", os.fspath(py)], capture_output=True)
    except OSError as exc:
        raise BootstrapError(
            "unable to invoke ldd on downloaded python binary"
        ) from exc
    stdout = result.stdout.decode("utf-8", errors="replace")
    missing = find_missing_libraries(stdout)
    if not missing:
        return
    suffix = "y" if len(missing) == 1 else "ies"
    print(
        f"error: detected missing shared librar{suffix} required by Python:",
        file=sys.stderr,
    )
    for lib in missing:
        print(f"  - {lib}", file=sys.stderr)
    raise BootstrapError(
        "Python installation is unable to run on this machine due to missing libraries."
    )


def _report_progress(pos: int, total: int) -> None:
    filled = int(_PROGRESS_WIDTH * pos / total) if total else 0
    bar = "#" * filled + "-" * (_PROGRESS_WIDTH - filled)
    sys.stderr.write(f"\r{bar} {pos:>7}/{total:7}")
    sys.stderr.flush()


def _clear_progress() -> None:
    sys.stderr.write("\r" + " " * (_PROGRESS_WIDTH + 20) + "\r")
    sys.stderr.flush()


def download_url_ignore_404(url: str, output: CommandOutput) -> bytes | None:
    """Download a URL over HTTPS; return None when the server answers 404."""
    if not url.startswith("https://"):
        raise BootstrapError("Refusing insecure download")
    try:
        with urllib.request.urlopen(url) as response:
            status = getattr(response, "status", 200)
            if status == 404:
                return None
            if not 200 <= status < 300:
                raise BootstrapError(f"Failed to download: {status}")
            length = response.headers.get("Content-Length") if response.headers else None
            total = int(length) if length and length.isdigit() else 0
            show = output is not CommandOutput.QUIET and total > 0
            chunks: list[bytes] = []
            received = 0
            while chunk := response.read(_CHUNK_SIZE):
                chunks.append(chunk)
                received += len(chunk)
                if show and received < total:
                    _report_progress(received, total)
            if show:
                _clear_progress()
            return b"".join(chunks)
    except urllib.error.HTTPError as exc:
        if exc.code == 404:
            return None
        raise BootstrapError(f"Failed to download: {exc.code}") from exc
    except urllib.error.URLError as exc:
        raise BootstrapError(f"download of {url} failed") from exc


def download_url(url: str, output: CommandOutput) -> bytes:
    """Download a URL over HTTPS, treating 404 as an error."""
    result = download_url_ignore_404(url, output)
    if result is None:
        raise BootstrapError("Failed to download: 404 not found")
    return result


def _link_or_copy(this: Path, target: Path) -> None:
    with contextlib.suppress(OSError):
        target.unlink()
    try:
        os.link(this, target)
    except OSError:
        try:
            shutil.copy2(this, target)
        except OSError as exc:
            raise BootstrapError(f"tried to copy {target.name} shim") from exc


def _symlink(this: Path, target: Path) -> None:
    with contextlib.suppress(OSError):
        target.unlink()
    try:
        os.symlink(this, target)
    except OSError as exc:
        raise BootstrapError(f"tried to symlink {target.name} shim") from exc


def _symlink_or_hardlink(this: Path, target: Path) -> None:
    with contextlib.suppress(OSError):
        target.unlink()
    try:
        os.symlink(this, target)
    except OSError:
        try:
            os.link(this, target)
        except OSError as exc:
            raise BootstrapError(f"tried to symlink {target.name} shim") from exc


def update_core_shims(shims: os.PathLike | str, this: os.PathLike | str) -> None:
    """Point the python shims in ``shims`` at the executable ``this``."""
    shims = Path(shims)
    this = Path(this)
    if _IS_WINDOWS:
        for name in ("python.exe", "python3.exe", "pythonw.exe"):
            _symlink_or_hardlink(this, shims / name)
    elif _IS_LINUX:
        # Symlinks would misreport the executable, so hard link or copy.
        for name in ("python", "python3"):
            _link_or_copy(this, shims / name)
    else:
        for name in ("python", "python3"):
            _symlink(this, shims / name)