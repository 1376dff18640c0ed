import io
import subprocess
import urllib.error
from unittest import mock

import pytest

from ryekit import bootstrap
from ryekit.bootstrap import (
    SELF_VERSION,
    BootstrapError,
    CommandOutput,
    download_url,
    download_url_ignore_404,
    find_missing_libraries,
    get_pip_module,
    get_pip_runner,
    is_self_compatible_toolchain,
    is_up_to_date,
    pip_verbosity,
    update_core_shims,
    validate_shared_libraries,
)


class _FakeResponse(io.BytesIO):
    def __init__(self, data, status=200):
        super().__init__(data)
        self.status = status
        self.headers = {"Content-Length": str(len(data))}


def test_command_output_from_flags():
    assert CommandOutput.from_quiet_and_verbose(True, False) is CommandOutput.QUIET
    assert CommandOutput.from_quiet_and_verbose(False, True) is CommandOutput.VERBOSE
    assert CommandOutput.from_quiet_and_verbose(False, False) is CommandOutput.NORMAL


def test_is_up_to_date_reads_marker(tmp_path):
    (tmp_path / "self").mkdir()
    marker = tmp_path / "self" / "tool-version.txt"
    assert is_up_to_date(tmp_path) is False
    marker.write_text(str(SELF_VERSION))
    assert is_up_to_date(tmp_path) is True
    marker.write_text(str(SELF_VERSION - 1))
    assert is_up_to_date(tmp_path) is False
    marker.write_text("garbage")
    assert is_up_to_date(tmp_path) is False


@pytest.mark.parametrize(
    "name,major,minor,expected",
    [
        ("cpython", 3, 9, True),
        ("cpython", 3, 11, True),
        ("cpython", 3, 12, False),
        ("cpython", 3, 8, False),
        ("pypy", 3, 10, False),
        ("cpython", 2, 10, False),
    ],
)
def test_self_compatible_toolchain(name, major, minor, expected):
    assert is_self_compatible_toolchain(name, major, minor) is expected


def test_get_pip_module_finds_site_packages(tmp_path, monkeypatch):
    monkeypatch.setattr(bootstrap, "_IS_WINDOWS", False)
    (tmp_path / "lib" / "python-empty").mkdir(parents=True)
    sp = tmp_path / "lib" / "python3.11" / "site-packages"
    sp.mkdir(parents=True)
    assert get_pip_module(tmp_path) == sp / "pip"
    assert get_pip_runner(tmp_path) == sp / "pip" / "__pip-runner__.py"


def test_get_pip_module_without_site_packages(tmp_path, monkeypatch):
    monkeypatch.setattr(bootstrap, "_IS_WINDOWS", False)
    (tmp_path / "lib" / "python3.11").mkdir(parents=True)
    with pytest.raises(BootstrapError, match="no site-packages"):
        get_pip_module(tmp_path)


def test_get_pip_module_windows_layout(tmp_path, monkeypatch):
    monkeypatch.setattr(bootstrap, "_IS_WINDOWS", True)
    assert get_pip_module(tmp_path) == tmp_path / "lib" / "site-packages" / "pip"


def test_pip_verbosity():
    assert pip_verbosity(CommandOutput.VERBOSE) == (["--verbose"], {})
    args, env = pip_verbosity(CommandOutput.QUIET)
    assert args == ["--quiet"]
    assert env == {"PYTHONWARNINGS": "ignore"}
    assert pip_verbosity(CommandOutput.NORMAL) == (args, env)


def test_find_missing_libraries_sorted_and_unique():
    out = (
        "\tlinux-vdso.so.1 (0x00007ffc)\n"
        "\tlibz.so.1 => not found\n"
        "\tlibc.so.6 => /lib/libc.so.6 (0x0000)\n"
        "\tlibcrypt.so.1 => not found\n"
        "\tlibz.so.1 => not found\n"
    )
    assert find_missing_libraries(out) == ["libcrypt.so.1", "libz.so.1"]
    assert find_missing_libraries("") == []


def test_validate_shared_libraries_reports_missing(tmp_path):
    result = subprocess.CompletedProcess(
        ["ldd"], 0, stdout=b"libfoo.so => not found\n", stderr=b""
    )
    with mock.patch("subprocess.run", return_value=result):
        with pytest.raises(BootstrapError, match="missing libraries"):
            validate_shared_libraries(tmp_path / "python")


def test_validate_shared_libraries_ok(tmp_path):
    result = subprocess.CompletedProcess(
        ["ldd"], 0, stdout=b"libc.so.6 => /lib/libc.so.6\n", stderr=b""
    )
    with mock.patch("subprocess.run", return_value=result) as run:
        assert validate_shared_libraries(tmp_path / "python") is None
        assert run.call_count == 1


def test_download_refuses_insecure():
    with pytest.raises(BootstrapError, match="Refusing insecure download"):
        download_url_ignore_404("http://example.com/x", CommandOutput.QUIET)


def test_download_returns_body():
    payload = b"archive-bytes" * 100
    with mock.patch("urllib.request.urlopen", return_value=_FakeResponse(payload)):
        assert download_url("https://example.com/a.tar.gz", CommandOutput.QUIET) == payload


def test_download_404_handling():
    err = urllib.error.HTTPError("https://example.com/x", 404, "nf", {}, None)
    with mock.patch("urllib.request.urlopen", side_effect=err):
        assert download_url_ignore_404("https://example.com/x", CommandOutput.QUIET) is None
    with mock.patch("urllib.request.urlopen", side_effect=err):
        with pytest.raises(BootstrapError, match="404 not found"):
            download_url("https://example.com/x", CommandOutput.QUIET)


def test_download_other_error_code():
    err = urllib.error.HTTPError("https://example.com/x", 500, "boom", {}, None)
    with mock.patch("urllib.request.urlopen", side_effect=err):
        with pytest.raises(BootstrapError, match="500"):
            download_url_ignore_404("https://example.com/x", CommandOutput.QUIET)


def test_update_core_shims_linux_links(tmp_path, monkeypatch):
    monkeypatch.setattr(bootstrap, "_IS_WINDOWS", False)
    monkeypatch.setattr(bootstrap, "_IS_LINUX", True)
    exe = tmp_path / "rye"
    exe.write_bytes(b"binary")
    shims = tmp_path / "shims"
    shims.mkdir()
    (shims / "python").write_bytes(b"old")
    update_core_shims(shims, exe)
    assert (shims / "python").read_bytes() == b"binary"
    assert (shims / "python3").read_bytes() == b"binary"