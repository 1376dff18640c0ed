# ryekit

A library of helpers for managing Python projects. It covers these tasks:

- building and pinning PEP 508 requirement strings
- bumping project versions
- reading and editing keys of a TOML configuration document
- turning project scripts into command lines and environments
- resolving what a `python`/`pip` shim stands in for
- preparing a shell with a virtualenv activated
- keeping upload credentials and building the upload command line
- bootstrapping helpers for an internal tool environment

## Installation

```
pip install ryekit
```

## Usage

```python
from ryekit.requirements import ReqExtras, make_req, parse_requirement, pin_requirement, Pin
from ryekit.versioning import Bump, bump_version

make_req(["flask"], ReqExtras(features=["async"]))     # ['flask[async]']
pin_requirement(parse_requirement("flask"), "2.2.3", Pin.TILDE_EQUAL)
bump_version("1.2.3", Bump.MINOR)                       # <Version('1.3.0')>
```

### Modules

- `ryekit.requirements` provides the following:
  - `parse_requirement` and `format_requirement`.
  - `Pin`, which parses the aliases `exact`, `tilde`, `>=` and so on.
  - `choose_operator`. Local versions always use `==`. A `~=` pin on a one-part version falls back to `>=`.
  - `pin_requirement`.
  - `ReqExtras`, which adds a git, url or path source and extras to a requirement. Relative paths become `file:///${PROJECT_ROOT}/...` URLs.
  - `make_req`.
  - `RequirementError`, raised for invalid input.
- `ryekit.versioning` provides `Bump` and `bump_version`, which drops post releases and turns a dev version into its release. It also provides `format_version`.
- `ryekit.config_cmd` works on a `tomlkit` document with these functions:
  - `read_key`, `set_key` and `unset_key`, which take dotted keys.
  - `parse_updates`, for `key=value` strings, integers and booleans.
  - `value_to_string` and `value_to_json`.
  - `run_config`, which applies gets, sets and unsets. It returns the text to print and whether the document changed. Mixing gets and sets raises `ConfigError`.
- `ryekit.scripts` provides the following:
  - `call_script_args`, for `module:callable` or `module` entries.
  - `cmd_script_args`, for command scripts. It resolves the first word in the venv's bin folder.
  - `build_run_env`, which sets `VIRTUAL_ENV`, prepends to `PATH` and drops `PYTHONHOME`.
  - `sort_script_names`.
- `ryekit.shims` provides the following:
  - `detect_shim`.
  - `matches_shim`, which compares names case-insensitively and ignores `.exe` on Windows.
  - `split_python_selector`, for a leading `+3.11` argument.
  - `find_shadowed_target`, which finds the next executable on `PATH` that is not the shim itself.
- `ryekit.shell` provides the following:
  - `get_shell`, which uses `SHELL` and otherwise looks for a Windows shell among the parent processes.
  - `is_ms_shell`.
  - `build_shell_invocation`, which returns the argv and environment for a virtualenv shell.
- `ryekit.publish` provides the following:
  - `resolve_repository_url`. A `pypi` repository must upload to `upload.pypi.org`.
  - `resolve_username`, which defaults to `__token__`.
  - `stored_token` and `store_credentials`.
  - `pad_hex` and `maybe_encode`.
  - `build_upload_command`, which returns the `twine upload` command line.
- `ryekit.bootstrap` provides the following:
  - `CommandOutput`.
  - `is_up_to_date` and `is_self_compatible_toolchain`, which accepts cpython 3.9 to 3.11.
  - `get_pip_module` and `get_pip_runner`.
  - `pip_verbosity`.
  - `find_missing_libraries` and `validate_shared_libraries`, which parse `ldd` output.
  - `download_url` and `download_url_ignore_404`, which are HTTPS only.
  - `update_core_shims`.

## What it does not do

There is no command-line program: every function is called from Python.

The package has none of the following:
- project scaffolding (`init`)
- toolchain registration or listing
- lock files or dependency synchronisation
- self-installation or update

`ryekit.publish` builds the credentials and the twine command, but it does not encrypt tokens or prompt for them.

## Running the tests

```
pip install "ryekit[test]"
pytest
```