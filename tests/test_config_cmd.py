import json

import pytest
import tomlkit

from ryekit.config_cmd import (
    ConfigError,
    parse_updates,
    read_key,
    run_config,
    set_key,
    unset_key,
    value_to_json,
    value_to_string,
)

SAMPLE = """\
[behavior]
global-python = true

[default]
license = "MIT"
requires-python = ">= 3.8"
flags = [1, "x"]
inline = {k = 1}
"""


@pytest.fixture
def doc():
    return tomlkit.parse(SAMPLE)


def test_read_nested_key(doc):
    assert read_key(doc, "default.license") == "MIT"
    assert read_key(doc, "behavior.global-python") is True


def test_read_table_or_missing_is_none(doc):
    assert read_key(doc, "default") is None
    assert read_key(doc, "default.missing") is None
    assert read_key(doc, "default.license.deeper") is None


def test_value_to_string_missing():
    assert value_to_string(None) == "?"


def test_value_to_string_scalars(doc):
    assert value_to_string(read_key(doc, "default.license")) == "MIT"
    assert value_to_string(read_key(doc, "behavior.global-python")) == "true"


def test_value_to_string_inline_table(doc):
    assert value_to_string(read_key(doc, "default.inline")) == "{k = 1}"


def test_value_to_string_array_joins_items(doc):
    text = value_to_string(read_key(doc, "default.flags"))
    assert text.startswith("[") and text.endswith("]")
    assert text[1:-1].split(", ") == [value_to_string(1), value_to_string("x")]


def test_value_to_json(doc):
    assert value_to_json(read_key(doc, "default.flags")) == [1, "x"]
    assert value_to_json(read_key(doc, "default.inline")) == {"k": 1}
    assert value_to_json(None) is None
    assert value_to_json(float("nan")) is None


def test_parse_updates_typed():
    updates = parse_updates(["a.b=c=d"], ["n=42"], ["f=true", "g=false"])
    assert updates == [("a.b", "c=d"), ("n", 42), ("f", True), ("g", False)]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"set_items": ["noeq"]},
        {"set_int_items": ["n=x"]},
        {"set_int_items": ["n"]},
        {"set_bool_items": ["f=yes"]},
    ],
)
def test_parse_updates_invalid(kwargs):
    with pytest.raises(ConfigError):
        parse_updates(**kwargs)


def test_set_key_round_trip(doc):
    set_key(doc, "proxy.https", "http://localhost:3128")
    set_key(doc, "default.license", "BSD")
    reparsed = tomlkit.parse(tomlkit.dumps(doc))
    assert read_key(reparsed, "proxy.https") == "http://localhost:3128"
    assert read_key(reparsed, "default.license") == "BSD"
    assert read_key(reparsed, "behavior.global-python") is True


def test_set_key_through_value_fails(doc):
    with pytest.raises(ConfigError):
        set_key(doc, "default.license.sub", "x")


def test_unset_key(doc):
    unset_key(doc, "default.license")
    unset_key(doc, "behavior")
    reparsed = tomlkit.parse(tomlkit.dumps(doc))
    assert read_key(reparsed, "default.license") is None
    assert "behavior" not in reparsed
    assert read_key(reparsed, "default.requires-python") == ">= 3.8"


def test_unset_missing_leaves_document(doc):
    before = tomlkit.dumps(doc)
    unset_key(doc, "nothing.here")
    unset_key(doc, "nothing")
    assert tomlkit.dumps(doc) == before


def test_run_config_get_lines(doc):
    text, modified = run_config(doc, get=["default.license", "missing"])
    assert text.splitlines() == ["MIT", "?"]
    assert modified is False


def test_run_config_get_json(doc):
    text, _ = run_config(doc, get=["default.license", "missing"], fmt="json")
    assert json.loads(text) == {"default.license": "MIT", "missing": None}


def test_run_config_set(doc):
    text, modified = run_config(doc, set_int_items=["behavior.level=3"])
    assert modified is True
    assert text == ""
    assert read_key(doc, "behavior.level") == 3


def test_run_config_mixing_fails(doc):
    with pytest.raises(ConfigError):
        run_config(doc, get=["default.license"], unset=["default.license"])


def test_run_config_bad_format(doc):
    with pytest.raises(ConfigError):
        run_config(doc, get=["default.license"], fmt="yaml")