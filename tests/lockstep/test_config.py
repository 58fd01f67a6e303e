import os
import pickle
from unittest import mock

from lockstep.config import FlagFromEnvironment


def test_value_preset():
    v = FlagFromEnvironment("FOO", "foo", True)
    assert v.name == "foo"
    assert v.value is True
    assert not v.from_envvar


@mock.patch.dict(os.environ, {"FOO": "1"})
def test_value_from_envvar():
    v = FlagFromEnvironment("FOO", "foo")
    assert v.name == "FOO"
    assert v.value is True
    assert v.from_envvar
    assert v


@mock.patch.dict(os.environ, {"FOO": " Yes "})
def test_value_from_envvar_is_case_insensitive():
    assert FlagFromEnvironment("FOO", "foo")


@mock.patch.dict(os.environ, {"FOO": "0"})
def test_value_from_envvar_false():
    assert not FlagFromEnvironment("FOO", "foo")


def test_value_unset():
    with mock.patch.dict(os.environ):
        os.environ.pop("FOO", None)
        v = FlagFromEnvironment("FOO", "foo")
        assert v.value is False


@mock.patch.dict(os.environ, {"FOO": "true"})
def test_value_override_and_reset():
    v = FlagFromEnvironment("FOO", "foo")
    v.value = False
    assert v.name == "foo"
    assert not v
    v.reset()
    assert v.name == "FOO"
    assert v


@mock.patch.dict(os.environ, {"FOO": "on"})
def test_value_pickle_reload_from_preset():
    v = FlagFromEnvironment("FOO", "foo", False)
    assert v.name == "foo"
    assert v.value is False

    s = pickle.dumps(v)
    v = pickle.loads(s)
    assert v.name == "foo"
    assert v.value is False


@mock.patch.dict(os.environ, {"FOO": "on"})
def test_value_pickle_reload_from_envvar():
    v = FlagFromEnvironment("FOO", "foo")
    assert v.name == "FOO"
    assert v.value is True

    s = pickle.dumps(v)
    os.environ["FOO"] = "off"

    v = pickle.loads(s)
    assert v.name == "FOO"
    assert v.value is False
