import pytest

from le_common.config import is_set_env, parse_bool_env, parse_float_env


pytestmark = pytest.mark.unit_common


@pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
def test_parse_bool_env_truthy(raw):
    assert parse_bool_env(raw) is True


def test_parse_bool_env_falsy_and_missing():
    assert parse_bool_env("0") is False
    assert parse_bool_env("nope") is False
    assert parse_bool_env(None) is None


def test_is_set_env_treats_any_non_empty_value_as_set():
    assert is_set_env("0")
    assert is_set_env("false")
    assert not is_set_env("")
    assert not is_set_env("   ")
    assert not is_set_env(None)


def test_float_parser():
    assert parse_float_env("1.5") == 1.5
    assert parse_float_env("x") is None
    assert parse_float_env(None) is None
