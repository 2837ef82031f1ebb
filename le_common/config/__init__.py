"""Configuration helpers for le_common."""

from .env import is_set_env, parse_bool_env, parse_float_env

__all__ = [
    "is_set_env",
    "parse_bool_env",
    "parse_float_env",
]
