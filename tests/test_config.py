"""Test runtime configuration validation."""

import dataclasses

import pytest

from sqlwarden.config import WardenConfig
from sqlwarden.policy import ModePolicy


def test_defaults():
    config = WardenConfig()
    assert config.mode is ModePolicy.READ_ONLY
    assert config.query_timeout_ms == 30_000
    assert config.character_budget == 25_000
    assert config.max_query_length == 10_000
    assert config.audit_log is True


def test_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        WardenConfig().mode = ModePolicy.WRITE_ENABLED


@pytest.mark.parametrize(
    "kwargs",
    [
        {"query_timeout_ms": 999},
        {"query_timeout_ms": 600_001},
        {"character_budget": 999},
        {"max_query_length": 0},
        {"max_query_length": 1_000_001},
    ],
)
def test_out_of_range_values_raise(kwargs):
    with pytest.raises(ValueError):
        WardenConfig(**kwargs)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"query_timeout_ms": 1_000},
        {"query_timeout_ms": 600_000},
        {"character_budget": 1_000},
        {"max_query_length": 1},
        {"max_query_length": 1_000_000},
    ],
)
def test_boundaries_are_accepted(kwargs):
    WardenConfig(**kwargs)


def test_from_options_maps_flag_and_keeps_defaults():
    config = WardenConfig.from_options(allow_write=True, query_timeout_ms=5_000)
    assert config.mode is ModePolicy.WRITE_ENABLED
    assert config.query_timeout_ms == 5_000
    assert config.character_budget == 25_000
    assert WardenConfig.from_options().mode is ModePolicy.READ_ONLY
