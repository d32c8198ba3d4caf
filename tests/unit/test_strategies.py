"""
Unit tests for linkr.manager.strategies.

Covers:
    - Random strategy length, charset and distribution sanity
    - Length clamping
    - Strategy selection from config
"""

import re

import pytest

from linkr.manager.strategies import RandomStrategy, get_strategy_from_config

BASE62_PATTERN = re.compile(r"^[0-9a-zA-Z]+$")


def test_random_strategy_default_length_and_charset():
    r = RandomStrategy()
    samples = [r.generate() for _ in range(200)]
    assert all(len(x) == 6 and BASE62_PATTERN.match(x) for x in samples)


def test_random_strategy_10k_codes_are_distinct():
    """62^6 ≈ 5.7e10 codes; 10k draws collide with probability < 0.1%."""
    r = RandomStrategy()
    codes = {r.generate() for _ in range(10_000)}
    assert len(codes) == 10_000


def test_random_strategy_uses_whole_alphabet():
    r = RandomStrategy()
    seen = set("".join(r.generate() for _ in range(2_000)))
    assert len(seen) == 62


@pytest.mark.parametrize("requested,expected", [(1, 4), (4, 4), (10, 10), (99, 32)])
def test_length_is_clamped(requested, expected):
    assert len(RandomStrategy().generate(length=requested)) == expected


@pytest.mark.parametrize("name", ["random", "RANDOM", "sha256", "nosuch"])
def test_get_strategy_from_config_always_yields_random(name):
    assert isinstance(get_strategy_from_config(name), RandomStrategy)
