"""Tests for cache policy configuration."""

import pytest
from pydantic import ValidationError

from swr_cachex.keys import resource_key
from swr_cachex.policy import DEDUP_ONLY
from swr_cachex.policy import CachePolicy
from swr_cachex.policy import SWRCacheConfig


def test_default_policy_values():
    policy = CachePolicy()

    assert policy.ttl == 300
    assert policy.cooldown is None
    assert policy.default is None
    assert policy.cache_bust_param is None


def test_negative_ttl_rejected():
    with pytest.raises(ValidationError):
        CachePolicy(ttl=-1)


def test_negative_cooldown_rejected():
    with pytest.raises(ValidationError):
        CachePolicy(cooldown=-5)


def test_dedup_only_keeps_nothing():
    assert DEDUP_ONLY.ttl == 0
    assert DEDUP_ONLY.cooldown is None


def test_policy_for_matches_family_prefix():
    doctors = CachePolicy(ttl=300, cooldown=10, default=[])
    config = SWRCacheConfig(families={"doctors": doctors})

    assert config.policy_for(resource_key("doctors", {"page": 2})) == doctors
    assert config.policy_for("stats") == config.default_policy


def test_policy_for_prefers_longest_family():
    config = SWRCacheConfig(
        families={
            "medicine": CachePolicy(ttl=60),
            "medicine-categories": CachePolicy(ttl=1500),
        }
    )

    assert config.policy_for("medicine-categories").ttl == 1500
    assert config.policy_for("medicine|||{}").ttl == 60
