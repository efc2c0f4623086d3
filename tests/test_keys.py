"""Tests for cache key construction."""

from swr_cachex.keys import canonical_params
from swr_cachex.keys import request_key
from swr_cachex.keys import resource_key
from swr_cachex.types import CACHE_KEY_SEPARATOR


def test_resource_key_without_params_is_bare_name():
    assert resource_key("stats") == "stats"
    assert resource_key("stats", {}) == "stats"


def test_resource_key_ignores_param_order():
    first = resource_key("doctors", {"page": 2, "limit": 100, "search": "lee"})
    second = resource_key("doctors", {"search": "lee", "limit": 100, "page": 2})

    assert first == second
    assert first == 'doctors|||{"limit":100,"page":2,"search":"lee"}'


def test_resource_key_starts_with_resource_name():
    key = resource_key("doctors", {"page": 3})

    assert key.startswith("doctors")
    assert CACHE_KEY_SEPARATOR in key


def test_canonical_params_drops_none_values():
    assert canonical_params({"page": 1, "search": None}) == '{"page":1}'
    assert canonical_params({"search": None}) == ""


def test_canonical_params_nested_values_are_sorted():
    assert canonical_params({"f": {"b": 1, "a": 2}}) == '{"f":{"a":2,"b":1}}'


def test_request_key_includes_method_url_and_params():
    key = request_key("get", "/admin/doctors", {"limit": 100})

    assert key == 'GET|||/admin/doctors|||{"limit":100}'


def test_request_key_differs_by_method():
    assert request_key("GET", "/orders") != request_key("POST", "/orders")


def test_request_key_same_for_reordered_params():
    assert request_key("GET", "/x", {"a": 1, "b": 2}) == request_key(
        "GET", "/x", {"b": 2, "a": 1}
    )


def test_request_key_separates_credentials():
    alice = request_key("GET", "/orders", headers={"Authorization": "Bearer a"})
    bob = request_key("GET", "/orders", headers={"authorization": "Bearer b"})

    assert alice != bob
    assert alice == request_key("GET", "/orders", headers={"AUTHORIZATION": "Bearer a"})
    assert request_key("GET", "/orders", headers={}) == request_key("GET", "/orders")
