"""Tests for canonical serialization and event UIDs."""

import re

from chainhook.canonical import CIRCULAR_SENTINEL, compute_event_uid, stable_json


def test_key_order_does_not_change_digest():
    a = {"b": 1, "a": {"y": [1, 2], "x": None}}
    b = {"a": {"x": None, "y": [1, 2]}, "b": 1}

    assert stable_json(a) == stable_json(b)
    assert compute_event_uid(a) == compute_event_uid(b)


def test_array_order_changes_digest():
    assert compute_event_uid({"events": [1, 2]}) != compute_event_uid({"events": [2, 1]})


def test_keys_sorted_at_every_depth():
    assert stable_json({"z": {"b": 1, "a": 2}, "a": True}) == '{"a":true,"z":{"a":2,"b":1}}'


def test_self_reference_replaced_with_sentinel():
    node = {"a": 1}
    node["self"] = node

    assert stable_json(node) == '{"a":1,"self":"%s"}' % CIRCULAR_SENTINEL
    assert compute_event_uid(node) == compute_event_uid(node)


def test_cycle_through_list():
    items = [1]
    items.append({"back": items})

    assert stable_json(items) == '[1,{"back":"%s"}]' % CIRCULAR_SENTINEL


def test_shared_subtree_is_not_a_cycle():
    shared = {"x": 1}

    assert stable_json({"a": shared, "b": shared}) == '{"a":{"x":1},"b":{"x":1}}'


def test_uid_is_sha256_hex():
    uid = compute_event_uid({"hello": "world"})

    assert re.fullmatch(r"[0-9a-f]{64}", uid)


def test_distinct_values_distinct_uids():
    assert compute_event_uid({"amount": 1}) != compute_event_uid({"amount": "1"})
    assert compute_event_uid(None) != compute_event_uid({})


def test_large_integers_are_exact():
    big = 2 ** 127 + 1

    assert stable_json({"amount": big}) == '{"amount":%d}' % big
