"""Tests for the Clarity repr parser and uint normalization."""

import pytest

from chainhook.clarity import MAX_BIGINT, parse_clarity_repr, to_bounded_uint, to_uint


def test_parse_campaign_created_repr():
    fields = parse_clarity_repr("(tuple (event \"campaign-created\") (campaignId u7) (owner 'SPabc))")

    assert fields == {"event": "campaign-created", "campaignId": 7, "owner": "SPabc"}


def test_parse_donation_repr_any_field_order():
    fields = parse_clarity_repr(
        "(tuple (donor 'SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7) (amount u1000) "
        "(campaignId u1) (event \"donated-stx\"))"
    )

    assert fields["event"] == "donated-stx"
    assert fields["campaignId"] == 1
    assert fields["amount"] == 1000
    assert fields["donor"] == "SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7"


def test_unknown_fields_ignored():
    fields = parse_clarity_repr('(tuple (event "refunded") (memo "hi") (extra (some u5)) (amount u3))')

    assert fields == {"event": "refunded", "amount": 3}


def test_key_matched_whole():
    fields = parse_clarity_repr('(tuple (event "donated-stx") (amountUstx u42))')

    assert "amount" not in fields
    assert fields["amountUstx"] == 42


def test_utf8_string_and_contract_principal():
    fields = parse_clarity_repr(
        "(tuple (event u\"donated-sbtc\") (token 'SM3VDXK3WZZSA84XXFKAFAF15NNZX32CTSG82JFQ4.sbtc-token) "
        "(beneficiary 'SP3K8BC0PPEVCV7NZ6QSRWPQ2JE9E5B6N3PA0KBR9.vault))"
    )

    assert fields["event"] == "donated-sbtc"
    assert fields["beneficiary"] == "SP3K8BC0PPEVCV7NZ6QSRWPQ2JE9E5B6N3PA0KBR9.vault"
    # token is a quoted-string field; a principal there is not picked up
    assert "token" not in fields


def test_empty_and_garbage_input():
    assert parse_clarity_repr("") == {}
    assert parse_clarity_repr("not clarity at all") == {}


@pytest.mark.parametrize(
    "value,expected",
    [
        (5000, 5000),
        ("5000", 5000),
        (12.9, 12),
        (0, 0),
        (str(2 ** 128 - 1), 2 ** 128 - 1),
        (-1, None),
        ("-1", None),
        ("12abc", None),
        ("u100", None),
        (True, None),
        (None, None),
        (float("nan"), None),
        ({"value": 1}, None),
    ],
)
def test_to_uint(value, expected):
    assert to_uint(value) == expected


@pytest.mark.parametrize(
    "value,expected",
    [
        (MAX_BIGINT, MAX_BIGINT),
        (MAX_BIGINT + 1, None),
        (str(2 ** 70), None),
        ("12", 12),
        (-5, None),
    ],
)
def test_to_bounded_uint(value, expected):
    assert to_bounded_uint(value, MAX_BIGINT) == expected
