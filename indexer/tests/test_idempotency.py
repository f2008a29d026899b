"""Tests for idempotency behavior."""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from chainhook.events import ExtractedFundraisingEvent
from chainhook.extractor import DeliveryMeta, extract_fundraising_events
from db.models import ChainhookDelivery, FundraisingEvent
from db.session import get_session
from services import ingestion
from services.ingestion import (
    EventPersistenceError,
    ingest_notification,
    insert_delivery,
    insert_fundraising_event,
    replay_deliveries,
)


def _event(uid: str = "a" * 64, **fields) -> ExtractedFundraisingEvent:
    return ExtractedFundraisingEvent(
        event_uid=uid,
        event_name=fields.pop("event_name", "donated-stx"),
        raw={"ctx": {}, "node": {"uid": uid}},
        **fields,
    )


def test_duplicate_event_insertion(db):
    """Test that duplicate event insertion is idempotent."""
    event = _event(campaign_id=1, amount=5000, donor="SPDONOR")

    with get_session() as session:
        inserted1 = insert_fundraising_event(session, event)
        assert inserted1 is True

        # Try to insert duplicate
        inserted2 = insert_fundraising_event(session, event)
        assert inserted2 is False  # Should return False (already exists)

        # Verify only one event exists
        count = session.query(FundraisingEvent).filter(
            FundraisingEvent.event_uid == event.event_uid,
        ).count()
        assert count == 1


def test_duplicate_delivery_insertion(db):
    """Test that storing the same delivery twice keeps one row."""
    meta = DeliveryMeta(hook_uuid="hook-1", chain="stacks", action="apply")

    with get_session() as session:
        assert insert_delivery(session, "d" * 64, meta, {"apply": []}) is True

    with get_session() as session:
        assert insert_delivery(session, "d" * 64, meta, {"apply": []}) is False
        assert session.query(ChainhookDelivery).count() == 1


def test_unique_constraint_enforced(db):
    """Test that unique constraint is enforced at database level."""
    with pytest.raises(IntegrityError):
        with get_session() as session:
            session.add(FundraisingEvent(event_uid="b" * 64, event_name="donated-stx", raw={}))
            session.add(FundraisingEvent(event_uid="b" * 64, event_name="refunded", raw={}))

    with get_session() as session:
        assert session.query(FundraisingEvent).count() == 0


def test_event_row_round_trip(db):
    """Amounts beyond 32 bits survive storage exactly."""
    amount = 10 ** 18
    event = _event(campaign_id=2, amount=amount, ts=12, txid="0x01", block_height=9)

    with get_session() as session:
        insert_fundraising_event(session, event)

    with get_session() as session:
        row = session.query(FundraisingEvent).one()
        assert int(row.amount) == amount
        assert row.campaign_id == 2
        assert row.raw == event.raw
        assert row.inserted_at is not None


def test_redelivery_is_noop(db, test_config, make_envelope):
    """Posting the same payload twice stores one delivery and one set of events."""
    payload = make_envelope([
        {"event": "campaign-created", "campaignId": 1, "owner": "SPOWNER"},
        {"event": "donated-stx", "campaignId": 1, "amount": 10, "donor": "SPDONOR"},
    ])

    first = ingest_notification(payload, test_config)
    second = ingest_notification(payload, test_config)

    assert first.delivery_uid == second.delivery_uid
    assert (first.delivery_inserted, first.extracted_events, first.events_inserted) == (True, 2, 2)
    assert (second.delivery_inserted, second.extracted_events, second.events_inserted) == (False, 2, 0)

    with get_session() as session:
        assert session.query(ChainhookDelivery).count() == 1
        assert session.query(FundraisingEvent).count() == 2


def test_delivery_without_events_still_stored(db, test_config):
    result = ingest_notification({"apply": [{"transactions": []}], "chain": "stacks"}, test_config)

    assert result.delivery_inserted is True
    assert result.extracted_events == 0

    with get_session() as session:
        delivery = session.query(ChainhookDelivery).one()
        assert delivery.chain == "stacks"
        assert delivery.payload == {"apply": [{"transactions": []}], "chain": "stacks"}


def test_failed_event_does_not_block_siblings(db, test_config, make_envelope, monkeypatch):
    """One failing insert is reported after every sibling was attempted."""
    payload = make_envelope([
        {"event": "donated-stx", "campaignId": 1, "amount": 1},
        {"event": "donated-stx", "campaignId": 1, "amount": 2},
        {"event": "donated-stx", "campaignId": 1, "amount": 3},
    ])
    poisoned_uid = extract_fundraising_events(payload)[1].event_uid
    real_insert = ingestion.insert_fundraising_event

    def flaky_insert(session, event):
        if event.event_uid == poisoned_uid:
            raise OperationalError("INSERT", {}, Exception("connection reset"))
        return real_insert(session, event)

    monkeypatch.setattr(ingestion, "insert_fundraising_event", flaky_insert)

    with pytest.raises(EventPersistenceError) as exc_info:
        ingest_notification(payload, test_config)

    assert exc_info.value.failed == 1
    assert exc_info.value.attempted == 3
    with get_session() as session:
        amounts = sorted(int(a) for (a,) in session.query(FundraisingEvent.amount).all())
        assert amounts == [1, 3]
        # The delivery was committed before extraction
        assert session.query(ChainhookDelivery).count() == 1

    # A retry fills in the missing row only
    monkeypatch.setattr(ingestion, "insert_fundraising_event", real_insert)
    retry = ingest_notification(payload, test_config)
    assert retry.delivery_inserted is False
    assert retry.events_inserted == 1


def test_out_of_range_fields_do_not_block_siblings(db, test_config, make_envelope):
    """Integers too large for their columns are stored as null."""
    payload = make_envelope([
        {"event": "donated-stx", "campaignId": 2 ** 70, "amount": 5, "ts": 2 ** 64},
        {"event": "donated-stx", "campaignId": 1, "amount": 7},
    ])

    result = ingest_notification(payload, test_config)

    assert (result.extracted_events, result.events_inserted) == (2, 2)
    with get_session() as session:
        rows = session.query(FundraisingEvent).order_by(FundraisingEvent.id).all()
        assert [(r.campaign_id, r.ts, int(r.amount)) for r in rows] == [(None, None, 5), (1, None, 7)]


def test_unexpected_error_does_not_block_siblings(db, test_config, make_envelope, monkeypatch):
    """Non-database errors on one event are counted like any other failure."""
    payload = make_envelope([
        {"event": "donated-stx", "campaignId": 1, "amount": 1},
        {"event": "donated-stx", "campaignId": 1, "amount": 2},
    ])
    poisoned_uid = extract_fundraising_events(payload)[0].event_uid
    real_insert = ingestion.insert_fundraising_event

    def overflowing_insert(session, event):
        if event.event_uid == poisoned_uid:
            raise OverflowError("Python int too large to convert to SQLite INTEGER")
        return real_insert(session, event)

    monkeypatch.setattr(ingestion, "insert_fundraising_event", overflowing_insert)

    with pytest.raises(EventPersistenceError) as exc_info:
        ingest_notification(payload, test_config)

    assert (exc_info.value.failed, exc_info.value.attempted) == (1, 2)
    with get_session() as session:
        assert [int(a) for (a,) in session.query(FundraisingEvent.amount).all()] == [2]


def test_replay_recovers_events(db, test_config, make_envelope):
    """Replaying stored deliveries inserts only what is missing."""
    payload = make_envelope([{"event": "donated-sbtc", "campaignId": 5, "amount": 77}])
    with get_session() as session:
        insert_delivery(session, "e" * 64, DeliveryMeta(), payload)
        insert_delivery(session, "f" * 64, DeliveryMeta(), {"unrelated": True})

    first = replay_deliveries(test_config, batch_size=1)
    second = replay_deliveries(test_config)

    assert (first.deliveries_scanned, first.events_extracted, first.events_inserted) == (2, 1, 1)
    assert (second.deliveries_scanned, second.events_inserted) == (2, 0)


def test_replay_limit(db, test_config):
    with get_session() as session:
        for n in range(3):
            insert_delivery(session, str(n) * 64, DeliveryMeta(), {"n": n})

    result = replay_deliveries(test_config, limit=2)

    assert result.deliveries_scanned == 2
