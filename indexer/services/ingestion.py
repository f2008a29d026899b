"""Ingestion service - records chainhook deliveries and their fundraising events."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from chainhook.canonical import compute_event_uid
from chainhook.events import ExtractedFundraisingEvent
from chainhook.extractor import DeliveryMeta, extract_fundraising_events, extract_top_level_meta
from chainhook_indexer.config import Config
from chainhook_indexer.log import get_logger
from db.models import ChainhookDelivery, FundraisingEvent
from db.session import get_session

logger = get_logger(__name__)

_DIALECT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class EventPersistenceError(Exception):
    """Raised when one or more extracted events could not be stored.

    Every sibling event has already been attempted when this is raised, so
    a retried delivery only has the failed rows left to write.
    """

    def __init__(self, delivery_uid: str, failed: int, attempted: int):
        self.delivery_uid = delivery_uid
        self.failed = failed
        self.attempted = attempted
        super().__init__(
            f"{failed} of {attempted} events failed to persist for delivery {delivery_uid[:12]}"
        )


@dataclass(frozen=True)
class IngestionResult:
    """Outcome of ingesting one delivery."""

    delivery_uid: str
    delivery_inserted: bool
    extracted_events: int
    events_inserted: int


@dataclass(frozen=True)
class ReplayResult:
    """Outcome of re-extracting stored deliveries."""

    deliveries_scanned: int
    events_extracted: int
    events_inserted: int


def insert_ignoring_conflict(session: Session, model: Any, values: Dict[str, Any]) -> bool:
    """Insert a row keyed by event_uid, doing nothing if it already exists.

    Args:
        session: Database session
        model: ORM model with a unique event_uid column
        values: Column values

    Returns:
        True if the row was inserted, False if it already existed (idempotent)
    """
    insert = _DIALECT_INSERTS.get(session.get_bind().dialect.name)
    if insert is not None:
        stmt = insert(model).values(**values).on_conflict_do_nothing(index_elements=["event_uid"])
        result = session.execute(stmt)
        return result.rowcount == 1

    # Other dialects: let the unique constraint decide
    try:
        session.add(model(**values))
        session.flush()  # Flush to trigger unique constraint check
        return True
    except IntegrityError:
        session.rollback()
        return False


def insert_delivery(
    session: Session,
    delivery_uid: str,
    meta: DeliveryMeta,
    payload: Any,
) -> bool:
    """Insert a raw chainhook delivery (idempotent).

    Args:
        session: Database session
        delivery_uid: Content hash of the whole payload
        meta: Top-level envelope fields
        payload: Raw payload, stored verbatim

    Returns:
        True if the delivery was inserted, False if it already existed
    """
    inserted = insert_ignoring_conflict(
        session,
        ChainhookDelivery,
        {
            "event_uid": delivery_uid,
            "hook_uuid": meta.hook_uuid,
            "chain": meta.chain,
            "network": meta.network,
            "action": meta.action,
            "block_height": meta.block_height,
            "txid": meta.txid,
            "contract_identifier": meta.contract_identifier,
            "payload": payload,
        },
    )
    if not inserted:
        logger.debug(f"Delivery already exists: {delivery_uid}")
    return inserted


def insert_fundraising_event(session: Session, event: ExtractedFundraisingEvent) -> bool:
    """Insert an extracted fundraising event (idempotent).

    Args:
        session: Database session
        event: Extracted event

    Returns:
        True if the event was inserted, False if it already existed
    """
    inserted = insert_ignoring_conflict(session, FundraisingEvent, event.to_row())
    if not inserted:
        logger.debug(f"Event already exists: {event.event_uid}")
    return inserted


def persist_events(events: Iterable[ExtractedFundraisingEvent]) -> Tuple[int, int]:
    """Insert each event in its own transaction.

    A failure on one event, of any kind, is logged and does not stop the
    others.

    Args:
        events: Extracted events

    Returns:
        (inserted, failed) counts
    """
    inserted = 0
    failed = 0
    for event in events:
        try:
            with get_session() as session:
                if insert_fundraising_event(session, event):
                    inserted += 1
        except Exception as e:
            failed += 1
            logger.error(
                f"Failed to persist {event.event_name} event {event.event_uid[:12]}: {e}",
                exc_info=True,
            )
    return inserted, failed


def ingest_notification(payload: Any, config: Config) -> IngestionResult:
    """Record a chainhook delivery and every fundraising event in it.

    The raw delivery is committed before extraction runs, so a payload the
    extractor does not understand is still kept for replay.

    Args:
        payload: Decoded JSON body of the delivery
        config: Configuration (contract filter)

    Returns:
        IngestionResult summary

    Raises:
        SQLAlchemyError: If the delivery itself could not be stored
        EventPersistenceError: If any extracted event could not be stored
    """
    meta = extract_top_level_meta(payload)
    delivery_uid = compute_event_uid(payload)

    with get_session() as session:
        delivery_inserted = insert_delivery(session, delivery_uid, meta, payload)

    events = extract_fundraising_events(
        payload,
        expected_contract_identifier=config.expected_contract_identifier,
    )
    inserted, failed = persist_events(events)

    if failed:
        raise EventPersistenceError(delivery_uid, failed=failed, attempted=len(events))

    logger.info(
        f"Ingested delivery {delivery_uid[:12]} "
        f"(new={delivery_inserted}, action={meta.action}, extracted={len(events)}, inserted={inserted})"
    )

    return IngestionResult(
        delivery_uid=delivery_uid,
        delivery_inserted=delivery_inserted,
        extracted_events=len(events),
        events_inserted=inserted,
    )


def replay_deliveries(
    config: Config,
    limit: Optional[int] = None,
    batch_size: int = 100,
) -> ReplayResult:
    """Re-run extraction over stored deliveries, oldest first.

    Inserts are idempotent, so replaying is safe at any time; it only adds
    events that an older extractor missed.

    Args:
        config: Configuration (contract filter)
        limit: Maximum number of deliveries to scan (default: all)
        batch_size: Deliveries loaded per query

    Returns:
        ReplayResult summary

    Raises:
        EventPersistenceError: If any event failed to persist
    """
    scanned = 0
    extracted = 0
    inserted = 0
    failed = 0
    last_id = 0

    while limit is None or scanned < limit:
        page = batch_size if limit is None else min(batch_size, limit - scanned)
        with get_session() as session:
            rows = (
                session.query(ChainhookDelivery.id, ChainhookDelivery.payload)
                .filter(ChainhookDelivery.id > last_id)
                .order_by(ChainhookDelivery.id)
                .limit(page)
                .all()
            )
        if not rows:
            break

        for delivery_id, payload in rows:
            events = extract_fundraising_events(
                payload,
                expected_contract_identifier=config.expected_contract_identifier,
            )
            batch_inserted, batch_failed = persist_events(events)
            extracted += len(events)
            inserted += batch_inserted
            failed += batch_failed
            scanned += 1
            last_id = delivery_id

        logger.info(f"Replayed {scanned} deliveries so far ({inserted} new events)")

    if failed:
        raise EventPersistenceError("replay", failed=failed, attempted=extracted)

    return ReplayResult(
        deliveries_scanned=scanned,
        events_extracted=extracted,
        events_inserted=inserted,
    )
