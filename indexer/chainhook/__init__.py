"""Chainhook payload handling: canonical hashing and fundraising event extraction."""

from chainhook.canonical import compute_event_uid, stable_json
from chainhook.events import ExtractedFundraisingEvent, is_fundraising_event_name
from chainhook.extractor import (
    DeliveryMeta,
    extract_fundraising_events,
    extract_top_level_meta,
)

__all__ = [
    "compute_event_uid",
    "stable_json",
    "ExtractedFundraisingEvent",
    "is_fundraising_event_name",
    "DeliveryMeta",
    "extract_fundraising_events",
    "extract_top_level_meta",
]
