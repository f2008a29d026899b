"""Fundraising event vocabulary and the extracted event record."""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

# Event names printed by the fundraising contract
CAMPAIGN_CREATED = "campaign-created"
CAMPAIGN_CANCELLED = "campaign-cancelled"
CAMPAIGN_WITHDRAWN = "campaign-withdrawn"
DONATED_STX = "donated-stx"
DONATED_SBTC = "donated-sbtc"
REFUNDED = "refunded"

# Substring classification: new contract event names under these stems are
# accepted without a code change
FUNDRAISING_NAME_MARKERS = ("campaign-", "donated-", "refunded")

DONATION_PREFIX = "donated-"

_NEAR_MISS = re.compile(r"campaign|donat|refund", re.IGNORECASE)


def is_fundraising_event_name(name: Optional[str]) -> bool:
    """Whether a printed event name belongs in the fundraising event log."""
    if not name:
        return False
    return any(marker in name for marker in FUNDRAISING_NAME_MARKERS)


def is_near_miss_event_name(name: Optional[str]) -> bool:
    """Whether a rejected event name still looks fundraising-related."""
    if not name or is_fundraising_event_name(name):
        return False
    return _NEAR_MISS.search(name) is not None


@dataclass(frozen=True)
class ExtractedFundraisingEvent:
    """A fundraising event recovered from one print node of a delivery.

    Attributes:
        event_uid: Content hash of the node and its inherited context
        event_name: Printed event name (campaign-created, donated-stx, ...)
        campaign_id: Campaign the event belongs to
        donor: Donor principal for donation/refund events
        owner: Owner principal for create/cancel events
        beneficiary: Beneficiary principal for withdraw events
        token: Asset discriminator when printed
        amount: Raw integer amount (micro-STX or sats)
        ts: Contract-supplied logical timestamp
        txid: Transaction id from the node or its ancestors
        block_height: Block height from the node or its ancestors
        contract_identifier: Contract that printed the event
        raw: {"ctx": ..., "node": ...} as hashed into event_uid
    """

    event_uid: str
    event_name: str
    raw: Dict[str, Any]
    campaign_id: Optional[int] = None
    donor: Optional[str] = None
    owner: Optional[str] = None
    beneficiary: Optional[str] = None
    token: Optional[str] = None
    amount: Optional[int] = None
    ts: Optional[int] = None
    txid: Optional[str] = None
    block_height: Optional[int] = None
    contract_identifier: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        """Column values for the fundraising_events table."""
        return {
            "event_uid": self.event_uid,
            "event_name": self.event_name,
            "campaign_id": self.campaign_id,
            "donor": self.donor,
            "owner": self.owner,
            "beneficiary": self.beneficiary,
            "token": self.token,
            "amount": self.amount,
            "ts": self.ts,
            "txid": self.txid,
            "block_height": self.block_height,
            "contract_identifier": self.contract_identifier,
            "raw": self.raw,
        }
