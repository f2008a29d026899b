"""Pydantic models for the HTTP API."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChainhookAck(BaseModel):
    """Acknowledgement returned to the chainhook notifier."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    deliveries_inserted: int = Field(1, alias="deliveriesInserted")
    extracted_events: int = Field(0, alias="extractedEvents")


class CampaignSummary(BaseModel):
    """Campaign state folded from its events.

    Amounts are integer strings in raw units (micro-STX, sats).
    """

    campaign_id: int
    owner: Optional[str] = None
    beneficiary: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    donation_count: int
    total_stx: str
    total_sbtc: str
    is_cancelled: bool
    is_withdrawn: bool
    created_at: datetime


class CampaignEvent(BaseModel):
    event_name: str
    donor: Optional[str] = None
    owner: Optional[str] = None
    beneficiary: Optional[str] = None
    amount: Optional[str] = None
    token: Optional[str] = None
    txid: Optional[str] = None
    block_height: Optional[int] = None
    inserted_at: datetime


class ActivityEvent(BaseModel):
    event_name: str
    campaign_id: Optional[int] = None
    donor: Optional[str] = None
    owner: Optional[str] = None
    beneficiary: Optional[str] = None
    amount: Optional[str] = None
    token: Optional[str] = None
    txid: Optional[str] = None
    block_height: Optional[int] = None
    inserted_at: datetime


class LeaderboardEntry(BaseModel):
    donor: str
    total_stx: str
    total_sbtc: str
    donation_count: int


class DonorDonation(BaseModel):
    campaign_id: Optional[int] = None
    event_name: str
    amount: Optional[str] = None
    txid: Optional[str] = None
    block_height: Optional[int] = None
    inserted_at: datetime


class PlatformStats(BaseModel):
    total_campaigns: int
    campaigns_funded: int
    campaigns_cancelled: int
    total_stx_raised: str
    total_sbtc_raised: str
    unique_donors: int
    total_donations: int


class CampaignListResponse(BaseModel):
    campaigns: List[CampaignSummary]


class CampaignResponse(BaseModel):
    campaign: CampaignSummary


class CampaignEventsResponse(BaseModel):
    events: List[CampaignEvent]


class LeaderboardResponse(BaseModel):
    leaderboard: List[LeaderboardEntry]


class ActivityResponse(BaseModel):
    activity: List[ActivityEvent]


class DonationsResponse(BaseModel):
    donations: List[DonorDonation]


class StatsResponse(BaseModel):
    stats: PlatformStats


class CampaignMetadataIn(BaseModel):
    """Title and description submitted by a campaign's owner."""

    owner: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)


class CampaignMetadataAck(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    campaign_id: int = Field(..., alias="campaignId")
