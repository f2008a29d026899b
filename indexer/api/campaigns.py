"""Read API over the fundraising event log."""

from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from api.deps import clamp_limit
from api.schemas import (
    ActivityResponse,
    CampaignEventsResponse,
    CampaignListResponse,
    CampaignMetadataAck,
    CampaignMetadataIn,
    CampaignResponse,
    DonationsResponse,
    LeaderboardResponse,
    StatsResponse,
)
from chainhook_indexer.log import get_logger
from db.session import get_session
from services import aggregates
from services.metadata import CampaignNotFoundError, OwnerMismatchError, save_campaign_metadata

logger = get_logger(__name__)

router = APIRouter(prefix="/api")

# (default, cap) per list endpoint
EVENTS_LIMIT = (50, 100)
LEADERBOARD_LIMIT = (20, 50)
ACTIVITY_LIMIT = (20, 100)
DONATIONS_LIMIT = (50, 100)


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "Campaign not found"})


@router.get("/campaigns", response_model=CampaignListResponse)
def list_campaigns():
    """All campaigns with aggregated stats, newest campaign id first."""
    with get_session() as session:
        campaigns = aggregates.list_campaigns(session)
    return {"campaigns": campaigns}


@router.get("/campaigns/{campaign_id}", response_model=CampaignResponse)
def get_campaign(campaign_id: int):
    """One campaign's aggregated stats; 404 if no events exist for it."""
    with get_session() as session:
        campaign = aggregates.get_campaign(session, campaign_id)
    if campaign is None:
        return _not_found()
    return {"campaign": campaign}


@router.get("/campaigns/{campaign_id}/events", response_model=CampaignEventsResponse)
def list_campaign_events(campaign_id: int, limit: Optional[str] = Query(None)):
    with get_session() as session:
        events = aggregates.list_campaign_events(session, campaign_id, clamp_limit(limit, *EVENTS_LIMIT))
    return {"events": events}


@router.get("/campaigns/{campaign_id}/leaderboard", response_model=LeaderboardResponse)
def campaign_leaderboard(campaign_id: int, limit: Optional[str] = Query(None)):
    with get_session() as session:
        leaderboard = aggregates.campaign_leaderboard(
            session, campaign_id, clamp_limit(limit, *LEADERBOARD_LIMIT)
        )
    return {"leaderboard": leaderboard}


@router.post("/campaigns/{campaign_id}/metadata", response_model=CampaignMetadataAck)
def save_metadata(campaign_id: int, body: CampaignMetadataIn):
    """Attach a title and description to a campaign; owner only."""
    try:
        with get_session() as session:
            save_campaign_metadata(
                session,
                campaign_id=campaign_id,
                owner=body.owner,
                title=body.title,
                description=body.description,
            )
    except CampaignNotFoundError:
        return _not_found()
    except OwnerMismatchError as e:
        logger.warning(f"Rejected metadata update: {e}")
        return JSONResponse(status_code=403, content={"error": "owner mismatch"})
    return CampaignMetadataAck(campaign_id=campaign_id)


@router.get("/activity", response_model=ActivityResponse)
def recent_activity(
    limit: Optional[str] = Query(None),
    campaign_id: Optional[int] = Query(None, alias="campaignId"),
):
    """Recent events across all campaigns, newest first."""
    with get_session() as session:
        activity = aggregates.recent_activity(
            session, clamp_limit(limit, *ACTIVITY_LIMIT), campaign_id=campaign_id
        )
    return {"activity": activity}


@router.get("/donors/{principal}/donations", response_model=DonationsResponse)
def donor_donations(principal: str, limit: Optional[str] = Query(None)):
    with get_session() as session:
        donations = aggregates.donor_donations(session, principal, clamp_limit(limit, *DONATIONS_LIMIT))
    return {"donations": donations}


@router.get("/stats", response_model=StatsResponse)
def platform_stats():
    with get_session() as session:
        stats = aggregates.platform_stats(session)
    return {"stats": stats}


@router.get("/owner/{principal}/campaigns", response_model=CampaignListResponse)
def owner_campaigns(principal: str):
    with get_session() as session:
        campaigns = aggregates.list_owner_campaigns(session, principal)
    return {"campaigns": campaigns}
