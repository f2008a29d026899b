"""Read-side aggregation over the append-only fundraising event log.

Campaign state is never stored; every view here folds the events for a
campaign at query time, so it always matches what has been ingested.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import case, distinct, func, select
from sqlalchemy.orm import Session, aliased

from chainhook.events import (
    CAMPAIGN_CANCELLED,
    CAMPAIGN_CREATED,
    CAMPAIGN_WITHDRAWN,
    DONATED_SBTC,
    DONATED_STX,
    DONATION_PREFIX,
)
from db.models import CampaignMetadata, FundraisingEvent

fe = FundraisingEvent

_is_donation = fe.event_name.like(f"{DONATION_PREFIX}%")


def _asset_total(event_name: str):
    """Sum of amount over rows named `event_name`; other rows add zero."""
    return func.coalesce(func.sum(case((fe.event_name == event_name, fe.amount), else_=0)), 0)


def _any_event(event_name: str):
    return func.max(case((fe.event_name == event_name, 1), else_=0))


def _created_field(column):
    return func.max(case((fe.event_name == CAMPAIGN_CREATED, column)))


def _amount_text(value: Any) -> Optional[str]:
    """Render a NUMERIC amount as an integer string (exact for 128-bit values)."""
    if value is None:
        return None
    return str(int(value))


_SUMMARY_COLUMNS = (
    fe.campaign_id.label("campaign_id"),
    _created_field(fe.owner).label("owner"),
    _created_field(fe.beneficiary).label("beneficiary"),
    CampaignMetadata.title.label("title"),
    CampaignMetadata.description.label("description"),
    func.count(case((_is_donation, 1))).label("donation_count"),
    _asset_total(DONATED_STX).label("total_stx"),
    _asset_total(DONATED_SBTC).label("total_sbtc"),
    _any_event(CAMPAIGN_CANCELLED).label("is_cancelled"),
    _any_event(CAMPAIGN_WITHDRAWN).label("is_withdrawn"),
    func.min(fe.inserted_at).label("created_at"),
)


def _summary_query(session: Session):
    return (
        session.query(*_SUMMARY_COLUMNS)
        .outerjoin(CampaignMetadata, CampaignMetadata.campaign_id == fe.campaign_id)
        .filter(fe.campaign_id.isnot(None))
        .group_by(fe.campaign_id, CampaignMetadata.title, CampaignMetadata.description)
    )


def _summary_row(row: Any) -> Dict[str, Any]:
    return {
        "campaign_id": int(row.campaign_id),
        "owner": row.owner,
        "beneficiary": row.beneficiary,
        "title": row.title,
        "description": row.description,
        "donation_count": int(row.donation_count or 0),
        "total_stx": _amount_text(row.total_stx) or "0",
        "total_sbtc": _amount_text(row.total_sbtc) or "0",
        "is_cancelled": bool(row.is_cancelled),
        "is_withdrawn": bool(row.is_withdrawn),
        "created_at": row.created_at,
    }


def list_campaigns(session: Session) -> List[Dict[str, Any]]:
    """All campaigns with their aggregated totals, newest campaign id first."""
    rows = _summary_query(session).order_by(fe.campaign_id.desc()).all()
    return [_summary_row(row) for row in rows]


def get_campaign(session: Session, campaign_id: int) -> Optional[Dict[str, Any]]:
    """Aggregated summary of one campaign, or None if it has no events."""
    row = _summary_query(session).filter(fe.campaign_id == campaign_id).first()
    return _summary_row(row) if row is not None else None


def list_owner_campaigns(session: Session, owner: str) -> List[Dict[str, Any]]:
    """Summaries of the campaigns whose campaign-created event names `owner`."""
    created = aliased(FundraisingEvent)
    owned_ids = (
        select(created.campaign_id)
        .where(created.event_name == CAMPAIGN_CREATED, created.owner == owner)
        .distinct()
    )
    rows = (
        _summary_query(session)
        .filter(fe.campaign_id.in_(owned_ids))
        .order_by(fe.campaign_id.desc())
        .all()
    )
    return [_summary_row(row) for row in rows]


def list_campaign_events(session: Session, campaign_id: int, limit: int) -> List[Dict[str, Any]]:
    """Events of one campaign, newest first."""
    rows = (
        session.query(
            fe.event_name,
            fe.donor,
            fe.owner,
            fe.beneficiary,
            fe.amount,
            fe.token,
            fe.txid,
            fe.block_height,
            fe.inserted_at,
        )
        .filter(fe.campaign_id == campaign_id)
        .order_by(fe.inserted_at.desc(), fe.id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "event_name": row.event_name,
            "donor": row.donor,
            "owner": row.owner,
            "beneficiary": row.beneficiary,
            "amount": _amount_text(row.amount),
            "token": row.token,
            "txid": row.txid,
            "block_height": row.block_height,
            "inserted_at": row.inserted_at,
        }
        for row in rows
    ]


def campaign_leaderboard(session: Session, campaign_id: int, limit: int) -> List[Dict[str, Any]]:
    """Top donors of one campaign by STX total, then sBTC total."""
    total_stx = _asset_total(DONATED_STX)
    total_sbtc = _asset_total(DONATED_SBTC)
    rows = (
        session.query(
            fe.donor,
            total_stx.label("total_stx"),
            total_sbtc.label("total_sbtc"),
            func.count().label("donation_count"),
        )
        .filter(fe.campaign_id == campaign_id, _is_donation, fe.donor.isnot(None))
        .group_by(fe.donor)
        .order_by(total_stx.desc(), total_sbtc.desc(), fe.donor)
        .limit(limit)
        .all()
    )
    return [
        {
            "donor": row.donor,
            "total_stx": _amount_text(row.total_stx) or "0",
            "total_sbtc": _amount_text(row.total_sbtc) or "0",
            "donation_count": int(row.donation_count),
        }
        for row in rows
    ]


def recent_activity(
    session: Session,
    limit: int,
    campaign_id: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Most recent events across all campaigns (or one), newest first."""
    query = session.query(
        fe.event_name,
        fe.campaign_id,
        fe.donor,
        fe.owner,
        fe.beneficiary,
        fe.amount,
        fe.token,
        fe.txid,
        fe.block_height,
        fe.inserted_at,
    )
    if campaign_id is not None:
        query = query.filter(fe.campaign_id == campaign_id)
    rows = query.order_by(fe.inserted_at.desc(), fe.id.desc()).limit(limit).all()
    return [
        {
            "event_name": row.event_name,
            "campaign_id": row.campaign_id,
            "donor": row.donor,
            "owner": row.owner,
            "beneficiary": row.beneficiary,
            "amount": _amount_text(row.amount),
            "token": row.token,
            "txid": row.txid,
            "block_height": row.block_height,
            "inserted_at": row.inserted_at,
        }
        for row in rows
    ]


def donor_donations(session: Session, donor: str, limit: int) -> List[Dict[str, Any]]:
    """Donation events made by one principal, newest first."""
    rows = (
        session.query(
            fe.campaign_id,
            fe.event_name,
            fe.amount,
            fe.txid,
            fe.block_height,
            fe.inserted_at,
        )
        .filter(fe.donor == donor, _is_donation)
        .order_by(fe.inserted_at.desc(), fe.id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "campaign_id": row.campaign_id,
            "event_name": row.event_name,
            "amount": _amount_text(row.amount),
            "txid": row.txid,
            "block_height": row.block_height,
            "inserted_at": row.inserted_at,
        }
        for row in rows
    ]


def platform_stats(session: Session) -> Dict[str, Any]:
    """Platform-wide totals."""

    def campaigns_with(event_name: str):
        return func.count(distinct(case((fe.event_name == event_name, fe.campaign_id))))

    row = session.query(
        campaigns_with(CAMPAIGN_CREATED).label("total_campaigns"),
        campaigns_with(CAMPAIGN_WITHDRAWN).label("campaigns_funded"),
        campaigns_with(CAMPAIGN_CANCELLED).label("campaigns_cancelled"),
        _asset_total(DONATED_STX).label("total_stx_raised"),
        _asset_total(DONATED_SBTC).label("total_sbtc_raised"),
        func.count(distinct(case((_is_donation, fe.donor)))).label("unique_donors"),
        func.count(case((_is_donation, 1))).label("total_donations"),
    ).one()

    return {
        "total_campaigns": int(row.total_campaigns or 0),
        "campaigns_funded": int(row.campaigns_funded or 0),
        "campaigns_cancelled": int(row.campaigns_cancelled or 0),
        "total_stx_raised": _amount_text(row.total_stx_raised) or "0",
        "total_sbtc_raised": _amount_text(row.total_sbtc_raised) or "0",
        "unique_donors": int(row.unique_donors or 0),
        "total_donations": int(row.total_donations or 0),
    }
