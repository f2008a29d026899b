"""Campaign metadata service - off-chain title and description per campaign."""

from typing import Optional

from sqlalchemy.orm import Session

from chainhook.events import CAMPAIGN_CREATED
from chainhook_indexer.log import get_logger
from db.models import CampaignMetadata, FundraisingEvent

logger = get_logger(__name__)


class MetadataError(Exception):
    """Base exception for campaign metadata errors."""
    pass


class CampaignNotFoundError(MetadataError):
    """Raised when no campaign-created event exists for the campaign."""
    pass


class OwnerMismatchError(MetadataError):
    """Raised when the submitter is not the campaign's owner."""
    pass


def get_campaign_owner(session: Session, campaign_id: int) -> Optional[str]:
    """Owner principal from the campaign's campaign-created event.

    Args:
        session: Database session
        campaign_id: Campaign ID

    Returns:
        Owner principal, or None if the campaign was never created on-chain
    """
    row = (
        session.query(FundraisingEvent.owner)
        .filter(
            FundraisingEvent.campaign_id == campaign_id,
            FundraisingEvent.event_name == CAMPAIGN_CREATED,
        )
        .order_by(FundraisingEvent.id)
        .first()
    )
    return row.owner if row is not None else None


def save_campaign_metadata(
    session: Session,
    campaign_id: int,
    owner: str,
    title: str,
    description: str,
) -> CampaignMetadata:
    """Create or replace the metadata for a campaign.

    Args:
        session: Database session
        campaign_id: Campaign ID
        owner: Principal submitting the metadata
        title: Campaign title
        description: Campaign description

    Returns:
        The stored CampaignMetadata row

    Raises:
        CampaignNotFoundError: If the campaign has no campaign-created event
        OwnerMismatchError: If `owner` is not the campaign's owner
    """
    campaign_owner = get_campaign_owner(session, campaign_id)
    if campaign_owner is None:
        raise CampaignNotFoundError(f"Campaign {campaign_id} not found")
    if campaign_owner != owner:
        raise OwnerMismatchError(f"{owner} does not own campaign {campaign_id}")

    metadata = session.get(CampaignMetadata, campaign_id)
    if metadata is None:
        metadata = CampaignMetadata(
            campaign_id=campaign_id,
            owner=owner,
            title=title,
            description=description,
        )
        session.add(metadata)
        logger.info(f"Created metadata for campaign {campaign_id}")
    else:
        metadata.owner = owner
        metadata.title = title
        metadata.description = description
        logger.info(f"Updated metadata for campaign {campaign_id}")

    session.flush()
    return metadata
