"""SQLAlchemy ORM models for the chainhook indexer schema.

NOTE: The schema is owned by the Alembic migrations in db/migrations. These
models mirror those tables; the indexer never creates tables at runtime.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonDocument = JSON().with_variant(JSONB(), "postgresql")

# Clarity uints are 128-bit; NUMERIC(78, 0) holds any of them exactly
TokenAmount = Numeric(78, 0)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChainhookDelivery(Base):
    """Raw chainhook delivery (maps to 'chainhook_deliveries' table).

    Append-only. One row per distinct notification body, keyed by the
    content hash of the whole envelope.
    """

    __tablename__ = "chainhook_deliveries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_uid = Column(String(64), nullable=False, unique=True)
    hook_uuid = Column(String(255), nullable=True)
    chain = Column(String(64), nullable=True)
    network = Column(String(64), nullable=True)
    action = Column(String(64), nullable=True)
    block_height = Column(BigInteger, nullable=True)
    txid = Column(String(255), nullable=True)
    contract_identifier = Column(String(255), nullable=True)
    payload = Column(JsonDocument, nullable=False)
    received_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class FundraisingEvent(Base):
    """Fundraising event extracted from a contract print (maps to 'fundraising_events' table).

    Append-only. Campaign state is derived by aggregating these rows; nothing
    here is ever updated in place.
    """

    __tablename__ = "fundraising_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_uid = Column(String(64), nullable=False, unique=True)
    event_name = Column(String(100), nullable=False, index=True)  # campaign-created, donated-stx, ...
    campaign_id = Column(BigInteger, nullable=True, index=True)
    donor = Column(String(255), nullable=True, index=True)  # Stacks principal
    owner = Column(String(255), nullable=True)
    beneficiary = Column(String(255), nullable=True)
    token = Column(String(255), nullable=True)
    amount = Column(TokenAmount, nullable=True)  # micro-STX or sats, no unit conversion
    ts = Column(BigInteger, nullable=True)  # contract-supplied logical timestamp
    txid = Column(String(255), nullable=True)
    block_height = Column(BigInteger, nullable=True)
    contract_identifier = Column(String(255), nullable=True)
    raw = Column(JsonDocument, nullable=False)
    inserted_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)


class CampaignMetadata(Base):
    """Off-chain campaign title and description (maps to 'campaign_metadata' table)."""

    __tablename__ = "campaign_metadata"

    campaign_id = Column(BigInteger, primary_key=True, autoincrement=False)
    owner = Column(String(255), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
