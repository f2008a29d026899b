"""Chainhook delivery endpoint and liveness check."""

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.deps import get_config, read_json_payload, require_chainhook_auth
from api.schemas import ChainhookAck
from chainhook_indexer.config import Config
from chainhook_indexer.log import get_logger
from db.healthcheck import ping_database
from services.ingestion import ingest_notification

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health():
    """Liveness check; verifies storage connectivity."""
    if ping_database():
        return {"ok": True}
    return JSONResponse(status_code=500, content={"ok": False})


@router.post(
    "/chainhook",
    response_model=ChainhookAck,
    dependencies=[Depends(require_chainhook_auth)],
)
def receive_chainhook(
    payload: Any = Depends(read_json_payload),
    config: Config = Depends(get_config),
):
    """Record a chainhook delivery and the fundraising events it carries.

    Zero extracted events is a normal outcome and still acknowledged with
    200, so the notifier does not retry deliveries it has nothing to add
    to. Storage failures answer 500; retries are safe because every insert
    is idempotent.
    """
    try:
        result = ingest_notification(payload, config)
    except Exception as e:
        logger.error(f"Chainhook ingestion failed: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"ok": False})

    return ChainhookAck(ok=True, deliveries_inserted=1, extracted_events=result.extracted_events)
