"""Yoco webhook handler."""

import json

from fastapi import APIRouter, Depends, HTTPException, Request, status
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.services.topup_service import reconcile_topup_event
from services.store_service.webhook_security import verify_webhook
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
logger = get_logger(__name__)


@router.post("/yoco")
async def yoco_webhook(
    request: Request,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Yoco webhook endpoint (no auth; verified by the webhook-signature header).

    Anything after verification that is not a malformed request answers 200
    so Yoco stops retrying.
    """
    raw = await request.body()
    verify_webhook(request.headers, raw)

    try:
        event = json.loads(raw.decode("utf-8") or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body"
        )

    try:
        await reconcile_topup_event(db, event)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Yoco webhook processing error")
        await db.rollback()

    return {"received": True}
