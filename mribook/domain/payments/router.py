"""Payment router - checkout, verification and the payment provider webhook"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ...auth import get_current_patient
from ...config import DODO_PAYMENTS_WEBHOOK_SECRET
from ...database import get_db
from ...models import Patient
from ...rate_limiter import create_rate_limiter
from ...webhook_ledger import webhook_ledger
from ...webhook_security import verify_payment_webhook
from .gateway import PaymentGateway, get_payment_gateway
from .schemas import (
    PaymentSessionRequest,
    PaymentSessionResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["Payments"])
webhooks_router = APIRouter(tags=["Webhooks"])

rate_limit_payment_webhook = create_rate_limiter(
    limit=100, window_seconds=60, key_prefix="payment_webhook", use_ip=False
)


def get_payment_service(
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db, gateway)


@router.post("/payment-session", response_model=PaymentSessionResponse)
async def create_payment_session(
    data: PaymentSessionRequest,
    current_patient: Patient = Depends(get_current_patient),
    service: PaymentService = Depends(get_payment_service),
):
    """Create one checkout session covering the listed appointments"""
    return await service.create_session(current_patient, data.appointmentIds)


@router.post("/verify-payment", response_model=VerifyPaymentResponse)
async def verify_payment(
    data: VerifyPaymentRequest,
    current_patient: Patient = Depends(get_current_patient),
    service: PaymentService = Depends(get_payment_service),
):
    return await service.verify_payment(current_patient, data.sessionId)


@webhooks_router.post("/api/payments/webhook")
async def handle_payment_webhook(
    request: Request,
    service: PaymentService = Depends(get_payment_service),
    _: None = Depends(rate_limit_payment_webhook),
):
    """
    Verify signature and settle completed payments.

    Headers:
      - 'webhook-signature': 'v1,{base64(hmac_sha256(webhook-id.webhook-timestamp.payload))}'
      - 'webhook-id': Unique webhook ID for idempotency
      - 'webhook-timestamp': Unix timestamp (seconds)
    """
    if not DODO_PAYMENTS_WEBHOOK_SECRET:
        logger.error("❌ DODO_PAYMENTS_WEBHOOK_SECRET not configured")
        raise HTTPException(status_code=500, detail="Webhook not configured")

    raw_body = await verify_payment_webhook(request, DODO_PAYMENTS_WEBHOOK_SECRET)
    webhook_id = request.headers.get("webhook-id")

    if webhook_ledger.was_processed(webhook_id):
        logger.info(f"🔄 Webhook {webhook_id} already processed, skipping (idempotency)")
        return {"status": "already_processed", "webhook_id": webhook_id}

    try:
        event = json.loads(raw_body.decode("utf-8"))
    except ValueError as e:
        logger.error(f"Failed to parse webhook JSON: {e}")
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from e

    result = await service.handle_webhook_event(event)
    webhook_ledger.mark_processed(webhook_id, result)
    logger.info(f"🔔 Webhook {webhook_id} handled: {result}")
    return {**result, "webhook_id": webhook_id}
