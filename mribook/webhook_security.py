"""
Standard Webhooks verification for Dodo Payments deliveries

Each delivery carries webhook-id, webhook-timestamp and webhook-signature headers.
The signature header holds one or more space separated "v1,<base64 digest>" entries,
each an HMAC-SHA256 of "{id}.{timestamp}.{body}" under the decoded whsec_ key.
"""

import base64
import binascii
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

TIMESTAMP_TOLERANCE_SECONDS = 300


def signing_key(secret: str) -> bytes:
    """Key bytes for a "whsec_..." secret; raw UTF-8 when the value is not base64"""
    encoded = secret[len("whsec_"):] if secret.startswith("whsec_") else secret
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        return secret.encode("utf-8")


def compute_signature(secret: str, webhook_id: str, timestamp: str, payload: bytes) -> str:
    message = f"{webhook_id}.{timestamp}.".encode("utf-8") + payload
    return base64.b64encode(hmac.new(signing_key(secret), message, hashlib.sha256).digest()).decode()


@dataclass
class WebhookDelivery:
    webhook_id: str
    timestamp: str
    signatures: list[str]
    body: bytes


class WebhookVerifier:
    def __init__(self, secret: str, tolerance: int = TIMESTAMP_TOLERANCE_SECONDS):
        self.secret = secret
        self.tolerance = tolerance

    def check_timestamp(self, timestamp: str, now: float | None = None) -> None:
        try:
            sent_at = int(timestamp)
        except ValueError:
            logger.warning(f"🚫 Unreadable webhook timestamp: {timestamp!r}")
            raise HTTPException(status_code=401, detail="Invalid webhook timestamp")

        skew = abs(int(time.time() if now is None else now) - sent_at)
        if skew > self.tolerance:
            logger.warning(f"🚫 Webhook timestamp outside tolerance: {skew}s > {self.tolerance}s")
            raise HTTPException(status_code=401, detail="Webhook timestamp expired")

    def check_signature(self, delivery: WebhookDelivery) -> None:
        expected = compute_signature(self.secret, delivery.webhook_id, delivery.timestamp, delivery.body)
        for entry in delivery.signatures:
            version, _, signature = entry.partition(",")
            if version == "v1" and signature and hmac.compare_digest(expected, signature):
                return
        logger.error(f"❌ No matching webhook signature for {delivery.webhook_id}")
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    def verify(self, delivery: WebhookDelivery) -> None:
        self.check_timestamp(delivery.timestamp)
        self.check_signature(delivery)
        logger.info(f"✅ Webhook {delivery.webhook_id} verified")


async def read_delivery(request: Request) -> WebhookDelivery:
    headers = request.headers
    webhook_id = headers.get("webhook-id")
    timestamp = headers.get("webhook-timestamp")
    signature_header = headers.get("webhook-signature")

    missing = [
        name
        for name, value in (
            ("webhook-id", webhook_id),
            ("webhook-timestamp", timestamp),
            ("webhook-signature", signature_header),
        )
        if not value
    ]
    if missing:
        logger.error(f"❌ Webhook rejected, missing headers: {', '.join(missing)}")
        raise HTTPException(status_code=401, detail="Missing webhook signature headers")

    return WebhookDelivery(
        webhook_id=webhook_id,
        timestamp=timestamp,
        signatures=signature_header.split(),
        body=await request.body(),
    )


async def verify_payment_webhook(request: Request, secret: str) -> bytes:
    """Raw body of a verified payment webhook; HTTP 401 for anything unsigned or stale"""
    delivery = await read_delivery(request)
    logger.info(f"📥 Payment webhook received: id={delivery.webhook_id}")
    WebhookVerifier(secret).verify(delivery)
    return delivery.body
