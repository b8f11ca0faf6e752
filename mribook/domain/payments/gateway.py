"""Payment gateway - Dodo Payments checkout, verification and refunds"""

import logging
from typing import Any, Optional

from dodopayments import AsyncDodoPayments  # type: ignore

from ...config import DODO_ADHOC_PRODUCT_ID, DODO_PAYMENTS_API_KEY, DODO_PAYMENTS_ENVIRONMENT

logger = logging.getLogger(__name__)

PAID_STATUSES = {"succeeded", "paid"}


class PaymentGatewayError(Exception):
    """Raised when the payment provider rejects or fails a request"""

    pass


def normalize_dodo_environment(env: Optional[str]) -> str:
    """Normalize Dodo environment value to expected format"""
    value = (env or "test_mode").strip().lower()
    if value in {"live", "production", "prod"}:
        return "live_mode"
    if value in {"test", "sandbox", "staging", "dev", "development"}:
        return "test_mode"
    if value in {"test_mode", "live_mode"}:
        return value
    logger.warning(f"Unknown DODO environment '{env}', defaulting to test_mode")
    return "test_mode"


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from an SDK model or a plain dict"""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class PaymentGateway:
    """
    Checkout sessions for appointments, priced per session through the
    pay-what-you-want product so no product has to be created per appointment.
    """

    def __init__(self):
        self.environment = normalize_dodo_environment(DODO_PAYMENTS_ENVIRONMENT)
        self.product_id = DODO_ADHOC_PRODUCT_ID
        self.client = None

        if not DODO_PAYMENTS_API_KEY:
            logger.warning("DODO_PAYMENTS_API_KEY not set; payment endpoints will fail until configured")
        else:
            try:
                self.client = AsyncDodoPayments(
                    bearer_token=DODO_PAYMENTS_API_KEY,
                    environment=self.environment,
                )
                logger.info(f"Dodo Payments client initialized (env={self.environment})")
            except Exception as e:
                logger.error(f"Failed to initialize Dodo client (env={self.environment}): {e}")
                self.client = None

    def _require_client(self):
        if not self.client:
            raise PaymentGatewayError("Dodo Payments client not initialized")
        if not self.product_id:
            raise PaymentGatewayError("DODO_ADHOC_PRODUCT_ID not configured")

    async def create_session(
        self,
        line_items: list[dict],
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
        customer: Optional[dict] = None,
    ) -> dict:
        """
        Create a hosted checkout session.

        Args:
            line_items: [{"name": str, "amount": float}] in major currency units
            success_url: where the customer returns after paying
            cancel_url: where the customer returns after abandoning checkout
            metadata: correlation data echoed back by verification and webhooks

        Returns:
            {"session_id": str, "url": str}
        """
        self._require_client()

        total_cents = sum(int(round(item["amount"] * 100)) for item in line_items)
        description = ", ".join(item["name"] for item in line_items)

        session_data = {
            "product_cart": [
                {
                    "product_id": self.product_id,
                    "quantity": 1,
                    # Dynamic amount in lowest currency unit (e.g., cents)
                    "amount": total_cents,
                }
            ],
            "customer": customer or {},
            "metadata": {**metadata, "description": description, "cancel_url": cancel_url},
            "return_url": success_url,
        }

        try:
            session = await self.client.checkout_sessions.create(**session_data)
        except Exception as e:
            logger.error(f"❌ Failed to create checkout session: {e}")
            raise PaymentGatewayError(f"Failed to create checkout session: {e}") from e

        session_id = _field(session, "session_id")
        checkout_url = _field(session, "checkout_url")
        if not session_id or not checkout_url:
            raise PaymentGatewayError("Checkout session response missing session id or url")

        logger.info(f"✅ Checkout session created: {session_id} ({total_cents} cents)")
        return {"session_id": session_id, "url": checkout_url}

    async def verify(self, session_id: str) -> dict:
        """
        Look up a checkout session and the payment it produced.

        Returns:
            {"paid": bool, "amount": float | None, "currency": str | None,
             "payment_id": str | None, "metadata": dict}
        """
        self._require_client()

        try:
            session = await self.client.checkout_sessions.retrieve(session_id)
            payment_id = _field(session, "payment_id")
            if not payment_id:
                return {"paid": False, "amount": None, "currency": None, "payment_id": None, "metadata": {}}

            payment = await self.client.payments.retrieve(payment_id)
        except Exception as e:
            logger.error(f"❌ Failed to verify checkout session {session_id}: {e}")
            raise PaymentGatewayError(f"Failed to verify payment: {e}") from e

        status = str(_field(payment, "status", "") or _field(session, "payment_status", "")).lower()
        total = _field(payment, "total_amount")
        return {
            "paid": status in PAID_STATUSES,
            "amount": total / 100 if total is not None else None,
            "currency": _field(payment, "currency"),
            "payment_id": payment_id,
            "metadata": _field(payment, "metadata") or {},
        }

    async def refund(
        self, payment_id: str, amount: Optional[float] = None, reason: str = "requested_by_customer"
    ) -> dict:
        """
        Refund a payment, in full or only `amount` (major units) of it.
        A checkout covering several appointments is one payment, so refunding one
        of its appointments must pass that appointment's amount.
        """
        self._require_client()

        refund_data: dict[str, Any] = {"payment_id": payment_id, "reason": reason}
        if amount is not None:
            refund_data["items"] = [
                {"item_id": self.product_id, "amount": int(round(amount * 100)), "tax_inclusive": True}
            ]

        try:
            refund = await self.client.refunds.create(**refund_data)
        except Exception as e:
            logger.error(f"❌ Failed to refund payment {payment_id}: {e}")
            raise PaymentGatewayError(f"Failed to refund payment: {e}") from e

        scope = "in full" if amount is None else f"for {amount}"
        logger.info(f"💸 Refund created for payment {payment_id} {scope}")
        return {"refund_id": _field(refund, "refund_id"), "status": _field(refund, "status")}


payment_gateway = PaymentGateway()


def get_payment_gateway() -> PaymentGateway:
    """Dependency injection for the payment gateway"""
    return payment_gateway
