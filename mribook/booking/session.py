"""HTTP session shared by the booking orchestrator and the admin panel"""

import logging
from typing import Any, Optional

import httpx

from .errors import AuthError, BookingError, ConflictError, NetworkError, PaymentError, ValidationError
from .selection import ProviderInfo

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def _detail_message(detail: Any, fallback: str) -> str:
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict):
        return str(detail.get("message") or fallback)
    if isinstance(detail, list) and detail:
        return "; ".join(str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in detail)
    return fallback


class BookingSession:
    """
    Holds the API connection and the bearer credential.

    Call init() before use and teardown() when done. A caller-supplied
    httpx.Client (for example a FastAPI TestClient) is used as is and not
    closed on teardown.
    """

    def __init__(
        self,
        base_url: str = "",
        client: Optional[httpx.Client] = None,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.token = token
        self._client = client
        self._owns_client = client is None
        self._active = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> "BookingSession":
        if self._active:
            return self
        if self._client is None:
            self._client = httpx.Client(base_url=self.base_url, timeout=self.timeout)
        self._active = True
        logger.debug(f"🔌 Booking session opened ({self.base_url or 'injected client'})")
        return self

    def teardown(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None
        self.token = None
        self._active = False

    def __enter__(self) -> "BookingSession":
        return self.init()

    def __exit__(self, *exc_info) -> None:
        self.teardown()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def request(self, method: str, path: str, step: Optional[str] = None, **kwargs) -> Any:
        """Send a request and return the JSON body, mapping error statuses to booking errors"""
        if not self._active:
            raise BookingError("Session not initialized; call init() first", step=step)

        headers = dict(kwargs.pop("headers", None) or {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"❌ {method} {path} failed: {e}")
            raise NetworkError(f"Network error: {e}", step=step) from e

        if response.is_success:
            return response.json()

        try:
            detail = response.json().get("detail")
        except ValueError:
            detail = response.text

        message = _detail_message(detail, f"Request failed with status {response.status_code}")
        status = response.status_code
        logger.warning(f"⚠️ {method} {path} -> {status}: {message}")

        if status == 401:
            expired = response.headers.get("X-Token-Expired") == "true"
            raise AuthError(message, expired=expired, step=step, detail=detail)
        if status == 403:
            raise AuthError(message, step=step, detail=detail)
        if status == 409:
            raise ConflictError(message, step=step, detail=detail)
        if status in (400, 422):
            fields = detail.get("missing_fields", []) if isinstance(detail, dict) else []
            raise ValidationError(message, fields=fields, step=step, detail=detail)
        if status == 502:
            raise PaymentError(message, step=step, detail=detail)
        raise BookingError(message, step=step, detail=detail)

    # ------------------------------------------------------------------
    # Patient API
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> str:
        data = self.request("POST", "/api/user/login", json={"email": email, "password": password})
        self.token = data["token"]
        return self.token

    def list_providers(self) -> list[ProviderInfo]:
        data = self.request("GET", "/api/doctor/list")
        return [ProviderInfo.from_api(item) for item in data["doctors"]]

    def book_appointment(
        self,
        provider_id: int,
        slot_date: str,
        slot_time: str,
        intake_form: dict,
        additional_provider_ids: Optional[list[int]] = None,
        message: Optional[str] = None,
        step: Optional[str] = None,
    ) -> dict:
        return self.request(
            "POST",
            "/api/user/book-appointment",
            step=step,
            json={
                "providerId": provider_id,
                "additionalProviderIds": additional_provider_ids or [],
                "slotDate": slot_date,
                "slotTime": slot_time,
                "intakeForm": intake_form,
                "message": message,
            },
        )

    def create_payment_session(self, appointment_ids: list[int], step: Optional[str] = None) -> dict:
        return self.request(
            "POST", "/api/user/payment-session", step=step, json={"appointmentIds": appointment_ids}
        )

    def verify_payment(self, session_id: str, step: Optional[str] = None) -> dict:
        return self.request("POST", "/api/user/verify-payment", step=step, json={"sessionId": session_id})

    def my_appointments(self) -> list[dict]:
        return self.request("GET", "/api/user/appointments")

    def cancel_appointment(self, appointment_id: int) -> dict:
        return self.request("POST", "/api/user/cancel-appointment", json={"appointmentId": appointment_id})
