"""Shared fixtures: in-memory database, API client and fake external collaborators."""

import base64
import os

# Configure before anything imports mribook.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-jwt-signing"
os.environ["ADMIN_EMAIL"] = "admin@mribook.test"
os.environ["ADMIN_PASSWORD"] = "admin-password"
os.environ["DODO_PAYMENTS_API_KEY"] = ""
os.environ["DODO_PAYMENTS_WEBHOOK_SECRET"] = "whsec_" + base64.b64encode(b"test-webhook-signing-key").decode()
os.environ["FRONTEND_URL"] = "http://frontend.test"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from mribook.database import Base, SessionLocal, engine  # noqa: E402
from mribook.domain.payments.gateway import PaymentGatewayError, get_payment_gateway  # noqa: E402
from mribook.main import app  # noqa: E402
from mribook.storage import get_image_store  # noqa: E402
from mribook.webhook_ledger import WebhookLedger  # noqa: E402

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]
WEBHOOK_SECRET = os.environ["DODO_PAYMENTS_WEBHOOK_SECRET"]

SLOT_DATE = "12/3/2025"
SLOT_TIME = "10:00 AM"


def complete_intake(**overrides) -> dict:
    """Intake form with every required field filled in"""
    form = {
        "surname": "Lee",
        "firstName": "Min",
        "dob": "1/1/1990",
        "healthCardNumber": "1234567890",
        "clinicalInformation": "headache",
    }
    form.update(overrides)
    return form


class FakePaymentGateway:
    """In-memory stand-in for the Dodo Payments checkout"""

    def __init__(self):
        self.sessions: dict[str, dict] = {}
        self.refunds: list[str] = []
        self.refund_amounts: list = []
        self.verify_calls = 0
        self.fail_create = False
        self.fail_refund = False

    async def create_session(self, line_items, success_url, cancel_url, metadata, customer=None):
        if self.fail_create:
            raise PaymentGatewayError("Checkout is unavailable")
        number = len(self.sessions) + 1
        session_id = f"cks_test_{number}"
        self.sessions[session_id] = {
            "line_items": line_items,
            "amount": sum(item["amount"] for item in line_items),
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
            "payment_id": f"pay_test_{number}",
            "paid": False,
        }
        return {"session_id": session_id, "url": f"https://checkout.test/{session_id}"}

    def complete(self, session_id: str) -> None:
        """Simulate the patient paying on the hosted checkout page"""
        self.sessions[session_id]["paid"] = True

    async def verify(self, session_id):
        self.verify_calls += 1
        session = self.sessions[session_id]
        if not session["paid"]:
            return {"paid": False, "amount": None, "currency": None, "payment_id": None, "metadata": {}}
        return {
            "paid": True,
            "amount": session["amount"],
            "currency": "CAD",
            "payment_id": session["payment_id"],
            "metadata": session["metadata"],
        }

    async def refund(self, payment_id, amount=None, reason="requested_by_customer"):
        if self.fail_refund:
            raise PaymentGatewayError("Refund rejected")
        self.refunds.append(payment_id)
        self.refund_amounts.append(amount)
        return {"refund_id": f"ref_{payment_id}", "status": "succeeded"}


class FakeImageStore:
    def __init__(self):
        self.uploads: list[str] = []

    async def save_provider_image(self, file):
        await file.read()
        key = f"providers/test-{len(self.uploads) + 1}.png"
        self.uploads.append(key)
        return key


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest.fixture
def webhook_ledger(monkeypatch):
    """Ledger kept in memory so tests never reach for Redis"""
    ledger = WebhookLedger(client_factory=lambda: None)
    monkeypatch.setattr("mribook.domain.payments.router.webhook_ledger", ledger)
    return ledger


@pytest.fixture
def client(gateway, image_store, webhook_ledger):
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_image_store] = lambda: image_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_patient(client):
    """Register a patient and return its bearer token"""

    def _register(email="patient@example.com", name="Min Lee", password="password123"):
        response = client.post(
            "/api/user/register", json={"name": name, "email": email, "password": password}
        )
        assert response.status_code == 200, response.text
        return response.json()["token"]

    return _register


@pytest.fixture
def patient_token(register_patient):
    return register_patient()


@pytest.fixture
def admin_token(client):
    response = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    return response.json()["token"]


@pytest.fixture
def create_provider(client, admin_token):
    """Create a provider through the admin API and return its JSON"""

    def _create(name="Dr. A", fee=100, speciality="Radiology", available=True):
        response = client.post(
            "/api/admin/add-doctor",
            data={"name": name, "fee": str(fee), "speciality": speciality},
            headers=auth_headers(admin_token),
        )
        assert response.status_code == 200, response.text
        provider = response.json()
        if not available:
            toggled = client.post(
                "/api/admin/change-availability",
                json={"providerId": provider["id"]},
                headers=auth_headers(admin_token),
            )
            provider = toggled.json()
        return provider

    return _create


@pytest.fixture
def book(client):
    """Book through the API and return the raw response"""

    def _book(token, provider_id, additional=None, slot_date=SLOT_DATE, slot_time=SLOT_TIME, intake=None):
        return client.post(
            "/api/user/book-appointment",
            json={
                "providerId": provider_id,
                "additionalProviderIds": additional or [],
                "slotDate": slot_date,
                "slotTime": slot_time,
                "intakeForm": intake if intake is not None else complete_intake(),
            },
            headers=auth_headers(token),
        )

    return _book
