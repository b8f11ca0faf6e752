"""Tests for the unpaid appointment cleanup job."""

from datetime import datetime, timedelta

from mribook.models import Appointment, BookedSlot
from mribook.services.unpaid_cleanup import cancel_stale_unpaid_appointments, unpaid_cutoff
from tests.conftest import auth_headers


def later(minutes):
    return datetime.utcnow() + timedelta(minutes=minutes)


class TestUnpaidCleanup:
    """Tests for cancel_stale_unpaid_appointments."""

    def test_cutoff_is_session_lifetime_plus_grace(self):
        now = datetime(2025, 3, 12, 12, 0)
        assert unpaid_cutoff(now) == datetime(2025, 3, 12, 11, 15)

    def test_recent_appointments_are_kept(self, db, create_provider, patient_token, book):
        provider = create_provider("Dr. A", 100)
        book(patient_token, provider["id"])

        summary = cancel_stale_unpaid_appointments(db)

        assert summary == {"checked": 0, "cancelled": 0, "released_slots": 0}

    def test_stale_unpaid_is_cancelled_and_released(
        self, client, db, create_provider, patient_token, book
    ):
        a = create_provider("Dr. A", 100)
        b = create_provider("Dr. B", 150)
        appointment_id = book(patient_token, a["id"], additional=[b["id"]]).json()["appointmentId"]

        summary = cancel_stale_unpaid_appointments(db, now=later(60))

        assert summary == {"checked": 1, "cancelled": 1, "released_slots": 2}
        appointment = db.get(Appointment, appointment_id)
        assert appointment.cancelled is True
        assert appointment.cancelled_at is not None
        assert db.query(BookedSlot).count() == 0

    def test_paid_and_cancelled_are_skipped(
        self, client, db, gateway, create_provider, patient_token, book
    ):
        provider = create_provider("Dr. A", 100)
        paid_id = book(patient_token, provider["id"], slot_time="09:00 AM").json()["appointmentId"]
        cancelled_id = book(patient_token, provider["id"], slot_time="09:30 AM").json()["appointmentId"]
        headers = auth_headers(patient_token)

        session_id = client.post(
            "/api/user/payment-session", json={"appointmentIds": [paid_id]}, headers=headers
        ).json()["sessionId"]
        gateway.complete(session_id)
        client.post("/api/user/verify-payment", json={"sessionId": session_id}, headers=headers)
        client.post("/api/user/cancel-appointment", json={"appointmentId": cancelled_id}, headers=headers)

        summary = cancel_stale_unpaid_appointments(db, now=later(60))

        assert summary["checked"] == 0
        assert db.query(BookedSlot).count() == 1

    def test_open_checkout_keeps_old_booking(self, client, db, create_provider, patient_token, book):
        provider = create_provider("Dr. A", 100)
        appointment_id = book(patient_token, provider["id"]).json()["appointmentId"]
        appointment = db.get(Appointment, appointment_id)
        appointment.created_at = datetime.utcnow() - timedelta(minutes=50)
        db.commit()

        client.post(
            "/api/user/payment-session",
            json={"appointmentIds": [appointment_id]},
            headers=auth_headers(patient_token),
        )

        assert cancel_stale_unpaid_appointments(db)["cancelled"] == 0
        db.refresh(appointment)
        assert appointment.cancelled is False
        assert db.query(BookedSlot).count() == 1

    def test_abandoned_checkout_is_cancelled_after_window(
        self, client, db, create_provider, patient_token, book
    ):
        provider = create_provider("Dr. A", 100)
        appointment_id = book(patient_token, provider["id"]).json()["appointmentId"]
        client.post(
            "/api/user/payment-session",
            json={"appointmentIds": [appointment_id]},
            headers=auth_headers(patient_token),
        )

        assert cancel_stale_unpaid_appointments(db, now=later(40))["cancelled"] == 0
        assert cancel_stale_unpaid_appointments(db, now=later(50))["cancelled"] == 1

    def test_admin_endpoint_runs_job(self, client, admin_token):
        response = client.post("/api/admin/cleanup-unpaid", headers=auth_headers(admin_token))
        assert response.status_code == 200
        assert response.json() == {"checked": 0, "cancelled": 0, "released_slots": 0}
