"""Tests for booking and cancellation routes."""

from tests.conftest import SLOT_DATE, SLOT_TIME, auth_headers, complete_intake


def booked_slots(client, provider_id):
    providers = client.get("/api/doctor/list").json()["doctors"]
    return next(p for p in providers if p["id"] == provider_id)["bookedSlots"]


class TestProviderList:
    """Tests for the public provider endpoints."""

    def test_list_includes_booked_slots(self, client, create_provider, patient_token, book):
        provider = create_provider("Dr. A", 100)
        book(patient_token, provider["id"])

        response = client.get("/api/doctor/list")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert booked_slots(client, provider["id"]) == {SLOT_DATE: [SLOT_TIME]}

    def test_unknown_provider(self, client):
        assert client.get("/api/doctor/999").status_code == 404


class TestBookAppointment:
    """Tests for POST /api/user/book-appointment."""

    def test_books_unpaid_appointment(self, client, create_provider, patient_token, book):
        provider = create_provider("Dr. A", 100)

        response = book(patient_token, provider["id"])

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["amount"] == 100

        appointments = client.get("/api/user/appointments", headers=auth_headers(patient_token)).json()
        assert len(appointments) == 1
        appointment = appointments[0]
        assert appointment["paid"] is False
        assert appointment["cancelled"] is False
        assert appointment["completed"] is False
        assert appointment["providerIds"] == [provider["id"]]
        assert appointment["intakeForm"]["surname"] == "Lee"
        assert appointment["patient"]["email"] == "patient@example.com"

    def test_slot_time_is_normalised(self, client, create_provider, patient_token, book):
        provider = create_provider("Dr. A", 100)
        response = book(patient_token, provider["id"], slot_date="12/03/2025", slot_time="9:30 am")
        assert response.status_code == 200
        assert booked_slots(client, provider["id"]) == {"12/3/2025": ["09:30 AM"]}

    def test_taken_slot_is_conflict(self, create_provider, register_patient, book):
        provider = create_provider("Dr. A", 100)
        first = register_patient(email="first@example.com")
        second = register_patient(email="second@example.com")

        assert book(first, provider["id"]).status_code == 200
        response = book(second, provider["id"])

        assert response.status_code == 409
        assert response.json()["detail"] == "Slot not available"

    def test_multi_provider_is_all_or_nothing(self, client, create_provider, register_patient, book):
        a = create_provider("Dr. A", 100)
        b = create_provider("Dr. B", 150)
        first = register_patient(email="first@example.com")
        second = register_patient(email="second@example.com")
        book(first, b["id"])

        response = book(second, a["id"], additional=[b["id"]])

        assert response.status_code == 409
        assert booked_slots(client, a["id"]) == {}
        assert client.get("/api/user/appointments", headers=auth_headers(second)).json() == []

    def test_multi_provider_amount_and_slots(self, client, create_provider, patient_token, book):
        a = create_provider("Dr. A", 100)
        b = create_provider("Dr. B", 150)

        response = book(patient_token, a["id"], additional=[b["id"], a["id"]])

        assert response.status_code == 200
        assert response.json()["amount"] == 250
        assert booked_slots(client, a["id"]) == {SLOT_DATE: [SLOT_TIME]}
        assert booked_slots(client, b["id"]) == {SLOT_DATE: [SLOT_TIME]}
        appointment = client.get("/api/user/appointments", headers=auth_headers(patient_token)).json()[0]
        assert appointment["providerIds"] == [a["id"], b["id"]]
        assert [p["name"] for p in appointment["providers"]] == ["Dr. A", "Dr. B"]

    def test_missing_intake_fields_are_all_listed(self, create_provider, patient_token, book):
        provider = create_provider("Dr. A", 100)

        response = book(patient_token, provider["id"], intake={"surname": "Lee"})

        assert response.status_code == 400
        assert response.json()["detail"]["missing_fields"] == [
            "firstName",
            "dob",
            "healthCardNumber",
            "clinicalInformation",
        ]

    def test_unknown_intake_field_is_rejected(self, create_provider, patient_token, book):
        provider = create_provider("Dr. A", 100)
        response = book(patient_token, provider["id"], intake=complete_intake(nickname="Minnie"))
        assert response.status_code == 422

    def test_unavailable_provider(self, create_provider, patient_token, book):
        provider = create_provider("Dr. A", 100, available=False)
        response = book(patient_token, provider["id"])
        assert response.status_code == 400
        assert "Not available" in response.json()["detail"]

    def test_unknown_provider(self, patient_token, book):
        assert book(patient_token, 999).status_code == 404


class TestCancelAppointment:
    """Tests for POST /api/user/cancel-appointment."""

    def cancel(self, client, token, appointment_id):
        return client.post(
            "/api/user/cancel-appointment",
            json={"appointmentId": appointment_id},
            headers=auth_headers(token),
        )

    def test_releases_slot_for_every_provider(self, client, create_provider, patient_token, book):
        a = create_provider("Dr. A", 100)
        b = create_provider("Dr. B", 150)
        appointment_id = book(patient_token, a["id"], additional=[b["id"]]).json()["appointmentId"]

        response = self.cancel(client, patient_token, appointment_id)

        assert response.status_code == 200
        assert response.json()["cancelled"] is True
        assert response.json()["cancelledAt"] is not None
        assert booked_slots(client, a["id"]) == {}
        assert booked_slots(client, b["id"]) == {}

    def test_released_slot_can_be_booked_again(self, client, create_provider, register_patient, book):
        provider = create_provider("Dr. A", 100)
        first = register_patient(email="first@example.com")
        second = register_patient(email="second@example.com")
        appointment_id = book(first, provider["id"]).json()["appointmentId"]

        self.cancel(client, first, appointment_id)

        assert book(second, provider["id"]).status_code == 200

    def test_cancel_twice(self, client, create_provider, patient_token, book):
        provider = create_provider("Dr. A", 100)
        appointment_id = book(patient_token, provider["id"]).json()["appointmentId"]

        self.cancel(client, patient_token, appointment_id)
        response = self.cancel(client, patient_token, appointment_id)

        assert response.status_code == 400

    def test_other_patients_appointment(self, client, create_provider, register_patient, book):
        provider = create_provider("Dr. A", 100)
        owner = register_patient(email="owner@example.com")
        other = register_patient(email="other@example.com")
        appointment_id = book(owner, provider["id"]).json()["appointmentId"]

        assert self.cancel(client, other, appointment_id).status_code == 404

    def test_payment_status(self, client, create_provider, patient_token, book):
        provider = create_provider("Dr. A", 100)
        appointment_id = book(patient_token, provider["id"]).json()["appointmentId"]

        response = client.get(
            f"/api/user/payment-status/{appointment_id}", headers=auth_headers(patient_token)
        )

        assert response.status_code == 200
        assert response.json()["paid"] is False
        assert response.json()["amount"] == 100
