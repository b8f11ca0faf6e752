"""Tests for the admin routes."""

from tests.conftest import auth_headers


class TestProviderManagement:
    """Tests for creating, toggling and deleting providers."""

    def test_add_provider_with_image(self, client, admin_token, image_store):
        response = client.post(
            "/api/admin/add-doctor",
            data={"name": "  Dr. A  ", "fee": "100", "speciality": "Radiology", "about": "Head MRI"},
            files={"image": ("a.png", b"\x89PNG fake", "image/png")},
            headers=auth_headers(admin_token),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Dr. A"
        assert data["available"] is True
        assert data["image"] == "providers/test-1.png"
        assert image_store.uploads == ["providers/test-1.png"]

    def test_duplicate_name(self, client, admin_token, create_provider):
        create_provider("Dr. A", 100)
        response = client.post(
            "/api/admin/add-doctor", data={"name": "Dr. A", "fee": "80"}, headers=auth_headers(admin_token)
        )
        assert response.status_code == 409

    def test_fee_must_be_positive(self, client, admin_token):
        response = client.post(
            "/api/admin/add-doctor", data={"name": "Dr. Z", "fee": "0"}, headers=auth_headers(admin_token)
        )
        assert response.status_code == 400
        assert "greater than 0" in response.json()["detail"]

    def test_toggle_availability(self, client, admin_token, create_provider):
        provider = create_provider("Dr. A", 100)
        headers = auth_headers(admin_token)

        first = client.post("/api/admin/change-availability", json={"providerId": provider["id"]}, headers=headers)
        second = client.post("/api/admin/change-availability", json={"providerId": provider["id"]}, headers=headers)

        assert first.json()["available"] is False
        assert second.json()["available"] is True

    def test_delete_unused_provider(self, client, admin_token, create_provider):
        provider = create_provider("Dr. A", 100)

        response = client.delete(f"/api/admin/doctor/{provider['id']}", headers=auth_headers(admin_token))

        assert response.status_code == 200
        assert client.get("/api/admin/all-doctors", headers=auth_headers(admin_token)).json() == []

    def test_delete_blocked_by_secondary_reference(
        self, client, admin_token, create_provider, patient_token, book
    ):
        a = create_provider("Dr. A", 100)
        b = create_provider("Dr. B", 150)
        book(patient_token, a["id"], additional=[b["id"]])
        book(patient_token, b["id"], slot_time="11:00 AM")

        response = client.delete(f"/api/admin/doctor/{b['id']}", headers=auth_headers(admin_token))

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["active_appointments"] == 2
        assert detail["message"] == "Cannot delete service. There are 2 active appointment(s) scheduled."

    def test_delete_allowed_after_cancellation(
        self, client, admin_token, create_provider, patient_token, book
    ):
        provider = create_provider("Dr. A", 100)
        appointment_id = book(patient_token, provider["id"]).json()["appointmentId"]
        client.post(
            "/api/admin/cancel-appointment",
            json={"appointmentId": appointment_id},
            headers=auth_headers(admin_token),
        )

        response = client.delete(f"/api/admin/doctor/{provider['id']}", headers=auth_headers(admin_token))

        assert response.status_code == 200
        history = client.get("/api/admin/appointments", headers=auth_headers(admin_token)).json()
        assert history[0]["providers"][0]["name"] == "Dr. A"
        assert history[0]["providerIds"] == []


class TestAppointmentManagement:
    """Tests for admin appointment actions and the dashboard."""

    def test_cancel_releases_every_provider(self, client, admin_token, create_provider, patient_token, book):
        a = create_provider("Dr. A", 100)
        b = create_provider("Dr. B", 150)
        appointment_id = book(patient_token, a["id"], additional=[b["id"]]).json()["appointmentId"]

        response = client.post(
            "/api/admin/cancel-appointment",
            json={"appointmentId": appointment_id},
            headers=auth_headers(admin_token),
        )

        assert response.status_code == 200
        assert all(p["bookedSlots"] == {} for p in client.get("/api/doctor/list").json()["doctors"])

    def test_complete(self, client, admin_token, create_provider, patient_token, book):
        provider = create_provider("Dr. A", 100)
        appointment_id = book(patient_token, provider["id"]).json()["appointmentId"]

        response = client.post(
            "/api/admin/complete-appointment",
            json={"appointmentId": appointment_id},
            headers=auth_headers(admin_token),
        )

        assert response.status_code == 200
        assert response.json()["completed"] is True

    def test_cancelled_cannot_be_completed(self, client, admin_token, create_provider, patient_token, book):
        provider = create_provider("Dr. A", 100)
        appointment_id = book(patient_token, provider["id"]).json()["appointmentId"]
        headers = auth_headers(admin_token)
        client.post("/api/admin/cancel-appointment", json={"appointmentId": appointment_id}, headers=headers)

        response = client.post(
            "/api/admin/complete-appointment", json={"appointmentId": appointment_id}, headers=headers
        )

        assert response.status_code == 400

    def test_dashboard_counts(self, client, admin_token, create_provider, register_patient, book):
        provider = create_provider("Dr. A", 100)
        create_provider("Dr. B", 150)
        first = register_patient(email="first@example.com")
        second = register_patient(email="second@example.com")
        for hour in ("09:00 AM", "10:00 AM", "11:00 AM"):
            book(first, provider["id"], slot_time=hour)
        book(second, provider["id"], slot_time="12:00 PM")

        response = client.get("/api/admin/dashboard", headers=auth_headers(admin_token))

        data = response.json()
        assert data["doctors"] == 2
        assert data["appointments"] == 4
        assert data["patients"] == 2
        assert len(data["latestAppointments"]) == 4
        assert data["latestAppointments"][0]["slotTime"] == "12:00 PM"
