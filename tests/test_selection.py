"""Tests for the provider selection set."""

from mribook.booking.selection import ProviderInfo, ProviderSelection


def provider(provider_id, fee, available=True, booked=None):
    return ProviderInfo(
        id=provider_id,
        name=f"Dr. {chr(64 + provider_id)}",
        fee=fee,
        available=available,
        booked_slots=booked or {},
    )


class TestProviderSelection:
    """Tests for adding, removing and pricing selected providers."""

    def test_primary_is_first_member(self):
        selection = ProviderSelection(provider(1, 100))
        assert selection.primary.id == 1
        assert selection.ids == [1]
        assert len(selection) == 1

    def test_total_fee_sums_members(self):
        selection = ProviderSelection(provider(1, 100))
        assert selection.add(provider(2, 150))
        assert selection.add(provider(3, 75.5))
        assert selection.total_fee() == 325.5

    def test_duplicate_add_is_rejected_with_notice(self):
        selection = ProviderSelection(provider(1, 100))
        selection.add(provider(2, 150))

        assert selection.add(provider(2, 150)) is False
        assert selection.ids == [1, 2]
        assert "already selected" in selection.notices[-1]

    def test_unavailable_provider_is_not_added(self):
        selection = ProviderSelection(provider(1, 100))
        assert selection.add(provider(2, 150, available=False)) is False
        assert 2 not in selection
        assert "not available" in selection.notices[-1]

    def test_primary_cannot_be_removed(self):
        selection = ProviderSelection(provider(1, 100))
        selection.add(provider(2, 150))

        assert selection.remove(1) is False
        assert selection.ids == [1, 2]
        assert "cannot be removed" in selection.notices[-1]

    def test_removing_secondary_updates_total(self):
        selection = ProviderSelection(provider(1, 100))
        selection.add(provider(2, 150))
        selection.add(provider(3, 50))

        assert selection.remove(2) is True
        assert selection.ids == [1, 3]
        assert selection.total_fee() == 150

    def test_refresh_replaces_members_by_id(self):
        selection = ProviderSelection(provider(1, 100))
        selection.add(provider(2, 150))

        selection.refresh([provider(2, 150, available=False, booked={"1/1/2025": ["09:00 AM"]})])

        assert selection.members[1].booked_slots == {"1/1/2025": ["09:00 AM"]}
        assert [p.id for p in selection.unavailable()] == [2]
        assert selection.members[0].available is True


def test_provider_info_from_api():
    info = ProviderInfo.from_api(
        {"id": 4, "name": "Dr. D", "fee": "120", "available": True, "bookedSlots": {"2/2/2025": ["10:00 AM"]}}
    )
    assert info.fee == 120.0
    assert info.speciality == ""
    assert info.booked_slots == {"2/2/2025": ["10:00 AM"]}
