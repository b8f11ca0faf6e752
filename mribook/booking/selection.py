"""Providers chosen for one booking session"""

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class ProviderInfo:
    """Client-side view of a provider as returned by /api/doctor/list"""

    id: int
    name: str
    fee: float
    available: bool = True
    speciality: str = ""
    booked_slots: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict) -> "ProviderInfo":
        return cls(
            id=data["id"],
            name=data["name"],
            fee=float(data["fee"]),
            available=bool(data.get("available", True)),
            speciality=data.get("speciality") or "",
            booked_slots={k: list(v) for k, v in (data.get("bookedSlots") or {}).items()},
        )


class ProviderSelection:
    """
    Ordered set of providers for one booking. The first member is the primary
    provider the patient navigated from and can never be removed. Rejected
    changes are reported through `notices` instead of raising.
    """

    def __init__(self, primary: ProviderInfo):
        self._members: list[ProviderInfo] = [primary]
        self.notices: list[str] = []

    @property
    def primary(self) -> ProviderInfo:
        return self._members[0]

    @property
    def members(self) -> list[ProviderInfo]:
        return list(self._members)

    @property
    def ids(self) -> list[int]:
        return [p.id for p in self._members]

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, provider_id: int) -> bool:
        return provider_id in self.ids

    def _notice(self, message: str) -> bool:
        self.notices.append(message)
        logger.info(f"ℹ️ {message}")
        return False

    def add(self, provider: ProviderInfo) -> bool:
        """Add a provider; returns False (with a notice) for duplicates or unavailable providers"""
        if provider.id in self:
            return self._notice(f"{provider.name} is already selected")
        if not provider.available:
            return self._notice(f"{provider.name} is not available")
        self._members.append(provider)
        return True

    def remove(self, provider_id: int) -> bool:
        """Remove a secondary provider; the primary is refused with a notice"""
        if provider_id == self.primary.id:
            return self._notice(f"{self.primary.name} is the main service and cannot be removed")
        for index, provider in enumerate(self._members):
            if provider.id == provider_id:
                del self._members[index]
                return True
        return self._notice(f"Provider {provider_id} is not selected")

    def refresh(self, providers: list[ProviderInfo]) -> None:
        """Replace members with fresher copies (availability, booked slots) by id"""
        latest = {p.id: p for p in providers}
        self._members = [latest.get(p.id, p) for p in self._members]

    def total_fee(self) -> float:
        return sum(p.fee for p in self._members)

    def unavailable(self) -> list[ProviderInfo]:
        return [p for p in self._members if not p.available]
