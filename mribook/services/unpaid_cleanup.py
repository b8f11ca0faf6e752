"""
Cancellation of abandoned unpaid appointments
An appointment whose checkout was never completed keeps its slots reserved until
this job cancels it. Once both the booking and its most recent checkout session
are older than the session lifetime plus a grace period, the appointment is
cancelled and every provider slot it held is released.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..config import PAYMENT_SESSION_TTL_MINUTES, UNPAID_GRACE_MINUTES
from ..domain.appointments.repository import AppointmentRepository
from ..domain.appointments.service import AppointmentService

logger = logging.getLogger(__name__)


def unpaid_cutoff(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.utcnow()
    return now - timedelta(minutes=PAYMENT_SESSION_TTL_MINUTES + UNPAID_GRACE_MINUTES)


def cancel_stale_unpaid_appointments(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Cancel unpaid appointments whose payment window has passed.
    Should be run periodically (see run_unpaid_cleanup.py).

    Returns:
        dict: Summary of the run
    """
    summary = {"checked": 0, "cancelled": 0, "released_slots": 0}

    cutoff = unpaid_cutoff(now)
    stale = AppointmentRepository.get_stale_unpaid(db, cutoff)
    summary["checked"] = len(stale)

    service = AppointmentService(db)
    for appointment in stale:
        try:
            summary["released_slots"] += service.release_and_cancel(appointment)
            summary["cancelled"] += 1
        except Exception as e:
            db.rollback()
            logger.error(f"❌ Failed to cancel unpaid appointment {appointment.id}: {e}")

    if summary["cancelled"]:
        logger.info(
            f"🧹 Cancelled {summary['cancelled']} unpaid appointment(s), "
            f"released {summary['released_slots']} slot(s)"
        )
    return summary
