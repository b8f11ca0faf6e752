"""MRI referral (intake) form shared by the booking API and the booking client"""

from .schemas import ExamAreas, IntakeForm, ScreeningAnswers

__all__ = ["IntakeForm", "ScreeningAnswers", "ExamAreas"]
