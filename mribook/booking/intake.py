"""Intake form state held while the patient fills in the MRI referral"""

from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..domain.intake.schemas import IntakeForm
from .errors import ValidationError

FIELD_LABELS = {
    "surname": "Surname",
    "firstName": "First name",
    "dob": "Date of birth",
    "healthCardNumber": "Health card number",
    "clinicalInformation": "Clinical information",
}


class IntakeFormState:
    """
    Mutable wrapper over IntakeForm.

    update() takes a field name or a "section.field" path such as
    "screeningQuestions.pregnancy" or "examAreaSelections.head". Unknown fields
    and values outside a field's choices raise ValidationError.
    """

    def __init__(self, form: IntakeForm = None):
        self.form = form or IntakeForm()

    def update(self, path: str, value: Any) -> None:
        section_name, _, field_name = path.partition(".")
        target: BaseModel = self.form
        name = section_name

        if field_name:
            target = getattr(self.form, section_name, None)
            if not isinstance(target, BaseModel) or section_name not in IntakeForm.model_fields:
                raise ValidationError(f"Unknown form section: {section_name}", fields=[path])
            name = field_name

        if name not in type(target).model_fields:
            raise ValidationError(f"Unknown form field: {path}", fields=[path])

        # Empty strings clear single choice fields (priority, redirectTo, sex ...)
        if value == "" and type(target).model_fields[name].default is None:
            value = None

        try:
            setattr(target, name, value)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid value for {path}: {value!r}", fields=[path]) from e

    def missing_fields(self) -> list[str]:
        return self.form.missing_required_fields()

    def validate_for_submission(self) -> IntakeForm:
        """Raise ValidationError listing every missing required field"""
        missing = self.missing_fields()
        if missing:
            labels = ", ".join(FIELD_LABELS.get(name, name) for name in missing)
            raise ValidationError(f"Please fill in: {labels}", fields=missing)
        return self.form

    def payload(self) -> dict:
        """Form data exactly as sent with the booking request"""
        return self.form.model_dump()
