"""Tests for the intake form state."""

import pytest

from mribook.booking.errors import ValidationError
from mribook.booking.intake import IntakeFormState
from mribook.domain.intake.schemas import IntakeForm
from tests.conftest import complete_intake


class TestValidateForSubmission:
    """Tests for required field checks."""

    def test_lists_every_missing_required_field(self):
        state = IntakeFormState()

        with pytest.raises(ValidationError) as exc_info:
            state.validate_for_submission()

        assert exc_info.value.fields == [
            "surname",
            "firstName",
            "dob",
            "healthCardNumber",
            "clinicalInformation",
        ]
        assert "Surname" in exc_info.value.message
        assert "Clinical information" in exc_info.value.message

    def test_whitespace_counts_as_missing(self):
        state = IntakeFormState(IntakeForm(**complete_intake(surname="   ")))
        with pytest.raises(ValidationError) as exc_info:
            state.validate_for_submission()
        assert exc_info.value.fields == ["surname"]

    def test_complete_form_passes(self):
        state = IntakeFormState(IntakeForm(**complete_intake()))
        assert state.validate_for_submission().surname == "Lee"
        assert state.missing_fields() == []


class TestUpdate:
    """Tests for editing fields by name or section path."""

    def test_top_level_field(self):
        state = IntakeFormState()
        state.update("surname", "Lee")
        assert state.form.surname == "Lee"

    def test_nested_screening_answer(self):
        state = IntakeFormState()
        state.update("screeningQuestions.pregnancy", "NO")
        state.update("examAreaSelections.head", True)
        assert state.form.screeningQuestions.pregnancy == "NO"
        assert state.form.examAreaSelections.head is True

    def test_choosing_priority_replaces_previous_choice(self):
        state = IntakeFormState()
        state.update("priority", "ELECTIVE")
        state.update("priority", "INPATIENT")
        assert state.form.priority == "INPATIENT"

    def test_empty_string_clears_choice(self):
        state = IntakeFormState()
        state.update("redirectTo", "THC")
        state.update("redirectTo", "")
        assert state.form.redirectTo is None

    def test_value_outside_choices_is_rejected(self):
        state = IntakeFormState()
        with pytest.raises(ValidationError) as exc_info:
            state.update("screeningQuestions.pregnancy", "MAYBE")
        assert exc_info.value.fields == ["screeningQuestions.pregnancy"]
        assert state.form.screeningQuestions.pregnancy is None

    @pytest.mark.parametrize("path", ["nickname", "screeningQuestions.favouriteColour", "surname.first"])
    def test_unknown_fields_are_rejected(self, path):
        with pytest.raises(ValidationError):
            IntakeFormState().update(path, "x")


def test_payload_contains_nested_sections():
    state = IntakeFormState(IntakeForm(**complete_intake()))
    state.update("examAreaSelections.spine", True)

    payload = state.payload()

    assert payload["surname"] == "Lee"
    assert payload["examAreaSelections"]["spine"] is True
    assert payload["screeningQuestions"]["tattoo"] is None
    assert IntakeForm(**payload) == state.form
