"""MRI referral (intake) form schemas - Pydantic models for validation"""

from typing import ClassVar, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

YesNoUnknown = Literal["YES", "NO", "UNKNOWN"]

Priority = Literal[
    "URGENT (WITHIN 1 WK)",
    "SEMI-URGENT (2-8 WKS)",
    "INPATIENT",
    "ELECTIVE",
    "NON-RES",
    "DIALYSIS PATIENT",
]

RedirectDestination = Literal["THC", "HHS Oakville", "Any if waitlist is shorter"]


class ScreeningAnswers(BaseModel):
    """Implant, metal and pregnancy safety screening"""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    previousMri: Optional[YesNoUnknown] = None
    metalGrinder: Optional[YesNoUnknown] = None
    eyeInjury: Optional[YesNoUnknown] = None
    pregnancy: Optional[YesNoUnknown] = None
    claustrophobic: Optional[YesNoUnknown] = None
    cardiacPacemaker: Optional[YesNoUnknown] = None
    cochlearImplants: Optional[YesNoUnknown] = None
    eyeSurgery: Optional[YesNoUnknown] = None
    cerebralAneurysm: Optional[YesNoUnknown] = None
    heartValve: Optional[YesNoUnknown] = None
    shrapnel: Optional[YesNoUnknown] = None
    jointReplacement: Optional[YesNoUnknown] = None
    intravascular: Optional[YesNoUnknown] = None
    surgicalClips: Optional[YesNoUnknown] = None
    tissueExpander: Optional[YesNoUnknown] = None
    implantedDevices: Optional[YesNoUnknown] = None
    vascularAccess: Optional[YesNoUnknown] = None
    iudDiaphragm: Optional[YesNoUnknown] = None
    painPump: Optional[YesNoUnknown] = None
    medicationPatch: Optional[YesNoUnknown] = None
    penileProsthesis: Optional[YesNoUnknown] = None
    hearingAid: Optional[YesNoUnknown] = None
    piercings: Optional[YesNoUnknown] = None
    tattoo: Optional[YesNoUnknown] = None
    dentures: Optional[YesNoUnknown] = None


class ExamAreas(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    head: bool = False
    neck: bool = False
    spine: bool = False
    chest: bool = False
    abdomen: bool = False
    extremity: bool = False


class IntakeForm(BaseModel):
    """
    MRI referral form attached to every appointment.

    Unknown fields are rejected. Single choice groups (priority, redirectTo) are one
    nullable field each, so choosing a value replaces the previous choice.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = (
        "surname",
        "firstName",
        "dob",
        "healthCardNumber",
        "clinicalInformation",
    )

    # Patient information
    surname: str = ""
    firstName: str = ""
    street: str = ""
    aptNumber: str = ""
    city: str = ""
    postalCode: str = ""
    phoneHome: str = ""
    phoneWork: str = ""
    dob: str = ""
    sex: Optional[Literal["M", "F"]] = None
    healthCardNumber: str = ""
    isWsibClaim: Optional[Literal["YES", "NO"]] = None
    claimNumber: str = ""

    # Clinical
    priority: Optional[Priority] = None
    areaToBeExamined: str = ""
    clinicalInformation: str = ""
    workingDiagnosis: str = ""
    redirectTo: Optional[RedirectDestination] = None
    patientWeight: str = ""
    surgicalHistory: str = ""

    screeningQuestions: ScreeningAnswers = Field(default_factory=ScreeningAnswers)
    examAreaSelections: ExamAreas = Field(default_factory=ExamAreas)

    patientSignature: str = ""
    technologist: str = ""

    # Referring physician
    referringPhysicianAddress: str = ""
    referringPhysicianPostalCode: str = ""
    referringPhysicianPhone: str = ""
    referringPhysicianFax: str = ""
    copiesTo: str = ""

    # Prior imaging
    mri: str = ""
    ctAngio: str = ""
    xray: str = ""
    us: str = ""

    def missing_required_fields(self) -> list[str]:
        """Every required field that is empty or whitespace, in form order"""
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name).strip()]
