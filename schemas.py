## Pydantic models for patient input and treatment plan output
from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field, StrictStr, ValidationError, conint
)

import config_master as config


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class Symptoms(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    bleeding_gums: bool = Field(False, alias="bleedingGums")
    tooth_mobility: bool = Field(False, alias="toothMobility")
    halitosis: bool = False
    sensitivity: bool = False
    pain: bool = False

    def active_labels(self) -> List[str]:
        """Display names of the flags that are set, in declaration order."""
        flags = self.model_dump(by_alias=True)
        return [label for key, label in config.SYMPTOM_LABELS.items() if flags.get(key)]


class PeriodontalFindings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    probing_depths: str = Field("", alias="probingDepths")
    gingival_recession: str = Field("", alias="gingivalRecession")
    mobility_grade: str = Field("", alias="mobilityGrade")
    radiographic_bone_loss: str = Field("", alias="radiographicBoneLoss")


class PatientData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    patient_name: str = Field(
        validation_alias=AliasChoices("patientName", "name", "patient_name"),
        serialization_alias="patientName",
    )
    age: conint(ge=1, le=120)
    gender: Gender
    medical_history: str = Field("", alias="medicalHistory")
    dental_history: str = Field("", alias="dentalHistory")
    symptoms: Symptoms = Field(default_factory=Symptoms)
    periodontal_findings: PeriodontalFindings = Field(
        default_factory=PeriodontalFindings, alias="periodontalFindings"
    )


class TreatmentPlan(BaseModel):
    """
    Six flat, non-empty strings. No coercion from other JSON types, and only
    the camelCase JSON keys are accepted.
    """

    diagnosis: StrictStr = Field(min_length=1)
    prognosis: StrictStr = Field(min_length=1)
    phase_i: StrictStr = Field(min_length=1, alias="phaseI")
    phase_ii: StrictStr = Field(min_length=1, alias="phaseII")
    maintenance: StrictStr = Field(min_length=1)
    additional_recommendations: StrictStr = Field(min_length=1, alias="additionalRecommendations")

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


def format_violations(err: ValidationError) -> List[str]:
    violations = []
    for item in err.errors():
        field = ".".join(str(part) for part in item["loc"]) or "plan"
        violations.append(f"{field}: {item['msg']}")
    return violations


def validate_plan(candidate: Any) -> Tuple[Optional[TreatmentPlan], List[str]]:
    """
    Structural check of a candidate plan against the six-field string schema.
    Returns (plan, []) on success or (None, violations) on failure.
    """
    if not isinstance(candidate, dict):
        return None, [f"plan: expected a JSON object, got {type(candidate).__name__}"]
    try:
        return TreatmentPlan.model_validate(candidate), []
    except ValidationError as e:
        return None, format_violations(e)
