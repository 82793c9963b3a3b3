import json
from types import SimpleNamespace

import pytest

from schemas import PatientData


class FakeGroqClient:
    """Stands in for groq.Groq: replays canned replies, or raises them if they are exceptions."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def fake_client():
    return FakeGroqClient


@pytest.fixture
def patient_payload():
    return {
        "patientName": "Jane Doe",
        "age": 50,
        "gender": "female",
        "medicalHistory": "Type II diabetes, hypertension",
        "dentalHistory": "Irregular dental visits, last cleaning 3 years ago",
        "symptoms": {
            "bleedingGums": True,
            "toothMobility": False,
            "halitosis": True,
            "sensitivity": False,
            "pain": True,
        },
        "periodontalFindings": {
            "probingDepths": "Generalized 4-6mm, localized 7mm on #36",
            "gingivalRecession": "2-3mm on lower anteriors",
            "mobilityGrade": "Grade I on #31, #41",
            "radiographicBoneLoss": "Horizontal bone loss 30%",
        },
    }


@pytest.fixture
def patient(patient_payload):
    return PatientData.model_validate(patient_payload)


@pytest.fixture
def plan_payload():
    return {
        "diagnosis": "Chronic Periodontitis, Moderate severity, Generalized.",
        "prognosis": "Fair overall prognosis.",
        "phaseI": "1. Scaling and root planing\n2. Oral hygiene instruction",
        "phaseII": "Not indicated at this time.",
        "maintenance": "1. Recall every 3 months",
        "additionalRecommendations": "• Smoking cessation\n• Glycemic control",
    }


@pytest.fixture
def plan_json(plan_payload):
    return json.dumps(plan_payload)
