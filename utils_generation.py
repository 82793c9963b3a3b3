import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Union

from groq import Groq, GroqError

import config_master as config
from schemas import PatientData, TreatmentPlan, validate_plan
from utils_normalization import coerce_plan, extract_json_object, parse_model_content

logger = logging.getLogger(__name__)


# Model round results

@dataclass(frozen=True)
class Ok:
    plan: TreatmentPlan


@dataclass(frozen=True)
class Malformed:
    raw: Any


@dataclass(frozen=True)
class TransportError:
    cause: Exception


ModelResult = Union[Ok, Malformed, TransportError]


class Stage(str, Enum):
    STRICT = "strict"
    LENIENT = "lenient"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class GenerationResult:
    plan: TreatmentPlan
    source: Stage


#  Prompt Builder

def active_symptom_labels(patient: PatientData) -> List[str]:
    return patient.symptoms.active_labels()


def build_prompt(patient: PatientData, symptoms: List[str]) -> str:
    """Renders the patient record into the instruction block sent as the user message."""
    findings = patient.periodontal_findings
    return config.PLAN_PROMPT_TEMPLATE.format(
        patient_name=patient.patient_name,
        age=patient.age,
        gender=patient.gender.value,
        medical_history=patient.medical_history,
        dental_history=patient.dental_history,
        symptoms=", ".join(symptoms) if symptoms else "None reported",
        probing_depths=findings.probing_depths,
        gingival_recession=findings.gingival_recession,
        mobility_grade=findings.mobility_grade,
        radiographic_bone_loss=findings.radiographic_bone_loss,
    )


#  Groq Helper Functions

def get_groq_client(api_key: str) -> Groq:
    return Groq(api_key=api_key)


def clean_llm_output(raw_text: str) -> str:
    """Strips the <think>...</think> block from the start of an LLM response."""
    match = re.search(r'</think>(.*)', raw_text, re.DOTALL | re.IGNORECASE)
    if match:
        return match.group(1).strip()
    return raw_text.strip()


def request_completion(client: Groq, system_prompt: str, user_prompt: str, json_mode: bool) -> str:
    """Sends one non-streaming chat request and returns the cleaned reply text."""
    request = dict(
        model=config.MODEL_ID,
        temperature=config.TEMPERATURE,
        max_tokens=config.MAX_TOKENS,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
    )
    if json_mode:
        request["response_format"] = {"type": "json_object"}

    chat_completion = client.chat.completions.create(**request)
    return clean_llm_output(chat_completion.choices[0].message.content or "")


#  Plan recovery

def recover_plan(candidate: Any) -> ModelResult:
    """Validates a parsed reply, coercing nested values into strings when needed."""
    plan, violations = validate_plan(candidate)
    if plan is not None:
        return Ok(plan)

    logger.info("Plan failed validation (%s), attempting coercion", "; ".join(violations))
    coerced = coerce_plan(candidate)
    if coerced is not None:
        plan, violations = validate_plan(coerced)
        if plan is not None:
            logger.info("Coerced plan passed validation")
            return Ok(plan)
        logger.info("Coerced plan still invalid: %s", "; ".join(violations))
    return Malformed(candidate)


def run_stage(stage: Stage, client: Groq, prompt: str) -> ModelResult:
    strict = stage is Stage.STRICT
    system_prompt = config.STRICT_SYSTEM_PROMPT if strict else config.LENIENT_SYSTEM_PROMPT

    logger.info("Calling Groq (%s mode, model=%s)", stage.value, config.MODEL_ID)
    try:
        content = request_completion(client, system_prompt, prompt, json_mode=strict)
    except GroqError as e:
        logger.warning("Groq API error in %s mode: %s", stage.value, e)
        return TransportError(e)
    except Exception as e:
        logger.warning("Unexpected error calling Groq in %s mode: %s", stage.value, e)
        return TransportError(e)

    logger.info("Groq %s reply length: %d", stage.value, len(content))
    parsed = parse_model_content(content)
    if parsed is None and not strict:
        logger.info("Reply is not plain JSON, extracting object from text")
        parsed = extract_json_object(content)
    if parsed is None:
        return Malformed(content)
    return recover_plan(parsed)


def next_stage(stage: Stage, result: ModelResult) -> Stage:
    """Transport errors go straight to the fallback; a malformed strict reply earns one lenient retry."""
    if isinstance(result, TransportError):
        return Stage.FALLBACK
    if stage is Stage.STRICT:
        return Stage.LENIENT
    return Stage.FALLBACK


#  Fallback plan

def has_deep_pockets(patient: PatientData) -> bool:
    depths = patient.periodontal_findings.probing_depths
    return any(marker in depths for marker in config.DEEP_POCKET_MARKERS)


def build_fallback_plan(patient: PatientData) -> TreatmentPlan:
    """Rule-templated plan built without any model call."""
    deep_pockets = has_deep_pockets(patient)
    framing = "Aggressive" if patient.age < config.AGGRESSIVE_AGE_THRESHOLD else "Chronic"
    return TreatmentPlan.model_validate({
        "diagnosis": config.FALLBACK_DIAGNOSIS.format(patient_name=patient.patient_name, framing=framing),
        "prognosis": config.FALLBACK_PROGNOSIS_DEEP if deep_pockets else config.FALLBACK_PROGNOSIS_SHALLOW,
        "phaseI": config.FALLBACK_PHASE_I,
        "phaseII": config.FALLBACK_PHASE_II_SURGICAL if deep_pockets else config.FALLBACK_PHASE_II_NOT_INDICATED,
        "maintenance": config.FALLBACK_MAINTENANCE,
        "additionalRecommendations": config.FALLBACK_ADDITIONAL,
    })


def generate_treatment_plan(patient: PatientData, client: Groq) -> GenerationResult:
    """
    Strict JSON-mode call, then one lenient retry, then the rule-based fallback.
    Model and parsing failures are absorbed; only errors raised while building
    the prompt reach the caller.
    """
    symptoms = active_symptom_labels(patient)
    logger.info("Active symptoms: %s", symptoms)
    prompt = build_prompt(patient, symptoms)
    logger.info("Generated prompt length: %d", len(prompt))

    stage = Stage.STRICT
    while stage is not Stage.FALLBACK:
        result = run_stage(stage, client, prompt)
        if isinstance(result, Ok):
            logger.info("Returning Groq plan from %s mode", stage.value)
            return GenerationResult(plan=result.plan, source=stage)
        stage = next_stage(stage, result)
        logger.info("Moving to %s stage", stage.value)

    logger.info("Using fallback plan generation")
    return GenerationResult(plan=build_fallback_plan(patient), source=Stage.FALLBACK)
