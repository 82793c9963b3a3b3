import os

# Server
PORT = int(os.getenv("PORT", 7860))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Groq model settings
API_KEY_ENV = "GROQ_API_KEY"
MODEL_ID = os.getenv("GROQ_MODEL", "llama-3.1-8b-instant")
TEMPERATURE = 0.2
MAX_TOKENS = 2800

# Treatment plan schema (JSON keys, in document order)
PLAN_FIELDS = (
    'diagnosis', 'prognosis', 'phaseI', 'phaseII',
    'maintenance', 'additionalRecommendations'
)

SYMPTOM_LABELS = {
    'bleedingGums': 'Bleeding Gums',
    'toothMobility': 'Tooth Mobility',
    'halitosis': 'Halitosis',
    'sensitivity': 'Sensitivity',
    'pain': 'Pain',
}

# Age below which the fallback plan frames the case as aggressive periodontitis
AGGRESSIVE_AGE_THRESHOLD = 35
# Any of these digits in the probing-depth notes is read as a >= 7mm pocket
DEEP_POCKET_MARKERS = ('7', '8')

STRICT_SYSTEM_PROMPT = (
    "You are a periodontal specialist AI that ALWAYS replies with a single valid JSON object only. "
    "Every value must be a flat string, never a nested object or array. No prose. No code fences."
)

LENIENT_SYSTEM_PROMPT = (
    "You are a periodontal specialist AI. Output ONLY a JSON object matching keys: "
    "diagnosis, prognosis, phaseI, phaseII, maintenance, additionalRecommendations. "
    "No explanations. No code fences."
)

PLAN_PROMPT_TEMPLATE = """You are a periodontal specialist AI assistant. Generate a comprehensive, highly detailed treatment plan based on the following patient information. The content must be practical and clinically actionable.

PATIENT INFORMATION:
- Name: {patient_name}
- Age: {age} years
- Gender: {gender}
- Medical History: {medical_history}
- Dental History: {dental_history}
- Symptoms: {symptoms}
- Probing Depths: {probing_depths}
- Gingival Recession: {gingival_recession}
- Mobility Grade: {mobility_grade}
- Radiographic Bone Loss: {radiographic_bone_loss}

Return a strict JSON object with these fields only: {{
  "diagnosis": string,
  "prognosis": string,
  "phaseI": string,
  "phaseII": string,
  "maintenance": string,
  "additionalRecommendations": string
}}

IMPORTANT FORMATTING REQUIREMENTS:
- Each field must be a single, well-formatted string (NOT nested objects or arrays)
- Use bullet points (•) and numbered lists (1., 2., etc.) for organization
- Use line breaks (\\n) to separate sections
- Keep professional medical language but make it readable
- Format like a clinical treatment plan document

Example format for diagnosis:
"Chronic Periodontitis, Moderate severity, Generalized distribution with localized deep pockets. Contributing factors: Type II diabetes, hypertension, poor oral hygiene. Clinical findings support diagnosis based on 4-6mm generalized pockets, localized 7mm pockets, gingival recession, and radiographic bone loss."

Example format for phaseI:
"1. Quadrant-based scaling and root planing (SRP)
   • Upper right quadrant first
   • Local anesthesia: 2% lidocaine with epinephrine
   • Ultrasonic scalers followed by hand instruments
2. Adjunctive antimicrobial therapy
   • Chlorhexidine 0.12% mouthwash BID for 14 days
   • Site-specific minocycline microspheres for deep pockets
3. Home care instruction
   • Electric toothbrush with soft bristles
   • Interdental cleaning with brushes size 00
4. Re-evaluation in 6-8 weeks"

Guidance for content depth:
- Diagnosis: Include classification, severity, distribution, risk factors, and clinical rationale
- Prognosis: State overall and tooth-specific prognosis with the factors that drive it
- Phase I: Provide step-by-step protocol with specific procedures, medications, and timelines
- Phase II: Specify surgical indications or state "Not indicated at this time"
- Maintenance: Include recall intervals, procedures, and criteria for adjustments
- Additional Recommendations: Cover lifestyle modifications, risk management, and patient education

Return ONLY the JSON object with properly formatted strings. No explanations outside the JSON."""

# Fallback plan templates (used when the model cannot produce a valid plan)
FALLBACK_DIAGNOSIS = "Based on the provided findings, {patient_name} presents with {framing} Periodontitis of moderate severity."

FALLBACK_PROGNOSIS_DEEP = "Fair overall prognosis. Sites with residual pockets of 7mm or more carry a questionable prognosis pending Phase I re-evaluation."
FALLBACK_PROGNOSIS_SHALLOW = "Good overall prognosis provided plaque control and systemic risk factors are managed."

FALLBACK_PHASE_I = """1. Quadrant-based scaling and root planing (SRP)
2. Customized oral hygiene instruction (modified Bass technique, interdental cleaning)
3. Antimicrobial rinse: 0.12% chlorhexidine BID for 14 days
4. Risk factor counseling (smoking, glycemic control as applicable)
5. Re-evaluation in 6–8 weeks"""

FALLBACK_PHASE_II_SURGICAL = """Surgical intervention may be indicated based on re-evaluation:
1. Open flap debridement for residual deep pockets
2. Regenerative procedures where indicated (GTR, bone graft)
3. Consider crown lengthening where restorative needs dictate"""

FALLBACK_PHASE_II_NOT_INDICATED = "Not indicated at this time. Re-evaluate after Phase I therapy completion."

FALLBACK_MAINTENANCE = """1. Periodontal maintenance every 3 months initially
2. Comprehensive periodontal charting every 6 months
3. Annual radiographic review to monitor bone levels"""

FALLBACK_ADDITIONAL = """1. Daily interdental cleaning (floss or interdental brushes)
2. Consider electric toothbrush
3. Manage systemic risk factors (e.g., diabetes, smoking cessation)
4. Nutritional and stress management counseling as appropriate"""

# PDF report
PDF_COLORS = {
    'primary': (41, 128, 185),     # Blue
    'secondary': (52, 152, 219),   # Light Blue
    'success': (39, 174, 96),      # Green
    'warning': (241, 196, 15),     # Yellow
    'danger': (231, 76, 60),       # Red
    'dark': (52, 73, 94),          # Dark Gray
    'light': (236, 240, 241),      # Light Gray
    'text': (44, 62, 80),          # Text Gray
    'notice': (255, 252, 230),     # Light Yellow
}

PLAN_SECTIONS = [
    ('diagnosis', 'DIAGNOSIS', 'primary'),
    ('prognosis', 'PROGNOSIS', 'secondary'),
    ('phaseI', 'PHASE I: NON-SURGICAL THERAPY', 'success'),
    ('phaseII', 'PHASE II: SURGICAL THERAPY', 'warning'),
    ('maintenance', 'MAINTENANCE & RECALL SCHEDULE', 'primary'),
    ('additionalRecommendations', 'ADDITIONAL RECOMMENDATIONS', 'secondary'),
]

PDF_TITLE = "PERIODONTAL TREATMENT PLAN"
PDF_SUBTITLE = "AI-Generated Clinical Assessment"
DISCLAIMER_TITLE = "IMPORTANT DISCLAIMER"
DISCLAIMER_TEXT = (
    "This treatment plan is AI-generated and should be reviewed by a licensed dentist before implementation. "
    "Clinical judgment and individual patient assessment are essential for proper treatment decisions."
)
