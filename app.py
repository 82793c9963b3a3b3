import os
import io
import logging
from datetime import date

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from pydantic import ValidationError

import config_master as config
import utils_generation
import utils_pdf
from schemas import PatientData, format_violations, validate_plan

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# App Initialization
app = Flask(__name__)
CORS(app, expose_headers=["X-Plan-Source"])


# API ROUTES

@app.route('/api/generate-plan', methods=['POST'])
def generate_plan():
    """
    Generates a treatment plan from the submitted patient data.
    Always answers with a complete plan unless the credential is missing
    or the request itself cannot be processed.
    """
    logger.info("Starting treatment plan generation")
    try:
        patient = PatientData.model_validate(request.get_json(force=True))
        logger.info(
            "Received patient data: name=%s age=%s gender=%s symptoms=%d",
            patient.patient_name, patient.age, patient.gender.value,
            len(patient.symptoms.active_labels()),
        )

        api_key = os.getenv(config.API_KEY_ENV)
        if not api_key:
            logger.error("Missing %s", config.API_KEY_ENV)
            return jsonify({"error": f"Missing {config.API_KEY_ENV} on server"}), 500

        client = utils_generation.get_groq_client(api_key)
        result = utils_generation.generate_treatment_plan(patient, client)

        response = jsonify(result.plan.to_json())
        response.headers["X-Plan-Source"] = result.source.value
        return response

    except Exception:
        logger.exception("Error generating treatment plan")
        return jsonify({"error": "Failed to generate treatment plan"}), 500


@app.route('/api/export-pdf', methods=['POST'])
def export_pdf():
    """Renders patient data and the (possibly edited) plan as a PDF download."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request must be JSON"}), 400

    try:
        patient = PatientData.model_validate(data.get('patientData'))
    except ValidationError as e:
        return jsonify({"error": "Invalid patient data", "violations": format_violations(e)}), 400

    plan, violations = validate_plan(data.get('treatmentPlan'))
    if plan is None:
        return jsonify({"error": "Invalid treatment plan", "violations": violations}), 400

    doctor_name = data.get('doctorName')
    if doctor_name is not None and not isinstance(doctor_name, str):
        return jsonify({"error": "doctorName must be a string"}), 400

    today = date.today()
    pdf_bytes = utils_pdf.build_treatment_plan_pdf(
        patient, plan, doctor_name=(doctor_name or "").strip() or None, on_date=today
    )
    filename = utils_pdf.pdf_filename(patient.patient_name, today)
    logger.info("Sending PDF export %s", filename)

    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=filename,
    )


@app.route('/api/env-test')
def env_test():
    """Reports whether the Groq credential is configured, without revealing it."""
    key = os.getenv(config.API_KEY_ENV)
    present = bool(key)
    logger.info("%s present on server: %s", config.API_KEY_ENV,
                f"yes (len={len(key)})" if present else "no")
    return jsonify({"present": present, "length": len(key) if key else 0})


# APP RUNNER

if __name__ == '__main__':
    logger.info("Flask server starting on port %d", config.PORT)
    app.run(host="0.0.0.0", port=config.PORT, debug=os.getenv("FLASK_DEBUG") == "1")
