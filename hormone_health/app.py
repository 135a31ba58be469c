# hormone_health/app.py
# ------------------------------------------------------------
# Hormone health survey API
# Flow: answers ➜ cycle phase ➜ rule-based scoring (+ labs) ➜ JSON
# - /api/analyze        score a completed survey
# - /api/cycle-phase    cycle day / phase for a last-period date
# - /api/save-response, /api/save-email, /api/get-responses
#                       thin wrappers over the key-value store
# ------------------------------------------------------------

from __future__ import annotations

import logging
import os
import random
import re
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from flask import Flask, current_app, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from .cycle_phase import (
    DEFAULT_CYCLE_LENGTH,
    UNKNOWN_RESULT,
    CyclePhaseResult,
    calculate_cycle_phase,
    phase_description,
    phase_display_name,
    result_as_dict,
)
from .hormone_scoring import explanations_by_hormone, score_symptoms
from .storage import StoreError, store_from_env

# Optional .env file (no-op if missing)
load_dotenv()

# ============================
# Settings & logging
# ============================
# Basic console logging; level can be set with APP_LOG_LEVEL=DEBUG/INFO/...
APP_LOG_LEVEL = os.getenv("APP_LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, APP_LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)

# "development" exposes low-level error text in 500 responses
APP_ENV = os.getenv("APP_ENV", "production").lower()

# A full survey with labs is well under this
MAX_CONTENT_KB = int(os.getenv("MAX_CONTENT_KB", "16"))

RESPONSES_LIST = "responses"
EMAILS_LIST = "emails"
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")

# ============================
# Small helpers
# ============================
def _parse_origins(val: str) -> List[str]:
    """Turn a comma-separated env string into a list of allowed origins."""
    return [o.strip() for o in (val or "").split(",") if o.strip()]

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

def _new_id(prefix: str) -> str:
    """e.g. response_1718000000000_k3j9x0abc (ms timestamp + 9 base36 chars)."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"

def _cycle_length(raw: Any) -> Optional[int]:
    """Survey number field → positive int from its leading digits ("30 days" → 30), else None."""
    if raw is None or isinstance(raw, bool):
        return None
    m = LEADING_INT_RE.match(str(raw))
    if not m:
        return None
    value = int(m.group(1))
    return value if value > 0 else None

def _json_body() -> Dict[str, Any]:
    """Request JSON as a dict; anything else (missing, list, junk) → {}."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}

def _log_phase(result, inputs: Dict[str, Any]) -> None:
    logger.debug("Cycle phase calculation: %s → %s", inputs, result_as_dict(result))

def _store_unavailable():
    return jsonify(
        success=False,
        message="Database connection not available. Please check environment variables.",
    ), 503

def _store_failed(message: str, e: Exception):
    logger.exception("%s: %s", message, e)
    detail = str(e) if APP_ENV == "development" else "Internal server error"
    return jsonify(success=False, message=message, error=detail), 500

# ============================
# Flask app & CORS
# ============================
app = Flask(__name__)

ALLOWED_ORIGINS = _parse_origins(
    os.getenv(
        "ALLOWED_ORIGINS",
        "http://127.0.0.1:5173,http://localhost:5173,"
        "http://127.0.0.1:3000,http://localhost:3000"
    )
)
CORS(
    app,
    resources={
        r"/api/*": {
            "origins": ALLOWED_ORIGINS,
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type"],
        }
    },
)
app.config["MAX_CONTENT_LENGTH"] = MAX_CONTENT_KB * 1024
# Key-value store (None → save/get endpoints answer 503)
app.config["STORE"] = store_from_env()

# ============================
# Error handling
# ============================
@app.errorhandler(405)
def _method_not_allowed(e):
    return jsonify(message="Method not allowed"), 405

@app.errorhandler(Exception)
def _any_error(e):
    if isinstance(e, HTTPException):
        return e
    logger.exception("Unhandled error: %s", e)
    return jsonify(error="internal_error"), 500

# ============================
# Health checks
# ============================
@app.route("/healthz")
def healthz():
    return jsonify(status="ok"), 200

@app.route("/health")
def health():
    return jsonify(status="ok"), 200

# ============================
# Scoring endpoints
# ============================
def _survey_cycle_phase(answers: Dict[str, Any], today: Optional[str]) -> CyclePhaseResult:
    """Same inputs the survey page uses: regular periods + date + length."""
    is_regular = answers.get("q1_period") == "Yes"
    cycle_length = _cycle_length(answers.get("q1_cycle_length")) or DEFAULT_CYCLE_LENGTH
    last_period = "" if answers.get("q2_dont_remember") else answers.get("q2_last_period") or ""
    # Irregular cycles or no date are unknown, as in get_cycle_phase
    if not last_period or not is_regular:
        return UNKNOWN_RESULT
    return calculate_cycle_phase(last_period, cycle_length, today=today, on_calculated=_log_phase)

@app.route("/api/analyze", methods=["POST"])
def analyze():
    # Accept {"answers": {...}} or the answers object itself
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify(success=False, message="Survey answers are required"), 400
    answers = data.get("answers", data)
    if not isinstance(answers, dict):
        return jsonify(success=False, message="Survey answers must be an object"), 400

    cycle = _survey_cycle_phase(answers, data.get("referenceDate"))
    analysis = score_symptoms(answers, cycle.phase)
    logger.info(
        "Analysis: phase=%s primary=%s total=%d confidence=%s",
        cycle.phase.value,
        analysis.primary_imbalance.value if analysis.primary_imbalance else None,
        analysis.total_score,
        analysis.confidence_level.value,
    )
    return jsonify(
        success=True,
        cycle=cycle.to_dict(),
        results=analysis.to_dict(),
        explanationsByHormone=explanations_by_hormone(analysis.explanations),
    ), 200

@app.route("/api/cycle-phase", methods=["POST"])
def cycle_phase():
    data = _json_body()
    result = calculate_cycle_phase(
        data.get("lastPeriodDate") or "",
        _cycle_length(data.get("cycleLength")),
        today=data.get("referenceDate"),
        on_calculated=_log_phase,
    )
    out = result.to_dict()
    out["displayName"] = phase_display_name(result.phase)
    out["description"] = phase_description(result.phase)
    return jsonify(out), 200

# ============================
# Persistence endpoints
# ============================
@app.route("/api/save-response", methods=["POST"])
def save_response():
    store = current_app.config.get("STORE")
    if store is None:
        return _store_unavailable()

    data = _json_body()
    survey_data, results = data.get("surveyData"), data.get("results")
    if not survey_data or not results:
        return jsonify(message="Missing required data"), 400

    response_id = _new_id("response")
    record = {
        "id": response_id,
        "surveyData": survey_data,
        "results": results,
        "timestamp": data.get("timestamp") or _now_iso(),
        "createdAt": _now_iso(),
    }
    try:
        store.set(response_id, record)
        store.lpush(RESPONSES_LIST, response_id)
    except StoreError as e:
        return _store_failed("Failed to save response", e)

    logger.info("Saved response %s", response_id)
    return jsonify(success=True, responseId=response_id, message="Response saved successfully"), 200

@app.route("/api/save-email", methods=["POST"])
def save_email():
    store = current_app.config.get("STORE")
    if store is None:
        return _store_unavailable()

    data = _json_body()
    email = (data.get("email") or "").strip()
    if not email:
        return jsonify(message="Email is required"), 400
    if not EMAIL_RE.match(email):
        return jsonify(message="Invalid email format"), 400

    response_id = data.get("responseId") or None
    email_id = _new_id("email")
    record = {
        "id": email_id,
        "email": email,
        "responseId": response_id,
        "timestamp": data.get("timestamp") or _now_iso(),
        "createdAt": _now_iso(),
    }
    try:
        store.set(email_id, record)
        store.lpush(EMAILS_LIST, email_id)
        if response_id:
            store.hset(f"response_emails:{response_id}", {"email": email})
    except StoreError as e:
        return _store_failed("Failed to save email", e)

    logger.info("Saved email %s (response=%s)", email_id, response_id)
    return jsonify(success=True, emailId=email_id, message="Email saved successfully"), 200

def _load_list(store, list_name: str) -> List[Any]:
    out = []
    for key in store.lrange(list_name, 0, -1):
        value = store.get(key)
        if value:
            out.append(value)
    return out

@app.route("/api/get-responses", methods=["GET"])
def get_responses():
    store = current_app.config.get("STORE")
    if store is None:
        return _store_unavailable()

    try:
        responses = _load_list(store, RESPONSES_LIST)
        emails = _load_list(store, EMAILS_LIST)
    except StoreError as e:
        return _store_failed("Failed to retrieve data", e)

    return jsonify(
        success=True,
        responses=responses,
        emails=emails,
        totalResponses=len(responses),
        totalEmails=len(emails),
    ), 200

# ============================
# Entrypoint for local dev
# ============================
if __name__ == "__main__":
    logger.info("Allowed CORS origins: %s", ALLOWED_ORIGINS)
    logger.info("APP_ENV=%s | store=%s", APP_ENV, type(app.config["STORE"]).__name__)
    app.run(host="127.0.0.1", port=8000, debug=False, use_reloader=False)
