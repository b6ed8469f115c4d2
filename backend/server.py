import os
import re
import sys
import time

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException
from dotenv import load_dotenv

from instructional_terms import (
    generate_term_options,
    get_term_display_text,
    parse_reference_date,
)
from roadmap import (
    ROADMAP_STEPS,
    InvalidStepError,
    get_roadmap_step_options,
    get_visible_steps,
    is_current_step_valid,
    set_current_step,
    set_open_step,
    set_requires_remix,
)
from adoption_options import (
    ACCESS_METHOD_OPTIONS,
    I_AM_OPTIONS,
    STUDENT_USE_OPTIONS,
)
from project_store import PROGRESS_FILENAME, ProjectStore

load_dotenv()

app = Flask(__name__)

APP_VERSION = "1.0.0"

# ── Paths ─────────────────────────────────────────────────────────────────────
BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
_DEFAULT_DATA_PATH = os.path.join(PROJECT_ROOT, "data")
_env_data_path = os.environ.get("DATA_PATH")
if not _env_data_path:
    DATA_PATH = _DEFAULT_DATA_PATH
elif not os.path.isabs(_env_data_path):
    DATA_PATH = os.path.join(PROJECT_ROOT, _env_data_path)
else:
    DATA_PATH = _env_data_path

_PROJECT_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


_SLOW_REQUEST_LOG_MS = _env_float("SLOW_REQUEST_LOG_MS", 750.0, minimum=0.0)

# ── Startup store load ─────────────────────────────────────────────────────────
try:
    _store = ProjectStore(os.path.join(DATA_PATH, PROGRESS_FILENAME))
    print(f"[OK] Loaded roadmap progress for {len(_store)} project(s) from {DATA_PATH}")
except Exception as exc:
    print(f"[FATAL] Failed to load roadmap progress: {exc}", file=sys.stderr)
    sys.exit(1)


def _error(error_code: str, message: str, status: int):
    return jsonify({
        "mode": "error",
        "error": {"error_code": error_code, "message": message},
    }), status


# -- Security headers ------------------------------------------------------
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _add_security_headers(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= _SLOW_REQUEST_LOG_MS:
            endpoint = request.endpoint or "unknown"
            print(
                f"[SLOW] {request.method} {request.path} "
                f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
            )
    return response


# ── Error handlers ─────────────────────────────────────────────────────────────
@app.errorhandler(HTTPException)
def handle_http_error(e):
    if e.code == 404:
        return _error("NOT_FOUND", f"{request.path} not found", 404)
    return _error("INVALID_INPUT" if e.code == 400 else "HTTP_ERROR", e.description or e.name, e.code)


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    print(f"[WARN] Unhandled error on {request.method} {request.path}: {e!r}", file=sys.stderr)
    return _error("SERVER_ERROR", "An unexpected server error occurred.", 500)


# -- Health endpoint --------------------------------------------------------
@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": APP_VERSION,
        "projects_tracked": len(_store),
    })


# -- Input validation ------------------------------------------------------
def _reference_date_from_query():
    """Returns (timestamp, None) or (None, error_response)."""
    raw = request.args.get("date")
    try:
        return parse_reference_date(raw), None
    except ValueError:
        return None, _error(
            "INVALID_INPUT",
            f"'date' value '{raw}' is not a valid date (e.g. '2024-03-15').",
            400,
        )


def _validate_project_id(project_id: str):
    if not _PROJECT_ID_RE.match(project_id or ""):
        return _error("INVALID_INPUT", f"'{project_id}' is not a valid project identifier.", 400)
    return None


def _roadmap_payload(project_id: str, state) -> dict:
    return {
        "project_id": project_id,
        "requires_remix": state.requires_remix.to_stored(),
        "current_step": state.current_step_key,
        "open_step": state.open_step_key,
        "current_step_valid": is_current_step_valid(state),
        "steps": [v.to_dict() for v in get_visible_steps(state)],
    }


# ── Routes: instructional terms ────────────────────────────────────────────────
@app.route("/api/terms", methods=["GET"])
def get_terms():
    reference, err = _reference_date_from_query()
    if err:
        return err
    return jsonify({
        "reference_date": reference.date().isoformat(),
        "options": generate_term_options(reference),
    })


@app.route("/api/terms/<term_key>", methods=["GET"])
def get_term_text(term_key):
    return jsonify({"key": term_key, "text": get_term_display_text(term_key)})


# ── Routes: adoption reports ───────────────────────────────────────────────────
@app.route("/api/adoption-reports/options", methods=["GET"])
def get_adoption_report_options():
    reference, err = _reference_date_from_query()
    if err:
        return err
    return jsonify({
        "i_am": I_AM_OPTIONS,
        "student_use": STUDENT_USE_OPTIONS,
        "access_methods": ACCESS_METHOD_OPTIONS,
        "terms": generate_term_options(reference),
    })


# ── Routes: construction roadmap ───────────────────────────────────────────────
@app.route("/api/roadmap/steps", methods=["GET"])
def get_roadmap_steps():
    return jsonify({
        "steps": [s.to_dict() for s in ROADMAP_STEPS],
        "options": get_roadmap_step_options(),
    })


@app.route("/api/projects/<project_id>/roadmap", methods=["GET"])
def get_project_roadmap(project_id):
    err = _validate_project_id(project_id)
    if err:
        return err
    state = _store.load_roadmap_state(project_id)
    open_key = request.args.get("open")
    if open_key:
        try:
            state = set_open_step(state, open_key)
        except InvalidStepError as exc:
            return _error("INVALID_STEP", str(exc), 400)
    return jsonify(_roadmap_payload(project_id, state))


@app.route("/api/projects/<project_id>/roadmap/requires-remix", methods=["PUT"])
def update_project_requires_remix(project_id):
    err = _validate_project_id(project_id)
    if err:
        return err
    body = request.get_json(force=True, silent=True)
    value = body.get("requires_remix") if isinstance(body, dict) else None
    if not isinstance(value, bool):
        return _error("INVALID_INPUT", "'requires_remix' must be true or false.", 400)

    state = set_requires_remix(_store.load_roadmap_state(project_id), value)
    changed = _store.save_roadmap_state(project_id, state)
    payload = _roadmap_payload(project_id, state)
    payload["changed"] = changed
    return jsonify(payload)


@app.route("/api/projects/<project_id>/roadmap/current-step", methods=["PUT"])
def update_project_current_step(project_id):
    err = _validate_project_id(project_id)
    if err:
        return err
    body = request.get_json(force=True, silent=True)
    step_key = body.get("step") if isinstance(body, dict) else None
    if not isinstance(step_key, str) or not step_key.strip():
        return _error("INVALID_INPUT", "'step' must be a roadmap step key.", 400)

    try:
        state = set_current_step(_store.load_roadmap_state(project_id), step_key.strip())
    except InvalidStepError as exc:
        return _error("INVALID_STEP", str(exc), 400)
    changed = _store.save_roadmap_state(project_id, state)
    payload = _roadmap_payload(project_id, state)
    payload["changed"] = changed
    return jsonify(payload)


if __name__ == "__main__":
    port = _env_int("PORT", 5000)
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
