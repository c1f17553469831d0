import logging
import os
import sys

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_migrate import Migrate

load_dotenv()

from models import db
from parsers.percent_input import parse_percent_input
from services.chart_session import SessionRegistry
from services.demographics_config import list_templates
from services.errors import AllocationError, SessionStateError
from services.storage import DEFAULT_SURVEYS_KEY, SqlKeyValueStore, SurveyRepository
from services.surveys import (
    delete_question,
    get_demographic,
    list_question_types,
    move_question,
    new_question,
    new_survey,
    rebuild_questions,
    remove_demographics,
    upsert_demographic,
    upsert_question,
)


def setup_logging(level: str = "INFO") -> None:
    """Send log records from every module to stdout, once."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
        )
    )
    root.addHandler(handler)
    root.setLevel(level)


setup_logging(os.environ.get("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

app = Flask(__name__)

database_url = os.environ.get("DATABASE_URL", "sqlite:///surveys.db")
# Heroku/Railway style postgres:// URLs need the postgresql:// scheme
if database_url.startswith("postgres://"):
    database_url = database_url.replace("postgres://", "postgresql://", 1)

app.config["SQLALCHEMY_DATABASE_URI"] = database_url
app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
app.config["SURVEY_STORE_KEY"] = os.environ.get("SURVEY_STORE_KEY", DEFAULT_SURVEYS_KEY)

db.init_app(app)
migrate = Migrate(app, db)

# Open chart edit sessions live in this process only
sessions = SessionRegistry()


def _repo() -> SurveyRepository:
    return SurveyRepository(SqlKeyValueStore(), app.config["SURVEY_STORE_KEY"])


def _not_found(what: str):
    return jsonify({"error": f"{what} not found"}), 404


def _json_body() -> dict:
    """The request body as a dict; anything but a JSON object is a 400."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


# ── Errors ───────────────────────────────────────────────────────────────

@app.errorhandler(SessionStateError)
def handle_session_state_error(e):
    return jsonify({"error": str(e)}), 409


@app.errorhandler(AllocationError)
def handle_allocation_error(e):
    return jsonify({"error": str(e), "type": type(e).__name__}), 400


@app.errorhandler(ValueError)
def handle_value_error(e):
    return jsonify({"error": str(e)}), 400


# ── Catalog ──────────────────────────────────────────────────────────────

@app.route("/api/demographics/templates")
def get_demographic_templates():
    """Return the built-in demographic charts plus the custom slot."""
    return jsonify(list_templates())


@app.route("/api/questions/types")
def get_question_types():
    return jsonify(list_question_types())


# ── Surveys ──────────────────────────────────────────────────────────────

@app.route("/api/surveys")
def list_surveys():
    return jsonify(_repo().list_surveys())


@app.route("/api/surveys", methods=["POST"])
def create_survey():
    data = _json_body()
    survey = new_survey(
        data.get("name", ""),
        owner=data.get("owner", ""),
        custom_information=data.get("customInformation", ""),
    )
    saved = _repo().save_survey(survey)
    logger.info("Created survey %s (%s)", saved["id"], saved["name"])
    return jsonify(saved), 201


@app.route("/api/surveys/<survey_id>")
def get_survey(survey_id):
    survey = _repo().get_survey(survey_id)
    if survey is None:
        return _not_found("Survey")
    return jsonify(survey)


@app.route("/api/surveys/<survey_id>", methods=["PUT"])
def update_survey(survey_id):
    """Update name, owner, customInformation or the whole questions list."""
    repo = _repo()
    survey = repo.get_survey(survey_id)
    if survey is None:
        return _not_found("Survey")

    data = _json_body()
    if "questions" in data:
        data = {**data, "questions": rebuild_questions(data["questions"])}
    for field in ("name", "owner", "customInformation", "questions"):
        if field in data:
            survey[field] = data[field]
    if not str(survey.get("name", "")).strip():
        return jsonify({"error": "Survey name is required"}), 400

    return jsonify(repo.save_survey(survey))


@app.route("/api/surveys/<survey_id>", methods=["DELETE"])
def remove_survey(survey_id):
    if not _repo().delete_survey(survey_id):
        return _not_found("Survey")
    sessions.close_for_survey(survey_id)
    return jsonify({"message": "Survey deleted"})


@app.route("/api/surveys/<survey_id>/demographics", methods=["DELETE"])
def remove_survey_demographics(survey_id):
    """Remove several demographic charts at once."""
    repo = _repo()
    survey = repo.get_survey(survey_id)
    if survey is None:
        return _not_found("Survey")

    ids = _json_body().get("ids", [])
    return jsonify(repo.save_survey(remove_demographics(survey, ids)))


# ── Questions ────────────────────────────────────────────────────────────

@app.route("/api/surveys/<survey_id>/questions", methods=["POST"])
def add_question(survey_id):
    repo = _repo()
    survey = repo.get_survey(survey_id)
    if survey is None:
        return _not_found("Survey")

    data = dict(_json_body())
    data.pop("id", None)
    question = new_question(data.pop("type", ""), data)
    repo.save_survey(upsert_question(survey, question))
    return jsonify(question), 201


@app.route("/api/surveys/<survey_id>/questions/<question_id>", methods=["PUT"])
def edit_question(survey_id, question_id):
    repo = _repo()
    survey = repo.get_survey(survey_id)
    if survey is None:
        return _not_found("Survey")
    existing = next((q for q in survey["questions"] if str(q["id"]) == question_id), None)
    if existing is None:
        return _not_found("Question")

    data = dict(_json_body())
    question_type = data.pop("type", existing["type"])
    if question_type == existing["type"]:
        base = existing
    else:
        # A new type starts from that type's defaults
        base = {"question": existing.get("question", "")}
    question = new_question(question_type, {**base, **data, "id": existing["id"]})
    repo.save_survey(upsert_question(survey, question))
    return jsonify(question)


@app.route("/api/surveys/<survey_id>/questions/<question_id>", methods=["DELETE"])
def remove_question(survey_id, question_id):
    repo = _repo()
    survey = repo.get_survey(survey_id)
    if survey is None:
        return _not_found("Survey")
    return jsonify(repo.save_survey(delete_question(survey, question_id)))


@app.route("/api/surveys/<survey_id>/questions/move", methods=["POST"])
def reorder_question(survey_id):
    """Drag-and-drop reorder: move the question at "from" to "to"."""
    repo = _repo()
    survey = repo.get_survey(survey_id)
    if survey is None:
        return _not_found("Survey")

    data = _json_body()
    try:
        old_index, new_index = int(data["from"]), int(data["to"])
    except (KeyError, TypeError, ValueError):
        return jsonify({"error": "Both 'from' and 'to' indexes are required"}), 400
    return jsonify(repo.save_survey(move_question(survey, old_index, new_index)))


# ── Chart sessions ───────────────────────────────────────────────────────

def _session_payload(session_id, survey_id, session):
    return {"id": session_id, "survey_id": survey_id, **session.to_dict()}


def _lookup_session(session_id):
    entry = sessions.get(session_id)
    if entry is None:
        return None, None
    return entry


@app.route("/api/surveys/<survey_id>/chart-sessions", methods=["POST"])
def open_chart_session(survey_id):
    """Open a chart for editing, from a template or an existing chart."""
    survey = _repo().get_survey(survey_id)
    if survey is None:
        return _not_found("Survey")

    data = _json_body()
    if data.get("demographic_id"):
        source = get_demographic(survey, data["demographic_id"])
        if source is None:
            return _not_found("Demographic")
    elif data.get("template"):
        source = data["template"]
    else:
        return jsonify({"error": "Provide either 'template' or 'demographic_id'"}), 400

    session_id, session = sessions.create(survey_id, source)
    logger.info("Opened chart session %s on survey %s", session_id, survey_id)
    return jsonify(_session_payload(session_id, survey_id, session)), 201


@app.route("/api/chart-sessions/<session_id>")
def get_chart_session(session_id):
    survey_id, session = _lookup_session(session_id)
    if session is None:
        return _not_found("Chart session")
    return jsonify(_session_payload(session_id, survey_id, session))


@app.route("/api/chart-sessions/<session_id>/ranges", methods=["POST"])
def add_chart_range(session_id):
    """Add a range that takes whatever percentage is still unassigned."""
    survey_id, session = _lookup_session(session_id)
    if session is None:
        return _not_found("Chart session")

    data = _json_body()
    session.add_range_from_remainder(data.get("label"))
    return jsonify(_session_payload(session_id, survey_id, session))


@app.route("/api/chart-sessions/<session_id>/ranges/<int:index>", methods=["PUT"])
def update_chart_range(session_id, index):
    survey_id, session = _lookup_session(session_id)
    if session is None:
        return _not_found("Chart session")

    data = _json_body()
    if "value" not in data:
        return jsonify({"error": "No value provided"}), 400
    session.update_value(index, parse_percent_input(data["value"]))
    return jsonify(_session_payload(session_id, survey_id, session))


@app.route("/api/chart-sessions/<session_id>/ranges/<int:index>", methods=["DELETE"])
def delete_chart_range(session_id, index):
    survey_id, session = _lookup_session(session_id)
    if session is None:
        return _not_found("Chart session")

    session.delete_range(index)
    return jsonify(_session_payload(session_id, survey_id, session))


@app.route("/api/chart-sessions/<session_id>/label", methods=["PUT"])
def set_chart_label(session_id):
    survey_id, session = _lookup_session(session_id)
    if session is None:
        return _not_found("Chart session")

    data = _json_body()
    session.set_label(data.get("label", ""))
    return jsonify(_session_payload(session_id, survey_id, session))


@app.route("/api/chart-sessions/<session_id>/commit", methods=["POST"])
def commit_chart_session(session_id):
    """Save the chart into its survey. Rejected unless the ranges sum to 100."""
    survey_id, session = _lookup_session(session_id)
    if session is None:
        return _not_found("Chart session")

    repo = _repo()
    survey = repo.get_survey(survey_id)
    if survey is None:
        sessions.close(session_id)
        return _not_found("Survey")

    definition = session.commit()
    saved = repo.save_survey(upsert_demographic(survey, definition))
    sessions.close(session_id)
    return jsonify({"demographic": definition.to_dict(), "survey": saved})


@app.route("/api/chart-sessions/<session_id>/discard", methods=["POST"])
def discard_chart_session(session_id):
    _, session = _lookup_session(session_id)
    if session is None:
        return _not_found("Chart session")

    session.discard()
    sessions.close(session_id)
    logger.info("Discarded chart session %s", session_id)
    return jsonify({"message": "Chart discarded"})


# ── Run ──────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    with app.app_context():
        db.create_all()
    app.run(debug=True, port=5002)
