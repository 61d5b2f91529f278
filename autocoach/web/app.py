"""
HTTP API for AutoCoach.
Thin Flask routes over the core services. Requests are authenticated with a
Firebase ID token, except task callbacks which carry a Cloud Tasks OIDC token.
"""

import logging
from functools import wraps

from flask import Flask, Response, g, jsonify, request
from firebase_admin import auth as firebase_auth
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from ..api.schemas import (
    BooleanValueSchema,
    FeedbackSchema,
    ScheduleSchema,
    TransactionsDataSchema,
    WeeklyTransactionsTaskSchema,
)
from ..config.settings import get_config
from ..data.models import TransactionsData
from ..data.storage import get_firebase_app
from ..errors import (
    ApiRateLimitError,
    AuthorizationError,
    WeeklyTransactionsError,
    get_error_message,
)
from ..services.email import send_user_feedback_email
from ..services.schedules import get_schedule
from ..services.teams import (
    get_user_teams,
    get_user_teams_partial,
    update_team_lineup_paused,
    update_team_lineup_setting,
)
from ..services.transactions import get_transaction_suggestions, process_selected_transactions
from ..services.weekly_transactions import perform_weekly_league_transactions


logger = logging.getLogger(__name__)

YAHOO_AUTH_REQUIRED_CODE = "YAHOO_AUTH_REQUIRED"


def extract_bearer_token(auth_header):
    if not auth_header or not auth_header.lower().startswith("bearer "):
        return None
    return auth_header[len("bearer "):].strip() or None


class InvalidRequestBody(Exception):
    """A request body that failed schema validation."""


def parse_body(schema):
    """Validate the JSON request body against a pydantic schema."""
    try:
        return schema.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        raise InvalidRequestBody(str(e)) from e


def verify_firebase_token(jwt: str) -> str:
    """Return the uid of a valid Firebase ID token."""
    decoded_token = firebase_auth.verify_id_token(jwt, app=get_firebase_app())
    return decoded_token["uid"]


def verify_task_token(jwt: str) -> bool:
    """Check a Cloud Tasks OIDC token was issued to the tasks service account."""
    claims = id_token.verify_oauth2_token(jwt, google_requests.Request())
    expected_email = get_config().tasks.service_account_email
    return bool(expected_email) and claims.get("email") == expected_email


def requires_auth(f):
    """Protect a route with a Firebase ID token and set g.uid."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        jwt = extract_bearer_token(request.headers.get("Authorization"))
        if not jwt:
            return jsonify({"error": "Missing or invalid Authorization header"}), 401

        try:
            g.uid = verify_firebase_token(jwt)
        except Exception as e:
            logger.error(f"Firebase Auth failed: {e}")
            return jsonify({"error": "Invalid or expired Firebase token"}), 401

        if not g.uid:
            return jsonify({"error": "Unauthorized"}), 401
        return f(*args, **kwargs)
    return decorated_function


def requires_task_auth(f):
    """Protect a task callback with the Cloud Tasks service account's token."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        jwt = extract_bearer_token(request.headers.get("Authorization"))
        if not jwt:
            return jsonify({"error": "Missing or invalid Authorization header"}), 401

        try:
            valid = verify_task_token(jwt)
        except Exception as e:
            logger.error(f"Task token verification failed: {e}")
            valid = False

        if not valid:
            return jsonify({"error": "Forbidden"}), 403
        return f(*args, **kwargs)
    return decorated_function


def create_app() -> Flask:
    """Create the AutoCoach Flask application."""
    app = Flask(__name__)
    allowed_origins = get_config().api.allowed_origins

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
            response.headers["Access-Control-Max-Age"] = "600"
            response.headers["Vary"] = "Origin"
        return response

    @app.errorhandler(InvalidRequestBody)
    def handle_invalid_body(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(AuthorizationError)
    def handle_yahoo_auth_error(e):
        logger.warning(f"Yahoo authorization failed for user {g.get('uid')}: {e}")
        return jsonify({
            "error": "Yahoo authorization failed",
            "message": "Please sign in with Yahoo again.",
            "code": YAHOO_AUTH_REQUIRED_CODE,
        }), 401

    @app.errorhandler(Exception)
    def handle_route_error(e):
        if isinstance(e, HTTPException):
            return e
        logger.error(f"Route handler failed: {request.method} {request.path} "
                     f"(user {g.get('uid')}): {e}", exc_info=True)
        return jsonify({"error": get_error_message(e)}), 500

    @app.route("/")
    def index():
        return Response("Hello AutoCoach!", mimetype="text/plain")

    @app.route("/schedules")
    @requires_auth
    def schedules():
        schedule = get_schedule(g.uid)
        body = ScheduleSchema.model_validate(schedule.to_dict())
        return jsonify(body.model_dump())

    @app.route("/teams")
    @requires_auth
    def teams():
        return jsonify(get_user_teams(g.uid))

    @app.route("/teams/partial")
    @requires_auth
    def teams_partial():
        return jsonify([team.to_dict() for team in get_user_teams_partial(g.uid)])

    @app.route("/teams/<team_key>/lineup/setting", methods=["PUT"])
    @requires_auth
    def lineup_setting(team_key):
        body = parse_body(BooleanValueSchema)
        return jsonify({"success": update_team_lineup_setting(g.uid, team_key, body.value)})

    @app.route("/teams/<team_key>/lineup/paused", methods=["PUT"])
    @requires_auth
    def lineup_paused(team_key):
        body = parse_body(BooleanValueSchema)
        return jsonify({"success": update_team_lineup_paused(g.uid, team_key, body.value)})

    @app.route("/transactions", methods=["GET"])
    @requires_auth
    def transactions():
        return jsonify(get_transaction_suggestions(g.uid).to_dict())

    @app.route("/transactions", methods=["POST"])
    @requires_auth
    def post_transactions():
        parse_body(TransactionsDataSchema)
        data = TransactionsData.from_dict(request.get_json(silent=True) or {})
        result = process_selected_transactions(data, g.uid)
        return jsonify(result.to_dict())

    @app.route("/feedback", methods=["POST"])
    @requires_auth
    def feedback():
        body = parse_body(FeedbackSchema)
        return jsonify({"success": send_user_feedback_email(body, g.uid)})

    @app.route("/tasks/weekly-transactions", methods=["POST"])
    @requires_task_auth
    def weekly_transactions_task():
        body = parse_body(WeeklyTransactionsTaskSchema)
        try:
            perform_weekly_league_transactions(body.uid, body.teams)
        except ApiRateLimitError as e:
            # Cloud Tasks retries on non-2xx responses
            response = jsonify({"error": str(e)})
            if e.retry_after:
                response.headers["Retry-After"] = str(e.retry_after)
            return response, 429
        except WeeklyTransactionsError as e:
            logger.error(f"Weekly transactions failed for user {e.uid}: {e.message} ({e.error})")
            return jsonify({"error": e.message}), 500
        return jsonify({"success": True})

    return app
