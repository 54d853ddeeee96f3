import logging
import os
from uuid import uuid4

from flask import Flask, jsonify, request, session

from tuition_loan.data_models import DEFAULT_CONFIG, LoanSnapshot
from tuition_loan.engine import compute_loan_timeline, suggested_payment_for
from tuition_loan.formatter import chart_series, serialize_timeline, summarize
from tuition_loan.utils import config_from_dict, config_to_dict, parse_amount, snapshot_to_dict, validate_payment
from tuition_loan_web.snapshot_store import create_store_from_env

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
snapshot_store = create_store_from_env(os.environ.get("SNAPSHOT_DATABASE_URL"))


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _payload() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def _snapshot_from_payload(data: dict, current: LoanSnapshot) -> LoanSnapshot:
    """Apply the fields present in ``data`` on top of the stored snapshot."""
    config = current.config
    if "config" in data:
        if not isinstance(data["config"], dict):
            raise ValueError("config must be a JSON object")
        config = config_from_dict(data["config"], defaults=current.config)
    payment = current.monthly_payment
    if data.get("monthly_payment") is not None:
        payment = validate_payment(parse_amount(data["monthly_payment"]))
    return LoanSnapshot(config=config, monthly_payment=payment)


@app.errorhandler(ValueError)
def handle_value_error(exc: ValueError):
    return jsonify({"error": str(exc)}), 400


@app.get("/api/defaults")
def defaults():
    return jsonify(
        {
            "config": config_to_dict(DEFAULT_CONFIG),
            "monthly_payment": float(suggested_payment_for(DEFAULT_CONFIG)),
        }
    )


@app.post("/api/timeline")
def timeline():
    """Run the simulation for the posted (or stored) inputs and remember them."""
    user_token = _ensure_user_token()
    snapshot = _snapshot_from_payload(_payload(), snapshot_store.load_snapshot(user_token))
    result = compute_loan_timeline(snapshot.config, snapshot.monthly_payment)
    body = {
        "config": config_to_dict(snapshot.config),
        "summary": summarize(result, snapshot.config, snapshot.monthly_payment),
        "chart": chart_series(result),
        "timeline": serialize_timeline(result.timeline),
    }
    # Only inputs that computed successfully are remembered
    snapshot_store.save_snapshot(user_token, snapshot)
    return jsonify(body)


@app.get("/api/snapshot")
def get_snapshot():
    user_token = _ensure_user_token()
    return jsonify(snapshot_to_dict(snapshot_store.load_snapshot(user_token)))


@app.put("/api/snapshot")
def put_snapshot():
    user_token = _ensure_user_token()
    snapshot = _snapshot_from_payload(_payload(), snapshot_store.load_snapshot(user_token))
    snapshot_store.save_snapshot(user_token, snapshot)
    return jsonify(snapshot_to_dict(snapshot))


@app.delete("/api/snapshot")
def delete_snapshot():
    user_token = session.get("user_token")
    snapshot_store.clear_snapshot(user_token)
    return jsonify(snapshot_to_dict(snapshot_store.load_snapshot(user_token)))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    logger.info("Starting tuition loan web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
